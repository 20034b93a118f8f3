"""Incident sources and the 2D cylindrical wave basis.

A Source carries its field u_inc(x, omega) and the coefficients g_m of its
regular expansion about any centre c,

    u_inc(x) = sum_m g_m J_m(k |x - c|) e^{i m theta},   |m| <= M,

which is what the multiple-scattering solve consumes.

Sources
-------
    point source  u = -(i/4) A H_0^(1)(k |x - x_s|)      (2D free-space Green)
    plane wave    u = A exp(i k d.(x - x_0))

Expansions
----------
    point source  g_m = -(i/4) A H_{-m}^(1)(k R) e^{-i m phi},  (R, phi) of c - x_s
    plane wave    g_m = A e^{i k d.(c - x_0)} i^m e^{-i m theta_d}   (Jacobi-Anger)

Both are only valid for |x - c| < R (point source) and everywhere
(plane wave, up to truncation).
"""

import logging
from dataclasses import dataclass
from typing import Callable

import numpy as np
from scipy.special import hankel1, jv

from multiple_scattering.physics import Acoustic

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cylindrical basis
# ---------------------------------------------------------------------------
def _mode_orders(basis_order: int) -> np.ndarray:
    """Mode indices -M..M."""
    if basis_order < 0:
        raise ValueError(f"basis_order must be non-negative, got {basis_order}")
    return np.arange(-basis_order, basis_order + 1)


def _polar(x: np.ndarray):
    x = np.asarray(x, dtype=float)
    r = np.sqrt(np.sum(x ** 2, axis=-1))
    theta = np.arctan2(x[..., 1], x[..., 0])
    return r, theta


def regular_basis_function(
    medium: Acoustic,
    omega: float,
    basis_order: int,
    x: np.ndarray,
) -> np.ndarray:
    """Regular waves J_m(k r) e^{i m theta} at ``x`` relative to the expansion centre.

    Parameters
    ----------
    medium : Acoustic
        Medium setting the wavenumber k = omega / c.
    omega : float
        Angular frequency [rad/s].
    basis_order : int
        Truncation order M.
    x : np.ndarray, shape (2,) or (N, 2)

    Returns
    -------
    basis : np.ndarray, complex128, shape (2M+1,) or (N, 2M+1)
    """
    k = omega / medium.c
    r, theta = _polar(x)
    ms = _mode_orders(basis_order)
    r = np.asarray(r)[..., None]
    theta = np.asarray(theta)[..., None]
    return jv(ms, k * r) * np.exp(1j * ms * theta)


def outgoing_basis_function(
    medium: Acoustic,
    omega: float,
    basis_order: int,
    x: np.ndarray,
) -> np.ndarray:
    """Outgoing waves H_m^(1)(k r) e^{i m theta}; same shapes as regular_basis_function."""
    k = omega / medium.c
    r, theta = _polar(x)
    ms = _mode_orders(basis_order)
    r = np.asarray(r)[..., None]
    theta = np.asarray(theta)[..., None]
    return hankel1(ms, k * r) * np.exp(1j * ms * theta)


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Source:
    """Incident field in a medium.

    Attributes
    ----------
    medium : Acoustic
        Medium the source radiates into.
    field : callable
        field(x, omega) -> complex field at x, shape (..., 2) -> (...).
    coefficients : callable
        coefficients(centre, omega, basis_order) -> np.ndarray, shape (2M+1,),
        regular expansion coefficients about ``centre``.
    """

    medium: Acoustic
    field: Callable[[np.ndarray, float], np.ndarray]
    coefficients: Callable[[np.ndarray, float, int], np.ndarray]

    def __add__(self, other: "Source") -> "Source":
        if not isinstance(other, Source):
            return NotImplemented
        if self.medium != other.medium:
            raise ValueError(
                f"Cannot add sources in different media: {self.medium} and {other.medium}"
            )

        def field(x, omega):
            return self.field(x, omega) + other.field(x, omega)

        def coefficients(centre, omega, basis_order):
            return (
                self.coefficients(centre, omega, basis_order)
                + other.coefficients(centre, omega, basis_order)
            )

        return Source(self.medium, field, coefficients)

    def __mul__(self, a: complex) -> "Source":
        if not np.isscalar(a):
            return NotImplemented

        def field(x, omega):
            return a * self.field(x, omega)

        def coefficients(centre, omega, basis_order):
            return a * self.coefficients(centre, omega, basis_order)

        return Source(self.medium, field, coefficients)

    __rmul__ = __mul__


def _check_2d_acoustic(medium: Acoustic) -> None:
    if not isinstance(medium, Acoustic) or medium.dim != 2:
        raise NotImplementedError(f"Sources are only implemented for 2D Acoustic media, got {medium.name()}")


def point_source(medium: Acoustic, position, amplitude: complex = 1.0) -> Source:
    """Line source at ``position`` radiating the 2D free-space Green's function."""
    _check_2d_acoustic(medium)
    position = np.array(position, dtype=float)
    if position.shape != (2,):
        raise ValueError(f"Source position must have shape (2,), got {position.shape}")

    def field(x, omega):
        k = omega / medium.c
        dist = np.sqrt(np.sum((np.asarray(x, dtype=float) - position) ** 2, axis=-1))
        return -0.25j * amplitude * hankel1(0, k * dist)

    def coefficients(centre, omega, basis_order):
        k = omega / medium.c
        ms = _mode_orders(basis_order)
        R, phi = _polar(np.asarray(centre, dtype=float) - position)
        if R == 0:
            raise ValueError("Cannot expand a point source about its own position")
        return -0.25j * amplitude * hankel1(-ms, k * R) * np.exp(-1j * ms * phi)

    return Source(medium, field, coefficients)


def plane_source(
    medium: Acoustic,
    position=(0.0, 0.0),
    direction=(1.0, 0.0),
    amplitude: complex = 1.0,
) -> Source:
    """Plane wave travelling along ``direction`` with phase zero at ``position``."""
    _check_2d_acoustic(medium)
    position = np.array(position, dtype=float)
    direction = np.array(direction, dtype=float)
    norm = np.linalg.norm(direction)
    if norm == 0:
        raise ValueError("Plane wave direction must be non-zero")
    direction = direction / norm
    theta_d = np.arctan2(direction[1], direction[0])

    def field(x, omega):
        k = omega / medium.c
        return amplitude * np.exp(1j * k * ((np.asarray(x, dtype=float) - position) @ direction))

    def coefficients(centre, omega, basis_order):
        k = omega / medium.c
        ms = _mode_orders(basis_order)
        phase = np.exp(1j * k * np.dot(np.asarray(centre, dtype=float) - position, direction))
        return amplitude * phase * (1j ** ms) * np.exp(-1j * ms * theta_d)

    return Source(medium, field, coefficients)


def besselj_field(
    source: Source,
    medium: Acoustic,
    centre,
    basis_order: int = 4,
) -> Callable[[np.ndarray, float], np.ndarray]:
    """Truncated regular expansion of ``source`` about ``centre``.

    Returns a function (x, omega) -> field, accurate near ``centre``.
    """
    centre = np.array(centre, dtype=float)

    def field(x, omega):
        g = source.coefficients(centre, omega, basis_order)  # (2M+1,)
        basis = regular_basis_function(medium, omega, basis_order, np.asarray(x, dtype=float) - centre)
        return basis @ g

    return field
