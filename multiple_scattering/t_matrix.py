"""Closed-form T-matrices of single particles.

The T-matrix maps the coefficients f_m of the wave exciting a particle to
the coefficients of the wave it scatters. For a circle the matrix is
diagonal and stores the ratios Z_m, with scattered coefficients

    A_m = -Z_m f_m,    m = -M..M,    Z_{-m} = Z_m.

Circle in an acoustic medium
----------------------------
With ak = a omega / c, gamma = c / c_p (outer over inner speed) and
q = rho_p c_p / (rho c) (impedance contrast):

    rigid (c_p or rho_p infinite):
        Z_m = J'_m(ak) / H'_m(ak)
    sound-soft (rho_p c_p = 0):
        Z_m = J_m(ak) / H_m(ak)
    zero outer density:
        Z_m = J'_m(ak) J_m(gamma ak) / (H'_m(ak) J_m(gamma ak))
    general:
        Z_m = (q J'_m(ak) J_m(gamma ak) - J_m(ak) J'_m(gamma ak))
            / (q H'_m(ak) J_m(gamma ak) - H_m(ak) J'_m(gamma ak))

Inside a penetrable circle the field is sum_m B_m J_m(gamma k r) e^{i m theta}
with B_m = (f_m J_m(ak) + A_m H_m(ak)) / J_m(gamma ak).

Only (Circle, Acoustic, Acoustic) has a closed form here. Other
combinations raise NotImplementedError; new ones are added to the dispatch
table with ``register_t_matrix``.
"""

import logging
from typing import Callable, Dict, Tuple

import numpy as np
from scipy.special import h1vp, hankel1, jv, jvp

from multiple_scattering.physics import Acoustic, Particle, PhysicalProperties
from multiple_scattering.shapes import DomainError, Shape, Sphere

logger = logging.getLogger(__name__)

TMatrixSolver = Callable[[Shape, PhysicalProperties, PhysicalProperties, float, int], np.ndarray]

_T_MATRIX_TABLE: Dict[Tuple[type, type, type], TMatrixSolver] = {}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
def register_t_matrix(shape_type: type, inner_type: type, outer_type: type):
    """Decorator adding a closed-form solver for (shape, inner, outer) types."""

    def decorator(solver: TMatrixSolver) -> TMatrixSolver:
        _T_MATRIX_TABLE[(shape_type, inner_type, outer_type)] = solver
        return solver

    return decorator


def _lookup(shape: Shape, inner_medium: PhysicalProperties, outer_medium: PhysicalProperties):
    for shape_type in type(shape).__mro__:
        for inner_type in type(inner_medium).__mro__:
            for outer_type in type(outer_medium).__mro__:
                solver = _T_MATRIX_TABLE.get((shape_type, inner_type, outer_type))
                if solver is not None:
                    return solver
    return None


def t_matrix(
    shape: Shape,
    inner_medium: PhysicalProperties,
    outer_medium: PhysicalProperties,
    omega: float,
    basis_order: int,
) -> np.ndarray:
    """T-matrix of a particle with ``shape`` and ``inner_medium`` in ``outer_medium``.

    Parameters
    ----------
    shape : Shape
        Particle boundary.
    inner_medium : PhysicalProperties
        Material filling the particle.
    outer_medium : PhysicalProperties
        Surrounding medium.
    omega : float
        Angular frequency [rad/s].
    basis_order : int
        Truncation order M.

    Returns
    -------
    T : np.ndarray, complex128, shape (2M+1, 2M+1)

    Raises
    ------
    NotImplementedError
        No closed form exists for this combination.
    DomainError
        Degenerate material or geometry.
    """
    if basis_order < 0:
        raise ValueError(f"basis_order must be non-negative, got {basis_order}")

    solver = _lookup(shape, inner_medium, outer_medium)
    if solver is None:
        raise NotImplementedError(
            f"T-matrix function is not yet written for {inner_medium.name()} "
            f"{shape.name()} in a {outer_medium.name()} medium"
        )
    return solver(shape, inner_medium, outer_medium, omega, basis_order)


# ---------------------------------------------------------------------------
# Circle in an acoustic medium
# ---------------------------------------------------------------------------
def _check_circle_acoustic(circle: Sphere, inner_medium: Acoustic, outer_medium: Acoustic) -> None:
    """Reject configurations where the ratios Z_m are undefined."""
    if np.isnan(inner_medium.impedance):
        raise DomainError("Scattering from a particle with zero density or zero phase speed is not defined")
    elif np.isnan(outer_medium.impedance):
        raise DomainError("Wave propagation in a medium with zero density or zero phase speed is not defined")
    elif outer_medium.c == 0:
        raise DomainError("Wave propagation in a medium with zero phase speed is not defined")
    elif outer_medium.rho == 0 and inner_medium.impedance == 0:
        raise DomainError(
            "Scattering in a medium with zero density from a particle with zero density "
            "or zero phase speed is not defined"
        )
    elif circle.radius == 0:
        raise DomainError("Scattering from a circle of zero radius is not implemented yet")


def _is_rigid(medium: Acoustic) -> bool:
    return bool(np.isinf(medium.c) or np.isinf(medium.rho))


@register_t_matrix(Sphere, Acoustic, Acoustic)
def circle_acoustic_t_matrix(
    circle: Sphere,
    inner_medium: Acoustic,
    outer_medium: Acoustic,
    omega: float,
    basis_order: int,
) -> np.ndarray:
    """Diagonal T-matrix of a 2D acoustic circle; see the module docstring."""
    if not (circle.dim == inner_medium.dim == outer_medium.dim == 2):
        raise NotImplementedError(
            f"T-matrix function is not yet written for {inner_medium.name()} "
            f"{circle.name()} in a {outer_medium.name()} medium"
        )
    _check_circle_acoustic(circle, inner_medium, outer_medium)

    M = basis_order
    ms = np.arange(M + 1)  # (M+1,)
    ak = circle.radius * omega / outer_medium.c

    if _is_rigid(inner_medium):
        regime = "rigid"
        numer = jvp(ms, ak)
        denom = h1vp(ms, ak)
    elif inner_medium.impedance == 0:
        # q -> 0 limit of the general case, also valid for c_p = 0
        regime = "sound-soft"
        numer = jv(ms, ak)
        denom = hankel1(ms, ak)
    elif outer_medium.rho == 0:
        regime = "zero outer density"
        gamma = outer_medium.c / inner_medium.c
        numer = jvp(ms, ak) * jv(ms, gamma * ak)
        denom = h1vp(ms, ak) * jv(ms, gamma * ak)
    else:
        regime = "general"
        q = inner_medium.impedance / outer_medium.impedance
        gamma = outer_medium.c / inner_medium.c
        numer = q * jvp(ms, ak) * jv(ms, gamma * ak) - jv(ms, ak) * jvp(ms, gamma * ak)
        denom = q * h1vp(ms, ak) * jv(ms, gamma * ak) - hankel1(ms, ak) * jvp(ms, gamma * ak)

    Z = np.zeros(M + 1, dtype=np.complex128)  # (M+1,)
    Z[:] = numer / denom

    # Z_{-m} = Z_m: diagonal runs over m = -M..M
    diagonal = np.zeros(2 * M + 1, dtype=np.complex128)  # (2M+1,)
    diagonal[M:] = Z
    diagonal[:M] = Z[:0:-1]

    logger.debug(
        "Circle T-matrix: a=%.3g, omega=%.3g, M=%d, regime=%s", circle.radius, omega, M, regime,
    )
    return np.diag(diagonal)


def internal_coefficients(
    particle: Particle,
    outer_medium: Acoustic,
    t_mat: np.ndarray,
    exciting: np.ndarray,
    omega: float,
) -> np.ndarray:
    """Coefficients B_m of the field inside a penetrable circular particle.

    Parameters
    ----------
    particle : Particle
        Circle filled with an Acoustic medium.
    outer_medium : Acoustic
    t_mat : np.ndarray, shape (2M+1, 2M+1)
        The particle's T-matrix.
    exciting : np.ndarray, shape (2M+1,)
        Coefficients f_m of the wave exciting the particle.
    omega : float

    Returns
    -------
    B : np.ndarray, complex128, shape (2M+1,)
        Zero for rigid, sound-soft and zero-outer-density particles.
    """
    shape, inner_medium = particle.shape, particle.medium
    if not (isinstance(shape, Sphere) and isinstance(inner_medium, Acoustic) and shape.dim == 2):
        raise NotImplementedError(
            f"Internal field is not yet written for {inner_medium.name()} {shape.name()}"
        )

    exciting = np.asarray(exciting, dtype=np.complex128)
    if (
        _is_rigid(inner_medium)
        or inner_medium.impedance == 0
        or outer_medium.rho == 0
    ):
        return np.zeros_like(exciting)

    M = (len(exciting) - 1) // 2
    ms = np.abs(np.arange(-M, M + 1))  # (2M+1,)
    ak = shape.radius * omega / outer_medium.c
    gamma = outer_medium.c / inner_medium.c

    scattered = -np.diag(t_mat) * exciting  # (2M+1,)
    return (exciting * jv(ms, ak) + scattered * hankel1(ms, ak)) / jv(ms, gamma * ak)
