"""Physical properties of media and particles built from them.

A particle pairs a Shape with the medium filling it. Two particles are
equal when both shape (including position) and medium match, and
congruent when their shapes match up to a translation and their media
are equal.

Acoustic media
--------------
    rho : density, may be 0 (sound-soft limit) or inf (rigid limit)
    c   : complex wave speed, may be 0 or inf; Im(c) models losses
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np

from multiple_scattering.shapes import Shape

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Physical properties
# ---------------------------------------------------------------------------
class PhysicalProperties(ABC):
    """Material of a homogeneous region.

    Subclasses expose ``dim`` (spatial dimension) and ``field_dim`` (number
    of field components) and compare by value.
    """

    dim: int

    @property
    @abstractmethod
    def field_dim(self) -> int:
        """Number of components of the field (1 for scalar fields)."""

    @abstractmethod
    def name(self) -> str:
        """Human-readable name used in error messages."""


@dataclass(frozen=True)
class Acoustic(PhysicalProperties):
    """Fluid with density ``rho`` and wave speed ``c`` in ``dim`` dimensions."""

    rho: float
    c: complex
    dim: int = 2

    def __post_init__(self):
        if self.dim not in (2, 3):
            raise ValueError(f"Acoustic media are 2D or 3D, got dim={self.dim}")
        object.__setattr__(self, "rho", float(self.rho))
        object.__setattr__(self, "c", complex(self.c))

    @property
    def field_dim(self) -> int:
        return 1

    @property
    def impedance(self) -> complex:
        """Density times wave speed; NaN for the undefined product 0 * inf."""
        if self.c.imag == 0:
            return complex(self.rho * self.c.real, 0.0)
        return complex(self.rho * self.c.real, self.rho * self.c.imag)

    def name(self) -> str:
        return f"{self.dim}D Acoustic"


# ---------------------------------------------------------------------------
# Particles
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class Particle:
    """A shape filled with a medium.

    Attributes
    ----------
    medium : PhysicalProperties
        Material inside the particle.
    shape : Shape
        Boundary of the particle; its dimension must match the medium's.
    """

    medium: PhysicalProperties
    shape: Shape

    def __post_init__(self):
        if self.medium.dim != self.shape.dim:
            raise ValueError(
                f"Cannot combine a {self.shape.dim}D {self.shape.name()} "
                f"with {self.medium.name()} physics"
            )

    @property
    def origin(self) -> np.ndarray:
        return self.shape.origin

    @property
    def dim(self) -> int:
        return self.shape.dim

    def outer_radius(self) -> float:
        return self.shape.outer_radius()

    def volume(self) -> float:
        return self.shape.volume()

    def __contains__(self, x) -> bool:
        return x in self.shape

    def translated(self, offset) -> "Particle":
        return Particle(self.medium, self.shape.translated(offset))

    def iscongruent(self, other: "Particle") -> bool:
        return self.shape.iscongruent(other.shape) and self.medium == other.medium


def congruent(p1: Particle, p2: Particle) -> bool:
    """True if the particles differ only by position."""
    return p1.iscongruent(p2)
