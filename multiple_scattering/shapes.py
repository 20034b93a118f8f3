"""Geometric shapes used as particle boundaries and sampling regions.

Every shape is an immutable value with a fixed spatial dimension (2 or 3)
and a reference point ``origin``. Shapes never change after construction;
``translated`` and ``congruent_at`` return new instances.

Shape catalogue
---------------
    Box / Rectangle                 axis-aligned box, full widths per axis
    Sphere / Circle                 ball of given radius
    Halfspace                       points behind a plane (outward normal)
    Plate                           slab of finite width around a plane
    TimeOfFlightFromPoint           half-disc reached from a point source in time
    TimeOfFlightPlaneWaveToPoint    region reached before a focal time by a
                                    plane wave scattered towards a point
    EmptyShape                      contains nothing (default exclusion)

Boundary parametrisation
------------------------
    2D: (x(t), y(t))             t in [0, 1], closed curve, counterclockwise
    3D: (x(t,s), y(t,s), z(t,s)) t, s in [0, 1]
"""

import itertools
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Callable, List, Optional, Sequence, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------
DEFAULT_RESOLUTION: int = 20
DEFAULT_NUM_BOUNDARY_POINTS: int = 4


class DomainError(ValueError):
    """Input lies outside the domain where a quantity is defined."""


def _as_point(x, name: str = "origin") -> np.ndarray:
    """Read-only copy of a coordinate vector.

    Floating-point input keeps its precision; anything else becomes float64.
    """
    point = np.asarray(x)
    dtype = point.dtype if np.issubdtype(point.dtype, np.floating) else np.float64
    point = np.array(point, dtype=dtype).reshape(-1)
    if point.size not in (2, 3):
        raise ValueError(f"{name} must have 2 or 3 coordinates, got {point.size}")
    point.setflags(write=False)
    return point


def check_boundary_coord_range(t: float) -> None:
    """Raise DomainError unless the boundary coordinate lies in [0, 1]."""
    if t < 0 or t > 1:
        raise DomainError(f"Boundary coordinate must be between 0 and 1, got {t}")


# ---------------------------------------------------------------------------
# Abstract shape
# ---------------------------------------------------------------------------
class Shape(ABC):
    """Abstract boundary of a region in 2D or 3D space.

    Concrete shapes are frozen dataclasses holding the minimal parameters
    needed to rebuild their boundary. Subclasses provide ``origin`` (a
    read-only array) and implement the abstract methods below.
    """

    origin: np.ndarray

    @property
    def dim(self) -> int:
        """Spatial dimension."""
        return int(self.origin.size)

    @property
    def number_type(self) -> np.dtype:
        """Scalar type of ``origin``: the input's float precision, float64 for integers."""
        return self.origin.dtype

    @abstractmethod
    def __contains__(self, x) -> bool:
        """True if ``x`` lies strictly inside the shape."""

    @abstractmethod
    def bounding_box(self) -> "Box":
        """Smallest axis-aligned Box containing the shape."""

    @abstractmethod
    def boundary_functions(self) -> Tuple[Callable[..., float], ...]:
        """Tuple of ``dim`` functions of the boundary coordinate(s) in [0, 1]."""

    @abstractmethod
    def volume(self) -> float:
        """Volume (area in 2D)."""

    @abstractmethod
    def name(self) -> str:
        """Human-readable name."""

    @abstractmethod
    def outer_radius(self) -> float:
        """Radius of the smallest ball centred at ``origin`` containing the shape."""

    def _shape_parameters(self) -> Tuple:
        """Parameters other than position, compared by ``iscongruent``."""
        return ()

    def iscongruent(self, other: "Shape") -> bool:
        """True if ``other`` is this shape up to a rigid translation."""
        return False

    def translated(self, offset) -> "Shape":
        """Same shape with ``origin`` shifted by ``offset``."""
        offset = _as_point(offset, "offset")
        if offset.size != self.dim:
            raise ValueError(f"Offset dimension {offset.size} != shape dimension {self.dim}")
        return replace(self, origin=(self.origin + offset).astype(self.number_type))

    def congruent_at(self, x) -> "Shape":
        """Shape congruent to this one with origin at ``x``."""
        return self.translated(_as_point(x) - self.origin)

    def __eq__(self, other) -> bool:
        if type(self) is not type(other):
            return False
        if not np.array_equal(self.origin, other.origin):
            return False
        return _parameters_equal(self._shape_parameters(), other._shape_parameters())

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(self.origin.tolist())))


def _parameters_equal(params1: Tuple, params2: Tuple) -> bool:
    if len(params1) != len(params2):
        return False
    return all(np.array_equal(p1, p2) for p1, p2 in zip(params1, params2))


def _congruent_parameters(s1: Shape, s2: Shape) -> bool:
    return (
        type(s1) is type(s2)
        and s1.dim == s2.dim
        and _parameters_equal(s1._shape_parameters(), s2._shape_parameters())
    )


# ---------------------------------------------------------------------------
# Box / Rectangle
# ---------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class Box(Shape):
    """Axis-aligned box.

    Attributes
    ----------
    origin : np.ndarray, shape (D,)
        Centre of the box.
    dimensions : np.ndarray, shape (D,)
        Full width along each axis.
    """

    origin: np.ndarray
    dimensions: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "origin", _as_point(self.origin))
        dimensions = np.array(self.dimensions, dtype=float).reshape(-1)
        if dimensions.size != self.origin.size:
            raise ValueError(
                f"Box dimensions {dimensions.size} != origin dimension {self.origin.size}"
            )
        if np.any(dimensions < 0):
            raise ValueError(f"Box dimensions must be non-negative, got {dimensions}")
        dimensions.setflags(write=False)
        object.__setattr__(self, "dimensions", dimensions)

    @property
    def half_widths(self) -> np.ndarray:
        return self.dimensions / 2.0

    @property
    def bottomleft(self) -> np.ndarray:
        return self.origin - self.half_widths

    @property
    def topright(self) -> np.ndarray:
        return self.origin + self.half_widths

    def corners(self) -> np.ndarray:
        """All 2^D corners, shape (2^D, D); the first is ``bottomleft``."""
        signs = np.array(list(itertools.product((-1.0, 1.0), repeat=self.dim)))  # (2^D, D)
        return self.origin[None, :] + signs * self.half_widths[None, :]

    def __contains__(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(np.all(np.abs(x - self.origin) < self.half_widths))

    def bounding_box(self) -> "Box":
        return self

    def boundary_functions(self) -> Tuple[Callable[[float], float], ...]:
        if self.dim != 2:
            raise NotImplementedError(f"Boundary functions are not implemented for a {self.dim}D Box")

        w, h = self.dimensions
        x0, y0 = self.bottomleft

        # Counterclockwise from the bottom-left corner, one quarter of t per side
        def x(t: float) -> float:
            check_boundary_coord_range(t)
            if t <= 0.25:
                return x0 + 4 * t * w
            elif t <= 0.5:
                return x0 + w
            elif t <= 0.75:
                return x0 + w - 4 * (t - 0.5) * w
            return x0

        def y(t: float) -> float:
            check_boundary_coord_range(t)
            if t <= 0.25:
                return y0
            elif t <= 0.5:
                return y0 + 4 * (t - 0.25) * h
            elif t <= 0.75:
                return y0 + h
            return y0 + h - 4 * (t - 0.75) * h

        return x, y

    def volume(self) -> float:
        return float(np.prod(self.dimensions))

    def name(self) -> str:
        return "Rectangle" if self.dim == 2 else "Box"

    def outer_radius(self) -> float:
        return float(np.linalg.norm(self.dimensions) / 2.0)

    def _shape_parameters(self) -> Tuple:
        return (self.dimensions,)

    def iscongruent(self, other: Shape) -> bool:
        return _congruent_parameters(self, other)


def Rectangle(origin, width: float, height: float) -> Box:
    """2D Box with the given full width and height."""
    origin = _as_point(origin)
    if origin.size != 2:
        raise ValueError(f"Rectangle needs a 2D origin, got {origin.size}D")
    return Box(origin, [width, height])


# ---------------------------------------------------------------------------
# Sphere / Circle
# ---------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class Sphere(Shape):
    """Ball of radius ``radius`` centred at ``origin`` (a disc in 2D)."""

    origin: np.ndarray
    radius: float

    def __post_init__(self):
        object.__setattr__(self, "origin", _as_point(self.origin))
        if self.radius < 0:
            raise ValueError(f"Radius must be non-negative, got {self.radius}")
        object.__setattr__(self, "radius", float(self.radius))

    def __contains__(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(np.linalg.norm(x - self.origin) < self.radius)

    def bounding_box(self) -> Box:
        return Box(self.origin, np.full(self.dim, 2.0 * self.radius))

    def boundary_functions(self) -> Tuple[Callable[..., float], ...]:
        ox = self.origin
        r = self.radius

        if self.dim == 2:
            def x(t: float) -> float:
                check_boundary_coord_range(t)
                return ox[0] + r * np.cos(2 * np.pi * t)

            def y(t: float) -> float:
                check_boundary_coord_range(t)
                return ox[1] + r * np.sin(2 * np.pi * t)

            return x, y

        def x3(t: float, s: float) -> float:
            check_boundary_coord_range(t)
            check_boundary_coord_range(s)
            return ox[0] + r * np.sin(np.pi * s) * np.cos(2 * np.pi * t)

        def y3(t: float, s: float) -> float:
            check_boundary_coord_range(t)
            check_boundary_coord_range(s)
            return ox[1] + r * np.sin(np.pi * s) * np.sin(2 * np.pi * t)

        def z3(t: float, s: float) -> float:
            check_boundary_coord_range(t)
            check_boundary_coord_range(s)
            return ox[2] + r * np.cos(np.pi * s)

        return x3, y3, z3

    def volume(self) -> float:
        if self.dim == 2:
            return np.pi * self.radius ** 2
        return 4.0 / 3.0 * np.pi * self.radius ** 3

    def name(self) -> str:
        return "Circle" if self.dim == 2 else "Sphere"

    def outer_radius(self) -> float:
        return self.radius

    def _shape_parameters(self) -> Tuple:
        return (self.radius,)

    def iscongruent(self, other: Shape) -> bool:
        return _congruent_parameters(self, other)


def Circle(origin, radius: float) -> Sphere:
    """2D Sphere."""
    origin = _as_point(origin)
    if origin.size != 2:
        raise ValueError(f"Circle needs a 2D origin, got {origin.size}D")
    return Sphere(origin, radius)


# ---------------------------------------------------------------------------
# Unbounded shapes
# ---------------------------------------------------------------------------
def _unit_normal(normal, dim: int) -> np.ndarray:
    n = np.array(normal, dtype=float).reshape(-1)
    if n.size != dim:
        raise ValueError(f"Normal dimension {n.size} != origin dimension {dim}")
    norm = np.linalg.norm(n)
    if norm == 0:
        raise ValueError("Normal vector must be non-zero")
    n = n / norm
    n.setflags(write=False)
    return n


@dataclass(frozen=True, eq=False)
class Halfspace(Shape):
    """Points behind the plane through ``origin`` with outward ``normal``."""

    normal: np.ndarray
    origin: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "origin", _as_point(self.origin))
        object.__setattr__(self, "normal", _unit_normal(self.normal, self.origin.size))

    def __contains__(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(np.dot(x - self.origin, self.normal) < 0)

    def bounding_box(self) -> Box:
        raise NotImplementedError("A Halfspace is unbounded and has no bounding box")

    def boundary_functions(self):
        raise NotImplementedError("Boundary functions are not implemented for an unbounded Halfspace")

    def volume(self) -> float:
        return np.inf

    def name(self) -> str:
        return "Halfspace"

    def outer_radius(self) -> float:
        return np.inf

    def _shape_parameters(self) -> Tuple:
        return (self.normal,)

    def iscongruent(self, other: Shape) -> bool:
        return _congruent_parameters(self, other)


@dataclass(frozen=True, eq=False)
class Plate(Shape):
    """Slab of thickness ``width`` centred on the plane through ``origin``."""

    normal: np.ndarray
    width: float
    origin: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "origin", _as_point(self.origin))
        object.__setattr__(self, "normal", _unit_normal(self.normal, self.origin.size))
        if self.width < 0:
            raise ValueError(f"Plate width must be non-negative, got {self.width}")
        object.__setattr__(self, "width", float(self.width))

    def __contains__(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(abs(np.dot(x - self.origin, self.normal)) < self.width / 2.0)

    def bounding_box(self) -> Box:
        raise NotImplementedError("A Plate is unbounded and has no bounding box")

    def boundary_functions(self):
        raise NotImplementedError("Boundary functions are not implemented for an unbounded Plate")

    def volume(self) -> float:
        return np.inf

    def name(self) -> str:
        return "Plate"

    def outer_radius(self) -> float:
        return np.inf

    def _shape_parameters(self) -> Tuple:
        return (self.normal, self.width)

    def iscongruent(self, other: Shape) -> bool:
        return _congruent_parameters(self, other)


# ---------------------------------------------------------------------------
# Time of flight
# ---------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class TimeOfFlightPlaneWaveToPoint(Shape):
    """Points a plane wave reaches, then scatters to a focal point, in time.

    A plane wave starts at x = 0 and travels along +x with unit speed. The
    region holds every x with ``x[0] > minimum_x`` whose path
    ``x[0] + |x - focal_point|`` is shorter than ``focal_time``: the
    half-space ``x[0] > minimum_x`` cut off by a parabola with focus
    ``focal_point``. Only 2D is supported.
    """

    focal_point: np.ndarray
    focal_time: float
    minimum_x: float = 0.0

    def __post_init__(self):
        focal_point = _as_point(self.focal_point, "focal_point")
        if focal_point.size != 2:
            raise NotImplementedError(
                f"TimeOfFlightPlaneWaveToPoint is only implemented in 2D, got {focal_point.size}D"
            )
        object.__setattr__(self, "focal_point", focal_point)
        object.__setattr__(self, "focal_time", float(self.focal_time))
        object.__setattr__(self, "minimum_x", float(self.minimum_x))
        if self.focal_time <= focal_point[0] or self._vertex_x() <= self.minimum_x:
            raise ValueError(
                f"Empty time of flight region: focal_time={self.focal_time}, "
                f"focal_point={focal_point.tolist()}, minimum_x={self.minimum_x}"
            )

    def _vertex_x(self) -> float:
        return 0.5 * (self.focal_time + self.focal_point[0])

    def _half_height(self) -> float:
        T = self.focal_time
        fx = self.focal_point[0]
        return float(np.sqrt((T - fx) * (T + fx - 2.0 * self.minimum_x)))

    def _parabola_x(self, s: float) -> float:
        """x on the parabola at height ``s`` above the focal point."""
        h = self._half_height()
        return self.minimum_x + (h ** 2 - s ** 2) / (2.0 * (self.focal_time - self.focal_point[0]))

    @property
    def origin(self) -> np.ndarray:
        point = np.array([0.5 * (self.minimum_x + self._vertex_x()), self.focal_point[1]])
        point.setflags(write=False)
        return point

    def __contains__(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(
            x[0] > self.minimum_x
            and x[0] + np.linalg.norm(x - self.focal_point) < self.focal_time
        )

    def bounding_box(self) -> Box:
        return Box(self.origin, [self._vertex_x() - self.minimum_x, 2.0 * self._half_height()])

    def boundary_functions(self) -> Tuple[Callable[[float], float], ...]:
        h = self._half_height()
        fy = self.focal_point[1]

        # Parabola bottom to top for t <= 1/2, then the line x = minimum_x back down
        def height(t: float) -> float:
            if t <= 0.5:
                return -h + 4 * t * h
            return h - 4 * (t - 0.5) * h

        def x(t: float) -> float:
            check_boundary_coord_range(t)
            if t <= 0.5:
                return self._parabola_x(height(t))
            return self.minimum_x

        def y(t: float) -> float:
            check_boundary_coord_range(t)
            return fy + height(t)

        return x, y

    def volume(self) -> float:
        h = self._half_height()
        return 2.0 * h ** 3 / (3.0 * (self.focal_time - self.focal_point[0]))

    def name(self) -> str:
        return "Time of flight from planar source"

    def outer_radius(self) -> float:
        return float(np.sqrt((0.5 * (self._vertex_x() - self.minimum_x)) ** 2 + self._half_height() ** 2))

    def translated(self, offset) -> "TimeOfFlightPlaneWaveToPoint":
        offset = _as_point(offset, "offset")
        if offset.size != 2:
            raise ValueError(f"Offset dimension {offset.size} != shape dimension 2")
        # The wave front stays at x = 0, so moving along x delays the focal time
        return TimeOfFlightPlaneWaveToPoint(
            focal_point=self.focal_point + offset,
            focal_time=self.focal_time + offset[0],
            minimum_x=self.minimum_x + offset[0],
        )

    def _shape_parameters(self) -> Tuple:
        fx = self.focal_point[0]
        return (self.focal_time - fx, self.minimum_x - fx)

    def iscongruent(self, other: Shape) -> bool:
        return _congruent_parameters(self, other)


@dataclass(frozen=True, eq=False)
class TimeOfFlightFromPoint(Shape):
    """Points a wave from ``source_point`` reaches within ``maximum_time``.

    With unit wave speed this is the half-disc of radius ``maximum_time``
    on the side ``x[0] > source_point[0]``: a disc cut by the half-space
    facing away from the source. Only 2D is supported; ``origin`` is the
    source point.
    """

    source_point: np.ndarray
    maximum_time: float

    def __post_init__(self):
        source_point = _as_point(self.source_point, "source_point")
        if source_point.size != 2:
            raise NotImplementedError(
                f"TimeOfFlightFromPoint is only implemented in 2D, got {source_point.size}D"
            )
        if self.maximum_time <= 0:
            raise ValueError(f"Empty time of flight region: maximum_time={self.maximum_time}")
        object.__setattr__(self, "source_point", source_point)
        object.__setattr__(self, "maximum_time", float(self.maximum_time))

    @property
    def origin(self) -> np.ndarray:
        return self.source_point

    def __contains__(self, x) -> bool:
        x = np.asarray(x, dtype=float)
        return bool(
            x[0] > self.source_point[0]
            and np.linalg.norm(x - self.source_point) < self.maximum_time
        )

    def bounding_box(self) -> Box:
        T = self.maximum_time
        centre = self.source_point + np.array([0.5 * T, 0.0])
        return Box(centre, [T, 2.0 * T])

    def boundary_functions(self) -> Tuple[Callable[[float], float], ...]:
        sx, sy = self.source_point
        T = self.maximum_time

        # Arc from bottom to top for t <= 1/2, then the line x = sx back down
        def x(t: float) -> float:
            check_boundary_coord_range(t)
            if t <= 0.5:
                return sx + T * np.cos(np.pi * (2 * t - 0.5))
            return sx

        def y(t: float) -> float:
            check_boundary_coord_range(t)
            if t <= 0.5:
                return sy + T * np.sin(np.pi * (2 * t - 0.5))
            return sy + T - 4 * (t - 0.5) * T

        return x, y

    def volume(self) -> float:
        return 0.5 * np.pi * self.maximum_time ** 2

    def name(self) -> str:
        return "Time of flight from point source"

    def outer_radius(self) -> float:
        return self.maximum_time

    def translated(self, offset) -> "TimeOfFlightFromPoint":
        offset = _as_point(offset, "offset")
        if offset.size != 2:
            raise ValueError(f"Offset dimension {offset.size} != shape dimension 2")
        return TimeOfFlightFromPoint(
            (self.source_point + offset).astype(self.number_type), self.maximum_time,
        )

    def _shape_parameters(self) -> Tuple:
        return (self.maximum_time,)

    def iscongruent(self, other: Shape) -> bool:
        return _congruent_parameters(self, other)


# ---------------------------------------------------------------------------
# Empty shape
# ---------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class EmptyShape(Shape):
    """A shape which contains nothing."""

    origin: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "origin", _as_point(self.origin))

    @classmethod
    def like(cls, shape: Shape) -> "EmptyShape":
        """Empty shape with the same dimension as ``shape``."""
        return cls(np.zeros(shape.dim))

    def __contains__(self, x) -> bool:
        return False

    def bounding_box(self) -> Box:
        return Box(self.origin, np.zeros(self.dim))

    def boundary_functions(self) -> Tuple[Callable[..., float], ...]:
        def coordinate(i: int) -> Callable[..., float]:
            def f(*ts: float) -> float:
                for t in ts:
                    check_boundary_coord_range(t)
                return float(self.origin[i])
            return f

        return tuple(coordinate(i) for i in range(self.dim))

    def volume(self) -> float:
        return 0.0

    def name(self) -> str:
        return "EmptyShape"

    def outer_radius(self) -> float:
        return 0.0

    def iscongruent(self, other: Shape) -> bool:
        return _congruent_parameters(self, other)


# ---------------------------------------------------------------------------
# Functions over shapes
# ---------------------------------------------------------------------------
def bounding_box(shapes: Union[Shape, Sequence[Shape]]) -> Box:
    """Box which completely encloses one or several shapes.

    Every shape's own bounding box contributes all of its corners; the
    result spans the per-axis minimum and maximum over those corners.
    """
    if isinstance(shapes, Shape):
        shapes = [shapes]
    if len(shapes) == 0:
        raise ValueError("Cannot bound an empty list of shapes")

    corners = np.vstack([s.bounding_box().corners() for s in shapes])  # (n_corners, D)
    max_dims = np.max(corners, axis=0)
    min_dims = np.min(corners, axis=0)

    return Box((max_dims + min_dims) / 2.0, max_dims - min_dims)


def points_in_shape(
    region: Shape,
    res: int = DEFAULT_RESOLUTION,
    xres: Optional[int] = None,
    yres: Optional[int] = None,
    zres: Optional[int] = None,
    exclude_region: Optional[Shape] = None,
    y: float = 0.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """Regular grid over the bounding box of ``region``.

    Parameters
    ----------
    region : Shape
        2D or 3D region to sample.
    res : int
        Default number of grid steps per axis.
    xres, yres, zres : int, optional
        Steps along x and y (2D) or x and z (3D).
    exclude_region : Shape, optional
        Points inside this shape are dropped. Defaults to an EmptyShape.
    y : float
        For 3D regions, the y coordinate of the sampled x-z slice.

    Returns
    -------
    points : np.ndarray, shape (N, D)
        Grid covering the bounding box, x varying fastest.
    region_inds : np.ndarray, shape (K,), int
        Indices of points inside ``region`` and outside ``exclude_region``.
    """
    xres = res if xres is None else xres
    if exclude_region is None:
        exclude_region = EmptyShape.like(region)

    box = region.bounding_box()
    bl = box.bottomleft

    if region.dim == 2:
        yres = res if yres is None else yres
        i, j = np.meshgrid(np.arange(xres + 1), np.arange(yres + 1), indexing="ij")
        step = box.dimensions / np.array([xres, yres])  # (2,)
        points = np.column_stack([
            bl[0] + step[0] * i.ravel(order="F"),
            bl[1] + step[1] * j.ravel(order="F"),
        ])  # (N, 2)
    elif region.dim == 3:
        zres = res if zres is None else zres
        i, j = np.meshgrid(np.arange(xres + 1), np.arange(zres + 1), indexing="ij")
        dx = box.dimensions[0] / xres
        dz = box.dimensions[2] / zres
        points = np.column_stack([
            bl[0] + dx * i.ravel(order="F"),
            np.full(i.size, y),
            bl[2] + dz * j.ravel(order="F"),
        ])  # (N, 3)
    else:
        raise NotImplementedError(f"points_in_shape is not implemented for {region.dim}D shapes")

    region_inds = np.array(
        [k for k, x in enumerate(points) if x not in exclude_region and x in region],
        dtype=int,
    )
    logger.debug(
        "Sampled %s: %d grid points, %d inside", region.name(), len(points), len(region_inds),
    )
    return points, region_inds


def boundary_points(
    shape: Shape,
    num_points: int = DEFAULT_NUM_BOUNDARY_POINTS,
    dr: float = 0.0,
) -> np.ndarray:
    """Points on the boundary of ``shape``, optionally pushed outward.

    Parameters are equally spaced in [0, 1) so a closed boundary does not
    repeat its first point. Each point p becomes ``p + dr * (p - origin)``.

    Returns
    -------
    points : np.ndarray, shape (num_points, 2) in 2D, (num_points**2, 3) in 3D
    """
    if num_points < 1:
        raise ValueError(f"num_points must be at least 1, got {num_points}")

    taus = np.linspace(0.0, 1.0, num_points + 1)[:-1]
    functions = shape.boundary_functions()

    if shape.dim == 2:
        x, y = functions
        points = np.array([[x(t), y(t)] for t in taus])
    else:
        x, y, z = functions
        points = np.array([[x(t, s), y(t, s), z(t, s)] for t in taus for s in taus])

    return points + dr * (points - shape.origin[None, :])


def issubset(inner: Shape, outer: Shape) -> bool:
    """True if ``inner`` lies entirely within ``outer`` (boundaries may touch)."""
    if isinstance(outer, Halfspace) and isinstance(inner, (Sphere, Box)):
        if isinstance(inner, Sphere):
            return bool(np.dot(inner.origin - outer.origin, outer.normal) + inner.radius <= 0)
        return bool(np.all((inner.corners() - outer.origin[None, :]) @ outer.normal <= 0))

    if isinstance(inner, Sphere) and isinstance(outer, Sphere):
        return bool(np.linalg.norm(inner.origin - outer.origin) + inner.radius <= outer.radius)

    if isinstance(inner, Box) and isinstance(outer, Box):
        return bool(
            np.all(outer.bottomleft <= inner.bottomleft)
            and np.all(inner.topright <= outer.topright)
        )

    if isinstance(inner, Sphere) and isinstance(outer, Box):
        return bool(
            np.all(outer.bottomleft <= inner.origin - inner.radius)
            and np.all(inner.origin + inner.radius <= outer.topright)
        )

    if isinstance(inner, Box) and isinstance(outer, Sphere):
        distances = np.linalg.norm(inner.corners() - outer.origin[None, :], axis=1)
        return bool(np.all(distances <= outer.radius))

    raise NotImplementedError(
        f"issubset is not implemented for a {inner.name()} inside a {outer.name()}"
    )


__all__: List[str] = [
    "DomainError",
    "Shape",
    "Box",
    "Rectangle",
    "Sphere",
    "Circle",
    "Halfspace",
    "Plate",
    "TimeOfFlightPlaneWaveToPoint",
    "TimeOfFlightFromPoint",
    "EmptyShape",
    "bounding_box",
    "points_in_shape",
    "boundary_points",
    "issubset",
    "check_boundary_coord_range",
]
