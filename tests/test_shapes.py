"""Unit tests for shapes and shape sampling.

Tests
-----
    test_circle_volume:            area of a circle is pi r^2
    test_rectangle_volume:         width * height
    test_bounding_box_union:       box around two circles
    test_boundary_coordinate_range: coordinates outside [0, 1] raise DomainError
    test_boundary_points:          N points, evenly spaced, optional offset
    test_translation_round_trip:   translating by v then -v restores the shape
    test_time_of_flight:           parabolic region, volume and translation
    test_time_of_flight_from_point: half-disc region around a point source

Usage
-----
    python -m pytest tests/test_shapes.py -v
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Ensure project root on path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from multiple_scattering.shapes import (
    Box,
    Circle,
    DomainError,
    EmptyShape,
    Halfspace,
    Plate,
    Rectangle,
    Sphere,
    TimeOfFlightFromPoint,
    TimeOfFlightPlaneWaveToPoint,
    boundary_points,
    bounding_box,
    issubset,
    points_in_shape,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def circle():
    return Circle([1.0, 1.0], 2.0)


@pytest.fixture
def rectangle():
    return Rectangle([1.0, 1.0], 2.0, 3.0)


@pytest.fixture
def time_of_flight():
    """Focus at (2, 0), focal time 4: vertex at x = 3, half height sqrt(12)."""
    return TimeOfFlightPlaneWaveToPoint([2.0, 0.0], 4.0, minimum_x=0.0)


# ---------------------------------------------------------------------------
# Volumes and basic geometry
# ---------------------------------------------------------------------------
class TestVolume:
    def test_circle_volume(self):
        assert abs(Circle([0.0, 0.0], 2.0).volume() - np.pi * 2.0 ** 2) < 1e-12

    def test_rectangle_volume(self):
        rect = Box([0.0, 0.0], [2.0, 3.0])
        np.testing.assert_allclose(rect.half_widths, [1.0, 1.5])
        assert rect.volume() == 2.0 * 3.0 == 6.0

    def test_sphere_volume(self):
        sphere = Sphere([0.0, 0.0, 0.0], 1.5)
        assert sphere.dim == 3
        np.testing.assert_allclose(sphere.volume(), 4.0 / 3.0 * np.pi * 1.5 ** 3)

    def test_unbounded_volumes(self):
        assert Halfspace([1.0, 0.0], [0.0, 0.0]).volume() == np.inf
        assert Plate([0.0, 1.0], 0.5, [0.0, 0.0]).outer_radius() == np.inf

    def test_outer_radius(self, rectangle):
        np.testing.assert_allclose(rectangle.outer_radius(), np.sqrt(2.0 ** 2 + 3.0 ** 2) / 2)
        assert Circle([3.0, 4.0], 0.7).outer_radius() == 0.7

    def test_names(self, circle, rectangle):
        assert circle.name() == "Circle"
        assert rectangle.name() == "Rectangle"
        assert Sphere([0.0, 0.0, 0.0], 1.0).name() == "Sphere"

    def test_number_type(self, circle):
        assert circle.number_type == np.float64
        assert Circle([0, 1], 2.0).number_type == np.float64

    def test_number_type_keeps_precision(self):
        circle = Circle(np.array([0.5, 1.0], dtype=np.float32), 1.0)
        assert circle.number_type == np.float32
        assert circle.translated([1.0, 1.0]).number_type == np.float32
        np.testing.assert_allclose(circle.translated([1.0, 1.0]).origin, [1.5, 2.0])

    def test_circle_requires_2d(self):
        with pytest.raises(ValueError):
            Circle([0.0, 0.0, 0.0], 1.0)

    def test_negative_radius(self):
        with pytest.raises(ValueError):
            Circle([0.0, 0.0], -1.0)


class TestContainment:
    def test_circle_strict_interior(self, circle):
        assert [1.0, 1.0] in circle
        assert [1.0, 2.9] in circle
        # On the boundary is not strictly inside
        assert [3.0, 1.0] not in circle

    def test_rectangle(self, rectangle):
        assert [1.9, 2.4] in rectangle
        assert [2.1, 1.0] not in rectangle

    def test_halfspace(self):
        h = Halfspace([2.0, 0.0], [1.0, 0.0])
        np.testing.assert_allclose(h.normal, [1.0, 0.0])
        assert [0.0, 5.0] in h
        assert [2.0, 0.0] not in h

    def test_plate(self):
        plate = Plate([0.0, 1.0], 1.0, [0.0, 2.0])
        assert [10.0, 2.4] in plate
        assert [0.0, 2.6] not in plate

    def test_empty_shape(self, circle):
        empty = EmptyShape.like(circle)
        assert empty.dim == 2
        assert [0.0, 0.0] not in empty
        assert empty.volume() == 0.0


# ---------------------------------------------------------------------------
# Bounding boxes
# ---------------------------------------------------------------------------
class TestBoundingBox:
    def test_two_circles(self):
        box = bounding_box([Circle([0.0, 0.0], 1.0), Circle([4.0, 0.0], 1.0)])
        np.testing.assert_allclose(box.origin, [2.0, 0.0])
        np.testing.assert_allclose(box.dimensions, [6.0, 2.0])

    def test_single_shape_is_identity(self, rectangle):
        box = bounding_box([rectangle])
        np.testing.assert_allclose(box.origin, rectangle.origin)
        np.testing.assert_allclose(box.dimensions, rectangle.dimensions)

    def test_mixed_shapes(self, circle, rectangle):
        box = bounding_box([circle, rectangle.translated([5.0, 0.0])])
        np.testing.assert_allclose(box.bottomleft, [-1.0, -1.0])
        np.testing.assert_allclose(box.topright, [7.0, 3.0])

    def test_unbounded_shape_raises(self):
        with pytest.raises(NotImplementedError):
            bounding_box([Halfspace([1.0, 0.0], [0.0, 0.0])])

    def test_corners(self):
        corners = Box([0.0, 0.0, 0.0], [2.0, 4.0, 6.0]).corners()
        assert corners.shape == (8, 3)
        np.testing.assert_allclose(corners[0], [-1.0, -2.0, -3.0])
        np.testing.assert_allclose(corners.max(axis=0), [1.0, 2.0, 3.0])


# ---------------------------------------------------------------------------
# Boundary parametrisation
# ---------------------------------------------------------------------------
class TestBoundary:
    @pytest.mark.parametrize("t", [-0.1, 1.5])
    def test_coordinate_out_of_range(self, circle, rectangle, t):
        x, y = circle.boundary_functions()
        with pytest.raises(DomainError):
            x(t)
        with pytest.raises(DomainError):
            y(t)
        rx, _ = rectangle.boundary_functions()
        with pytest.raises(DomainError):
            rx(t)

    def test_sphere_coordinate_out_of_range(self):
        x, _, _ = Sphere([0.0, 0.0, 0.0], 1.0).boundary_functions()
        with pytest.raises(DomainError):
            x(0.5, 2.0)

    def test_circle_boundary_on_circle(self, circle):
        points = boundary_points(circle, 16)
        dist = np.linalg.norm(points - circle.origin, axis=1)
        np.testing.assert_allclose(dist, circle.radius)

    def test_rectangle_boundary_closed(self, rectangle):
        x, y = rectangle.boundary_functions()
        np.testing.assert_allclose([x(0.0), y(0.0)], rectangle.bottomleft)
        np.testing.assert_allclose([x(1.0), y(1.0)], rectangle.bottomleft)
        np.testing.assert_allclose([x(0.5), y(0.5)], rectangle.topright)

    def test_number_of_points(self, rectangle):
        assert boundary_points(rectangle, 10).shape == (10, 2)
        assert boundary_points(Sphere([0.0, 0.0, 0.0], 1.0), 5).shape == (25, 3)

    def test_zero_offset_reproduces_parametrisation(self, circle):
        n = 7
        points = boundary_points(circle, n, dr=0.0)
        x, y = circle.boundary_functions()
        expected = np.array([[x(t), y(t)] for t in np.arange(n) / n])
        np.testing.assert_allclose(points, expected, atol=1e-14)

    @pytest.mark.parametrize("n", [0, -2])
    def test_too_few_points(self, circle, n):
        with pytest.raises(ValueError, match="num_points"):
            boundary_points(circle, n)

    def test_outward_offset(self, circle):
        points = boundary_points(circle, 6, dr=0.5)
        dist = np.linalg.norm(points - circle.origin, axis=1)
        np.testing.assert_allclose(dist, 1.5 * circle.radius)

    def test_3d_box_boundary_not_implemented(self):
        with pytest.raises(NotImplementedError):
            Box([0.0, 0.0, 0.0], [1.0, 1.0, 1.0]).boundary_functions()


# ---------------------------------------------------------------------------
# Congruence and translation
# ---------------------------------------------------------------------------
class TestCongruence:
    def test_translated_circle(self, circle):
        moved = circle.translated([4.0, 4.0])
        assert moved.iscongruent(circle)
        assert moved != circle
        np.testing.assert_allclose(moved.origin, [5.0, 5.0])

    def test_different_radius(self, circle):
        assert not circle.iscongruent(Circle([1.0, 1.0], 2.5))

    def test_different_types(self, circle, rectangle):
        assert not circle.iscongruent(rectangle)
        assert circle != rectangle

    def test_rectangle_orientation_matters(self):
        assert not Rectangle([0.0, 0.0], 2.0, 3.0).iscongruent(Rectangle([0.0, 0.0], 3.0, 2.0))

    def test_translation_round_trip(self, circle, rectangle):
        v = np.array([0.5, -1.25])
        for shape in (circle, rectangle):
            back = shape.translated(v).translated(-v)
            assert back == shape
            assert back.iscongruent(shape)

    def test_congruent_at(self, rectangle):
        moved = rectangle.congruent_at([-3.0, 2.0])
        np.testing.assert_allclose(moved.origin, [-3.0, 2.0])
        assert moved.iscongruent(rectangle)

    def test_halfspace_congruence(self):
        h1 = Halfspace([0.0, 1.0], [0.0, 0.0])
        assert h1.iscongruent(h1.translated([3.0, 1.0]))
        assert not h1.iscongruent(Halfspace([1.0, 0.0], [0.0, 0.0]))

    def test_shapes_are_immutable(self, circle):
        with pytest.raises(ValueError):
            circle.origin[0] = 10.0


# ---------------------------------------------------------------------------
# Time of flight
# ---------------------------------------------------------------------------
class TestTimeOfFlight:
    def test_containment(self, time_of_flight):
        assert [1.0, 0.0] in time_of_flight
        assert [3.5, 0.0] not in time_of_flight
        assert [-0.5, 0.0] not in time_of_flight

    def test_volume(self, time_of_flight):
        h = np.sqrt(12.0)
        np.testing.assert_allclose(time_of_flight.volume(), 2.0 * h ** 3 / (3.0 * 2.0))

    def test_bounding_box(self, time_of_flight):
        box = time_of_flight.bounding_box()
        np.testing.assert_allclose(box.bottomleft, [0.0, -np.sqrt(12.0)])
        np.testing.assert_allclose(box.topright, [3.0, np.sqrt(12.0)])
        np.testing.assert_allclose(time_of_flight.origin, [1.5, 0.0])

    def test_parabola_points_arrive_at_focal_time(self, time_of_flight):
        x, y = time_of_flight.boundary_functions()
        for t in np.linspace(0.0, 0.5, 7):
            point = np.array([x(t), y(t)])
            travel = point[0] + np.linalg.norm(point - time_of_flight.focal_point)
            np.testing.assert_allclose(travel, time_of_flight.focal_time)

    def test_translation(self, time_of_flight):
        moved = time_of_flight.translated([1.0, 2.0])
        assert moved.iscongruent(time_of_flight)
        assert [2.0, 2.0] in moved
        np.testing.assert_allclose(moved.volume(), time_of_flight.volume())

    def test_empty_region(self):
        with pytest.raises(ValueError):
            # Parabola vertex at x = 3 lies behind minimum_x
            TimeOfFlightPlaneWaveToPoint([2.0, 0.0], 4.0, minimum_x=3.5)

    @pytest.mark.parametrize("focal_point, focal_time", [([5.0, 0.0], 3.0), ([2.0, 0.0], 2.0)])
    def test_focal_time_before_wavefront(self, focal_point, focal_time):
        # The wavefront leaves x = 0 at t = 0 so it reaches the focus at t = focal_point[0]
        with pytest.raises(ValueError, match="Empty time of flight region"):
            TimeOfFlightPlaneWaveToPoint(focal_point, focal_time, minimum_x=0.0)


class TestTimeOfFlightFromPoint:
    @pytest.fixture
    def half_disc(self):
        return TimeOfFlightFromPoint([1.0, -1.0], 2.0)

    def test_containment(self, half_disc):
        assert [2.0, -1.0] in half_disc
        assert [1.5, 0.5] in half_disc
        assert [0.5, -1.0] not in half_disc
        assert [3.5, -1.0] not in half_disc

    def test_geometry(self, half_disc):
        np.testing.assert_allclose(half_disc.origin, [1.0, -1.0])
        np.testing.assert_allclose(half_disc.volume(), 2.0 * np.pi)
        assert half_disc.outer_radius() == 2.0
        box = half_disc.bounding_box()
        np.testing.assert_allclose(box.bottomleft, [1.0, -3.0])
        np.testing.assert_allclose(box.topright, [3.0, 1.0])

    def test_boundary(self, half_disc):
        x, y = half_disc.boundary_functions()
        np.testing.assert_allclose([x(0.0), y(0.0)], [1.0, -3.0], atol=1e-14)
        np.testing.assert_allclose([x(0.25), y(0.25)], [3.0, -1.0], atol=1e-14)
        np.testing.assert_allclose([x(0.5), y(0.5)], [1.0, 1.0], atol=1e-14)
        np.testing.assert_allclose([x(1.0), y(1.0)], [1.0, -3.0], atol=1e-14)
        arc = boundary_points(half_disc, 8)[:4]
        np.testing.assert_allclose(np.linalg.norm(arc - half_disc.origin, axis=1), 2.0)
        with pytest.raises(DomainError):
            x(1.2)

    def test_translation_and_congruence(self, half_disc):
        moved = half_disc.translated([2.0, 3.0])
        assert isinstance(moved, TimeOfFlightFromPoint)
        np.testing.assert_allclose(moved.source_point, [3.0, 2.0])
        assert moved.iscongruent(half_disc)
        assert moved != half_disc
        assert moved.translated([-2.0, -3.0]) == half_disc
        assert not half_disc.iscongruent(TimeOfFlightFromPoint([1.0, -1.0], 3.0))

    def test_points_in_shape(self, half_disc):
        points, inds = points_in_shape(half_disc, res=10)
        assert len(inds) > 0
        assert all(p[0] > 1.0 for p in points[inds])

    def test_invalid(self):
        with pytest.raises(ValueError):
            TimeOfFlightFromPoint([0.0, 0.0], 0.0)
        with pytest.raises(NotImplementedError):
            TimeOfFlightFromPoint([0.0, 0.0, 0.0], 1.0)


# ---------------------------------------------------------------------------
# Sampling and subsets
# ---------------------------------------------------------------------------
class TestPointsInShape:
    def test_grid_and_region(self, circle):
        points, inds = points_in_shape(circle, res=10)
        assert points.shape == (121, 2)
        assert all(p in circle for p in points[inds])
        outside = np.setdiff1d(np.arange(len(points)), inds)
        assert not any(p in circle for p in points[outside])

    def test_exclude_region(self, circle):
        hole = Circle(circle.origin, 1.0)
        points, inds = points_in_shape(circle, res=20, exclude_region=hole)
        assert len(inds) > 0
        assert not any(p in hole for p in points[inds])

    def test_separate_resolutions(self, rectangle):
        points, _ = points_in_shape(rectangle, xres=4, yres=6)
        assert points.shape == (35, 2)
        np.testing.assert_allclose(points[0], rectangle.bottomleft)
        np.testing.assert_allclose(points[-1], rectangle.topright)

    def test_3d_slice(self):
        points, inds = points_in_shape(Sphere([0.0, 0.0, 0.0], 1.0), res=8, y=0.25)
        assert points.shape == (81, 3)
        np.testing.assert_allclose(points[:, 1], 0.25)
        assert len(inds) > 0


class TestIssubset:
    def test_circle_in_circle(self, circle):
        assert issubset(Circle([1.5, 1.0], 0.5), circle)
        assert not issubset(Circle([2.5, 1.0], 0.6), circle)

    def test_box_and_circle(self, circle):
        assert issubset(Rectangle([1.0, 1.0], 1.0, 1.0), circle)
        assert issubset(circle, Rectangle([1.0, 1.0], 4.0, 4.0))
        assert not issubset(circle, Rectangle([1.0, 1.0], 3.0, 4.0))

    def test_halfspace(self):
        h = Halfspace([1.0, 0.0], [0.0, 0.0])
        assert issubset(Circle([-2.0, 0.0], 1.0), h)
        assert not issubset(Circle([-0.5, 0.0], 1.0), h)

    def test_not_implemented(self, time_of_flight, circle):
        with pytest.raises(NotImplementedError):
            issubset(time_of_flight, circle)
