"""
Tests for the geometry primitives and the spatial helpers built on them:
collision checks, the free-space pool and floor rotations.
"""

import pytest

from roompack.errors import OutOfBoundsError, OverlapError
from roompack.geometry import Box, Point, Rectangle
from roompack.spatial.collision import (
    check_placement,
    fits_in_room,
    fits_in_room_2d,
    has_collision,
    has_floor_collision,
    is_floor_level,
)
from roompack.spatial.free_space import FreeSpaceManager
from roompack.spatial.rotation import (
    ALL_ROTATIONS,
    get_all_rotations,
    get_best_rotation,
    get_rotated_dimensions,
)


# ---------------------------------------------------------------------------
# Point / Rectangle / Box
# ---------------------------------------------------------------------------

class TestPrimitives:

    def test_point_equality_is_tolerant(self):
        assert Point(1.0, 2.0, 3.0) == Point(1.005, 2.0, 2.999)
        assert Point(1.0, 2.0) != Point(1.02, 2.0)

    def test_point_distance(self):
        assert Point(0, 0, 0).distance_to(Point(3, 4, 0)) == pytest.approx(5.0)

    def test_rectangle_measures(self):
        r = Rectangle(10, 20, 30, 40, 5)
        assert r.area == 1200
        assert r.volume == 6000
        assert (r.right_x, r.top_y) == (40, 60)

    def test_touching_rectangles_do_not_intersect(self):
        a = Rectangle(0, 0, 100, 100)
        assert not a.intersects(Rectangle(100, 0, 50, 50))
        assert a.intersects(Rectangle(99, 0, 50, 50))

    def test_contains(self):
        outer = Rectangle(0, 0, 100, 100)
        assert outer.contains(Rectangle(10, 10, 90, 90))
        assert not outer.contains(Rectangle(10, 10, 91, 90))
        assert outer.contains_point(Point(100, 100))

    def test_can_fit_checks_height_only_when_set(self):
        assert Rectangle(0, 0, 100, 100).can_fit(100, 100, 9999)
        assert not Rectangle(0, 0, 100, 100, 50).can_fit(100, 100, 60)

    def test_box_intersection_is_strict(self):
        a = Box(0, 0, 0, 50, 50, 30)
        assert not a.intersects(Box(0, 0, 30, 50, 50, 30))   # resting on top
        assert a.intersects(Box(0, 0, 29, 50, 50, 30))
        assert a.footprint == Rectangle(0, 0, 50, 50, 30)


# ---------------------------------------------------------------------------
# Collision
# ---------------------------------------------------------------------------

class TestCollision:

    def test_stacked_boxes_do_not_collide_in_3d(self):
        base = Box(0, 0, 0, 50, 50, 30)
        assert not has_collision(Box(0, 0, 30, 50, 50, 40), [base])

    def test_floor_collision_ignores_stacked_boxes(self):
        stacked = Box(0, 0, 30, 50, 50, 40)
        assert not is_floor_level(stacked)
        assert not has_floor_collision(Box(10, 10, 0, 50, 50, 10), [stacked])
        assert has_floor_collision(Box(10, 10, 0, 50, 50, 10), [Box(0, 0, 0, 50, 50, 30)])

    def test_room_bounds_are_inclusive(self):
        assert fits_in_room(Box(0, 0, 0, 100, 100, 100), 100, 100, 100)
        assert not fits_in_room(Box(1, 0, 0, 100, 100, 100), 100, 100, 100)
        assert fits_in_room_2d(Box(0, 0, 500, 100, 100, 100), 100, 100)

    def test_check_placement_raises(self):
        placed = [Box(0, 0, 0, 50, 50, 50)]
        assert check_placement(Box(50, 0, 0, 50, 50, 50), placed, 100, 100, 100)
        with pytest.raises(OutOfBoundsError):
            check_placement(Box(60, 0, 0, 50, 50, 50), placed, 100, 100, 100)
        with pytest.raises(OverlapError):
            check_placement(Box(25, 25, 0, 50, 50, 50), placed, 100, 100, 100)


# ---------------------------------------------------------------------------
# Free space
# ---------------------------------------------------------------------------

class TestFreeSpaceManager:

    def test_starts_with_whole_floor(self):
        fsm = FreeSpaceManager(1000, 800, 300)
        assert fsm.free_rectangles == [Rectangle(0, 0, 1000, 800, 300)]
        assert fsm.get_total_free_area() == 800000

    def test_split_in_corner_leaves_two_maximal_rectangles(self):
        fsm = FreeSpaceManager(1000, 800, 300)
        fsm.occupy(0, 0, 200, 150)
        assert sorted(fsm.free_rectangles, key=lambda r: (r.x, r.y)) == [
            Rectangle(0, 150, 1000, 650, 300),
            Rectangle(200, 0, 800, 800, 300),
        ]

    def test_no_free_rectangle_overlaps_used_area(self):
        fsm = FreeSpaceManager(1000, 800, 300)
        used = [Rectangle(0, 0, 200, 150), Rectangle(300, 200, 100, 100),
                Rectangle(200, 0, 300, 100)]
        for rect in used:
            fsm.split_free_space(rect)
        for free in fsm.free_rectangles:
            assert not any(free.intersects(u) for u in used)

    def test_contained_rectangles_are_pruned(self):
        fsm = FreeSpaceManager(1000, 800, 300)
        fsm.occupy(400, 300, 100, 100)
        rects = fsm.free_rectangles
        for i, a in enumerate(rects):
            for j, b in enumerate(rects):
                if i != j:
                    assert not a.contains(b)

    def test_best_fit_prefers_least_waste(self):
        fsm = FreeSpaceManager(1000, 800, 300)
        fsm.occupy(0, 0, 200, 150)
        best = fsm.find_best_fit(200, 150, 100)
        assert (best.x, best.y) == (200, 0)
        assert fsm.find_best_fit(2000, 10, 10) is None


# ---------------------------------------------------------------------------
# Rotation
# ---------------------------------------------------------------------------

class TestRotation:

    @pytest.mark.parametrize("dims", [(200, 150, 100), (10, 10, 10), (75.5, 20, 3)])
    def test_two_quarter_turns_cancel(self, dims):
        once = get_rotated_dimensions(*dims, 90)
        assert get_rotated_dimensions(*once, 90) == dims

    def test_height_never_changes(self):
        for w, d, h in get_all_rotations(200, 150, 100).values():
            assert h == 100
        assert set(get_all_rotations(1, 2, 3)) == set(ALL_ROTATIONS)

    def test_invalid_code(self):
        with pytest.raises(ValueError):
            get_rotated_dimensions(1, 2, 3, 45)

    def test_best_rotation_turns_item_when_needed(self):
        assert get_best_rotation(150, 50, 50, 60, 200, 100) == 90
        assert get_best_rotation(150, 50, 50, 60, 200, 100, rotatable=False) is None

    def test_oversized_item_has_no_rotation(self):
        assert get_best_rotation(150, 50, 50, 100, 100, 100) is None

    def test_too_tall(self):
        assert get_best_rotation(10, 10, 200, 100, 100, 100) is None
