import math

import pytest

from shotslicer.core.aspect_ratio import resolve_aspect_ratio, simplify_ratio
from shotslicer.core.errors import DegenerateInputError
from shotslicer.core.models import AspectRatio


def test_exact_table_hit():
    assert resolve_aspect_ratio(16, 9) == AspectRatio(16, 9)


def test_near_table_hit_snaps():
    assert resolve_aspect_ratio(1000, 563) == AspectRatio(16, 9)


@pytest.mark.parametrize("size,expected", [
    ((1080, 1920), AspectRatio(9, 16)),
    ((500, 500), AspectRatio(1, 1)),
    ((640, 480), AspectRatio(4, 3)),
    ((300, 400), AspectRatio(3, 4)),
    ((600, 400), AspectRatio(3, 2)),
    ((400, 600), AspectRatio(2, 3)),
    ((2100, 900), AspectRatio(21, 9)),
])
def test_table_entries(size, expected):
    assert resolve_aspect_ratio(*size) == expected


def test_first_match_wins_over_closer_entry():
    # 0.705 is closer to 2:3 (0.038) than to 3:4 (0.045), but 3:4 comes first
    assert resolve_aspect_ratio(705, 1000) == AspectRatio(3, 4)


def test_unmatched_ratio_is_simplified():
    assert resolve_aspect_ratio(5, 4) == AspectRatio(5, 4)
    assert resolve_aspect_ratio(2.5, 1) == AspectRatio(5, 2)


def test_simplify_falls_back_to_last_denominator():
    assert simplify_ratio(math.pi) == (60, 19)


def test_tiny_ratio_never_has_zero_numerator():
    assert resolve_aspect_ratio(1, 100) == AspectRatio(1, 19)


@pytest.mark.parametrize("width,height", [(0, 5), (5, 0), (-1, 3)])
def test_non_positive_dimensions_raise(width, height):
    with pytest.raises(DegenerateInputError):
        resolve_aspect_ratio(width, height)
