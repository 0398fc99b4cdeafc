"""
Snapping of raw cell dimensions to an export aspect ratio.
"""
from typing import List, Tuple

from shotslicer.core.errors import DegenerateInputError
from shotslicer.core.models import AspectRatio, round_half_up

# Order matters: the first entry within tolerance wins, not the closest one.
MAINSTREAM_RATIOS: List[Tuple[int, int]] = [
    (16, 9),
    (9, 16),
    (1, 1),
    (4, 3),
    (3, 4),
    (3, 2),
    (2, 3),
    (21, 9),
]

SNAP_TOLERANCE = 0.05
SIMPLIFY_PRECISION = 1.0e-3
MAX_DENOMINATOR = 19


def simplify_ratio(value: float) -> Tuple[int, int]:
    """Find a small-denominator fraction close to `value`.

    Returns the first n/d with d in 1..MAX_DENOMINATOR that is within
    SIMPLIFY_PRECISION, otherwise the last fraction tried.
    """
    n, d = 1, 1
    for d in range(1, MAX_DENOMINATOR + 1):
        n = round_half_up(value * d)
        if abs(n / d - value) < SIMPLIFY_PRECISION:
            break
    return n, d


def resolve_aspect_ratio(width: float, height: float) -> AspectRatio:
    """Snap a width/height pair to a mainstream ratio or a simple integer ratio."""
    if width <= 0 or height <= 0:
        raise DegenerateInputError(f"Dimensions must be positive, got {width}x{height}")

    raw_ratio = width / height

    for w, h in MAINSTREAM_RATIOS:
        if abs(raw_ratio - w / h) < SNAP_TOLERANCE:
            return AspectRatio(w, h)

    n, d = simplify_ratio(raw_ratio)
    return AspectRatio(max(1, n), d)
