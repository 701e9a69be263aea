"""Circle fitting and tolerance-band tests over 2D point sets.

Every function here is pure: it takes a point set (any ``(N, 2)`` array-like)
and returns a value without touching shared state, so the same functions can
serve several recognizers at once.

Usage:
    circle = fit_circle_by_diameter(points)
    if circle and is_within_tolerance_band(points, circle, accuracy_percent=80):
        print(f"circle at {circle.center}, r={circle.radius:.2f}")

Fitting a circle that does not exist (too few points, collinear picks)
returns ``None`` rather than raising. Callers treat that as "not a circle yet".
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

# Below this |determinant|, relative to the squared extent of the three
# picked points, they are treated as collinear.
COLLINEAR_EPSILON = 1e-9

# Fitted circles at or below this radius are degenerate (pointer held still).
DEGENERATE_RADIUS = 1e-9

# On-circle test for radial devices, in squared-distance units.
RADIAL_EPSILON = 1e-4

MIN_BAND_POINTS = 3

# Upper bound on pair distances held in memory at once by find_furthest_pair.
PAIR_BLOCK_SIZE = 1 << 17


class FitMethod(Enum):
    """How a candidate circle is derived from the buffered samples."""
    DIAMETER = "diameter"  # furthest pair is the diameter
    THREE_POINT = "three_point"  # circumcircle of three spread-out samples
    RADIAL = "radial"  # fixed unit circle of a normalized stick


class BandWidthRule(Enum):
    """Width of the ring around the fitted circle that samples must stay in."""
    STANDARD = "standard"
    LEGACY_WIDE = "legacy_wide"  # doubled offset on each side, kept for old configs


@dataclass(frozen=True)
class Circle:
    center: tuple[float, float]
    radius: float

    def to_dict(self) -> dict:
        return {"center": list(self.center), "radius": self.radius}


@dataclass(frozen=True)
class ToleranceBand:
    """Annulus between two concentric circles, boundaries included."""
    center: tuple[float, float]
    inner_radius: float
    outer_radius: float

    def contains(self, points) -> np.ndarray:
        """Boolean mask of the points lying inside the band."""
        pts = as_points(points)
        d2 = np.sum((pts - np.asarray(self.center)) ** 2, axis=1)
        return (d2 <= self.outer_radius ** 2) & (d2 >= self.inner_radius ** 2)


def as_points(points) -> np.ndarray:
    """Coerce a point sequence to a float64 array of shape (N, 2)."""
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def find_furthest_pair(points) -> Optional[tuple[np.ndarray, np.ndarray]]:
    """Return the two points with the largest Euclidean distance.

    Scans every unordered pair (i < j) in row-major order and keeps the first
    pair reaching the maximum, so ties go to the earliest pair. Returns None
    for fewer than two points.

    Rows are processed in blocks of at most PAIR_BLOCK_SIZE distances, so
    memory stays linear in the number of points.
    """
    pts = as_points(points)
    n = len(pts)
    if n < 2:
        return None

    rows_per_block = max(1, PAIR_BLOCK_SIZE // n)
    best_d2 = -1.0
    best_pair = (0, 1)
    for start in range(0, n - 1, rows_per_block):
        stop = min(start + rows_per_block, n - 1)
        rows = np.arange(start, stop)
        cols = np.arange(start + 1, n)
        d2 = np.sum((pts[start:stop, None, :] - pts[None, start + 1:, :]) ** 2, axis=2)
        d2[cols[None, :] <= rows[:, None]] = -1.0  # keep j > i
        flat = int(np.argmax(d2))  # first occurrence of the block max
        i, c = divmod(flat, len(cols))
        if d2[i, c] > best_d2:
            best_d2 = float(d2[i, c])
            best_pair = (rows[i], cols[c])

    i, j = best_pair
    return pts[i].copy(), pts[j].copy()


def fit_circle_by_diameter(points) -> Optional[Circle]:
    """Circle whose diameter is the furthest pair of points."""
    pair = find_furthest_pair(points)
    if pair is None:
        return None

    p, q = pair
    center = (p + q) / 2.0
    radius = float(np.linalg.norm(p - q)) / 2.0
    return Circle(center=(float(center[0]), float(center[1])), radius=radius)


def circumcircle(p1, p2, p3) -> Optional[Circle]:
    """Circle passing through three points, or None if they are collinear."""
    x1, y1 = (float(v) for v in p1)
    x2, y2 = (float(v) for v in p2)
    x3, y3 = (float(v) for v in p3)

    a = x1 * (y2 - y3) - y1 * (x2 - x3) + x2 * y3 - x3 * y2
    extent2 = max(
        (x2 - x1) ** 2 + (y2 - y1) ** 2,
        (x3 - x1) ** 2 + (y3 - y1) ** 2,
        (x3 - x2) ** 2 + (y3 - y2) ** 2,
    )
    if not abs(a) > COLLINEAR_EPSILON * extent2:
        return None

    s1 = x1 * x1 + y1 * y1
    s2 = x2 * x2 + y2 * y2
    s3 = x3 * x3 + y3 * y3
    b = s1 * (y3 - y2) + s2 * (y1 - y3) + s3 * (y2 - y1)
    c = s1 * (x2 - x3) + s2 * (x3 - x1) + s3 * (x1 - x2)

    cx = -b / (2.0 * a)
    cy = -c / (2.0 * a)
    radius = float(np.hypot(cx - x1, cy - y1))
    return Circle(center=(cx, cy), radius=radius)


def fit_circle_by_three_points(points) -> Optional[Circle]:
    """Circumcircle of the samples at indices 0, n//3 and 2*(n//3)."""
    pts = as_points(points)
    n = len(pts)
    if n < 3:
        return None

    step = n // 3
    return circumcircle(pts[0], pts[step], pts[2 * step])


def fit_circle_for_radial_device() -> Circle:
    """Reachable envelope of a normalized two-axis stick."""
    return Circle(center=(0.0, 0.0), radius=1.0)


def fit_circle(points, method: FitMethod) -> Optional[Circle]:
    """Dispatch to the fit function for ``method``."""
    if method == FitMethod.DIAMETER:
        return fit_circle_by_diameter(points)
    if method == FitMethod.THREE_POINT:
        return fit_circle_by_three_points(points)
    if method == FitMethod.RADIAL:
        return fit_circle_for_radial_device()
    raise ValueError(f"Unknown fit method: {method!r}")


def tolerance_offset(
    radius: float,
    accuracy_percent: float,
    rule: BandWidthRule = BandWidthRule.STANDARD,
) -> float:
    """Distance a sample may stray from the circle on either side."""
    offset = radius * (100.0 - accuracy_percent) / 100.0
    if rule == BandWidthRule.LEGACY_WIDE:
        offset *= 2.0
    return offset


def tolerance_band(
    circle: Circle,
    accuracy_percent: float,
    rule: BandWidthRule = BandWidthRule.STANDARD,
) -> ToleranceBand:
    offset = tolerance_offset(circle.radius, accuracy_percent, rule)
    return ToleranceBand(
        center=circle.center,
        inner_radius=max(0.0, circle.radius - offset),
        outer_radius=circle.radius + offset,
    )


def is_within_tolerance_band(
    points,
    circle: Optional[Circle],
    accuracy_percent: float,
    rule: BandWidthRule = BandWidthRule.STANDARD,
) -> bool:
    """True if every point lies in the band around ``circle``.

    Stops at the first point outside the outer circle or inside the inner one.
    """
    pts = as_points(points)
    if circle is None or len(pts) < MIN_BAND_POINTS:
        return False

    band = tolerance_band(circle, accuracy_percent, rule)
    cx, cy = band.center
    outer2 = band.outer_radius ** 2
    inner2 = band.inner_radius ** 2
    for x, y in pts:
        d2 = (x - cx) ** 2 + (y - cy) ** 2
        if d2 > outer2:
            return False
        if d2 < inner2:
            return False
    return True


def on_rim(points, circle: Circle) -> np.ndarray:
    """Boolean mask of the points within RADIAL_EPSILON of the rim (squared units)."""
    pts = as_points(points)
    d2 = np.sum((pts - np.asarray(circle.center)) ** 2, axis=1)
    return np.abs(d2 - circle.radius ** 2) < RADIAL_EPSILON


def off_rim_points(points, circle: Circle) -> np.ndarray:
    """Points a radial device reported away from its rim, in input order."""
    pts = as_points(points)
    return pts[~on_rim(pts, circle)]


def is_evenly_distributed_on_radial_circle(
    points,
    circle: Circle,
    accuracy_percent: float,
) -> bool:
    """Check that a stick swept around its rim rather than grazing one arc.

    A point is on the rim when its squared distance to the center is within
    RADIAL_EPSILON of r². At least ``accuracy_percent`` of the points must be
    on the rim, and the centroid of the rim points must sit within
    r * (100 - accuracy) / 100 of the center.
    """
    pts = as_points(points)
    if len(pts) == 0:
        return False

    center = np.asarray(circle.center)
    on_circle = on_rim(pts, circle)
    count = int(on_circle.sum())
    if count == 0:
        return False

    if 100.0 * count / len(pts) < accuracy_percent:
        return False

    centroid = pts[on_circle].mean(axis=0)
    max_offset = tolerance_offset(circle.radius, accuracy_percent)
    return float(np.sum((centroid - center) ** 2)) <= max_offset ** 2


def incorrect_points(
    points,
    circle: Optional[Circle],
    accuracy_percent: float,
    rule: BandWidthRule = BandWidthRule.STANDARD,
) -> np.ndarray:
    """All points falling outside the tolerance band, in input order.

    For visual debugging only; the pass/fail decision never goes through here.
    """
    pts = as_points(points)
    if circle is None or len(pts) == 0:
        return np.empty((0, 2), dtype=np.float64)

    band = tolerance_band(circle, accuracy_percent, rule)
    return pts[~band.contains(pts)]


def is_closed(points, offset: float) -> bool:
    """True if the path ends within ``offset`` of where it began."""
    pts = as_points(points)
    if len(pts) < 2:
        return False
    return float(np.sum((pts[-1] - pts[0]) ** 2)) <= offset ** 2


def evaluate_circle(
    points,
    accuracy_percent: float,
    method: FitMethod,
    rule: BandWidthRule = BandWidthRule.STANDARD,
) -> tuple[bool, Optional[Circle]]:
    """Decide whether ``points`` trace a circle.

    Returns ``(is_circle, fitted_circle)``. The path must first close (last
    point back within the tolerance offset of the first); only then is the
    full band test run. Radial devices test rim coverage instead of a band.
    """
    pts = as_points(points)
    if len(pts) < MIN_BAND_POINTS:
        return False, None
    if not np.isfinite(pts).all():
        return False, None

    circle = fit_circle(pts, method)
    if circle is None:
        return False, None

    if method == FitMethod.RADIAL:
        offset = tolerance_offset(circle.radius, accuracy_percent)
        if not is_closed(pts, offset):
            return False, circle
        return is_evenly_distributed_on_radial_circle(pts, circle, accuracy_percent), circle

    if not np.isfinite(circle.radius) or circle.radius <= DEGENERATE_RADIUS:
        return False, circle

    offset = tolerance_offset(circle.radius, accuracy_percent, rule)
    if not is_closed(pts, offset):
        return False, circle
    return is_within_tolerance_band(pts, circle, accuracy_percent, rule), circle


def is_circle(
    points: Sequence,
    accuracy_percent: float,
    method: FitMethod = FitMethod.DIAMETER,
    rule: BandWidthRule = BandWidthRule.STANDARD,
) -> bool:
    """Shorthand for ``evaluate_circle(...)[0]``."""
    return evaluate_circle(points, accuracy_percent, method, rule)[0]
