"""
Small 2D helpers shared by the lightning tree algorithms, plus a way to turn a set of closed point
loops into a shapely outline
"""

import math
from collections import defaultdict
from typing import List, Sequence, Tuple

import numpy as np
import shapely as shp

Point2 = Tuple[float, float]


def as_point(p) -> Point2:
    """
    Convert a tuple, list or numpy array into a plain (x, y) tuple of floats
    """
    return (float(p[0]), float(p[1]))


def dist(a: Point2, b: Point2) -> float:
    return math.hypot(b[0] - a[0], b[1] - a[1])


def dist2(a: Point2, b: Point2) -> float:
    return (b[0] - a[0])**2 + (b[1] - a[1])**2


def normal(vec: Point2, length: float) -> Point2:
    """
    Scale a vector so that it gets the given length. A zero vector stays zero.

    Params:
        vec: Tuple[float, float] - the direction
        length: float - the length of the returned vector

    Returns:
        Tuple[float, float] - vector pointing along vec with the requested length
    """
    vec_len = math.hypot(vec[0], vec[1])
    if vec_len == 0:
        return (0.0, 0.0)
    return (vec[0] * length / vec_len, vec[1] * length / vec_len)


def closest_point_on_segment(p: Point2, a: Point2, b: Point2) -> Point2:
    """
    Project p onto the segment ab, clamping to the segment end points
    """
    p1 = np.array(a, dtype=float)
    p2 = np.array(b, dtype=float)
    p3 = np.array(p, dtype=float)

    vec_1 = p2 - p1
    vec_2 = p3 - p1

    seg_len2 = vec_1 @ vec_1
    if seg_len2 == 0:
        return as_point(p1)

    # fraction along the segment, clamped so we never leave it
    proj_dist = (vec_2 @ vec_1) / seg_len2
    proj_dist = min(max(0.0, proj_dist), 1.0)

    point = proj_dist * vec_1 + p1

    return (float(point[0]), float(point[1]))


def dist_to_segment(p: Point2, a: Point2, b: Point2) -> float:
    return dist(p, closest_point_on_segment(p, a, b))


def segments_intersect(A: Point2, B: Point2, C: Point2, D: Point2) -> bool:
    """
    Return true if line segments AB and CD intersect. Touching end points and colinear overlaps are
    counted as intersections.

    params:
        A,B,C,D: Tuple[float, float] of coordinate points
    """
    def cross(o, p, q):
        return (p[0] - o[0]) * (q[1] - o[1]) - (p[1] - o[1]) * (q[0] - o[0])

    def on_segment(o, p, q):
        # q is known to be colinear with op
        return (min(o[0], p[0]) <= q[0] <= max(o[0], p[0]) and
                min(o[1], p[1]) <= q[1] <= max(o[1], p[1]))

    d1 = cross(C, D, A)
    d2 = cross(C, D, B)
    d3 = cross(A, B, C)
    d4 = cross(A, B, D)

    if ((d1 > 0 and d2 < 0) or (d1 < 0 and d2 > 0)) and ((d3 > 0 and d4 < 0) or (d3 < 0 and d4 > 0)):
        return True

    if d1 == 0 and on_segment(C, D, A):
        return True
    if d2 == 0 and on_segment(C, D, B):
        return True
    if d3 == 0 and on_segment(A, B, C):
        return True
    if d4 == 0 and on_segment(A, B, D):
        return True
    return False


def segments_cross(A: Point2, B: Point2, C: Point2, D: Point2) -> bool:
    """
    Return true if segments AB and CD properly cross, i.e. each one has its end points strictly on
    opposite sides of the other. Touching does not count.
    """
    def side(o, p, q):
        val = (p[0] - o[0]) * (q[1] - o[1]) - (p[1] - o[1]) * (q[0] - o[0])
        return (val > 0) - (val < 0)

    return (side(C, D, A) * side(C, D, B) < 0) and (side(A, B, C) * side(A, B, D) < 0)


def outline_from_loops(loops: Sequence[Sequence[Point2]]):
    """
    Convert a set of closed point loops into a shapely geometry. Loops nested inside an odd number
    of other loops are holes, the rest are solid.

    Params:
        loops: Sequence of point sequences, each one a closed ring (closing point optional)

    Returns:
        shp.Polygon | shp.MultiPolygon - the region described by the loops, possibly empty
    """

    # convert rings to shapely polygons
    raw_polys = []
    for ring in loops:
        ring = np.asarray(ring, dtype=float)
        if len(ring) < 3:
            continue
        if not np.allclose(ring[0], ring[-1]):
            ring = np.vstack([ring, ring[0]])
        raw_polys.append(shp.Polygon(ring))

    if not raw_polys:
        return shp.Polygon()

    # sort by area (largest first) so that containers always come before what they contain
    raw_polys.sort(key=lambda p: p.area, reverse=True)

    # parent_idx[i] = index of the smallest polygon containing poly i, or -1 for outer shells
    n = len(raw_polys)
    parent_idx = [-1] * n
    for i in range(n):
        best_parent = -1
        best_parent_area = float('inf')
        for j in range(i):
            if raw_polys[j].contains(raw_polys[i]) and raw_polys[j].area < best_parent_area:
                best_parent = j
                best_parent_area = raw_polys[j].area
        parent_idx[i] = best_parent

    # even nesting depth = solid, odd = hole
    depths = [0] * n
    for i in range(n):
        if parent_idx[i] != -1:
            depths[i] = depths[parent_idx[i]] + 1

    holes_by_parent = defaultdict(list)
    for i in range(n):
        if parent_idx[i] != -1 and depths[i] % 2 == 1:
            holes_by_parent[parent_idx[i]].append(raw_polys[i].exterior.coords)

    solids = []
    for i in range(n):
        if depths[i] % 2 == 0:
            solids.append(shp.Polygon(raw_polys[i].exterior.coords, holes_by_parent[i]))

    if len(solids) == 1:
        return solids[0]
    return shp.MultiPolygon(solids)


def to_outline(outlines):
    """
    Accept either a shapely polygonal geometry or a list of closed point loops and return a
    shapely geometry
    """
    if isinstance(outlines, (shp.Polygon, shp.MultiPolygon)):
        return outlines
    if isinstance(outlines, shp.Geometry):
        raise ValueError(f"Unsupported outline geometry type: {outlines.geom_type}")
    return outline_from_loops(outlines)


def boundary_segments(outline) -> List[Tuple[Point2, Point2]]:
    """
    List every boundary edge (exterior and interior rings) of a polygonal geometry
    """
    geoms = list(outline.geoms) if isinstance(outline, shp.MultiPolygon) else [outline]
    segments = []
    for geom in geoms:
        if geom.is_empty:
            continue
        for ring in [geom.exterior, *geom.interiors]:
            coords = np.asarray(ring.coords)
            for idx in range(len(coords) - 1):
                a = as_point(coords[idx])
                b = as_point(coords[idx + 1])
                if a != b:
                    segments.append((a, b))
    return segments
