"""
Spatial lookup for the outline of a single layer. Answers the questions the lightning trees need to
ask about the next layer: is a point inside, where is the closest point on the boundary, and which
boundary edges are close to (or crossed by) a line segment
"""

import logging
from typing import List, Sequence, Tuple

import numpy as np
import shapely as shp
from shapely.geometry import LineString, Point, box
from shapely.strtree import STRtree

from geometry_utils import (Point2, as_point, boundary_segments, closest_point_on_segment, dist_to_segment,
                            segments_cross, segments_intersect, to_outline)

logger = logging.getLogger(__name__)

# size of the neighbourhood used for edge queries, in the same unit as the coordinates
LOCATOR_CELL_SIZE = 4000


class OutlineLocator:
    """
    Read-only index over the boundary edges of one layer outline. Needs to be rebuilt for every new
    outline. Queries never modify the locator, so several trees may be realigned against the same
    locator at once.
    """

    def __init__(self, outlines, cell_size: float = LOCATOR_CELL_SIZE) -> None:
        """
        Build the locator

        Params:
            outlines: shp.Polygon | shp.MultiPolygon | List of closed point loops - the valid region
            cell_size: float, default LOCATOR_CELL_SIZE - radius used by edges_near when none is given
        """
        self.outline = to_outline(outlines)
        self.cell_size = cell_size
        self.segments: List[Tuple[Point2, Point2]] = boundary_segments(self.outline)

        if self.segments:
            self._tree = STRtree([LineString(seg) for seg in self.segments])
        else:
            self._tree = None
            logger.warning("Outline locator built for an empty outline")

        if not self.outline.is_empty:
            shp.prepare(self.outline)

    @property
    def is_empty(self) -> bool:
        return self.outline.is_empty

    def is_inside(self, point) -> bool:
        """
        Whether the point lies in the outline. Points on the boundary count as inside.
        """
        if self.is_empty:
            return False
        return bool(self.outline.covers(Point(as_point(point))))

    def inside_mask(self, points: Sequence[Point2]) -> np.ndarray:
        """
        Vectorized version of is_inside

        Returns:
            np.ndarray - boolean array with one entry per point
        """
        if len(points) == 0:
            return np.zeros(0, dtype=bool)
        if self.is_empty:
            return np.zeros(len(points), dtype=bool)
        pts = shp.points(np.asarray(points, dtype=float))
        return np.asarray(shp.covers(self.outline, pts), dtype=bool)

    def find_nearest(self, point) -> Point2:
        """
        Get the closest point on the outline boundary. For an outline without edges the query point
        itself is returned, i.e. the relocation distance is zero.
        """
        point = as_point(point)
        if self._tree is None:
            return point
        seg_idx = int(self._tree.nearest(Point(point)))
        a, b = self.segments[seg_idx]
        return closest_point_on_segment(point, a, b)

    def edges_near(self, point, radius: float = None) -> List[Tuple[Point2, Point2]]:
        """
        Get all boundary edges which come within radius of the point

        Params:
            point: Tuple[float, float] - the query location
            radius: float, default None - search radius, the cell size of the locator if None

        Returns:
            List[Tuple[Point2, Point2]] - the boundary edges, in the order they occur in the outline
        """
        if radius is None:
            radius = self.cell_size
        point = as_point(point)
        if self._tree is None:
            return []
        x, y = point
        candidates = self._tree.query(box(x - radius, y - radius, x + radius, y + radius))
        edges = []
        for seg_idx in sorted(int(i) for i in candidates):
            a, b = self.segments[seg_idx]
            if dist_to_segment(point, a, b) <= radius:
                edges.append((a, b))
        return edges

    def segment_collides(self, a, b) -> bool:
        """
        Whether the segment ab touches or crosses any boundary edge
        """
        if self._tree is None:
            return False
        a = as_point(a)
        b = as_point(b)
        query_geom = Point(a) if a == b else LineString([a, b])
        for seg_idx in self._tree.query(query_geom):
            c, d = self.segments[int(seg_idx)]
            if segments_intersect(a, b, c, d):
                return True
        return False

    def segment_inside(self, a, b) -> bool:
        """
        Whether the whole segment ab lies in the outline, boundary included. A segment that runs
        along or touches the boundary still counts as inside, as long as no part of it leaves the
        outline.
        """
        a = as_point(a)
        b = as_point(b)
        if not (self.is_inside(a) and self.is_inside(b)):
            return False
        if self._tree is None or a == b:
            return True

        touching = False
        for seg_idx in self._tree.query(LineString([a, b])):
            c, d = self.segments[int(seg_idx)]
            if segments_cross(a, b, c, d):
                return False
            if segments_intersect(a, b, c, d):
                touching = True

        # only touching contacts with the boundary (e.g. passing a reflex corner), let shapely decide
        if touching:
            return bool(self.outline.covers(LineString([a, b])))
        return True
