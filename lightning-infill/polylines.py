"""
Turn lightning trees into polylines that can be printed
"""

from typing import List

import numpy as np

from geometry_utils import Point2, dist
from node_arena import NodeArena


def build_polylines(arena: NodeArena, root: int) -> List[List[Point2]]:
    """
    Split the tree below root into polylines. At every junction the first child continues the line
    through the junction, each of the other children starts a line of its own which ends at the
    junction. So every line starts at a leaf and ends at a junction or at root.

    Returns:
        List[List[Tuple[float, float]]] - one point list per leaf, before any overlap is removed
    """
    locations = arena.locations
    lines = []
    for leaf in arena.pre_order(root):
        if arena.children[leaf]:
            continue

        # walk up until the line joins another one (or reaches the top)
        line = [locations[leaf]]
        cur = leaf
        while cur != root:
            parent = arena.parents[cur]
            line.append(locations[parent])
            if arena.children[parent][0] != cur:
                break
            cur = parent
        lines.append(line)
    return lines


def remove_junction_overlap(polylines: List[List[Point2]], line_width: float) -> List[np.ndarray]:
    """
    Shorten the end of every polyline, the end where it meets the other lines, so that the lines do
    not print on top of each other. Lines that become shorter than a single segment are dropped.

    Params:
        polylines: List[List[Tuple[float, float]]] - lines as made by build_polylines
        line_width: float - width of the printed lines; half of it is taken off every line

    Returns:
        List[np.ndarray] - the remaining lines as (n, 2) arrays
    """
    reduction = line_width / 2
    result = []
    for polyline in polylines:
        if len(polyline) < 2:
            continue

        points = list(polyline)
        to_be_reduced = reduction
        a = points[-1]
        for point_idx in range(len(points) - 2, -1, -1):
            b = points[point_idx]
            ab_len = dist(a, b)
            if ab_len >= to_be_reduced:
                if ab_len > 0:
                    t = to_be_reduced / ab_len
                    points[-1] = (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)
                break
            to_be_reduced -= ab_len
            points.pop()
            a = b

        if len(points) < 2:
            continue
        result.append(np.array(points, dtype=float))
    return result


def convert_to_polylines(arena: NodeArena, root: int, output: List[np.ndarray], line_width: float) -> None:
    """
    Convert the tree below root into polylines and add them to output
    """
    output.extend(remove_junction_overlap(build_polylines(arena, root), line_width))
