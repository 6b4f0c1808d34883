"""
Straightening of lightning trees. The paths between two junctions are pulled towards the straight
line between those junctions, which makes the tree a lot easier to print while every node stays
close enough to where it was to keep supporting the layer above.
"""

from typing import Dict, List, Tuple

from geometry_utils import Point2, dist, dist_to_segment, normal
from node_arena import NodeArena

# a junction may move over this fraction of the straightening magnitude
JUNCTION_MAGNITUDE_FACTOR = 0.25

_ENTER = 0
_EXIT = 1


def straighten(arena: NodeArena, root: int, magnitude: float, max_remove_colinear_dist: float) -> None:
    """
    Smoothen the tree to make it a bit more printable, while still supporting the trees above.

    Params:
        arena: NodeArena - the arena holding the tree
        root: int - top node of the tree
        magnitude: float - the maximum distance a node may be moved
        max_remove_colinear_dist: float - a node on a run without branches is removed when it lies
            closer than this to the line between its parent and its child
    """
    locations = arena.locations

    # rectilinear distance from the junction above to the junction below, and the location of the
    # junction below, for every run that has been handled already (keyed by the first node of the run)
    run_results: Dict[int, Tuple[float, Point2]] = {}

    stack = [(_ENTER, root, locations[root], 0.0)]
    while stack:
        frame = stack.pop()

        if frame[0] == _ENTER:
            _, start, junction_above, accumulated_dist = frame

            # follow the run of single-child nodes down to the next junction (or leaf)
            run: List[Tuple[int, float]] = []
            node = start
            while len(arena.children[node]) == 1:
                child = arena.children[node][0]
                run.append((node, accumulated_dist))
                accumulated_dist += dist(locations[node], locations[child])
                node = child

            branch_starts = list(arena.children[node])
            stack.append((_EXIT, start, junction_above, run, node, accumulated_dist, branch_starts))
            for child in reversed(branch_starts):
                stack.append((_ENTER, child, locations[node], dist(locations[node], locations[child])))
            continue

        _, start, junction_above, run, junction, total_dist, branch_starts = frame

        _move_junction(arena, junction, junction_above, branch_starts, run_results, magnitude, junction != root)
        junction_below = locations[junction]

        # deepest node first, so that every node sees its child at its final location
        for node, accumulated_dist in reversed(run):
            _straighten_node(arena, node, junction_above, junction_below, accumulated_dist, total_dist, magnitude)
            if node != root:
                _remove_colinear(arena, node, max_remove_colinear_dist)

        run_results[start] = (total_dist, junction_below)


def _move_junction(arena: NodeArena, junction: int, junction_above: Point2, branch_starts: List[int],
                   run_results: Dict[int, Tuple[float, Point2]], magnitude: float, movable: bool) -> None:
    """
    Move a junction a little bit in the direction of its neighbouring junctions. The top of the
    tree and leaves never move.
    """
    locations = arena.locations
    p = locations[junction]
    junction_magnitude = magnitude * JUNCTION_MAGNITUDE_FACTOR

    move = normal((junction_above[0] - p[0], junction_above[1] - p[1]), junction_magnitude)
    prevent_junction_moving = False
    for start in branch_starts:
        total_dist, below = run_results.pop(start)
        step = normal((below[0] - p[0], below[1] - p[1]), junction_magnitude)
        move = (move[0] + step[0], move[1] + step[1])

        # short branches would make the junction flip-flop between layers
        if total_dist < magnitude:
            prevent_junction_moving = True

    if not branch_starts or not movable or prevent_junction_moving:
        return
    if move == (0.0, 0.0):
        return

    move_len = dist((0.0, 0.0), move)
    if move_len > junction_magnitude:
        move = normal(move, junction_magnitude)
    locations[junction] = (p[0] + move[0], p[1] + move[1])


def _straighten_node(arena: NodeArena, node: int, junction_above: Point2, junction_below: Point2,
                     accumulated_dist: float, total_dist: float, magnitude: float) -> None:
    locations = arena.locations
    a = junction_above
    b = junction_below
    if a == b or total_dist <= 0:
        return

    t = accumulated_dist / total_dist
    destination = (a[0] + (b[0] - a[0]) * t, a[1] + (b[1] - a[1]) * t)
    p = locations[node]
    if dist(p, destination) <= magnitude:
        locations[node] = destination
    else:
        step = normal((destination[0] - p[0], destination[1] - p[1]), magnitude)
        locations[node] = (p[0] + step[0], p[1] + step[1])


def _remove_colinear(arena: NodeArena, node: int, max_remove_colinear_dist: float) -> None:
    """
    Splice a single-child node out of the tree if it lies (almost) on the line from its parent to its
    child
    """
    parent = arena.parents[node]
    if parent is None or max_remove_colinear_dist <= 0:
        return

    locations = arena.locations
    child = arena.children[node][0]
    if dist_to_segment(locations[node], locations[parent], locations[child]) >= max_remove_colinear_dist:
        return

    siblings = arena.children[parent]
    siblings[siblings.index(node)] = child
    arena.parents[child] = parent
    arena.release(node)
