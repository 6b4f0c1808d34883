"""
Pruning of lightning trees: every layer further down, the ends of the branches need less support,
so they can be cut back
"""

from geometry_utils import dist, normal
from node_arena import NodeArena


def prune(arena: NodeArena, root: int, distance: float) -> float:
    """
    Prune the tree from the leaves inwards until the pruning distance is reached.

    Every branch is handled on its own with the full distance. A leaf closer to its parent than the
    remaining distance is removed and pruning continues at the parent once all of the parent's
    other children are gone as well. Otherwise the leaf is moved towards its parent over the
    remaining distance and pruning of that branch stops.

    Params:
        arena: NodeArena - the arena holding the tree
        root: int - top node of the tree to prune
        distance: float - the length to prune away from each branch end

    Returns:
        float - the distance that has been pruned. If less than distance, the whole tree was pruned
            away; only the root node is left. A tree that loses all of its branches reports 0, also
            when distance is exactly its total length.
    """
    if distance <= 0:
        return 0.0

    locations = arena.locations
    pruned = {}

    # children always come before their parent
    for node in arena.post_order(root):
        max_distance_pruned = 0.0
        kept = []
        for child in arena.children[node]:
            dist_pruned_child = pruned.pop(child)

            # pruning already finished further down this branch
            if dist_pruned_child >= distance:
                max_distance_pruned = max(max_distance_pruned, dist_pruned_child)
                kept.append(child)
                continue

            a = locations[node]
            b = locations[child]
            ab_len = dist(a, b)

            if dist_pruned_child + ab_len <= distance:
                # everything below the child is gone already, so the child goes as well
                max_distance_pruned = max(max_distance_pruned, dist_pruned_child + ab_len)
                arena.release(child)
            else:
                # pruning stops in between this node and the child
                step = normal((a[0] - b[0], a[1] - b[1]), distance - dist_pruned_child)
                locations[child] = (b[0] + step[0], b[1] + step[1])
                max_distance_pruned = max(max_distance_pruned, distance)
                kept.append(child)

        arena.children[node] = kept
        pruned[node] = max_distance_pruned

    if not arena.children[root]:
        return 0.0
    return pruned[root]
