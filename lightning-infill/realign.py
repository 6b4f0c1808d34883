"""
Fit a lightning tree from the layer above onto the outline of the layer below
"""

import logging
from typing import List

from node_arena import NodeArena
from outline_locator import OutlineLocator

logger = logging.getLogger(__name__)


def realign(arena: NodeArena, root: int, outline_locator: OutlineLocator, rerooted_parts: List[int]) -> bool:
    """
    Reconnect the tree below root to the outline of the next layer.

    A parent-child link is only kept when both nodes are inside the new outline and the line between
    them does not leave it. Every other child is cut loose and becomes the root of a new tree, which
    is added to rerooted_parts. Nodes outside of the outline are moved onto the closest point of the
    outline boundary. Such a node never keeps a child, so it ends up as a tree of a single node; when
    several of them land on the same boundary point only the first is kept. If no node of the tree
    lies in the outline at all, the whole tree is released.

    Params:
        arena: NodeArena - the arena holding the tree
        root: int - top node of the tree to realign
        outline_locator: OutlineLocator - locator built for the outline of the next layer
        rerooted_parts: List[int] - output list, roots of the trees that were split off

    Returns:
        bool - whether the original root location is still inside the outline
    """

    order = list(arena.pre_order(root))
    original = [arena.locations[node] for node in order]

    # decide everything on the original locations, before anything gets moved
    inside_mask = outline_locator.inside_mask(original)
    inside = dict(zip(order, (bool(flag) for flag in inside_mask)))
    original_loc = dict(zip(order, original))

    if outline_locator.is_empty or not any(inside.values()):
        released = arena.release_subtree(root)
        logger.debug(f"Tree with {released} nodes lies completely outside of the next outline")
        return False

    first_part = len(rerooted_parts)
    for parent in order:
        for child in list(arena.children[parent]):
            if inside[parent] and inside[child] and outline_locator.segment_inside(original_loc[parent], original_loc[child]):
                continue

            # the material between parent and child is gone; the child starts a tree of its own
            arena.detach(child)
            arena.groundings[child] = None if inside[parent] else original_loc[parent]
            rerooted_parts.append(child)

    for node in order:
        if not inside[node]:
            arena.locations[node] = outline_locator.find_nearest(original_loc[node])

    # relocated nodes that land on the same boundary point are merged into the first one
    taken = set() if inside[root] else {arena.locations[root]}
    parts = []
    for part in rerooted_parts[first_part:]:
        if not inside[part]:
            if arena.locations[part] in taken:
                arena.release(part)
                continue
            taken.add(arena.locations[part])
        parts.append(part)
    if len(parts) < len(rerooted_parts) - first_part:
        logger.debug(f"Merged {len(rerooted_parts) - first_part - len(parts)} relocated nodes into existing ones")
    rerooted_parts[first_part:] = parts

    return inside[root]
