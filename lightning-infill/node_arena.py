"""
Storage for lightning tree nodes. Every node lives in an arena and is addressed by a stable integer
index. A node only stores the index of its parent (no ownership) and the ordered indices of its
children, so re-rooting and splitting a tree is just rewriting a few indices.

All walks over the trees use explicit stacks. Lightning trees can become very deep after many
layers, and we do not want to depend on the recursion limit for that.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from geometry_utils import Point2, as_point

logger = logging.getLogger(__name__)


class NodeArena(object):
    """
    Arena holding the nodes of one or more lightning trees
    """
    def __init__(self) -> None:
        self.locations: List[Optional[Point2]] = []
        self.parents: List[Optional[int]] = []
        self.children: List[List[int]] = []
        self.groundings: List[Optional[Point2]] = []
        self.alive: List[bool] = []

        # bumped on every release, so handles to a released node never match the node that reuses
        # its index
        self.generations: List[int] = []

        # released indices, handed out again by new_node
        self._free: List[int] = []

    def __len__(self) -> int:
        """
        Number of live nodes in the arena
        """
        return len(self.alive) - len(self._free)

    def new_node(self, location, grounding=None) -> int:
        """
        Allocate a new parentless node

        Params:
            location: Tuple[float, float] - the position the node represents
            grounding: Tuple[float, float], default None - initial last grounding location

        Returns:
            idx: int - index of the new node
        """
        location = as_point(location)
        if grounding is not None:
            grounding = as_point(grounding)

        if self._free:
            idx = self._free.pop()
            self.locations[idx] = location
            self.parents[idx] = None
            self.children[idx] = []
            self.groundings[idx] = grounding
            self.alive[idx] = True
        else:
            idx = len(self.alive)
            self.locations.append(location)
            self.parents.append(None)
            self.children.append([])
            self.groundings.append(grounding)
            self.alive.append(True)
            self.generations.append(0)
        return idx

    def is_alive(self, idx: int, generation: Optional[int] = None) -> bool:
        """
        Whether idx holds a live node. With a generation, the node must also still be the one that
        was allocated under that generation.
        """
        if not (0 <= idx < len(self.alive) and self.alive[idx]):
            return False
        return generation is None or self.generations[idx] == generation

    def check_alive(self, idx: int, generation: Optional[int] = None) -> None:
        if not self.is_alive(idx, generation):
            raise ValueError(f"Node {idx} has been released from its arena")

    def release(self, idx: int) -> None:
        """
        Give a single node back to the arena. The node must already be unlinked from its parent, its
        children are not touched.
        """
        self.alive[idx] = False
        self.generations[idx] += 1
        self.locations[idx] = None
        self.parents[idx] = None
        self.children[idx] = []
        self.groundings[idx] = None
        self._free.append(idx)

    def release_subtree(self, idx: int) -> int:
        """
        Detach a node from its parent and release it together with all of its descendants

        Returns:
            int - the number of released nodes
        """
        self.detach(idx)
        subtree = list(self.pre_order(idx))
        for node in subtree:
            self.release(node)
        return len(subtree)

    def attach(self, parent: int, child: int) -> None:
        self.parents[child] = parent
        self.children[parent].append(child)

    def detach(self, child: int) -> None:
        """
        Unlink a node from its parent, making it the root of its own tree
        """
        parent = self.parents[child]
        if parent is None:
            return
        self.children[parent].remove(child)
        self.parents[child] = None

    def pre_order(self, idx: int) -> Iterator[int]:
        """
        Depth-first pre-order walk over the sub-tree of idx. The children of a node are read only
        after the node itself has been yielded, so the caller may still change them.
        """
        stack = [idx]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(self.children[node]))

    def post_order(self, idx: int) -> List[int]:
        """
        Depth-first post-order list of the sub-tree of idx (children before their parent)
        """
        order = []
        stack = [idx]
        while stack:
            node = stack.pop()
            order.append(node)
            stack.extend(self.children[node])
        order.reverse()
        return order

    def branches(self, idx: int) -> Iterator[Tuple[int, int]]:
        """
        Depth-first walk over all (parent, child) pairs below idx. The edge from idx to its own
        parent is not included.
        """
        stack = [(idx, child) for child in reversed(self.children[idx])]
        while stack:
            parent, node = stack.pop()
            yield parent, node
            stack.extend((node, child) for child in reversed(self.children[node]))

    def deep_copy(self, idx: int, target: "NodeArena" = None) -> int:
        """
        Copy the sub-tree of idx, keeping the order of all children

        Params:
            idx: int - root of the sub-tree to copy
            target: NodeArena, default None - arena to copy into, this arena if None

        Returns:
            int - index of the copy of idx in the target arena, a root
        """
        if target is None:
            target = self

        new_root = target.new_node(self.locations[idx], self.groundings[idx])
        stack = [(idx, new_root)]
        while stack:
            src, dst = stack.pop()
            for child in self.children[src]:
                new_child = target.new_node(self.locations[child], self.groundings[child])
                target.attach(dst, new_child)
                stack.append((child, new_child))
        return new_root

    def reroot(self, idx: int, new_parent: Optional[int] = None) -> None:
        """
        Turn every parent-child link between idx and the root of its tree around, so that idx
        becomes the top of the tree and the old root becomes a leaf. If new_parent is given, idx is
        then hung below it.
        """
        path = [idx]
        while self.parents[path[-1]] is not None:
            path.append(self.parents[path[-1]])

        if new_parent is not None and self.is_in_subtree(path[-1], new_parent):
            raise ValueError("Cannot hang a tree below one of its own nodes")

        # flip the links from the old root downwards
        for upper_pos in range(len(path) - 1, 0, -1):
            upper = path[upper_pos]
            lower = path[upper_pos - 1]
            self.children[upper].remove(lower)
            self.parents[upper] = lower
            self.children[lower].append(upper)

        self.parents[idx] = new_parent
        if new_parent is not None:
            self.children[new_parent].append(idx)

    def is_in_subtree(self, ancestor: int, idx: int) -> bool:
        """
        Whether idx is ancestor itself or one of its descendants
        """
        cur = idx
        while cur is not None:
            if cur == ancestor:
                return True
            cur = self.parents[cur]
        return False

    def collect_garbage(self, roots: Iterable[int]) -> int:
        """
        Release every live node that cannot be reached from the given roots

        Returns:
            int - the number of released nodes
        """
        reachable = set()
        for root in roots:
            reachable.update(self.pre_order(root))

        released = 0
        for idx, alive in enumerate(self.alive):
            if alive and idx not in reachable:
                self.release(idx)
                released += 1

        if released:
            logger.debug(f"Released {released} unreachable nodes, {len(self)} nodes left")
        return released
