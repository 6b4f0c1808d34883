"""
Nodes of the lightning trees, the structure that determines the paths to print for lightning infill
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import networkx as nx
import numpy as np

import polylines
import pruning
import realign
import straightening
from geometry_utils import Point2, as_point, dist, dist2
from lightning_params import load_params
from node_arena import NodeArena
from outline_locator import OutlineLocator

logger = logging.getLogger(__name__)

# valence boost for get_weighted_distance: every child up to MAX_VALENCE_FOR_BOOST makes a node look
# VALENCE_BOOST_MULTIPLIER / MAX_VALENCE_FOR_BOOST supporting radii closer
VALENCE_BOOST_MULTIPLIER = 4
MAX_VALENCE_FOR_BOOST = 4


class LightningTreeNode(object):
    """
    A single vertex of a lightning tree.

    In essence the vertices are just positions linked to other positions in 2D, in a hierarchy of
    parents and children. The node data lives in a NodeArena; a LightningTreeNode is a handle to one
    entry of that arena, so two handles are equal when they point at the same entry. A handle also
    remembers the generation of its entry, so it goes stale once the node is released, even when the
    arena hands the index out again.
    """
    __slots__ = ("arena", "index", "generation")

    def __init__(self, arena: NodeArena, index: int) -> None:
        """
        Wrap an existing arena entry. Use create_root or add_child to make new nodes.
        """
        self.arena = arena
        self.index = index
        self.generation = arena.generations[index]

    @classmethod
    def create_root(cls, location, last_grounding_location=None, arena: NodeArena = None) -> "LightningTreeNode":
        """
        Create a new node without a parent

        Params:
            location: Tuple[float, float] - the position on the layer that the node represents
            last_grounding_location: Tuple[float, float], default None - where it was last supported
            arena: NodeArena, default None - arena to allocate in, a fresh one if None
        """
        if arena is None:
            arena = NodeArena()
        return cls(arena, arena.new_node(location, last_grounding_location))

    def __eq__(self, other):
        return (
            self.__class__ == other.__class__ and
            self.arena is other.arena and
            self.index == other.index and
            self.generation == other.generation
        )

    def __hash__(self) -> int:
        return hash((id(self.arena), self.index, self.generation))

    def __repr__(self) -> str:
        if not self.is_alive:
            return f"LightningTreeNode({self.index}, released)"
        return f"LightningTreeNode({self.index}, {self.location})"

    def _node(self, idx: Optional[int]) -> Optional["LightningTreeNode"]:
        if idx is None:
            return None
        return LightningTreeNode(self.arena, idx)

    def _check_same_arena(self, other: "LightningTreeNode") -> None:
        if other.arena is not self.arena:
            raise ValueError("Nodes belong to different arenas")
        other._check_alive()

    def _check_alive(self) -> None:
        self.arena.check_alive(self.index, self.generation)

    # --- basic properties ---

    @property
    def is_alive(self) -> bool:
        return self.arena.is_alive(self.index, self.generation)

    @property
    def location(self) -> Point2:
        """
        The position on this layer that this node represents, a vertex of the path to print
        """
        self._check_alive()
        return self.arena.locations[self.index]

    @location.setter
    def location(self, p) -> None:
        self._check_alive()
        self.arena.locations[self.index] = as_point(p)

    @property
    def is_root(self) -> bool:
        return self.arena.parents[self.index] is None

    @property
    def parent(self) -> Optional["LightningTreeNode"]:
        return self._node(self.arena.parents[self.index])

    @property
    def children(self) -> List["LightningTreeNode"]:
        return [LightningTreeNode(self.arena, idx) for idx in self.arena.children[self.index]]

    @property
    def last_grounding_location(self) -> Optional[Point2]:
        """
        If this was ever a direct child of a root, the location it was grounded on. Needed when roots
        are reconnected, so that the layer above stays supported by the next one.
        """
        return self.arena.groundings[self.index]

    # --- building ---

    def add_child(self, child) -> "LightningTreeNode":
        """
        Add a child to this node. A node directly below a root remembers the root's location as its
        grounding location, unless it already has one.

        Params:
            child: Tuple[float, float] | LightningTreeNode - either the location of a new node, or an
                existing parentless node of the same arena which is not an ancestor of this node

        Returns:
            LightningTreeNode - the (new) child
        """
        arena = self.arena
        self._check_alive()

        if isinstance(child, LightningTreeNode):
            self._check_same_arena(child)
            if arena.parents[child.index] is not None:
                raise ValueError("Node already has a parent; detach or reroot it first")
            if child.has_offspring(self):
                raise ValueError("Adding this child would create a cycle")
            child_idx = child.index
        else:
            child_idx = arena.new_node(child)

        if self.is_root and arena.groundings[child_idx] is None:
            arena.groundings[child_idx] = arena.locations[self.index]

        arena.attach(self.index, child_idx)
        return LightningTreeNode(arena, child_idx)

    def deep_copy(self, arena: NodeArena = None) -> "LightningTreeNode":
        """
        Copy this node and its entire sub-tree

        Params:
            arena: NodeArena, default None - arena to copy into, a fresh one if None

        Returns:
            LightningTreeNode - the copy of this node, the root of the new tree
        """
        self._check_alive()
        if arena is None:
            arena = NodeArena()
        return LightningTreeNode(arena, self.arena.deep_copy(self.index, arena))

    def reroot(self, new_parent: "LightningTreeNode" = None) -> None:
        """
        Reverse the parent-child relation all the way up to the root, so that this node becomes the
        root and the old root becomes a leaf. If new_parent is given, this node is then added as a
        child of new_parent, which must not be part of this tree.
        """
        self._check_alive()
        new_parent_idx = None
        if new_parent is not None:
            self._check_same_arena(new_parent)
            new_parent_idx = new_parent.index
        self.arena.reroot(self.index, new_parent_idx)

    # --- queries ---

    def has_offspring(self, to_be_checked: "LightningTreeNode") -> bool:
        """
        Whether the given node is this node or one of its descendants
        """
        if to_be_checked.arena is not self.arena or not to_be_checked.is_alive:
            return False
        return self.arena.is_in_subtree(self.index, to_be_checked.index)

    def closest_node(self, loc) -> "LightningTreeNode":
        """
        Get the node in this sub-tree closest to a location. On ties the node visited first in
        depth-first pre-order wins.
        """
        loc = as_point(loc)
        locations = self.arena.locations
        best = self.index
        best_dist2 = dist2(locations[best], loc)
        for idx in self.arena.pre_order(self.index):
            d2 = dist2(locations[idx], loc)
            if d2 < best_dist2:
                best = idx
                best_dist2 = d2
        return LightningTreeNode(self.arena, best)

    def get_weighted_distance(self, unsupported_location, supporting_radius: float) -> float:
        """
        Get a weighted distance from an unsupported point to this node.

        Closer nodes are preferred, but nodes with more branches get a 'valence boost', so that new
        points are rather connected to existing junctions than to yet another lonely branch.

        Params:
            unsupported_location: Tuple[float, float] - the location that needs support
            supporting_radius: float - the maximum distance that can be bridged without support

        Returns:
            float - the weighted distance, lower is better
        """
        valence = min(len(self.arena.children[self.index]), MAX_VALENCE_FOR_BOOST)
        valence_boost = VALENCE_BOOST_MULTIPLIER * supporting_radius * valence / MAX_VALENCE_FOR_BOOST
        return dist(self.location, as_point(unsupported_location)) - valence_boost

    def node_count(self) -> int:
        return sum(1 for _ in self.arena.pre_order(self.index))

    def edge_count(self) -> int:
        return sum(1 for _ in self.arena.branches(self.index))

    def leaves(self) -> List["LightningTreeNode"]:
        return [LightningTreeNode(self.arena, idx) for idx in self.arena.pre_order(self.index)
                if not self.arena.children[idx]]

    def total_length(self) -> float:
        """
        Summed length of all branches in this sub-tree
        """
        locations = self.arena.locations
        return sum(dist(locations[a], locations[b]) for a, b in self.arena.branches(self.index))

    # --- traversal ---

    def iter_nodes(self) -> Iterator["LightningTreeNode"]:
        """
        Depth-first pre-order walk over this sub-tree, this node included
        """
        for idx in self.arena.pre_order(self.index):
            yield LightningTreeNode(self.arena, idx)

    def iter_branches(self) -> Iterator[Tuple[Point2, Point2]]:
        """
        Depth-first walk over all line segments below this node, as (location closer to the root,
        location further down) pairs. The segment to this node's own parent is not included.
        """
        locations = self.arena.locations
        for upper, lower in self.arena.branches(self.index):
            yield locations[upper], locations[lower]

    def visit_nodes(self, visitor: Callable[["LightningTreeNode"], None]) -> None:
        """
        Execute a function for every node in this sub-tree (pre-order). The visitor may change the
        node it gets.
        """
        for node in self.iter_nodes():
            visitor(node)

    def visit_branches(self, visitor: Callable[[Point2, Point2], None]) -> None:
        """
        Execute a function for every line segment in this sub-tree, see iter_branches
        """
        for upper, lower in self.iter_branches():
            visitor(upper, lower)

    # --- per layer processing ---

    def realign(self, next_outlines, outline_locator: OutlineLocator = None,
                rerooted_parts: List["LightningTreeNode"] = None) -> bool:
        """
        Reconnect this tree from the layer above to the outline of the layer below, see
        realign.realign. Split off parts are appended to rerooted_parts.

        Returns:
            bool - whether the root location is still inside the outline
        """
        self._check_alive()
        if outline_locator is None:
            outline_locator = OutlineLocator(next_outlines)
        parts = []
        root_kept = realign.realign(self.arena, self.index, outline_locator, parts)
        if rerooted_parts is not None:
            rerooted_parts.extend(LightningTreeNode(self.arena, idx) for idx in parts)
        return root_kept

    def prune(self, distance: float) -> float:
        """
        Prune the tree from the leaves inward, see pruning.prune

        Returns:
            float - the pruned distance; less than distance means the whole tree was pruned away
        """
        self._check_alive()
        return pruning.prune(self.arena, self.index, distance)

    def straighten(self, magnitude: float, max_remove_colinear_dist: float) -> None:
        """
        Smoothen the tree to make it more printable, see straightening.straighten
        """
        self._check_alive()
        straightening.straighten(self.arena, self.index, magnitude, max_remove_colinear_dist)

    def propagate_to_next_layer(self, next_trees: List["LightningTreeNode"], next_outlines,
                                outline_locator: OutlineLocator, prune_distance: float,
                                smooth_magnitude: float, max_remove_colinear_dist: float) -> None:
        """
        Propagate this node's sub-tree to the next layer.

        Creates a copy of the tree, realigns it to the next outline and reduces it (prune and
        straighten). The copy and every part that got split off are added to next_trees, except
        for trees that got pruned away completely. This tree itself is left untouched.

        Params:
            next_trees: List[LightningTreeNode] - output list of trees for the next layer
            next_outlines: outline of the next layer, see OutlineLocator
            outline_locator: OutlineLocator - locator for next_outlines, built here if None
            prune_distance: float - the maximum distance a leaf node may be moved
            smooth_magnitude: float - the maximum distance straightening may move a node
            max_remove_colinear_dist: float - max deviation for removing co-linear points
        """
        tree_below = self.deep_copy()
        rerooted_parts = []
        tree_below.realign(next_outlines, outline_locator, rerooted_parts)

        candidates = rerooted_parts
        if tree_below.is_alive:
            candidates = [tree_below] + rerooted_parts

        dropped = 0
        for tree in candidates:
            pruned = tree.prune(prune_distance)
            if pruned < prune_distance:
                tree.arena.release_subtree(tree.index)
                dropped += 1
                continue
            tree.straighten(smooth_magnitude, max_remove_colinear_dist)
            next_trees.append(tree)

        logger.debug(f"Propagated tree into {len(candidates) - dropped} trees "
                     f"({len(rerooted_parts)} split off, {dropped} pruned away)")

    # --- output ---

    def convert_to_polylines(self, output: List[np.ndarray], line_width: float) -> None:
        """
        Convert the tree into polylines. At each junction one line continues, the others end there;
        every line starts at a leaf.

        Params:
            output: List[np.ndarray] - all branches of this tree are added here as (n, 2) arrays
            line_width: float - width of the printed lines, used to remove overlap at junctions
        """
        self._check_alive()
        polylines.convert_to_polylines(self.arena, self.index, output, line_width)

    def to_graph(self) -> nx.DiGraph:
        """
        Export this sub-tree as a directed networkx graph (edges point from parent to child), with
        the arena indices as node ids and the locations in the "x" and "y" node attributes
        """
        graph = nx.DiGraph()
        arena = self.arena
        for idx in arena.pre_order(self.index):
            x, y = arena.locations[idx]
            graph.add_node(idx, x=x, y=y, grounding=arena.groundings[idx])
        graph.add_edges_from(arena.branches(self.index))
        return graph


def propagate_trees(trees: List[LightningTreeNode], next_outlines, params: Dict = None,
                    outline_locator: OutlineLocator = None) -> List[LightningTreeNode]:
    """
    Propagate a set of trees to the next layer with one set of parameters

    Params:
        trees: List[LightningTreeNode] - the trees of the current layer
        next_outlines: the outline of the next layer
        params: Dict, default None - parameter overrides, see lightning_params.DEFAULT_PARAMS
        outline_locator: OutlineLocator, default None - built from next_outlines if None

    Returns:
        next_trees: List[LightningTreeNode] - the trees for the next layer
    """
    params = load_params(params)
    if outline_locator is None:
        outline_locator = OutlineLocator(next_outlines, cell_size=params["locator_cell_size"])

    next_trees = []
    for tree in trees:
        tree.propagate_to_next_layer(
            next_trees,
            next_outlines,
            outline_locator,
            params["prune_distance"],
            params["smooth_magnitude"],
            params["max_remove_colinear_dist"],
        )

    logger.debug(f"{len(trees)} trees propagated into {len(next_trees)} trees")
    return next_trees
