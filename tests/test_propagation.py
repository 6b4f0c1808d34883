"""
Tests for realigning and propagating lightning trees to the next layer.

These tests validate:
- trees inside the next outline are carried over unchanged
- branches leaving the outline are split off into trees of their own
- trees that are fully outside or fully pruned disappear
- the original trees are never modified
"""

import logging

import pytest
from shapely.geometry import Polygon, box

from outline_locator import OutlineLocator
from tree_node import LightningTreeNode, propagate_trees


def square_with_hole():
    return Polygon(
        [(-50, -50), (50, -50), (50, 50), (-50, 50)],
        [[(-10, -10), (10, -10), (10, 10), (-10, 10)]],
    )


def propagate(tree, outline, prune_distance=0, smooth_magnitude=0, max_remove_colinear_dist=0):
    next_trees = []
    tree.propagate_to_next_layer(next_trees, outline, OutlineLocator(outline),
                                 prune_distance, smooth_magnitude, max_remove_colinear_dist)
    return next_trees


class TestPropagateToNextLayer:
    """Tests for propagate_to_next_layer()."""

    def test_single_root_inside(self):
        root = LightningTreeNode.create_root((0, 0))
        next_trees = propagate(root, box(-100, -100, 100, 100))

        assert len(next_trees) == 1
        tree = next_trees[0]
        assert tree.location == (0.0, 0.0)
        assert tree.is_root
        assert tree.last_grounding_location is None
        assert tree != root

    def test_child_outside_is_split_off(self):
        root = LightningTreeNode.create_root((0, 0))
        child = root.add_child((0, 100))

        next_trees = propagate(root, box(-50, -50, 50, 50))

        assert len(next_trees) == 2
        kept, severed = next_trees
        assert kept.location == (0.0, 0.0)
        assert kept.children == []
        assert severed.is_root
        assert severed.location == pytest.approx((0, 50))

        # the original tree is left alone
        assert root.children == [child]
        assert child.location == (0.0, 100.0)

    def test_tree_inside_is_copied(self):
        root = LightningTreeNode.create_root((0, 0))
        a = root.add_child((0, 20))
        a.add_child((10, 30))
        a.add_child((-10, 30))

        next_trees = propagate(root, box(-100, -100, 100, 100))

        assert len(next_trees) == 1
        assert list(next_trees[0].iter_branches()) == list(root.iter_branches())

    def test_tree_fully_outside_disappears(self):
        root = LightningTreeNode.create_root((500, 500))
        root.add_child((520, 500))
        assert propagate(root, box(-50, -50, 50, 50)) == []

    def test_empty_outline(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 10))
        assert propagate(root, Polygon()) == []

    def test_tree_pruned_away_disappears(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 50)).add_child((0, 80))
        assert propagate(root, box(-100, -100, 100, 100), prune_distance=100) == []

    def test_tree_is_pruned(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 50)).add_child((0, 80))

        next_trees = propagate(root, box(-100, -100, 100, 100), prune_distance=40)

        assert len(next_trees) == 1
        tree = next_trees[0]
        assert tree.node_count() == 2
        assert tree.children[0].location == pytest.approx((0, 40))

    def test_branch_crossing_a_hole_is_split(self):
        root = LightningTreeNode.create_root((-40, 0))
        far = root.add_child((40, 0))

        next_trees = propagate(root, square_with_hole())

        assert len(next_trees) == 2
        assert next_trees[0].children == []
        assert next_trees[1].location == (40.0, 0.0)
        assert next_trees[1].last_grounding_location is None

    def test_lifted_part_remembers_grounding(self):
        root = LightningTreeNode.create_root((0, 0))
        outside = root.add_child((0, 100))
        outside.add_child((0, 40)).add_child((20, 40))

        next_trees = propagate(root, box(-50, -50, 50, 50))

        assert len(next_trees) == 3
        kept, relocated, lifted = next_trees
        assert kept.location == (0.0, 0.0)
        assert relocated.location == pytest.approx((0, 50))
        assert relocated.node_count() == 1
        assert lifted.location == (0.0, 40.0)
        assert lifted.last_grounding_location == (0.0, 100.0)
        assert lifted.node_count() == 2

    def test_root_outside_is_moved(self):
        root = LightningTreeNode.create_root((0, 100))
        root.add_child((0, 0))

        next_trees = propagate(root, box(-50, -50, 50, 50))

        assert len(next_trees) == 2
        assert next_trees[0].location == pytest.approx((0, 50))
        assert next_trees[1].location == (0.0, 0.0)

    def test_every_output_is_independent_root(self):
        root = LightningTreeNode.create_root((0, 0))
        node = root
        for y in range(20, 200, 20):
            node = node.add_child((y / 4, y))
        next_trees = propagate(root, box(-60, -60, 60, 60))

        for tree in next_trees:
            assert tree.is_root
            for other in next_trees:
                if other != tree:
                    assert not tree.has_offspring(other)

    def test_pruned_by_exactly_its_length_disappears(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 50))
        assert propagate(root, box(-100, -100, 100, 100), prune_distance=50) == []

    def test_outside_chain_lands_on_one_point(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 60)).add_child((0, 70)).add_child((0, 80))

        next_trees = propagate(root, box(-50, -50, 50, 50))

        assert len(next_trees) == 2
        assert next_trees[0].location == (0.0, 0.0)
        assert next_trees[1].location == pytest.approx((0, 50))
        assert next_trees[1].node_count() == 1

    def test_outside_nodes_on_different_points_are_kept(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 60))
        root.add_child((60, 0))

        next_trees = propagate(root, box(-50, -50, 50, 50))

        assert len(next_trees) == 3

    def test_logs_dropped_trees(self, caplog):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 10))
        with caplog.at_level(logging.DEBUG, logger="tree_node"):
            propagate(root, box(-100, -100, 100, 100), prune_distance=50)
        assert "1 pruned away" in caplog.text


class TestRealign:
    """Tests for realign() on its own."""

    def test_returns_whether_root_stays_inside(self):
        inside = LightningTreeNode.create_root((0, 0))
        inside.add_child((10, 10))
        assert inside.realign(box(-50, -50, 50, 50)) is True

        outside = LightningTreeNode.create_root((0, 100))
        outside.add_child((0, 0))
        parts = []
        assert outside.realign(box(-50, -50, 50, 50), rerooted_parts=parts) is False
        assert [part.location for part in parts] == [(0.0, 0.0)]
        assert outside.location == pytest.approx((0, 50))

    def test_accepts_point_loops(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 100))
        parts = []
        loops = [[(-50, -50), (50, -50), (50, 50), (-50, 50)]]
        assert root.realign(loops, rerooted_parts=parts) is True
        assert len(parts) == 1


class TestPropagateTrees:
    """Tests for propagating a whole layer of trees with a parameter dict."""

    def test_propagate_trees(self):
        first = LightningTreeNode.create_root((0, 0))
        first.add_child((0, 30))
        second = LightningTreeNode.create_root((20, 0))
        second.add_child((20, 5))

        next_trees = propagate_trees([first, second], box(-100, -100, 100, 100),
                                     params={"prune_distance": 10})

        assert len(next_trees) == 1
        assert next_trees[0].children[0].location == pytest.approx((0, 20))

    def test_bad_params(self):
        root = LightningTreeNode.create_root((0, 0))
        with pytest.raises(ValueError):
            propagate_trees([root], box(-1, -1, 1, 1), params={"prune_distance": -1})

    def test_layers_in_sequence(self):
        trees = [LightningTreeNode.create_root((0, 0))]
        trees[0].add_child((0, 40)).add_child((10, 60))
        outline = box(-100, -100, 100, 100)
        for _ in range(3):
            trees = propagate_trees(trees, outline, params={"prune_distance": 5})
        assert len(trees) == 1
        assert trees[0].total_length() == pytest.approx(40 + 500 ** 0.5 - 15)
