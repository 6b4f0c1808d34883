"""
Tests for converting lightning trees into printable polylines.
"""

import numpy as np

from polylines import build_polylines, remove_junction_overlap
from tree_node import LightningTreeNode


def make_tree():
    root = LightningTreeNode.create_root((0, 0))
    a = root.add_child((0, 10))
    a.add_child((-5, 20))
    c = a.add_child((5, 20))
    c.add_child((5, 30))
    root.add_child((10, 0))
    return root


def segments(lines):
    result = []
    for line in lines:
        for p, q in zip(line[:-1], line[1:]):
            result.append(frozenset([tuple(map(float, p)), tuple(map(float, q))]))
    return result


class TestBuildPolylines:
    """Tests for splitting a tree into lines."""

    def test_every_edge_in_exactly_one_line(self):
        root = make_tree()
        lines = build_polylines(root.arena, root.index)
        line_segments = segments(lines)
        tree_segments = [frozenset([upper, lower]) for upper, lower in root.iter_branches()]
        assert len(line_segments) == root.edge_count()
        assert sorted(map(sorted, line_segments)) == sorted(map(sorted, tree_segments))

    def test_one_line_per_leaf(self):
        root = make_tree()
        lines = build_polylines(root.arena, root.index)
        assert len(lines) == len(root.leaves()) == 3
        assert sorted(line[0] for line in lines) == sorted(leaf.location for leaf in root.leaves())

    def test_lines_end_at_junction_or_root(self):
        root = make_tree()
        lines = build_polylines(root.arena, root.index)
        assert lines == [
            [(-5.0, 20.0), (0.0, 10.0), (0.0, 0.0)],
            [(5.0, 30.0), (5.0, 20.0), (0.0, 10.0)],
            [(10.0, 0.0), (0.0, 0.0)],
        ]

    def test_subtree_stops_at_its_top(self):
        root = make_tree()
        c = root.children[0].children[1]
        lines = build_polylines(root.arena, c.index)
        assert lines == [[(5.0, 30.0), (5.0, 20.0)]]


class TestConvertToPolylines:
    """Tests for convert_to_polylines and the junction overlap removal."""

    def test_zero_width_keeps_lines(self):
        root = make_tree()
        output = []
        root.convert_to_polylines(output, 0)
        assert len(output) == 3
        assert all(isinstance(line, np.ndarray) and line.shape[1] == 2 for line in output)
        assert sum(len(line) - 1 for line in output) == root.edge_count()

    def test_appends_to_output(self):
        root = make_tree()
        output = [np.zeros((2, 2))]
        root.convert_to_polylines(output, 0)
        assert len(output) == 4

    def test_junction_end_is_trimmed(self):
        root = make_tree()
        output = []
        root.convert_to_polylines(output, 2)
        line = next(line for line in output if tuple(line[0]) == (10.0, 0.0))
        np.testing.assert_allclose(line[-1], [1.0, 0.0])
        np.testing.assert_allclose(line[0], [10.0, 0.0])

    def test_trim_crosses_points(self):
        lines = remove_junction_overlap([[(0, 0), (0, 10), (0, 11)]], 4)
        assert len(lines) == 1
        np.testing.assert_allclose(lines[0], [[0, 0], [0, 9]])

    def test_short_lines_dropped(self):
        root = LightningTreeNode.create_root((0, 0))
        root.add_child((0, 1))
        output = []
        root.convert_to_polylines(output, 4)
        assert output == []

    def test_root_only_tree_has_no_lines(self):
        root = LightningTreeNode.create_root((0, 0))
        output = []
        root.convert_to_polylines(output, 0)
        assert output == []
