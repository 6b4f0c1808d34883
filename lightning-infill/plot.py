"""
Debug plots for lightning trees: layer outlines, the trees on them and the resulting polylines
"""

from typing import List, Sequence

import matplotlib.pyplot as plt
import numpy as np
import shapely as shp

from geometry_utils import to_outline


def setup_plot_style():
    """Clean plotting style without tick labels, coordinates are usually meaningless here"""
    plt.rcParams['font.family'] = 'sans-serif'
    plt.rcParams['axes.linewidth'] = 1.5
    plt.rcParams['xtick.major.size'] = 0
    plt.rcParams['ytick.major.size'] = 0
    plt.rcParams['xtick.labelsize'] = 0
    plt.rcParams['ytick.labelsize'] = 0


def _get_axes(ax):
    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 6))
    ax.set_aspect('equal')
    return ax


def plot_outline(outlines, ax=None):
    """
    Draw the boundary of a layer outline, holes included, and fill the region lightly
    """
    ax = _get_axes(ax)
    outline = to_outline(outlines)
    geoms = list(outline.geoms) if isinstance(outline, shp.MultiPolygon) else [outline]
    for geom in geoms:
        if geom.is_empty:
            continue
        x_poly, y_poly = geom.exterior.xy
        ax.plot(x_poly, y_poly, 'k-', linewidth=2.5)
        ax.fill(x_poly, y_poly, color='lightgray', alpha=0.2)
        for interior in geom.interiors:
            x_hole, y_hole = interior.xy
            ax.plot(x_hole, y_hole, 'k-', linewidth=1.5)
            ax.fill(x_hole, y_hole, color='white')
    return ax


def plot_trees(trees: Sequence, outlines=None, ax=None, show: bool = False):
    """
    Draw every branch of the given trees. Roots are marked in red, grounding locations as crosses.

    Params:
        trees: Sequence[LightningTreeNode] - the trees to draw
        outlines: default None - an outline to draw underneath the trees
        ax: matplotlib Axes, default None - axes to draw on, new ones if None
        show: bool, default False - call plt.show() when done
    """
    ax = _get_axes(ax)
    if outlines is not None:
        plot_outline(outlines, ax=ax)

    for tree in trees:
        for upper, lower in tree.iter_branches():
            ax.plot([upper[0], lower[0]], [upper[1], lower[1]], color='#1f77b4', linewidth=1.2)

        root = tree.location
        ax.scatter([root[0]], [root[1]], c='red', s=20, zorder=10)

        groundings = [node.last_grounding_location for node in tree.iter_nodes()
                      if node.last_grounding_location is not None]
        if groundings:
            pts = np.array(groundings)
            ax.scatter(pts[:, 0], pts[:, 1], c='green', marker='x', s=15, zorder=9)

    if show:
        plt.show()
    return ax


def plot_polylines(lines: List[np.ndarray], outlines=None, ax=None, show: bool = False):
    """
    Draw the polylines made by convert_to_polylines, each one in its own color
    """
    ax = _get_axes(ax)
    if outlines is not None:
        plot_outline(outlines, ax=ax)

    for pts in lines:
        if len(pts) == 0:
            continue
        ax.plot(*np.asarray(pts).T, linewidth=1.5)
        ax.scatter([pts[0][0]], [pts[0][1]], c='black', s=8, zorder=10)

    if show:
        plt.show()
    return ax
