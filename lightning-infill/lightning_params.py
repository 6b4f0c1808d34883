"""
Numeric parameters for propagating lightning trees from one layer to the next
"""

import json
import logging
from numbers import Real
from pathlib import Path
from typing import Dict

from outline_locator import LOCATOR_CELL_SIZE

logger = logging.getLogger(__name__)

# all distances are in the same unit as the layer coordinates
DEFAULT_PARAMS = {
    "prune_distance": 0.0,              # length cut from every branch end per layer
    "smooth_magnitude": 0.0,            # how far straightening may move a node
    "max_remove_colinear_dist": 0.0,    # max deviation for removing a point from a straight run
    "line_width": 0.0,                  # width of the printed lines, for junction overlap removal
    "supporting_radius": 0.0,           # max distance an unsupported point may be bridged
    "locator_cell_size": LOCATOR_CELL_SIZE,
}


def load_params(params: Dict = None) -> Dict:
    """
    Merge user supplied parameters over the defaults

    Params:
        params: Dict, default None - parameters to override, any key of DEFAULT_PARAMS

    Returns:
        merged: Dict - a complete parameter dictionary
    """
    merged = dict(DEFAULT_PARAMS)
    if not params:
        return merged

    unknown = sorted(set(params) - set(DEFAULT_PARAMS))
    if unknown:
        raise ValueError(f"Unknown lightning parameters: {', '.join(unknown)}")

    for key, value in params.items():
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ValueError(f"Parameter {key} must be a number, got {value!r}")
        if value < 0:
            raise ValueError(f"Parameter {key} must not be negative, got {value}")
        merged[key] = float(value)

    if merged["locator_cell_size"] <= 0:
        raise ValueError("Parameter locator_cell_size must be positive")

    return merged


def load_params_file(path) -> Dict:
    """
    Load parameters from a JSON file containing a single object
    """
    path = Path(path)
    logger.debug(f"Loading lightning parameters from {path}")
    with open(path, "r", encoding="utf-8") as f:
        params = json.load(f)
    if not isinstance(params, dict):
        raise ValueError(f"Expected a JSON object in {path}")
    return load_params(params)
