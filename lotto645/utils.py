"""
LOTTO645 Utilities
==================

JSON helpers shared by result objects and the HTTP layer.
"""

from typing import Any

import numpy as np


def convert_numpy_types(obj: Any) -> Any:
    """Convert numpy scalars/arrays (also inside dicts, lists and tuples) to native Python types"""
    if isinstance(obj, np.bool_):
        return bool(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, np.floating):
        return float(obj)
    elif isinstance(obj, np.ndarray):
        return obj.tolist()
    elif isinstance(obj, dict):
        return {convert_numpy_types(key): convert_numpy_types(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_numpy_types(item) for item in obj]
    return obj
