"""
Loading of the bundled organ parameter table.

The default table is stored as ``organ_parameters.json`` inside
:mod:`pyoed.data` and resolved with :mod:`importlib.resources`, with a fallback
to the source tree for local development.
"""

import os
import json
from typing import Dict


def load_default_organ_parameters() -> Dict[str, Dict[str, float]]:
    """
    Load the default per-organ response model parameters.

    :returns: Mapping of organ name to a dictionary of parameter values.
    :rtype: dict[str, dict[str, float]]

    :raises FileNotFoundError: If organ_parameters.json cannot be found.
    :raises json.JSONDecodeError: If the file content is not valid JSON.
    """
    try:
        from importlib.resources import files
        path = files("pyoed.data").joinpath("organ_parameters.json")
        with path.open("r", encoding="utf-8") as f:
            content = json.load(f)
    except (ModuleNotFoundError, FileNotFoundError):
        local_path = os.path.abspath(
            os.path.join(os.path.dirname(__file__), "..", "data", "organ_parameters.json")
        )
        with open(local_path, "r", encoding="utf-8") as f:
            content = json.load(f)

    return content["organs"]
