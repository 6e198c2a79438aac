"""
I/O submodule for pyOED.

DVH file parsing is left to the caller; this package only resolves the data
bundled with pyOED.

Modules
-------

- :mod:`data_registry`:
  :func:`~pyoed.io.data_registry.load_default_organ_parameters` loads the
  default per-organ parameter table shipped in :mod:`pyoed.data`.
"""

from .data_registry import load_default_organ_parameters

__all__ = ["load_default_organ_parameters"]
