"""
Data resources for pyOED.

Contents
--------

- ``organ_parameters.json``:
  Default per-organ response model parameters (PlateauHall threshold,
  LinExp alpha, Competition coefficients and number of fractions) for
  Stomach, Colon, Liver, Lungs, Bladder, Thyroid and Prostate.
  Loaded by :func:`~pyoed.io.data_registry.load_default_organ_parameters`
  and wrapped by :meth:`~pyoed.oedtable.core.OrganParameterTable.from_default`.

  The Competition coefficients are zero in the default table, so the
  Competition model yields NaN for these organs until the coefficients are supplied.
"""
