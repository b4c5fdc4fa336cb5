"""Length unit constants shared by the codecs and converters."""

from __future__ import annotations

import numpy as np

BOHR_TO_ANGSTROM = 0.52917721092
ANGSTROM_TO_BOHR = 1.0 / BOHR_TO_ANGSTROM

_CONVERSION_FACTORS = {
    ("angstrom", "bohr"): ANGSTROM_TO_BOHR,
    ("bohr", "angstrom"): BOHR_TO_ANGSTROM,
    ("angstrom", "angstrom"): 1.0,
    ("bohr", "bohr"): 1.0,
}


def convert_units(
    values: float | np.ndarray, from_unit: str, to_unit: str
) -> float | np.ndarray:
    """
    Convert lengths between Angstrom and Bohr.

    Args:
        values: Scalar or array of lengths
        from_unit: Source unit ('angstrom', 'bohr')
        to_unit: Target unit ('angstrom', 'bohr')

    Returns:
        Converted scalar or array

    Raises:
        ValueError: If either unit is not supported
    """
    factor = _CONVERSION_FACTORS.get((from_unit.lower(), to_unit.lower()))
    if factor is None:
        raise ValueError(f"Unsupported unit conversion: {from_unit} -> {to_unit}")

    if np.isscalar(values):
        return float(values) * factor
    return np.asarray(values, dtype=float) * factor
