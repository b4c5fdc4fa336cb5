"""Per-element reference data for bond inference, mass weighting and display."""

from __future__ import annotations

import math

from ase.data import atomic_masses, chemical_symbols, covalent_radii, vdw_radii
from ase.data.colors import jmol_colors
from pydantic import BaseModel, Field

DEFAULT_ATOMIC_MASS = 1.0
DEFAULT_COVALENT_RADIUS = 1.5
DEFAULT_VDW_RADIUS = 2.0
DEFAULT_COLOR = "#C0C0C0"
DUMMY_SYMBOL = "X"

# H-H at 0.74 A must bond within the 1.1 tolerance.
_COVALENT_RADIUS_OVERRIDES = {"H": 0.37}


class ElementInfo(BaseModel):
    """Reference data for one chemical element."""

    symbol: str = Field(description="Chemical symbol")
    atomic_number: int = Field(ge=1, description="Atomic number")
    atomic_mass: float = Field(gt=0, description="Standard atomic mass in amu")
    covalent_radius: float = Field(gt=0, description="Covalent radius in Angstrom")
    vdw_radius: float = Field(gt=0, description="Van der Waals radius in Angstrom")
    color: str = Field(description="Display color as #RRGGBB")


def _to_hex(rgb) -> str:
    red, green, blue = (int(round(channel * 255)) for channel in rgb)
    return f"#{red:02X}{green:02X}{blue:02X}"


def _build_table() -> dict[str, ElementInfo]:
    table = {}
    for number, symbol in enumerate(chemical_symbols):
        if number == 0:
            continue
        vdw = float(vdw_radii[number]) if number < len(vdw_radii) else math.nan
        table[symbol] = ElementInfo(
            symbol=symbol,
            atomic_number=number,
            atomic_mass=float(atomic_masses[number]),
            covalent_radius=_COVALENT_RADIUS_OVERRIDES.get(
                symbol, float(covalent_radii[number])
            ),
            vdw_radius=DEFAULT_VDW_RADIUS if math.isnan(vdw) else vdw,
            color=(
                _to_hex(jmol_colors[number])
                if number < len(jmol_colors)
                else DEFAULT_COLOR
            ),
        )
    return table


ELEMENT_DATA: dict[str, ElementInfo] = _build_table()


def parse_element(token: str) -> str | None:
    """
    Normalize an element token to its canonical symbol.

    Accepts exact symbols, any letter case (``"FE"``, ``"fe"``) and the dummy
    symbol ``X``. Returns None for anything else.
    """
    candidate = token.strip()
    if not candidate:
        return None
    if candidate in ELEMENT_DATA or candidate == DUMMY_SYMBOL:
        return candidate
    normalized = candidate[0].upper() + candidate[1:].lower()
    if normalized in ELEMENT_DATA or normalized == DUMMY_SYMBOL:
        return normalized
    return None


def symbol_from_atomic_number(number: int) -> str | None:
    """Return the symbol for an atomic number, or None when out of range."""
    if 1 <= number < len(chemical_symbols):
        return chemical_symbols[number]
    return None


def get_element_info(symbol: str) -> ElementInfo | None:
    """Look up reference data, or None for unknown and dummy symbols."""
    parsed = parse_element(symbol)
    if parsed is None:
        return None
    return ELEMENT_DATA.get(parsed)


def get_covalent_radius(symbol: str) -> float:
    """Covalent radius in Angstrom, 1.5 for unknown elements."""
    info = get_element_info(symbol)
    return info.covalent_radius if info else DEFAULT_COVALENT_RADIUS


def get_atomic_mass(symbol: str) -> float:
    """Atomic mass in amu, 1.0 for unknown elements."""
    info = get_element_info(symbol)
    return info.atomic_mass if info else DEFAULT_ATOMIC_MASS


def get_color(symbol: str) -> str:
    info = get_element_info(symbol)
    return info.color if info else DEFAULT_COLOR
