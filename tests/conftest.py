"""Shared fixtures for acoord unit tests."""

import pytest

from acoord.core import Atom, Structure, UnitCell


@pytest.fixture
def water() -> Structure:
    """Water molecule in Angstrom."""
    return Structure(
        name="water",
        atoms=[
            Atom(element="O", x=0.0, y=0.0, z=0.1173),
            Atom(element="H", x=0.0, y=0.7572, z=-0.4692),
            Atom(element="H", x=0.0, y=-0.7572, z=-0.4692),
        ],
    )


@pytest.fixture
def rocksalt() -> Structure:
    """Two-atom cubic cell with Na at the origin and Cl at the body center."""
    cell = UnitCell(a=5.64, b=5.64, c=5.64)
    structure = Structure(name="NaCl", unit_cell=cell, is_crystal=True)
    structure.add_atom(Atom.at("Na", cell.fractional_to_cartesian([0.0, 0.0, 0.0])))
    structure.add_atom(Atom.at("Cl", cell.fractional_to_cartesian([0.5, 0.5, 0.5])))
    return structure


@pytest.fixture
def triclinic_cell() -> UnitCell:
    return UnitCell(a=4.1, b=5.3, c=6.7, alpha=78.0, beta=85.0, gamma=101.0)
