"""Serialize-then-parse checks across all codecs."""

import numpy as np
import pytest

from acoord.core import (
    Atom,
    FormatTag,
    Structure,
    UnitCell,
    get_codec,
    parse_structure,
    serialize_structure,
)

PERIODIC_FORMATS = [tag for tag in FormatTag if tag is not FormatTag.ORCA]


@pytest.fixture
def methane() -> Structure:
    """Methane with atoms grouped by element and three-decimal coordinates."""
    return Structure(
        name="methane",
        atoms=[
            Atom.at("C", [0.0, 0.0, 0.0]),
            Atom.at("H", [0.629, 0.629, 0.629]),
            Atom.at("H", [-0.629, -0.629, 0.629]),
            Atom.at("H", [-0.629, 0.629, -0.629]),
            Atom.at("H", [0.629, -0.629, -0.629]),
        ],
    )


@pytest.mark.parametrize("tag", list(FormatTag))
def test_molecule_round_trip(methane, tag):
    """Test elements and positions survive every format."""
    codec = get_codec(tag)
    parsed = codec.parse(codec.serialize(methane))

    assert parsed.symbols == methane.symbols
    assert np.allclose(parsed.positions, methane.positions, atol=1e-6)


@pytest.mark.parametrize("tag", PERIODIC_FORMATS)
def test_crystal_round_trip(rocksalt, tag):
    """Test periodic formats keep the cell and positions."""
    codec = get_codec(tag)
    parsed = codec.parse(codec.serialize(rocksalt))

    assert parsed.is_crystal
    assert parsed.symbols == rocksalt.symbols
    assert np.allclose(parsed.unit_cell.parameters, rocksalt.unit_cell.parameters, atol=1e-6)
    assert np.allclose(parsed.positions, rocksalt.positions, atol=1e-6)


def test_cif_to_poscar():
    """Test a CIF cell converts to POSCAR with the same fractional sites."""
    cell = UnitCell(a=3.0, b=4.0, c=5.0, alpha=90.0, beta=100.0, gamma=90.0)
    structure = Structure(name="mono", unit_cell=cell, is_crystal=True)
    structure.add_atom(Atom.at("Ti", cell.fractional_to_cartesian([0.1, 0.2, 0.3])))
    structure.add_atom(Atom.at("O", cell.fractional_to_cartesian([0.6, 0.7, 0.8])))

    from_cif = parse_structure(serialize_structure(structure, "cif"), "cif")
    from_poscar = parse_structure(serialize_structure(from_cif, "POSCAR"), "POSCAR")

    fractional = from_poscar.unit_cell.cartesian_to_fractional(from_poscar.positions)
    assert from_poscar.symbols == ["Ti", "O"]
    assert np.allclose(fractional, [[0.1, 0.2, 0.3], [0.6, 0.7, 0.8]], atol=1e-8)
    assert from_poscar.unit_cell.beta == pytest.approx(100.0)
