"""Unit tests for the ABACUS STRU codec."""

import numpy as np
import pytest

from acoord.core import BOHR_TO_ANGSTROM, MalformedInputError, STRUCodec, StruCoordinateMode
from acoord.core.formats.stru import parse_move_flags, split_sections
from acoord.core.units import ANGSTROM_TO_BOHR

LATTICE = """ATOMIC_SPECIES
Si 28.085 Si.upf   // pseudopotential

LATTICE_CONSTANT
10.0 // Bohr

LATTICE_VECTORS
1.0 0.0 0.0
0.5 0.8 0.0
0.0 0.0 1.2

"""


def stru(mode, *positions, element="Si"):
    body = "\n".join(positions)
    return f"{LATTICE}ATOMIC_POSITIONS\n{mode}\n\n{element}\n0.0\n{len(positions)}\n{body}\n"


class TestStruHelpers:
    """Test section splitting, movement flags and coordinate modes."""

    def test_split_sections(self):
        """Test comments and blank lines are dropped."""
        sections = split_sections(LATTICE.splitlines())

        assert sections["ATOMIC_SPECIES"] == ["Si 28.085 Si.upf"]
        assert sections["LATTICE_CONSTANT"] == ["10.0"]
        assert len(sections["LATTICE_VECTORS"]) == 3

    @pytest.mark.parametrize(
        "tokens, expected",
        [
            (["0", "0", "0"], [0, 0, 0]),
            (["1", "0", "1"], [1, 0, 1]),
            (["m", "0", "0", "0"], [0, 0, 0]),
            (["m", "1", "1", "0", "mag", "1.0"], [1, 1, 0]),
            (["v", "1", "0", "0"], None),
            (["0", "2", "0"], None),
            ([], None),
        ],
    )
    def test_parse_move_flags(self, tokens, expected):
        """Test bare and keyword movement flags."""
        assert parse_move_flags(tokens) == expected

    @pytest.mark.parametrize(
        "token, mode",
        [
            ("Direct", StruCoordinateMode.DIRECT),
            ("Cartesian", StruCoordinateMode.CARTESIAN),
            ("CARTESIAN_AU", StruCoordinateMode.CARTESIAN_AU),
            ("Cartesian_angstrom", StruCoordinateMode.CARTESIAN_ANGSTROM),
            ("Cartesian_angstrom_center_xy", StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XY),
            ("Cartesian_angstrom_center_xyz", StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XYZ),
        ],
    )
    def test_coordinate_mode_from_token(self, token, mode):
        """Test longer mode names win over their prefixes."""
        assert StruCoordinateMode.from_token(token) is mode

    def test_unknown_coordinate_mode(self):
        """Test unknown modes are rejected."""
        with pytest.raises(MalformedInputError):
            StruCoordinateMode.from_token("Crystal")

    def test_center_offsets(self):
        """Test only centered modes carry an origin offset."""
        assert StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_YZ.center == (0.0, 0.5, 0.5)
        assert StruCoordinateMode.DIRECT.center is None


class TestStruParse:
    """Test STRU parsing."""

    def test_direct_positions(self):
        """Test direct coordinates go through the Bohr-scaled lattice."""
        structure = STRUCodec().parse(stru("Direct", "0.5 0.5 0.5 1 1 1"))
        expected = 0.5 * np.array([1.5, 0.8, 1.2]) * 10.0 * BOHR_TO_ANGSTROM

        assert structure.is_crystal
        assert structure.symbols == ["Si"]
        assert np.allclose(structure.atoms[0].position, expected)
        assert structure.unit_cell.a == pytest.approx(10.0 * BOHR_TO_ANGSTROM)

    def test_cartesian_in_lattice_constant_units(self):
        """Test plain Cartesian positions are scaled by the lattice constant."""
        structure = STRUCodec().parse(stru("Cartesian", "0.1 0.0 0.0"))

        assert np.allclose(structure.atoms[0].position, [BOHR_TO_ANGSTROM, 0.0, 0.0])

    def test_cartesian_au(self):
        """Test Bohr positions are converted to Angstrom."""
        structure = STRUCodec().parse(stru("Cartesian_au", "2.0 0.0 0.0"))

        assert np.allclose(structure.atoms[0].position, [2.0 * BOHR_TO_ANGSTROM, 0.0, 0.0])

    def test_centered_angstrom(self):
        """Test centered modes shift by half the selected lattice vectors."""
        structure = STRUCodec().parse(stru("Cartesian_angstrom_center_xy", "0.0 0.0 1.0"))
        vectors = structure.unit_cell.lattice_vectors()
        expected = np.array([0.0, 0.0, 1.0]) + 0.5 * (vectors[0] + vectors[1])

        assert np.allclose(structure.atoms[0].position, expected)

    def test_movement_flags(self):
        """Test atoms are fixed only when all flags are zero."""
        structure = STRUCodec().parse(
            stru(
                "Direct",
                "0.0 0.0 0.0 0 0 0",
                "0.1 0.0 0.0 m 0 0 0",
                "0.2 0.0 0.0 1 0 1",
                "0.3 0.0 0.0 v 1 0 0",
                "0.4 0.0 0.0",
            )
        )

        assert [atom.fixed for atom in structure.atoms] == [True, True, False, False, False]

    def test_multiple_species(self):
        """Test groups are read in order."""
        text = (
            f"{LATTICE}ATOMIC_POSITIONS\nDirect\n"
            "Si\n0.0\n2\n0 0 0\n0.25 0.25 0.25\n"
            "O\n0.0\n1\n0.5 0.5 0.5\n"
        )
        structure = STRUCodec().parse(text)

        assert structure.symbols == ["Si", "Si", "O"]

    def test_molecule_without_lattice(self):
        """Test angstrom positions without a lattice give a molecule."""
        text = "ATOMIC_POSITIONS\nCartesian_angstrom\nH\n0.0\n2\n0 0 0\n0 0 0.74\n"
        structure = STRUCodec().parse(text)

        assert not structure.is_crystal
        assert structure.atoms[1].z == pytest.approx(0.74)

    @pytest.mark.parametrize(
        "text, section",
        [
            (LATTICE, "ATOMIC_POSITIONS"),
            (f"{LATTICE}ATOMIC_POSITIONS\n", "ATOMIC_POSITIONS"),
            (f"{LATTICE}ATOMIC_POSITIONS\nFractional\n", "ATOMIC_POSITIONS"),
            ("ATOMIC_POSITIONS\nDirect\nH\n0.0\n1\n0 0 0\n", "LATTICE_VECTORS"),
            (
                "LATTICE_CONSTANT\n1.0\nLATTICE_VECTORS\n1 0 0\n2 0 0\n0 0 1\n"
                "ATOMIC_POSITIONS\nDirect\nH\n0.0\n1\n0 0 0\n",
                "LATTICE_VECTORS",
            ),
        ],
    )
    def test_malformed_input(self, text, section):
        """Test missing sections, unknown modes and unusable lattices."""
        with pytest.raises(MalformedInputError) as excinfo:
            STRUCodec().parse(text)

        assert excinfo.value.section == section


class TestStruSerialize:
    """Test STRU output."""

    def test_periodic_layout(self, rocksalt):
        """Test species, Angstrom lattice vectors and direct positions."""
        rocksalt.atoms[1].fixed = True
        text = STRUCodec().serialize(rocksalt)
        lines = text.splitlines()

        assert lines[0] == "ATOMIC_SPECIES"
        assert lines[1].split()[0] == "Na"
        assert lines[1].endswith("Na.upf")
        assert f"{ANGSTROM_TO_BOHR:.12f}" in lines
        assert "LATTICE_VECTORS" in lines
        assert "Direct" in lines
        assert lines[-1].endswith("0 0 0")
        assert lines[-1].startswith("0.500000000000")

    def test_molecule_layout(self, water):
        """Test molecules are written in Cartesian_angstrom without a lattice."""
        text = STRUCodec().serialize(water)

        assert "LATTICE_VECTORS" not in text
        assert "Cartesian_angstrom" in text
        parsed = STRUCodec().parse(text)
        assert not parsed.is_crystal
        assert np.allclose(parsed.positions, water.positions)
