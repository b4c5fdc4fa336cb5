"""Unit tests for the ORCA input codec."""

import numpy as np
import pytest

from acoord.core import MalformedInputError, ORCACodec, OrcaSettings

WATER_INP = """! B3LYP def2-SVP Opt
%pal nprocs 4 end

* xyz 0 1
O   0.000000   0.000000   0.117300
H   0.000000   0.757200  -0.469200

H   0.000000  -0.757200  -0.469200
*
"""


class TestOrcaParse:
    """Test ORCA input parsing."""

    def test_xyz_block(self):
        """Test atoms between '* xyz' and '*' are read, skipping blank lines."""
        structure = ORCACodec().parse(WATER_INP)

        assert structure.symbols == ["O", "H", "H"]
        assert np.allclose(structure.atoms[2].position, [0.0, -0.7572, -0.4692])
        assert not structure.is_crystal

    def test_block_keyword_case_insensitive(self):
        """Test '*XYZ' opens the block."""
        structure = ORCACodec().parse("! HF\n*XYZ 1 2\nHe 0 0 0\n*\n")

        assert structure.symbols == ["He"]

    @pytest.mark.parametrize(
        "text", ["! HF\nO 0 0 0\n", "! HF\n* xyzfile 0 1 water.xyz\n"]
    )
    def test_missing_block(self, text):
        """Test input without an inline xyz block is rejected."""
        with pytest.raises(MalformedInputError) as excinfo:
            ORCACodec().parse(text)

        assert excinfo.value.section == "* xyz"
        assert '"* xyz"' in str(excinfo.value)

    def test_invalid_lines_skipped(self):
        """Test unusable atom lines inside the block are ignored."""
        structure = ORCACodec().parse("* xyz 0 1\nC 0 0 0\nQ 1 1 1\nC 0 0\n*\n")

        assert len(structure) == 1


class TestOrcaSerialize:
    """Test ORCA input output."""

    def test_default_header(self, water):
        """Test the default method, resources and charge line."""
        lines = ORCACodec().serialize(water).splitlines()

        assert lines[0] == "! B3LYP D3 def2-SVP"
        assert lines[1] == "%maxcore     8192"
        assert lines[2] == "%pal nprocs   8 end"
        assert lines[3] == "* xyz 0 1"
        assert lines[-1] == "*"
        assert len(lines) == 4 + len(water) + 1

    def test_custom_settings(self, water):
        """Test settings flow into the header."""
        settings = OrcaSettings(
            method_line="PBE0 def2-TZVP", maxcore=2000, nprocs=2, charge=1, multiplicity=2
        )
        lines = ORCACodec(settings=settings).serialize(water).splitlines()

        assert lines[0] == "! PBE0 def2-TZVP"
        assert lines[1] == "%maxcore     2000"
        assert lines[2] == "%pal nprocs   2 end"
        assert lines[3] == "* xyz 1 2"

    def test_round_trip(self, water):
        """Test serialized input parses back to the same geometry."""
        codec = ORCACodec()
        parsed = codec.parse(codec.serialize(water))

        assert parsed.symbols == water.symbols
        assert np.allclose(parsed.positions, water.positions)
