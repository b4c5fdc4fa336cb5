"""Unit tests for UnitCell lattice geometry."""

import numpy as np
import pytest
from pydantic import ValidationError

from acoord.core import InvalidGeometryError, UnitCell


class TestLatticeVectors:
    """Test lattice vector construction."""

    def test_cubic(self):
        """Test a cubic cell gives a scaled identity matrix."""
        cell = UnitCell(a=3.0, b=3.0, c=3.0)

        assert np.allclose(cell.lattice_vectors(), np.eye(3) * 3.0)
        assert cell.volume == pytest.approx(27.0)

    def test_default_cell(self):
        """Test the default cell is a 1 A cube."""
        cell = UnitCell()

        assert cell.parameters == (1.0, 1.0, 1.0, 90.0, 90.0, 90.0)

    def test_hexagonal(self):
        """Test b lies in the x-y plane at gamma from a."""
        cell = UnitCell(a=3.0, b=3.0, c=5.0, gamma=120.0)
        vectors = cell.lattice_vectors()

        assert np.allclose(vectors[0], [3.0, 0.0, 0.0])
        assert np.allclose(vectors[1], [-1.5, 3.0 * np.sqrt(3) / 2, 0.0])
        assert np.allclose(vectors[2], [0.0, 0.0, 5.0])
        assert cell.volume == pytest.approx(9.0 * 5.0 * np.sqrt(3) / 2)

    def test_angles_reproduced(self, triclinic_cell):
        """Test the vectors reproduce the cell angles."""
        a, b, c = triclinic_cell.lattice_vectors()

        def angle(u, v):
            return np.degrees(np.arccos(np.dot(u, v) / np.linalg.norm(u) / np.linalg.norm(v)))

        assert angle(b, c) == pytest.approx(78.0)
        assert angle(a, c) == pytest.approx(85.0)
        assert angle(a, b) == pytest.approx(101.0)
        assert np.linalg.norm(c) == pytest.approx(6.7)


class TestCoordinateTransforms:
    """Test fractional and cartesian conversion."""

    def test_round_trip_single(self, triclinic_cell):
        """Test a single vector converts back to itself."""
        frac = np.array([0.1, 0.25, 0.8])
        cart = triclinic_cell.fractional_to_cartesian(frac)

        assert cart.shape == (3,)
        assert np.allclose(triclinic_cell.cartesian_to_fractional(cart), frac)

    def test_round_trip_batch(self, triclinic_cell):
        """Test (N, 3) arrays convert row by row."""
        frac = np.array([[0.0, 0.0, 0.0], [0.5, 0.5, 0.5], [1.0, 0.2, 0.3]])
        cart = triclinic_cell.fractional_to_cartesian(frac)

        assert cart.shape == (3, 3)
        assert np.allclose(cart[1], 0.5 * triclinic_cell.lattice_vectors().sum(axis=0))
        assert np.allclose(triclinic_cell.cartesian_to_fractional(cart), frac)


class TestFromLatticeVectors:
    """Test cells built from explicit vectors."""

    def test_fcc_primitive(self):
        """Test lengths, angles and orientation of an FCC primitive cell."""
        vectors = [[0.0, 2.0, 2.0], [2.0, 0.0, 2.0], [2.0, 2.0, 0.0]]
        cell = UnitCell.from_lattice_vectors(vectors)

        assert cell.a == pytest.approx(2.0 * np.sqrt(2))
        assert cell.alpha == pytest.approx(60.0)
        assert cell.beta == pytest.approx(60.0)
        assert cell.gamma == pytest.approx(60.0)
        assert np.allclose(cell.lattice_vectors(), vectors)
        assert cell.volume == pytest.approx(16.0)

    def test_coplanar_vectors_rejected(self):
        """Test coplanar vectors raise InvalidGeometryError."""
        with pytest.raises(InvalidGeometryError):
            UnitCell.from_lattice_vectors([[1, 0, 0], [0, 1, 0], [1, 1, 0]])

    def test_zero_vector_rejected(self):
        """Test zero-length vectors raise InvalidGeometryError."""
        with pytest.raises(InvalidGeometryError):
            UnitCell.from_lattice_vectors([[0, 0, 0], [0, 1, 0], [0, 0, 1]])


class TestValidation:
    """Test invalid cells are rejected."""

    def test_incompatible_angles(self):
        """Test angles that cannot close a cell raise InvalidGeometryError."""
        with pytest.raises(InvalidGeometryError):
            UnitCell(a=1.0, b=1.0, c=1.0, alpha=170.0, beta=10.0, gamma=10.0)

    @pytest.mark.parametrize(
        "kwargs", [{"a": 0.0}, {"b": -1.0}, {"alpha": 0.0}, {"gamma": 180.0}]
    )
    def test_out_of_range_parameters(self, kwargs):
        """Test non-positive lengths and out-of-range angles fail validation."""
        with pytest.raises(ValidationError):
            UnitCell(**kwargs)

    def test_cell_is_immutable(self):
        """Test cells cannot be modified in place."""
        cell = UnitCell()
        with pytest.raises(ValidationError):
            cell.a = 2.0


class TestScaledAndClone:
    """Test derived cells."""

    def test_scaled(self, triclinic_cell):
        """Test scaling multiplies edges and keeps angles."""
        scaled = triclinic_cell.scaled(2, 3, 1)

        assert scaled.a == pytest.approx(8.2)
        assert scaled.b == pytest.approx(15.9)
        assert scaled.c == pytest.approx(6.7)
        assert scaled.alpha == triclinic_cell.alpha
        assert np.allclose(
            scaled.lattice_vectors(),
            triclinic_cell.lattice_vectors() * np.array([[2], [3], [1]]),
        )

    def test_scaled_keeps_explicit_orientation(self):
        """Test explicit vectors are scaled row by row."""
        vectors = np.array([[0.0, 2.0, 2.0], [2.0, 0.0, 2.0], [2.0, 2.0, 0.0]])
        scaled = UnitCell.from_lattice_vectors(vectors).scaled(1, 2, 1)

        assert np.allclose(scaled.lattice_vectors()[1], [4.0, 0.0, 4.0])

    def test_clone_and_to_dict(self, triclinic_cell):
        """Test clones compare equal and export parameters."""
        assert triclinic_cell.clone() == triclinic_cell
        assert triclinic_cell.to_dict()["gamma"] == 101.0

    def test_to_dict_keeps_source_orientation(self):
        """Test a cell rebuilt from its dict maps fractions to the same positions."""
        vectors = np.array([[0.0, 3.0, 0.0], [-3.0, 0.0, 0.0], [0.0, 0.0, 3.0]])
        cell = UnitCell.from_lattice_vectors(vectors)

        data = cell.to_dict()
        rebuilt = UnitCell(**data)

        assert np.allclose(data["vectors"], vectors)
        assert np.allclose(rebuilt.cartesian_to_fractional([0.0, 1.5, 0.0]), [0.5, 0.0, 0.0])
