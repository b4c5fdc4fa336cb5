"""Molecular and crystal structure aggregate with geometry operations."""

from __future__ import annotations

import logging
from typing import Any

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from .atom import Atom
from .base import InvalidGeometryError, generate_id
from .elements import get_atomic_mass, get_covalent_radius
from .unit_cell import UnitCell

logger = logging.getLogger(__name__)

BOND_TOLERANCE = 1.1

BondPair = tuple[str, str]


def normalize_bond_pair(atom_id1: str, atom_id2: str) -> BondPair:
    """Order an atom-id pair so that it can be used as a bond key."""
    return (atom_id1, atom_id2) if atom_id1 < atom_id2 else (atom_id2, atom_id1)


class Bond(BaseModel):
    """A bond between two atoms, either inferred from distance or manual."""

    atom_id1: str = Field(description="First atom identifier")
    atom_id2: str = Field(description="Second atom identifier")
    distance: float = Field(description="Interatomic distance in Angstrom")
    manual: bool = Field(default=False, description="Added by the user")

    @property
    def key(self) -> BondPair:
        return normalize_bond_pair(self.atom_id1, self.atom_id2)

    def to_dict(self) -> dict[str, Any]:
        return {
            "atomId1": self.atom_id1,
            "atomId2": self.atom_id2,
            "distance": self.distance,
            "manual": self.manual,
        }


class Structure(BaseModel):
    """
    A molecule or crystal: an ordered list of atoms plus optional periodicity.

    Atom order is preserved from construction and insertion. A periodic
    structure always carries a unit cell.
    """

    id: str = Field(
        default_factory=lambda: generate_id("struct"),
        description="Stable identifier, unique within the session",
    )
    name: str = Field(default="Untitled", description="Human-readable name")
    atoms: list[Atom] = Field(default_factory=list, description="Atoms in order")
    unit_cell: UnitCell | None = Field(default=None, description="Periodic cell")
    is_crystal: bool = Field(default=False, description="Periodic structure")
    supercell: tuple[int, int, int] = Field(
        default=(1, 1, 1), description="Replication that produced this structure"
    )
    manual_bonds: list[BondPair] = Field(
        default_factory=list, description="User-added bonds as atom-id pairs"
    )
    suppressed_auto_bonds: list[BondPair] = Field(
        default_factory=list, description="Inferred bonds removed by the user"
    )

    class Config:
        """Pydantic configuration."""

        arbitrary_types_allowed = True

    @field_validator("atoms")
    @classmethod
    def validate_atoms(cls, v: list[Atom]) -> list[Atom]:
        """Take private copies of the atoms and reject duplicate ids."""
        seen = set()
        for atom in v:
            if atom.id in seen:
                raise ValueError(f"Duplicate atom id: {atom.id}")
            seen.add(atom.id)
        return [atom.model_copy() for atom in v]

    @model_validator(mode="after")
    def ensure_unit_cell(self) -> Structure:
        """Install a default cell on periodic structures built without one."""
        if self.is_crystal and self.unit_cell is None:
            self.unit_cell = UnitCell()
        return self

    def __len__(self) -> int:
        return len(self.atoms)

    def __repr__(self) -> str:
        kind = "crystal" if self.is_crystal else "molecule"
        return f"Structure(name={self.name!r}, atoms={len(self.atoms)}, {kind})"

    @property
    def positions(self) -> np.ndarray:
        """Cartesian positions as an (N, 3) array."""
        if not self.atoms:
            return np.zeros((0, 3))
        return np.array([[atom.x, atom.y, atom.z] for atom in self.atoms])

    @property
    def symbols(self) -> list[str]:
        return [atom.element for atom in self.atoms]

    def set_unit_cell(self, unit_cell: UnitCell | None) -> None:
        """Attach or remove the unit cell, keeping ``is_crystal`` in sync."""
        self.unit_cell = unit_cell
        self.is_crystal = unit_cell is not None

    def add_atom(self, atom: Atom) -> None:
        """
        Append an atom.

        Raises:
            ValueError: If an atom with the same id is already present
        """
        if self.get_atom(atom.id) is not None:
            raise ValueError(f"Duplicate atom id: {atom.id}")
        self.atoms.append(atom)

    def remove_atom(self, atom_id: str) -> None:
        """Remove an atom and every manual or suppressed bond referencing it."""
        self.atoms = [atom for atom in self.atoms if atom.id != atom_id]
        self.manual_bonds = [
            pair for pair in self.manual_bonds if atom_id not in pair
        ]
        self.suppressed_auto_bonds = [
            pair for pair in self.suppressed_auto_bonds if atom_id not in pair
        ]

    def get_atom(self, atom_id: str) -> Atom | None:
        for atom in self.atoms:
            if atom.id == atom_id:
                return atom
        return None

    def add_manual_bond(self, atom_id1: str, atom_id2: str) -> None:
        """Add a user bond; unknown ids and self-bonds are ignored."""
        if atom_id1 == atom_id2:
            return
        if self.get_atom(atom_id1) is None or self.get_atom(atom_id2) is None:
            logger.debug("Ignoring manual bond with unknown atom id")
            return
        pair = normalize_bond_pair(atom_id1, atom_id2)
        self.suppressed_auto_bonds = [
            existing for existing in self.suppressed_auto_bonds if existing != pair
        ]
        if pair not in self.manual_bonds:
            self.manual_bonds.append(pair)

    def remove_bond(self, atom_id1: str, atom_id2: str) -> None:
        """Drop a manual bond and suppress the inferred bond for the pair."""
        pair = normalize_bond_pair(atom_id1, atom_id2)
        self.manual_bonds = [
            existing for existing in self.manual_bonds if existing != pair
        ]
        if pair not in self.suppressed_auto_bonds:
            self.suppressed_auto_bonds.append(pair)

    def has_manual_bond(self, atom_id1: str, atom_id2: str) -> bool:
        return normalize_bond_pair(atom_id1, atom_id2) in self.manual_bonds

    def get_bonds(self, tolerance: float = BOND_TOLERANCE) -> list[Bond]:
        """
        Infer bonds from covalent radii and append manual bonds.

        Two atoms are bonded when their distance is below the sum of their
        covalent radii times ``tolerance``. Unknown elements use 1.5 A.

        Args:
            tolerance: Multiplier applied to the summed radii

        Returns:
            Inferred bonds in atom order followed by manual bonds
        """
        bonds = []
        seen: set[BondPair] = set()
        suppressed = set(self.suppressed_auto_bonds)

        if len(self.atoms) > 1:
            positions = self.positions
            radii = np.array([get_covalent_radius(atom.element) for atom in self.atoms])
            rows, cols = np.triu_indices(len(self.atoms), k=1)
            distances = np.linalg.norm(positions[rows] - positions[cols], axis=1)
            cutoffs = (radii[rows] + radii[cols]) * tolerance

            for i, j, distance in zip(
                rows[distances < cutoffs],
                cols[distances < cutoffs],
                distances[distances < cutoffs],
                strict=True,
            ):
                atom1, atom2 = self.atoms[i], self.atoms[j]
                pair = normalize_bond_pair(atom1.id, atom2.id)
                if pair in suppressed or pair in seen:
                    continue
                bonds.append(
                    Bond(atom_id1=atom1.id, atom_id2=atom2.id, distance=float(distance))
                )
                seen.add(pair)

        for atom_id1, atom_id2 in self.manual_bonds:
            atom1, atom2 = self.get_atom(atom_id1), self.get_atom(atom_id2)
            if atom1 is None or atom2 is None:
                continue
            pair = normalize_bond_pair(atom1.id, atom2.id)
            if pair in seen:
                continue
            bonds.append(
                Bond(
                    atom_id1=atom1.id,
                    atom_id2=atom2.id,
                    distance=atom1.distance_to(atom2),
                    manual=True,
                )
            )
            seen.add(pair)

        return bonds

    def get_center_of_mass(self) -> np.ndarray:
        """Calculate center of mass."""
        if not self.atoms:
            return np.zeros(3)
        masses = np.array([get_atomic_mass(atom.element) for atom in self.atoms])
        return masses @ self.positions / masses.sum()

    def translate(self, vector: Any) -> None:
        """
        Rigidly translate every atom by ``vector``.

        Raises:
            ValueError: If the vector or any shifted position is not finite;
                no atom is moved in that case
        """
        shift = np.asarray(vector, dtype=float)
        if shift.shape != (3,) or not np.all(np.isfinite(shift)):
            raise ValueError(f"Translation vector must be three finite values: {vector!r}")
        shifted = self.positions + shift
        if not np.all(np.isfinite(shifted)):
            raise ValueError("Translation moves atoms to non-finite positions")
        for atom, (x, y, z) in zip(self.atoms, shifted, strict=True):
            atom.set_position(x, y, z)

    def center_at_origin(self) -> None:
        """Translate the structure so its center of mass sits at the origin."""
        self.translate(-self.get_center_of_mass())

    def generate_supercell(self, nx: int, ny: int, nz: int) -> Structure:
        """
        Replicate the structure along its lattice vectors.

        Args:
            nx, ny, nz: Positive repetition counts along a, b and c

        Returns:
            New periodic structure with nx*ny*nz copies of every atom

        Raises:
            InvalidGeometryError: If the structure is not periodic
            ValueError: If a repetition count is not a positive integer
        """
        if not self.is_crystal or self.unit_cell is None:
            raise InvalidGeometryError(
                "Supercell generation requires a crystal structure"
            )
        for count in (nx, ny, nz):
            if isinstance(count, bool) or not isinstance(count, (int, np.integer)):
                raise ValueError(f"Supercell multiplicity must be an integer: {count!r}")
            if count < 1:
                raise ValueError(f"Supercell multiplicity must be >= 1: {count}")

        a_vec, b_vec, c_vec = self.unit_cell.lattice_vectors()
        atoms = []
        for i in range(nx):
            for j in range(ny):
                for k in range(nz):
                    offset = i * a_vec + j * b_vec + k * c_vec
                    for atom in self.atoms:
                        atoms.append(
                            Atom.at(atom.element, atom.position + offset, fixed=atom.fixed)
                        )

        logger.debug(
            "Generated %dx%dx%d supercell with %d atoms", nx, ny, nz, len(atoms)
        )
        return Structure(
            name=f"{self.name}_supercell",
            atoms=atoms,
            unit_cell=self.unit_cell.scaled(nx, ny, nz),
            is_crystal=True,
            supercell=(int(nx), int(ny), int(nz)),
        )

    def clone(self) -> Structure:
        """Deep copy with new atom ids; bond pairs follow the new ids."""
        id_map = {}
        atoms = []
        for atom in self.atoms:
            copy = atom.clone()
            id_map[atom.id] = copy.id
            atoms.append(copy)

        def remap(pairs: list[BondPair]) -> list[BondPair]:
            return [
                normalize_bond_pair(id_map[a], id_map[b])
                for a, b in pairs
                if a in id_map and b in id_map
            ]

        return Structure(
            name=self.name,
            atoms=atoms,
            unit_cell=self.unit_cell.clone() if self.unit_cell else None,
            is_crystal=self.is_crystal,
            supercell=self.supercell,
            manual_bonds=remap(self.manual_bonds),
            suppressed_auto_bonds=remap(self.suppressed_auto_bonds),
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view for display layers."""
        return {
            "id": self.id,
            "name": self.name,
            "atoms": [atom.to_dict() for atom in self.atoms],
            "manualBonds": [list(pair) for pair in self.manual_bonds],
            "suppressedAutoBonds": [list(pair) for pair in self.suppressed_auto_bonds],
            "unitCell": self.unit_cell.to_dict() if self.unit_cell else None,
            "isCrystal": self.is_crystal,
            "supercell": list(self.supercell),
        }
