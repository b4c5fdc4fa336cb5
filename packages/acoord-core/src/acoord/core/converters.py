"""Conversion between acoord structures and ASE, PyMatGen and QCSchema objects."""

from __future__ import annotations

import logging

import numpy as np
from ase import Atoms
from ase.constraints import FixAtoms
from pymatgen.core import Molecule as PyMatGenMolecule
from pymatgen.core import Structure as PyMatGenStructure
from pymatgen.io.ase import AseAtomsAdaptor
from qcelemental.models import Molecule as QCMolecule

from .atom import Atom
from .base import InvalidGeometryError
from .structure import Structure
from .unit_cell import UnitCell
from .units import ANGSTROM_TO_BOHR, BOHR_TO_ANGSTROM, convert_units

logger = logging.getLogger(__name__)

__all__ = [
    "to_ase_atoms",
    "from_ase_atoms",
    "to_pymatgen_molecule",
    "to_pymatgen_structure",
    "to_qcschema",
    "from_qcschema",
    "convert_units",
]


def to_ase_atoms(structure: Structure) -> Atoms:
    """
    Convert a Structure to ASE Atoms.

    Args:
        structure: Structure to convert

    Returns:
        ASE Atoms with the cell and periodicity of the structure and a
        FixAtoms constraint on fixed atoms
    """
    atoms = Atoms(symbols=structure.symbols, positions=structure.positions)
    if structure.is_crystal and structure.unit_cell is not None:
        atoms.set_cell(structure.unit_cell.lattice_vectors())
        atoms.set_pbc(True)

    fixed = [index for index, atom in enumerate(structure.atoms) if atom.fixed]
    if fixed:
        atoms.set_constraint(FixAtoms(indices=fixed))
    return atoms


def from_ase_atoms(atoms: Atoms, name: str | None = None) -> Structure:
    """
    Convert ASE Atoms to a Structure.

    The cell is kept only when the Atoms object is periodic along all three
    axes and its cell is non-degenerate.
    """
    fixed: set[int] = set()
    for constraint in atoms.constraints:
        if isinstance(constraint, FixAtoms):
            fixed.update(int(index) for index in constraint.get_indices())

    structure = Structure(name=name or atoms.get_chemical_formula() or "Untitled")
    for index, (symbol, position) in enumerate(
        zip(atoms.get_chemical_symbols(), atoms.get_positions(), strict=False)
    ):
        structure.add_atom(Atom.at(symbol, position, fixed=index in fixed))

    if all(atoms.get_pbc()):
        try:
            structure.set_unit_cell(UnitCell.from_lattice_vectors(atoms.cell.array))
        except InvalidGeometryError:
            logger.debug("Dropping degenerate cell from ASE Atoms")
    return structure


def to_pymatgen_molecule(structure: Structure) -> PyMatGenMolecule:
    """Convert a Structure to a PyMatGen Molecule, dropping any cell."""
    atoms = to_ase_atoms(structure)
    atoms.set_pbc(False)
    return AseAtomsAdaptor.get_molecule(atoms)


def to_pymatgen_structure(structure: Structure) -> PyMatGenStructure:
    """
    Convert a periodic Structure to a PyMatGen Structure.

    Raises:
        InvalidGeometryError: If the structure has no unit cell
    """
    if not structure.is_crystal or structure.unit_cell is None:
        raise InvalidGeometryError(
            "PyMatGen Structure conversion requires a crystal structure"
        )
    return AseAtomsAdaptor.get_structure(to_ase_atoms(structure))


def to_qcschema(
    structure: Structure, charge: int = 0, multiplicity: int = 1
) -> QCMolecule:
    """
    Convert a Structure to a QCElemental Molecule (QCSchema).

    Args:
        structure: Structure to convert
        charge: Molecular charge
        multiplicity: Spin multiplicity

    Returns:
        QCElemental Molecule with geometry in Bohr
    """
    geometry = structure.positions.flatten() * ANGSTROM_TO_BOHR
    return QCMolecule(
        symbols=structure.symbols,
        geometry=geometry.tolist(),
        name=structure.name or None,
        molecular_charge=charge,
        molecular_multiplicity=multiplicity,
        fix_com=True,
        fix_orientation=True,
    )


def from_qcschema(molecule: QCMolecule, name: str | None = None) -> Structure:
    """Convert a QCElemental Molecule to a Structure in Angstrom."""
    positions = np.array(molecule.geometry).reshape(-1, 3) * BOHR_TO_ANGSTROM
    structure = Structure(name=name or molecule.name or "Untitled")
    for symbol, position in zip(molecule.symbols, positions, strict=True):
        structure.add_atom(Atom.at(str(symbol), position))
    return structure
