"""ABACUS STRU codec."""

from __future__ import annotations

import logging
from enum import Enum

import numpy as np

from ..atom import Atom
from ..base import InvalidGeometryError, MalformedInputError
from ..elements import get_atomic_mass
from ..structure import Structure
from ..unit_cell import UnitCell
from ..units import ANGSTROM_TO_BOHR, BOHR_TO_ANGSTROM
from .base import (
    FormatTag,
    StructureCodec,
    group_by_element,
    parse_element_token,
    parse_float,
    parse_int,
    parse_vector,
    split_lines,
)

logger = logging.getLogger(__name__)

SECTION_HEADERS = (
    "ATOMIC_SPECIES",
    "NUMERICAL_ORBITAL",
    "LATTICE_CONSTANT",
    "LATTICE_VECTORS",
    "LATTICE_PARAMETERS",
    "ATOMIC_POSITIONS",
)


class StruCoordinateMode(str, Enum):
    """Coordinate conventions of the ATOMIC_POSITIONS section."""

    DIRECT = "direct"
    CARTESIAN = "cartesian"
    CARTESIAN_AU = "cartesian_au"
    CARTESIAN_ANGSTROM = "cartesian_angstrom"
    CARTESIAN_ANGSTROM_CENTER_XYZ = "cartesian_angstrom_center_xyz"
    CARTESIAN_ANGSTROM_CENTER_XY = "cartesian_angstrom_center_xy"
    CARTESIAN_ANGSTROM_CENTER_XZ = "cartesian_angstrom_center_xz"
    CARTESIAN_ANGSTROM_CENTER_YZ = "cartesian_angstrom_center_yz"

    @classmethod
    def from_token(cls, token: str) -> StruCoordinateMode:
        """
        Resolve a mode token by case-insensitive prefix.

        Raises:
            MalformedInputError: If the token names no known mode
        """
        lowered = token.strip().lower()
        for mode in _MATCH_ORDER:
            if lowered.startswith(mode.value):
                return mode
        raise MalformedInputError(
            f"Invalid STRU format: unknown coordinate type {token!r}",
            section="ATOMIC_POSITIONS",
        )

    @property
    def center(self) -> tuple[float, float, float] | None:
        """Fractional origin offset for centered angstrom modes."""
        return _CENTER_OFFSETS.get(self)


_MATCH_ORDER = (
    StruCoordinateMode.DIRECT,
    StruCoordinateMode.CARTESIAN_AU,
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XYZ,
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XY,
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XZ,
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_YZ,
    StruCoordinateMode.CARTESIAN_ANGSTROM,
    StruCoordinateMode.CARTESIAN,
)

_CENTER_OFFSETS = {
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XYZ: (0.5, 0.5, 0.5),
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XY: (0.5, 0.5, 0.0),
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_XZ: (0.5, 0.0, 0.5),
    StruCoordinateMode.CARTESIAN_ANGSTROM_CENTER_YZ: (0.0, 0.5, 0.5),
}


def _clean(line: str) -> str:
    return line.split("//", 1)[0].strip()


def parse_move_flags(tokens: list[str]) -> list[int] | None:
    """
    Movement flags following the coordinates.

    Accepts a bare ``x y z`` triple or the triple after an ``m`` keyword.
    Returns None when neither form holds three 0/1 values.
    """

    def triple(values: list[str]) -> list[int] | None:
        flags = [parse_int(value) for value in values]
        if len(flags) == 3 and all(flag in (0, 1) for flag in flags):
            return flags
        return None

    if len(tokens) >= 3 and tokens[0].lower() != "m":
        flags = triple(tokens[:3])
        if flags is not None:
            return flags
    lowered = [token.lower() for token in tokens]
    if "m" in lowered:
        start = lowered.index("m") + 1
        return triple(tokens[start : start + 3])
    return None


def split_sections(lines: list[str]) -> dict[str, list[str]]:
    """Group comment-free, non-blank lines under their section header."""
    sections: dict[str, list[str]] = {}
    current = None
    for raw in lines:
        line = _clean(raw)
        if not line:
            continue
        if line.upper() in SECTION_HEADERS:
            current = line.upper()
            sections.setdefault(current, [])
        elif current is not None:
            sections[current].append(line)
        else:
            logger.debug("Ignoring STRU line outside any section: %r", raw)
    return sections


class STRUCodec(StructureCodec):
    """
    ABACUS structure files.

    Lattice vectors are given in units of LATTICE_CONSTANT (Bohr). Positions
    may be direct, in lattice-constant units, in Bohr, or in Angstrom with an
    optional centered origin.
    """

    format = FormatTag.STRU

    def parse(self, text: str) -> Structure:
        """
        Parse a STRU file.

        Raises:
            MalformedInputError: If ATOMIC_POSITIONS is missing, the coordinate
                type is unknown, or direct coordinates lack a lattice
        """
        sections = split_sections(split_lines(text))
        if "ATOMIC_POSITIONS" not in sections:
            raise MalformedInputError(
                "Invalid STRU format: missing ATOMIC_POSITIONS section",
                section="ATOMIC_POSITIONS",
            )

        lattice_constant = None
        constant_lines = sections.get("LATTICE_CONSTANT", [])
        if constant_lines:
            lattice_constant = parse_float(constant_lines[0].split()[0])

        lattice = None
        vector_lines = sections.get("LATTICE_VECTORS", [])
        vectors = [parse_vector(line.split()) for line in vector_lines[:3]]
        if len(vectors) == 3 and all(vector is not None for vector in vectors):
            if lattice_constant is not None:
                lattice = np.array(vectors) * lattice_constant * BOHR_TO_ANGSTROM
            else:
                logger.debug("LATTICE_VECTORS given without LATTICE_CONSTANT")

        structure = Structure()
        unit_cell = None
        if lattice is not None:
            try:
                unit_cell = UnitCell.from_lattice_vectors(lattice)
            except InvalidGeometryError as e:
                raise MalformedInputError(
                    f"Invalid STRU lattice: {e}", section="LATTICE_VECTORS"
                ) from e
            structure.set_unit_cell(unit_cell)

        position_lines = sections["ATOMIC_POSITIONS"]
        if not position_lines:
            raise MalformedInputError(
                "Invalid STRU format: missing coordinate type",
                section="ATOMIC_POSITIONS",
            )
        mode = StruCoordinateMode.from_token(position_lines[0].split()[0])
        if mode is StruCoordinateMode.DIRECT and unit_cell is None:
            raise MalformedInputError(
                "Invalid STRU format: Direct coordinates require LATTICE_VECTORS",
                section="LATTICE_VECTORS",
            )

        for atom in self._read_groups(position_lines[1:], mode, unit_cell, lattice_constant):
            structure.add_atom(atom)
        return structure

    def _read_groups(
        self,
        lines: list[str],
        mode: StruCoordinateMode,
        unit_cell: UnitCell | None,
        lattice_constant: float | None,
    ) -> list[Atom]:
        atoms = []
        index = 0
        while index + 2 < len(lines):
            element = parse_element_token(lines[index].split()[0])
            count = parse_int(lines[index + 2].split()[0])
            index += 3
            if count is None or count < 0:
                logger.debug("Skipping STRU group with invalid count: %r", lines[index - 1])
                continue
            block = lines[index : index + count]
            index += count
            if element is None:
                logger.debug("Skipping STRU group with unknown element")
                continue

            for line in block:
                tokens = line.split()
                position = parse_vector(tokens)
                if position is None:
                    logger.debug("Skipping invalid STRU position: %r", line)
                    continue
                flags = parse_move_flags(tokens[3:])
                atom = Atom.at(
                    element, self._to_cartesian(position, mode, unit_cell, lattice_constant)
                )
                atom.fixed = flags is not None and not any(flags)
                atoms.append(atom)
        return atoms

    @staticmethod
    def _to_cartesian(
        position: list[float],
        mode: StruCoordinateMode,
        unit_cell: UnitCell | None,
        lattice_constant: float | None,
    ) -> np.ndarray:
        vector = np.array(position)
        if mode is StruCoordinateMode.DIRECT:
            return unit_cell.fractional_to_cartesian(vector)
        if mode is StruCoordinateMode.CARTESIAN_AU:
            return vector * BOHR_TO_ANGSTROM
        if mode is StruCoordinateMode.CARTESIAN:
            scale = lattice_constant * BOHR_TO_ANGSTROM if lattice_constant else 1.0
            return vector * scale
        if mode.center is not None and unit_cell is not None:
            return vector + unit_cell.fractional_to_cartesian(mode.center)
        return vector

    def serialize(self, structure: Structure) -> str:
        groups = group_by_element(structure.atoms)
        periodic = structure.is_crystal and structure.unit_cell is not None

        lines = ["ATOMIC_SPECIES"]
        for element in groups:
            lines.append(f"{element}  {get_atomic_mass(element):.3f}  {element}.upf")
        lines.extend(["", "LATTICE_CONSTANT", f"{ANGSTROM_TO_BOHR:.12f}", ""])

        if periodic:
            lines.append("LATTICE_VECTORS")
            for x, y, z in structure.unit_cell.lattice_vectors():
                lines.append(f"{x:.12f}  {y:.12f}  {z:.12f}")
            lines.append("")

        lines.append("ATOMIC_POSITIONS")
        lines.append("Direct" if periodic else "Cartesian_angstrom")
        for element, atoms in groups.items():
            lines.extend(["", element, "0.0", str(len(atoms))])
            for atom in atoms:
                if periodic:
                    x, y, z = structure.unit_cell.cartesian_to_fractional(atom.position)
                else:
                    x, y, z = atom.position
                flags = "0 0 0" if atom.fixed else "1 1 1"
                lines.append(f"{x:.12f}  {y:.12f}  {z:.12f}  {flags}")

        return "\n".join(lines) + "\n"
