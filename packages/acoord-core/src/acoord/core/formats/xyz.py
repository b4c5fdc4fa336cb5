"""XYZ and extended-XYZ codec with multi-frame trajectory support."""

from __future__ import annotations

import logging
import re

import numpy as np

from ..atom import Atom
from ..base import InvalidGeometryError, MalformedInputError
from ..structure import Structure
from ..unit_cell import UnitCell
from .base import FormatTag, StructureCodec, parse_element_token, parse_vector, split_lines

logger = logging.getLogger(__name__)

_LATTICE_PATTERN = re.compile(r'Lattice\s*=\s*"([^"]+)"', re.IGNORECASE)
_PROPERTIES_PATTERN = re.compile(r"Properties\s*=\s*(\S+)", re.IGNORECASE)
_PBC_PATTERN = re.compile(r'pbc\s*=\s*"[^"]*"', re.IGNORECASE)
_COUNT_LINE = re.compile(r"^\s*([+-]?\d+)")


class XYZCodec(StructureCodec):
    """
    Plain and extended XYZ.

    The count line is advisory: a frame ends after the declared number of
    lines, and lines that are not ``element x y z`` are skipped. An extended
    XYZ ``Lattice="..."`` entry in the comment makes the frame periodic.
    """

    format = FormatTag.XYZ

    def parse(self, text: str) -> Structure:
        return self.parse_trajectory(text)[0]

    def parse_trajectory(self, text: str) -> list[Structure]:
        """
        Parse every count-delimited frame.

        Raises:
            MalformedInputError: If the first frame has no valid count line
        """
        lines = split_lines(text)
        if lines and not lines[-1]:
            lines.pop()
        frames = []
        i = 0

        while i < len(lines):
            while i < len(lines) and not lines[i].strip():
                i += 1
            if i >= len(lines):
                break

            count_match = _COUNT_LINE.match(lines[i])
            atom_count = int(count_match.group(1)) if count_match else -1
            if atom_count < 0:
                if not frames:
                    raise MalformedInputError(
                        "Invalid XYZ format: first line must be atom count",
                        section="atom count",
                    )
                logger.debug("Stopping trajectory at non-count line %d", i + 1)
                break
            if i + 1 >= len(lines):
                logger.debug("Count line %d has no comment line", i + 1)
                break

            comment = lines[i + 1]
            start = i + 2
            block = lines[start : start + atom_count]
            frames.append(self._parse_frame(comment, block, atom_count))
            i = start + atom_count

        if not frames:
            raise MalformedInputError(
                "Invalid XYZ format: no frame found", section="atom count"
            )
        return frames

    def _parse_frame(self, comment: str, block: list[str], atom_count: int) -> Structure:
        structure = Structure(name=self._name_from_comment(comment))

        lattice = self._lattice_from_comment(comment)
        if lattice is not None:
            try:
                structure.set_unit_cell(UnitCell.from_lattice_vectors(lattice))
            except InvalidGeometryError:
                logger.warning("Ignoring degenerate extended XYZ lattice")

        species_index, position_index = self._columns_from_comment(comment)
        for line in block:
            tokens = line.split()
            if len(tokens) < 4 or len(tokens) < max(species_index + 1, position_index + 3):
                logger.debug("Skipping short XYZ line: %r", line)
                continue
            element = parse_element_token(tokens[species_index])
            position = parse_vector(tokens[position_index : position_index + 3])
            if element is None or position is None:
                logger.debug("Skipping invalid XYZ line: %r", line)
                continue
            structure.add_atom(Atom.at(element, position))

        if len(structure.atoms) < atom_count:
            logger.warning(
                "XYZ frame declares %d atoms but %d were read",
                atom_count,
                len(structure.atoms),
            )
        return structure

    @staticmethod
    def _name_from_comment(comment: str) -> str:
        name = _LATTICE_PATTERN.sub("", comment)
        name = _PROPERTIES_PATTERN.sub("", name)
        name = _PBC_PATTERN.sub("", name).strip()
        return name or "Untitled"

    @staticmethod
    def _lattice_from_comment(comment: str) -> np.ndarray | None:
        match = _LATTICE_PATTERN.search(comment)
        if match is None:
            return None
        tokens = match.group(1).split()
        if len(tokens) != 9:
            return None
        rows = [parse_vector(tokens[k : k + 3]) for k in (0, 3, 6)]
        if any(row is None for row in rows):
            return None
        return np.array(rows)

    @staticmethod
    def _columns_from_comment(comment: str) -> tuple[int, int]:
        """Return (species column, first position column)."""
        match = _PROPERTIES_PATTERN.search(comment)
        if match is None:
            return 0, 1

        parts = match.group(1).split(":")
        species_index = position_index = -1
        cursor = 0
        for k in range(0, len(parts) - 2, 3):
            name = parts[k].lower()
            try:
                width = int(parts[k + 2])
            except ValueError:
                continue
            if name in ("species", "element"):
                species_index = cursor
            elif name == "pos":
                position_index = cursor
            cursor += width

        if species_index < 0 or position_index < 0:
            return 0, 1
        return species_index, position_index

    def serialize(self, structure: Structure) -> str:
        return self.serialize_trajectory([structure])

    def serialize_trajectory(self, structures: list[Structure]) -> str:
        """Serialize frames back to back."""
        return "\n".join(self._serialize_frame(structure) for structure in structures)

    def _serialize_frame(self, structure: Structure) -> str:
        comment = structure.name or "Structure"
        if structure.is_crystal and structure.unit_cell is not None:
            lattice = " ".join(
                f"{value:.10f}" for value in structure.unit_cell.lattice_vectors().flat
            )
            comment = (
                f'{comment} Lattice="{lattice}" '
                'Properties=species:S:1:pos:R:3 pbc="T T T"'
            )

        lines = [str(len(structure.atoms)), comment]
        for atom in structure.atoms:
            lines.append(f"{atom.element}  {atom.x:.10f}  {atom.y:.10f}  {atom.z:.10f}")
        return "\n".join(lines) + "\n"
