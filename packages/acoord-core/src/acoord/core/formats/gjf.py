"""Gaussian input (GJF/COM) codec."""

from __future__ import annotations

import logging
import re

import numpy as np

from ..base import InvalidGeometryError, MalformedInputError
from ..settings import GaussianSettings
from ..structure import Structure
from ..unit_cell import UnitCell
from .base import FormatTag, StructureCodec, atom_from_tokens, parse_vector, split_lines

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Gaussian input"

_INTEGER = re.compile(r"^[-+]?\d+$")


class GJFCodec(StructureCodec):
    """
    Gaussian cartesian input.

    Reads the title, charge/multiplicity, atom lines with optional freeze
    codes, and ``TV`` translation vectors for periodic systems.
    """

    format = FormatTag.GJF

    def __init__(self, settings: GaussianSettings | None = None):
        self.settings = settings or GaussianSettings()

    def parse(self, text: str) -> Structure:
        """
        Parse a Gaussian input file.

        Raises:
            MalformedInputError: If no charge/multiplicity line is found
        """
        lines = [line.strip() for line in split_lines(text)]
        index = 0

        # link0 and route section end at the first blank line
        while index < len(lines) and lines[index]:
            index += 1
        while index < len(lines) and not lines[index]:
            index += 1

        title = lines[index] if index < len(lines) else ""
        index += 1
        while index < len(lines) and not lines[index]:
            index += 1

        charge_line = -1
        for i in range(index, len(lines)):
            parts = lines[i].split()
            if not parts:
                break
            if len(parts) >= 2 and _INTEGER.match(parts[0]) and _INTEGER.match(parts[1]):
                charge_line = i
                break
        if charge_line < 0:
            raise MalformedInputError(
                "Invalid GJF format: missing charge/multiplicity",
                section="charge/multiplicity",
            )

        structure = Structure(name=title or DEFAULT_TITLE)
        translation_vectors = []
        for line in lines[charge_line + 1 :]:
            if not line:
                break
            parts = line.split()
            if parts[0].upper() == "TV":
                vector = parse_vector(parts[1:4])
                if vector is None:
                    logger.debug("Skipping invalid TV line: %r", line)
                else:
                    translation_vectors.append(vector)
                continue

            freeze_code = None
            if len(parts) >= 5 and _INTEGER.match(parts[1]):
                freeze_code = int(parts[1])
                parts = [parts[0], *parts[2:]]
            atom = atom_from_tokens(parts, line)
            if atom is None:
                continue
            atom.fixed = freeze_code == -1
            structure.add_atom(atom)

        if len(translation_vectors) == 3:
            try:
                structure.set_unit_cell(
                    UnitCell.from_lattice_vectors(np.array(translation_vectors))
                )
            except InvalidGeometryError:
                logger.warning("Ignoring degenerate Gaussian translation vectors")
        elif translation_vectors:
            logger.debug(
                "Ignoring %d TV lines; three are needed for a 3D cell",
                len(translation_vectors),
            )
        return structure

    def serialize(self, structure: Structure) -> str:
        settings = self.settings
        lines = [
            settings.route,
            "",
            structure.name.strip() or DEFAULT_TITLE,
            "",
            f"{settings.charge} {settings.multiplicity}",
        ]

        has_fixed = any(atom.fixed for atom in structure.atoms)
        for atom in structure.atoms:
            coordinates = f"{atom.x:.10f}  {atom.y:.10f}  {atom.z:.10f}"
            if has_fixed:
                code = -1 if atom.fixed else 0
                lines.append(f"{atom.element}  {code}  {coordinates}")
            else:
                lines.append(f"{atom.element}  {coordinates}")

        if structure.is_crystal and structure.unit_cell is not None:
            for x, y, z in structure.unit_cell.lattice_vectors():
                lines.append(f"TV  {x:.10f}  {y:.10f}  {z:.10f}")

        return "\n".join(lines) + "\n\n"
