"""Protein Data Bank (PDB) codec for CRYST1 and ATOM/HETATM records."""

from __future__ import annotations

import logging

from ..atom import Atom
from ..base import InvalidGeometryError
from ..elements import parse_element
from ..structure import Structure
from ..unit_cell import UnitCell
from .base import FormatTag, StructureCodec, parse_float, split_lines

logger = logging.getLogger(__name__)

_CELL_COLUMNS = ((6, 15), (15, 24), (24, 33), (33, 40), (40, 47), (47, 54))
_COORDINATE_COLUMNS = ((30, 38), (38, 46), (46, 54))
_BASE36_DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def hybrid36_serial(value: int, width: int = 5) -> str:
    """
    Encode an atom serial for a fixed-width PDB field.

    Values that fit are written in decimal; larger ones continue in upper-case
    hybrid-36 (``99999`` is followed by ``A0000``).

    Raises:
        ValueError: If the value is negative or beyond the hybrid-36 range
    """
    if value < 0:
        raise ValueError(f"Atom serial must be non-negative: {value}")
    if value < 10**width:
        return str(value)
    shifted = value - 10**width + 10 * 36 ** (width - 1)
    if shifted >= 36**width:
        raise ValueError(f"Atom serial {value} does not fit in {width} columns")
    digits = []
    while shifted:
        shifted, remainder = divmod(shifted, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def _element_from_record(line: str) -> str | None:
    """Element from columns 77-78, else from the atom name in columns 13-16."""
    symbol = parse_element(line[76:78]) if len(line) >= 77 else None
    if symbol is not None:
        return symbol
    name = line[12:16]
    # two-letter symbols start in column 13, one-letter symbols in column 14
    if name[:1].isalpha():
        return parse_element(name[:2].strip()) or parse_element(name[:1])
    return parse_element(name[1:2])


class PDBCodec(StructureCodec):
    """Fixed-column PDB records; everything except coordinates is ignored."""

    format = FormatTag.PDB

    def parse(self, text: str) -> Structure:
        structure = Structure()

        for line in split_lines(text):
            record = line[:6].strip().upper()
            if record == "TITLE" and structure.name == "Untitled":
                title = line[10:].strip()
                if title:
                    structure.name = title
            elif record == "CRYST1":
                values = [parse_float(line[start:end]) for start, end in _CELL_COLUMNS]
                if any(value is None for value in values):
                    logger.debug("Skipping invalid CRYST1 record: %r", line)
                    continue
                a, b, c, alpha, beta, gamma = values
                try:
                    cell = UnitCell(a=a, b=b, c=c, alpha=alpha, beta=beta, gamma=gamma)
                except (ValueError, InvalidGeometryError):
                    logger.debug("Skipping unusable CRYST1 cell: %r", line)
                    continue
                structure.set_unit_cell(cell)
            elif record in ("ATOM", "HETATM"):
                position = [parse_float(line[start:end]) for start, end in _COORDINATE_COLUMNS]
                element = _element_from_record(line)
                if element is None or any(value is None for value in position):
                    logger.debug("Skipping invalid %s record: %r", record, line)
                    continue
                structure.add_atom(Atom.at(element, position))

        return structure

    def serialize(self, structure: Structure) -> str:
        lines = []
        if structure.name and structure.name != "Untitled":
            lines.append(f"TITLE     {structure.name}")

        if structure.is_crystal and structure.unit_cell is not None:
            cell = structure.unit_cell
            lines.append(
                f"CRYST1{cell.a:9.3f}{cell.b:9.3f}{cell.c:9.3f}"
                f"{cell.alpha:7.2f}{cell.beta:7.2f}{cell.gamma:7.2f} P 1           1"
            )

        for serial, atom in enumerate(structure.atoms, start=1):
            name = f"{atom.element:>2}"
            lines.append(
                f"{'ATOM':<6}{hybrid36_serial(serial):>5} {name:<4} {'MOL':>3} A{1:>4}    "
                f"{atom.x:8.3f}{atom.y:8.3f}{atom.z:8.3f}{1.0:6.2f}{0.0:6.2f}"
                f"          {atom.element:>2}"
            )

        lines.append("END")
        return "\n".join(lines) + "\n"
