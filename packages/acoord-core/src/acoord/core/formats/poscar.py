"""VASP POSCAR/CONTCAR codec."""

from __future__ import annotations

import logging
import re

import numpy as np

from ..atom import Atom
from ..base import InvalidGeometryError, MalformedInputError
from ..elements import DUMMY_SYMBOL, parse_element
from ..structure import Structure
from ..unit_cell import UnitCell
from .base import (
    FormatTag,
    StructureCodec,
    group_by_element,
    parse_element_token,
    parse_float,
    parse_vector,
    split_lines,
)

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Created by ACoord"

_INTEGER = re.compile(r"^[-+]?\d+$")
_TITLE_SYMBOL = re.compile(r"[A-Z][a-z]?")


def _data_tokens(line: str) -> list[str]:
    """Split a line after removing a trailing ``!`` comment."""
    return line.split("!", 1)[0].split()


class POSCARCodec(StructureCodec):
    """
    VASP 4 and VASP 5 POSCAR files.

    Supports uniform, volume (negative) and per-axis scale factors, optional
    species lines and selective dynamics. Atoms are read in file order.
    """

    format = FormatTag.POSCAR

    def parse(self, text: str) -> Structure:
        """
        Parse a POSCAR.

        Raises:
            MalformedInputError: If the header is truncated, the lattice or
                counts cannot be read, or no atoms are found
        """
        lines = split_lines(text)
        if len(lines) < 8:
            raise MalformedInputError(
                "Invalid POSCAR format: header is truncated", section="header"
            )

        title = lines[0].strip()
        scale = self._parse_scale(lines[1])
        raw_vectors = []
        for line in lines[2:5]:
            vector = parse_vector(_data_tokens(line))
            if vector is None:
                raise MalformedInputError(
                    "Invalid POSCAR format: invalid lattice vector", section="lattice"
                )
            raw_vectors.append(vector)
        lattice, coordinate_scale = self._apply_scale(np.array(raw_vectors), scale)

        index = 5
        tokens = _data_tokens(lines[index])
        if not tokens:
            raise MalformedInputError(
                "Invalid POSCAR format: missing element/count line", section="counts"
            )
        if all(_INTEGER.match(token) for token in tokens):
            elements: list[str] = []
            count_tokens = tokens
        else:
            elements = [
                symbol
                for symbol in (parse_element_token(token.strip("'\"")) for token in tokens)
                if symbol is not None
            ]
            index += 1
            count_tokens = _data_tokens(lines[index]) if index < len(lines) else []

        counts = [int(token) for token in count_tokens if _INTEGER.match(token)]
        counts = [count for count in counts if count >= 0]
        if not counts:
            raise MalformedInputError(
                "Invalid POSCAR format: missing atom counts", section="counts"
            )
        elements = self._complete_elements(elements, counts, title)

        index += 1
        selective = False
        if index < len(lines) and lines[index].strip()[:1].lower() == "s":
            selective = True
            index += 1

        cartesian = False
        mode_tokens = _data_tokens(lines[index]) if index < len(lines) else []
        if parse_vector(mode_tokens) is None:
            cartesian = bool(mode_tokens) and mode_tokens[0][0].lower() in ("c", "k")
            index += 1

        try:
            unit_cell = UnitCell.from_lattice_vectors(lattice)
        except InvalidGeometryError as e:
            raise MalformedInputError(
                f"Invalid POSCAR lattice: {e}", section="lattice"
            ) from e

        structure = Structure(name=title or "Untitled")
        structure.set_unit_cell(unit_cell)

        symbols = [
            element
            for element, count in zip(elements, counts, strict=True)
            for _ in range(count)
        ]
        for line in lines[index:]:
            if len(structure.atoms) >= len(symbols):
                break
            parts = _data_tokens(line)
            position = parse_vector(parts)
            if position is None:
                if parts:
                    logger.debug("Skipping invalid POSCAR coordinate line: %r", line)
                continue
            if cartesian:
                position = np.array(position) * coordinate_scale
            else:
                position = unit_cell.fractional_to_cartesian(position)
            atom = Atom.at(symbols[len(structure.atoms)], position)
            if selective and len(parts) >= 6:
                atom.fixed = all(flag.upper().startswith("F") for flag in parts[3:6])
            structure.add_atom(atom)

        if not structure.atoms:
            raise MalformedInputError(
                "Invalid POSCAR format: no atoms found", section="coordinates"
            )
        if len(structure.atoms) < len(symbols):
            logger.warning(
                "POSCAR declares %d atoms but %d were read",
                len(symbols),
                len(structure.atoms),
            )
        return structure

    @staticmethod
    def _parse_scale(line: str) -> list[float]:
        values = [parse_float(token) for token in _data_tokens(line)[:3]]
        values = [value for value in values if value is not None]
        if len(values) == 1:
            if abs(values[0]) < 1e-12:
                raise MalformedInputError(
                    "Invalid POSCAR format: zero scaling factor", section="scale"
                )
            return values
        if len(values) == 3:
            if any(value <= 0 for value in values):
                raise MalformedInputError(
                    "Invalid POSCAR format: anisotropic scaling must be positive",
                    section="scale",
                )
            return values
        raise MalformedInputError(
            "Invalid POSCAR format: scaling factor must be 1 or 3 values",
            section="scale",
        )

    @staticmethod
    def _apply_scale(
        vectors: np.ndarray, scale: list[float]
    ) -> tuple[np.ndarray, np.ndarray]:
        """Return the scaled lattice and the per-axis factor for cartesian input."""
        if len(scale) == 3:
            factors = np.array(scale)
            return vectors * factors, factors

        factor = scale[0]
        if factor < 0:
            volume = abs(float(np.linalg.det(vectors)))
            if volume < 1e-12:
                raise MalformedInputError(
                    "Invalid POSCAR lattice vectors", section="lattice"
                )
            factor = float(np.cbrt(-factor / volume))
        return vectors * factor, np.full(3, factor)

    @staticmethod
    def _complete_elements(elements: list[str], counts: list[int], title: str) -> list[str]:
        if len(elements) < len(counts):
            from_title: list[str] = []
            for candidate in _TITLE_SYMBOL.findall(title):
                symbol = parse_element(candidate)
                if symbol and symbol not in from_title:
                    from_title.append(symbol)
            if len(from_title) >= len(counts):
                elements = from_title
        elements = elements[: len(counts)]
        return elements + [DUMMY_SYMBOL] * (len(counts) - len(elements))

    def serialize(self, structure: Structure) -> str:
        periodic = structure.is_crystal and structure.unit_cell is not None
        lattice = structure.unit_cell.lattice_vectors() if periodic else np.eye(3)

        lines = [structure.name.strip() or DEFAULT_TITLE, "1.0"]
        for vector in lattice:
            lines.append("  ".join(f"{value:.10f}" for value in vector))

        groups = group_by_element(structure.atoms)
        lines.append(" ".join(groups))
        lines.append(" ".join(str(len(atoms)) for atoms in groups.values()))

        has_fixed = any(atom.fixed for atom in structure.atoms)
        if has_fixed:
            lines.append("Selective dynamics")
        lines.append("Direct" if periodic else "Cartesian")

        for atoms in groups.values():
            for atom in atoms:
                if periodic:
                    u, v, w = structure.unit_cell.cartesian_to_fractional(atom.position)
                else:
                    u, v, w = atom.position
                row = f"{u:.10f}  {v:.10f}  {w:.10f}"
                if has_fixed:
                    row += "  F  F  F" if atom.fixed else "  T  T  T"
                lines.append(row)

        return "\n".join(lines) + "\n"
