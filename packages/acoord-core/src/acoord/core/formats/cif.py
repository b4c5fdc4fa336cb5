"""Crystallographic Information File (CIF) codec."""

from __future__ import annotations

import fractions
import logging
import re
from collections.abc import Iterator

import numpy as np

from ..atom import Atom
from ..base import InvalidGeometryError, MalformedInputError
from ..settings import CifSettings
from ..structure import Structure
from ..unit_cell import UnitCell
from .base import FormatTag, StructureCodec, parse_element_token, parse_float, split_lines

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"""'([^']*)'|"([^"]*)"|(#.*)|(\S+)""")
_UNCERTAINTY = re.compile(r"\(\d+\)$")
_RESERVED = ("loop_", "data_", "global_", "save_", "stop_")
_SYMOP_TAGS = ("_symmetry_equiv_pos_as_xyz", "_space_group_symop_operation_xyz")

CifLoop = tuple[list[str], list[list[str]]]


def _scan_tokens(lines: list[str]) -> Iterator[tuple[str, bool]]:
    """Yield (value, quoted) tokens; semicolon text fields become one token."""
    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith(";"):
            chunks = [line[1:].strip()]
            i += 1
            while i < len(lines) and not lines[i].startswith(";"):
                chunks.append(lines[i].rstrip())
                i += 1
            i += 1
            yield "\n".join(chunks).strip(), True
            continue

        for match in _TOKEN.finditer(line):
            single, double, comment, bare = match.groups()
            if comment is not None:
                break
            if bare is not None:
                yield bare, False
            else:
                yield single if single is not None else double, True
        i += 1


def _is_keyword(value: str, quoted: bool) -> bool:
    if quoted:
        return False
    lowered = value.lower()
    return value.startswith("_") or lowered.startswith(_RESERVED)


def read_cif(text: str) -> tuple[str | None, dict[str, str], list[CifLoop]]:
    """
    Read a CIF into its block name, scalar tags and loops.

    Tag names are lower-cased. Data blocks are merged; the first value of a
    repeated tag wins.
    """
    tokens = list(_scan_tokens(split_lines(text)))
    block_name = None
    tags: dict[str, str] = {}
    loops: list[CifLoop] = []

    i = 0
    while i < len(tokens):
        value, quoted = tokens[i]
        lowered = value.lower()

        if not quoted and lowered.startswith("data_"):
            if block_name is None:
                block_name = value[5:] or None
            i += 1
        elif not quoted and lowered == "loop_":
            i += 1
            headers = []
            while i < len(tokens) and not tokens[i][1] and tokens[i][0].startswith("_"):
                headers.append(tokens[i][0].lower())
                i += 1
            values = []
            while i < len(tokens) and not _is_keyword(*tokens[i]):
                values.append(tokens[i][0])
                i += 1
            if headers:
                width = len(headers)
                if len(values) % width:
                    logger.debug("Dropping incomplete row in loop %s", headers[0])
                rows = [values[k : k + width] for k in range(0, len(values) - width + 1, width)]
                loops.append((headers, rows))
        elif not quoted and value.startswith("_"):
            if i + 1 < len(tokens) and not _is_keyword(*tokens[i + 1]):
                tags.setdefault(lowered, tokens[i + 1][0])
                i += 2
            else:
                i += 1
        else:
            logger.debug("Skipping stray CIF token %r", value)
            i += 1

    return block_name, tags, loops


def parse_cif_number(value: str | None) -> float | None:
    """Parse a CIF numeric value, dropping uncertainties such as ``5.4307(2)``."""
    if value is None:
        return None
    raw = value.strip()
    if raw in ("", ".", "?"):
        return None
    return parse_float(_UNCERTAINTY.sub("", raw))


def parse_symmetry_operation(operation: str) -> tuple[np.ndarray, np.ndarray]:
    """
    Parse an operation such as ``-x+1/2, y, z`` into (rotation, translation).

    Raises:
        ValueError: If the operation does not have three components
    """
    components = operation.replace("'", "").replace('"', "").lower().split(",")
    if len(components) != 3:
        raise ValueError(f"Invalid symmetry operation: {operation!r}")

    rotation = np.zeros((3, 3))
    translation = np.zeros(3)
    for row, component in enumerate(components):
        for term in component.replace(" ", "").replace("-", "+-").split("+"):
            if not term:
                continue
            for column, axis in enumerate("xyz"):
                if axis in term:
                    coefficient = term.replace(axis, "").replace("*", "")
                    if coefficient in ("", "+"):
                        rotation[row, column] += 1.0
                    elif coefficient == "-":
                        rotation[row, column] -= 1.0
                    else:
                        rotation[row, column] += float(fractions.Fraction(coefficient))
                    break
            else:
                translation[row] += float(fractions.Fraction(term))
    return rotation, translation


class CIFCodec(StructureCodec):
    """CIF reader for atom-site loops and a P 1 writer."""

    format = FormatTag.CIF

    def __init__(self, settings: CifSettings | None = None):
        self.settings = settings or CifSettings()

    def parse(self, text: str) -> Structure:
        """
        Parse cell parameters and the atom-site loop.

        Raises:
            MalformedInputError: If no atom-site loop with coordinates exists,
                or fractional coordinates are given without cell lengths
        """
        block_name, tags, loops = read_cif(text)
        unit_cell = self._unit_cell_from_tags(tags)

        site_loops = [
            (headers, rows)
            for headers, rows in loops
            if "_atom_site_fract_x" in headers or "_atom_site_cartn_x" in headers
        ]
        if not site_loops:
            raise MalformedInputError(
                "Invalid CIF: missing _atom_site loop with coordinates",
                section="_atom_site",
            )

        structure = Structure(name=block_name or "Untitled")
        if unit_cell is not None:
            structure.set_unit_cell(unit_cell)

        for headers, rows in site_loops:
            fractional = "_atom_site_fract_x" in headers
            if fractional and unit_cell is None:
                raise MalformedInputError(
                    "Invalid CIF: fractional coordinates require _cell_length_a/b/c",
                    section="_cell_length",
                )
            for atom in self._atoms_from_loop(headers, rows, unit_cell):
                structure.add_atom(atom)

        if self.settings.apply_symmetry and unit_cell is not None:
            operations = self._symmetry_operations(tags, loops)
            if operations:
                self._expand_symmetry(structure, operations)

        return structure

    @staticmethod
    def _unit_cell_from_tags(tags: dict[str, str]) -> UnitCell | None:
        lengths = [parse_cif_number(tags.get(f"_cell_length_{axis}")) for axis in "abc"]
        if any(length is None for length in lengths):
            return None
        angles = [
            parse_cif_number(tags.get(f"_cell_angle_{name}"))
            for name in ("alpha", "beta", "gamma")
        ]
        angles = [90.0 if angle is None else angle for angle in angles]
        try:
            return UnitCell(
                a=lengths[0],
                b=lengths[1],
                c=lengths[2],
                alpha=angles[0],
                beta=angles[1],
                gamma=angles[2],
            )
        except (ValueError, InvalidGeometryError) as e:
            raise MalformedInputError(
                f"Invalid CIF cell parameters: {e}", section="_cell"
            ) from e

    @staticmethod
    def _atoms_from_loop(
        headers: list[str], rows: list[list[str]], unit_cell: UnitCell | None
    ) -> list[Atom]:
        def column(name: str) -> int:
            return headers.index(name) if name in headers else -1

        type_index = column("_atom_site_type_symbol")
        label_index = column("_atom_site_label")
        if "_atom_site_fract_x" in headers:
            prefix = "_atom_site_fract_"
        else:
            prefix = "_atom_site_cartn_"
        coordinate_indices = [column(prefix + axis) for axis in "xyz"]
        if min(coordinate_indices) < 0:
            logger.debug("Atom-site loop lacks a full coordinate triple")
            return []

        atoms = []
        for row in rows:
            token = row[type_index] if type_index >= 0 else ""
            if token in ("", ".", "?") and label_index >= 0:
                token = row[label_index]
            element = parse_element_token(token) if token else None
            values = [parse_cif_number(row[index]) for index in coordinate_indices]
            if element is None or any(value is None for value in values):
                logger.debug("Skipping atom-site row %r", row)
                continue
            position = np.array(values)
            if prefix == "_atom_site_fract_":
                position = unit_cell.fractional_to_cartesian(position)
            atoms.append(Atom.at(element, position))
        return atoms

    @staticmethod
    def _symmetry_operations(tags: dict[str, str], loops: list[CifLoop]) -> list[str]:
        for headers, rows in loops:
            for tag in _SYMOP_TAGS:
                if tag in headers:
                    index = headers.index(tag)
                    return [row[index] for row in rows]
        for tag in _SYMOP_TAGS:
            if tag in tags:
                return [tags[tag]]
        return []

    def _expand_symmetry(self, structure: Structure, operations: list[str]) -> None:
        """Replace the atoms with their symmetry images, merging duplicates."""
        cell = structure.unit_cell
        lattice = cell.lattice_vectors()
        parsed = [parse_symmetry_operation(operation) for operation in operations]
        tolerance = self.settings.symmetry_tolerance

        expanded: list[Atom] = []
        kept_fractional: list[np.ndarray] = []
        for atom in structure.atoms:
            fractional = cell.cartesian_to_fractional(atom.position)
            for rotation, translation in parsed:
                image = np.mod(rotation @ fractional + translation, 1.0)
                duplicate = False
                for existing in kept_fractional:
                    delta = image - existing
                    delta -= np.round(delta)
                    if np.linalg.norm(delta @ lattice) < tolerance:
                        duplicate = True
                        break
                if duplicate:
                    continue
                kept_fractional.append(image)
                expanded.append(Atom.at(atom.element, image @ lattice))

        logger.debug(
            "Symmetry expansion: %d sites -> %d atoms", len(structure.atoms), len(expanded)
        )
        structure.atoms = expanded

    def serialize(self, structure: Structure) -> str:
        """Write a P 1 CIF with fractional sites, or cartesian sites without a cell."""
        block = re.sub(r"\s+", "_", structure.name.strip()) or "structure"
        lines = [f"data_{block}", ""]

        periodic = structure.is_crystal and structure.unit_cell is not None
        if periodic:
            cell = structure.unit_cell
            lines.extend(
                [
                    f"_cell_length_a    {cell.a:.8f}",
                    f"_cell_length_b    {cell.b:.8f}",
                    f"_cell_length_c    {cell.c:.8f}",
                    f"_cell_angle_alpha {cell.alpha:.8f}",
                    f"_cell_angle_beta  {cell.beta:.8f}",
                    f"_cell_angle_gamma {cell.gamma:.8f}",
                    "",
                    "_space_group_name_H-M_alt    'P 1'",
                    "_space_group_IT_number       1",
                    "",
                    "loop_",
                    "  _space_group_symop_operation_xyz",
                    "  'x, y, z'",
                    "",
                ]
            )
            axes = "fract"
            coordinates = cell.cartesian_to_fractional(structure.positions)
        else:
            axes = "Cartn"
            coordinates = structure.positions

        lines.extend(
            [
                "loop_",
                "  _atom_site_label",
                "  _atom_site_type_symbol",
                f"  _atom_site_{axes}_x",
                f"  _atom_site_{axes}_y",
                f"  _atom_site_{axes}_z",
            ]
        )
        for index, (atom, (u, v, w)) in enumerate(
            zip(structure.atoms, coordinates, strict=True), start=1
        ):
            lines.append(
                f"  {atom.element}{index}  {atom.element}  {u:.10f}  {v:.10f}  {w:.10f}"
            )
        return "\n".join(lines) + "\n"
