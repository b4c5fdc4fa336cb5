"""Codec interface and shared parsing helpers for structure file formats."""

from __future__ import annotations

import logging
import math
import re
from abc import ABC, abstractmethod
from collections.abc import Iterable
from enum import Enum

from ..atom import Atom
from ..elements import parse_element, symbol_from_atomic_number
from ..structure import Structure

logger = logging.getLogger(__name__)

_LEADING_LETTERS = re.compile(r"[A-Za-z]+")


class FormatTag(str, Enum):
    """Supported structure file formats."""

    XYZ = "xyz"
    CIF = "cif"
    POSCAR = "poscar"
    GJF = "gjf"
    ORCA = "orca"
    PDB = "pdb"
    STRU = "stru"


class StructureCodec(ABC):
    """Abstract parser/serializer pair for one file format."""

    format: FormatTag

    @abstractmethod
    def parse(self, text: str) -> Structure:
        """Parse file text into a Structure."""
        pass

    @abstractmethod
    def serialize(self, structure: Structure) -> str:
        """Serialize a Structure into file text."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def split_lines(text: str) -> list[str]:
    """Split text on LF or CRLF line endings."""
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def parse_float(token: str) -> float | None:
    """Parse a finite float, accepting Fortran 'd' exponents; None otherwise."""
    try:
        value = float(token.replace("d", "e").replace("D", "E"))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_int(token: str) -> int | None:
    try:
        return int(token)
    except ValueError:
        return None


def parse_vector(tokens: list[str]) -> list[float] | None:
    """Parse the first three tokens as a finite 3-vector."""
    if len(tokens) < 3:
        return None
    values = [parse_float(token) for token in tokens[:3]]
    if any(value is None for value in values):
        return None
    return values


def parse_element_token(token: str) -> str | None:
    """
    Resolve an element from a file token.

    Accepts plain symbols, atomic numbers and labels whose leading letters
    form a symbol (``C1``, ``Fe2+``, ``C(Fragment=1)``).
    """
    symbol = parse_element(token)
    if symbol is not None:
        return symbol
    number = parse_int(token)
    if number is not None:
        return symbol_from_atomic_number(number)
    match = _LEADING_LETTERS.match(token)
    if match is None:
        return None
    letters = match.group(0)
    return parse_element(letters[:2]) or parse_element(letters[:1])


def atom_from_tokens(tokens: list[str], line: str = "") -> Atom | None:
    """
    Build an atom from ``element x y z`` tokens.

    Returns None, logging at debug level, when the line cannot be used.
    """
    if len(tokens) < 4:
        logger.debug("Skipping short coordinate line: %r", line)
        return None
    element = parse_element_token(tokens[0])
    position = parse_vector(tokens[1:4])
    if element is None or position is None:
        logger.debug("Skipping invalid coordinate line: %r", line)
        return None
    return Atom.at(element, position)


def group_by_element(atoms: Iterable[Atom]) -> dict[str, list[Atom]]:
    """Group atoms by element, keeping first-appearance order."""
    groups: dict[str, list[Atom]] = {}
    for atom in atoms:
        groups.setdefault(atom.element, []).append(atom)
    return groups
