"""Base exceptions and shared identifiers for the acoord structure model."""

from __future__ import annotations

import itertools
import threading


class StructureError(Exception):
    """Base exception for structure model and file format errors."""

    pass


class UnsupportedFormatError(StructureError, ValueError):
    """Raised when no codec is registered for a requested format."""

    pass


class MalformedInputError(StructureError, ValueError):
    """Raised when a mandatory section or marker is missing from input text."""

    def __init__(self, message: str, section: str | None = None):
        super().__init__(message)
        self.section = section


class InvalidGeometryError(StructureError):
    """Raised when an operation needs periodic data the structure lacks."""

    pass


_id_lock = threading.Lock()
_id_counters: dict[str, itertools.count] = {}


def generate_id(prefix: str) -> str:
    """
    Return the next identifier in the session-wide sequence for ``prefix``.

    Identifiers are never reused within a process, e.g. ``atom_1``, ``atom_2``.
    """
    with _id_lock:
        counter = _id_counters.setdefault(prefix, itertools.count(1))
        return f"{prefix}_{next(counter)}"
