"""ORCA input codec for the ``* xyz`` coordinate block."""

from __future__ import annotations

import logging
import re

from ..base import MalformedInputError
from ..settings import OrcaSettings
from ..structure import Structure
from .base import FormatTag, StructureCodec, atom_from_tokens, split_lines

logger = logging.getLogger(__name__)

_XYZ_BLOCK = re.compile(r"^\*\s*xyz\b", re.IGNORECASE)


class ORCACodec(StructureCodec):
    """ORCA input; only the inline cartesian block is read."""

    format = FormatTag.ORCA

    def __init__(self, settings: OrcaSettings | None = None):
        self.settings = settings or OrcaSettings()

    def parse(self, text: str) -> Structure:
        """
        Read atoms between ``* xyz <charge> <mult>`` and the closing ``*``.

        Raises:
            MalformedInputError: If the ``* xyz`` block is missing
        """
        lines = [line.strip() for line in split_lines(text)]
        start = next(
            (i for i, line in enumerate(lines) if _XYZ_BLOCK.match(line)), None
        )
        if start is None:
            raise MalformedInputError(
                'Invalid ORCA input: missing "* xyz" block', section="* xyz"
            )

        structure = Structure(name="")
        for line in lines[start + 1 :]:
            if not line:
                continue
            if line.startswith("*"):
                break
            atom = atom_from_tokens(line.split(), line)
            if atom is not None:
                structure.add_atom(atom)
        return structure

    def serialize(self, structure: Structure) -> str:
        settings = self.settings
        lines = [
            settings.method_line,
            f"%maxcore     {settings.maxcore}",
            f"%pal nprocs   {settings.nprocs} end",
            f"* xyz {settings.charge} {settings.multiplicity}",
        ]
        for atom in structure.atoms:
            lines.append(
                f"{atom.element}  {atom.x:.10f}  {atom.y:.10f}  {atom.z:.10f}"
            )
        lines.append("*")
        return "\n".join(lines) + "\n"
