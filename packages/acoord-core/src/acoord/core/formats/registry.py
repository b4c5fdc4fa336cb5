"""Format dispatch from file names or format tags to codecs."""

from __future__ import annotations

import logging
from pathlib import PurePath

from ..base import UnsupportedFormatError
from ..structure import Structure
from .base import FormatTag, StructureCodec
from .cif import CIFCodec
from .gjf import GJFCodec
from .orca import ORCACodec
from .pdb import PDBCodec
from .poscar import POSCARCodec
from .stru import STRUCodec
from .xyz import XYZCodec

logger = logging.getLogger(__name__)

EXTENSIONS: dict[str, FormatTag] = {
    "xyz": FormatTag.XYZ,
    "cif": FormatTag.CIF,
    "poscar": FormatTag.POSCAR,
    "vasp": FormatTag.POSCAR,
    "gjf": FormatTag.GJF,
    "com": FormatTag.GJF,
    "inp": FormatTag.ORCA,
    "pdb": FormatTag.PDB,
    "stru": FormatTag.STRU,
}

FORMAT_NAMES: dict[str, FormatTag] = {
    **EXTENSIONS,
    **{tag.value: tag for tag in FormatTag},
}

BASENAMES: dict[str, FormatTag] = {
    "POSCAR": FormatTag.POSCAR,
    "CONTCAR": FormatTag.POSCAR,
    "STRU": FormatTag.STRU,
}

_CODECS: dict[FormatTag, StructureCodec] = {
    FormatTag.XYZ: XYZCodec(),
    FormatTag.CIF: CIFCodec(),
    FormatTag.POSCAR: POSCARCodec(),
    FormatTag.GJF: GJFCodec(),
    FormatTag.ORCA: ORCACodec(),
    FormatTag.PDB: PDBCodec(),
    FormatTag.STRU: STRUCodec(),
}


def resolve_format(name_or_path: str | PurePath | FormatTag) -> FormatTag:
    """
    Resolve a format name, extension or file path to a format tag.

    Matching is case-insensitive. Extensionless ``POSCAR``, ``CONTCAR`` and
    ``STRU`` files resolve by basename.

    Raises:
        UnsupportedFormatError: If no codec handles the input
    """
    if isinstance(name_or_path, FormatTag):
        return name_or_path

    raw = str(name_or_path).strip()
    lowered = raw.lower().lstrip(".")
    if lowered in FORMAT_NAMES:
        return FORMAT_NAMES[lowered]

    path = PurePath(raw)
    basename = path.name.upper()
    if basename in BASENAMES:
        return BASENAMES[basename]

    extension = path.suffix.lstrip(".").lower()
    if extension in EXTENSIONS:
        return EXTENSIONS[extension]

    raise UnsupportedFormatError(f"Unsupported file format: {raw!r}")


def get_codec(fmt: str | PurePath | FormatTag) -> StructureCodec:
    """Return the default codec for a format name, extension, path or tag."""
    return _CODECS[resolve_format(fmt)]


def parse_structure(text: str, fmt: str | PurePath | FormatTag) -> Structure:
    """Parse text of the given format into a Structure."""
    codec = get_codec(fmt)
    logger.debug("Parsing %s input with %r", codec.format.value, codec)
    return codec.parse(text)


def serialize_structure(structure: Structure, fmt: str | PurePath | FormatTag) -> str:
    """Serialize a Structure into text of the given format."""
    codec = get_codec(fmt)
    logger.debug("Serializing %r as %s", structure, codec.format.value)
    return codec.serialize(structure)


def get_supported_formats() -> dict[str, list[str]]:
    """
    Get the supported formats and the file extensions mapped to each.

    Returns:
        Dictionary of format tag value to sorted extension list
    """
    formats: dict[str, list[str]] = {tag.value: [] for tag in FormatTag}
    for extension, tag in EXTENSIONS.items():
        formats[tag.value].append(extension)
    return {tag: sorted(extensions) for tag, extensions in formats.items()}
