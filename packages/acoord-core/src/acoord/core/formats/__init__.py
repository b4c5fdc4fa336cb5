"""Parsers and serializers for molecular and crystal structure file formats."""

from .base import FormatTag, StructureCodec
from .cif import CIFCodec
from .gjf import GJFCodec
from .orca import ORCACodec
from .pdb import PDBCodec
from .poscar import POSCARCodec
from .registry import (
    get_codec,
    get_supported_formats,
    parse_structure,
    resolve_format,
    serialize_structure,
)
from .stru import STRUCodec, StruCoordinateMode
from .xyz import XYZCodec

__all__ = [
    "FormatTag",
    "StructureCodec",
    "XYZCodec",
    "CIFCodec",
    "POSCARCodec",
    "GJFCodec",
    "ORCACodec",
    "PDBCodec",
    "STRUCodec",
    "StruCoordinateMode",
    "resolve_format",
    "get_codec",
    "parse_structure",
    "serialize_structure",
    "get_supported_formats",
]
