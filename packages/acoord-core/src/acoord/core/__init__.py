"""Structure model, geometry operations and file format codecs for molecules and crystals."""

from .atom import Atom
from .base import (
    InvalidGeometryError,
    MalformedInputError,
    StructureError,
    UnsupportedFormatError,
)
from .converters import (
    from_ase_atoms,
    from_qcschema,
    to_ase_atoms,
    to_pymatgen_molecule,
    to_pymatgen_structure,
    to_qcschema,
)
from .elements import ElementInfo, get_element_info, parse_element
from .formats import (
    CIFCodec,
    FormatTag,
    GJFCodec,
    ORCACodec,
    PDBCodec,
    POSCARCodec,
    STRUCodec,
    StruCoordinateMode,
    StructureCodec,
    XYZCodec,
    get_codec,
    get_supported_formats,
    parse_structure,
    resolve_format,
    serialize_structure,
)
from .settings import CifSettings, GaussianSettings, OrcaSettings
from .structure import Bond, Structure
from .unit_cell import UnitCell
from .units import ANGSTROM_TO_BOHR, BOHR_TO_ANGSTROM, convert_units

__version__ = "0.1.0"

__all__ = [
    # Core classes
    "Atom",
    "UnitCell",
    "Structure",
    "Bond",
    "ElementInfo",
    "get_element_info",
    "parse_element",
    # Errors
    "StructureError",
    "UnsupportedFormatError",
    "MalformedInputError",
    "InvalidGeometryError",
    # File formats
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
    # Units and settings
    "BOHR_TO_ANGSTROM",
    "ANGSTROM_TO_BOHR",
    "convert_units",
    "GaussianSettings",
    "OrcaSettings",
    "CifSettings",
    # Conversion utilities
    "to_ase_atoms",
    "from_ase_atoms",
    "to_pymatgen_molecule",
    "to_pymatgen_structure",
    "to_qcschema",
    "from_qcschema",
]
