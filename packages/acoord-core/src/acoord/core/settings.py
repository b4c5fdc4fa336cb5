"""Per-codec options for serializer templates and reader behaviour."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GaussianSettings(BaseModel):
    """Header values written to Gaussian input files."""

    route: str = Field(default="#P", description="Route section line")
    charge: int = Field(default=0, description="Total molecular charge")
    multiplicity: int = Field(default=1, ge=1, description="Spin multiplicity")

    @field_validator("route")
    @classmethod
    def validate_route(cls, v: str) -> str:
        """Route sections must start with '#'."""
        if not v.strip().startswith("#"):
            raise ValueError("Gaussian route section must start with '#'")
        return v.strip()


class OrcaSettings(BaseModel):
    """Header values written to ORCA input files."""

    method_line: str = Field(
        default="! B3LYP D3 def2-SVP", description="Simple input line"
    )
    maxcore: int = Field(default=8192, gt=0, description="Memory per core in MB")
    nprocs: int = Field(default=8, ge=1, description="Number of parallel processes")
    charge: int = Field(default=0, description="Total molecular charge")
    multiplicity: int = Field(default=1, ge=1, description="Spin multiplicity")

    @field_validator("method_line")
    @classmethod
    def validate_method_line(cls, v: str) -> str:
        """Simple input lines start with '!'."""
        v = v.strip()
        return v if v.startswith("!") else f"! {v}"


class CifSettings(BaseModel):
    """Options for reading CIF files."""

    apply_symmetry: bool = Field(
        default=False, description="Expand sites with the listed symmetry operations"
    )
    symmetry_tolerance: float = Field(
        default=0.01, gt=0, description="Distance in Angstrom below which sites merge"
    )
