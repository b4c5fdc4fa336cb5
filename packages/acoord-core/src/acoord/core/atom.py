"""Atom representation used by structures and codecs."""

from __future__ import annotations

import math
from typing import Any

import numpy as np
from pydantic import BaseModel, Field, FiniteFloat, field_validator

from .base import generate_id
from .elements import parse_element


class Atom(BaseModel):
    """A single atom with a cartesian position in Angstrom."""

    id: str = Field(
        default_factory=lambda: generate_id("atom"),
        description="Stable identifier, unique within the session",
    )
    element: str = Field(description="Chemical symbol")
    x: FiniteFloat = Field(default=0.0, description="Cartesian x in Angstrom")
    y: FiniteFloat = Field(default=0.0, description="Cartesian y in Angstrom")
    z: FiniteFloat = Field(default=0.0, description="Cartesian z in Angstrom")
    selected: bool = Field(default=False, description="Selection flag")
    fixed: bool = Field(default=False, description="Position constrained")

    class Config:
        """Pydantic configuration."""

        validate_assignment = True

    @field_validator("element")
    @classmethod
    def validate_element(cls, v: str) -> str:
        """Validate and normalize the chemical symbol."""
        symbol = parse_element(v)
        if symbol is None:
            raise ValueError(f"Unknown element symbol: {v!r}")
        return symbol

    @classmethod
    def at(cls, element: str, position: Any, **kwargs: Any) -> Atom:
        """Create an atom at a position given as any 3-sequence."""
        x, y, z = (float(value) for value in position)
        return cls(element=element, x=x, y=y, z=z, **kwargs)

    @property
    def position(self) -> np.ndarray:
        """Position as a numpy array."""
        return np.array([self.x, self.y, self.z])

    def set_position(self, x: float, y: float, z: float) -> None:
        """
        Move the atom; the position is left unchanged on error.

        Raises:
            ValueError: If any coordinate is not finite
        """
        values = [float(x), float(y), float(z)]
        if not all(math.isfinite(value) for value in values):
            raise ValueError(f"Atom position must be finite: {values}")
        self.x, self.y, self.z = values

    def distance_to(self, other: Atom) -> float:
        """Euclidean distance to another atom in Angstrom."""
        return float(np.linalg.norm(self.position - other.position))

    def clone(self) -> Atom:
        """Copy with a fresh identifier."""
        return Atom(
            element=self.element,
            x=self.x,
            y=self.y,
            z=self.z,
            selected=self.selected,
            fixed=self.fixed,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "element": self.element,
            "x": self.x,
            "y": self.y,
            "z": self.z,
            "selected": self.selected,
            "fixed": self.fixed,
        }
