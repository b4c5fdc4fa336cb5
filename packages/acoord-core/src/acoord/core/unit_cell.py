"""Periodic unit cell with lattice-vector and coordinate transforms."""

from __future__ import annotations

from typing import Any

import numpy as np
from pydantic import BaseModel, Field, field_validator, model_validator

from .base import InvalidGeometryError

Vector3 = tuple[float, float, float]


class UnitCell(BaseModel):
    """
    Crystallographic unit cell described by three lengths and three angles.

    Lattice vectors follow the standard convention (a along x, b in the x-y
    plane) unless the cell was built from explicit vectors, in which case
    that orientation is kept so coordinates stay in the source frame.
    """

    a: float = Field(default=1.0, gt=0, description="Length of a in Angstrom")
    b: float = Field(default=1.0, gt=0, description="Length of b in Angstrom")
    c: float = Field(default=1.0, gt=0, description="Length of c in Angstrom")
    alpha: float = Field(default=90.0, gt=0, lt=180, description="Angle b^c in degrees")
    beta: float = Field(default=90.0, gt=0, lt=180, description="Angle a^c in degrees")
    gamma: float = Field(default=90.0, gt=0, lt=180, description="Angle a^b in degrees")
    vectors: tuple[Vector3, Vector3, Vector3] | None = Field(
        default=None, description="Explicit lattice vectors (rows) in Angstrom"
    )

    class Config:
        """Pydantic configuration."""

        frozen = True

    @field_validator("vectors")
    @classmethod
    def validate_vectors(cls, v):
        """Validate explicit lattice vectors."""
        if v is not None and not np.all(np.isfinite(np.array(v, dtype=float))):
            raise ValueError("Lattice vectors must be finite")
        return v

    @model_validator(mode="after")
    def validate_basis(self) -> UnitCell:
        """Reject cells whose lattice vectors do not span three dimensions."""
        volume = abs(float(np.linalg.det(self.lattice_vectors())))
        if volume < 1e-10:
            raise InvalidGeometryError("Unit cell lattice vectors are coplanar")
        return self

    @classmethod
    def from_lattice_vectors(cls, vectors: Any) -> UnitCell:
        """
        Build a cell from three lattice vectors given as rows.

        Lengths are the vector norms and angles the arccosines of the
        normalized dot products.

        Raises:
            InvalidGeometryError: If a vector has zero length or the
                vectors are coplanar
        """
        matrix = np.asarray(vectors, dtype=float)
        if matrix.shape != (3, 3):
            raise InvalidGeometryError("Lattice vectors must be a 3x3 matrix")

        a_vec, b_vec, c_vec = matrix
        a, b, c = (float(np.linalg.norm(vec)) for vec in matrix)
        if min(a, b, c) <= 0:
            raise InvalidGeometryError("Lattice vectors must have non-zero length")
        if abs(float(np.linalg.det(matrix))) < 1e-10:
            raise InvalidGeometryError("Unit cell lattice vectors are coplanar")

        def angle(u: np.ndarray, v: np.ndarray, nu: float, nv: float) -> float:
            cosine = np.clip(np.dot(u, v) / (nu * nv), -1.0, 1.0)
            return float(np.degrees(np.arccos(cosine)))

        return cls(
            a=a,
            b=b,
            c=c,
            alpha=angle(b_vec, c_vec, b, c),
            beta=angle(a_vec, c_vec, a, c),
            gamma=angle(a_vec, b_vec, a, b),
            vectors=tuple(tuple(float(x) for x in row) for row in matrix),
        )

    @property
    def parameters(self) -> tuple[float, float, float, float, float, float]:
        """Lattice parameters (a, b, c, alpha, beta, gamma)."""
        return self.a, self.b, self.c, self.alpha, self.beta, self.gamma

    def lattice_vectors(self) -> np.ndarray:
        """
        Return the 3x3 matrix of lattice vectors with a, b, c as rows.

        Raises:
            InvalidGeometryError: If the angles cannot close a cell
        """
        if self.vectors is not None:
            return np.array(self.vectors, dtype=float)

        alpha, beta, gamma = np.radians([self.alpha, self.beta, self.gamma])
        cos_alpha, cos_beta, cos_gamma = np.cos([alpha, beta, gamma])
        sin_gamma = np.sin(gamma)

        cx = self.c * cos_beta
        cy = self.c * (cos_alpha - cos_beta * cos_gamma) / sin_gamma
        cz_squared = self.c**2 - cx**2 - cy**2
        if cz_squared <= 0:
            raise InvalidGeometryError(
                f"Cell angles ({self.alpha}, {self.beta}, {self.gamma}) "
                "do not form a valid lattice"
            )

        return np.array(
            [
                [self.a, 0.0, 0.0],
                [self.b * cos_gamma, self.b * sin_gamma, 0.0],
                [cx, cy, np.sqrt(cz_squared)],
            ]
        )

    @property
    def volume(self) -> float:
        """Cell volume in cubic Angstrom."""
        return abs(float(np.linalg.det(self.lattice_vectors())))

    def fractional_to_cartesian(self, frac: Any) -> np.ndarray:
        """Convert fractional coordinates, shape (3,) or (N, 3), to Angstrom."""
        return np.asarray(frac, dtype=float) @ self.lattice_vectors()

    def cartesian_to_fractional(self, cart: Any) -> np.ndarray:
        """Convert cartesian coordinates, shape (3,) or (N, 3), to fractional."""
        return np.asarray(cart, dtype=float) @ np.linalg.inv(self.lattice_vectors())

    def scaled(self, nx: int, ny: int, nz: int) -> UnitCell:
        """Cell with edges multiplied by (nx, ny, nz) and angles unchanged."""
        vectors = None
        if self.vectors is not None:
            matrix = np.array(self.vectors) * np.array([[nx], [ny], [nz]])
            vectors = tuple(tuple(float(x) for x in row) for row in matrix)
        return UnitCell(
            a=self.a * nx,
            b=self.b * ny,
            c=self.c * nz,
            alpha=self.alpha,
            beta=self.beta,
            gamma=self.gamma,
            vectors=vectors,
        )

    def clone(self) -> UnitCell:
        return self.model_copy()

    def to_dict(self) -> dict[str, Any]:
        """Parameters plus the lattice vectors (rows) in the structure frame."""
        return {
            "a": self.a,
            "b": self.b,
            "c": self.c,
            "alpha": self.alpha,
            "beta": self.beta,
            "gamma": self.gamma,
            "vectors": self.lattice_vectors().tolist(),
        }
