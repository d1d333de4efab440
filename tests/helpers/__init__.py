"""Test helper utilities exposed for import convenience."""
from .fields import (constant_field, vortex_field, torus_displacements, torus_constant_field,
                     away_from_corners, pinned_quantities)

__all__ = [
    "away_from_corners",
    "pinned_quantities",
    "constant_field",
    "vortex_field",
    "torus_displacements",
    "torus_constant_field",
]
