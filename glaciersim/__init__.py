"""Glacier terrains on regular grids: fields, geometry, shallow-ice quantities and shader sources."""

__version__ = "0.1.0"

__all__ = [
    "camera",
    "geometry",
    "mathutils",
    "noise",
    "palette",
    "scalarfield",
    "shaders",
    "terrain",
    "vectorfield",
]