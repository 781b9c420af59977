"""Custom exceptions for world generation and the tile store."""


class WorldGenError(Exception):
    """Base exception for world generation errors."""

    pass


class InvalidTileUpdateError(WorldGenError):
    """Raised when a tile update names unknown fields or invalid values."""

    pass


class WorldNotGeneratedError(WorldGenError):
    """Raised when world data is requested before generation has run."""

    pass
