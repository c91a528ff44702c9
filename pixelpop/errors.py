"""
Exceptions raised by pixelpop.
"""


class PixelPopError(Exception):
    """Base class for all pixelpop errors."""


class InvalidDimensionValue(PixelPopError, ValueError):
    """A width/height value is malformed or out of range."""

    def __init__(self, value):
        super().__init__(f"{value!r} is not a valid dimension value")
        self.value = value


class ImageTooSmall(PixelPopError):
    """The animation source is smaller than 2x2 pixels."""


class DecodeFailure(PixelPopError, ValueError):
    """The bitmap decoder or frame extractor rejected the input bytes."""


class NoFramesExtracted(PixelPopError):
    """Frame extraction finished without producing a single frame."""


class StrategyFailure(PixelPopError):
    """A rendering strategy failed and no fallback was left."""

    def __init__(self, strategy: str, message: str = ""):
        super().__init__(f"{strategy} rendering failed" + (f": {message}" if message else ""))
        self.strategy = strategy
