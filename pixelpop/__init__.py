"""
PixelPop - Images and animated GIFs in the terminal.
Uses iTerm2 inline images, the kitty graphics protocol or 24-bit ANSI half blocks,
whichever the terminal supports.
"""

__version__ = "1.0.0"

from .animation import CancellationHandle, SmoothRenderer
from .core import (
    AnimationOptions,
    RenderOptions,
    get_file_type,
    play_gif_buffer,
    play_gif_file,
    render,
    render_buffer,
    render_file,
)
from .errors import (
    DecodeFailure,
    ImageTooSmall,
    InvalidDimensionValue,
    NoFramesExtracted,
    PixelPopError,
    StrategyFailure,
)
from .terminal import TerminalCapabilities, TerminalKind, detect, get_capabilities

__all__ = [
    "AnimationOptions",
    "CancellationHandle",
    "DecodeFailure",
    "ImageTooSmall",
    "InvalidDimensionValue",
    "NoFramesExtracted",
    "PixelPopError",
    "RenderOptions",
    "SmoothRenderer",
    "StrategyFailure",
    "TerminalCapabilities",
    "TerminalKind",
    "detect",
    "get_capabilities",
    "get_file_type",
    "play_gif_buffer",
    "play_gif_file",
    "render",
    "render_buffer",
    "render_file",
]
