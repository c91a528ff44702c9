"""
PixelPop - images and animated GIFs in the terminal.
Core functionality: picks an output protocol per call and drives animations.
"""

import asyncio
import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Callable, Optional, TextIO, Union

from . import ansi, iterm, kitty
from .animation import (
    DEFAULT_MAXIMUM_FRAME_RATE,
    AnimationDriver,
    AsyncioScheduler,
    CallbackSink,
    CancellationHandle,
    FrameSink,
    Scheduler,
    SmoothRenderer,
)
from .bitmap import decode_resized, image_dimensions
from .dimensions import DimensionRequest, DimensionValue, resolve
from .errors import DecodeFailure, ImageTooSmall, PixelPopError, StrategyFailure
from .frames import DEFAULT_SAMPLING_RATE, default_extractor
from .terminal import TerminalCapabilities, get_capabilities, get_terminal_size, is_interactive

logger = logging.getLogger(__name__)

MINIMUM_ANIMATION_SIZE = 2
MINIMUM_ANSI_HEIGHT = 2

RenderFrame = Union[FrameSink, Callable[[str], None]]


@dataclass(frozen=True)
class RenderOptions:
    width: Optional[DimensionValue] = '100%'
    height: Optional[DimensionValue] = '100%'
    preserve_aspect_ratio: bool = True

    def request(self) -> DimensionRequest:
        return DimensionRequest(self.width, self.height, self.preserve_aspect_ratio)


@dataclass(frozen=True)
class AnimationOptions(RenderOptions):
    maximum_frame_rate: int = DEFAULT_MAXIMUM_FRAME_RATE
    sampling_rate: int = DEFAULT_SAMPLING_RATE
    render_frame: Optional[RenderFrame] = None

    def render_options(self) -> RenderOptions:
        return RenderOptions(self.width, self.height, self.preserve_aspect_ratio)


def _options(cls, options, overrides):
    if options is None:
        options = cls()
    if overrides:
        known = {f.name for f in fields(cls)}
        unknown = set(overrides) - known
        if unknown:
            raise TypeError(f"unexpected option(s): {', '.join(sorted(unknown))}")
        options = cls(**{**{f.name: getattr(options, f.name) for f in fields(cls)}, **overrides})
    return options


def render_ansi(
    data: bytes,
    options: RenderOptions,
    capabilities: TerminalCapabilities,
    columns: int,
    rows: int,
) -> str:
    """Half-block rendering; works on every terminal."""
    size = image_dimensions(data)
    if size is None:
        raise DecodeFailure("cannot decode image")
    resolved = resolve(size[0], size[1], options.request(), columns, rows)
    # A half-block line needs two pixel rows
    height = max(resolved.height, MINIMUM_ANSI_HEIGHT)
    bitmap = decode_resized(data, resolved.width, height)
    return '\n'.join(ansi.encode(bitmap, capabilities))


def render(
    data: bytes,
    options: Optional[RenderOptions] = None,
    *,
    capabilities: Optional[TerminalCapabilities] = None,
    stream: Optional[TextIO] = None,
    animation_frame: bool = False,
) -> str:
    """Render image bytes with the best strategy the terminal supports.

    Native and binary protocols need an interactive stream; any failure in
    them falls back to ANSI. Animation frames always use ANSI.
    """
    options = options or RenderOptions()
    capabilities = capabilities or get_capabilities()
    columns, rows = get_terminal_size(stream)

    if not animation_frame and is_interactive(stream):
        if capabilities.uses_native_passthrough:
            try:
                return iterm.encode(data, options.width, options.height, options.preserve_aspect_ratio)
            except Exception:
                logger.debug("native image rendering failed, falling back to ANSI", exc_info=True)
        elif capabilities.uses_binary_protocol:
            try:
                return kitty.render(data, options.request(), columns, rows)
            except Exception:
                logger.debug("kitty graphics rendering failed, falling back to ANSI", exc_info=True)

    try:
        return render_ansi(data, options, capabilities, columns, rows)
    except PixelPopError:
        raise
    except Exception as e:
        raise StrategyFailure('ansi', str(e)) from e


def render_buffer(
    data: bytes,
    options: Optional[RenderOptions] = None,
    *,
    capabilities: Optional[TerminalCapabilities] = None,
    stream: Optional[TextIO] = None,
    **overrides,
) -> str:
    """Render a still image.

    The output is written to ``stream`` (stdout by default) when it is a
    terminal, and returned either way.
    """
    options = _options(RenderOptions, options, overrides)
    stream = stream if stream is not None else sys.stdout
    output = render(data, options, capabilities=capabilities, stream=stream)
    if is_interactive(stream):
        stream.write(output)
        stream.write('\n')
        stream.flush()
    return output


def render_file(path: Union[str, Path], options: Optional[RenderOptions] = None, **kwargs) -> str:
    return render_buffer(Path(path).read_bytes(), options, **kwargs)


def _make_sink(render_frame: Optional[RenderFrame], stream: TextIO) -> FrameSink:
    if render_frame is None:
        return SmoothRenderer(stream)
    if hasattr(render_frame, 'render') and hasattr(render_frame, 'on_complete'):
        return render_frame
    if callable(render_frame):
        return CallbackSink(render_frame, getattr(render_frame, 'done', None))
    raise TypeError(f"render_frame must be callable or a FrameSink, got {type(render_frame).__name__}")


def _check_animation_size(data: bytes) -> None:
    size = image_dimensions(data)
    if size is None:
        raise DecodeFailure("cannot decode animation")
    width, height = size
    if width < MINIMUM_ANIMATION_SIZE or height < MINIMUM_ANIMATION_SIZE:
        raise ImageTooSmall(f"the image is too small to be rendered ({width}x{height})")


async def play_gif_buffer(
    data: bytes,
    options: Optional[AnimationOptions] = None,
    *,
    capabilities: Optional[TerminalCapabilities] = None,
    stream: Optional[TextIO] = None,
    extractor=None,
    scheduler: Optional[Scheduler] = None,
    **overrides,
) -> CancellationHandle:
    """Start playing an animation and return its cancellation handle.

    Frames are extracted in a worker thread before playback starts; the
    playback itself runs on the current event loop until cancelled.
    """
    options = _options(AnimationOptions, options, overrides)
    stream = stream if stream is not None else sys.stdout
    capabilities = capabilities or get_capabilities()
    sink = _make_sink(options.render_frame, stream)

    _check_animation_size(data)

    if capabilities.uses_native_passthrough and is_interactive(stream):
        # The terminal plays the animation itself
        try:
            payload = iterm.encode(data, options.width, options.height, options.preserve_aspect_ratio)
        except Exception:
            logger.debug("native animation failed, playing frame by frame", exc_info=True)
        else:
            sink.render(payload)
            handle = CancellationHandle(on_cancel=lambda: handle.mark_finished())
            handle.add_done_callback(sink.on_complete)
            return handle

    render_options = options.render_options()
    driver = AnimationDriver(
        data,
        render=lambda frame: render(
            frame, render_options, capabilities=capabilities, stream=stream, animation_frame=True
        ),
        extractor=extractor or default_extractor(),
        scheduler=scheduler or AsyncioScheduler(),
        sink=sink,
        maximum_frame_rate=options.maximum_frame_rate,
        sampling_rate=options.sampling_rate,
    )
    try:
        await asyncio.to_thread(driver.load_frames)
    except asyncio.CancelledError:
        # The extraction thread keeps running; its frames are released when it returns
        driver.abort()
        raise
    return driver.play()


async def play_gif_file(
    path: Union[str, Path], options: Optional[AnimationOptions] = None, **kwargs
) -> CancellationHandle:
    return await play_gif_buffer(Path(path).read_bytes(), options, **kwargs)


def get_file_type(filepath: Union[str, Path]) -> str:
    """Determine file type based on extension."""
    ext = Path(filepath).suffix.lower()

    image_exts = {'.png', '.jpg', '.jpeg', '.bmp', '.tiff', '.tif', '.ico'}
    animation_exts = {'.gif', '.webp', '.apng'}

    if ext in image_exts:
        return 'image'
    elif ext in animation_exts:
        return 'gif'
    else:
        return 'unknown'
