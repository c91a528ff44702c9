"""
Animation playback.

An AnimationDriver owns one playback session. Frames are extracted up
front, then a cooperative loop runs on a scheduler: every tick checks the
clock, renders a frame once the frame delay has passed and asks to be run
again as soon as possible. Stopping is cooperative too; the cancellation
handle only raises a flag, which the next tick acts on.

    CREATED -> LOADING_FRAMES -> PLAYING -> STOPPING -> CLEANED_UP
"""

import asyncio
import enum
import logging
import sys
import threading
import time
from typing import Callable, Optional, Protocol, TextIO

from .errors import NoFramesExtracted
from .frames import DEFAULT_SAMPLING_RATE, FrameSet

logger = logging.getLogger(__name__)

DEFAULT_MAXIMUM_FRAME_RATE = 30


class AnimationState(enum.Enum):
    CREATED = "created"
    LOADING_FRAMES = "loading_frames"
    PLAYING = "playing"
    STOPPING = "stopping"
    CLEANED_UP = "cleaned_up"


class Scheduler(Protocol):
    def call_soon(self, callback: Callable[[], None]) -> None: ...

    def cancel(self) -> None: ...


class AsyncioScheduler:
    """Runs ticks through the event loop's call_soon."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._pending = None

    def call_soon(self, callback):
        self._pending = self._loop.call_soon(callback)

    def cancel(self):
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None


class FrameSink(Protocol):
    def render(self, frame: str) -> None: ...

    def on_complete(self) -> None: ...


class CallbackSink:
    """Adapts a plain function, plus an optional done hook, to a FrameSink."""

    def __init__(self, render: Callable[[str], None], done: Optional[Callable[[], None]] = None):
        self._render = render
        self._done = done

    def render(self, frame: str) -> None:
        self._render(frame)

    def on_complete(self) -> None:
        if self._done is not None:
            self._done()


class SmoothRenderer:
    """Repaints frames in place using cursor movement instead of scrolling."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout
        self.frame_height = 0
        # Lines between the top of the animation and the cursor
        self._painted = 0

    def render(self, frame: str) -> None:
        lines = frame.split('\n')
        height = len(lines)
        out = []

        if self.frame_height == 0 or height > self._painted:
            if self.frame_height == 0:
                out.append('\033[?25l')  # Hide cursor
            out.append('\033[2J\033[H')
            self._painted = height
        else:
            out.append(f'\033[{self._painted}A\r')

        out.append('\n'.join(lines))
        out.append('\n')

        # Blank whatever is left of a taller previous frame
        for _ in range(self._painted - height):
            out.append('\033[K\n')

        self.frame_height = height
        self.stream.write(''.join(out))
        self.stream.flush()

    def on_complete(self) -> None:
        if self.frame_height > 0:
            self.stream.write(f'\033[{self._painted + 1}H')
            self.stream.write('\033[?25h')  # Show cursor
        self.stream.write('\n')
        self.stream.flush()


class CancellationHandle:
    """Returned to callers of a playback; cancel() stops it at the next tick."""

    def __init__(self, on_cancel: Optional[Callable[[], None]] = None):
        self._cancelled = False
        self._finished = False
        self._callbacks = []
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def finished(self) -> bool:
        return self._finished

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._on_cancel is not None:
            self._on_cancel()

    __call__ = cancel

    def add_done_callback(self, callback: Callable[[], None]) -> None:
        """Run callback once playback has been torn down."""
        if self._finished:
            callback()
        else:
            self._callbacks.append(callback)

    def mark_finished(self) -> None:
        """Called by whoever owns the playback once it has been torn down."""
        if self._finished:
            return
        self._finished = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()


def _perf_counter_ms() -> float:
    return time.perf_counter() * 1000


class AnimationDriver:
    """Plays extracted frames in a loop at no more than maximum_frame_rate.

    ``render`` turns one frame's encoded image bytes into terminal text; the
    text goes to ``sink``. ``extractor`` is anything with an
    ``extract(data, rate) -> FrameSet`` method.
    """

    def __init__(
        self,
        source: bytes,
        render: Callable[[bytes], str],
        extractor,
        scheduler: Scheduler,
        sink: Optional[FrameSink] = None,
        maximum_frame_rate: int = DEFAULT_MAXIMUM_FRAME_RATE,
        sampling_rate: int = DEFAULT_SAMPLING_RATE,
        clock: Callable[[], float] = _perf_counter_ms,
    ):
        if maximum_frame_rate <= 0:
            raise ValueError(f"maximum_frame_rate must be positive, got {maximum_frame_rate}")
        if sampling_rate <= 0:
            raise ValueError(f"sampling_rate must be positive, got {sampling_rate}")

        self.state = AnimationState.CREATED
        self.frame_index = 0
        self.frame_delay_ms = 1000 / maximum_frame_rate
        self.sampling_rate = sampling_rate
        self.frames_rendered = 0

        self._source = source
        self._render = render
        self._extractor = extractor
        self._scheduler = scheduler
        self._sink = sink if sink is not None else SmoothRenderer()
        self._clock = clock
        self._frame_set: Optional[FrameSet] = None
        self._last_frame_time = 0.0
        self._handle = CancellationHandle()
        # Guards _frame_set and _aborted between the extraction thread and the loop
        self._lock = threading.Lock()
        self._aborted = False

    @property
    def handle(self) -> CancellationHandle:
        return self._handle

    @property
    def is_playing(self) -> bool:
        return self.state is AnimationState.PLAYING and not self._handle.cancelled

    @property
    def frame_count(self) -> int:
        return len(self._frame_set) if self._frame_set is not None else 0

    def load_frames(self) -> None:
        """Extract every frame before playback. Blocks on the extractor."""
        if self.state is not AnimationState.CREATED:
            raise RuntimeError(f"cannot load frames in state {self.state.value}")
        self.state = AnimationState.LOADING_FRAMES

        try:
            frame_set = self._extractor.extract(self._source, self.sampling_rate)
        except BaseException:
            self.state = AnimationState.CLEANED_UP
            raise

        if not len(frame_set):
            frame_set.release()
            self.state = AnimationState.CLEANED_UP
            raise NoFramesExtracted("no frames extracted from animation")

        with self._lock:
            if self._aborted:
                logger.debug("session aborted during extraction, discarding %d frames", len(frame_set))
                self._release(frame_set)
                self.state = AnimationState.CLEANED_UP
                return
            self._frame_set = frame_set

    def abort(self) -> None:
        """Give up on a session before it plays.

        Frames already extracted are released now. If the extractor is still
        running, its frames are released as soon as it returns. A playing
        session is cancelled through its handle instead.
        """
        if self.state is AnimationState.PLAYING:
            self._handle.cancel()
            return

        with self._lock:
            self._aborted = True
            if self.state is AnimationState.LOADING_FRAMES and self._frame_set is None:
                return
            frame_set, self._frame_set = self._frame_set, None
            self.state = AnimationState.CLEANED_UP

        if frame_set is not None:
            self._release(frame_set)

    @staticmethod
    def _release(frame_set: FrameSet) -> None:
        try:
            frame_set.release()
        except OSError:
            logger.debug("ignoring failure while removing frame files", exc_info=True)

    def play(self) -> CancellationHandle:
        """Enter PLAYING and schedule the first tick."""
        if self.state is not AnimationState.LOADING_FRAMES or self._frame_set is None:
            raise RuntimeError(f"cannot play in state {self.state.value}")
        self.state = AnimationState.PLAYING
        self._last_frame_time = self._clock()
        self._scheduler.call_soon(self._tick)
        return self._handle

    def start(self) -> CancellationHandle:
        self.load_frames()
        return self.play()

    def _tick(self) -> None:
        if self._handle.cancelled:
            self._stop()
            return

        now = self._clock()
        elapsed = now - self._last_frame_time

        if elapsed >= self.frame_delay_ms:
            try:
                self._render_frame(self._frame_set.frames[self.frame_index])
            except Exception:
                logger.exception("rendering frame %d failed, stopping playback", self.frame_index)
                self._stop()
                return

            self.frame_index = (self.frame_index + 1) % len(self._frame_set)
            # Keep the overshoot so timing errors do not accumulate
            self._last_frame_time = now - (elapsed % self.frame_delay_ms)

        self._scheduler.call_soon(self._tick)

    def _render_frame(self, frame: bytes) -> None:
        text = self._render(frame)
        self._sink.render(text)
        self.frames_rendered += 1

    def _stop(self) -> None:
        self.state = AnimationState.STOPPING
        self._scheduler.cancel()

        if self._frame_set is not None:
            self._release(self._frame_set)
            self._frame_set = None

        self.state = AnimationState.CLEANED_UP
        logger.debug("playback stopped after %d frames", self.frames_rendered)

        try:
            self._sink.on_complete()
        except Exception:
            logger.warning("frame sink completion hook failed", exc_info=True)
        self._handle.mark_finished()
