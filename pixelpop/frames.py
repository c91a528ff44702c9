"""
Frame extraction for animated images.

All frames are extracted up front, before playback starts, and kept in
memory as PNG bytes.
"""

import logging
import shutil
import subprocess
import tempfile
from io import BytesIO
from pathlib import Path
from typing import List, Optional

from PIL import Image, ImageSequence, UnidentifiedImageError

from .errors import DecodeFailure

logger = logging.getLogger(__name__)

DEFAULT_SAMPLING_RATE = 30
DEFAULT_FRAME_DURATION_MS = 100


class FrameSet:
    """Decoded frames plus the temporary directory they were extracted into."""

    def __init__(self, frames: List[bytes], workdir: Optional[Path] = None):
        self.frames = frames
        self.workdir = workdir

    def __len__(self):
        return len(self.frames)

    def release(self):
        """Remove the temporary directory. Safe to call more than once."""
        if self.workdir is not None:
            shutil.rmtree(self.workdir, ignore_errors=True)
            self.workdir = None


def get_ffmpeg_path() -> Optional[str]:
    """Get ffmpeg path, falling back to the imageio-ffmpeg bundled binary."""
    if shutil.which('ffmpeg'):
        return 'ffmpeg'
    try:
        import imageio_ffmpeg
        return imageio_ffmpeg.get_ffmpeg_exe()
    except (ImportError, RuntimeError):
        return None


class FfmpegFrameExtractor:
    """Extract frames at a fixed rate by running ffmpeg into a temp directory.

    When ffmpeg cannot decode the input (animated WebP with some builds, for
    one) and a ``fallback`` extractor is given, the fallback is used instead.
    """

    def __init__(self, ffmpeg_path: Optional[str] = None, fallback=None):
        self.ffmpeg_path = ffmpeg_path
        self.fallback = fallback

    def extract(self, data: bytes, rate: int = DEFAULT_SAMPLING_RATE) -> FrameSet:
        try:
            return self._run(data, rate)
        except DecodeFailure as e:
            if self.fallback is None:
                raise
            logger.debug("%s, extracting with %s", e, type(self.fallback).__name__)
            return self.fallback.extract(data, rate)

    def _run(self, data: bytes, rate: int) -> FrameSet:
        ffmpeg = self.ffmpeg_path or get_ffmpeg_path()
        if not ffmpeg:
            raise DecodeFailure("ffmpeg binary not found")

        workdir = Path(tempfile.mkdtemp(prefix='pixelpop-frames-'))
        try:
            input_path = workdir / 'input.gif'
            input_path.write_bytes(data)

            result = subprocess.run(
                [ffmpeg, '-i', str(input_path), '-vf', f'fps={rate}', '-y',
                 str(workdir / 'frame_%04d.png')],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
            if result.returncode != 0:
                tail = result.stderr.decode('utf-8', 'replace').strip().splitlines()[-1:]
                raise DecodeFailure(f"ffmpeg failed: {''.join(tail) or result.returncode}")

            frames = [p.read_bytes() for p in sorted(workdir.glob('frame_*.png'))]
        except BaseException:
            shutil.rmtree(workdir, ignore_errors=True)
            raise

        logger.debug("ffmpeg extracted %d frames at %s fps into %s", len(frames), rate, workdir)
        return FrameSet(frames, workdir)


class PillowFrameExtractor:
    """Resample an animation's frames to a fixed rate using frame durations."""

    def extract(self, data: bytes, rate: int = DEFAULT_SAMPLING_RATE) -> FrameSet:
        try:
            image = Image.open(BytesIO(data))
            timeline = []
            for frame in ImageSequence.Iterator(image):
                duration = frame.info.get('duration') or DEFAULT_FRAME_DURATION_MS
                timeline.append((duration, self._to_png(frame)))
        except (UnidentifiedImageError, OSError) as e:
            raise DecodeFailure(f"cannot decode animation: {e}") from e

        frames = self._sample(timeline, rate)
        logger.debug("pillow sampled %d frames at %s fps", len(frames), rate)
        return FrameSet(frames)

    @staticmethod
    def _to_png(frame: Image.Image) -> bytes:
        buf = BytesIO()
        frame.convert('RGBA').save(buf, format='PNG')
        return buf.getvalue()

    @staticmethod
    def _sample(timeline, rate: int) -> List[bytes]:
        if not timeline:
            return []
        total_ms = sum(duration for duration, _ in timeline)
        step_ms = 1000 / rate
        count = max(1, round(total_ms / step_ms))

        frames = []
        index = 0
        frame_end = timeline[0][0]
        for n in range(count):
            t = n * step_ms
            while t >= frame_end and index < len(timeline) - 1:
                index += 1
                frame_end += timeline[index][0]
            frames.append(timeline[index][1])
        return frames


def default_extractor():
    """ffmpeg when a binary is available, else Pillow."""
    ffmpeg = get_ffmpeg_path()
    if ffmpeg:
        return FfmpegFrameExtractor(ffmpeg, fallback=PillowFrameExtractor())
    return PillowFrameExtractor()
