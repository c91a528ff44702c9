import io

from PIL import Image

from pixelpop.frames import FrameSet


def png_bytes(size=(4, 4), color=(255, 0, 0, 255)):
    buf = io.BytesIO()
    Image.new("RGBA", size, color).save(buf, format="PNG")
    return buf.getvalue()


def gif_bytes(colors=((255, 0, 0), (0, 255, 0), (0, 0, 255)), size=(8, 8), duration=100):
    frames = [Image.new("RGB", size, color) for color in colors]
    buf = io.BytesIO()
    frames[0].save(buf, format="GIF", save_all=True, append_images=frames[1:], duration=duration, loop=0)
    return buf.getvalue()


class FakeTTY(io.StringIO):
    """A text stream that claims to be a terminal."""

    def isatty(self):
        return True


class ManualScheduler:
    """Holds the next tick until the test runs it."""

    def __init__(self):
        self.pending = None
        self.cancelled = 0

    def call_soon(self, callback):
        self.pending = callback

    def cancel(self):
        self.pending = None
        self.cancelled += 1

    def run_once(self):
        callback, self.pending = self.pending, None
        callback()


class FakeClock:
    def __init__(self, step=10.0):
        self.ticks = 0
        self.step = step

    def __call__(self):
        return self.ticks * self.step

    def advance(self):
        self.ticks += 1


class StaticExtractor:
    def __init__(self, frames, frame_set_cls=FrameSet):
        self.frames = frames
        self.frame_set_cls = frame_set_cls
        self.calls = []
        self.frame_set = None

    def extract(self, data, rate):
        self.calls.append((data, rate))
        self.frame_set = self.frame_set_cls(list(self.frames))
        return self.frame_set


class RecordingSink:
    def __init__(self):
        self.frames = []
        self.completed = 0

    def render(self, frame):
        self.frames.append(frame)

    def on_complete(self):
        self.completed += 1


def webp_bytes(colors=((255, 0, 0), (0, 255, 0), (0, 0, 255)), size=(8, 8), duration=100):
    frames = [Image.new("RGB", size, color) for color in colors]
    buf = io.BytesIO()
    frames[0].save(buf, format="WEBP", save_all=True, append_images=frames[1:], duration=duration, lossless=True)
    return buf.getvalue()
