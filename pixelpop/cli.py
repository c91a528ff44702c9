#!/usr/bin/env python3
"""
PixelPop CLI - Command line interface for displaying images and GIFs in terminal.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import __version__
from .bitmap import is_animated
from .core import AnimationOptions, RenderOptions, get_file_type, play_gif_buffer, render_buffer
from .errors import PixelPopError
from .terminal import get_capabilities, is_interactive

logger = logging.getLogger(__name__)


def _dimension(value: str):
    """Accept '40' (cells) or '50%'; anything else is checked later."""
    if value.endswith('%'):
        return value
    try:
        return int(value)
    except ValueError:
        try:
            return float(value)
        except ValueError:
            return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='pixelpop',
        description='Display images and animated GIFs in the terminal',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  pixelpop image.png                    # Display an image
  pixelpop photo.jpg --width 60%        # Display at 60% of the terminal width
  pixelpop animation.gif --fps 24       # Play animated GIF at up to 24 FPS
  pixelpop animation.gif -d 5           # Stop playback after 5 seconds

Output protocol is chosen from the terminal:
  iTerm2                  inline images
  kitty, WezTerm, Konsole kitty graphics protocol
  anything else           24-bit ANSI half blocks
        '''
    )

    parser.add_argument('file', help='Path to image or GIF file')
    parser.add_argument('-w', '--width', type=_dimension, default=None,
                        help='Width in columns or as a percentage, e.g. 50%% (default: 100%%)')
    parser.add_argument('-H', '--height', type=_dimension, default=None,
                        help='Height in rows or as a percentage (default: 100%%)')
    parser.add_argument('--no-aspect', action='store_true',
                        help='Stretch to the requested size instead of preserving aspect ratio')
    parser.add_argument('-f', '--fps', type=int, default=30,
                        help='Maximum playback frame rate for animations (default: 30)')
    parser.add_argument('--sample-rate', type=int, default=30,
                        help='Frame extraction rate for animations (default: 30)')
    parser.add_argument('-d', '--duration', type=float, default=None,
                        help='Stop animations after this many seconds (default: play until Ctrl+C)')
    parser.add_argument('--gif', action='store_true',
                        help='Treat the file as an animation regardless of its extension')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Log debug output to stderr')
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}')
    return parser


def _render_options(args) -> dict:
    options = {'preserve_aspect_ratio': not args.no_aspect}
    if args.width is not None or args.height is not None:
        options['width'] = args.width
        options['height'] = args.height
    return options


async def _play(data: bytes, args) -> None:
    options = AnimationOptions(
        maximum_frame_rate=args.fps,
        sampling_rate=args.sample_rate,
        **_render_options(args),
    )
    handle = await play_gif_buffer(data, options)

    loop = asyncio.get_running_loop()
    finished = loop.create_future()
    handle.add_done_callback(lambda: finished.done() or finished.set_result(None))

    try:
        await asyncio.wait_for(asyncio.shield(finished), timeout=args.duration)
    except asyncio.TimeoutError:
        pass
    finally:
        handle.cancel()
        await finished


def main(argv=None):
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )

    path = Path(args.file)
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        sys.exit(1)

    if args.fps <= 0 or args.sample_rate <= 0:
        print("Error: --fps and --sample-rate must be positive", file=sys.stderr)
        sys.exit(1)

    logger.debug("terminal: %s", get_capabilities().kind.value)

    try:
        data = path.read_bytes()
        file_type = get_file_type(path)

        if args.gif or (file_type == 'gif' and is_animated(data)):
            asyncio.run(_play(data, args))
            return

        if file_type == 'unknown':
            logger.info("Unknown file type, attempting to display as image...")
        output = render_buffer(data, RenderOptions(**_render_options(args)))
        if not is_interactive(sys.stdout):
            print(output)

    except PixelPopError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except OSError as e:
        print(f"Error: cannot read {path}: {e.strerror or e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        sys.exit(0)


if __name__ == '__main__':
    main()
