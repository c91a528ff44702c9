"""
Terminal classification and geometry.

Detection is static: it only looks at environment variables and never
queries the terminal itself. A spoofed or missing variable gives a wrong
answer, and the ANSI path still works for every kind.
"""

import enum
import functools
import os
from dataclasses import dataclass
from typing import Mapping, Optional, TextIO, Tuple

DEFAULT_SIZE = (80, 24)


class TerminalKind(enum.Enum):
    ITERM = "iterm"
    KITTY = "kitty"
    WEZTERM = "wezterm"
    KONSOLE = "konsole"
    VSCODE = "vscode"
    WINDOWS_TERMINAL = "windows-terminal"
    ALACRITTY = "alacritty"
    STANDARD = "standard"


NATIVE_PASSTHROUGH_KINDS = frozenset({TerminalKind.ITERM})
BINARY_PROTOCOL_KINDS = frozenset({TerminalKind.KITTY, TerminalKind.WEZTERM, TerminalKind.KONSOLE})


@dataclass(frozen=True)
class TerminalCapabilities:
    kind: TerminalKind
    supports_true_color: bool
    supports_native_images: bool
    supports_transparency_blend: bool
    use_blank_for_transparency: bool

    @property
    def uses_native_passthrough(self) -> bool:
        return self.kind in NATIVE_PASSTHROUGH_KINDS

    @property
    def uses_binary_protocol(self) -> bool:
        return self.kind in BINARY_PROTOCOL_KINDS


@dataclass(frozen=True)
class EnvironmentSignals:
    """Snapshot of the environment variables that identify a terminal."""

    term: str = ""
    term_program: str = ""
    kitty_window_id: str = ""
    konsole_version: str = ""
    wt_session: str = ""
    wslenv: str = ""
    alacritty_socket: str = ""

    @classmethod
    def from_environ(cls, environ: Optional[Mapping[str, str]] = None) -> "EnvironmentSignals":
        env = os.environ if environ is None else environ
        return cls(
            term=env.get("TERM", ""),
            term_program=env.get("TERM_PROGRAM", ""),
            kitty_window_id=env.get("KITTY_WINDOW_ID", ""),
            konsole_version=env.get("KONSOLE_VERSION", ""),
            wt_session=env.get("WT_SESSION", ""),
            wslenv=env.get("WSLENV", ""),
            alacritty_socket=env.get("ALACRITTY_SOCKET", ""),
        )


def classify(signals: EnvironmentSignals) -> TerminalKind:
    """Return the terminal kind; the first matching signal wins."""
    if signals.term_program == "iTerm.app":
        return TerminalKind.ITERM
    if signals.term == "xterm-kitty" or signals.kitty_window_id:
        return TerminalKind.KITTY
    if signals.term_program == "WezTerm":
        return TerminalKind.WEZTERM
    if signals.term_program == "konsole" or signals.konsole_version:
        return TerminalKind.KONSOLE
    if signals.term_program == "vscode":
        return TerminalKind.VSCODE
    if signals.wt_session or "WT_SESSION" in signals.wslenv:
        return TerminalKind.WINDOWS_TERMINAL
    if signals.alacritty_socket:
        return TerminalKind.ALACRITTY
    return TerminalKind.STANDARD


def capabilities_for(kind: TerminalKind) -> TerminalCapabilities:
    return TerminalCapabilities(
        kind=kind,
        supports_true_color=kind is not TerminalKind.STANDARD,
        supports_native_images=kind in NATIVE_PASSTHROUGH_KINDS | BINARY_PROTOCOL_KINDS,
        supports_transparency_blend=kind in (
            TerminalKind.KITTY,
            TerminalKind.ITERM,
            TerminalKind.WEZTERM,
            TerminalKind.ALACRITTY,
        ),
        # These two mangle partially transparent half blocks
        use_blank_for_transparency=kind in (TerminalKind.WINDOWS_TERMINAL, TerminalKind.VSCODE),
    )


def detect(signals: EnvironmentSignals) -> TerminalCapabilities:
    return capabilities_for(classify(signals))


@functools.lru_cache(maxsize=None)
def get_capabilities() -> TerminalCapabilities:
    """Capabilities of the terminal this process runs in, computed once."""
    return detect(EnvironmentSignals.from_environ())


def is_interactive(stream: Optional[TextIO]) -> bool:
    if stream is None:
        return False
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        # closed stream
        return False


def get_terminal_size(stream: Optional[TextIO] = None) -> Tuple[int, int]:
    """Return (columns, rows) of the terminal, or (80, 24) if not a tty."""
    if not is_interactive(stream):
        return DEFAULT_SIZE
    try:
        size = os.get_terminal_size(stream.fileno())
    except (AttributeError, OSError, ValueError):
        return DEFAULT_SIZE
    return (size.columns or DEFAULT_SIZE[0], size.lines or DEFAULT_SIZE[1])
