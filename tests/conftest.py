import pytest

from pixelpop.terminal import TerminalKind, capabilities_for


@pytest.fixture
def standard():
    return capabilities_for(TerminalKind.STANDARD)


@pytest.fixture
def kitty_caps():
    return capabilities_for(TerminalKind.KITTY)


@pytest.fixture
def iterm_caps():
    return capabilities_for(TerminalKind.ITERM)
