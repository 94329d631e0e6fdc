"""
QRN Command Grammar
===================

Turns a typed line into one validated Command, or into nothing.

Grammar
-------
Matching is case-insensitive and exact in arity. N is a run of
decimal digits; STYLE is an optional trailing 'spins' or 'binary'.

    add N                          Add(N)
    live N [STYLE]                 Live(style, N)
    observe N [STYLE]              Observe(style, N)
    peek N [STYLE]                 Peek(style, N)
    peekall [STYLE]                PeekAll(style)
    peek all [STYLE]               PeekAll(style)
    fill                           Fill
    restore                        RestoreDefaults
    reinitialize                   Reinitialize
    status                         Status
    save PATH                      Save(PATH)
    set minstoresize N             Set(MIN_SIZE, N)
    set targetstoresize N          Set(TARGET_SIZE, N)
    help | ?                       Help
    quit | q                       Quit

Anything else, including a known verb with a missing or non-numeric
argument, yields None. There is no partial or default command.

The PATH of 'save' keeps the letter case the user typed; every other
token is compared lower-cased.

Module Contents
---------------
    Command and its subclasses   Frozen dataclasses, one per command
    Setting                      Which store threshold a Set changes
    cwords()                     Lower-case and split a line
    read_int()                   Digit-only word -> int (or None)
    read_command()               Line -> Command (or None)
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from display import DisplayStyle


# ─── Domain Model ───────────────────────────────────────────────────

class Setting(Enum):
    """Store threshold targeted by a 'set' command."""
    MIN_SIZE = "minstoresize"
    TARGET_SIZE = "targetstoresize"


@dataclass(frozen=True)
class Command:
    """Base class for every parsed command. Never instantiated directly."""


@dataclass(frozen=True)
class Add(Command):
    count: int


@dataclass(frozen=True)
class Observe(Command):
    style: DisplayStyle
    count: int


@dataclass(frozen=True)
class Peek(Command):
    style: DisplayStyle
    count: int


@dataclass(frozen=True)
class PeekAll(Command):
    style: DisplayStyle


@dataclass(frozen=True)
class Live(Command):
    style: DisplayStyle
    count: int


@dataclass(frozen=True)
class Fill(Command):
    pass


@dataclass(frozen=True)
class RestoreDefaults(Command):
    pass


@dataclass(frozen=True)
class Reinitialize(Command):
    pass


@dataclass(frozen=True)
class Status(Command):
    pass


@dataclass(frozen=True)
class Save(Command):
    path: str


@dataclass(frozen=True)
class Set(Command):
    setting: Setting
    count: int


@dataclass(frozen=True)
class Help(Command):
    pass


@dataclass(frozen=True)
class Quit(Command):
    pass


# ─── Tokenizer ──────────────────────────────────────────────────────

DIGITS = "0123456789"

STYLE_WORDS = {
    "spins": DisplayStyle.SPINS,
    "binary": DisplayStyle.BITS,
}


def cwords(line: str) -> list[str]:
    """Lower-case a line and split it on whitespace."""
    return line.lower().split()


def read_int(word: str) -> Optional[int]:
    """Parse a word made only of decimal digits.

    Digits are read most-significant first and accumulated by place
    value. Signs, spaces, non-ASCII digits, or an empty word give None.

    Examples
    --------
        read_int("042")   →  42
        read_int("-5")    →  None
        read_int("1e3")   →  None
    """
    if not word:
        return None
    value = 0
    for ch in word:
        digit = DIGITS.find(ch)
        if digit < 0:
            return None
        value = value * 10 + digit
    return value


def _read_style(words: list[str]) -> Optional[DisplayStyle]:
    """Optional trailing style modifier: [] → DEFAULT, one known word → style."""
    if not words:
        return DisplayStyle.DEFAULT
    if len(words) == 1:
        return STYLE_WORDS.get(words[0])
    return None


# ─── Parser ─────────────────────────────────────────────────────────

# Verbs taking a byte count and an optional style: verb N [STYLE]
_COUNTED_STYLED: dict[str, Callable[[DisplayStyle, int], Command]] = {
    "live": Live,
    "observe": Observe,
    "peek": Peek,
}

# Verbs that stand alone
_BARE: dict[str, Command] = {
    "fill": Fill(),
    "restore": RestoreDefaults(),
    "reinitialize": Reinitialize(),
    "status": Status(),
    "help": Help(),
    "?": Help(),
    "quit": Quit(),
    "q": Quit(),
}

_SETTINGS = {setting.value: setting for setting in Setting}


def read_command(line: str) -> Optional[Command]:
    """Parse one line of input into a Command.

    Parameters
    ----------
    line : str
        The raw line as typed at the prompt.

    Returns
    -------
    Command or None
        None when the line matches no pattern. Never raises.
    """
    words = cwords(line)
    if not words:
        return None

    verb, rest = words[0], words[1:]

    if verb in _BARE:
        return _BARE[verb] if not rest else None

    if verb == "add":
        if len(rest) != 1:
            return None
        count = read_int(rest[0])
        return Add(count) if count is not None else None

    if verb == "peekall":
        style = _read_style(rest)
        return PeekAll(style) if style is not None else None

    if verb == "peek" and rest and rest[0] == "all":
        style = _read_style(rest[1:])
        return PeekAll(style) if style is not None else None

    if verb in _COUNTED_STYLED:
        if not rest:
            return None
        count = read_int(rest[0])
        style = _read_style(rest[1:])
        if count is None or style is None:
            return None
        return _COUNTED_STYLED[verb](style, count)

    if verb == "save":
        if len(rest) != 1:
            return None
        # same position, original case
        return Save(line.split()[1])

    if verb == "set":
        if len(rest) != 2 or rest[0] not in _SETTINGS:
            return None
        count = read_int(rest[1])
        return Set(_SETTINGS[rest[0]], count) if count is not None else None

    return None
