"""
QRN Error Context
=================

The two recoverable failure kinds of the QRN manager, and the small
helpers that decide what happens when one of them surfaces.

Failure Kinds
-------------
ParseResponseError
    The ANU server answered, but the payload could not be interpreted
    (or the request never produced a usable answer at all).

ParseSettingsError
    The local settings file exists but could not be read as settings.

Both are exceptions derived from QError. Raising one ends the
computation on the spot; nothing after the failing step runs.

Consumption Disciplines
-----------------------
A computation is run with attempt(), which captures a QError into an
Outcome instead of letting it propagate. The Outcome is then consumed
in one of two ways:

    handle_errors(outcome)       Fire-and-report. Print the rendered
                                 error and carry on. Used for every
                                 command typed at the prompt.

    handle_with_crash(outcome)   Fire-or-crash. Abort the process with
                                 the rendered error. Used only for the
                                 one-time setup before the first prompt.

    outcome = attempt(store.fill)
    handle_errors(outcome)

Anything that is not a QError (a bug, a KeyboardInterrupt) is not
captured by attempt() and propagates normally.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional


class QErrorKind(Enum):
    PARSE_RESPONSE = "parse_response"
    PARSE_SETTINGS = "parse_settings"


class QError(Exception):
    """Base class for the two recoverable QRN failures.

    Attributes
    ----------
    detail : str
        Human-readable description of what went wrong.
    """

    kind: QErrorKind
    headline: str = "QRN error:"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def render(self) -> str:
        """Two-line message: what failed, then the raw detail."""
        return f"{self.headline}\n{self.detail}"

    def __str__(self) -> str:
        return self.render()


class ParseResponseError(QError):
    """The ANU server response could not be interpreted."""
    kind = QErrorKind.PARSE_RESPONSE
    headline = "Problem parsing response from ANU server:"


class ParseSettingsError(QError):
    """The local settings file could not be loaded or interpreted."""
    kind = QErrorKind.PARSE_SETTINGS
    headline = "Problem loading or interpreting settings file:"


@dataclass(frozen=True)
class Outcome:
    """Result of a computation run in the error context.

    Exactly one of value/error is meaningful: if error is set, the
    computation stopped at the failing step and value is None.
    """
    value: Any = None
    error: Optional[QError] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


def attempt(fn: Callable[..., Any], *args, **kwargs) -> Outcome:
    """Run fn, capturing a QError into the returned Outcome."""
    try:
        return Outcome(value=fn(*args, **kwargs))
    except QError as e:
        return Outcome(error=e)


def handle_errors(outcome: Outcome, echo: Callable[[str], Any] = print) -> Any:
    """Fire-and-report: print the error if there is one, never raise.

    Returns the computed value, or None when the computation failed.
    """
    if outcome.is_error:
        echo(outcome.error.render())
        return None
    return outcome.value


def handle_with_crash(outcome: Outcome) -> Any:
    """Fire-or-crash: return the value, or exit the process with the error."""
    if outcome.is_error:
        raise SystemExit(outcome.error.render())
    return outcome.value
