"""
QRN Command Dispatcher
======================

Maps each parsed Command to the one store, network or filesystem
operation it stands for, and narrates it first.

Role in the System
------------------
    User types: "observe 25 spins"
                  ↓
    read_command() → Observe(SPINS, 25)
                  ↓
    announce() prints "Observing 25 bytes (200 bits) of ..."
                  ↓
    Dispatcher looks up Observe in its handler table → store.observe
                  ↓
    Runs it under fire-and-report: a QError is printed, never raised

Design Decisions
----------------
- The handler table is keyed by Command class. Each class has exactly
  one handler; registering a second one for the same class is an error.
- The store handle, ANU client, input source and message sink are all
  passed in. Rendered bytes go to stdout through display.display.
- Live is the only command that touches two collaborators: it fetches
  and then displays what it fetched.
- Quit has a handler that does nothing. The interactive loop stops
  before dispatching it, but the table stays total.

Classes
-------
Dispatcher
    Handler table plus dispatch()/run(). run() = announce + dispatch.

Functions
---------
bits_n_bytes(n)
    "5 bytes (40 bits)" / "1 byte (8 bits)".
description(command)
    One-line narration, or None for self-describing commands.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Optional

import display as display_module
from anu_client import AnuClient
from qrn_commands.errors import attempt, handle_errors
from qrn_commands.grammar import (
    Add,
    Command,
    Fill,
    Help,
    Live,
    Observe,
    Peek,
    PeekAll,
    Quit,
    Reinitialize,
    RestoreDefaults,
    Save,
    Set,
    Setting,
    Status,
)
from qrn_store import QRNStore


HELP_MESSAGE = "\n".join([
    "===== Available commands =====",
    "add [# bytes]  –  Request specified number of QRN bytes from ANU and add them to the store",
    "live [# bytes]  –  Request specified number of QRN bytes from ANU and display them directly",
    "observe [# bytes] –  Take and display QRN data from store, retrieving more if needed. "
    "Those taken from the store are removed.",
    "peek [# bytes]  –  Display up to the specified number of bytes from the store. They are not removed.",
    "peekAll  –  Display all bytes from the store. They are not removed.",
    "fill  –  Fill the store to the target size with live ANU quantum random numbers",
    "restore  –  Restore default settings.",
    "reinitialize  –  Restore default settings, and refill QRN store to target size.",
    "status  –  Display status of store and settings.",
    "save [filepath]  –  save binary qrn file to specified file path.",
    "set minStoreSize [# bytes]  –  Set the number of bytes below which we refill.",
    "set targetStoreSize [# bytes]  –  Set the number of bytes we aim to have when refilling.",
    "help/?  –  Display this text.",
    "quit/q  –  quit.",
    "",
    "===== Display options =====",
    "Commands that display QRN data can take an optional display style modifier: 'spins' or 'binary'",
    "Examples:",
    "\"observe 25 spins\"",
    "\"live 50 binary\"",
    "",
])

OVERWRITE_PROMPT = "File already exists. Enter 'yes' to overwrite."


# ─── Announcing ─────────────────────────────────────────────────────

def bits_n_bytes(n: int) -> str:
    unit = "byte" if n == 1 else "bytes"
    return f"{n} {unit} ({n * 8} bits)"


def description(command: Command) -> Optional[str]:
    """Narration printed before a command runs.

    Status, Save, Set and Help describe themselves through their own
    output (or need no preamble), so they return None.
    """
    if isinstance(command, Add):
        return f"Adding {bits_n_bytes(command.count)} of quantum random data to store"
    if isinstance(command, Live):
        return f"Viewing up to {bits_n_bytes(command.count)} of live quantum random data from ANU"
    if isinstance(command, Observe):
        return f"Observing {bits_n_bytes(command.count)} of quantum random data from store"
    if isinstance(command, Peek):
        return f"Viewing up to {bits_n_bytes(command.count)} of quantum random data from store"
    if isinstance(command, PeekAll):
        return "Viewing all quantum random data from store"
    if isinstance(command, Fill):
        return "Filling quantum random data store to specified level"
    if isinstance(command, RestoreDefaults):
        return "Reverting to default settings"
    if isinstance(command, Reinitialize):
        return "Reverting to default settings, and refilling store"
    if isinstance(command, Quit):
        return "Exiting"
    return None


# ─── Dispatching ────────────────────────────────────────────────────

class Dispatcher:
    """Routes Commands to collaborator operations.

    Usage
    -----
        dispatcher = Dispatcher(store)
        dispatcher.run(read_command("peek 10 binary"))
    """

    def __init__(self, store: QRNStore, client: Optional[AnuClient] = None,
                 read_line: Callable[[str], str] = input,
                 echo: Callable[[str], Any] = print):
        self.store = store
        self.client = client or store.client
        self.read_line = read_line
        self.echo = echo
        self.logger = logging.getLogger(__name__)
        self._handlers: dict[type, Callable[[Any], None]] = {}

        self.register(Add, lambda c: self.store.add_to_store(c.count))
        self.register(Observe, lambda c: self.store.observe(c.style, c.count))
        self.register(Peek, lambda c: self.store.peek(c.style, c.count))
        self.register(PeekAll, lambda c: self.store.peek_all(c.style))
        self.register(Live, self._live)
        self.register(Fill, lambda c: self.store.fill())
        self.register(RestoreDefaults, lambda c: self.store.restore_defaults())
        self.register(Reinitialize, lambda c: self.store.reinitialize())
        self.register(Status, lambda c: self.status())
        self.register(Save, lambda c: self.save(c.path))
        self.register(Set, self._set)
        self.register(Help, lambda c: self.echo(HELP_MESSAGE))
        self.register(Quit, lambda c: None)

    def register(self, command_type: type, handler: Callable[[Any], None]) -> None:
        """Register the handler for one Command class.

        Raises
        ------
        ValueError
            If command_type already has a handler.
        """
        if command_type in self._handlers:
            raise ValueError(f"Handler collision: '{command_type.__name__}' is already registered")
        self._handlers[command_type] = handler

    def announce(self, command: Command) -> None:
        text = description(command)
        if text is not None:
            self.echo(text)

    def dispatch(self, command: Command) -> None:
        """Run the one operation for command, reporting any QError."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"No handler for command: {command!r}")
        self.logger.debug(f"Dispatching {command!r}")
        handle_errors(attempt(handler, command), echo=self.echo)

    def run(self, command: Command) -> None:
        """Announce, then dispatch."""
        self.announce(command)
        self.dispatch(command)

    # ── Handlers with more than one step ──────────────────────

    def _live(self, command: Live) -> None:
        data = self.client.fetch_qrn(command.count)
        display_module.display(command.style, data)

    def _set(self, command: Set) -> None:
        if command.setting is Setting.MIN_SIZE:
            self.store.set_min_store_size(command.count)
        else:
            self.store.set_target_store_size(command.count)

    def status(self) -> None:
        lines = [
            f"Store contains {bits_n_bytes(self.store.store_size())} of quantum random data",
            "",
            f"Minimum store size set to {bits_n_bytes(self.store.get_min_store_size())}.",
            f"Target store size set to {bits_n_bytes(self.store.get_target_store_size())}.",
            "",
            "Local data store location:",
            self.store.get_store_file(),
            "",
        ]
        for line in lines:
            self.echo(line)

    def save(self, path: str) -> None:
        """Write the whole store to path, confirming before overwriting.

        The existence check and the write are separate steps; a file
        created in between is overwritten without asking.
        """
        data = self.store.get_store()
        if not os.path.exists(path):
            self._write(path, data)
            return

        self.echo(OVERWRITE_PROMPT)
        try:
            answer = self.read_line("")
        except EOFError:
            answer = ""
        if answer == "yes":
            if self._write(path, data):
                self.echo("Data saved.")
        else:
            self.echo("Save aborted.")

    def _write(self, path: str, data: bytes) -> bool:
        try:
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            self.logger.error(f"Error saving store to {path}: {e}")
            self.echo(f"Could not save to {path}: {e.strerror or e}")
            return False
        self.logger.info(f"Wrote {len(data)} bytes to {path}")
        return True
