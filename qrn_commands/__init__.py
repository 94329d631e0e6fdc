"""
QRN Command System
==================

The command-interpretation layer of the QRN manager: the grammar that
turns a typed line into a Command, the dispatcher that maps each
Command to one store, network or filesystem operation, and the error
context that keeps a bad ANU response or a broken settings file from
ending the session.

Architecture Overview
---------------------
Every line typed at the QRN> prompt passes through the same chain:

    ┌─────────────────┐     ┌──────────────┐     ┌──────────────────────┐
    │  QRN> prompt     │────►│  Grammar     │────►│  Dispatcher          │
    │  (qrn_manager)   │     │ read_command │     │  announce + dispatch │
    └─────────────────┘     └──────┬───────┘     │  → QRNStore          │
                                   │              │  → AnuClient         │
                              ┌────▼────┐         │  → filesystem        │
                              │  None   │         └──────────┬───────────┘
                              │ (syntax │                    │
                              │  error) │              ┌─────▼─────┐
                              └─────────┘              │  QError?  │──► printed,
                                                       └───────────┘    loop goes on

Key design principle: nothing typed at the prompt can end the session
except 'quit', 'q' or end-of-input. Syntax errors are reported by the
loop; ParseResponseError and ParseSettingsError are reported by the
dispatcher. Only the one-time setup before the first prompt may abort.

Module Structure
----------------
    qrn_commands/
    ├── __init__.py          ← This file.
    ├── grammar.py           ← Command types, tokenizer, read_command().
    ├── dispatcher.py        ← Announcer, help text, Dispatcher.
    ├── errors.py            ← QError kinds, Outcome, attempt(),
    │                          handle_errors(), handle_with_crash().
    └── test_commands.py     ← Tests for all of the above.

Usage
-----
    from qrn_commands import read_command
    from qrn_commands.dispatcher import Dispatcher

    dispatcher = Dispatcher(store)
    command = read_command(line)
    if command is None:
        show_syntax_error()
    else:
        dispatcher.run(command)

The dispatcher is imported from its own module rather than from here,
because it pulls in the store and ANU client, which themselves depend
on qrn_commands.errors.

Dependencies
------------
PyYAML and httpx, through the store and client the dispatcher drives.
The grammar and error context themselves are standard library only.
"""

from qrn_commands.errors import (
    Outcome,
    ParseResponseError,
    ParseSettingsError,
    QError,
    attempt,
    handle_errors,
    handle_with_crash,
)
from qrn_commands.grammar import Command, Setting, read_command, read_int

__all__ = [
    'Command', 'Setting', 'read_command', 'read_int',
    'QError', 'ParseResponseError', 'ParseSettingsError',
    'Outcome', 'attempt', 'handle_errors', 'handle_with_crash',
]
