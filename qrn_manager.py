#!/usr/bin/env python3
"""
QRN Manager - interactive console for a local store of ANU quantum random numbers
- Request more bytes from ANU into the store
- Observe (consume) or peek at stored bytes in three display styles
- Adjust the store refill thresholds
- Save the store to a binary file

Typed line → read_command() → Dispatcher.run() → QRNStore / AnuClient / filesystem

Class Organization

QRNConsole - the QRN> prompt loop

Startup

main() loads configuration, sets up logging, prepares the store (the
only step allowed to abort the process), then hands over to the loop.
"""

import sys
import logging
from typing import Any, Callable

from config_manager import QRNConfig, setup_configuration, setup_logging
from anu_client import AnuClient
from qrn_store import QRNStore
from qrn_commands.errors import attempt, handle_with_crash
from qrn_commands.grammar import Quit, read_command
from qrn_commands.dispatcher import Dispatcher


PROMPT = "QRN> "

SYNTAX_ERROR_LINES = (
	"***** QRN Error: Couldn't parse command.",
	"***** Enter 'help' or '?' to see list of available commands.",
)


class QRNConsole:
	"""Line-at-a-time command loop"""

	def __init__(self, dispatcher: Dispatcher,
				 read_line: Callable[[str], str] = input,
				 echo: Callable[[str], Any] = print):
		self.dispatcher = dispatcher
		self.read_line = read_line
		self.echo = echo
		self.running = False
		self.logger = logging.getLogger(__name__)

	def run(self) -> None:
		"""Prompt, parse, act; until quit or end of input"""
		self.running = True
		while self.running:
			try:
				line = self.read_line(PROMPT)
			except (EOFError, KeyboardInterrupt):
				self.echo("")
				break
			self.step(line)
		self.running = False

	def step(self, line: str) -> None:
		"""Handle one input line"""
		command = read_command(line)

		if command is None:
			self.logger.debug(f"Unparseable input: {line!r}")
			for text in SYNTAX_ERROR_LINES:
				self.echo(text)
			return

		if isinstance(command, Quit):
			self.running = False
			return

		self.dispatcher.run(command)


def build_console(config: QRNConfig, read_line: Callable[[str], str] = input) -> QRNConsole:
	"""
	Wire store, client, dispatcher and console from configuration

	Preparing the store runs under fire-or-crash: an unreadable
	settings file here ends the process before the first prompt.
	"""
	client = AnuClient(config.anu.to_settings())
	store = QRNStore(config.store.data_dir, client=client)
	handle_with_crash(attempt(store.initialize))

	dispatcher = Dispatcher(store, client=client, read_line=read_line)
	return QRNConsole(dispatcher, read_line=read_line)


def main(argv=None) -> int:
	config, should_exit, _ = setup_configuration(argv)
	if should_exit:
		return 0 if config is None else 1

	setup_logging(config.debug.verbose, config.debug.quiet)

	# line editing and history at the prompt
	import readline  # noqa: F401

	console = build_console(config)
	console.run()
	return 0


if __name__ == "__main__":
	sys.exit(main())
