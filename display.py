"""
Display styles for quantum random data.

Three renderings of the same byte sequence:

    Default   two-digit hex, 16 bytes per line
    Spins     one arrow per bit (up = 1, down = 0), 8 bytes per line
    Bits      eight binary digits per byte, 8 bytes per line
"""

import sys
from enum import Enum
from typing import Iterator, List, Optional, TextIO


class DisplayStyle(Enum):
	"""How a byte sequence is rendered on the terminal"""
	DEFAULT = "default"
	SPINS = "spins"
	BITS = "bits"


SPIN_UP = "↑"
SPIN_DOWN = "↓"

# bytes per output line, per style
LINE_WIDTHS = {
	DisplayStyle.DEFAULT: 16,
	DisplayStyle.SPINS: 8,
	DisplayStyle.BITS: 8,
}


def _spins(byte: int) -> str:
	return "".join(SPIN_UP if bit == "1" else SPIN_DOWN for bit in format(byte, "08b"))


def render_byte(style: DisplayStyle, byte: int) -> str:
	"""Render a single byte in the given style"""
	if style is DisplayStyle.SPINS:
		return _spins(byte)
	if style is DisplayStyle.BITS:
		return format(byte, "08b")
	return format(byte, "02x")


def _chunks(data: bytes, width: int) -> Iterator[bytes]:
	for start in range(0, len(data), width):
		yield data[start:start + width]


def render(style: DisplayStyle, data: bytes) -> List[str]:
	"""
	Render data as a list of output lines

	Args:
		style: Display style to apply
		data: Bytes to render

	Returns:
		One string per output line; a single empty line for empty data
	"""
	if not data:
		return [""]
	width = LINE_WIDTHS[style]
	return [" ".join(render_byte(style, b) for b in chunk) for chunk in _chunks(bytes(data), width)]


def display(style: DisplayStyle, data: bytes, file: Optional[TextIO] = None) -> None:
	"""Print data to the terminal (stdout unless file is given)"""
	out = file or sys.stdout
	for line in render(style, data):
		print(line, file=out)
