#!/usr/bin/env python3
"""
Local Quantum Random Data Store
Keeps a buffer of previously fetched ANU bytes on disk, plus the two
thresholds that govern refilling it

Files (inside the data directory):
- qrn_store.bin       raw bytes, oldest first
- qrn_settings.yaml   min_store_size / target_store_size

Refill policy:
- Below min_store_size after an observe -> top up to target_store_size
- 'fill' tops up to target_store_size on demand
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from anu_client import AnuClient
from display import DisplayStyle, display
from qrn_commands.errors import ParseSettingsError


STORE_FILE_NAME = "qrn_store.bin"
SETTINGS_FILE_NAME = "qrn_settings.yaml"

DEFAULT_MIN_STORE_SIZE = 2000
DEFAULT_TARGET_STORE_SIZE = 3000


@dataclass
class StoreSettings:
	"""Persistent store thresholds, in bytes"""
	min_store_size: int = DEFAULT_MIN_STORE_SIZE
	target_store_size: int = DEFAULT_TARGET_STORE_SIZE

	def to_dict(self) -> Dict[str, Any]:
		"""Convert to dictionary for YAML serialization"""
		return {
			'min_store_size': self.min_store_size,
			'target_store_size': self.target_store_size
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'StoreSettings':
		"""Create from dictionary (YAML loading); raises ParseSettingsError on bad values"""
		if not isinstance(data, dict):
			raise ParseSettingsError(f"Expected a mapping of settings, got: {data!r}")

		unknown = set(data) - {'min_store_size', 'target_store_size'}
		if unknown:
			raise ParseSettingsError(f"Unknown settings: {', '.join(sorted(unknown))}")

		values = {}
		for key, default in (('min_store_size', DEFAULT_MIN_STORE_SIZE),
							 ('target_store_size', DEFAULT_TARGET_STORE_SIZE)):
			value = data.get(key, default)
			if isinstance(value, bool) or not isinstance(value, int) or value < 0:
				raise ParseSettingsError(f"Setting '{key}' must be a non-negative integer, got: {value!r}")
			values[key] = value

		return cls(**values)


class QRNStore:
	"""
	Handle on the on-disk store and its settings

	Every operation reads the files fresh, so the handle holds no
	cached state beyond paths and the ANU client.
	"""

	def __init__(self, data_dir: Union[str, Path], client: Optional[AnuClient] = None):
		self.data_dir = Path(data_dir).expanduser()
		self.store_path = self.data_dir / STORE_FILE_NAME
		self.settings_path = self.data_dir / SETTINGS_FILE_NAME
		self.client = client or AnuClient()
		self.logger = logging.getLogger(__name__)

	def initialize(self) -> StoreSettings:
		"""Create data directory and empty store if missing, validate settings"""
		self.data_dir.mkdir(parents=True, exist_ok=True)
		if not self.store_path.exists():
			self.store_path.write_bytes(b"")
			self.logger.info(f"Created empty store: {self.store_path}")
		settings = self.load_settings()
		if not self.settings_path.exists():
			self.save_settings(settings)
		return settings

	# ── Settings ──────────────────────────────────────────────

	def load_settings(self) -> StoreSettings:
		"""Load thresholds; defaults if no settings file exists yet"""
		if not self.settings_path.exists():
			return StoreSettings()
		try:
			with open(self.settings_path, 'r') as f:
				data = yaml.safe_load(f)
		except yaml.YAMLError as e:
			raise ParseSettingsError(f"{self.settings_path}: {e}") from e
		except OSError as e:
			raise ParseSettingsError(f"Could not read {self.settings_path}: {e}") from e

		if data is None:
			return StoreSettings()
		return StoreSettings.from_dict(data)

	def save_settings(self, settings: StoreSettings) -> None:
		self.data_dir.mkdir(parents=True, exist_ok=True)
		with open(self.settings_path, 'w') as f:
			f.write("# QRN store settings\n")
			yaml.dump(settings.to_dict(), f, default_flow_style=False, sort_keys=False)
		self.logger.debug(f"Settings saved to: {self.settings_path}")

	def get_min_store_size(self) -> int:
		return self.load_settings().min_store_size

	def get_target_store_size(self) -> int:
		return self.load_settings().target_store_size

	def set_min_store_size(self, n: int) -> None:
		settings = self.load_settings()
		settings.min_store_size = n
		self.save_settings(settings)
		if n > settings.target_store_size:
			self.logger.warning(f"Minimum store size {n} exceeds target {settings.target_store_size}")

	def set_target_store_size(self, n: int) -> None:
		settings = self.load_settings()
		settings.target_store_size = n
		self.save_settings(settings)
		if n < settings.min_store_size:
			self.logger.warning(f"Target store size {n} is below minimum {settings.min_store_size}")

	def restore_defaults(self) -> None:
		self.save_settings(StoreSettings())

	# ── Raw store access ──────────────────────────────────────

	def get_store_file(self) -> str:
		return str(self.store_path)

	def get_store(self) -> bytes:
		if not self.store_path.exists():
			return b""
		return self.store_path.read_bytes()

	def store_size(self) -> int:
		if not self.store_path.exists():
			return 0
		return self.store_path.stat().st_size

	def _write_store(self, data: bytes) -> None:
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.store_path.write_bytes(data)

	# ── Operations ────────────────────────────────────────────

	def add_to_store(self, n: int) -> None:
		"""Fetch n bytes from ANU and append them to the store"""
		fresh = self.client.fetch_qrn(n)
		self._write_store(self.get_store() + fresh)
		self.logger.info(f"Added {len(fresh)} bytes to store")

	def fill(self) -> None:
		"""Top the store up to the target size"""
		settings = self.load_settings()
		needed = settings.target_store_size - self.store_size()
		if needed <= 0:
			self.logger.info("Store already at or above target size")
			return
		self.add_to_store(needed)

	def reinitialize(self) -> None:
		self.restore_defaults()
		self.fill()

	def observe(self, style: DisplayStyle, n: int) -> None:
		"""
		Display n bytes, consuming them from the store

		Bytes missing from the store are fetched live. Afterwards the
		store is refilled to target if it has dropped below minimum.
		"""
		settings = self.load_settings()
		store = self.get_store()
		taken, rest = store[:n], store[n:]
		if len(taken) < n:
			taken += self.client.fetch_qrn(n - len(taken))
		self._write_store(rest)
		display(style, taken)

		if len(rest) < settings.min_store_size:
			self.logger.info(f"Store below minimum ({len(rest)} < {settings.min_store_size}), refilling")
			self.fill()

	def peek(self, style: DisplayStyle, n: int) -> None:
		"""Display up to n bytes from the store without removing them"""
		display(style, self.get_store()[:n])

	def peek_all(self, style: DisplayStyle) -> None:
		display(style, self.get_store())
