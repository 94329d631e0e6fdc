#!/usr/bin/env python3
"""
Configuration system for the QRN manager
Supports YAML files, CLI overrides, and programmatic access
"""

import yaml
import argparse
import logging
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field

import httpx

from anu_client import AnuSettings, DEFAULT_ANU_URL, MAX_REQUEST_BYTES

logger = logging.getLogger(__name__)


@dataclass
class AnuConfig:
	"""ANU quantum random number service connection"""
	url: str = DEFAULT_ANU_URL
	api_key: Optional[str] = None
	timeout: float = 10.0  # seconds per request
	max_request: int = MAX_REQUEST_BYTES  # bytes per request, service limit is 1024

	def to_dict(self) -> Dict[str, Any]:
		return {
			'url': self.url,
			'api_key': self.api_key,
			'timeout': self.timeout,
			'max_request': self.max_request
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'AnuConfig':
		return cls(
			url=data.get('url', DEFAULT_ANU_URL),
			api_key=data.get('api_key'),
			timeout=data.get('timeout', 10.0),
			max_request=data.get('max_request', MAX_REQUEST_BYTES)
		)

	def to_settings(self) -> AnuSettings:
		"""Settings object consumed by AnuClient"""
		return AnuSettings(
			url=self.url,
			api_key=self.api_key,
			timeout=float(self.timeout),
			max_request=int(self.max_request)
		)


@dataclass
class StoreConfig:
	"""Where the local store and its settings file live"""
	data_dir: str = "~/.local/share/qrn"

	def to_dict(self) -> Dict[str, Any]:
		return {'data_dir': self.data_dir}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'StoreConfig':
		return cls(data_dir=data.get('data_dir', "~/.local/share/qrn"))


@dataclass
class ConsoleConfig:
	"""Console messages logging level configuration"""
	verbose: bool = False
	quiet: bool = False

	def to_dict(self) -> Dict[str, Any]:
		return {
			'verbose': self.verbose,
			'quiet': self.quiet
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'ConsoleConfig':
		return cls(
			verbose=data.get('verbose', False),
			quiet=data.get('quiet', False)
		)


def _section(data: Dict[str, Any], key: str) -> Dict[str, Any]:
	"""One section of the config file, or {} if it is missing or not a mapping"""
	section = data.get(key)
	if section is None:
		return {}
	if not isinstance(section, dict):
		logger.warning(f"Config section '{key}' is not a mapping, using defaults")
		return {}
	return section


@dataclass
class QRNConfig:
	"""Complete configuration for the QRN manager"""
	anu: AnuConfig = field(default_factory=AnuConfig)
	store: StoreConfig = field(default_factory=StoreConfig)
	debug: ConsoleConfig = field(default_factory=ConsoleConfig)

	# Metadata
	config_version: str = "1.0"

	def to_dict(self) -> Dict[str, Any]:
		"""Convert to dictionary for YAML serialization"""
		return {
			'config_version': self.config_version,
			'anu': self.anu.to_dict(),
			'store': self.store.to_dict(),
			'debug': self.debug.to_dict()
		}

	@classmethod
	def from_dict(cls, data: Dict[str, Any]) -> 'QRNConfig':
		"""Create from dictionary, filling missing sections with defaults"""
		return cls(
			anu=AnuConfig.from_dict(_section(data, 'anu')),
			store=StoreConfig.from_dict(_section(data, 'store')),
			debug=ConsoleConfig.from_dict(_section(data, 'debug')),
			config_version=str(data.get('config_version', "1.0"))
		)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
	"""
	Configure root logging for the console

	The REPL owns stdout, so log records go to stderr and stay at
	WARNING unless verbose mode asks for everything.
	"""
	if verbose:
		logging.basicConfig(level=logging.DEBUG, format='🐛 %(name)s: %(message)s', force=True)
	elif quiet:
		logging.basicConfig(level=logging.ERROR, format='⚠️  %(message)s', force=True)
	else:
		logging.basicConfig(level=logging.WARNING, format='⚠️  %(message)s', force=True)


class ConfigurationManager:
	"""
	Manages configuration loading, merging, and validation
	"""

	def __init__(self, config_file: str = "qrn.yaml"):
		self.config_file = config_file
		self.config = QRNConfig()
		self.config_file_path = None

		self.logger = logging.getLogger(__name__)

		# Standard config file locations (in order of preference)
		self.config_search_paths = [
			Path.cwd() / "qrn.yaml",  # Current directory
			Path.cwd() / "config" / "qrn.yaml",  # Config subdirectory
			Path.home() / ".config" / "qrn" / "config.yaml",  # User config
		]

	def load_config(self, config_file: Optional[str] = None) -> QRNConfig:
		"""
		Load configuration from file with fallback chain

		Args:
			config_file: Specific config file path, or None for auto-discovery

		Returns:
			Loaded configuration object (defaults if nothing usable was found)
		"""
		if config_file:
			config_path = Path(config_file)
			if config_path.exists():
				self.config = self._load_yaml_file(config_path)
				self.config_file_path = config_path
				self.logger.info(f"Loaded config from: {config_path}")
			else:
				self.logger.warning(f"Config file not found: {config_path}")
				self.logger.info("Using default configuration")
				self.config = QRNConfig()
		else:
			for path in self.config_search_paths:
				if path.exists():
					self.config = self._load_yaml_file(path)
					self.config_file_path = path
					self.logger.info(f"Auto-discovered config: {path}")
					break
			else:
				self.logger.info("No config file found, using defaults")
				self.config = QRNConfig()

		return self.config

	def _load_yaml_file(self, file_path: Path) -> QRNConfig:
		"""Load configuration from YAML file"""
		try:
			with open(file_path, 'r') as f:
				yaml_data = yaml.safe_load(f) or {}
			if not isinstance(yaml_data, dict):
				self.logger.error(f"Config file {file_path} is not a mapping, using defaults")
				return QRNConfig()
			return QRNConfig.from_dict(yaml_data)

		except (OSError, yaml.YAMLError) as e:
			self.logger.error(f"Error loading config file {file_path}: {e}")
			return QRNConfig()

	def merge_cli_args(self, args: argparse.Namespace) -> QRNConfig:
		"""Apply command line overrides (CLI beats config file)"""
		config = self.config
		if getattr(args, 'data_dir', None):
			config.store.data_dir = args.data_dir
		if getattr(args, 'anu_url', None):
			config.anu.url = args.anu_url
		if getattr(args, 'api_key', None):
			config.anu.api_key = args.api_key
		if getattr(args, 'timeout', None) is not None:
			config.anu.timeout = args.timeout
		if getattr(args, 'verbose', False):
			config.debug.verbose = True
		if getattr(args, 'quiet', False):
			config.debug.quiet = True
		return config

	def save_config(self, file_path: Optional[str] = None) -> bool:
		"""
		Save current configuration to YAML file

		Args:
			file_path: Target file path, or None to use loaded file path

		Returns:
			True if saved successfully
		"""
		if file_path:
			target_path = Path(file_path)
		elif self.config_file_path:
			target_path = self.config_file_path
		else:
			target_path = Path(self.config_file)

		try:
			target_path.parent.mkdir(parents=True, exist_ok=True)
			with open(target_path, 'w') as f:
				f.write("# QRN Manager Configuration\n")
				f.write(f"# Version: {self.config.config_version}\n\n")
				yaml.dump(self.config.to_dict(), f,
						  default_flow_style=False,
						  sort_keys=False,
						  indent=2)

			self.logger.info(f"Configuration saved to: {target_path}")
			return True

		except (OSError, yaml.YAMLError) as e:
			self.logger.error(f"Error saving config to {target_path}: {e}")
			return False

	def create_sample_config(self, file_path: str = "qrn_sample.yaml") -> bool:
		"""Create a sample configuration file with comments"""
		try:
			with open(file_path, 'w') as f:
				f.write(self._generate_sample_yaml())
			return True

		except OSError as e:
			print(f"Error creating sample config: {e}")
			return False

	def _generate_sample_yaml(self) -> str:
		"""Generate sample YAML with comments"""
		return f"""# QRN Manager Configuration File
# Load with: qrn -c <this file>
config_version: "1.0"

# ANU quantum random number service
anu:
  url: "{DEFAULT_ANU_URL}"
  api_key: null          # sent as x-api-key when set
  timeout: 10.0          # seconds per request
  max_request: {MAX_REQUEST_BYTES}      # bytes per request (1-{MAX_REQUEST_BYTES})

# Local data store (qrn_store.bin, qrn_settings.yaml)
store:
  data_dir: "~/.local/share/qrn"

# Console output
debug:
  verbose: false
  quiet: false
"""

	def validate_config(self) -> tuple[bool, list[str]]:
		"""
		Validate configuration for common issues

		Returns:
			(is_valid, list_of_errors)
		"""
		errors = []
		anu = self.config.anu

		if not isinstance(anu.url, str) or not anu.url.strip():
			errors.append("ANU url must be set")
		else:
			try:
				if httpx.URL(anu.url).scheme not in ("http", "https"):
					errors.append(f"Invalid ANU url: {anu.url}. Must be http or https")
			except httpx.InvalidURL as e:
				errors.append(f"Invalid ANU url: {anu.url} ({e})")

		if isinstance(anu.timeout, bool) or not isinstance(anu.timeout, (int, float)) or anu.timeout <= 0:
			errors.append(f"Invalid timeout: {anu.timeout}")

		if isinstance(anu.max_request, bool) or not isinstance(anu.max_request, int) \
				or not (1 <= anu.max_request <= MAX_REQUEST_BYTES):
			errors.append(f"Invalid max_request: {anu.max_request}. Must be 1-{MAX_REQUEST_BYTES}")

		if not isinstance(self.config.store.data_dir, str) or not self.config.store.data_dir.strip():
			errors.append("Store data_dir must be set")

		if self.config.debug.verbose and self.config.debug.quiet:
			errors.append("verbose and quiet cannot both be enabled")

		return len(errors) == 0, errors


def create_argument_parser() -> argparse.ArgumentParser:
	"""Argument parser for the qrn console"""
	parser = argparse.ArgumentParser(
		prog='qrn',
		description='Interactive manager for a local store of ANU quantum random numbers',
		formatter_class=argparse.RawDescriptionHelpFormatter,
		epilog="""
Examples:
  %(prog)s                                 # Start the console with defaults
  %(prog)s -c my_config.yaml               # Use specific config file
  %(prog)s --data-dir /tmp/qrn             # Keep the store somewhere else
  %(prog)s --create-config sample.yaml     # Create sample config file

Configuration:
  Configuration is loaded in this order (later overrides earlier):
  1. Built-in defaults
  2. Configuration file (YAML)
  3. Command line arguments

  Config file search order:
  - qrn.yaml (current directory)
  - config/qrn.yaml
  - ~/.config/qrn/config.yaml
		"""
	)

	config_group = parser.add_argument_group('Configuration')
	config_group.add_argument(
		'-c', '--config',
		type=str,
		help='Configuration file path (YAML format)'
	)
	config_group.add_argument(
		'--create-config',
		type=str,
		metavar='FILE',
		help='Create sample configuration file and exit'
	)

	store_group = parser.add_argument_group('Store')
	store_group.add_argument(
		'--data-dir',
		type=str,
		metavar='DIR',
		help='Directory holding the store and its settings'
	)

	anu_group = parser.add_argument_group('ANU Service')
	anu_group.add_argument(
		'--anu-url',
		type=str,
		metavar='URL',
		help='ANU QRNG JSON endpoint'
	)
	anu_group.add_argument(
		'--api-key',
		type=str,
		help='API key for the ANU service'
	)
	anu_group.add_argument(
		'--timeout',
		type=float,
		metavar='SECONDS',
		help='Timeout per request'
	)

	output_group = parser.add_argument_group('Output')
	verbosity = output_group.add_mutually_exclusive_group()
	verbosity.add_argument(
		'-v', '--verbose',
		action='store_true',
		help='Show debug logging'
	)
	verbosity.add_argument(
		'-q', '--quiet',
		action='store_true',
		help='Only show errors'
	)

	return parser


def setup_configuration(argv=None) -> tuple[Optional[QRNConfig], bool, Optional[ConfigurationManager]]:
	"""
	Setup configuration system with CLI integration

	Args:
		argv: Command line arguments (None for sys.argv)

	Returns:
		(config_object, should_exit, config_manager)
	"""
	parser = create_argument_parser()
	args = parser.parse_args(argv)

	if args.create_config:
		manager = ConfigurationManager()
		if manager.create_sample_config(args.create_config):
			print(f"Sample configuration created: {args.create_config}")
			print(f"Edit the file and run again with: -c {args.create_config}")
		return None, True, None

	manager = ConfigurationManager()
	manager.load_config(args.config)
	config = manager.merge_cli_args(args)

	is_valid, errors = manager.validate_config()
	if not is_valid:
		print("Configuration errors:")
		for error in errors:
			print(f"  ✗ {error}")
		return config, True, manager

	return config, False, manager
