"""Configuration management for the stream sorter."""

import os
from pathlib import Path
from typing import Dict, Any

from dotenv import load_dotenv

from streamsort.exceptions import ConfigurationError
from streamsort.loader import DISCOVERY_MODES, MODE_SEQUENCE

PLACEHOLDER_VALUES = ('YOUR_CLIENT_ID_HERE', 'YOUR_CLIENT_SECRET_HERE')


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() in ('1', 'true', 'yes')


class Config:
    """Configuration container with validation."""

    def __init__(self, env_file: str = '.env'):
        """Initialize configuration from config.py, or from the environment and .env."""
        try:
            import sys

            # Add project root to path to import config
            config_dir = Path(__file__).parent.parent
            if str(config_dir) not in sys.path:
                sys.path.insert(0, str(config_dir))

            try:
                import config as config_module
                self._load_from_module(config_module)
            except ImportError:
                load_dotenv(env_file)
                self._load_from_env()
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        # Validation is explicit: CLI overrides are applied before validate().

    def _load_from_module(self, config_module) -> None:
        """Load configuration from config.py module."""
        # Spotify application credentials
        self.spotify_id = getattr(config_module, 'SPOTIFY_ID', None)
        self.spotify_secret = getattr(config_module, 'SPOTIFY_SECRET', None)

        # Input discovery and output
        self.input_dir = getattr(config_module, 'INPUT_DIR', '.')
        self.discovery_mode = getattr(config_module, 'DISCOVERY_MODE', MODE_SEQUENCE)
        self.input_prefix = getattr(config_module, 'INPUT_PREFIX', None)
        self.output_file = getattr(config_module, 'OUTPUT_FILE', 'sorted_streams.json')
        self.allow_empty_input = getattr(config_module, 'ALLOW_EMPTY_INPUT', False)

        # API rate limiting
        self.request_delay = getattr(config_module, 'REQUEST_DELAY', 0.0)
        self.max_retries = getattr(config_module, 'MAX_RETRIES', 3)
        self.retry_delay = getattr(config_module, 'RETRY_DELAY', 2.0)
        self.request_timeout = getattr(config_module, 'REQUEST_TIMEOUT', 30)

        self.log_level = getattr(config_module, 'LOG_LEVEL', 'INFO')

    def _load_from_env(self) -> None:
        """Load configuration from environment variables (fallback)."""
        # Spotify application credentials
        self.spotify_id = os.getenv('SPOTIFY_ID')
        self.spotify_secret = os.getenv('SPOTIFY_SECRET')

        # Input discovery and output
        self.input_dir = os.getenv('INPUT_DIR', '.')
        self.discovery_mode = os.getenv('DISCOVERY_MODE', MODE_SEQUENCE)
        self.input_prefix = os.getenv('INPUT_PREFIX') or None
        self.output_file = os.getenv('OUTPUT_FILE', 'sorted_streams.json')
        self.allow_empty_input = _env_bool('ALLOW_EMPTY_INPUT')

        # API rate limiting
        self.request_delay = float(os.getenv('REQUEST_DELAY', '0.0'))
        self.max_retries = int(os.getenv('MAX_RETRIES', '3'))
        self.retry_delay = float(os.getenv('RETRY_DELAY', '2.0'))
        self.request_timeout = int(os.getenv('REQUEST_TIMEOUT', '30'))

        self.log_level = os.getenv('LOG_LEVEL', 'INFO')

    def validate(self, require_credentials: bool = True) -> None:
        """Validate configuration values; raises ConfigurationError."""
        if self.discovery_mode not in DISCOVERY_MODES:
            raise ConfigurationError(
                f"DISCOVERY_MODE must be one of {', '.join(DISCOVERY_MODES)}, got {self.discovery_mode!r}."
            )

        if self.request_delay < 0 or self.retry_delay < 0:
            raise ConfigurationError("REQUEST_DELAY and RETRY_DELAY must not be negative.")

        if self.max_retries < 1:
            raise ConfigurationError("MAX_RETRIES must be at least 1.")

        if not require_credentials:
            return

        if not self.spotify_id or not self.spotify_secret:
            raise ConfigurationError(
                "SPOTIFY_ID and SPOTIFY_SECRET are required. Set them in config.py, .env or the environment."
            )

        if self.spotify_id in PLACEHOLDER_VALUES or self.spotify_secret in PLACEHOLDER_VALUES:
            raise ConfigurationError(
                "Please update SPOTIFY_ID and SPOTIFY_SECRET in config.py with your Spotify app credentials."
            )

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration as dictionary (no credentials)."""
        return {
            'input_dir': self.input_dir,
            'discovery_mode': self.discovery_mode,
            'input_prefix': self.input_prefix,
            'output_file': self.output_file,
            'allow_empty_input': self.allow_empty_input,
            'request_delay': self.request_delay,
            'max_retries': self.max_retries,
            'retry_delay': self.retry_delay,
            'request_timeout': self.request_timeout,
            'log_level': self.log_level,
        }

    def __repr__(self) -> str:
        """String representation (sanitized - no credentials)."""
        return (
            f"Config(input_dir={self.input_dir}, "
            f"mode={self.discovery_mode}, "
            f"output={self.output_file})"
        )
