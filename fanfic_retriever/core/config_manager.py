import configparser
import os
from dataclasses import dataclass
from typing import Optional

from fanfic_retriever.utils.logger import get_logger

CONFIG_PATH_ENV_VAR = 'FFR_CONFIG'
FETCHING_SECTION = 'Fetching'

DEFAULT_FETCH_TIMEOUT = 15.0
MIN_FETCH_TIMEOUT = 1.0
MAX_FETCH_TIMEOUT = 60.0
DEFAULT_MAX_WORKERS = 4
MIN_WORKERS = 1
MAX_WORKERS = 8
DEFAULT_USER_AGENT = 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36'

# Environment variable overriding each [Fetching] option
ENV_OVERRIDES = {
    'timeout': 'FFR_FETCH_TIMEOUT',
    'max_workers': 'FFR_MAX_WORKERS',
    'user_agent': 'FFR_USER_AGENT',
}

logger = get_logger(__name__)


@dataclass(frozen=True)
class FetchSettings:
    timeout: float = DEFAULT_FETCH_TIMEOUT
    max_workers: int = DEFAULT_MAX_WORKERS
    user_agent: str = DEFAULT_USER_AGENT


def _clamp(value, lower, upper):
    return max(lower, min(upper, value))


class ConfigManager:
    def __init__(self, config_file_path: Optional[str] = None):
        self.config_file_path = config_file_path or os.getenv(CONFIG_PATH_ENV_VAR)
        self.config = configparser.ConfigParser()
        self._load_config()

    def _load_config(self):
        """Loads the configuration from the INI file, if there is one. The file is never created."""
        if not self.config_file_path:
            logger.debug("No config file given. Using environment and built-in defaults.")
            return

        if not os.path.exists(self.config_file_path):
            logger.warning(f"Config file not found at {self.config_file_path}. Using environment and built-in defaults.")
            return

        self.config.read(self.config_file_path, encoding='utf-8')
        logger.info(f"Loaded configuration from {self.config_file_path}")

    def get_setting(self, section: str, option: str, fallback=None) -> Optional[str]:
        """Gets a specific setting from the configuration."""
        try:
            return self.config.get(section, option, fallback=fallback)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return fallback

    def _get_fetch_option(self, option: str) -> Optional[str]:
        """
        Returns a raw [Fetching] option.
        Priority:
        1. Environment variable (see ENV_OVERRIDES).
        2. Value from the config file.
        """
        env_value = os.getenv(ENV_OVERRIDES[option])
        if env_value:
            return env_value
        return self.get_setting(FETCHING_SECTION, option)

    def get_fetch_timeout(self) -> float:
        raw = self._get_fetch_option('timeout')
        if raw is None:
            return DEFAULT_FETCH_TIMEOUT
        try:
            return _clamp(float(raw), MIN_FETCH_TIMEOUT, MAX_FETCH_TIMEOUT)
        except ValueError:
            logger.warning(f"Invalid fetch timeout '{raw}'. Falling back to {DEFAULT_FETCH_TIMEOUT}s.")
            return DEFAULT_FETCH_TIMEOUT

    def get_max_workers(self) -> int:
        raw = self._get_fetch_option('max_workers')
        if raw is None:
            return DEFAULT_MAX_WORKERS
        try:
            return _clamp(int(raw), MIN_WORKERS, MAX_WORKERS)
        except ValueError:
            logger.warning(f"Invalid max_workers '{raw}'. Falling back to {DEFAULT_MAX_WORKERS}.")
            return DEFAULT_MAX_WORKERS

    def get_user_agent(self) -> str:
        raw = self._get_fetch_option('user_agent')
        return raw.strip() if raw and raw.strip() else DEFAULT_USER_AGENT

    def fetch_settings(self) -> FetchSettings:
        """Collects every fetch-related option into one immutable settings object."""
        return FetchSettings(
            timeout=self.get_fetch_timeout(),
            max_workers=self.get_max_workers(),
            user_agent=self.get_user_agent(),
        )
