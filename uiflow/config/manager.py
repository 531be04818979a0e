from pathlib import Path
from typing import Dict, Any, Optional, List
import logging
import os

from uiflow.config.types import RunConfig


class EnvironmentManager:
    """
    Environment manager holding the runner settings.

    Settings are resolved from defaults, then the first .env file found,
    then the OS environment. Explicit overrides (CLI flags) are applied last
    through update_settings().
    """

    _instance = None

    # Settings that hold filesystem paths
    PATH_SETTINGS = [
        "screenshot_dir",
    ]

    # Default settings with their types
    DEFAULT_SETTINGS = {
        # Target page
        "base_url": ("https://www.amazon.com/", str),
        # Waits
        "implicit_wait_seconds": (5.0, float),
        "explicit_wait_seconds": (5.0, float),
        "poll_interval_seconds": (0.25, float),
        # Browser
        "browser_type": ("chrome", str),
        "start_maximized": (True, bool),
        "headless": (False, bool),
        # Failure artifacts
        "screenshot_dir": (None, str),
    }

    # Each setting can be set via its uppercase env var
    ENV_MAPPING = {setting.upper(): setting for setting in DEFAULT_SETTINGS.keys()}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialize()
        return cls._instance

    def _initialize(self):
        """Initialize environment with default values"""
        self.settings: Dict[str, Any] = {}
        self.env_file: Optional[Path] = None
        self.logger = logging.getLogger(__name__)

        for key, (default_value, _) in self.DEFAULT_SETTINGS.items():
            self.settings[key] = default_value

        self._load_from_env_file()

    def _get_git_root(self) -> Optional[Path]:
        """Try to determine the git root directory

        Returns:
            Path to the git root directory or None if not found
        """
        dir_to_check = Path.cwd()
        for _ in range(10):  # Limit the search depth
            git_dir = dir_to_check / ".git"
            if git_dir.exists() and git_dir.is_dir():
                return dir_to_check

            parent_dir = dir_to_check.parent
            if parent_dir == dir_to_check:  # Reached the root
                break
            dir_to_check = parent_dir

        return None

    def _convert_value(self, value: str, target_type: type) -> Any:
        """Convert string value to target type"""
        if target_type == bool:
            return value.strip().lower() in ("true", "1", "yes", "on")
        return target_type(value)

    def _apply(self, key: str, value: str):
        """Store a raw string value under its mapped setting, if any."""
        setting_name = self.ENV_MAPPING.get(key)
        if setting_name is None:
            return
        _, target_type = self.DEFAULT_SETTINGS[setting_name]
        try:
            self.settings[setting_name] = self._convert_value(value, target_type)
        except ValueError:
            raise ValueError(
                f"Invalid value for {key}: {value!r} (expected {target_type.__name__})"
            )

    def _load_from_env_file(self):
        """Find and load variables from a .env file"""
        env_file_paths = [Path.cwd() / ".env"]

        git_root = self._get_git_root()
        if git_root:
            env_file_paths.append(git_root / ".env")

        try:
            env_file_paths.append(Path.home() / ".uiflow.env")
        except (RuntimeError, OSError):
            # Skip home directory if it can't be determined
            pass

        for env_path in env_file_paths:
            if env_path.exists() and env_path.is_file():
                self.logger.info(f"Loading environment from: {env_path}")
                self._parse_env_file(env_path)
                self.env_file = env_path
                return

        self.logger.debug(
            "No .env file found; tried: "
            + ", ".join(str(p) for p in env_file_paths)
        )

    def _parse_env_file(self, env_file_path: Path):
        """Parse a .env file and load mapped variables"""
        with open(env_file_path, "r") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, value = line.split("=", 1)
                key = key.strip()
                value = value.strip()

                # Remove quotes if present
                if (value.startswith('"') and value.endswith('"')) or (
                    value.startswith("'") and value.endswith("'")
                ):
                    value = value[1:-1]

                try:
                    self._apply(key, value)
                except ValueError as e:
                    self.logger.warning(f"Ignoring {key} from {env_file_path}: {e}")

    def load(self):
        """Load settings from the OS environment on top of the .env values"""
        for key, value in os.environ.items():
            if key in self.ENV_MAPPING:
                self._apply(key, value)
        return self

    def update_settings(self, updates: Dict[str, Any]) -> List[str]:
        """Apply explicit overrides; None values are ignored.

        Returns:
            Names of the settings that changed

        Raises:
            KeyError: If an unknown setting is named
        """
        updated = []
        for key, value in updates.items():
            if key not in self.DEFAULT_SETTINGS:
                raise KeyError(f"Unknown setting: {key}")
            if value is None:
                continue
            _, target_type = self.DEFAULT_SETTINGS[key]
            if isinstance(value, str) and target_type is not str:
                value = self._convert_value(value, target_type)
            self.settings[key] = value
            updated.append(key)
        return updated

    def get_run_config(self) -> RunConfig:
        """Build a validated RunConfig from the current settings."""
        settings = dict(self.settings)
        for key in self.PATH_SETTINGS:
            value = settings.get(key)
            if value:
                settings[key] = str(Path(value).expanduser().resolve())
        return RunConfig(**settings)


# Create a global instance
env_manager = EnvironmentManager()
