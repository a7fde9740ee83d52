"""
User configuration management for the BarterHub CLI.

Handles reading and writing user preferences to ~/.barterhub/config.json
"""
import json
import logging
from pathlib import Path
from typing import Optional, Dict, Any

logger = logging.getLogger(__name__)


class Config:
    """
    User configuration manager.

    Stores the default acting user for CLI commands run without --as.
    """

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize config manager.

        Args:
            config_path: Path to config file. Defaults to ~/.barterhub/config.json
        """
        if config_path:
            self.config_path = config_path
        else:
            self.config_path = Path.home() / ".barterhub" / "config.json"

        self._config: Dict[str, Any] = {}
        self._load()

    def _load(self):
        if not self.config_path.exists():
            logger.debug(f"Config file not found at {self.config_path}, using defaults")
            self._config = {}
            return

        try:
            with open(self.config_path, 'r') as f:
                self._config = json.load(f)
            logger.debug(f"Loaded config from {self.config_path}")
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in config file: {e}, using defaults")
            self._config = {}
        except OSError as e:
            logger.warning(f"Error loading config: {e}, using defaults")
            self._config = {}

    def _save(self):
        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, 'w') as f:
                json.dump(self._config, f, indent=2)
            logger.debug(f"Saved config to {self.config_path}")
        except OSError as e:
            logger.error(f"Error saving config: {e}")
            raise

    @property
    def default_user_id(self) -> Optional[int]:
        """Get default acting user ID"""
        return self._config.get('default_user_id')

    @default_user_id.setter
    def default_user_id(self, user_id: Optional[int]):
        if user_id is None:
            self._config.pop('default_user_id', None)
        else:
            self._config['default_user_id'] = user_id
        self._save()
        logger.info(f"Default user set to {user_id}")

    def get(self, key: str, default: Any = None) -> Any:
        return self._config.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._config)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """
    Get global config instance.

    Returns:
        Config: Global config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Reset global config instance (useful for testing)"""
    global _config
    _config = None
