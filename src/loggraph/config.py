"""Configuration loading with logged error mapping."""

from pathlib import Path

from loggraph.models.config import Config
from loggraph.utils.logging import get_logger


logger = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "loggraph" / "config.yaml"


class ConfigManager:
    """
    Configuration manager that loads and validates the config file once.

    Example:
        >>> config_mgr = ConfigManager.load_from_path(DEFAULT_CONFIG_PATH)
        >>> graph_path = config_mgr.config.logseq.graph_path
    """

    def __init__(self, config: Config):
        """
        Initialize config manager with loaded config.

        Args:
            config: Loaded and validated Config instance
        """
        self._config = config

    @property
    def config(self) -> Config:
        """The full validated configuration."""
        return self._config

    @classmethod
    def load_from_path(cls, path: Path) -> "ConfigManager":
        """
        Load configuration from specific path.

        Args:
            path: Path to config.yaml file

        Returns:
            ConfigManager instance with loaded config

        Raises:
            FileNotFoundError: If config file doesn't exist
            PermissionError: If config file has wrong permissions
            ValueError: If config is invalid
        """
        logger.info("config_loading", path=str(path))

        try:
            config = Config.load(path)
            logger.info("config_loaded", path=str(path))
            return cls(config)

        except FileNotFoundError as e:
            logger.error("config_not_found", path=str(path), error=str(e))
            raise

        except PermissionError as e:
            logger.error("config_permission_error", path=str(path), error=str(e))
            raise

        except Exception as e:
            logger.error("config_validation_error", path=str(path), error=str(e))
            raise ValueError(f"Configuration validation failed: {e}") from e
