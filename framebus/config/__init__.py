"""Configuration module for framebus."""

from framebus.config.loader import get_config_path, load_config, save_config
from framebus.config.schema import BusConfig

__all__ = ["BusConfig", "load_config", "save_config", "get_config_path"]
