"""Configuration module for tab-grouper."""

from tab_grouper.config.loader import get_config_path, load_config, save_config
from tab_grouper.config.schema import Config

__all__ = ["Config", "load_config", "save_config", "get_config_path"]
