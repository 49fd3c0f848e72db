"""Configuration management for stepqa."""

from stepqa.config.settings import QAConfig, find_config_file, load_config, resolve_env_vars

__all__ = ["QAConfig", "find_config_file", "load_config", "resolve_env_vars"]
