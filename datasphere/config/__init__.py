from .loader import ConfigError, default_config, load_config, resolve_config_path

__all__ = [
    "ConfigError",
    "default_config",
    "load_config",
    "resolve_config_path",
]
