"""Configuration loader for vaultenv."""
import os
import math
import logging
from pathlib import Path
from typing import Dict, Any, Optional
import yaml

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "VAULTENV_CONFIG"

# key -> accepted types
KNOWN_KEYS = {
    "host": (str,),
    "port": (int,),
    "secrets_file": (str,),
    "connect_tls": (bool,),
    "inherit_env": (bool,),
    "timeout": (int, float, type(None)),
}


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def default_config_path() -> Path:
    return Path.home() / ".config" / "vaultenv" / "config.yml"


def _get_config_path(explicit_path: Optional[str] = None) -> Optional[str]:
    """
    Get config file path using XDG Base Directory standard.

    Priority order:
    1. Explicit path (--config flag)
    2. VAULTENV_CONFIG environment variable
    3. Default location: ~/.config/vaultenv/config.yml

    Returns:
        Absolute path to config file, or None if no config file is in use

    Raises:
        ConfigError: If an explicitly requested config file doesn't exist
    """
    # 1. and 2. are explicit requests, so a missing file is an error
    for source, candidate in (("--config", explicit_path), (CONFIG_ENV_VAR, os.getenv(CONFIG_ENV_VAR))):
        if candidate:
            config_path = Path(candidate).expanduser()
            if not config_path.is_file():
                raise ConfigError(f"Config file from {source} not found: {config_path}")
            logger.debug(f"Using config from {source}: {config_path}")
            return str(config_path)

    # 3. Default location is optional
    default_config = default_config_path()
    if default_config.is_file():
        logger.debug(f"Using default config location: {default_config}")
        return str(default_config)

    logger.debug("No config file found, using built-in defaults")
    return None


def load_config(explicit_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Args:
        explicit_path: Config file given on the command line, if any

    Returns:
        Dict with any of the keys: host, port, secrets_file, connect_tls,
        inherit_env, timeout. Empty if no config file is in use.

    Raises:
        ConfigError: If config file is unreadable, invalid, or has unknown keys
    """
    # Get config path dynamically each time (not cached at module level)
    config_path = _get_config_path(explicit_path)
    if config_path is None:
        return {}

    # Load YAML
    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except Exception as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    # An empty file is the same as no file
    if config is None:
        return {}

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping of settings")

    non_str_keys = [key for key in config if not isinstance(key, str)]
    if non_str_keys:
        raise ConfigError(
            f"Setting names in config at {config_path} must be strings, got: {', '.join(map(repr, non_str_keys))}"
        )

    unknown = sorted(set(config) - set(KNOWN_KEYS))
    if unknown:
        raise ConfigError(
            f"Unknown setting(s) in config at {config_path}: {', '.join(map(str, unknown))}\n"
            f"Supported settings: {', '.join(KNOWN_KEYS)}"
        )

    for key, value in config.items():
        accepted = KNOWN_KEYS[key]
        # bool is an int subclass, don't let `port: true` through
        if not isinstance(value, accepted) or (isinstance(value, bool) and bool not in accepted):
            raise ConfigError(
                f"Invalid value for '{key}' in config at {config_path}: {value!r}"
            )

    if "port" in config and not 0 < config["port"] < 65536:
        raise ConfigError(f"Invalid 'port' in config at {config_path}: {config['port']}")

    timeout = config.get("timeout")
    if timeout is not None and not (math.isfinite(timeout) and timeout > 0):
        raise ConfigError(f"Invalid 'timeout' in config at {config_path}: must be a positive number")

    logger.debug(f"Configuration loaded successfully from {config_path}")

    return config
