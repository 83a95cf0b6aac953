"""Configuration loading for the application master.

Configuration is loaded from a single YAML file.

Configuration Structure
-----------------------

config/
    config.yaml            # Application master settings (see config.yaml.example)

Main Functions
--------------

    - load_config(): Load configuration from YAML
    - get_config(): Get or load singleton config instance
    - set_config(): Replace singleton config instance (tests)
    - reset_config(): Reset singleton config instance

Usage Examples
--------------

Load configuration:
    >>> from config import load_config
    >>>
    >>> config = load_config()
    >>> config.cluster_name
    'analytics'
    >>> config.instance_definition.get_component("appmaster")
    {'am.login.keytab.name': 'app.keytab'}

Custom config path:
    >>> from pathlib import Path
    >>> config = load_config(config_path=Path("/custom/path/config.yaml"))

Configuration Priority
---------------------

Settings are merged in the following priority (highest to lowest):

1. Programmatic overrides passed to load_config()
2. Environment variables (CLUSTER_NAME, and ${VAR} references in YAML)
3. YAML configuration file

Config file location: --config argument, then $AMSECURITY_CONFIG, then
src/config/config.yaml.
"""

from config.config import (
    DEFAULT_CONFIG_FILE,
    AppMasterConfig,
    get_config,
    load_config,
    reset_config,
    resolve_config_path,
    set_config,
)

__all__ = [
    "AppMasterConfig",
    "DEFAULT_CONFIG_FILE",
    "get_config",
    "load_config",
    "reset_config",
    "resolve_config_path",
    "set_config",
]
