"""Configuration loading for the ingestion pipeline.

Configuration is read from config/config.yaml (or a path given on the
command line) with environment variable overrides.

Usage:
    >>> from config import load_config
    >>>
    >>> config = load_config()
    >>> config.validate()
    >>> config.eventhub.messages_url
    'https://myns.servicebus.windows.net/records/messages'
    >>> config.eventhouse.management_url
    'https://mycluster.westeurope.kusto.windows.net/v1/rest/mgmt'
"""

from config.config import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_MAX_BATCH_BYTES,
    AuthConfig,
    EventHubConfig,
    EventhouseConfig,
    IngestConfig,
    get_config,
    load_config,
    reset_config,
    set_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_MAX_BATCH_BYTES",
    "AuthConfig",
    "EventHubConfig",
    "EventhouseConfig",
    "IngestConfig",
    "get_config",
    "load_config",
    "reset_config",
    "set_config",
]
