"""Ingestion configuration from YAML file.

Loads from config/config.yaml with all settings in one place:
- Event Hub message endpoint and shared access key
- Eventhouse cluster, database and table naming
- Azure AD credentials for the management endpoint

Environment variables ARE supported using ${VAR_NAME} syntax in YAML files,
and the EVENTHUB_*, EVENTHOUSE_* and AZURE_* variables override YAML values.
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from core.auth.sas import DEFAULT_SAS_TTL_SECONDS

logger = logging.getLogger(__name__)

# 0.9 MB, leaves headroom under the 1 MB Event Hub request limit
DEFAULT_MAX_BATCH_BYTES = 943_718

DEFAULT_EVENTHUB_DOMAIN = "servicebus.windows.net"

# Default config file: config/config.yaml in src/ directory
DEFAULT_CONFIG_FILE = Path(__file__).parent / "config.yaml"


def load_yaml(path: Path) -> Dict[str, Any]:
    """Load YAML file and return dict."""
    if not path.exists():
        return {}
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def _expand_env_vars(data: Any) -> Any:
    """Recursively expand ${VAR_NAME} and ${VAR_NAME:-default} environment variables in config data."""
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    elif isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    elif isinstance(data, str):
        pattern = r"\$\{([^}:]+)(?::-(([^}]*))?)?\}"

        def replacer(match):
            var_name = match.group(1)
            default_value = match.group(2) if match.group(2) is not None else match.group(0)
            return os.getenv(var_name, default_value)

        return re.sub(pattern, replacer, data)
    else:
        return data


def get_config_value(env_var: str, yaml_value: Any, default: Any = "") -> Any:
    """Resolve a setting: non-empty env var, then YAML value, then default."""
    env_value = os.getenv(env_var)
    if env_value:
        return env_value
    if yaml_value not in (None, ""):
        return yaml_value
    return default


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _strip_scheme(host: str) -> str:
    host = host.strip()
    for scheme in ("https://", "http://"):
        if host.lower().startswith(scheme):
            host = host[len(scheme):]
    return host.rstrip("/")


@dataclass
class EventHubConfig:
    """Event Hub REST endpoint settings.

    The signed resource is https://{namespace}.{domain}/{entity_path};
    batches are POSTed to that URI plus /messages.
    """

    namespace: str = ""
    entity_path: str = ""
    key_name: str = ""
    key: str = field(default="", repr=False)
    domain: str = DEFAULT_EVENTHUB_DOMAIN
    sas_ttl_seconds: int = DEFAULT_SAS_TTL_SECONDS
    max_batch_bytes: int = DEFAULT_MAX_BATCH_BYTES
    request_timeout_seconds: float = 30.0

    @property
    def resource_uri(self) -> str:
        return f"https://{self.namespace}.{self.domain}/{self.entity_path}"

    @property
    def messages_url(self) -> str:
        return f"{self.resource_uri}/messages"

    def validate(self) -> None:
        for name, env_var in (
            ("namespace", "EVENTHUB_NAMESPACE"),
            ("entity_path", "EVENTHUB_ENTITY_PATH"),
            ("key_name", "EVENTHUB_KEY_NAME"),
            ("key", "EVENTHUB_KEY"),
        ):
            if not getattr(self, name):
                raise ValueError(
                    f"eventhub.{name} is required. "
                    f"Set in config.yaml or via {env_var} env var."
                )
        if self.max_batch_bytes <= 0:
            raise ValueError(f"eventhub.max_batch_bytes must be > 0, got {self.max_batch_bytes}")
        if self.sas_ttl_seconds <= 0:
            raise ValueError(f"eventhub.sas_ttl_seconds must be > 0, got {self.sas_ttl_seconds}")
        if self.request_timeout_seconds <= 0:
            raise ValueError(
                f"eventhub.request_timeout_seconds must be > 0, got {self.request_timeout_seconds}"
            )


@dataclass
class EventhouseConfig:
    """Eventhouse / Azure Data Explorer settings for the schema path."""

    cluster: str = ""  # host or URL, e.g. "mycluster.westeurope.kusto.windows.net"
    database: str = ""
    table_base_name: str = ""
    category: str = ""
    create_merge: bool = False
    detect_datetime_strings: bool = True
    request_timeout_seconds: float = 60.0

    @property
    def cluster_host(self) -> str:
        return _strip_scheme(self.cluster)

    @property
    def management_url(self) -> str:
        return f"https://{self.cluster_host}/v1/rest/mgmt"

    @property
    def token_scope(self) -> str:
        return f"https://{self.cluster_host}/.default"

    def validate(self) -> None:
        for name, env_var in (
            ("cluster", "EVENTHOUSE_CLUSTER"),
            ("database", "EVENTHOUSE_DATABASE"),
            ("table_base_name", "EVENTHOUSE_TABLE"),
            ("category", "EVENTHOUSE_CATEGORY"),
        ):
            if not getattr(self, name):
                raise ValueError(
                    f"eventhouse.{name} is required. "
                    f"Set in config.yaml or via {env_var} env var."
                )
        if self.request_timeout_seconds <= 0:
            raise ValueError(
                f"eventhouse.request_timeout_seconds must be > 0, got {self.request_timeout_seconds}"
            )


@dataclass
class AuthConfig:
    """Azure AD credentials. All empty means DefaultAzureCredential."""

    tenant_id: str = ""
    client_id: str = ""
    client_secret: str = field(default="", repr=False)
    access_token: str = field(default="", repr=False)


@dataclass
class IngestConfig:
    """Complete ingestion configuration.

    Configuration structure:
        eventhub: {...}
        eventhouse: {...}
        auth: {...}
    """

    eventhub: EventHubConfig = field(default_factory=EventHubConfig)
    eventhouse: EventhouseConfig = field(default_factory=EventhouseConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)

    def validate(self, delivery: bool = True, schema: bool = True) -> None:
        """Validate the sections the enabled paths need."""
        if delivery:
            self.eventhub.validate()
        if schema:
            self.eventhouse.validate()


def _build_eventhub(section: Dict[str, Any]) -> EventHubConfig:
    return EventHubConfig(
        namespace=get_config_value("EVENTHUB_NAMESPACE", section.get("namespace")),
        entity_path=get_config_value("EVENTHUB_ENTITY_PATH", section.get("entity_path")),
        key_name=get_config_value("EVENTHUB_KEY_NAME", section.get("key_name")),
        key=get_config_value("EVENTHUB_KEY", section.get("key")),
        domain=get_config_value("EVENTHUB_DOMAIN", section.get("domain"), DEFAULT_EVENTHUB_DOMAIN),
        sas_ttl_seconds=int(
            get_config_value("EVENTHUB_SAS_TTL_SECONDS", section.get("sas_ttl_seconds"), DEFAULT_SAS_TTL_SECONDS)
        ),
        max_batch_bytes=int(
            get_config_value("EVENTHUB_MAX_BATCH_BYTES", section.get("max_batch_bytes"), DEFAULT_MAX_BATCH_BYTES)
        ),
        request_timeout_seconds=float(
            get_config_value("EVENTHUB_REQUEST_TIMEOUT", section.get("request_timeout_seconds"), 30.0)
        ),
    )


def _build_eventhouse(section: Dict[str, Any]) -> EventhouseConfig:
    return EventhouseConfig(
        cluster=get_config_value("EVENTHOUSE_CLUSTER", section.get("cluster")),
        database=get_config_value("EVENTHOUSE_DATABASE", section.get("database")),
        table_base_name=get_config_value("EVENTHOUSE_TABLE", section.get("table_base_name")),
        category=get_config_value("EVENTHOUSE_CATEGORY", section.get("category")),
        create_merge=_as_bool(
            get_config_value("EVENTHOUSE_CREATE_MERGE", section.get("create_merge"), False)
        ),
        detect_datetime_strings=_as_bool(
            get_config_value("EVENTHOUSE_DETECT_DATETIME_STRINGS", section.get("detect_datetime_strings"), True)
        ),
        request_timeout_seconds=float(
            get_config_value("EVENTHOUSE_REQUEST_TIMEOUT", section.get("request_timeout_seconds"), 60.0)
        ),
    )


def _build_auth(section: Dict[str, Any]) -> AuthConfig:
    return AuthConfig(
        tenant_id=get_config_value("AZURE_TENANT_ID", section.get("tenant_id")),
        client_id=get_config_value("AZURE_CLIENT_ID", section.get("client_id")),
        client_secret=get_config_value("AZURE_CLIENT_SECRET", section.get("client_secret")),
        access_token=get_config_value("EVENTHOUSE_ACCESS_TOKEN", section.get("access_token")),
    )


def load_config(config_path: Optional[Path] = None) -> IngestConfig:
    """Load ingestion configuration from a YAML file.

    A missing file is not an error: every setting can come from the
    environment. Validation happens in IngestConfig.validate() so the CLI
    can skip sections for disabled paths.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_FILE

    if config_path.exists():
        logger.info(f"Loading configuration from file: {config_path}")
    else:
        logger.info(
            "Configuration file not found, using environment only",
            extra={"config_path": str(config_path)},
        )

    yaml_data = _expand_env_vars(load_yaml(config_path))

    config = IngestConfig(
        eventhub=_build_eventhub(yaml_data.get("eventhub") or {}),
        eventhouse=_build_eventhouse(yaml_data.get("eventhouse") or {}),
        auth=_build_auth(yaml_data.get("auth") or {}),
    )

    logger.debug(
        "Configuration loaded",
        extra={
            "resource": config.eventhub.resource_uri,
            "database": config.eventhouse.database,
        },
    )
    return config


_ingest_config: Optional[IngestConfig] = None


def get_config() -> IngestConfig:
    """Get or load the singleton config instance."""
    global _ingest_config
    if _ingest_config is None:
        _ingest_config = load_config()
    return _ingest_config


def set_config(config: IngestConfig) -> None:
    """Set the singleton config instance (useful for testing)."""
    global _ingest_config
    _ingest_config = config


def reset_config() -> None:
    """Reset the singleton config instance (forces reload on next get_config() call)."""
    global _ingest_config
    _ingest_config = None
