"""
Configuration schema and loading for the MEV inspector.

Values are resolved in order: built-in defaults, then an optional YAML file,
then MEV_-prefixed environment variables (a .env file is loaded first), e.g.
MEV_RPC_URL, MEV_INSPECTOR_BATCH_SIZE, MEV_LOGGING_LEVEL.
"""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .utils import parse_duration

ENV_PREFIX = "MEV"
DEFAULT_CONFIG_NAME = "config.yaml"
DEFAULT_CONFIG_DIRS = (Path("."), Path.home() / ".mev-inspector")


class RPCConfig(BaseModel):
    """Chain RPC endpoint and retry settings"""

    url: str = Field(default="http://localhost:8545", description="HTTP(S) RPC URL")
    # Accepted for config-file compatibility; the client only uses `url`
    ws_url: str = Field(default="", description="WebSocket RPC URL (unused)")
    retry_attempts: int = Field(default=3, ge=1, le=100)
    retry_delay: float = Field(default=1.0, ge=0, description="Seconds between retries")
    request_timeout: float = Field(default=30.0, gt=0)

    @field_validator("retry_delay", "request_timeout", mode="before")
    @classmethod
    def parse_durations(cls, v):
        return parse_duration(v)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v):
        if not v.startswith(("http://", "https://", "ws://", "wss://")):
            raise ValueError(f"Invalid RPC URL format: {v}")
        return v


class InspectorSettings(BaseModel):
    """Polling and detection settings"""

    poll_interval: float = Field(default=12.0, gt=0)
    stats_interval: float = Field(default=30.0, gt=0)
    batch_size: int = Field(default=100, ge=1, description="Max blocks per range")
    start_block: int = Field(default=0, ge=0, description="0 = start from chain head")
    enable_uniswap_v2: bool = True
    enable_uniswap_v3: bool = True
    only_profitable: bool = Field(
        default=False, description="Only emit arbitrages with positive net profit"
    )

    @field_validator("poll_interval", "stats_interval", mode="before")
    @classmethod
    def parse_durations(cls, v):
        return parse_duration(v)


class LoggingConfig(BaseModel):
    """Logging output settings"""

    level: Literal["debug", "info", "warn", "warning", "error"] = "info"
    format: Literal["console", "json"] = "console"

    @field_validator("level", "format", mode="before")
    @classmethod
    def lowercase(cls, v):
        return v.lower() if isinstance(v, str) else v


class MetricsConfig(BaseModel):
    """Prometheus exposition settings"""

    enabled: bool = False
    host: str = "0.0.0.0"
    port: int = Field(default=8000, ge=1, le=65535)


class InspectorConfig(BaseModel):
    """Root configuration"""

    rpc: RPCConfig = Field(default_factory=RPCConfig)
    inspector: InspectorSettings = Field(default_factory=InspectorSettings)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @field_validator("inspector")
    @classmethod
    def validate_protocols(cls, v):
        if not (v.enable_uniswap_v2 or v.enable_uniswap_v3):
            raise ValueError("At least one of enable_uniswap_v2/enable_uniswap_v3 must be set")
        return v


def load_yaml_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load a YAML config file into a dictionary.

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping
    """
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(
            f"Config file not found: {path}", {"config_file": str(path)}
        )

    try:
        with open(path, "r") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML: {e}", {"config_file": str(path)}
        ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            "Config file must contain a YAML dictionary", {"config_file": str(path)}
        )
    return data


def find_config_file() -> Optional[Path]:
    """Return the first default config file that exists, if any."""
    for directory in DEFAULT_CONFIG_DIRS:
        candidate = directory / DEFAULT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def env_overrides(environ: Mapping[str, str]) -> Dict[str, Dict[str, str]]:
    """Collect MEV_<SECTION>_<FIELD> environment variables into a nested dict."""
    overrides: Dict[str, Dict[str, str]] = {}
    for section, field_info in InspectorConfig.model_fields.items():
        section_model = field_info.annotation
        for name in section_model.model_fields:
            key = f"{ENV_PREFIX}_{section}_{name}".upper()
            if key in environ:
                overrides.setdefault(section, {})[name] = environ[key]
    return overrides


def deep_merge(base: Dict[str, Any], update: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge two dictionaries, values from update win."""
    result = base.copy()

    for key, value in update.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> InspectorConfig:
    """
    Load and validate configuration.

    Args:
        config_path: Explicit YAML file. When omitted, ./config.yaml and
            ~/.mev-inspector/config.yaml are tried and a missing file is fine.
        environ: Environment mapping (defaults to os.environ after load_dotenv)

    Returns:
        Validated InspectorConfig

    Raises:
        ConfigurationError: If the file or any value is invalid
    """
    if environ is None:
        load_dotenv()
        environ = os.environ

    data: Dict[str, Any] = {}
    path = Path(config_path) if config_path else find_config_file()
    if path is not None:
        data = load_yaml_config(path)

    data = deep_merge(data, env_overrides(environ))

    try:
        return InspectorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e}", {"errors": e.errors()}
        ) from e
