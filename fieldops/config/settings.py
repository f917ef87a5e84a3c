"""
Application settings.

Loads settings from an optional YAML file and overrides them with
environment variables. Expected YAML format:

```yaml
database:
  host: localhost
  port: 5432
  name: fieldops
  user: fieldops
endpoints:
  import_url: https://example.functions.host/import-bulk-orders
  fetch_url: https://example.functions.host/bulk-get-orders
  timeout_seconds: 60
  fetch_retries: 3
import:
  batch_size: 50
logging:
  level: INFO
  format: json
```
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "DB_HOST": ("database", "host"),
    "DB_PORT": ("database", "port"),
    "DB_NAME": ("database", "name"),
    "DB_USER": ("database", "user"),
    "DB_PASSWORD": ("database", "password"),
    "FIELDOPS_IMPORT_URL": ("endpoints", "import_url"),
    "FIELDOPS_FETCH_URL": ("endpoints", "fetch_url"),
    "FIELDOPS_API_KEY": ("endpoints", "api_key"),
    "FIELDOPS_HTTP_TIMEOUT": ("endpoints", "timeout_seconds"),
    "FIELDOPS_FETCH_RETRIES": ("endpoints", "fetch_retries"),
    "FIELDOPS_BATCH_SIZE": ("import", "batch_size"),
    "FIELDOPS_SKIP_EXISTING": ("import", "skip_existing"),
    "LOG_LEVEL": ("logging", "level"),
    "LOG_FORMAT": ("logging", "format"),
}


class DatabaseSettings(BaseModel):
    host: str = "localhost"
    port: int = 5432
    name: str = "fieldops"
    user: str = "fieldops"
    password: str | None = None
    min_pool_size: int = Field(1, ge=1)
    max_pool_size: int = Field(5, ge=1)


class EndpointSettings(BaseModel):
    """
    Attributes:
        import_url: Bulk import function URL; when unset, imports go
            straight to the work-order store
        fetch_url: Bulk order fetch function URL
        api_key: Bearer token sent to both functions
        timeout_seconds: Per-request timeout
        fetch_retries: Retries for 502/503/504 on fetches (imports never retry)
    """

    import_url: str | None = None
    fetch_url: str | None = None
    api_key: str | None = None
    timeout_seconds: float = Field(60.0, gt=0)
    fetch_retries: int = Field(3, ge=0)


class ImportSettings(BaseModel):
    batch_size: int = Field(50, ge=1, le=1000)
    skip_existing: bool = False


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"

    @field_validator("format")
    @classmethod
    def check_format(cls, v):
        if v not in ("json", "text"):
            raise ValueError("logging format must be 'json' or 'text'")
        return v


class Settings(BaseModel):
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    endpoints: EndpointSettings = Field(default_factory=EndpointSettings)
    import_: ImportSettings = Field(default_factory=ImportSettings, alias="import")
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    class Config:
        populate_by_name = True


def load_settings(
    config_path: str | Path | None = None,
    environ: dict[str, str] | None = None,
) -> Settings:
    """
    Load settings from YAML (if given) and apply environment overrides.

    Args:
        config_path: Optional YAML file; FIELDOPS_CONFIG is used when omitted
        environ: Environment mapping (defaults to os.environ)

    Returns:
        Validated Settings

    Raises:
        FileNotFoundError: If an explicit config file does not exist
        ValueError: If the YAML is not a mapping or a value is invalid
    """
    environ = dict(os.environ if environ is None else environ)
    config_path = config_path or environ.get("FIELDOPS_CONFIG")

    data: dict[str, Any] = {}
    if config_path:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {config_path}")
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Settings file must contain a mapping: {config_path}")
        data = loaded

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or value == "":
            continue
        section_data = data.setdefault(section, {})
        if not isinstance(section_data, dict):
            raise ValueError(f"Settings section '{section}' must be a mapping")
        section_data[key] = value

    return Settings.model_validate(data)
