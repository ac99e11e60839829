"""Provider configuration using pydantic-settings with env var and YAML file support.

Env vars (TREEAPP_ prefix) take precedence over YAML config file values.
Required: TREEAPP_API_KEY: missing it causes an immediate exit.
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache

import pydantic
from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from ledger.client import DEFAULT_BASE_URL, LedgerClient, TreesField
from provider.logging_config import configure_logging

logger = logging.getLogger("treeapp.provider.config")

_YAML_CONFIG_PATH = "/config/treeapp.yml"


class ProviderSettings(BaseSettings):
    """Treeapp provider configuration.

    Precedence (highest to lowest):
    1. Keyword arguments passed to the constructor
    2. TREEAPP_-prefixed environment variables
    3. YAML config file at /config/treeapp.yml
    4. Defaults defined below
    """

    model_config = SettingsConfigDict(
        env_prefix="TREEAPP_",
        yaml_file=_YAML_CONFIG_PATH,
        yaml_file_encoding="utf-8",
    )

    # Required: no default; validation will fail and cause a clean exit
    api_key: str

    base_url: str = DEFAULT_BASE_URL
    connect_timeout: float = Field(default=5.0, ge=1.0, le=30.0)
    read_timeout: float = Field(default=30.0, ge=1.0, le=120.0)
    # Reading of the summary "trees" field; see ledger.client.TreesField
    trees_field: TreesField = TreesField.BILLED
    log_level: str = "info"

    @field_validator("api_key", mode="after")
    @classmethod
    def validate_api_key(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("api_key must not be empty")
        return v.strip()

    @field_validator("base_url", mode="after")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("trees_field", mode="before")
    @classmethod
    def validate_trees_field(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Return sources in priority order: init > env > YAML."""
        return (init_settings, env_settings, YamlConfigSettingsSource(settings_cls))

    def masked_api_key(self) -> str:
        if len(self.api_key) > 8:
            return self.api_key[:4] + "****" + self.api_key[-4:]
        return "****"

    def log_config(self) -> None:
        """Log configuration with the API key masked."""
        logger.info(
            "Treeapp config: base_url=%s, api_key=%s, trees_field=%s, "
            "connect_timeout=%ss, read_timeout=%ss",
            self.base_url,
            self.masked_api_key(),
            self.trees_field.value,
            self.connect_timeout,
            self.read_timeout,
        )

    def configure_logging(self) -> None:
        """Install JSON logging at log_level, redacting the API key."""
        configure_logging(self.log_level, secrets=[self.api_key])

    def build_client(self) -> LedgerClient:
        """Create a LedgerClient from these settings. Caller must close() it."""
        return LedgerClient(
            api_key=self.api_key,
            base_url=self.base_url,
            timeout=self.read_timeout,
            connect_timeout=self.connect_timeout,
            trees_field=self.trees_field,
        )


@lru_cache(maxsize=1)
def get_settings() -> ProviderSettings:
    """Return the cached ProviderSettings instance.

    Exits with a helpful error message if required settings are missing.
    """
    try:
        return ProviderSettings()
    except pydantic.ValidationError as exc:
        missing: list[str] = []
        for error in exc.errors():
            if error.get("type") == "missing":
                loc = error.get("loc", ())
                if loc:
                    missing.append(f"TREEAPP_{str(loc[0]).upper()}")

        if missing:
            names = ", ".join(missing)
            print(
                f"\nMissing required configuration: {names}\n"
                f"Set these as environment variables or add them to {_YAML_CONFIG_PATH}\n"
                f"Example:\n"
                f"  export TREEAPP_API_KEY=your-api-key\n",
                file=sys.stderr,
            )
        else:
            print(
                f"\nConfiguration error:\n{exc}\n",
                file=sys.stderr,
            )
        sys.exit(1)
