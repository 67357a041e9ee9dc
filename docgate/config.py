"""
DocGate — Application Configuration
=====================================

What:  Centralized configuration management using Pydantic Settings.
How:   Values are read (highest priority first) from init kwargs, environment
       variables, the `conf/db.properties` file, a `.env` file and finally the
       field defaults. The result is a validated singleton `settings` object.
Who:   Imported by every module that needs configuration values.

Properties file:
    The database credentials live in a Java-style properties file, one
    ``key=value`` per line:

        db.prefix=mongodb+srv://
        db.user=alice
        db.pwd=s3cret
        db.url=@cluster0.example.mongodb.net/
        db.params=?retryWrites=true&w=majority
        db.dbName=school

    The path defaults to ``conf/db.properties`` and can be moved with the
    ``DB_PROPERTIES_FILE`` environment variable. A missing file is not an
    error; defaults and environment variables still apply.
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Tuple, Type
from urllib.parse import quote

from dotenv import dotenv_values
from pydantic import Field, field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
)

DEFAULT_PROPERTIES_FILE = "conf/db.properties"

# Properties-file key → Settings field name
PROPERTY_KEYS: Dict[str, str] = {
    "db.prefix": "db_prefix",
    "db.user": "db_user",
    "db.pwd": "db_pwd",
    "db.url": "db_url",
    "db.params": "db_params",
    "db.dbName": "db_name",
}

# Characters encodeURIComponent leaves untouched besides alphanumerics and "-_.~"
_URI_COMPONENT_SAFE = "!*'()"

_PASSWORD_IN_URI = re.compile(r"(://[^:/@]+:)[^@]*@")


class PropertiesFileSettingsSource(PydanticBaseSettingsSource):
    """
    Settings source reading the ``db.*`` keys of a properties file.

    python-dotenv does the line parsing: it accepts dotted keys, ``#``
    comments and optional quoting, which covers the properties files the
    gateway has been deployed with. Variable interpolation is off so that
    ``$`` in passwords survives.
    """

    def __init__(self, settings_cls: Type[BaseSettings], properties_file: str = ""):
        super().__init__(settings_cls)
        self.properties_file = properties_file or os.environ.get(
            "DB_PROPERTIES_FILE", DEFAULT_PROPERTIES_FILE
        )
        self._values = self._load()

    def _load(self) -> Dict[str, str]:
        path = Path(self.properties_file)
        if not path.is_file():
            return {}
        values = {}
        for key, value in dotenv_values(path, interpolate=False).items():
            field_name = PROPERTY_KEYS.get(key)
            if field_name and value is not None:
                values[field_name] = value
        return values

    def get_field_value(self, field: FieldInfo, field_name: str) -> Tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> Dict[str, Any]:
        return {
            name: value
            for name, value in self._values.items()
            if name in self.settings_cls.model_fields
        }


class Settings(BaseSettings):
    """
    Application settings.

    All settings have development defaults pointing at a local MongoDB
    without credentials. Attributes are grouped by concern.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # The connection URI is assembled as:
    #   prefix + user + ":" + pwd + url + params
    db_prefix: str = Field(default="mongodb://")
    db_user: str = Field(default="")
    db_pwd: str = Field(default="")
    db_url: str = Field(default="localhost:27017/")
    db_params: str = Field(default="")
    db_name: str = Field(default="docgate", min_length=1)

    # Full URI override; when set the db_* parts above are ignored
    mongodb_uri: str = Field(default="")

    # Only bounds the startup ping; requests use the driver defaults
    db_server_selection_timeout_ms: int = Field(default=5000, ge=100, le=120_000)

    # ── HTTP behaviour ────────────────────────────────────────────────────
    # GET/DELETE/PUT on /collections/{name}/{id} answer 200 with a
    # "not found" body for missing documents unless this is switched on
    strict_not_found: bool = Field(default=False)

    json_indent: int = Field(default=3, ge=0, le=8)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated origins, "*" for any
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            PropertiesFileSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

    @property
    def connection_uri(self) -> str:
        """
        MongoDB connection string.

        Credentials are percent-encoded the way encodeURIComponent does it.
        Without a user the credential part is dropped, together with the
        ``@`` separator the url fragment normally starts with.
        """
        if self.mongodb_uri:
            return self.mongodb_uri
        if not self.db_user:
            return f"{self.db_prefix}{self.db_url.lstrip('@')}{self.db_params}"
        user = quote(self.db_user, safe=_URI_COMPONENT_SAFE)
        pwd = quote(self.db_pwd, safe=_URI_COMPONENT_SAFE)
        url = self.db_url if self.db_url.startswith("@") else f"@{self.db_url}"
        return f"{self.db_prefix}{user}:{pwd}{url}{self.db_params}"

    @property
    def redacted_connection_uri(self) -> str:
        """Connection string safe for log output (password masked)."""
        return redact_uri(self.connection_uri)


def redact_uri(uri: str) -> str:
    return _PASSWORD_IN_URI.sub(r"\1****@", uri)


settings = Settings()
