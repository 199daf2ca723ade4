"""
Runtime settings read from the environment.

The command line carries only the four required parameters; everything
that does not belong on it (credentials, TLS, search base, optional
behavior) comes from OU_MOVER_* environment variables.
"""

import logging
from typing import Annotated, Optional

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigError

ENV_PREFIX = "OU_MOVER_"

Port = Annotated[int, Field(gt=0, lt=65536)]


class Settings(BaseSettings):
    """
    Settings for a run.

    Attributes:
        bind_user: Bind identity; DOMAIN\\user binds with NTLM, anything else
                   with a simple bind. None uses Kerberos (SASL GSSAPI).
        bind_password: Password for bind_user
        use_ssl: Connect with LDAPS
        port: Server port (None for the ldap3 default)
        search_base: Base DN for name lookups (None reads defaultNamingContext)
        validate_destination: Resolve the target OU once before the batch
        report_path: Write a CSV report here after the batch
        log_level: Level for diagnostic logging on stderr
    """

    bind_user: Optional[str] = None
    bind_password: Optional[SecretStr] = None
    use_ssl: bool = False
    port: Optional[Port] = None
    search_base: Optional[str] = None
    validate_destination: bool = False
    report_path: Optional[str] = None
    log_level: int = logging.WARNING

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("bind_user", "search_base", "report_path", mode="before")
    @classmethod
    def _blank_is_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value.strip() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def _level_name(cls, value):
        if isinstance(value, str):
            level = logging.getLevelName(value.strip().upper())
            if not isinstance(level, int):
                raise ValueError(f"unknown logging level '{value}'")
            return level
        return value

    @property
    def password(self) -> Optional[str]:
        """Plain bind password, for handing to the LDAP library."""
        if self.bind_password is None:
            return None
        return self.bind_password.get_secret_value()

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from OU_MOVER_* variables.

        Raises:
            ConfigError: If a variable has an invalid value
        """
        try:
            return cls()
        except ValidationError as exc:
            problems = "; ".join(
                f"{ENV_PREFIX}{str(error['loc'][0]).upper()}: {error['msg']}"
                for error in exc.errors()
            )
            raise ConfigError(f"Invalid configuration values: {problems}") from exc
