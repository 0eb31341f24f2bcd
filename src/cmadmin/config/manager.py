"""Configuration manager — read/write TOML config, resolve server profiles."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import tomli_w

from cmadmin.client.errors import ConfigurationError
from cmadmin.config.constants import (
    CONFIG_FILE,
    ENV_PASSWORD,
    ENV_PROFILE,
    ENV_SERVER,
    ENV_USERNAME,
)
from cmadmin.config.models import CLIConfig, ServerProfile

try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib


def _profile_table(profile: ServerProfile) -> dict[str, Any]:
    """TOML table for one profile, leaving out values equal to the field default."""
    table: dict[str, Any] = {}
    for field, info in ServerProfile.model_fields.items():
        value = getattr(profile, field)
        if field == "name" or value is None or value == info.default:
            continue
        table[field] = value
    return table


def _first(*candidates: str | None) -> str | None:
    return next((c for c in candidates if c), None)


class ConfigManager:
    """Reads and writes the CLI config file and resolves server profiles."""

    def __init__(self, config_path: Path | None = None) -> None:
        self.config_path = config_path or CONFIG_FILE
        self._config: CLIConfig | None = None

    @property
    def config(self) -> CLIConfig:
        if self._config is None:
            self._config = self._load()
        return self._config

    def _load(self) -> CLIConfig:
        if not self.config_path.exists():
            return CLIConfig()
        with self.config_path.open("rb") as fh:
            data = tomllib.load(fh)
        return CLIConfig(
            default_profile=data.get("default_profile"),
            default_format=data.get("default_format", "table"),
            profiles={
                name: ServerProfile(name=name, **table)
                for name, table in data.get("profiles", {}).items()
            },
        )

    def save(self) -> None:
        config = self.config
        data: dict[str, Any] = {}
        if config.default_profile:
            data["default_profile"] = config.default_profile
        if config.default_format != "table":
            data["default_format"] = config.default_format
        if config.profiles:
            data["profiles"] = {
                name: _profile_table(profile) for name, profile in config.profiles.items()
            }

        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_path.parent, 0o700)
        # Profiles may hold passwords: write owner-only, then swap into place.
        temp = self.config_path.with_suffix(".tmp")
        fd = os.open(str(temp), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "wb") as fh:
            tomli_w.dump(data, fh)
        temp.replace(self.config_path)

    def add_profile(self, profile: ServerProfile) -> None:
        self.config.profiles[profile.name] = profile
        if not self.config.default_profile:
            self.config.default_profile = profile.name
        self.save()

    def remove_profile(self, name: str) -> bool:
        if self.config.profiles.pop(name, None) is None:
            return False
        if self.config.default_profile == name:
            self.config.default_profile = next(iter(self.config.profiles), None)
        self.save()
        return True

    def set_default(self, name: str) -> bool:
        if name not in self.config.profiles:
            return False
        self.config.default_profile = name
        self.save()
        return True

    def get_profile(self, name: str | None = None) -> ServerProfile | None:
        name = name or self.config.default_profile
        return self.config.profiles.get(name) if name else None

    def resolve_server(
        self,
        profile_name: str | None = None,
        server: str | None = None,
        username: str | None = None,
        password: str | None = None,
        skip_certificate_validation: bool | None = None,
    ) -> ServerProfile:
        """Merge CLI flags, ``CMADMIN_*`` variables and a profile, in that order.

        Raises:
            ConfigurationError: no server was given anywhere.
        """
        profile = self.get_profile(profile_name or os.environ.get(ENV_PROFILE))
        base = profile or ServerProfile.model_construct(name="cli", server="")

        resolved_server = _first(server, os.environ.get(ENV_SERVER), base.server)
        if not resolved_server:
            raise ConfigurationError(
                "No server configured. Use 'cmadmin config add', set "
                f"{ENV_SERVER}, or pass --server."
            )
        overrides: dict[str, Any] = {
            "server": resolved_server,
            "username": _first(username, os.environ.get(ENV_USERNAME), base.username),
            "password": _first(password, os.environ.get(ENV_PASSWORD), base.password),
        }
        if skip_certificate_validation is not None:
            overrides["skip_certificate_validation"] = skip_certificate_validation
        return ServerProfile.model_validate({**base.model_dump(), **overrides})
