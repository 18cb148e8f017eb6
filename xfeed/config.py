"""
Configuration management utilities for xfeed.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Mapping, Sequence

from dotenv import dotenv_values

from xfeed.exceptions import ConfigurationError
from xfeed.result import DEFAULT_RETRY_AFTER

ENV_VAR_MAP = {
    "api_key": "X_API_KEY",
    "api_secret": "X_API_SECRET",
    "access_token": "X_ACCESS_TOKEN",
    "access_token_secret": "X_ACCESS_TOKEN_SECRET",
    "bearer_token": "X_BEARER_TOKEN",
}

SETTINGS_ENV_MAP = {
    "page_size": "XFEED_PAGE_SIZE",
    "default_retry_after": "XFEED_DEFAULT_RETRY_AFTER",
    "countdown_interval": "XFEED_COUNTDOWN_INTERVAL",
    "debug": "XFEED_DEBUG",
}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off", ""}


@dataclass(slots=True)
class XFeedCredentials:
    """Credential container supporting OAuth 1.0a and OAuth 2.0 user tokens."""

    api_key: str | None = None
    api_secret: str | None = None
    access_token: str | None = None
    access_token_secret: str | None = None
    bearer_token: str | None = None

    def is_empty(self) -> bool:
        return all(value in (None, "") for value in asdict(self).values())

    def has_oauth1(self) -> bool:
        return all(
            (self.api_key, self.api_secret, self.access_token, self.access_token_secret)
        )

    def merge(self, other: "XFeedCredentials") -> "XFeedCredentials":
        """Merge credential sets, preferring non-null values from ``other``."""

        return XFeedCredentials(
            api_key=other.api_key or self.api_key,
            api_secret=other.api_secret or self.api_secret,
            access_token=other.access_token or self.access_token,
            access_token_secret=other.access_token_secret or self.access_token_secret,
            bearer_token=other.bearer_token or self.bearer_token,
        )

    def to_dict(self) -> dict[str, str]:
        return {
            key: value
            for key, value in asdict(self).items()
            if isinstance(value, str) and value
        }

    @classmethod
    def from_mapping(cls, data: Mapping[str, str | None]) -> "XFeedCredentials":
        return cls(
            api_key=data.get("api_key"),
            api_secret=data.get("api_secret"),
            access_token=data.get("access_token"),
            access_token_secret=data.get("access_token_secret"),
            bearer_token=data.get("bearer_token"),
        )


@dataclass(slots=True)
class FeedSettings:
    """Runtime knobs for list views and the rate limit countdown."""

    page_size: int = 30
    default_retry_after: int = DEFAULT_RETRY_AFTER
    countdown_interval: float = 1.0
    debug: bool = False

    def __post_init__(self) -> None:
        if not 1 <= self.page_size <= 100:
            raise ConfigurationError("page_size must be between 1 and 100.")
        if self.default_retry_after < 0:
            raise ConfigurationError("default_retry_after must be >= 0.")
        if self.countdown_interval <= 0:
            raise ConfigurationError("countdown_interval must be > 0.")


class ConfigManager:
    """Loads credentials and settings from the environment, a .env file or disk."""

    def __init__(
        self,
        credential_path: Path | None = None,
        *,
        dotenv_path: Path | None = None,
        state_path: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._credential_path = credential_path or Path("credentials/xfeed_config.json")
        self._state_path = state_path or self._credential_path.with_name("xfeed_state.json")
        self._dotenv_path = dotenv_path or Path(".env")
        self._env = env if env is not None else os.environ

    def load_credentials(
        self,
        priority: Sequence[str] = ("env", "dotenv", "file"),
    ) -> XFeedCredentials:
        """
        Load credentials according to the requested priority order.

        Raises:
            ConfigurationError: when no credentials are available.
        """

        for source in priority:
            if source == "env":
                credentials = self._credentials_from(self._env)
            elif source == "dotenv":
                credentials = self._credentials_from(self._dotenv())
            elif source == "file":
                credentials = self._load_from_file()
            else:
                raise ValueError(f"Unknown credential source '{source}'.")

            if credentials and not credentials.is_empty():
                return credentials

        raise ConfigurationError("X credentials are not configured.")

    def save_credentials(self, credentials: XFeedCredentials) -> None:
        """Persist credentials to disk, merging with existing values."""

        existing = self._load_from_file()
        merged = existing.merge(credentials) if existing else credentials

        _write_private_json(self._credential_path, merged.to_dict())

    def load_read_marker(self) -> str | None:
        """Newest notification sort index shown by the previous run, if any."""

        if not self._state_path.exists():
            return None
        with self._state_path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        marker = data.get("read_marker") if isinstance(data, Mapping) else None
        return str(marker) if marker else None

    def save_read_marker(self, marker: str) -> None:
        _write_private_json(self._state_path, {"read_marker": marker})

    def load_settings(self) -> FeedSettings:
        """Read ``XFEED_*`` settings; the environment wins over the .env file."""

        values: dict[str, str | None] = dict(self._dotenv())
        values.update(self._env)
        raw = {field: values.get(name) for field, name in SETTINGS_ENV_MAP.items()}

        kwargs: dict[str, object] = {}
        if raw["page_size"] is not None:
            kwargs["page_size"] = self._parse(raw["page_size"], int, "XFEED_PAGE_SIZE")
        if raw["default_retry_after"] is not None:
            kwargs["default_retry_after"] = self._parse(
                raw["default_retry_after"], int, "XFEED_DEFAULT_RETRY_AFTER"
            )
        if raw["countdown_interval"] is not None:
            kwargs["countdown_interval"] = self._parse(
                raw["countdown_interval"], float, "XFEED_COUNTDOWN_INTERVAL"
            )
        if raw["debug"] is not None:
            kwargs["debug"] = self._parse_bool(raw["debug"])
        return FeedSettings(**kwargs)  # type: ignore[arg-type]

    def _dotenv(self) -> dict[str, str | None]:
        if not self._dotenv_path.exists():
            return {}
        return dotenv_values(self._dotenv_path)

    @staticmethod
    def _credentials_from(values: Mapping[str, str | None]) -> XFeedCredentials | None:
        credentials = XFeedCredentials.from_mapping(
            {field: values.get(env_name) for field, env_name in ENV_VAR_MAP.items()}
        )
        return credentials if not credentials.is_empty() else None

    def _load_from_file(self) -> XFeedCredentials | None:
        if not self._credential_path.exists():
            return None

        with self._credential_path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)

        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Credential file {self._credential_path} did not contain a mapping."
            )

        credentials = XFeedCredentials.from_mapping(data)
        return credentials if not credentials.is_empty() else None

    @staticmethod
    def _parse(value: str, kind: type, name: str):
        try:
            return kind(value)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"{name} must be a {kind.__name__}, got '{value}'.") from exc

    @staticmethod
    def _parse_bool(value: str) -> bool:
        lowered = value.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        raise ConfigurationError(f"XFEED_DEBUG must be a boolean flag, got '{value}'.")


def _write_private_json(path: Path, data: Mapping[str, object]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fp:
        json.dump(data, fp, indent=2, sort_keys=True)

    # Owner read/write only
    os.chmod(path, 0o600)
