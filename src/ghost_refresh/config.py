from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .errors import ConfigurationError

DEFAULT_GHOST_API_VERSION = "v5.0"
DEFAULT_USER_AGENT = "ghost-post-refresh/0.1"


def _parse_ini(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}

    parser = configparser.ConfigParser()
    parser.optionxform = str
    parser.read(path, encoding="utf-8")

    values: dict[str, str] = {}
    for key, value in parser.defaults().items():
        values[key.upper()] = value
    for section in parser.sections():
        for key, value in parser.items(section):
            values[key.upper()] = value
    return values


def _parse_dotenv(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()
        if (
            len(value) >= 2
            and value[0] == value[-1]
            and value[0] in {"'", '"'}
        ):
            value = value[1:-1]

        if key:
            values[key.upper()] = value
    return values


def _pick(
    values: Mapping[str, str],
    key: str,
    default: Optional[str] = None,
) -> Optional[str]:
    value = values.get(key)
    if value is None:
        return default
    return str(value)


def _optional(values: Mapping[str, str], key: str) -> Optional[str]:
    return (_pick(values, key) or "").strip() or None


@dataclass
class Settings:
    ghost_api_url: Optional[str]
    ghost_admin_api_key: Optional[str]
    ghost_api_version: str

    google_client_id: Optional[str]
    google_client_secret: Optional[str]
    google_redirect_uri: Optional[str]

    request_timeout_sec: float
    request_user_agent: str
    diagnostics_dir: Path

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, str]) -> "Settings":
        values = {key.upper(): str(value) for key, value in mapping.items() if value is not None}
        return cls(
            ghost_api_url=_optional(values, "GHOST_API_URL"),
            ghost_admin_api_key=_optional(values, "GHOST_ADMIN_API_KEY"),
            ghost_api_version=(
                _pick(values, "GHOST_API_VERSION", DEFAULT_GHOST_API_VERSION) or DEFAULT_GHOST_API_VERSION
            ).strip(),
            google_client_id=_optional(values, "GOOGLE_CLIENT_ID"),
            google_client_secret=_optional(values, "GOOGLE_CLIENT_SECRET"),
            google_redirect_uri=_optional(values, "GOOGLE_REDIRECT_URI"),
            request_timeout_sec=float(_pick(values, "REQUEST_TIMEOUT_SEC", "30") or "30"),
            request_user_agent=(
                _pick(values, "REQUEST_USER_AGENT", DEFAULT_USER_AGENT) or DEFAULT_USER_AGENT
            ).strip(),
            diagnostics_dir=Path(_pick(values, "DIAGNOSTICS_DIR", ".") or ".").expanduser(),
        )

    @classmethod
    def from_files(
        cls,
        *,
        config_file: Path | str = "config.ini",
        env_file: Path | str = ".env",
        base_env: Optional[Mapping[str, str]] = None,
    ) -> "Settings":
        merged_values: dict[str, str] = {}
        merged_values.update(_parse_ini(Path(config_file)))
        merged_values.update(_parse_dotenv(Path(env_file)))
        if base_env is None:
            base_env = os.environ
        for key, value in base_env.items():
            if value is not None:
                merged_values[key.upper()] = str(value)
        return cls.from_mapping(merged_values)

    def require_ghost(self) -> None:
        missing = [
            name
            for name, value in (
                ("GHOST_API_URL", self.ghost_api_url),
                ("GHOST_ADMIN_API_KEY", self.ghost_admin_api_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

    def ensure_dirs(self) -> None:
        self.diagnostics_dir.mkdir(parents=True, exist_ok=True)
