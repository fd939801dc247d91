from pathlib import Path

import pytest

from ghost_refresh.config import Settings
from ghost_refresh.errors import ConfigurationError


def test_settings_from_files_uses_defaults_when_files_missing(tmp_path: Path) -> None:
    settings = Settings.from_files(
        config_file=tmp_path / "missing.ini",
        env_file=tmp_path / ".env",
        base_env={},
    )

    assert settings.ghost_api_url is None
    assert settings.ghost_admin_api_key is None
    assert settings.ghost_api_version == "v5.0"
    assert settings.request_timeout_sec == 30
    assert settings.diagnostics_dir == Path(".")
    assert settings.google_client_id is None


def test_settings_from_files_reads_ini_values(tmp_path: Path) -> None:
    config_file = tmp_path / "config.ini"
    config_file.write_text(
        "[ghost]\n"
        "GHOST_API_URL=https://blog.example.com\n"
        "GHOST_API_VERSION=v5.82\n"
        "[google]\n"
        "GOOGLE_REDIRECT_URI=urn:ietf:wg:oauth:2.0:oob\n",
        encoding="utf-8",
    )

    settings = Settings.from_files(
        config_file=config_file,
        env_file=tmp_path / ".env",
        base_env={},
    )

    assert settings.ghost_api_url == "https://blog.example.com"
    assert settings.ghost_api_version == "v5.82"
    assert settings.google_redirect_uri == "urn:ietf:wg:oauth:2.0:oob"


def test_settings_from_files_uses_dotenv_to_override_ini(tmp_path: Path) -> None:
    config_file = tmp_path / "config.ini"
    config_file.write_text(
        "[settings]\n"
        "GHOST_ADMIN_API_KEY=ini:abcd\n"
        "REQUEST_TIMEOUT_SEC=10\n",
        encoding="utf-8",
    )
    env_file = tmp_path / ".env"
    env_file.write_text(
        "# comment\n"
        "GHOST_ADMIN_API_KEY='env:abcd'\n"
        "REQUEST_TIMEOUT_SEC=5\n",
        encoding="utf-8",
    )

    settings = Settings.from_files(
        config_file=config_file,
        env_file=env_file,
        base_env={},
    )

    assert settings.ghost_admin_api_key == "env:abcd"
    assert settings.request_timeout_sec == 5


def test_settings_from_files_keeps_os_env_as_highest_priority(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("GOOGLE_CLIENT_ID=env-client\n", encoding="utf-8")

    settings = Settings.from_files(
        config_file=tmp_path / "missing.ini",
        env_file=env_file,
        base_env={"GOOGLE_CLIENT_ID": "os-client"},
    )

    assert settings.google_client_id == "os-client"


def test_require_ghost_lists_missing_keys() -> None:
    settings = Settings.from_mapping({"GHOST_API_URL": "https://blog.example.com"})

    with pytest.raises(ConfigurationError, match="GHOST_ADMIN_API_KEY"):
        settings.require_ghost()


def test_require_ghost_passes_when_configured() -> None:
    settings = Settings.from_mapping(
        {"GHOST_API_URL": "https://blog.example.com", "GHOST_ADMIN_API_KEY": "id:abcd"}
    )

    settings.require_ghost()
