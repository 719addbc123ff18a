"""Configuration utilities for the WebDAV property steps.

This module loads the test-run configuration with the following rules:
- Primary source: `davprops_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_DAV_CONFIG = Path("davprops_config.json")
logger = logging.getLogger(__name__)

DAV_PATH_VERSIONS = {"old": 1, "new": 2, "spaces": 3}


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        # Recoverable: an unreadable override falls back to the next source
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _as_bool(text: Optional[str]) -> bool:
    return str(text).strip().lower() in {"1", "true", "yes", "on"}


class UserAccount(BaseModel):
    password: Optional[str] = None
    display_name: Optional[str] = None
    space_id: Optional[str] = None


class DavConfig(BaseModel):
    base_url: str
    dav_path_version: int = Field(default=2)
    with_remote_php: bool = Field(default=False)
    admin_username: str = Field(default="admin")
    admin_password: str = Field(default="admin")
    regular_user_password: str = Field(default="123456")
    use_sharing_ng: bool = Field(default=False)
    http_timeout: float = Field(default=30.0, gt=0)
    verify_tls: bool = Field(default=True)
    users: Dict[str, UserAccount] = Field(default_factory=dict)

    @field_validator("base_url")
    @classmethod
    def base_url_must_be_http(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("base_url must be a non-empty string")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("dav_path_version", mode="before")
    @classmethod
    def dav_path_version_allowed(cls, v: object) -> int:
        text = str(v).strip().lower()
        if text in DAV_PATH_VERSIONS:
            return DAV_PATH_VERSIONS[text]
        if text not in {"1", "2", "3"}:
            raise ValueError(f"dav_path_version must be one of {sorted(DAV_PATH_VERSIONS)} or 1-3")
        return int(text)

    @property
    def base_path(self) -> str:
        """Path component of the server URL, e.g. "/owncloud" or ""."""
        after_scheme = self.base_url.split("://", 1)[-1]
        if "/" not in after_scheme:
            return ""
        return "/" + after_scheme.split("/", 1)[1].strip("/")


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> DavConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) davprops_config.json at project root (primary base)
    4) Safe defaults for a local development server
    """

    base = _read_json_file(ROOT_DAV_CONFIG)

    def _base(key: str, default: Optional[str] = None) -> Optional[str]:
        value = base.get(key)
        return str(value) if value is not None else default

    base_url = _env("TEST_SERVER_URL") or _read_config_file("server.url") or _base("base_url") or "http://localhost:8080"
    dav_version = _env("DAV_PATH_VERSION") or _read_config_file("dav.path_version") or _base("dav_path_version", "2")
    remote_php = _env("WITH_REMOTE_PHP") or _read_config_file("dav.remote_php") or _base("with_remote_php", "false")
    admin_user = _env("ADMIN_USERNAME") or _read_config_file("admin.username") or _base("admin_username", "admin")
    admin_pass = _env("ADMIN_PASSWORD") or _read_config_file("admin.password") or _base("admin_password", "admin")
    user_pass = _env("REGULAR_USER_PASSWORD") or _read_config_file("users.password") or _base("regular_user_password", "123456")
    sharing_ng = _env("USE_SHARING_NG") or _read_config_file("sharing.ng") or _base("use_sharing_ng", "false")
    timeout_text = _env("HTTP_TIMEOUT") or _read_config_file("http.timeout") or _base("http_timeout", "30")
    verify_text = _env("VERIFY_TLS") or _read_config_file("http.verify_tls") or _base("verify_tls", "true")

    users: dict = dict(base.get("users") or {})
    users_file = _env("DAV_USERS_FILE")
    if users_file:
        users.update(_read_json_file(Path(users_file)))

    try:
        return DavConfig(
            base_url=base_url,
            dav_path_version=dav_version,
            with_remote_php=_as_bool(remote_php),
            admin_username=admin_user,
            admin_password=admin_pass,
            regular_user_password=user_pass,
            use_sharing_ng=_as_bool(sharing_ng),
            http_timeout=float(str(timeout_text).strip()),
            verify_tls=_as_bool(verify_text),
            users=users,
        )
    except PydanticValidationError as e:
        logger.error("Invalid davprops configuration: %s", e)
        raise


__all__ = [
    "DavConfig",
    "UserAccount",
    "DAV_PATH_VERSIONS",
    "load_config",
]
