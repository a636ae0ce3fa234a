"""Site configuration loaded from .adjacent.toml and env vars.

Loading order: defaults → TOML file → env vars.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from adjacent.integrations.supabase import SupabaseConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".adjacent.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "adjacent" / "config.toml"


class AdminSectionConfig(BaseModel):
    """[admin] section."""

    password: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.password)


class StoreSectionConfig(BaseModel):
    """[store] section."""

    backend: str = "json"  # "json" or "supabase"
    directory: str = "./data"


class SupabaseSectionConfig(BaseModel):
    """[supabase] section."""

    url: str = ""
    anon_key: str = ""
    table: str = "blog_posts"
    bucket: str = "blog-images"

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)


class UploadsSectionConfig(BaseModel):
    """[uploads] section — local image bucket."""

    directory: str = "./data/uploads"
    base_url: str = "/uploads"
    prefix: str = "blog"
    cache_control: str = "31536000"


class ServerSectionConfig(BaseModel):
    """[server] section."""

    host: str = "127.0.0.1"
    port: int = 5000
    debug: bool = False


class SiteConfig(BaseModel):
    """Top-level configuration for the blog site and admin API."""

    admin: AdminSectionConfig = Field(default_factory=AdminSectionConfig)
    store: StoreSectionConfig = Field(default_factory=StoreSectionConfig)
    supabase: SupabaseSectionConfig = Field(default_factory=SupabaseSectionConfig)
    uploads: UploadsSectionConfig = Field(default_factory=UploadsSectionConfig)
    server: ServerSectionConfig = Field(default_factory=ServerSectionConfig)

    def to_supabase_config(self) -> SupabaseConfig:
        """Convert to SupabaseConfig for the hosted store backends."""
        from adjacent.integrations.supabase import SupabaseConfig

        return SupabaseConfig(
            url=self.supabase.url,
            anon_key=self.supabase.anon_key,
            table=self.supabase.table,
            bucket=self.supabase.bucket,
        )


def load_config(path: str | Path | None = None) -> SiteConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .adjacent.toml in CWD
    3. ~/.config/adjacent/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged SiteConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        if not data and GLOBAL_CONFIG_PATH.exists():
            data = _load_toml(GLOBAL_CONFIG_PATH)
            logger.info("Loaded config from %s", GLOBAL_CONFIG_PATH)

    config = SiteConfig.model_validate(data) if data else SiteConfig()

    return _apply_env_vars(config)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: SiteConfig) -> SiteConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "ADMIN_PASSWORD": ("admin", "password"),
        "ADJACENT_STORE_BACKEND": ("store", "backend"),
        "ADJACENT_DATA_DIR": ("store", "directory"),
        "ADJACENT_UPLOADS_DIR": ("uploads", "directory"),
        "ADJACENT_UPLOADS_URL": ("uploads", "base_url"),
        "SUPABASE_URL": ("supabase", "url"),
        "SUPABASE_ANON_KEY": ("supabase", "anon_key"),
        "ADJACENT_HOST": ("server", "host"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    port_raw = os.environ.get("ADJACENT_PORT")
    if port_raw is not None:
        try:
            data["server"]["port"] = int(port_raw)
        except ValueError:
            logger.warning("Ignoring non-numeric ADJACENT_PORT=%r", port_raw)
    debug_raw = os.environ.get("ADJACENT_DEBUG")
    if debug_raw is not None:
        data["server"]["debug"] = debug_raw.lower() in ("true", "1", "yes")

    return SiteConfig.model_validate(data)
