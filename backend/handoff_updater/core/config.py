"""
Configuration management

Centralized settings using Pydantic BaseSettings for type-safe configuration
with environment variable support (prefix UPDATER_).

Also resolves the running version once at startup. The result is an immutable
SemanticVersion that gets injected into the update manager.
"""

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from handoff_updater import __version__
from handoff_updater.core.exceptions import ConfigurationError
from handoff_updater.core.paths import get_database_file, get_default_data_dir, get_package_root
from handoff_updater.update.version import SemanticVersion

logger = logging.getLogger(__name__)

# Left in place when the build does not substitute the real version
VERSION_PLACEHOLDER = "@project.version@"
FALLBACK_VERSION = "1.0.0"

RELEASE_CACHE_TTL_SECONDS = 15 * 60
HANDOFF_GRACE_SECONDS = 0.3


class Settings(BaseSettings):
    """
    Application settings with environment variable support

    Settings can be overridden via environment variables:
    - UPDATER_DATA_DIR=/srv/app/data
    - UPDATER_REPOSITORY_BASE_URL=https://api.github.com/repos/owner/project
    - UPDATER_GITHUB_TOKEN=...
    """

    # Data directory (control file, update folder, backups, database)
    data_dir: Path = get_default_data_dir()

    # Remote endpoints
    repository_base_url: str = ""
    changelog_url: str = ""
    blocked_versions_url: str = ""

    # Out-of-band token appended as access_token to release and asset URLs
    github_token: str = ""

    # Version of the running server
    build_version: str = __version__

    # Timing
    release_cache_ttl_seconds: float = RELEASE_CACHE_TTL_SECONDS
    handoff_grace_seconds: float = HANDOFF_GRACE_SECONDS
    http_timeout_seconds: float = 30.0
    download_timeout_seconds: float = 300.0

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="UPDATER_",
        env_file=str(get_package_root() / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def database_path(self) -> Path:
        return get_database_file(self.data_dir)

    def validate_update_urls(self) -> None:
        """
        Ensure every remote endpoint needed by the update manager is configured

        Raises:
            ConfigurationError: Listing all missing settings
        """
        missing = [
            name
            for name in ("repository_base_url", "changelog_url", "blocked_versions_url")
            if not getattr(self, name).strip()
        ]
        if missing:
            env_names = ", ".join(f"UPDATER_{name.upper()}" for name in missing)
            raise ConfigurationError(
                f"Missing update settings: {', '.join(missing)}",
                recovery_hint=f"Set {env_names}",
            )


def resolve_current_version(settings: Settings) -> SemanticVersion:
    """
    Build the running version from settings

    Args:
        settings: Application settings

    Returns:
        SemanticVersion of the running server

    Raises:
        InvalidVersionFormat: If build_version is set but unparsable
    """
    version_string = settings.build_version.strip()
    if not version_string or version_string == VERSION_PLACEHOLDER:
        logger.warning(f"Version string not found. Using {FALLBACK_VERSION}")
        version_string = FALLBACK_VERSION
    return SemanticVersion(version_string)


# Singleton pattern for settings
_settings: Settings | None = None


def get_settings() -> Settings:
    """
    Get application settings (singleton)

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
