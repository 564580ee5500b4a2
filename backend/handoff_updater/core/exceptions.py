"""
Base exception hierarchy

Provides a consistent exception structure across the updater
with clear error messages and recovery hints.
"""


class UpdaterError(Exception):
    """
    Base exception for all updater errors

    Attributes:
        message: Error message
        component: Component that raised the error
        recovery_hint: Optional hint for recovery
    """

    def __init__(self, message: str, component: str = "", recovery_hint: str = ""):
        self.message = message
        self.component = component
        self.recovery_hint = recovery_hint
        super().__init__(message)

    def __str__(self) -> str:
        msg = super().__str__()
        if self.component:
            msg = f"[{self.component}] {msg}"
        if self.recovery_hint:
            msg += f"\nRecovery: {self.recovery_hint}"
        return msg


class ConfigurationError(UpdaterError):
    """Configuration-related errors"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(
            message,
            component="Configuration",
            recovery_hint=recovery_hint or "Check your .env file and UPDATER_* environment variables",
        )


class InvalidVersionFormat(UpdaterError, ValueError):
    """Raised when a version string has no comparable numeric part"""

    def __init__(self, version: str):
        self.version = version
        super().__init__(f"Unable to parse version string: {version!r}", component="Version")


class UpdateFeedError(UpdaterError):
    """Remote release metadata could not be fetched or was rejected"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(
            message,
            component="Feed",
            recovery_hint=recovery_hint or "Check network connectivity and the configured repository URLs",
        )


class NoAssetForPlatform(UpdaterError):
    """The release has no downloadable artifact for this platform"""

    def __init__(self, message: str, platform_hint: str = ""):
        self.platform_hint = platform_hint
        super().__init__(message, component="Assets")


class UpdateExecutionError(UpdaterError):
    """Download, filesystem or backup failure during an update attempt"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(message, component="Update", recovery_hint=recovery_hint)


class BackupError(UpdaterError):
    """Creating or staging a backup failed"""

    def __init__(self, message: str, recovery_hint: str = ""):
        super().__init__(
            message,
            component="Backup",
            recovery_hint=recovery_hint or "Check free disk space and permissions of the data directory",
        )
