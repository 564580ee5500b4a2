"""
Update data models

Remote records (releases, changelog, blocked versions) are parsed with
pydantic; unknown fields sent by the remote side are ignored.
"""

from enum import Enum, IntEnum

from pydantic import BaseModel, ConfigDict, Field

from handoff_updater.update.version import SemanticVersion


class ControlCode(IntEnum):
    """Codes written to the control file and used as process exit status"""

    SHUTDOWN = 0
    UPDATE = 11
    RESTART = 22
    RESTORE = 33


class UpdateState(Enum):
    """State of the update manager"""

    IDLE = "idle"
    CHECKING = "checking"
    UP_TO_DATE = "up_to_date"
    UPDATE_AVAILABLE = "update_available"
    DOWNLOADING = "downloading"
    BACKING_UP = "backing_up"
    HANDING_OFF = "handing_off"
    FAILED = "failed"


class Asset(BaseModel):
    """One downloadable file attached to a release"""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    browser_download_url: str
    size: int = 0


class Release(BaseModel):
    """Release descriptor as returned by the releases endpoint"""

    model_config = ConfigDict(extra="ignore", frozen=True)

    tag_name: str
    assets: list[Asset] = Field(default_factory=list)
    published_at: str | None = None
    name: str | None = None
    html_url: str | None = None
    body: str | None = None
    prerelease: bool = False

    @property
    def version(self) -> SemanticVersion:
        return SemanticVersion(self.tag_name)


class ChangelogChangeEntry(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str = "note"
    text: str


class ChangelogVersionEntry(BaseModel):
    """All changes shipped with one version"""

    model_config = ConfigDict(extra="ignore")

    version: str
    date: str | None = None
    final: bool = True
    changes: list[ChangelogChangeEntry] = Field(default_factory=list)

    @property
    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion(self.version)


class BlockedVersion(BaseModel):
    """A version the vendor flagged as unsafe to install"""

    model_config = ConfigDict(extra="ignore")

    version: str
    comment: str = ""

    @property
    def semantic_version(self) -> SemanticVersion:
        return SemanticVersion(self.version)


class UpdateData(BaseModel):
    """
    Persisted update preferences

    ignore_versions holds version strings; membership is decided by
    SemanticVersion equality, not string equality.
    """

    ignore_versions: list[str] = Field(default_factory=list)

    def ignored(self) -> set[SemanticVersion]:
        return {SemanticVersion(v) for v in self.ignore_versions}
