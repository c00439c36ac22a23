"""
Setup wizard data model.

Steps, library and privacy types, per-type form data, folder check state and
the persisted wizard snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class WizardStep(str, Enum):
    """Wizard steps in order."""

    WELCOME = "welcome"
    ACCOUNT = "account"
    LIBRARY = "library"
    PRIVACY = "privacy"
    READY = "ready"

    @classmethod
    def order(cls) -> list["WizardStep"]:
        """Return steps in display order."""
        return [cls.WELCOME, cls.ACCOUNT, cls.LIBRARY, cls.PRIVACY, cls.READY]

    def next(self) -> Optional["WizardStep"]:
        """Get next step in sequence."""
        order = self.order()
        idx = order.index(self)
        if idx < len(order) - 1:
            return order[idx + 1]
        return None

    def previous(self) -> Optional["WizardStep"]:
        """Get previous step in sequence."""
        order = self.order()
        idx = order.index(self)
        if idx > 0:
            return order[idx - 1]
        return None

    @property
    def progress_percent(self) -> int | None:
        """Progress bar fill; no bar is shown on Welcome and Ready."""
        if self in (WizardStep.WELCOME, WizardStep.READY):
            return None
        order = self.order()
        return int(order.index(self) / (len(order) - 1) * 100)


# Steps that require an administrator account to exist
OWNER_REQUIRED_STEPS = frozenset({WizardStep.LIBRARY, WizardStep.PRIVACY, WizardStep.READY})


class LibraryType(str, Enum):
    """Content types a library can hold."""

    MOVIE = "movie"
    TV = "tv"

    @classmethod
    def order(cls) -> list["LibraryType"]:
        """Provisioning order: movies before TV."""
        return [cls.MOVIE, cls.TV]

    @property
    def label(self) -> str:
        return LIBRARY_DEFAULTS[self]["name"]


LIBRARY_DEFAULTS: dict[LibraryType, dict[str, str]] = {
    LibraryType.MOVIE: {"name": "Movies", "path": "/media/movies"},
    LibraryType.TV: {"name": "TV Shows", "path": "/media/tv"},
}


class PrivacyLevel(str, Enum):
    MAXIMUM = "maximum"
    PRIVATE = "private"
    BALANCED = "balanced"
    OPEN = "open"


DEFAULT_PRIVACY_LEVEL = PrivacyLevel.PRIVATE

PRIVACY_OPTIONS: list[dict[str, Any]] = [
    {"level": PrivacyLevel.MAXIMUM, "title": "Maximum", "description": "No external connections"},
    {
        "level": PrivacyLevel.PRIVATE,
        "title": "Private",
        "description": "Local only (Recommended)",
        "recommended": True,
    },
    {"level": PrivacyLevel.BALANCED, "title": "Balanced", "description": "Privacy with features"},
    {"level": PrivacyLevel.OPEN, "title": "Open", "description": "Help improve the project"},
]

# What the server applies for each level
PRIVACY_PRESETS: dict[PrivacyLevel, dict[str, Any]] = {
    PrivacyLevel.MAXIMUM: {
        "allow_external_connections": False,
        "local_analytics_enabled": False,
        "anonymous_sharing_enabled": False,
        "tmdb_enabled": False,
        "opensubtitles_enabled": False,
        "mask_file_paths": True,
        "analytics_retention_days": None,
        "audit_retention_days": 30,
    },
    PrivacyLevel.PRIVATE: {
        "allow_external_connections": False,
        "local_analytics_enabled": True,
        "anonymous_sharing_enabled": False,
        "tmdb_enabled": False,
        "opensubtitles_enabled": False,
        "mask_file_paths": True,
        "analytics_retention_days": 90,
        "audit_retention_days": 90,
    },
    PrivacyLevel.BALANCED: {
        "allow_external_connections": True,
        "local_analytics_enabled": True,
        "anonymous_sharing_enabled": False,
        "tmdb_enabled": True,
        "opensubtitles_enabled": False,
        "mask_file_paths": True,
        "analytics_retention_days": 180,
        "audit_retention_days": 180,
    },
    PrivacyLevel.OPEN: {
        "allow_external_connections": True,
        "local_analytics_enabled": True,
        "anonymous_sharing_enabled": True,
        "tmdb_enabled": True,
        "opensubtitles_enabled": True,
        "mask_file_paths": False,
        "analytics_retention_days": 365,
        "audit_retention_days": 365,
    },
}


@dataclass
class LibraryTypeData:
    """Form data for one content type's library."""

    name: str
    path: str

    @classmethod
    def default(cls, library_type: LibraryType) -> "LibraryTypeData":
        defaults = LIBRARY_DEFAULTS[library_type]
        return cls(name=defaults["name"], path=defaults["path"])


def default_library_type_data() -> dict[LibraryType, LibraryTypeData]:
    return {t: LibraryTypeData.default(t) for t in LibraryType.order()}


@dataclass
class PathValidation:
    """What the server reported about one library folder."""

    checked: bool = False
    exists: bool = False
    is_directory: bool = False
    is_writable: bool = False
    parent_exists: bool = False
    parent_writable: bool = False
    is_checking: bool = False
    error: str | None = None
    just_created: bool = False

    @property
    def can_create(self) -> bool:
        """Whether to offer creating the folder."""
        return self.checked and self.error is None and not self.exists and self.parent_writable

    def hint(self) -> str | None:
        """Inline status message for the folder field."""
        if self.is_checking:
            return "Checking folder..."
        if self.error:
            return self.error
        if not self.checked:
            return None
        if self.just_created and self.exists:
            return "Folder created successfully!"
        if self.exists:
            return "Folder exists and is accessible"
        if self.parent_writable:
            return "This folder doesn't exist yet. You can create it."
        if not self.parent_exists:
            return "Parent directory doesn't exist. Check that the path is correct."
        return "Cannot create folder - no write permission to parent directory."


@dataclass
class WizardState:
    """
    Persistent wizard state.

    Everything needed to resume the wizard after a restart. Passwords are
    never part of it.
    """

    step: WizardStep = WizardStep.WELCOME
    library_type_data: dict[LibraryType, LibraryTypeData] = field(
        default_factory=default_library_type_data
    )
    selected_library_type: LibraryType = LibraryType.MOVIE
    created_libraries: list[LibraryType] = field(default_factory=list)
    privacy_level: PrivacyLevel = DEFAULT_PRIVACY_LEVEL
    account_email: str = ""

    # Steps whose side effect (account, libraries, privacy) already happened
    completed_steps: list[WizardStep] = field(default_factory=list)
    started_at: str | None = None
    last_updated: str | None = None

    def mark_step_complete(self, step: WizardStep) -> None:
        if step not in self.completed_steps:
            self.completed_steps.append(step)

    def touch(self) -> None:
        now = datetime.now().isoformat()
        if self.started_at is None:
            self.started_at = now
        self.last_updated = now

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "step": self.step.value,
            "library_type_data": {
                t.value: {"name": d.name, "path": d.path}
                for t, d in self.library_type_data.items()
            },
            "selected_library_type": self.selected_library_type.value,
            "created_libraries": [t.value for t in self.created_libraries],
            "privacy_level": self.privacy_level.value,
            "account_email": self.account_email,
            "completed_steps": [s.value for s in self.completed_steps],
            "started_at": self.started_at,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WizardState":
        """
        Create from dictionary.

        Missing keys take their defaults; unknown enum values raise
        ValueError.
        """
        state = cls()
        if "step" in data:
            state.step = WizardStep(data["step"])
        for key, value in (data.get("library_type_data") or {}).items():
            state.library_type_data[LibraryType(key)] = LibraryTypeData(
                name=str(value.get("name", "")),
                path=str(value.get("path", "")),
            )
        if "selected_library_type" in data:
            state.selected_library_type = LibraryType(data["selected_library_type"])
        state.created_libraries = [LibraryType(t) for t in data.get("created_libraries", [])]
        if "privacy_level" in data:
            state.privacy_level = PrivacyLevel(data["privacy_level"])
        state.account_email = data.get("account_email") or ""
        state.completed_steps = [WizardStep(s) for s in data.get("completed_steps", [])]
        state.started_at = data.get("started_at")
        state.last_updated = data.get("last_updated")
        return state


@dataclass
class ProvisioningResult:
    """Outcome of one library submission attempt."""

    created: list[LibraryType] = field(default_factory=list)
    failed: LibraryType | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.failed is None
