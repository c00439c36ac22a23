"""
Tool: Wizard State Storage
Purpose: Persist wizard progress between runs

Two keys are kept:
- the serialized WizardState blob
- a "setup in progress" flag, set once the admin account exists, so an
  interrupted first run is still detectable if the blob is lost

Both are removed together by clear(). Stores do not validate what they hold;
load() only guarantees it never raises.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from mediaserver.setup import SETUP_IN_PROGRESS_FLAG, WIZARD_STATE_PATH
from mediaserver.setup.models import WizardState


logger = logging.getLogger(__name__)

SETUP_IN_PROGRESS_KEY = "mediaserver_setup_in_progress"
SETUP_WIZARD_STATE_KEY = "mediaserver_setup_wizard_state"


class WizardStore(ABC):
    """Key/value persistence for the wizard."""

    @abstractmethod
    def _read(self, key: str) -> str | None: ...

    @abstractmethod
    def _write(self, key: str, value: str) -> None: ...

    @abstractmethod
    def _remove(self, key: str) -> None: ...

    def load(self) -> WizardState | None:
        """Load the saved state, or None if missing or unreadable."""
        raw = self._read(SETUP_WIZARD_STATE_KEY)
        if not raw:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected an object, got {type(data).__name__}")
            return WizardState.from_dict(data)
        except (ValueError, TypeError, AttributeError, KeyError) as e:
            logger.warning(f"Discarding unreadable wizard state: {e}")
            return None

    def save(self, state: WizardState) -> None:
        self._write(SETUP_WIZARD_STATE_KEY, json.dumps(state.to_dict()))

    def clear(self) -> None:
        """Remove both the state blob and the in-progress flag."""
        self._remove(SETUP_IN_PROGRESS_KEY)
        self._remove(SETUP_WIZARD_STATE_KEY)

    def mark_in_progress(self) -> None:
        self._write(SETUP_IN_PROGRESS_KEY, "true")

    def is_in_progress(self) -> bool:
        return self._read(SETUP_IN_PROGRESS_KEY) == "true"


class MemoryWizardStore(WizardStore):
    """Dict-backed store, for tests and embedding."""

    def __init__(self, data: dict[str, str] | None = None):
        self.data: dict[str, str] = data if data is not None else {}

    def _read(self, key: str) -> str | None:
        return self.data.get(key)

    def _write(self, key: str, value: str) -> None:
        self.data[key] = value

    def _remove(self, key: str) -> None:
        self.data.pop(key, None)


class FileWizardStore(WizardStore):
    """
    JSON file plus flag file on disk.

    Args:
        state_path: Where the state blob lives
        flag_path: Where the in-progress flag lives
    """

    def __init__(self, state_path: Path | None = None, flag_path: Path | None = None):
        self.state_path = state_path or WIZARD_STATE_PATH
        self.flag_path = flag_path or SETUP_IN_PROGRESS_FLAG

    @classmethod
    def in_directory(cls, directory: Path) -> "FileWizardStore":
        return cls(
            state_path=directory / WIZARD_STATE_PATH.name,
            flag_path=directory / SETUP_IN_PROGRESS_FLAG.name,
        )

    def _path(self, key: str) -> Path:
        return self.flag_path if key == SETUP_IN_PROGRESS_KEY else self.state_path

    def _read(self, key: str) -> str | None:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {path}: {e}")
            return None

    def _write(self, key: str, value: str) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic replace
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(value)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def _remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def describe(self) -> dict[str, Any]:
        return {
            "state_path": str(self.state_path),
            "state_exists": self.state_path.exists(),
            "in_progress": self.is_in_progress(),
        }
