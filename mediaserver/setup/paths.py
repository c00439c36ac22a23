"""
Tool: Library Folder Checks
Purpose: Validate library folders and create missing ones

Handles:
- Checking a folder on blur and once for pre-filled folders on entering the
  library step
- Offering directory creation when the folder is missing but its parent is
  writable
- Re-checking folders before libraries are created

Checks and creation go through a PathValidationClient: the server API in
normal operation, or LocalPathClient when the server runs on this machine.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import Callable, Protocol

from mediaserver.setup.api import PathCheckResult
from mediaserver.setup.errors import SetupIOError, ValidationError, error_message
from mediaserver.setup.models import LibraryType, LibraryTypeData, PathValidation
from mediaserver.setup.validators import is_absolute_path


logger = logging.getLogger(__name__)

JUST_CREATED_SECONDS = 3.0

# Never mkdir these, even if writable
DISALLOWED_PATHS = frozenset({"/", "/bin", "/sbin", "/usr", "/etc", "/var", "/root", "/sys", "/proc"})


class PathValidationClient(Protocol):
    async def check_path(self, path: str) -> PathCheckResult: ...

    async def create_path(self, path: str) -> bool: ...


# =============================================================================
# Local Filesystem Client
# =============================================================================


class LocalPathClient:
    """Answers folder checks from the local filesystem, the way the server does."""

    async def check_path(self, path: str) -> PathCheckResult:
        return await asyncio.to_thread(self._check, path)

    async def create_path(self, path: str) -> bool:
        return await asyncio.to_thread(self._create, path)

    @staticmethod
    def _check(path: str) -> PathCheckResult:
        target = Path(path)
        exists = target.exists()
        is_directory = exists and target.is_dir()
        is_writable = is_directory and os.access(target, os.W_OK)

        parent = target.parent
        parent_exists = parent.is_dir()
        parent_writable = parent_exists and os.access(parent, os.W_OK)

        return PathCheckResult(
            exists=exists,
            is_directory=is_directory,
            is_writable=is_writable,
            parent_exists=parent_exists,
            parent_writable=parent_writable,
        )

    @staticmethod
    def _create(path: str) -> bool:
        if not os.path.isabs(path):
            raise ValidationError("Path must be absolute (start with /)", "BAD_REQUEST")
        if os.path.normpath(path) in DISALLOWED_PATHS:
            raise ValidationError("Cannot create directory in this location", "FORBIDDEN")
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SetupIOError(f"Failed to create directory: {e.strerror or e}") from e
        return True


# =============================================================================
# Validation Flow
# =============================================================================


class PathValidationFlow:
    """
    Per content type folder validation state.

    Args:
        client: Where checks and creation are sent
        library_type_data: The wizard's live form data (read, never written)
        just_created_seconds: How long the "folder created" flag stays up
        on_change: Called after every state change
    """

    def __init__(
        self,
        client: PathValidationClient,
        library_type_data: dict[LibraryType, LibraryTypeData],
        just_created_seconds: float = JUST_CREATED_SECONDS,
        on_change: Callable[[], None] | None = None,
    ):
        self.client = client
        self.library_type_data = library_type_data
        self.just_created_seconds = just_created_seconds
        self.on_change = on_change
        self.states: dict[LibraryType, PathValidation] = {
            t: PathValidation() for t in LibraryType.order()
        }
        self.prefill_done = False
        self.creating: LibraryType | None = None
        self.closed = False
        self._timers: set[asyncio.TimerHandle] = set()

    def __getitem__(self, library_type: LibraryType) -> PathValidation:
        return self.states[library_type]

    def _path(self, library_type: LibraryType) -> str:
        return self.library_type_data[library_type].path.strip()

    def _changed(self) -> None:
        if self.on_change is not None and not self.closed:
            self.on_change()

    def reset(self, library_type: LibraryType) -> None:
        """The folder text changed: previous results no longer apply."""
        state = self.states[library_type]
        state.checked = False
        state.error = None
        state.just_created = False
        self._changed()

    async def check(self, library_type: LibraryType) -> PathCheckResult | None:
        """
        Ask whether the folder exists and is usable.

        Returns:
            The check result, or None if the folder is empty or the check failed
        """
        path = self._path(library_type)
        if not path:
            return None

        state = self.states[library_type]
        state.is_checking = True
        state.error = None
        self._changed()

        try:
            result = await self.client.check_path(path)
        except Exception as e:
            if self.closed:
                return None
            logger.warning(f"Folder check failed for {library_type.value} ({path}): {e}")
            state.checked = True
            state.is_checking = False
            state.error = error_message(e, "Failed to check path")
            self._changed()
            return None

        if self.closed:
            return None

        state.checked = True
        state.exists = result.exists
        state.is_directory = result.is_directory
        state.is_writable = result.is_writable
        state.parent_exists = result.parent_exists
        state.parent_writable = result.parent_writable
        state.is_checking = False
        state.error = None
        self._changed()
        return result

    async def blur(self, library_type: LibraryType) -> PathCheckResult | None:
        """Folder field lost focus: check it if it looks like an absolute path."""
        path = self._path(library_type)
        if not path or not is_absolute_path(path):
            return None
        return await self.check(library_type)

    async def validate_prefilled(self) -> None:
        """Check pre-filled folders. Runs once per wizard mount."""
        if self.prefill_done:
            return
        self.prefill_done = True
        for library_type in LibraryType.order():
            if is_absolute_path(self._path(library_type)):
                await self.check(library_type)

    async def create_directory(self, library_type: LibraryType) -> dict:
        """
        Create the missing folder on the server.

        Returns:
            dict with success status
        """
        path = self._path(library_type)
        if not path:
            return {"success": False, "error": "No folder entered"}

        state = self.states[library_type]
        if not state.can_create:
            return {"success": False, "error": "This folder can't be created from here"}

        self.creating = library_type
        self._changed()
        try:
            created = await self.client.create_path(path)
        except Exception as e:
            message = error_message(e, "Failed to create directory")
            logger.warning(f"Creating {path} failed: {message}")
            return {"success": False, "error": message}
        finally:
            self.creating = None
            self._changed()

        if self.closed:
            return {"success": False, "error": "Setup wizard closed"}
        if not created:
            return {"success": False, "error": "The server did not create the folder"}

        logger.info(f"Created library folder {path}")
        state.checked = True
        state.exists = True
        state.is_directory = True
        state.is_writable = True
        state.is_checking = False
        state.error = None
        state.just_created = True
        self._schedule_just_created_clear(library_type)
        self._changed()
        return {"success": True, "path": path}

    def _schedule_just_created_clear(self, library_type: LibraryType) -> None:
        loop = asyncio.get_running_loop()
        handle: asyncio.TimerHandle

        def clear() -> None:
            self._timers.discard(handle)
            self.states[library_type].just_created = False
            self._changed()

        handle = loop.call_later(self.just_created_seconds, clear)
        self._timers.add(handle)

    def cancel_timers(self) -> None:
        """Unmount: stop timers and ignore checks still in flight."""
        self.closed = True
        for handle in self._timers:
            handle.cancel()
        self._timers.clear()

    async def ensure_exist(self, library_types: list[LibraryType]) -> LibraryType | None:
        """
        Submission-time check, one folder at a time.

        Folders not yet checked this session are checked now; already
        checked ones use their last result.

        Returns:
            The first content type whose folder does not exist, or None
        """
        for library_type in library_types:
            state = self.states[library_type]
            if not state.checked:
                result = await self.check(library_type)
                if result is None or not result.exists:
                    return library_type
            elif not state.exists:
                return library_type
        return None
