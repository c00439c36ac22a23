"""Shared test fixtures for mediaserver tests.

This module provides common fixtures used across all test modules:
- In-memory and on-disk wizard stores
- A fake setup API built from AsyncMock
- A controller factory wired to both

Usage:
    @pytest.mark.asyncio
    async def test_something(make_controller):
        controller = make_controller()
        await controller.initialize()
        ...
"""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from mediaserver.setup.api import CreatedLibrary, OwnerAccount, PathCheckResult, SetupStatus
from mediaserver.setup.controller import WizardController
from mediaserver.setup.models import WizardState, WizardStep
from mediaserver.setup.storage import FileWizardStore, MemoryWizardStore


# ─────────────────────────────────────────────────────────────────────────────
# Path Constants
# ─────────────────────────────────────────────────────────────────────────────

PROJECT_ROOT = Path(__file__).parent.parent


# ─────────────────────────────────────────────────────────────────────────────
# Store Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def memory_store() -> MemoryWizardStore:
    return MemoryWizardStore()


@pytest.fixture
def file_store(tmp_path: Path) -> FileWizardStore:
    """File store rooted in a temporary data directory."""
    return FileWizardStore.in_directory(tmp_path / "data")


# ─────────────────────────────────────────────────────────────────────────────
# API Fixtures
# ─────────────────────────────────────────────────────────────────────────────


def existing_folder() -> PathCheckResult:
    return PathCheckResult(
        exists=True,
        is_directory=True,
        is_writable=True,
        parent_exists=True,
        parent_writable=True,
    )


def missing_folder(parent_writable: bool = True, parent_exists: bool = True) -> PathCheckResult:
    return PathCheckResult(
        exists=False,
        is_directory=False,
        is_writable=False,
        parent_exists=parent_exists,
        parent_writable=parent_writable,
    )


@pytest.fixture
def fake_api() -> AsyncMock:
    """Setup API where every call succeeds and every folder exists.

    Override per test, e.g.:
        fake_api.get_setup_status.return_value = SetupStatus(is_complete=True)
    """
    api = AsyncMock()
    api.get_setup_status.return_value = SetupStatus(is_complete=False, has_owner=False)
    api.create_owner.return_value = OwnerAccount(user_id="user_1")
    api.check_path.return_value = existing_folder()
    api.create_path.return_value = True
    api.create_library.return_value = CreatedLibrary(id="lib_1")
    api.save_privacy_settings.return_value = None
    api.complete_setup.return_value = None
    return api


# ─────────────────────────────────────────────────────────────────────────────
# Controller Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def on_exit() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_controller(fake_api, memory_store, on_exit):
    """Factory for controllers sharing the fake API, store and exit hook."""

    def _make(**kwargs) -> WizardController:
        kwargs.setdefault("on_exit", on_exit)
        kwargs.setdefault("just_created_seconds", 0.05)
        return WizardController(fake_api, memory_store, **kwargs)

    return _make


@pytest.fixture
def resume_at(memory_store, fake_api):
    """Seed the store as if a previous run stopped at *step* with an account created."""

    def _resume(step: WizardStep, completed: list[WizardStep] | None = None) -> WizardState:
        if completed is None:
            order = WizardStep.order()
            completed = order[1 : order.index(step)]
        state = WizardState(
            step=step,
            account_email="admin@example.com",
            completed_steps=completed,
        )
        memory_store.save(state)
        memory_store.mark_in_progress()
        fake_api.get_setup_status.return_value = SetupStatus(is_complete=False, has_owner=True)
        return state

    return _resume


@pytest.fixture
def valid_account() -> dict:
    return {
        "email": "admin@example.com",
        "password": "correct-horse",
        "confirm_password": "correct-horse",
        "display_name": "Admin",
    }
