"""Tests for mediaserver/setup/storage.py

Both stores must:
- round-trip the wizard state
- return None (never raise) for missing or corrupt data
- clear the state blob and the in-progress flag together
"""

import json

import pytest

from mediaserver.setup.models import LibraryType, WizardState, WizardStep
from mediaserver.setup.storage import (
    SETUP_IN_PROGRESS_KEY,
    SETUP_WIZARD_STATE_KEY,
    FileWizardStore,
    MemoryWizardStore,
)


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryWizardStore()
    return FileWizardStore.in_directory(tmp_path / "data")


class TestStoreContract:
    def test_load_missing(self, store):
        assert store.load() is None

    def test_save_then_load(self, store):
        state = WizardState(step=WizardStep.LIBRARY, account_email="admin@example.com")
        state.library_type_data[LibraryType.TV].path = "/srv/tv"
        store.save(state)

        loaded = store.load()
        assert loaded.step == WizardStep.LIBRARY
        assert loaded.library_type_data[LibraryType.TV].path == "/srv/tv"

    def test_save_overwrites(self, store):
        store.save(WizardState(step=WizardStep.ACCOUNT))
        store.save(WizardState(step=WizardStep.PRIVACY))
        assert store.load().step == WizardStep.PRIVACY

    def test_in_progress_flag(self, store):
        assert not store.is_in_progress()
        store.mark_in_progress()
        assert store.is_in_progress()

    def test_clear_removes_both(self, store):
        store.save(WizardState(step=WizardStep.READY))
        store.mark_in_progress()
        store.clear()
        assert store.load() is None
        assert not store.is_in_progress()

    def test_clear_when_empty(self, store):
        store.clear()
        assert store.load() is None

    def test_flag_survives_lost_state(self, store):
        store.save(WizardState(step=WizardStep.LIBRARY))
        store.mark_in_progress()
        store._remove(SETUP_WIZARD_STATE_KEY)
        assert store.load() is None
        assert store.is_in_progress()


class TestCorruptData:
    @pytest.mark.parametrize(
        "raw",
        [
            "{not json",
            "[1, 2, 3]",
            '"just a string"',
            json.dumps({"step": "metadata"}),
            json.dumps({"library_type_data": {"music": {"name": "x", "path": "/x"}}}),
            json.dumps({"library_type_data": {"movie": "oops"}}),
        ],
    )
    def test_load_returns_none(self, raw):
        store = MemoryWizardStore({SETUP_WIZARD_STATE_KEY: raw})
        assert store.load() is None

    def test_empty_file(self, file_store):
        file_store.state_path.parent.mkdir(parents=True, exist_ok=True)
        file_store.state_path.write_text("")
        assert file_store.load() is None


class TestFileWizardStore:
    def test_writes_json(self, file_store):
        file_store.save(WizardState(step=WizardStep.ACCOUNT))
        data = json.loads(file_store.state_path.read_text())
        assert data["step"] == "account"

    def test_no_temp_files_left(self, file_store):
        file_store.save(WizardState())
        file_store.mark_in_progress()
        names = sorted(p.name for p in file_store.state_path.parent.iterdir())
        assert names == sorted([file_store.state_path.name, file_store.flag_path.name])

    def test_describe(self, file_store):
        file_store.save(WizardState())
        info = file_store.describe()
        assert info["state_exists"] is True
        assert info["in_progress"] is False


class TestMemoryWizardStore:
    def test_uses_well_known_keys(self):
        store = MemoryWizardStore()
        store.save(WizardState())
        store.mark_in_progress()
        assert set(store.data) == {SETUP_WIZARD_STATE_KEY, SETUP_IN_PROGRESS_KEY}
