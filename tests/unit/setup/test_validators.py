"""Tests for mediaserver/setup/validators.py"""

import pytest

from mediaserver.setup.models import LibraryType, LibraryTypeData, WizardStep, default_library_type_data
from mediaserver.setup.validators import (
    AccountForm,
    configured_library_types,
    is_absolute_path,
    validate_account,
    validate_library,
    validate_step,
)


def _libraries(movie: str = "", tv: str = "") -> dict:
    return {
        LibraryType.MOVIE: LibraryTypeData("Movies", movie),
        LibraryType.TV: LibraryTypeData("TV Shows", tv),
    }


class TestValidateAccount:
    def test_valid(self):
        form = AccountForm("a@example.com", "longenough", "longenough")
        assert validate_account(form) is None

    @pytest.mark.parametrize(
        "email,password",
        [("", "longenough"), ("a@example.com", ""), ("", "")],
    )
    def test_required_fields(self, email, password):
        form = AccountForm(email, password, password)
        assert validate_account(form) == "Please fill in all required fields"

    def test_mismatch(self):
        form = AccountForm("a@example.com", "longenough", "longenougH")
        assert validate_account(form) == "Passwords do not match"

    def test_short_password(self):
        form = AccountForm("a@example.com", "short", "short")
        assert "at least 8 characters" in validate_account(form)

    def test_exactly_eight(self):
        form = AccountForm("a@example.com", "12345678", "12345678")
        assert validate_account(form) is None

    def test_display_name_optional(self):
        form = AccountForm("a@example.com", "longenough", "longenough", display_name="")
        assert validate_account(form) is None


class TestValidateLibrary:
    def test_defaults_are_valid(self):
        assert validate_library(default_library_type_data()) is None

    def test_nothing_configured(self):
        message = validate_library(_libraries("  ", ""))
        assert message == "Please enter a folder path for at least one library"

    def test_relative_path_names_type(self):
        message = validate_library(_libraries("/media/movies", "media/tv"))
        assert message == "The TV Shows path must be absolute (start with /)"

    def test_whitespace_is_trimmed(self):
        assert validate_library(_libraries("  /media/movies  ")) is None

    def test_one_type_is_enough(self):
        assert validate_library(_libraries(tv="/media/tv")) is None


class TestHelpers:
    def test_configured_types_keep_order(self):
        assert configured_library_types(_libraries("/m", "/t")) == [LibraryType.MOVIE, LibraryType.TV]
        assert configured_library_types(_libraries(movie="/media/movies")) == [LibraryType.MOVIE]

    @pytest.mark.parametrize(
        "path,expected",
        [("/media", True), (" /media", True), ("media", False), ("", False), ("~/media", False)],
    )
    def test_is_absolute_path(self, path, expected):
        assert is_absolute_path(path) is expected


class TestValidateStep:
    def test_dispatch(self):
        bad_account = AccountForm()
        empty = _libraries()
        assert validate_step(WizardStep.ACCOUNT, bad_account, empty) is not None
        assert validate_step(WizardStep.LIBRARY, bad_account, empty) is not None

    @pytest.mark.parametrize("step", [WizardStep.WELCOME, WizardStep.PRIVACY, WizardStep.READY])
    def test_unguarded_steps(self, step):
        assert validate_step(step, AccountForm(), _libraries()) is None
