"""
Step guards.

Pure predicates answering "can the user advance from this step with the
current form data?". Each returns None when valid, otherwise the message to
show inline.
"""

from __future__ import annotations

from dataclasses import dataclass

from mediaserver.setup.models import LibraryType, LibraryTypeData, WizardStep


MIN_PASSWORD_LENGTH = 8


@dataclass
class AccountForm:
    """Account step fields. Kept in memory only."""

    email: str = ""
    password: str = ""
    confirm_password: str = ""
    display_name: str = ""


def is_absolute_path(path: str) -> bool:
    return path.strip().startswith("/")


def configured_library_types(
    library_type_data: dict[LibraryType, LibraryTypeData],
) -> list[LibraryType]:
    """Content types with a folder filled in, in provisioning order."""
    return [t for t in LibraryType.order() if library_type_data[t].path.strip() != ""]


def validate_account(form: AccountForm) -> str | None:
    if not form.email or not form.password:
        return "Please fill in all required fields"
    if form.password != form.confirm_password:
        return "Passwords do not match"
    if len(form.password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    return None


def validate_library(library_type_data: dict[LibraryType, LibraryTypeData]) -> str | None:
    configured = configured_library_types(library_type_data)
    if not configured:
        return "Please enter a folder path for at least one library"
    for library_type in configured:
        if not is_absolute_path(library_type_data[library_type].path):
            return f"The {library_type.label} path must be absolute (start with /)"
    return None


def validate_step(
    step: WizardStep,
    account: AccountForm,
    library_type_data: dict[LibraryType, LibraryTypeData],
) -> str | None:
    """Dispatch to the guard for *step*. Steps without a guard are always valid."""
    if step == WizardStep.ACCOUNT:
        return validate_account(account)
    if step == WizardStep.LIBRARY:
        return validate_library(library_type_data)
    return None
