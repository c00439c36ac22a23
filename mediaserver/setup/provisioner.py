"""
Library provisioning.

Creates one library per configured content type, movies first, one request
at a time. Stops at the first failure. Libraries created before the failure
stay created: there is no rollback, and the result says exactly which ones
exist.
"""

from __future__ import annotations

from typing import Protocol

from mediaserver.logging_config import get_logger
from mediaserver.setup.api import CreatedLibrary
from mediaserver.setup.errors import error_message
from mediaserver.setup.models import (
    LIBRARY_DEFAULTS,
    LibraryType,
    LibraryTypeData,
    ProvisioningResult,
)


logger = get_logger(__name__)


class LibraryCreator(Protocol):
    async def create_library(
        self, name: str, path: str, library_type: LibraryType
    ) -> CreatedLibrary: ...


class LibraryProvisioner:
    def __init__(self, api: LibraryCreator):
        self.api = api

    async def provision(
        self,
        library_types: list[LibraryType],
        library_type_data: dict[LibraryType, LibraryTypeData],
    ) -> ProvisioningResult:
        """
        Create libraries for *library_types* in provisioning order.

        Args:
            library_types: Content types to create (those with a folder set)
            library_type_data: Name and folder per content type

        Returns:
            ProvisioningResult with the types created and, on failure, the
            type that failed and why
        """
        result = ProvisioningResult()
        wanted = set(library_types)

        for library_type in LibraryType.order():
            if library_type not in wanted:
                continue

            data = library_type_data[library_type]
            name = data.name.strip() or LIBRARY_DEFAULTS[library_type]["name"]
            try:
                created = await self.api.create_library(name, data.path.strip(), library_type)
            except Exception as e:
                reason = error_message(e, "Failed to create library")
                logger.warning(f"Creating {library_type.value} library failed: {reason}")
                result.failed = library_type
                result.error = f"Failed to create the {library_type.label} library: {reason}"
                return result

            logger.info(f"Created {library_type.value} library {name!r} ({created.id})")
            result.created.append(library_type)

        return result
