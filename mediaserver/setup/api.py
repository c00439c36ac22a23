"""
Tool: Setup API Client
Purpose: Talk to the media server's setup endpoints

The wizard consumes these operations; it does not define them:
- setup.status              -> SetupStatus
- setup.createOwner         -> OwnerAccount
- libraries.checkPath       -> PathCheckResult
- libraries.createPath      -> bool
- setup.addLibrary          -> CreatedLibrary
- setup.savePrivacySettings
- setup.complete

The server speaks tRPC over HTTP: queries are GET requests carrying
``?input=<json>``, mutations are POST requests with a JSON body, and every
response is wrapped as ``{"result": {"data": ...}}`` or
``{"error": {"message": ..., "data": {"code": ..., "httpStatus": ...}}}``.

Dependencies:
    - httpx (pip install httpx)
    - pydantic (pip install pydantic)
"""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import httpx
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mediaserver.setup.errors import (
    ConflictError,
    NetworkError,
    SetupError,
    SetupIOError,
    ValidationError,
)
from mediaserver.setup.models import LibraryType, PrivacyLevel


logger = logging.getLogger(__name__)


# =============================================================================
# Response Models
# =============================================================================


class _ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class SetupStatus(_ApiModel):
    is_complete: bool = False
    has_owner: bool = False
    current_step: int | None = None
    has_library: bool | None = None


class OwnerAccount(_ApiModel):
    user_id: str
    tokens: dict[str, Any] | None = None


class PathCheckResult(_ApiModel):
    exists: bool = False
    is_directory: bool = False
    is_writable: bool = False
    parent_exists: bool = False
    parent_writable: bool = False


class CreatedLibrary(_ApiModel):
    id: str = Field(alias="libraryId")


# =============================================================================
# Interface
# =============================================================================


class SetupApi(Protocol):
    """Operations the wizard consumes."""

    async def get_setup_status(self) -> SetupStatus: ...

    async def create_owner(self, email: str, password: str, display_name: str) -> OwnerAccount: ...

    async def check_path(self, path: str) -> PathCheckResult: ...

    async def create_path(self, path: str) -> bool: ...

    async def create_library(
        self, name: str, path: str, library_type: LibraryType
    ) -> CreatedLibrary: ...

    async def save_privacy_settings(self, level: PrivacyLevel) -> None: ...

    async def complete_setup(self) -> None: ...


# =============================================================================
# HTTP Client
# =============================================================================

# tRPC error code -> exception class
_ERROR_CODES: dict[str, type[SetupError]] = {
    "BAD_REQUEST": ValidationError,
    "PARSE_ERROR": ValidationError,
    "PRECONDITION_FAILED": ValidationError,
    "FORBIDDEN": ConflictError,
    "CONFLICT": ConflictError,
}


class HttpSetupApi:
    """
    SetupApi over the server's tRPC HTTP endpoints.

    Args:
        base_url: Server root, e.g. http://localhost:3000
        trpc_path: Mount point of the tRPC router
        timeout: Per-request timeout in seconds
        client: Pre-built httpx.AsyncClient (tests inject one with a MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        trpc_path: str = "/trpc",
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.trpc_path = "/" + trpc_path.strip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self.tokens: dict[str, Any] | None = None

    async def __aenter__(self) -> "HttpSetupApi":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _url(self, procedure: str) -> str:
        return f"{self.base_url}{self.trpc_path}/{procedure}"

    async def _query(self, procedure: str, payload: dict[str, Any] | None = None, **kwargs) -> Any:
        params = {"input": json.dumps(payload)} if payload is not None else None
        return await self._call("GET", procedure, params=params, **kwargs)

    async def _mutate(self, procedure: str, payload: dict[str, Any] | None = None, **kwargs) -> Any:
        return await self._call("POST", procedure, json=payload if payload is not None else {}, **kwargs)

    async def _call(
        self,
        method: str,
        procedure: str,
        io_errors: bool = False,
        **request_kwargs: Any,
    ) -> Any:
        """
        Perform one tRPC call and unwrap its data.

        Args:
            io_errors: Map server-side failures to SetupIOError (filesystem operations)

        Raises:
            SetupError subclass matching the server's error code
        """
        try:
            response = await self._client.request(method, self._url(procedure), **request_kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timed out contacting server ({procedure})") from e
        except httpx.TransportError as e:
            raise NetworkError(f"Connection failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise NetworkError(
                f"Unexpected response from server ({response.status_code})"
            ) from e

        if isinstance(body, dict) and "error" in body:
            raise self._to_exception(body["error"], response.status_code, io_errors)
        if response.is_error:
            raise NetworkError(f"Server error ({response.status_code})")

        data = (body.get("result") or {}).get("data") if isinstance(body, dict) else None
        # superjson-wrapped payloads
        if isinstance(data, dict) and set(data) == {"json"}:
            data = data["json"]
        return data

    @staticmethod
    def _to_exception(error: Any, status_code: int, io_errors: bool) -> SetupError:
        if isinstance(error, dict) and set(error) == {"json"}:
            error = error["json"]
        error = error if isinstance(error, dict) else {}
        message = error.get("message") or f"Request failed ({status_code})"
        code = (error.get("data") or {}).get("code")

        if io_errors and code not in ("BAD_REQUEST", "FORBIDDEN"):
            return SetupIOError(message, code)
        exc_class = _ERROR_CODES.get(code or "")
        if exc_class is not None:
            return exc_class(message, code)
        if code == "INTERNAL_SERVER_ERROR":
            return SetupIOError(message, code)
        return SetupError(message, code)

    # -------------------------------------------------------------------------

    async def get_setup_status(self) -> SetupStatus:
        return SetupStatus.model_validate(await self._query("setup.status") or {})

    async def create_owner(self, email: str, password: str, display_name: str) -> OwnerAccount:
        data = await self._mutate(
            "setup.createOwner",
            {"email": email, "password": password, "displayName": display_name},
        )
        account = OwnerAccount.model_validate(data or {})
        # Setup logs the new owner straight in
        self.tokens = account.tokens
        return account

    async def check_path(self, path: str) -> PathCheckResult:
        data = await self._query("libraries.checkPath", {"path": path}, io_errors=True)
        return PathCheckResult.model_validate(data or {})

    async def create_path(self, path: str) -> bool:
        data = await self._mutate("libraries.createPath", {"path": path}, io_errors=True)
        return bool((data or {}).get("success"))

    async def create_library(self, name: str, path: str, library_type: LibraryType) -> CreatedLibrary:
        data = await self._mutate(
            "setup.addLibrary",
            {"name": name, "path": path, "type": library_type.value},
        )
        return CreatedLibrary.model_validate(data or {})

    async def save_privacy_settings(self, level: PrivacyLevel) -> None:
        await self._mutate("setup.savePrivacySettings", {"level": level.value})

    async def complete_setup(self) -> None:
        await self._mutate("setup.complete")
