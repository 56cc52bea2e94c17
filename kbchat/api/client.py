"""Shared HTTP transport for every backend call."""

import asyncio
import logging
from typing import Any

import httpx

from ..config import Settings, settings as default_settings
from ..context import current_request_id
from ..errors import (
    USER_MESSAGES,
    ApiError,
    ErrorKind,
    classify_exception,
    classify_response,
    error_for,
)
from ..events import ClientEvents, EventBus
from ..notifications import Notifier
from ..storage import CredentialStore

logger = logging.getLogger(__name__)

_SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


class ApiClient:
    """Single shared transport.

    Attaches the stored credential to every non-public request, classifies every
    failure into one ``ErrorKind`` and raises the matching ``ApiError``. A 401 from any
    endpoint is announced as ``ClientEvents.AUTH_EXPIRED`` before the error is raised;
    whoever owns authentication reacts to it. Requests are never retried.
    """

    # Paths that never carry the credential
    PUBLIC_PATHS = frozenset({"/auth/login", "/auth/register"})

    def __init__(
        self,
        credential_store: CredentialStore,
        bus: EventBus,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the transport.

        Args:
            credential_store: Source of the bearer credential
            bus: Event bus used to announce failures
            notifier: Receives a user-facing notice for every failure
            settings: Client settings (base URL, timeout)
            transport: Optional httpx transport (tests use an ASGI transport)
        """
        self.settings = settings or default_settings
        self.credential_store = credential_store
        self.bus = bus
        self.notifier = notifier or Notifier()
        self._client = httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self._mutations_open = asyncio.Event()
        self._mutations_open.set()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    # Mutation barrier

    def hold_mutations(self) -> None:
        """Make state-changing requests wait until ``release_mutations`` is called."""
        self._mutations_open.clear()

    def release_mutations(self) -> None:
        self._mutations_open.set()

    @property
    def mutations_held(self) -> bool:
        return not self._mutations_open.is_set()

    def is_public(self, path: str) -> bool:
        return path in self.PUBLIC_PATHS

    # Requests

    async def get(self, path: str, **kwargs: Any) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def patch(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", path, **kwargs)

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded body.

        Returns:
            Parsed JSON, the raw text for non-JSON bodies, or None for empty bodies.

        Raises:
            ApiError: The subclass matching the failure's kind
        """
        method = method.upper()
        public = self.is_public(path)

        if method not in _SAFE_METHODS and not public and self.mutations_held:
            logger.debug(f"Holding {method} {path} until the credential is confirmed")
            await self._mutations_open.wait()

        request_id = current_request_id()
        headers = {"X-Request-ID": request_id}
        if not public:
            credential = self.credential_store.get_credential()
            if credential:
                headers["Authorization"] = f"Bearer {credential}"

        logger.debug(f"[{request_id}] {method} {path}")
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                data=data,
                files=files,
                params=params,
                headers=headers,
            )
        except (httpx.RequestError, httpx.InvalidURL, TypeError, ValueError) as e:
            kind = classify_exception(e)
            raise self._fail(kind, path=path, detail=str(e)) from e

        kind = classify_response(response.status_code)
        if kind is not None:
            detail = self._decode(response)
            message = None
            if kind == ErrorKind.OTHER and isinstance(detail, dict):
                message = detail.get("message") or detail.get("detail")
            raise self._fail(
                kind,
                path=path,
                status_code=response.status_code,
                detail=detail,
                message=message if isinstance(message, str) else None,
            )

        logger.debug(f"[{request_id}] {method} {path} -> {response.status_code}")
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def _fail(
        self,
        kind: ErrorKind,
        *,
        path: str,
        status_code: int | None = None,
        detail: Any = None,
        message: str | None = None,
    ) -> ApiError:
        error = error_for(kind, message, status_code=status_code, detail=detail, path=path)
        logger.warning(
            f"Request to {path} failed: kind={kind.value} status={status_code} "
            f"message={error.message}"
        )
        self.notifier.error(message or USER_MESSAGES[kind])
        self.bus.emit(
            ClientEvents.REQUEST_FAILED,
            {"path": path, "kind": kind.value, "status_code": status_code},
        )
        if kind == ErrorKind.AUTH_EXPIRED:
            self.bus.emit(ClientEvents.AUTH_EXPIRED, {"path": path})
        return error
