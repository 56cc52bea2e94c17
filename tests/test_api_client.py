"""Tests for the shared transport and failure classification."""

import asyncio

import httpx
import pytest

from kbchat.api import ApiClient
from kbchat.errors import (
    AuthExpiredError,
    ErrorKind,
    ForbiddenError,
    MalformedRequestError,
    NetworkUnreachableError,
    NotFoundError,
    OtherApiError,
    ServerError,
    USER_MESSAGES,
    classify_exception,
    classify_response,
)
from kbchat.events import ClientEvents, EventBus
from kbchat.models import AuthStatus, KnowledgeBaseCreateRequest
from kbchat.notifications import Notifier
from kbchat.storage import CredentialStore, MemoryStorage


class TestClassification:
    """Test the status and exception tables."""

    @pytest.mark.parametrize(
        "status,kind",
        [
            (200, None),
            (204, None),
            (302, None),
            (400, ErrorKind.OTHER),
            (401, ErrorKind.AUTH_EXPIRED),
            (403, ErrorKind.FORBIDDEN),
            (404, ErrorKind.NOT_FOUND),
            (409, ErrorKind.OTHER),
            (500, ErrorKind.SERVER_ERROR),
            (503, ErrorKind.SERVER_ERROR),
        ],
    )
    def test_classify_response(self, status, kind):
        """Test each status maps to exactly one kind."""
        assert classify_response(status) == kind

    def test_classify_exception(self):
        """Test transport exceptions split into network and malformed."""
        request = httpx.Request("GET", "http://x")
        assert (
            classify_exception(httpx.ConnectError("down", request=request))
            == ErrorKind.NETWORK_UNREACHABLE
        )
        assert (
            classify_exception(httpx.ReadTimeout("slow", request=request))
            == ErrorKind.NETWORK_UNREACHABLE
        )
        assert classify_exception(httpx.UnsupportedProtocol("ftp")) == ErrorKind.MALFORMED_REQUEST
        assert classify_exception(TypeError("not serializable")) == ErrorKind.MALFORMED_REQUEST
        assert classify_exception(RuntimeError("?")) == ErrorKind.OTHER

    def test_every_kind_has_a_message(self):
        """Test every transport kind has a user-facing message."""
        for kind in ErrorKind:
            if kind != ErrorKind.VALIDATION_REJECTED:
                assert USER_MESSAGES[kind]


class TestTransport:
    """Test requests through the fake backend."""

    @pytest.mark.asyncio
    async def test_public_paths_carry_no_credential(self, signed_in_app, backend):
        """Test login never sends the bearer header while other calls do."""
        app = signed_in_app
        await app.roleplay_api.get_sessions()
        logins = backend.calls_to("/api/auth/login")
        sessions = backend.calls_to("/api/roleplay/sessions")
        assert logins and all(r.authorization is None for r in logins)
        assert sessions[-1].authorization == f"Bearer {app.credential_store.get_credential()}"

    @pytest.mark.asyncio
    async def test_request_id_header(self, settings):
        """Test every request carries a correlation id."""
        seen = []

        def handler(request):
            seen.append(request.headers.get("X-Request-ID"))
            return httpx.Response(200, json=[])

        client = ApiClient(
            CredentialStore(MemoryStorage(), settings),
            EventBus(),
            settings=settings,
            transport=httpx.MockTransport(handler),
        )
        async with client:
            await client.get("/roleplay/sessions")
            await client.get("/roleplay/sessions")
        assert all(seen) and seen[0] != seen[1]

    @pytest.mark.asyncio
    async def test_empty_and_text_bodies(self, settings):
        """Test non-JSON bodies are returned as text and empty bodies as None."""

        def handler(request):
            if request.url.path.endswith("/text"):
                return httpx.Response(200, text="plain")
            return httpx.Response(204)

        client = ApiClient(
            CredentialStore(MemoryStorage(), settings),
            EventBus(),
            settings=settings,
            transport=httpx.MockTransport(handler),
        )
        async with client:
            assert await client.get("/text") == "plain"
            assert await client.delete("/empty") is None

    @pytest.mark.asyncio
    async def test_unauthorized_signs_out(self, signed_in_app, backend):
        """Test a 401 anywhere clears the credential and returns to login."""
        app = signed_in_app
        app.router.navigate("/roleplay")
        backend.fail_next("GET", "/roleplay/sessions", 401)

        with pytest.raises(AuthExpiredError) as exc_info:
            await app.roleplay_api.get_sessions()

        assert exc_info.value.kind == ErrorKind.AUTH_EXPIRED
        assert exc_info.value.status_code == 401
        assert app.auth.status == AuthStatus.UNAUTHENTICATED
        assert app.credential_store.load() is None
        assert app.navigator.current_path == "/login"
        assert app.navigator.state == {"from": "/roleplay"}
        assert app.notifier.last().text == USER_MESSAGES[ErrorKind.AUTH_EXPIRED]

    @pytest.mark.asyncio
    async def test_unauthorized_at_login_page_keeps_location(self, signed_in_app, backend):
        """Test a 401 while already at the login page does not navigate."""
        app = signed_in_app
        app.navigator.navigate("/login")
        history_length = len(app.navigator.history)
        backend.fail_next("GET", "/roleplay/sessions", 401)

        with pytest.raises(AuthExpiredError):
            await app.roleplay_api.get_sessions()

        assert len(app.navigator.history) == history_length
        assert app.navigator.state == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error_cls",
        [(403, ForbiddenError), (404, NotFoundError), (500, ServerError), (502, ServerError)],
    )
    async def test_status_failures(self, signed_in_app, backend, status, error_cls):
        """Test non-auth failures raise their kind and leave the session alone."""
        app = signed_in_app
        backend.fail_next("GET", "/knowledge-bases", status)

        with pytest.raises(error_cls) as exc_info:
            await app.knowledge_base_api.get_all()

        assert exc_info.value.status_code == status
        assert exc_info.value.path == "/knowledge-bases"
        assert app.auth.is_authenticated
        assert app.notifier.last().level == "error"
        assert app.notifier.last().text == USER_MESSAGES[error_cls.kind]

    @pytest.mark.asyncio
    async def test_other_failure_uses_server_message(self, signed_in_app, backend):
        """Test unclassified failures surface the server's own message."""
        app = signed_in_app
        backend.fail_next("GET", "/knowledge-bases", 400)

        with pytest.raises(OtherApiError) as exc_info:
            await app.knowledge_base_api.get_all()

        assert exc_info.value.message == "Injected 400"
        assert app.notifier.last().text == "Injected 400"

    @pytest.mark.asyncio
    async def test_request_failed_event(self, signed_in_app, backend):
        """Test every failure is announced on the bus."""
        app = signed_in_app
        events = []
        app.bus.subscribe(ClientEvents.REQUEST_FAILED, events.append)
        backend.fail_next("GET", "/knowledge-bases", 500)

        with pytest.raises(ServerError):
            await app.knowledge_base_api.get_all()

        assert events == [
            {"path": "/knowledge-bases", "kind": "server-error", "status_code": 500}
        ]

    @pytest.mark.asyncio
    async def test_network_unreachable(self, settings):
        """Test a connection failure is classified without a status."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        notifier = Notifier()
        client = ApiClient(
            CredentialStore(MemoryStorage(), settings),
            EventBus(),
            notifier=notifier,
            settings=settings,
            transport=httpx.MockTransport(handler),
        )
        async with client:
            with pytest.raises(NetworkUnreachableError) as exc_info:
                await client.get("/knowledge-bases")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert notifier.last().text == USER_MESSAGES[ErrorKind.NETWORK_UNREACHABLE]

    @pytest.mark.asyncio
    async def test_malformed_request(self, settings):
        """Test a body that cannot be encoded never reaches the network."""
        sent = []

        def handler(request):
            sent.append(request)
            return httpx.Response(200, json={})

        client = ApiClient(
            CredentialStore(MemoryStorage(), settings),
            EventBus(),
            settings=settings,
            transport=httpx.MockTransport(handler),
        )
        async with client:
            with pytest.raises(MalformedRequestError):
                await client.post("/knowledge-bases", json={"bad": object()})
        assert sent == []


class TestMutationBarrier:
    """Test state-changing requests wait for the startup confirmation."""

    @pytest.mark.asyncio
    async def test_mutation_waits_for_confirmation(self, app, backend, seed_credential):
        """Test a POST issued during confirmation is sent after it."""
        seed_credential()
        await app.start()
        assert app.client.mutations_held

        created = asyncio.create_task(
            app.knowledge_base_api.create(KnowledgeBaseCreateRequest(name="Docs"))
        )
        await app.auth.wait_until_confirmed()
        kb = await created

        assert kb.name == "Docs"
        assert not app.client.mutations_held
        paths = [(r.method, r.path) for r in backend.requests]
        assert paths.index(("GET", "/api/auth/me")) < paths.index(
            ("POST", "/api/knowledge-bases")
        )

    @pytest.mark.asyncio
    async def test_reads_are_not_held(self, app, seed_credential):
        """Test GET requests go out while mutations are held."""
        seed_credential()
        app.client.hold_mutations()
        assert await app.knowledge_base_api.get_all() == []
        app.client.release_mutations()

    @pytest.mark.asyncio
    async def test_public_mutations_are_not_held(self, app):
        """Test login can proceed while mutations are held."""
        app.client.hold_mutations()
        data = await app.client.post(
            "/auth/login", json={"username": "alice", "password": "secret1"}
        )
        assert data["username"] == "alice"
        app.client.release_mutations()
