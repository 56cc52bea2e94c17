"""Tests for the route guard."""

import pytest

from kbchat.config import Settings
from kbchat.core import Navigator, Route, RouteAction, RouteGuard, decide
from kbchat.models import AuthSessionState, AuthStatus, CachedUser, LoginRequest

USER = CachedUser(id=1, username="alice")
SIGNED_OUT = AuthSessionState()
SIGNING_IN = AuthSessionState(status=AuthStatus.AUTHENTICATING)
SIGNED_IN = AuthSessionState(status=AuthStatus.AUTHENTICATED, user=USER)


class TestDecide:
    """Test the pure decision table."""

    def test_loading(self):
        """Test no decision is made while authentication is pending."""
        assert decide(SIGNED_OUT, True, loading=True).action == RouteAction.LOADING
        assert decide(SIGNING_IN, True).action == RouteAction.LOADING
        assert decide(SIGNING_IN, False).action == RouteAction.LOADING

    def test_protected_page_signed_out(self):
        """Test protected pages redirect to login and remember the origin."""
        decision = decide(SIGNED_OUT, True)
        assert decision.action == RouteAction.REDIRECT
        assert decision.path == "/login"
        assert decision.remember_origin

    def test_login_page_marked_protected(self):
        """Test the login page never redirects to itself."""
        decision = decide(SIGNED_OUT, True, already_at_login_page=True)
        assert decision.action == RouteAction.RENDER

    def test_public_page_signed_in(self):
        """Test signed-in users are sent away from public pages."""
        decision = decide(SIGNED_IN, False, landing_path="/home")
        assert decision.action == RouteAction.REDIRECT
        assert decision.path == "/home"
        assert not decision.remember_origin

    def test_render(self):
        """Test matching pages render."""
        assert decide(SIGNED_IN, True).action == RouteAction.RENDER
        assert decide(SIGNED_OUT, False).action == RouteAction.RENDER


class TestRoutes:
    """Test the route table."""

    @pytest.mark.parametrize(
        "pattern,path,matches",
        [
            ("/roleplay/{characterId}", "/roleplay/12", True),
            ("/roleplay/{characterId}", "/roleplay/12/", True),
            ("/roleplay/{characterId}", "/roleplay", False),
            ("/roleplay/sessions/{sessionId}", "/roleplay/sessions/a-b", True),
            ("/chat", "/chat/extra", False),
        ],
    )
    def test_matches(self, pattern, path, matches):
        """Test parameterized patterns."""
        assert Route(pattern, requires_auth=True).matches(path) is matches

    @pytest.mark.asyncio
    async def test_query_string_ignored(self, app):
        """Test query strings do not affect matching."""
        assert app.router.find_route("/documents?kb=1").pattern == "/documents"


class TestRouteGuard:
    """Test navigation through the guard."""

    @pytest.mark.asyncio
    async def test_loading_before_startup(self, app):
        """Test navigation waits for the startup decision."""
        decision = app.router.navigate("/dashboard")
        assert decision.action == RouteAction.LOADING
        assert app.navigator.current_path == "/"

    @pytest.mark.asyncio
    async def test_signed_out_goes_to_login(self, app):
        """Test protected pages send signed-out users to login."""
        await app.start()
        decision = app.router.navigate("/roleplay/sessions/abc")

        assert decision.action == RouteAction.RENDER
        assert app.navigator.current_path == "/login"
        assert app.navigator.state == {"from": "/roleplay/sessions/abc"}

    @pytest.mark.asyncio
    async def test_redirect_replaces_history(self, app):
        """Test the redirect does not leave the protected page in history."""
        await app.start()
        app.router.navigate("/characters")
        assert [loc.path for loc in app.navigator.history] == ["/login"]

    @pytest.mark.asyncio
    async def test_unknown_path_signed_out(self, app):
        """Test unknown paths fall through to the landing page, then login."""
        await app.start()
        app.router.navigate("/nowhere")
        assert app.navigator.current_path == "/login"
        assert app.navigator.state == {"from": "/dashboard"}

    @pytest.mark.asyncio
    async def test_signed_in_leaves_login(self, signed_in_app):
        """Test the login page redirects signed-in users."""
        app = signed_in_app
        app.router.navigate("/login")
        assert app.navigator.current_path == "/dashboard"

    @pytest.mark.asyncio
    async def test_signed_in_renders(self, signed_in_app):
        """Test protected pages render for signed-in users."""
        app = signed_in_app
        decision = app.router.navigate("/roleplay/3")
        assert decision.action == RouteAction.RENDER
        assert app.navigator.current_path == "/roleplay/3"

    @pytest.mark.asyncio
    async def test_full_round_trip(self, app):
        """Test bookmark, login, then landing on the bookmarked page."""
        await app.start()
        app.router.navigate("/documents")
        await app.gate.login(LoginRequest(username="alice", password="secret1"))
        assert app.navigator.current_path == "/documents"

    @pytest.mark.asyncio
    async def test_protected_page_from_login_page(self, app):
        """Test leaving the login page for a protected page keeps it as the origin."""
        await app.start()
        app.navigator.navigate("/login")
        app.router.navigate("/documents")
        assert app.navigator.current_path == "/login"
        assert app.navigator.state == {"from": "/documents"}

        await app.gate.login(LoginRequest(username="alice", password="secret1"))
        assert app.navigator.current_path == "/documents"

    @pytest.mark.asyncio
    async def test_redirect_loop_detected(self, app):
        """Test a misconfigured table cannot loop forever."""
        navigator = Navigator("/start")
        settings = Settings(landing_path="/missing")
        guard = RouteGuard(app.auth, navigator, settings, routes=())
        with pytest.raises(RuntimeError):
            guard.navigate("/missing")
