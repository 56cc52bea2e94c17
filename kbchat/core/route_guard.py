"""Route guard: decides whether a navigation renders or redirects."""

import logging
import re
from dataclasses import dataclass
from enum import Enum

from ..config import Settings, settings as default_settings
from ..models import AuthSessionState, AuthStatus
from .navigator import Navigator
from .session_gate import AuthContext

logger = logging.getLogger(__name__)

# Redirect chains longer than this indicate a misconfigured route table
MAX_REDIRECTS = 5


class RouteAction(str, Enum):
    LOADING = "loading"
    RENDER = "render"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class RouteDecision:
    action: RouteAction
    path: str | None = None
    remember_origin: bool = False


def decide(
    state: AuthSessionState,
    target_requires_auth: bool,
    already_at_login_page: bool = False,
    *,
    loading: bool = False,
    login_path: str = "/login",
    landing_path: str = "/dashboard",
) -> RouteDecision:
    """Pure routing decision.

    Args:
        state: Current authentication state
        target_requires_auth: Whether the target page needs a signed-in user
        already_at_login_page: The target is the login page itself, which always
            renders for signed-out users
        loading: The startup decision has not been made yet
        login_path: Where unauthenticated users are sent
        landing_path: Where authenticated users are sent instead of the login page

    Returns:
        ``loading`` while authentication is being decided, a redirect, or ``render``.
    """
    if loading or state.status == AuthStatus.AUTHENTICATING:
        return RouteDecision(RouteAction.LOADING)

    authenticated = state.is_authenticated
    if target_requires_auth and not authenticated:
        if already_at_login_page:
            return RouteDecision(RouteAction.RENDER)
        return RouteDecision(RouteAction.REDIRECT, login_path, remember_origin=True)
    if not target_requires_auth and authenticated:
        return RouteDecision(RouteAction.REDIRECT, landing_path)
    return RouteDecision(RouteAction.RENDER)


@dataclass(frozen=True)
class Route:
    pattern: str
    requires_auth: bool

    def matches(self, path: str) -> bool:
        regex = "^" + re.sub(r"\{[^/]+\}", r"[^/]+", self.pattern) + "/?$"
        return re.match(regex, path) is not None


# Console pages; "/" and unknown paths fall through to the landing page
DEFAULT_ROUTES: tuple[Route, ...] = (
    Route("/login", requires_auth=False),
    Route("/dashboard", requires_auth=True),
    Route("/knowledge-bases", requires_auth=True),
    Route("/documents", requires_auth=True),
    Route("/chat", requires_auth=True),
    Route("/characters", requires_auth=True),
    Route("/roleplay", requires_auth=True),
    Route("/roleplay/{characterId}", requires_auth=True),
    Route("/roleplay/sessions/{sessionId}", requires_auth=True),
)


class RouteGuard:
    """Applies ``decide`` to a route table and drives the navigator."""

    def __init__(
        self,
        auth: AuthContext,
        navigator: Navigator,
        settings: Settings | None = None,
        routes: tuple[Route, ...] = DEFAULT_ROUTES,
    ):
        self.auth = auth
        self.navigator = navigator
        self.settings = settings or default_settings
        self.routes = routes

    def find_route(self, path: str) -> Route | None:
        clean = path.split("?", 1)[0]
        for route in self.routes:
            if route.matches(clean):
                return route
        return None

    def resolve(self, path: str) -> RouteDecision:
        """Decide for ``path`` given the current authentication state."""
        clean = path.split("?", 1)[0]
        route = self.find_route(clean)
        if route is None:
            return RouteDecision(RouteAction.REDIRECT, self.settings.landing_path)

        return decide(
            self.auth.state,
            route.requires_auth,
            already_at_login_page=clean == self.settings.login_path,
            loading=self.auth.loading,
            login_path=self.settings.login_path,
            landing_path=self.settings.landing_path,
        )

    def navigate(self, path: str) -> RouteDecision:
        """Navigate to ``path``, following redirects.

        Returns:
            The final decision: ``render`` at the navigator's current location, or
            ``loading`` when no navigation decision can be made yet.
        """
        target = path
        for _ in range(MAX_REDIRECTS):
            decision = self.resolve(target)
            if decision.action == RouteAction.LOADING:
                return decision
            if decision.action == RouteAction.RENDER:
                if self.navigator.current_path != target:
                    self.navigator.navigate(target)
                return decision

            # Redirect
            redirect_to = decision.path or self.settings.landing_path
            if decision.remember_origin:
                self.navigator.navigate(redirect_to, replace=True, state={"from": target})
                return RouteDecision(RouteAction.RENDER)
            target = redirect_to

        logger.error(f"Too many redirects resolving {path}")
        raise RuntimeError(f"Redirect loop while resolving '{path}'")
