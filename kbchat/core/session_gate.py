"""Session gate: the single authority for authentication state."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from ..api import AuthApi
from ..config import Settings, settings as default_settings
from ..errors import ApiError
from ..events import ClientEvents, EventBus
from ..models import (
    AuthSessionState,
    AuthStatus,
    CachedUser,
    LoginRequest,
    RegisterRequest,
    UserRole,
)
from ..notifications import Notifier
from ..storage import CredentialStore
from .navigator import Navigator

logger = logging.getLogger(__name__)

StateListener = Callable[[AuthSessionState], None]


class SessionGate:
    """Owns ``AuthSessionState`` and every transition of it.

    State is derived from the credential store plus one asynchronous confirmation
    round-trip at startup. The gate also owns the reaction to expired credentials: the
    transport announces ``ClientEvents.AUTH_EXPIRED`` and the gate clears the store,
    drops to ``unauthenticated`` and sends the user to the login page.

    Components other than the gate receive an ``AuthContext`` (read-only view).
    """

    def __init__(
        self,
        store: CredentialStore,
        auth_api: AuthApi,
        bus: EventBus,
        navigator: Navigator,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ):
        self.store = store
        self.auth_api = auth_api
        self.bus = bus
        self.navigator = navigator
        self.notifier = notifier or Notifier()
        self.settings = settings or default_settings

        self._state = AuthSessionState()
        self._listeners: list[StateListener] = []
        self._initialized = False
        self._loading = True
        self._confirmed = False
        self._login_attempt = 0
        # Login attempt whose credential is in the store, if any
        self._credential_owner: int | None = None
        self.confirmation_task: asyncio.Task[None] | None = None

        self._unsubscribe = bus.subscribe(ClientEvents.AUTH_EXPIRED, self._on_auth_expired)

    # Read side

    @property
    def state(self) -> AuthSessionState:
        return self._state

    @property
    def loading(self) -> bool:
        """True until ``initialize`` has made its first decision."""
        return self._loading

    @property
    def confirmed(self) -> bool:
        """True once the current state no longer rests on an unverified cached user."""
        return self._confirmed

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def context(self) -> "AuthContext":
        return AuthContext(self)

    async def wait_until_confirmed(self) -> None:
        """Wait for the startup confirmation, if one is outstanding."""
        if self.confirmation_task is not None and not self.confirmation_task.done():
            await asyncio.shield(self.confirmation_task)

    # Transitions

    def _set_state(self, status: AuthStatus, user: CachedUser | None) -> None:
        previous = self._state
        self._state = AuthSessionState(status=status, user=user)
        if previous.status != status:
            username = user.username if user else None
            logger.info(f"Auth state: {previous.status.value} -> {status.value} (user={username})")
        payload = {"status": status.value, "user_id": user.id if user else None}
        self.bus.emit(ClientEvents.AUTH_STATE_CHANGED, payload)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception as e:
                logger.error(f"Auth state listener failed: {e}", exc_info=True)

    async def initialize(self) -> None:
        """Decide the startup state from the credential store.

        A stored, unexpired credential makes the state ``authenticated`` right away,
        using the cached user, and schedules a "who am I" confirmation in the
        background. If that confirmation fails for any reason the store is cleared and
        the state drops to ``unauthenticated``. Runs once; later calls do nothing.
        """
        if self._initialized:
            return
        self._initialized = True

        stored = self.store.load()
        if stored is not None and self.store.is_valid(stored.credential):
            self._confirmed = False
            self._set_state(AuthStatus.AUTHENTICATED, stored.user)
            if self.settings.block_mutations_until_confirmed:
                self.auth_api.client.hold_mutations()
            self.confirmation_task = asyncio.create_task(
                self._confirm_stored_credential(stored.credential)
            )
            logger.info(f"Restored session for '{stored.user.username}', confirming")
        else:
            # Remove whichever half may be left over
            self.store.clear()
            self._confirmed = True
            self._set_state(AuthStatus.UNAUTHENTICATED, None)
            logger.info("No valid stored credential")

        self._loading = False

    async def _confirm_stored_credential(self, credential: str) -> None:
        try:
            user = await self.auth_api.get_current_user()
        except (ApiError, ValidationError) as e:
            logger.info(f"Stored credential rejected during confirmation: {e}")
            self._invalidate_restored(credential)
        except Exception as e:
            logger.error(f"Credential confirmation failed unexpectedly: {e}", exc_info=True)
            self._invalidate_restored(credential)
        else:
            if self.store.get_credential() == credential:
                self.store.update_user(user)
                if self._state.is_authenticated:
                    self._set_state(AuthStatus.AUTHENTICATED, user)
                logger.info(f"Confirmed session for '{user.username}'")
        finally:
            self._confirmed = True
            self.auth_api.client.release_mutations()

    def _invalidate_restored(self, credential: str) -> None:
        # A newer login owns the store; leave it alone.
        if self.store.get_credential() not in (credential, None):
            logger.debug("Credential changed during confirmation; not invalidating")
            return
        self.store.clear()
        if self._state.status != AuthStatus.UNAUTHENTICATED:
            self._set_state(AuthStatus.UNAUTHENTICATED, None)

    async def login(self, credentials: LoginRequest) -> bool:
        """Sign in.

        Args:
            credentials: Username and password

        Returns:
            True only if the login and the follow-up user fetch both succeeded.
            Failures have already been surfaced by the transport.
        """
        self._login_attempt += 1
        attempt = self._login_attempt
        succeeded = False
        self._set_state(AuthStatus.AUTHENTICATING, None)

        try:
            jwt_response = await self.auth_api.login(credentials)
            if attempt != self._login_attempt:
                logger.info("Discarding superseded login result")
                return False
            self.store.save(jwt_response.token, jwt_response.to_cached_user())
            self._credential_owner = attempt

            user = await self.auth_api.get_current_user()
            if attempt != self._login_attempt:
                logger.info("Discarding superseded login result")
                return False

            self.store.update_user(user)
            self._confirmed = True
            self._set_state(AuthStatus.AUTHENTICATED, user)
            succeeded = True
        except (ApiError, ValidationError) as e:
            logger.warning(f"Login failed for '{credentials.username}': {e}")
            return False
        except Exception as e:
            logger.error(
                f"Login failed unexpectedly for '{credentials.username}': {e}", exc_info=True
            )
            return False
        finally:
            if not succeeded:
                # Superseded attempts still take back a credential nobody replaced
                if self._credential_owner == attempt:
                    self._credential_owner = None
                    self.store.clear()
                current = attempt == self._login_attempt
                if current and self._state.status != AuthStatus.UNAUTHENTICATED:
                    self._set_state(AuthStatus.UNAUTHENTICATED, None)

        self.notifier.success("Signed in")
        self._leave_login_page()
        return True

    def _leave_login_page(self) -> None:
        if self.navigator.current_path != self.settings.login_path:
            return
        origin = self.navigator.state.get("from")
        if not isinstance(origin, str) or origin == self.settings.login_path:
            origin = self.settings.landing_path
        self.navigator.navigate(origin, replace=True)

    async def register(self, fields: RegisterRequest) -> bool:
        """Create an account. Does not change the authentication state."""
        try:
            await self.auth_api.register(fields)
        except ApiError as e:
            logger.warning(f"Registration failed for '{fields.username}': {e}")
            return False
        self.notifier.success("Registered, please sign in")
        return True

    def logout(self) -> None:
        """Sign out. Safe to call when already signed out."""
        was_authenticated = self._state.status != AuthStatus.UNAUTHENTICATED
        # Any login still in flight must not resurrect the session
        self._login_attempt += 1
        self.store.clear()
        self._confirmed = True
        if was_authenticated:
            self._set_state(AuthStatus.UNAUTHENTICATED, None)
            self.notifier.success("Signed out")
        self._go_to_login(remember_origin=False)

    def _on_auth_expired(self, payload: dict[str, Any]) -> None:
        logger.info(f"Credential rejected by {payload.get('path')}; signing out")
        self.store.clear()
        if self._state.status != AuthStatus.UNAUTHENTICATED:
            self._set_state(AuthStatus.UNAUTHENTICATED, None)
        self._go_to_login(remember_origin=True)

    def _go_to_login(self, remember_origin: bool) -> None:
        current = self.navigator.current_path
        if current == self.settings.login_path:
            return
        state = {"from": current} if remember_origin else None
        self.navigator.navigate(self.settings.login_path, replace=True, state=state)

    def shutdown(self) -> None:
        """Detach from the bus and cancel an outstanding confirmation."""
        self._unsubscribe()
        if self.confirmation_task is not None and not self.confirmation_task.done():
            self.confirmation_task.cancel()
            self.auth_api.client.release_mutations()


class AuthContext:
    """Read-only view of the session gate handed to the rest of the application."""

    def __init__(self, gate: SessionGate):
        self._gate = gate

    @property
    def state(self) -> AuthSessionState:
        return self._gate.state

    @property
    def status(self) -> AuthStatus:
        return self._gate.state.status

    @property
    def user(self) -> CachedUser | None:
        return self._gate.state.user

    @property
    def is_authenticated(self) -> bool:
        return self._gate.state.is_authenticated

    @property
    def loading(self) -> bool:
        return self._gate.loading

    @property
    def confirmed(self) -> bool:
        return self._gate.confirmed

    def has_role(self, role: UserRole) -> bool:
        user = self.user
        return bool(user and self.is_authenticated and user.has_role(role))

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._gate.subscribe(listener)

    async def wait_until_confirmed(self) -> None:
        await self._gate.wait_until_confirmed()
