"""Composition root for the console client."""

import logging
import sys

import httpx

from .api import (
    ApiClient,
    AuthApi,
    CharacterApi,
    DocumentApi,
    KnowledgeBaseApi,
    RagApi,
    RolePlayApi,
)
from .config import Settings, settings as default_settings
from .core import (
    AuthContext,
    ConversationSessionMachine,
    Navigator,
    RagChat,
    RouteGuard,
    SessionGate,
)
from .events import EventBus
from .notifications import Notifier
from .storage import CredentialStore, KeyValueStorage, LocalStorage

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings | None = None) -> None:
    """Configure root logging from settings."""
    settings = settings or default_settings
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


class ConsoleApp:
    """Wires the client together.

    Only ``gate`` mutates authentication state; everything else receives ``auth``,
    the read-only view.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage: KeyValueStorage | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        initial_path: str = "/",
    ):
        self.settings = settings or default_settings
        self.storage = storage if storage is not None else LocalStorage(self.settings.storage_path)
        self.bus = EventBus()
        self.notifier = Notifier()
        self.credential_store = CredentialStore(self.storage, self.settings)
        self.client = ApiClient(
            self.credential_store,
            self.bus,
            notifier=self.notifier,
            settings=self.settings,
            transport=transport,
        )

        self.auth_api = AuthApi(self.client)
        self.roleplay_api = RolePlayApi(self.client)
        self.rag_api = RagApi(self.client)
        self.knowledge_base_api = KnowledgeBaseApi(self.client)
        self.document_api = DocumentApi(self.client)
        self.character_api = CharacterApi(self.client)

        self.navigator = Navigator(initial_path)
        self.gate = SessionGate(
            self.credential_store,
            self.auth_api,
            self.bus,
            self.navigator,
            notifier=self.notifier,
            settings=self.settings,
        )
        self.auth: AuthContext = self.gate.context()
        self.router = RouteGuard(self.auth, self.navigator, self.settings)

    async def __aenter__(self) -> "ConsoleApp":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def start(self) -> None:
        logger.info(f"Starting console client against {self.settings.api_base_url}")
        await self.gate.initialize()

    async def aclose(self) -> None:
        self.gate.shutdown()
        await self.client.aclose()
        logger.info("Console client stopped")

    def new_conversation(self) -> ConversationSessionMachine:
        return ConversationSessionMachine(self.roleplay_api, bus=self.bus, settings=self.settings)

    def new_rag_chat(self) -> RagChat:
        return RagChat(self.rag_api, self.knowledge_base_api)


def create_app(
    settings: Settings | None = None,
    storage: KeyValueStorage | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    initial_path: str = "/",
) -> ConsoleApp:
    """Build a console client; enter it (``async with``) to run startup."""
    return ConsoleApp(
        settings=settings, storage=storage, transport=transport, initial_path=initial_path
    )
