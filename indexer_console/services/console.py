"""Console d'indexers - assemble session, registre et lignes"""

import httpx
from loguru import logger
from typing import Optional

from indexer_console.config import Settings, get_settings
from indexer_console.errors import ConsoleError
from indexer_console.models.indexer import Indexer
from indexer_console.services.alerts import ErrorBanner
from indexer_console.services.registry import IndexerRegistry
from indexer_console.services.rows import IndexerRowController
from indexer_console.services.session import AuthClient, SessionStore
from indexer_console.services.transport import ApiTransport


class IndexerConsole:
    """État de la console: une session, un registre, une ligne par indexer"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()

        self.session = SessionStore(self.settings.session_file)
        self.transport = ApiTransport(self.session, self.settings, transport=transport)
        self.auth = AuthClient(self.transport, self.session)
        self.banner = ErrorBanner()
        self.registry = IndexerRegistry(self.transport, banner=self.banner)

        self.rows: dict[str, IndexerRowController] = {}
        self.login_error: Optional[str] = None
        self.registry.subscribe(self._sync_rows)

    def _sync_rows(self, registry: IndexerRegistry):
        """Crée/retire les lignes selon la liste du registre"""
        known = {i.id for i in registry.indexers}
        for indexer in registry.indexers:
            row = self.rows.get(indexer.id)
            if row is None:
                self.rows[indexer.id] = IndexerRowController(registry, indexer, on_idle=self._reap_row)
            else:
                row.on_registry_change(registry)

        # Une ligne active garde sa référence jusqu'à la fin de son action
        for indexer_id in [i for i, row in self.rows.items() if i not in known and not row.busy]:
            del self.rows[indexer_id]

    def _reap_row(self, row: IndexerRowController):
        """Retire une ligne redevenue inactive dont l'indexer a disparu"""
        if self.registry.get(row.indexer_id) is None and self.rows.get(row.indexer_id) is row:
            del self.rows[row.indexer_id]
            logger.debug(f"🗑️ Ligne retirée: {row.indexer_id}")

    async def start(self):
        """Lit la session persistante et charge les indexers si on est connecté"""
        self.session.load()
        if self.session.has_token:
            await self.registry.refresh()

    def initial_screen(self) -> str:
        """Écran initial: login sans token, registre sinon"""
        return "registry" if self.session.has_token else "login"

    async def login(self, passphrase: str) -> bool:
        """Échange la passphrase contre un token puis charge les indexers"""
        self.login_error = None
        try:
            await self.auth.authenticate(passphrase)
        except ConsoleError as e:
            self.login_error = e.message
            return False

        await self.registry.refresh()
        return True

    def logout(self):
        self.session.clear()
        self.registry.clear()

    def row(self, indexer_id: str) -> Optional[IndexerRowController]:
        return self.rows.get(indexer_id)

    def enabled_rows(self) -> list[IndexerRowController]:
        """Lignes du tableau principal (indexers activés)"""
        return [self.rows[i.id] for i in self.registry.enabled_indexers() if i.id in self.rows]

    def addable_indexers(self) -> list[Indexer]:
        return self.registry.addable_indexers()

    async def add_indexer(self, indexer_id: str):
        """Ouvre le formulaire d'un indexer non activé; son enregistrement l'activera"""
        row = self.row(indexer_id)
        if row is None:
            raise KeyError(indexer_id)
        if self.registry.is_enabled(indexer_id):
            logger.warning(f"⚠️ {indexer_id} est déjà activé")
        return await row.open_editor()

    async def close(self):
        await self.transport.close()


# Instance singleton
_console: Optional[IndexerConsole] = None


def get_console() -> IndexerConsole:
    """Récupère l'instance singleton de la console"""
    global _console
    if _console is None:
        _console = IndexerConsole()
    return _console
