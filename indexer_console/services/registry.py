"""Registre des indexers - source de vérité côté console, synchronisée avec le backend"""

from loguru import logger
from pydantic import ValidationError as SchemaError
from typing import Callable, Optional

from indexer_console.errors import AuthError, ConsoleError, NetworkError, ValidationError
from indexer_console.models.indexer import Config, Indexer, IndexerTestResult
from indexer_console.models.search import SearchResult
from indexer_console.services.alerts import ErrorBanner
from indexer_console.services.search import SearchClient
from indexer_console.services.transport import ApiTransport


Subscriber = Callable[["IndexerRegistry"], None]


class IndexerRegistry:
    """
    Liste des indexers connus et sous-ensemble activé.

    Invariant: les ids activés sont toujours présents dans la liste. Activer ou
    désactiver ne retire jamais un indexer de la liste.
    """

    def __init__(
        self,
        transport: ApiTransport,
        search_client: Optional[SearchClient] = None,
        banner: Optional[ErrorBanner] = None,
    ):
        self.transport = transport
        self.search_client = search_client or SearchClient(transport)
        self.banner = banner or ErrorBanner()

        self._indexers: list[Indexer] = []
        self._enabled: set[str] = set()
        self._subscribers: list[Subscriber] = []

    # =========================================================================
    # LECTURE
    # =========================================================================

    @property
    def indexers(self) -> list[Indexer]:
        return list(self._indexers)

    @property
    def enabled_ids(self) -> frozenset[str]:
        return frozenset(self._enabled)

    def get(self, indexer_id: str) -> Optional[Indexer]:
        """Récupère un indexer par son ID"""
        for indexer in self._indexers:
            if indexer.id == indexer_id:
                return indexer
        return None

    def is_enabled(self, indexer_id: str) -> bool:
        return indexer_id in self._enabled

    def enabled_indexers(self) -> list[Indexer]:
        """Indexers activés, dans l'ordre de la liste"""
        return [i for i in self._indexers if i.id in self._enabled]

    def addable_indexers(self) -> list[Indexer]:
        """Indexers pas encore activés (choix 'Ajouter un indexer')"""
        return [i for i in self._indexers if i.id not in self._enabled]

    # =========================================================================
    # ABONNEMENTS
    # =========================================================================

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Abonne un callback aux changements de la liste ou des activations.

        Returns:
            Fonction de désabonnement
        """
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self):
        for callback in list(self._subscribers):
            try:
                callback(self)
            except Exception as e:
                logger.exception(f"❌ Erreur abonné registre: {e}")

    def _set_enabled(self, indexer_id: str, enabled: bool):
        """Met à jour l'ensemble activé et le drapeau de l'indexer"""
        if enabled:
            self._enabled.add(indexer_id)
        else:
            self._enabled.discard(indexer_id)

        self._indexers = [
            i.model_copy(update={"enabled": enabled}) if i.id == indexer_id else i
            for i in self._indexers
        ]
        self._notify()

    # =========================================================================
    # SYNCHRONISATION BACKEND
    # =========================================================================

    async def load_indexers(self) -> list[Indexer]:
        """
        Recharge la liste complète depuis GET /xhr/indexers.

        Sans token de session, ne fait rien (l'appelant ne doit pas l'invoquer).

        Raises:
            NetworkError, AuthError, BackendError
        """
        if not self.transport.session.has_token:
            logger.warning("⚠️ Chargement des indexers sans token de session, ignoré")
            return self.indexers

        logger.info("📡 Chargement des indexers...")
        data = await self.transport.request("GET", "/xhr/indexers")

        if not isinstance(data, list):
            raise NetworkError("Liste d'indexers invalide")
        try:
            indexers = [Indexer.model_validate(item) for item in data]
        except SchemaError as e:
            logger.error(f"❌ Indexers illisibles: {e}")
            raise NetworkError("Liste d'indexers invalide") from e

        self._indexers = indexers
        self._enabled = {i.id for i in indexers if i.enabled}
        logger.info(f"📋 {len(indexers)} indexers, {len(self._enabled)} activés")

        self._notify()
        return self.indexers

    def clear(self):
        """Oublie la liste (déconnexion)"""
        self._indexers = []
        self._enabled = set()
        self._notify()

    def expire_session(self):
        """Token refusé par le backend: oublie la session et la liste"""
        logger.warning("🔒 Token refusé, retour à l'écran de connexion")
        self.transport.session.clear()
        self.clear()

    def report(self, error: ConsoleError, scope: str):
        """Affiche l'erreur dans le bandeau; une AuthError renvoie au login"""
        self.banner.show(error.message, scope)
        if isinstance(error, AuthError):
            self.expire_session()

    async def refresh(self) -> bool:
        """Recharge les indexers et signale un échec dans le bandeau d'erreur"""
        try:
            await self.load_indexers()
            return True
        except ConsoleError as e:
            self.report(e, "whilst loading indexers")
            return False

    async def fetch_config(self, indexer_id: str) -> Config:
        """Lit la configuration actuelle d'un indexer (GET, sans effet de bord)"""
        data = await self.transport.request("GET", f"/xhr/indexers/{indexer_id}/config")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise NetworkError("Configuration invalide")
        return {str(k): "" if v is None else str(v) for k, v in data.items()}

    async def save_config(self, indexer: Indexer, config: Config):
        """
        Envoie un patch de configuration (PATCH, le backend fusionne).

        Un patch avec enabled="true" active l'indexer de manière optimiste avant
        la réponse; en cas d'échec cette activation est annulée. Un patch avec
        enabled="false" ne désactive qu'après succès.

        Raises:
            ValidationError: clé non déclarée par l'indexer
            NetworkError, AuthError, BackendError
        """
        unknown = [k for k in config if not indexer.accepts_key(k)]
        if unknown:
            raise ValidationError(f"Réglages inconnus pour {indexer.id}: {', '.join(sorted(unknown))}")

        optimistic = (
            config.get("enabled") == "true"
            and not self.is_enabled(indexer.id)
            and self.get(indexer.id) is not None
        )
        if optimistic:
            self._set_enabled(indexer.id, True)

        logger.info(f"💾 Sauvegarde config {indexer.name} ({len(config)} clés)")
        try:
            await self.transport.request(
                "PATCH",
                f"/xhr/indexers/{indexer.id}/config",
                json=dict(config),
            )
        except ConsoleError:
            if optimistic and self.is_enabled(indexer.id):
                logger.warning(f"↩️ Activation annulée: {indexer.name}")
                self._set_enabled(indexer.id, False)
            raise

        if optimistic:
            logger.success(f"✅ Indexer activé: {indexer.name}")
        if config.get("enabled") == "false" and self.is_enabled(indexer.id):
            self._set_enabled(indexer.id, False)
            logger.success(f"✅ Indexer désactivé: {indexer.name}")

    async def test_indexer(self, indexer: Indexer) -> IndexerTestResult:
        """Teste un indexer (GET, ne modifie jamais l'ensemble activé)"""
        logger.info(f"🧪 Test de {indexer.name}...")
        try:
            data = await self.transport.request("GET", f"/xhr/indexers/{indexer.id}/test")
            result = IndexerTestResult.model_validate(data or {})
        except AuthError as e:
            self.expire_session()
            result = IndexerTestResult(ok=False, error=e.message)
        except ConsoleError as e:
            result = IndexerTestResult(ok=False, error=e.message)
        except SchemaError as e:
            result = IndexerTestResult(ok=False, error=str(e))

        if result.ok:
            logger.success(f"✅ {indexer.name}: OK")
        else:
            logger.warning(f"⚠️ {indexer.name}: {result.error or 'échec'}")
        return result

    async def disable_indexer(self, indexer: Indexer):
        """Désactive un indexer (patch enabled="false")"""
        await self.save_config(indexer, {"enabled": "false"})

    async def search(self, indexer: Indexer, keywords: str) -> list[SearchResult]:
        """Recherche sur un indexer via son point torznab"""
        return await self.search_client.search(indexer, keywords)
