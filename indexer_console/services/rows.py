"""Contrôleur d'une ligne d'indexer: actions mutuellement exclusives"""

from loguru import logger
from typing import Callable, Optional

from indexer_console.errors import ConsoleError, InvalidTransition
from indexer_console.models.indexer import Indexer, IndexerTestResult
from indexer_console.models.row import CheckStatus, RowEvent, RowState, apply, can_apply
from indexer_console.models.search import SearchResult
from indexer_console.services.forms import ConfigField, ConfigFormBuilder
from indexer_console.services.registry import IndexerRegistry


class IndexerRowController:
    """
    Gère l'état d'action d'un indexer (edit/test/disable/search).

    Une seule action active par ligne; les lignes sont indépendantes entre elles.
    Chaque action revient à IDLE quand l'appel au registre se termine, succès ou
    échec. Pas de retry ni d'annulation d'un appel en cours.
    """

    def __init__(
        self,
        registry: IndexerRegistry,
        indexer: Indexer,
        form_builder: Optional[ConfigFormBuilder] = None,
        on_idle: Optional[Callable[["IndexerRowController"], None]] = None,
    ):
        self.registry = registry
        self.indexer_id = indexer.id
        self._indexer = indexer
        self.form_builder = form_builder or ConfigFormBuilder()
        self.on_idle = on_idle

        self.state = RowState.IDLE

        # Résultat du dernier test (None tant qu'aucun test n'a été lancé)
        self.status: Optional[CheckStatus] = None
        self.status_error: Optional[str] = None

        # Formulaire ouvert (état EDITING) et requête en cours pendant l'édition
        self.form: Optional[list[ConfigField]] = None
        self._in_flight = False

        self.results: list[SearchResult] = []
        self.keywords = ""

    @property
    def indexer(self) -> Indexer:
        """Référence en lecture seule, rafraîchie depuis le registre"""
        return self.registry.get(self.indexer_id) or self._indexer

    @property
    def busy(self) -> bool:
        return self.state != RowState.IDLE

    def on_registry_change(self, registry: IndexerRegistry):
        current = registry.get(self.indexer_id)
        if current is not None:
            self._indexer = current

    def can_start(self, event: RowEvent) -> bool:
        return event != RowEvent.RESOLVED and can_apply(self.state, event)

    def available_actions(self) -> list[str]:
        """Actions proposées à l'utilisateur dans l'état courant"""
        return [e.value for e in (RowEvent.EDIT, RowEvent.TEST, RowEvent.DISABLE, RowEvent.SEARCH) if self.can_start(e)]

    def _enter(self, event: RowEvent):
        self.state = apply(self.state, event)
        logger.debug(f"🔀 {self.indexer_id}: {event.value} -> {self.state.value}")

    def _resolve(self):
        self.state = apply(self.state, RowEvent.RESOLVED)
        logger.debug(f"🔀 {self.indexer_id}: -> {self.state.value}")
        if self.on_idle is not None:
            self.on_idle(self)

    # =========================================================================
    # ÉDITION
    # =========================================================================

    async def open_editor(self) -> Optional[list[ConfigField]]:
        """
        Ouvre le formulaire: charge la config et construit les champs.

        Returns:
            Les champs du formulaire, ou None si la config n'a pas pu être lue
            (la ligne revient alors à IDLE et l'erreur part dans le bandeau)

        Raises:
            InvalidTransition: une autre action est active sur cette ligne
        """
        self._enter(RowEvent.EDIT)
        self._in_flight = True
        indexer = self.indexer
        try:
            config = await self.registry.fetch_config(indexer.id)
        except ConsoleError as e:
            self.registry.report(e, f"whilst loading config for {indexer.name}")
            self._in_flight = False
            self._resolve()
            return None

        self._in_flight = False
        self.form = self.form_builder.build_fields(indexer, config)
        return self.form

    async def save_editor(self, values: Optional[dict[str, str]] = None) -> bool:
        """
        Enregistre le formulaire ouvert puis le referme.

        Returns:
            True si le backend a accepté la configuration
        """
        if self.state != RowState.EDITING or self.form is None or self._in_flight:
            raise InvalidTransition(self.state.value, "save")

        indexer = self.indexer
        config = self.form_builder.collect_values(self.form, values)
        self._in_flight = True
        try:
            await self.registry.save_config(indexer, config)
            return True
        except ConsoleError as e:
            self.registry.report(e, f"whilst saving {indexer.name}")
            return False
        finally:
            self._in_flight = False
            self.form = None
            self._resolve()

    def cancel_editor(self):
        """Referme le formulaire sans enregistrer (la config locale est oubliée)"""
        if self.state != RowState.EDITING or self._in_flight:
            raise InvalidTransition(self.state.value, "cancel")
        self.form = None
        self._resolve()

    # =========================================================================
    # TEST / DÉSACTIVATION / RECHERCHE
    # =========================================================================

    async def test(self) -> IndexerTestResult:
        """Teste l'indexer; le résultat reste local à la ligne"""
        self._enter(RowEvent.TEST)
        self.status = CheckStatus.TESTING
        self.status_error = None
        try:
            result = await self.registry.test_indexer(self.indexer)
        finally:
            self._resolve()

        if result.ok:
            self.status = CheckStatus.OK
        else:
            self.status = CheckStatus.FAILED
            self.status_error = result.error
        return result

    async def disable(self) -> bool:
        """Désactive l'indexer; un échec part dans le bandeau d'erreur"""
        self._enter(RowEvent.DISABLE)
        indexer = self.indexer
        try:
            await self.registry.disable_indexer(indexer)
            return True
        except ConsoleError as e:
            self.registry.report(e, f"whilst disabling {indexer.name}")
            return False
        finally:
            self._resolve()

    async def search(self, keywords: str) -> list[SearchResult]:
        """Recherche sur l'indexer; en cas d'échec les résultats précédents restent affichés"""
        self._enter(RowEvent.SEARCH)
        indexer = self.indexer
        self.keywords = keywords
        try:
            self.results = await self.registry.search(indexer, keywords)
        except ConsoleError as e:
            self.registry.report(e, f"whilst searching {indexer.name}")
        finally:
            self._resolve()
        return self.results

    def to_dict(self) -> dict:
        indexer = self.indexer
        return {
            "id": indexer.id,
            "name": indexer.name,
            "enabled": self.registry.is_enabled(indexer.id),
            "feed": indexer.torznab_feed,
            "state": self.state.value,
            "status": self.status.value if self.status else None,
            "status_error": self.status_error,
            "actions": self.available_actions(),
        }
