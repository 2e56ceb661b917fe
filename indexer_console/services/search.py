"""Client de recherche torznab"""

from loguru import logger
from pydantic import ValidationError as SchemaError

from indexer_console.errors import NetworkError
from indexer_console.models.indexer import Indexer
from indexer_console.models.search import SearchResult
from indexer_console.services.transport import ApiTransport


class SearchClient:
    """Interroge le point de recherche torznab d'un indexer"""
    
    def __init__(self, transport: ApiTransport):
        self.transport = transport
    
    @staticmethod
    def search_path(indexer_id: str) -> str:
        return f"/torznab/{indexer_id}/api"
    
    def build_params(self, keywords: str) -> dict[str, str]:
        """Paramètres fixes + apikey de session + mots-clés (ordre conservé)"""
        return {
            "t": "search",
            "format": "json",
            "apikey": self.transport.session.api_key,
            "q": keywords,
        }
    
    async def search(self, indexer: Indexer, keywords: str) -> list[SearchResult]:
        """
        Recherche sur un indexer
        
        Returns:
            Les Items du backend, dans l'ordre renvoyé
        """
        logger.info(f"🔍 Recherche sur {indexer.name}: '{keywords}'")
        
        data = await self.transport.request(
            "GET",
            self.search_path(indexer.id),
            params=self.build_params(keywords),
        )
        if not isinstance(data, dict):
            raise NetworkError("Réponse de recherche invalide")
        
        try:
            results = [SearchResult.model_validate(item) for item in data.get("Items") or []]
        except SchemaError as e:
            logger.error(f"❌ Résultats illisibles: {e}")
            raise NetworkError("Réponse de recherche invalide") from e

        logger.info(f"📋 {len(results)} résultats trouvés")
        return results
