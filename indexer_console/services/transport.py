"""Transport HTTP vers le backend (résolution d'URL, en-têtes, erreurs)"""

import httpx
from loguru import logger
from typing import Any, Optional

from indexer_console.config import Settings, get_settings
from indexer_console.errors import AuthError, BackendError, NetworkError, ValidationError
from indexer_console.services.session import SessionStore


class ApiTransport:
    """Client HTTP partagé par le registre, la recherche et le login"""
    
    def __init__(
        self,
        session: SessionStore,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.session = session
        self.base_url = self.settings.backend_url
        
        # Transport injectable (tests)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
    
    def resolve_url(self, path: str) -> str:
        """Réécrit un chemin backend vers l'origine effective (dev ou same-origin)"""
        return f"{self.base_url}{path}"
    
    async def _get_client(self) -> httpx.AsyncClient:
        """Récupère ou crée le client HTTP"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.settings.request_timeout),
                transport=self._transport,
                headers={"Accept": "application/json"},
            )
        return self._client
    
    def _get_api_headers(self, authorized: bool, has_body: bool) -> dict:
        """Retourne les headers nécessaires pour les appels API"""
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if authorized:
            headers["Authorization"] = f"apitoken {self.session.api_key}"
        return headers
    
    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[dict] = None,
        authorized: bool = True,
    ) -> Any:
        """
        Envoie une requête au backend et décode la réponse JSON.
        
        Args:
            method: Méthode HTTP
            path: Chemin backend (ex: /xhr/indexers)
            json: Corps JSON éventuel
            params: Paramètres de query string (ordre conservé)
            authorized: Ajoute l'en-tête Authorization avec le token de session
            
        Returns:
            Le corps JSON décodé, ou None si la réponse est vide
            
        Raises:
            AuthError, BackendError, ValidationError, NetworkError
        """
        if authorized and not self.session.has_token:
            raise AuthError("Aucun token de session")
        
        url = self.resolve_url(path)
        logger.debug(f"📡 {method} {url}")
        
        try:
            client = await self._get_client()
            response = await client.request(
                method,
                url,
                json=json,
                params=params,
                headers=self._get_api_headers(authorized, json is not None),
            )
        except httpx.HTTPError as e:
            logger.error(f"❌ Erreur réseau {method} {path}: {e}")
            raise NetworkError(str(e) or e.__class__.__name__) from e
        
        if response.is_success:
            return self._decode(response)
        
        raise self._error_from(response)
    
    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            logger.debug(f"Réponse non-JSON ignorée ({response.status_code})")
            return None
    
    @staticmethod
    def _error_from(response: httpx.Response):
        """Convertit une réponse non-2xx en exception typée"""
        status = response.status_code
        message = None
        try:
            body = response.json()
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
        except ValueError:
            pass
        
        logger.warning(f"⚠️ Réponse {status}: {message or response.reason_phrase}")
        
        if status in (401, 403):
            return AuthError(message or response.reason_phrase, status)
        if message is None:
            return NetworkError(response.reason_phrase or f"HTTP {status}", status)
        if status in (400, 422):
            return ValidationError(message, status)
        return BackendError(message, status)
    
    async def close(self):
        """Ferme le client HTTP"""
        if self._client:
            await self._client.aclose()
            self._client = None
