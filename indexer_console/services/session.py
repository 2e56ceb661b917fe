"""Session: token d'API persistant et échange passphrase -> token"""

import json
from pathlib import Path
from loguru import logger
from typing import TYPE_CHECKING, Optional

from indexer_console.errors import AuthError, NetworkError

if TYPE_CHECKING:
    from indexer_console.services.transport import ApiTransport


# Clé fixe du token dans le stockage durable
SESSION_KEY = "apiKey"


class SessionStore:
    """Détient le token courant et le persiste entre deux lancements"""
    
    def __init__(self, storage_file: Path):
        self._storage_file = Path(storage_file)
        self._api_key: str = ""
    
    @property
    def api_key(self) -> str:
        return self._api_key
    
    @property
    def has_token(self) -> bool:
        return bool(self._api_key)
    
    def load(self) -> str:
        """Lit le token persistant (une seule fois, au démarrage)"""
        try:
            if self._storage_file.exists():
                with open(self._storage_file, "r") as f:
                    data = json.load(f)
                self._api_key = str(data.get(SESSION_KEY) or "")
        except (OSError, ValueError, AttributeError) as e:
            logger.error(f"❌ Erreur lecture session: {e}")
            self._api_key = ""
        
        if self._api_key:
            logger.info("🔑 Session restaurée")
        else:
            logger.info("🔒 Aucune session, login requis")
        return self._api_key
    
    def set_token(self, token: str):
        """Enregistre un nouveau token (succès du login uniquement)"""
        self._api_key = token
        self._save()
        logger.success("✅ Session enregistrée")
    
    def clear(self):
        """Déconnexion: oublie le token et le retire du stockage"""
        self._api_key = ""
        self._save()
        logger.info("👋 Session effacée")
    
    def _save(self):
        """Sauvegarde la session dans le fichier"""
        try:
            self._storage_file.parent.mkdir(parents=True, exist_ok=True)
            data = {SESSION_KEY: self._api_key} if self._api_key else {}
            with open(self._storage_file, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            logger.error(f"❌ Erreur sauvegarde session: {e}")


class AuthClient:
    """Échange une passphrase contre un token et le confie à la session"""
    
    def __init__(self, transport: "ApiTransport", session: SessionStore):
        self.transport = transport
        self.session = session
    
    async def authenticate(self, passphrase: str) -> str:
        """
        POST /xhr/auth avec la passphrase
        
        Returns:
            Le token obtenu (déjà persisté)
            
        Raises:
            AuthError: passphrase refusée (message du backend)
            NetworkError: backend injoignable
        """
        logger.info("🔐 Authentification...")
        try:
            data = await self.transport.request(
                "POST",
                "/xhr/auth",
                json={"passphrase": passphrase},
                authorized=False,
            )
        except NetworkError as e:
            if e.status_code is None:
                raise NetworkError("Network connection error") from e
            raise
        except AuthError:
            logger.warning("⚠️ Passphrase refusée")
            raise
        
        token = (data or {}).get("token") if isinstance(data, dict) else None
        if not token:
            raise AuthError("Réponse d'authentification sans token")
        
        self.session.set_token(token)
        return token
