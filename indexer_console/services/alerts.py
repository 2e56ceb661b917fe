"""Bandeau d'erreur partagé"""

from loguru import logger
from typing import Optional


class ErrorBanner:
    """Dernière erreur à afficher, refermable par l'utilisateur"""
    
    def __init__(self):
        self.message: Optional[str] = None
        self.scope: Optional[str] = None
        self.visible = False
    
    def show(self, message: str, scope: Optional[str] = None):
        """Remplace l'erreur affichée"""
        self.message = message
        self.scope = scope
        self.visible = True
        logger.error(f"❌ {message}" + (f" ({scope})" if scope else ""))
    
    def dismiss(self):
        """Masque le bandeau (ne relance pas l'opération échouée)"""
        self.visible = False
    
    @property
    def text(self) -> str:
        if not self.message:
            return ""
        return f"Error {self.scope}: {self.message}" if self.scope else self.message
    
    def to_dict(self) -> dict:
        return {
            "visible": self.visible,
            "message": self.message,
            "scope": self.scope,
            "text": self.text,
        }
