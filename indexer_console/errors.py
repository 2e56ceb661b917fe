"""Exceptions de la console d'indexers"""

from typing import Optional


class ConsoleError(Exception):
    """Erreur de base de la console"""
    
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthError(ConsoleError):
    """Token de session absent ou refusé (renvoie vers l'écran de login)"""


class NetworkError(ConsoleError):
    """Échec de transport, ou réponse non-2xx sans corps d'erreur exploitable"""


class BackendError(ConsoleError):
    """Réponse non-2xx avec un corps {error: ...}"""


class ValidationError(BackendError):
    """Validation refusée par le backend (aucune validation côté console)"""


class InvalidTransition(ConsoleError):
    """Action refusée par la machine à états d'une ligne"""
    
    def __init__(self, state: str, event: str):
        self.state = state
        self.event = event
        super().__init__(f"Transition impossible: {event} depuis l'état {state}")
