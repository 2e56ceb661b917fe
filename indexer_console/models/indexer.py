"""Modèles pour les indexers et leur configuration"""

from datetime import datetime
from enum import Enum
from typing import Optional
from loguru import logger
from pydantic import BaseModel, Field, field_validator


# Configuration d'un indexer: nom du réglage -> valeur (toujours des chaînes)
Config = dict[str, str]

# Clés réservées, acceptées en plus des réglages déclarés
RESERVED_KEYS = ("url", "enabled")


class SettingType(str, Enum):
    """Types de champs de saisie connus"""
    TEXT = "text"
    PASSWORD = "password"
    EMAIL = "email"
    NUMBER = "number"
    URL = "url"


class SettingDescriptor(BaseModel):
    """Description d'un réglage configurable, fournie par le backend"""
    
    model_config = {"frozen": True}
    
    name: str
    label: str = ""
    type: SettingType = SettingType.TEXT
    placeholder: Optional[str] = None
    
    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type_as_text(cls, value):
        # Type inconnu du backend -> champ texte
        try:
            return SettingType(value)
        except ValueError:
            logger.debug(f"Type de champ inconnu '{value}', rendu en texte")
            return SettingType.TEXT


# Réglages par défaut d'un indexer qui n'en déclare aucun
DEFAULT_SETTINGS: tuple[SettingDescriptor, ...] = (
    SettingDescriptor(name="username", label="Username", type=SettingType.TEXT),
    SettingDescriptor(name="password", label="Password", type=SettingType.PASSWORD),
)


class IndexerStats(BaseModel):
    """Provenance de la définition d'un indexer"""
    
    source: str = ""
    modtime: Optional[datetime] = None


class Indexer(BaseModel):
    """Un indexer connu du backend"""
    
    # Identifiant unique et stable
    id: str
    name: str
    enabled: bool = False
    
    # Schéma de configuration (ordonné); username/password si absent
    settings: list[SettingDescriptor] = Field(default_factory=lambda: list(DEFAULT_SETTINGS))
    
    # Type de flux -> URL (torznab, ...)
    feeds: dict[str, str] = Field(default_factory=dict)
    
    stats: Optional[IndexerStats] = None
    
    @field_validator("settings", mode="before")
    @classmethod
    def _default_settings(cls, value):
        if not value:
            return list(DEFAULT_SETTINGS)
        return value
    
    @property
    def torznab_feed(self) -> str:
        """URL du flux torznab (vide si le backend n'en fournit pas)"""
        return self.feeds.get("torznab", "")
    
    def setting_names(self) -> set[str]:
        """Noms des réglages déclarés"""
        return {s.name for s in self.settings}
    
    def accepts_key(self, key: str) -> bool:
        """Vrai si la clé peut être renvoyée au backend pour cet indexer"""
        return key in RESERVED_KEYS or key in self.setting_names()


class IndexerTestResult(BaseModel):
    """Réponse du test d'un indexer"""
    
    ok: bool = False
    error: Optional[str] = None
