"""Configuration centralisée de la console d'indexers"""

from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Configuration de l'application"""
    
    # === Console (API locale) ===
    host: str = Field(default="127.0.0.1", alias="CONSOLE_HOST")
    port: int = Field(default=9118, alias="CONSOLE_PORT")
    
    # === Backend ===
    # Origine depuis laquelle la console est servie (backend same-origin en production)
    origin: str = Field(default="http://localhost:5060", alias="CONSOLE_ORIGIN")
    # Serveur de développement: les chemins sont réécrits vers un autre port
    dev_origin: str = Field(default="http://localhost:3000", alias="CONSOLE_DEV_ORIGIN")
    dev_backend_url: str = Field(default="http://localhost:5060", alias="CONSOLE_DEV_BACKEND_URL")
    # Aucun timeout par défaut
    request_timeout: Optional[float] = Field(default=None, alias="CONSOLE_REQUEST_TIMEOUT")
    
    # === Chemins ===
    data_path: str = Field(default="./data", alias="CONSOLE_DATA_PATH")
    
    # === Debug ===
    debug: bool = Field(default=False, alias="DEBUG")
    
    class Config:
        env_file = ".env"
        extra = "ignore"
        populate_by_name = True
    
    @property
    def session_file(self) -> Path:
        """Fichier de stockage durable de la session"""
        return Path(self.data_path) / "session.json"
    
    @property
    def is_dev_origin(self) -> bool:
        """Vrai si la console est servie par le serveur de développement"""
        served = urlsplit(self.origin)
        dev = urlsplit(self.dev_origin)
        return (served.hostname, served.port) == (dev.hostname, dev.port)
    
    @property
    def backend_url(self) -> str:
        """Base des requêtes vers le backend, après réécriture éventuelle"""
        base = self.dev_backend_url if self.is_dev_origin else self.origin
        return base.rstrip("/")


@lru_cache()
def get_settings() -> Settings:
    """Récupère la configuration (singleton)"""
    return Settings()
