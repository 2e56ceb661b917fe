"""Indexer-Console - Point d'entrée principal"""

import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
import sys

from indexer_console import __version__
from indexer_console.config import get_settings
from indexer_console.api import console_router
from indexer_console.services.console import get_console

# Configuration du logging
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    level="DEBUG" if get_settings().debug else "INFO",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Gestion du cycle de vie de l'application"""
    settings = get_settings()

    logger.info("=" * 50)
    logger.info(f"🚀 Indexer-Console v{__version__} - Démarrage")
    logger.info("=" * 50)
    logger.info(f"📍 Backend: {settings.backend_url}" + (" (réécrit depuis l'origine dev)" if settings.is_dev_origin else ""))
    logger.info(f"📍 Session: {settings.session_file}")
    logger.info(f"📍 Console: http://{settings.host}:{settings.port}/console")
    logger.info("=" * 50)

    console = get_console()
    await console.start()

    if console.initial_screen() == "login":
        logger.warning("⚠️ Aucun token: connexion requise (POST /console/login)")

    yield

    # Arrêt
    logger.info("🛑 Arrêt de la console...")
    await console.close()


# Créer l'application FastAPI
app = FastAPI(
    title="Indexer-Console",
    description="Synchronisation d'état et actions de la console d'indexers",
    version=__version__,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Monter les routers
app.include_router(console_router)


@app.get("/")
async def root():
    """Page d'accueil"""
    return {
        "name": "Indexer-Console",
        "version": __version__,
        "status": "running",
        "endpoints": {
            "screen": "/console/screen",
            "indexers": "/console/indexers",
        }
    }


@app.get("/health")
async def health():
    """Health check"""
    return {"status": "ok"}


if __name__ == "__main__":
    settings = get_settings()

    # Lancer le serveur
    uvicorn.run(
        "indexer_console.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
