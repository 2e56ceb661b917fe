"""API locale de la console: état des indexers et actions par ligne"""

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from typing import Optional

from indexer_console.errors import InvalidTransition
from indexer_console.models.search import SORT_KEYS, sort_results
from indexer_console.services.console import IndexerConsole, get_console
from indexer_console.services.rows import IndexerRowController

router = APIRouter(prefix="/console", tags=["Console"])


class LoginRequest(BaseModel):
    passphrase: str


class SearchRequest(BaseModel):
    keywords: str
    sort: Optional[str] = None
    descending: bool = False


def _not_found(indexer_id: str) -> JSONResponse:
    return JSONResponse({"error": f"Indexer inconnu: {indexer_id}"}, status_code=404)


def _conflict(row: IndexerRowController, error: InvalidTransition) -> JSONResponse:
    logger.warning(f"⚠️ {row.indexer_id}: {error.message}")
    return JSONResponse({"error": error.message, "row": row.to_dict()}, status_code=409)


def _field_view(field) -> dict:
    return {
        "name": field.name,
        "label": field.descriptor.label,
        "type": field.descriptor.type.value,
        "placeholder": field.placeholder,
        "value": field.value,
    }


# =============================================================================
# SESSION
# =============================================================================

@router.get("/screen")
async def screen(console: IndexerConsole = Depends(get_console)):
    """Écran à afficher: login ou registre"""
    return {"screen": console.initial_screen()}


@router.post("/login")
async def login(request: LoginRequest, console: IndexerConsole = Depends(get_console)):
    if await console.login(request.passphrase):
        return {"screen": console.initial_screen()}
    return JSONResponse({"error": console.login_error}, status_code=401)


@router.post("/logout")
async def logout(console: IndexerConsole = Depends(get_console)):
    console.logout()
    return {"screen": console.initial_screen()}


# =============================================================================
# REGISTRE
# =============================================================================

@router.post("/indexers/refresh")
async def refresh(console: IndexerConsole = Depends(get_console)):
    ok = await console.registry.refresh()
    return {"ok": ok, "banner": console.banner.to_dict()}


@router.get("/indexers")
async def list_indexers(console: IndexerConsole = Depends(get_console)):
    """Lignes du tableau (indexers activés)"""
    return [row.to_dict() for row in console.enabled_rows()]


@router.get("/indexers/addable")
async def addable_indexers(console: IndexerConsole = Depends(get_console)):
    return [{"id": i.id, "name": i.name} for i in console.addable_indexers()]


@router.get("/indexers/{indexer_id}")
async def get_indexer(indexer_id: str, console: IndexerConsole = Depends(get_console)):
    row = console.row(indexer_id)
    if row is None:
        return _not_found(indexer_id)
    return row.to_dict()


# =============================================================================
# ACTIONS PAR LIGNE
# =============================================================================

@router.post("/indexers/{indexer_id}/edit")
async def open_editor(indexer_id: str, console: IndexerConsole = Depends(get_console)):
    """Ouvre le formulaire de configuration"""
    row = console.row(indexer_id)
    if row is None:
        return _not_found(indexer_id)
    try:
        fields = await row.open_editor()
    except InvalidTransition as e:
        return _conflict(row, e)

    if fields is None:
        return JSONResponse({"error": console.banner.text, "row": row.to_dict()}, status_code=502)
    return {"row": row.to_dict(), "fields": [_field_view(f) for f in fields]}


@router.put("/indexers/{indexer_id}/edit")
async def save_editor(
    indexer_id: str,
    values: dict[str, str] = Body(default={}),
    console: IndexerConsole = Depends(get_console),
):
    """Enregistre le formulaire ouvert"""
    row = console.row(indexer_id)
    if row is None:
        return _not_found(indexer_id)
    try:
        saved = await row.save_editor(values)
    except InvalidTransition as e:
        return _conflict(row, e)
    return {"saved": saved, "row": row.to_dict(), "banner": console.banner.to_dict()}


@router.delete("/indexers/{indexer_id}/edit")
async def cancel_editor(indexer_id: str, console: IndexerConsole = Depends(get_console)):
    row = console.row(indexer_id)
    if row is None:
        return _not_found(indexer_id)
    try:
        row.cancel_editor()
    except InvalidTransition as e:
        return _conflict(row, e)
    return {"row": row.to_dict()}


@router.post("/indexers/{indexer_id}/test")
async def test_indexer(indexer_id: str, console: IndexerConsole = Depends(get_console)):
    row = console.row(indexer_id)
    if row is None:
        return _not_found(indexer_id)
    try:
        result = await row.test()
    except InvalidTransition as e:
        return _conflict(row, e)
    return {"ok": result.ok, "error": result.error, "row": row.to_dict()}


@router.post("/indexers/{indexer_id}/disable")
async def disable_indexer(indexer_id: str, console: IndexerConsole = Depends(get_console)):
    row = console.row(indexer_id)
    if row is None:
        return _not_found(indexer_id)
    try:
        disabled = await row.disable()
    except InvalidTransition as e:
        return _conflict(row, e)
    return {"disabled": disabled, "row": row.to_dict(), "banner": console.banner.to_dict()}


@router.post("/indexers/{indexer_id}/search")
async def search(indexer_id: str, request: SearchRequest, console: IndexerConsole = Depends(get_console)):
    """Recherche; le tri optionnel ne concerne que l'affichage"""
    row = console.row(indexer_id)
    if row is None:
        return _not_found(indexer_id)
    if request.sort is not None and request.sort not in SORT_KEYS:
        return JSONResponse({"error": f"Colonne de tri inconnue: {request.sort}"}, status_code=400)
    try:
        results = await row.search(request.keywords)
    except InvalidTransition as e:
        return _conflict(row, e)

    if request.sort:
        results = sort_results(results, request.sort, request.descending)

    return {
        "row": row.to_dict(),
        "banner": console.banner.to_dict(),
        "results": [
            {
                **r.model_dump(),
                "title_link": r.title_link,
                "display_size": r.display_size,
            }
            for r in results
        ],
    }


# =============================================================================
# BANDEAU D'ERREUR
# =============================================================================

@router.get("/banner")
async def banner(console: IndexerConsole = Depends(get_console)):
    return console.banner.to_dict()


@router.delete("/banner")
async def dismiss_banner(console: IndexerConsole = Depends(get_console)):
    console.banner.dismiss()
    return console.banner.to_dict()
