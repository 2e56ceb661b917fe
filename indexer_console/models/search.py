"""Modèles et mise en forme des résultats de recherche"""

from html import escape
from pydantic import BaseModel, ConfigDict, Field, field_validator


SIZE_UNITS = ("B", "kB", "MB", "GB", "TB")

# Colonnes triables à l'affichage
SORT_KEYS = ("title", "size", "category", "seeders", "peers", "site")


class SearchResult(BaseModel):
    """Un résultat de recherche torznab, tel que renvoyé par le backend"""
    
    model_config = ConfigDict(populate_by_name=True, extra="ignore")
    
    title: str = Field(default="", alias="Title")
    link: str = Field(default="", alias="Link")
    size: int = Field(default=0, alias="Size")  # bytes
    category: str = Field(default="", alias="Category")
    seeders: int = Field(default=0, alias="Seeders")
    peers: int = Field(default=0, alias="Peers")
    site: str = Field(default="", alias="Site")
    
    @field_validator("category", mode="before")
    @classmethod
    def _category_as_text(cls, value):
        return "" if value is None else str(value)
    
    @property
    def display_size(self) -> str:
        return format_size(self.size)
    
    @property
    def title_link(self) -> str:
        return format_title_link(self.title, self.link)


def format_size(size_bytes: int) -> str:
    """
    Formate une taille en bytes dans la plus grande unité où la valeur reste dans [1, 1024).
    
    Exemples: 1024 -> "1.00 kB", 1572864 -> "1.50 MB", 0 -> "0 B"
    """
    if size_bytes <= 0:
        return "0 B"
    
    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {SIZE_UNITS[unit]}"


def format_title_link(title: str, link: str) -> str:
    """Entoure le titre d'un lien vers la source du résultat"""
    return f'<a href="{escape(link, quote=True)}">{escape(title)}</a>'


def sort_results(results: list[SearchResult], key: str, descending: bool = False) -> list[SearchResult]:
    """Tri pour l'affichage seulement, la liste d'origine n'est pas modifiée"""
    if key not in SORT_KEYS:
        raise ValueError(f"Colonne de tri inconnue: {key}")
    return sorted(results, key=lambda r: getattr(r, key), reverse=descending)
