"""Machine à états des actions d'une ligne d'indexer"""

from enum import Enum

from indexer_console.errors import InvalidTransition


class RowState(str, Enum):
    """État d'action d'une ligne (une seule action active à la fois)"""
    IDLE = "idle"
    EDITING = "editing"
    TESTING = "testing"
    DISABLING = "disabling"
    SEARCHING = "searching"


class RowEvent(str, Enum):
    """Événements de la machine à états"""
    EDIT = "edit"
    TEST = "test"
    DISABLE = "disable"
    SEARCH = "search"
    RESOLVED = "resolved"  # l'appel au registre est terminé (succès ou échec)


class CheckStatus(str, Enum):
    """Résultat affiché du dernier test, indépendant de l'état d'action"""
    OK = "OK"
    TESTING = "Testing"
    FAILED = "Failed"


START_EVENTS: dict[RowEvent, RowState] = {
    RowEvent.EDIT: RowState.EDITING,
    RowEvent.TEST: RowState.TESTING,
    RowEvent.DISABLE: RowState.DISABLING,
    RowEvent.SEARCH: RowState.SEARCHING,
}


def apply(state: RowState, event: RowEvent) -> RowState:
    """
    Applique un événement à l'état d'une ligne.
    
    - IDLE + action -> état actif correspondant
    - état actif + RESOLVED -> IDLE
    
    Toute autre combinaison lève InvalidTransition: pas de réentrée,
    pas de retry, pas d'annulation.
    """
    if state == RowState.IDLE and event in START_EVENTS:
        return START_EVENTS[event]
    
    if state != RowState.IDLE and event == RowEvent.RESOLVED:
        return RowState.IDLE
    
    raise InvalidTransition(state.value, event.value)


def can_apply(state: RowState, event: RowEvent) -> bool:
    """Vrai si l'événement est accepté depuis cet état"""
    try:
        apply(state, event)
    except InvalidTransition:
        return False
    return True
