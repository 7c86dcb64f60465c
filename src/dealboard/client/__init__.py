"""Async client for the Dealboard API: board moves, notes autosave, checklists."""

from src.dealboard.client.api import DealboardAPIError, DealboardClient
from src.dealboard.client.board import BoardClient, MoveOutcome
from src.dealboard.client.checklists import ChecklistStore
from src.dealboard.client.notes import NotesAutosaveController, NotesSession, NotesState

__all__ = [
    "BoardClient",
    "ChecklistStore",
    "DealboardAPIError",
    "DealboardClient",
    "MoveOutcome",
    "NotesAutosaveController",
    "NotesSession",
    "NotesState",
]
