"""Conversion history: list and clear."""
from fastapi import APIRouter, Depends

from beatbridge.api.state import AppState, get_state
from beatbridge.core.history_log import record_to_dict

router = APIRouter()


@router.get("/")
def list_history(state: AppState = Depends(get_state)):
    """Completed conversions, most recent first."""
    return [record_to_dict(r) for r in state.history.list()]


@router.delete("/", status_code=204)
def clear_history(state: AppState = Depends(get_state)):
    """Remove every conversion record."""
    state.history.clear()
