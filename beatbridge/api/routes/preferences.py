"""Contact preferences: list, edit, delete."""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from beatbridge.api.state import AppState, get_state
from beatbridge.models.contact import ContactPreference
from beatbridge.models.service import MusicService

router = APIRouter()


class UpdatePreferenceBody(BaseModel):
    service: str
    contact_name: str | None = None


def _preference_to_dict(p: ContactPreference) -> dict:
    return {
        "contact_identifier": p.contact_identifier,
        "contact_name": p.contact_name,
        "service": p.service.value,
        "display_name": p.service.display_name,
        "last_used_at": p.last_used_at.isoformat(),
    }


@router.get("/")
def list_preferences(state: AppState = Depends(get_state)):
    """All contact preferences, most recently used first."""
    return [_preference_to_dict(p) for p in state.preferences.list()]


@router.put("/{contact_identifier}")
def update_preference(
    contact_identifier: str,
    body: UpdatePreferenceBody,
    state: AppState = Depends(get_state),
):
    """Set a contact's service. Keeps the stored name unless a new one is given."""
    try:
        service = MusicService.parse(body.service)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    contact_name = body.contact_name
    if contact_name is None:
        existing = state.preferences.get_preference(contact_identifier)
        if existing is None:
            raise HTTPException(status_code=404, detail="Preference not found; contact_name required")
        contact_name = existing.contact_name
    preference = state.preferences.put(contact_identifier, contact_name, service)
    return _preference_to_dict(preference)


@router.delete("/{contact_identifier}", status_code=204)
def delete_preference(contact_identifier: str, state: AppState = Depends(get_state)):
    """Forget a contact's service. Deleting an unknown contact is not an error."""
    state.preferences.delete(contact_identifier)
