"""Conversion workflow: state, contact and service selection, delivery."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from beatbridge.api.state import AppState, get_state
from beatbridge.core.workflow import InvalidTransition, WorkflowSnapshot
from beatbridge.models.service import MusicService

router = APIRouter()


class SelectContactBody(BaseModel):
    contact_identifier: str
    contact_name: str
    phone: Optional[str] = None


class SelectServiceBody(BaseModel):
    service: str


def snapshot_to_dict(s: WorkflowSnapshot) -> dict:
    return {
        "state": s.state.value,
        "source_link": s.share.source_link if s.share else None,
        "captured_at": s.share.captured_at.isoformat() if s.share else None,
        "contact": (
            {
                "contact_identifier": s.contact.contact_identifier,
                "contact_name": s.contact.contact_name,
                "phone": s.contact.phone,
            }
            if s.contact
            else None
        ),
        "target_service": s.target_service.value if s.target_service else None,
        "failure": (
            {"reason": s.failure.reason.value, "error_kind": s.failure.error_kind}
            if s.failure
            else None
        ),
        "notice": s.notice,
        "resolved_link": s.payload.resolved_link if s.payload else None,
        "message_text": s.payload.message_text if s.payload else None,
    }


def _conflict(e: InvalidTransition) -> HTTPException:
    return HTTPException(status_code=409, detail=str(e))


@router.get("")
def get_workflow(state: AppState = Depends(get_state)):
    """Return the current workflow state."""
    return snapshot_to_dict(state.workflow.snapshot())


@router.post("/contact")
def select_contact(body: SelectContactBody, state: AppState = Depends(get_state)):
    """Contact picked for the pending share. Resolves right away if the contact has a saved service."""
    try:
        snapshot = state.workflow.select_contact(
            body.contact_identifier, body.contact_name, body.phone
        )
    except InvalidTransition as e:
        raise _conflict(e)
    return snapshot_to_dict(snapshot)


@router.post("/service")
def select_service(body: SelectServiceBody, state: AppState = Depends(get_state)):
    """Service picked for a contact without a saved one. Saved before resolving."""
    try:
        service = MusicService.parse(body.service)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    try:
        snapshot = state.workflow.select_service(service)
    except InvalidTransition as e:
        raise _conflict(e)
    return snapshot_to_dict(snapshot)


@router.post("/deliver")
def deliver(state: AppState = Depends(get_state)):
    """Send the converted link (or copy it when no message can be sent)."""
    try:
        result = state.workflow.deliver()
    except InvalidTransition as e:
        raise _conflict(e)
    return {
        "outcome": result.outcome.value,
        "notice": result.notice,
        "workflow": snapshot_to_dict(state.workflow.snapshot()),
    }


@router.post("/acknowledge")
def acknowledge(state: AppState = Depends(get_state)):
    """Dismiss a failure notice."""
    try:
        snapshot = state.workflow.acknowledge()
    except InvalidTransition as e:
        raise _conflict(e)
    return snapshot_to_dict(snapshot)


@router.post("/abandon")
def abandon(state: AppState = Depends(get_state)):
    """Drop the current conversion, whatever state it is in."""
    return snapshot_to_dict(state.workflow.abandon())
