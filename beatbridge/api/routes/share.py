"""Share intake, deep links, service list and clipboard."""
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from beatbridge.api.routes.workflow import snapshot_to_dict
from beatbridge.api.state import AppState, get_state
from beatbridge.core.share_intake import NoLinkInSharedContent, UnknownDeepLink, parse_deep_link
from beatbridge.models.service import SERVICE_INFO

router = APIRouter()


class ShareBody(BaseModel):
    """A URL, or the text a music app shared (which contains one)."""
    text: str


class OpenBody(BaseModel):
    uri: str


@router.post("/share")
def share_link(body: ShareBody, state: AppState = Depends(get_state)):
    """Capture a shared link and start the workflow (queued if one is already running)."""
    try:
        share = state.share_intake().capture(body.text)
    except NoLinkInSharedContent as e:
        raise HTTPException(status_code=400, detail=str(e))
    snapshot = state.workflow.resume()
    return {"source_link": share.source_link, "workflow": snapshot_to_dict(snapshot)}


@router.post("/open")
def open_deep_link(body: OpenBody, state: AppState = Depends(get_state)):
    """Deep link from the share intake process. The payload is read from the mailbox."""
    try:
        link = parse_deep_link(body.uri)
    except UnknownDeepLink as e:
        raise HTTPException(status_code=400, detail=str(e))
    snapshot = state.workflow.resume()
    return {"link": link.value, "workflow": snapshot_to_dict(snapshot)}


@router.get("/services")
def list_services():
    """Supported services with display metadata."""
    return [
        {"service": service.value, "display_name": info.display_name, "icon": info.icon}
        for service, info in SERVICE_INFO.items()
    ]


@router.get("/clipboard")
def get_clipboard(state: AppState = Depends(get_state)):
    """Last link copied for manual sharing."""
    return {"text": state.clipboard.text}
