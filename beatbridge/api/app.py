"""FastAPI app, CORS, and route registration."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Configure logging in the worker process (so workflow INFO logs are visible with uvicorn --reload)
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(name)s: %(message)s",
)

from beatbridge.api.state import AppState, get_state
from beatbridge.config import ensure_data_dir

# Import routes after state to avoid circular imports
from beatbridge.api.routes import history, preferences, share, workflow

__all__ = ["app", "AppState", "get_state"]

_state = get_state()


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_data_dir()
    # A link shared while the host was down is waiting in the mailbox
    snapshot = _state.workflow.resume()
    logging.getLogger(__name__).info("Host started, workflow %s", snapshot.state.value)

    yield

    _state.shutdown()


app = FastAPI(
    title="Beat Bridge API",
    description="Local API for sharing music links in each contact's preferred service",
    lifespan=lifespan,
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(share.router, prefix="/api", tags=["share"])
app.include_router(workflow.router, prefix="/api/workflow", tags=["workflow"])
app.include_router(preferences.router, prefix="/api/preferences", tags=["preferences"])
app.include_router(history.router, prefix="/api/history", tags=["history"])
