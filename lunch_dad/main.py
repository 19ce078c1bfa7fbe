"""FastAPI application setup for Lunch Dad."""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api import router as api_router
from .services import build_services


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared cache and fetchers once per process."""
    app.state.services = build_services()
    yield
    del app.state.services


app = FastAPI(title="Lunch Dad", lifespan=lifespan)


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
