import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI

from .adapters.ms365 import AuthServiceCredentialSource, GraphClient
from .config import GraphSettings
from .routes.graph import router as graph_router


log = logging.getLogger("ms365_graph.main")


def build_graph_client(settings: GraphSettings) -> GraphClient:
    """Create the process-wide Graph client, optionally backed by the Auth service."""
    source = None
    if settings.credential_id:
        source = AuthServiceCredentialSource(settings.credential_id, settings)
    return GraphClient(settings, credential_source=source)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration once and own the Graph client for the app's lifetime."""
    logging.basicConfig(level=logging.INFO)
    try:
        settings = GraphSettings.from_env()
    except Exception as e:
        log.error("Startup failed: %s", e)
        raise

    if not settings.client_secret:
        log.warning("MS365_MCP_CLIENT_SECRET not set; expired tokens cannot be refreshed")

    app.state.graph_client = build_graph_client(settings)
    try:
        yield
    finally:
        await app.state.graph_client.aclose()


app = FastAPI(title="MS365 Graph Gateway", version="0.1.0", lifespan=lifespan)
app.include_router(graph_router)


@app.get("/api/health")
def health():
    """Minimal liveness endpoint."""
    return {"status": "ok"}
