from typing import Dict
from contextlib import asynccontextmanager
from fastapi import FastAPI
from dotenv import load_dotenv
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn
from metasearch.api.routes import router
from metasearch.config import RelaySettings
from metasearch.utils.logger import logger

load_dotenv()

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = RelaySettings.from_env()
    if not settings.api_key:
        # still start: every relay request answers 500 until the key is set
        logger.warning("BRAVE_API_KEY is not configured; /api/search will fail")
    logger.info("Application starting up...")
    yield
    logger.info("Application shutting down...")

app: FastAPI = FastAPI(
    title="Meta-Search Relay",
    description="Normalizes web, knowledge-graph and image providers into one search contract.",
    version="1.0.0",
    lifespan=lifespan
)

Instrumentator().instrument(app).expose(app)

app.include_router(router)

@app.get("/health")
async def health_check() -> Dict[str, str]:
    return {"status": "ok"}

if __name__ == "__main__":
    port = RelaySettings.from_env().port
    logger.info(f"Search API server listening on {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)
