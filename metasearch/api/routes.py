from typing import AsyncIterator, Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from metasearch.api.schemas import ErrorResponse
from metasearch.config import RelaySettings, SearchConfig
from metasearch.errors import InvalidQuery, MisconfiguredCredential, NetworkError, UpstreamError
from metasearch.services.aggregator import Aggregator, build_aggregator
from metasearch.services.upstream import BraveSearchClient
from metasearch.utils.logger import logger

router = APIRouter()

def get_relay_settings() -> RelaySettings:
    # read per request: a key added after startup takes effect without a restart
    return RelaySettings.from_env()

def get_brave_client(settings: RelaySettings = Depends(get_relay_settings)) -> BraveSearchClient:
    return BraveSearchClient(settings)

async def get_aggregator() -> AsyncIterator[Optional[Aggregator]]:
    # None tells the endpoint to answer with a JSON error instead of a bare 500
    try:
        aggregator = build_aggregator(SearchConfig.from_env())
    except ValueError as e:
        logger.error(f"Invalid search configuration: {e}")
        yield None
        return
    async with aggregator:
        yield aggregator

def error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)

@router.get("/api/search")
async def relay_search(
    q: Optional[str] = None,
    region: Optional[str] = None,
    client: BraveSearchClient = Depends(get_brave_client),
):
    if not q or not q.strip():
        return error_response(400, "Missing search query.")

    try:
        return await client.search(q, region)
    except MisconfiguredCredential as e:
        return error_response(500, str(e))
    except UpstreamError as e:
        return error_response(e.status, "Search provider request failed.", e.body)
    except Exception as e:
        logger.error(f"Search failed: {e}")
        return error_response(500, "Search request failed.")

@router.get("/api/metasearch")
async def metasearch(
    q: Optional[str] = None,
    region: Optional[str] = None,
    aggregator: Optional[Aggregator] = Depends(get_aggregator),
):
    if aggregator is None:
        return error_response(500, "Search is not configured.")

    try:
        response = await aggregator.search_web(q, region)
        return response.to_payload()
    except InvalidQuery:
        return error_response(400, "Missing search query.")
    except UpstreamError as e:
        return error_response(502, "Search provider request failed.", e.body)
    except NetworkError as e:
        return error_response(502, "Search provider unreachable.", str(e))
    except Exception as e:
        logger.error(f"Metasearch endpoint error: {e}")
        return error_response(500, "Search request failed.")
