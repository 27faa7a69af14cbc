import time
from typing import Any, Dict, List, Optional
import httpx
from bs4 import BeautifulSoup
from metasearch.api.schemas import SearchImage, SearchResult
from metasearch.config import RelaySettings
from metasearch.errors import MisconfiguredCredential, NetworkError, UpstreamError
from metasearch.services.validator import validate_images, validate_results
from metasearch.utils.logger import logger
from metasearch.utils.metrics import UPSTREAM_DURATION, UPSTREAM_REQUESTS

class BraveSearchClient:
    """Server-side half of the relay: holds the credential and calls Brave Search."""

    provider = "brave"

    def __init__(self, settings: RelaySettings):
        self.api_key = settings.api_key
        self.upstream_url = settings.upstream_url
        self.timeout = settings.timeout

        if not self.api_key:
            logger.warning("BRAVE_API_KEY not found in environment variables")

    def build_params(self, query: str, region: Optional[str] = None) -> Dict[str, str]:
        params = {"q": query}
        if isinstance(region, str) and region.strip():
            params["region"] = region
        return params

    async def search(self, query: str, region: Optional[str] = None) -> Dict[str, Any]:
        if not self.api_key:
            raise MisconfiguredCredential("BRAVE_API_KEY")

        start_time = time.time()
        try:
            logger.info("Relaying search to Brave...", extra={"query": query, "region": region})
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    self.upstream_url,
                    params=self.build_params(query, region),
                    headers={
                        "Accept": "application/json",
                        "X-Subscription-Token": self.api_key,
                    }
                )
        except httpx.HTTPError as e:
            UPSTREAM_REQUESTS.labels(provider=self.provider, status="exception").inc()
            logger.error(f"Brave request error: {e}", extra={"provider": self.provider})
            raise NetworkError(f"Brave request failed: {e}", provider=self.provider) from e
        finally:
            UPSTREAM_DURATION.labels(provider=self.provider).observe(time.time() - start_time)

        if not response.is_success:
            UPSTREAM_REQUESTS.labels(provider=self.provider, status="error").inc()
            logger.warning(f"Brave failed with status {response.status_code}: {response.text}", extra={"provider": self.provider, "status": response.status_code})
            raise UpstreamError(response.status_code, response.text, provider=self.provider)

        UPSTREAM_REQUESTS.labels(provider=self.provider, status="success").inc()
        return self.normalize(response.json())

    def _clean_text(self, text: Any) -> Any:
        """Brave wraps matched terms in <strong>; the contract carries plain text."""
        if not isinstance(text, str) or "<" not in text:
            return text
        return BeautifulSoup(text, "html.parser").get_text()

    def _section(self, payload: Any, name: str) -> List[Any]:
        section = payload.get(name) if isinstance(payload, dict) else None
        results = section.get("results") if isinstance(section, dict) else None
        return results if isinstance(results, list) else []

    def normalize(self, payload: Any) -> Dict[str, Any]:
        results: List[SearchResult] = validate_results([
            {
                "title": self._clean_text(item.get("title")),
                "url": item.get("url"),
                "snippet": self._clean_text(item.get("description")),
            }
            for item in self._section(payload, "web") if isinstance(item, dict)
        ])
        images: List[SearchImage] = validate_images([
            {
                "title": self._clean_text(item.get("title")),
                "url": item.get("url"),
                "source_url": item.get("page_url"),
            }
            for item in self._section(payload, "images") if isinstance(item, dict)
        ])
        return {
            "results": [result.model_dump() for result in results],
            "images": [image.model_dump(by_alias=True, exclude_none=True) for image in images],
        }
