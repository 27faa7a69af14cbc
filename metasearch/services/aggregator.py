import asyncio
from typing import Any, List, Optional, Tuple
import httpx
from metasearch.api.schemas import SearchImage, SearchResponse, SearchResult, parse_region
from metasearch.config import FailurePolicy, ImagesProvider, ResultsProvider, SearchConfig
from metasearch.errors import InvalidQuery, NetworkError, SearchError
from metasearch.services.adapters import (
    MAX_IMAGES,
    MAX_RESULTS,
    ImageMetadataAdapter,
    KnowledgeGraphAdapter,
    MockAdapter,
    PlaceholderImageAdapter,
    ProviderAdapter,
    RestAdapter,
    placeholder_images,
)
from metasearch.utils.logger import logger
from metasearch.utils.metrics import ADAPTER_FALLBACKS

RESULTS_UNAVAILABLE_NOTICE = "Search results are temporarily unavailable. Please try again in a moment."


class Aggregator:
    """
    Runs one results adapter and at most one images adapter concurrently and
    merges them into a single SearchResponse.

    Image failures are always absorbed. Results failures are absorbed into an
    empty result list plus a notice under FailurePolicy.RESILIENT, and re-raised
    under FailurePolicy.STRICT. Each adapter gets exactly one attempt.
    """

    def __init__(
        self,
        results_adapter: ProviderAdapter,
        images_adapter: Optional[ProviderAdapter] = None,
        *,
        failure_policy: FailurePolicy = FailurePolicy.RESILIENT,
        placeholder_fallback: bool = False,
        timeout: float = 5.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.results_adapter = results_adapter
        self.images_adapter = images_adapter
        self.failure_policy = failure_policy
        self.placeholder_fallback = placeholder_fallback
        self.timeout = timeout
        self.client = client

    async def __aenter__(self) -> "Aggregator":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self.client is not None:
            await self.client.aclose()

    async def _bounded(self, coro, provider: str):
        try:
            return await asyncio.wait_for(coro, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            raise NetworkError(f"{provider} timed out after {self.timeout:.1f}s", provider=provider) from e

    async def _run_results(self, query: str, region) -> SearchResponse:
        return await self._bounded(self.results_adapter.search(query, region), self.results_adapter.name)

    async def _run_images(self, query: str) -> List[SearchImage]:
        if self.images_adapter is None:
            return []
        try:
            return await self._bounded(self.images_adapter.fetch_images(query), self.images_adapter.name)
        except SearchError as e:
            logger.warning(f"Image provider failed, degrading: {e}", extra={"provider": self.images_adapter.name, "query": query})
            return []

    def _select_images(self, query: str, adapter_images: List[SearchImage], carried: List[SearchImage]) -> List[SearchImage]:
        if adapter_images:
            return adapter_images[:MAX_IMAGES]
        if carried:
            return carried[:MAX_IMAGES]
        if self.placeholder_fallback:
            ADAPTER_FALLBACKS.labels(kind="placeholder_images").inc()
            return placeholder_images(query)
        return []

    async def search_web(self, query: Any, region: Any = None) -> SearchResponse:
        if not isinstance(query, str) or not query.strip():
            raise InvalidQuery()

        query = query.strip()
        parsed_region = parse_region(region)
        logger.info("Aggregating search", extra={"query": query, "region": parsed_region.value if parsed_region else None})

        # gather cancels both children if the caller abandons this call
        outcome, adapter_images = await asyncio.gather(
            self._run_results(query, parsed_region),
            self._run_images(query),
            return_exceptions=True,
        )

        if isinstance(adapter_images, BaseException):
            raise adapter_images

        results: List[SearchResult] = []
        carried: List[SearchImage] = []
        notice: Optional[str] = None

        if isinstance(outcome, SearchError):
            if self.failure_policy is FailurePolicy.STRICT:
                raise outcome
            logger.warning(f"Results provider failed: {outcome}", extra={"provider": self.results_adapter.name, "query": query})
            ADAPTER_FALLBACKS.labels(kind="empty_results").inc()
            notice = RESULTS_UNAVAILABLE_NOTICE
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results = list(outcome.results[:MAX_RESULTS])
            carried = list(outcome.images)

        return SearchResponse(
            results=results,
            images=self._select_images(query, adapter_images, carried),
            notice=notice,
        )


def build_adapters(config: SearchConfig, client: Optional[httpx.AsyncClient] = None) -> Tuple[ProviderAdapter, Optional[ProviderAdapter]]:
    common = {"client": client, "timeout": config.timeout}

    if config.results_provider is ResultsProvider.REST:
        if not config.results_endpoint:
            raise ValueError("SEARCH_API_URL must be set when SEARCH_RESULTS_PROVIDER is 'rest'")
        results_adapter: ProviderAdapter = RestAdapter(config.results_endpoint, base_url=config.base_url, **common)
    elif config.results_provider is ResultsProvider.KNOWLEDGE_GRAPH:
        results_adapter = KnowledgeGraphAdapter(
            endpoint=config.knowledge_endpoint,
            proxy_template=config.proxy_template,
            exclude_self_links=config.exclude_self_links,
            app_name=config.app_name,
            **common
        )
    else:
        results_adapter = MockAdapter(**common)

    images_adapter: Optional[ProviderAdapter] = None
    if config.images_provider is ImagesProvider.METADATA:
        images_adapter = ImageMetadataAdapter(endpoint=config.images_endpoint, **common)
    elif config.images_provider is ImagesProvider.PLACEHOLDER:
        images_adapter = PlaceholderImageAdapter(**common)

    return results_adapter, images_adapter


def build_aggregator(config: SearchConfig, client: Optional[httpx.AsyncClient] = None) -> Aggregator:
    """Selects the adapter set once, from configuration."""
    # adapters first: a bad configuration must fail before a client is opened
    results_adapter, images_adapter = build_adapters(config, client)
    if client is None:
        client = httpx.AsyncClient(timeout=config.timeout, follow_redirects=True)
        for adapter in (results_adapter, images_adapter):
            if adapter is not None:
                adapter.client = client
    return Aggregator(
        results_adapter,
        images_adapter,
        failure_policy=config.failure_policy,
        placeholder_fallback=config.placeholder_images,
        timeout=config.timeout,
        client=client,
    )
