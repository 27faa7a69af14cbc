import asyncio
import time
import urllib.parse
from typing import Any, Dict, Iterator, List, Optional
import httpx
from metasearch.api.schemas import Region, SearchImage, SearchResponse, SearchResult, parse_region
from metasearch.errors import NetworkError, UpstreamError
from metasearch.services.validator import validate_images, validate_result, validate_results
from metasearch.utils.logger import logger
from metasearch.utils.metrics import UPSTREAM_DURATION, UPSTREAM_REQUESTS

MAX_RESULTS = 8
MAX_IMAGES = 6
TOPIC_SEPARATOR = " - "


class ProviderAdapter:
    """
    Shared plumbing for one upstream family: a single GET, status checking
    and JSON decoding. Subclasses only know their request and response shapes.
    """

    name = "provider"

    def __init__(self, client: Optional[httpx.AsyncClient] = None, timeout: float = 10.0):
        self.client = client
        self.timeout = timeout

    async def _get(self, url: str, params: Optional[Dict[str, str]] = None) -> httpx.Response:
        headers = {"Accept": "application/json"}
        if self.client is not None:
            return await self.client.get(url, params=params, headers=headers, timeout=self.timeout)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await client.get(url, params=params, headers=headers)

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        start_time = time.time()
        try:
            response = await self._get(url, params)
        except httpx.HTTPError as e:
            UPSTREAM_REQUESTS.labels(provider=self.name, status="exception").inc()
            logger.error(f"{self.name} request error: {e}", extra={"provider": self.name})
            raise NetworkError(f"{self.name} request failed: {e}", provider=self.name) from e
        finally:
            UPSTREAM_DURATION.labels(provider=self.name).observe(time.time() - start_time)

        if not response.is_success:
            UPSTREAM_REQUESTS.labels(provider=self.name, status="error").inc()
            logger.warning(f"{self.name} failed with status {response.status_code}", extra={"provider": self.name, "status": response.status_code})
            raise UpstreamError(response.status_code, response.text, provider=self.name)

        try:
            data = response.json()
        except ValueError as e:
            UPSTREAM_REQUESTS.labels(provider=self.name, status="error").inc()
            logger.warning(f"{self.name} returned a non-JSON body", extra={"provider": self.name})
            raise UpstreamError(response.status_code, "Upstream returned invalid JSON.", provider=self.name) from e

        UPSTREAM_REQUESTS.labels(provider=self.name, status="success").inc()
        return data

    async def search(self, query: str, region: Optional[Region] = None) -> SearchResponse:
        raise NotImplementedError

    async def fetch_images(self, query: str) -> List[SearchImage]:
        raise NotImplementedError


class RestAdapter(ProviderAdapter):
    """Generic REST shape: the upstream already answers with {results, images}."""

    name = "rest"

    def __init__(self, endpoint: str, base_url: str = "http://localhost:3001", **kwargs):
        super().__init__(**kwargs)
        if not endpoint.lower().startswith(("http://", "https://")):
            endpoint = urllib.parse.urljoin(base_url, endpoint)
        self.endpoint = endpoint

    def build_params(self, query: str, region: Any = None) -> Dict[str, str]:
        params = {"q": query}
        parsed = parse_region(region)
        if parsed is not None:
            params["region"] = parsed.value
        return params

    async def fetch_generic(self, query: str, region: Any = None) -> SearchResponse:
        data = await self._get_json(self.endpoint, self.build_params(query, region))
        if not isinstance(data, dict):
            data = {}
        return SearchResponse(
            results=validate_results(data.get("results")),
            images=validate_images(data.get("images")),
        )

    async def search(self, query: str, region: Optional[Region] = None) -> SearchResponse:
        return await self.fetch_generic(query, region)


def build_proxy_url(template: str, target: str) -> str:
    encoded = urllib.parse.quote(target, safe="")
    if "{url}" in template:
        return template.replace("{url}", encoded)
    return f"{template}{encoded}"


def iter_topic_leaves(nodes: Any) -> Iterator[dict]:
    """Depth-first over a topic tree; branches yield only their descendants."""
    if not isinstance(nodes, list):
        return
    for node in nodes:
        if not isinstance(node, dict):
            continue
        if isinstance(node.get("Topics"), list):
            yield from iter_topic_leaves(node["Topics"])
        else:
            yield node


def topic_to_result(topic: dict) -> Optional[SearchResult]:
    text = topic.get("Text")
    url = topic.get("FirstURL")
    if not isinstance(text, str) or not isinstance(url, str):
        return None
    title, separator, snippet = text.partition(TOPIC_SEPARATOR)
    if not separator:
        title, snippet = text, ""
    return validate_result({"title": title, "url": url, "snippet": snippet})


def _host(url: str) -> str:
    try:
        return (urllib.parse.urlsplit(url).hostname or "").lower()
    except ValueError:
        return ""


def _non_empty_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


class KnowledgeGraphAdapter(ProviderAdapter):
    """Instant-answer style API: nested RelatedTopics plus an optional abstract."""

    name = "knowledge_graph"

    def __init__(
        self,
        endpoint: str = "https://api.duckduckgo.com/",
        proxy_template: Optional[str] = None,
        exclude_self_links: bool = False,
        app_name: str = "metasearch",
        **kwargs
    ):
        super().__init__(**kwargs)
        self.endpoint = endpoint
        self.proxy_template = proxy_template
        self.exclude_self_links = exclude_self_links
        self.app_name = app_name
        host = _host(endpoint)
        self.own_domain = ".".join(host.split(".")[-2:]) if host else ""

    def build_url(self, query: str) -> str:
        target = str(httpx.URL(self.endpoint, params={
            "q": query,
            "format": "json",
            "no_redirect": "1",
            "no_html": "1",
            "skip_disambig": "1",
            "t": self.app_name,
        }))
        if self.proxy_template:
            return build_proxy_url(self.proxy_template, target)
        return target

    def _is_self_link(self, url: str) -> bool:
        if not self.own_domain:
            return False
        host = _host(url)
        return host == self.own_domain or host.endswith("." + self.own_domain)

    def normalize(self, query: str, data: Any) -> List[SearchResult]:
        if not isinstance(data, dict):
            return []

        results: List[SearchResult] = []
        for key in ("Results", "RelatedTopics", "Topics"):
            for topic in iter_topic_leaves(data.get(key)):
                result = topic_to_result(topic)
                if result is None:
                    continue
                if self.exclude_self_links and self._is_self_link(result.url):
                    continue
                results.append(result)

        abstract_url = _non_empty_str(data.get("AbstractURL"))
        if not results and abstract_url:
            snippet = (
                _non_empty_str(data.get("AbstractText"))
                or _non_empty_str(data.get("Abstract"))
                or f"Learn more about {query}."
            )
            results.append(SearchResult(
                title=_non_empty_str(data.get("Heading")) or query,
                url=abstract_url,
                snippet=snippet,
            ))

        return results[:MAX_RESULTS]

    async def fetch_knowledge_graph(self, query: str) -> List[SearchResult]:
        data = await self._get_json(self.build_url(query))
        return self.normalize(query, data)

    async def search(self, query: str, region: Optional[Region] = None) -> SearchResponse:
        return SearchResponse(results=await self.fetch_knowledge_graph(query))


class ImageMetadataAdapter(ProviderAdapter):
    """MediaWiki page map: {query: {pages: {<pageid>: {title, thumbnail: {source}}}}}."""

    name = "image_metadata"

    def __init__(self, endpoint: str = "https://en.wikipedia.org/w/api.php", thumb_size: int = 400, **kwargs):
        super().__init__(**kwargs)
        self.endpoint = endpoint
        self.thumb_size = thumb_size
        parts = urllib.parse.urlsplit(endpoint)
        self.page_base = f"{parts.scheme}://{parts.netloc}/wiki/"

    def build_params(self, query: str) -> Dict[str, str]:
        return {
            "action": "query",
            "generator": "search",
            "gsrsearch": query,
            "gsrlimit": str(MAX_IMAGES * 2),
            "prop": "pageimages",
            "piprop": "thumbnail",
            "pithumbsize": str(self.thumb_size),
            "format": "json",
        }

    def page_link(self, title: str) -> str:
        return self.page_base + urllib.parse.quote(title.replace(" ", "_"))

    def normalize(self, data: Any) -> List[SearchImage]:
        block = data.get("query") if isinstance(data, dict) else None
        pages = block.get("pages") if isinstance(block, dict) else None
        # page ids are opaque; keep whatever order the mapping yields
        if isinstance(pages, dict):
            pages = list(pages.values())
        if not isinstance(pages, list):
            return []

        images: List[SearchImage] = []
        for page in pages:
            if not isinstance(page, dict) or not isinstance(page.get("thumbnail"), dict):
                continue
            thumbnail = _non_empty_str(page["thumbnail"].get("source"))
            title = _non_empty_str(page.get("title"))
            if thumbnail is None or title is None:
                continue
            images.append(SearchImage(title=title, url=thumbnail, source_url=self.page_link(title)))
            if len(images) >= MAX_IMAGES:
                break
        return images

    async def fetch_images(self, query: str) -> List[SearchImage]:
        data = await self._get_json(self.endpoint, self.build_params(query))
        return self.normalize(data)


def placeholder_images(query: str, count: int = MAX_IMAGES) -> List[SearchImage]:
    encoded = urllib.parse.quote(query, safe="")
    return [
        SearchImage(
            title=f"{query} image {index + 1}",
            url=f"https://source.unsplash.com/featured/400x300?{encoded}&sig={index}",
            source_url=f"https://unsplash.com/s/photos/{encoded}",
        )
        for index in range(count)
    ]


class PlaceholderImageAdapter(ProviderAdapter):
    name = "placeholder"

    async def fetch_images(self, query: str) -> List[SearchImage]:
        return placeholder_images(query)


class MockAdapter(ProviderAdapter):
    """Canned suggestions pointing at well-known sites; no network involved."""

    name = "mock"

    def __init__(self, delay: float = 0.0, **kwargs):
        super().__init__(**kwargs)
        self.delay = delay

    def canned_results(self, query: str) -> List[SearchResult]:
        encoded = urllib.parse.quote_plus(query)
        return [
            SearchResult(
                title=f"{query} - Wikipedia",
                url=f"https://en.wikipedia.org/w/index.php?search={encoded}",
                snippet=f"Encyclopedia articles that mention {query}.",
            ),
            SearchResult(
                title=f"{query} on GitHub",
                url=f"https://github.com/search?q={encoded}",
                snippet=f"Repositories, code and issues related to {query}.",
            ),
            SearchResult(
                title=f"{query} - Stack Overflow",
                url=f"https://stackoverflow.com/search?q={encoded}",
                snippet=f"Questions and answers about {query}.",
            ),
        ]

    async def search(self, query: str, region: Optional[Region] = None) -> SearchResponse:
        if self.delay:
            await asyncio.sleep(self.delay)
        return SearchResponse(results=self.canned_results(query))
