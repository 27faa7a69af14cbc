import os
from enum import Enum
from typing import Dict, Optional
from pydantic import BaseModel, Field, model_validator

DEFAULT_KNOWLEDGE_URL = "https://api.duckduckgo.com/"
DEFAULT_IMAGES_URL = "https://en.wikipedia.org/w/api.php"
DEFAULT_BRAVE_URL = "https://api.search.brave.com/res/v1/web/search"

class ResultsProvider(str, Enum):
    REST = "rest"
    KNOWLEDGE_GRAPH = "knowledge_graph"
    MOCK = "mock"

class ImagesProvider(str, Enum):
    METADATA = "metadata"
    PLACEHOLDER = "placeholder"
    NONE = "none"

class FailurePolicy(str, Enum):
    RESILIENT = "resilient"
    STRICT = "strict"

SEARCH_ENV = {
    "results_provider": "SEARCH_RESULTS_PROVIDER",
    "images_provider": "SEARCH_IMAGES_PROVIDER",
    "results_endpoint": "SEARCH_API_URL",
    "knowledge_endpoint": "SEARCH_KNOWLEDGE_URL",
    "images_endpoint": "SEARCH_IMAGES_URL",
    "proxy_template": "SEARCH_PROXY_URL",
    "base_url": "SEARCH_BASE_URL",
    "timeout": "SEARCH_TIMEOUT_SEC",
    "failure_policy": "SEARCH_FAILURE_POLICY",
    "placeholder_images": "SEARCH_PLACEHOLDER_IMAGES",
    "exclude_self_links": "SEARCH_EXCLUDE_SELF_LINKS",
}

RELAY_ENV = {
    "port": "PORT",
    "api_key": "BRAVE_API_KEY",
    "upstream_url": "BRAVE_SEARCH_URL",
    "timeout": "BRAVE_TIMEOUT_SEC",
}

def _read_env(mapping: Dict[str, str]) -> Dict[str, str]:
    """Raw strings for every variable that is set and non-blank; the model does the parsing."""
    values = {}
    for field, name in mapping.items():
        value = os.getenv(name)
        if value and value.strip():
            values[field] = value.strip()
    return values

class SearchConfig(BaseModel):
    """Everything the aggregator needs, resolved once at construction time."""

    results_provider: ResultsProvider = ResultsProvider.KNOWLEDGE_GRAPH
    images_provider: ImagesProvider = ImagesProvider.NONE
    results_endpoint: Optional[str] = None
    knowledge_endpoint: str = DEFAULT_KNOWLEDGE_URL
    images_endpoint: str = DEFAULT_IMAGES_URL
    proxy_template: Optional[str] = None
    base_url: str = "http://localhost:3001"
    timeout: float = Field(default=5.0, gt=0)
    failure_policy: FailurePolicy = FailurePolicy.RESILIENT
    placeholder_images: bool = False
    exclude_self_links: bool = False
    app_name: str = "metasearch"

    @model_validator(mode="after")
    def check_results_endpoint(self) -> "SearchConfig":
        if self.results_provider is ResultsProvider.REST and not self.results_endpoint:
            raise ValueError("SEARCH_API_URL must be set when SEARCH_RESULTS_PROVIDER is 'rest'")
        return self

    @classmethod
    def from_env(cls) -> "SearchConfig":
        """Raises pydantic.ValidationError (a ValueError) on malformed settings."""
        values = _read_env(SEARCH_ENV)
        if "results_provider" not in values and values.get("results_endpoint"):
            values["results_provider"] = ResultsProvider.REST.value
        return cls(**values)

class RelaySettings(BaseModel):
    port: int = 3001
    api_key: Optional[str] = None
    upstream_url: str = DEFAULT_BRAVE_URL
    timeout: float = Field(default=10.0, gt=0)

    @classmethod
    def from_env(cls) -> "RelaySettings":
        return cls(**_read_env(RELAY_ENV))
