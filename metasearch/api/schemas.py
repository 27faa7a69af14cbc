from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Any, Optional, List

class Region(str, Enum):
    GLOBAL = "global"
    US = "us"
    EU = "eu"
    ASIA = "asia"

def parse_region(value: Any) -> Optional[Region]:
    """Unknown, blank or non-string regions mean "no region constraint"."""
    if isinstance(value, Region):
        return value
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        return Region(value.strip().lower())
    except ValueError:
        return None

class SearchResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    url: str
    snippet: str = ""

class SearchImage(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    url: str
    source_url: Optional[str] = Field(default=None, alias="sourceUrl")

class SearchResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    results: List[SearchResult] = []
    images: List[SearchImage] = []
    notice: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)

class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
