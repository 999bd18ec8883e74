"""Response schemas for the REST search backends.

Each provider payload is validated once at the client boundary; a missing
required field becomes a ``malformed_response`` error instead of a None
leaking into the pipeline.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from api.base_client import BackendClientError
from utils.logger import get_logger

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def decode(schema: type[SchemaT], payload: Any, provider: str) -> SchemaT:
    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        raise BackendClientError(
            "malformed_response",
            f"Unexpected {provider} response shape: {e.error_count()} validation error(s)",
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        ) from e


def _unwrap_value(value: Any) -> Any:
    # MedlinePlus wraps text nodes as {"_value": "..."}
    if isinstance(value, dict):
        return value.get("_value", "")
    return "" if value is None else value


# ---- PubMed E-utilities ----


class ESearchResult(BaseModel):
    idlist: list[str] = Field(default_factory=list)
    # E-utilities reports query failures here with HTTP 200
    error: str | None = Field(default=None, alias="ERROR")


class ESearchResponse(BaseModel):
    esearchresult: ESearchResult


class PubMedAuthor(BaseModel):
    name: str = ""


class PubMedArticle(BaseModel):
    title: str = ""
    authors: list[PubMedAuthor] = Field(default_factory=list)
    source: str = ""
    pubdate: str = ""


class ESummaryResponse(BaseModel):
    result: dict[str, Any]

    def article(self, uid: str) -> PubMedArticle | None:
        raw = self.result.get(uid)
        if not isinstance(raw, dict):
            return None
        try:
            return PubMedArticle.model_validate(raw)
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed PubMed article {uid}",
                extra={"extra_fields": {"uid": uid, "error_count": e.error_count()}},
            )
            return None


# ---- MedlinePlus Connect ----


class MedlinePlusLink(BaseModel):
    href: str | None = None
    rel: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_attributes(cls, data: Any) -> Any:
        if isinstance(data, dict) and isinstance(data.get("$"), dict):
            return data["$"]
        return data


class MedlinePlusEntry(BaseModel):
    title: str = ""
    summary: str = ""
    link: list[MedlinePlusLink] = Field(default_factory=list)

    @field_validator("title", "summary", mode="before")
    @classmethod
    def _text(cls, value: Any) -> Any:
        return _unwrap_value(value)

    @field_validator("link", mode="before")
    @classmethod
    def _links(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            return [value]
        return value

    def alternate_url(self) -> str | None:
        for link in self.link:
            if link.rel == "alternate" and link.href:
                return link.href
        return None


class MedlinePlusFeed(BaseModel):
    entry: list[MedlinePlusEntry] = Field(default_factory=list)

    @field_validator("entry", mode="before")
    @classmethod
    def _entries(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, dict):
            return [value]
        return value


class MedlinePlusResponse(BaseModel):
    feed: MedlinePlusFeed


# ---- Google Custom Search ----


class CustomSearchItem(BaseModel):
    title: str = ""
    link: str | None = None
    snippet: str = ""


class CustomSearchResponse(BaseModel):
    # Google omits "items" entirely when nothing matched
    items: list[CustomSearchItem] = Field(default_factory=list)
