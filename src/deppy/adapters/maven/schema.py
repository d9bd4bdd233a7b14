"""Maven Central search response schemas."""

from __future__ import annotations

from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field


class MavenBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class MavenDocument(MavenBaseModel):
    id: str | None = None
    group: str = Field(alias="g")
    artifact: str = Field(alias="a")
    version: str = Field(alias="v")
    timestamp: int | None = None


class MavenSearchResult(MavenBaseModel):
    num_found: int = Field(default=0, alias="numFound")
    docs: list[MavenDocument] = Field(default_factory=list)


class MavenSearchResponse(MavenBaseModel):
    response: MavenSearchResult | None = None

    def versions(self) -> list[str]:
        if self.response is None:
            return []
        return [document.version for document in self.response.docs]


def has_documents(payload: object) -> bool:
    """Cache predicate: empty search results are not worth keeping."""

    if not isinstance(payload, dict):
        return False
    response = cast(dict[str, Any], payload).get("response")
    if not isinstance(response, dict):
        return False
    return bool(cast(dict[str, Any], response).get("docs"))
