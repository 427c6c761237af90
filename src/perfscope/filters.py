"""Resource list filtering for display and export."""

from __future__ import annotations

import math
from collections.abc import Iterable

from pydantic import BaseModel, Field

from perfscope.models import ResourceRecord
from perfscope.types import ResourceType


class ResourceFilter(BaseModel):
    """All criteria must hold for a resource to match. Empty ``domains`` means any host."""

    types: frozenset[ResourceType] = frozenset(ResourceType)
    domains: frozenset[str] = frozenset()
    min_size: int = Field(default=0, ge=0)
    max_size: int | None = None
    min_duration: float = Field(default=0.0, ge=0)
    max_duration: float = math.inf
    search_text: str = ""

    def matches(self, resource: ResourceRecord) -> bool:
        if resource.resource_type not in self.types:
            return False
        if self.domains and resource.domain not in self.domains:
            return False
        if resource.response_size < self.min_size:
            return False
        if self.max_size is not None and resource.response_size > self.max_size:
            return False
        if not self.min_duration <= resource.total_duration <= self.max_duration:
            return False
        if self.search_text and self.search_text.lower() not in resource.url.lower():
            return False
        return True

    def apply(self, resources: Iterable[ResourceRecord]) -> list[ResourceRecord]:
        return [r for r in resources if self.matches(r)]
