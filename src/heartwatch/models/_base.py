"""Base model for heartwatch wire payloads.

Every payload model inherits from :class:`HeartwatchBaseModel` which
maps snake_case fields to the camelCase keys the server expects
(``heart_rate`` → ``heartRate``) via ``alias_generator=to_camel``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HeartwatchBaseModel(BaseModel):
    """Immutable model serialised with camelCase keys."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    def to_wire(self) -> dict[str, Any]:
        """Return the JSON-ready dict sent over the network."""
        return self.model_dump(mode="json", by_alias=True)
