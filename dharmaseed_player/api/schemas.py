"""Pydantic response schemas specific to the HTTP layer.

Catalog payloads (talk pages, talk detail, teacher matches) are the domain
models from :mod:`dharmaseed_player.models.catalog` served as-is; this
module only adds the envelopes that have no domain counterpart.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ErrorResponse(BaseModel):
    """Standard error response body, e.g. ``{"error": "Talk not found"}``."""

    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    """Liveness payload with the teacher directory lifecycle state."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = "ok"
    version: str
    teacher_directory: str
