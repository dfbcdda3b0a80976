# src/api/models.py — v2
"""API-level models: request payload parsing and the response envelope."""

from __future__ import annotations

from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter

from groupavail.aggregation.models import AggregationResult
from groupavail.core.models import AvailabilityRequest, CacheBucket


class LegacyBuffer(BaseModel):
    """Legacy ``buffer`` object, minutes before and after each meeting."""

    before: int = Field(default=0, ge=0)
    after: int = Field(default=0, ge=0)


# An int applies to both sides; absent or null means no buffer.
_legacy_buffer = TypeAdapter(
    Optional[Union[Annotated[int, Field(ge=0)], LegacyBuffer]]
)


def parse_request_payload(
    payload: dict[str, Any],
    default_bucket: CacheBucket | str | None = None,
) -> AvailabilityRequest:
    """Validate a raw request body into an AvailabilityRequest.

    Accepts the canonical shape (``duration_buffer``, ``cache_bucket``) and
    the legacy flat shape::

        {"members": [...], "query_periods": [...],
         "duration": 30, "buffer": {"before": 5, "after": 5}}

    ``buffer`` may also be a single non-negative integer applied before and
    after; anything else is rejected.
    ``default_bucket`` fills ``cache_bucket`` when the payload has none.

    Raises:
        pydantic.ValidationError: If the payload is malformed.
    """
    data = dict(payload)

    if "duration_buffer" not in data and "duration" in data:
        buffer = _legacy_buffer.validate_python(data.pop("buffer", None))
        if buffer is None:
            before = after = 0
        elif isinstance(buffer, LegacyBuffer):
            before, after = buffer.before, buffer.after
        else:
            before = after = buffer
        data["duration_buffer"] = {
            "duration_minutes": data.pop("duration"),
            "buffer_before_minutes": before,
            "buffer_after_minutes": after,
        }

    if data.get("cache_bucket") is None and default_bucket is not None:
        data["cache_bucket"] = CacheBucket(default_bucket)

    return AvailabilityRequest.model_validate(data)


class ResponseEnvelope(BaseModel):
    """``{"success": ..., "data": ...}`` body returned to callers."""

    success: bool
    data: AggregationResult | None = None
    error: str | None = None
    message: str | None = None

    @classmethod
    def ok(cls, result: AggregationResult) -> ResponseEnvelope:
        return cls(success=True, data=result)

    @classmethod
    def failure(cls, error: str, exc: BaseException | None = None, debug: bool = False) -> ResponseEnvelope:
        """Error envelope; the exception text is only exposed in debug mode."""
        message = str(exc) if (exc is not None and debug) else "Something went wrong"
        return cls(success=False, error=error, message=message)
