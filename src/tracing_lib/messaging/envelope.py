"""Envelope: immutable wire wrapper carrying trace headers, payload and retry count."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

PayloadT = TypeVar("PayloadT")

TRACEPARENT = "traceparent"
TRACESTATE = "tracestate"


class EventHeader(BaseModel):
    """Propagation fields travelling with the payload."""

    model_config = ConfigDict(frozen=True)

    key: str = ""
    traceparent: str = ""
    tracestate: str = ""


class Envelope(BaseModel, Generic[PayloadT]):
    """Immutable message wrapper.

    ``retries`` starts at 0 and only grows; a retried message is a new envelope
    built with :meth:`next_attempt`.
    """

    model_config = ConfigDict(frozen=True)

    header: EventHeader = Field(default_factory=EventHeader)
    payload: PayloadT
    retries: int = Field(default=0, ge=0, description="Redelivery count")

    def headers(self) -> dict[str, str]:
        """Return the propagation headers that are set."""
        values = {
            TRACEPARENT: self.header.traceparent,
            TRACESTATE: self.header.tracestate,
        }
        return {k: v for k, v in values.items() if v}

    def with_headers(self, headers: Mapping[str, str]) -> Envelope[PayloadT]:
        """Return a copy whose header carries *headers*' trace fields."""
        header = self.header.model_copy(
            update={
                TRACEPARENT: headers.get(TRACEPARENT, ""),
                TRACESTATE: headers.get(TRACESTATE, ""),
            }
        )
        return self.model_copy(update={"header": header})

    def next_attempt(self) -> Envelope[PayloadT]:
        """Return a copy with the retry count incremented."""
        return self.model_copy(update={"retries": self.retries + 1})
