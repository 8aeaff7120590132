"""EnvelopeSerializer: JSON then base64, with typed payload decoding."""

from __future__ import annotations

import base64
import binascii
from typing import Any, Generic

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from .envelope import Envelope, PayloadT
from .exceptions import MessagingSerializationError


class EnvelopeSerializer(Generic[PayloadT]):
    """Encode/decode ``Envelope[PayloadT]`` to/from the base64 wire form.

    The payload type is supplied by the caller; decoding validates the payload
    against it.
    """

    def __init__(self, payload_type: Any = Any) -> None:
        """Pass the payload type, e.g. a pydantic model or ``str``."""
        self._payload_type = payload_type
        self._model: type[Envelope[Any]] = Envelope[payload_type]  # type: ignore[valid-type]

    @property
    def payload_type(self) -> Any:
        return self._payload_type

    def to_json(self, envelope: Envelope[PayloadT]) -> bytes:
        """Encode envelope to compact JSON bytes."""
        try:
            return envelope.model_dump_json().encode("utf-8")
        except (PydanticSerializationError, TypeError, ValueError) as e:
            raise MessagingSerializationError(f"failed to marshal event: {e}") from e

    def serialize(self, envelope: Envelope[PayloadT]) -> str:
        """Encode envelope to base64 of its JSON form."""
        return base64.b64encode(self.to_json(envelope)).decode("ascii")

    def deserialize(self, data: str | bytes) -> Envelope[PayloadT]:
        """Decode base64 then JSON into a typed envelope."""
        try:
            raw = base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MessagingSerializationError(
                f"failed to decode base64 data: {e}"
            ) from e
        try:
            return self._model.model_validate_json(raw)
        except ValidationError as e:
            raise MessagingSerializationError(f"failed to decode event: {e}") from e
