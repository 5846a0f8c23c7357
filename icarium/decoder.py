"""Decoding of raw queue messages into build trigger events."""

from pydantic import ValidationError

from icarium.exceptions import DecodeError
from icarium.models.event import BuildTriggerEvent, QueueEnvelope, TriggerPayload


def decode_message(body: str) -> BuildTriggerEvent:
    """Decode a queue message body.

    The body is a transport envelope whose ``Message`` field carries the
    trigger payload as a second, embedded JSON document.

    Raises:
        DecodeError: If either the envelope or the embedded payload is malformed

    """
    try:
        envelope = QueueEnvelope.model_validate_json(body)
    except ValidationError as e:
        raise DecodeError("envelope", str(e)) from e

    try:
        payload = TriggerPayload.model_validate_json(envelope.message)
    except ValidationError as e:
        raise DecodeError("payload", str(e)) from e

    return BuildTriggerEvent.from_payload(payload)
