"""
Decoding of response envelopes.

Backends answer either with the payload itself (``[...]`` / ``{...}``) or
wrapped under a key (``{"notes": [...]}`` / ``{"note": {...}}``). A body is
first classified into one of the variants below, then decoded.

Fallback: a collection body that matches neither shape decodes to an empty
list (and is logged); an entity body that matches neither shape is an error.
"""
import logging
from dataclasses import dataclass
from typing import Any, List, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from smarty.client.errors import ApiError

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Bare:
    payload: Any


@dataclass(frozen=True)
class Wrapped:
    key: str
    payload: Any


@dataclass(frozen=True)
class Unrecognized:
    payload: Any


Envelope = Union[Bare, Wrapped, Unrecognized]


def classify_collection(body: Any, key: str) -> Envelope:
    if isinstance(body, list):
        return Bare(body)
    if isinstance(body, dict) and isinstance(body.get(key), list):
        return Wrapped(key, body[key])
    return Unrecognized(body)


def classify_entity(body: Any, key: str) -> Envelope:
    if isinstance(body, dict):
        if isinstance(body.get(key), dict):
            return Wrapped(key, body[key])
        return Bare(body)
    return Unrecognized(body)


def _validate(model: Type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as e:
        raise ApiError(f"Invalid {model.__name__} in response: {e.error_count()} validation errors")


def decode_collection(body: Any, key: str, model: Type[M]) -> List[M]:
    """Decode a bare or ``{key: [...]}`` collection."""
    envelope = classify_collection(body, key)
    if isinstance(envelope, Unrecognized):
        logger.warning("Unexpected %s response shape (%s), treating as empty", key, type(body).__name__)
        return []
    return [_validate(model, item) for item in envelope.payload]


def decode_entity(body: Any, key: str, model: Type[M]) -> M:
    """Decode a bare or ``{key: {...}}`` entity."""
    envelope = classify_entity(body, key)
    if isinstance(envelope, Unrecognized):
        raise ApiError(f"Unexpected {key} response shape: {type(body).__name__}")
    return _validate(model, envelope.payload)
