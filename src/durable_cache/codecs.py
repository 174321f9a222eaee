"""
Durable Cache — Serialization Strategies

Encoder and Decoder are independent capabilities injected into a cache.
Either may be an object with an ``encode``/``decode`` method or a plain
callable of the same shape.

The default strategy is JSON driven by a Pydantic TypeAdapter, so any type
Pydantic understands (BaseModel, dataclasses, TypedDict, containers,
primitives) can be cached without extra glue:

    encoder = JSONEncoder(Settings)
    decoder = JSONDecoder(Settings)
    data = encoder.encode(Settings(theme="dark"))
    settings = decoder.decode(data)
"""

from __future__ import annotations

import json
import logging
import math
from collections.abc import Callable
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import PydanticUserError, TypeAdapter, ValidationError
from pydantic_core import to_jsonable_python

from .config import CodecConfig, NonConformingFloatStrategy
from .errors import ConfigurationError, DecodeError, EncodeError

logger = logging.getLogger(__name__)

V = TypeVar("V")
V_co = TypeVar("V_co", covariant=True)
V_contra = TypeVar("V_contra", contravariant=True)


@runtime_checkable
class Encoder(Protocol[V_contra]):
    """Turns a typed value into bytes. Raises EncodeError on failure."""

    def encode(self, value: V_contra) -> bytes: ...


@runtime_checkable
class Decoder(Protocol[V_co]):
    """Turns bytes back into a typed value. Raises DecodeError on failure."""

    def decode(self, data: bytes) -> V_co: ...


def type_name(value_type: Any) -> str:
    """Readable name for a value type, including generic aliases."""
    return getattr(value_type, "__name__", None) or repr(value_type)


def _build_adapter(value_type: Any) -> TypeAdapter[Any]:
    try:
        return TypeAdapter(value_type)
    except PydanticUserError as e:
        raise ConfigurationError(
            f"Cannot build a JSON strategy for {type_name(value_type)}: {e}",
            details={"value_type": type_name(value_type), "error": str(e)},
        ) from e


def resolve_encoder(encoder: Encoder[V] | Callable[[V], bytes]) -> Callable[[V], bytes]:
    """Return the encode callable for an Encoder object or plain function."""
    if isinstance(encoder, Encoder):
        return encoder.encode
    return encoder


def resolve_decoder(decoder: Decoder[V] | Callable[[bytes], V]) -> Callable[[bytes], V]:
    """Return the decode callable for a Decoder object or plain function."""
    if isinstance(decoder, Decoder):
        return decoder.decode
    return decoder


class JSONEncoder(Generic[V]):
    """
    JSON encoder for a single value type.

    Values are first dumped by Pydantic (models and dataclasses become dicts),
    then written with the standard json module. Non-finite floats follow the
    configured NonConformingFloatStrategy:

    - raise: EncodeError (JSON has no representation for them)
    - constants: Infinity / -Infinity / NaN literals
    - strings: the configured tokens, e.g. "INF", "-INF", "NaN"
    """

    def __init__(self, value_type: Any, config: CodecConfig | None = None):
        """
        Initialize JSON encoder.

        Args:
            value_type: Type of the values this encoder accepts
            config: Codec options (float strategy, indentation, key order)

        Raises:
            ConfigurationError: If Pydantic cannot handle value_type
        """
        self.value_type = value_type
        self.config = config or CodecConfig()
        self._adapter = _build_adapter(value_type)

    def encode(self, value: V) -> bytes:
        """Encode value to UTF-8 JSON bytes."""
        strategy = self.config.float_strategy

        try:
            # warnings="error" turns a value that does not fit value_type into a failure
            payload = self._adapter.dump_python(value, mode="python", warnings="error")
            if strategy == NonConformingFloatStrategy.STRINGS:
                payload = self._replace_non_finite(payload)

            text = json.dumps(
                payload,
                default=to_jsonable_python,
                allow_nan=strategy == NonConformingFloatStrategy.CONSTANTS,
                indent=self.config.indent,
                separators=(",", ":") if self.config.indent is None else (",", ": "),
                sort_keys=self.config.sort_keys,
                ensure_ascii=False,
            )
        except (ValueError, TypeError, RecursionError) as e:
            raise EncodeError(
                f"Cannot encode {type(value).__name__} as {type_name(self.value_type)}: {e}",
                details={
                    "value_type": type_name(self.value_type),
                    "float_strategy": str(strategy.value),
                    "error": str(e),
                },
            ) from e

        return text.encode("utf-8")

    def _replace_non_finite(self, obj: Any) -> Any:
        if isinstance(obj, float) and not math.isfinite(obj):
            if math.isnan(obj):
                return self.config.nan
            return self.config.positive_infinity if obj > 0 else self.config.negative_infinity
        if isinstance(obj, dict):
            return {key: self._replace_non_finite(item) for key, item in obj.items()}
        if isinstance(obj, (list, tuple, set, frozenset)):
            return [self._replace_non_finite(item) for item in obj]
        return obj


class JSONDecoder(Generic[V]):
    """
    JSON decoder for a single value type.

    Bytes are parsed with the json module and validated by Pydantic, so a
    missing required field, a null in a non-optional field or a type mismatch
    all raise DecodeError.

    With the strings float strategy, token strings are turned back into floats
    only when the payload does not validate as-is, so string fields that happen
    to hold a token keep their value.
    """

    def __init__(self, value_type: Any, config: CodecConfig | None = None):
        """
        Initialize JSON decoder.

        Args:
            value_type: Type that decoded payloads must validate against
            config: Codec options (float tokens)

        Raises:
            ConfigurationError: If Pydantic cannot handle value_type
        """
        self.value_type = value_type
        self.config = config or CodecConfig()
        self._adapter = _build_adapter(value_type)

    def decode(self, data: bytes) -> V:
        """Decode UTF-8 JSON bytes into a validated value."""
        try:
            payload = json.loads(data)
        except ValueError as e:
            # JSONDecodeError and UnicodeDecodeError are both ValueErrors
            raise DecodeError(
                f"Malformed JSON payload for {type_name(self.value_type)}: {e}",
                details={"value_type": type_name(self.value_type), "size": len(data), "error": str(e)},
            ) from e

        try:
            return self._adapter.validate_python(payload)
        except ValidationError as e:
            error = e

        if self.config.float_strategy == NonConformingFloatStrategy.STRINGS:
            restored, replaced = self._restore_non_finite(payload)
            if replaced:
                try:
                    return self._adapter.validate_python(restored)
                except ValidationError as retry_error:
                    error = retry_error

        raise DecodeError(
            f"Payload does not match {type_name(self.value_type)}: {error.error_count()} validation error(s)",
            details={"value_type": type_name(self.value_type), "errors": error.errors(include_url=False)},
        ) from error

    def _restore_non_finite(self, obj: Any) -> tuple[Any, int]:
        tokens = {
            self.config.positive_infinity: math.inf,
            self.config.negative_infinity: -math.inf,
            self.config.nan: math.nan,
        }
        if isinstance(obj, str) and obj in tokens:
            return tokens[obj], 1
        if isinstance(obj, dict):
            replaced = 0
            restored_dict = {}
            for key, item in obj.items():
                restored_dict[key], count = self._restore_non_finite(item)
                replaced += count
            return restored_dict, replaced
        if isinstance(obj, list):
            replaced = 0
            restored_list = []
            for item in obj:
                restored_item, count = self._restore_non_finite(item)
                restored_list.append(restored_item)
                replaced += count
            return restored_list, replaced
        return obj, 0


def default_strategy(
    value_type: Any,
    config: CodecConfig | None = None,
) -> tuple[JSONEncoder[Any], JSONDecoder[Any]]:
    """
    Build the default encoder/decoder pair for a value type.

    Args:
        value_type: Type of the cached values
        config: Codec options shared by both halves

    Returns:
        (encoder, decoder) agreeing on one wire format
    """
    logger.debug("Building default JSON strategy for %s", type_name(value_type))
    return JSONEncoder(value_type, config), JSONDecoder(value_type, config)
