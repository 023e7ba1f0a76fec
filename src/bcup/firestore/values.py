"""Firestore REST typed values <-> plain JSON values

The REST API wraps every field in a single-key object naming its kind::

    {"mapValue": {"fields": {"a": {"integerValue": "5"}}}}

Plain values are the closed set None, bool, int, float, str, list and dict.
Two conversions lose information and are kept on purpose so files and
writes stay compatible with existing backups:

- An empty list encodes to an empty ``mapValue`` (same as an empty dict),
  unless the caller passes ``preserve_empty_arrays=True``.
- Timestamp, geo-point, reference and bytes values decode to their wire
  payload (a string or a lat/lng dict). Encoding that payload again yields a
  ``stringValue`` or ``mapValue``, not the original kind.
"""

from typing import Any, Dict, List, Mapping, Union

from bcup.exceptions import ValidationError

PlainValue = Union[None, bool, int, float, str, List["PlainValue"], Dict[str, "PlainValue"]]
WireValue = Dict[str, Any]

# Kinds whose payload is returned as-is
PASSTHROUGH_KINDS = (
    "stringValue",
    "booleanValue",
    "timestampValue",
    "geoPointValue",
    "referenceValue",
    "bytesValue",
)


def decode_value(wire: Mapping[str, Any]) -> PlainValue:
    """Convert one typed wire value to a plain value.

    Unknown or missing kinds decode to None.
    """
    if "nullValue" in wire:
        return None
    if "integerValue" in wire:
        return int(wire["integerValue"])
    if "doubleValue" in wire:
        return float(wire["doubleValue"])
    if "mapValue" in wire:
        return decode_fields((wire["mapValue"] or {}).get("fields") or {})
    if "arrayValue" in wire:
        return [decode_value(v) for v in (wire["arrayValue"] or {}).get("values") or []]
    for kind in PASSTHROUGH_KINDS:
        if kind in wire:
            return wire[kind]
    return None


def decode_fields(fields: Mapping[str, Mapping[str, Any]]) -> Dict[str, PlainValue]:
    """Convert a REST ``fields`` map to a plain dict."""
    return {name: decode_value(value) for name, value in fields.items()}


def encode_value(value: Any, preserve_empty_arrays: bool = False) -> WireValue:
    """Convert a plain value to its typed wire form.

    Args:
        value: None, bool, int, float, str, list/tuple or dict
        preserve_empty_arrays: Encode ``[]`` as an empty ``arrayValue``
            instead of an empty ``mapValue``

    Raises:
        ValidationError: If the value is not a plain JSON value
    """
    if value is None:
        return {"nullValue": None}
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    if isinstance(value, str):
        return {"stringValue": value}
    if isinstance(value, (list, tuple)):
        if not value:
            if preserve_empty_arrays:
                return {"arrayValue": {}}
            return {"mapValue": {"fields": {}}}
        return {
            "arrayValue": {
                "values": [encode_value(v, preserve_empty_arrays) for v in value]
            }
        }
    if isinstance(value, dict):
        return {"mapValue": {"fields": encode_fields(value, preserve_empty_arrays)}}
    raise ValidationError(
        f"Cannot encode value of type {type(value).__name__}",
        code="UNSUPPORTED_VALUE",
        details={"type": type(value).__name__},
    )


def encode_fields(
    fields: Mapping[str, Any], preserve_empty_arrays: bool = False
) -> Dict[str, WireValue]:
    """Convert a plain dict to a REST ``fields`` map."""
    return {
        str(name): encode_value(value, preserve_empty_arrays)
        for name, value in fields.items()
    }


__all__ = [
    "PlainValue",
    "WireValue",
    "decode_value",
    "decode_fields",
    "encode_value",
    "encode_fields",
]
