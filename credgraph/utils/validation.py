import hashlib
import json
from collections.abc import Callable, Iterable
from itertools import filterfalse
from typing import Any, TypeVar

T = TypeVar("T")


def canonicalize(obj):
    """Recursively convert an object into a JSON-serializable structure
    that is independent of internal ordering.
    """
    if isinstance(obj, dict):
        return {
            str(key): canonicalize(obj[key]) for key in sorted(obj.keys(), key=lambda x: str(x))
        }
    elif isinstance(obj, (list, tuple)):
        return [canonicalize(item) for item in obj]
    elif isinstance(obj, (set, frozenset)):
        return sorted(
            [canonicalize(item) for item in obj],
            key=lambda x: json.dumps(x, sort_keys=True),
        )
    elif isinstance(obj, bool) or obj is None:
        return obj
    elif isinstance(obj, (int, float, str)):
        return obj
    elif hasattr(obj, "item"):
        # NumPy scalars
        return obj.item()
    else:
        raise TypeError(f"Cannot canonicalize object of type {type(obj).__name__}")


def canonical_dumps(obj) -> str:
    """Serialize to compact JSON text; equal values give identical text."""
    return json.dumps(canonicalize(obj), sort_keys=True, separators=(",", ":"), allow_nan=False)


def obj_canonicalized_hash(obj) -> str:
    obj_serialized = canonical_dumps(obj).encode("utf-8")
    hash_obj = hashlib.sha256()
    hash_obj.update(obj_serialized)
    return hash_obj.hexdigest()


def to_compat(compat_info: dict, payload) -> list:
    """Wrap a payload in a ``[header, payload]`` pair carrying type and version."""
    return [{"type": compat_info["type"], "version": compat_info["version"]}, payload]


def from_compat(compat_info: dict, obj) -> Any:
    """Unwrap a ``[header, payload]`` pair, checking the header.

    Raises
    ------
    ValueError
        If the object is not compat-wrapped or the type/version mismatch.
    """
    if not isinstance(obj, (list, tuple)) or len(obj) != 2 or not isinstance(obj[0], dict):
        raise ValueError(f"Expected compat-wrapped {compat_info['type']} object")
    header, payload = obj
    if header.get("type") != compat_info["type"]:
        raise ValueError(f"Expected type {compat_info['type']}, got {header.get('type')!r}")
    if header.get("version") != compat_info["version"]:
        raise ValueError(
            f"{compat_info['type']}: tried to load unsupported version "
            f"{header.get('version')!r} (expected {compat_info['version']})"
        )
    return payload


def unique_iter(iterable: Iterable[T], key: Callable[[T], Any] | None = None) -> Iterable[T]:
    # Based on https://iteration-utilities.readthedocs.io/en/latest/generated/unique_everseen.html
    seen: set[Any] = set()
    seen_add = seen.add
    if key is None:
        for element in filterfalse(seen.__contains__, iterable):
            seen_add(element)
            yield element
    else:
        for element in iterable:
            k = key(element)
            if k not in seen:
                seen_add(k)
                yield element
