"""
Graph Hashing
=============

Content fingerprints for cache keys.

GUARANTEES:
- The fingerprint depends on node ids, types, entity data and labels,
  and on edge ids, endpoints and relationship types
- Positions never take part; a laid-out copy hashes like its source
- Node and edge order never take part; both are sorted by id, then by
  content
"""

from __future__ import annotations
from dataclasses import fields, is_dataclass
from enum import Enum
from typing import Any, Dict, List
import hashlib
import json

from ..contracts.graph import GraphData


class GraphHashError(Exception):
    """Raised when a graph cannot be canonically serialized."""
    pass


class SizeEstimationError(Exception):
    """Raised when a payload's serialized size cannot be computed."""
    pass


FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
SHA256_PREFIX_LENGTH = 16

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_json_value(obj: Any) -> Any:
    """``json.dumps`` fallback for the types our contracts contain."""
    if isinstance(obj, Enum):
        return obj.value
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in fields(obj)}
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not serializable")


def _dumps(obj: Any) -> str:
    return json.dumps(
        obj,
        default=_to_json_value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def normalize_graph(graph: GraphData) -> Dict[str, List[Dict[str, Any]]]:
    """
    Position-free structure with nodes and edges sorted by id.

    Ids are not unique on their own (edge ids join hyphenated node ids),
    so ties fall back to the remaining content.
    """
    return {
        "nodes": sorted(
            (
                {
                    "id": n.id,
                    "type": n.type.value,
                    "data": {"entity": n.entity, "label": n.label},
                }
                for n in graph.nodes
            ),
            key=lambda n: (n["id"], n["type"], _dumps(n["data"])),
        ),
        "edges": sorted(
            (
                {
                    "id": e.id,
                    "source": e.source,
                    "target": e.target,
                    "type": e.relationship_type.value,
                }
                for e in graph.edges
            ),
            key=lambda e: (e["id"], e["source"], e["target"], e["type"]),
        ),
    }


def canonical_json(graph: GraphData) -> str:
    try:
        return _dumps(normalize_graph(graph))
    except (TypeError, ValueError, AttributeError) as exc:
        raise GraphHashError(f"Graph is not serializable: {exc}") from exc


def fnv1a_32(text: str) -> str:
    """32-bit FNV-1a over the code points of ``text``, in base 36."""
    h = FNV_OFFSET_BASIS
    for ch in text:
        h ^= ord(ch)
        h = (h * FNV_PRIME) & 0xFFFFFFFF
    return _base36(h)


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def hash_graph(graph: GraphData, algorithm: str = "sha256") -> str:
    """
    Fingerprint a graph.

    ``sha256`` yields the first 16 hex digits of SHA-256; ``fnv1a`` is
    the fast non-cryptographic alternative.
    """
    text = canonical_json(graph)
    if algorithm == "sha256":
        return hashlib.sha256(text.encode("utf-8")).hexdigest()[:SHA256_PREFIX_LENGTH]
    if algorithm == "fnv1a":
        return fnv1a_32(text)
    raise ValueError(f"Unknown hash algorithm: {algorithm}")


def estimate_size(data: GraphData) -> int:
    """UTF-8 byte length of the full serialized payload, positions included."""
    try:
        return len(_dumps(data).encode("utf-8"))
    except (TypeError, ValueError, AttributeError) as exc:
        raise SizeEstimationError(f"Cannot estimate size: {exc}") from exc
