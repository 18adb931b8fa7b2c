"""Canonical JSON rendering and content hashing."""

from __future__ import annotations

import hashlib
import json
from typing import Any


def canonical_json(payload: Any) -> str:
    """Key-sorted, compact JSON; equal documents always render identically."""
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def sha256_hex(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def content_hash(payload: Any) -> str:
    """SHA-256 of the canonical JSON form of ``payload``."""
    return sha256_hex(canonical_json(payload))
