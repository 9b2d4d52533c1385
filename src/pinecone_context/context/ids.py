import hashlib
import json
from collections.abc import Mapping
from typing import Any

ID_PREFIX = "ctx_"
# Hex characters kept from the digest. 16 hex chars is 64 bits: collisions are
# unlikely at this scale, not impossible.
ID_HASH_LENGTH = 16


def context_id(text: str, metadata: Mapping[str, Any]) -> str:
    """Derive a stable id from chunk text and its metadata.

    The metadata is serialized canonically (sorted keys), so equal mappings
    always hash the same regardless of insertion order. Callers include the
    chunk index in *metadata* so chunks of one document never collide.
    """
    canonical = json.dumps(metadata, sort_keys=True, separators=(",", ":"), default=str)
    digest = hashlib.md5((text + canonical).encode("utf-8"), usedforsecurity=False)
    return f"{ID_PREFIX}{digest.hexdigest()[:ID_HASH_LENGTH]}"
