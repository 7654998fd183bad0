"""
pokespeare/orchestrator/key_normalizer.py

Canonical form of a creature name, used both as the lookup path segment
and as the key of the description cache.
"""

from __future__ import annotations


def normalize(raw: str) -> str:
    """
    Case-fold `raw` so that "Charizard" and "charizard" share one key.

    Whitespace is kept as-is and the empty string is returned unchanged;
    the lookup service rejects keys it does not know.
    """
    return raw.lower()
