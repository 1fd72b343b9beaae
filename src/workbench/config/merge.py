"""Cascading of configuration layers.

A layer is a plain dict as read from YAML. Higher layers win key by key:
nested sections merge, lists and scalars replace, and an explicit None
(an empty YAML value) leaves the lower layer's value in place.
"""

from __future__ import annotations

from collections.abc import Iterable
from functools import reduce
from typing import Any


def overlay(base: dict[str, Any], top: dict[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``top`` laid over it. Neither input is modified."""
    merged = dict(base)
    for key, value in top.items():
        if value is None:
            continue
        below = merged.get(key)
        if isinstance(below, dict) and isinstance(value, dict):
            merged[key] = overlay(below, value)
        else:
            merged[key] = value
    return merged


def cascade(layers: Iterable[dict[str, Any]]) -> dict[str, Any]:
    """Fold layers from lowest to highest priority into one dict."""
    return reduce(overlay, (layer for layer in layers if layer), {})
