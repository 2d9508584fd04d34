"""Job body assembly: key-name normalisation and option merging."""

from __future__ import annotations

import copy
import re
from collections.abc import Mapping
from typing import Any

_SNAKE_RE = re.compile(r"_(\w)")


def to_camel(name: str) -> str:
    """Convert a snake_case name to camelCase.

    ``print_header`` becomes ``printHeader``; names without underscores
    are returned unchanged.
    """
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), name)


def camelize(value: Any) -> Any:
    """Recursively camelCase every mapping key inside *value*.

    Values themselves are never rewritten, only the keys of nested
    mappings (including mappings inside lists).
    """
    if isinstance(value, Mapping):
        return {to_camel(str(k)): camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [camelize(v) for v in value]
    return value


def _merge(base: dict[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    for key, value in override.items():
        if value is None:
            base.pop(key, None)
        elif isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = _merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)
    return base


def merge_body(body: Mapping[str, Any], **options: Any) -> dict[str, Any]:
    """Merge caller-supplied *options* into a job resource *body*.

    Option names are converted to camelCase recursively, then merged at
    the root of the job resource: nested mappings merge key by key, a
    ``None`` value removes the key, anything else replaces it.

    Args:
        body: The job resource built by a ``perform_*`` function.
        **options: Extra fields for the job resource, e.g.
            ``configuration={"query": {"maximum_bytes_billed": "1000"}}``
            or ``job_reference={"location": "EU"}``.

    Returns:
        A new dict; *body* is left untouched.
    """
    merged = copy.deepcopy(dict(body))
    return _merge(merged, camelize(options))
