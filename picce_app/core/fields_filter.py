from __future__ import annotations

from collections.abc import Mapping


def grants_any(mask) -> bool:
    if isinstance(mask, Mapping):
        return any(grants_any(rule) for rule in mask.values())
    return mask is True


def fields_filter(obj, mask: Mapping):
    """Project ``obj`` through a nested boolean field mask.

    Keys mapped to ``True`` are copied, keys mapped to a nested mask are
    filtered recursively and everything else is dropped. Lists are filtered
    element by element under the same mask. A nested mask that grants nothing
    drops its key entirely.
    """
    if obj is None:
        return None
    if isinstance(obj, (list, tuple)):
        return [fields_filter(element, mask) for element in obj]

    projected = {}
    for key, rule in mask.items():
        if key not in obj:
            continue
        if rule is True:
            projected[key] = obj[key]
        elif isinstance(rule, Mapping) and grants_any(rule):
            projected[key] = fields_filter(obj[key], rule)
    return projected
