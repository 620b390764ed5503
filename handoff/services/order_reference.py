"""Expansion of a loosely formatted order reference into candidate order names.

Customers type order numbers as ``1222``, ``#1222``, ``rbx-1222`` or
``#RBX-1222``; the store knows each order by a single display name. The
candidates are tried in order, so the caller's literal input always comes
first.
"""

from collections.abc import Iterable, Sequence

ORDER_MARKER = "#"


def _split_prefix(value: str, prefixes: Sequence[str]) -> tuple[str | None, str]:
    """Return ``(matched_prefix, remainder)`` for the first known prefix of ``value``."""
    upper = value.upper()
    for prefix in prefixes:
        if prefix and upper.startswith(prefix.upper()) and len(value) > len(prefix):
            return prefix, value[len(prefix) :]
    return None, value


def _dedupe(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result


def candidate_order_keys(reference: str, prefixes: Sequence[str] = ()) -> list[str]:
    """Return the ordered, duplicate-free candidate keys for ``reference``.

    The first element is always ``reference`` exactly as given.
    """
    trimmed = reference.strip()
    bare = trimmed.lstrip(ORDER_MARKER).strip()
    matched, core = _split_prefix(bare, prefixes)
    core = core.lstrip(ORDER_MARKER)

    candidates = [reference, trimmed, bare, f"{ORDER_MARKER}{bare}"]

    if matched is not None:
        # Known prefix present: try the number without it, then swap prefixes.
        candidates += [core, f"{ORDER_MARKER}{core}", f"{matched.upper()}{core}"]
        candidates += [f"{p}{core}" for p in prefixes if p.upper() != matched.upper()]
    elif core:
        candidates += [f"{p}{core}" for p in prefixes]

    # Only the untouched reference may be blank or marker-only
    return _dedupe([reference] + [c for c in candidates[1:] if c.strip(ORDER_MARKER).strip()])


def order_key_core(value: str | int | None, prefixes: Sequence[str] = ()) -> str:
    """Canonical comparison form: no marker, no known prefix, case-folded."""
    if value is None:
        return ""
    bare = str(value).strip().lstrip(ORDER_MARKER).strip()
    _, core = _split_prefix(bare, prefixes)
    return core.lstrip(ORDER_MARKER).strip().casefold()
