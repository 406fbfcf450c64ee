import re
from collections.abc import Iterable

ScopeInput = str | Iterable[str] | None


def normalize(scope: ScopeInput) -> list[str]:
    """
    Given scope as either a space-delimited string or a collection of names,
    returns the same names deduplicated and sorted.
    """
    if scope is None:
        return []
    if not isinstance(scope, str):
        scope = " ".join(str(name) for name in scope)
    return sorted({name for name in re.split(r"\s+", scope) if name})


def intersect(requested: ScopeInput, allowed: ScopeInput) -> list[str]:
    """
    Returns the requested names that are also allowed, in normalized order.
    """
    allowed_names = set(normalize(allowed))
    return [name for name in normalize(requested) if name in allowed_names]


def is_subset(requested: ScopeInput, allowed: ScopeInput) -> bool:
    return set(normalize(requested)) <= set(normalize(allowed))


def missing(requested: ScopeInput, allowed: ScopeInput) -> list[str]:
    """
    Returns the requested names that are not allowed.
    """
    allowed_names = set(normalize(allowed))
    return [name for name in normalize(requested) if name not in allowed_names]


def to_string(scope: ScopeInput) -> str:
    """
    The stored and transmitted form of a scope: normalized names joined by
    single spaces. Equal scope sets always give equal strings.
    """
    return " ".join(normalize(scope))
