from __future__ import annotations

from typing import Callable, NamedTuple, Optional, Sequence, Tuple

from carbonsnapshot.factors import EmissionFactorEntry, EmissionFactorTable

Resolver = Callable[[str, EmissionFactorTable], Optional[EmissionFactorEntry]]


class FactorMatch(NamedTuple):
    entry: EmissionFactorEntry
    rule: str


def exact_match(activity: str, table: EmissionFactorTable) -> Optional[EmissionFactorEntry]:
    return table.get(activity)


def category_match(activity: str, table: EmissionFactorTable) -> Optional[EmissionFactorEntry]:
    # Scans the default entry too, so an activity mentioning "other" lands there.
    for entry in table.values():
        if entry.category.lower() in activity:
            return entry
    return None


def default_match(activity: str, table: EmissionFactorTable) -> Optional[EmissionFactorEntry]:
    return table.default


DEFAULT_RESOLVERS: Tuple[Tuple[str, Resolver], ...] = (
    ("exact", exact_match),
    ("category", category_match),
    ("default", default_match),
)


def resolve_factor(
    activity: str,
    table: EmissionFactorTable,
    resolvers: Sequence[Tuple[str, Resolver]] = DEFAULT_RESOLVERS,
) -> FactorMatch:
    """Return the first factor produced by the ordered resolver chain.

    ``activity`` is expected trimmed and lowercased.
    """
    for rule, resolver in resolvers:
        entry = resolver(activity, table)
        if entry is not None:
            return FactorMatch(entry=entry, rule=rule)
    raise LookupError(f"No resolver produced an emission factor for {activity!r}.")
