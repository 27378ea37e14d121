"""Memory gateway — In-process backing store.

Serves items from a mapping of source name to item list.  Predicates use the
same OData subset the record source emits::

    _regardingobjectid_value eq 5f1c... and mrc_methodofcommunication ne 4
    contains(subject,'invoice')

Comparisons are made on string forms; ``null`` matches missing values.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from timelinesource.gateways.base.exceptions import TransportError
from timelinesource.gateways.base.gateway import GatewayHealth, RecordGateway
from timelinesource.models.record import RawItem

logger = logging.getLogger(__name__)

_COMPARISON = re.compile(r"^(?P<field>[\w.]+)\s+(?P<op>eq|ne)\s+(?P<value>.+)$", re.IGNORECASE)
_CONTAINS = re.compile(r"^contains\(\s*(?P<field>[\w.]+)\s*,\s*(?P<value>.+)\)$", re.IGNORECASE)
_AND = re.compile(r"\s+and\s+", re.IGNORECASE)

Clause = Callable[[RawItem], bool]


class MemoryGateway(RecordGateway):
    """Record gateway over in-memory item lists.

    Args:
        items: Mapping of source (entity set) name to its items.
        **kwargs: Ignored; accepted so configuration can be passed through.
    """

    def __init__(self, items: dict[str, list[RawItem]] | None = None, **kwargs: Any) -> None:
        self._items: dict[str, list[RawItem]] = {k: list(v) for k, v in (items or {}).items()}
        self.fetch_count = 0

    @property
    def name(self) -> str:
        return "memory"

    def add_items(self, source: str, items: Sequence[RawItem]) -> None:
        self._items.setdefault(source, []).extend(items)

    async def fetch(self, source: str, select: Sequence[str], predicate: str | None = None) -> list[RawItem]:
        self.fetch_count += 1
        if source not in self._items:
            raise TransportError(f"Unknown source '{source}'")

        clauses = self._parse_predicate(predicate) if predicate else []
        matched = [item for item in self._items[source] if all(clause(item) for clause in clauses)]
        if select:
            wanted = set(select)
            matched = [{k: v for k, v in item.items() if k.split("@", 1)[0] in wanted} for item in matched]
        logger.debug("Memory gateway served %d/%d items from %s", len(matched), len(self._items[source]), source)
        return matched

    async def health_check(self) -> GatewayHealth:
        return GatewayHealth(
            status="healthy",
            last_check=datetime.now(UTC).isoformat(),
            message=f"{sum(len(v) for v in self._items.values())} items in {len(self._items)} source(s)",
        )

    # ── Predicate parsing ────────────────────────────────────────────────

    @classmethod
    def _parse_predicate(cls, predicate: str) -> list[Clause]:
        """Split ``predicate`` on ``and`` and compile each comparison.

        Raises:
            TransportError: On an expression outside the supported subset.
        """
        clauses: list[Clause] = []
        for part in _AND.split(predicate.strip()):
            part = part.strip()
            if m := _CONTAINS.match(part):
                clauses.append(cls._contains(m["field"], cls._literal(m["value"])))
            elif m := _COMPARISON.match(part):
                clauses.append(cls._compare(m["field"], m["op"].lower(), cls._literal(m["value"])))
            else:
                raise TransportError(f"Unsupported predicate clause: {part!r}")
        return clauses

    @staticmethod
    def _literal(raw: str) -> str | None:
        raw = raw.strip()
        if raw.lower() == "null":
            return None
        if len(raw) >= 2 and raw[0] == raw[-1] == "'":
            return raw[1:-1].replace("''", "'")
        return raw

    @staticmethod
    def _compare(field: str, op: str, value: str | None) -> Clause:
        def clause(item: RawItem) -> bool:
            actual = item.get(field)
            equal = (actual is None) if value is None else (actual is not None and str(actual).lower() == value.lower())
            return equal if op == "eq" else not equal

        return clause

    @staticmethod
    def _contains(field: str, value: str | None) -> Clause:
        needle = (value or "").lower()

        def clause(item: RawItem) -> bool:
            actual = item.get(field)
            return actual is not None and needle in str(actual).lower()

        return clause
