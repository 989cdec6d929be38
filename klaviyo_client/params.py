"""
Query parameters for list endpoints (``get_profiles``, ``get_events``).

Each parameter sets exactly one query key. Parameters are applied in the
order given and later ones overwrite keys set by earlier ones.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from .config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, MIN_PAGE_SIZE, PROFILE_TYPE


@dataclass(frozen=True)
class Param:
    """A single query key/value. A ``None`` value leaves the query unchanged."""
    key: str
    value: Optional[str]

    def apply(self, query: Dict[str, str]) -> None:
        if self.value is not None:
            query[self.key] = self.value


def build_query(params: Iterable[Param]) -> Dict[str, str]:
    query: Dict[str, str] = {}
    for p in params:
        p.apply(query)
    return query


def with_page_size(page_size: Optional[int] = None) -> Param:
    """Set ``page[size]``, clamped into the range the API accepts.

    ``None`` selects the default page size.
    """
    if page_size is None:
        page_size = DEFAULT_PAGE_SIZE
    page_size = max(MIN_PAGE_SIZE, min(MAX_PAGE_SIZE, page_size))
    return Param("page[size]", str(page_size))


def with_default_page_size() -> Param:
    return with_page_size(DEFAULT_PAGE_SIZE)


def with_fields(*field_names: str, resource: str = PROFILE_TYPE) -> Param:
    """Restrict the returned attributes to ``field_names`` (sparse fieldset).

    An empty list leaves the query key out entirely.
    """
    names = ",".join(field_names)
    return Param(f"fields[{resource}]", names or None)


def with_filter(expression: str) -> Param:
    """Set the ``filter`` expression, e.g. ``equals(email,"a@b.com")``."""
    return Param("filter", expression or None)


def with_sort(sort_field: str) -> Param:
    """Sort by ``sort_field``; prefix with ``-`` for descending order."""
    return Param("sort", sort_field or None)


def with_page_cursor(cursor: str) -> Param:
    return Param("page[cursor]", cursor or None)
