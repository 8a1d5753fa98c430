"""Cursor pagination over Dataverse/OData collections.

Dataverse rejects ``$skip``, so a page request is translated into ``$top`` plus
a cursor filter on the sort field, and the next cursor is rebuilt from the
response (``@odata.nextLink``, ``@odata.count`` or the last returned row).

Pagination state travels between calls as an opaque token:
    cursor_<value>   value of the sort field on the last row (quotes doubled)
    skip_<n>         legacy numeric offset, parsed but not applied
    anything else    a server ``$skiptoken`` passed back verbatim
"""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Union
from urllib.parse import parse_qs, quote, urlsplit

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..logging import get_logger
from .settings import get_settings

logger = get_logger(__name__)

CURSOR_PREFIX = "cursor_"
SKIP_PREFIX = "skip_"
DEFAULT_ORDER_BY = "inq_name"
DEFAULT_ENTITY_SET = "inq_missionaries"

_DIRECTION_SUFFIX = re.compile(r"\s+(asc|desc)\s*$", re.IGNORECASE)


# =============================================================================
# Page state
# =============================================================================


@dataclass(frozen=True)
class FirstPage:
    """No cursor: the conceptual first page, which also requests a count."""

    def to_token(self) -> str | None:
        return None


@dataclass(frozen=True)
class ContinuationPage:
    """Continue after ``cursor``, the raw sort-field value of the last seen row."""
    cursor: str

    def to_token(self) -> str:
        return f"{CURSOR_PREFIX}{escape_odata_string(self.cursor)}"


@dataclass(frozen=True)
class ServerSkipToken:
    """A ``$skiptoken`` issued by the server in ``@odata.nextLink``."""
    token: str

    def to_token(self) -> str:
        return self.token


@dataclass(frozen=True)
class LegacyOffset:
    """The ``skip_<n>`` form. Dataverse has no offset paging, so it is not applied."""
    skip: int

    def to_token(self) -> str:
        return f"{SKIP_PREFIX}{self.skip}"


PageState = Union[FirstPage, ContinuationPage, ServerSkipToken, LegacyOffset]


def escape_odata_string(value: str) -> str:
    """Escape a value for an OData string literal by doubling single quotes."""
    return value.replace("'", "''")


def unescape_odata_string(value: str) -> str:
    return value.replace("''", "'")


def parse_page_state(token: str | None) -> PageState:
    """Turn an opaque skip token from a previous response into a PageState."""
    if not token:
        return FirstPage()
    if token.startswith(CURSOR_PREFIX):
        return ContinuationPage(unescape_odata_string(token[len(CURSOR_PREFIX):]))
    if token.startswith(SKIP_PREFIX):
        raw = token[len(SKIP_PREFIX):]
        if raw.isdigit():
            return LegacyOffset(int(raw))
    return ServerSkipToken(token)


def sort_field(order_by: str) -> str:
    """Strip a trailing `` asc``/`` desc`` from an order-by expression."""
    return _DIRECTION_SUFFIX.sub("", order_by.strip())


def is_descending(order_by: str) -> bool:
    match = _DIRECTION_SUFFIX.search(order_by)
    return bool(match) and match.group(1).lower() == "desc"


def cursor_filter(order_by: str, cursor: str) -> str:
    """Build ``<field> gt '<value>'`` for the row after ``cursor``.

    Always ``gt``: descending order is not handled and is reported with a
    warning instead.
    """
    if is_descending(order_by):
        logger.warning(
            "Cursor pagination assumes ascending order; '%s' is descending and "
            "the next page will not follow the requested direction",
            order_by,
        )
    return f"{sort_field(order_by)} gt '{escape_odata_string(cursor)}'"


def combine_filters(caller_filter: str | None, derived_filter: str | None) -> str | None:
    """Combine the caller's filter with a cursor filter as ``(a) and (b)``."""
    if caller_filter and derived_filter:
        return f"({caller_filter}) and ({derived_filter})"
    return caller_filter or derived_filter or None


# =============================================================================
# Request / response models
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PaginationParams(_CamelModel):
    """A page-oriented request against an OData collection."""

    environment: str
    page_size: int = Field(default_factory=lambda: get_settings().default_page_size, gt=0)
    current_page: int = Field(default=1, gt=0)
    filter: str | None = None
    select: str | None = None
    order_by: str = DEFAULT_ORDER_BY
    access_token: str | None = None
    skip_token: str | None = None
    entity_set: str = DEFAULT_ENTITY_SET

    @property
    def page_state(self) -> PageState:
        return parse_page_state(self.skip_token)


class PaginationResponse(_CamelModel):
    """One page of results plus the cursor for the next page."""

    success: bool = True
    environment: str
    current_page: int
    page_size: int
    total_pages: int | None = None
    total_records: int | None = None
    has_next_page: bool
    has_previous_page: bool
    data: Any = None
    query_url: str
    next_page_url: str | None = None
    next_skip_token: str | None = None
    timestamp: str

    @property
    def rows(self) -> list[dict[str, Any]]:
        if isinstance(self.data, dict):
            return list(self.data.get("value") or [])
        return []

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, dropping unset optional values."""
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(frozen=True)
class ODataQuery:
    """A built OData request: the ordered ``$`` parameters and the full URL."""
    url: str
    params: tuple[tuple[str, str], ...]

    @property
    def query_string(self) -> str:
        return "&".join(f"{k}={v}" for k, v in self.params)


# =============================================================================
# Query construction
# =============================================================================


def build_odata_query(params: PaginationParams, base_url: str) -> ODataQuery:
    """Translate a page request into the OData query for that page."""
    state = params.page_state
    parts: list[tuple[str, str]] = [("$top", str(params.page_size))]

    derived_filter = None
    if isinstance(state, ContinuationPage):
        derived_filter = cursor_filter(params.order_by, state.cursor)
    elif isinstance(state, ServerSkipToken):
        parts.append(("$skiptoken", quote(state.token, safe="")))
    elif isinstance(state, LegacyOffset):
        logger.warning("Ignoring legacy skip token %r: offset paging is not implemented", state.to_token())

    if params.order_by:
        parts.append(("$orderby", quote(params.order_by, safe=",")))
    if params.select:
        parts.append(("$select", quote(params.select, safe=",")))

    combined = combine_filters(params.filter, derived_filter)
    if combined:
        parts.append(("$filter", quote(combined, safe="")))

    if isinstance(state, FirstPage):
        parts.append(("$count", "true"))

    query = "&".join(f"{k}={v}" for k, v in parts)
    url = f"{base_url.rstrip('/')}/{params.entity_set}?{query}"
    return ODataQuery(url=url, params=tuple(parts))


def odata_headers(access_token: str, page_size: int | None = None) -> dict[str, str]:
    """Headers sent with every OData request."""
    prefer = 'odata.include-annotations="*"'
    if page_size:
        prefer += f",odata.maxpagesize={page_size}"
    return {
        "Authorization": f"Bearer {access_token}",
        "Accept": "application/json",
        "OData-MaxVersion": "4.0",
        "OData-Version": "4.0",
        "Prefer": prefer,
    }


# =============================================================================
# Response interpretation
# =============================================================================


def skip_token_from_next_link(next_link: str | None) -> str | None:
    """Return the ``$skiptoken`` query parameter of a nextLink, if any."""
    if not next_link:
        return None
    values = parse_qs(urlsplit(next_link).query).get("$skiptoken")
    return values[0] if values else None


def has_next_page(
    total_records: int | None,
    current_page: int,
    page_size: int,
    next_link: str | None,
    row_count: int,
) -> bool:
    """True if the count, a nextLink or a full page suggests more data.

    The full-page check can claim a next page that turns out empty.
    """
    if total_records is not None and total_records > current_page * page_size:
        return True
    if next_link:
        return True
    return row_count == page_size


def next_cursor(
    rows: list[dict[str, Any]],
    order_by: str,
    next_link: str | None,
    more: bool,
) -> str | None:
    """Resolve the token for the next page: server skiptoken first, then a cursor."""
    server_token = skip_token_from_next_link(next_link)
    if server_token:
        return server_token
    if not rows or not more:
        return None
    value = rows[-1].get(sort_field(order_by))
    if value is None:
        logger.debug("Last row has no %s value; no cursor for the next page", sort_field(order_by))
        return None
    return ContinuationPage(str(value)).to_token()


def interpret_response(
    payload: dict[str, Any],
    params: PaginationParams,
    query_url: str,
    clock: Callable[[], datetime] | None = None,
) -> PaginationResponse:
    """Build a PaginationResponse from an OData collection payload."""
    rows = payload.get("value") or []
    total_records = payload.get("@odata.count")
    next_link = payload.get("@odata.nextLink")

    more = has_next_page(
        total_records,
        params.current_page,
        params.page_size,
        next_link,
        len(rows),
    )
    total_pages = None
    if total_records is not None:
        total_pages = math.ceil(total_records / params.page_size)

    now = (clock or _utcnow)()
    return PaginationResponse(
        environment=params.environment,
        current_page=params.current_page,
        page_size=params.page_size,
        total_pages=total_pages,
        total_records=total_records,
        has_next_page=more,
        has_previous_page=params.current_page > 1,
        data=payload,
        query_url=query_url,
        next_page_url=next_link,
        next_skip_token=next_cursor(rows, params.order_by, next_link, more),
        timestamp=now.isoformat(),
    )


def _utcnow() -> datetime:
    return datetime.now(UTC)
