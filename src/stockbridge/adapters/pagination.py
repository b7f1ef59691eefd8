"""Sequential offset/page pagination shared by the full-dataset fetchers."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from stockbridge.domain.cancellation import raise_if_cancelled
from stockbridge.domain.errors import DecodingError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from stockbridge.domain.cancellation import CancellationToken

log = getLogger(__name__)


@dataclass(slots=True)
class Page[T]:
    """One decoded page.

    ``raw_count`` is the number of rows the source returned, which can exceed
    ``len(items)`` when individual rows were dropped during translation.
    """

    items: list[T] = field(default_factory=list["T"])
    raw_count: int = 0
    total: int | None = None


async def collect_pages[T](
    fetch_page: Callable[[int], Awaitable[Page[T]]],
    *,
    page_size: int,
    max_pages: int,
    cancel: CancellationToken | None = None,
    label: str = "source",
) -> list[T]:
    """Fetch pages ``0..max_pages-1`` until the source runs dry.

    Termination: a page shorter than ``page_size``, an empty page, the reported
    total reached, or the page ceiling. A page that fails to decode is skipped
    and logged; the next page is still requested.
    """

    collected: list[T] = []
    seen = 0
    for index in range(max_pages):
        raise_if_cancelled(cancel)
        try:
            page = await fetch_page(index)
        except DecodingError as exc:
            log.warning("%s: skipping undecodable page %d: %s", label, index + 1, exc)
            seen += page_size
            continue

        collected.extend(page.items)
        seen += page.raw_count
        log.debug("%s: page %d returned %d rows", label, index + 1, page.raw_count)

        if page.raw_count < page_size:
            break
        if page.total is not None and seen >= page.total:
            break
    else:
        log.warning(
            "%s: stopped after the %d-page ceiling; results may be partial", label, max_pages
        )

    log.info("%s: collected %d records", label, len(collected))
    return collected
