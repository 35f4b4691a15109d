"""DOM search over parsed HTML documents.

The worker treats work unit roots as opaque ``bs4.Tag`` handles; this module
is the thin collaborator that finds those roots in a document and extracts
the named element groups (title, options, ...) a unit is processed with.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging

from bs4 import BeautifulSoup, Tag

from quiz_worker.core.types import ExtractedElements

log = logging.getLogger(__name__)

type Selector = str | Sequence[str]
type ElementSpec = Mapping[str, Selector]


def parse_document(html: str | bytes) -> BeautifulSoup:
    """Parse raw HTML into a searchable document."""
    return BeautifulSoup(html, "html.parser")


def _as_selectors(selector: Selector) -> tuple[str, ...]:
    if isinstance(selector, str):
        return (selector,)
    return tuple(selector)


def dom_search(selector: Selector, root: Tag) -> list[Tag]:
    """Return every element under ``root`` matching any of the selectors.

    Matches are collected selector by selector; an element matched by more
    than one selector is kept once, at its first position.
    """
    found: list[Tag] = []
    seen: set[int] = set()
    for css in _as_selectors(selector):
        for el in root.select(css):
            if id(el) not in seen:
                seen.add(id(el))
                found.append(el)
    return found


def dom_search_roots(selector: str, document: str | bytes | Tag) -> list[Tag]:
    """Resolve the work unit roots for ``selector`` in document order."""
    if not isinstance(document, Tag):
        document = parse_document(document)
    roots = document.select(selector)
    log.debug("Selector %r matched %d work unit root(s)", selector, len(roots))
    return list(roots)


def dom_search_all(spec: ElementSpec, root: Tag) -> ExtractedElements:
    """Apply an extraction spec to one work unit root.

    Args:
        spec: Mapping of group name to a CSS selector or a sequence of them.
        root: The work unit root to search under.

    Returns:
        ExtractedElements with one group per spec entry (possibly empty).
    """
    return ExtractedElements({name: dom_search(sel, root) for name, sel in spec.items()})


def element_text(el: Tag) -> str:
    """Return the whitespace-collapsed visible text of an element."""
    return " ".join(el.get_text(" ", strip=True).split())
