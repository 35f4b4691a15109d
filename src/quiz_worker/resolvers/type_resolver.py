"""Default question type detection from extracted option elements."""

from __future__ import annotations

from collections.abc import Iterable
import typing

if typing.TYPE_CHECKING:
    from bs4 import Tag

    from quiz_worker.core.types import WorkContext

SINGLE = "single"
MULTIPLE = "multiple"
JUDGEMENT = "judgement"
COMPLETION = "completion"

RADIO_SELECTORS = ('[type="radio"]', '[role="radio"]')
CHECKBOX_SELECTORS = ('[type="checkbox"]', '[role="checkbox"]')
BLANK_SELECTORS = ("textarea", 'input[type="text"]', "input:not([type])")


def _matches_any(option: Tag, selectors: Iterable[str]) -> bool:
    """Return True when the option is, or contains, an element matching a selector."""
    for css in selectors:
        if option.css.match(css) or option.select_one(css) is not None:
            return True
    return False


def count_options(options: Iterable[Tag], selectors: Iterable[str]) -> int:
    """Count the options that match at least one of ``selectors``."""
    selectors = tuple(selectors)
    return sum(1 for option in options if _matches_any(option, selectors))


def default_work_type_resolver(ctx: WorkContext) -> str | None:
    """Guess the question type from the shape of the option elements.

    Two radio options make a true/false question, more make a single-choice
    one; more than two checkboxes make a multiple-choice question and any
    free-text input makes a fill-in question.
    """
    options = ctx.elements.options or ()
    radios = count_options(options, RADIO_SELECTORS)
    if radios == 2:
        return JUDGEMENT
    if radios > 2:
        return SINGLE
    if count_options(options, CHECKBOX_SELECTORS) > 2:
        return MULTIPLE
    if count_options(options, BLANK_SELECTORS) >= 1:
        return COMPLETION
    return None
