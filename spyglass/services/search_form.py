"""Search form detection and search input scoring.

Two stages decide which input on a page is the site's search box:

1. is_likely_search_form() discards forms that are clearly for something
   else (login, registration, newsletter, contact, comments).
2. choose_best_search_input() scores the remaining single-input forms on
   weighted signals and fails closed: near-ties are reported as ambiguous
   rather than guessed, because a wrong guess corrupts card discovery.
"""

import re
from dataclasses import dataclass, field
from typing import List, Sequence

import logfire
from bs4 import Tag

from spyglass.constants import (
    AMBIGUITY_SCORE_GAP,
    CERTAINTY_SIGNAL_COUNT,
    FORM_LABEL_SELECTOR,
    NON_SEARCH_FORM_PATTERN,
    PENALTY_IN_FOOTER,
    PENALTY_IN_SIDEBAR,
    SCORE_CERTAINTY_BONUS,
    SCORE_IN_HEADER,
    SCORE_IN_NAV,
    SCORE_ROLE_SEARCH,
    SCORE_SEARCH_ATTRIBUTE,
    SCORE_SEARCH_BUTTON,
    SCORE_SEARCH_PLACEHOLDER,
    SCORE_TYPE_OTHER,
    SCORE_TYPE_SEARCH,
    SEARCH_ATTRIBUTE_EXACT_VALUES,
    SEARCH_ATTRIBUTES,
    SEARCH_BUTTON_SELECTOR,
    SEARCH_ICON_CLASS_PATTERN,
    SEARCH_INPUT_SELECTOR,
)
from spyglass.logging_config import truncate_for_log
from spyglass.services.dom_signature import closest, element_classes, selector_path
from spyglass.services.errors import AmbiguousError, NoCandidateError

_NON_SEARCH_KEYWORDS = re.compile(NON_SEARCH_FORM_PATTERN)
_SEARCH_ICON_CLASS = re.compile(SEARCH_ICON_CLASS_PATTERN)


def is_likely_search_form(form: Tag) -> bool:
    """Return False for forms that are clearly not search forms.

    Disqualifies a form that contains a password field or a textarea, or
    whose headings, buttons and submit inputs mention login, registration,
    subscription or contact vocabulary.
    """
    if form.select_one('input[type="password"], textarea') is not None:
        return False

    label_parts = []
    for element in form.select(FORM_LABEL_SELECTOR):
        if element.name == "input":
            label_parts.append(element.get("value") or "")
        else:
            label_parts.append(element.get_text())
    form_text = " ".join(label_parts).lower()

    return _NON_SEARCH_KEYWORDS.search(form_text) is None


def candidate_inputs(form: Tag) -> List[Tag]:
    """Inputs in the form that can carry a free-text query, in document order."""
    return form.select(SEARCH_INPUT_SELECTOR)


def single_input_candidates(forms: Sequence[Tag]) -> List[Tag]:
    """Collect the input of every form holding exactly one candidate input.

    A form with several text inputs (an advanced search, a checkout) is
    itself ambiguous and contributes nothing.
    """
    candidates = []
    for form in forms:
        inputs = candidate_inputs(form)
        if len(inputs) == 1:
            candidates.append(inputs[0])
    return candidates


@dataclass
class ScoredCandidate:
    """A search input with its accumulated score and the reasons for it."""

    element: Tag
    score: int = 0
    positive_signals: int = 0
    reasons: List[str] = field(default_factory=list)

    def add(self, points: int, reason: str, positive: bool = False) -> None:
        self.score += points
        sign = "+" if points >= 0 else ""
        self.reasons.append(f"{sign}{points} ({reason})")
        if positive:
            self.positive_signals += 1


def _has_search_button(form: Tag | None) -> str | None:
    """Check the form's buttons in order; stop at the first search-like one."""
    if form is None:
        return None
    for button in form.select(SEARCH_BUTTON_SELECTOR):
        if "search" in button.get_text().lower():
            return "adjacent button text"
        if _SEARCH_ICON_CLASS.search(" ".join(element_classes(button))):
            return "adjacent button icon"
    return None


def score_search_input(element: Tag) -> ScoredCandidate:
    """Score one candidate input on type, context, attributes and buttons."""
    candidate = ScoredCandidate(element=element)

    # Base score favours the HTML5 search type
    input_type = (element.get("type") or "").lower()
    if input_type == "search":
        candidate.add(SCORE_TYPE_SEARCH, "type=search")
    else:
        candidate.add(SCORE_TYPE_OTHER, f"type={input_type or 'text'}")

    # Context and attributes
    if closest(element, '[role="search"]') is not None:
        candidate.add(SCORE_ROLE_SEARCH, "in role=search", positive=True)
    if closest(element, "header") is not None:
        candidate.add(SCORE_IN_HEADER, "in <header>", positive=True)
    elif closest(element, "nav") is not None:
        candidate.add(SCORE_IN_NAV, "in <nav>", positive=True)

    for attribute in SEARCH_ATTRIBUTES:
        value = element.get(attribute)
        if value is None:
            continue
        value = str(value).lower()
        if "search" in value or value in SEARCH_ATTRIBUTE_EXACT_VALUES:
            candidate.add(SCORE_SEARCH_ATTRIBUTE, f"attr {attribute}", positive=True)

    placeholder = element.get("placeholder")
    if placeholder is not None and "search" in placeholder.lower():
        candidate.add(SCORE_SEARCH_PLACEHOLDER, "placeholder")

    button_reason = _has_search_button(closest(element, "form"))
    if button_reason:
        candidate.add(SCORE_SEARCH_BUTTON, button_reason, positive=True)

    # Penalties for page chrome
    if closest(element, "footer") is not None:
        candidate.add(PENALTY_IN_FOOTER, "in <footer>")
    if closest(element, "aside, .sidebar") is not None:
        candidate.add(PENALTY_IN_SIDEBAR, "in sidebar")

    if candidate.positive_signals >= CERTAINTY_SIGNAL_COUNT:
        candidate.add(SCORE_CERTAINTY_BONUS, "certainty bonus")

    return candidate


def choose_best_search_input(candidates: Sequence[Tag], source_url: str) -> Tag:
    """Pick the single best search input among pre-vetted candidates.

    Args:
        candidates: Inputs that are each the only text input of a likely search form
        source_url: Page URL, used in error messages and logs

    Returns:
        The winning input element

    Raises:
        NoCandidateError: If there are no candidates, or none scores above zero
        AmbiguousError: If the top two scores are closer than AMBIGUITY_SCORE_GAP
    """
    if not candidates:
        raise NoCandidateError(
            f"No valid form with a single search input was found on: {source_url}"
        )
    if len(candidates) == 1:
        return candidates[0]

    scored = [score_search_input(element) for element in candidates]
    for candidate in scored:
        logfire.debug(
            "Scored search input candidate",
            url=source_url,
            selector=truncate_for_log(selector_path(candidate.element)),
            score=candidate.score,
            reasons=", ".join(candidate.reasons),
        )

    viable = [candidate for candidate in scored if candidate.score > 0]
    if not viable:
        raise NoCandidateError(
            "Multiple inputs found, but none could be confidently identified on: "
            f"{source_url}"
        )
    if len(viable) == 1:
        return viable[0].element

    viable.sort(key=lambda candidate: candidate.score, reverse=True)
    top, runner_up = viable[0], viable[1]
    if top.score - runner_up.score < AMBIGUITY_SCORE_GAP:
        raise AmbiguousError(
            f"Multiple inputs have very close scores (Top: {top.score}, "
            f"Next: {runner_up.score}), unable to resolve ambiguity on: {source_url}",
            top_score=top.score,
            next_score=runner_up.score,
        )

    logfire.info(
        "Search input chosen",
        url=source_url,
        score=top.score,
        runner_up_score=runner_up.score,
        candidate_count=len(candidates),
    )
    return top.element
