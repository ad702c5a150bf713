"""Element signatures and CSS path construction.

A signature is the canonical "shape" of an element: ``tag#id`` when the
element has an id, otherwise ``tag.classA.classB`` with classes sorted.
Ids and classes are CSS-escaped, so every signature is also a selector.
Two elements with the same signature are treated as instances of the same
repeating pattern, so every discovery entry point builds signatures and
paths through this module.
"""

from collections import Counter
from typing import List

import soupsieve
from bs4 import BeautifulSoup, Tag


def element_classes(element: Tag) -> List[str]:
    """Return the element's classes in attribute order."""
    value = element.get("class")
    if not value:
        return []
    if isinstance(value, str):
        return value.split()
    return [cls for cls in value if cls and cls.strip()]


def element_signature(element: Tag | None) -> str:
    """Build the canonical signature for an element.

    Args:
        element: Element to describe (may be None)

    Returns:
        ``tag#id``, ``tag.classes`` (sorted), bare ``tag``, or "" when the
        element is absent or has no tag name
    """
    if element is None or not isinstance(element, Tag):
        return ""
    tag = element.name
    if not tag or isinstance(element, BeautifulSoup):
        return ""

    element_id = element.get("id")
    if isinstance(element_id, str) and element_id.strip():
        return f"{tag}#{soupsieve.escape(element_id.strip())}"

    classes = _escaped_classes(element)
    if classes:
        return tag + "." + ".".join(classes)
    return tag


def _escaped_classes(element: Tag) -> List[str]:
    return [soupsieve.escape(cls) for cls in sorted(element_classes(element))]


def child_elements(element: Tag) -> List[Tag]:
    """Direct element children in document order (text nodes skipped)."""
    return [child for child in element.children if isinstance(child, Tag)]


def body_elements(soup: BeautifulSoup) -> List[Tag]:
    """All elements below <body> in document order.

    Falls back to every element of the document when there is no <body>
    (fragments parsed with html.parser).
    """
    body = soup.body
    root = body if body is not None else soup
    return root.find_all(True)


def signature_set(soup: BeautifulSoup) -> set[str]:
    """Collect every non-empty signature found below <body>."""
    signatures = set()
    for element in body_elements(soup):
        signature = element_signature(element)
        if signature:
            signatures.add(signature)
    return signatures


def child_signature_counts(element: Tag) -> Counter:
    """Count direct-child signatures, preserving first-seen order."""
    counts: Counter = Counter()
    for child in child_elements(element):
        signature = element_signature(child)
        if signature:
            counts[signature] += 1
    return counts


def repeating_child_signature(container: Tag) -> str:
    """Return the most frequent direct-child signature if it repeats.

    Interstitial children (ads, separators) do not hide the pattern as long
    as the card signature is the most frequent one. On equal counts the
    signature seen first in document order wins.

    Returns:
        The signature, or "" when no child signature appears more than once
    """
    best_signature = ""
    best_count = 1  # Must appear more than once to be "repeating"
    for signature, count in child_signature_counts(container).items():
        if count > best_count:
            best_signature = signature
            best_count = count
    return best_signature


def element_depth(element: Tag) -> int:
    """Number of element ancestors (<html> counts, the document does not)."""
    return sum(1 for parent in element.parents if not isinstance(parent, BeautifulSoup))


def closest(element: Tag, selector: str) -> Tag | None:
    """Return the element or its nearest ancestor matching selector."""
    return soupsieve.closest(selector, element)


def _quote_attribute(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\a ")
    return f'"{escaped}"'


def selector_path(element: Tag) -> str:
    """Build a CSS path locating an element from the document root.

    Each step is the tag name plus, in order of preference, the id (which
    ends the walk because it is unique), an ``action`` or ``name``
    attribute, and the sorted classes.

    Returns:
        ``html > … > tag`` for a walk that reaches the root, or
        ``tag#id > … > tag`` when an ancestor with an id ends the walk
    """
    parts: List[str] = []
    current: Tag | None = element
    while (
        current is not None
        and not isinstance(current, BeautifulSoup)
        and current.name != "html"
    ):
        element_id = current.get("id")
        if isinstance(element_id, str) and element_id.strip():
            parts.insert(0, f"{current.name}#{soupsieve.escape(element_id.strip())}")
            return " > ".join(parts)

        step = current.name
        action = current.get("action")
        name = current.get("name")
        if action is not None:
            step += f"[action={_quote_attribute(action)}]"
        elif name is not None:
            step += f"[name={_quote_attribute(name)}]"
        classes = _escaped_classes(current)
        if classes:
            step += "." + ".".join(classes)
        parts.insert(0, step)
        current = current.parent

    return " > ".join(["html"] + parts)
