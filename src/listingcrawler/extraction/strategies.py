"""Field lookup strategies.

Each field of a listing is described by an ordered list of strategies. A
strategy looks at a parsed DOM scope (the whole document for a detail page,
one card for a listing page) and returns text or None. The first non-empty
answer wins, so supporting a new layout means appending a strategy, not
editing branching code.

Example:
    ADDRESS = FieldRule("address", (
        text(".delivery-address h1"),
        text("[data-testid='address']"),
        attr("meta[itemprop='streetAddress']", "content"),
    ))
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from bs4 import Tag

Strategy = Callable[[Tag], Optional[str]]


def clean_text(node: Tag) -> str:
    """Visible text of ``node`` with whitespace collapsed."""
    return " ".join(node.get_text(" ").split())


def text(selector: str) -> Strategy:
    """Text of the first element matching ``selector``."""

    def lookup(scope: Tag) -> Optional[str]:
        node = scope.select_one(selector)
        return clean_text(node) if node else None

    return lookup


def attr(selector: str, name: str) -> Strategy:
    """Attribute ``name`` of the first element matching ``selector``."""

    def lookup(scope: Tag) -> Optional[str]:
        node = scope.select_one(selector)
        if node is None:
            return None
        value = node.get(name)
        if isinstance(value, list):
            value = " ".join(value)
        return value.strip() if value else None

    return lookup


def labelled(
    row_selector: str,
    label_selector: str,
    value_selector: str,
    label: str,
) -> Strategy:
    """Value from a label/value list, matched on the label text.

    Handles blocks such as::

        <li><span class="rentInfoLabel">Bedrooms</span>
            <span class="rentInfoDetail">3 bd</span></li>

    Label comparison is case-insensitive.
    """
    wanted = label.strip().lower()

    def lookup(scope: Tag) -> Optional[str]:
        for row in scope.select(row_selector):
            label_node = row.select_one(label_selector)
            value_node = row.select_one(value_selector)
            if label_node is None or value_node is None:
                continue
            if clean_text(label_node).lower() == wanted:
                return clean_text(value_node)
        return None

    return lookup


def stat_with_label(
    value_selector: str,
    label_selector: str,
    contains: str,
    suffix: str = "",
) -> Strategy:
    """Stat value kept only when its companion label mentions ``contains``.

    Redfin renders area as a value element and a separate label element;
    the value only means square feet when the label says so.
    """

    def lookup(scope: Tag) -> Optional[str]:
        value_node = scope.select_one(value_selector)
        label_node = scope.select_one(label_selector)
        if value_node is None or label_node is None:
            return None
        if contains not in clean_text(label_node):
            return None
        value = clean_text(value_node)
        return f"{value}{suffix}" if value else None

    return lookup


@dataclass(frozen=True)
class FieldRule:
    """Ordered strategies for one scalar field."""

    name: str
    strategies: tuple[Strategy, ...]

    def resolve(self, scope: Tag) -> str:
        for strategy in self.strategies:
            value = strategy(scope)
            if value:
                return value
        return ""


@dataclass(frozen=True)
class ListRule:
    """Collects the text of every element matching ``selector``."""

    name: str
    selector: str
    limit: Optional[int] = None

    def resolve(self, scope: Tag) -> list[str]:
        values = [clean_text(node) for node in scope.select(self.selector)]
        values = [v for v in values if v]
        return values[: self.limit] if self.limit is not None else values


@dataclass(frozen=True)
class ExtractionProfile:
    """The complete lookup table for one kind of page or card."""

    fields: tuple[FieldRule, ...] = ()
    lists: tuple[ListRule, ...] = field(default_factory=tuple)

    def extract(self, scope: Tag) -> dict[str, Any]:
        """Resolve every rule against ``scope``.

        Unresolved scalar fields come back as empty strings and unresolved
        lists as empty lists; a missing field is never an error.
        """
        values: dict[str, Any] = {rule.name: rule.resolve(scope) for rule in self.fields}
        for rule in self.lists:
            values[rule.name] = rule.resolve(scope)
        return values
