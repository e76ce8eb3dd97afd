"""
Selection combinators over parsed documents.

A Predicate is a pure boolean test on a bs4 Tag. Predicates compose with
and_/or_/not_ (or the &, |, ~ operators) and with the structural
combinators descendant/child/has_child. query() returns every matching
element of a tree in document order, nested matches included.

Example:
    question = tag("strong") & find_in_text(r"^.*\\?\\s*$")
    nodes = query(soup, question | (tag("p") & ~has_child(question)))
"""

import re
from typing import Callable, Iterator, Pattern, Union

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString


class Predicate:
    """Composable node test."""

    def __init__(self, test: Callable[[Tag], bool], description: str = "predicate"):
        self._test = test
        self.description = description

    def __call__(self, node) -> bool:
        if not isinstance(node, Tag):
            return False
        return bool(self._test(node))

    def __and__(self, other: "Predicate") -> "Predicate":
        return and_(self, other)

    def __or__(self, other: "Predicate") -> "Predicate":
        return or_(self, other)

    def __invert__(self) -> "Predicate":
        return not_(self)

    def __repr__(self) -> str:
        return f"<Predicate {self.description}>"


def own_strings(node: Tag) -> list[str]:
    """Direct text children of node (comments, CDATA and doctypes excluded)."""
    return [
        str(child) for child in node.children
        if isinstance(child, NavigableString) and not isinstance(child, PreformattedString)
    ]


def _parents(node: Tag) -> Iterator[Tag]:
    for parent in node.parents:
        if isinstance(parent, BeautifulSoup):
            break
        yield parent


# --- Leaf predicates ---

def tag(name: str) -> Predicate:
    name = name.lower()
    return Predicate(lambda node: (node.name or "").lower() == name, f"tag({name})")


def class_(name: str) -> Predicate:
    def test(node: Tag) -> bool:
        classes = node.get("class") or []
        if isinstance(classes, str):
            classes = classes.split()
        return name in classes
    return Predicate(test, f"class({name})")


def find_in_text(pattern: Union[str, Pattern]) -> Predicate:
    """True when any direct text child of the node contains a regex match."""
    regex = re.compile(pattern) if isinstance(pattern, str) else pattern
    return Predicate(
        lambda node: any(regex.search(s) for s in own_strings(node)),
        f"find_in_text({regex.pattern!r})",
    )


# --- Boolean combinators ---

def not_(predicate: Predicate) -> Predicate:
    return Predicate(lambda node: not predicate(node), f"not({predicate.description})")


def and_(*predicates: Predicate) -> Predicate:
    names = ", ".join(p.description for p in predicates)
    return Predicate(lambda node: all(p(node) for p in predicates), f"and({names})")


def or_(*predicates: Predicate) -> Predicate:
    names = ", ".join(p.description for p in predicates)
    return Predicate(lambda node: any(p(node) for p in predicates), f"or({names})")


# --- Structural combinators ---

def descendant(ancestor: Predicate, predicate: Predicate) -> Predicate:
    """Nodes matching predicate that sit anywhere below a node matching ancestor."""
    return Predicate(
        lambda node: predicate(node) and any(ancestor(p) for p in _parents(node)),
        f"descendant({ancestor.description}, {predicate.description})",
    )


def child(parent: Predicate, predicate: Predicate) -> Predicate:
    """Nodes matching predicate whose direct parent matches parent."""
    def test(node: Tag) -> bool:
        return predicate(node) and parent(node.parent)
    return Predicate(test, f"child({parent.description}, {predicate.description})")


def has_child(predicate: Predicate) -> Predicate:
    """Nodes with at least one direct child element matching predicate."""
    return Predicate(
        lambda node: any(predicate(c) for c in node.children if isinstance(c, Tag)),
        f"has_child({predicate.description})",
    )


def query(tree: Tag, predicate: Predicate) -> list[Tag]:
    """All elements of tree matching predicate, in document order."""
    nodes = [] if isinstance(tree, BeautifulSoup) else [tree]
    nodes.extend(tree.find_all(True))
    return [node for node in nodes if predicate(node)]
