"""
Entity partitioner: turn a flat, ordered sequence into question/answer pairs.

Adapters select a flat list of nodes mixing "marker" items (question text)
and "content" items (answer text). The same four steps apply to all of them:

  1. skip_until   drop leading items until the start condition holds
  2. group_runs   merge consecutive items with the same classification
  3. pair_runs    take runs two at a time as (marker_run, content_run);
                  an unpaired trailing run is dropped
  4. construct    adapter callback building an entity, or None to reject

Nothing here knows about markup, so the functions work on plain tokens.
"""

from itertools import dropwhile, groupby
from typing import Any, Callable, Hashable, Iterable, Optional, Sequence, TypeVar

T = TypeVar("T")
E = TypeVar("E")


def skip_until(items: Iterable[T], start: Optional[Callable[[T], Any]] = None) -> list[T]:
    """Drop leading items until start(item) is truthy. start=None keeps all."""
    if start is None:
        return list(items)
    return list(dropwhile(lambda item: not start(item), items))


def group_runs(items: Iterable[T], classify: Callable[[T], Hashable]) -> list[list[T]]:
    """Split items into runs; a run ends where the classification changes."""
    return [list(run) for _, run in groupby(items, key=classify)]


def pair_runs(runs: Sequence[list[T]]) -> list[tuple[list[T], list[T]]]:
    """Pair runs two at a time. An odd trailing run is discarded."""
    return [(runs[i], runs[i + 1]) for i in range(0, len(runs) - 1, 2)]


def pair_each(items: Iterable[T]) -> list[tuple[list[T], list[T]]]:
    """Degenerate pairing: every item is its own marker and content run."""
    return [([item], [item]) for item in items]


def partition_entities(
    items: Iterable[T],
    classify: Callable[[T], Hashable],
    construct: Callable[[list[T], list[T]], Optional[E]],
    start: Optional[Callable[[T], Any]] = None,
) -> list[E]:
    """
    Run the four partitioning steps and return the accepted entities.

    Args:
        items: Flat ordered sequence from a selector query
        classify: Run key; consecutive items with equal keys form one run
        construct: (marker_run, content_run) -> entity or None
        start: Start condition for the skip-prefix step

    Returns:
        Entities in input order, rejected candidates removed
    """
    runs = group_runs(skip_until(items, start), classify)
    entities = (construct(marker_run, content_run) for marker_run, content_run in pair_runs(runs))
    return [entity for entity in entities if entity is not None]
