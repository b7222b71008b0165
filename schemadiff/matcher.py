"""
matcher
=======

By-key matching shared by every entity category.

:func:`match` walks database 1's entities in order, then database 2's
leftovers, and produces one diff node per key of the union. Entities present
on both sides are handed to a comparator exactly once.
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, Mapping, Optional, TypeVar

from .differences import Presence

T = TypeVar("T")
N = TypeVar("N")


def key_by(items: Iterable[T], key: Callable[[T], str]) -> Dict[str, T]:
    """Return an ordered ``key -> item`` mapping; the first item with a key wins."""
    out: Dict[str, T] = {}
    for item in items:
        out.setdefault(key(item), item)
    return out


def match(
    items1: Mapping[str, T],
    items2: Mapping[str, T],
    make_node: Callable[[Presence], N],
    compare: Optional[Callable[[str, N, T, T], None]] = None,
) -> Dict[str, N]:
    """Pair two keyed collections and build a keyed diff map.

    Parameters
    ----------
    items1, items2:
        Entities of database 1 and database 2, keyed by identity.
    make_node:
        Factory creating an empty diff node for a presence value.
    compare:
        Called as ``compare(key, node, item1, item2)`` for keys present on both
        sides; fills attribute and child differences into *node*.

    Returns
    -------
    dict
        Diff nodes for every key of the union: database 1's keys in its
        order, then keys only in database 2 in database 2's order.
    """
    result: Dict[str, N] = {}

    for key, item1 in items1.items():
        if key in items2:
            node = make_node(Presence.BOTH)
            if compare is not None:
                compare(key, node, item1, items2[key])
        else:
            node = make_node(Presence.ONLY_IN_1)
        result[key] = node

    for key in items2:
        if key not in result:
            result[key] = make_node(Presence.ONLY_IN_2)

    return result


def match_grouped(
    items1: Mapping[str, T],
    items2: Mapping[str, T],
    group: Callable[[T], str],
    make_node: Callable[[Presence], N],
    compare: Optional[Callable[[str, N, T, T], None]] = None,
) -> Dict[str, Dict[str, N]]:
    """Like :func:`match`, but route each key into a bucket chosen by *group*.

    The bucket of a matched key is decided by database 1's entity; keys only
    in database 2 use database 2's entity. A key lands in database 2's
    bucket only if that bucket does not hold it already.
    """
    buckets: Dict[str, Dict[str, N]] = {}

    for key, item1 in items1.items():
        bucket = buckets.setdefault(group(item1), {})
        if key in items2:
            node = make_node(Presence.BOTH)
            if compare is not None:
                compare(key, node, item1, items2[key])
        else:
            node = make_node(Presence.ONLY_IN_1)
        bucket[key] = node

    for key, item2 in items2.items():
        bucket = buckets.setdefault(group(item2), {})
        if key not in bucket:
            bucket[key] = make_node(Presence.ONLY_IN_2)

    return buckets
