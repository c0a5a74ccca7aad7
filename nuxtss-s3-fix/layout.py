"""
Nuxt S3 Fix - Layout Helpers
Classifies which layout a route is in from the existence of its three keys.
"""

from typing import Dict, Iterable, NamedTuple

from models import KeyTriple, Layout


TARGET_LAYOUTS = (Layout.SINGLE, Layout.DOUBLE)


class Presence(NamedTuple):
    """Existence of a triple's keys."""
    same: bool
    flat: bool
    index: bool


def presence(triple: KeyTriple, existence: Dict[str, bool]) -> Presence:
    """Look up a complete triple; keys missing from the map count as absent."""
    return Presence(
        same=bool(existence.get(triple.same)),
        flat=bool(existence.get(triple.flat)),
        index=bool(existence.get(triple.index)),
    )


def is_target_layout(layout) -> bool:
    return layout in TARGET_LAYOUTS


def classify(state: Presence) -> Layout:
    """
    Observed layout for one route.

    same only         -> SINGLE
    same + index      -> DOUBLE
    flat only         -> FLAT
    index only        -> INDEX
    nothing           -> UNKNOWN
    anything else     -> MIXED
    """
    if state.same:
        if not state.flat and not state.index:
            return Layout.SINGLE
        if state.index and not state.flat:
            return Layout.DOUBLE
        return Layout.MIXED
    if state.flat and state.index:
        return Layout.MIXED
    if state.flat:
        return Layout.FLAT
    if state.index:
        return Layout.INDEX
    return Layout.UNKNOWN


def observed_layout(triple: KeyTriple, existence: Dict[str, bool]) -> Layout:
    if not triple.is_complete():
        return Layout.UNKNOWN
    return classify(presence(triple, existence))


def is_converged(state: Presence, target: Layout) -> bool:
    """True when the route already matches the target layout exactly."""
    return is_target_layout(target) and classify(state) == target


def count_layouts(triples: Iterable[KeyTriple], existence: Dict[str, bool]) -> Dict[Layout, int]:
    """Observed layout counts across routes, every Layout present."""
    counts = {layout: 0 for layout in Layout}
    for triple in triples:
        counts[observed_layout(triple, existence)] += 1
    return counts
