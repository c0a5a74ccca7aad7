"""
Nuxt S3 Fix - Key Builder
Turns sitemap routes into same/flat/index key triples.
"""

from typing import Iterable, List, Optional, Tuple

from logger import Logger, NullLogger
from models import KeyTriple


def is_excluded_route(route: str) -> bool:
    """Routes that already name an object (".html") or a directory ("/") get no triple."""
    return route.endswith('.html') or route.endswith('/')


def build_key_triples(
    routes: Iterable[Optional[str]],
    log: Optional[Logger] = None
) -> Tuple[List[str], List[str], List[KeyTriple]]:
    """
    Build key triples for sitemap routes.

    Args:
        routes: Site-relative paths from the sitemap.
        log: Optional logger.

    Returns:
        (accepted routes, excluded routes, triples). Excluded routes are
        included in the accepted list, as they were found in the sitemap.
        Empty routes are dropped entirely.
    """
    log = log or NullLogger()
    log.debug('Generating S3 object keys from sitemap paths')

    accepted: List[str] = []
    excluded: List[str] = []
    triples: List[KeyTriple] = []

    for route in routes:
        if not route:
            log.error(f'Excluding invalid sitemap path from key generation: "{route}"')
            continue
        accepted.append(route)
        if is_excluded_route(route):
            excluded.append(route)
        else:
            triples.append(KeyTriple.from_route(route))

    if excluded:
        log.info(f"Sitemap paths used: {len(accepted) - len(excluded)} excluded: {len(excluded)}")
        log.debug(f"Sitemap paths excluded: {excluded}")

    return accepted, excluded, triples


def flatten_keys(triples: Iterable[KeyTriple]) -> List[str]:
    """All defined keys in triple order, for the existence lookup."""
    keys: List[str] = []
    for triple in triples:
        keys.extend(k for k in triple.keys() if k)
    return keys
