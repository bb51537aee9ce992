"""Follow truncated results across pages for one batch of identifiers."""
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from cellquery.metrics import QueryMetrics
from cellquery.models import Response

logger = logging.getLogger(__name__)

# Maximum items returned per identifier per call
DEFAULT_LIMIT = 1000

RoundCall = Callable[[List[str], str, Dict[str, Any]], Response]


def with_defaults(options: Optional[Dict[str, Any]], limit: int = DEFAULT_LIMIT) -> Dict[str, Any]:
    """Return a copy of options with limit filled in when absent."""
    merged = dict(options or {})
    if merged.get('limit') is None:
        merged['limit'] = limit
    return merged


def int_option(options: Dict[str, Any], key: str, default: int) -> int:
    """Read an integer option, accepting numeric strings from the command line."""
    value = options.get(key)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key} must be an integer, got {value!r}") from None


def paging_window(options: Dict[str, Any]) -> Tuple[int, int]:
    """
    Return the (limit, skip) pair an options mapping asks for.

    Raises:
        ValueError: If limit is not a positive integer or skip a non-negative one
    """
    limit = int_option(options, 'limit', DEFAULT_LIMIT)
    if limit < 1:
        raise ValueError(f"limit must be positive, got {limit}")
    skip = int_option(options, 'skip', 0)
    if skip < 0:
        raise ValueError(f"skip must not be negative, got {skip}")
    return limit, skip


def find_truncated(
    response: Response,
    ids: List[str],
    slots: List[int],
    limit: int
) -> Tuple[List[str], Dict[int, int]]:
    """
    Work out which identifiers need another page.

    Args:
        response: Response of the round just completed
        ids: Identifiers requested in that round, aligned with response
        slots: Accumulator position of each identifier of that round
        limit: Page size in force

    Returns:
        Tuple of (next round ids, map from next round position to
        accumulator position)
    """
    next_ids = []
    next_map = {}
    for i, result in enumerate(response.results):
        if result.is_truncated(limit):
            next_map[len(next_ids)] = slots[i]
            next_ids.append(ids[i])
    return next_ids, next_map


def fetch_all(
    call: RoundCall,
    ids: List[str],
    resource: str,
    options: Optional[Dict[str, Any]] = None,
    metrics: Optional[QueryMetrics] = None
) -> Response:
    """
    Fetch every page for a batch of identifiers.

    Issues a call over all ids, then keeps re-requesting only the ids whose
    result came back full (exactly ``limit`` items), advancing ``skip`` by
    ``limit`` each round. Follow-up pages are appended to the matching
    Result of the first round. A page with fewer than ``limit`` items,
    including an empty one, ends pagination for that id.

    Args:
        call: Performs one round: call(ids, resource, options) -> Response
        ids: Identifiers of one batch
        resource: Action name
        options: Query options; not modified
        metrics: Optional tracker for calls, rounds and items

    Returns:
        Response with one Result per id holding all pages in order

    Raises:
        ValueError: If limit or skip is not a valid page window
    """
    if not ids:
        return Response()

    options = with_defaults(options)
    limit, skip = paging_window(options)

    accumulated = call(ids, resource, options)
    if metrics:
        metrics.increment_api_calls()
        metrics.increment_processed(sum(len(r.items) for r in accumulated.results))

    round_ids, round_map = find_truncated(accumulated, ids, list(range(len(ids))), limit)

    while round_ids:
        skip += limit
        options['skip'] = skip
        logger.debug(f"{len(round_ids)} ids truncated, fetching next page at skip={skip}")

        page = call(round_ids, resource, options)
        if metrics:
            metrics.increment_api_calls()
            metrics.increment_rounds()

        for position, result in enumerate(page.results):
            accumulated.results[round_map[position]].extend(result)
            if metrics:
                metrics.increment_processed(len(result.items))

        slots = [round_map[position] for position in range(len(round_ids))]
        round_ids, round_map = find_truncated(page, round_ids, slots, limit)

    return accumulated
