"""Split large identifier lists into batches and run them concurrently."""
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, Iterator, List, Optional

from cellquery.errors import QueryError
from cellquery.metrics import QueryMetrics
from cellquery.models import Response
from cellquery.paginate import int_option, paging_window

logger = logging.getLogger(__name__)

# Maximum identifiers per REST call
BATCH_SIZE = 200
DEFAULT_NUM_THREADS = 4

BatchFetch = Callable[[List[str], str, Dict[str, Any], Optional[QueryMetrics]], Response]


class Batch:
    """A contiguous slice of the requested ids, tagged with its offset."""

    def __init__(self, start: int, ids: List[str]):
        self.start = start
        self.ids = ids

    @property
    def end(self) -> int:
        return self.start + len(self.ids)

    def describe(self) -> str:
        return f"ids[{self.start}:{self.end}] ({self.ids[0]}..{self.ids[-1]})"

    def __repr__(self) -> str:
        return f"Batch(start={self.start}, size={len(self.ids)})"


class BatchOutcome:
    """Either the Response of a batch or the error that stopped it."""

    def __init__(
        self,
        batch: Batch,
        response: Optional[Response] = None,
        error: Optional[Exception] = None,
        metrics: Optional[QueryMetrics] = None,
    ):
        self.batch = batch
        self.response = response
        self.error = error
        self.metrics = metrics or QueryMetrics(total_items=len(batch.ids))

    @property
    def ok(self) -> bool:
        return self.error is None


class BatchError(QueryError):
    """Raised when one or more batches failed.

    Raised only after every batch has finished. ``outcomes`` keeps the
    outcome of every batch in input order, so responses of the batches that
    succeeded remain available to the caller.
    """

    def __init__(self, outcomes: List[BatchOutcome]):
        self.outcomes = outcomes
        self.failures = [outcome for outcome in outcomes if not outcome.ok]
        details = '; '.join(
            f"{type(f.error).__name__} for {f.batch.describe()}: {f.error}"
            for f in self.failures
        )
        super().__init__(f"{len(self.failures)} of {len(outcomes)} batches failed: {details}")


class QueryInterrupted(KeyboardInterrupt):
    """Raised when waiting for batches is interrupted."""

    def __init__(self, pending: List[Batch]):
        self.pending = pending
        ranges = ', '.join(f"ids[{b.start}:{b.end}]" for b in pending)
        super().__init__(f"Interrupted with {len(pending)} batches unfinished: {ranges}")


def split_batches(ids: List[str], batch_size: int = BATCH_SIZE) -> Iterator[Batch]:
    """Yield consecutive slices of at most batch_size ids."""
    if batch_size < 1:
        raise ValueError(f"batch_size must be positive, got {batch_size}")
    for start in range(0, len(ids), batch_size):
        yield Batch(start, ids[start:start + batch_size])


def run_batch(fetch: BatchFetch, batch: Batch, resource: str, options: Dict[str, Any]) -> BatchOutcome:
    """Run one batch in a worker thread with its own options and metrics."""
    metrics = QueryMetrics(total_items=len(batch.ids))
    metrics.increment_batches()
    try:
        response = fetch(batch.ids, resource, dict(options), metrics)
    except QueryError as e:
        logger.warning(f"Batch {batch.describe()} failed: {e}")
        return BatchOutcome(batch, error=e, metrics=metrics)
    return BatchOutcome(batch, response=response, metrics=metrics)


def execute(
    fetch: BatchFetch,
    ids: List[str],
    resource: str,
    options: Optional[Dict[str, Any]] = None,
    batch_size: int = BATCH_SIZE,
    callback: Optional[Callable[[int, int], None]] = None,
    metrics: Optional[QueryMetrics] = None
) -> Response:
    """
    Fetch results for any number of ids, batch_size ids per call.

    Lists of up to batch_size ids are fetched inline. Longer lists are split
    into batches that run on a thread pool sized by the ``numThreads``
    option. Results are merged in input order, so ``results[i]`` answers
    ``ids[i]``.

    Args:
        fetch: Fetches one batch: fetch(ids, resource, options, metrics)
        ids: Identifiers to look up, duplicates allowed
        resource: Action name
        options: Query options; not modified
        batch_size: Maximum ids per batch (default 200)
        callback: Optional function called after each batch: callback(batch_num, total_batches)
        metrics: Optional tracker updated with the counters of every batch

    Returns:
        Merged Response

    Raises:
        BatchError: If any batch of a parallel call failed
        QueryInterrupted: If waiting for the batches was interrupted
        ValueError: If limit, skip or numThreads is invalid
    """
    options = dict(options or {})

    if not ids:
        return Response()

    # Reject bad paging options before any batch starts
    paging_window(options)
    num_threads = int_option(options, 'numThreads', DEFAULT_NUM_THREADS)
    if num_threads < 1:
        raise ValueError(f"numThreads must be positive, got {num_threads}")

    if len(ids) <= batch_size:
        if metrics:
            metrics.increment_batches()
        response = fetch(list(ids), resource, options, metrics)
        if callback:
            callback(1, 1)
        return response

    batches = list(split_batches(list(ids), batch_size))
    total_batches = len(batches)
    logger.debug(f"Fetching {len(ids)} ids in {total_batches} batches on {num_threads} threads")

    if metrics:
        metrics.parallel = True

    executor = ThreadPoolExecutor(max_workers=num_threads)
    futures = []
    interrupted = False
    try:
        for batch in batches:
            futures.append(executor.submit(run_batch, fetch, batch, resource, options))

        # Blocks until every batch has finished, successfully or not
        for batch_num, _ in enumerate(as_completed(futures), start=1):
            if callback:
                callback(batch_num, total_batches)
    except KeyboardInterrupt:
        interrupted = True
        pending = [
            batch for i, batch in enumerate(batches)
            if i >= len(futures) or not futures[i].done()
        ]
        executor.shutdown(wait=False, cancel_futures=True)
        raise QueryInterrupted(pending) from None
    finally:
        # Any other error still waits for the running batches
        if not interrupted:
            executor.shutdown(wait=True)

    # Submission order, not completion order
    outcomes = [future.result() for future in futures]
    if metrics:
        for outcome in outcomes:
            metrics.merge(outcome.metrics)

    if any(not outcome.ok for outcome in outcomes):
        raise BatchError(outcomes)

    return Response.merge(outcome.response for outcome in outcomes)
