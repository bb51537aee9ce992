"""Query entry points: lookup by id, count and first."""
import logging
from typing import Any, Callable, Dict, List, Optional, Union

from cellquery import batch, paginate
from cellquery.config import Config
from cellquery.metrics import QueryMetrics
from cellquery.models import Response
from cellquery.transport import RestTransport

logger = logging.getLogger(__name__)

Ids = Union[str, List[str]]


def parse_ids(ids: Optional[Ids]) -> List[str]:
    """Accept a list of ids or a comma-separated string."""
    if ids is None:
        return []
    if isinstance(ids, str):
        return [token.strip() for token in ids.split(',') if token.strip()]
    return [str(id_) for id_ in ids]


class QueryClient:
    """
    Client for one category/subcategory of the REST web services.

    Holds everything a call needs (configuration, species, transport), so
    nothing is shared between clients. Every call works on its own copy of
    the options.
    """

    def __init__(
        self,
        config: Config,
        category: str,
        subcategory: str,
        species: Optional[str] = None,
        transport: Optional[RestTransport] = None,
    ):
        self.config = config
        self.category = category
        self.subcategory = subcategory
        self.species = species or config.default_species
        self.transport = transport or RestTransport(timeout=config.timeout)

    def get(
        self,
        ids: Ids,
        options: Optional[Dict[str, Any]] = None,
        callback: Optional[Callable[[int, int], None]] = None,
        metrics: Optional[QueryMetrics] = None
    ) -> Response:
        """Look up records by id; results[i] answers ids[i]."""
        return self.execute('info', options=options, ids=ids, callback=callback, metrics=metrics)

    def count(self, query: Optional[Dict[str, Any]] = None) -> Response:
        """Count records matching a filter."""
        return self.execute('count', query=query or {})

    def first(self) -> Response:
        """Fetch the first record of the collection."""
        return self.execute('first', query={})

    def execute(
        self,
        resource: str,
        query: Optional[Dict[str, Any]] = None,
        options: Optional[Dict[str, Any]] = None,
        ids: Optional[Ids] = None,
        callback: Optional[Callable[[int, int], None]] = None,
        metrics: Optional[QueryMetrics] = None
    ) -> Response:
        """
        Run a call against a resource.

        With ids, this is a lookup by id: ids are batched, fetched in
        parallel when there are many and paginated until complete. Without
        ids, a single filter-style call is made with the query fields folded
        into the options.

        Args:
            resource: Action name, e.g. 'info', 'count', 'first'
            query: Filter fields, sent as query parameters
            options: Query options (limit, skip, include, exclude, numThreads, ...)
            ids: List of ids or comma-separated string
            callback: Optional progress function: callback(batch_num, total_batches)
            metrics: Optional tracker filled in with the call's counters

        Returns:
            Response for the call
        """
        call_options = self._build_options(query, options)
        id_list = parse_ids(ids)
        if metrics is None:
            metrics = QueryMetrics()
        metrics.total_items = len(id_list) if ids is not None else 1

        if ids is not None:
            response = batch.execute(
                self._fetch_batch,
                id_list,
                resource,
                call_options,
                callback=callback,
                metrics=metrics
            )
        else:
            metrics.increment_batches()
            response = self._call([], resource, call_options)
            metrics.increment_api_calls()
            metrics.increment_processed(sum(len(r.items) for r in response.results))

        logger.debug(f"{self.category}/{self.subcategory}/{resource}: {metrics.format_report()}")
        return response

    def _build_options(
        self,
        query: Optional[Dict[str, Any]],
        options: Optional[Dict[str, Any]]
    ) -> Dict[str, Any]:
        merged = dict(self.config.options)
        merged.update(options or {})
        if query:
            merged.update(query)
        return paginate.with_defaults(merged)

    def _fetch_batch(
        self,
        ids: List[str],
        resource: str,
        options: Dict[str, Any],
        metrics: Optional[QueryMetrics] = None
    ) -> Response:
        return paginate.fetch_all(self._call, ids, resource, options, metrics=metrics)

    def _call(self, ids: List[str], resource: str, options: Dict[str, Any]) -> Response:
        return self.transport.call(
            self.config.host,
            self.config.version,
            self.species,
            self.category,
            self.subcategory,
            ids,
            resource,
            options
        )
