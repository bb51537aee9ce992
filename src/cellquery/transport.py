"""Single HTTP round trip against the REST web services."""
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from cellquery.errors import DecodeError, TransportError
from cellquery.models import Response

logger = logging.getLogger(__name__)

API_ROOT = 'webservices/rest'

# Options consumed by the client itself and never sent to the server
CLIENT_OPTIONS = frozenset(['numThreads'])

DEFAULT_TIMEOUT = 60


def build_url(
    host: str,
    version: str,
    species: str,
    category: str,
    subcategory: str,
    ids: Optional[List[str]],
    resource: str,
) -> str:
    """
    Build the resource URL for a call.

    Path segments are joined in order: host, API root, version, species,
    category, subcategory, comma-joined ids (omitted if empty) and resource.

    Args:
        host: Base URL of the service
        version: API version, e.g. 'v5'
        species: Species token, e.g. 'hsapiens'
        category: Data category, e.g. 'feature'
        subcategory: Data subcategory, e.g. 'gene'
        ids: Identifiers to look up (may be empty)
        resource: Action name, e.g. 'info'

    Returns:
        URL without query string
    """
    segments = [API_ROOT, version, species, category, subcategory]
    if ids:
        segments.append(','.join(ids))
    segments.append(resource)

    path = '/'.join(quote(str(segment).strip('/'), safe=',:') for segment in segments if segment)
    return f"{host.rstrip('/')}/{path}"


def encode_options(options: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """
    Convert an options mapping into query parameters.

    Lists are comma-joined, booleans are lower-cased and None values dropped.
    Client-side options such as numThreads are not sent.
    """
    params = {}
    for key, value in (options or {}).items():
        if key in CLIENT_OPTIONS or value is None:
            continue
        if isinstance(value, bool):
            params[key] = 'true' if value else 'false'
        elif isinstance(value, (list, tuple, set)):
            params[key] = ','.join(str(v) for v in value)
        else:
            params[key] = str(value)
    return params


class RestTransport:
    """Issues one GET per call and decodes the JSON body into a Response."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = DEFAULT_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def call(
        self,
        host: str,
        version: str,
        species: str,
        category: str,
        subcategory: str,
        ids: Optional[List[str]],
        resource: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> Response:
        """
        Perform a single GET and decode the body.

        Args:
            host: Base URL of the service
            version: API version
            species: Species token
            category: Data category
            subcategory: Data subcategory
            ids: Identifiers to look up, or empty for filter-style calls
            resource: Action name
            options: Query options, sent as query parameters

        Returns:
            Decoded Response. For id lookups it holds one Result per id.

        Raises:
            TransportError: On network failure or a non-success status
            DecodeError: On a malformed or mismatched body
        """
        url = build_url(host, version, species, category, subcategory, ids, resource)
        params = encode_options(options)

        try:
            http_response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        full_url = http_response.url or url
        logger.debug(f"Called REST URL: {full_url}")

        if not http_response.ok:
            raise TransportError(
                f"HTTP {http_response.status_code} from {full_url}",
                url=full_url,
                status_code=http_response.status_code,
            )

        try:
            body = http_response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {full_url}: {e}", url=full_url) from e

        try:
            response = Response.from_dict(body)
        except DecodeError as e:
            raise DecodeError(f"{e} ({full_url})", url=full_url) from e

        if ids and len(response) != len(ids):
            raise DecodeError(
                f"Expected {len(ids)} results from {full_url}, got {len(response)}",
                url=full_url,
            )

        return response
