"""Shared test fixtures."""
import threading
import time

import pytest
from click.testing import CliRunner

from cellquery.config import Config
from cellquery.models import Response, Result


class FakeBackend:
    """Deterministic stand-in for the REST service.

    Each id has a number of true matches; a call returns the page selected
    by the 'skip' and 'limit' options, one Result per requested id.
    """

    def __init__(self, totals=None, default_total=1, delays=None, fail_on=None):
        self.totals = totals or {}
        self.default_total = default_total
        self.delays = delays or {}
        self.fail_on = fail_on or {}
        self.calls = []
        self._lock = threading.Lock()

    def total_for(self, id_):
        return self.totals.get(id_, self.default_total)

    def call(self, ids, resource, options):
        ids = list(ids)
        with self._lock:
            self.calls.append((ids, resource, dict(options)))

        for id_, error in self.fail_on.items():
            if id_ in ids:
                raise error

        if ids and ids[0] in self.delays:
            time.sleep(self.delays[ids[0]])

        limit = int(options.get('limit', 1000))
        skip = int(options.get('skip', 0))

        if not ids:
            return Response(results=[Result(items=[{'resource': resource}], num_total_results=1)])

        results = []
        for id_ in ids:
            total = self.total_for(id_)
            items = [f"{id_}#{n}" for n in range(skip, min(skip + limit, total))]
            results.append(Result(id=id_, items=items, num_total_results=total))
        return Response(results=results, api_version='v5', time=1)

    def transport_call(self, host, version, species, category, subcategory, ids, resource, options=None):
        return self.call(ids, resource, options or {})

    def calls_for(self, id_):
        return [call for call in self.calls if id_ in call[0]]


class FakeTransport:
    """Transport double that records the URL parts and defers to a backend."""

    def __init__(self, backend):
        self.backend = backend
        self.requests = []

    def call(self, host, version, species, category, subcategory, ids, resource, options=None):
        self.requests.append({
            'host': host,
            'version': version,
            'species': species,
            'category': category,
            'subcategory': subcategory,
            'ids': list(ids or []),
            'resource': resource,
            'options': dict(options or {}),
        })
        return self.backend.transport_call(host, version, species, category, subcategory, ids, resource, options)


@pytest.fixture
def make_backend():
    """Factory for FakeBackend instances."""
    return FakeBackend


@pytest.fixture
def make_transport():
    """Factory for FakeTransport instances wrapping a backend."""
    return FakeTransport


@pytest.fixture
def config():
    """Config pointing at a test host."""
    return Config({
        'rest': {'hosts': ['http://cellbase.test/cellbase', 'http://backup.test/cellbase']},
        'version': 'v5',
        'default_species': 'hsapiens',
    })


@pytest.fixture
def cli_runner():
    """Return Click test runner."""
    return CliRunner()
