from cellquery.metrics import QueryMetrics
import pytest
from unittest.mock import patch


def test_metrics_initialization():
    metrics = QueryMetrics(total_items=100)
    assert metrics.total_items == 100
    assert metrics.processed == 0
    assert metrics.api_calls == 0
    assert metrics.rounds == 0
    assert metrics.batches == 0
    assert metrics.parallel is False


def test_metrics_increments():
    metrics = QueryMetrics(total_items=100)
    metrics.increment_processed(5)
    metrics.increment_api_calls(2)
    metrics.increment_rounds()
    metrics.increment_batches(3)

    assert metrics.processed == 5
    assert metrics.api_calls == 2
    assert metrics.rounds == 1
    assert metrics.batches == 3


@pytest.mark.parametrize('method', [
    'increment_processed',
    'increment_api_calls',
    'increment_rounds',
    'increment_batches',
])
def test_increments_reject_negative(method):
    metrics = QueryMetrics(total_items=100)
    with pytest.raises(ValueError, match="count must be non-negative"):
        getattr(metrics, method)(-1)


def test_merge_adds_counters():
    total = QueryMetrics(total_items=400)
    for _ in range(2):
        batch = QueryMetrics(total_items=200)
        batch.increment_batches()
        batch.increment_api_calls(3)
        batch.increment_rounds(2)
        batch.increment_processed(250)
        total.merge(batch)

    assert total.batches == 2
    assert total.api_calls == 6
    assert total.rounds == 4
    assert total.processed == 500
    assert total.total_items == 400


@patch("cellquery.metrics.time.time")
def test_metrics_calculates_rate(mock_time):
    mock_time.side_effect = [0.0, 1.0]  # start_time=0, elapsed=1
    metrics = QueryMetrics(total_items=100)
    metrics.increment_processed(10)

    assert metrics.get_processing_rate() == 10.0


@patch("cellquery.metrics.time.time")
def test_metrics_rate_zero_elapsed_time(mock_time):
    mock_time.return_value = 0.0
    metrics = QueryMetrics(total_items=100)
    metrics.increment_processed(10)

    assert metrics.get_processing_rate() == 0.0


@patch("cellquery.metrics.time.time")
def test_format_report_structure(mock_time):
    mock_time.side_effect = [0.0, 2.0, 2.0]
    metrics = QueryMetrics(total_items=450)
    metrics.parallel = True
    metrics.increment_batches(3)
    metrics.increment_api_calls(4)
    metrics.increment_rounds(1)
    metrics.increment_processed(100)

    report = metrics.format_report()

    assert "Ids: 450" in report
    assert "Batches: 3 (parallel)" in report
    assert "API calls: 4" in report
    assert "Rounds: 1" in report
    assert "Items: 100 (50.00 items/sec)" in report
    assert "Elapsed: 2.0s" in report
