import time


class QueryMetrics:
    """Tracks batches, API calls and pagination rounds for one query call.

    ``rounds`` counts follow-up pages only; a call answered in one page per
    batch has zero rounds.
    """

    def __init__(self, total_items: int = 0):
        """Initialize the metrics tracker.

        Args:
            total_items: Number of identifiers requested by the call
        """
        self.total_items = total_items
        self.processed = 0
        self.api_calls = 0
        self.rounds = 0
        self.batches = 0
        self.parallel = False
        self.start_time = time.time()

    def increment_processed(self, count: int = 1) -> None:
        """Increment the retrieved items counter.

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.processed += count

    def increment_api_calls(self, count: int = 1) -> None:
        """Increment the API calls counter.

        Raises:
            ValueError: If count is negative
        """
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.api_calls += count

    def increment_rounds(self, count: int = 1) -> None:
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.rounds += count

    def increment_batches(self, count: int = 1) -> None:
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        self.batches += count

    def merge(self, other: 'QueryMetrics') -> None:
        """Fold the counters of a per-batch tracker into this one."""
        self.processed += other.processed
        self.api_calls += other.api_calls
        self.rounds += other.rounds
        self.batches += other.batches

    def get_processing_rate(self) -> float:
        """Calculate the current rate in items per second.

        Returns:
            Items retrieved per second
        """
        elapsed_time = time.time() - self.start_time
        if elapsed_time == 0:
            return 0.0
        return self.processed / elapsed_time

    def format_report(self) -> str:
        """Format a human-readable summary of the call.

        Returns:
            Formatted string with call metrics
        """
        elapsed = time.time() - self.start_time
        rate = self.get_processing_rate()
        mode = "parallel" if self.parallel else "inline"

        return (
            f"Ids: {self.total_items} | "
            f"Batches: {self.batches} ({mode}) | "
            f"API calls: {self.api_calls} | "
            f"Rounds: {self.rounds} | "
            f"Items: {self.processed} ({rate:.2f} items/sec) | "
            f"Elapsed: {elapsed:.1f}s"
        )
