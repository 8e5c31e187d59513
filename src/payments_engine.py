import logging
import threading
from typing import Iterable, List

from csv_codec import read_events_from_path
from message_queue import ShardedQueue
from models import AccountSummary, Event, ProcessingStats
from transaction_processor import TransactionProcessor

logger = logging.getLogger(__name__)


class PaymentsEngine:
    """
    Runs a stream of events through a TransactionProcessor.

    With a single worker events are handled inline, in arrival order.
    With more, the caller publishes into a ShardedQueue and one consumer
    thread per shard drains it. Clients never share state, so handling
    them in parallel gives the same balances as long as each client's
    events stay in order on one shard.
    """

    def __init__(self, num_workers: int = 1):
        if num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {num_workers}")
        self._num_workers = num_workers
        self._processor = TransactionProcessor()
        self._stats = ProcessingStats()
        self._worker_errors: List[BaseException] = []

    @property
    def processor(self) -> TransactionProcessor:
        return self._processor

    @property
    def stats(self) -> ProcessingStats:
        return self._stats

    def process_file(self, filepath: str) -> List[AccountSummary]:
        """Process CSV file and return the final account summaries."""
        logger.info(f"Processing {filepath} with {self._num_workers} worker(s)")
        return self.process_events(read_events_from_path(filepath))

    def process_events(self, events: Iterable[Event]) -> List[AccountSummary]:
        if self._num_workers == 1:
            for event in events:
                self._stats.record(self._processor.handle(event))
        else:
            self._process_concurrently(events)

        logger.info(str(self._stats))
        return self._processor.summary()

    def _process_concurrently(self, events: Iterable[Event]) -> None:
        queue = ShardedQueue(self._num_workers)

        consumer_threads = []
        for shard in range(self._num_workers):
            consumer_thread = threading.Thread(
                target=self._consume_events,
                args=(queue, shard),
                name=f"payments-worker-{shard}",
            )
            consumer_thread.start()
            consumer_threads.append(consumer_thread)

        # Workers must stop even if the source fails half way.
        try:
            for event in events:
                queue.publish_message(event)
        finally:
            queue.shutdown()
            for consumer_thread in consumer_threads:
                consumer_thread.join()

        if self._worker_errors:
            raise self._worker_errors[0]

    def _consume_events(self, queue: ShardedQueue, shard: int) -> None:
        """Consumer loop: pull from one shard and process until shutdown."""
        while True:
            event = queue.consume_message(shard)
            if event is None:
                if queue.is_shutdown() and queue.is_empty(shard):
                    break
                continue

            try:
                self._stats.record(self._processor.handle(event))
            except Exception as error:
                logger.exception(f"Worker for shard {shard} failed on {event!r}")
                self._worker_errors.append(error)
                return
