"""
Batch runner used by the bulk update tools.

Drives the resolver over many ids in fixed-size batches with a checkpoint
flush and a pause between batches. Ids that are already mapped are skipped
without touching the rate limiter or the provider, so a rerun after a
partial failure only pays for the ids still missing.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Union

from ..config.logger_module import log_info, log_warning, log_error
from .resolver_errors import PersistenceError
from .resolver_store import MappingStore, normalize_id
from .resolver_workflow import ImageUrlResolver


@dataclass
class BatchSummary:
    """Counters for one run_all invocation."""

    total: int = 0
    skipped: int = 0
    attempted: int = 0
    resolved: int = 0
    fallbacks: int = 0
    batches: int = 0


class BatchRunner:
    """Runs ImageUrlResolver.resolve over ids in sequential batches."""

    def __init__(self,
                 resolver: ImageUrlResolver,
                 store: MappingStore = None,
                 batch_size: int = 50,
                 batch_delay: float = 2.0,
                 item_delay: float = 0.05,
                 concurrency: int = 1):
        """
        Initialize the batch runner.

        Args:
            resolver: Resolver to drive
            store: Mapping store to check and flush (resolver.store by default)
            batch_size: Ids per batch
            batch_delay: Seconds to pause between batches
            item_delay: Seconds to pause after each sequential resolution
            concurrency: Workers per batch; 1 resolves members sequentially
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.resolver = resolver
        self.store = store or resolver.store
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.item_delay = item_delay
        self.concurrency = concurrency

    @staticmethod
    def partition(ids: List[str], batch_size: int) -> List[List[str]]:
        """Split ids into consecutive batches of at most batch_size."""
        return [ids[i:i + batch_size] for i in range(0, len(ids), batch_size)]

    def _resolve_member(self, punk_id: str) -> bool:
        """Resolve one id; True when the provider URL was obtained."""
        self.resolver.resolve(punk_id)
        return self.store.contains(punk_id)

    def _run_batch(self, batch: List[str]) -> int:
        if self.concurrency == 1:
            resolved = 0
            for punk_id in batch:
                if self._resolve_member(punk_id):
                    resolved += 1
                if self.item_delay > 0:
                    time.sleep(self.item_delay)
            return resolved

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            results = list(executor.map(self._resolve_member, batch))
        return sum(1 for ok in results if ok)

    def run_all(self, ids: Iterable[Union[str, int]]) -> BatchSummary:
        """
        Resolve every unmapped id in batches.

        Args:
            ids: Item identifiers (duplicates are processed once)

        Returns:
            BatchSummary with counts for this run
        """
        all_ids = list(dict.fromkeys(normalize_id(punk_id) for punk_id in ids))
        missing = [punk_id for punk_id in all_ids if not self.store.contains(punk_id)]

        summary = BatchSummary(total=len(all_ids), skipped=len(all_ids) - len(missing))

        log_info(
            f"Batch run: {summary.total} ids, {summary.skipped} already mapped, "
            f"{len(missing)} to fetch"
        )

        if not missing:
            log_info("All ids already mapped, nothing to fetch")
            return summary

        batches = self.partition(missing, self.batch_size)

        for number, batch in enumerate(batches, 1):
            log_info(
                f"Processing batch {number}/{len(batches)} ({len(batch)} ids)"
            )

            resolved = self._run_batch(batch)
            summary.batches += 1
            summary.attempted += len(batch)
            summary.resolved += resolved
            summary.fallbacks += len(batch) - resolved

            log_info(f"Batch {number} completed: {resolved}/{len(batch)} resolved")

            try:
                self.store.flush()
            except PersistenceError as e:
                log_error(f"Checkpoint flush failed after batch {number}: {e}")

            if number < len(batches) and self.batch_delay > 0:
                log_info(f"Waiting {self.batch_delay:.1f}s before next batch")
                time.sleep(self.batch_delay)

        if summary.fallbacks:
            log_warning(f"{summary.fallbacks} ids still unmapped after this run")

        log_info(
            f"Batch run complete: {summary.resolved} resolved, "
            f"{summary.fallbacks} unresolved, {len(self.store)} mapped in total"
        )
        return summary
