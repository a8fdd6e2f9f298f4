"""In-memory registry of test records."""

import copy
import threading
from datetime import datetime
from typing import Dict, List, Optional

from .errors import TestNotFoundError
from .models import ComparisonMetrics, ProtocolResult, TestRecord, TestStatus


class TestRegistry:
    """
    Thread-safe map of test id to TestRecord.

    Status readers may poll from other threads while a test runs, so every
    read returns a deep copy and every write happens under the lock.
    Records are never evicted.
    """

    __test__ = False

    def __init__(self):
        self._records: Dict[str, TestRecord] = {}
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, test_id: str) -> bool:
        with self._lock:
            return test_id in self._records

    def register(self, record: TestRecord) -> None:
        with self._lock:
            self._records[record.test_id] = record

    def _require(self, test_id: str) -> TestRecord:
        record = self._records.get(test_id)
        if record is None:
            raise TestNotFoundError(test_id)
        return record

    def get(self, test_id: str) -> TestRecord:
        """Snapshot of one record. Raises TestNotFoundError."""
        with self._lock:
            return copy.deepcopy(self._require(test_id))

    def list(self) -> List[TestRecord]:
        """Snapshots of every record, newest first."""
        with self._lock:
            records = [copy.deepcopy(r) for r in self._records.values()]
        return sorted(records, key=lambda r: r.start_time, reverse=True)

    def record_result(self, test_id: str, result: ProtocolResult) -> None:
        with self._lock:
            self._require(test_id).results[result.protocol] = result

    def finish(
        self,
        test_id: str,
        status: TestStatus,
        comparison: Optional[ComparisonMetrics] = None,
        error: Optional[str] = None,
        end_time: Optional[datetime] = None,
    ) -> TestRecord:
        """Move a running record to a final state and return a snapshot."""
        with self._lock:
            record = self._require(test_id)
            if record.status == TestStatus.RUNNING:
                record.status = status
                record.end_time = end_time or datetime.now()
                record.comparison = comparison
                record.error = error
            return copy.deepcopy(record)

    def interrupt_running(self, end_time: Optional[datetime] = None) -> List[str]:
        """Mark every running record as interrupted. Returns their ids."""
        now = end_time or datetime.now()
        interrupted = []
        with self._lock:
            for record in self._records.values():
                if record.status == TestStatus.RUNNING:
                    record.status = TestStatus.INTERRUPTED
                    record.end_time = now
                    interrupted.append(record.test_id)
        return interrupted
