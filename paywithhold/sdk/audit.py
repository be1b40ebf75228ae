"""Audit trail for completed withholding calculations.

One AuditRecord per calculation that reaches the persistence step. Sinks
only ever append; nothing here updates or deletes a record, and the engine
never reads records back.

Sinks:
- InMemoryAuditSink: list-backed, for tests and embedding
- JsonlAuditSink: one JSON object per line in an append-only file
- OutboxAuditSink: writes each record ahead to a local spool, then delivers
  it to a downstream sink. A failed delivery stays pending in the spool and
  is retried by flush() without recomputing anything.
"""

import fcntl
import json
import logging
import os
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Set, Union

from .errors import PersistenceError
from .schemas import AuditRecord, TaxCalculationRequest, TaxCalculationResult

# Configure logging based on LOG_LEVEL environment variable
_log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, _log_level, logging.INFO),
    format="%(asctime)s.%(msecs)03d %(levelname)s: %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger(__name__)


def build_audit_record(
    request: TaxCalculationRequest,
    result: TaxCalculationResult,
    performed_by: Optional[str],
    timestamp: datetime,
) -> AuditRecord:
    """Assemble the audit record for one calculation."""
    return AuditRecord(
        id=uuid.uuid4().hex,
        employee_id=request.employee_id,
        request=request,
        result=result,
        states_involved=request.jurisdiction_codes,
        performed_by=performed_by,
        timestamp=timestamp,
    )


def _to_line(record: AuditRecord) -> str:
    return json.dumps(record.model_dump(mode="json", by_alias=True), separators=(",", ":"))


class AuditSink:
    """Append-only destination for audit records."""

    def append(self, record: AuditRecord) -> None:
        raise NotImplementedError


class InMemoryAuditSink(AuditSink):
    """Keeps records in a list."""

    def __init__(self):
        self._records: List[AuditRecord] = []
        self._lock = threading.Lock()

    def append(self, record: AuditRecord) -> None:
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> tuple:
        with self._lock:
            return tuple(self._records)


class JsonlAuditSink(AuditSink):
    """Appends records as JSON lines to a file.

    Each append opens the file in append mode, writes one line and fsyncs,
    so a record is either fully on disk or the call raises.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def append(self, record: AuditRecord) -> None:
        line = _to_line(record)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
                f.flush()
                os.fsync(f.fileno())
        logger.info(f"Audit record {record.id} appended to {self.path}")

    def read_records(self, employee_id: Optional[str] = None) -> List[AuditRecord]:
        """Read records back (CLI inspection only), oldest first."""
        if not self.path.exists():
            return []

        records = []
        with open(self.path, "r", encoding="utf-8") as f:
            for line_number, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = AuditRecord.model_validate_json(line)
                except ValueError as e:
                    logger.warning(f"{self.path}:{line_number}: unreadable audit record: {e}")
                    continue
                if employee_id is None or record.employee_id == employee_id:
                    records.append(record)
        return records


class OutboxAuditSink(AuditSink):
    """Write-ahead spool in front of a downstream sink.

    append() succeeds once the record is durable in the spool; delivery to
    the downstream sink is attempted immediately and, if it fails, left
    pending for flush(). Delivered record ids are tracked in a sibling
    '.delivered' file so pending work survives restarts.

    Delivery holds an exclusive flock on a sibling '.lock' file from the
    ledger check through the ledger write, so an append in the server and a
    flush from another thread or process never deliver the same id twice.
    """

    def __init__(self, spool_path: Union[str, Path], downstream: AuditSink):
        self.spool = JsonlAuditSink(spool_path)
        self.delivered_path = Path(f"{spool_path}.delivered")
        self.lock_path = Path(f"{spool_path}.lock")
        self.downstream = downstream

    def append(self, record: AuditRecord) -> None:
        self.spool.append(record)
        try:
            self._deliver(record)
        except Exception as e:
            logger.warning(f"Audit record {record.id} spooled; downstream delivery failed: {e}")

    def _deliver(self, record: AuditRecord) -> bool:
        """Deliver one record unless the ledger already has it.

        Returns:
            True if this call delivered the record, False if it was already delivered
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        # One open file description per call; flock conflicts across threads too.
        with open(self.lock_path, "a") as lock_file:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX)
            try:
                if record.id in self._delivered_ids():
                    logger.debug(f"Audit record {record.id} already delivered")
                    return False
                self.downstream.append(record)
                with open(self.delivered_path, "a", encoding="utf-8") as f:
                    f.write(record.id + "\n")
                    f.flush()
                    os.fsync(f.fileno())
                return True
            finally:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)

    def _delivered_ids(self) -> Set[str]:
        if not self.delivered_path.exists():
            return set()
        with open(self.delivered_path, "r", encoding="utf-8") as f:
            return {line.strip() for line in f if line.strip()}

    def pending(self) -> List[AuditRecord]:
        """Spooled records not yet delivered downstream, oldest first."""
        delivered = self._delivered_ids()
        return [r for r in self.spool.read_records() if r.id not in delivered]

    def flush(self) -> int:
        """Deliver pending records in order.

        Returns:
            Number of records delivered

        Raises:
            PersistenceError: On the first record that still cannot be delivered
        """
        count = 0
        for record in self.pending():
            try:
                delivered = self._deliver(record)
            except Exception as e:
                raise PersistenceError(
                    f"Delivered {count} audit record(s); {record.id} still failing: {e}"
                ) from e
            if delivered:
                count += 1
        if count:
            logger.info(f"Flushed {count} pending audit record(s)")
        return count


def iter_states(records: Iterable[AuditRecord]) -> List[str]:
    """Distinct states across records, sorted."""
    return sorted({code for record in records for code in record.states_involved})
