"""
Error taxonomy of the clinic store.

Every failure leaving ``scheduler`` or ``crud`` is a ``StoreError`` carrying a
machine-readable ``kind`` and a human-readable message. Raw SQLAlchemy / DBAPI
errors are translated here.
"""
from sqlalchemy.exc import IntegrityError, OperationalError

# PostgreSQL SQLSTATE codes
PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_NOT_NULL_VIOLATION = "23502"
PG_CHECK_VIOLATION = "23514"
PG_TRANSIENT = {"55P03", "40P01", "40001"}  # lock_not_available, deadlock, serialization_failure

SQLITE_TRANSIENT = ("database is locked", "database table is locked", "database is busy")


class StoreError(Exception):
    kind = "error"
    status_code = 400
    retryable = False

    def __init__(self, message, **details):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self):
        return {"kind": self.kind, "message": self.message, "retryable": self.retryable, **self.details}


class ValidationError(StoreError):
    kind = "validation"
    status_code = 422


class NotFoundError(StoreError):
    kind = "not_found"
    status_code = 404


class ConflictError(StoreError):
    kind = "conflict"
    status_code = 409


class AppointmentOverlapError(ConflictError):
    kind = "overlap"

    def __init__(self, doctor_id, conflicts):
        windows = ", ".join(
            f"#{a.appointment_id} {a.start_time.isoformat()}-{a.end_time.isoformat()}" for a in conflicts
        )
        super().__init__(
            f"Doctor {doctor_id} has a conflicting appointment in that time range: {windows}",
            doctor_id=doctor_id,
            conflicts=[
                {
                    "appointment_id": a.appointment_id,
                    "start_time": a.start_time.isoformat(),
                    "end_time": a.end_time.isoformat(),
                }
                for a in conflicts
            ],
        )
        self.conflicting_ids = [a.appointment_id for a in conflicts]


class BusyError(ConflictError):
    """The rows stayed locked through every retry; try again later."""
    kind = "busy"
    retryable = True


class SchedulerBusyError(BusyError):
    """The doctor's schedule stayed locked through every retry; try again later."""


class StorageError(StoreError):
    kind = "storage"
    status_code = 503


def _sqlstate(exc):
    orig = getattr(exc, "orig", None)
    return getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)


def is_transient(exc):
    if not isinstance(exc, OperationalError):
        return False
    if _sqlstate(exc) in PG_TRANSIENT:
        return True
    text = str(getattr(exc, "orig", exc)).lower()
    return any(marker in text for marker in SQLITE_TRANSIENT)


def from_integrity_error(exc: IntegrityError, subject: str = "record") -> StoreError:
    code = _sqlstate(exc)
    text = str(getattr(exc, "orig", exc)).lower()
    if code == PG_UNIQUE_VIOLATION or "unique" in text or "duplicate" in text:
        return ConflictError(f"{subject} already exists")
    if code == PG_FOREIGN_KEY_VIOLATION or "foreign key" in text:
        return ConflictError(f"{subject} is still referenced or references a missing row")
    if code in (PG_CHECK_VIOLATION, PG_NOT_NULL_VIOLATION) or "check constraint" in text or "not null" in text:
        return ValidationError(f"{subject} violates a data constraint")
    return ConflictError(f"{subject} violates a data constraint")
