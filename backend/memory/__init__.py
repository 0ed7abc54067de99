from .locks import KeyedLocks
from .patient_store import PatientRecordStore, StorageError
from .records import METRIC_FIELDS, PatientRecord

__all__ = [
    "KeyedLocks",
    "METRIC_FIELDS",
    "PatientRecord",
    "PatientRecordStore",
    "StorageError",
]
