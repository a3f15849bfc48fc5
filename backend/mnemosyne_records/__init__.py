from .database import MedicalRecordDB
from .encryption import DecryptionError, decrypt_data, encrypt_data
from .record_store import RecordStore, RecordStoreError

__all__ = [
    "MedicalRecordDB",
    "RecordStore",
    "RecordStoreError",
    "DecryptionError",
    "encrypt_data",
    "decrypt_data",
]
