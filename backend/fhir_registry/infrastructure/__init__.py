"""Infrastructure Layer: database, storage adapter, FHIR client and logging.

Invariants:
    - Infrastructure never imports from api/
    - All SQLAlchemy failures surface as StorageError (core/errors.py)
"""
