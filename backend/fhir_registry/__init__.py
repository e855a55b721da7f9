"""FHIR Server Registry: HTTP API for registering and listing FHIR servers.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
