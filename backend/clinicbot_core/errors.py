from __future__ import annotations

from memory.patient_store import StorageError


class ClinicBotError(Exception):
    pass


class AuthenticationError(ClinicBotError):
    pass


class UpstreamError(ClinicBotError):
    pass


class DispatchError(ClinicBotError):
    pass


__all__ = [
    "AuthenticationError",
    "ClinicBotError",
    "DispatchError",
    "StorageError",
    "UpstreamError",
]
