from __future__ import annotations


class ReadableException(Exception):
    def __init__(self, message, cause=None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self):
        if self.cause is None:
            return str(self.message)
        return f"{self.message}: {self.cause}"


class SentishardError(ReadableException):
    """Fatal error: aborts the whole run."""


class ConfigError(SentishardError, ValueError):
    pass


class SourceUnavailableError(SentishardError):
    def __init__(self, message, path, cause=None):
        self.path = str(path)
        super().__init__(message, cause)

    def __str__(self):
        base = f"{self.message} ({self.path})"
        if self.cause is None:
            return base
        return f"{base}: {self.cause}"


class TransportError(SentishardError):
    pass


class WorkerFailedError(TransportError):
    def __init__(self, message, rank, cause=None):
        self.rank = int(rank)
        super().__init__(message, cause)


class DecodeError(ValueError):
    """Record-level failure; the scanner drops the record and carries on."""
