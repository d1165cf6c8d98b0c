"""Errors raised and recorded by the merge engine."""

from dataclasses import dataclass
from typing import Optional


class MergeError(Exception):
    """Base class for every error raised by the merge engine."""


class InputValidationError(MergeError):
    """The input list was rejected before any merge work began."""


class MalformedDocumentError(MergeError):
    """A document could not be parsed or does not have the expected shape."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class ReferenceRewriteError(MergeError):
    """A $ref could not be rewritten while applying a namespace."""

    def __init__(self, ref, reason: str):
        self.ref = ref
        self.reason = reason
        super().__init__(f"invalid reference {ref!r}: {reason}")


@dataclass
class MergeWarning:
    """Non-fatal problem found during a merge"""
    message: str
    location: Optional[str] = None

    def __str__(self) -> str:
        if self.location:
            return f"{self.message} (at {self.location})"
        return self.message
