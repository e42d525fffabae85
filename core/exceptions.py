"""
Custom exceptions for the schema matching and merge engine.

Merge failures are reported through MergeResult.errors; these exceptions
carry the message and context up to that boundary.
"""

from typing import Optional


class SchemaMergeError(Exception):
    """Base exception for all engine errors."""

    def __init__(self, message: str, context: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class MappingInputError(SchemaMergeError):
    """Raised when a mapping cannot be generated from the given files."""

    def __init__(self, message: str, file_id: Optional[str] = None):
        context = {}
        if file_id:
            context['file_id'] = file_id
        super().__init__(message, context)


class TransformError(SchemaMergeError):
    """Raised for unknown transforms or invalid transform parameters."""

    def __init__(self, message: str, transform: Optional[str] = None):
        context = {}
        if transform:
            context['transform'] = transform
        super().__init__(message, context)


class MergeError(SchemaMergeError):
    """Raised inside the merge pipeline for invalid merge input."""
