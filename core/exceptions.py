# core/exceptions.py
from typing import Optional


class ReorderError(Exception):
    """Base exception for mtx-reorder errors."""
    pass


class ParseError(ReorderError):
    """Raised when a coordinate file header or data line cannot be parsed."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        self.line_number = line_number
        self.line = line
        if line_number is not None:
            message = f"line {line_number}: {message}"
            if line is not None:
                message += f" ({line.strip()!r})"
        super().__init__(message)


class WriteError(ReorderError):
    """Raised when serializing an entry store to its output stream fails."""
    pass


class InvariantViolation(ReorderError):
    """Raised when entry store or permutation integrity is broken."""
    pass


class ConfigError(ReorderError):
    """Raised when a pipeline configuration file is invalid."""
    pass
