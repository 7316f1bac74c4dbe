from __future__ import annotations

from typing import Iterable


class ValidationError(ValueError):
    """Input data cannot produce a footprint."""


class StructuralError(ValidationError):
    def __init__(self, missing_columns: Iterable[str], required: Iterable[str]) -> None:
        self.missing_columns = tuple(missing_columns)
        self.required_columns = tuple(required)
        required_text = ", ".join(f"'{name.title()}'" for name in self.required_columns)
        missing_text = ", ".join(self.missing_columns)
        super().__init__(f"CSV must contain {required_text} columns. Missing: {missing_text}.")


class EmptyResultError(ValidationError):
    def __init__(self, message: str = "No valid emission activities found in the CSV data.") -> None:
        super().__init__(message)


class ExternalToolError(RuntimeError):
    """A parser or document writer failed at the boundary."""

    def __init__(self, tool: str, message: str) -> None:
        self.tool = tool
        super().__init__(message)


class ProcessingBusyError(RuntimeError):
    """Raised when an upload starts while another is still processing."""
