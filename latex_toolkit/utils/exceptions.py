"""Exceptions shared across toolkit contexts."""

from typing import Optional


class ToolkitError(Exception):
    """Base class for toolkit failures that are not plain input errors."""

    pass


class MissingToolError(ToolkitError):
    """
    Exception raised when a required external program is not on PATH.

    Attributes:
        tool: Name of the missing executable (e.g., 'pdflatex')
        hint: Installation help shown to the user
    """

    def __init__(self, tool: str, hint: Optional[str] = None):
        self.tool = tool
        self.hint = hint

        message = f"{tool} not found."
        if hint:
            message += f" {hint}"
        super().__init__(message)


class MergeError(ToolkitError):
    """Exception raised when the pdfpages wrapper cannot be produced or compiled."""

    pass


class SigningError(ToolkitError):
    """Exception raised when a signing or certificate step fails."""

    pass


class DependencyError(ToolkitError):
    """Exception raised when an external dependency cannot be fetched or installed."""

    pass
