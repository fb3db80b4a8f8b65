"""
Shared utilities for the LaTeX Toolkit.

Common functionality used across contexts:
- External program lookup and execution
- Logging setup and the build event log
- PDF inspection
- Timestamps
"""

from latex_toolkit.utils.exceptions import MissingToolError, ToolkitError
from latex_toolkit.utils.external_tools import require_tool, run_tool, tool_available
from latex_toolkit.utils.timestamp import now, now_exact, today

__all__ = [
    "MissingToolError",
    "ToolkitError",
    "require_tool",
    "run_tool",
    "tool_available",
    "now",
    "now_exact",
    "today",
]
