"""LaTeX special character escaping for values substituted into templates."""

from typing import Any

LATEX_SPECIAL_CHARS = {
    "\\": r"\textbackslash{}",
    "&": r"\&",
    "%": r"\%",
    "$": r"\$",
    "#": r"\#",
    "_": r"\_",
    "{": r"\{",
    "}": r"\}",
    "~": r"\textasciitilde{}",
    "^": r"\textasciicircum{}",
}


def escape_latex(text: Any) -> str:
    """
    Escape LaTeX special characters in a single pass.

    Each input character is replaced at most once, so the braces introduced by
    \\textbackslash{} are never escaped again.

    Example: "R&D_budget" becomes "R\\&D\\_budget".
    """
    if text is None:
        return ""
    return "".join(LATEX_SPECIAL_CHARS.get(char, char) for char in str(text))
