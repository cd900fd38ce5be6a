"""
Source denylist applied before any execution attempt.

Matching runs on the raw, unparsed text. A pass means "no obvious misuse",
never that the submission is safe; the child-process sandbox is the real
boundary.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence

from sandbox.policy import BLOCKED_MODULES

from .errors import UnsafeSubmission

logger = logging.getLogger(__name__)


def _module_import_pattern(modules: Iterable[str]) -> str:
    names = "|".join(sorted(re.escape(name) for name in modules))
    return rf"^\s*(?:import|from)\s+(?:{names})\b"


PYTHON_PATTERNS: list[str] = [
    r"(?<![\w.])eval\s*\(",
    r"(?<![\w.])exec\s*\(",
    r"(?<![\w.])compile\s*\(",
    r"__import__",
    r"\bimportlib\b",
    r"\bglobals\s*\(",
    r"\blocals\s*\(",
    r"\bvars\s*\(",
    r"__builtins__",
    r"__subclasses__",
    r"__globals__",
    r"__code__",
    r"\bopen\s*\(",
    r"\binput\s*\(",
    r"\bbreakpoint\s*\(",
    r"\b(?:FunctionType|LambdaType|CodeType)\b",
    _module_import_pattern(BLOCKED_MODULES),
]

JAVASCRIPT_PATTERNS: list[str] = [
    r"eval\s*\(",
    r"Function\s*\(",
    r"XMLHttpRequest",
    r"fetch\s*\(",
    r"import\s+",
    r"require\s*\(",
    r"process\.",
    r"window\.",
    r"document\.",
    r"localStorage",
    r"sessionStorage",
    r"indexedDB",
]

DEFAULT_DENYLISTS: dict[str, list[str]] = {
    "python": PYTHON_PATTERNS,
    "javascript": JAVASCRIPT_PATTERNS,
}


class Sanitizer:
    """Rejects submissions containing denylisted constructs."""

    def __init__(self, denylists: Mapping[str, Sequence[str]] | None = None) -> None:
        source = DEFAULT_DENYLISTS if denylists is None else denylists
        self._compiled: dict[str, list[re.Pattern[str]]] = {
            language.lower(): [re.compile(pattern, re.MULTILINE) for pattern in patterns]
            for language, patterns in source.items()
        }

    def patterns_for(self, language: str) -> list[re.Pattern[str]]:
        return self._compiled.get(language.lower(), [])

    def check(self, source_text: str, language: str = "python") -> None:
        """Raise UnsafeSubmission on the first denylisted construct."""
        for pattern in self.patterns_for(language):
            if pattern.search(source_text):
                logger.warning(f"Submission rejected by denylist pattern {pattern.pattern!r}")
                raise UnsafeSubmission(pattern.pattern)


_default_sanitizer = Sanitizer()


def check(source_text: str, language: str = "python") -> None:
    _default_sanitizer.check(source_text, language)
