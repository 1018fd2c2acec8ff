"""
Agentbox Safety Filter

Static pre-execution policy check over a code string. Two layers:

1. Keyword layer: rejects code containing keywords that name host
   escape primitives (process exit, module loading, nested evaluation,
   filesystem and process APIs, module-table and frame traversal).
2. Structural layer: walks the parsed AST and rejects import
   statements, calls to forbidden builtins, frame and code object
   attributes, and any access to private or dunder names.

Both layers are lexical and can be bypassed by a determined author.
The process boundary in SandboxedExecutor is the real isolation; this
filter only turns away the obvious cases before a process is spawned.
"""

from __future__ import annotations

import ast
import re
from collections.abc import Iterable

from agentbox.logging import get_logger
from agentbox.sandbox.models import SafetyVerdict

logger = get_logger("agentbox.sandbox.safety")

REJECTION_REASON = "Potentially dangerous code detected"

# Keyword layer. A call keyword must not follow a dot or identifier
# character, so re.compile(...) or my_open(...) pass while open(...) fails.
DENYLISTED_PATTERNS: tuple[str, ...] = (
    # Process termination
    r"(?<![\w.])exit\s*\(",
    r"(?<![\w.])quit\s*\(",
    r"\bos\._exit\b",
    # Dynamic module loading
    r"\bimport\s",
    r"__import__",
    r"\bimportlib\b",
    # Nested evaluation
    r"(?<![\w.])eval\s*\(",
    r"(?<![\w.])exec\s*\(",
    r"(?<![\w.])compile\s*\(",
    # Filesystem / process / network APIs
    r"(?<![\w.])open\s*\(",
    r"(?<![\w.])os\.",
    r"(?<![\w.])sys\.",
    r"\bsubprocess\b",
    r"\bsocket\b",
    r"\bshutil\b",
    r"\bctypes\b",
    # Module-table traversal
    r"\[['\"]sys['\"]\]",
    r"\.modules\s*\[",
    r"\.sys\b",
    # Frame introspection, also inside format strings
    r"\b(?:gi|cr|ag)_frame\b",
    r"\bf_(?:back|globals|locals|builtins)\b",
    r"\btb_frame\b",
)

FORBIDDEN_CALLS = frozenset({
    "eval",
    "exec",
    "compile",
    "__import__",
    "open",
    "exit",
    "quit",
    "breakpoint",
    "input",
    "getattr",
    "setattr",
    "delattr",
    "vars",
    "globals",
    "locals",
    "dir",
    "help",
    "memoryview",
})

# Frame and code objects lead back to the host interpreter's globals
FORBIDDEN_ATTRIBUTES = frozenset({
    "gi_frame",
    "cr_frame",
    "ag_frame",
    "gi_code",
    "cr_code",
    "ag_code",
    "gi_yieldfrom",
    "cr_await",
    "ag_await",
    "f_back",
    "f_globals",
    "f_locals",
    "f_builtins",
    "f_code",
    "f_trace",
    "tb_frame",
    "tb_next",
})


class SafetyFilter:
    """Rejects code that contains known host-escape constructs.

    Extra literal substrings can be added to the keyword layer per instance.
    """

    def __init__(self, extra_patterns: Iterable[str] | None = None):
        self._extra = tuple(extra_patterns or ())
        self._regexes = [re.compile(p) for p in DENYLISTED_PATTERNS]
        self._regexes.extend(re.compile(re.escape(p)) for p in self._extra)

    @property
    def extra_patterns(self) -> tuple[str, ...]:
        return self._extra

    def check(self, code: str) -> SafetyVerdict:
        """Check a code string without executing any of it."""
        for regex in self._regexes:
            match = regex.search(code)
            if match:
                return self._reject(f"denylisted pattern {match.group(0)!r}")

        if "\x00" in code:
            return self._reject("source contains null bytes")

        try:
            tree = ast.parse(code, filename="<sandbox>", mode="exec")
        except SyntaxError:
            # Unparsable code cannot run; the runtime reports the error
            return SafetyVerdict.accept()

        violation = _find_violation(tree)
        if violation:
            return self._reject(violation)
        return SafetyVerdict.accept()

    @staticmethod
    def _reject(detail: str) -> SafetyVerdict:
        logger.warning(
            "Code rejected by safety filter: %s", detail,
            extra={"event_type": "SAFETY_REJECTED"},
        )
        return SafetyVerdict(accepted=False, reason=REJECTION_REASON, detail=detail)


def _find_violation(tree: ast.AST) -> str | None:
    for node in ast.walk(tree):
        line = getattr(node, "lineno", "?")

        if isinstance(node, (ast.Import, ast.ImportFrom)):
            return f"import statement (line {line})"

        if isinstance(node, ast.Call) and isinstance(node.func, ast.Name):
            if node.func.id in FORBIDDEN_CALLS:
                return f"call to {node.func.id}() (line {line})"

        if isinstance(node, ast.Attribute) and node.attr.startswith("_"):
            return f"access to private attribute '.{node.attr}' (line {line})"

        if isinstance(node, ast.Attribute) and node.attr in FORBIDDEN_ATTRIBUTES:
            return f"frame introspection via '.{node.attr}' (line {line})"

        if isinstance(node, ast.Name) and node.id.startswith("__"):
            return f"reference to dunder name '{node.id}' (line {line})"

    return None


default_filter = SafetyFilter()


def check(code: str) -> SafetyVerdict:
    """Check code against the default filter."""
    return default_filter.check(code)
