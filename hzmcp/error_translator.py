"""Translate Hazelcast client failures into readable, actionable messages.

The translator is the last stop for an error before it reaches an MCP tool
caller. It classifies a failure with an ordered list of rules (first match
wins) and renders one plain-text diagnostic for it. Raw stack traces are never
included in the output. Package-qualified type names are reduced to simple
class names everywhere except in SQL complaints, which are quoted as written.

Only the structure-not-found rule touches the cluster: it asks the cluster
handle for the names of existing data structures so the caller can see what
is actually there. That lookup is time bounded and best effort; when it fails
the message is simply rendered without the listing.
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from enum import Enum
from typing import (Any, Callable, Iterable, List, Optional, Pattern, Protocol,
                    Tuple)

from .constants import (JSON_VALUE_TYPE, STRUCTURE_LOOKUP_TIMEOUT,
                        STRUCTURE_LOOKUP_WORKERS)
from .failure import Failure

logger = logging.getLogger(__name__)


class ClusterHandle(Protocol):
    """Anything that can list the distributed structures visible to a client."""

    def get_structure_names(self) -> Iterable[str]:
        ...


class DiagnosticCategory(str, Enum):
    STRUCTURE_NOT_FOUND = "structure_not_found"
    CONNECTION = "connection"
    SQL = "sql"
    SERIALIZATION = "serialization"
    TIMEOUT = "timeout"
    GENERIC = "generic"


Renderer = Callable[[Failure, str, Optional[ClusterHandle], float], str]


@dataclass(frozen=True)
class TranslationRule:
    """A single classification rule: a predicate and the message it renders."""

    category: DiagnosticCategory
    matches: Callable[[Failure], bool]
    render: Renderer


_NOT_FOUND = re.compile(r"does not exist|doesn't exist|not found|no such", re.IGNORECASE)
_CONNECTION = re.compile(
    r"connection refused|not connected|client is not active|no connection"
    r"|target disconnected|unable to connect",
    re.IGNORECASE,
)
_SQL_WORD = re.compile(r"\bsql\b", re.IGNORECASE)
_SQL_DETAIL = re.compile(r"error|syntax|parse|query|mapping", re.IGNORECASE)
_SQL_TYPES = ("SqlError", "SqlException")
_SERIALIZATION = re.compile(r"serializ|classnotfoundexception|\bcompact\b", re.IGNORECASE)
_TIMEOUT = re.compile(r"timeout|timed out", re.IGNORECASE)
_QUOTED_NAME = re.compile(
    r"(?<!\w)'([^']+)'(?!\w)|(?<!\w)\"([^\"]+)\"(?!\w)|(?<!\w)`([^`]+)`(?!\w)"
)

# Lines that belong to a stack trace rather than to the message itself
_STACK_FRAME = re.compile(
    r"^\s*(at\s+[\w$.<>]+\(|\.\.\.\s*\d+\s+more|Caused by:|File \".*\", line \d+|"
    r"Traceback \(most recent call last\))"
)
# Lower-case dotted prefix in front of a class name: java.lang., hazelcast.errors.
_QUALIFIED_PREFIX = re.compile(r"\b(?:[a-z_][a-z0-9_]*\.){2,}(?=[A-Z])")

_lookup_pool = ThreadPoolExecutor(
    max_workers=STRUCTURE_LOOKUP_WORKERS, thread_name_prefix="structure-lookup"
)


def clean_message(text: Optional[str]) -> Optional[str]:
    """Reduce a raw message to a single safe line.

    Returns the first line that is not part of a stack trace, with dotted
    package prefixes stripped from class names, or None if nothing is left.
    """
    if not text:
        return None
    for line in str(text).splitlines():
        if not line.strip() or _STACK_FRAME.match(line):
            continue
        cleaned = _QUALIFIED_PREFIX.sub("", line).strip()
        if cleaned:
            return cleaned
    return None


def strip_stack_frames(text: Optional[str]) -> Optional[str]:
    """Drop stack-frame and blank lines, keeping every other line as written."""
    if not text:
        return None
    lines = [
        line for line in str(text).splitlines()
        if line.strip() and not _STACK_FRAME.match(line)
    ]
    return "\n".join(lines).strip() or None


def extract_structure_name(message: Optional[str]) -> Optional[str]:
    """Return the first quoted name in a message, if there is one."""
    if not message:
        return None
    match = _QUOTED_NAME.search(message)
    if not match:
        return None
    return next(group for group in match.groups() if group is not None).strip() or None


def list_available_structures(
    cluster: Optional[ClusterHandle], timeout: float = STRUCTURE_LOOKUP_TIMEOUT
) -> Optional[List[str]]:
    """Sorted, de-duplicated structure names, or None if they cannot be read.

    The lookup runs on a small shared pool and is abandoned after ``timeout``
    seconds. Errors and timeouts are logged and reported as None.
    """
    if cluster is None:
        return None
    future = _lookup_pool.submit(_read_structure_names, cluster)
    try:
        return future.result(timeout=timeout)
    except FutureTimeoutError:
        future.cancel()
        logger.warning(f"Listing data structures timed out after {timeout} seconds")
    except Exception as e:
        logger.warning(f"Unable to list data structures: {e}")
    return None


def _read_structure_names(cluster: ClusterHandle) -> List[str]:
    names = cluster.get_structure_names()
    return sorted({str(name) for name in names or () if name})


def _display_message(failure: Failure) -> str:
    return clean_message(failure.primary_message()) or _type_label(failure)


def _type_label(failure: Failure) -> str:
    return clean_message(failure.type_name) or "UnknownError"


def _primary_matches(pattern: Pattern) -> Callable[[Failure], bool]:
    def matches(failure: Failure) -> bool:
        message = failure.primary_message()
        return bool(message and pattern.search(message))

    return matches


def _is_sql_error(failure: Failure) -> bool:
    if any(name.endswith(_SQL_TYPES) for name in failure.type_names()):
        return True
    message = failure.primary_message()
    return bool(message and _SQL_WORD.search(message) and _SQL_DETAIL.search(message))


def _is_serialization_error(failure: Failure) -> bool:
    texts: Tuple[str, ...] = failure.messages() + failure.type_names()
    return any(_SERIALIZATION.search(text) for text in texts)


def _render_not_found(
    failure: Failure, operation: str, cluster: Optional[ClusterHandle], timeout: float
) -> str:
    name = extract_structure_name(failure.primary_message())
    if name:
        headline = f"{operation}: '{name}' not found."
    else:
        headline = f"{operation}: Data structure not found."

    structures = list_available_structures(cluster, timeout)
    if structures is None:
        return headline
    if not structures:
        return f"{headline} Available data structures: none (no structures exist on the cluster)"
    return f"{headline} Available data structures: {', '.join(structures)}"


def _render_connection(failure: Failure, operation: str, *_: Any) -> str:
    return (
        f"{operation}: Not connected to Hazelcast cluster. "
        "Check that the cluster is running and the connection configuration is correct."
    )


def _render_sql(failure: Failure, operation: str, *_: Any) -> str:
    # Verbatim apart from stack frames
    complaint = strip_stack_frames(failure.primary_message()) or _type_label(failure)
    separator = "" if complaint.endswith((".", "!", "?")) else "."
    return (
        f"{operation}: SQL error - {complaint}{separator} "
        "Check query syntax and ensure the target map has a SQL mapping configured."
    )


def _render_serialization(failure: Failure, operation: str, *_: Any) -> str:
    return (
        f"{operation}: Serialization error - {_display_message(failure)}. "
        "The value likely uses a type the cluster members cannot decode; "
        f"store it as {JSON_VALUE_TYPE} (JSON) instead."
    )


def _render_timeout(failure: Failure, operation: str, *_: Any) -> str:
    return f"{operation}: Operation timed out. The cluster may be under heavy load."


def _render_generic(failure: Failure, operation: str, *_: Any) -> str:
    message = clean_message(failure.message)
    if message:
        return f"{operation}: {message}"
    cause = clean_message(failure.primary_message())
    if cause:
        return f"{operation}: {_type_label(failure)} ({cause})"
    return f"{operation}: {_type_label(failure)}"


TRANSLATION_RULES: Tuple[TranslationRule, ...] = (
    TranslationRule(
        DiagnosticCategory.STRUCTURE_NOT_FOUND, _primary_matches(_NOT_FOUND), _render_not_found
    ),
    TranslationRule(
        DiagnosticCategory.CONNECTION, _primary_matches(_CONNECTION), _render_connection
    ),
    TranslationRule(DiagnosticCategory.SQL, _is_sql_error, _render_sql),
    TranslationRule(
        DiagnosticCategory.SERIALIZATION, _is_serialization_error, _render_serialization
    ),
    TranslationRule(DiagnosticCategory.TIMEOUT, _primary_matches(_TIMEOUT), _render_timeout),
    TranslationRule(DiagnosticCategory.GENERIC, lambda failure: True, _render_generic),
)


def as_failure(failure: Any) -> Failure:
    """Coerce an exception (or anything else) into a Failure."""
    if isinstance(failure, Failure):
        return failure
    if isinstance(failure, BaseException):
        return Failure.from_exception(failure)
    if failure is None:
        return Failure.of(None, "UnknownError")
    return Failure.of(str(failure), type(failure).__name__)


def classify(failure: Any) -> DiagnosticCategory:
    """Return the category of the first rule that matches the failure."""
    return _first_matching_rule(as_failure(failure)).category


def _first_matching_rule(failure: Failure) -> TranslationRule:
    return next(rule for rule in TRANSLATION_RULES if rule.matches(failure))


def translate(
    failure: Any,
    operation: str,
    cluster: Optional[ClusterHandle] = None,
    lookup_timeout: float = STRUCTURE_LOOKUP_TIMEOUT,
) -> str:
    """Translate a failure into an actionable error message.

    Args:
        failure: The exception raised by the client, or a prepared Failure
        operation: Name of the tool operation that failed, e.g. "map_get"
        cluster: Handle used to list existing structures; may be None
        lookup_timeout: Seconds to wait for that listing

    Returns:
        A non-empty, stack-trace-free message. This function never raises.
    """
    operation = operation or "operation"
    try:
        translated = as_failure(failure)
        rule = _first_matching_rule(translated)
        return rule.render(translated, operation, cluster, lookup_timeout)
    except Exception as e:
        logger.warning(f"Failed to translate error for {operation}: {e}")
        if isinstance(failure, Failure):
            label = failure.type_name
        elif isinstance(failure, BaseException):
            label = type(failure).__name__
        else:
            label = "UnknownError"
        return f"{operation}: {label}"
