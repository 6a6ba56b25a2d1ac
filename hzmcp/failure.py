"""Failure model consumed by the error translator.

A failure is a flat, bounded tuple of layers instead of a recursive cause
chain, so scanning it always terminates.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

from .constants import MAX_CAUSE_DEPTH


@dataclass(frozen=True)
class FailureLayer:
    """One level of a failure: its message (may be missing) and its type tag."""

    message: Optional[str]
    type_name: str

    @property
    def has_message(self) -> bool:
        return bool(self.message and self.message.strip())


@dataclass(frozen=True)
class Failure:
    """An immutable failure. Layer 0 is the top level, the rest are causes."""

    layers: Tuple[FailureLayer, ...]

    def __post_init__(self):
        if not self.layers:
            raise ValueError("A failure needs at least one layer")

    @classmethod
    def of(
        cls,
        message: Optional[str],
        type_name: str = "Exception",
        causes: Iterable[Tuple[Optional[str], str]] = (),
    ) -> "Failure":
        """Build a failure by hand, mostly useful for tests and adapters."""
        layers = [FailureLayer(message, type_name)]
        layers.extend(FailureLayer(m, t) for m, t in causes)
        return cls(tuple(layers[:MAX_CAUSE_DEPTH]))

    @classmethod
    def from_exception(
        cls, exc: BaseException, max_depth: int = MAX_CAUSE_DEPTH
    ) -> "Failure":
        """Flatten an exception and its causes into layers.

        Follows ``__cause__`` first and falls back to ``__context__`` unless
        the context was suppressed with ``raise ... from None``. Stops after
        ``max_depth`` layers or when an exception repeats.
        """
        layers = []
        seen = set()
        current: Optional[BaseException] = exc
        while current is not None and len(layers) < max(max_depth, 1):
            if id(current) in seen:
                break
            seen.add(id(current))
            layers.append(FailureLayer(_exception_message(current), type(current).__name__))
            if current.__cause__ is not None:
                current = current.__cause__
            elif not current.__suppress_context__:
                current = current.__context__
            else:
                current = None
        return cls(tuple(layers))

    @property
    def message(self) -> Optional[str]:
        return self.layers[0].message

    @property
    def type_name(self) -> str:
        return self.layers[0].type_name

    @property
    def causes(self) -> Tuple[FailureLayer, ...]:
        return self.layers[1:]

    def primary_message(self) -> Optional[str]:
        """Top-level message, or the first non-blank cause message."""
        for layer in self.layers:
            if layer.has_message:
                return layer.message
        return None

    def messages(self) -> Tuple[str, ...]:
        return tuple(layer.message for layer in self.layers if layer.has_message)

    def type_names(self) -> Tuple[str, ...]:
        return tuple(layer.type_name for layer in self.layers)


def _exception_message(exc: BaseException) -> Optional[str]:
    try:
        text = str(exc)
    except Exception:
        return None
    return text if text.strip() else None
