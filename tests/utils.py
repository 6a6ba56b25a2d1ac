import time
from typing import Iterable, List, Optional


class StubCluster:
    """Stand-in cluster handle returning fixed names, raising, or stalling."""

    def __init__(
        self,
        names: Iterable[str] = (),
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.names = list(names)
        self.error = error
        self.delay = delay
        self.calls = 0

    def get_structure_names(self) -> List[str]:
        self.calls += 1
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return list(self.names)


def chained(*exceptions: Exception) -> Exception:
    """Link exceptions so each one is the ``__cause__`` of the one before it."""
    for outer, inner in zip(exceptions, exceptions[1:]):
        outer.__cause__ = inner
    return exceptions[0]
