"""
Per-call context: the caller's deadline and the metadata sent with the call.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Tuple

import grpc

from vtgrpc.errors import DeadlineExceededError


@dataclass(frozen=True)
class Context:
    """
    Deadline and metadata for a single gateway call.

    The deadline is an absolute wall-clock time (seconds since the epoch).
    A context without deadline relies on the client's default timeout.
    """
    deadline: Optional[float] = None
    metadata: Sequence[Tuple[str, str]] = field(default_factory=tuple)

    @classmethod
    def background(cls) -> "Context":
        """Context with no deadline and no metadata."""
        return cls()

    @classmethod
    def with_timeout(cls, seconds: float, metadata: Sequence[Tuple[str, str]] = ()) -> "Context":
        """Context whose deadline is `seconds` from now."""
        return cls(deadline=time.time() + seconds, metadata=tuple(metadata))

    def remaining(self) -> Optional[float]:
        """Seconds left until the deadline, or None when there is none."""
        if self.deadline is None:
            return None
        return self.deadline - time.time()

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def call_options(self, default_timeout: Optional[float] = None) -> Dict[str, Any]:
        """
        Keyword arguments for a gRPC stub invocation.

        Args:
            default_timeout: Timeout used when this context has no deadline

        Returns:
            Dict with `timeout` and, when present, `metadata`

        Raises:
            DeadlineExceededError: If the deadline has already passed
        """
        timeout = self.remaining()
        if timeout is None:
            timeout = default_timeout
        elif timeout <= 0:
            raise DeadlineExceededError(
                "deadline expired before the call was made",
                code=grpc.StatusCode.DEADLINE_EXCEEDED,
            )

        options: Dict[str, Any] = {"timeout": timeout}
        if self.metadata:
            options["metadata"] = tuple(self.metadata)
        return options
