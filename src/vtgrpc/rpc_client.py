"""
Abstract interface for clients of the Vitess gateway service.
"""

from abc import ABC, abstractmethod
from typing import Any

from vtgrpc.context import Context


class StreamResponse(ABC):
    """Pull-based view of a server-streaming call."""

    @abstractmethod
    def next(self) -> Any:
        """
        Return the next streamed response.

        Returns:
            The next response, or None once the stream ended successfully
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Cancel the underlying call."""
        pass

    def __iter__(self):
        while True:
            value = self.next()
            if value is None:
                return
            yield value

    def __enter__(self) -> "StreamResponse":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class RpcClient(ABC):
    """
    Abstract base class for gateway clients.
    Every operation takes a Context and a pre-built request message and
    returns the response message unchanged.
    """

    @abstractmethod
    def execute(self, ctx: Context, request: Any) -> Any:
        """Execute a query routed by the gateway."""
        pass

    @abstractmethod
    def execute_shards(self, ctx: Context, request: Any) -> Any:
        """Execute a query on an explicit list of shards."""
        pass

    @abstractmethod
    def execute_keyspace_ids(self, ctx: Context, request: Any) -> Any:
        """Execute a query on the shards owning the given keyspace ids."""
        pass

    @abstractmethod
    def execute_key_ranges(self, ctx: Context, request: Any) -> Any:
        """Execute a query on the shards covering the given key ranges."""
        pass

    @abstractmethod
    def execute_entity_ids(self, ctx: Context, request: Any) -> Any:
        """Execute a query on the shards owning the given entity ids."""
        pass

    @abstractmethod
    def execute_batch_shards(self, ctx: Context, request: Any) -> Any:
        pass

    @abstractmethod
    def execute_batch_keyspace_ids(self, ctx: Context, request: Any) -> Any:
        pass

    @abstractmethod
    def stream_execute(self, ctx: Context, request: Any) -> StreamResponse:
        """Execute a query and stream its results."""
        pass

    @abstractmethod
    def stream_execute_shards(self, ctx: Context, request: Any) -> StreamResponse:
        pass

    @abstractmethod
    def stream_execute_keyspace_ids(self, ctx: Context, request: Any) -> StreamResponse:
        pass

    @abstractmethod
    def stream_execute_key_ranges(self, ctx: Context, request: Any) -> StreamResponse:
        pass

    @abstractmethod
    def begin(self, ctx: Context, request: Any) -> Any:
        """Start a transaction and return its session."""
        pass

    @abstractmethod
    def commit(self, ctx: Context, request: Any) -> Any:
        pass

    @abstractmethod
    def rollback(self, ctx: Context, request: Any) -> Any:
        pass

    @abstractmethod
    def get_srv_keyspace(self, ctx: Context, request: Any) -> Any:
        """Look up the serving topology of a keyspace."""
        pass

    @abstractmethod
    def split_query(self, ctx: Context, request: Any) -> Any:
        """Split a query into parts that can be run in parallel."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the connection to the gateway."""
        pass

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
