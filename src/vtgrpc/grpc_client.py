"""
gRPC implementation of the gateway client.

Every unary operation forwards the request to the stub, waits for the
response and its status, and translates a failing status into a typed error.
Server-streaming operations are wrapped in GrpcStreamResponse.
"""

import time
from enum import Enum
from pathlib import Path
from types import ModuleType
from typing import Any, Callable, Optional, Sequence, Tuple

import grpc

from vtgrpc.context import Context
from vtgrpc.core.config import Settings, get_settings
from vtgrpc.core.logging import LogContext, get_logger
from vtgrpc.errors import VTException, error_for_status, translate_rpc_error
from vtgrpc.rpc_client import RpcClient, StreamResponse
from vtgrpc.service import VitessStub

logger = get_logger(__name__)


class StreamState(Enum):
    """Lifecycle of a streaming call."""
    NOT_STARTED = "not_started"
    STREAMING = "streaming"
    EXHAUSTED_OK = "exhausted_ok"
    EXHAUSTED_ERROR = "exhausted_error"
    CANCELLED = "cancelled"


class GrpcStreamResponse(StreamResponse):
    """
    Pull-based adapter over a server-streaming gRPC call.

    The first response is fetched on construction so that a stream failing
    before producing anything raises immediately. The terminal status is
    checked once, when the stream runs dry, and the outcome is remembered.
    """

    _NOTHING = object()

    def __init__(self, call: Any, method: Optional[str] = None):
        self._call = call
        self._method = method
        self._iterator = iter(call)
        self._state = StreamState.NOT_STARTED
        self._pending: Any = self._NOTHING
        self._error: Optional[VTException] = None

        self._pending = self._pull()
        if self._pending is self._NOTHING:
            # No responses were returned
            self._raise_if_failed()

    @property
    def state(self) -> StreamState:
        return self._state

    def _pull(self) -> Any:
        try:
            value = next(self._iterator)
        except StopIteration:
            self._finish(error_for_status(self._call.code(), self._call.details()))
            return self._NOTHING
        except grpc.RpcError as e:
            self._finish(translate_rpc_error(e))
            return self._NOTHING
        self._state = StreamState.STREAMING
        return value

    def _finish(self, error: Optional[VTException]) -> None:
        self._error = error
        if error is None:
            self._state = StreamState.EXHAUSTED_OK
        else:
            self._state = StreamState.EXHAUSTED_ERROR
            logger.warning("stream failed", rpc_method=self._method, code=error.code_name)

    def _raise_if_failed(self) -> None:
        if self._error is not None:
            raise self._error

    def next(self) -> Any:
        """
        Return the next streamed response.

        Returns:
            The next response, or None at the end of a successful stream
            or after close()

        Raises:
            VTException: If the stream ended with a non-OK status
        """
        if self._state is StreamState.CANCELLED:
            return None

        if self._pending is not self._NOTHING:
            value, self._pending = self._pending, self._NOTHING
            return value

        if self._state is StreamState.STREAMING:
            value = self._pull()
            if value is not self._NOTHING:
                return value

        self._raise_if_failed()
        return None

    def close(self) -> None:
        """Cancel the underlying call. Safe to call more than once."""
        if self._state in (StreamState.NOT_STARTED, StreamState.STREAMING):
            self._call.cancel()
            self._state = StreamState.CANCELLED
            self._pending = self._NOTHING


class GrpcClient(RpcClient):
    """
    Client for the Vitess gateway over gRPC.

    Wraps a Vitess stub: either the VitessStub from this package or a
    protoc-generated vtgateservice_pb2_grpc.VitessStub.
    """

    def __init__(
        self,
        stub: Any,
        channel: Optional[grpc.Channel] = None,
        default_timeout: Optional[float] = None,
        address: Optional[str] = None,
    ):
        """
        Initialize the client.

        Args:
            stub: Object exposing one multi-callable per Vitess RPC
            channel: Channel the stub runs on, closed by close()
            default_timeout: Seconds allowed for calls whose context has no deadline
            address: Gateway address, for logging and repr
        """
        self.stub = stub
        self.address = address
        self.channel = channel
        self.default_timeout = default_timeout
        self.logger = get_logger(f"{__name__}.{self.__class__.__name__}")

    @classmethod
    def connect(
        cls,
        address: str,
        messages: Optional[ModuleType] = None,
        stub_factory: Optional[Callable[[grpc.Channel], Any]] = None,
        credentials: Optional[grpc.ChannelCredentials] = None,
        options: Sequence[Tuple[str, Any]] = (),
        default_timeout: Optional[float] = None,
    ) -> "GrpcClient":
        """
        Open a channel to vtgate and build a client on it.

        Args:
            address: host:port of the gateway
            messages: Generated vtgate_pb2 module, used to build a VitessStub
            stub_factory: Callable building a stub from the channel; takes
                precedence over messages
            credentials: TLS credentials; an insecure channel is used when None
            options: gRPC channel arguments
            default_timeout: Seconds allowed for calls whose context has no deadline
        """
        if stub_factory is None and messages is None:
            raise ValueError("either messages or stub_factory is required")

        if credentials is not None:
            channel = grpc.secure_channel(address, credentials, options=list(options))
        else:
            channel = grpc.insecure_channel(address, options=list(options))

        if stub_factory is not None:
            stub = stub_factory(channel)
        else:
            stub = VitessStub(channel, messages)

        logger.info(f"Opened channel to vtgate: {address}", secure=credentials is not None)
        return cls(stub, channel=channel, default_timeout=default_timeout, address=address)

    @classmethod
    def from_settings(
        cls,
        messages: Optional[ModuleType] = None,
        stub_factory: Optional[Callable[[grpc.Channel], Any]] = None,
        settings: Optional[Settings] = None,
    ) -> "GrpcClient":
        """Build a client from Settings (environment variables prefixed VTGATE_)."""
        settings = settings or get_settings()

        credentials = None
        if settings.secure:
            root_certificates = None
            if settings.root_certificates:
                root_certificates = Path(settings.root_certificates).read_bytes()
            credentials = grpc.ssl_channel_credentials(root_certificates=root_certificates)

        return cls.connect(
            settings.address,
            messages=messages,
            stub_factory=stub_factory,
            credentials=credentials,
            options=settings.channel_options(),
            default_timeout=settings.default_timeout_seconds,
        )

    def _log_failure(self, method: str, error: VTException, start_time: float) -> None:
        self.logger.warning(
            f"{method} failed",
            code=error.code_name,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

    def _unary(self, method: str, ctx: Optional[Context], request: Any) -> Any:
        ctx = ctx or Context.background()
        options = ctx.call_options(self.default_timeout)

        with LogContext(rpc_method=method):
            start_time = time.perf_counter()
            try:
                response, call = getattr(self.stub, method).with_call(request, **options)
            except grpc.RpcError as e:
                error = translate_rpc_error(e)
                self._log_failure(method, error, start_time)
                raise error from e

            error = error_for_status(call.code(), call.details())
            if error is not None:
                self._log_failure(method, error, start_time)
                raise error

            self.logger.debug(
                f"{method} completed",
                duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            return response

    def _streaming(self, method: str, ctx: Optional[Context], request: Any) -> GrpcStreamResponse:
        ctx = ctx or Context.background()
        options = ctx.call_options(self.default_timeout)

        with LogContext(rpc_method=method):
            self.logger.debug(f"{method} started")
            try:
                call = getattr(self.stub, method)(request, **options)
            except grpc.RpcError as e:
                raise translate_rpc_error(e) from e
            return GrpcStreamResponse(call, method=method)

    def execute(self, ctx: Context, request: Any) -> Any:
        return self._unary("Execute", ctx, request)

    def execute_shards(self, ctx: Context, request: Any) -> Any:
        return self._unary("ExecuteShards", ctx, request)

    def execute_keyspace_ids(self, ctx: Context, request: Any) -> Any:
        return self._unary("ExecuteKeyspaceIds", ctx, request)

    def execute_key_ranges(self, ctx: Context, request: Any) -> Any:
        return self._unary("ExecuteKeyRanges", ctx, request)

    def execute_entity_ids(self, ctx: Context, request: Any) -> Any:
        return self._unary("ExecuteEntityIds", ctx, request)

    def execute_batch_shards(self, ctx: Context, request: Any) -> Any:
        return self._unary("ExecuteBatchShards", ctx, request)

    def execute_batch_keyspace_ids(self, ctx: Context, request: Any) -> Any:
        return self._unary("ExecuteBatchKeyspaceIds", ctx, request)

    def stream_execute(self, ctx: Context, request: Any) -> GrpcStreamResponse:
        return self._streaming("StreamExecute", ctx, request)

    def stream_execute_shards(self, ctx: Context, request: Any) -> GrpcStreamResponse:
        return self._streaming("StreamExecuteShards", ctx, request)

    def stream_execute_keyspace_ids(self, ctx: Context, request: Any) -> GrpcStreamResponse:
        return self._streaming("StreamExecuteKeyspaceIds", ctx, request)

    def stream_execute_key_ranges(self, ctx: Context, request: Any) -> GrpcStreamResponse:
        return self._streaming("StreamExecuteKeyRanges", ctx, request)

    def begin(self, ctx: Context, request: Any) -> Any:
        return self._unary("Begin", ctx, request)

    def commit(self, ctx: Context, request: Any) -> Any:
        return self._unary("Commit", ctx, request)

    def rollback(self, ctx: Context, request: Any) -> Any:
        return self._unary("Rollback", ctx, request)

    def get_srv_keyspace(self, ctx: Context, request: Any) -> Any:
        return self._unary("GetSrvKeyspace", ctx, request)

    def split_query(self, ctx: Context, request: Any) -> Any:
        return self._unary("SplitQuery", ctx, request)

    def close(self) -> None:
        """Close the channel to the gateway."""
        if self.channel is not None:
            self.channel.close()
            self.channel = None
            self.logger.info("Closed channel to vtgate")

    def __repr__(self) -> str:
        """Detailed representation."""
        return (
            f"{self.__class__.__name__}("
            f"address={self.address}, "
            f"open={self.channel is not None}"
            f")"
        )
