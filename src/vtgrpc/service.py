"""Client stub for the vtgateservice.Vitess gRPC service.

Binds every gateway RPC the client uses onto a ``grpc.Channel``. Message
classes come from the caller's generated ``vtgate_pb2`` module, so the
stub needs no generated code of its own.
"""

from types import ModuleType
from typing import Any, Callable

import grpc

SERVICE_NAME = "vtgateservice.Vitess"

UNARY_METHODS = (
    "Execute",
    "ExecuteShards",
    "ExecuteKeyspaceIds",
    "ExecuteKeyRanges",
    "ExecuteEntityIds",
    "ExecuteBatchShards",
    "ExecuteBatchKeyspaceIds",
    "Begin",
    "Commit",
    "Rollback",
    "GetSrvKeyspace",
    "SplitQuery",
)

STREAMING_METHODS = (
    "StreamExecute",
    "StreamExecuteShards",
    "StreamExecuteKeyspaceIds",
    "StreamExecuteKeyRanges",
)


def method_path(name: str) -> str:
    """Full gRPC path of a Vitess RPC, e.g. /vtgateservice.Vitess/Execute."""
    return f"/{SERVICE_NAME}/{name}"


def _serialize(message: Any) -> bytes:
    return message.SerializeToString()


class VitessStub:
    """Client stub for the Vitess gateway service.

    Each RPC is exposed as an attribute named after the RPC, holding the
    multi-callable returned by the channel (``stub.Execute.with_call(...)``,
    ``stub.StreamExecute(...)``), the same shape as protoc-generated stubs.
    """

    def __init__(self, channel: grpc.Channel, messages: ModuleType) -> None:
        """Initialize the stub with a gRPC channel.

        Args:
            channel: An open gRPC channel to vtgate.
            messages: Generated vtgate_pb2 module providing the
                ``<Rpc>Response`` message classes.
        """
        for name in UNARY_METHODS:
            self._bind(name, channel.unary_unary, messages)
        for name in STREAMING_METHODS:
            self._bind(name, channel.unary_stream, messages)

    def _bind(self, name: str, factory: Callable, messages: ModuleType) -> None:
        response_class = getattr(messages, f"{name}Response", None)
        if response_class is None:
            raise AttributeError(f"messages module has no {name}Response class")
        multi_callable = factory(
            method_path(name),
            request_serializer=_serialize,
            response_deserializer=response_class.FromString,
        )
        setattr(self, name, multi_callable)
