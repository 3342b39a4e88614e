"""
vtgrpc - gRPC client for the Vitess gateway

Forwards query execution, transaction control, topology lookup and query
splitting calls to vtgate, and surfaces failing call statuses as typed errors.
"""

__version__ = "0.1.0"

from vtgrpc.context import Context
from vtgrpc.errors import (
    BadInputError,
    DeadlineExceededError,
    IntegrityError,
    TransientError,
    UnauthenticatedError,
    VTException,
    check_error,
)
from vtgrpc.grpc_client import GrpcClient, GrpcStreamResponse, StreamState
from vtgrpc.rpc_client import RpcClient, StreamResponse
from vtgrpc.service import VitessStub

__all__ = [
    "Context",
    "BadInputError",
    "DeadlineExceededError",
    "IntegrityError",
    "TransientError",
    "UnauthenticatedError",
    "VTException",
    "check_error",
    "GrpcClient",
    "GrpcStreamResponse",
    "StreamState",
    "RpcClient",
    "StreamResponse",
    "VitessStub",
    "__version__",
]
