from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from vtgrpc.service import STREAMING_METHODS, UNARY_METHODS, VitessStub, method_path


@pytest.fixture
def messages():
    return SimpleNamespace(**{
        f"{name}Response": MagicMock(name=f"{name}Response")
        for name in UNARY_METHODS + STREAMING_METHODS
    })


def test_method_path():
    assert method_path("SplitQuery") == "/vtgateservice.Vitess/SplitQuery"


def test_binds_unary_and_streaming_methods(messages):
    channel = MagicMock()

    stub = VitessStub(channel, messages)

    unary_paths = [c.args[0] for c in channel.unary_unary.call_args_list]
    streaming_paths = [c.args[0] for c in channel.unary_stream.call_args_list]
    assert unary_paths == [method_path(name) for name in UNARY_METHODS]
    assert streaming_paths == [method_path(name) for name in STREAMING_METHODS]
    assert stub.Begin is channel.unary_unary.return_value
    assert stub.StreamExecuteShards is channel.unary_stream.return_value


def test_uses_response_deserializer_and_request_serializer(messages):
    channel = MagicMock()

    VitessStub(channel, messages)

    kwargs = channel.unary_unary.call_args_list[0].kwargs
    assert kwargs["response_deserializer"] is messages.ExecuteResponse.FromString
    request = MagicMock()
    request.SerializeToString.return_value = b"\x0a\x03sql"
    assert kwargs["request_serializer"](request) == b"\x0a\x03sql"


def test_missing_response_class(messages):
    del messages.SplitQueryResponse

    with pytest.raises(AttributeError, match="SplitQueryResponse"):
        VitessStub(MagicMock(), messages)
