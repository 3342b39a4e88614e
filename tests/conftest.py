from unittest.mock import MagicMock

import pytest

from vtgrpc.grpc_client import GrpcClient


@pytest.fixture
def stub():
    return MagicMock()


@pytest.fixture
def channel():
    return MagicMock()


@pytest.fixture
def client(stub, channel):
    return GrpcClient(stub, channel=channel, address="vtgate:15991")
