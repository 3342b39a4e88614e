import io
import json
import logging
import os
import subprocess
import sys
import textwrap

import grpc
import pytest
import structlog

from fakes import FakeCall, FakeRpcError, FakeStreamCall
from vtgrpc.context import Context
from vtgrpc.core.config import Settings
from vtgrpc.core.logging import LogContext, get_logger, setup_logging
from vtgrpc.errors import VTException


@pytest.fixture
def json_logs():
    """Configure production (JSON) logging and return a reader of the emitted records."""
    setup_logging(Settings(_env_file=None, environment="production", log_level="DEBUG"))
    buffer = io.StringIO()
    logging.getLogger("vtgrpc").handlers[0].setStream(buffer)

    def read():
        out = buffer.getvalue()
        buffer.seek(0)
        buffer.truncate()
        return [json.loads(line) for line in out.splitlines() if line.strip()]

    yield read

    package_logger = logging.getLogger("vtgrpc")
    package_logger.handlers = []
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)
    structlog.reset_defaults()


def run_python(script, **env):
    return subprocess.run(
        [sys.executable, "-c", textwrap.dedent(script)],
        env={**os.environ, **env},
        capture_output=True,
        text=True,
    )


def test_log_context_binds_and_unbinds():
    structlog.contextvars.clear_contextvars()

    with LogContext(rpc_method="Execute", keyspace="commerce"):
        assert structlog.contextvars.get_contextvars() == {
            "rpc_method": "Execute",
            "keyspace": "commerce",
        }

    assert structlog.contextvars.get_contextvars() == {}


def test_get_logger_returns_bound_logger():
    logger = get_logger("vtgrpc.tests")
    logger.debug("logger works", answer=42)


def test_import_ignores_invalid_environment():
    result = run_python(
        """
        import vtgrpc
        from vtgrpc import GrpcClient
        GrpcClient(object())
        """,
        VTGATE_ENVIRONMENT="qa",
    )

    assert result.returncode == 0, result.stderr


def test_import_leaves_host_structlog_config_alone():
    result = run_python(
        """
        import structlog
        structlog.configure(processors=[structlog.processors.JSONRenderer()])
        before = structlog.get_config()["processors"]
        import vtgrpc
        import vtgrpc.grpc_client
        assert structlog.get_config()["processors"] is before
        assert structlog.get_config()["processors"] == before
        """
    )

    assert result.returncode == 0, result.stderr


def test_failed_call_logs_single_record(json_logs, client, stub):
    stub.Execute.with_call.side_effect = FakeRpcError(grpc.StatusCode.INVALID_ARGUMENT, "bad query")

    with pytest.raises(VTException):
        client.execute(Context.background(), object())

    failures = [r for r in json_logs() if r["level"] == "warning"]
    assert len(failures) == 1
    record = failures[0]
    assert record["event"] == "Execute failed"
    assert record["rpc_method"] == "Execute"
    assert record["code"] == "INVALID_ARGUMENT"
    assert "duration_ms" in record


def test_failed_status_on_finished_call_is_logged(json_logs, client, stub):
    stub.Commit.with_call.return_value = (object(), FakeCall(grpc.StatusCode.ALREADY_EXISTS, "duplicate key"))

    with pytest.raises(VTException):
        client.commit(Context.background(), object())

    failures = [r for r in json_logs() if r["level"] == "warning"]
    assert [(r["event"], r["rpc_method"], r["code"]) for r in failures] == [
        ("Commit failed", "Commit", "ALREADY_EXISTS"),
    ]


def test_successful_call_logs_duration(json_logs, client, stub):
    stub.Begin.with_call.return_value = (object(), FakeCall())

    client.begin(Context.background(), object())

    completed = [r for r in json_logs() if r["event"] == "Begin completed"]
    assert len(completed) == 1
    assert completed[0]["level"] == "debug"
    assert completed[0]["rpc_method"] == "Begin"


def test_failed_stream_logs_code_name(json_logs, client, stub):
    stub.StreamExecute.return_value = FakeStreamCall(["r1"], grpc.StatusCode.INTERNAL, "tablet crashed")
    stream = client.stream_execute(Context.background(), object())
    stream.next()

    with pytest.raises(VTException):
        stream.next()

    failures = [r for r in json_logs() if r["level"] == "warning"]
    assert len(failures) == 1
    assert failures[0]["event"] == "stream failed"
    assert failures[0]["rpc_method"] == "StreamExecute"
    assert failures[0]["code"] == "INTERNAL"
