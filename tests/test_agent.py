"""
Tests for the protocol loop.

Drives the agent with in-memory stdin/stdout and checks the exact lines
Git LFS would see.
"""
from __future__ import annotations

import io
import json

import pytest

from lfs_s3_agent.agent import Agent, AgentState
from lfs_s3_agent.errors import ProtocolError
from tests.helpers.samples import CSV_CONTENT, CSV_OID, sha256_hex

INIT_UPLOAD = {"event": "init", "operation": "upload", "remote": "origin", "concurrent": True, "concurrenttransfers": 3}
INIT_DOWNLOAD = {"event": "init", "operation": "download", "remote": "origin", "concurrent": True, "concurrenttransfers": 3}
TERMINATE = {"event": "terminate"}


def _feed(agent, *messages):
    """Run the agent over the given messages and return decoded output lines."""
    lines = [m if isinstance(m, str) else json.dumps(m) for m in messages]
    stdout = io.StringIO()
    agent.run(io.StringIO("\n".join(lines) + "\n"), stdout)
    return [json.loads(line) for line in stdout.getvalue().splitlines()]


@pytest.fixture
def agent(settings, store, cache):
    return Agent(settings=settings, store=store, cache=cache)


def _upload(path, oid=CSV_OID):
    return {"event": "upload", "oid": oid, "size": len(CSV_CONTENT), "path": str(path), "action": None}


def _download(href=f"{CSV_OID}/test.csv", oid=CSV_OID):
    return {"event": "download", "oid": oid, "size": len(CSV_CONTENT), "action": {"href": href}}


class TestLifecycle:

    def test_init_acknowledged_with_empty_object(self, agent):
        assert _feed(agent, INIT_UPLOAD, TERMINATE) == [{}]
        assert agent.state is AgentState.TERMINATED
        assert agent.operation == "upload"

    def test_terminate_produces_no_output(self, agent, csv_file):
        output = _feed(agent, INIT_UPLOAD, TERMINATE, _upload(csv_file))
        assert output == [{}]

    def test_end_of_input_terminates(self, agent):
        assert _feed(agent, INIT_DOWNLOAD) == [{}]
        assert agent.state is AgentState.TERMINATED

    def test_blank_lines_ignored(self, agent):
        assert _feed(agent, "", INIT_UPLOAD, "   ", TERMINATE) == [{}]

    def test_unknown_event_ignored(self, agent):
        assert _feed(agent, INIT_UPLOAD, {"event": "progress", "oid": CSV_OID}, TERMINATE) == [{}]
        assert agent.state is AgentState.TERMINATED

    def test_malformed_line_is_fatal(self, agent):
        with pytest.raises(ProtocolError):
            _feed(agent, INIT_UPLOAD, "this is not json")
        assert agent.state is AgentState.TERMINATED

    def test_transfer_before_init_fails(self, agent, csv_file, store):
        output = _feed(agent, _upload(csv_file))
        assert output[0]["oid"] == CSV_OID
        assert "before init" in output[0]["error"]["message"]
        assert store.calls == []

    def test_invalid_transfer_event_with_oid_fails(self, agent):
        output = _feed(agent, INIT_UPLOAD, {"event": "upload", "oid": CSV_OID, "size": 290}, TERMINATE)
        assert output[1]["oid"] == CSV_OID
        assert output[1]["error"]["code"] == 1
        assert "path" in output[1]["error"]["message"]

    def test_invalid_transfer_event_without_oid_ignored(self, agent):
        assert _feed(agent, INIT_UPLOAD, {"event": "download", "size": 290}, TERMINATE) == [{}]

    def test_invalid_init_still_acknowledged(self, agent):
        assert _feed(agent, {"event": "init", "operation": "sideways"}, TERMINATE) == [{}]
        assert agent.state is AgentState.TERMINATED


class TestTransfers:

    def test_upload_success(self, agent, csv_file, store):
        output = _feed(agent, INIT_UPLOAD, _upload(csv_file), TERMINATE)

        assert output == [{}, {"event": "complete", "oid": CSV_OID}]
        assert store.data(f"alice/{CSV_OID}") == CSV_CONTENT

    def test_repeat_upload_is_deduplicated(self, agent, csv_file, store):
        output = _feed(agent, INIT_UPLOAD, _upload(csv_file), _upload(csv_file), TERMINATE)

        assert output[1:] == [{"event": "complete", "oid": CSV_OID}] * 2
        assert store.count("put") == 1

    def test_download_success_reports_cache_path(self, agent, store, settings):
        store.seed(f"alice/{CSV_OID}", CSV_CONTENT, sha256=CSV_OID)

        output = _feed(agent, INIT_DOWNLOAD, _download(), TERMINATE)

        expected = settings.cache_root / CSV_OID[:16] / "test.csv"
        assert output[1] == {"event": "complete", "oid": CSV_OID, "path": str(expected)}
        assert expected.read_bytes() == CSV_CONTENT

    def test_failure_does_not_stop_the_loop(self, agent, store):
        """Test that one failed object still lets later objects complete."""
        store.seed(f"alice/{CSV_OID}", CSV_CONTENT, sha256=CSV_OID)

        output = _feed(agent, INIT_DOWNLOAD, _download(href="test-b1715442aa.csv"), _download(), TERMINATE)

        assert "Invalid reference format" in output[1]["error"]["message"]
        assert output[2]["path"].endswith("test.csv")
        assert "error" not in output[2]

    def test_responses_follow_request_order(self, agent, tmp_path, store):
        files = []
        for i in range(3):
            data = f"object {i}\n".encode()
            path = tmp_path / f"obj{i}.bin"
            path.write_bytes(data)
            files.append((path, sha256_hex(data), len(data)))
        uploads = [
            {"event": "upload", "oid": oid, "size": size, "path": str(path)}
            for path, oid, size in files
        ]

        output = _feed(agent, INIT_UPLOAD, *uploads, TERMINATE)

        assert [line["oid"] for line in output[1:]] == [oid for _, oid, _ in files]

    def test_os_error_becomes_failure(self, agent, csv_file, monkeypatch):
        def explode(*args, **kwargs):
            raise PermissionError("permission denied")

        monkeypatch.setattr("lfs_s3_agent.agent.upload_object", explode)

        output = _feed(agent, INIT_UPLOAD, _upload(csv_file), TERMINATE)

        assert output[1]["error"]["message"] == "PermissionError: permission denied"


class TestWalkthrough:
    """Upload then download the sample object, as Git LFS drives the agent."""

    def test_upload_then_download(self, settings, store, cache, csv_file):
        uploaded = _feed(Agent(settings=settings, store=store, cache=cache), INIT_UPLOAD, _upload(csv_file), TERMINATE)
        assert uploaded == [{}, {"event": "complete", "oid": CSV_OID}]
        assert store.metadata(f"alice/{CSV_OID}") == {"sha256": CSV_OID}

        downloaded = _feed(Agent(settings=settings, store=store, cache=cache), INIT_DOWNLOAD, _download(), TERMINATE)
        path = settings.cache_root / CSV_OID[:16] / "test.csv"
        assert downloaded == [{}, {"event": "complete", "oid": CSV_OID, "path": str(path)}]

        store.reset_calls()
        again = _feed(Agent(settings=settings, store=store, cache=cache), INIT_DOWNLOAD, _download(), TERMINATE)
        assert again == downloaded
        assert store.calls == []
