from __future__ import annotations

import json
import logging

from adminvault.core.errors import AdminStoreLoadError, LoadFailure, NameTakenError, ProviderIdTakenError, Severity
from adminvault.core.logger import setup_logging
from adminvault.core.ops_log import OpsLogger
from adminvault.core.redaction import redact


def test_error_to_dict_redacts_context():
    err = NameTakenError(name="owner", password="hunter2")
    d = err.to_dict()
    assert d["code"] == "name_taken"
    assert d["severity"] == Severity.WARN.value
    assert d["recoverable"] is False
    assert d["context"] == {"name": "owner", "password": "***REDACTED***"}
    assert str(err) == "Username already taken."


def test_provider_error_names_provider():
    err = ProviderIdTakenError("discord")
    assert err.provider == "discord"
    assert "discord" in str(err)


def test_load_error_is_critical():
    err = AdminStoreLoadError(LoadFailure.UNREADABLE, path="/x/admins.json")
    d = err.to_dict()
    assert d["severity"] == "CRITICAL"
    assert d["context"]["reason"] == "unreadable"
    assert "permission" in err.details()[0]


def test_redact_nested():
    out = redact({"a": [{"Password_Hash": "$2b$x"}, {"pin": "1234"}], "name": "owner"})
    assert out == {"a": [{"Password_Hash": "***REDACTED***"}, {"pin": "***REDACTED***"}], "name": "owner"}


def test_ops_logger_appends_jsonl(tmp_path):
    ops = OpsLogger(path=str(tmp_path / "logs" / "ops.jsonl"))
    ops.log(trace_id="t1", event="admin.added", outcome="ok", details={"name": "newbie", "password": "pw"})
    ops.log(trace_id="t2", event="admin.deleted", outcome="ok")
    with open(tmp_path / "logs" / "ops.jsonl", "r", encoding="utf-8") as f:
        lines = [json.loads(line) for line in f]
    assert [e["trace_id"] for e in lines] == ["t1", "t2"]
    assert lines[0]["details"] == {"name": "newbie", "password": "***REDACTED***"}
    assert lines[1]["details"] == {}


def test_setup_logging_is_idempotent(tmp_path):
    logger = setup_logging(str(tmp_path / "logs"))
    try:
        setup_logging(str(tmp_path / "logs"))
        assert len(logger.handlers) == 2
        logger.info("hello")
        for h in logger.handlers:
            h.flush()
        with open(tmp_path / "logs" / "adminvault.log", "r", encoding="utf-8") as f:
            assert "hello" in f.read()
    finally:
        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)
