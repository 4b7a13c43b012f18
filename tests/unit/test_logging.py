import io
import json

import structlog

from crosstest.logging import configure_logging


def test_records_are_json_lines_without_raw_bytes() -> None:
    buffer = io.StringIO()
    configure_logging("debug", stream=buffer)
    logger = structlog.get_logger("crosstest.tests")
    logger.info("rpc.failure", method="aead.decrypt", ciphertext=b"\x00" * 12)

    record = json.loads(buffer.getvalue().splitlines()[-1])
    assert record["msg"] == "rpc.failure"
    assert record["level"] == "info"
    assert record["component"] == "crosstest.tests"
    assert record["ciphertext"] == "<12 bytes>"
    assert "ts" in record


def test_level_threshold_filters_records() -> None:
    buffer = io.StringIO()
    configure_logging("warning", stream=buffer)
    logger = structlog.get_logger("crosstest.tests")
    logger.info("server.connection.opened")
    logger.warning("rpc.timeout", method="test.slow")

    lines = buffer.getvalue().splitlines()
    assert [json.loads(line)["msg"] for line in lines] == ["rpc.timeout"]
