import json
import logging

from campaignkit.logging import add_message_scope, bind_message, configure_logging, get_logger


def test_message_scope_folds_identity():
    event = add_message_scope(None, "info", {"event": "x", "message_id": "m1", "template": "fullscreen"})

    assert event == {"event": "x", "message": "fullscreen:m1"}


def test_message_scope_leaves_unscoped_events_alone():
    event = {"event": "fullscreen.invalid_payload", "message_id": "m1"}

    assert add_message_scope(None, "error", dict(event)) == event
    assert add_message_scope(None, "info", {"event": "x", "template": "fullscreen"})["message"] == "fullscreen:-"


def test_log_file_receives_json_lines_with_message_scope(tmp_path):
    log_file = tmp_path / "logs" / "campaignkit.log"
    configure_logging(level="DEBUG", log_file=log_file)

    bind_message(get_logger("campaignkit.test"), "m1", "fullscreen").info(
        "fullscreen.displayed", local_images=True
    )
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    record = json.loads(lines[-1])
    assert record["event"] == "fullscreen.displayed"
    assert record["message"] == "fullscreen:m1"
    assert record["level"] == "info"
    assert record["local_images"] is True
    assert "template" not in record


def test_level_filters_debug_events(tmp_path):
    log_file = tmp_path / "campaignkit.log"
    configure_logging(level="INFO", log_file=log_file)

    log = get_logger("campaignkit.test")
    log.debug("fullscreen.cache_miss")
    log.info("render.complete")
    for handler in logging.getLogger().handlers:
        handler.flush()

    events = [json.loads(line)["event"] for line in log_file.read_text(encoding="utf-8").splitlines()]
    assert events == ["render.complete"]
