import logging

from voice_budget.logger import ColourizedFormatter, get_logging_config


def test_console_only_without_log_dir(monkeypatch):
    monkeypatch.delenv("LOG_DIR", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "debug")

    config = get_logging_config()

    assert list(config["handlers"]) == ["console"]
    assert config["loggers"][""]["level"] == "DEBUG"
    assert config["loggers"]["uvicorn.access"]["handlers"] == ["console"]


def test_file_handler_with_log_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("LOG_DIR", str(tmp_path / "logs"))

    config = get_logging_config()

    assert config["handlers"]["file"]["filename"] == str(tmp_path / "logs" / "voice_budget.log")
    assert config["handlers"]["file"]["formatter"] == "plain"
    assert (tmp_path / "logs").is_dir()


def test_colour_does_not_leak_into_record():
    record = logging.LogRecord("voice", logging.WARNING, __file__, 1, "careful", None, None)

    text = ColourizedFormatter("%(levelname)s %(message)s").format(record)

    assert text == "\x1b[33mWARNING\x1b[0m careful"
    assert record.levelname == "WARNING"
