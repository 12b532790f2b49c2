import logging

from sitekit.logger import (
    ERR_RED,
    GRAY,
    INFO_GREEN,
    TRACE,
    TRACE_VIOLET,
    WARN_YELLOW,
    LogFilter,
    LogFlag,
    LogFormatter,
    LogSelect,
    dependency,
    level_color,
    paint,
    setup,
    split_first_word,
)


def _record(name, level, msg):
    return logging.LogRecord(name, level, __file__, 1, msg, None, None)


def test_paint_escape_sequence():
    assert paint(GRAY, "x") == "\x1b[38;5;241mx\x1b[0m"


def test_level_colors():
    assert level_color(logging.ERROR) == 196
    assert level_color(logging.WARNING) == WARN_YELLOW
    assert level_color(logging.INFO) == INFO_GREEN
    assert level_color(TRACE) == TRACE_VIOLET
    assert level_color(logging.CRITICAL) == ERR_RED


def test_split_first_word():
    assert split_first_word("Command installing x") == ("Command", "installing x")
    assert split_first_word("single") == ("", "single")


def test_dependency():
    assert dependency("hyper.client") == "hyper"
    assert dependency("sitekit.fs") is None
    assert dependency("plain") is None


def test_log_flag_server():
    flag = LogFlag([LogSelect.SERVER])
    assert flag.is_set(LogSelect.SERVER)
    assert not flag.is_set(LogSelect.WASM)
    assert flag.matches("hyper.server")
    assert flag.matches("axum.routing")
    assert not flag.matches("wasm.bindgen")


def test_log_flag_wasm():
    flag = LogFlag([LogSelect.WASM])
    assert flag.do_wasm_log("walrus.module")
    assert not flag.do_server_log("hyper")


def test_log_flag_empty():
    flag = LogFlag()
    assert not flag.matches("hyper")
    assert not flag.matches("wasm")


def test_filter_foreign_record_needs_flag():
    record = _record("hyper.client", logging.INFO, "connected")
    assert LogFilter(LogFlag()).filter(record) is False
    assert LogFilter(LogFlag([LogSelect.SERVER])).filter(record) is True


def test_filter_passes_errors_and_own_records():
    assert LogFilter(LogFlag()).filter(_record("other.lib", logging.ERROR, "bad"))
    assert LogFilter(LogFlag()).filter(_record("sitekit.fs", logging.DEBUG, "FS x"))


def test_formatter_own_record():
    text = LogFormatter().format(_record("sitekit.fs", logging.INFO, "Command installing tool"))
    assert text.endswith("Command\x1b[0m installing tool")
    assert text.startswith(paint(INFO_GREEN, "")[:-4])


def test_formatter_dependency_record():
    text = LogFormatter().format(_record("hyper.client", logging.WARNING, "connected now"))
    assert "[hyper]" in text
    assert text.endswith(" connected now")


def test_setup_runs_once():
    flag = setup(0, [LogSelect.SERVER])
    assert flag.is_set(LogSelect.SERVER)
    assert setup(2, []) is flag