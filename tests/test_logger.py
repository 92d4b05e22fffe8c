import pytest

from tle94112.logger import Color, LogSink, Logger, Service
from tle94112.types import Error


class _Recorder(LogSink):
    def __init__(self):
        self.writes = []
        self.inits = 0
        self.deinits = 0

    def init(self):
        self.inits += 1

    def deinit(self):
        self.deinits += 1

    def write(self, data):
        self.writes.append(bytes(data))


def _drive(action):
    """Run an action against a fresh logger and return its sink."""
    sink = _Recorder()
    action(Logger(sink))
    return sink


def _written(action):
    """Run an action against a fresh logger and return the chunks written."""
    return _drive(action).writes


def _text(action):
    return b"".join(_written(action)).decode("utf-8")


def _framed(color, prefix, message):
    return (color.value + prefix + message + Color.DEFAULT.value).encode("utf-8")


def _init_deinit_twice(log):
    log.init()
    log.deinit()
    log.deinit()


def test_init_and_deinit_reach_sink():
    sink = _drive(_init_deinit_twice)
    assert (sink.inits, sink.deinits) == (1, 2)


def test_print_formats_printf_style():
    written = _written(lambda log: log.print("%x :: 0x%02x", 10, 5))
    assert written == [b"a :: 0x05"]


def test_print_none_writes_nothing():
    assert _written(lambda log: log.print(None)) == []


def test_print_truncates_to_buffer():
    written = _written(lambda log: log.print("%s", "x" * 1000))
    assert len(written[0]) == 399


def test_printf_module_frames_message():
    written = _written(
        lambda log: log.printf_module("%s", Service.CORE.prefix, Color.GREEN, "hello")
    )
    assert written == [
        b"\x1b[32m[tle94112]        : hello\x1b[0m",
        b"\r\n",
    ]


def test_printf_module_accepts_service_as_module():
    written = _written(lambda log: log.printf_module("ready", Service.APP, Color.MAGENTA))
    assert written[0] == b"\x1b[35m[tle94112 app]    : ready\x1b[0m"


@pytest.mark.parametrize(
    "fmt, module, color",
    [(None, "m", Color.RED), ("x", None, Color.RED), ("x", "m", None)],
)
def test_printf_module_ignores_missing_parts(fmt, module, color):
    assert _written(lambda log: log.printf_module(fmt, module, color)) == []


def test_print_module_hex():
    written = _written(
        lambda log: log.print_module_hex(b"\x01\xab", Service.REG.prefix, Color.GREEN)
    )
    assert written == [
        b"\x1b[32m[tle94112 reg]    : 01 ab \x1b[0m",
        b"\r\n",
    ]


def test_print_module_hex_empty_writes_nothing():
    written = _written(
        lambda log: log.print_module_hex(b"", Service.REG.prefix, Color.GREEN)
    )
    assert written == []


def test_log_message_keeps_percent_signs():
    written = _written(lambda log: log.log_message(Service.MOTOR, "50%"))
    assert written[0] == _framed(Color.BLUE, Service.MOTOR.prefix, "50%")


@pytest.mark.parametrize(
    "service, expected",
    [
        (Service.CORE, b"\x1b[32m[tle94112]        : hi\x1b[0m"),
        (Service.MOTOR, b"\x1b[34m[tle94112 motor]  : hi\x1b[0m"),
        (Service.REG, b"\x1b[32m[tle94112 reg]    : hi\x1b[0m"),
        (Service.APP, b"\x1b[35m[tle94112 app]    : hi\x1b[0m"),
    ],
)
def test_log_message_uses_service_prefix_and_color(service, expected):
    written = _written(lambda log: log.log_message(service, "hi"))
    assert written == [expected, b"\r\n"]


def test_log_return_pass_uses_service_color():
    written = _written(lambda log: log.log_return(Service.APP, Error.OK))
    assert written[0] == _framed(Color.MAGENTA, Service.APP.prefix, "pass")


def test_log_return_failure_uses_error_color():
    written = _written(lambda log: log.log_return(Service.MOTOR, Error.INTF_ERROR))
    assert written[0] == _framed(
        Color.RED, Service.MOTOR.prefix, "fail with return code -1"
    )


def test_log_register_map_layout():
    registers = [0x11, 0x22, 0x33]
    text = _text(lambda log: log.log_register_map(registers, 2))
    assert text.startswith("\x1b[32m[tle94112 reg]    : ")
    assert text.endswith("\x1b[0m")
    assert text.count("\r\n") == len(registers)
    assert text.count("<---") == 1
    assert "0x33<---" in text


def test_log_register_map_without_highlight():
    text = _text(lambda log: log.log_register_map([1, 2], 0))
    assert "<---" not in text
    assert text.count("\r\n") == 2


def test_log_register_map_rejects_empty():
    with pytest.raises(ValueError):
        Logger(_Recorder()).log_register_map([], 0)