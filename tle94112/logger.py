"""Colored module logger writing through a pluggable byte sink."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum

_MAX_WRITE_BUFF = 400
_MAX_MESSAGE = _MAX_WRITE_BUFF - 1
_MAX_LINE = _MAX_WRITE_BUFF + 200 - 1
_NEW_LINE = b"\r\n"


class Color(str, Enum):
    """ANSI color sequences used in log lines."""

    RED = "\x1b[31m"
    GREEN = "\x1b[32m"
    YELLOW = "\x1b[33m"
    BLUE = "\x1b[34m"
    MAGENTA = "\x1b[35m"
    CYAN = "\x1b[36m"
    LIGHT_GREY = "\x1b[90m"
    LIGHT_RED = "\x1b[91m"
    LIGHT_GREEN = "\x1b[92m"
    LIGHT_YELLOW = "\x1b[93m"
    LIGHT_BLUE = "\x1b[94m"
    LIGHT_MAGENTA = "\x1b[95m"
    LIGHT_CYAN = "\x1b[96m"
    DEFAULT = "\x1b[0m"


ERROR_COLOR = Color.RED
WARNING_COLOR = Color.YELLOW


class Service(Enum):
    """Library parts that log, each with its line prefix and color."""

    CORE = ("[tle94112]        : ", Color.GREEN)
    MOTOR = ("[tle94112 motor]  : ", Color.BLUE)
    REG = ("[tle94112 reg]    : ", Color.GREEN)
    APP = ("[tle94112 app]    : ", Color.MAGENTA)

    def __init__(self, prefix: str, color: Color) -> None:
        self.prefix = prefix
        self.color = color


class LogSink(ABC):
    """Destination of log output."""

    ready: bool = False

    def init(self) -> None:
        """Prepare the sink for writing."""
        self.ready = True

    def deinit(self) -> None:
        """Release the sink."""
        self.ready = False

    @abstractmethod
    def write(self, data: bytes) -> None:
        """Write raw log bytes."""


def _text(value: object) -> str:
    if isinstance(value, Service):
        return value.prefix
    if isinstance(value, Enum):
        return str(value.value)
    return str(value)


class Logger:
    """Formats log messages and hands them to a sink."""

    def __init__(self, sink: LogSink) -> None:
        self.sink = sink

    def init(self) -> None:
        self.sink.init()

    def deinit(self) -> None:
        self.sink.deinit()

    def print(self, fmt: str | None, *args: object) -> None:
        """Write a printf-style formatted message without decoration."""
        if fmt is None:
            return
        text = (fmt % args)[:_MAX_MESSAGE]
        self.sink.write(text.encode("utf-8"))

    def printf_module(self, fmt: str | None, module, color, *args: object) -> None:
        """Write a formatted message framed by color and module prefix."""
        if fmt is None or module is None or color is None:
            return
        self._emit((fmt % args)[:_MAX_MESSAGE], module, color)

    def print_module_hex(self, data: bytes | Sequence[int] | None, module, color) -> None:
        """Write bytes as space separated hex pairs."""
        if not data:
            return
        text = "".join(f"{byte & 0xFF:02x} " for byte in data)
        self.printf_module(text, module, color)

    def log_message(self, service: Service, message: str) -> None:
        """Write a plain message for a service."""
        self._emit(message[:_MAX_MESSAGE], service.prefix, service.color)

    def log_return(self, service: Service, code: int) -> None:
        """Report pass for non-negative codes and failure otherwise."""
        if code < 0:
            self.printf_module(
                "fail with return code %i", service.prefix, ERROR_COLOR, int(code)
            )
        else:
            self.printf_module("pass", service.prefix, service.color)

    def log_register_map(self, registers: Sequence[int], highlight: int) -> None:
        """Dump a register mirror, marking the entry at ``highlight``."""
        if not registers:
            raise ValueError("register map is empty")
        self.print("%s%s", Service.REG.color.value, Service.REG.prefix)
        self.print("%x :: 0x%02x\r\n", 0, registers[0])
        for index, value in enumerate(registers[1:], start=1):
            self.print("%17x :: ", index)
            self.print("0x%02x", value)
            if index == highlight:
                self.print("<---")
            self.print("\r\n")
        self.print("%s", Color.DEFAULT.value)

    def _emit(self, message: str, module, color) -> None:
        line = f"{_text(color)}{_text(module)}{message}{Color.DEFAULT.value}"
        self.sink.write(line[:_MAX_LINE].encode("utf-8"))
        self.sink.write(_NEW_LINE)