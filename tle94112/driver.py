"""Register-level driver for the TLE94112 multi half-bridge chip."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import NamedTuple

from .logger import Logger, Service
from .types import (
    CtrlRegister,
    DiagFlag,
    Error,
    HalfBridge,
    HBState,
    PWMChannel,
    PWMFreq,
    StatusRegister,
    Tle94112Error,
)

CMD_WRITE = 0x80
CMD_CLEAR = 0x80
STATUS_INV_MASK = int(DiagFlag.POWER_ON_RESET)
CS_RISETIME_MS = 2
CS_MICRO_RISETIME_US = 250


class SpiBus(ABC):
    """SPI bus the chip is attached to."""

    is_open: bool = False

    def init(self) -> None:
        """Open the bus."""
        self.is_open = True

    def deinit(self) -> None:
        """Close the bus."""
        self.is_open = False

    @abstractmethod
    def transfer(self, send: int) -> int:
        """Send one byte and return the byte received at the same time."""


class Gpio(ABC):
    """Digital output line such as chip select or enable."""

    configured: bool = False

    def init(self) -> None:
        """Configure the line."""
        self.configured = True

    def deinit(self) -> None:
        """Release the line."""
        self.configured = False

    @abstractmethod
    def enable(self) -> None:
        """Drive the line to its active level."""

    @abstractmethod
    def disable(self) -> None:
        """Drive the line to its inactive level."""


class Timer(ABC):
    """Millisecond timer with blocking delays."""

    ready: bool = False
    stopped: bool = False

    def init(self) -> None:
        """Prepare the timer."""
        self.ready = True
        self.stopped = False

    def deinit(self) -> None:
        """Release the timer."""
        self.ready = False

    @abstractmethod
    def start(self) -> None:
        """Restart time measurement."""

    @abstractmethod
    def elapsed(self) -> int:
        """Milliseconds since the last start."""

    def stop(self) -> None:
        """Stop time measurement."""
        self.stopped = True

    @abstractmethod
    def delay_milli(self, timeout: int) -> None:
        """Block for ``timeout`` milliseconds."""

    @abstractmethod
    def delay_micro(self, timeout: int) -> None:
        """Block for ``timeout`` microseconds."""


class _Field(NamedTuple):
    reg: int
    mask: int
    shift: int


@dataclass(frozen=True)
class HalfBridgeLayout:
    """Register locations of the settings and flags of one half-bridge."""

    state: _Field
    pwm: _Field
    fw: _Field
    oc: _Field
    ol: _Field


@dataclass(frozen=True)
class PwmChannelLayout:
    """Register locations of the frequency and duty cycle of a PWM channel."""

    freq: _Field
    dc: _Field


def _hb(act, act_mask, act_shift, fw, fw_mask, fw_shift, err_oc, err_ol):
    mode = CtrlRegister(act + 3)
    return HalfBridgeLayout(
        state=_Field(act, act_mask, act_shift),
        pwm=_Field(mode, act_mask, act_shift),
        fw=_Field(fw, fw_mask, fw_shift),
        oc=_Field(err_oc, act_mask, act_shift),
        ol=_Field(err_ol, act_mask, act_shift),
    )


_C = CtrlRegister
_S = StatusRegister

HALF_BRIDGES: dict[HalfBridge, HalfBridgeLayout] = {
    HalfBridge.NOHB: _hb(_C.HB_ACT_1_CTRL, 0x00, 0, _C.FW_OL_CTRL, 0x00, 0, _S.OP_ERROR_1_STAT, _S.OP_ERROR_4_STAT),
    HalfBridge.HB1: _hb(_C.HB_ACT_1_CTRL, 0x03, 0, _C.FW_OL_CTRL, 0x04, 2, _S.OP_ERROR_1_STAT, _S.OP_ERROR_4_STAT),
    HalfBridge.HB2: _hb(_C.HB_ACT_1_CTRL, 0x0C, 2, _C.FW_OL_CTRL, 0x08, 3, _S.OP_ERROR_1_STAT, _S.OP_ERROR_4_STAT),
    HalfBridge.HB3: _hb(_C.HB_ACT_1_CTRL, 0x30, 4, _C.FW_OL_CTRL, 0x10, 4, _S.OP_ERROR_1_STAT, _S.OP_ERROR_4_STAT),
    HalfBridge.HB4: _hb(_C.HB_ACT_1_CTRL, 0xC0, 6, _C.FW_OL_CTRL, 0x20, 5, _S.OP_ERROR_1_STAT, _S.OP_ERROR_4_STAT),
    HalfBridge.HB5: _hb(_C.HB_ACT_2_CTRL, 0x03, 0, _C.FW_OL_CTRL, 0x40, 6, _S.OP_ERROR_2_STAT, _S.OP_ERROR_5_STAT),
    HalfBridge.HB6: _hb(_C.HB_ACT_2_CTRL, 0x0C, 2, _C.FW_OL_CTRL, 0x80, 7, _S.OP_ERROR_2_STAT, _S.OP_ERROR_5_STAT),
    HalfBridge.HB7: _hb(_C.HB_ACT_2_CTRL, 0x30, 4, _C.FW_CTRL, 0x01, 0, _S.OP_ERROR_2_STAT, _S.OP_ERROR_5_STAT),
    HalfBridge.HB8: _hb(_C.HB_ACT_2_CTRL, 0xC0, 6, _C.FW_CTRL, 0x02, 1, _S.OP_ERROR_2_STAT, _S.OP_ERROR_5_STAT),
    HalfBridge.HB9: _hb(_C.HB_ACT_3_CTRL, 0x03, 0, _C.FW_CTRL, 0x04, 2, _S.OP_ERROR_3_STAT, _S.OP_ERROR_6_STAT),
    HalfBridge.HB10: _hb(_C.HB_ACT_3_CTRL, 0x0C, 2, _C.FW_CTRL, 0x08, 3, _S.OP_ERROR_3_STAT, _S.OP_ERROR_6_STAT),
    HalfBridge.HB11: _hb(_C.HB_ACT_3_CTRL, 0x30, 4, _C.FW_CTRL, 0x10, 4, _S.OP_ERROR_3_STAT, _S.OP_ERROR_6_STAT),
    HalfBridge.HB12: _hb(_C.HB_ACT_3_CTRL, 0xC0, 6, _C.FW_CTRL, 0x20, 5, _S.OP_ERROR_3_STAT, _S.OP_ERROR_6_STAT),
}

PWM_CHANNELS: dict[PWMChannel, PwmChannelLayout] = {
    # The dummy channel points its duty cycle at register 0 with an empty mask.
    PWMChannel.NOPWM: PwmChannelLayout(_Field(_C.PWM_CH_FREQ_CTRL, 0x00, 0), _Field(_C.HB_ACT_1_CTRL, 0x00, 0)),
    PWMChannel.PWM1: PwmChannelLayout(_Field(_C.PWM_CH_FREQ_CTRL, 0x03, 0), _Field(_C.PWM1_DC_CTRL, 0xFF, 0)),
    PWMChannel.PWM2: PwmChannelLayout(_Field(_C.PWM_CH_FREQ_CTRL, 0x0C, 2), _Field(_C.PWM2_DC_CTRL, 0xFF, 0)),
    PWMChannel.PWM3: PwmChannelLayout(_Field(_C.PWM_CH_FREQ_CTRL, 0x30, 4), _Field(_C.PWM3_DC_CTRL, 0xFF, 0)),
}

_CLEARABLE = tuple(StatusRegister)


class Tle94112:
    """A TLE94112 reached over SPI, with a mirror of its control registers."""

    def __init__(
        self,
        bus: SpiBus | None = None,
        cs: Gpio | None = None,
        en: Gpio | None = None,
        timer: Timer | None = None,
        logger: Logger | None = None,
    ) -> None:
        self.bus = bus
        self.cs = cs
        self.en = en
        self.timer = timer
        self.logger = logger
        self.enabled = False
        self._ctrl_data = {reg: 0 for reg in CtrlRegister}

    def begin(self) -> None:
        """Bring up the interfaces and reset the register mirror."""
        self.enabled = False
        if self.logger is not None:
            self.logger.init()
        self._log("begin")
        if self.bus is not None:
            self.bus.init()
        if self.en is not None:
            self.en.init()
            self.en.enable()
        if self.cs is not None:
            self.cs.init()
            self.cs.enable()
        if self.timer is not None:
            self.timer.init()
        self.enabled = True
        self._ctrl_data = {reg: 0 for reg in CtrlRegister}

    def end(self) -> None:
        """Disable the chip and release the interfaces."""
        self.enabled = False
        self._log("end")
        if self.en is not None:
            self.en.disable()
        if self.cs is not None:
            self.cs.disable()
        if self.timer is not None:
            self.timer.stop()
        if self.bus is not None:
            self.bus.deinit()
        if self.logger is not None:
            self.logger.deinit()

    def __enter__(self) -> Tle94112:
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.end()

    def config_hb(self, hb, state, pwm, active_fw=0) -> None:
        """Set output state, PWM channel and freewheeling of a half-bridge."""
        self._log("config_hb")
        layout = HALF_BRIDGES[HalfBridge(hb)]
        self._write_reg(layout.state, int(HBState(state)))
        self._write_reg(layout.pwm, int(PWMChannel(pwm)))
        self._write_reg(layout.fw, int(active_fw))

    def config_pwm(self, pwm, freq, duty_cycle) -> None:
        """Set frequency and duty cycle (0..255) of a PWM channel."""
        self._log("config_pwm")
        layout = PWM_CHANNELS[PWMChannel(pwm)]
        self._write_reg(layout.freq, int(PWMFreq(freq)))
        self._write_reg(layout.dc, int(duty_cycle))

    def set_led_mode(self, hb, active) -> None:
        """Switch LED mode on half-bridge 1 or 2; other bridges raise."""
        hb = HalfBridge(hb)
        if hb == HalfBridge.HB1:
            self._write_reg(_Field(CtrlRegister.FW_OL_CTRL, 0x01, 0), int(active))
        elif hb == HalfBridge.HB2:
            self._write_reg(_Field(CtrlRegister.FW_OL_CTRL, 0x02, 1), int(active))
        else:
            raise Tle94112Error(Error.CONF_ERROR, f"{hb.name} does not support LED mode")

    def get_sys_diagnosis(self, mask=None) -> int:
        """Return 0 when healthy, otherwise the raised diagnosis flags."""
        self._log("get_sys_diagnosis")
        if mask is None:
            return self.read_status_reg(StatusRegister.SYS_DIAG1) ^ STATUS_INV_MASK
        mask = int(mask) & 0xFF
        received = self.read_status_reg(StatusRegister.SYS_DIAG1, mask, 0)
        return received ^ (STATUS_INV_MASK & mask)

    def get_hb_over_current(self, hb) -> int:
        """Return the overcurrent flags of a half-bridge."""
        self._log("get_hb_over_current")
        oc = HALF_BRIDGES[HalfBridge(hb)].oc
        return self.read_status_reg(oc.reg, oc.mask, oc.shift)

    def get_hb_open_load(self, hb) -> int:
        """Return the open-load flags of a half-bridge."""
        self._log("get_hb_open_load")
        ol = HALF_BRIDGES[HalfBridge(hb)].ol
        return self.read_status_reg(ol.reg, ol.mask, ol.shift)

    def clear_errors(self) -> None:
        """Clear every clearable status register."""
        self._log("clear_errors")
        for reg in _CLEARABLE:
            self._clear_status_reg(reg)

    def direct_write_reg(self, reg: int, data: int) -> None:
        """Write a byte straight to a raw register address."""
        self._log("direct_write_reg")
        self._frame((int(reg) | CMD_WRITE) & 0xFF, int(data) & 0xFF)
        self._require_timer().delay_micro(CS_MICRO_RISETIME_US)

    def read_status_reg(self, reg, mask=0xFF, shift=0) -> int:
        """Read a status register, then mask and shift the value."""
        self._log("read_status_reg")
        address = StatusRegister(reg).address
        received = self._frame(address, 0xFF)
        self._require_timer().delay_milli(CS_RISETIME_MS)
        return (received & int(mask)) >> int(shift)

    def ctrl_register_value(self, reg) -> int:
        """Last value written to a control register."""
        return self._ctrl_data[CtrlRegister(reg)]

    def _write_reg(self, field: _Field, data: int) -> None:
        reg = CtrlRegister(field.reg)
        value = (self._ctrl_data[reg] & ~field.mask) & 0xFF
        value |= (data << field.shift) & field.mask
        value &= 0xFF
        self._ctrl_data[reg] = value
        self._frame((reg.address | CMD_WRITE) & 0xFF, value)
        self._require_timer().delay_milli(CS_RISETIME_MS)

    def _clear_status_reg(self, reg: StatusRegister) -> None:
        address = (StatusRegister(reg).address | CMD_CLEAR) & 0xFF
        self._frame(address, 0)
        self._require_timer().delay_milli(CS_RISETIME_MS)

    def _frame(self, first: int, second: int) -> int:
        if self.bus is None or self.cs is None:
            raise Tle94112Error(Error.INTF_ERROR, "SPI bus or chip select not configured")
        self.cs.disable()
        self.bus.transfer(first)
        received = self.bus.transfer(second) & 0xFF
        self.cs.enable()
        return received

    def _require_timer(self) -> Timer:
        if self.timer is None:
            raise Tle94112Error(Error.INTF_ERROR, "timer not configured")
        return self.timer

    def _log(self, message: str) -> None:
        if self.logger is not None:
            self.logger.log_message(Service.CORE, message)