"""Motor abstraction on top of the TLE94112 half-bridge driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto

from .driver import Tle94112, Timer
from .logger import Service
from .types import Error, HalfBridge, HBState, PWMChannel, PWMFreq, Tle94112Error

MAX_SPEED = 255
MAX_CONNECTORS = 4


class Polarity(IntEnum):
    """Side of the motor a connector drives."""

    LOWSIDE = 0
    HIGHSIDE = 1


class Mode(Enum):
    """Operation mode of a motor."""

    COAST = auto()
    FORWARD = auto()
    BACKWARD = auto()
    STOP = auto()


def _default_halfbridges() -> list[HalfBridge]:
    return [HalfBridge.NOHB] * MAX_CONNECTORS


@dataclass
class Connector:
    """Half-bridges, PWM channel and freewheeling mode of one motor pole."""

    halfbridges: list[HalfBridge] = field(default_factory=_default_halfbridges)
    channel: PWMChannel = PWMChannel.NOPWM
    freq: PWMFreq = PWMFreq.FREQ80HZ
    active_fw: int = False


def _int16(value: int) -> int:
    return ((value + 0x8000) & 0xFFFF) - 0x8000


def _trunc_div(dividend: int, divisor: int) -> int:
    quotient = abs(dividend) // abs(divisor)
    return -quotient if (dividend < 0) != (divisor < 0) else quotient


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


class Tle94112Motor:
    """A DC motor wired to one or more half-bridges of a TLE94112.

    The motor starts in configuration mode; ``begin`` enables the controls
    and ``end`` returns to configuration mode. Configuration calls are
    ignored while controls are enabled, and control calls are ignored while
    they are not.
    """

    def __init__(self, driver: Tle94112) -> None:
        self.driver = driver
        self.mode = Mode.COAST
        self.enabled = False
        self._speed = 0
        self.connectors: dict[Polarity, Connector] = {
            Polarity.LOWSIDE: Connector(),
            Polarity.HIGHSIDE: Connector(),
        }

    def begin(self) -> None:
        """Finish configuration and enable motor controls."""
        self._log("begin")
        self.enabled = True
        self.coast()

    def end(self) -> None:
        """Release the motor and return to configuration mode."""
        self._log("end")
        self.coast()
        self.enabled = False

    def init_connector(
        self,
        pol,
        channel,
        out1,
        out2=HalfBridge.NOHB,
        out3=HalfBridge.NOHB,
        out4=HalfBridge.NOHB,
        freq=PWMFreq.FREQ80HZ,
    ) -> None:
        """Configure PWM channel, frequency and outputs of one motor pole."""
        self._log("init_connector")
        if self.enabled:
            return
        connector = self.connectors[Polarity(pol)]
        connector.channel = PWMChannel(channel)
        connector.freq = PWMFreq(freq)
        connector.active_fw = False
        connector.halfbridges = [HalfBridge(out) for out in (out1, out2, out3, out4)]

    def connect(self, pol, connector) -> None:
        """Assign a half-bridge to the first free slot of a motor pole."""
        self._log("connect")
        if self.enabled:
            return
        bridges = self.connectors[Polarity(pol)].halfbridges
        for idx, hb in enumerate(bridges):
            if hb == HalfBridge.NOHB:
                bridges[idx] = HalfBridge(connector)
                break

    def disconnect(self, connector) -> None:
        """Remove a half-bridge from both poles of the motor."""
        self._log("disconnect")
        if self.enabled:
            return
        connector = HalfBridge(connector)
        for conn in self.connectors.values():
            conn.halfbridges = [
                HalfBridge.NOHB if hb == connector else hb for hb in conn.halfbridges
            ]

    def set_pwm(self, pol, channel, freq=None) -> None:
        """Set the PWM channel, and optionally its frequency, of a pole."""
        self._log("set_pwm")
        if self.enabled:
            return
        connector = self.connectors[Polarity(pol)]
        connector.channel = PWMChannel(channel)
        if freq is not None:
            connector.freq = PWMFreq(freq)

    def set_pwm_freq(self, pol, freq) -> None:
        """Set the PWM frequency of a pole."""
        self._log("set_pwm_freq")
        if not self.enabled:
            self.connectors[Polarity(pol)].freq = PWMFreq(freq)

    def set_active_free_wheeling(self, pol, active_fw) -> None:
        """Enable or disable active freewheeling on a pole."""
        self._log("set_active_free_wheeling")
        if not self.enabled:
            self.connectors[Polarity(pol)].active_fw = active_fw

    def coast(self) -> None:
        """Let all outputs float, then clear the chip's error flags."""
        self._log("coast")
        if self.enabled:
            self.mode = Mode.COAST
            self._speed = 0
            for conn in self.connectors.values():
                for hb in conn.halfbridges:
                    self.driver.config_hb(
                        hb, HBState.FLOATING, conn.channel, int(conn.active_fw)
                    )
        self.driver.clear_errors()

    def stop(self, force=MAX_SPEED) -> None:
        """Brake actively; a higher force (up to 255) stops quicker."""
        self._log("stop")
        if not self.enabled:
            return
        force = int(force) & 0xFF
        self.coast()
        self.mode = Mode.STOP
        self._speed = force
        high = self.connectors[Polarity.HIGHSIDE]
        low = self.connectors[Polarity.LOWSIDE]
        self.driver.config_pwm(high.channel, high.freq, force)
        self.driver.config_pwm(low.channel, low.freq, force)
        highside = [hb for hb in high.halfbridges if hb != HalfBridge.NOHB]
        for hb in highside:
            self.driver.config_hb(hb, HBState.LOW, high.channel, int(high.active_fw))
        # Without highside outputs the motor is tied to supply: brake to high.
        low_state = HBState.LOW if highside else HBState.HIGH
        for hb in low.halfbridges:
            self.driver.config_hb(hb, low_state, low.channel, int(low.active_fw))

    def start(self, speed) -> None:
        """Run the motor at a speed from -255 to 255."""
        self._log("start")
        self.set_speed(speed)

    def set_speed(self, speed) -> None:
        """Change speed and direction; values are taken modulo 256 in size."""
        self._log("set_speed")
        if not self.enabled:
            return
        speed = _int16(int(speed))
        if speed == 0:
            self.coast()
            return
        target = Mode.FORWARD if speed > 0 else Mode.BACKWARD
        magnitude = abs(speed) & 0xFF
        high = self.connectors[Polarity.HIGHSIDE]
        low = self.connectors[Polarity.LOWSIDE]
        self._speed = magnitude
        self.driver.config_pwm(high.channel, high.freq, magnitude)
        self.driver.config_pwm(low.channel, low.freq, magnitude)
        if self.mode == target:
            return
        self.coast()
        self.mode = target
        self._speed = magnitude
        high_state, low_state = (
            (HBState.HIGH, HBState.LOW) if target == Mode.FORWARD else (HBState.LOW, HBState.HIGH)
        )
        for high_hb, low_hb in zip(high.halfbridges, low.halfbridges):
            self.driver.config_hb(high_hb, high_state, high.channel, int(high.active_fw))
            self.driver.config_hb(low_hb, low_state, low.channel, int(low.active_fw))

    def speed(self) -> int:
        """Current signed speed; zero unless running forward or backward."""
        self._log("speed")
        if self.mode == Mode.FORWARD:
            return self._speed
        if self.mode == Mode.BACKWARD:
            return -self._speed
        return 0

    def ramp_speed(self, speed, slope) -> None:
        """Change speed gradually; ``slope`` is the time of a full 0..255 ramp."""
        self._log("ramp_speed")
        start_speed = self.speed()
        speed = _int16(int(speed))
        slope = int(slope) & 0xFFFF
        if not self.enabled or speed == start_speed:
            return
        duration = self._measure_set_speed_duration(speed, start_speed)
        delta_speed = _int16(speed - start_speed)
        delta_time = _int16(_trunc_div(slope * abs(delta_speed), MAX_SPEED))
        # The step count is computed in unsigned 32-bit arithmetic.
        divisor = (duration - 1) & 0xFFFFFFFF
        if divisor == 0:
            divisor = 1
        num_steps = _int16((delta_time & 0xFFFFFFFF) // divisor)
        steptime = 0
        if abs(delta_speed) < num_steps:
            num_steps = abs(delta_speed)
            steptime = (_trunc_div(delta_time, abs(delta_speed)) - duration) & 0xFFFF
        self._perform_speed_stepping(start_speed, delta_speed, num_steps, steptime)

    def _timer(self) -> Timer:
        if self.driver.timer is None:
            raise Tle94112Error(Error.INTF_ERROR, "timer not configured")
        return self.driver.timer

    def _measure_set_speed_duration(self, speed: int, start_speed: int) -> int:
        self._log("_measure_set_speed_duration")
        timer = self._timer()
        if start_speed == 0:
            # Changing direction costs extra; keep it out of the measurement.
            start_speed = _sign(speed)
            self.set_speed(start_speed)
        timer.start()
        self.set_speed(start_speed)
        return int(timer.elapsed())

    def _perform_speed_stepping(
        self, start_speed: int, delta_speed: int, num_steps: int, steptime: int
    ) -> None:
        self._log("_perform_speed_stepping")
        timer = self._timer()
        elapsed = 0
        timer.start()
        if num_steps <= 0:
            self.set_speed(start_speed + delta_speed)
            return
        for step in range(1, num_steps + 1):
            self.set_speed(start_speed + _trunc_div(step * delta_speed, num_steps))
            if steptime > 0:
                while elapsed < steptime:
                    elapsed = timer.elapsed()

    def _log(self, message: str) -> None:
        logger = self.driver.logger
        if logger is not None:
            logger.log_message(Service.MOTOR, message)