import pytest

from tle94112.driver import Gpio, SpiBus, Timer, Tle94112
from tle94112.logger import Logger, LogSink
from tle94112.motor import Connector, Mode, Polarity, Tle94112Motor
from tle94112.types import (
    REG_PWM_DC_1,
    CtrlRegister,
    HalfBridge,
    HBState,
    PWMChannel,
    PWMFreq,
    StatusRegister,
    Tle94112Error,
)


class FakeBus(SpiBus):
    def __init__(self):
        self.sent = []

    def transfer(self, send):
        self.sent.append(send)
        return 0

    def frames(self):
        return list(zip(self.sent[::2], self.sent[1::2]))


class FakeGpio(Gpio):
    def enable(self):
        pass

    def disable(self):
        pass


class FakeTimer(Timer):
    def __init__(self, ticks=0):
        self.ticks = ticks
        self.now = 0

    def start(self):
        self.now = 0

    def elapsed(self):
        self.now += self.ticks
        return self.now

    def delay_milli(self, timeout):
        pass

    def delay_micro(self, timeout):
        pass


class MemorySink(LogSink):
    def __init__(self):
        self.data = b""

    def write(self, data):
        self.data += data


def make_rig(ticks=0, highside=True, logger=None):
    bus = FakeBus()
    timer = FakeTimer(ticks)
    driver = Tle94112(bus, FakeGpio(), FakeGpio(), timer, logger)
    driver.begin()
    motor = Tle94112Motor(driver)
    if highside:
        motor.init_connector(Polarity.HIGHSIDE, PWMChannel.PWM1, HalfBridge.HB1)
    motor.init_connector(Polarity.LOWSIDE, PWMChannel.PWM1, HalfBridge.HB2)
    return motor, driver, bus


def hb_state(driver, shift):
    return (driver.ctrl_register_value(CtrlRegister.HB_ACT_1_CTRL) >> shift) & 0x03


def duty_writes(bus):
    return [value for addr, value in bus.frames() if addr == REG_PWM_DC_1 | 0x80]


def test_new_motor_defaults():
    motor = Tle94112Motor(Tle94112())
    assert motor.speed() == 0
    assert motor.mode == Mode.COAST
    assert motor.enabled is False
    for pol in Polarity:
        assert motor.connectors[pol] == Connector()
        assert motor.connectors[pol].halfbridges == [HalfBridge.NOHB] * 4
        assert motor.connectors[pol].channel == PWMChannel.NOPWM
        assert motor.connectors[pol].freq == PWMFreq.FREQ80HZ


def test_init_connector_sets_configuration():
    motor, _, _ = make_rig()
    motor.init_connector(
        Polarity.HIGHSIDE, PWMChannel.PWM2, HalfBridge.HB3, HalfBridge.HB4,
        freq=PWMFreq.FREQ200HZ,
    )
    conn = motor.connectors[Polarity.HIGHSIDE]
    assert conn.channel == PWMChannel.PWM2
    assert conn.freq == PWMFreq.FREQ200HZ
    assert conn.halfbridges == [HalfBridge.HB3, HalfBridge.HB4, HalfBridge.NOHB, HalfBridge.NOHB]


def test_configuration_ignored_while_enabled():
    motor, _, _ = make_rig()
    motor.begin()
    motor.init_connector(Polarity.HIGHSIDE, PWMChannel.PWM3, HalfBridge.HB9)
    motor.connect(Polarity.LOWSIDE, HalfBridge.HB5)
    motor.set_pwm(Polarity.LOWSIDE, PWMChannel.PWM2)
    assert motor.connectors[Polarity.HIGHSIDE].halfbridges[0] == HalfBridge.HB1
    assert HalfBridge.HB5 not in motor.connectors[Polarity.LOWSIDE].halfbridges
    assert motor.connectors[Polarity.LOWSIDE].channel == PWMChannel.PWM1


def test_connect_fills_first_free_slot_and_disconnect_removes():
    motor, _, _ = make_rig()
    motor.connect(Polarity.LOWSIDE, HalfBridge.HB7)
    motor.connect(Polarity.HIGHSIDE, HalfBridge.HB7)
    assert motor.connectors[Polarity.LOWSIDE].halfbridges[:2] == [HalfBridge.HB2, HalfBridge.HB7]
    assert motor.connectors[Polarity.HIGHSIDE].halfbridges[:2] == [HalfBridge.HB1, HalfBridge.HB7]
    motor.disconnect(HalfBridge.HB7)
    for pol in Polarity:
        assert HalfBridge.HB7 not in motor.connectors[pol].halfbridges


def test_set_pwm_freq_and_free_wheeling():
    motor, _, _ = make_rig()
    motor.set_pwm(Polarity.HIGHSIDE, PWMChannel.PWM3, PWMFreq.FREQ100HZ)
    motor.set_pwm_freq(Polarity.LOWSIDE, PWMFreq.FREQOFF)
    motor.set_active_free_wheeling(Polarity.LOWSIDE, True)
    assert motor.connectors[Polarity.HIGHSIDE].channel == PWMChannel.PWM3
    assert motor.connectors[Polarity.HIGHSIDE].freq == PWMFreq.FREQ100HZ
    assert motor.connectors[Polarity.LOWSIDE].freq == PWMFreq.FREQOFF
    assert motor.connectors[Polarity.LOWSIDE].active_fw is True


def test_set_speed_forward():
    motor, driver, _ = make_rig()
    motor.begin()
    motor.set_speed(100)
    assert motor.speed() == 100
    assert motor.mode == Mode.FORWARD
    assert hb_state(driver, 0) == HBState.HIGH
    assert hb_state(driver, 2) == HBState.LOW
    assert driver.ctrl_register_value(CtrlRegister.PWM1_DC_CTRL) == 100
    mode_reg = driver.ctrl_register_value(CtrlRegister.HB_MODE_1_CTRL)
    assert mode_reg & 0x03 == PWMChannel.PWM1
    assert (mode_reg >> 2) & 0x03 == PWMChannel.PWM1


def test_set_speed_backward():
    motor, driver, _ = make_rig()
    motor.begin()
    motor.start(-50)
    assert motor.speed() == -50
    assert motor.mode == Mode.BACKWARD
    assert hb_state(driver, 0) == HBState.LOW
    assert hb_state(driver, 2) == HBState.HIGH
    assert driver.ctrl_register_value(CtrlRegister.PWM1_DC_CTRL) == 50


def test_same_direction_only_changes_duty_cycle():
    motor, driver, _ = make_rig()
    motor.begin()
    motor.set_speed(100)
    before = driver.ctrl_register_value(CtrlRegister.HB_ACT_1_CTRL)
    motor.set_speed(200)
    assert motor.speed() == 200
    assert driver.ctrl_register_value(CtrlRegister.HB_ACT_1_CTRL) == before
    assert driver.ctrl_register_value(CtrlRegister.PWM1_DC_CTRL) == 200


def test_zero_speed_coasts():
    motor, driver, _ = make_rig()
    motor.begin()
    motor.set_speed(120)
    motor.set_speed(0)
    assert motor.speed() == 0
    assert motor.mode == Mode.COAST
    assert hb_state(driver, 0) == HBState.FLOATING
    assert hb_state(driver, 2) == HBState.FLOATING


def test_set_speed_ignored_when_disabled():
    motor, driver, _ = make_rig()
    motor.set_speed(100)
    assert motor.speed() == 0
    assert driver.ctrl_register_value(CtrlRegister.PWM1_DC_CTRL) == 0


def test_stop_with_highside_pulls_all_low():
    motor, driver, _ = make_rig()
    motor.begin()
    motor.set_speed(100)
    motor.stop()
    assert motor.mode == Mode.STOP
    assert motor.speed() == 0
    assert hb_state(driver, 0) == HBState.LOW
    assert hb_state(driver, 2) == HBState.LOW
    assert driver.ctrl_register_value(CtrlRegister.PWM1_DC_CTRL) == 255


def test_stop_force_sets_duty_cycle():
    motor, driver, _ = make_rig()
    motor.begin()
    motor.stop(80)
    assert driver.ctrl_register_value(CtrlRegister.PWM1_DC_CTRL) == 80


def test_stop_without_highside_pulls_lowside_high():
    motor, driver, _ = make_rig(highside=False)
    motor.begin()
    motor.stop()
    assert motor.mode == Mode.STOP
    assert hb_state(driver, 2) == HBState.HIGH


def test_end_returns_to_configuration_mode():
    motor, driver, _ = make_rig()
    motor.begin()
    motor.set_speed(100)
    motor.end()
    assert motor.enabled is False
    assert motor.mode == Mode.COAST
    assert hb_state(driver, 0) == HBState.FLOATING
    motor.connect(Polarity.HIGHSIDE, HalfBridge.HB3)
    assert motor.connectors[Polarity.HIGHSIDE].halfbridges[1] == HalfBridge.HB3


def test_coast_while_disabled_only_clears_errors():
    motor, _, bus = make_rig()
    bus.sent.clear()
    motor.coast()
    addresses = {addr for addr, _ in bus.frames()}
    assert addresses == {reg.address | 0x80 for reg in StatusRegister}


def test_ramp_steep_sets_target_directly():
    motor, _, bus = make_rig(ticks=0)
    motor.begin()
    bus.sent.clear()
    motor.ramp_speed(150, 255)
    assert motor.speed() == 150
    assert duty_writes(bus)[-1] == 150


def test_ramp_steps_up_monotonically():
    motor, _, bus = make_rig(ticks=2)
    motor.begin()
    bus.sent.clear()
    motor.ramp_speed(100, 255)
    writes = duty_writes(bus)
    assert motor.speed() == 100
    assert writes[-1] == 100
    assert writes == sorted(writes)
    assert len(writes) > 2


def test_ramp_through_zero_changes_direction():
    motor, _, _ = make_rig(ticks=2)
    motor.begin()
    motor.set_speed(100)
    motor.ramp_speed(-100, 255)
    assert motor.speed() == -100
    assert motor.mode == Mode.BACKWARD


def test_ramp_ignored_when_disabled():
    motor, _, bus = make_rig(ticks=2)
    bus.sent.clear()
    motor.ramp_speed(100, 255)
    assert motor.speed() == 0
    assert bus.sent == []


def test_ramp_without_timer_raises():
    motor, driver, _ = make_rig()
    motor.begin()
    driver.timer = None
    with pytest.raises(Tle94112Error):
        motor.ramp_speed(100, 255)


def test_motor_logs_through_driver_logger():
    sink = MemorySink()
    motor, _, _ = make_rig(logger=Logger(sink))
    motor.begin()
    assert b"[tle94112 motor]  : begin" in sink.data