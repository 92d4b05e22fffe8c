# tle94112

A pure-Python driver for the TLE94112 twelve-channel half-bridge IC, with a
DC motor abstraction built on top of it and a small coloured logger.

## Modules

- `tle94112.types`: enumerations (`HalfBridge`, `PWMChannel`, `HBState`,
  `HBOCState`, `PWMFreq`, `DiagFlag`, `CtrlRegister`, `StatusRegister`,
  `Error`, `Framework`), register addresses and the `Tle94112Error`
  exception.
- `tle94112.driver`: the abstract interfaces `SpiBus`, `Gpio` and `Timer`,
  the register layout tables and the `Tle94112` driver.
- `tle94112.motor`: `Tle94112Motor`, `Polarity`, `Mode` and `Connector`.
- `tle94112.logger`: `Logger`, the abstract `LogSink`, `Color` and `Service`.

## Hardware access

The package holds no platform code. You subclass three interfaces to reach
your hardware:

- `SpiBus`: implement `transfer(send)`, which sends one byte and returns the
  byte received. `init()` and `deinit()` have default implementations.
- `Gpio` (chip select and enable): implement `enable()` and `disable()`.
- `Timer`: implement `start()`, `elapsed()` (milliseconds since `start`),
  `delay_milli(timeout)` and `delay_micro(timeout)`.

```python
import time
from tle94112.driver import SpiBus, Gpio, Timer

class MyBus(SpiBus):
    def transfer(self, send):
        return my_spi_exchange(send)      # your platform call

class MyPin(Gpio):
    def __init__(self, pin):
        self.pin = pin
    def enable(self):
        my_pin_write(self.pin, 1)
    def disable(self):
        my_pin_write(self.pin, 0)

class MyTimer(Timer):
    def start(self):
        self._t0 = time.monotonic()
    def elapsed(self):
        return int((time.monotonic() - self._t0) * 1000)
    def delay_milli(self, timeout):
        time.sleep(timeout / 1000)
    def delay_micro(self, timeout):
        time.sleep(timeout / 1_000_000)
```

## Driving half-bridges directly

```python
from tle94112.driver import Tle94112
from tle94112.types import HalfBridge, HBState, PWMChannel, PWMFreq, DiagFlag

with Tle94112(MyBus(), MyPin(10), MyPin(8), MyTimer()) as chip:
    chip.config_pwm(PWMChannel.PWM1, PWMFreq.FREQ80HZ, 128)
    chip.config_hb(HalfBridge.HB1, HBState.HIGH, PWMChannel.PWM1)
    chip.config_hb(HalfBridge.HB2, HBState.LOW, PWMChannel.NOPWM)

    if chip.get_sys_diagnosis(DiagFlag.OVER_VOLTAGE):
        chip.clear_errors()
```

`begin()` (called on entering the `with` block) initialises the bus, pins
and timer and resets the mirror of the control registers; `end()` (called
on leaving it) disables the pins, stops the timer and closes the bus.

Other driver calls:

- `get_sys_diagnosis(mask=None)` returns 0 when healthy, otherwise the
  raised flags (the power-on-reset bit is inverted).
- `get_hb_over_current(hb)` and `get_hb_open_load(hb)` read the error bits
  of one half-bridge.
- `set_led_mode(hb, active)` works on `HB1` and `HB2` only; any other
  half-bridge raises `Tle94112Error` with code `Error.CONF_ERROR`.
- `read_status_reg(reg, mask=0xFF, shift=0)` and
  `direct_write_reg(reg, data)` give raw register access.
- `ctrl_register_value(reg)` returns the last value written to a control
  register.

Register access without a bus, chip select or timer raises
`Tle94112Error` with code `Error.INTF_ERROR`.

## Controlling a motor

```python
from tle94112.motor import Tle94112Motor, Polarity
from tle94112.types import HalfBridge, PWMChannel

motor = Tle94112Motor(chip)
motor.init_connector(Polarity.HIGHSIDE, PWMChannel.PWM1,
                     HalfBridge.HB1, HalfBridge.HB2)
motor.init_connector(Polarity.LOWSIDE, PWMChannel.NOPWM,
                     HalfBridge.HB3, HalfBridge.HB4)
motor.begin()

motor.start(100)               # forward at 100 / 255
print(motor.speed())           # 100
motor.ramp_speed(-200, 1000)   # 1000 ms for a full 0..255 ramp
motor.stop(255)                # brake hard
motor.end()
```

The configuration calls (`init_connector`, `connect`, `disconnect`,
`set_pwm`, `set_pwm_freq`, `set_active_free_wheeling`) are ignored while
the motor is enabled; call `end()` first to reconfigure. Control calls
(`start`, `set_speed`, `stop`, `ramp_speed`) are ignored until `begin()`.

## Logging

`Logger` writes coloured, service-tagged lines to a `LogSink`. Subclass
`LogSink` and implement `write(data)`, which receives bytes:

```python
import sys
from tle94112.logger import Logger, LogSink, Service

class StdoutSink(LogSink):
    def write(self, data):
        sys.stdout.write(data.decode())

log = Logger(StdoutSink())
log.log_message(Service.APP, "hello")
log.log_return(Service.APP, -1)    # "fail with return code -1" in red
```

Pass a logger to the driver (`Tle94112(..., logger=log)`) to trace every
driver and motor call.

## What this package does not do

It contains no SPI, GPIO or timer implementations for any board; these
must be supplied through the `SpiBus`, `Gpio` and `Timer` interfaces. It
has no command-line tool.

## Running the tests

```
pip install .[test]
pytest
```