"""Enumerations, register addresses and the error type of the TLE94112."""

from __future__ import annotations

from enum import IntEnum, IntFlag


class Error(IntEnum):
    """Error codes reported by the library and its platform layers."""

    OK = 0
    INTF_ERROR = -1
    CONF_ERROR = -2
    READ_ERROR = -3
    WRITE_ERROR = -4


class Framework(IntEnum):
    """Target frameworks the library can be configured for."""

    ARDUINO = 0x01
    WICED = 0x02
    RPI = 0x03
    MTB = 0x04
    PSOC6 = 0x05


DEFAULT_FRAMEWORK = Framework.ARDUINO

# SPI addresses of the control registers.
REG_ACT_1 = 0x03
REG_ACT_2 = 0x43
REG_ACT_3 = 0x23
REG_MODE_1 = 0x63
REG_MODE_2 = 0x13
REG_MODE_3 = 0x53
REG_PWM_CH_FREQ = 0x33
REG_PWM_DC_1 = 0x73
REG_PWM_DC_2 = 0x0B
REG_PWM_DC_3 = 0x4B
REG_FW_OL = 0x2B
REG_FW_CTRL = 0x6B

# SPI addresses of the status registers.
REG_SYS_DIAG = 0x1B
REG_ERR1 = 0x5B
REG_ERR2 = 0x3B
REG_ERR3 = 0x7B
REG_ERR4 = 0x07
REG_ERR5 = 0x47
REG_ERR6 = 0x27

# Half-bridge activation bit patterns.
HL_HL = 0b10011001
HL_LH = 0b10010110
LH_HL = 0b01101001
LH_LH = 0b01100110
HH_LL = 0b10100101
LL_HH = 0b01011010

NUM_HB = 13
NUM_PWM = 4
NUM_CTRL_REGS = 12
NUM_STATUS_REGS = 7

STATUS_OK = 0


class HalfBridge(IntEnum):
    """Half-bridge outputs of the chip; NOHB means no output."""

    NOHB = 0
    HB1 = 1
    HB2 = 2
    HB3 = 3
    HB4 = 4
    HB5 = 5
    HB6 = 6
    HB7 = 7
    HB8 = 8
    HB9 = 9
    HB10 = 10
    HB11 = 11
    HB12 = 12


class PWMChannel(IntEnum):
    """PWM channels a half-bridge can be driven by."""

    NOPWM = 0
    PWM1 = 1
    PWM2 = 2
    PWM3 = 3


class HBState(IntEnum):
    """Output state of a half-bridge."""

    FLOATING = 0b00
    LOW = 0b01
    HIGH = 0b10


class HBOCState(IntEnum):
    """Overcurrent state of a half-bridge."""

    NONE = 0b00
    LOWSIDE = 0b01
    HIGHSIDE = 0b10


class PWMFreq(IntEnum):
    """Frequency settings of a PWM channel."""

    FREQOFF = 0b00
    FREQ80HZ = 0b01
    FREQ100HZ = 0b10
    FREQ200HZ = 0b11


class DiagFlag(IntFlag):
    """Flags of the SYS_DIAG1 status register."""

    SPI_ERROR = 0x80
    LOAD_ERROR = 0x40
    UNDER_VOLTAGE = 0x20
    OVER_VOLTAGE = 0x10
    POWER_ON_RESET = 0x08
    TEMP_SHUTDOWN = 0x04
    TEMP_WARNING = 0x02


class CtrlRegister(IntEnum):
    """Control registers, indexed in the order of the register mirror."""

    HB_ACT_1_CTRL = 0
    HB_ACT_2_CTRL = 1
    HB_ACT_3_CTRL = 2
    HB_MODE_1_CTRL = 3
    HB_MODE_2_CTRL = 4
    HB_MODE_3_CTRL = 5
    PWM_CH_FREQ_CTRL = 6
    PWM1_DC_CTRL = 7
    PWM2_DC_CTRL = 8
    PWM3_DC_CTRL = 9
    FW_OL_CTRL = 10
    FW_CTRL = 11

    @property
    def address(self) -> int:
        """SPI address of this register."""
        return _CTRL_ADDRESSES[self]


class StatusRegister(IntEnum):
    """Status registers of the chip."""

    SYS_DIAG1 = 0
    OP_ERROR_1_STAT = 1
    OP_ERROR_2_STAT = 2
    OP_ERROR_3_STAT = 3
    OP_ERROR_4_STAT = 4
    OP_ERROR_5_STAT = 5
    OP_ERROR_6_STAT = 6

    @property
    def address(self) -> int:
        """SPI address of this register."""
        return _STATUS_ADDRESSES[self]


_CTRL_ADDRESSES = {
    CtrlRegister.HB_ACT_1_CTRL: REG_ACT_1,
    CtrlRegister.HB_ACT_2_CTRL: REG_ACT_2,
    CtrlRegister.HB_ACT_3_CTRL: REG_ACT_3,
    CtrlRegister.HB_MODE_1_CTRL: REG_MODE_1,
    CtrlRegister.HB_MODE_2_CTRL: REG_MODE_2,
    CtrlRegister.HB_MODE_3_CTRL: REG_MODE_3,
    CtrlRegister.PWM_CH_FREQ_CTRL: REG_PWM_CH_FREQ,
    CtrlRegister.PWM1_DC_CTRL: REG_PWM_DC_1,
    CtrlRegister.PWM2_DC_CTRL: REG_PWM_DC_2,
    CtrlRegister.PWM3_DC_CTRL: REG_PWM_DC_3,
    CtrlRegister.FW_OL_CTRL: REG_FW_OL,
    CtrlRegister.FW_CTRL: REG_FW_CTRL,
}

_STATUS_ADDRESSES = {
    StatusRegister.SYS_DIAG1: REG_SYS_DIAG,
    StatusRegister.OP_ERROR_1_STAT: REG_ERR1,
    StatusRegister.OP_ERROR_2_STAT: REG_ERR2,
    StatusRegister.OP_ERROR_3_STAT: REG_ERR3,
    StatusRegister.OP_ERROR_4_STAT: REG_ERR4,
    StatusRegister.OP_ERROR_5_STAT: REG_ERR5,
    StatusRegister.OP_ERROR_6_STAT: REG_ERR6,
}


class Tle94112Error(Exception):
    """Raised when an interface, configuration, read or write step fails."""

    def __init__(self, code: Error | int, message: str = "") -> None:
        self.code = Error(code)
        self.message = message
        super().__init__(message or f"{self.code.name} ({int(self.code)})")