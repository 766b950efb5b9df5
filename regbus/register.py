"""Device registers and bit fields reached over I2C, SPI or a generic device."""

from __future__ import annotations

import sys
from enum import Enum, IntEnum
from typing import Optional, TextIO, Union

from regbus.generic_device import GenericDevice
from regbus.i2c_device import I2CDevice
from regbus.spi_device import SPIDevice

MAX_VALUE_WIDTH = 4

Device = Union[I2CDevice, SPIDevice, GenericDevice]


class ByteOrder(Enum):
    """Order of the bytes of a multi-byte register value."""

    LSB_FIRST = 0
    MSB_FIRST = 1


class SPIRegType(IntEnum):
    """How an SPI device marks a register address as a read or a write."""

    ADDRBIT8_HIGH_TOREAD = 0
    """Set bit 7 of the address to read; clear it to write."""
    AD8_HIGH_TOREAD_AD7_HIGH_TOINC = 1
    """Set bit 7 to read; bit 6 is always set to auto-increment."""
    ADDRBIT8_HIGH_TOWRITE = 2
    """Set bit 7 of the address to write; clear it to read."""
    ADDRESSED_OPCODE_BIT0_LOW_TO_WRITE = 3
    """The address high byte is an opcode whose bit 0 is low to write."""


class Register:
    """A register on a device, holding a value of ``width`` bytes.

    An SPI device needs ``spi_reg_type`` to say how reads and writes are
    told apart; I2C and generic devices ignore it.
    """

    def __init__(
        self,
        device: Device,
        address: int,
        width: int = 1,
        byte_order: ByteOrder = ByteOrder.LSB_FIRST,
        address_width: int = 1,
        spi_reg_type: Optional[SPIRegType] = None,
    ) -> None:
        if not isinstance(device, (I2CDevice, SPIDevice, GenericDevice)):
            raise TypeError(f"unsupported device type: {type(device).__name__}")
        if isinstance(device, SPIDevice) and spi_reg_type is None:
            raise ValueError("an SPI register needs an spi_reg_type")
        self._device = device
        self._spi_reg_type = (
            SPIRegType(spi_reg_type) if spi_reg_type is not None else None
        )
        self._byte_order = ByteOrder(byte_order)
        self.address = address
        self.width = width
        self.address_width = address_width
        self._cached = 0

    @property
    def device(self) -> Device:
        """The device this register lives on."""
        return self._device

    @property
    def byte_order(self) -> ByteOrder:
        """Byte order of multi-byte values."""
        return self._byte_order

    @property
    def address(self) -> int:
        """The register address."""
        return self._address

    @address.setter
    def address(self, value: int) -> None:
        if not 0 <= value <= 0xFFFF:
            raise ValueError("register address must fit in 16 bits")
        self._address = value

    @property
    def width(self) -> int:
        """Width of the register value in bytes."""
        return self._width

    @width.setter
    def width(self, value: int) -> None:
        if value < 0:
            raise ValueError("register width cannot be negative")
        self._width = value

    @property
    def address_width(self) -> int:
        """Width of the register address in bytes."""
        return self._address_width

    @address_width.setter
    def address_width(self, value: int) -> None:
        if value not in (1, 2):
            raise ValueError("address width must be 1 or 2 bytes")
        self._address_width = value

    def _address_bytes(self, writing: bool) -> bytes:
        low = self._address & 0xFF
        high = (self._address >> 8) & 0xFF
        if isinstance(self._device, SPIDevice):
            kind = self._spi_reg_type
            if kind is SPIRegType.ADDRESSED_OPCODE_BIT0_LOW_TO_WRITE:
                opcode = high & ~0x01 if writing else high | 0x01
                return bytes([opcode, low])[: self._address_width + 1]
            if kind is SPIRegType.ADDRBIT8_HIGH_TOREAD:
                low = low & ~0x80 if writing else low | 0x80
            elif kind is SPIRegType.ADDRBIT8_HIGH_TOWRITE:
                low = low | 0x80 if writing else low & ~0x80
            elif kind is SPIRegType.AD8_HIGH_TOREAD_AD7_HIGH_TOINC:
                low = (low & ~0x80) | 0x40 if writing else low | 0x80 | 0x40
        return bytes([low, high])[: self._address_width]

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes to the register."""
        data = bytes(data)
        address = self._address_bytes(writing=True)
        device = self._device
        if isinstance(device, I2CDevice):
            device.write(data, True, address)
        elif isinstance(device, SPIDevice):
            device.write(data, address)
        else:
            device.write_register(address, data)

    def write(self, value: int, numbytes: int = 0) -> None:
        """Write the low ``numbytes`` bytes of ``value`` (default: the width)."""
        if numbytes == 0:
            numbytes = self._width
        if numbytes > MAX_VALUE_WIDTH:
            raise ValueError(f"cannot write more than {MAX_VALUE_WIDTH} bytes")
        value &= 0xFFFFFFFF
        self._cached = value
        encoded = bytes((value >> (8 * i)) & 0xFF for i in range(numbytes))
        if self._byte_order is ByteOrder.MSB_FIRST:
            encoded = encoded[::-1]
        self.write_bytes(encoded)

    def read_bytes(self, length: int) -> bytes:
        """Read ``length`` raw bytes from the register."""
        address = self._address_bytes(writing=False)
        device = self._device
        if isinstance(device, (I2CDevice, SPIDevice)):
            return device.write_then_read(address, length)
        return device.read_register(address, length)

    def _decode(self, data: bytes) -> int:
        order = "little" if self._byte_order is ByteOrder.LSB_FIRST else "big"
        return int.from_bytes(data, order)

    def read(self) -> int:
        """Read the register value, ``width`` bytes wide."""
        if self._width > MAX_VALUE_WIDTH:
            raise ValueError(f"cannot read more than {MAX_VALUE_WIDTH} bytes as a value")
        return self._decode(self.read_bytes(self._width)) & 0xFFFFFFFF

    def read_u8(self) -> int:
        """Read a single byte from the register."""
        return self.read_bytes(1)[0]

    def read_u16(self) -> int:
        """Read two bytes from the register as one value."""
        return self._decode(self.read_bytes(2))

    def read_cached(self) -> int:
        """Return the value last written with :meth:`write`."""
        return self._cached

    def format(self) -> str:
        """Read the register and render its value in hexadecimal."""
        return f"0x{self.read():X}"

    def print(self, stream: Optional[TextIO] = None) -> None:
        """Write the formatted value to ``stream`` (standard output by default)."""
        out = sys.stdout if stream is None else stream
        out.write(self.format())

    def println(self, stream: Optional[TextIO] = None) -> None:
        """Like :meth:`print`, followed by a newline."""
        out = sys.stdout if stream is None else stream
        self.print(out)
        out.write("\n")


class RegisterBits:
    """A field of ``bits`` bits, ``shift`` bits up from the bottom of a register."""

    def __init__(self, register: Register, bits: int, shift: int) -> None:
        if bits < 0 or shift < 0:
            raise ValueError("bits and shift cannot be negative")
        self._register = register
        self._bits = bits
        self._shift = shift

    @property
    def register(self) -> Register:
        """The register this field belongs to."""
        return self._register

    @property
    def _mask(self) -> int:
        return (1 << self._bits) - 1

    def read(self) -> int:
        """Read the field's value."""
        return (self._register.read() >> self._shift) & self._mask

    def write(self, value: int) -> None:
        """Replace the field's bits, leaving the rest of the register alone."""
        current = self._register.read()
        mask = self._mask
        value &= mask
        current &= ~(mask << self._shift)
        current |= value << self._shift
        self._register.write(current, self._register.width)


I2CRegister = Register
I2CRegisterBits = RegisterBits