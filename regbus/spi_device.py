"""An SPI device driven over a hardware bus or bit-banged on plain pins."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional, Protocol

DEFAULT_FREQUENCY = 1_000_000


class BitOrder(Enum):
    """Order in which the bits of each byte go out on the wire."""

    MSB_FIRST = "msb_first"
    LSB_FIRST = "lsb_first"


class SPIMode(IntEnum):
    """Clock polarity and phase combinations."""

    MODE0 = 0
    MODE1 = 1
    MODE2 = 2
    MODE3 = 3


class PinMode(Enum):
    """Direction of a general-purpose pin."""

    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class SPISettings:
    """Settings handed to a hardware bus at the start of each transaction."""

    frequency: int
    data_order: BitOrder
    data_mode: SPIMode


class SPIBus(Protocol):
    """A hardware SPI peripheral."""

    def begin(self) -> None: ...

    def begin_transaction(self, settings: SPISettings) -> None: ...

    def end_transaction(self) -> None: ...

    def transfer(self, data: bytes) -> bytes: ...


class Pins(Protocol):
    """General-purpose pin access used for chip select and software SPI."""

    def pin_mode(self, pin: int, mode: PinMode) -> None: ...

    def digital_write(self, pin: int, value: bool) -> None: ...

    def digital_read(self, pin: int) -> bool: ...

    def delay_microseconds(self, microseconds: int) -> None: ...


def _pin(number: Optional[int]) -> Optional[int]:
    if number is None or number < 0:
        return None
    return number


class SPIDevice:
    """A device on an SPI bus selected by an optional chip-select pin.

    With ``spi`` given, bytes go through that hardware bus. Without it the
    bus is bit-banged on ``sck``, ``mosi`` and ``miso`` through ``pins``.
    A pin given as ``None`` or a negative number is unused.
    """

    def __init__(
        self,
        cs: Optional[int] = None,
        spi: Optional[SPIBus] = None,
        pins: Optional[Pins] = None,
        sck: Optional[int] = None,
        miso: Optional[int] = None,
        mosi: Optional[int] = None,
        frequency: int = DEFAULT_FREQUENCY,
        data_order: BitOrder = BitOrder.MSB_FIRST,
        data_mode: SPIMode = SPIMode.MODE0,
    ) -> None:
        if frequency <= 0:
            raise ValueError("frequency must be positive")
        self._cs = _pin(cs)
        self._spi = spi
        self._pins = pins
        self._sck = _pin(sck)
        self._miso = _pin(miso)
        self._mosi = _pin(mosi)
        if spi is None:
            if self._sck is None:
                raise ValueError("software SPI needs a clock pin")
            if pins is None:
                raise ValueError("software SPI needs pin access")
        if self._cs is not None and pins is None:
            raise ValueError("a chip-select pin needs pin access")
        self._settings = SPISettings(frequency, data_order, SPIMode(data_mode))
        self._begun = False

    @property
    def settings(self) -> SPISettings:
        """Clock frequency, bit order and mode of this device."""
        return self._settings

    @property
    def begun(self) -> bool:
        """Whether :meth:`begin` has been called."""
        return self._begun

    def begin(self) -> bool:
        """Set up the pins and bus; always succeeds."""
        pins = self._pins
        if self._cs is not None and pins is not None:
            pins.pin_mode(self._cs, PinMode.OUTPUT)
            pins.digital_write(self._cs, True)

        if self._spi is not None:
            self._spi.begin()
        elif pins is not None and self._sck is not None:
            pins.pin_mode(self._sck, PinMode.OUTPUT)
            idle_low = self._settings.data_mode in (SPIMode.MODE0, SPIMode.MODE1)
            pins.digital_write(self._sck, not idle_low)
            if self._mosi is not None:
                pins.pin_mode(self._mosi, PinMode.OUTPUT)
                pins.digital_write(self._mosi, True)
            if self._miso is not None:
                pins.pin_mode(self._miso, PinMode.INPUT)

        self._begun = True
        return True

    def transfer(self, data: bytes) -> bytes:
        """Send ``data`` and return the bytes clocked in at the same time.

        No transaction or chip-select handling is done. On a software bus
        without a MISO pin the sent bytes come back unchanged.
        """
        data = bytes(data)
        if not data:
            return b""
        if self._spi is not None:
            return bytes(self._spi.transfer(data))
        return self._software_transfer(data)

    def _software_transfer(self, data: bytes) -> bytes:
        pins = self._pins
        assert pins is not None and self._sck is not None
        settings = self._settings
        sck, mosi, miso = self._sck, self._mosi, self._miso

        if settings.data_order is BitOrder.LSB_FIRST:
            masks = [1 << i for i in range(8)]
        else:
            masks = [0x80 >> i for i in range(8)]
        last_mosi = not (data[0] & masks[0])
        delay = (1_000_000 // settings.frequency) // 2
        leading_edge = settings.data_mode in (SPIMode.MODE0, SPIMode.MODE2)

        received = bytearray()
        for send in data:
            reply = 0
            for bit in masks:
                if delay:
                    pins.delay_microseconds(delay)
                if leading_edge:
                    to_write = bool(send & bit)
                    if mosi is not None and last_mosi != to_write:
                        pins.digital_write(mosi, to_write)
                        last_mosi = to_write
                    pins.digital_write(sck, True)
                    if delay:
                        pins.delay_microseconds(delay)
                    if miso is not None and pins.digital_read(miso):
                        reply |= bit
                    pins.digital_write(sck, False)
                else:
                    pins.digital_write(sck, True)
                    if delay:
                        pins.delay_microseconds(delay)
                    if mosi is not None:
                        pins.digital_write(mosi, bool(send & bit))
                    pins.digital_write(sck, False)
                    if miso is not None and pins.digital_read(miso):
                        reply |= bit
            received.append(reply if miso is not None else send)
        return bytes(received)

    def transfer_byte(self, send: int) -> int:
        """Send one byte and return the byte received."""
        return self.transfer(bytes([send]))[0]

    def begin_transaction(self) -> None:
        """Start a bus transaction on a hardware bus."""
        if self._spi is not None:
            self._spi.begin_transaction(self._settings)

    def end_transaction(self) -> None:
        """End a bus transaction on a hardware bus."""
        if self._spi is not None:
            self._spi.end_transaction()

    def _set_chip_select(self, value: bool) -> None:
        if self._cs is not None and self._pins is not None:
            self._pins.digital_write(self._cs, value)

    def begin_transaction_with_asserting_cs(self) -> None:
        """Start a transaction and pull chip select low."""
        self.begin_transaction()
        self._set_chip_select(False)

    def end_transaction_with_deasserting_cs(self) -> None:
        """Release chip select and end the transaction."""
        self._set_chip_select(True)
        self.end_transaction()

    @contextmanager
    def transaction(self) -> Iterator[SPIDevice]:
        """Hold a transaction with chip select asserted for the block."""
        self.begin_transaction_with_asserting_cs()
        try:
            yield self
        finally:
            self.end_transaction_with_deasserting_cs()

    def read(self, length: int, send_value: int = 0xFF) -> bytes:
        """Read ``length`` bytes, sending ``send_value`` for each."""
        with self.transaction():
            return self.transfer(bytes([send_value]) * length)

    def write(self, data: bytes, prefix: bytes = b"") -> None:
        """Write ``prefix`` then ``data`` in one transaction."""
        with self.transaction():
            for byte in bytes(prefix) + bytes(data):
                self.transfer_byte(byte)

    def write_then_read(
        self, data: bytes, length: int, send_value: int = 0xFF
    ) -> bytes:
        """Write ``data``, then read ``length`` bytes in the same transaction."""
        with self.transaction():
            for byte in bytes(data):
                self.transfer_byte(byte)
            return bytes(self.transfer_byte(send_value) for _ in range(length))

    def write_and_read(self, data: bytes) -> bytes:
        """Send ``data`` and receive at the same time within a transaction."""
        with self.transaction():
            return self.transfer(data)