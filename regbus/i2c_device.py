"""An I2C device at a fixed address on a two-wire bus."""

from __future__ import annotations

from typing import Optional, Protocol

from regbus.generic_device import BusError

DEFAULT_MAX_BUFFER_SIZE = 32


class Wire(Protocol):
    """The two-wire bus interface an :class:`I2CDevice` drives."""

    def begin(self, *pins: int) -> None: ...

    def end(self) -> None: ...

    def begin_transmission(self, address: int) -> None: ...

    def write(self, data: bytes) -> int: ...

    def end_transmission(self, stop: bool = True) -> int: ...

    def request_from(self, address: int, length: int, stop: bool = True) -> int: ...

    def read(self) -> int: ...


class I2CDevice:
    """A device on an I2C bus, identified by its 7-bit address."""

    def __init__(
        self,
        address: int,
        wire: Wire,
        sda: Optional[int] = None,
        scl: Optional[int] = None,
        max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE,
    ) -> None:
        self._address = address
        self._wire = wire
        self.sda = sda
        self.scl = scl
        self._max_buffer_size = max_buffer_size
        self._begun = False

    @property
    def address(self) -> int:
        """The 7-bit address of this device."""
        return self._address

    @property
    def max_buffer_size(self) -> int:
        """How many bytes fit in one transaction."""
        return self._max_buffer_size

    @property
    def begun(self) -> bool:
        """Whether the bus has been started."""
        return self._begun

    def begin(self, addr_detect: bool = True) -> bool:
        """Start the bus; if ``addr_detect``, report whether the device answers."""
        if self.sda is not None and self.scl is not None and self.sda >= 0 and self.scl >= 0:
            self._wire.begin(self.sda, self.scl)
        else:
            self._wire.begin()
        self._begun = True
        if addr_detect:
            return self.detected()
        return True

    def end(self) -> None:
        """Shut the bus down."""
        self._wire.end()
        self._begun = False

    def detected(self) -> bool:
        """Probe the address and report whether the device acknowledges."""
        if not self._begun and not self.begin():
            return False
        self._wire.begin_transmission(self._address)
        return self._wire.end_transmission() == 0

    def write(self, data: bytes, stop: bool = True, prefix: bytes = b"") -> None:
        """Write ``prefix`` then ``data`` in a single transaction."""
        data = bytes(data)
        prefix = bytes(prefix)
        if len(data) + len(prefix) > self._max_buffer_size:
            raise BusError(
                f"cannot write {len(data) + len(prefix)} bytes; "
                f"limit is {self._max_buffer_size}"
            )
        self._wire.begin_transmission(self._address)
        if prefix and self._wire.write(prefix) != len(prefix):
            raise BusError("failed to write prefix")
        if self._wire.write(data) != len(data):
            raise BusError("failed to write data")
        if self._wire.end_transmission(stop) != 0:
            raise BusError(f"device 0x{self._address:02X} did not acknowledge")

    def read(self, length: int, stop: bool = True) -> bytes:
        """Read ``length`` bytes, split into buffer-sized chunks."""
        result = bytearray()
        while len(result) < length:
            chunk = min(length - len(result), self._max_buffer_size)
            last = len(result) + chunk >= length
            result += self._read_chunk(chunk, stop if last else False)
        return bytes(result)

    def _read_chunk(self, length: int, stop: bool) -> bytes:
        received = self._wire.request_from(self._address, length, stop)
        if received != length:
            raise BusError(f"expected {length} bytes, received {received}")
        return bytes(self._wire.read() for _ in range(length))

    def write_then_read(self, data: bytes, length: int, stop: bool = False) -> bytes:
        """Write ``data``, then read ``length`` bytes back."""
        self.write(data, stop)
        return self.read(length)

    def set_speed(self, frequency: int) -> bool:
        """Set the bus clock; return whether the bus supports it."""
        set_clock = getattr(self._wire, "set_clock", None)
        if set_clock is None:
            return False
        set_clock(frequency)
        return True