"""A device reached through user-supplied read and write callables."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Optional

ReadFunc = Callable[[Any, int], Optional[bytes]]
WriteFunc = Callable[[Any, bytes], bool]
ReadRegFunc = Callable[[Any, bytes, int], Optional[bytes]]
WriteRegFunc = Callable[[Any, bytes, bytes], bool]


class BusError(IOError):
    """Raised when a bus transaction cannot be carried out."""


class GenericDevice:
    """Talks to a device through plain callables.

    ``read_func(obj, length)`` returns the bytes read, or ``None`` on failure.
    ``write_func(obj, data)`` returns whether the write succeeded.
    ``readreg_func(obj, address, length)`` and
    ``writereg_func(obj, address, data)`` do the same for register access
    and are optional.
    """

    def __init__(
        self,
        obj: Any,
        read_func: ReadFunc,
        write_func: WriteFunc,
        readreg_func: Optional[ReadRegFunc] = None,
        writereg_func: Optional[WriteRegFunc] = None,
    ) -> None:
        self._obj = obj
        self._read_func = read_func
        self._write_func = write_func
        self._readreg_func = readreg_func
        self._writereg_func = writereg_func
        self._begun = False

    @property
    def begun(self) -> bool:
        """Whether the device is in use."""
        return self._begun

    def begin(self) -> bool:
        """Mark the device as in use; always succeeds."""
        self._begun = True
        return True

    def end(self) -> None:
        """Mark the device as no longer in use."""
        self._begun = False

    def _require_begun(self) -> None:
        if not self._begun:
            raise BusError("device has not been started")

    @staticmethod
    def _check_read(result: Optional[bytes], length: int) -> bytes:
        if result is None:
            raise BusError("read failed")
        data = bytes(result)
        if len(data) != length:
            raise BusError(f"expected {length} bytes, got {len(data)}")
        return data

    def read(self, length: int) -> bytes:
        """Read ``length`` raw bytes from the device."""
        self._require_begun()
        return self._check_read(self._read_func(self._obj, length), length)

    def write(self, data: bytes) -> None:
        """Write raw bytes to the device."""
        self._require_begun()
        if not self._write_func(self._obj, bytes(data)):
            raise BusError("write failed")

    def read_register(self, address: bytes, length: int) -> bytes:
        """Read ``length`` bytes from the register at ``address``."""
        self._require_begun()
        if self._readreg_func is None:
            raise BusError("device has no register read function")
        result = self._readreg_func(self._obj, bytes(address), length)
        return self._check_read(result, length)

    def write_register(self, address: bytes, data: bytes) -> None:
        """Write ``data`` to the register at ``address``."""
        self._require_begun()
        if self._writereg_func is None:
            raise BusError("device has no register write function")
        if not self._writereg_func(self._obj, bytes(address), bytes(data)):
            raise BusError("register write failed")