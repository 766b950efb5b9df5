# regbus

`regbus` gives register-level access to devices on an I2C bus, an SPI bus, or
any bus that a few callables can describe. It does not drive hardware itself.
You pass in the bus object that talks to the real hardware or to a simulator,
and `regbus` takes care of addressing, chunking, byte order and bit fields.

## Install

```
pip install regbus
```

To run the test suite:

```
pip install "regbus[test]"
pytest
```

## Modules

### `regbus.generic_device`

`GenericDevice(obj, read_func, write_func, readreg_func=None, writereg_func=None)`
wraps plain callables:

- `read_func(obj, length)` returns the bytes read, or `None` on failure.
- `write_func(obj, data)` returns whether the write succeeded.
- `readreg_func(obj, address, length)` and `writereg_func(obj, address, data)`
  do the same for register access. Both are optional.

Call `begin()` before any transfer and `end()` when you are done. The methods
are `read(length)`, `write(data)`, `read_register(address, length)` and
`write_register(address, data)`. They raise `BusError` if the device has not
been started, if a callable is missing or fails, or if a read returns the
wrong number of bytes. `BusError` is a subclass of `IOError` and is the error
type used throughout the package.

### `regbus.i2c_device`

`I2CDevice(address, wire, sda=None, scl=None, max_buffer_size=32)` addresses a
7-bit I2C device through a wire object. The wire object provides `begin(*pins)`,
`end()`, `begin_transmission(address)`, `write(data)`, `end_transmission(stop)`,
`request_from(address, length, stop)` and `read()`. It may also provide
`set_clock(frequency)`.

- `begin(addr_detect=True)` starts the wire. If `sda` and `scl` are both set,
  it passes them to the wire. When `addr_detect` is true it returns the result
  of `detected()`.
- `detected()` probes the address and returns whether the device
  acknowledged.
- `write(data, stop=True, prefix=b"")` sends `prefix` and then `data` in a
  single transaction. It raises `BusError` if the total is larger than
  `max_buffer_size` or if the device does not acknowledge.
- `read(length, stop=True)` reads in chunks no larger than `max_buffer_size`.
  Only the last chunk sends the stop.
- `write_then_read(data, length, stop=False)` writes and then reads back.
- `set_speed(frequency)` returns `False` if the wire has no `set_clock`.

### `regbus.spi_device`

`SPIDevice(cs=None, spi=None, pins=None, sck=None, miso=None, mosi=None,
frequency=1_000_000, data_order=BitOrder.MSB_FIRST, data_mode=SPIMode.MODE0)`
works over a hardware SPI bus (`spi`, which provides `begin`,
`begin_transaction(settings)`, `end_transaction` and `transfer(data)`). If no
`spi` is given, it bit-bangs the bus on `sck`, `mosi` and `miso` through a
`pins` object, which provides `pin_mode`, `digital_write`, `digital_read` and
`delay_microseconds`. A pin given as `None` or a negative number is unused.

- `begin()` configures chip select and the pins. On the software bus the
  clock idles low in modes 0 and 1 and high in modes 2 and 3.
- `transfer(data)` and `transfer_byte(send)` run full-duplex transfers
  without any chip-select handling.
- `transaction()` is a context manager. It begins a transaction and holds
  chip select low for the duration of the block.
- `read(length, send_value=0xFF)`, `write(data, prefix=b"")`,
  `write_then_read(data, length, send_value=0xFF)` and `write_and_read(data)`
  each run inside one transaction.

### `regbus.register`

`Register(device, address, width=1, byte_order=ByteOrder.LSB_FIRST,
address_width=1, spi_reg_type=None)` is a register on an `I2CDevice`,
`SPIDevice` or `GenericDevice`. An SPI register also needs a `SPIRegType`,
which sets how a read or a write is marked in the address byte.

- `read()` returns the value, up to 4 bytes wide. `read_u8()` and
  `read_u16()` read one and two bytes.
- `write(value, numbytes=0)` writes the low bytes of `value`. By default it
  writes `width` bytes, and it refuses more than 4. `read_cached()` returns
  the last value written.
- `read_bytes(length)` and `write_bytes(data)` give raw access.
- `format()` returns the value as hexadecimal, for example `"0x1F"`.
  `print(stream)` and `println(stream)` write it to a stream, which defaults
  to standard output.
- `address`, `width` and `address_width` can be changed after construction.

`RegisterBits(register, bits, shift)` is a bit field inside a register. Its
`write` does a read-modify-write that leaves the other bits untouched.
`I2CRegister` and `I2CRegisterBits` are aliases of the two classes.

## Example

```python
from regbus.i2c_device import I2CDevice
from regbus.register import ByteOrder, Register, RegisterBits

device = I2CDevice(0x68, wire)       # wire: your I2C bus object
device.begin()

who_am_i = Register(device, 0x75)
print(who_am_i.format())

config = Register(device, 0x1A, width=2, byte_order=ByteOrder.MSB_FIRST)
dlpf = RegisterBits(config, bits=3, shift=0)
dlpf.write(5)                        # other bits stay as they were
print(dlpf.read())
```

## What it does not do

`regbus` has no drivers for any platform's I2C, SPI or GPIO hardware, and no
command-line tool. The wire, SPI bus and pin objects described above must come
from your own code.