import pytest

from regbus.spi_device import (
    BitOrder,
    PinMode,
    SPIDevice,
    SPIMode,
    SPISettings,
)

CS, SCK, MISO, MOSI = 10, 13, 12, 11


class RecordingPins:
    """Pins whose MISO line reads back whatever MOSI last drove."""

    def __init__(self, events=None, miso_bits=None):
        self.events = events if events is not None else []
        self.levels = {}
        self.modes = {}
        self.delays = []
        self.miso_bits = list(miso_bits) if miso_bits is not None else None

    def pin_mode(self, pin, mode):
        self.modes[pin] = mode

    def digital_write(self, pin, value):
        self.levels[pin] = bool(value)
        self.events.append(("pin", pin, bool(value)))

    def digital_read(self, pin):
        if pin == MISO and self.miso_bits is not None:
            return self.miso_bits.pop(0)
        if pin == MISO:
            return self.levels.get(MOSI, False)
        return self.levels.get(pin, False)

    def delay_microseconds(self, microseconds):
        self.delays.append(microseconds)


class FakeBus:
    def __init__(self, events, responses=b""):
        self.events = events
        self.responses = list(responses)
        self.sent = bytearray()
        self.started = False

    def begin(self):
        self.started = True

    def begin_transaction(self, settings):
        self.events.append(("begin", settings))

    def end_transaction(self):
        self.events.append(("end",))

    def transfer(self, data):
        self.sent += data
        self.events.append(("transfer", bytes(data)))
        return bytes(self.responses.pop(0) for _ in data)


def software_device(mode=SPIMode.MODE0, order=BitOrder.MSB_FIRST, **kwargs):
    pins = RecordingPins(**kwargs)
    device = SPIDevice(
        cs=CS, pins=pins, sck=SCK, miso=MISO, mosi=MOSI,
        data_order=order, data_mode=mode,
    )
    return device, pins


def hardware_device(responses=b""):
    events = []
    pins = RecordingPins(events)
    bus = FakeBus(events, responses)
    device = SPIDevice(cs=CS, spi=bus, pins=pins, frequency=4_000_000)
    return device, bus, events


@pytest.mark.parametrize("mode", list(SPIMode))
@pytest.mark.parametrize("order", list(BitOrder))
def test_software_loopback_round_trip(mode, order):
    device, _ = software_device(mode, order)
    device.begin()
    data = bytes([0x00, 0xA5, 0x3C, 0xFF, 0x81])
    assert device.transfer(data) == data


def test_software_reads_miso_bits_msb_first():
    bits = [True, False, True, False, False, True, False, True]
    device, _ = software_device(miso_bits=bits)
    assert device.transfer_byte(0x00) == 0xA5


def test_software_reads_miso_bits_lsb_first():
    bits = [True, False, False, False, False, False, False, False]
    device, _ = software_device(order=BitOrder.LSB_FIRST, miso_bits=bits)
    assert device.transfer_byte(0x00) == 0x01


def test_software_without_miso_returns_sent_bytes():
    pins = RecordingPins(miso_bits=[True] * 16)
    device = SPIDevice(pins=pins, sck=SCK, mosi=MOSI)
    assert device.transfer(b"\x12\x34") == b"\x12\x34"
    assert len(pins.miso_bits) == 16


def test_clock_ends_low_and_toggles_per_bit():
    device, pins = software_device()
    device.transfer_byte(0x5A)
    clock = [value for kind, pin, value in pins.events if pin == SCK]
    assert clock == [True, False] * 8
    assert pins.levels[SCK] is False


def test_no_delay_at_default_frequency():
    device, pins = software_device()
    device.transfer_byte(0x42)
    assert pins.delays == []


def test_delay_at_low_frequency():
    pins = RecordingPins()
    device = SPIDevice(pins=pins, sck=SCK, mosi=MOSI, miso=MISO, frequency=100_000)
    device.transfer_byte(0x42)
    assert set(pins.delays) == {5}
    assert len(pins.delays) == 16


@pytest.mark.parametrize(
    "mode, idle",
    [(SPIMode.MODE0, False), (SPIMode.MODE1, False),
     (SPIMode.MODE2, True), (SPIMode.MODE3, True)],
)
def test_begin_sets_up_software_pins(mode, idle):
    device, pins = software_device(mode)
    assert device.begin() is True
    assert device.begun
    assert pins.levels[SCK] is idle
    assert pins.levels[CS] is True
    assert pins.levels[MOSI] is True
    assert pins.modes[MISO] is PinMode.INPUT
    assert pins.modes[SCK] is PinMode.OUTPUT


def test_begin_starts_hardware_bus():
    device, bus, _ = hardware_device()
    device.begin()
    assert bus.started
    assert device.begun


def test_hardware_write_asserts_cs_around_bytes():
    device, bus, events = hardware_device(responses=b"\x00" * 3)
    device.write(b"\x02\x03", prefix=b"\x01")
    assert bytes(bus.sent) == b"\x01\x02\x03"
    settings = SPISettings(4_000_000, BitOrder.MSB_FIRST, SPIMode.MODE0)
    assert events[0] == ("begin", settings)
    assert events[1] == ("pin", CS, False)
    assert events[-2] == ("pin", CS, True)
    assert events[-1] == ("end",)


def test_hardware_read_sends_fill_value():
    device, bus, _ = hardware_device(responses=b"\x10\x20\x30")
    assert device.read(3) == b"\x10\x20\x30"
    assert bytes(bus.sent) == b"\xff\xff\xff"


def test_hardware_read_custom_fill_value():
    device, bus, _ = hardware_device(responses=b"\x01\x02")
    device.read(2, send_value=0x00)
    assert bytes(bus.sent) == b"\x00\x00"


def test_write_then_read_keeps_cs_asserted():
    device, bus, events = hardware_device(responses=b"\x00\x00\xaa\xbb")
    assert device.write_then_read(b"\x80\x01", 2) == b"\xaa\xbb"
    assert bytes(bus.sent) == b"\x80\x01\xff\xff"
    cs_changes = [event for event in events if event[0] == "pin"]
    assert cs_changes == [("pin", CS, False), ("pin", CS, True)]


def test_write_and_read_full_duplex():
    device, bus, _ = hardware_device(responses=b"\x09\x08")
    assert device.write_and_read(b"\x01\x02") == b"\x09\x08"
    assert bytes(bus.sent) == b"\x01\x02"


def test_transaction_releases_cs_on_error():
    device, _, events = hardware_device()
    with pytest.raises(RuntimeError):
        with device.transaction():
            raise RuntimeError("boom")
    assert events[-2:] == [("pin", CS, True), ("end",)]


def test_transfer_empty_is_empty():
    device, _ = software_device()
    assert device.transfer(b"") == b""


def test_negative_cs_is_unused():
    pins = RecordingPins()
    device = SPIDevice(cs=-1, pins=pins, sck=SCK, mosi=MOSI, miso=MISO)
    assert device.write_and_read(b"\x3c") == b"\x3c"
    driven = {pin for _, pin, _ in pins.events}
    assert -1 not in driven
    assert CS not in driven
    assert driven <= {SCK, MOSI}


def test_software_needs_clock_pin():
    with pytest.raises(ValueError):
        SPIDevice(pins=RecordingPins())


def test_software_needs_pins():
    with pytest.raises(ValueError):
        SPIDevice(sck=SCK)


def test_cs_needs_pins():
    with pytest.raises(ValueError):
        SPIDevice(cs=CS, spi=FakeBus([]))


def test_frequency_must_be_positive():
    with pytest.raises(ValueError):
        SPIDevice(pins=RecordingPins(), sck=SCK, frequency=0)