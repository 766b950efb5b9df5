"""Register access to I2C, SPI and generic bus devices through pluggable bus objects."""

__version__ = "0.1.0"
__all__ = ["generic_device", "i2c_device", "spi_device", "register"]