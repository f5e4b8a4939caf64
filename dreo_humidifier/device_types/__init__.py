"""Device type implementations."""

from .base import BaseDevice, ExposedView
from .humidifier import HumidifierDevice

__all__ = ["BaseDevice", "ExposedView", "HumidifierDevice"]
