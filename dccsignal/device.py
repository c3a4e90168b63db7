"""Base class for devices that respond to DCC packets."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Device(ABC):
    """A DCC device with an 8-bit address."""

    def __init__(self, address: int) -> None:
        self.address = address & 0xFF

    @abstractmethod
    def handle_command(self, address: int, data: bytes) -> bool:
        """Act on a packet; return True if this device consumed it."""

    def process(self) -> None:
        """Do periodic work; the default does nothing."""
        return None