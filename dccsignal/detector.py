"""Decoding of the DCC track signal into packets."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional, Sequence

from .device import Device
from .gpio import GpioBank, StatusLed

ONE_PULSE_MIN_US = 40
ONE_PULSE_MAX_US = 64
ZERO_PULSE_MIN_US = 90
ZERO_PULSE_MAX_US = 10000
MIN_PREAMBLE_BITS = 10
MAX_DATA_BYTES = 3
IDLE_ADDRESS = 0xFF

Packet = tuple[int, bytes]


class DetectorState(IntEnum):
    WAITING_FOR_PREAMBLE = 1
    WAITING_FOR_STARTBIT = 2
    WAITING_FOR_ADDRESS = 3
    WAITING_FOR_DATASTARTBIT = 4
    WAITING_FOR_INSTRUCTIONS = 5
    WAITING_FOR_START_OR_END_BIT = 6


@dataclass
class PulseStats:
    """Counters of the pulses seen on the input pin."""

    zeros: int = 0
    ones: int = 0
    invalid: int = 0
    last_invalid_us: int = 0
    longest_preamble: int = 0


def classify_pulse(length_us: int) -> Optional[int]:
    """Return the bit a pulse of this length encodes, or None."""
    if ONE_PULSE_MIN_US <= length_us <= ONE_PULSE_MAX_US:
        return 1
    if ZERO_PULSE_MIN_US <= length_us <= ZERO_PULSE_MAX_US:
        return 0
    return None


class DCCDetector:
    """Turns signal edges into bits and bits into DCC packets for devices."""

    def __init__(
        self,
        input_pin: int,
        devices: Sequence[Device] = (),
        bank: Optional[GpioBank] = None,
        led: Optional[StatusLed] = None,
    ) -> None:
        self.input_pin = input_pin
        self.devices = list(devices)
        self.led = led
        self.stats = PulseStats()
        self.state = DetectorState.WAITING_FOR_PREAMBLE
        self._last_rise = 0
        self._one_bits = 0
        self._address = 0
        self._address_bits = 0
        self._data = [0] * MAX_DATA_BYTES
        self._data_count = 0
        self._data_bits = 0
        if bank is not None:
            bank.configure_input(input_pin, False, True)
        self._set_led(False)

    def _set_led(self, on: bool) -> None:
        if self.led is not None:
            self.led.set(on)

    def on_edge(self, pin: int, rising: bool, now_us: int) -> Optional[Packet]:
        """Handle a signal edge; return a packet if one was completed."""
        if pin != self.input_pin:
            return None
        if rising:
            self._last_rise = now_us
            return None
        if self._last_rise <= 0:
            return None
        length = now_us - self._last_rise
        if length < ONE_PULSE_MIN_US:
            self.stats.invalid = (self.stats.invalid + 1) & 0xFFFF
            self.stats.last_invalid_us = length & 0xFFFF
            return None
        bit = classify_pulse(length)
        if bit is None:
            return None
        if bit:
            self.stats.ones = (self.stats.ones + 1) & 0xFFFF
        else:
            self.stats.zeros = (self.stats.zeros + 1) & 0xFFFF
        return self.on_bit(bit)

    def on_bit(self, bit: int) -> Optional[Packet]:
        """Advance the packet state machine; return a packet if complete."""
        bit = 1 if bit else 0
        state = self.state

        if state is DetectorState.WAITING_FOR_PREAMBLE:
            if bit:
                self._one_bits = (self._one_bits + 1) & 0xFF
            else:
                if self._one_bits > self.stats.longest_preamble:
                    self.stats.longest_preamble = self._one_bits
                if self._one_bits >= MIN_PREAMBLE_BITS:
                    self.state = DetectorState.WAITING_FOR_ADDRESS
                    self._address = 0
                    self._address_bits = 0
                    self._set_led(True)
                self._one_bits = 0

        elif state is DetectorState.WAITING_FOR_ADDRESS:
            self._address = ((self._address << 1) | bit) & 0xFF
            self._address_bits += 1
            if self._address_bits == 8:
                self.state = DetectorState.WAITING_FOR_DATASTARTBIT

        elif state is DetectorState.WAITING_FOR_DATASTARTBIT:
            if not bit:
                self.state = DetectorState.WAITING_FOR_INSTRUCTIONS
                self._data_count = 0
                self._data_bits = 0
                self._data = [0] * MAX_DATA_BYTES

        elif state is DetectorState.WAITING_FOR_INSTRUCTIONS:
            index = self._data_count
            self._data[index] = ((self._data[index] << 1) | bit) & 0xFF
            self._data_bits += 1
            if self._data_bits == 8:
                self._data_bits = 0
                self._data_count += 1
                self.state = DetectorState.WAITING_FOR_START_OR_END_BIT

        elif state is DetectorState.WAITING_FOR_START_OR_END_BIT:
            if bit == 0 and self._data_count < MAX_DATA_BYTES:
                self.state = DetectorState.WAITING_FOR_INSTRUCTIONS
            else:
                if bit:
                    self._set_led(False)
                packet = self._dispatch()
                if not bit:
                    self._set_led(False)
                self.state = DetectorState.WAITING_FOR_PREAMBLE
                return packet

        return None

    def _dispatch(self) -> Packet:
        packet = (self._address, bytes(self._data))
        if self._address == IDLE_ADDRESS and self._data[0] == 0:
            return packet
        for device in self.devices:
            if device.handle_command(self._address, packet[1]):
                break
        return packet

    def feed_bits(self, bits: Iterable[int | str]) -> list[Packet]:
        """Feed a sequence of bits (ints or '0'/'1' characters); return packets."""
        packets = []
        for bit in bits:
            if isinstance(bit, str):
                if bit not in ("0", "1"):
                    raise ValueError(f"not a bit: {bit!r}")
                bit = int(bit)
            packet = self.on_bit(bit)
            if packet is not None:
                packets.append(packet)
        return packets

    def debug(self) -> str:
        """Return a report of the pulse counters."""
        s = self.stats
        return (
            f"counted 0: {s.zeros}\n"
            f"counted 1: {s.ones}\n"
            f"counted -: {s.invalid} ({s.last_invalid_us}ms)\n"
        )