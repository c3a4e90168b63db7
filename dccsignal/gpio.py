"""A simulated bank of GPIO pins and the board's status LED."""

from __future__ import annotations

import itertools
import time
from typing import Callable, Optional

PIN_COUNT = 30
STATUS_LED_PIN = 25
LED_DELAY_MS = 250


class GpioBank:
    """GPIO pins with a direction, pull resistors and a logic level each."""

    def __init__(self) -> None:
        self._levels: dict[int, int] = {}
        self._outputs: set[int] = set()
        self._pulls: dict[int, tuple[bool, bool]] = {}
        self.history: list[tuple[int, int]] = []

    @staticmethod
    def _check(pin: int) -> None:
        if not 0 <= pin < PIN_COUNT:
            raise ValueError(f"GPIO {pin} out of range 0..{PIN_COUNT - 1}")

    def put(self, pin: int, value: int) -> None:
        """Drive ``pin`` to the level of ``value``."""
        self._check(pin)
        level = 1 if value else 0
        self._levels[pin] = level
        self.history.append((pin, level))

    def get(self, pin: int) -> int:
        """Read the level of ``pin``; an undriven pin follows its pulls."""
        self._check(pin)
        if pin in self._levels:
            return self._levels[pin]
        pull_up, pull_down = self._pulls.get(pin, (False, False))
        return 1 if pull_up and not pull_down else 0

    def configure_output(self, pin: int, pull_up: bool = False) -> None:
        """Make ``pin`` an output, driven low."""
        self._check(pin)
        self._outputs.add(pin)
        self._pulls[pin] = (bool(pull_up), False)
        self._levels[pin] = 0

    def configure_input(self, pin: int, pull_up: bool = False, pull_down: bool = False) -> None:
        """Make ``pin`` an input with the given pull resistors."""
        self._check(pin)
        self._outputs.discard(pin)
        self._pulls[pin] = (bool(pull_up), bool(pull_down))
        self._levels.pop(pin, None)


class StatusLed:
    """The on-board LED, attached to one pin of a bank."""

    def __init__(self, bank: GpioBank, pin: int = STATUS_LED_PIN) -> None:
        self.bank = bank
        self.pin = pin
        bank.configure_output(pin)

    @property
    def is_on(self) -> bool:
        return bool(self.bank.get(self.pin))

    def set(self, on: bool) -> None:
        """Switch the LED on or off."""
        self.bank.put(self.pin, 1 if on else 0)

    def toggle(self) -> bool:
        """Invert the LED and return its new state."""
        new_state = not self.is_on
        self.set(new_state)
        return new_state


def blink(
    led: StatusLed,
    cycles: Optional[int] = None,
    delay_ms: int = LED_DELAY_MS,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """Blink ``led`` on and off; ``cycles`` of None blinks forever."""
    if delay_ms < 0:
        raise ValueError("delay_ms must not be negative")
    rounds = itertools.count() if cycles is None else range(cycles)
    for _ in rounds:
        led.set(True)
        sleep(delay_ms / 1000)
        led.set(False)
        sleep(delay_ms / 1000)