"""Light signals for a model railway, switched by DCC accessory packets."""

from __future__ import annotations

import time
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Optional, Sequence

from .device import Device
from .gpio import GpioBank

# An LED is lit when its (active-low) output is driven low.
LIGHT_ON = 0
LIGHT_OFF = 1

TEST_PHASE_MS = 200
FADER_COUNT = 5
FADE_STEPS = 100
FADE_DURATION_US = 2

ACCESSORY_MASK = 0b11000000
ACCESSORY_FLAG = 0b10000000


class Mode(IntEnum):
    """The kind of signal, which fixes the aspects it can show."""

    HAUPTSIGNAL1 = 1
    HAUPTSIGNAL2 = 2
    AUSFAHRSIGNAL = 3
    EINFAHR = 4


class Aspect(IntEnum):
    """A signal aspect."""

    HP0 = 0
    HP1 = 1
    HP2 = 2
    HP0SH1 = 3


# Lights in the order of their pins, starting at the signal's base pin.
LIGHTS = ("green", "red1", "orange", "red2", "white")

# The order in which lights are updated within each pass.
_UPDATE_ORDER = ("red1", "red2", "green", "orange", "white")

# The order in which the pins are set up.
_INIT_ORDER = ("green", "red1", "red2", "orange", "white")

_ASPECT_LIGHTS = {
    Aspect.HP0: {
        "red1": LIGHT_ON, "green": LIGHT_OFF, "orange": LIGHT_OFF,
        "red2": LIGHT_ON, "white": LIGHT_OFF,
    },
    Aspect.HP1: {
        "red1": LIGHT_OFF, "green": LIGHT_ON, "orange": LIGHT_OFF,
        "red2": LIGHT_OFF, "white": LIGHT_OFF,
    },
    Aspect.HP2: {
        "red1": LIGHT_OFF, "green": LIGHT_ON, "orange": LIGHT_ON,
        "red2": LIGHT_OFF, "white": LIGHT_OFF,
    },
    Aspect.HP0SH1: {
        "red1": LIGHT_ON, "green": LIGHT_OFF, "orange": LIGHT_OFF,
        "red2": LIGHT_OFF, "white": LIGHT_ON,
    },
}

_LAST_ASPECT = {
    Mode.HAUPTSIGNAL1: Aspect.HP1,
    Mode.HAUPTSIGNAL2: Aspect.HP2,
    Mode.AUSFAHRSIGNAL: Aspect.HP0SH1,
    Mode.EINFAHR: Aspect.HP2,
}

_PORT_OUTPUT_ASPECT = {
    (0, 0): Aspect.HP0,
    (0, 1): Aspect.HP1,
    (1, 0): Aspect.HP2,
    (1, 1): Aspect.HP0SH1,
}


@dataclass(frozen=True)
class AccessoryCommand:
    """The fields of a basic accessory decoder packet."""

    address: int
    port: int
    output: int
    on: bool

    @property
    def aspect(self) -> Optional[Aspect]:
        """The aspect this port and output select, if any."""
        return _PORT_OUTPUT_ASPECT.get((self.port, self.output))


def decode_accessory(address: int, data: Sequence[int]) -> Optional[AccessoryCommand]:
    """Decode an accessory packet; return None for any other packet."""
    if (address & ACCESSORY_MASK) != ACCESSORY_FLAG:
        return None
    if not data:
        raise ValueError("accessory packet without a data byte")
    first = data[0]
    high = ((first ^ 0b01110000) & 0b01110000) << 6
    # The effective address is held in one byte, so the high bits drop out.
    effective = (high | (address & 0x3F)) & 0xFF
    return AccessoryCommand(
        address=effective,
        port=(first & 0b110) >> 1,
        output=first & 1,
        on=bool(first & 0b1000),
    )


def _srcp_to_dcc(address: int) -> int:
    """Convert an SRCP accessory address to a decoder address: (a - 1) / 4."""
    quotient = abs(address - 1) // 4
    return quotient if address >= 1 else -quotient


class Signal(Device):
    """A five-light signal whose lights fade between aspects."""

    def __init__(
        self,
        address: int,
        led_base: int,
        mode: Mode | int,
        bank: Optional[GpioBank] = None,
        sleep: Callable[[float], None] = time.sleep,
        log: Callable[[str], None] = print,
    ) -> None:
        super().__init__(_srcp_to_dcc(address))
        self.mode = Mode(mode)
        self.pins = {name: led_base + offset for offset, name in enumerate(LIGHTS)}
        self.current = Aspect.HP0
        self.inverse = False
        self.bank = bank
        self._sleep = sleep
        self._log = log
        self._states = dict.fromkeys(LIGHTS, 0)
        self._fader = [0] * FADER_COUNT
        self._target = [0] * FADER_COUNT

    @property
    def lit(self) -> dict[str, bool]:
        """Which lights the current aspect has switched on."""
        return {name: state == LIGHT_ON for name, state in self._states.items()}

    @property
    def fade_levels(self) -> tuple[int, ...]:
        """The present fade level of each light, in pin order."""
        return tuple(self._fader)

    @property
    def fading(self) -> bool:
        """True while any light has not reached its target level."""
        return any(f != t for f, t in zip(self._fader, self._target))

    def init(self, inverse: bool = False) -> None:
        """Set up the LED pins and show HP0."""
        self.inverse = bool(inverse)
        if self.bank is not None:
            for name in _INIT_ORDER:
                self.bank.configure_output(self.pins[name], pull_up=True)
        self.switch_to(Aspect.HP0)

    def test(self) -> None:
        """Step through every aspect the signal can show, ending at HP0."""
        phase = TEST_PHASE_MS / 1000
        self.switch_to(Aspect.HP0)
        self._sleep(phase)
        self.switch_to(Aspect.HP1)
        self._sleep(phase)
        if self.current != self.last():
            self.switch_to(Aspect.HP2)
            self._sleep(phase)
        if self.current != self.last():
            self.switch_to(Aspect.HP0SH1)
            self._sleep(phase)
        self.switch_to(Aspect.HP0)

    def _start_fade(self, name: str, to: int) -> None:
        index = LIGHTS.index(name)
        self._target[index] = to * FADE_STEPS
        self._fader[index] = FADE_STEPS - to * FADE_STEPS

    def _set_lights(self, wanted: dict[str, int]) -> None:
        # Lights going off are handled before lights coming on.
        for going_off in (True, False):
            for name in _UPDATE_ORDER:
                old, new = self._states[name], wanted[name]
                changed = new > old if going_off else new < old
                if changed:
                    self._start_fade(name, 1 - new if self.inverse else new)
                    self._states[name] = new

    def switch_to(self, aspect: Aspect | int) -> None:
        """Show ``aspect``."""
        aspect = Aspect(aspect)
        self._log(f"switching {self.address} to {aspect.name.lower()}")
        self._set_lights(_ASPECT_LIGHTS[aspect])
        self.current = aspect

    def switch_next(self) -> None:
        """Show the next aspect, wrapping back to HP0 after the last."""
        if self.current == self.last():
            self.switch_to(Aspect.HP0)
        else:
            self.switch_to(Aspect(self.current + 1))

    def last(self) -> Aspect:
        """The highest aspect this kind of signal shows."""
        return _LAST_ASPECT.get(self.mode, Aspect.HP2)

    def handle_command(self, address: int, data: Sequence[int]) -> bool:
        """Switch on an accessory packet addressed to this signal."""
        command = decode_accessory(address, data)
        if command is None or command.address != self.address:
            return False
        self._log(
            f"\naccessory eff_addr={command.address} on={int(command.on)} "
            f"output={command.output} port={command.port}   "
        )
        if not command.on:
            return False
        aspect = command.aspect
        if aspect is not None:
            self.switch_to(aspect)
        return True

    def _put(self, pin: int, value: int) -> None:
        if self.bank is not None:
            self.bank.put(pin, value)

    def _soft_pwm(self, pin: int, value: int) -> None:
        self._put(pin, 1)
        self._sleep(FADE_DURATION_US * value / 1_000_000)
        self._put(pin, 0)
        self._sleep(FADE_DURATION_US * (FADE_STEPS - value) / 1_000_000)

    def process(self) -> None:
        """Advance every fade in progress by one step."""
        for index, name in enumerate(LIGHTS):
            pin = self.pins[name]
            target = self._target[index]
            if target > self._fader[index]:
                self._fader[index] += 1
                if self._fader[index] == target:
                    self._put(pin, 1)
                else:
                    self._soft_pwm(pin, self._fader[index])
            elif target < self._fader[index]:
                self._fader[index] -= 1
                if self._fader[index] == 0:
                    self._put(pin, 0)
                else:
                    self._soft_pwm(pin, self._fader[index])