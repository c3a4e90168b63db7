"""The decoder board: one signal, a test button and the DCC input."""

from __future__ import annotations

import argparse
import sys
import time
from typing import Callable, Iterable, Optional

from .detector import DCCDetector, Packet
from .gpio import GpioBank, StatusLed
from .railsignal import Aspect, Mode, Signal

VERSION = "v3.4 Jun25 Rade Einf"
BUTTON_PIN = 28
DCC_IN_PIN = 22
SIGNAL_ADDRESS = 53
SIGNAL_LED_BASE = 2
BUTTON_PAUSE_MS = 500

Edge = tuple[int, bool, int]

_EDGE_WORDS = {
    "r": True, "rise": True, "rising": True, "1": True,
    "f": False, "fall": False, "falling": False, "0": False,
}


class Decoder:
    """The board's main program: set up, self test, then serve the loop."""

    def __init__(
        self,
        bank: Optional[GpioBank] = None,
        *,
        address: int = SIGNAL_ADDRESS,
        led_base: int = SIGNAL_LED_BASE,
        mode: Mode | int = Mode.EINFAHR,
        inverse: bool = False,
        sleep: Callable[[float], None] = time.sleep,
        out: Callable[[str], None] = print,
    ) -> None:
        self.bank = bank if bank is not None else GpioBank()
        self._sleep = sleep
        self._out = out
        self.led = StatusLed(self.bank)
        self.led.set(True)
        self.signal = Signal(address, led_base, mode, self.bank, sleep, out)
        self.signal.init(inverse)
        self.bank.configure_input(BUTTON_PIN, pull_up=True)
        out(f"RasPico Decoder init - {VERSION} - DCC input GPIO {DCC_IN_PIN}")
        self.signal.test()
        self.devices = [self.signal]
        self.detector = DCCDetector(DCC_IN_PIN, self.devices, self.bank, self.led)
        self.led.set(False)

    def press_button(self) -> Aspect:
        """Act on the test button: report counters and show the next aspect."""
        self._out("Test Button pressed")
        self._out(self.detector.debug().rstrip("\n"))
        self.signal.switch_next()
        self._sleep(BUTTON_PAUSE_MS / 1000)
        return self.signal.current

    def step(self) -> bool:
        """Run one pass of the main loop; return True if the button was down."""
        pressed = self.bank.get(BUTTON_PIN) == 0
        if pressed:
            self.press_button()
        for device in self.devices:
            device.process()
        return pressed

    def feed_edges(self, edges: Iterable[Edge]) -> list[Packet]:
        """Pass signal edges to the detector; return the packets completed."""
        return [
            packet
            for pin, rising, now_us in edges
            if (packet := self.detector.on_edge(pin, rising, now_us)) is not None
        ]


def parse_edges(lines: Iterable[str]) -> list[Edge]:
    """Parse lines of '<time_us> <rise|fall> [pin]'; '#' starts a comment."""
    edges: list[Edge] = []
    for number, raw in enumerate(lines, 1):
        text = raw.split("#", 1)[0].strip()
        if not text:
            continue
        parts = text.split()
        if len(parts) not in (2, 3):
            raise ValueError(f"line {number}: expected '<time_us> <rise|fall> [pin]'")
        try:
            now_us = int(parts[0])
            pin = int(parts[2]) if len(parts) == 3 else DCC_IN_PIN
        except ValueError:
            raise ValueError(f"line {number}: not a number in {text!r}") from None
        if now_us < 0:
            raise ValueError(f"line {number}: negative time {now_us}")
        kind = parts[1].lower()
        if kind not in _EDGE_WORDS:
            raise ValueError(f"line {number}: unknown edge {parts[1]!r}")
        edges.append((pin, _EDGE_WORDS[kind], now_us))
    return edges


def _no_sleep(_seconds: float) -> None:
    return None


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dccsignal",
        description="Run the signal decoder on a recorded DCC edge trace.",
    )
    parser.add_argument("edges", nargs="?", help="edge file; '-' or none reads stdin")
    parser.add_argument("--address", type=int, default=SIGNAL_ADDRESS)
    parser.add_argument("--led-base", type=int, default=SIGNAL_LED_BASE)
    parser.add_argument(
        "--mode",
        choices=[mode.name.lower() for mode in Mode],
        default=Mode.EINFAHR.name.lower(),
    )
    parser.add_argument("--inverse", action="store_true")
    parser.add_argument("--steps", type=int, default=0, help="main loop passes to run")
    parser.add_argument("--realtime", action="store_true", help="really wait on delays")
    args = parser.parse_args(argv)

    if args.edges in (None, "-"):
        lines = sys.stdin.readlines()
    else:
        try:
            with open(args.edges, encoding="utf-8") as handle:
                lines = handle.readlines()
        except OSError as exc:
            print(f"dccsignal: {exc}", file=sys.stderr)
            return 1
    try:
        edges = parse_edges(lines)
    except ValueError as exc:
        print(f"dccsignal: {exc}", file=sys.stderr)
        return 1

    decoder = Decoder(
        address=args.address,
        led_base=args.led_base,
        mode=Mode[args.mode.upper()],
        inverse=args.inverse,
        sleep=time.sleep if args.realtime else _no_sleep,
    )
    for address, data in decoder.feed_edges(edges):
        print(f"packet address=0x{address:02x} data={data.hex()}")
    for _ in range(max(args.steps, 0)):
        decoder.step()
    print(decoder.detector.debug(), end="")
    print(f"aspect: {decoder.signal.current.name.lower()}")
    return 0


if __name__ == "__main__":
    sys.exit(main())