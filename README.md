# dccsignal

`dccsignal` decodes an NMRA DCC track signal and uses it to drive a model railway
light signal. The track signal arrives as rising and falling edges. The package
turns pulse lengths into bits and bits into DCC packets, then hands accessory
packets to the signals listening for them. A signal's lamps fade in and out and do
not switch hard.

Everything runs against a simulated bank of GPIO pins. This makes the decoder
usable from plain Python, from tests, and on recorded edge traces.

## Modules

### `dccsignal.gpio`

- `GpioBank` holds pins 0 to 29. Each pin has a level, a direction and pull
  resistors.
  - `put(pin, value)` drives a pin.
  - `get(pin)` reads a pin. An undriven input follows its pull-up or pull-down.
  - `configure_output(pin, pull_up)` and `configure_input(pin, pull_up, pull_down)`
    set a pin's direction.
  - Every `put` is recorded in `history`.
  - A pin number outside 0 to 29 raises `ValueError`.
- `StatusLed` is the board LED, on pin 25 by default. It has `set(on)`,
  `toggle()` and an `is_on` property.
- `blink(led, cycles, delay_ms, sleep)` switches the LED on and off `cycles`
  times, or forever when `cycles` is `None`. The default delay is 250 ms.

### `dccsignal.device`

`Device` is the abstract base for anything that answers DCC packets.

- It has an 8-bit `address`.
- Subclasses implement `handle_command(address, data)`, which returns `True`
  when the device has taken the packet.
- `process()` is called on every pass of the main loop. It does nothing by
  default.

### `dccsignal.detector`

`classify_pulse(length_us)` maps a pulse length to a bit:

| Pulse length | Result |
| --- | --- |
| 40–64 µs | `1` |
| 90–10000 µs | `0` |
| anything else | `None` |

`DCCDetector` is the packet state machine. Its stages are named by
`DetectorState`.

- `on_edge(pin, rising, now_us)` measures each pulse from a rising to a falling
  edge on the input pin.
  - Pulses shorter than 40 µs are counted as invalid.
  - One and zero bits are counted in the detector's `PulseStats`.
- `on_bit(bit)` moves the state machine on by one bit. `feed_bits(bits)` does
  the same for a whole sequence of ints or `'0'`/`'1'` characters.
- A packet is recognised as follows:
  1. A preamble of at least ten one bits, closed by a zero.
  2. An address byte.
  3. A zero start bit.
  4. Up to three data bytes. Each further byte is announced by a zero bit.
  5. The packet ends at a one bit, or once three bytes are complete.
- A completed packet is returned as `(address, data)`.
- Idle packets (address `0xFF`, first data byte `0`) are returned but offered to
  no device.
- Any other packet is offered to the devices in order until one accepts it.
- If a status LED is attached, it is lit while a packet is being received.
- `debug()` returns the pulse counters as text.

```python
from dccsignal.detector import DCCDetector

detector = DCCDetector(22)
detector.feed_bits("1" * 10 + "0" + "10000001" + "0" + "11111000" + "1")
# [(129, b'\xf8\x00\x00')]
```

### `dccsignal.railsignal`

`Signal` is a five-lamp light signal. Its lamps, in pin order from `led_base`,
are green, red1, orange, red2 and white. An LED counts as lit when its output
level is low. `init(inverse=True)` inverts the fade targets.

It shows one of the aspects in `Aspect`:

| Aspect | Lamps lit |
| --- | --- |
| `HP0` | both reds |
| `HP1` | green |
| `HP2` | green and orange |
| `HP0SH1` | red1 and white |

The `Mode` decides the last aspect `switch_next` steps to before it wraps back
to `HP0`:

| Mode | Last aspect |
| --- | --- |
| `HAUPTSIGNAL1` | `HP1` |
| `HAUPTSIGNAL2` | `HP2` |
| `AUSFAHRSIGNAL` | `HP0SH1` |
| `EINFAHR` | `HP2` |

The signal's methods:

- `init(inverse)` sets up the pins and shows `HP0`.
- `test()` steps through the aspects the signal can show, then returns to `HP0`.
- `switch_to(aspect)` shows an aspect.
- `last()` gives the last aspect for the signal's mode.
- `handle_command(address, data)` switches on an accessory packet addressed to
  this signal with its "on" bit set.
- Each call to `process()` moves every fade one step further, out of 100 steps.
- The properties `lit`, `fade_levels` and `fading` show the lamp state.

`decode_accessory(address, data)` reads an `AccessoryCommand` from a packet. The
command has `address`, `port`, `output` and `on`. Its `aspect` is the aspect that
port and output select. The function returns `None` for packets that are not
accessory packets.

```python
from dccsignal.railsignal import decode_accessory

decode_accessory(0x81, [0xF8])
# AccessoryCommand(address=1, port=0, output=0, on=True)
```

### `dccsignal.app`

`Decoder` sets up the decoder board with:

- the status LED;
- one `Signal` (by default address 53, lamps from pin 2, mode `EINFAHR`);
- a test button on pin 28, with a pull-up;
- a `DCCDetector` on input pin 22.

On start-up it runs the signal's self test. Its methods:

- `press_button()` prints the detector counters, shows the next aspect and
  returns it.
- `step()` runs one pass of the main loop. It reacts to the button if the button
  pin reads low, then calls `process()` on every device.
- `feed_edges(edges)` plays `(pin, rising, now_us)` edges into the detector and
  returns the completed packets.

`parse_edges(lines)` reads edges from text.

- Each line has the form `<time_us> <edge> [pin]`.
- The edge is `rise`/`rising`/`r`/`1` or `fall`/`falling`/`f`/`0`.
- The pin defaults to 22.
- `#` starts a comment.
- A malformed line raises `ValueError`, with the line number in the message.

## Addresses

Give a signal the address that the command station shows. The signal's decoder
address is that number minus one, divided by four, so the default 53 becomes 13.

## Command line

```
dccsignal [EDGES] [--address N] [--led-base N]
          [--mode {hauptsignal1,hauptsignal2,ausfahrsignal,einfahr}]
          [--inverse] [--steps N] [--realtime]
```

The command reads an edge trace from the file `EDGES`, or from standard input
when `EDGES` is `-` or omitted. It builds a `Decoder` and plays the edges through
it. It prints:

- the signal switches;
- every packet, as `packet address=0x.. data=..`;
- the pulse counters;
- the final aspect.

`--steps` runs that many main-loop passes after the trace, which advances the
lamp fades. Delays are skipped unless `--realtime` is given. A file that cannot
be read, or a malformed trace, ends the command with status 1.

## What it does not do

- The package works only on simulated pins and recorded edges. It does not read
  a live track signal or drive real LEDs.
- It does not check a packet's error detection byte.
- It handles basic accessory packets only. Other packets reach the devices but
  are ignored by `Signal`.

## Tests

```
pip install -e ".[test]"
pytest
```