import pytest

from dccsignal.app import (
    BUTTON_PIN,
    DCC_IN_PIN,
    VERSION,
    Decoder,
    main,
    parse_edges,
)
from dccsignal.gpio import STATUS_LED_PIN
from dccsignal.railsignal import FADE_STEPS, Aspect


def _packet_bits(address, data):
    bits = "1" * 12 + "0" + format(address, "08b")
    for byte in data:
        bits += "0" + format(byte, "08b")
    return bits + "1"


def _edges(bits, start=1000):
    edges, t = [], start
    for bit in bits:
        edges.append((DCC_IN_PIN, True, t))
        edges.append((DCC_IN_PIN, False, t + (58 if bit == "1" else 100)))
        t += 200
    return edges


def _decoder():
    out = []
    return Decoder(sleep=lambda _s: None, out=out.append), out


def test_startup_banner_and_state():
    decoder, out = _decoder()
    assert f"RasPico Decoder init - {VERSION} - DCC input GPIO {DCC_IN_PIN}" in out
    assert decoder.signal.current == Aspect.HP0
    assert decoder.bank.get(STATUS_LED_PIN) == 0


def test_feed_edges_switches_signal():
    decoder, _ = _decoder()
    address = 0x80 | decoder.signal.address
    packets = decoder.feed_edges(_edges(_packet_bits(address, [0xFA, 0x00])))
    assert [p[0] for p in packets] == [address]
    assert decoder.signal.current == Aspect.HP2


def test_press_button_advances_and_reports():
    decoder, out = _decoder()
    assert decoder.press_button() == Aspect.HP1
    assert "Test Button pressed" in out
    assert any(line.startswith("counted 0:") for line in out)


def test_step_reads_button():
    decoder, _ = _decoder()
    assert decoder.step() is False
    assert decoder.signal.current == Aspect.HP0
    decoder.bank.put(BUTTON_PIN, 0)
    assert decoder.step() is True
    assert decoder.signal.current == Aspect.HP1


def test_steps_finish_fades():
    decoder, _ = _decoder()
    decoder.signal.switch_to(Aspect.HP1)
    for _ in range(FADE_STEPS):
        decoder.step()
    assert not decoder.signal.fading


def test_parse_edges():
    lines = ["100 rise", "158 fall  # one", "", "# comment", "300 R 5"]
    assert parse_edges(lines) == [
        (DCC_IN_PIN, True, 100),
        (DCC_IN_PIN, False, 158),
        (5, True, 300),
    ]


@pytest.mark.parametrize("line", ["abc rise", "10 up", "1 2 3 4", "-5 rise", "10"])
def test_parse_edges_rejects(line):
    with pytest.raises(ValueError):
        parse_edges([line])


def test_parse_round_trip_through_decoder():
    decoder, _ = _decoder()
    address = 0x80 | decoder.signal.address
    edges = _edges(_packet_bits(address, [0xF9, 0x00]))
    text = [f"{t} {'rise' if r else 'fall'} {p}" for p, r, t in edges]
    assert parse_edges(text) == edges


def test_main_runs_trace(tmp_path, capsys):
    decoder, _ = _decoder()
    address = 0x80 | decoder.signal.address
    edges = _edges(_packet_bits(address, [0xFA, 0x00]))
    path = tmp_path / "trace.txt"
    path.write_text("\n".join(f"{t} {'R' if r else 'F'}" for _, r, t in edges))
    assert main([str(path), "--steps", "2"]) == 0
    out = capsys.readouterr().out
    assert f"packet address=0x{address:02x}" in out
    assert "aspect: hp2" in out


def test_main_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "absent.txt")]) == 1
    assert "dccsignal:" in capsys.readouterr().err


def test_main_bad_trace(tmp_path, capsys):
    path = tmp_path / "bad.txt"
    path.write_text("12 sideways\n")
    assert main([str(path)]) == 1
    assert "line 1" in capsys.readouterr().err