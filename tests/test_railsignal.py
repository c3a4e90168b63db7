import pytest

from dccsignal.gpio import GpioBank
from dccsignal.railsignal import (
    FADE_STEPS,
    TEST_PHASE_MS,
    AccessoryCommand,
    Aspect,
    Mode,
    Signal,
    decode_accessory,
)


def _quiet(mode=Mode.EINFAHR, bank=None):
    logs, sleeps = [], []
    sig = Signal(53, 2, mode, bank=bank, sleep=sleeps.append, log=logs.append)
    return sig, logs, sleeps


def test_srcp_address_is_converted():
    sig, _, _ = _quiet()
    assert sig.address == 13


def test_invalid_mode_raises():
    with pytest.raises(ValueError):
        Signal(53, 2, 9)


@pytest.mark.parametrize(
    "mode, last",
    [
        (Mode.HAUPTSIGNAL1, Aspect.HP1),
        (Mode.HAUPTSIGNAL2, Aspect.HP2),
        (Mode.AUSFAHRSIGNAL, Aspect.HP0SH1),
        (Mode.EINFAHR, Aspect.HP2),
    ],
)
def test_last_aspect_per_mode(mode, last):
    sig, _, _ = _quiet(mode)
    assert sig.last() == last


def test_switch_to_sets_lights():
    sig, _, _ = _quiet()
    sig.init()
    sig.switch_to(Aspect.HP1)
    assert sig.current == Aspect.HP1
    assert sig.lit == {
        "green": True,
        "red1": False,
        "orange": False,
        "red2": False,
        "white": False,
    }
    sig.switch_to(Aspect.HP0SH1)
    assert sig.lit["red1"] and sig.lit["white"]
    assert not sig.lit["red2"] and not sig.lit["green"]


def test_switch_to_logs():
    sig, logs, _ = _quiet()
    sig.switch_to(Aspect.HP2)
    assert logs[-1] == f"switching {sig.address} to hp2"


def test_switch_to_invalid_aspect():
    sig, _, _ = _quiet()
    with pytest.raises(ValueError):
        sig.switch_to(7)
    assert sig.current == Aspect.HP0


def test_switch_next_cycles_within_mode():
    sig, _, _ = _quiet(Mode.EINFAHR)
    seen = []
    for _ in range(4):
        sig.switch_next()
        seen.append(sig.current)
    assert seen == [Aspect.HP1, Aspect.HP2, Aspect.HP0, Aspect.HP1]

    short, _, _ = _quiet(Mode.HAUPTSIGNAL1)
    short.switch_next()
    short.switch_next()
    assert short.current == Aspect.HP0


def test_self_test_sequence():
    sig, logs, sleeps = _quiet(Mode.HAUPTSIGNAL1)
    sig.test()
    assert logs == [f"switching {sig.address} to {a}" for a in ("hp0", "hp1", "hp0")]
    assert sleeps == [TEST_PHASE_MS / 1000] * 2
    assert sig.current == Aspect.HP0


def test_self_test_ausfahrsignal_visits_all():
    sig, logs, sleeps = _quiet(Mode.AUSFAHRSIGNAL)
    sig.test()
    names = [line.rsplit(" ", 1)[1] for line in logs]
    assert names == ["hp0", "hp1", "hp2", "hp0sh1", "hp0"]
    assert len(sleeps) == 4


def test_decode_non_accessory_is_none():
    assert decode_accessory(0x0D, bytes([0xF9, 0, 0])) is None


def test_decode_accessory_fields():
    cmd = decode_accessory(0x8D, bytes([0xF9, 0, 0]))
    assert isinstance(cmd, AccessoryCommand)
    assert (cmd.port, cmd.output, cmd.on) == (0, 1, True)
    assert cmd.aspect == Aspect.HP1
    other = decode_accessory(0x8D, bytes([0xFB, 0, 0]))
    assert other.aspect == Aspect.HP0SH1
    assert other.address == cmd.address


def test_decode_accessory_requires_data():
    with pytest.raises(ValueError):
        decode_accessory(0x8D, b"")


def test_handle_command_switches_matching_signal():
    sig, _, _ = _quiet()
    address = 0x80 | sig.address
    assert sig.handle_command(address, bytes([0xFA, 0, 0])) is True
    assert sig.current == Aspect.HP2


def test_handle_command_off_is_not_consumed():
    sig, _, _ = _quiet()
    address = 0x80 | sig.address
    assert sig.handle_command(address, bytes([0xF1, 0, 0])) is False
    assert sig.current == Aspect.HP0


def test_handle_command_other_address_or_loco():
    sig, _, _ = _quiet()
    other = 0x80 | ((sig.address + 1) & 0x3F)
    assert sig.handle_command(other, bytes([0xF9, 0, 0])) is False
    assert sig.handle_command(sig.address, bytes([0xF9, 0, 0])) is False
    assert sig.current == Aspect.HP0


def test_process_without_change_is_steady():
    sig, _, sleeps = _quiet()
    levels = sig.fade_levels
    sig.process()
    assert sig.fade_levels == levels
    assert sleeps == []


def _levels_after_hp1(inverse):
    bank = GpioBank()
    sig, _, _ = _quiet(bank=bank)
    sig.init(inverse)
    sig.switch_to(Aspect.HP1)
    for _ in range(FADE_STEPS):
        sig.process()
    return bank.get(sig.pins["green"]), bank.get(sig.pins["red1"])


def test_inverse_flips_output_levels():
    normal = _levels_after_hp1(False)
    inverted = _levels_after_hp1(True)
    assert inverted == tuple(1 - level for level in normal)