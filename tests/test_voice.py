import pytest

from qnetgw.packets import DSVTPacket, Header
from qnetgw.slowdata import SlowDataDecoder, SlowDataKind, unscramble
from qnetgw.voice import (
    DtmfDetector,
    StreamSequencer,
    VoiceStats,
    fill_frame,
    playback_frames,
)


def dtmf_word(digit):
    """Decoded words that signal the given DTMF digit index."""
    return (0xFC0 | (digit & 0x03), 0, ((digit >> 2) & 0x03) << 5)


def make_header():
    return DSVTPacket(
        config=0x10,
        id=0x20,
        streamid=0x1234,
        ctrl=0x80,
        header=Header(
            rpt1="N0CALL A",
            rpt2="N0CALL G",
            urcall="       E",
            mycall="N0CALL  ",
            sfx="TEST",
        ),
    )


# DtmfDetector

def test_dtmf_digit_after_five_frames():
    det = DtmfDetector()
    for _ in range(5):
        assert det.feed(dtmf_word(5)) is True
    assert det.digits() == "5"


def test_dtmf_four_frames_not_enough():
    det = DtmfDetector()
    for _ in range(4):
        det.feed(dtmf_word(0))
    assert det.digits() == ""


def test_dtmf_long_tone_counts_once():
    det = DtmfDetector()
    for _ in range(12):
        det.feed(dtmf_word(0))
    assert det.digits() == "1"


def test_dtmf_non_tone_frame_returns_false_and_resets():
    det = DtmfDetector()
    for _ in range(4):
        det.feed(dtmf_word(11))
    assert det.feed((0x123, 0, 0)) is False
    for _ in range(4):
        det.feed(dtmf_word(11))
    assert det.digits() == ""
    det.feed(dtmf_word(11))
    assert det.digits() == "#"


def test_dtmf_sequence_and_reset():
    det = DtmfDetector()
    for digit in (0, 4, 15):
        for _ in range(5):
            det.feed(dtmf_word(digit))
        det.feed((0, 0, 0))
    assert det.digits() == "12D"
    det.reset()
    assert det.digits() == ""


def test_dtmf_buffer_limit():
    det = DtmfDetector()
    for _ in range(40):
        for _ in range(5):
            det.feed(dtmf_word(7))
        det.feed((0, 0, 0))
    assert len(det.digits()) == 32
    assert set(det.digits()) == {"0"}


# StreamSequencer

def test_sequencer_in_order():
    seq = StreamSequencer()
    outs = [seq.accept(ctrl) for ctrl in range(21)]
    assert outs == [([], ctrl) for ctrl in range(21)]
    assert seq.accept(0) == ([], 0)


def test_sequencer_fills_small_gap():
    seq = StreamSequencer()
    assert seq.accept(3) == ([0, 1, 2], 3)
    assert seq.accept(4) == ([], 4)


def test_sequencer_gap_across_wrap():
    seq = StreamSequencer()
    for ctrl in range(20):
        seq.accept(ctrl)
    fills, out = seq.accept(1)
    assert fills == [20, 0]
    assert out == 1


def test_sequencer_resyncs_on_large_gap():
    seq = StreamSequencer()
    assert seq.accept(10) == ([], 10)
    assert seq.accept(11) == ([], 11)


def test_sequencer_end_of_stream():
    seq = StreamSequencer()
    for ctrl in range(5):
        seq.accept(ctrl)
    fills, out = seq.accept(0x45)
    assert fills == []
    assert out == 0x45


# fill_frame

def test_fill_frame_sync_and_silence():
    voice, text = fill_frame(0)
    assert voice == bytes((0x9E, 0x8D, 0x32, 0x88, 0x26, 0x1A, 0x3F, 0x61, 0xE8))
    assert text == b"\x55\x2d\x16"
    voice, text = fill_frame(7)
    assert text == b"\x70\x4f\x93"
    assert unscramble(text) == b"\x00\x00\x00"


# VoiceStats

def test_voice_stats_counts():
    stats = VoiceStats()
    stats.add((0xF85, 0, 0), 2)
    stats.add((0x100, 0, 0), 3)
    assert stats.frames == 2
    assert stats.silent_frames == 1
    assert stats.bit_errors == 5


# playback_frames

def test_playback_header_rewritten():
    frames = list(playback_frames(make_header(), [bytes(9)] * 3, "ECHO ON MODULE A    "))
    first = frames[0]
    assert first.is_header()
    assert first.header.urcall == "CQCQCQ  "
    assert first.header.mycall == "N0CALL  "
    assert len(frames) == 4


def test_playback_ctrl_values_and_end():
    frames = list(playback_frames(make_header(), [bytes(9)] * 25, "ECHO ON MODULE A    "))
    voice = frames[1:]
    ctrls = [frame.ctrl for frame in voice]
    assert ctrls[:21] == list(range(21))
    assert ctrls[21] == 0
    assert ctrls[-1] & 0x40
    assert all(not c & 0x40 for c in ctrls[:-1])
    assert voice[0].text == b"\x55\x2d\x16"
    assert voice[21].text == b"\x55\x2d\x16"
    assert voice[9].text == b"\x16\x29\xf5"
    assert all(frame.streamid == 0x1234 for frame in voice)
    assert all(len(frame.to_bytes()) == 27 for frame in voice)


def test_playback_message_slow_data():
    frames = list(playback_frames(make_header(), [bytes(9)] * 10, "ECHO ON MODULE A    "))
    assert unscramble(frames[2].text) == b"@EC"
    assert unscramble(frames[3].text) == b"HO "


def test_playback_message_decodes_back():
    message = "VOICEMAIL ON MOD B  "
    frames = list(playback_frames(make_header(), [bytes(9)] * 12, message))
    decoder = SlowDataDecoder()
    results = [r for r in (decoder.feed(f.text) for f in frames[1:]) if r is not None]
    assert len(results) == 1
    assert results[0].kind is SlowDataKind.MESSAGE
    assert results[0].text == message


def test_playback_keeps_voice_blocks():
    blocks = [bytes([n] * 9) for n in range(4)]
    frames = list(playback_frames(make_header(), blocks, "ECHO"))
    assert [frame.voice for frame in frames[1:]] == blocks


def test_playback_rejects_voice_packet_as_header():
    with pytest.raises(ValueError):
        list(playback_frames(DSVTPacket(), [bytes(9)], "ECHO"))


def test_playback_rejects_bad_block():
    with pytest.raises(ValueError):
        list(playback_frames(make_header(), [bytes(8)], "ECHO"))