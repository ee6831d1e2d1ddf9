"""Voice stream handling: DTMF detection, frame sequencing, statistics and playback."""

from dataclasses import dataclass, replace

from .packets import TEXT_SIZE, VOICE_SIZE, DSVTPacket

FRAMES_PER_SUPERFRAME = 21
END_OF_STREAM = 0x40
MAX_FILL_FRAMES = 5
MAX_DTMF_BUF = 32
DTMF_CHARS = "147*2580369#ABCD"
DTMF_REPEAT = 5
SILENT_AMBE_WORD = 0xF85
PLAYBACK_URCALL = "CQCQCQ  "
MESSAGE_SIZE = 20

QUIET_VOICE = bytes((0x9E, 0x8D, 0x32, 0x88, 0x26, 0x1A, 0x3F, 0x61, 0xE8))
SYNC_TEXT = bytes((0x55, 0x2D, 0x16))
SILENCE_TEXT = bytes((0x70, 0x4F, 0x93))
PLAYBACK_SILENCE_TEXT = bytes((0x16, 0x29, 0xF5))
_SCRAMBLE = (0x70, 0x4F, 0x93)

# Which message characters each of the first eight playback frames carries,
# and the block marker that opens a pair of frames.
_MESSAGE_LAYOUT = {
    1: ("@", 0, 1),
    2: (None, 2, 3, 4),
    3: ("A", 5, 6),
    4: (None, 7, 8, 9),
    5: ("B", 10, 11),
    6: (None, 12, 13, 14),
    7: ("C", 15, 16),
    8: (None, 17, 18, 19),
}


class DtmfDetector:
    """Collects DTMF digits signalled in the AMBE data of a local transmission.

    A digit is taken once it has been seen in five frames in a row; at most
    32 digits are kept.
    """

    def __init__(self):
        self._digits = []
        self._last = 0
        self._counter = 0

    def reset(self):
        """Forget all collected digits and the current tone."""
        self._digits.clear()
        self._last = 0
        self._counter = 0

    def feed(self, ber_data):
        """Take the three decoded words of a voice frame.

        Returns True when the frame carries a DTMF tone, in which case the
        caller should replace its voice data with silence.
        """
        word0, _, word2 = ber_data
        if (word0 & 0x0FFC) != 0x0FC0:
            self._counter = 0
            return False
        digit = (word0 & 0x03) | ((word2 & 0x60) >> 3)
        if self._counter > 0 and self._last != digit:
            self._counter = 0
        self._last = digit
        self._counter += 1
        if self._counter == DTMF_REPEAT and 0 <= digit <= 15:
            if len(self._digits) < MAX_DTMF_BUF:
                self._digits.append(DTMF_CHARS[digit])
        return True

    def digits(self):
        """Return the digits collected so far."""
        return "".join(self._digits)


class StreamSequencer:
    """Keeps the frame counter of a stream sent to a local module in order.

    Small gaps of up to five frames are filled; larger gaps resynchronise
    the counter to the incoming frame.
    """

    def __init__(self):
        self.next_ctrl = 0

    def accept(self, ctrl):
        """Take the ctrl byte of an incoming voice frame.

        Returns ``(fill_ctrls, out_ctrl)``: the ctrl values of filler frames
        to send first, and the ctrl value to send with this frame, or None
        when the frame is to be dropped.
        """
        fills = []
        diff = (ctrl & 0x1F) - self.next_ctrl
        if diff:
            if diff < 0:
                diff += FRAMES_PER_SUPERFRAME
            if diff <= MAX_FILL_FRAMES:
                for _ in range(diff):
                    fills.append(self.next_ctrl)
                    self.next_ctrl = (self.next_ctrl + 1) % FRAMES_PER_SUPERFRAME
            else:
                self.next_ctrl = ctrl & 0xFF
        if ctrl & END_OF_STREAM:
            return fills, (self.next_ctrl | END_OF_STREAM) & 0xFF
        if self.next_ctrl == (ctrl & 0x1F):
            out = self.next_ctrl
            self.next_ctrl = (self.next_ctrl + 1) % FRAMES_PER_SUPERFRAME
            return fills, out
        return fills, None


def fill_frame(ctrl):
    """Return ``(voice, text)`` for a filler frame with the given ctrl value.

    The voice is quiet AMBE; the slow data is the sync pattern at the start
    of a superframe and scrambled silence elsewhere.
    """
    text = SYNC_TEXT if (ctrl % FRAMES_PER_SUPERFRAME) == 0 else SILENCE_TEXT
    return QUIET_VOICE, text


@dataclass
class VoiceStats:
    """Frame, silence and bit-error counts of one transmission."""

    frames: int = 0
    silent_frames: int = 0
    bit_errors: int = 0

    def add(self, ber_data, errors):
        """Count one decoded voice frame and its bit errors."""
        if ber_data[0] == SILENT_AMBE_WORD:
            self.silent_frames += 1
        self.bit_errors += errors
        self.frames += 1


def _message_text(index, message):
    layout = _MESSAGE_LAYOUT.get(index)
    if layout is None:
        return PLAYBACK_SILENCE_TEXT
    marker, *positions = layout
    values = ([ord(marker)] if marker is not None else []) + [message[p] for p in positions]
    return bytes(value ^ key for value, key in zip(values, _SCRAMBLE))


def playback_frames(header, voice_blocks, message):
    """Yield the packets that play recorded voice back to a local module.

    ``header`` is the recorded header packet; it is sent first with URCALL
    set to CQCQCQ (its checksum is left for the caller to recompute). Each
    9-byte voice block follows as a voice frame, the first frames carrying
    the 20-character ``message`` as slow data, the last marked as the end.
    """
    if not header.is_header():
        raise ValueError("playback needs a header packet")
    blocks = [bytes(block) for block in voice_blocks]
    for block in blocks:
        if len(block) != VOICE_SIZE:
            raise ValueError(f"voice block must be {VOICE_SIZE} bytes, got {len(block)}")
    text = message.encode("latin-1")[:MESSAGE_SIZE].ljust(MESSAGE_SIZE, b"\0")

    yield replace(header, header=header.header.with_fields(urcall=PLAYBACK_URCALL))

    last = len(blocks) - 1
    for index, block in enumerate(blocks):
        ctrl = index % FRAMES_PER_SUPERFRAME
        slow = SYNC_TEXT if ctrl == 0 else _message_text(index, text)
        if index == last:
            ctrl |= END_OF_STREAM
        assert len(slow) == TEXT_SIZE
        yield DSVTPacket(
            config=0x20,
            flaga=header.flaga,
            id=header.id,
            flagb=header.flagb,
            streamid=header.streamid,
            ctrl=ctrl,
            voice=block,
            text=slow,
        )