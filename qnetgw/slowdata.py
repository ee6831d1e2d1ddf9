"""Decoding of the slow-data channel carried in D-STAR voice frames."""

import enum
from dataclasses import dataclass

SYNC = b"\x55\x2d\x16"
_SCRAMBLE = (0x70, 0x4F, 0x93)
TEXT_SIZE = 3

MESSAGE_SIZE = 20
HEADER_SIZE = 41
GPS_LIMIT = 255
SMARTGROUP_PREFIX = b"VIA SMARTGP "
_SMARTGROUP_MIN = 8
_CR = 0x0D


def _check(text):
    text = bytes(text)
    if len(text) < TEXT_SIZE:
        raise ValueError(f"slow data needs {TEXT_SIZE} bytes, got {len(text)}")
    return text[:TEXT_SIZE]


def is_sync(text):
    """True when the three slow-data bytes are the frame sync pattern."""
    return bytes(text[:TEXT_SIZE]) == SYNC


def unscramble(text):
    """XOR three slow-data bytes with the scrambler pattern (its own inverse)."""
    text = _check(text)
    return bytes(byte ^ key for byte, key in zip(text, _SCRAMBLE))


def printable(text):
    """Return the text with every non-printable character replaced by '?'."""
    return "".join(chr(byte) if 0x20 <= byte < 0x7F else "?" for byte in bytes(text))


def _c_string(buffer, end):
    return bytes(buffer[:end]).split(b"\0", 1)[0]


def _put(buffer, offset, data):
    """Write data at offset, growing the buffer when needed."""
    needed = offset + len(data)
    if needed > len(buffer):
        buffer.extend(bytes(needed - len(buffer)))
    buffer[offset:needed] = data


class SlowDataKind(enum.Enum):
    """Kinds of slow-data blocks the decoder completes."""

    GPS = 0x30
    MESSAGE = 0x40
    HEADER = 0x50


@dataclass(frozen=True)
class SlowDataResult:
    """A completed slow-data block."""

    kind: SlowDataKind
    data: bytes

    @property
    def text(self):
        """The data as printable text."""
        return printable(self.data)


class SlowDataDecoder:
    """Assembles GPS strings, 20-character messages and radio headers.

    Slow data arrives three bytes per voice frame, in pairs of frames; the
    first byte of a pair gives the block type and the number of bytes used.
    Header blocks are collected only when ``collect_header`` is set.
    """

    def __init__(self, collect_header=False):
        self.collect_header = collect_header
        self._header = bytearray(HEADER_SIZE)
        self._message = bytearray(MESSAGE_SIZE + 1)
        self._gps = bytearray(GPS_LIMIT + 1)
        self._size = 0
        self._type = 0
        self.reset()

    def reset(self):
        """Forget any partly assembled block."""
        self._ih = 0
        self._im = 0
        self._ig = 0
        self._first = True

    def feed(self, text):
        """Take the three slow-data bytes of a voice frame.

        Returns a SlowDataResult when a block is complete, otherwise None.
        """
        text = _check(text)
        if is_sync(text):
            self._first = True
            return None
        c = unscramble(text)
        if self._first:
            return self._feed_first(c)
        return self._feed_second(c)

    def _gps_done(self, end):
        self._gps[end] = 0
        return SlowDataResult(SlowDataKind.GPS, _c_string(self._gps, end))

    def _feed_first(self, c):
        self._size = min(c[0] & 0x0F, 5)
        chunk = min(self._size, 2)
        self._type = c[0] & 0xF0
        result = None
        if self._type == SlowDataKind.GPS.value:
            if self._size + self._ig < GPS_LIMIT:
                _put(self._gps, self._ig, c[1:1 + chunk])
                if c[1] == _CR or c[2] == _CR:
                    result = self._gps_done(self._ig + (0 if c[1] == _CR else 1))
                    self._ig = self._size = 0
                else:
                    self._ig += chunk
                    self._size -= chunk
            else:
                self._ig = self._size = 0
            self._first = False
        elif self._type == SlowDataKind.MESSAGE.value:
            if self._size * 5 == self._im:
                _put(self._message, self._im, c[1:3])
                self._im += 2
                self._size = 3
            else:
                self._im = self._size = 0
            self._first = False
        elif self._type == SlowDataKind.HEADER.value:
            if self.collect_header:
                if self._size + self._ih < HEADER_SIZE + 1:
                    _put(self._header, self._ih, c[1:1 + chunk])
                    self._ih += chunk
                    if self._ih == HEADER_SIZE:
                        result = SlowDataResult(
                            SlowDataKind.HEADER, bytes(self._header[:HEADER_SIZE])
                        )
                        self._ih = self._size = 0
                else:
                    self._ih = self._size = 0
            self._first = False
        return result

    def _feed_second(self, c):
        self._first = True
        if self._size == 0:
            return None
        if self._type == SlowDataKind.GPS.value:
            _put(self._gps, self._ig, c[:self._size])
            if _CR in c:
                result = self._gps_done(self._ig + c.index(_CR))
                self._ig = 0
                return result
            self._ig += self._size
            _put(self._gps, self._ig, b"\0")
        elif self._type == SlowDataKind.MESSAGE.value:
            _put(self._message, self._im, c)
            self._im += 3
            if self._im >= MESSAGE_SIZE:
                self._message[MESSAGE_SIZE] = 0
                self._im = 0
                return SlowDataResult(
                    SlowDataKind.MESSAGE, _c_string(self._message, MESSAGE_SIZE)
                )
        elif self._type == SlowDataKind.HEADER.value:
            if self.collect_header:
                _put(self._header, self._ih, c)
                self._ih += 3
        return None


class SmartGroupParser:
    """Watches a remote stream's 20-character message for a smart-group name."""

    def __init__(self):
        self._part = 0
        self._txt = bytearray(MESSAGE_SIZE + 1)

    def feed(self, text):
        """Take the three slow-data bytes of a voice frame.

        Returns the smart-group name once a complete "VIA SMARTGP " message
        naming a group of at least eight characters has arrived, else None.
        """
        text = _check(text)
        if is_sync(text):
            self._part = 0  # messages never span a superframe
            return None
        c = unscramble(text)
        if self._part:
            if self._part % 2:
                offset = 5 * (self._part // 2) + 2
                self._txt[offset:offset + 3] = c
                self._part += 1
                if self._part > 7:
                    self._part = 0
                    message = _c_string(self._txt, MESSAGE_SIZE)
                    if not message.startswith(SMARTGROUP_PREFIX):
                        return None
                    group = message[len(SMARTGROUP_PREFIX):]
                    if len(group) < _SMARTGROUP_MIN:
                        return None
                    return group.decode("latin-1")
            else:
                sequence = self._part // 2
                self._part += 1
                if (sequence | 0x40) == c[0]:
                    offset = 5 * sequence
                    self._txt[offset:offset + 2] = c[1:3]
                else:
                    self._part = 0
        elif c[0] == 0x40:
            self._txt[0:2] = c[1:3]
            self._txt[2:MESSAGE_SIZE + 1] = bytes(MESSAGE_SIZE - 1)
            self._part = 1
        return None