"""DSVT packet layout, URCALL command classification and link-family messages."""

import enum
import struct
from dataclasses import dataclass, field, replace

TITLE = b"DSVT"
HEADER_PACKET_SIZE = 56
VOICE_PACKET_SIZE = 27
PREFIX_SIZE = 15
VOICE_SIZE = 9
TEXT_SIZE = 3
CALL_SIZE = 8
SUFFIX_SIZE = 4

LINK_TITLE = b"LINK"
_LINK_FORMAT = struct.Struct("=4s3i")


class UrcallCommand(enum.Enum):
    """What the gateway does with the URCALL field of a local header."""

    REFLECTOR = "reflector"
    BLANK = "blank"
    CQ = "cq"
    REPEATER_ROUTE = "repeater_route"
    CALLSIGN_ROUTE = "callsign_route"
    VOICEMAIL_CLEAR = "voicemail_clear"
    VOICEMAIL_PLAY = "voicemail_play"
    VOICEMAIL_RECORD = "voicemail_record"
    ECHO = "echo"


_REFLECTOR_PREFIXES = ("XLX", "XRF", "REF", "DCS")

_EXACT_COMMANDS = {
    "      C0": UrcallCommand.VOICEMAIL_CLEAR,
    "      R0": UrcallCommand.VOICEMAIL_PLAY,
    "      S0": UrcallCommand.VOICEMAIL_RECORD,
    "       E": UrcallCommand.ECHO,
}


def classify_urcall(urcall):
    """Return the command an 8-character URCALL field asks for."""
    urcall = urcall[:CALL_SIZE].ljust(CALL_SIZE)
    if urcall.startswith(_REFLECTOR_PREFIXES):
        return UrcallCommand.REFLECTOR
    if urcall.startswith("CQCQCQ"):
        return UrcallCommand.CQ
    if urcall[0] != " ":
        if urcall[0] == "/":
            return UrcallCommand.REPEATER_ROUTE
        return UrcallCommand.CALLSIGN_ROUTE
    return _EXACT_COMMANDS.get(urcall, UrcallCommand.BLANK)


def _text(raw):
    return raw.decode("latin-1")


def _field(value, size):
    return value.encode("latin-1")[:size].ljust(size, b" ")


@dataclass(frozen=True)
class Header:
    """The radio header carried in a 56-byte DSVT packet."""

    flags: bytes = b"\x00\x00\x00"
    rpt1: str = " " * CALL_SIZE
    rpt2: str = " " * CALL_SIZE
    urcall: str = " " * CALL_SIZE
    mycall: str = " " * CALL_SIZE
    sfx: str = " " * SUFFIX_SIZE
    pfcs: bytes = b"\x00\x00"

    @classmethod
    def _from_bytes(cls, data):
        return cls(
            flags=bytes(data[0:3]),
            rpt1=_text(data[3:11]),
            rpt2=_text(data[11:19]),
            urcall=_text(data[19:27]),
            mycall=_text(data[27:35]),
            sfx=_text(data[35:39]),
            pfcs=bytes(data[39:41]),
        )

    def _to_bytes(self):
        return b"".join((
            bytes(self.flags)[:3].ljust(3, b"\x00"),
            _field(self.rpt1, CALL_SIZE),
            _field(self.rpt2, CALL_SIZE),
            _field(self.urcall, CALL_SIZE),
            _field(self.mycall, CALL_SIZE),
            _field(self.sfx, SUFFIX_SIZE),
            bytes(self.pfcs)[:2].ljust(2, b"\x00"),
        ))

    def with_fields(self, **changes):
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


@dataclass
class DSVTPacket:
    """A DSVT packet: either a 56-byte header or a 27-byte voice frame."""

    config: int = 0x20
    flaga: bytes = b"\x00\x00\x00"
    id: int = 0x20
    flagb: bytes = b"\x00\x00\x00"
    streamid: int = 0
    ctrl: int = 0
    header: "Header | None" = None
    voice: bytes = field(default=b"\x00" * VOICE_SIZE)
    text: bytes = field(default=b"\x00" * TEXT_SIZE)

    @classmethod
    def parse(cls, data):
        """Parse a received packet; raises ValueError when it is not a DSVT packet."""
        data = bytes(data)
        if len(data) not in (HEADER_PACKET_SIZE, VOICE_PACKET_SIZE):
            raise ValueError(f"DSVT packet must be 56 or 27 bytes, got {len(data)}")
        if data[:4] != TITLE:
            raise ValueError("packet does not start with DSVT")
        packet = cls(
            config=data[4],
            flaga=data[5:8],
            id=data[8],
            flagb=data[9:12],
            streamid=int.from_bytes(data[12:14], "big"),
            ctrl=data[14],
        )
        if len(data) == HEADER_PACKET_SIZE:
            packet.header = Header._from_bytes(data[PREFIX_SIZE:])
        else:
            packet.voice = data[PREFIX_SIZE:PREFIX_SIZE + VOICE_SIZE]
            packet.text = data[PREFIX_SIZE + VOICE_SIZE:VOICE_PACKET_SIZE]
        return packet

    def is_header(self):
        """True for a header packet, False for a voice frame."""
        return self.header is not None

    def to_bytes(self):
        """Return the wire form: 56 bytes for a header, 27 for a voice frame."""
        prefix = b"".join((
            TITLE,
            bytes((self.config & 0xFF,)),
            bytes(self.flaga)[:3].ljust(3, b"\x00"),
            bytes((self.id & 0xFF,)),
            bytes(self.flagb)[:3].ljust(3, b"\x00"),
            (self.streamid & 0xFFFF).to_bytes(2, "big"),
            bytes((self.ctrl & 0xFF,)),
        ))
        if self.header is not None:
            return prefix + self.header._to_bytes()
        voice = bytes(self.voice)
        text = bytes(self.text)
        if len(voice) != VOICE_SIZE or len(text) != TEXT_SIZE:
            raise ValueError("voice frame needs 9 voice bytes and 3 text bytes")
        return prefix + voice + text


def parse_link_families(data):
    """Return the three address families from a 16-byte LINK message.

    Raises ValueError when the data is not a LINK message.
    """
    data = bytes(data)
    if len(data) != _LINK_FORMAT.size or data[:4] != LINK_TITLE:
        raise ValueError("not a LINK family message")
    _, *families = _LINK_FORMAT.unpack(data)
    return tuple(families)