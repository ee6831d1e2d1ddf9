"""DPlus gateway list retrieval from the authentication server."""

import logging
import socket
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DPLUS_PORT = 20001
LOGIN_PACKET_SIZE = 56
RECORD_SIZE = 26


@dataclass(frozen=True)
class GatewayHost:
    """A gateway or reflector known to the DPlus network."""

    name: str
    address: str
    port: int = DPLUS_PORT


def build_login_packet(callsign):
    """Return the 56-byte opening packet for the DPlus authentication server."""
    callsign = callsign.strip()
    if not callsign:
        raise ValueError("login callsign is empty")
    packet = bytearray(b" " * LOGIN_PACKET_SIZE)
    packet[0:4] = b"\x38\xc0\x01\x00"
    encoded = callsign.encode("ascii")[:LOGIN_PACKET_SIZE - 4]
    packet[4:4 + len(encoded)] = encoded
    packet[12:20] = b"DV019999"
    packet[28:33] = b"W7IB2"
    packet[40:47] = b"DHS0257"
    return bytes(packet)


def _packet_length(header):
    return (header[1] & 0x0F) * 256 + header[0]


def _c_string(data, start):
    return data[start:].split(b"\0", 1)[0].decode("latin-1")


def parse_gateway_records(packet, reflectors, repeaters):
    """Return the active hosts listed in one gateway-list packet.

    Names are padded or cut to six characters. Names starting with 'REF'
    are kept when ``reflectors`` is set, all others when ``repeaters`` is set.
    Raises ValueError for a packet that is not a gateway list.
    """
    packet = bytes(packet)
    if len(packet) < 3 or (packet[1] & 0xC0) != 0xC0 or packet[2] != 0x01:
        raise ValueError("invalid DPlus gateway-list packet")
    view = packet[:min(_packet_length(packet), len(packet))]
    hosts = []
    for offset in range(8, len(view) - 25, RECORD_SIZE):
        address = _c_string(view, offset).strip()
        name = _c_string(view, offset + 16).strip()[:6].ljust(6)
        active = bool(view[offset + 25] & 0x80)
        if not address or not active:
            continue
        is_reflector = name.startswith("REF")
        if (reflectors and is_reflector) or (repeaters and not is_reflector):
            hosts.append(GatewayHost(name, address))
    return hosts


def _read_exact(sock, count):
    chunks = []
    remaining = count
    while remaining > 0:
        chunk = sock.recv(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class DPlusAuthenticator:
    """Logs in to a DPlus authentication server and collects its gateway list."""

    TIMEOUT = 10.0

    def __init__(self, login_callsign, address, port=DPLUS_PORT):
        self.login_callsign = login_callsign.strip()
        if not self.login_callsign:
            raise ValueError("login callsign is empty")
        self.address = address
        self.port = port

    def process(self, reflectors, repeaters):
        """Authenticate and return the list of hosts received.

        Connection and write failures raise OSError; a read failure or a
        malformed packet part way through returns the hosts gathered so far.
        """
        hosts = []
        with socket.create_connection((self.address, self.port), timeout=self.TIMEOUT) as sock:
            sock.sendall(build_login_packet(self.login_callsign))
            while True:
                try:
                    header = _read_exact(sock, 2)
                except OSError:
                    break
                if len(header) != 2:
                    break
                try:
                    body = _read_exact(sock, max(_packet_length(header) - 2, 0))
                except OSError as err:
                    logger.error("Problem reading line: %s", err)
                    return hosts
                try:
                    hosts.extend(parse_gateway_records(header + body, reflectors, repeaters))
                except ValueError:
                    logger.error("Invalid packet received from %d", self.port)
                    return hosts
        logger.info(
            "Probably authorized DPlus on %s using callsign %s", self.address, self.login_callsign
        )
        return hosts