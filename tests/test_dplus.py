import socket
import threading

import pytest

from qnetgw.dplus import (
    DPlusAuthenticator,
    GatewayHost,
    build_login_packet,
    parse_gateway_records,
)


def record(address, name, active=True):
    return (
        address.encode().ljust(16, b"\0")
        + name.encode().ljust(9, b"\0")
        + bytes([0x80 if active else 0x00])
    )


def packet(*records):
    body = b"".join(records)
    length = 8 + len(body)
    return bytes([length & 0xFF, 0xC0 | (length >> 8), 0x01]) + b"\0" * 5 + body


SAMPLE = packet(
    record("192.0.2.1", "REF001"),
    record("192.0.2.2", "W1ABC"),
    record("192.0.2.3", "REF002", active=False),
    record("", "K2XYZ"),
)


def test_login_packet_layout():
    data = build_login_packet("  N0CALL ")
    assert len(data) == 56
    assert data[:4] == bytes([0x38, 0xC0, 0x01, 0x00])
    assert data[4:12] == b"N0CALL  "
    assert data[12:20] == b"DV019999"
    assert data[28:33] == b"W7IB2"
    assert data[40:47] == b"DHS0257"
    assert data[47:] == b" " * 9


def test_login_packet_rejects_empty_callsign():
    with pytest.raises(ValueError):
        build_login_packet("   ")


def test_parse_all_active():
    hosts = parse_gateway_records(SAMPLE, True, True)
    assert hosts == [
        GatewayHost("REF001", "192.0.2.1", 20001),
        GatewayHost("W1ABC ", "192.0.2.2", 20001),
    ]


def test_parse_reflectors_only():
    assert [h.name for h in parse_gateway_records(SAMPLE, True, False)] == ["REF001"]


def test_parse_repeaters_only():
    assert [h.address for h in parse_gateway_records(SAMPLE, False, True)] == ["192.0.2.2"]


def test_parse_nothing_requested():
    assert parse_gateway_records(SAMPLE, False, False) == []


def test_parse_long_name_is_cut():
    hosts = parse_gateway_records(packet(record("192.0.2.9", "LONGNAME")), True, True)
    assert hosts == [GatewayHost("LONGNA", "192.0.2.9")]


@pytest.mark.parametrize(
    "bad",
    [
        bytes([0x22, 0x40, 0x01]) + SAMPLE[3:],
        SAMPLE[:2] + b"\x02" + SAMPLE[3:],
        b"\x00",
    ],
)
def test_parse_invalid_packet(bad):
    with pytest.raises(ValueError):
        parse_gateway_records(bad, True, True)


def test_authenticator_rejects_empty_callsign():
    with pytest.raises(ValueError):
        DPlusAuthenticator("", "127.0.0.1")


def _serve(listener, replies, received):
    conn, _ = listener.accept()
    with conn:
        data = b""
        while len(data) < 56:
            chunk = conn.recv(56 - len(data))
            if not chunk:
                break
            data += chunk
        received.append(data)
        for reply in replies:
            conn.sendall(reply)


def test_process_against_local_server():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]
    received = []
    second = packet(record("192.0.2.4", "REF030"))
    worker = threading.Thread(target=_serve, args=(listener, [SAMPLE, second], received))
    worker.start()
    try:
        hosts = DPlusAuthenticator("N0CALL", "127.0.0.1", port).process(True, True)
    finally:
        worker.join(5)
        listener.close()
    assert received == [build_login_packet("N0CALL")]
    assert [h.name for h in hosts] == ["REF001", "W1ABC ", "REF030"]


def test_process_stops_at_invalid_packet():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    port = listener.getsockname()[1]
    received = []
    broken = SAMPLE[:2] + b"\x07" + SAMPLE[3:]
    worker = threading.Thread(target=_serve, args=(listener, [SAMPLE, broken], received))
    worker.start()
    try:
        hosts = DPlusAuthenticator("N0CALL", "127.0.0.1", port).process(False, True)
    finally:
        worker.join(5)
        listener.close()
    assert hosts == [GatewayHost("W1ABC ", "192.0.2.2")]