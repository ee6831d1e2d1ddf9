"""Gateway settings loaded from the configuration, and helpers that depend on them."""

import logging
import math
import re
import struct
from dataclasses import dataclass, field

from .config import ConfigError

logger = logging.getLogger(__name__)

GW_VERSION = "40301"
CALL_SIZE = 8
MAXHOSTNAMELEN = 64
FILENAME_MAX = 4096
MODULE_LETTERS = "ABC"
MODULE_BANDS = ("23cm", "70cm", "2m")
APRS_HASH_SEED = 0x73E2

_MYCALL = re.compile(r"[A-PR-Z0-9][A-Z0-9]?[0-9]{1,2}[A-Z]{1,4} {0,4}[ A-Z]")


@dataclass
class ModuleSettings:
    """Settings of one local repeater module."""

    defined: bool = False
    package_version: str = ""
    frequency: float = 0.0
    offset: float = 0.0
    latitude: float = 0.0
    longitude: float = 0.0
    desc1: str = ""
    desc2: str = ""
    url: str = ""
    range_m: float = 0.0
    agl: float = 0.0
    call: str = ""
    band: str = ""


@dataclass
class GatewaySettings:
    """Everything the gateway reads from its configuration."""

    owner: str = ""
    owner_call: str = ""
    ircddb_hosts: list = field(default_factory=lambda: ["", ""])
    ircddb_ports: list = field(default_factory=lambda: [0, 0])
    ircddb_passwords: list = field(default_factory=lambda: ["", ""])
    modules: tuple = field(default_factory=lambda: tuple(ModuleSettings() for _ in range(3)))
    gateway_ip: str = ""
    gateway_port: int = 0
    gateway_ipv6_ip: str = ""
    gateway_ipv6_port: int = 0
    header_regen: bool = False
    send_qrgs_maps: bool = False
    find_route: frozenset = frozenset()
    aprs_enable: bool = False
    aprs_host: str = ""
    aprs_port: int = 0
    aprs_interval: int = 0
    aprs_filter: str = ""
    aprs_hash: int = 0
    log_qso: bool = False
    log_irc: bool = False
    log_dtmf: bool = False
    log_debug: bool = False
    file_echotest: str = ""
    file_dtmf: str = ""
    file_qnvoice_file: str = ""
    timing_play_wait: int = 0
    timing_play_delay: int = 0
    timing_timeout_echo: int = 0
    timing_timeout_voicemail: int = 0
    timing_timeout_remote_g2: int = 0
    timing_timeout_local_rptr: int = 0
    dash_show_order: str = ""
    show_last_heard: bool = False


def unpack_callsigns(text, delimiters=","):
    """Return the set of callsigns in a delimited list, upper case and padded to 8.

    Entries shorter than 3 or longer than 8 characters are skipped.
    """
    pattern = "[" + re.escape(delimiters) + "]+"
    calls = set()
    for element in re.split(pattern, text):
        if not element:
            continue
        if 3 <= len(element) <= CALL_SIZE:
            calls.add(element.upper().ljust(CALL_SIZE))
        else:
            logger.warning("found bad callsign in list: %s", text)
    return calls


def is_valid_mycall(call):
    """True when a MYCALL field looks like a real callsign."""
    return _MYCALL.fullmatch(call) is not None


def flag_is_ok(flag):
    """True for normal, break, emergency and emergency+break header flags."""
    return flag in (0x00, 0x08, 0x20, 0x28)


def compute_aprs_hash(owner):
    """Return the APRS login hash for the gateway callsign, as a signed 16-bit value.

    Raises ValueError when the padded callsign holds no space to end it.
    """
    padded = owner[:CALL_SIZE].ljust(CALL_SIZE)
    end = padded.find(" ")
    if end < 0:
        raise ValueError(f"Failed to build repeater callsign for aprs hash from {owner!r}")
    sign = padded[:end].encode("latin-1") + b"\0"
    value = APRS_HASH_SEED
    for index in range(0, end, 2):
        value ^= sign[index] << 8
        value ^= sign[index + 1]
    value &= 0xFFFF
    return value - 0x10000 if value & 0x8000 else value


def _f32(value):
    return struct.unpack("f", struct.pack("f", value))[0]


def _degrees_minutes(value):
    whole = _f32(math.floor(value))
    return _f32(_f32(_f32(value - whole) * 60.0) + _f32(whole * 100.0))


def aprs_beacon(call, latitude, longitude, range_m, band, version):
    """Return the APRS position beacon for a repeater module, CR-LF terminated."""
    lat = _degrees_minutes(_f32(abs(latitude)))
    lon = _degrees_minutes(_f32(abs(longitude)))

    if lat >= 1000.0:
        lat_s = f"{lat:.2f}"
    elif lat >= 100.0:
        lat_s = f"0{lat:.2f}"
    elif lat >= 10.0:
        lat_s = f"00{lat:.2f}"
    else:
        lat_s = f"000{lat:.2f}"

    if lon >= 10000.0:
        lon_s = f"{lon:.2f}"
    elif lon >= 1000.0:
        lon_s = f"0{lon:.2f}"
    elif lon >= 100.0:
        lon_s = f"00{lon:.2f}"
    elif lon >= 10.0:
        lon_s = f"000{lon:.2f}"
    else:
        lon_s = f"0000{lon:.2f}"

    ns = "S" if latitude < 0.0 else "N"
    ew = "W" if longitude < 0.0 else "E"
    return (
        f"{call}>APJI23,TCPIP*,qAC,{call}S:!{lat_s}{ns}D{lon_s}{ew}"
        f"&RNG{int(range_m):04d} {band} {version}\r\n"
    )


def module_callsigns(owner):
    """Return the APRS callsigns of modules A, B and C for a gateway owner."""
    base = owner.rstrip()
    return tuple(f"{base}-{letter}" for letter in MODULE_LETTERS)


def _optional(getter, *args, default):
    try:
        return getter(*args)
    except ConfigError as err:
        logger.error("%s", err)
        return default


def _load_module(cfg, index):
    path = "module_" + "abc"[index]
    module = ModuleSettings()
    try:
        kind = cfg.get_str(path, "", 1, 16)
    except ConfigError:
        return module
    logger.info("Found Module: %s = '%s'", path, kind)
    if kind != "icom":
        raise ConfigError(f"module type '{kind}' is invalid")
    module.package_version = GW_VERSION
    module.defined = True

    path += "_"
    if cfg.key_exists(path + "tx_frequency"):
        module.frequency = _optional(cfg.get_float, path + "tx_frequency", kind, 0.0, 6.0e9, default=0.0)
        rx_freq = _optional(cfg.get_float, path + "rx_frequency", kind, 0.0, 6.0e9, default=0.0)
        if rx_freq == 0.0:
            rx_freq = module.frequency
        module.offset = rx_freq - module.frequency
    module.latitude = _optional(cfg.get_float, "gateway_latitude", "", -90.0, 90.0, default=0.0)
    module.longitude = _optional(cfg.get_float, "gateway_longitude", "", -180.0, 180.0, default=0.0)
    module.desc1 = _optional(cfg.get_str, "gateway_desc1", "", 0, 20, default="")
    module.desc2 = _optional(cfg.get_str, "gateway_desc2", "", 0, 20, default="")
    module.url = _optional(cfg.get_str, "gateway_url", "", 0, 80, default="")
    module.range_m = _optional(cfg.get_float, path + "range", kind, 0.0, 1609344.0, default=0.0)
    module.agl = _optional(cfg.get_float, path + "agl", kind, 0.0, 1000.0, default=0.0)
    return module


def load_gateway_settings(cfg):
    """Build GatewaySettings from a QnetConfig.

    Raises ConfigError when the login is missing, both IRC networks are the
    same, a module type is unknown or no module is defined.
    """
    s = GatewaySettings()

    login = cfg.get_str("ircddb_login", "", 3, CALL_SIZE - 2)
    s.owner = login.lower()
    s.owner_call = login.upper().ljust(CALL_SIZE)
    logger.info("OWNER='%s'", login.upper())

    for i in range(2):
        prefix = f"ircddb{i}_"
        s.ircddb_hosts[i] = _optional(cfg.get_str, prefix + "host", "", 0, MAXHOSTNAMELEN, default="")
        s.ircddb_ports[i] = _optional(cfg.get_int, prefix + "port", "", 1000, 65535, default=0)
        s.ircddb_passwords[i] = _optional(cfg.get_str, prefix + "password", "", 0, 512, default="")
    if any(s.ircddb_hosts) and s.ircddb_hosts[0] == s.ircddb_hosts[1]:
        raise ConfigError("IRC networks must be different")

    s.modules = tuple(_load_module(cfg, index) for index in range(3))
    if not any(module.defined for module in s.modules):
        raise ConfigError("No modules defined!")
    for module, call, band in zip(s.modules, module_callsigns(s.owner_call), MODULE_BANDS):
        module.call = call
        module.band = band

    s.gateway_ip = _optional(cfg.get_str, "gateway_ip", "", 7, 64, default="")
    s.gateway_port = _optional(cfg.get_int, "gateway_port", "", 1024, 65535, default=0)
    s.gateway_ipv6_ip = _optional(cfg.get_str, "gateway_ipv6_ip", "", 7, 64, default="")
    s.gateway_ipv6_port = _optional(cfg.get_int, "gateway_ipv6_port", "", 1024, 65535, default=0)
    s.header_regen = _optional(cfg.get_bool, "gateway_header_regen", "", default=False)
    s.send_qrgs_maps = _optional(cfg.get_bool, "gateway_send_qrgs_maps", "", default=False)
    if cfg.key_exists("gateway_find_route"):
        csv = _optional(cfg.get_str, "gateway_find_route", "", 0, 10240, default="")
        s.find_route = frozenset(unpack_callsigns(csv))
        logger.info("gateway_find_route = [%s]", ",".join(sorted(s.find_route)))

    s.aprs_enable = _optional(cfg.get_bool, "aprs_enable", "", default=False)
    s.aprs_host = _optional(cfg.get_str, "aprs_host", "", 7, MAXHOSTNAMELEN, default="")
    s.aprs_port = _optional(cfg.get_int, "aprs_port", "", 10000, 65535, default=0)
    s.aprs_interval = _optional(cfg.get_int, "aprs_interval", "", 40, 1000, default=0)
    s.aprs_filter = _optional(cfg.get_str, "aprs_filter", "", 0, 512, default="")
    s.aprs_hash = compute_aprs_hash(s.owner_call)

    s.log_qso = _optional(cfg.get_bool, "log_qso", "", default=False)
    s.log_irc = _optional(cfg.get_bool, "log_irc", "", default=False)
    s.log_dtmf = _optional(cfg.get_bool, "log_dtmf", "", default=False)
    s.log_debug = _optional(cfg.get_bool, "log_debug", "", default=False)

    s.file_echotest = _optional(cfg.get_str, "file_echotest", "", 2, FILENAME_MAX, default="")
    s.file_dtmf = _optional(cfg.get_str, "file_dtmf", "", 2, FILENAME_MAX, default="")
    s.file_qnvoice_file = _optional(cfg.get_str, "file_qnvoice_file", "", 2, FILENAME_MAX, default="")

    s.timing_play_wait = _optional(cfg.get_int, "timing_play_wait", "", 1, 10, default=0)
    s.timing_play_delay = _optional(cfg.get_int, "timing_play_delay", "", 9, 25, default=0)
    s.timing_timeout_echo = _optional(cfg.get_int, "timing_timeout_echo", "", 1, 10, default=0)
    s.timing_timeout_voicemail = _optional(cfg.get_int, "timing_timeout_voicemail", "", 1, 10, default=0)
    s.timing_timeout_remote_g2 = _optional(cfg.get_int, "timing_timeout_remote_g2", "", 1, 10, default=0)
    s.timing_timeout_local_rptr = _optional(cfg.get_int, "timing_timeout_local_rptr", "", 1, 10, default=0)

    s.dash_show_order = _optional(cfg.get_str, "dash_show_order", "", 2, 17, default="")
    s.show_last_heard = "LH" in s.dash_show_order
    return s