# qnetgw

`qnetgw` is a pure-Python library of the pieces a D-STAR repeater gateway
needs:

- reading the gateway's `key=value` configuration, with a defaults file
  supplying anything the main file leaves out, and turning it into typed
  gateway settings;
- a thread-safe user → repeater → gateway → address routing cache;
- parsing and building DSVT header and voice packets, and classifying the
  URCALL field of a header;
- assembling slow data carried in voice frames (GPS sentences, 20-character
  messages, slow-data headers, smart-group announcements);
- Golay (24,12) decoding of AMBE voice frames for bit-error counting, DTMF
  detection and voice statistics;
- keeping the frame counter of a relayed stream in order and building
  playback frames for recorded voice;
- parsing GPS positions into Maidenhead locators and APRS position lines,
  and building APRS beacons;
- fetching the gateway list from a DPlus authentication server.

It has no third-party dependencies.

## Modules

| Module | What it holds |
| --- | --- |
| `qnetgw.base` | `RunFlag`, a thread-safe keep-running flag that `install_signal_handlers()` clears on SIGINT/SIGHUP/SIGTERM, and `hex_dump`, which returns a formatted hex dump string |
| `qnetgw.cache` | `CacheManager`, the routing cache; lookups return `""` when nothing is known |
| `qnetgw.config` | `QnetConfig`, `read_config_file` and `ConfigError` |
| `qnetgw.dstar_decode` | `DStarDecoder` (`decode`, `golay2412`) and `golay_syndrome` |
| `qnetgw.location` | `Location` with `parse`, `maidenhead` and `aprs` |
| `qnetgw.dplus` | `DPlusAuthenticator`, `GatewayHost`, `build_login_packet`, `parse_gateway_records` |
| `qnetgw.packets` | `DSVTPacket`, `Header`, `UrcallCommand`, `classify_urcall`, `parse_link_families` |
| `qnetgw.slowdata` | `SlowDataDecoder`, `SlowDataResult`, `SlowDataKind`, `SmartGroupParser`, `is_sync`, `unscramble`, `printable` |
| `qnetgw.gateway_settings` | `GatewaySettings`, `ModuleSettings`, `load_gateway_settings`, `unpack_callsigns`, `is_valid_mycall`, `flag_is_ok`, `compute_aprs_hash`, `aprs_beacon`, `module_callsigns` |
| `qnetgw.voice` | `DtmfDetector`, `StreamSequencer`, `VoiceStats`, `playback_frames`, `fill_frame` |

## Examples

Routing cache:

```python
from qnetgw.cache import CacheManager

cache = CacheManager()
cache.update_user("N0CALL  ", "N0RPT  B", "N0RPT  G", "192.0.2.10", "")
print(cache.find_user_addr("N0CALL  "))      # 192.0.2.10
print(cache.find_user_repeater("N0CALL  "))  # N0RPT  B
```

Configuration and gateway settings. Missing or invalid values raise
`ConfigError`:

```python
from qnetgw.config import QnetConfig, ConfigError
from qnetgw.gateway_settings import load_gateway_settings

try:
    cfg = QnetConfig("qn.cfg", "defaults")
    settings = load_gateway_settings(cfg)
except ConfigError as err:
    print(f"bad configuration: {err}")
else:
    print(settings.owner_call, [m.call for m in settings.modules if m.defined])
```

Packets and slow data:

```python
from qnetgw.packets import DSVTPacket
from qnetgw.slowdata import SlowDataDecoder

decoder = SlowDataDecoder()
packet = DSVTPacket.parse(received_bytes)   # 56-byte header or 27-byte voice frame
if not packet.is_header():
    result = decoder.feed(packet.text)
    if result is not None:
        print(result.kind, result.text)
```

Bit errors and DTMF in a voice frame:

```python
from qnetgw.dstar_decode import DStarDecoder
from qnetgw.voice import DtmfDetector, VoiceStats

decoder, dtmf, stats = DStarDecoder(), DtmfDetector(), VoiceStats()
words, errors = decoder.decode(packet.voice)
stats.add(words, errors)
dtmf.feed(words)
print(stats.bit_errors, dtmf.digits())
```

Positions:

```python
from qnetgw.location import Location

loc = Location.parse("$GPRMC,123519,A,4807.038,N,01131.000,E,022.4,084.4")
print(loc.maidenhead())
print(loc.aprs("N0CALL B", "N0RPT-B"))
```

Dumping bytes while debugging:

```python
from qnetgw.base import hex_dump

print(hex_dump("header", b"DSVT\x10\x00\x00\x00\x20"))
```

## What this package does not do

`qnetgw` is a library, not a running gateway. It has no command to start, no
main processing loop, and opens no UDP or Unix-domain sockets of its own. It
has no ircDDB client and no APRS-IS connection; `aprs_beacon` and
`Location.aprs` only build the lines to send. It keeps no last-heard or
link-status database: `DPlusAuthenticator.process` returns the gateway list
it receives rather than storing it. It does not compute the header checksum
(`playback_frames` leaves that to the caller).

## Running the tests

The test suite uses pytest; install the `test` extra and run `pytest` from the
project directory.