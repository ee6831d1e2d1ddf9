"""GPS position parsing, Maidenhead locators and APRS position reports."""

import math
import re
from dataclasses import dataclass

_GPS = re.compile(
    r"[^0-9]([0-9]{1,2})([0-9]{2}\.[0-9]+),?([NS])[/,]([0-9]{1,3})([0-9]{2}\.[0-9]+),?([WE])"
)


@dataclass(frozen=True)
class Location:
    """A position in decimal degrees; north and east are positive."""

    latitude: float
    longitude: float

    @classmethod
    def parse(cls, text):
        """Find a ddmm.mm position in NMEA or APRS text.

        Raises ValueError when no position is found or a field is out of range.
        """
        text = text.strip()
        if len(text) < 20:
            raise ValueError(f"text too short to hold a position: {text!r}")
        match = _GPS.search(text)
        if match is None:
            raise ValueError(f"no position found in {text!r}")
        lat_deg, lat_min, ns, lon_deg, lon_min, ew = match.groups()

        degrees = float(lat_deg)
        if degrees > 90.0:
            raise ValueError(f"Latitude degree {degrees:g} is out of range")
        minutes = float(lat_min)
        if minutes > 60.0:
            raise ValueError(f"Latitude minutes {minutes:g} is out of range")
        latitude = degrees + minutes / 60.0
        if ns == "S":
            latitude = -latitude

        degrees = float(lon_deg)
        if degrees > 180.0:
            raise ValueError(f"Longitude degree {degrees:g} is out of range")
        minutes = float(lon_min)
        if minutes > 60.0:
            raise ValueError(f"Longitude minutes {minutes:g} is out of range")
        longitude = degrees + minutes / 60.0
        if ew == "W":
            longitude = -longitude

        return cls(latitude, longitude)

    def maidenhead(self):
        """Return the six-character Maidenhead grid locator."""
        lat = self.latitude + 90.0
        lon = self.longitude + 180.0
        return "".join((
            chr(ord("A") + int(lon) // 20),
            chr(ord("A") + int(lat) // 10),
            chr(ord("0") + (int(lon) % 20) // 2),
            chr(ord("0") + int(lat) % 10),
            chr(ord("a") + int(lon * 12.0) % 24),
            chr(ord("a") + int(lat * 24.0) % 24),
        ))

    def aprs(self, call, station):
        """Return an APRS position packet for ``call`` heard via ``station``."""
        call = call[:8].ljust(8)
        last = call[7]
        space = call.find(" ")
        if space >= 0:
            call = call[:space + 1]
        lat_frac, lat_whole = math.modf(abs(self.latitude))
        lon_frac, lon_whole = math.modf(abs(self.longitude))
        ns = "N" if self.latitude >= 0 else "S"
        ew = "E" if self.longitude >= 0 else "W"
        source = call if last == " " else f"{call}-{last}"
        return (
            f"{source}>APDPRS,DSTAR*,qAR,{station}:!"
            f"{int(lat_frac):02d}{lat_whole * 60.0:04.2f}{ns}/"
            f"{int(lon_frac):03d}{lon_whole * 60.0:04.2f}{ew}/A\r\n"
        )