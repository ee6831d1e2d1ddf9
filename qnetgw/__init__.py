"""Building blocks for a D-STAR repeater gateway: configuration, routing cache,
DSVT packets, slow data, Golay decoding, voice handling, GPS/APRS and DPlus."""

__version__ = "0.1.0"