"""Golay (24,12) decoding of D-STAR AMBE voice frames for bit error counting."""

from itertools import combinations

X22 = 0x00400000
X11 = 0x00000800
MASK12 = 0xFFFFF800
GENPOL = 0x00000C75

VOICE_FRAME_SIZE = 9


def golay_syndrome(pattern):
    """Return the remainder of ``pattern`` divided by the Golay generator polynomial."""
    aux = X22
    if pattern >= X11:
        while pattern & MASK12:
            while not aux & pattern:
                aux >>= 1
            pattern ^= (aux // X11) * GENPOL
    return pattern


def _interleave_positions():
    """Map each of the 72 voice bits to (word index, bit position)."""
    positions = []
    for row in range(12):
        for col in range(6):
            bit = 23 - row if col % 2 == 0 else 11 - row
            positions.append((col // 2, bit))
    return tuple(positions)


_POSITIONS = _interleave_positions()


def _prng_word(seed):
    word = 0
    mask = 0x800000
    pr = seed << 4
    for _ in range(24):
        pr = (173 * pr + 13849) & 0xFFFF
        if pr & 0x8000:
            word |= mask
        mask >>= 1
    return word


class DStarDecoder:
    """Decodes the three code words of an AMBE voice frame and counts bit errors."""

    def __init__(self):
        table = [0] * 2048
        for weight in (1, 2, 3):
            for bits in combinations(range(23), weight):
                pattern = sum(1 << bit for bit in bits)
                table[golay_syndrome(pattern)] = pattern
        self._decoding_table = tuple(table)
        self.prng = tuple(_prng_word(seed) for seed in range(4096))

    def golay2412(self, data):
        """Decode a 24-bit Golay code word.

        Returns ``(decoded, errors)`` where ``decoded`` is the 12 data bits and
        ``errors`` counts the corrected bits, parity included.
        """
        block = (data >> 1) & 0x07FFFFF
        corrected = block ^ self._decoding_table[golay_syndrome(block)]
        errors = bin((block ^ corrected) & 0x7FFFFF).count("1")
        parity = bin(corrected & 0x7FFFFF).count("1") & 1
        if parity != data & 1:
            errors += 1
        return corrected >> 11, errors

    def decode(self, voice):
        """Decode a 9-byte voice frame.

        Returns ``((data0, data1, data2), errors)``.
        """
        voice = bytes(voice)
        if len(voice) < VOICE_FRAME_SIZE:
            raise ValueError(f"voice frame needs {VOICE_FRAME_SIZE} bytes, got {len(voice)}")
        words = [0, 0, 0]
        for index, (word, bit) in enumerate(_POSITIONS):
            if voice[index >> 3] & (0x80 >> (index & 0x07)):
                words[word] |= 1 << bit
        data0, errors = self.golay2412(words[0])
        data1, more = self.golay2412(words[1] ^ self.prng[data0 & 0x0FFF])
        return (data0, data1, words[2]), errors + more