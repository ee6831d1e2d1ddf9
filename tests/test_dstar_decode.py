import pytest

from qnetgw.dstar_decode import DStarDecoder, golay_syndrome

SILENCE = bytes([0x9E, 0x8D, 0x32, 0x88, 0x26, 0x1A, 0x3F, 0x61, 0xE8])


@pytest.fixture(scope="module")
def decoder():
    return DStarDecoder()


def codeword23(info):
    shifted = info << 11
    return shifted | golay_syndrome(shifted)


def codeword24(info):
    cw = codeword23(info)
    return (cw << 1) | (bin(cw).count("1") & 1)


def interleave(words):
    out = bytearray(9)
    for i in range(72):
        row, col = divmod(i, 6)
        bit = 23 - row if col % 2 == 0 else 11 - row
        if (words[col // 2] >> bit) & 1:
            out[i >> 3] |= 0x80 >> (i & 7)
    return bytes(out)


@pytest.mark.parametrize("info", [0, 1, 0x555, 0xAAA, 0xF85, 0xFFF])
def test_codewords_have_zero_syndrome(info):
    assert golay_syndrome(codeword23(info)) == 0


def test_small_patterns_are_their_own_syndrome():
    assert golay_syndrome(0x7FF) == 0x7FF
    assert golay_syndrome(0) == 0


@pytest.mark.parametrize("info", [0, 0x123, 0xF85, 0xFFF])
def test_golay_clean_word(decoder, info):
    assert decoder.golay2412(codeword24(info)) == (info, 0)


@pytest.mark.parametrize("flips", [(1,), (3, 17), (2, 12, 23)])
def test_golay_corrects_up_to_three_errors(decoder, flips):
    info = 0x9C3
    data = codeword24(info)
    for bit in flips:
        data ^= 1 << bit
    assert decoder.golay2412(data) == (info, len(flips))


def test_golay_counts_parity_error(decoder):
    assert decoder.golay2412(codeword24(0x2B4) ^ 1) == (0x2B4, 1)


def test_prng_table(decoder):
    assert len(decoder.prng) == 4096
    assert all(0 <= word < (1 << 24) for word in decoder.prng)


def test_decode_round_trip(decoder):
    info0, info1, extra = 0x4A7, 0xB12, 0x00C3F0
    words = [codeword24(info0), codeword24(info1) ^ decoder.prng[info0], extra]
    assert decoder.decode(interleave(words)) == ((info0, info1, extra), 0)


def test_decode_single_bit_error(decoder):
    info0, info1, extra = 0x321, 0x654, 0x000111
    words = [codeword24(info0) ^ (1 << 9), codeword24(info1) ^ decoder.prng[info0], extra]
    assert decoder.decode(interleave(words)) == ((info0, info1, extra), 1)


def test_silence_frame_is_recognised(decoder):
    data, _errors = decoder.decode(SILENCE)
    assert data[0] == 0xF85


def test_decode_rejects_short_frame(decoder):
    with pytest.raises(ValueError):
        decoder.decode(b"\x00" * 8)