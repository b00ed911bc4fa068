from collections import defaultdict

# Character frequencies were taken from raw letter averages at
# http://www.macfreek.nl/memory/Letter_Distribution, then rounded to 6
# decimal places for readability. Control characters from \x11 to \x1f and
# \x00 get a lower score than unlisted bytes. \x01 to \x10 are left at the
# default because they are the PKCS#7 padding values, which show up at the
# end of every padded message.
english_byte_frequencies = defaultdict(
    lambda: 4e-6,
    {ord(char): freq for char, freq in {
        "\x00": 1e-6,
        "\x11": 1e-6, "\x12": 1e-6, "\x13": 1e-6, "\x14": 1e-6, "\x15": 1e-6,
        "\x16": 1e-6, "\x17": 1e-6, "\x18": 1e-6, "\x19": 1e-6, "\x1a": 1e-6,
        "\x1b": 1e-6, "\x1c": 1e-6, "\x1d": 1e-6, "\x1e": 1e-6, "\x1f": 1e-6,
        "\n": 0.01, ".": 0.006, ",": 0.006, "'": 0.003,
        " ": 0.183169, "a": 0.065531, "b": 0.012708, "c": 0.022651, "d": 0.033523,
        "e": 0.102179, "f": 0.019718, "g": 0.016359, "h": 0.048622, "i": 0.057343,
        "j": 0.001144, "k": 0.005692, "l": 0.033562, "m": 0.020173, "n": 0.057031,
        "o": 0.062006, "p": 0.015031, "q": 0.000881, "r": 0.049720, "s": 0.053263,
        "t": 0.075100, "u": 0.022952, "v": 0.007880, "w": 0.016896, "x": 0.001498,
        "y": 0.014700, "z": 0.000598
    }.items()})


def byte_frequency(byte):
    # Uppercase letters score the same as lowercase ones.
    return english_byte_frequencies[bytes([byte]).lower()[0]]


# Every byte value, most likely first. Brute-force loops try guesses in this
# order so that English plaintext is recovered in far fewer oracle queries.
all_bytes_by_frequency = sorted(range(256), key=byte_frequency, reverse=True)
