from random import SystemRandom

random = SystemRandom()


def xor_bytes(*bytes_objects):
    lengths = [len(b) for b in bytes_objects]
    if len(set(lengths)) > 1:
        raise ValueError("inputs must be of equal length")
    result = bytearray([0]) * lengths[0]
    for b in bytes_objects:
        for i, byte in enumerate(b):
            result[i] ^= byte
    return bytes(result)


def chunks(x, chunk_size=16):
    return [x[i : i + chunk_size] for i in range(0, len(x), chunk_size)]


def pretty_hex_bytes(input_bytes):
    """Format bytes as space-separated pairs of hex digits, e.g. "de ad be ef"."""
    return " ".join("{:02x}".format(byte) for byte in input_bytes)
