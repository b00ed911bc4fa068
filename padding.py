class PaddingError(ValueError):
    pass


class InvalidPaddingLengthError(PaddingError):
    pass


class InvalidPaddingBytesError(PaddingError):
    pass


def pkcs7_pad(input_bytes, block_size=16):
    if not 1 <= block_size <= 255:
        raise ValueError("block size must be between 1 and 255, not {}".format(block_size))
    padding_length = -len(input_bytes) % block_size
    if padding_length == 0:
        padding_length = block_size
    return bytes(input_bytes) + bytes([padding_length] * padding_length)


def pkcs7_unpad(input_bytes, block_size=16):
    if not input_bytes:
        raise InvalidPaddingLengthError("can't unpad empty input")
    padding_length = input_bytes[-1]
    if padding_length == 0 or padding_length > block_size or padding_length > len(input_bytes):
        raise InvalidPaddingLengthError("invalid padding length {}".format(padding_length))
    expected_padding = bytes([padding_length]) * padding_length
    if input_bytes[-padding_length:] != expected_padding:
        raise InvalidPaddingBytesError("invalid padding bytes")
    return bytes(input_bytes[:-padding_length])


def pkcs7_padding_is_valid(input_bytes, block_size=16):
    try:
        pkcs7_unpad(input_bytes, block_size)
    except PaddingError:
        return False
    else:
        return True
