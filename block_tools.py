from collections import Counter
from functools import lru_cache
from os import urandom

from Cryptodome.Cipher import AES

from padding import pkcs7_pad, pkcs7_unpad
from util import chunks, xor_bytes

BLOCK_SIZE = AES.block_size


class ConfigError(ValueError):
    pass


class InvalidIVLengthError(ConfigError):
    pass


class InvalidKeyLengthError(ConfigError):
    pass


class InvalidDataLengthError(ConfigError):
    pass


@lru_cache(maxsize=32)
def _aes_block_cipher(key):
    if len(key) not in AES.key_size:
        raise InvalidKeyLengthError("invalid AES key length: {}".format(len(key)))
    return AES.new(key, AES.MODE_ECB)


def _check_block(block):
    if len(block) != BLOCK_SIZE:
        raise InvalidDataLengthError(
            "block must be {} bytes long, not {}".format(BLOCK_SIZE, len(block)))


def encrypt_block(key, block):
    _check_block(block)
    return _aes_block_cipher(bytes(key)).encrypt(bytes(block))


def decrypt_block(key, block):
    _check_block(block)
    return _aes_block_cipher(bytes(key)).decrypt(bytes(block))


def _check_data_length(data):
    if not data or len(data) % BLOCK_SIZE:
        raise InvalidDataLengthError(
            "data length must be a nonzero multiple of {}, not {}".format(
                BLOCK_SIZE, len(data)))


def _check_iv(iv):
    if len(iv) != BLOCK_SIZE:
        raise InvalidIVLengthError(
            "IV must be {} bytes long, not {}".format(BLOCK_SIZE, len(iv)))


def ecb_encrypt(plaintext, key, pad=True):
    if pad:
        plaintext = pkcs7_pad(plaintext, BLOCK_SIZE)
    _check_data_length(plaintext)
    return b"".join(encrypt_block(key, block) for block in chunks(plaintext, BLOCK_SIZE))


def ecb_decrypt(ciphertext, key, unpad=True):
    _check_data_length(ciphertext)
    plaintext = b"".join(decrypt_block(key, block) for block in chunks(ciphertext, BLOCK_SIZE))
    return pkcs7_unpad(plaintext, BLOCK_SIZE) if unpad else plaintext


def cbc_encrypt(plaintext, key, iv, pad=True):
    _check_iv(iv)
    if pad:
        plaintext = pkcs7_pad(plaintext, BLOCK_SIZE)
    _check_data_length(plaintext)
    result = bytearray()
    prev_cipher_block = bytes(iv)
    for plain_block in chunks(plaintext, BLOCK_SIZE):
        cipher_block = encrypt_block(key, xor_bytes(prev_cipher_block, plain_block))
        result.extend(cipher_block)
        prev_cipher_block = cipher_block
    return bytes(result)


def cbc_decrypt(ciphertext, key, iv, unpad=True):
    _check_iv(iv)
    _check_data_length(ciphertext)
    result = bytearray()
    prev_cipher_block = bytes(iv)
    for cipher_block in chunks(bytes(ciphertext), BLOCK_SIZE):
        result.extend(xor_bytes(prev_cipher_block, decrypt_block(key, cipher_block)))
        # Chain on the ciphertext block, not on the plaintext just derived.
        prev_cipher_block = cipher_block
    return pkcs7_unpad(result, BLOCK_SIZE) if unpad else bytes(result)


_encrypt_fns = {"ECB": ecb_encrypt, "CBC": cbc_encrypt}
_decrypt_fns = {"ECB": ecb_decrypt, "CBC": cbc_decrypt}


def aes_encrypt(plaintext, key, mode, *args, pad=False):
    return _encrypt_fns[mode](plaintext, key, *args, pad=pad)


def aes_decrypt(ciphertext, key, mode, *args, unpad=False):
    return _decrypt_fns[mode](ciphertext, key, *args, unpad=unpad)


def looks_like_ecb(ciphertext, block_size=BLOCK_SIZE):
    # TODO: use birthday paradox to calculate an estimate for the expected
    # number of duplicate blocks so this function works on big ciphertexts.
    return max(Counter(chunks(ciphertext, block_size)).values()) > 1


def random_aes_key():
    return urandom(16)
