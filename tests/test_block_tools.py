import os

import pytest

from Cryptodome.Cipher import AES

import block_tools

from block_tools import (InvalidDataLengthError, InvalidIVLengthError, InvalidKeyLengthError,
                         cbc_decrypt, cbc_encrypt, ecb_decrypt, ecb_encrypt)
from padding import PaddingError, pkcs7_pad
from util import chunks, xor_bytes

KEY = b"YELLOW SUBMARINE"
IV = b"ivIVivIVivIVivIV"

PLAINTEXTS = [b"", b"0", b"YELLOW SUBMARINE", b"banana banana banana", os.urandom(100)]


def test_block_functions_are_inverses():
    block = b"MELLOW PREMARINE"
    ciphertext = block_tools.encrypt_block(KEY, block)
    assert ciphertext != block
    assert ciphertext == AES.new(KEY, AES.MODE_ECB).encrypt(block)
    assert block_tools.decrypt_block(KEY, ciphertext) == block


@pytest.mark.parametrize("key", [b"", b"short", b"k" * 17, b"k" * 33])
def test_bad_key_length(key):
    with pytest.raises(InvalidKeyLengthError):
        block_tools.encrypt_block(key, b"\x00" * 16)


@pytest.mark.parametrize("block", [b"", b"\x00" * 15, b"\x00" * 17])
def test_bad_block_length(block):
    with pytest.raises(InvalidDataLengthError):
        block_tools.decrypt_block(KEY, block)


@pytest.mark.parametrize("plaintext", PLAINTEXTS)
def test_ecb_round_trip(plaintext):
    ciphertext = ecb_encrypt(plaintext, KEY)
    assert len(ciphertext) == len(pkcs7_pad(plaintext))
    assert ecb_decrypt(ciphertext, KEY) == plaintext


@pytest.mark.parametrize("plaintext", PLAINTEXTS)
def test_cbc_round_trip(plaintext):
    ciphertext = cbc_encrypt(plaintext, KEY, IV)
    assert len(ciphertext) == len(pkcs7_pad(plaintext))
    assert cbc_decrypt(ciphertext, KEY, IV) == plaintext


def test_cbc_matches_library():
    plaintext = os.urandom(64)
    ciphertext = cbc_encrypt(plaintext, KEY, IV, pad=False)
    assert ciphertext == AES.new(KEY, AES.MODE_CBC, IV).encrypt(plaintext)
    assert cbc_decrypt(ciphertext, KEY, IV, unpad=False) == plaintext


def test_cbc_chaining():
    ciphertext = cbc_encrypt(os.urandom(48), KEY, IV)
    plain_blocks = chunks(cbc_decrypt(ciphertext, KEY, IV, unpad=False))
    cipher_blocks = chunks(ciphertext)
    for i, cipher_block in enumerate(cipher_blocks):
        prev_block = IV if i == 0 else cipher_blocks[i - 1]
        assert plain_blocks[i] == xor_bytes(block_tools.decrypt_block(KEY, cipher_block),
                                            prev_block)


def test_ecb_repeats_blocks_and_cbc_does_not():
    plaintext = b"A" * 64
    assert block_tools.looks_like_ecb(ecb_encrypt(plaintext, KEY))
    assert not block_tools.looks_like_ecb(cbc_encrypt(plaintext, KEY, IV))


@pytest.mark.parametrize("iv", [b"", b"\x00" * 15, b"\x00" * 32])
def test_bad_iv_length(iv):
    with pytest.raises(InvalidIVLengthError):
        cbc_encrypt(b"hello", KEY, iv)
    with pytest.raises(InvalidIVLengthError):
        cbc_decrypt(b"\x00" * 16, KEY, iv)


def test_bad_ciphertext_length():
    ciphertext = cbc_encrypt(b"hello", KEY, IV)
    with pytest.raises(InvalidDataLengthError):
        cbc_decrypt(ciphertext[:5], KEY, IV)
    with pytest.raises(InvalidDataLengthError):
        ecb_decrypt(b"", KEY)
    with pytest.raises(InvalidDataLengthError):
        ecb_encrypt(b"hello", KEY, pad=False)


def test_decrypt_with_wrong_key_fails_padding_or_garbles():
    ciphertext = ecb_encrypt(b"attack at dawn", KEY)
    try:
        plaintext = ecb_decrypt(ciphertext, b"SUBMARINE YELLOW")
    except PaddingError:
        pass
    else:
        assert plaintext != b"attack at dawn"


def test_mode_dispatch():
    plaintext = b"attack at dawn"
    assert (block_tools.aes_encrypt(plaintext, KEY, "ECB", pad=True) ==
            ecb_encrypt(plaintext, KEY))
    ciphertext = block_tools.aes_encrypt(plaintext, KEY, "CBC", IV, pad=True)
    assert block_tools.aes_decrypt(ciphertext, KEY, "CBC", IV, unpad=True) == plaintext
