"""Simulated servers that hold a secret key and answer attacker queries.

Each class models one kind of service from the challenges and exposes only
the methods an attacker could call on it. The key and any secret plaintext
are fixed when the oracle is created and are kept in private attributes.
"""

import os

from urllib.parse import parse_qs, quote as url_quote, urlencode

import block_tools

from padding import PaddingError, pkcs7_unpad
from util import random


class EncryptionOracle:
    """ECB-encrypts attacker bytes with a secret suffix appended.

    If prefix is given, it is prepended to the attacker bytes, which models
    the "harder" byte-at-a-time challenge where the server adds a fixed
    number of random bytes in front of the attacker's input.
    """

    def __init__(self, target_suffix, key=None, prefix=b""):
        self._key = key or block_tools.random_aes_key()
        self._prefix = bytes(prefix)
        self._target_suffix = bytes(target_suffix)
        self.query_count = 0

    def query(self, attacker_bytes):
        self.query_count += 1
        plaintext = self._prefix + bytes(attacker_bytes) + self._target_suffix
        return block_tools.ecb_encrypt(plaintext, self._key)


class PaddingOracle:
    """CBC-encrypts messages and reveals only whether a ciphertext's padding is valid."""

    def __init__(self, key=None):
        self._key = key or block_tools.random_aes_key()
        self.query_count = 0

    def encrypt(self, plaintext):
        iv = os.urandom(block_tools.BLOCK_SIZE)
        return (iv, block_tools.cbc_encrypt(plaintext, self._key, iv))

    def check_padding(self, iv, ciphertext):
        self.query_count += 1
        plain_bytes = block_tools.cbc_decrypt(ciphertext, self._key, bytes(iv), unpad=False)
        try:
            pkcs7_unpad(plain_bytes)
        except PaddingError:
            return False
        else:
            return True


class RandomModeOracle:
    def __init__(self):
        self.last_mode = None

    def query(self, plain_bytes):
        key = block_tools.random_aes_key()
        mode = random.choice(["CBC", "ECB"])
        prefix = os.urandom(random.randint(5, 10))
        suffix = os.urandom(random.randint(5, 10))
        cipher_input = prefix + bytes(plain_bytes) + suffix
        args = (os.urandom(block_tools.BLOCK_SIZE),) if mode == "CBC" else ()
        self.last_mode = mode
        return block_tools.aes_encrypt(cipher_input, key, mode, *args, pad=True)


class UserDataOracle:
    """Builds an encrypted query string around user data, like a session cookie."""

    prefix = b"comment1=cooking%20MCs;userdata="
    suffix = b";comment2=%20like%20a%20pound%20of%20bacon"

    def __init__(self, key=None, iv=None):
        self._key = key or block_tools.random_aes_key()
        self._iv = iv or os.urandom(block_tools.BLOCK_SIZE)

    def make_query_string(self, user_data):
        # url_quote escapes ";" and "=", so user data can't add fields.
        return self.prefix + url_quote(bytes(user_data)).encode() + self.suffix

    def encrypt(self, user_data):
        query_string = self.make_query_string(user_data)
        return block_tools.cbc_encrypt(query_string, self._key, self._iv)

    def decrypt(self, ciphertext):
        return block_tools.cbc_decrypt(ciphertext, self._key, self._iv)

    def is_admin(self, ciphertext):
        fields = self.decrypt(ciphertext).split(b";")
        return b"admin=true" in fields


class ProfileOracle:
    def __init__(self, key=None):
        self._key = key or block_tools.random_aes_key()

    def encrypt_profile(self, email_address):
        profile_data = [("email", email_address), ("uid", "10"), ("role", "user")]
        profile = urlencode(profile_data).encode()
        return block_tools.ecb_encrypt(profile, self._key)

    def decrypt_profile(self, encrypted_profile):
        profile = block_tools.ecb_decrypt(encrypted_profile, self._key).decode()
        return {name: values[0] for name, values in parse_qs(profile).items()}
