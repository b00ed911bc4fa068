import os

import block_tools
import oracles

from util import chunks

KEY = b"YELLOW SUBMARINE"


def test_encryption_oracle_appends_secret():
    oracle = oracles.EncryptionOracle(b"secret", key=KEY)
    assert oracle.query(b"attacker") == block_tools.ecb_encrypt(b"attackersecret", KEY)
    assert oracle.query(b"attacker") == oracle.query(b"attacker")
    assert oracle.query_count == 3


def test_encryption_oracle_prefix():
    oracle = oracles.EncryptionOracle(b"secret", key=KEY, prefix=b"random")
    assert oracle.query(b"!") == block_tools.ecb_encrypt(b"random!secret", KEY)


def test_encryption_oracle_hides_secrets():
    oracle = oracles.EncryptionOracle(b"secret")
    public_names = [name for name in vars(oracle) if not name.startswith("_")]
    assert public_names == ["query_count"]


def test_padding_oracle_accepts_its_own_ciphertext():
    oracle = oracles.PaddingOracle()
    iv, ciphertext = oracle.encrypt(b"hello world")
    assert len(iv) == 16
    assert len(ciphertext) == 16
    assert oracle.check_padding(iv, ciphertext)
    assert oracle.query_count == 1


def test_padding_oracle_rejects_bad_padding():
    oracle = oracles.PaddingOracle(key=KEY)
    iv = os.urandom(16)
    # Last byte decrypts to \x00, which is never valid padding.
    ciphertext = block_tools.cbc_encrypt(b"A" * 15 + b"\x00", KEY, iv, pad=False)
    assert not oracle.check_padding(iv, ciphertext)
    ciphertext = block_tools.cbc_encrypt(b"A" * 14 + b"\x03\x03", KEY, iv, pad=False)
    assert not oracle.check_padding(iv, ciphertext)
    ciphertext = block_tools.cbc_encrypt(b"A" * 14 + b"\x02\x02", KEY, iv, pad=False)
    assert oracle.check_padding(iv, ciphertext)


def test_padding_oracle_is_sensitive_to_changes():
    oracle = oracles.PaddingOracle()
    iv, ciphertext = oracle.encrypt(os.urandom(40))
    prev_block_start = len(ciphertext) - 32
    changed_results = 0
    trials = 200
    for _ in range(trials):
        tampered = bytearray(ciphertext)
        position = prev_block_start + 15
        tampered[position] ^= 1 + (os.urandom(1)[0] % 255)
        if not oracle.check_padding(iv, bytes(tampered)):
            changed_results += 1
    # Each change makes the padding invalid unless the last byte happens to
    # decrypt to \x01, or longer valid padding, about 1 time in 256.
    assert changed_results >= trials - 10


def test_random_mode_oracle():
    oracle = oracles.RandomModeOracle()
    seen_modes = set()
    for _ in range(50):
        ciphertext = oracle.query(b"A" * 48)
        assert len(ciphertext) % 16 == 0
        assert oracle.last_mode in ("ECB", "CBC")
        seen_modes.add(oracle.last_mode)
    assert seen_modes == {"ECB", "CBC"}


def test_user_data_oracle_quotes_metacharacters():
    oracle = oracles.UserDataOracle()
    query_string = oracle.make_query_string(b";admin=true;")
    assert query_string == (b"comment1=cooking%20MCs;userdata=%3Badmin%3Dtrue%3B"
                            b";comment2=%20like%20a%20pound%20of%20bacon")
    ciphertext = oracle.encrypt(b";admin=true;")
    assert oracle.decrypt(ciphertext) == query_string
    assert not oracle.is_admin(ciphertext)


def test_user_data_oracle_is_deterministic():
    oracle = oracles.UserDataOracle()
    assert oracle.encrypt(b"foo") == oracle.encrypt(b"foo")
    assert chunks(oracle.encrypt(b"foo"))[:2] == chunks(oracle.encrypt(b"bar"))[:2]


def test_profile_oracle():
    oracle = oracles.ProfileOracle()
    profile = oracle.decrypt_profile(oracle.encrypt_profile("foo@bar.com&role=admin"))
    assert profile == {"email": "foo@bar.com&role=admin", "uid": "10", "role": "user"}
