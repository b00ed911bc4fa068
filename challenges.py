#!/usr/bin/env python3

# standard library modules
import base64
import cProfile
import inspect
import os
import pprint as pprint_module
import re
import sys
import traceback
import warnings

from argparse import ArgumentParser
from contextlib import redirect_stdout


# third-party modules
from Cryptodome.Cipher import AES


# modules in this project
import attacks
import block_tools
import oracles
import padding
import util

random = util.random


warnings.simplefilter("default", BytesWarning)
warnings.simplefilter("default", ResourceWarning)
warnings.simplefilter("default", DeprecationWarning)

EXAMPLE_PLAIN_BYTES = (b"Give a man a beer, he'll waste an hour. "
                       b"Teach a man to brew, he'll waste a lifetime.")

ECB_SECRET = base64.b64decode(
    "Um9sbGluJyBpbiBteSA1LjAKV2l0aCBteSByYWctdG9wIGRvd24gc28gbXkgaGFpciBjYW"
    "4gYmxvdwpUaGUgZ2lybGllcyBvbiBzdGFuZGJ5IHdhdmluZyBqdXN0IHRvIHNheSBoaQpE"
    "aWQgeW91IHN0b3A/IE5vLCBJIGp1c3QgZHJvdmUgYnkK")

PADDING_ORACLE_PLAINTEXTS = [base64.b64decode(x) for x in [
    "MDAwMDAwTm93IHRoYXQgdGhlIHBhcnR5IGlzIGp1bXBpbmc=",
    "MDAwMDAxV2l0aCB0aGUgYmFzcyBraWNrZWQgaW4gYW5kIHRoZSBWZWdhJ3MgYXJlIHB1bXBpbic=",
    "MDAwMDAyUXVpY2sgdG8gdGhlIHBvaW50LCB0byB0aGUgcG9pbnQsIG5vIGZha2luZw==",
    "MDAwMDAzQ29va2luZyBNQydzIGxpa2UgYSBwb3VuZCBvZiBiYWNvbg==",
    "MDAwMDA0QnVybmluZyAnZW0sIGlmIHlvdSBhaW4ndCBxdWljayBhbmQgbmltYmxl",
    "MDAwMDA1SSBnbyBjcmF6eSB3aGVuIEkgaGVhciBhIGN5bWJhbA==",
    "MDAwMDA2QW5kIGEgaGlnaCBoYXQgd2l0aCBhIHNvdXBlZCB1cCB0ZW1wbw==",
    "MDAwMDA3SSdtIG9uIGEgcm9sbCwgaXQncyB0aW1lIHRvIGdvIHNvbG8=",
    "MDAwMDA4b2xsaW4nIGluIG15IGZpdmUgcG9pbnQgb2g=",
    "MDAwMDA5aXRoIG15IHJhZy10b3AgZG93biBzbyBteSBoYWlyIGNhbiBibG93",
]]


def pprint(*args, width=120, **kwargs):
    pprint_module.pprint(*args, width=width, **kwargs)


def challenge9():
    """Implement PKCS#7 padding"""
    assert (padding.pkcs7_pad(b"YELLOW SUBMARINE", 20) ==
            b"YELLOW SUBMARINE\x04\x04\x04\x04")
    assert padding.pkcs7_pad(b"YELLOW SUBMARINE") == b"YELLOW SUBMARINE" + b"\x10" * 16


def challenge10():
    """Implement CBC mode"""
    key = b"YELLOW SUBMARINE"
    iv = b"\x00" * 16

    ciphertext = block_tools.cbc_encrypt(EXAMPLE_PLAIN_BYTES, key, iv)
    library_cipher = AES.new(key, AES.MODE_CBC, iv)
    assert ciphertext == library_cipher.encrypt(padding.pkcs7_pad(EXAMPLE_PLAIN_BYTES))

    plain_bytes = block_tools.cbc_decrypt(ciphertext, key, iv)
    assert plain_bytes == EXAMPLE_PLAIN_BYTES
    print(plain_bytes.decode())
    pprint([util.pretty_hex_bytes(x) for x in util.chunks(ciphertext)])


def challenge11():
    """An ECB/CBC detection oracle"""
    oracle = oracles.RandomModeOracle()
    for _ in range(1000):
        guessed_mode = attacks.detect_block_mode(oracle.query)
        assert guessed_mode == oracle.last_mode
    print("All modes guessed correctly.")


def challenge12(query_budget=None):
    """Byte-at-a-time ECB decryption (Simple)"""
    oracle = oracles.EncryptionOracle(ECB_SECRET)
    plaintext = attacks.recover_ecb_secret(oracle, query_budget=query_budget)
    print(plaintext.decode())
    print("{:,} queries".format(oracle.query_count))
    assert plaintext == ECB_SECRET


def challenge13():
    """ECB cut-and-paste"""
    oracle = oracles.ProfileOracle()
    new_profile = attacks.cut_and_paste_admin_profile(oracle)
    decrypted_new_profile = oracle.decrypt_profile(new_profile)
    pprint(decrypted_new_profile)
    assert decrypted_new_profile["role"] == "admin"


def challenge14(query_budget=None):
    """Byte-at-a-time ECB decryption (Harder)"""
    random_bytes = os.urandom(random.randint(0, 64))
    oracle = oracles.EncryptionOracle(EXAMPLE_PLAIN_BYTES, prefix=random_bytes)

    block_size = attacks.guess_block_size(oracle.query)
    prefix_length = attacks.guess_prefix_length(oracle.query, block_size)
    assert prefix_length == len(random_bytes)
    plaintext = attacks.recover_ecb_secret(
        oracle, prefix_length=prefix_length, query_budget=query_budget)
    print(plaintext.decode())
    assert plaintext == EXAMPLE_PLAIN_BYTES


def challenge15():
    """PKCS#7 padding validation"""
    assert padding.pkcs7_unpad(b"ICE ICE BABY\x04\x04\x04\x04") == b"ICE ICE BABY"

    for bad_bytes in [b"ICE ICE BABY\x05\x05\x05\x05", b"ICE ICE BABY\x01\x02\x03\x04"]:
        try:
            padding.pkcs7_unpad(bad_bytes)
        except padding.PaddingError:
            pass
        else:
            assert False, "Padding should not be considered valid"


def challenge16():
    """CBC bitflipping attacks"""
    oracle = oracles.UserDataOracle()
    assert not oracle.is_admin(oracle.encrypt(b";admin=true;"))

    new_ciphertext = attacks.forge_admin_ciphertext(oracle)
    print(oracle.decrypt(new_ciphertext))
    assert oracle.is_admin(new_ciphertext)


def challenge17(query_budget=None):
    """The CBC padding oracle"""
    plaintexts = list(PADDING_ORACLE_PLAINTEXTS)
    random.shuffle(plaintexts)

    oracle = oracles.PaddingOracle()
    for plaintext in plaintexts:
        iv, ciphertext = oracle.encrypt(plaintext)
        recovered_plaintext = attacks.recover_cbc_plaintext(
            oracle, ciphertext, iv, query_budget=query_budget)
        assert recovered_plaintext == plaintext
        print(recovered_plaintext.decode())
    print("{:,} queries".format(oracle.query_count))


class ChallengeError(Exception):
    pass


class ChallengeNotFoundError(ChallengeError, ValueError):
    pass


class ChallengeFailedError(ChallengeError):
    pass


def get_challenges(challenge_nums):
    result = []
    for num in challenge_nums:
        fn = globals().get("challenge" + str(num))
        if not callable(fn):
            raise ChallengeNotFoundError("challenge {} not found".format(num))
        result.append(fn)
    return result


def get_all_challenges():
    challenges = {}
    for name, var in globals().items():
        try:
            num = int(re.findall(r"^challenge(\d+)$", name)[0])
        except IndexError:
            pass
        else:
            if callable(var):
                challenges[num] = var
    return [challenges[num] for num in sorted(challenges)]


def call_challenge(challenge, **options):
    """Call a challenge function, passing only the options it accepts."""
    num = re.findall(r"^challenge(.+)$", challenge.__name__)[0]
    challenge_args = {name: value for name, value in options.items()
                      if name in inspect.signature(challenge).parameters}
    try:
        challenge(**challenge_args)
    except (AssertionError, attacks.AttackError) as e:
        raise ChallengeFailedError("challenge {} failed: {!r}".format(num, e)) from e


def run_challenge(num, **options):
    call_challenge(get_challenges([num])[0], **options)


def main():
    parser = ArgumentParser(
        description="Solve the block cipher challenges from the Cryptopals crypto challenges.")
    parser.add_argument(
        "challenges", nargs="*",
        help="Challenge(s) to run. If not specified, all challenges will be run.")
    parser.add_argument(
        "-p", "--profile", help="Profile challenges.", action="store_true")
    parser.add_argument(
        "-q", "--quiet", help="Don't show challenge output.", action="store_true")
    parser.add_argument(
        "-b", "--query-budget", type=int, default=None,
        help="Maximum number of oracle queries an attack may make on one message.")
    args = parser.parse_args()
    try:
        challenges = get_challenges(args.challenges) or get_all_challenges()
    except ChallengeNotFoundError as e:
        parser.error(e)

    options = {"query_budget": args.query_budget}
    failures = 0
    profile = cProfile.Profile() if args.profile else None
    try:
        with open(os.devnull, "w") as null_stream:
            output_stream = null_stream if args.quiet else sys.stdout
            for challenge in challenges:
                num = re.findall(r"^challenge(.+)$", challenge.__name__)[0]
                print("Running challenge {}: {}".format(num, challenge.__doc__))
                try:
                    with redirect_stdout(output_stream):
                        if profile:
                            profile.runcall(call_challenge, challenge, **options)
                        else:
                            call_challenge(challenge, **options)
                except Exception:
                    failures += 1
                    traceback.print_exc()
                else:
                    print("Challenge {} passed.".format(num))
    finally:
        if profile:
            print()
            profile.print_stats(sort="cumulative")
    return 1 if failures else 0


if __name__ == "__main__":
    sys.exit(main())
