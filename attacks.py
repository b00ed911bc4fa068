"""Attacks that recover plaintext or forge ciphertext using only oracle queries.

None of these functions ever see a key. They take an oracle object (or one
of its bound methods) and drive it adaptively, one query at a time.
"""

from block_tools import looks_like_ecb
from english import all_bytes_by_frequency
from padding import pkcs7_unpad
from util import chunks, xor_bytes


class AttackError(Exception):
    def __init__(self, message, block_index=None, byte_index=None):
        position = []
        if block_index is not None:
            position.append("block {}".format(block_index))
        if byte_index is not None:
            position.append("byte {}".format(byte_index))
        if position:
            message = "{} (at {})".format(message, ", ".join(position))
        super().__init__(message)
        self.block_index = block_index
        self.byte_index = byte_index


class NotECBError(AttackError):
    pass


class QueryBudgetExceededError(AttackError):
    pass


class InconsistentRecoveryError(AttackError):
    pass


class QueryBudget:
    """Wrap an oracle function so that it can only be called max_queries times.

    The attack using it records its current position in block_index and
    byte_index so that running out of queries can be reported precisely.
    """

    def __init__(self, oracle_fn, max_queries=None):
        self.oracle_fn = oracle_fn
        self.max_queries = max_queries
        self.queries = 0
        self.block_index = None
        self.byte_index = None

    def __call__(self, *args):
        if self.max_queries is not None and self.queries >= self.max_queries:
            raise QueryBudgetExceededError(
                "query budget of {} exhausted".format(self.max_queries),
                self.block_index, self.byte_index)
        self.queries += 1
        return self.oracle_fn(*args)


def _find_length_jump(oracle_fn, max_input_length=256):
    """Return (input_length, jump, base_length) for the first input that grows the output."""
    base_length = len(oracle_fn(b""))
    for input_length in range(1, max_input_length + 1):
        length = len(oracle_fn(b"A" * input_length))
        if length > base_length:
            return (input_length, length - base_length, base_length)
    raise AttackError("ciphertext length never changed; can't guess block size")


def guess_block_size(oracle_fn):
    return _find_length_jump(oracle_fn)[1]


def guess_secret_length(oracle_fn, prefix_length=0):
    # When the output grows by a block, the input has just filled the last
    # block exactly and a whole block of padding was added.
    input_length, _, base_length = _find_length_jump(oracle_fn)
    return base_length - input_length - prefix_length


def _repeated_blocks(blocks):
    return {(i, block1) for i, (block1, block2) in enumerate(zip(blocks, blocks[1:]))
            if block1 == block2}


def guess_prefix_length(oracle_fn, block_size):
    # Two identical attacker blocks appear side by side once the filler
    # completes the last block that contains prefix bytes. Repeats made of
    # the attacker's bytes are told apart from repeats elsewhere (or from a
    # prefix ending with the repeated byte) by trying two different bytes.
    for filler_length in range(block_size):
        repeats = []
        for repeated_byte in [b"A", b"C"]:
            attacker_bytes = b"B" * filler_length + repeated_byte * (2 * block_size)
            repeats.append(_repeated_blocks(chunks(oracle_fn(attacker_bytes), block_size)))
        a_indexes = {i for i, block in repeats[0] - repeats[1]}
        c_indexes = {i for i, block in repeats[1] - repeats[0]}
        common_indexes = a_indexes & c_indexes
        if common_indexes:
            return block_size * min(common_indexes) - filler_length
    raise NotECBError("no repeated blocks found; can't guess prefix length")


def detect_block_mode(oracle_fn, block_size=16):
    # Random bytes around the input can take up to a block on each side, so
    # three blocks of input always leave two identical aligned blocks.
    ciphertext = oracle_fn(b"A" * (3 * block_size))
    return "ECB" if looks_like_ecb(ciphertext, block_size) else "CBC"


def recover_ecb_secret(oracle, prefix_length=0, query_budget=None):
    """Recover the secret suffix that an ECB encryption oracle appends to its input.

    Works one byte at a time: the attacker input is sized so that the next
    unknown byte is the last byte of a block, whose other bytes are all known.
    Trying all 256 values for that byte and comparing the aligned block finds
    the right one. prefix_length is the number of unknown bytes the oracle
    puts in front of the attacker input, if any.
    """
    query = QueryBudget(oracle.query, query_budget)
    block_size = guess_block_size(query)
    if not looks_like_ecb(query(b"A" * (3 * block_size)), block_size):
        raise NotECBError("oracle does not appear to produce ECB mode output")
    secret_length = guess_secret_length(query, prefix_length)

    result = bytearray()
    while len(result) < secret_length:
        short_block_length = (block_size - len(result) - 1 - prefix_length) % block_size
        short_input_block = b"A" * short_block_length
        block_index = (prefix_length + short_block_length + len(result)) // block_size
        query.block_index = block_index
        query.byte_index = len(result)

        block_to_look_for = chunks(query(short_input_block), block_size)[block_index]
        for guess in all_bytes_by_frequency:
            test_input = short_input_block + result + bytes([guess])
            if chunks(query(test_input), block_size)[block_index] == block_to_look_for:
                result.append(guess)
                break
        else:  # if no byte matches
            raise NotECBError("no candidate byte matched", block_index, len(result))
    return bytes(result)


def _recover_plain_byte(check_padding, prev_cipher_block, cipher_block, recovered_so_far):
    block_size = len(cipher_block)
    pos = block_size - len(recovered_so_far) - 1
    padding_value = len(recovered_so_far) + 1
    padding = bytes([padding_value]) * padding_value
    # Bytes after pos are set so that they decrypt to the padding value.
    test_block = bytearray(xor_bytes(
        prev_cipher_block,
        padding.rjust(block_size, b"\x00"),
        recovered_so_far.rjust(block_size, b"\x00")))
    for guess in all_bytes_by_frequency:
        test_block[pos] = prev_cipher_block[pos] ^ guess ^ padding_value
        if check_padding(bytes(test_block), cipher_block):
            if pos == block_size - 1 and block_size > 1:
                # The plaintext may have ended in \x02\x02 (or longer valid
                # padding) instead of \x01. Changing the byte before pos rules
                # that out.
                test_block[pos - 1] ^= 1
                still_valid = check_padding(bytes(test_block), cipher_block)
                test_block[pos - 1] ^= 1
                if not still_valid:
                    continue
            return guess
    return None


def _recover_plain_block(check_padding, prev_cipher_block, cipher_block, block_index):
    result = bytes()
    for _ in range(len(cipher_block)):
        byte_index = len(cipher_block) - len(result) - 1
        check_padding.block_index = block_index
        check_padding.byte_index = byte_index
        plain_byte = _recover_plain_byte(check_padding, prev_cipher_block, cipher_block, result)
        if plain_byte is None:
            raise InconsistentRecoveryError(
                "no guess produced valid padding", block_index, byte_index)
        result = bytes([plain_byte]) + result
    return result


def recover_cbc_plaintext(oracle, ciphertext, iv, query_budget=None):
    """Decrypt a CBC ciphertext using only a padding oracle's yes/no answers.

    For each block, the previous ciphertext block (the IV for block 0) is
    replaced with a forged one and the last byte of the forged block is
    varied until the padding is valid, which reveals the last plaintext byte.
    Then the forged block is adjusted to produce \\x02\\x02 padding, and so
    on backwards through the block. The details are explained at
    https://blog.skullsecurity.org/2013/padding-oracle-attacks-in-depth
    """
    check_padding = QueryBudget(oracle.check_padding, query_budget)
    block_size = len(iv)
    result = bytearray()
    prev_cipher_block = bytes(iv)
    for block_index, cipher_block in enumerate(chunks(bytes(ciphertext), block_size)):
        result += _recover_plain_block(check_padding, prev_cipher_block, cipher_block,
                                       block_index)
        prev_cipher_block = cipher_block
    return pkcs7_unpad(result, block_size)


def forge(ciphertext, block_index, delta, block_size=16):
    """Return a ciphertext whose block_index-th plaintext block is XORed with delta.

    The change is made by flipping bits in the previous ciphertext block, so
    that block decrypts to garbage. delta may be shorter than a block, in
    which case it applies to the start of the block.
    """
    block_count = len(ciphertext) // block_size
    if not 1 <= block_index < block_count:
        raise ValueError("block index must be between 1 and {}, not {}".format(
            block_count - 1, block_index))
    if len(delta) > block_size:
        raise ValueError("delta can't be longer than a block")
    result = bytearray(ciphertext)
    start = (block_index - 1) * block_size
    for i, byte in enumerate(delta):
        result[start + i] ^= byte
    return bytes(result)


def _first_differing_block(ciphertext1, ciphertext2, block_size):
    pairs = zip(chunks(ciphertext1, block_size), chunks(ciphertext2, block_size))
    return next(i for i, (block1, block2) in enumerate(pairs) if block1 != block2)


def guess_cbc_prefix_length(encrypt_fn, block_size=16):
    # Only works with a fixed IV. A change to the attacker input first shows
    # up in the block that contains it.
    first_block = _first_differing_block(encrypt_fn(b"X"), encrypt_fn(b"Y"), block_size)
    for filler_length in range(1, block_size + 1):
        filler = b"A" * filler_length
        index = _first_differing_block(
            encrypt_fn(filler + b"X"), encrypt_fn(filler + b"Y"), block_size)
        if index > first_block:
            return (first_block + 1) * block_size - filler_length
    raise AttackError("can't guess prefix length")


def forge_admin_ciphertext(oracle, block_size=16):
    prefix_length = guess_cbc_prefix_length(oracle.encrypt, block_size)
    filler_length = -prefix_length % block_size
    known_block = b"A" * block_size
    wanted_block = b";admin=true;".ljust(block_size, b"A")
    ciphertext = oracle.encrypt(b"A" * filler_length + known_block + known_block)
    # The first block of As gets garbled. The second one gets the new text.
    block_index = (prefix_length + filler_length) // block_size + 1
    return forge(ciphertext, block_index, xor_bytes(known_block, wanted_block), block_size)


def cut_and_paste_admin_profile(oracle, block_size=16):
    """Build an encrypted "role=admin" profile out of blocks of other profiles.

    Profiles look like email=<email>&uid=10&role=user. Email addresses are
    chosen to put "role=" at the end of a block, "admin" at the start of a
    block, and a whole block of padding at the end of a profile.
    """
    head_length = len("email=")
    tail_length = len("&uid=10&role=")

    email1 = "a" * (-(head_length + tail_length) % block_size)
    head_block_count = (head_length + len(email1) + tail_length) // block_size
    head_blocks = chunks(oracle.encrypt_profile(email1), block_size)[:head_block_count]

    email2 = "a" * (-head_length % block_size) + "admin"
    admin_block = chunks(oracle.encrypt_profile(email2), block_size)[
        (head_length + len(email2) - len("admin")) // block_size]

    email3 = "a" * (-(head_length + tail_length + len("user")) % block_size)
    padding_block = chunks(oracle.encrypt_profile(email3), block_size)[-1]

    return b"".join(head_blocks) + admin_block + padding_block
