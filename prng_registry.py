#!/usr/bin/env python3
"""
PRNG Registry - Supported generator variants for seed/state recovery
=====================================================================

Every variant carries:
  - a CPU reference (pure Python, one seed at a time)
  - a numpy batch kernel (many seeds at once, bit-identical to the reference)
  - optionally a state inverter and a generator that resumes from the
    recovered state

The registry order is stable; the first entry is the default PRNG.

Usage:
    from prng_registry import generate, generate_batch, invert_state

    outputs = generate('mt19937', 12345, 10)
    block = generate_batch('mt19937', np.arange(1000, 2000), 10)
    state = invert_state('mt19937', observed[:624])
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from recovery.errors import (
    ConfigurationError,
    InferenceMismatch,
    InsufficientWindow,
    UnsupportedOperation,
)

logger = logging.getLogger(__name__)

MASK32 = 0xFFFFFFFF
SEED_SPACE_END = 1 << 32


# ============================================================================
# STATE CONTAINER
# ============================================================================

@dataclass(frozen=True)
class RecoveredState:
    """Internal generator state positioned right after an observation window."""
    prng: str
    words: Tuple[int, ...]
    index: int = 0


# ============================================================================
# MERSENNE TWISTER FAMILY (mt19937, php-mt_rand, ruby-rand)
# ============================================================================

MT_N = 624
MT_M = 397
MT_MATRIX_A = 0x9908B0DF
MT_UPPER_MASK = 0x80000000
MT_LOWER_MASK = 0x7FFFFFFF
MT_TEMPER_B = 0x9D2C5680
MT_TEMPER_C = 0xEFC60000


def _mt_init_genrand(seed: int) -> List[int]:
    state = [0] * MT_N
    state[0] = seed & MASK32
    for i in range(1, MT_N):
        prev = state[i - 1]
        state[i] = (1812433253 * (prev ^ (prev >> 30)) + i) & MASK32
    return state


def _mt_twist(state: List[int]) -> None:
    for i in range(MT_N):
        y = (state[i] & MT_UPPER_MASK) | (state[(i + 1) % MT_N] & MT_LOWER_MASK)
        mag = MT_MATRIX_A if y & 1 else 0
        state[i] = state[(i + MT_M) % MT_N] ^ (y >> 1) ^ mag


def _mt_temper(y: int) -> int:
    y ^= y >> 11
    y ^= (y << 7) & MT_TEMPER_B
    y ^= (y << 15) & MT_TEMPER_C
    y ^= y >> 18
    return y & MASK32


def _undo_xor_shift(value: int, shift: int, mask: int = MASK32) -> int:
    """
    Invert ``value ^= (value >> shift) & mask``.

    A negative shift inverts the left-shift form. Each round recovers another
    ``abs(shift)`` bits, so ceil(32 / abs(shift)) - 1 rounds are enough.
    """
    rounds = -(-32 // abs(shift)) - 1
    result = value
    for _ in range(rounds):
        shifted = result >> shift if shift > 0 else result << -shift
        result = value ^ (shifted & mask)
    return result & MASK32


def _mt_untemper(y: int) -> int:
    y = _undo_xor_shift(y, 18)
    y = _undo_xor_shift(y, -15, MT_TEMPER_C)
    y = _undo_xor_shift(y, -7, MT_TEMPER_B)
    return _undo_xor_shift(y, 11)


def _mt_extract(state: List[int], index: int, n: int) -> Tuple[List[int], int]:
    """Draw n tempered outputs, twisting in place. Returns (outputs, new index)."""
    outputs = []
    for _ in range(n):
        if index >= MT_N:
            _mt_twist(state)
            index = 0
        outputs.append(_mt_temper(state[index]))
        index += 1
    return outputs, index


def mt19937_cpu(seed: int, n: int) -> List[int]:
    """MT19937 with init_genrand seeding (std::mt19937)."""
    outputs, _ = _mt_extract(_mt_init_genrand(seed), MT_N, n)
    return outputs


def php_mt_rand_cpu(seed: int, n: int) -> List[int]:
    """PHP >= 7.1 mt_rand(): the MT19937 stream with the low bit dropped."""
    return [value >> 1 for value in mt19937_cpu(seed, n)]


def ruby_rand_cpu(seed: int, n: int) -> List[int]:
    """
    Ruby Random.new(seed) 32-bit draws.

    A seed that fits in one word is seeded with init_genrand, so the stream
    is the std::mt19937 one.
    """
    outputs, _ = _mt_extract(_mt_init_genrand(seed), MT_N, n)
    return outputs


def mt_invert(prng: str, window: Sequence[int]) -> RecoveredState:
    """Untemper MT_N consecutive outputs back into the 624-word state."""
    words = tuple(_mt_untemper(value & MASK32) for value in window[:MT_N])
    return RecoveredState(prng=prng, words=words, index=MT_N)


def mt_resume(state: RecoveredState, n: int) -> Tuple[List[int], RecoveredState]:
    assert len(state.words) == MT_N, f"MT state must hold {MT_N} words"
    words = list(state.words)
    outputs, index = _mt_extract(words, state.index, n)
    return outputs, RecoveredState(prng=state.prng, words=tuple(words), index=index)


# ---- numpy batch kernels --------------------------------------------------

_U32 = np.uint32
_TWIST_BLOCKS = ((0, MT_N - MT_M), (MT_N - MT_M, 2 * (MT_N - MT_M)),
                 (2 * (MT_N - MT_M), MT_N - 1), (MT_N - 1, MT_N))


def _mt_init_genrand_batch(seeds: np.ndarray) -> np.ndarray:
    state = np.empty((len(seeds), MT_N), dtype=np.uint32)
    state[:, 0] = seeds
    for i in range(1, MT_N):
        prev = state[:, i - 1]
        state[:, i] = _U32(1812433253) * (prev ^ (prev >> _U32(30))) + _U32(i)
    return state


def _mt_twist_batch(state: np.ndarray) -> None:
    # Each block only reads words that earlier blocks already rewrote, or
    # words the sequential twist would still see unmodified.
    for lo, hi in _TWIST_BLOCKS:
        idx = np.arange(lo, hi)
        y = (state[:, idx] & _U32(MT_UPPER_MASK)) | (state[:, (idx + 1) % MT_N] & _U32(MT_LOWER_MASK))
        state[:, idx] = state[:, (idx + MT_M) % MT_N] ^ (y >> _U32(1)) ^ ((y & _U32(1)) * _U32(MT_MATRIX_A))


def _mt_temper_batch(y: np.ndarray) -> np.ndarray:
    y = y ^ (y >> _U32(11))
    y = y ^ ((y << _U32(7)) & _U32(MT_TEMPER_B))
    y = y ^ ((y << _U32(15)) & _U32(MT_TEMPER_C))
    return y ^ (y >> _U32(18))


def _mt_extract_batch(state: np.ndarray, n: int) -> np.ndarray:
    outputs = np.empty((state.shape[0], n), dtype=np.uint32)
    filled = 0
    while filled < n:
        _mt_twist_batch(state)
        take = min(MT_N, n - filled)
        outputs[:, filled:filled + take] = _mt_temper_batch(state[:, :take])
        filled += take
    return outputs


def mt19937_batch(seeds: np.ndarray, n: int) -> np.ndarray:
    return _mt_extract_batch(_mt_init_genrand_batch(seeds), n)


def php_mt_rand_batch(seeds: np.ndarray, n: int) -> np.ndarray:
    return mt19937_batch(seeds, n) >> _U32(1)


def ruby_rand_batch(seeds: np.ndarray, n: int) -> np.ndarray:
    return _mt_extract_batch(_mt_init_genrand_batch(seeds), n)


# ============================================================================
# GLIBC rand() - TYPE_3 additive feedback generator
# ============================================================================

GLIBC_DEGREE = 31
GLIBC_SEP = 3
GLIBC_DISCARD = 344
GLIBC_MODULUS = 2147483647


def _glibc_signed_seed(seed: int) -> int:
    seed &= MASK32
    if seed == 0:
        seed = 1
    return seed - SEED_SPACE_END if seed & 0x80000000 else seed


def glibc_rand_cpu(seed: int, n: int) -> List[int]:
    """glibc srand(seed) followed by n calls to rand()."""
    word = _glibc_signed_seed(seed)
    r = [word & MASK32]
    for _ in range(1, GLIBC_DEGREE):
        word = (16807 * word) % GLIBC_MODULUS
        r.append(word)
    for i in range(GLIBC_DEGREE, GLIBC_DEGREE + GLIBC_SEP):
        r.append(r[i - GLIBC_DEGREE])
    outputs = []
    for i in range(GLIBC_DEGREE + GLIBC_SEP, GLIBC_DISCARD + n):
        r.append((r[i - GLIBC_DEGREE] + r[i - GLIBC_SEP]) & MASK32)
        if i >= GLIBC_DISCARD:
            outputs.append(r[i] >> 1)
    return outputs


def glibc_rand_batch(seeds: np.ndarray, n: int) -> np.ndarray:
    words = seeds.astype(np.int64)
    words[words == 0] = 1
    words = np.where(words >= 0x80000000, words - SEED_SPACE_END, words)
    total = GLIBC_DISCARD + n
    r = np.empty((len(seeds), total), dtype=np.uint32)
    r[:, 0] = (words & MASK32).astype(np.uint32)
    for i in range(1, GLIBC_DEGREE):
        words = (16807 * words) % GLIBC_MODULUS
        r[:, i] = words.astype(np.uint32)
    r[:, GLIBC_DEGREE:GLIBC_DEGREE + GLIBC_SEP] = r[:, :GLIBC_SEP]
    # r[i] only looks GLIBC_SEP back, so GLIBC_SEP columns can be filled at once
    for i in range(GLIBC_DEGREE + GLIBC_SEP, total, GLIBC_SEP):
        hi = min(i + GLIBC_SEP, total)
        r[:, i:hi] = r[:, i - GLIBC_DEGREE:hi - GLIBC_DEGREE] + r[:, i - GLIBC_SEP:hi - GLIBC_SEP]
    return r[:, GLIBC_DISCARD:] >> _U32(1)


# ============================================================================
# java.util.Random - 48-bit LCG
# ============================================================================

JAVA_MULTIPLIER = 0x5DEECE66D
JAVA_ADDEND = 0xB
JAVA_MASK = (1 << 48) - 1


def java_random_cpu(seed: int, n: int) -> List[int]:
    """new java.util.Random(seed).nextInt(), reported as unsigned 32-bit."""
    state = (seed ^ JAVA_MULTIPLIER) & JAVA_MASK
    outputs = []
    for _ in range(n):
        state = (state * JAVA_MULTIPLIER + JAVA_ADDEND) & JAVA_MASK
        outputs.append(state >> 16)
    return outputs


def java_random_batch(seeds: np.ndarray, n: int) -> np.ndarray:
    state = (seeds.astype(np.uint64) ^ np.uint64(JAVA_MULTIPLIER)) & np.uint64(JAVA_MASK)
    outputs = np.empty((len(seeds), n), dtype=np.uint32)
    for k in range(n):
        state = (state * np.uint64(JAVA_MULTIPLIER) + np.uint64(JAVA_ADDEND)) & np.uint64(JAVA_MASK)
        outputs[:, k] = (state >> np.uint64(16)).astype(np.uint32)
    return outputs


def java_invert(prng: str, window: Sequence[int]) -> RecoveredState:
    """
    Rebuild the 48-bit state from two consecutive outputs.

    The first output fixes the top 32 bits; the 16 low bits are the ones
    whose successor emits the second output.
    """
    first, second = window[0] & MASK32, window[1] & MASK32
    low_bits = np.arange(1 << 16, dtype=np.uint64)
    candidates = (np.uint64(first) << np.uint64(16)) | low_bits
    successors = (candidates * np.uint64(JAVA_MULTIPLIER) + np.uint64(JAVA_ADDEND)) & np.uint64(JAVA_MASK)
    hits = np.nonzero((successors >> np.uint64(16)) == np.uint64(second))[0]
    if len(hits) == 0:
        raise InferenceMismatch(prng, 1)
    if len(hits) > 1:
        logger.debug("%d java state candidates match, keeping the first", len(hits))
    return RecoveredState(prng=prng, words=(int(successors[hits[0]]),))


def java_resume(state: RecoveredState, n: int) -> Tuple[List[int], RecoveredState]:
    current = state.words[0]
    outputs = []
    for _ in range(n):
        current = (current * JAVA_MULTIPLIER + JAVA_ADDEND) & JAVA_MASK
        outputs.append(current >> 16)
    return outputs, RecoveredState(prng=state.prng, words=(current,))


# ============================================================================
# MSVC rand() - 32-bit LCG with 15-bit output
# ============================================================================

MSVC_MULTIPLIER = 214013
MSVC_ADDEND = 2531011


def msvc_rand_cpu(seed: int, n: int) -> List[int]:
    state = seed & MASK32
    outputs = []
    for _ in range(n):
        state = (state * MSVC_MULTIPLIER + MSVC_ADDEND) & MASK32
        outputs.append((state >> 16) & 0x7FFF)
    return outputs


def msvc_rand_batch(seeds: np.ndarray, n: int) -> np.ndarray:
    state = seeds.astype(np.uint32)
    outputs = np.empty((len(seeds), n), dtype=np.uint32)
    for k in range(n):
        state = state * _U32(MSVC_MULTIPLIER) + _U32(MSVC_ADDEND)
        outputs[:, k] = (state >> _U32(16)) & _U32(0x7FFF)
    return outputs


# ============================================================================
# PRNG REGISTRY
# ============================================================================

@dataclass(frozen=True)
class PRNGVariant:
    name: str
    description: str
    cpu_reference: Callable[[int, int], List[int]]
    batch_kernel: Callable[[np.ndarray, int], np.ndarray]
    window_size: int = 0
    inverter: Optional[Callable[[str, Sequence[int]], RecoveredState]] = None
    resume: Optional[Callable[[RecoveredState, int], Tuple[List[int], RecoveredState]]] = None
    output_bits: int = 32

    @property
    def invertible(self) -> bool:
        return self.inverter is not None


PRNG_REGISTRY: Dict[str, PRNGVariant] = {
    'mt19937': PRNGVariant(
        name='mt19937',
        description='Mersenne Twister MT19937 (std::mt19937, init_genrand seeding)',
        cpu_reference=mt19937_cpu,
        batch_kernel=mt19937_batch,
        window_size=MT_N,
        inverter=mt_invert,
        resume=mt_resume,
    ),
    'glibc-rand': PRNGVariant(
        name='glibc-rand',
        description='glibc srand()/rand() additive feedback generator',
        cpu_reference=glibc_rand_cpu,
        batch_kernel=glibc_rand_batch,
        output_bits=31,
    ),
    'php-mt_rand': PRNGVariant(
        name='php-mt_rand',
        description='PHP >= 7.1 mt_srand()/mt_rand() (MT19937 >> 1)',
        cpu_reference=php_mt_rand_cpu,
        batch_kernel=php_mt_rand_batch,
        output_bits=31,
    ),
    'ruby-rand': PRNGVariant(
        name='ruby-rand',
        description='Ruby Random.new(seed).rand(2**32) (MT19937, init_genrand seeding)',
        cpu_reference=ruby_rand_cpu,
        batch_kernel=ruby_rand_batch,
        window_size=MT_N,
        inverter=mt_invert,
        resume=mt_resume,
    ),
    'java-util-random': PRNGVariant(
        name='java-util-random',
        description='java.util.Random nextInt() (48-bit LCG)',
        cpu_reference=java_random_cpu,
        batch_kernel=java_random_batch,
        window_size=2,
        inverter=java_invert,
        resume=java_resume,
    ),
    'msvc-rand': PRNGVariant(
        name='msvc-rand',
        description='Microsoft C runtime srand()/rand() (15-bit LCG output)',
        cpu_reference=msvc_rand_cpu,
        batch_kernel=msvc_rand_batch,
        output_bits=15,
    ),
}


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def list_available_prngs() -> List[str]:
    """List all PRNG names; the first one is the default."""
    return list(PRNG_REGISTRY.keys())


def default_prng() -> str:
    return list_available_prngs()[0]


def is_supported(prng: str) -> bool:
    return prng in PRNG_REGISTRY


def get_prng_info(prng: str) -> PRNGVariant:
    """Get the registry entry for a PRNG name."""
    if prng not in PRNG_REGISTRY:
        raise ConfigurationError(f"Unknown PRNG: {prng}. Available: {list_available_prngs()}")
    return PRNG_REGISTRY[prng]


def get_cpu_reference(prng: str) -> Callable[[int, int], List[int]]:
    return get_prng_info(prng).cpu_reference


def generate(prng: str, seed: int, depth: int) -> List[int]:
    """First `depth` outputs of `prng` seeded with `seed`."""
    return get_prng_info(prng).cpu_reference(seed & MASK32, depth)


def generate_batch(prng: str, seeds, depth: int) -> np.ndarray:
    """Outputs for many seeds at once, shape (len(seeds), depth), dtype uint32."""
    seeds = np.asarray(seeds, dtype=np.uint64) & np.uint64(MASK32)
    return get_prng_info(prng).batch_kernel(seeds.astype(np.uint32), depth)


def supports_inversion(prng: str) -> bool:
    return get_prng_info(prng).invertible


def window_size(prng: str) -> int:
    return get_prng_info(prng).window_size


def invert_state(prng: str, window: Sequence[int]) -> RecoveredState:
    """
    Recover the internal state from `window`, a run of consecutive outputs.

    Only the first window_size(prng) values are used. Raises
    UnsupportedOperation for variants whose output transform loses bits and
    InsufficientWindow when the run is too short.
    """
    info = get_prng_info(prng)
    if not info.invertible:
        raise UnsupportedOperation(f"{prng} output cannot be inverted into its state")
    if len(window) < info.window_size:
        raise InsufficientWindow(prng, info.window_size, len(window))
    return info.inverter(prng, window)


def _resume(state: RecoveredState, depth: int) -> Tuple[List[int], RecoveredState]:
    info = get_prng_info(state.prng)
    if info.resume is None:
        raise UnsupportedOperation(f"{state.prng} cannot resume from a recovered state")
    return info.resume(state, depth)


def generate_from_state(state: RecoveredState, depth: int) -> List[int]:
    """Continue generating from a recovered state; the state is not modified."""
    outputs, _ = _resume(state, depth)
    return outputs


def advance_state(state: RecoveredState, steps: int) -> RecoveredState:
    """The state after `steps` more outputs have been drawn."""
    _, advanced = _resume(state, steps)
    return advanced


if __name__ == '__main__':
    print("PRNG Registry")
    print("=" * 50)
    print("\nAvailable PRNGs:")
    for name in list_available_prngs():
        info = get_prng_info(name)
        inversion = f"invertible from {info.window_size} outputs" if info.invertible else "bruteforce only"
        print(f"  {name:18} - {info.description}")
        print(f"  {'':18}   {info.output_bits}-bit output, {inversion}")
