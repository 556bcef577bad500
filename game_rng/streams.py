"""Named random streams and the registry that owns their generators.

Each :class:`Stream` gets its own ``numpy.random.PCG64`` bit generator.  The
registry is the only thing that touches generator state; everything else in
:mod:`game_rng` asks it for raw 32- or 64-bit values.

Seeding comes in three flavours, mirroring how the game uses them:

* ``seed(stream)`` picks a fresh 32-bit seed from system entropy and
  remembers it so it can be logged and replayed.
* ``seed(stream, 1234)`` is fully deterministic.  The scalar is mixed with
  the stream index, so the same number on two streams still gives two
  unrelated sequences.
* ``seed(stream, (state, inc))`` restores an exact PCG64 state exported by
  :meth:`RNGRegistry.get_state` (save games).
"""

from __future__ import annotations

import random
from enum import IntEnum
from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

import numpy as np
import structlog

log = structlog.get_logger(__name__)

MASK32 = 0xFFFFFFFF
MASK128 = (1 << 128) - 1

# The TEST stream never reads entropy.
TEST_STREAM_SEED = 0x5EED

SeedArg = Union[None, int, Sequence[int]]


class Stream(IntEnum):
    """Independent randomness domains."""

    GAMEPLAY = 0  # anything that can change the outcome of a game
    UI = 1  # menus, tooltips, previews
    COSMETIC = 2  # flavour text, animation jitter
    TEST = 3  # always fixed-seeded

    @classmethod
    def from_name(cls, name: Union[str, "Stream"]) -> "Stream":
        if isinstance(name, Stream):
            return name
        try:
            return cls[str(name).strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown RNG stream: {name!r}") from None


def _entropy_seed() -> int:
    return random.randint(0, MASK32)


class BitSource:
    """Adapter around one PCG64 generator.

    Only two draws are exposed, and each advances the generator exactly
    once; there is no peeking or rewinding.
    """

    def __init__(self, stream: Stream, seed: SeedArg = None) -> None:
        self.stream = stream
        self.initial_seed: Optional[int] = None
        self.draws = 0
        self._bitgen: np.random.PCG64
        self.seed(seed)

    def seed(self, seed: SeedArg = None) -> None:
        if seed is None:
            seed = TEST_STREAM_SEED if self.stream is Stream.TEST else _entropy_seed()
        if isinstance(seed, (int, np.integer)):
            scalar = int(seed) & MASK32
            self._bitgen = np.random.PCG64(
                np.random.SeedSequence([scalar, int(self.stream)])
            )
            self.initial_seed = scalar
        else:
            self._restore(seed)
            self.initial_seed = None
        self.draws = 0

    def _restore(self, state: Iterable[int]) -> None:
        values = [int(v) for v in state]
        if len(values) != 2:
            raise ValueError(
                f"State vector for {self.stream.name} must be (state, inc), "
                f"got {len(values)} values"
            )
        bitgen = np.random.PCG64(0)
        bitgen.state = {
            "bit_generator": "PCG64",
            "state": {"state": values[0] & MASK128, "inc": values[1] & MASK128},
            "has_uint32": 0,
            "uinteger": 0,
        }
        self._bitgen = bitgen

    @property
    def state(self) -> Tuple[int, int]:
        inner = self._bitgen.state["state"]
        return int(inner["state"]), int(inner["inc"])

    def next_u64(self) -> int:
        self.draws += 1
        return int(self._bitgen.random_raw())

    def next_u32(self) -> int:
        self.draws += 1
        return int(self._bitgen.random_raw()) >> 32


class RNGRegistry:
    """Owns one :class:`BitSource` per :class:`Stream`."""

    def __init__(self, seed: Optional[int] = None) -> None:
        self._sources: Dict[Stream, BitSource] = {
            stream: BitSource(stream, seed) for stream in Stream
        }
        log.debug(
            "RNG registry created",
            seeds={s.name: src.initial_seed for s, src in self._sources.items()},
        )

    def source(self, stream: Stream) -> BitSource:
        return self._sources[Stream(stream)]

    def seed(self, stream: Stream, seed: SeedArg = None) -> None:
        src = self.source(stream)
        src.seed(seed)
        if src.initial_seed is None:
            log.info("RNG stream state restored", stream=src.stream.name)
        else:
            log.debug("RNG stream seeded", stream=src.stream.name, seed=src.initial_seed)

    def seed_all(self, seed: Optional[int] = None) -> None:
        for stream in Stream:
            self.seed(stream, seed)

    def next_u32(self, stream: Stream = Stream.GAMEPLAY) -> int:
        return self._sources[stream].next_u32()

    def next_u64(self, stream: Stream = Stream.GAMEPLAY) -> int:
        return self._sources[stream].next_u64()

    def get_state(self, stream: Stream) -> Tuple[int, int]:
        return self.source(stream).state

    def initial_seed(self, stream: Stream) -> Optional[int]:
        return self.source(stream).initial_seed

    def draw_count(self, stream: Stream) -> int:
        return self.source(stream).draws


__all__ = ["Stream", "BitSource", "RNGRegistry", "TEST_STREAM_SEED"]
