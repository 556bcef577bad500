"""Deferred random trees.

A :class:`DeferRand` is an infinite tree of random fractions in [0, 1).
Nothing is drawn until a node is first asked a question; from then on that
node's answers are fixed for the lifetime of the tree.  The node stores the
fraction, not any particular integer, so the argument scale never matters::

    node.x_chance_in_y(1, 2) == node.x_chance_in_y(50, 100)
    node.random2(10) == node.random2(100) // 10

and ``random2`` is monotonic in its argument.  Indexing a node gives a child
with its own independent fraction, which lets callers key stable decisions
by path, e.g. ``traps[x][y].one_chance_in(20)``.

The fraction is kept as a list of 32-bit words forming an exact binary
expansion.  Most questions are decided by the first word; a further word is
drawn only when the answer is still undecided at the current precision.
Words are only ever appended, so earlier answers never change.
"""

from __future__ import annotations

from fractions import Fraction
from typing import TYPE_CHECKING, Dict, Iterator, List, Optional, Union

import structlog

from game_rng.streams import Stream

if TYPE_CHECKING:
    from game_rng.core import GameRNG

log = structlog.get_logger(__name__)

WORD_BITS = 32

Ratio = Union[int, float, Fraction]


class DeferRand:
    """One node of a deferred random tree; the root is the whole tree."""

    __slots__ = ("rng", "stream", "_words", "_children")

    def __init__(self, rng: "GameRNG", stream: Optional[Stream] = None) -> None:
        if rng is None:
            log.error("DeferRand created without RNG instance!")
            raise ValueError("RNG instance is required for DeferRand.")
        self.rng = rng
        self.stream = rng.default_stream if stream is None else Stream(stream)
        self._words: List[int] = []
        self._children: Dict[int, DeferRand] = {}

    # ------------------------------------------------------------------
    # fraction bookkeeping
    # ------------------------------------------------------------------
    def _extend(self) -> None:
        self._words.append(self.rng.get_uint32(self.stream))

    def _prefix(self) -> tuple[int, int]:
        """Numerator and bit count of the known part of the fraction."""
        if not self._words:
            self._extend()
        value = 0
        for word in self._words:
            value = (value << WORD_BITS) | word
        return value, WORD_BITS * len(self._words)

    @property
    def resolved(self) -> bool:
        return bool(self._words)

    @property
    def fraction(self) -> float:
        """Float view of the fraction; resolves the node if needed."""
        value, bits = self._prefix()
        return value / (1 << bits)

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def x_chance_in_y(self, x: Ratio, y: Ratio) -> bool:
        """True iff this node's fraction is below x/y."""
        if x <= 0:
            return False
        if x >= y:
            return True
        ratio = Fraction(x) / Fraction(y)
        num, den = ratio.numerator, ratio.denominator
        value, bits = self._prefix()
        while True:
            bound = num << bits
            if bound <= value * den:
                return False
            if (value + 1) * den <= bound:
                return True
            self._extend()
            value, bits = self._prefix()

    def one_chance_in(self, a_million: Ratio) -> bool:
        return self.x_chance_in_y(1, a_million)

    def random2(self, maxp1: int) -> int:
        """floor(fraction * maxp1); 0 when ``maxp1 <= 1``."""
        if maxp1 <= 1:
            return 0
        value, bits = self._prefix()
        while True:
            low = (value * maxp1) >> bits
            high = ((value + 1) * maxp1 - 1) >> bits
            if low == high:
                return low
            self._extend()
            value, bits = self._prefix()

    def random_range(self, low: int, high: int) -> int:
        if low > high:
            raise ValueError(f"random_range: low ({low}) > high ({high})")
        return low + self.random2(high - low + 1)

    def random2avg(self, max_value: int, rolls: int) -> int:
        """Mean of ``rolls`` draws, each taken from its own child node."""
        if rolls < 1:
            raise ValueError("random2avg: rolls must be positive")
        total = self[0].random2(max_value)
        for i in range(1, rolls):
            total += self[i].random2(max_value + 1)
        return total // rolls

    # ------------------------------------------------------------------
    # children
    # ------------------------------------------------------------------
    def __getitem__(self, key: int) -> "DeferRand":
        child = self._children.get(key)
        if child is None:
            child = DeferRand(self.rng, self.stream)
            self._children[key] = child
        return child

    child = __getitem__

    def __contains__(self, key: int) -> bool:
        return key in self._children

    def __len__(self) -> int:
        return len(self._children)

    def __iter__(self) -> Iterator[int]:
        return iter(self._children)

    def node_count(self) -> int:
        """Nodes in this subtree, this one included."""
        count = 0
        pending = [self]
        while pending:
            node = pending.pop()
            count += 1
            pending.extend(node._children.values())
        return count

    def __repr__(self) -> str:
        state = f"fraction={self.fraction:.6f}" if self.resolved else "unborn"
        return f"<DeferRand {state} children={len(self._children)}>"


__all__ = ["DeferRand"]
