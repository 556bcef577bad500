"""In-place Fisher-Yates shuffle."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, MutableSequence, Optional

import structlog

from game_rng.streams import Stream

if TYPE_CHECKING:
    from game_rng.core import GameRNG

log = structlog.get_logger(__name__)


def shuffle_array(
    seq: MutableSequence[Any],
    rng: "GameRNG",
    start: int = 0,
    end: Optional[int] = None,
    stream: Optional[Stream] = None,
) -> None:
    """Uniformly permute ``seq[start:end]`` in place.

    Works on lists and 1-D numpy arrays; any random-access sequence that
    supports item assignment will do.
    """
    if rng is None:
        log.error("Shuffle attempted without RNG instance!")
        raise ValueError("RNG instance is required for shuffle_array.")
    if end is None:
        end = len(seq)
    n = end - start
    while n > 1:
        i = start + rng.random2(n, stream=stream)
        n -= 1
        j = start + n
        seq[i], seq[j] = seq[j], seq[i]


__all__ = ["shuffle_array"]
