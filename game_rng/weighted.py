"""Weighted random selection.

Every variant picks an item with probability proportional to its weight and
shares one policy: if the weights add up to zero there is nothing to pick,
and a "no selection" value comes back (``None``, ``-1`` or a caller-supplied
default) instead of an exception.

Weights must be non-negative.  Negative weights are not detected; the result
is unspecified.

The argument-list and iterable variants use single-slot reservoir sampling:
one forward pass, keeping a running total, replacing the current pick with
chance ``weight / total``.  They never materialise the input, so they work on
generators that enumerate candidates lazily.
"""

from __future__ import annotations

from numbers import Integral
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Hashable,
    Iterable,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

import structlog

from game_rng.streams import Stream

if TYPE_CHECKING:
    from game_rng.core import GameRNG

log = structlog.get_logger(__name__)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)
Weight = Union[int, float]


def _require_rng(rng: Optional["GameRNG"], caller: str) -> "GameRNG":
    if rng is None:
        log.error("Weighted choice attempted without RNG instance!", caller=caller)
        raise ValueError(f"RNG instance is required for {caller}.")
    return rng


def _draw_below(
    rng: "GameRNG", total: Weight, stream: Optional[Stream]
) -> Weight:
    if isinstance(total, Integral):
        return rng.random2(int(total), stream=stream)
    return rng.random_real(stream) * total


def choose_weighted(
    choices: Union[Mapping[K, Weight], Iterable[Tuple[T, Weight]]],
    rng: "GameRNG",
    stream: Optional[Stream] = None,
) -> Optional[Any]:
    """Pick a key of ``choices`` (or the first element of a pair).

    ``choices`` is either a ``key -> weight`` mapping or an iterable of
    ``(item, weight)`` pairs.  Returns ``None`` when every weight is zero.
    """
    rng = _require_rng(rng, "choose_weighted")
    pairs: Sequence[Tuple[Any, Weight]] = (
        list(choices.items()) if isinstance(choices, Mapping) else list(choices)
    )
    total = sum(weight for _, weight in pairs)
    if not total:
        return None
    r = _draw_below(rng, total, stream)
    running: Weight = 0
    last = None
    for item, weight in pairs:
        if weight <= 0:
            continue
        running += weight
        if running > r:
            return item
        last = item
    # float rounding can leave the running sum just short of the draw
    return last


def choose_weighted_index(
    weights: Sequence[Weight],
    rng: "GameRNG",
    stream: Optional[Stream] = None,
) -> int:
    """Index into a fixed weight array, or -1.

    Entries ``<= 0`` are skipped outright, as if absent.
    """
    rng = _require_rng(rng, "choose_weighted_index")
    total = sum(w for w in weights if w > 0)
    if not total:
        return -1
    r = _draw_below(rng, total, stream)
    running: Weight = 0
    last = -1
    for i, weight in enumerate(weights):
        if weight <= 0:
            continue
        running += weight
        if running > r:
            return i
        last = i
    return last


def choose_weighted_args(
    *pairs: Tuple[Weight, T],
    rng: "GameRNG",
    stream: Optional[Stream] = None,
) -> Optional[T]:
    """Pick among ``(weight, value)`` pairs passed positionally.

    >>> choose_weighted_args((10, "sword"), (5, "axe"), (1, "artefact"), rng=rng)
    """
    rng = _require_rng(rng, "choose_weighted_args")
    total: Weight = 0
    current: Optional[T] = None
    for weight, value in pairs:
        total += weight
        if weight > 0 and rng.x_chance_in_y(weight, total, stream=stream):
            current = value
    return current


def _reservoir(
    iterable: Iterable[T],
    weight: Callable[[T], Weight],
    rng: "GameRNG",
    stream: Optional[Stream],
) -> Tuple[int, Optional[T]]:
    total: Weight = 0
    chosen_pos = -1
    chosen: Optional[T] = None
    for pos, item in enumerate(iterable):
        w = weight(item)
        total += w
        if rng.x_chance_in_y(w, total, stream=stream):
            chosen_pos, chosen = pos, item
    return chosen_pos, chosen


def choose_weighted_iter(
    iterable: Iterable[T],
    weight: Callable[[T], Weight],
    rng: "GameRNG",
    default: Optional[T] = None,
    stream: Optional[Stream] = None,
) -> Optional[T]:
    """Weighted pick from any iterable in one pass.

    Returns ``default`` when the total weight is zero (including an empty
    iterable).  The iterable must be finite for the call to return.
    """
    rng = _require_rng(rng, "choose_weighted_iter")
    pos, chosen = _reservoir(iterable, weight, rng, stream)
    return chosen if pos >= 0 else default


def choose_weighted_position(
    iterable: Iterable[T],
    weight: Callable[[T], Weight],
    rng: "GameRNG",
    stream: Optional[Stream] = None,
) -> int:
    """Like :func:`choose_weighted_iter` but returns the position, or -1."""
    rng = _require_rng(rng, "choose_weighted_position")
    pos, _ = _reservoir(iterable, weight, rng, stream)
    return pos


def choose_random_weighted(
    weights: Iterable[Weight],
    rng: "GameRNG",
    stream: Optional[Stream] = None,
) -> int:
    """Index of a weighted pick from an iterable of weights.

    The caller guarantees at least one positive weight; an empty or
    all-zero input raises ``ValueError``.
    """
    rng = _require_rng(rng, "choose_random_weighted")
    pos = choose_weighted_position(weights, lambda w: w, rng, stream=stream)
    if pos < 0:
        log.error("choose_random_weighted found no positive weight")
        raise ValueError("choose_random_weighted needs at least one positive weight")
    return pos


__all__ = [
    "choose_weighted",
    "choose_weighted_index",
    "choose_weighted_args",
    "choose_weighted_iter",
    "choose_weighted_position",
    "choose_random_weighted",
]
