from __future__ import annotations

"""GameRNG: the probability primitives used by game rules.

Every helper draws from a :class:`~game_rng.streams.RNGRegistry` owned by the
``GameRNG`` instance, so two instances never share state and a game can be
replayed exactly by reseeding.  All helpers take an optional ``stream``
keyword; ``None`` means the current default stream (``Stream.GAMEPLAY``
unless changed with :meth:`GameRNG.use_stream`).

Degenerate bounds are not errors: ``random2(0)`` is 0, ``x_chance_in_y(0, y)``
is False.  Inverted ranges and non-positive roll counts are programming
errors and raise ``ValueError``.
"""

import math
from contextlib import contextmanager
from itertools import islice
from numbers import Integral
from typing import (
    Any,
    Dict,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

import structlog

from game_rng.streams import MASK32, RNGRegistry, Stream

log = structlog.get_logger(__name__)

T = TypeVar("T")
Number = Union[int, float]

_TWO_POW_32 = 1 << 32
_TWO_POW_64 = 1 << 64
_REAL_SCALE = 1.0 / (1 << 53)


def _trunc_div(num: int, den: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(num) // abs(den)
    return q if (num >= 0) == (den > 0) else -q


def div_round_up(num: int, den: int) -> int:
    """Ceiling of ``num / den``; no randomness involved."""
    return -(-num // den)


class GameRNG:
    def __init__(
        self,
        seed: Optional[int] = None,
        registry: Optional[RNGRegistry] = None,
        default_stream: Stream = Stream.GAMEPLAY,
    ) -> None:
        self.registry = registry if registry is not None else RNGRegistry(seed)
        self.default_stream = Stream(default_stream)
        self.initial_seed = self.registry.initial_seed(Stream.GAMEPLAY)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "GameRNG":
        """Build an instance from a mapping shaped like ``DEFAULT_RNG_CONFIG``."""
        rng = cls(
            seed=config.get("seed"),
            default_stream=Stream.from_name(config.get("default_stream", "gameplay")),
        )
        for name, value in (config.get("streams") or {}).items():
            rng.registry.seed(Stream.from_name(name), value)
        rng.initial_seed = rng.registry.initial_seed(Stream.GAMEPLAY)
        log.info(
            "GameRNG configured",
            seed=rng.initial_seed,
            default_stream=rng.default_stream.name,
        )
        return rng

    def _stream(self, stream: Optional[Stream]) -> Stream:
        return self.default_stream if stream is None else Stream(stream)

    @contextmanager
    def use_stream(self, stream: Stream) -> Iterator["GameRNG"]:
        """Temporarily route draws without an explicit stream to ``stream``."""
        previous = self.default_stream
        self.default_stream = Stream(stream)
        try:
            yield self
        finally:
            self.default_stream = previous

    # ------------------------------------------------------------------
    # raw draws
    # ------------------------------------------------------------------
    def get_uint32(self, stream: Optional[Stream] = None) -> int:
        return self.registry.next_u32(self._stream(stream))

    def get_uint64(self, stream: Optional[Stream] = None) -> int:
        return self.registry.next_u64(self._stream(stream))

    def random_real(self, stream: Optional[Stream] = None) -> float:
        """Uniform float in [0, 1) built from the top 53 bits of a draw."""
        return (self.get_uint64(stream) >> 11) * _REAL_SCALE

    # ------------------------------------------------------------------
    # integers
    # ------------------------------------------------------------------
    def random2(self, max_value: int, stream: Optional[Stream] = None) -> int:
        """Uniform integer in [0, max_value); 0 when ``max_value <= 1``."""
        if max_value <= 1:
            return 0
        s = self._stream(stream)
        if max_value <= MASK32:
            draw, span = self.registry.next_u32, _TWO_POW_32
        elif max_value <= _TWO_POW_64:
            draw, span = self.registry.next_u64, _TWO_POW_64
        else:
            raise ValueError(f"random2 bound too large: {max_value}")
        # Rejection keeps every bucket the same size.
        partition = span // max_value
        while True:
            val = draw(s) // partition
            if val < max_value:
                return val

    def ui_random(self, max_value: int) -> int:
        return self.random2(max_value, stream=Stream.UI)

    def random_range(
        self,
        low: int,
        high: int,
        nrolls: int = 1,
        stream: Optional[Stream] = None,
    ) -> int:
        """Uniform integer in [low, high].

        With ``nrolls > 1`` the result is the rounded mean of that many
        draws, which pulls it toward the middle of the range.
        """
        if low > high:
            raise ValueError(f"random_range: low ({low}) > high ({high})")
        if nrolls < 1:
            raise ValueError("random_range: nrolls must be positive")
        span = high - low + 1
        if nrolls == 1:
            return low + self.random2(span, stream=stream)
        total = sum(self.random2(span, stream=stream) for _ in range(nrolls))
        return low + self.div_rand_round(total, nrolls, stream=stream)

    def random2avg(
        self, max_value: int, rolls: int, stream: Optional[Stream] = None
    ) -> int:
        if rolls < 1:
            raise ValueError("random2avg: rolls must be positive")
        total = self.random2(max_value, stream=stream)
        for _ in range(rolls - 1):
            total += self.random2(max_value + 1, stream=stream)
        return total // rolls

    def biased_random2(
        self, max_value: int, n: int, stream: Optional[Stream] = None
    ) -> int:
        """Integer in [0, max_value) strongly biased toward 0.

        Each step stops with chance n/(n+1), so larger ``n`` means more bias.
        """
        for i in range(max_value):
            if self.x_chance_in_y_int(n, n + 1, stream=stream):
                return i
        return 0

    def random2limit(
        self, max_value: int, limit: int, stream: Optional[Stream] = None
    ) -> int:
        """Count of ``max_value`` trials at limit/max_value (per mille).

        The result is in [0, max_value] and averages ``limit``.
        """
        if max_value < 1:
            return 0
        threshold = 1000 * limit // max_value
        return sum(
            1
            for _ in range(max_value)
            if self.random2(1000, stream=stream) < threshold
        )

    def binomial(
        self,
        n_trials: int,
        trial_prob: int,
        scale: int = 100,
        stream: Optional[Stream] = None,
    ) -> int:
        return sum(
            1
            for _ in range(n_trials)
            if self.x_chance_in_y_int(trial_prob, scale, stream=stream)
        )

    def fuzz_value(
        self,
        val: int,
        lowfuzz: int,
        highfuzz: int,
        naverage: int = 2,
        stream: Optional[Stream] = None,
    ) -> int:
        """Perturb ``val`` by between -lowfuzz% and +highfuzz%."""
        lfuzz = _trunc_div(lowfuzz * val, 100)
        hfuzz = _trunc_div(highfuzz * val, 100)
        return val + self.random2avg(lfuzz + hfuzz + 1, naverage, stream=stream) - lfuzz

    def roll_dice(self, num: int, size: int, stream: Optional[Stream] = None) -> int:
        """Sum of ``num`` dice with faces 1..size; 0 for empty dice."""
        if num <= 0 or size <= 0:
            return 0
        return num + sum(self.random2(size, stream=stream) for _ in range(num))

    # ------------------------------------------------------------------
    # chance tests
    # ------------------------------------------------------------------
    def coinflip(self, stream: Optional[Stream] = None) -> bool:
        return bool(self.random2(2, stream=stream))

    def x_chance_in_y_int(
        self, x: int, y: int, stream: Optional[Stream] = None
    ) -> bool:
        if x <= 0:
            return False
        if x >= y:
            return True
        return self.random2(y, stream=stream) < x

    def x_chance_in_y_real(
        self, x: float, y: float, stream: Optional[Stream] = None
    ) -> bool:
        if x <= 0:
            return False
        if x >= y:
            return True
        return self.random_real(stream) * y < x

    def x_chance_in_y(
        self, x: Number, y: Number, stream: Optional[Stream] = None
    ) -> bool:
        """True with probability x/y.

        Integer arguments take the integer path; if either argument is a
        non-integral type the real path is used, even for values like 2.0.
        """
        if isinstance(x, Integral) and isinstance(y, Integral):
            return self.x_chance_in_y_int(int(x), int(y), stream=stream)
        return self.x_chance_in_y_real(float(x), float(y), stream=stream)

    def one_chance_in(self, a_million: Number, stream: Optional[Stream] = None) -> bool:
        return self.x_chance_in_y(1, a_million, stream=stream)

    def decimal_chance(self, percent: float, stream: Optional[Stream] = None) -> bool:
        return self.x_chance_in_y_real(float(percent), 100.0, stream=stream)

    def bernoulli(
        self, n_trials: float, trial_prob: float, stream: Optional[Stream] = None
    ) -> bool:
        """True if at least one of ``n_trials`` trials succeeds.

        ``n_trials`` may be fractional: the chance of total failure is
        ``(1 - p) ** n``, which moves smoothly between the whole trial counts.
        """
        if n_trials <= 0 or trial_prob <= 0:
            return False
        fail = (1.0 - min(trial_prob, 1.0)) ** n_trials
        return self.x_chance_in_y_real(1.0 - fail, 1.0, stream=stream)

    # ------------------------------------------------------------------
    # rounding
    # ------------------------------------------------------------------
    def div_rand_round(self, num: int, den: int, stream: Optional[Stream] = None) -> int:
        """``num / den`` rounded to nearest; exact halves go either way 50/50."""
        if den == 0:
            raise ZeroDivisionError("div_rand_round: zero denominator")
        if den < 0:
            num, den = -num, -den
        quotient, rem = divmod(num, den)
        twice = 2 * rem
        if twice > den or (twice == den and self.coinflip(stream=stream)):
            quotient += 1
        return quotient

    def rand_round(self, x: float, stream: Optional[Stream] = None) -> int:
        """Round ``x`` up with probability equal to its fractional part."""
        whole = math.floor(x)
        return int(whole) + int(self.x_chance_in_y_real(x - whole, 1.0, stream=stream))

    div_round_up = staticmethod(div_round_up)

    # ------------------------------------------------------------------
    # preview-or-roll variants
    # ------------------------------------------------------------------
    def maybe_random2(
        self, x: int, random_factor: bool, stream: Optional[Stream] = None
    ) -> int:
        if x <= 1:
            return 0
        if random_factor:
            return self.random2(x, stream=stream)
        return x // 2

    def maybe_random_div(
        self, num: int, den: int, random_factor: bool, stream: Optional[Stream] = None
    ) -> int:
        if num <= 0:
            return 0
        if random_factor:
            return self.div_rand_round(num, den, stream=stream)
        return _trunc_div(num, den)

    def maybe_roll_dice(
        self, num: int, size: int, random_factor: bool, stream: Optional[Stream] = None
    ) -> int:
        if random_factor:
            return self.roll_dice(num, size, stream=stream)
        if num <= 0 or size <= 0:
            return 0
        return (num + num * size) // 2

    # ------------------------------------------------------------------
    # uniform picks
    # ------------------------------------------------------------------
    def random_choose(self, *items: T, stream: Optional[Stream] = None) -> T:
        if not items:
            raise ValueError("random_choose needs at least one item")
        return items[self.random2(len(items), stream=stream)]

    def random_element(
        self, container: Iterable[T], stream: Optional[Stream] = None
    ) -> T:
        if isinstance(container, Sequence):
            if not container:
                raise ValueError("random_element on empty container")
            return container[self.random2(len(container), stream=stream)]
        size = len(container)  # type: ignore[arg-type]
        if size == 0:
            raise ValueError("random_element on empty container")
        pos = self.random2(size, stream=stream)
        return next(islice(iter(container), pos, None))

    # ------------------------------------------------------------------
    # state management
    # ------------------------------------------------------------------
    def seed(self, seed: Any = None, stream: Optional[Stream] = None) -> None:
        s = self._stream(stream)
        self.registry.seed(s, seed)
        if s is Stream.GAMEPLAY:
            self.initial_seed = self.registry.initial_seed(Stream.GAMEPLAY)

    def reset(self, seed: Optional[int] = None) -> None:
        self.registry.seed_all(seed)
        self.initial_seed = self.registry.initial_seed(Stream.GAMEPLAY)
        log.debug("GameRNG reset", seed=self.initial_seed)

    def get_state(self) -> Dict[str, Tuple[int, int]]:
        return {s.name.lower(): self.registry.get_state(s) for s in Stream}

    def set_state(self, state: Mapping[Union[str, Stream], Sequence[int]]) -> None:
        for name, vector in state.items():
            self.registry.seed(Stream.from_name(name), tuple(vector))


__all__ = ["GameRNG", "div_round_up"]
