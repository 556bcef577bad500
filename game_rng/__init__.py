"""Deterministic randomness for the simulation: named streams, probability
helpers, weighted choice, dice, shuffling and deferred random trees."""

from .streams import Stream, BitSource, RNGRegistry, TEST_STREAM_SEED
from .core import GameRNG, div_round_up
from .weighted import (
    choose_weighted,
    choose_weighted_index,
    choose_weighted_args,
    choose_weighted_iter,
    choose_weighted_position,
    choose_random_weighted,
)
from .dice import DiceDef, CONVENIENT_NONZERO_DAMAGE, calc_dice, parse_dice, roll_dice_str
from .shuffle import shuffle_array
from .deferred import DeferRand
from .config import DEFAULT_RNG_CONFIG, load_rng_config, validate_rng_config

__all__ = [
    "Stream",
    "BitSource",
    "RNGRegistry",
    "TEST_STREAM_SEED",
    "GameRNG",
    "div_round_up",
    "choose_weighted",
    "choose_weighted_index",
    "choose_weighted_args",
    "choose_weighted_iter",
    "choose_weighted_position",
    "choose_random_weighted",
    "DiceDef",
    "CONVENIENT_NONZERO_DAMAGE",
    "calc_dice",
    "parse_dice",
    "roll_dice_str",
    "shuffle_array",
    "DeferRand",
    "DEFAULT_RNG_CONFIG",
    "load_rng_config",
    "validate_rng_config",
]
