from __future__ import annotations

import math
import random


def uniform(rng: random.Random, low: float, high: float) -> float:
    return low + rng.random() * (high - low)


def uniform_int(rng: random.Random, low: int, high: int) -> int:
    # Inclusive on both ends.
    return rng.randint(int(low), int(high))


def normal(rng: random.Random, mean: float = 0.0, stddev: float = 1.0) -> float:
    return rng.gauss(mean, stddev)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def sigmoid(x: float) -> float:
    if x < -60.0:
        return 0.0
    return 1.0 / (1.0 + math.exp(-x))
