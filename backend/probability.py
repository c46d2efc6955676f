# probability.py — Decorative mission success probability
import random

SUCCESS_PROBABILITY_MIN = 0
SUCCESS_PROBABILITY_MAX = 100


def generate_success_probability() -> int:
    """Random whole percentage in [0, 100]. Never persisted."""
    return random.randint(SUCCESS_PROBABILITY_MIN, SUCCESS_PROBABILITY_MAX)
