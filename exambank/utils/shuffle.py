"""
Randomization helpers

Every function accepts an optional `random.Random` so callers (and tests) can
make the outcome reproducible with a seed.
"""
import random
import string
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")

_default_rng = random.Random()


def make_rng(seed: Optional[int] = None) -> random.Random:
    return random.Random(seed) if seed is not None else _default_rng


# Fisher-Yates shuffle
def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a shuffled copy of `items`; the input is left untouched"""
    rng = rng or _default_rng
    result = list(items)
    i = len(result)
    while i > 1:
        i -= 1
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def sample(items: Sequence[T], quantity: int, rng: Optional[random.Random] = None) -> List[T]:
    """Uniform draw of `quantity` items without replacement"""
    if quantity > len(items):
        raise ValueError(f"Cannot draw {quantity} item(s) from {len(items)}")
    return shuffle(items, rng)[:quantity]


def random_chars(length: int, rng: Optional[random.Random] = None) -> str:
    rng = rng or _default_rng
    return "".join(rng.choice(string.ascii_uppercase) for _ in range(length))


def random_digits(length: int, rng: Optional[random.Random] = None) -> str:
    rng = rng or _default_rng
    return "".join(rng.choice(string.digits) for _ in range(length))
