import random

import pytest

from exambank.utils.shuffle import make_rng, random_chars, random_digits, sample, shuffle


def test_shuffle_is_a_permutation_and_leaves_input_alone():
    items = list(range(20))
    result = shuffle(items, random.Random(1))

    assert sorted(result) == items
    assert items == list(range(20))


def test_shuffle_is_reproducible_with_seed():
    items = list("abcdefgh")
    assert shuffle(items, random.Random(42)) == shuffle(items, random.Random(42))


def test_shuffle_handles_small_inputs():
    assert shuffle([], random.Random(0)) == []
    assert shuffle(["only"], random.Random(0)) == ["only"]


def test_shuffle_reaches_every_order():
    rng = random.Random(3)
    orders = {tuple(shuffle([1, 2, 3], rng)) for _ in range(300)}
    assert len(orders) == 6


def test_sample_draws_distinct_items():
    items = list(range(10))
    drawn = sample(items, 4, random.Random(5))

    assert len(drawn) == 4
    assert len(set(drawn)) == 4
    assert set(drawn) <= set(items)


def test_sample_rejects_oversized_draw():
    with pytest.raises(ValueError):
        sample([1, 2], 3)


def test_make_rng_seeded():
    assert make_rng(9).random() == make_rng(9).random()


def test_random_codes():
    rng = random.Random(11)
    chars = random_chars(3, rng)
    digits = random_digits(3, rng)

    assert len(chars) == 3 and chars.isalpha() and chars.isupper()
    assert len(digits) == 3 and digits.isdigit()
