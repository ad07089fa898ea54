# [TESTER] v1

from __future__ import annotations

import pytest

from dexquote.core.fixed_point import apply_fee_ppm
from dexquote.errors import DivisionByZero, InsufficientLiquidity
from dexquote.kernels.python.cpmm_swap_ppm import swap_exact_in, swap_exact_out


def test_swap_exact_in_post_state() -> None:
    res = swap_exact_in(reserve_in=1_000_000, reserve_out=2_000_000, amount_in=10_000, fee_ppm=2_500)
    assert res.net_in == 9_975
    assert res.fee_amount == 25
    assert res.amount_out == 19_752
    assert res.new_reserve_in == 1_010_000
    assert res.new_reserve_out == 2_000_000 - 19_752


def test_swap_exact_in_zero_and_full_fee() -> None:
    assert swap_exact_in(reserve_in=10, reserve_out=10, amount_in=0, fee_ppm=0).amount_out == 0
    res = swap_exact_in(reserve_in=10, reserve_out=10, amount_in=5, fee_ppm=1_000_000)
    assert (res.net_in, res.amount_out, res.fee_amount) == (0, 0, 5)


def test_swap_exact_out_two_step_floor() -> None:
    res = swap_exact_out(reserve_in=1_000_000, reserve_out=1_000_000, amount_out=1_000, fee_ppm=3_000)
    assert res.net_in == 1_000 * 1_000_000 // 999_000
    assert res.amount_in == res.net_in * 1_000_000 // 997_000
    assert res.fee_amount == res.amount_in - res.net_in
    assert res.new_reserve_out == 999_000


def test_swap_exact_out_limits() -> None:
    with pytest.raises(InsufficientLiquidity):
        swap_exact_out(reserve_in=10, reserve_out=10, amount_out=10, fee_ppm=0)
    with pytest.raises(DivisionByZero):
        swap_exact_out(reserve_in=10, reserve_out=10, amount_out=1, fee_ppm=1_000_000)


@pytest.mark.parametrize(
    "kwargs,exc",
    [
        (dict(reserve_in=0, reserve_out=10, amount_in=1, fee_ppm=0), ValueError),
        (dict(reserve_in=10, reserve_out=10, amount_in=-1, fee_ppm=0), ValueError),
        (dict(reserve_in=10, reserve_out=10, amount_in=1, fee_ppm=1_000_001), ValueError),
        (dict(reserve_in=10, reserve_out=10, amount_in=True, fee_ppm=0), TypeError),
    ],
)
def test_swap_exact_in_rejects_bad_inputs(kwargs, exc) -> None:
    with pytest.raises(exc):
        swap_exact_in(**kwargs)


def test_kernel_fee_step_matches_apply_fee_ppm() -> None:
    for amount in (1, 999, 10_000, 123_456_789):
        for fee in (0, 1, 2_500, 999_999, 1_000_000):
            res = swap_exact_in(reserve_in=10**12, reserve_out=10**12, amount_in=amount, fee_ppm=fee)
            assert res.net_in == apply_fee_ppm(amount, fee)
    assert apply_fee_ppm(999, 2_500) == 996
