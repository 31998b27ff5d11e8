"""Money arithmetic for order lines and headers."""
from decimal import Decimal

import pytest
from hypothesis import given, strategies as st

from app.services.pricing import amounts_match, calculate_line, final_amount, money, order_totals

prices = st.decimals(min_value=Decimal("0"), max_value=Decimal("100000"), places=2,
                     allow_nan=False, allow_infinity=False)
rates = st.sampled_from([Decimal("0"), Decimal("5"), Decimal("12"), Decimal("18"), Decimal("28")])


def test_line_tax_is_charged_on_discounted_amount():
    line = calculate_line(2, Decimal("100.00"), Decimal("10.00"), Decimal("12"))

    assert line["gross_amount"] == Decimal("200.00")
    assert line["tax_amount"] == Decimal("22.80")
    assert line["total_amount"] == Decimal("212.80")


def test_tax_rounds_half_up():
    # 1 * 10.25 * 18% = 1.845
    assert calculate_line(1, Decimal("10.25"), 0, Decimal("18"))["tax_amount"] == Decimal("1.85")


def test_discount_larger_than_line_is_rejected():
    with pytest.raises(ValueError):
        calculate_line(1, Decimal("5.00"), Decimal("6.00"), Decimal("12"))


def test_header_totals_from_lines():
    lines = [
        calculate_line(2, Decimal("100.00"), Decimal("10.00"), Decimal("12")),
        calculate_line(1, Decimal("50.00"), 0, Decimal("5")),
    ]
    totals = order_totals(lines)

    assert totals == {
        "total_amount": Decimal("250.00"),
        "discount_amount": Decimal("10.00"),
        "tax_amount": Decimal("25.30"),
        "final_amount": Decimal("265.30"),
    }


def test_missing_amount_matches_and_supplied_amount_has_tolerance():
    assert amounts_match(None, Decimal("10.00"))
    assert amounts_match(Decimal("10.01"), Decimal("10.00"))
    assert not amounts_match(Decimal("10.02"), Decimal("10.00"))


def test_money_rounds_to_two_places():
    assert money("2.675") == Decimal("2.68")
    assert money(None) == Decimal("0.00")
    assert final_amount("100", "5.5", "11.34") == Decimal("105.84")


@given(st.lists(st.tuples(st.integers(min_value=1, max_value=500), prices, prices, rates), min_size=1, max_size=10))
def test_final_amount_is_total_minus_discount_plus_tax(raw_lines):
    lines = []
    for quantity, unit_price, discount, rate in raw_lines:
        discount = min(discount, money(quantity * unit_price))
        lines.append(calculate_line(quantity, unit_price, discount, rate))

    totals = order_totals(lines)

    assert totals["final_amount"] == totals["total_amount"] - totals["discount_amount"] + totals["tax_amount"]
    assert totals["final_amount"] == sum(line["total_amount"] for line in lines)
    assert totals["final_amount"] >= 0
