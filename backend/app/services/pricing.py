"""Money arithmetic for order lines and order headers.

All amounts are Decimal, rounded half-up to paise. Rates are percentages
(GST 5, 12, 18 ...), not fractions.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

from app.core.config import settings

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """Coerce ``value`` to a Decimal rounded to two places."""
    if value is None:
        return ZERO
    return Decimal(str(value)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def amounts_match(supplied: Optional[Decimal], computed: Decimal) -> bool:
    """A missing client amount always matches; a supplied one must be within tolerance."""
    if supplied is None:
        return True
    return abs(money(supplied) - money(computed)) <= settings.AMOUNT_TOLERANCE


def calculate_line(quantity: int, unit_price, discount, tax_rate) -> dict:
    """Price one order line.

    GST is charged on the discounted amount:
        gross = quantity * unit_price
        tax_amount = (gross - discount) * tax_rate / 100
        total_amount = gross - discount + tax_amount

    Raises:
        ValueError: if the discount exceeds the gross amount
    """
    gross = money(Decimal(quantity) * Decimal(str(unit_price)))
    discount = money(discount)
    if discount > gross:
        raise ValueError("Discount cannot exceed the line amount")
    rate = Decimal(str(tax_rate))
    taxable = gross - discount
    tax_amount = money(taxable * rate / Decimal("100"))

    return {
        "gross_amount": gross,
        "discount": discount,
        "tax_rate": rate,
        "tax_amount": tax_amount,
        "total_amount": taxable + tax_amount,
    }


def final_amount(total_amount, discount_amount, tax_amount) -> Decimal:
    return money(money(total_amount) - money(discount_amount) + money(tax_amount))


def order_totals(lines: Iterable[dict]) -> dict:
    """Header totals from priced lines (see calculate_line)."""
    total = discount = tax = ZERO
    for line in lines:
        total += line["gross_amount"]
        discount += line["discount"]
        tax += line["tax_amount"]

    return {
        "total_amount": total,
        "discount_amount": discount,
        "tax_amount": tax,
        "final_amount": final_amount(total, discount, tax),
    }
