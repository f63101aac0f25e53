"""
Pricing of quotation rows and documents.

Every derived amount of a quotation comes from here:

    unit_sale       = unit_cost * (1 + margin_percent / 100)
    line_total_cost = unit_cost * quantity
    line_total_sale = unit_sale * quantity
    margin_amount   = unit_sale - unit_cost

    subtotal_amount = sum(line_total_sale)
    total_cost      = sum(line_total_cost)
    total_amount    = subtotal_amount

Functions are pure and never raise: anything that is not a usable
non-negative number counts as 0, so a preview can be recomputed on every
keystroke. Arithmetic is Decimal with no intermediate rounding; rounding
to cents happens only in round_for_display / format_amount.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any, Iterable, List, Mapping, NamedTuple, Optional

from proforma.models.quotation import LineItem

ZERO = Decimal(0)
HUNDRED = Decimal(100)
# largest usable input is below 1e101, so line products stay within the default context
MAX_EXPONENT = 100
# a line amount is a product of at most three inputs
MAX_TOTAL_EXPONENT = 4 * MAX_EXPONENT


class LineAmounts(NamedTuple):
    unit_sale: Decimal
    margin_amount: Decimal
    line_total_cost: Decimal
    line_total_sale: Decimal


class DocumentTotals(NamedTuple):
    subtotal_amount: Decimal
    total_cost: Decimal

    @property
    def total_amount(self) -> Decimal:
        # no discount / tax applied at this layer
        return self.subtotal_amount


# ---------- Coercion ---------- #

def parse_non_negative_decimal(value: Any, max_exponent: int = MAX_EXPONENT) -> Decimal:
    """
    Lenient number parsing used for every pricing input.

    None, "", booleans, garbage strings, NaN, infinities, negatives and
    magnitudes of 10**(max_exponent + 1) and up all give Decimal(0).
    Strings may carry blanks and a decimal comma ("12,5").
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, float):
        d = Decimal(str(value))
    else:
        s = str(value).strip().replace(" ", "")
        if "," in s and "." in s:
            s = s.replace(",", "")  # thousands separator
        elif "," in s:
            s = s.replace(",", ".")
        try:
            d = Decimal(s)
        except (InvalidOperation, ValueError):
            return ZERO
    if not d.is_finite() or d <= 0 or d.adjusted() > max_exponent:
        return ZERO
    return d


def _field(raw: Any, *names: str) -> Any:
    """First non-empty value among names, from a mapping (wire or python keys) or an object."""
    if isinstance(raw, Mapping):
        for n in names:
            v = raw.get(n)
            if v not in (None, ""):
                return v
        return None
    for n in names:
        v = getattr(raw, n, None)
        if v is not None:
            return v
    return None


# ---------- Rows ---------- #

def compute_line_item(quantity: Any, unit_cost: Any, margin_percent: Any) -> LineAmounts:
    q = parse_non_negative_decimal(quantity)
    cost = parse_non_negative_decimal(unit_cost)
    pct = parse_non_negative_decimal(margin_percent)

    unit_sale = cost * (1 + pct / HUNDRED)
    line_total_cost = cost * q
    line_total_sale = unit_sale * q
    margin_amount = unit_sale - cost
    return LineAmounts(unit_sale, margin_amount, line_total_cost, line_total_sale)


def price_line_item(raw: Any, order: int = 0) -> LineItem:
    """Build a fully derived LineItem from a raw row (LineItemInput, LineItem or dict)."""
    quantity = parse_non_negative_decimal(_field(raw, "quantity"))
    unit_cost = parse_non_negative_decimal(_field(raw, "unit_cost", "costUnit"))
    margin_percent = parse_non_negative_decimal(_field(raw, "margin_percent", "marginPercent"))
    amounts = compute_line_item(quantity, unit_cost, margin_percent)

    product_id = _field(raw, "product_id", "productId")
    description = _field(raw, "description", "itemDescription")
    return LineItem(
        product_id=str(product_id) if product_id else None,
        description=str(description or "").strip(),
        quantity=quantity,
        unit_cost=unit_cost,
        margin_percent=margin_percent,
        order=order,
        **amounts._asdict(),
    )


def price_items(raws: Iterable[Any]) -> List[LineItem]:
    """Price rows keeping their order; `order` is the position in the input."""
    return [price_line_item(raw, order=i) for i, raw in enumerate(raws)]


# ---------- Document ---------- #

def compute_document_totals(items: Iterable[Any]) -> DocumentTotals:
    subtotal = ZERO
    total_cost = ZERO
    for it in items:
        subtotal += parse_non_negative_decimal(
            _field(it, "line_total_sale", "lineTotalSale", "totalSale"), MAX_TOTAL_EXPONENT)
        total_cost += parse_non_negative_decimal(
            _field(it, "line_total_cost", "lineTotalCost", "totalCost"), MAX_TOTAL_EXPONENT)
    return DocumentTotals(subtotal, total_cost)


def margin_percent_for(cost: Any, price: Any) -> Decimal:
    """Markup over cost that turns `cost` into `price`; 0 when it cannot be derived or is negative."""
    c = parse_non_negative_decimal(cost)
    p = parse_non_negative_decimal(price)
    if c == 0 or p <= c:
        return ZERO
    return ((p / c - 1) * HUNDRED).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)


# ---------- Presentation ---------- #

def round_for_display(value: Any, places: int = 2) -> Decimal:
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except (InvalidOperation, ValueError):
            value = ZERO
    if not value.is_finite():
        value = ZERO
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the decimals
        ctx.prec = max(ctx.prec, value.adjusted() + places + 2)
        return value.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def format_amount(value: Any, currency: Optional[str] = None) -> str:
    txt = f"{round_for_display(value):,.2f}"
    return f"{txt} {currency}" if currency else txt
