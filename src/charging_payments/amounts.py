from decimal import ROUND_HALF_UP, Decimal

MINOR_UNITS_PER_MAJOR = 100

AmountMajor = Decimal | int | float | str


def to_minor_units(amount: AmountMajor) -> int:
    """Convert a major-unit amount (e.g. EUR) to minor units (e.g. cents).

    Halves round away from zero. Floats go through their shortest repr, so
    `0.015` rounds as the decimal literal it was written as and not as the
    nearest binary double.
    """
    if isinstance(amount, float):
        amount = repr(amount)
    return int((Decimal(amount) * MINOR_UNITS_PER_MAJOR).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def to_major_units(amount: int) -> Decimal:
    return Decimal(amount).scaleb(-2)
