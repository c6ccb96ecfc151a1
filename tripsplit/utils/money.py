from decimal import Decimal, localcontext
from fractions import Fraction


def quantize(value: Decimal, precision: Decimal) -> Decimal:
    """
    Quantize without tripping over the context precision.

    ``Decimal.quantize`` raises InvalidOperation when the result needs more
    digits than the context allows, so the precision is widened to fit.
    """
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() - precision.as_tuple().exponent + 1)
        return value.quantize(precision)


def fraction_to_decimal(value: Fraction) -> Decimal:
    """Single rounding step from an exact rational to the context precision."""
    return Decimal(value.numerator) / Decimal(value.denominator)
