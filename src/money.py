from decimal import Context, Decimal, Inexact, InvalidOperation, Overflow, localcontext

from errors import DecimalAmountOverflow

# Largest magnitude representable by a 96-bit mantissa.
MAX_AMOUNT = Decimal(2 ** 96 - 1)

_CHECKED = Context(prec=29, traps=[Overflow, InvalidOperation, Inexact])


def _checked(operation, a: Decimal, b: Decimal) -> Decimal:
    with localcontext(_CHECKED):
        try:
            result = operation(a, b)
        except (Overflow, InvalidOperation, Inexact) as e:
            raise DecimalAmountOverflow(f"cannot represent result exactly: {e!r}") from e
    if abs(result) > MAX_AMOUNT:
        raise DecimalAmountOverflow()
    return result


def checked_add(a: Decimal, b: Decimal) -> Decimal:
    return _checked(Decimal.__add__, a, b)


def checked_sub(a: Decimal, b: Decimal) -> Decimal:
    return _checked(Decimal.__sub__, a, b)


def format_amount(value: Decimal) -> str:
    """Format decimal without exponent, removing trailing zeros."""
    if value == 0:
        return "0"
    normalized = value.normalize()
    return f"{normalized:f}"
