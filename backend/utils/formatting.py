from decimal import Decimal


def format_amount(amount: Decimal) -> str:
    """Two-decimal amount with thousands separators; negatives in brackets."""
    if amount is None:
        return "0.00"
    amount = Decimal(amount)
    if amount < 0:
        return f"({-amount:,.2f})"
    return f"{amount:,.2f}"
