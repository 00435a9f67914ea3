# Overview: Request field coercion shared by routes and services (money, quantities, enums).

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

from .errors import ValidationError

# Maximum price: R$ 9.999.999,99 (999,999,999 cents)
MAX_PRICE_CENTS = 999_999_999

PAYMENT_METHODS = ("cash", "pix", "credit", "debit")
PAYMENT_METHOD_ALIASES = {
    "dinheiro": "cash",
    "cartão": "credit",
    "cartao": "credit",
    "crédito": "credit",
    "credito": "credit",
    "débito": "debit",
    "debito": "debit",
}

MOVEMENT_TYPES = ("in", "out")
MOVEMENT_TYPE_ALIASES = {
    "entrada": "in",
    "saida": "out",
    "saída": "out",
}


def pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among camelCase/snake_case aliases."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def to_cents(value: Any, field: str = "price") -> int:
    """
    Convert a decimal amount (number or string, e.g. 8.5 or "8,50") to cents.

    Rounds half-up to the nearest cent. Rejects negatives, booleans and
    anything above MAX_PRICE_CENTS.
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field} must be a number")
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            raise ValidationError(f"{field} must be a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field} must be a number")
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number")

    cents = int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    if cents < 0:
        raise ValidationError(f"{field} cannot be negative")
    if cents > MAX_PRICE_CENTS:
        raise ValidationError(f"{field} exceeds maximum allowed value")
    return cents


def from_cents(cents: int | None) -> float | None:
    if cents is None:
        return None
    return float(Decimal(cents) / 100)


def to_int(value: Any, field: str, minimum: int | None = None) -> int:
    """Strict integer coercion: rejects floats with a fraction, booleans and junk strings."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field} must be an integer")
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{field} must be an integer")
        value = int(value)
    elif isinstance(value, str):
        stripped = value.strip()
        if not stripped.lstrip("-").isdecimal():
            raise ValidationError(f"{field} must be an integer")
        value = int(stripped)
    elif not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer")

    if minimum is not None and value < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    return value


def normalize_payment_method(value: str | None) -> str:
    if value is None or value == "":
        return "cash"
    method = str(value).strip().lower()
    method = PAYMENT_METHOD_ALIASES.get(method, method)
    if method not in PAYMENT_METHODS:
        raise ValidationError(
            f"paymentMethod must be one of: {', '.join(PAYMENT_METHODS)}"
        )
    return method


def normalize_movement_type(value: str | None) -> str:
    if not value:
        raise ValidationError("type is required")
    movement_type = str(value).strip().lower()
    movement_type = MOVEMENT_TYPE_ALIASES.get(movement_type, movement_type)
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError("type must be 'in' or 'out'")
    return movement_type


def require_fields(data: dict, **aliases: tuple[str, ...]) -> None:
    """
    Raise ValidationError naming every missing field.

    Usage: require_fields(data, name=("name",), price=("price", "price_cents"))
    """
    missing = [
        label for label, keys in aliases.items()
        if pick(data, *keys) in (None, "")
    ]
    if missing:
        raise ValidationError(f"{', '.join(missing)} required")
