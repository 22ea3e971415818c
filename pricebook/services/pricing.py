"""
価格の正規化・比較ユーティリティ
"""

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

PriceLike = Union[str, int, float, Decimal, None]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
# 浮動小数点の誤差を同額とみなす閾値
PRICE_EPSILON = Decimal("0.001")

# 先頭の数値部分のみ読む（"12元" → 12）
_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _to_decimal(value: PriceLike) -> Optional[Decimal]:
    if value is None:
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float)):
        value = repr(value) if isinstance(value, float) else str(value)
    match = _LEADING_NUMBER.match(value)
    if not match:
        return None
    try:
        return Decimal(match.group(1))
    except InvalidOperation:
        return None


def normalize_price(value: PriceLike) -> Decimal:
    """
    価格を分単位（小数2桁）に丸める

    数値として読めない値・負の値は 0.00 にする。
    normalize_price(normalize_price(x)) == normalize_price(x)
    """
    num = _to_decimal(value)
    if num is None or not num.is_finite() or num <= 0:
        return ZERO
    try:
        return num.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return ZERO


def is_price_equal(a: PriceLike, b: PriceLike) -> bool:
    """2つの価格の差が閾値未満なら同額とみなす"""
    left = _to_decimal(a)
    right = _to_decimal(b)
    if left is None or right is None:
        return left is right
    return abs(left - right) < PRICE_EPSILON


def format_price(price: PriceLike, unit: Optional[str] = None) -> str:
    """表示用: ¥10.50 / ¥10.50/件"""
    text = f"¥{normalize_price(price)}"
    if not unit:
        return text
    return f"{text}/{unit}"
