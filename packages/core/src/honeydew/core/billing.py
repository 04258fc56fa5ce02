"""计费计算 -- 时长取整与账单金额

规则固定，不可配置：
- 不足 1 小时按 1 小时计；
- 超过 1 小时按 5 分钟向上取整。
所有金额使用 Decimal 计算，四舍五入到分。
"""

import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel, Field

from .exceptions import InvalidInput, InvalidInterval

MINIMUM_BILLED_MINUTES = 60
BILLING_INCREMENT_MINUTES = 5

_CENTS = Decimal("0.01")


class Bill(BaseModel):
    """一次计费结果"""

    duration_seconds: int = Field(ge=0, description="实际工作秒数（向下取整）")
    billed_minutes: int = Field(description="计费分钟数，5 的倍数且 >= 60")
    billed_hours: Decimal = Field(description="计费小时数")
    billed_amount: Decimal = Field(description="账单金额，保留两位小数")


def round_cents(amount: Decimal) -> Decimal:
    """四舍五入到分"""
    return amount.quantize(_CENTS, rounding=ROUND_HALF_UP)


def billed_minutes_for(raw_minutes: Decimal) -> int:
    """将实际分钟数换算为计费分钟数"""
    increments = math.ceil(raw_minutes / BILLING_INCREMENT_MINUTES)
    return max(MINIMUM_BILLED_MINUTES, increments * BILLING_INCREMENT_MINUTES)


def compute_bill(start_time: datetime, end_time: datetime, rate: Decimal) -> Bill:
    """根据起止时间和时薪计算账单

    Args:
        start_time: 开始时间
        end_time: 结束时间，不得早于 start_time
        rate: 时薪，必须 > 0

    Returns:
        Bill

    Raises:
        InvalidInterval: end_time 早于 start_time
        InvalidInput: rate 非正数
    """
    rate = Decimal(rate)
    if rate <= 0:
        raise InvalidInput(f"Hourly rate must be positive, got {rate}")
    if end_time < start_time:
        raise InvalidInterval(
            f"end_time {end_time.isoformat()} is before start_time {start_time.isoformat()}"
        )

    elapsed = end_time - start_time
    raw_minutes = Decimal(str(elapsed.total_seconds())) / 60
    minutes = billed_minutes_for(raw_minutes)

    # 先乘后除，避免 125/60 之类的循环小数先被截断
    amount = round_cents(rate * minutes / 60)
    return Bill(
        duration_seconds=int(elapsed.total_seconds()),
        billed_minutes=minutes,
        billed_hours=Decimal(minutes) / 60,
        billed_amount=amount,
    )


def payment_total(amount: Decimal, tip: Decimal | None = None) -> Decimal:
    """账单金额加小费，四舍五入到分"""
    tip = Decimal("0") if tip is None else Decimal(tip)
    if tip < 0:
        raise InvalidInput(f"Tip must not be negative, got {tip}")
    return round_cents(Decimal(amount) + tip)


def to_minor_units(amount: Decimal) -> int:
    """主币单位转为最小货币单位（分）"""
    return int((round_cents(Decimal(amount)) * 100).to_integral_value(rounding=ROUND_HALF_UP))
