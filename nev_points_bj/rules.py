"""Policy constants and step conversion tables for the lottery programs."""

import math
from enum import Enum

# 北京小客车指标摇号始于2011年
PROGRAM_START_YEAR = 2011

# 普通摇号: 每年6期（双月摇号）、下半年首次参与则当年3期
ROUNDS_PER_YEAR = 6
ROUNDS_FIRST_YEAR_H2 = 3

# 2020年及以前的阶梯规则（旧规）与2021年起的阶梯规则（新规）
LEGACY_REGIME_LAST_YEAR = 2020
LEGACY_STEP_CAP = 13
CURRENT_ROUNDS_PER_STEP = 6

BASE_POINT_MAIN = 2
BASE_POINT_OTHER = 1

MIN_GENERATIONS = 1
MAX_GENERATIONS = 3

FORECAST_WINDOW = 5  # 历史最低分的拟合窗口 / 预测年数

DISCLAIMER = "计算规则参考北京市政策解读与公开说明，最终以官方系统实时计算结果为准。"


class YearCounting(str, Enum):
    """Counting rule for queue and family-application tenure."""

    INCLUSIVE = "inclusive"    # 起始年也算 1 年: stat - start + 1
    FULL_YEARS = "full_years"  # 仅计满年: stat - start


class OrdinaryStepMode(str, Enum):
    SIMPLE = "simple"
    ROUNDS = "rounds"


class LegacyDivisor(str, Enum):
    """Rounds → step conversion for rounds accrued up to 2020."""

    HALF_CAPPED = "half_capped"          # 每2期1阶，上限13阶
    PER_24_UNCAPPED = "per_24_uncapped"  # 每24期1阶，无上限


# (divisor, cap) per legacy variant; cap None = uncapped
_LEGACY_TABLE: dict[LegacyDivisor, tuple[int, int | None]] = {
    LegacyDivisor.HALF_CAPPED: (2, LEGACY_STEP_CAP),
    LegacyDivisor.PER_24_UNCAPPED: (24, None),
}


def legacy_step(rounds: int, divisor: LegacyDivisor = LegacyDivisor.HALF_CAPPED) -> int:
    """Return step points for rounds accrued up to and including 2020.

    ``half_capped``: ceil(rounds / 2), at most 13.
    ``per_24_uncapped``: ceil(rounds / 24).
    """
    if rounds <= 0:
        return 0
    per_step, cap = _LEGACY_TABLE[LegacyDivisor(divisor)]
    step = math.ceil(rounds / per_step)
    if cap is not None:
        step = min(step, cap)
    return step


def current_step(rounds: int) -> int:
    """Return step points for rounds accrued from 2021 onward (ceil(rounds / 6), uncapped)."""
    if rounds <= 0:
        return 0
    return math.ceil(rounds / CURRENT_ROUNDS_PER_STEP)


def base_point(role: str) -> int:
    """主申请人 2 分，其他家庭申请人 1 分"""
    return BASE_POINT_MAIN if role == "main" else BASE_POINT_OTHER


def clamp_generations(generations: int) -> int:
    return min(MAX_GENERATIONS, max(MIN_GENERATIONS, int(generations)))


def clamp_start_year(year: int | None) -> int | None:
    """Raise start years before the program existed to PROGRAM_START_YEAR. None stays None."""
    if year is None:
        return None
    return max(int(year), PROGRAM_START_YEAR)
