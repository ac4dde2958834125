"""Per-member point calculation."""

from dataclasses import dataclass

from nev_points_bj.params import Member, Role, RuleConfig, StartHalf
from nev_points_bj.rules import (
    LEGACY_REGIME_LAST_YEAR,
    ROUNDS_FIRST_YEAR_H2,
    ROUNDS_PER_YEAR,
    OrdinaryStepMode,
    YearCounting,
    base_point,
    current_step,
    legacy_step,
)


def tenure_years(
    start_year: int | None,
    stat_year: int,
    counting: YearCounting = YearCounting.INCLUSIVE,
) -> int:
    """Years of participation between start_year and stat_year, never negative.

    inclusive: stat_year - start_year + 1 (the start year counts)
    full_years: stat_year - start_year
    """
    if start_year is None:
        return 0
    years = stat_year - start_year
    if YearCounting(counting) == YearCounting.INCLUSIVE:
        years += 1
    return max(0, years)


def family_tenure_years(
    family_apply_start_year: int | None,
    stat_year: int,
    rules: RuleConfig | None = None,
) -> int:
    """Family-application tenure, added once to every visible member."""
    rules = rules or RuleConfig()
    return tenure_years(family_apply_start_year, stat_year, rules.year_counting)


def rounds_by_year(
    start_year: int | None,
    start_half: StartHalf,
    stat_year: int,
) -> dict[int, int]:
    """Estimated ordinary-lottery rounds per calendar year, start_year..stat_year.

    The start year contributes 6 rounds (H1) or 3 (H2); every later year 6.
    """
    if start_year is None or stat_year < start_year:
        return {}
    result = {}
    for year in range(start_year, stat_year + 1):
        if year == start_year and StartHalf(start_half) == StartHalf.H2:
            result[year] = ROUNDS_FIRST_YEAR_H2
        else:
            result[year] = ROUNDS_PER_YEAR
    return result


def estimate_rounds(
    start_year: int | None,
    start_half: StartHalf,
    stat_year: int,
) -> tuple[int, int]:
    """Return (legacy_rounds, current_rounds) split at the 2020/2021 boundary."""
    legacy = 0
    current = 0
    for year, rounds in rounds_by_year(start_year, start_half, stat_year).items():
        if year <= LEGACY_REGIME_LAST_YEAR:
            legacy += rounds
        else:
            current += rounds
    return legacy, current


@dataclass(frozen=True)
class OrdinaryStep:
    """普通摇号阶梯积分明细"""

    mode: OrdinaryStepMode
    legacy_rounds: int = 0
    current_rounds: int = 0
    legacy_step: int = 0
    current_step: int = 0
    simple_step: int = 0
    c5_bonus: int = 0

    @property
    def rounds(self) -> int:
        return self.legacy_rounds + self.current_rounds

    @property
    def total(self) -> int:
        if self.mode == OrdinaryStepMode.SIMPLE:
            return self.simple_step + self.c5_bonus
        return self.legacy_step + self.current_step + self.c5_bonus


@dataclass(frozen=True)
class MemberScore:
    member_id: int
    name: str
    role: str
    relation: str
    base: int
    ordinary_step: OrdinaryStep
    queue_years: int
    family_years: int

    @property
    def point(self) -> int:
        return self.base + self.ordinary_step.total + self.queue_years + self.family_years

    def as_dict(self) -> dict:
        step = self.ordinary_step
        return {
            "member_id": self.member_id,
            "name": self.name,
            "role": self.role,
            "relation": self.relation,
            "base": self.base,
            "ordinary_step": {
                "mode": step.mode.value,
                "legacy_rounds": step.legacy_rounds,
                "current_rounds": step.current_rounds,
                "legacy_step": step.legacy_step,
                "current_step": step.current_step,
                "simple_step": step.simple_step,
                "c5_bonus": step.c5_bonus,
                "total": step.total,
            },
            "queue_years": self.queue_years,
            "family_years": self.family_years,
            "point": self.point,
        }


def calc_ordinary_step(member: Member, stat_year: int, rules: RuleConfig | None = None) -> OrdinaryStep:
    rules = rules or RuleConfig()
    legacy_rounds, current_rounds = estimate_rounds(
        member.ordinary_start_year, member.ordinary_start_half, stat_year,
    )
    has_rounds = legacy_rounds + current_rounds > 0
    c5_bonus = 1 if member.role == Role.MAIN and member.has_c5 and has_rounds else 0

    if rules.ordinary_step_mode == OrdinaryStepMode.SIMPLE:
        return OrdinaryStep(
            mode=OrdinaryStepMode.SIMPLE,
            legacy_rounds=legacy_rounds,
            current_rounds=current_rounds,
            simple_step=tenure_years(member.ordinary_start_year, stat_year, rules.year_counting),
            c5_bonus=c5_bonus,
        )
    return OrdinaryStep(
        mode=OrdinaryStepMode.ROUNDS,
        legacy_rounds=legacy_rounds,
        current_rounds=current_rounds,
        legacy_step=legacy_step(legacy_rounds, rules.legacy_divisor),
        current_step=current_step(current_rounds),
        c5_bonus=c5_bonus,
    )


def score_member(
    member: Member,
    stat_year: int,
    family_years: int = 0,
    rules: RuleConfig | None = None,
) -> MemberScore:
    """Compute one member's point breakdown.

    point = base + ordinary step + queue years + family years (no cap).
    Unset or future start years contribute 0.
    """
    rules = rules or RuleConfig()
    return MemberScore(
        member_id=member.id,
        name=member.name,
        role=member.role.value,
        relation=member.relation.value,
        base=base_point(member.role),
        ordinary_step=calc_ordinary_step(member, stat_year, rules),
        queue_years=tenure_years(member.new_energy_start_year, stat_year, rules.year_counting),
        family_years=max(0, family_years),
    )
