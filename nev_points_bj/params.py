"""Input records: household members, household parameters and score history."""

from dataclasses import dataclass, field
from enum import Enum

from nev_points_bj.rules import (
    LegacyDivisor,
    OrdinaryStepMode,
    YearCounting,
    clamp_generations,
    clamp_start_year,
)


class Role(str, Enum):
    MAIN = "main"
    SPOUSE = "spouse"
    OTHER = "other"


class Relation(str, Enum):
    """Relation to the main applicant (display only, no scoring effect)."""

    SELF = "self"
    SPOUSE = "spouse"
    PARENT = "parent"
    CHILD = "child"
    OTHER = "other"


class StartHalf(str, Enum):
    H1 = "H1"
    H2 = "H2"


ROLE_LABELS = {
    Role.MAIN: "主申请人",
    Role.SPOUSE: "配偶",
    Role.OTHER: "其他成员",
}

RELATION_LABELS = {
    Relation.SELF: "本人",
    Relation.SPOUSE: "配偶",
    Relation.PARENT: "父母",
    Relation.CHILD: "子女",
    Relation.OTHER: "其他",
}

DEFAULT_RELATION = {
    Role.MAIN: Relation.SELF,
    Role.SPOUSE: Relation.SPOUSE,
    Role.OTHER: Relation.OTHER,
}


def role_label(role: str) -> str:
    return ROLE_LABELS[Role(role)]


@dataclass(frozen=True)
class RuleConfig:
    """Which policy interpretation to apply when scoring."""

    year_counting: YearCounting = YearCounting.INCLUSIVE
    ordinary_step_mode: OrdinaryStepMode = OrdinaryStepMode.ROUNDS
    legacy_divisor: LegacyDivisor = LegacyDivisor.HALF_CAPPED

    def __post_init__(self):
        # Accept plain strings from TOML / CLI
        object.__setattr__(self, "year_counting", YearCounting(self.year_counting))
        object.__setattr__(self, "ordinary_step_mode", OrdinaryStepMode(self.ordinary_step_mode))
        object.__setattr__(self, "legacy_divisor", LegacyDivisor(self.legacy_divisor))


@dataclass(frozen=True)
class Member:
    id: int
    role: Role
    name: str = ""
    relation: Relation | None = None
    # 普通摇号首次参与年份 / 上下半年（None = 未参与）
    ordinary_start_year: int | None = None
    ordinary_start_half: StartHalf = StartHalf.H1
    # 新能源轮候起始年份（None = 未参与）
    new_energy_start_year: int | None = None
    has_c5: bool = False  # C5驾照加分，仅主申请人有效

    def __post_init__(self):
        role = Role(self.role)
        object.__setattr__(self, "role", role)
        relation = DEFAULT_RELATION[role] if self.relation is None else Relation(self.relation)
        object.__setattr__(self, "relation", relation)
        object.__setattr__(self, "ordinary_start_half", StartHalf(self.ordinary_start_half))
        object.__setattr__(self, "ordinary_start_year", clamp_start_year(self.ordinary_start_year))
        object.__setattr__(self, "new_energy_start_year", clamp_start_year(self.new_energy_start_year))
        if not self.name:
            object.__setattr__(self, "name", ROLE_LABELS[role] if role != Role.OTHER else f"成员{self.id}")


@dataclass
class HouseholdParams:
    stat_year: int
    family_apply_start_year: int | None = None
    generations: int = 2
    include_spouse: bool = True

    def __post_init__(self):
        self.generations = clamp_generations(self.generations)
        self.family_apply_start_year = clamp_start_year(self.family_apply_start_year)


@dataclass(frozen=True)
class HistoryPoint:
    """One year's minimum qualifying score (None = unknown)."""

    year: int
    score: float | None = None


@dataclass
class Household:
    """Convenience bundle of everything the CLI / report needs."""

    params: HouseholdParams
    members: list[Member] = field(default_factory=list)
    rules: RuleConfig = field(default_factory=RuleConfig)
    history: list[HistoryPoint] = field(default_factory=list)
