"""Beijing New-Energy Vehicle Family Points Calculator Package."""

from nev_points_bj.params import (
    Role,
    Relation,
    StartHalf,
    RuleConfig,
    Member,
    HouseholdParams,
    HistoryPoint,
    Household,
)
from nev_points_bj.rules import (
    YearCounting,
    OrdinaryStepMode,
    LegacyDivisor,
    PROGRAM_START_YEAR,
    legacy_step,
    current_step,
    clamp_generations,
)
from nev_points_bj.scoring import (
    MemberScore,
    OrdinaryStep,
    score_member,
    tenure_years,
    family_tenure_years,
    estimate_rounds,
)
from nev_points_bj.household import (
    AggregateResult,
    aggregate,
    household_total,
    format_formula,
    default_members,
    add_member,
    remove_member,
    update_member,
)
from nev_points_bj.forecast import fit_line, predict, next_years, recent_history

__all__ = [
    "Role",
    "Relation",
    "StartHalf",
    "RuleConfig",
    "Member",
    "HouseholdParams",
    "HistoryPoint",
    "Household",
    "YearCounting",
    "OrdinaryStepMode",
    "LegacyDivisor",
    "PROGRAM_START_YEAR",
    "legacy_step",
    "current_step",
    "clamp_generations",
    "MemberScore",
    "OrdinaryStep",
    "score_member",
    "tenure_years",
    "family_tenure_years",
    "estimate_rounds",
    "AggregateResult",
    "aggregate",
    "household_total",
    "format_formula",
    "default_members",
    "add_member",
    "remove_member",
    "update_member",
    "fit_line",
    "predict",
    "next_years",
    "recent_history",
]
