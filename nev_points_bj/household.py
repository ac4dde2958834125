"""Household aggregation and membership editing."""

import dataclasses
from dataclasses import dataclass, field

from nev_points_bj.params import (
    ROLE_LABELS,
    HouseholdParams,
    Member,
    Relation,
    Role,
    RuleConfig,
)
from nev_points_bj.scoring import MemberScore, family_tenure_years, score_member

MSG_NO_MAIN = "至少需要 1 名主申请人。"
MSG_MULTIPLE_MAIN = "主申请人只能有 1 名。"
MSG_NO_SPOUSE = "已勾选“包含配偶”，但未添加配偶成员。"
MSG_MULTIPLE_SPOUSE = "配偶只能有 1 名。"


@dataclass
class AggregateResult:
    ok: bool
    message: str = ""
    total: int = 0
    formula_text: str = ""
    detail: list[MemberScore] = field(default_factory=list)
    main_point: int = 0
    spouse_point: int = 0
    others_point: int = 0
    family_years: int = 0

    def as_dict(self) -> dict:
        if not self.ok:
            return {"ok": False, "message": self.message}
        return {
            "ok": True,
            "total": self.total,
            "formula_text": self.formula_text,
            "detail": [d.as_dict() for d in self.detail],
        }


def household_total(
    main_point: int,
    spouse_point: int,
    others_point: int,
    generations: int,
    include_spouse: bool,
) -> int:
    """含配偶: [(主 + 配偶) × 2 + 其他] × 代际数 / 不含配偶: (主 + 其他) × 代际数"""
    if include_spouse:
        return ((main_point + spouse_point) * 2 + others_point) * generations
    return (main_point + others_point) * generations


def format_formula(
    main_point: int,
    spouse_point: int,
    others_point: int,
    generations: int,
    include_spouse: bool,
) -> str:
    if include_spouse:
        return f"总积分 = [({main_point} + {spouse_point}) × 2 + {others_point}] × {generations}"
    return f"总积分 = ({main_point} + {others_point}) × {generations}"


def visible_members(members: list[Member], include_spouse: bool) -> list[Member]:
    """Members that take part in the calculation; spouses drop out when excluded."""
    return [m for m in members if include_spouse or m.role != Role.SPOUSE]


def validate_members(members: list[Member], include_spouse: bool) -> str | None:
    """Return the first validation failure message, or None when valid."""
    mains = [m for m in members if m.role == Role.MAIN]
    spouses = [m for m in members if m.role == Role.SPOUSE]
    if not mains:
        return MSG_NO_MAIN
    if len(mains) > 1:
        return MSG_MULTIPLE_MAIN
    if include_spouse and not spouses:
        return MSG_NO_SPOUSE
    if include_spouse and len(spouses) > 1:
        return MSG_MULTIPLE_SPOUSE
    return None


def aggregate(
    members: list[Member],
    params: HouseholdParams,
    rules: RuleConfig | None = None,
) -> AggregateResult:
    """Combine member points into the household total.

    Validation failures come back as ``ok=False`` with a user-facing message
    and an empty result; nothing is raised.
    """
    rules = rules or RuleConfig()
    visible = visible_members(members, params.include_spouse)

    error = validate_members(visible, params.include_spouse)
    if error is not None:
        return AggregateResult(ok=False, message=error)

    family_years = family_tenure_years(params.family_apply_start_year, params.stat_year, rules)
    detail = [score_member(m, params.stat_year, family_years, rules) for m in visible]

    main_point = next(d.point for d in detail if d.role == Role.MAIN)
    spouse_point = next((d.point for d in detail if d.role == Role.SPOUSE), 0)
    others_point = sum(d.point for d in detail if d.role == Role.OTHER)

    args = (main_point, spouse_point, others_point, params.generations, params.include_spouse)
    return AggregateResult(
        ok=True,
        total=household_total(*args),
        formula_text=format_formula(*args),
        detail=detail,
        main_point=main_point,
        spouse_point=spouse_point,
        others_point=others_point,
        family_years=family_years,
    )


# ---------------------------------------------------------------------------
# Membership editing
# ---------------------------------------------------------------------------

def default_members() -> list[Member]:
    """主申请人 + 配偶 + 成员1, all without participation history."""
    return [
        Member(id=1, role=Role.MAIN),
        Member(id=2, role=Role.SPOUSE),
        Member(id=3, role=Role.OTHER, name="成员1"),
    ]


def _check_unique_roles(members: list[Member]) -> None:
    for role in (Role.MAIN, Role.SPOUSE):
        count = sum(1 for m in members if m.role == role)
        if count > 1:
            raise ValueError(f"{ROLE_LABELS[role]}只能有 1 名")


def _find(members: list[Member], member_id: int) -> Member:
    for m in members:
        if m.id == member_id:
            return m
    raise ValueError(f"成员不存在: id={member_id}")


def add_member(
    members: list[Member],
    role: Role = Role.OTHER,
    name: str | None = None,
    relation: Relation | None = None,
    **fields,
) -> list[Member]:
    """Return a new member list with one member appended (id = max id + 1)."""
    next_id = max((m.id for m in members), default=0) + 1
    role = Role(role)
    member = Member(
        id=next_id,
        role=role,
        name=name or "",
        relation=relation,
        **fields,
    )
    updated = [*members, member]
    _check_unique_roles(updated)
    return updated


def remove_member(members: list[Member], member_id: int) -> list[Member]:
    _find(members, member_id)
    return [m for m in members if m.id != member_id]


def update_member(members: list[Member], member_id: int, **changes) -> list[Member]:
    """Return a new member list with one member's fields replaced."""
    if "id" in changes:
        raise ValueError("成员 id 不可修改")
    target = _find(members, member_id)
    replaced = dataclasses.replace(target, **changes)
    updated = [replaced if m.id == member_id else m for m in members]
    _check_unique_roles(updated)
    return updated
