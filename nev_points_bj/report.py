"""Template-based report generator.

Builds a ReportContext from a Household and renders a Markdown report
using Python f-strings (no Jinja2 dependency).
"""

from __future__ import annotations

from dataclasses import dataclass

from nev_points_bj.forecast import fit_line, next_years, recent_history, predict
from nev_points_bj.household import AggregateResult, aggregate
from nev_points_bj.params import (
    RELATION_LABELS,
    HistoryPoint,
    Household,
    Relation,
    role_label,
)
from nev_points_bj.rules import (
    CURRENT_ROUNDS_PER_STEP,
    DISCLAIMER,
    FORECAST_WINDOW,
    LEGACY_STEP_CAP,
    LegacyDivisor,
    OrdinaryStepMode,
    YearCounting,
)

YEAR_COUNTING_LABELS = {
    YearCounting.INCLUSIVE: "起始年计入（统计年 − 起始年 + 1）",
    YearCounting.FULL_YEARS: "仅计满年（统计年 − 起始年）",
}

ORDINARY_MODE_LABELS = {
    OrdinaryStepMode.SIMPLE: "按参与年数（每年 1 阶）",
    OrdinaryStepMode.ROUNDS: "按摇号期数（2020年及以前 / 2021年起分段换算）",
}

LEGACY_DIVISOR_LABELS = {
    LegacyDivisor.HALF_CAPPED: f"每 2 期 1 阶，上限 {LEGACY_STEP_CAP} 阶",
    LegacyDivisor.PER_24_UNCAPPED: "每 24 期 1 阶，无上限",
}

# ---------------------------------------------------------------------------
# Format helpers
# ---------------------------------------------------------------------------

def fmt_year(v: int | None) -> str:
    return "未参与" if v is None else f"{v}年"


def fmt_score(v: float | None) -> str:
    return "---" if v is None else f"{v:.1f}"


# ---------------------------------------------------------------------------
# ReportContext
# ---------------------------------------------------------------------------

@dataclass
class ReportContext:
    household: Household
    result: AggregateResult
    history: list[HistoryPoint]
    forecast: list[HistoryPoint]
    line: tuple[float, float] | None = None


def build_report_context(
    household: Household,
    forecast_years: int = FORECAST_WINDOW,
) -> ReportContext:
    history = recent_history(household.history)
    return ReportContext(
        household=household,
        result=aggregate(household.members, household.params, household.rules),
        history=history,
        forecast=predict(history, next_years(history, forecast_years)),
        line=fit_line(history),
    )


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

def _render_title(ctx: ReportContext) -> str:
    return f"## 北京新能源家庭积分估算（{ctx.household.params.stat_year}年）\n\n> {DISCLAIMER}\n"


def _render_params(ctx: ReportContext) -> str:
    p = ctx.household.params
    rules = ctx.household.rules
    lines = [
        "### 1. 家庭参数\n",
        "| 项目 | 值 |",
        "|------|----|",
        f"| 积分统计年份 | {p.stat_year}年 |",
        f"| 家庭申请起始 | {fmt_year(p.family_apply_start_year)} |",
        f"| 家庭代际数 | {p.generations} |",
        f"| 包含配偶 | {'是' if p.include_spouse else '否'} |",
        f"| 年限计算 | {YEAR_COUNTING_LABELS[rules.year_counting]} |",
        f"| 普通摇号阶梯 | {ORDINARY_MODE_LABELS[rules.ordinary_step_mode]} |",
    ]
    if rules.ordinary_step_mode == OrdinaryStepMode.ROUNDS:
        lines.append(f"| 2020年及以前换算 | {LEGACY_DIVISOR_LABELS[rules.legacy_divisor]} |")
    return "\n".join(lines) + "\n"


def _render_members(ctx: ReportContext) -> str:
    result = ctx.result
    lines = ["### 2. 成员积分\n"]
    if not result.ok:
        lines.append(f"**无法计算：** {result.message}\n")
        return "\n".join(lines)
    lines += [
        "| 成员 | 角色 | 关系 | 基础 | 普通摇号阶梯 | 新能源轮候 | 家庭年限 | 个人积分 |",
        "|------|------|------|-----:|-----------:|---------:|-------:|-------:|",
    ]
    for d in result.detail:
        step = d.ordinary_step
        step_text = f"{step.total}"
        if step.rounds:
            step_text += f"（{step.rounds}期"
            step_text += "，含C5 +1）" if step.c5_bonus else "）"
        lines.append(
            f"| {d.name} | {role_label(d.role)} | {RELATION_LABELS[Relation(d.relation)]} "
            f"| {d.base} | {step_text} | {d.queue_years} | {d.family_years} | **{d.point}** |"
        )
    lines += [
        "",
        f"**{result.formula_text} = {result.total}**",
        "",
    ]
    return "\n".join(lines)


def _render_forecast(ctx: ReportContext) -> str:
    lines = ["### 3. 最低入围分数趋势\n"]
    if not ctx.history:
        lines.append("未提供历史分数。\n")
        return "\n".join(lines)
    if ctx.line is None:
        lines.append("已知历史分数不足 2 年，无法拟合趋势。\n")
    else:
        slope, _ = ctx.line
        lines.append(f"线性拟合斜率: 每年 {slope:+.2f} 分\n")
    lines += ["| 年份 | 分数 | 类型 |", "|------|-----:|------|"]
    for p in ctx.history:
        lines.append(f"| {p.year} | {fmt_score(p.score)} | 历史 |")
    for p in ctx.forecast:
        lines.append(f"| {p.year} | {fmt_score(p.score)} | 预测 |")
    if ctx.result.ok and ctx.line is not None:
        reachable = [p.year for p in ctx.forecast if p.score is not None and ctx.result.total >= p.score]
        if reachable:
            lines.append(f"\n按当前积分 {ctx.result.total}，预计 {reachable[0]} 年可达到最低入围分数。")
    return "\n".join(lines) + "\n"


def _render_rules(ctx: ReportContext) -> str:
    return "\n".join([
        "### 4. 规则参考\n",
        "- 家庭主申请人基础积分 2 分；其他家庭申请人基础积分每人 1 分。",
        "- 普通摇号阶梯：2020年及以前按期数换算（"
        f"{LEGACY_DIVISOR_LABELS[ctx.household.rules.legacy_divisor]}），"
        f"2021年起每 {CURRENT_ROUNDS_PER_STEP} 期 1 阶；主申请人持C5驾照另加 1 阶。",
        "- 新能源轮候、家庭申请年限按年计分，家庭申请年限加分计入每位家庭申请人。",
        "- 含配偶时：总积分 = [(主申请人积分 + 配偶积分) × 2 + 其他成员积分之和] × 家庭代际数。",
        "- 不含配偶时：总积分 = (主申请人积分 + 其他成员积分之和) × 家庭代际数。",
        "",
    ])


def render_report(ctx: ReportContext) -> str:
    """Render a complete Markdown report from a ReportContext."""
    sections = [
        _render_title(ctx),
        _render_params(ctx),
        _render_members(ctx),
        _render_forecast(ctx),
        _render_rules(ctx),
    ]
    return "\n".join(s for s in sections if s)
