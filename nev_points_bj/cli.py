"""CLI entry point for the household point calculation."""

import json
import sys
from pathlib import Path

from nev_points_bj.config import parse_args
from nev_points_bj.forecast import next_years, recent_history, predict
from nev_points_bj.household import AggregateResult, aggregate
from nev_points_bj.params import Household, HistoryPoint, role_label
from nev_points_bj.report import (
    LEGACY_DIVISOR_LABELS,
    ORDINARY_MODE_LABELS,
    YEAR_COUNTING_LABELS,
    build_report_context,
    fmt_score,
    fmt_year,
    render_report,
)
from nev_points_bj.rules import DISCLAIMER, FORECAST_WINDOW, OrdinaryStepMode


def _add_cli_args(parser):
    parser.add_argument(
        "--forecast-years", type=int, default=FORECAST_WINDOW,
        help=f"预测年数 (default: {FORECAST_WINDOW})",
    )
    parser.add_argument(
        "--report", type=Path, default=None,
        help="Markdown 报告输出路径（例: reports/report.md）",
    )
    parser.add_argument(
        "--json", action="store_true",
        help="以 JSON 输出计算结果",
    )


def _print_header(household: Household):
    p = household.params
    rules = household.rules
    print("=" * 80)
    print(f"北京新能源家庭积分估算（统计年份 {p.stat_year}年）")
    print(f"  家庭申请起始: {fmt_year(p.family_apply_start_year)} / 代际数: {p.generations}"
          f" / 包含配偶: {'是' if p.include_spouse else '否'}")
    print(f"  年限计算: {YEAR_COUNTING_LABELS[rules.year_counting]}")
    print(f"  普通摇号阶梯: {ORDINARY_MODE_LABELS[rules.ordinary_step_mode]}")
    if rules.ordinary_step_mode == OrdinaryStepMode.ROUNDS:
        print(f"  2020年及以前换算: {LEGACY_DIVISOR_LABELS[rules.legacy_divisor]}")
    print(f"  ※ {DISCLAIMER}")
    print("=" * 80)
    print()


def _print_member_table(result: AggregateResult):
    print("【成员积分】")
    print("-" * 80)
    print(f"{'成员':<10} {'角色':<8} {'基础':>4} {'阶梯':>4} {'期数':>5} {'轮候':>4} {'家庭':>4} {'个人积分':>8}")
    print("-" * 80)
    for d in result.detail:
        step = d.ordinary_step
        c5 = "*" if step.c5_bonus else " "
        print(
            f"{d.name:<10} {role_label(d.role):<8} "
            f"{d.base:>4} {step.total:>3}{c5} {step.rounds:>5} "
            f"{d.queue_years:>4} {d.family_years:>4} {d.point:>8}"
        )
    print("-" * 80)
    if any(d.ordinary_step.c5_bonus for d in result.detail):
        print("  * 含C5驾照加分 1 阶")


def _print_forecast(history: list[HistoryPoint], forecast: list[HistoryPoint]):
    if not history:
        return
    print("\n【最低入围分数趋势】")
    print("-" * 40)
    for p in history:
        print(f"  {p.year}  {fmt_score(p.score):>8}  历史")
    for p in forecast:
        print(f"  {p.year}  {fmt_score(p.score):>8}  预测")
    print("-" * 40)
    if forecast and all(p.score is None for p in forecast):
        print("  已知历史分数不足 2 年，无法预测")


def main():
    """Execute household point calculation"""
    try:
        household, args = parse_args("北京新能源家庭积分计算器", _add_cli_args)
    except ValueError as e:
        print(f"输入无效: {e}", file=sys.stderr)
        raise SystemExit(1)

    result = aggregate(household.members, household.params, household.rules)
    history = recent_history(household.history)
    forecast = predict(history, next_years(history, args.forecast_years))

    if args.json:
        payload = result.as_dict()
        payload["forecast"] = [{"year": p.year, "score": p.score} for p in forecast]
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        _print_header(household)
        if result.ok:
            _print_member_table(result)
            print(f"\n{result.formula_text} = {result.total}")
            print(f"家庭总积分: {result.total}")
        else:
            print(f"⚠ {result.message}")
        _print_forecast(history, forecast)

    if args.report:
        ctx = build_report_context(household, forecast_years=args.forecast_years)
        args.report.parent.mkdir(parents=True, exist_ok=True)
        args.report.write_text(render_report(ctx), encoding="utf-8")
        print(f"  → {args.report}", file=sys.stderr)

    if not result.ok:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
