"""CLI entry point for chart generation."""

import sys
from pathlib import Path

from nev_points_bj.charts import plot_member_breakdown, plot_score_trend
from nev_points_bj.config import parse_args
from nev_points_bj.forecast import next_years, recent_history, predict
from nev_points_bj.household import aggregate
from nev_points_bj.rules import FORECAST_WINDOW


def _add_chart_args(parser):
    parser.add_argument(
        "--output", type=Path, default=Path("reports/charts"),
        help="输出目录 (default: reports/charts)",
    )
    parser.add_argument(
        "--name", type=str, default="",
        help="输出文件名后缀（例: a → members-a.png）",
    )
    parser.add_argument(
        "--forecast-years", type=int, default=FORECAST_WINDOW,
        help=f"预测年数 (default: {FORECAST_WINDOW})",
    )


def main():
    try:
        household, args = parse_args("北京新能源家庭积分 图表生成", _add_chart_args)
    except ValueError as e:
        print(f"输入无效: {e}", file=sys.stderr)
        raise SystemExit(1)

    result = aggregate(household.members, household.params, household.rules)
    if result.ok:
        path = plot_member_breakdown(result, args.output, name=args.name)
        print(f"  → {path}", file=sys.stderr)
    else:
        print(f"  成员积分: {result.message}（跳过）", file=sys.stderr)

    history = recent_history(household.history)
    if any(p.score is not None for p in history):
        forecast = predict(history, next_years(history, args.forecast_years))
        path = plot_score_trend(
            history, forecast, args.output, name=args.name,
            household_total=result.total if result.ok else None,
        )
        print(f"  → {path}", file=sys.stderr)
    else:
        print("  趋势: 无历史分数（跳过）", file=sys.stderr)

    print("完成", file=sys.stderr)


if __name__ == "__main__":
    main()
