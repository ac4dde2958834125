"""Chart generation for household point results."""

import platform
from pathlib import Path

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import matplotlib.ticker as ticker

from nev_points_bj.household import AggregateResult
from nev_points_bj.params import HistoryPoint

# Component color mapping
COMPONENT_COLORS = {
    "base": "#8da0cb",
    "ordinary": "#fc8d62",
    "queue": "#66c2a5",
    "family": "#e78ac3",
}

COLOR_HISTORY = "#1f77b4"
COLOR_FORECAST = "#ff7f0e"
COLOR_TOTAL = "#d62728"


def _setup_chinese_font():
    """Configure matplotlib to use a Chinese font."""
    system = platform.system()
    if system == "Darwin":
        font_family = "PingFang SC"
    elif system == "Linux":
        font_family = "Noto Sans CJK SC"
    else:
        font_family = "sans-serif"
    plt.rcParams["font.family"] = font_family
    plt.rcParams["axes.unicode_minus"] = False


def plot_member_breakdown(result: AggregateResult, output_path: Path, name: str = "") -> Path:
    """Generate a stacked bar chart of each member's point components.

    Args:
        result: successful aggregate() result.
        output_path: directory to save the PNG.
        name: optional suffix for the output filename (e.g. "a" → "members-a.png").

    Returns:
        Path to the generated PNG file.
    """
    if not result.ok or not result.detail:
        raise ValueError("No member detail for breakdown chart")
    _setup_chinese_font()

    fig, ax = plt.subplots(figsize=(10, 6))

    labels = [d.name for d in result.detail]
    layers = [
        ("基础积分", "base", [d.base for d in result.detail]),
        ("普通摇号阶梯", "ordinary", [d.ordinary_step.total for d in result.detail]),
        ("新能源轮候", "queue", [d.queue_years for d in result.detail]),
        ("家庭申请年限", "family", [d.family_years for d in result.detail]),
    ]
    bottom = [0] * len(labels)
    for label, key, values in layers:
        ax.bar(labels, values, bottom=bottom, label=label, color=COMPONENT_COLORS[key], alpha=0.85)
        bottom = [b + v for b, v in zip(bottom, values)]

    for i, total in enumerate(bottom):
        ax.annotate(f"{total}", xy=(i, total), ha="center", va="bottom", fontsize=11, fontweight="bold")

    ax.set_ylabel("个人积分")
    ax.set_title(f"成员积分构成（家庭总积分 {result.total}）")
    ax.yaxis.set_major_locator(ticker.MaxNLocator(integer=True))
    ax.legend(loc="upper right")
    ax.grid(True, axis="y", alpha=0.3)

    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"members{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath


def plot_score_trend(
    history: list[HistoryPoint],
    forecast: list[HistoryPoint],
    output_path: Path,
    name: str = "",
    household_total: int | None = None,
) -> Path:
    """Generate a line chart of historical and projected minimum scores.

    Unknown scores are skipped; household_total, when given, is drawn as a
    horizontal reference line.
    """
    known = [p for p in history if p.score is not None]
    projected = [p for p in forecast if p.score is not None]
    if not known:
        raise ValueError("No known history scores for trend chart")
    _setup_chinese_font()

    fig, ax = plt.subplots(figsize=(10, 6))

    ax.plot([p.year for p in known], [p.score for p in known],
            marker="o", color=COLOR_HISTORY, linewidth=2, label="历史最低分")
    if projected:
        # Connect the last known point to the projection
        xs = [known[-1].year] + [p.year for p in projected]
        ys = [known[-1].score] + [p.score for p in projected]
        ax.plot(xs, ys, marker="o", linestyle="--", color=COLOR_FORECAST, linewidth=2, label="趋势预测")
        for p in projected:
            ax.annotate(f"{p.score:.1f}", xy=(p.year, p.score), textcoords="offset points",
                        xytext=(0, 6), ha="center", fontsize=9, color=COLOR_FORECAST)
    if household_total is not None:
        ax.axhline(household_total, color=COLOR_TOTAL, linewidth=1.5, linestyle=":",
                   label=f"本家庭积分 {household_total}")

    ax.set_xlabel("年份")
    ax.set_ylabel("最低入围积分")
    ax.set_title("家庭新能源指标最低入围积分趋势")
    ax.xaxis.set_major_locator(ticker.MaxNLocator(integer=True))
    ax.legend(loc="upper left")
    ax.grid(True, alpha=0.3)

    output_path.mkdir(parents=True, exist_ok=True)
    suffix = f"-{name}" if name else ""
    filepath = output_path / f"trend{suffix}.png"
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return filepath
