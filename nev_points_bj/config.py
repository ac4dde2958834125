"""TOML config loader with CLI > config > default resolution."""

import argparse
import re
import sys
import tomllib
from pathlib import Path
from typing import Callable

from nev_points_bj.household import default_members
from nev_points_bj.params import (
    HistoryPoint,
    Household,
    HouseholdParams,
    Member,
    Role,
    RuleConfig,
    StartHalf,
)
from nev_points_bj.rules import LegacyDivisor, OrdinaryStepMode, YearCounting

DEFAULT_CONFIG_PATH = Path("config.toml")

DEFAULTS = {
    "stat_year": 2025,
    "family_apply_start_year": None,
    "generations": 2,
    "include_spouse": True,
    "year_counting": YearCounting.INCLUSIVE.value,
    "ordinary_step_mode": OrdinaryStepMode.ROUNDS.value,
    "legacy_divisor": LegacyDivisor.HALF_CAPPED.value,
    "members": None,  # None: 使用默认成员（主申请人 + 配偶 + 成员1）
    "history": "",
}

# Member table keys accepted from TOML
_MEMBER_KEYS = {
    "id", "role", "name", "relation",
    "ordinary_start_year", "ordinary_start_half",
    "new_energy_start_year", "has_c5",
}

_ORDINARY_RE = re.compile(r"^(\d{4})(H[12])?$", re.IGNORECASE)


def load_config(path: Path | None = None) -> dict:
    """Load TOML config file. Returns empty dict if file doesn't exist."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        print(f"配置文件读取失败: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    # Normalize members: [[members]] tables → list[Member]
    if "members" in raw and isinstance(raw["members"], list):
        raw["members"] = parse_member_tables(raw["members"])
    # Normalize history: [[2021, 38], [2022]] → list[HistoryPoint]
    if "history" in raw and isinstance(raw["history"], list):
        raw["history"] = parse_history_pairs(raw["history"])
    return raw


def parse_member_tables(tables: list[dict]) -> list[Member]:
    """Build members from TOML tables; ids default to position (1-based)."""
    members = []
    for i, table in enumerate(tables, start=1):
        unknown = set(table) - _MEMBER_KEYS
        if unknown:
            raise ValueError(f"成员配置包含未知字段: {', '.join(sorted(unknown))}")
        values = dict(table)
        values.setdefault("id", i)
        values.setdefault("role", Role.OTHER.value)
        try:
            members.append(Member(**values))
        except ValueError as e:
            raise ValueError(f"成员配置无效（第{i}人）: {e}") from e
    return members


def parse_history_pairs(pairs: list) -> list[HistoryPoint]:
    """[[year, score], [year]] → HistoryPoints (a missing score means unknown)."""
    points = []
    for pair in pairs:
        if not isinstance(pair, list) or not 1 <= len(pair) <= 2:
            raise ValueError(f"历史分数格式错误: {pair!r}（应为 [年份] 或 [年份, 分数]）")
        score = float(pair[1]) if len(pair) == 2 else None
        points.append(HistoryPoint(int(pair[0]), score))
    return sorted(points, key=lambda p: p.year)


def parse_members(s: str) -> list[Member]:
    """Parse members string "role[:ordinary[:new_energy[:c5]]],..." → list[Member].

    ordinary is YYYY or YYYYH2, e.g. "main:2015H2:2019:c5,spouse:2016,other".
    Empty fields mean "not participating".
    """
    s = str(s).strip()
    if not s:
        return []
    members = []
    for i, part in enumerate(s.split(","), start=1):
        fields = [f.strip() for f in part.strip().split(":")]
        if len(fields) > 4:
            raise ValueError(f"成员格式错误: {part!r}")
        fields += [""] * (4 - len(fields))
        role, ordinary, new_energy, flag = fields
        try:
            role = Role(role.lower())
        except ValueError:
            raise ValueError(f"未知角色: {role!r}（main / spouse / other）") from None

        ordinary_year = None
        half = StartHalf.H1
        if ordinary:
            m = _ORDINARY_RE.match(ordinary)
            if not m:
                raise ValueError(f"普通摇号起始格式错误: {ordinary!r}（例: 2015 或 2015H2）")
            ordinary_year = int(m.group(1))
            if m.group(2):
                half = StartHalf(m.group(2).upper())

        if flag and flag.lower() != "c5":
            raise ValueError(f"未知标记: {flag!r}（仅支持 c5）")

        members.append(Member(
            id=i,
            role=role,
            ordinary_start_year=ordinary_year,
            ordinary_start_half=half,
            new_energy_start_year=int(new_energy) if new_energy else None,
            has_c5=bool(flag),
        ))
    return members


def parse_history(s: str) -> list[HistoryPoint]:
    """Parse history string "2021:38,2022:40,2023" → HistoryPoints sorted by year."""
    s = str(s).strip()
    if not s:
        return []
    points = []
    for part in s.split(","):
        part = part.strip()
        if not part:
            continue
        year, _, score = part.partition(":")
        try:
            points.append(HistoryPoint(int(year), float(score) if score.strip() else None))
        except ValueError:
            raise ValueError(f"历史分数格式错误: {part!r}（例: 2021:38 或 2023）") from None
    return sorted(points, key=lambda p: p.year)


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared household flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="配置文件路径 (default: config.toml)")
    parser.add_argument("--stat-year", type=int, default=None, help=f"积分统计年份 (default: {d['stat_year']})")
    parser.add_argument("--family-apply-start-year", type=int, default=None, help="家庭申请起始年份（不填则不加分）")
    parser.add_argument("--generations", type=int, default=None, help=f"家庭代际数 1-3 (default: {d['generations']})")
    parser.add_argument("--include-spouse", action=argparse.BooleanOptionalAction, default=None, help="家庭申请人中包含主申请人配偶 (default: 包含)")
    parser.add_argument("--year-counting", type=str, default=None, choices=[v.value for v in YearCounting], help=f"轮候/家庭年限计算方式 (default: {d['year_counting']})")
    parser.add_argument("--ordinary-step-mode", type=str, default=None, choices=[v.value for v in OrdinaryStepMode], help=f"普通摇号阶梯计算方式 (default: {d['ordinary_step_mode']})")
    parser.add_argument("--legacy-divisor", type=str, default=None, choices=[v.value for v in LegacyDivisor], help=f"2020年及以前的期数换算方式 (default: {d['legacy_divisor']})")
    parser.add_argument("--members", type=str, default=None, help="成员（逗号分隔，例: main:2015H2:2019:c5,spouse:2016,other）")
    parser.add_argument("--history", type=str, default=None, help="历史最低分（逗号分隔，例: 2021:38,2022:40,2023）")
    return parser


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default."""
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    return resolved


def build_household(r: dict) -> Household:
    """Build a Household from a resolved config dict."""
    members = r["members"]
    if isinstance(members, str):
        members = parse_members(members)
    history = r["history"]
    if isinstance(history, str):
        history = parse_history(history)
    try:
        rules = RuleConfig(
            year_counting=r["year_counting"],
            ordinary_step_mode=r["ordinary_step_mode"],
            legacy_divisor=r["legacy_divisor"],
        )
    except ValueError as e:
        raise ValueError(f"规则配置无效: {e}") from e
    return Household(
        params=HouseholdParams(
            stat_year=int(r["stat_year"]),
            family_apply_start_year=r["family_apply_start_year"],
            generations=r["generations"],
            include_spouse=bool(r["include_spouse"]),
        ),
        members=default_members() if members is None else members,
        rules=rules,
        history=history,
    )


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[Household, argparse.Namespace]:
    """Parse CLI args, load config, resolve values.

    Returns (household, namespace); namespace carries extra CLI args added via add_args_fn.
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    config = load_config(args.config)
    r = resolve(args, config)
    return build_household(r), args
