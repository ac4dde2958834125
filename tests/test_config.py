"""Tests for config loading, string parsing and value resolution."""

import argparse

import pytest
from nev_points_bj.config import (
    DEFAULTS,
    build_household,
    load_config,
    parse_history,
    parse_member_tables,
    parse_members,
    resolve,
)
from nev_points_bj.household import MSG_NO_MAIN, aggregate
from nev_points_bj.params import HistoryPoint, Relation, Role, StartHalf
from nev_points_bj.rules import LegacyDivisor, YearCounting


class TestParseMembers:
    def test_full_format(self):
        members = parse_members("main:2015H2:2019:c5,spouse:2016,other")
        assert [m.role for m in members] == [Role.MAIN, Role.SPOUSE, Role.OTHER]
        assert [m.id for m in members] == [1, 2, 3]
        main = members[0]
        assert main.ordinary_start_year == 2015
        assert main.ordinary_start_half == StartHalf.H2
        assert main.new_energy_start_year == 2019
        assert main.has_c5 is True
        assert members[1].ordinary_start_half == StartHalf.H1
        assert members[1].new_energy_start_year is None
        assert members[2].ordinary_start_year is None
        assert members[2].name == "成员3"

    def test_skip_ordinary(self):
        m = parse_members("other::2021")[0]
        assert m.ordinary_start_year is None
        assert m.new_energy_start_year == 2021

    def test_empty(self):
        assert parse_members("") == []

    def test_unknown_role(self):
        with pytest.raises(ValueError, match="未知角色"):
            parse_members("boss:2015")

    def test_bad_ordinary(self):
        with pytest.raises(ValueError, match="普通摇号起始格式错误"):
            parse_members("main:15H3")

    def test_unknown_flag(self):
        with pytest.raises(ValueError, match="未知标记"):
            parse_members("main:2015:2019:vip")

    def test_too_many_fields(self):
        with pytest.raises(ValueError, match="成员格式错误"):
            parse_members("main:2015:2019:c5:x")


class TestParseHistory:
    def test_with_unknown(self):
        assert parse_history("2022:40,2021:38,2023") == [
            HistoryPoint(2021, 38.0),
            HistoryPoint(2022, 40.0),
            HistoryPoint(2023, None),
        ]

    def test_empty(self):
        assert parse_history(" ") == []

    def test_bad_score(self):
        with pytest.raises(ValueError, match="历史分数格式错误"):
            parse_history("2021:abc")

    def test_bad_year(self):
        with pytest.raises(ValueError, match="历史分数格式错误"):
            parse_history("20x1:38")


class TestParseMemberTables:
    def test_defaults(self):
        members = parse_member_tables([{"role": "main", "has_c5": True}, {"name": "奶奶", "relation": "parent"}])
        assert members[0].id == 1
        assert members[1].id == 2
        assert members[1].role == Role.OTHER
        assert members[1].relation == Relation.PARENT

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="未知字段"):
            parse_member_tables([{"role": "main", "age": 30}])

    def test_invalid_value(self):
        with pytest.raises(ValueError, match="第1人"):
            parse_member_tables([{"role": "boss"}])


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "missing.toml") == {}

    def test_full_file(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            "\n".join([
                "stat_year = 2025",
                "family_apply_start_year = 2022",
                "generations = 3",
                "include_spouse = false",
                'year_counting = "full_years"',
                "history = [[2021, 38], [2022, 40.5], [2023]]",
                "",
                "[[members]]",
                'name = "爸爸"',
                'role = "main"',
                "ordinary_start_year = 2015",
                'ordinary_start_half = "H2"',
                "has_c5 = true",
                "",
                "[[members]]",
                'name = "孩子"',
                'relation = "child"',
                "new_energy_start_year = 2022",
            ]),
            encoding="utf-8",
        )
        raw = load_config(path)
        assert raw["stat_year"] == 2025
        assert raw["include_spouse"] is False
        assert [m.name for m in raw["members"]] == ["爸爸", "孩子"]
        assert raw["members"][0].ordinary_start_half == StartHalf.H2
        assert raw["history"][1] == HistoryPoint(2022, 40.5)
        assert raw["history"][2].score is None

    def test_decode_error(self, tmp_path, capsys):
        path = tmp_path / "broken.toml"
        path.write_text("stat_year = = 2025", encoding="utf-8")
        with pytest.raises(SystemExit):
            load_config(path)
        assert "配置文件读取失败" in capsys.readouterr().err

    def test_bad_history_pair(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("history = [[2021, 38, 1]]", encoding="utf-8")
        with pytest.raises(ValueError, match="历史分数格式错误"):
            load_config(path)


class TestResolve:
    def _ns(self, **kwargs):
        ns = argparse.Namespace(**{k: None for k in DEFAULTS})
        for k, v in kwargs.items():
            setattr(ns, k, v)
        return ns

    def test_cli_over_config_over_default(self):
        r = resolve(self._ns(stat_year=2024), {"stat_year": 2030, "generations": 3})
        assert r["stat_year"] == 2024
        assert r["generations"] == 3
        assert r["include_spouse"] is True

    def test_false_flag_is_kept(self):
        r = resolve(self._ns(include_spouse=False), {})
        assert r["include_spouse"] is False


class TestBuildHousehold:
    def test_defaults_use_default_members(self):
        household = build_household(dict(DEFAULTS))
        assert [m.role for m in household.members] == [Role.MAIN, Role.SPOUSE, Role.OTHER]
        assert household.history == []
        assert household.params.stat_year == DEFAULTS["stat_year"]

    def test_from_strings(self):
        r = dict(DEFAULTS, members="main:2018:2020:c5", history="2021:38,2022:40",
                 year_counting="full_years", legacy_divisor="per_24_uncapped", generations=7)
        household = build_household(r)
        assert len(household.members) == 1
        assert household.members[0].has_c5
        assert len(household.history) == 2
        assert household.rules.year_counting == YearCounting.FULL_YEARS
        assert household.rules.legacy_divisor == LegacyDivisor.PER_24_UNCAPPED
        assert household.params.generations == 3

    def test_explicit_empty_members_not_replaced(self):
        household = build_household(dict(DEFAULTS, members=[], include_spouse=False))
        assert household.members == []
        result = aggregate(household.members, household.params, household.rules)
        assert not result.ok
        assert result.message == MSG_NO_MAIN

    def test_empty_members_string_not_replaced(self):
        household = build_household(dict(DEFAULTS, members=""))
        assert household.members == []

    def test_empty_members_in_toml(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("members = []\ninclude_spouse = false\n", encoding="utf-8")
        r = resolve(argparse.Namespace(), load_config(path))
        household = build_household(r)
        result = aggregate(household.members, household.params, household.rules)
        assert result.message == MSG_NO_MAIN

    def test_invalid_rule(self):
        with pytest.raises(ValueError, match="规则配置无效"):
            build_household(dict(DEFAULTS, year_counting="monthly"))
