"""Tests for household aggregation and membership editing."""

import pytest
from nev_points_bj import (
    HouseholdParams,
    Member,
    Role,
    Relation,
    StartHalf,
    aggregate,
    household_total,
    format_formula,
    default_members,
    add_member,
    remove_member,
    update_member,
)
from nev_points_bj.household import (
    MSG_MULTIPLE_MAIN,
    MSG_MULTIPLE_SPOUSE,
    MSG_NO_MAIN,
    MSG_NO_SPOUSE,
)


class TestHouseholdTotal:
    def test_include_spouse(self):
        """[(18 + 16) × 2 + 12] × 2 = 160"""
        assert household_total(18, 16, 12, 2, True) == 160

    def test_exclude_spouse(self):
        """(17 + 24) × 2 = 82"""
        assert household_total(17, 0, 24, 2, False) == 82

    def test_exclude_ignores_spouse_point(self):
        assert household_total(17, 99, 24, 2, False) == 82


class TestFormatFormula:
    def test_include_spouse(self):
        assert format_formula(18, 16, 12, 2, True) == "总积分 = [(18 + 16) × 2 + 12] × 2"

    def test_exclude_spouse(self):
        assert format_formula(17, 0, 24, 2, False) == "总积分 = (17 + 24) × 2"


class TestAggregateValidation:
    def test_no_main(self):
        members = [Member(id=1, role=Role.OTHER)]
        r = aggregate(members, HouseholdParams(stat_year=2025, include_spouse=False))
        assert not r.ok
        assert r.message == MSG_NO_MAIN
        assert r.total == 0
        assert r.detail == []
        assert r.formula_text == ""

    def test_no_main_checked_before_spouse(self):
        members = [Member(id=1, role=Role.OTHER)]
        r = aggregate(members, HouseholdParams(stat_year=2025, include_spouse=True))
        assert r.message == MSG_NO_MAIN

    def test_spouse_flag_without_spouse(self):
        members = [Member(id=1, role=Role.MAIN), Member(id=2, role=Role.OTHER)]
        r = aggregate(members, HouseholdParams(stat_year=2025, include_spouse=True))
        assert not r.ok
        assert r.message == MSG_NO_SPOUSE
        assert r.total == 0
        assert r.detail == []

    def test_multiple_main(self):
        members = [Member(id=1, role=Role.MAIN), Member(id=2, role=Role.MAIN)]
        r = aggregate(members, HouseholdParams(stat_year=2025, include_spouse=False))
        assert r.message == MSG_MULTIPLE_MAIN

    def test_multiple_spouse(self):
        members = [
            Member(id=1, role=Role.MAIN),
            Member(id=2, role=Role.SPOUSE),
            Member(id=3, role=Role.SPOUSE),
        ]
        r = aggregate(members, HouseholdParams(stat_year=2025, include_spouse=True))
        assert r.message == MSG_MULTIPLE_SPOUSE

    def test_failure_as_dict(self):
        r = aggregate([], HouseholdParams(stat_year=2025))
        assert r.as_dict() == {"ok": False, "message": MSG_NO_MAIN}


class TestAggregateDefaults:
    """Members without history: main 2+3, spouse 1+3, other 1+3 (family 2023→2025 = 3)."""

    def setup_method(self):
        self.members = default_members()

    def test_include_spouse(self):
        params = HouseholdParams(stat_year=2025, family_apply_start_year=2023,
                                 generations=2, include_spouse=True)
        r = aggregate(self.members, params)
        assert r.ok
        assert r.family_years == 3
        assert (r.main_point, r.spouse_point, r.others_point) == (5, 4, 4)
        assert r.total == ((5 + 4) * 2 + 4) * 2
        assert len(r.detail) == 3

    def test_exclude_spouse_drops_spouse(self):
        params = HouseholdParams(stat_year=2025, family_apply_start_year=2023,
                                 generations=2, include_spouse=False)
        r = aggregate(self.members, params)
        assert r.ok
        assert r.spouse_point == 0
        assert r.total == (5 + 4) * 2
        assert [d.role for d in r.detail] == ["main", "other"]
        assert r.formula_text == "总积分 = (5 + 4) × 2"

    def test_exclude_spouse_without_spouse_member(self):
        members = [Member(id=1, role=Role.MAIN)]
        r = aggregate(members, HouseholdParams(stat_year=2025, generations=1, include_spouse=False))
        assert r.ok
        assert r.total == 2

    def test_generations_clamped(self):
        params = HouseholdParams(stat_year=2025, generations=5, include_spouse=False)
        assert params.generations == 3
        r = aggregate([Member(id=1, role=Role.MAIN)], params)
        assert r.total == 6


class TestAggregateFamily:
    """三口之家（主申请人有C5、配偶下半年起摇号、子女仅新能源轮候）"""

    def setup_method(self):
        self.members = [
            Member(id=1, role=Role.MAIN, name="爸爸", ordinary_start_year=2015,
                   new_energy_start_year=2019, has_c5=True),
            Member(id=2, role=Role.SPOUSE, name="妈妈", ordinary_start_year=2016,
                   ordinary_start_half=StartHalf.H2, new_energy_start_year=2020),
            Member(id=3, role=Role.OTHER, name="孩子", relation=Relation.CHILD,
                   new_energy_start_year=2022),
        ]
        self.params = HouseholdParams(stat_year=2025, family_apply_start_year=2022,
                                      generations=2, include_spouse=True)

    def test_member_points(self):
        r = aggregate(self.members, self.params)
        # 爸爸: 2 + (13 + 5 + 1) + 7 + 4 = 32
        # 妈妈: 1 + (13 + 5) + 6 + 4 = 29
        # 孩子: 1 + 0 + 4 + 4 = 9
        assert [d.point for d in r.detail] == [32, 29, 9]

    def test_total_and_formula(self):
        r = aggregate(self.members, self.params)
        assert r.total == 262
        assert r.formula_text == "总积分 = [(32 + 29) × 2 + 9] × 2"

    def test_as_dict(self):
        d = aggregate(self.members, self.params).as_dict()
        assert d["ok"] is True
        assert d["total"] == 262
        assert [m["name"] for m in d["detail"]] == ["爸爸", "妈妈", "孩子"]
        assert d["detail"][2]["relation"] == "child"

    def test_pure(self):
        first = aggregate(self.members, self.params)
        second = aggregate(self.members, self.params)
        assert first == second


class TestAggregateFormulaExamples:
    """家庭申请 2025 年起（+1），统计年份 2025，两代"""

    def setup_method(self):
        self.params = HouseholdParams(stat_year=2025, family_apply_start_year=2025,
                                      generations=2, include_spouse=True)

    def test_include_spouse_160(self):
        members = [
            # 2 + 5 (2021-2025: 30期) + 10 + 1 = 18
            Member(id=1, role=Role.MAIN, ordinary_start_year=2021, new_energy_start_year=2016),
            # 1 + (6 + 5) + 3 + 1 = 16
            Member(id=2, role=Role.SPOUSE, ordinary_start_year=2019, new_energy_start_year=2023),
            # 1 + 0 + 10 + 1 = 12
            Member(id=3, role=Role.OTHER, new_energy_start_year=2016),
        ]
        r = aggregate(members, self.params)
        assert (r.main_point, r.spouse_point, r.others_point) == (18, 16, 12)
        assert r.total == 160
        assert r.formula_text == "总积分 = [(18 + 16) × 2 + 12] × 2"

    def test_exclude_spouse_82(self):
        members = [
            # 2 + 5 + 9 + 1 = 17
            Member(id=1, role=Role.MAIN, ordinary_start_year=2021, new_energy_start_year=2017),
            Member(id=2, role=Role.SPOUSE, ordinary_start_year=2019, new_energy_start_year=2023),
            Member(id=3, role=Role.OTHER, new_energy_start_year=2016),
            Member(id=4, role=Role.OTHER, new_energy_start_year=2016),
        ]
        params = HouseholdParams(stat_year=2025, family_apply_start_year=2025,
                                 generations=2, include_spouse=False)
        r = aggregate(members, params)
        assert (r.main_point, r.spouse_point, r.others_point) == (17, 0, 24)
        assert r.total == 82
        assert r.formula_text == "总积分 = (17 + 24) × 2"


class TestMembershipEditing:
    def setup_method(self):
        self.members = default_members()

    def test_default_members(self):
        assert [m.role for m in self.members] == [Role.MAIN, Role.SPOUSE, Role.OTHER]
        assert [m.name for m in self.members] == ["主申请人", "配偶", "成员1"]

    def test_add_other(self):
        updated = add_member(self.members)
        assert len(updated) == 4
        assert updated[-1].id == 4
        assert updated[-1].name == "成员4"
        assert updated[-1].role == Role.OTHER
        assert len(self.members) == 3

    def test_add_to_empty(self):
        updated = add_member([], role=Role.MAIN)
        assert updated[0].id == 1
        assert updated[0].relation == Relation.SELF

    def test_add_with_fields(self):
        updated = add_member(self.members, name="奶奶", relation=Relation.PARENT,
                             new_energy_start_year=2021)
        assert updated[-1].name == "奶奶"
        assert updated[-1].relation == Relation.PARENT
        assert updated[-1].new_energy_start_year == 2021

    def test_add_second_main_rejected(self):
        with pytest.raises(ValueError, match="主申请人只能有 1 名"):
            add_member(self.members, role=Role.MAIN)

    def test_add_second_spouse_rejected(self):
        with pytest.raises(ValueError, match="配偶只能有 1 名"):
            add_member(self.members, role=Role.SPOUSE)

    def test_remove(self):
        updated = remove_member(self.members, 3)
        assert [m.id for m in updated] == [1, 2]

    def test_remove_unknown(self):
        with pytest.raises(ValueError, match="成员不存在"):
            remove_member(self.members, 99)

    def test_update_fields(self):
        updated = update_member(self.members, 3, name="孩子", new_energy_start_year=2022)
        assert updated[2].name == "孩子"
        assert updated[2].new_energy_start_year == 2022
        assert self.members[2].name == "成员1"

    def test_update_role_conflict(self):
        with pytest.raises(ValueError):
            update_member(self.members, 3, role=Role.SPOUSE)

    def test_update_role_after_removal(self):
        updated = remove_member(self.members, 2)
        updated = update_member(updated, 3, role=Role.SPOUSE)
        assert updated[1].role == Role.SPOUSE

    def test_update_id_rejected(self):
        with pytest.raises(ValueError, match="id"):
            update_member(self.members, 3, id=10)
