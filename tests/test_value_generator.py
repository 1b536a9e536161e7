"""Tests for location value rows and the coverage code lookup."""
import pytest

from conftest import make_location

from graph.nodes import value_generator
from graph.nodes.value_generator import generate_values
from schemas import LocationType, PropertyType
from services.coverage_codes import COVERAGE_CODES, describe_coverage


def _homeowner(**overrides):
    fields = dict(
        location_type=LocationType.HOMEOWNER,
        loc_hsp_ft_prem=120.0,
        loc_hsp_prem_writ=100.0,
        loc_hsp_comm=0.10,
        loc_hsp_deduct=250.0,
        loc_hsp_limit=10000.0,
        loc_slc_ft_prem=60.0,
        loc_slc_prem_writ=50.0,
        loc_slc_comm=0.12,
        loc_slc_deduct=500.0,
        loc_slc_limit=5000.0,
    )
    fields.update(overrides)
    return make_location(**fields)


class TestCoverageCodes:
    @pytest.mark.parametrize(
        "code, description",
        [
            ("691", "Blanket Business Interruption Insurance (Gross Earnings Form)"),
            ("692", "Blanket Business Interruption Insurance (Profits Form)"),
            ("272", "Blanket Earnings Insurance (No Co-Insurance Form)"),
            ("313", "Blanket Extra Expense Insurance"),
            ("561", "Blanket Rent or Rental Value Insurance"),
            ("127", "Business Interruption (Gross Earnings Form)"),
            ("126", "Business Interruption (Gross Rentals Form)"),
            ("128", "Business Interruption (Profits Form)"),
        ],
    )
    def test_known_code(self, code, description):
        assert describe_coverage(code) == description

    def test_unlisted_numeric_codes_pass_through(self):
        assert describe_coverage("690") == "690"
        assert describe_coverage("694") == "694"

    def test_unknown_code_is_identity(self):
        assert describe_coverage("X99") == "X99"

    def test_eight_codes(self):
        assert len(COVERAGE_CODES) == 8


class TestHomeownerValues:
    def test_hsp_only(self):
        values = generate_values(_homeowner(loc_bm_cov="HSP"))
        assert len(values) == 1
        v = values[0]
        assert v.property_type == PropertyType.HSP
        assert v.value_no == 1
        assert v.loc_bm_cov == "0"
        assert (v.premium_written, v.full_term_premium, v.commission) == (100.0, 120.0, 0.10)
        assert (v.deductible, v.insured_limit) == (250.0, 10000.0)

    def test_slc_only(self):
        values = generate_values(_homeowner(loc_bm_cov="SLC"))
        assert [v.property_type for v in values] == [PropertyType.SLC]
        assert values[0].commission == 0.12
        assert values[0].loc_bm_cov == "0"

    def test_hsp_slc_emits_both_in_order(self):
        values = generate_values(_homeowner(loc_bm_cov="HSP/SLC"))
        assert [v.property_type for v in values] == [PropertyType.HSP, PropertyType.SLC]
        assert [v.value_no for v in values] == [1, 2]

    def test_other_coverage_emits_nothing(self):
        assert generate_values(_homeowner(loc_bm_cov="HOMEOWNERS")) == []
        assert generate_values(_homeowner(loc_bm_cov=None)) == []


class TestCommercialValues:
    def test_only_complete_slots_with_contiguous_numbers(self):
        loc = make_location(
            loc_building_limit=400000.0,
            loc_bi_form_1="691",
            loc_bi_limit_1=None,
            loc_bi_form_2="691",
            loc_bi_limit_2=50000.0,
            loc_bi_form_3="",
            loc_bi_limit_3=10000.0,
            loc_bi_form_5="X12",
            loc_bi_limit_5=20000.0,
        )
        values = generate_values(loc)
        assert [v.value_no for v in values] == [1, 2]
        assert all(v.property_type == PropertyType.BI for v in values)
        assert values[0].bi_form == "Blanket Business Interruption Insurance (Gross Earnings Form)"
        assert values[0].bi_limit == 50000.0
        assert values[1].bi_form == "X12"
        assert values[1].bi_limit == 20000.0

    def test_bi_value_is_building_limit(self):
        loc = make_location(loc_building_limit=400000.0, loc_bi_form_4="313", loc_bi_limit_4=25000.0)
        (value,) = generate_values(loc)
        assert value.bi_value == 400000.0
        assert value.bi_limit == 25000.0

    def test_bi_rows_carry_only_form_limit_and_value(self):
        loc = make_location(
            loc_building_limit=400000.0,
            loc_deduct=1000.0,
            loc_bm_cov="B",
            loc_bi_form_1="127",
            loc_bi_limit_1=5000.0,
        )
        (value,) = generate_values(loc)
        assert value.bi_form == "Business Interruption (Gross Earnings Form)"
        assert value.deductible is None
        assert value.loc_bm_cov is None
        assert value.premium_written is None
        assert value.insured_limit is None

    def test_no_bi_data_is_empty(self):
        assert generate_values(make_location(loc_building_limit=100.0)) == []


def test_node_generates_for_every_location():
    state = {
        "locations": [
            _homeowner(loc_bm_cov="HSP/SLC").model_dump(),
            make_location(line_number="2", loc_bi_form_1="127", loc_bi_limit_1=1.0).model_dump(),
        ]
    }
    out = value_generator.run(state=state)
    rows = out["location_values"]
    assert [(r["loc_line_no"], r["value_no"]) for r in rows] == [("1", 1), ("1", 2), ("2", 1)]
