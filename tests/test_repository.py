"""Tests for the in-memory persistence collaborator."""
import json
import logging

import pytest

from conftest import make_location, make_policy

from exceptions import ConfigurationError
from schemas import LocationValue, PropertyType
from services.repository import (
    LOCATION_TABLE,
    LOCATION_VALUE_TABLE,
    InMemoryRepository,
    load_business_codes,
)


def test_save_and_query(repository):
    repository.save_location(make_location())
    repository.save_location_values(
        [LocationValue(loc_line_no="1", value_no=1, property_type=PropertyType.BI)]
    )
    repository.save_policy(make_policy(rec_no=10))
    repository.save_policy(make_policy(rec_no=20))
    repository.save_policy(make_policy(rec_no=30, policy_number="OTHER"))

    assert len(repository.tables[LOCATION_TABLE]) == 1
    assert len(repository.tables[LOCATION_VALUE_TABLE]) == 1
    assert [p.rec_no for p in repository.find_previous_policies("POL-0001", 20)] == [10]


def test_saved_policy_is_a_snapshot(repository):
    policy = make_policy(rec_no=10)
    repository.save_policy(policy)
    policy.status = "N"
    assert repository.find_previous_policies("POL-0001", 11)[0].status == "Y"


def test_valid_codes(repository):
    assert repository.find_valid_business_codes("01") == {"1234", "5678", "9100"}


def test_unknown_company_has_no_valid_codes(caplog):
    with caplog.at_level(logging.WARNING):
        assert InMemoryRepository().find_valid_business_codes("99") == set()
    assert any("no business codes on file" in r.getMessage() for r in caplog.records)


def test_load_business_codes(tmp_path):
    path = tmp_path / "codes.json"
    path.write_text(json.dumps({"01": ["1234", " 5678 "], "2": []}))
    repo = InMemoryRepository(valid_business_codes=load_business_codes(str(path)))
    assert repo.find_valid_business_codes("01") == {"1234", "5678"}
    assert repo.find_valid_business_codes("2") == set()


@pytest.mark.parametrize("content", ["not json", "[1, 2]"])
def test_load_business_codes_rejects_bad_files(tmp_path, content):
    path = tmp_path / "codes.json"
    path.write_text(content)
    with pytest.raises(ConfigurationError):
        load_business_codes(str(path))


def test_load_business_codes_missing_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_business_codes(str(tmp_path / "absent.json"))
