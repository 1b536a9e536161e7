"""
Pytest configuration and fixtures for the ingestion pipeline tests.

Provides factories for raw records, locations and policies matching the
model definitions.
"""
from typing import Dict, Optional

import pytest

from exceptions import RepositoryError
from graph.nodes.location_extractor import COMMERCIAL_LAYOUT, HOMEOWNER_LAYOUT
from schemas import Location, LocationType, LocationValue, Policy, PropertyType
from services.repository import InMemoryRepository

COMPANY = "01"
VALID_CODES = ["1234", "5678", "9100"]


# =============================================================================
# Factory Helpers
# =============================================================================

def make_record(layout, overrides: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    """A raw record holding every key of `layout`, blank unless overridden."""
    record = {key: "" for key, _, _ in layout}
    record.update(overrides or {})
    return record


def homeowner_record(**overrides: str) -> Dict[str, str]:
    base = {
        "LINENO": "1",
        "LOCNAME": "Main residence",
        "LOCBUSCODE": "1234",
        "LOCBMCOV": "HSP",
        "LOCHSPFTPREM": "120.00",
        "LOCHSPPREMWRIT": "100.00",
        "LOCHSPCOMM": "0.10",
        "LOCHSPDEDUCT": "250",
        "LOCHSPLIMIT": "10000",
    }
    base.update(overrides)
    return make_record(HOMEOWNER_LAYOUT, base)


def commercial_record(**overrides: str) -> Dict[str, str]:
    base = {
        "LINENO": "1",
        "LOCNAME": "Warehouse",
        "LOCBUSCODE": "5678",
        "LOCBLDGLIMIT": "500000",
        "LOCDEDUCT": "1000",
        "LOCCONTLIMIT": "150000",
    }
    base.update(overrides)
    return make_record(COMMERCIAL_LAYOUT, base)


def make_location(**overrides) -> Location:
    fields = {
        "line_number": "1",
        "location_type": LocationType.COMMERCIAL,
        "location_bus_code": "1234",
        "edi_rec_no": 100,
    }
    fields.update(overrides)
    return Location(**fields)


def make_value(property_type: PropertyType, commission: Optional[float], value_no: int = 1) -> LocationValue:
    return LocationValue(
        edi_rec_no=100,
        loc_line_no="1",
        value_no=value_no,
        property_type=property_type,
        commission=commission,
    )


def make_policy(**overrides) -> Policy:
    fields = {
        "rec_no": 100,
        "policy_number": "POL-0001",
        "company_number": COMPANY,
        "transaction_code": 1,
    }
    fields.update(overrides)
    return Policy(**fields)


class UnavailableRepository(InMemoryRepository):
    """A store whose reference lookups fail, as when the database is down."""

    def find_valid_business_codes(self, company_number: str):
        raise RepositoryError(f"business code lookup failed for company {company_number}")


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def valid_codes():
    return set(VALID_CODES)


@pytest.fixture
def repository() -> InMemoryRepository:
    return InMemoryRepository(valid_business_codes={COMPANY: VALID_CODES})


@pytest.fixture
def homeowner_package_types():
    return frozenset({"HO", "HOM", "HSP", "SLC", "HSPSLC"})
