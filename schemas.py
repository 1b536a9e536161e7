"""
Data schemas for EDI location/policy records.

These models are the contract between the field extractor, the value
generator, the policy rules and the persistence collaborator. The API layer
reuses them for request/response validation.
"""

from datetime import datetime
from enum import Enum, IntEnum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class LocationType(str, Enum):
    HOMEOWNER = "HOMEOWNER"
    COMMERCIAL = "COMMERCIAL"


class PropertyType(str, Enum):
    HSP = "HSP"
    SLC = "SLC"
    BI = "BI"


class TransactionCode(IntEnum):
    NEW = 1
    REVISION = 2
    RENEWAL = 3
    CANCELLATION = 4
    LAPSE = 5
    REINSTATEMENT = 7


class PolicyStatus(str, Enum):
    VALID = "Y"
    PENDING = "P"
    INVALID = "N"


class Location(BaseModel):
    """
    One insured property line on a policy (an EDILOCATION row).

    Only one of the commercial or homeowner numeric groups is populated,
    selected by `location_type`. Instances are frozen; rules that change a
    location return a copy.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # Line identification
    line_name: Optional[str] = None
    line_number: str = Field(..., min_length=1)
    line_number_text: Optional[str] = None
    loc_line_no: Optional[str] = None

    loc_name: Optional[str] = None
    loc_address_type: Optional[str] = None
    loc_parcel: Optional[str] = None
    loc_lot: Optional[str] = None
    loc_block: Optional[str] = None
    loc_plan: Optional[str] = None
    loc_quarter: Optional[str] = None
    loc_section: Optional[str] = None
    loc_township: Optional[str] = None
    loc_range: Optional[str] = None
    loc_meridian: Optional[str] = None

    # Civic address
    loc_civ_suite_no: Optional[str] = None
    loc_civ_street_no: Optional[str] = None
    loc_civ_street_name: Optional[str] = None
    loc_street_code: Optional[str] = None
    loc_street_direction: Optional[str] = None
    loc_location_desc: Optional[str] = None
    loc_city: Optional[str] = None
    loc_prov: Optional[str] = None
    loc_post_code: Optional[str] = None

    # Derived on extraction: printable address line, the full location
    # description when it had to be shortened to fit, and the building name.
    loc_address: Optional[str] = None
    loc_address_desc: Optional[str] = None
    loc_building_name: Optional[str] = None

    loc_near_ind: Optional[str] = None
    loc_near_loc_name: Optional[str] = None
    loc_within_loc_name: Optional[str] = None

    location_bus_code: Optional[str] = None
    loc_bm_cov: Optional[str] = None
    loc_bm_chg_cd: Optional[str] = None

    # Commercial
    loc_building_limit: Optional[float] = None
    loc_deduct: Optional[float] = None
    loc_contents_limit: Optional[float] = None
    loc_contents_deduct: Optional[float] = None
    pol_con_limit: Optional[float] = None

    loc_bi_form_1: Optional[str] = None
    loc_bi_limit_1: Optional[float] = None
    loc_bi_form_2: Optional[str] = None
    loc_bi_limit_2: Optional[float] = None
    loc_bi_form_3: Optional[str] = None
    loc_bi_limit_3: Optional[float] = None
    loc_bi_form_4: Optional[str] = None
    loc_bi_limit_4: Optional[float] = None
    loc_bi_form_5: Optional[str] = None
    loc_bi_limit_5: Optional[float] = None
    loc_bi_form_6: Optional[str] = None
    loc_bi_limit_6: Optional[float] = None

    # Homeowner (Home Service Plan / Service Line Coverage)
    loc_hsp_ft_prem: Optional[float] = None
    loc_hsp_prem_writ: Optional[float] = None
    loc_hsp_comm: Optional[float] = None
    loc_hsp_deduct: Optional[float] = None
    loc_hsp_limit: Optional[float] = None

    loc_slc_ft_prem: Optional[float] = None
    loc_slc_prem_writ: Optional[float] = None
    loc_slc_comm: Optional[float] = None
    loc_slc_deduct: Optional[float] = None
    loc_slc_limit: Optional[float] = None

    location_type: LocationType

    # System fields
    edi_rec_no: Optional[int] = None
    create_date: Optional[datetime] = None
    update_date: Optional[datetime] = None
    create_user: Optional[int] = None
    update_user: Optional[int] = None
    error_message: Optional[str] = None
    is_valid: Optional[bool] = None

    @property
    def is_homeowner(self) -> bool:
        return self.location_type == LocationType.HOMEOWNER

    @property
    def is_commercial(self) -> bool:
        return self.location_type == LocationType.COMMERCIAL

    @property
    def insured_limit(self) -> Optional[float]:
        """Homeowner lines carry an insured limit; commercial lines do not."""
        if not self.is_homeowner:
            return None
        if self.loc_hsp_limit is not None:
            return self.loc_hsp_limit
        return self.loc_slc_limit

    @property
    def total_limit(self) -> float:
        if self.is_homeowner:
            return self.loc_hsp_limit or 0.0
        return (self.loc_building_limit or 0.0) + (self.loc_contents_limit or 0.0)

    @property
    def deductible(self) -> Optional[float]:
        if self.is_commercial:
            return self.loc_deduct
        present = [d for d in (self.loc_hsp_deduct, self.loc_slc_deduct) if d is not None]
        return max(present) if present else None

    def bi_slots(self) -> List[tuple]:
        """The six (form code, limit) business-interruption pairs in slot order."""
        return [
            (getattr(self, f"loc_bi_form_{i}"), getattr(self, f"loc_bi_limit_{i}"))
            for i in range(1, 7)
        ]

    @property
    def formatted_address(self) -> str:
        parts: List[str] = []
        if self.loc_civ_suite_no:
            parts.append(f"{self.loc_civ_suite_no}-")
        street = " ".join(
            p for p in (self.loc_civ_street_no, self.loc_civ_street_name, self.loc_street_direction) if p
        )
        return ("".join(parts) + street).strip()


class LocationValue(BaseModel):
    """One coverage slot derived from a location (an EDILOCVAL row)."""

    model_config = ConfigDict(extra="forbid")

    edi_rec_no: Optional[int] = None
    loc_line_no: str
    value_no: int = Field(..., ge=1)

    premium_written: Optional[float] = None
    full_term_premium: Optional[float] = None
    commission: Optional[float] = None
    deductible: Optional[float] = None
    insured_limit: Optional[float] = None

    property_type: PropertyType
    loc_bm_cov: Optional[str] = None

    bi_form: Optional[str] = None
    bi_limit: Optional[float] = None
    bi_value: Optional[float] = None

    create_user: Optional[int] = None


class Policy(BaseModel):
    """
    Policy header (an edipolicy row). Mutable: the aggregation rules update
    deductible, business code, product code and status in place.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    rec_no: int
    policy_number: str = Field(..., min_length=1)
    company_number: str = Field(..., min_length=1)
    transaction_code: int
    package_type: Optional[str] = None
    location_type: Optional[LocationType] = None

    business_type: Optional[str] = None
    coverage_type: Optional[str] = None
    premium: Optional[float] = None
    deductible: Optional[float] = None
    business_code: Optional[str] = None
    business_sub: Optional[int] = None
    # Coverage code of the dominant homeowner location.
    bm_cov: Optional[str] = None
    product_code: Optional[str] = None

    status: PolicyStatus = PolicyStatus.VALID
    error_message: Optional[str] = None

    create_user: Optional[int] = None
    update_user: Optional[int] = None

    @property
    def is_new_or_renewal(self) -> bool:
        return self.transaction_code in (TransactionCode.NEW, TransactionCode.RENEWAL)

    @property
    def is_revision_or_cancellation(self) -> bool:
        return self.transaction_code in (TransactionCode.REVISION, TransactionCode.CANCELLATION)


class RejectedRecord(BaseModel):
    """A raw record that failed extraction and was skipped."""

    model_config = ConfigDict(extra="forbid")

    index: int = Field(..., ge=0)
    line_number: Optional[str] = None
    reason: str


class IngestRequest(BaseModel):
    """
    Incoming ingestion request: one policy header and the raw location
    records that belong to it.
    """

    model_config = ConfigDict(extra="forbid")

    policy: Policy
    records: List[Dict[str, Optional[str]]] = Field(default_factory=list)


class IngestResponse(BaseModel):
    """The API response model; the workflow output is validated against it."""

    model_config = ConfigDict(extra="forbid")

    policy: Policy
    locations: List[Location]
    location_values: List[LocationValue]
    rejected_records: List[RejectedRecord]
    errors: List[str]
