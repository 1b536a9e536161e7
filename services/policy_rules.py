"""
Policy aggregation rules.

Each rule is an independent function over a policy header and its
locations, location values or prior revisions. Rules that change the policy
mutate it in place and return what they decided; rules that change
locations return new copies since locations are frozen.

Status only escalates: a policy already marked invalid ("N") is never
relaxed to pending ("P") by a later rule.
"""

from enum import Enum
from typing import AbstractSet, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict

from exceptions import InvalidBusinessTypeError
from schemas import Location, LocationType, LocationValue, Policy, PolicyStatus, PropertyType, TransactionCode
from services.product_codes import (
    CYBER_C_MARKERS,
    CYBER_DC_MARKERS,
    DEFAULT_PRODUCT_CODES,
    ProductCodeTable,
    cyber_markers,
)
from services.repository import EdiRepository
from utils.logging import get_logger

log = get_logger(__name__)

HOMEOWNER_BUSINESS_TYPES = frozenset({"HSP", "SLC", "HSP/SLC"})
HOMEOWNERS_PLACEHOLDER = "HOMEOWNERS"

PRIOR_BUSINESS_TYPE_MISSING = "Previous policy revision has no business type"
PRIOR_BUSINESS_TYPE_PLACEHOLDER = "Previous policy revision carries placeholder business type HOMEOWNERS"
PRIOR_BUSINESS_TYPE_UNSUPPORTED = "Previous policy revision has an unsupported business type"

MISSING_LOCATIONS = "Missing Locations"
INVALID_LOCATION_BUSINESS_CODES = "Missing/Invalid Location Business Codes"


def _flag(policy: Policy, status: PolicyStatus, message: Optional[str] = None) -> None:
    if not (status == PolicyStatus.PENDING and policy.status == PolicyStatus.INVALID):
        policy.status = status
    if message:
        policy.error_message = message


# -------------------------- Dominant location --------------------------


def location_insured_value(location: Location) -> float:
    """Insured limit when the location has one, else building + contents limits."""
    if location.insured_limit is not None:
        return location.insured_limit
    return location.total_limit


def _has_valid_code(location: Location, valid_codes: AbstractSet[str]) -> bool:
    code = (location.location_bus_code or "").strip()
    return bool(code) and code in valid_codes


def select_dominant_location(
    locations: Iterable[Location],
    valid_codes: Optional[AbstractSet[str]] = None,
) -> Optional[Location]:
    """
    The location with the largest insured value; the first one wins a tie.
    With `valid_codes`, only locations carrying one of those business codes
    are candidates.
    """
    dominant: Optional[Location] = None
    best = 0.0
    for location in locations:
        if valid_codes is not None and not _has_valid_code(location, valid_codes):
            continue
        value = location_insured_value(location)
        if dominant is None or value > best:
            dominant, best = location, value
    return dominant


def apply_dominant_location(
    policy: Policy,
    locations: Sequence[Location],
    valid_codes: Optional[AbstractSet[str]] = None,
) -> Optional[Location]:
    """Copy the dominant location's business code (and homeowner coverage) onto the policy."""
    dominant = select_dominant_location(locations, valid_codes)
    if dominant is None:
        log.info("no dominant location", extra={"ctx": {"rec_no": policy.rec_no}})
        return None
    policy.business_code = dominant.location_bus_code
    policy.business_sub = 0
    if dominant.is_homeowner:
        policy.bm_cov = dominant.loc_bm_cov
    return dominant


def backfill_business_codes(
    locations: Sequence[Location],
    valid_codes: AbstractSet[str],
    dominant: Location,
) -> List[Location]:
    """Replace empty or unknown location business codes with the dominant one."""
    result: List[Location] = []
    for location in locations:
        if _has_valid_code(location, valid_codes):
            result.append(location)
            continue
        log.info(
            "location business code backfilled",
            extra={
                "ctx": {
                    "line_number": location.line_number,
                    "from": location.location_bus_code,
                    "to": dominant.location_bus_code,
                }
            },
        )
        result.append(location.model_copy(update={"location_bus_code": dominant.location_bus_code}))
    return result


# -------------------------- Deductible --------------------------


def backfill_deductible(policy: Policy, locations: Iterable[Location]) -> bool:
    """
    Give a policy without a deductible the largest location deductible.
    Returns True when the policy changed.
    """
    if policy.deductible:
        return False
    deductibles = [d for d in (loc.deductible for loc in locations) if d is not None]
    if not deductibles:
        return False
    policy.deductible = max(deductibles)
    return True


# -------------------------- HSP/SLC commissions --------------------------


class CommissionCheck(str, Enum):
    NOT_APPLICABLE = "not_applicable"
    SAME = "same"
    DIFFERENT = "different"


def check_commission_consistency(policy: Policy, values: Iterable[LocationValue]) -> CommissionCheck:
    """
    Compare the distinct HSP and SLC commissions of a policy. A difference
    puts the policy in pending status; no value is changed.
    """
    groups = {PropertyType.HSP: set(), PropertyType.SLC: set()}
    seen = set()
    for value in values:
        if value.property_type not in groups:
            continue
        seen.add(value.property_type)
        if value.commission is not None:
            groups[value.property_type].add(value.commission)

    if len(seen) < 2:
        return CommissionCheck.NOT_APPLICABLE
    hsp, slc = groups[PropertyType.HSP], groups[PropertyType.SLC]
    if hsp == slc:
        return CommissionCheck.SAME

    log.info(
        "HSP and SLC commissions differ",
        extra={"ctx": {"rec_no": policy.rec_no, "hsp": sorted(hsp), "slc": sorted(slc)}},
    )
    _flag(policy, PolicyStatus.PENDING)
    return CommissionCheck.DIFFERENT


# -------------------------- Business type propagation --------------------------


class PropagationOutcome(str, Enum):
    NOT_APPLICABLE = "not_applicable"
    NO_PRIOR = "no_prior"
    COPIED = "copied"
    MISSING = "missing"
    PLACEHOLDER = "placeholder"
    UNSUPPORTED = "unsupported"


def propagate_business_type(policy: Policy, repository: EdiRepository) -> PropagationOutcome:
    """
    Carry the business type of the latest non-cancelled prior revision onto
    a homeowner revision or cancellation.
    """
    if policy.location_type != LocationType.HOMEOWNER or not policy.is_revision_or_cancellation:
        return PropagationOutcome.NOT_APPLICABLE

    priors = [
        p
        for p in repository.find_previous_policies(policy.policy_number, policy.rec_no)
        if p.policy_number == policy.policy_number
        and p.rec_no < policy.rec_no
        and p.transaction_code != TransactionCode.CANCELLATION
    ]
    if not priors:
        return PropagationOutcome.NO_PRIOR

    prior = max(priors, key=lambda p: p.rec_no)
    business_type = (prior.business_type or "").strip()
    ctx = {"rec_no": policy.rec_no, "prior_rec_no": prior.rec_no, "business_type": business_type}

    if not business_type:
        log.error(PRIOR_BUSINESS_TYPE_MISSING, extra={"ctx": ctx})
        _flag(policy, PolicyStatus.INVALID, PRIOR_BUSINESS_TYPE_MISSING)
        return PropagationOutcome.MISSING
    if business_type.upper() == HOMEOWNERS_PLACEHOLDER:
        log.error(PRIOR_BUSINESS_TYPE_PLACEHOLDER, extra={"ctx": ctx})
        _flag(policy, PolicyStatus.INVALID, PRIOR_BUSINESS_TYPE_PLACEHOLDER)
        return PropagationOutcome.PLACEHOLDER
    if business_type.upper() in HOMEOWNER_BUSINESS_TYPES:
        policy.business_type = business_type.upper()
        log.info("business type copied from previous revision", extra={"ctx": ctx})
        return PropagationOutcome.COPIED

    log.error(PRIOR_BUSINESS_TYPE_UNSUPPORTED, extra={"ctx": ctx})
    _flag(policy, PolicyStatus.INVALID, PRIOR_BUSINESS_TYPE_UNSUPPORTED)
    return PropagationOutcome.UNSUPPORTED


# -------------------------- New/renewal validation --------------------------


def validate_new_or_renewal(
    policy: Policy,
    locations: Sequence[Location],
    valid_codes: AbstractSet[str],
) -> bool:
    """
    New and renewal policies need locations, all carrying a valid business
    code for the company. Other transactions pass.
    """
    if not policy.is_new_or_renewal:
        return True

    reason: Optional[str] = None
    if not locations:
        reason = MISSING_LOCATIONS
    elif not all(_has_valid_code(loc, valid_codes) for loc in locations):
        reason = INVALID_LOCATION_BUSINESS_CODES

    if reason is None:
        return True
    log.error(reason, extra={"ctx": {"rec_no": policy.rec_no, "company_number": policy.company_number}})
    _flag(policy, PolicyStatus.INVALID, reason)
    return False


# -------------------------- Product type --------------------------


class ProductDecision(BaseModel):
    """Chosen product code and the locations after any business-code backfill."""

    model_config = ConfigDict(frozen=True)

    product_code: str
    locations: List[Location]


def determine_product_code(
    policy: Policy,
    locations: Sequence[Location] = (),
    valid_codes: Optional[AbstractSet[str]] = None,
    table: ProductCodeTable = DEFAULT_PRODUCT_CODES,
) -> ProductDecision:
    """
    Choose the product code from the business type and set it on the policy.

    Raises InvalidBusinessTypeError for a business/coverage type pair that
    maps to no product.
    """
    business_type = (policy.business_type or "").strip().upper()
    coverage_type = (policy.coverage_type or "").strip().upper()
    if f"{business_type}/{coverage_type}" in table.invalid_combinations:
        raise InvalidBusinessTypeError(policy.business_type, policy.coverage_type)

    result = list(locations)
    markers = cyber_markers(business_type)

    if business_type in table.fixed_business_types:
        code = table.fixed_code
        if policy.is_new_or_renewal and valid_codes is not None:
            dominant = select_dominant_location(result, valid_codes)
            if dominant is not None:
                result = backfill_business_codes(result, valid_codes, dominant)
    elif markers:
        if CYBER_DC_MARKERS <= markers:
            code = table.cyber_dc_pair_code
        elif CYBER_C_MARKERS <= markers:
            code = table.cyber_c_pair_code
        else:
            code = table.cyber_single_code
        if policy.transaction_code == TransactionCode.REVISION and not policy.premium:
            code = table.non_premium_endorsement_code
    else:
        code = table.by_business_type.get(business_type, table.default_code)

    policy.product_code = code
    return ProductDecision(product_code=code, locations=result)
