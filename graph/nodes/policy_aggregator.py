"""
Policy Aggregator node.

Applies the policy rules to the header using the extracted locations and
their values, in this order:

    business type propagation -> product code (+ business code backfill)
    -> dominant location -> deductible backfill -> HSP/SLC commission check
    -> new/renewal validation

Rule violations leave the policy flagged with a message. Repository
failures propagate and abort this policy.
"""

from typing import Any, Dict, List

from exceptions import InvalidBusinessTypeError
from schemas import Location, LocationType, LocationValue, Policy, PolicyStatus
from services import policy_rules
from services.product_codes import DEFAULT_PRODUCT_CODES, ProductCodeTable
from services.repository import EdiRepository
from utils.logging import get_logger

log = get_logger(__name__)


def _resolve_location_type(policy: Policy, locations: List[Location]) -> None:
    if policy.location_type is None and locations:
        policy.location_type = locations[0].location_type


def run(
    *,
    state: Dict[str, Any],
    repository: EdiRepository,
    product_codes: ProductCodeTable = DEFAULT_PRODUCT_CODES,
) -> Dict[str, Any]:
    """
    Aggregate the request policy and merge `policy`, the (possibly
    backfilled) `locations` and any rule `errors` into state.
    """
    req = state.get("request") or {}
    policy = Policy.model_validate(req.get("policy") or {})
    locations = [Location.model_validate(d) for d in state.get("locations") or []]
    values = [LocationValue.model_validate(d) for d in state.get("location_values") or []]
    errors: List[str] = list(state.get("errors") or [])

    _resolve_location_type(policy, locations)
    valid_codes = repository.find_valid_business_codes(policy.company_number)

    policy_rules.propagate_business_type(policy, repository)

    try:
        decision = policy_rules.determine_product_code(policy, locations, valid_codes, product_codes)
        locations = decision.locations
    except InvalidBusinessTypeError as exc:
        log.error(str(exc), extra={"ctx": {"rec_no": policy.rec_no}})
        policy.status = PolicyStatus.INVALID
        policy.error_message = str(exc)
        errors.append(str(exc))

    policy_rules.apply_dominant_location(policy, locations, valid_codes)
    policy_rules.backfill_deductible(policy, locations)
    if policy.location_type == LocationType.HOMEOWNER:
        policy_rules.check_commission_consistency(policy, values)
    policy_rules.validate_new_or_renewal(policy, locations, valid_codes)

    log.info(
        "policy aggregated",
        extra={
            "ctx": {
                "rec_no": policy.rec_no,
                "status": policy.status.value,
                "product_code": policy.product_code,
                "locations": len(locations),
            }
        },
    )

    new_state = dict(state)
    new_state["policy"] = policy.model_dump()
    new_state["locations"] = [loc.model_dump() for loc in locations]
    new_state["errors"] = errors
    return new_state
