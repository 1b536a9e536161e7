"""
Persister node.

Terminal step: writes the locations, their values and the policy header
through the repository, stamping the configured user on new rows.
"""

from datetime import datetime
from typing import Any, Dict, List

from schemas import Location, LocationValue, Policy
from services.repository import EdiRepository
from utils.logging import get_logger

log = get_logger(__name__)


def run(*, state: Dict[str, Any], repository: EdiRepository, user_id: int) -> Dict[str, Any]:
    """
    Save everything in state and return it with the stamped rows.
    """
    now = datetime.now()
    locations = [
        Location.model_validate(d).model_copy(update={"create_user": user_id, "create_date": now})
        for d in state.get("locations") or []
    ]
    values: List[LocationValue] = [
        LocationValue.model_validate(d).model_copy(update={"create_user": user_id})
        for d in state.get("location_values") or []
    ]
    policy = Policy.model_validate(state.get("policy") or {})
    if policy.create_user is None:
        policy.create_user = user_id

    for location in locations:
        repository.save_location(location)
    if values:
        repository.save_location_values(values)
    repository.save_policy(policy)

    log.info(
        "policy persisted",
        extra={"ctx": {"rec_no": policy.rec_no, "locations": len(locations), "values": len(values)}},
    )

    new_state = dict(state)
    new_state["locations"] = [loc.model_dump() for loc in locations]
    new_state["location_values"] = [v.model_dump() for v in values]
    new_state["policy"] = policy.model_dump()
    return new_state
