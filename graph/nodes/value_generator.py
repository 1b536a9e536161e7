"""
Value Generator node.

Derives the EDILOCVAL line items of each location:
- HOMEOWNER: one row per selected coverage (HSP, SLC, or both for
  "HSP/SLC"), HSP first.
- COMMERCIAL: one BI row per business-interruption slot that has both a
  form code and a limit, in slot order.

Value numbers restart at 1 for every location and have no gaps.
"""

from typing import Any, Dict, List, Mapping

from schemas import Location, LocationValue, PropertyType
from services.coverage_codes import COVERAGE_CODES, describe_coverage

HOMEOWNER_COVERAGES: Dict[str, List[PropertyType]] = {
    "HSP": [PropertyType.HSP],
    "SLC": [PropertyType.SLC],
    "HSP/SLC": [PropertyType.HSP, PropertyType.SLC],
}


def _homeowner_value(location: Location, property_type: PropertyType, value_no: int) -> LocationValue:
    prefix = "loc_hsp" if property_type == PropertyType.HSP else "loc_slc"
    return LocationValue(
        edi_rec_no=location.edi_rec_no,
        loc_line_no=location.line_number,
        value_no=value_no,
        premium_written=getattr(location, f"{prefix}_prem_writ"),
        full_term_premium=getattr(location, f"{prefix}_ft_prem"),
        commission=getattr(location, f"{prefix}_comm"),
        deductible=getattr(location, f"{prefix}_deduct"),
        insured_limit=getattr(location, f"{prefix}_limit"),
        property_type=property_type,
        loc_bm_cov="0",
    )


def homeowner_values(location: Location) -> List[LocationValue]:
    cov = (location.loc_bm_cov or "").strip().upper()
    return [
        _homeowner_value(location, property_type, value_no)
        for value_no, property_type in enumerate(HOMEOWNER_COVERAGES.get(cov, []), start=1)
    ]


def commercial_values(location: Location, coverage_codes: Mapping[str, str] = COVERAGE_CODES) -> List[LocationValue]:
    values: List[LocationValue] = []
    for form, limit in location.bi_slots():
        if not form or not form.strip() or limit is None:
            continue
        values.append(
            LocationValue(
                edi_rec_no=location.edi_rec_no,
                loc_line_no=location.line_number,
                value_no=len(values) + 1,
                property_type=PropertyType.BI,
                bi_form=describe_coverage(form, coverage_codes),
                bi_limit=limit,
                # Insured value comes from the building limit, not the slot limit.
                bi_value=location.loc_building_limit,
            )
        )
    return values


def generate_values(location: Location, coverage_codes: Mapping[str, str] = COVERAGE_CODES) -> List[LocationValue]:
    """
    Derive the value rows of one location. An empty list means the location
    carries no HSP/SLC/BI data, which is not an error.
    """
    if location.is_homeowner:
        return homeowner_values(location)
    return commercial_values(location, coverage_codes)


def run(*, state: Dict[str, Any], coverage_codes: Mapping[str, str] = COVERAGE_CODES) -> Dict[str, Any]:
    """
    Generate `location_values` for every extracted location and merge into state.
    """
    values: List[Dict[str, Any]] = []
    for raw in state.get("locations") or []:
        location = Location.model_validate(raw)
        values.extend(v.model_dump() for v in generate_values(location, coverage_codes))

    new_state = dict(state)
    new_state["location_values"] = values
    return new_state
