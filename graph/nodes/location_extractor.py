"""
Location Extractor node.

Turns each raw batch record of the request into a `Location`:
- decide HOMEOWNER vs COMMERCIAL for the record,
- read the fields of that layout permissively (absent, never zero, for
  empty/"NULL"/malformed numbers),
- fill the printable address line and building name,
- reject records without a line number and keep going with the rest.

Output (merged into state):
    locations:         list of Location dicts
    rejected_records:  list of RejectedRecord dicts
"""

from typing import AbstractSet, Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from exceptions import LocationProcessingError
from schemas import Location, LocationType, RejectedRecord
from services.field_parsing import parse_number, parse_text
from utils.logging import get_logger

log = get_logger(__name__)

TEXT = "text"
NUMBER = "number"

LINE_NUMBER_KEY = "LINENO"

ADDRESS_MAX_LENGTH = 64
BUILDING_NAME_PREFIX = "Building #"

# (record key, Location attribute, kind), in record order.
Layout = Tuple[Tuple[str, str, str], ...]

_COMMON_LAYOUT: Layout = (
    ("LINENAME", "line_name", TEXT),
    (LINE_NUMBER_KEY, "line_number", TEXT),
    ("LOCLINENO", "loc_line_no", TEXT),
    ("LOCNAME", "loc_name", TEXT),
    ("LOCADDRTYPE", "loc_address_type", TEXT),
    ("LOCPARCEL", "loc_parcel", TEXT),
    ("LOCLOT", "loc_lot", TEXT),
    ("LOCBLOCK", "loc_block", TEXT),
    ("LOCPLAN", "loc_plan", TEXT),
    ("LOCCIVSUITENO", "loc_civ_suite_no", TEXT),
    ("LOCCIVSTREETNO", "loc_civ_street_no", TEXT),
    ("LOCCIVSTREETNAME", "loc_civ_street_name", TEXT),
    ("LOCSTREETCODE", "loc_street_code", TEXT),
    ("LOCSTREETDIR", "loc_street_direction", TEXT),
    ("LOCLOCDESC", "loc_location_desc", TEXT),
    ("LOCCITY", "loc_city", TEXT),
    ("LOCPROV", "loc_prov", TEXT),
    ("LOCPOSTCODE", "loc_post_code", TEXT),
    ("LOCNEARIND", "loc_near_ind", TEXT),
    ("LOCNEARLOCNAME", "loc_near_loc_name", TEXT),
    ("LOCWITHINLOCNAME", "loc_within_loc_name", TEXT),
    ("LOCBUSCODE", "location_bus_code", TEXT),
    ("LOCBMCOV", "loc_bm_cov", TEXT),
)

HOMEOWNER_LAYOUT: Layout = _COMMON_LAYOUT + (
    ("LOCHSPFTPREM", "loc_hsp_ft_prem", NUMBER),
    ("LOCHSPPREMWRIT", "loc_hsp_prem_writ", NUMBER),
    ("LOCHSPCOMM", "loc_hsp_comm", NUMBER),
    ("LOCHSPDEDUCT", "loc_hsp_deduct", NUMBER),
    ("LOCHSPLIMIT", "loc_hsp_limit", NUMBER),
    ("LOCSLCFTPREM", "loc_slc_ft_prem", NUMBER),
    ("LOCSLCPREMWRIT", "loc_slc_prem_writ", NUMBER),
    ("LOCSLCCOMM", "loc_slc_comm", NUMBER),
    ("LOCSLCDEDUCT", "loc_slc_deduct", NUMBER),
    ("LOCSLCLIMIT", "loc_slc_limit", NUMBER),
)

COMMERCIAL_LAYOUT: Layout = (
    _COMMON_LAYOUT
    + (
        # Dominion land survey description
        ("LOCSEC", "loc_section", TEXT),
        ("LOCTWP", "loc_township", TEXT),
        ("LOCRGE", "loc_range", TEXT),
        ("LOCMER", "loc_meridian", TEXT),
        ("LOCBLDGLIMIT", "loc_building_limit", NUMBER),
        ("LOCDEDUCT", "loc_deduct", NUMBER),
        ("LOCCONTLIMIT", "loc_contents_limit", NUMBER),
        ("LOCCONTDEDUCT", "loc_contents_deduct", NUMBER),
        ("POLCONLIMIT", "pol_con_limit", NUMBER),
    )
    + tuple(
        entry
        for i in range(1, 7)
        for entry in (
            (f"LOCBIFORM{i}", f"loc_bi_form_{i}", TEXT),
            (f"LOCBILIMIT{i}", f"loc_bi_limit_{i}", NUMBER),
        )
    )
)

LAYOUTS: Dict[LocationType, Layout] = {
    LocationType.HOMEOWNER: HOMEOWNER_LAYOUT,
    LocationType.COMMERCIAL: COMMERCIAL_LAYOUT,
}


def _line_number(record: Mapping[str, Optional[str]]) -> Optional[str]:
    return parse_text(record.get(LINE_NUMBER_KEY)).value


def detect_location_type(
    record: Mapping[str, Optional[str]],
    *,
    package_type: Optional[str],
    homeowner_package_types: AbstractSet[str],
) -> LocationType:
    """
    A known package type wins; without one the field count decides
    (33 = HOMEOWNER, 44 = COMMERCIAL).
    """
    if package_type and package_type.strip():
        if package_type.strip().upper() in homeowner_package_types:
            return LocationType.HOMEOWNER
        return LocationType.COMMERCIAL

    count = len(record)
    for location_type, layout in LAYOUTS.items():
        if count == len(layout):
            return location_type
    raise LocationProcessingError(
        f"Cannot determine location type from {count} fields",
        line_number=_line_number(record),
    )


def record_from_values(values: Sequence[Optional[str]], location_type: LocationType) -> Dict[str, Optional[str]]:
    """Key positional field values by the layout of `location_type`."""
    layout = LAYOUTS[location_type]
    if len(values) != len(layout):
        raise LocationProcessingError(
            f"{location_type.value} record needs {len(layout)} fields, got {len(values)}"
        )
    return {key: value for (key, _, _), value in zip(layout, values)}


def derive_address_fields(location: Location) -> Dict[str, Optional[str]]:
    """
    Address line, overflow description and building name of a location.

    The civic address is used when there is one. Otherwise the location
    description stands in, cut to 62 characters plus "**" when it is longer
    than the address column; the full text is then kept in `loc_address_desc`.
    """
    address = location.formatted_address or None
    overflow = None
    desc = location.loc_location_desc
    if address is None and desc:
        if len(desc) > ADDRESS_MAX_LENGTH:
            address = desc[: ADDRESS_MAX_LENGTH - 2] + "**"
            overflow = desc
        else:
            address = desc
    name = f"{BUILDING_NAME_PREFIX}{location.loc_name}" if location.loc_name else None
    return {"loc_address": address, "loc_address_desc": overflow, "loc_building_name": name}


def extract_location(
    record: Mapping[str, Optional[str]],
    location_type: LocationType,
    *,
    rec_no: Optional[int] = None,
) -> Location:
    """
    Build a Location from one raw record using the layout of `location_type`.

    Raises LocationProcessingError when the line number is missing.
    """
    line_number = _line_number(record)
    if not line_number:
        raise LocationProcessingError(f"Record is missing required field {LINE_NUMBER_KEY}")

    fields: Dict[str, Any] = {}
    for key, attr, kind in LAYOUTS[location_type]:
        parsed = parse_number(record.get(key)) if kind == NUMBER else parse_text(record.get(key))
        if not parsed.ok:
            log.warning(
                "malformed numeric field treated as absent",
                extra={"ctx": {"line_number": line_number, "field": key, "problem": parsed.problem}},
            )
        fields[attr] = parsed.value

    try:
        location = Location(**fields, location_type=location_type, edi_rec_no=rec_no)
    except ValidationError as exc:
        raise LocationProcessingError(f"Invalid location record: {exc}", line_number=line_number) from exc
    return location.model_copy(update=derive_address_fields(location))


def run(*, state: Dict[str, Any], homeowner_package_types: AbstractSet[str]) -> Dict[str, Any]:
    """
    Extract every raw record of the request and merge `locations` and
    `rejected_records` into state.
    """
    req = state.get("request") or {}
    policy: Dict[str, Any] = req.get("policy") or {}
    records: List[Dict[str, Optional[str]]] = req.get("records") or []
    rec_no = policy.get("rec_no")

    locations: List[Dict[str, Any]] = []
    rejected: List[Dict[str, Any]] = []
    for index, record in enumerate(records):
        try:
            location_type = detect_location_type(
                record,
                package_type=policy.get("package_type"),
                homeowner_package_types=homeowner_package_types,
            )
            location = extract_location(record, location_type, rec_no=rec_no)
        except LocationProcessingError as exc:
            log.error(
                "location record rejected",
                extra={"ctx": {"rec_no": rec_no, "index": index, "line_number": exc.line_number, "reason": exc.message}},
            )
            rejected.append(
                RejectedRecord(index=index, line_number=exc.line_number, reason=exc.message).model_dump()
            )
            continue
        locations.append(location.model_dump())

    new_state = dict(state)
    new_state["locations"] = locations
    new_state["rejected_records"] = rejected
    return new_state
