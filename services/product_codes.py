"""
Business type (bmtype) to insurance product code tables.

`DEFAULT_PRODUCT_CODES` is constructed once at import and passed into
`policy_rules.determine_product_code`; callers needing different codes build
their own `ProductCodeTable`.
"""

import re
from typing import Dict, FrozenSet, Optional, Set

from pydantic import BaseModel, ConfigDict

CYBER_DC_MARKERS = frozenset({"DC1", "DC3"})
CYBER_C_MARKERS = frozenset({"C1", "C3"})
CYBER_MARKERS = CYBER_DC_MARKERS | CYBER_C_MARKERS


class ProductCodeTable(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    by_business_type: Dict[str, str]
    fixed_business_types: FrozenSet[str] = frozenset({"B", "U"})
    fixed_code: str = "R1400"
    cyber_single_code: str = "R1700"
    cyber_c_pair_code: str = "R1710"
    cyber_dc_pair_code: str = "R1720"
    non_premium_endorsement_code: str = "R1790"
    default_code: str = "R1000"
    # "<business type>/<coverage type>" pairs that have no product.
    invalid_combinations: FrozenSet[str] = frozenset({"U/F-3"})


DEFAULT_PRODUCT_CODES = ProductCodeTable(
    by_business_type={
        "HSP": "R1100",
        "SLC": "R1200",
        "HSP/SLC": "R1300",
        "F": "R1500",
        "F-3": "R1510",
        "P": "R1600",
    }
)


def business_type_tokens(business_type: Optional[str]) -> Set[str]:
    """Split a bmtype such as "HSP/DC1,DC3" into upper-case tokens."""
    if not business_type:
        return set()
    return {t for t in re.split(r"[^A-Z0-9]+", business_type.upper()) if t}


def cyber_markers(business_type: Optional[str]) -> Set[str]:
    return business_type_tokens(business_type) & CYBER_MARKERS
