"""
Business-interruption form codes and their printed descriptions.

The table is built once as a read-only mapping and handed to the value
generator; unknown codes pass through unchanged.
"""

from types import MappingProxyType
from typing import Mapping, Optional

COVERAGE_CODES: Mapping[str, str] = MappingProxyType(
    {
        "691": "Blanket Business Interruption Insurance (Gross Earnings Form)",
        "692": "Blanket Business Interruption Insurance (Profits Form)",
        "272": "Blanket Earnings Insurance (No Co-Insurance Form)",
        "313": "Blanket Extra Expense Insurance",
        "561": "Blanket Rent or Rental Value Insurance",
        "127": "Business Interruption (Gross Earnings Form)",
        "126": "Business Interruption (Gross Rentals Form)",
        "128": "Business Interruption (Profits Form)",
    }
)


def describe_coverage(code: Optional[str], table: Mapping[str, str] = COVERAGE_CODES) -> Optional[str]:
    """Return the description for `code`, or `code` itself when it is not in `table`."""
    if code is None:
        return None
    return table.get(code.strip(), code)
