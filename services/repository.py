"""
Persistence collaborator.

The pipeline only needs five operations from storage. `EdiRepository` names
them; `InMemoryRepository` is a deterministic implementation backed by
dicts that mirrors the EDILOCATION, EDILOCVAL and edipolicy tables. A real
database adapter can replace it while keeping the signatures.
"""

import json
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Set

from exceptions import ConfigurationError
from schemas import Location, LocationValue, Policy
from utils.logging import get_logger

log = get_logger(__name__)

LOCATION_TABLE = "EDILOCATION"
LOCATION_VALUE_TABLE = "EDILOCVAL"
POLICY_TABLE = "edipolicy"


class EdiRepository(Protocol):
    """Storage operations of the pipeline. Implementations raise RepositoryError when storage fails."""

    def save_location(self, location: Location) -> None: ...

    def save_location_values(self, values: List[LocationValue]) -> None: ...

    def save_policy(self, policy: Policy) -> None: ...

    def find_previous_policies(self, policy_number: str, rec_no_upper_bound: int) -> List[Policy]: ...

    def find_valid_business_codes(self, company_number: str) -> Set[str]: ...


class InMemoryRepository:
    """
    Dict-backed store. Policies are keyed by record number, so saving the
    same revision twice replaces it.
    """

    def __init__(
        self,
        valid_business_codes: Optional[Dict[str, Iterable[str]]] = None,
        policies: Optional[Iterable[Policy]] = None,
    ):
        self._valid_codes: Dict[str, Set[str]] = {
            str(company): {c.strip() for c in codes if c and c.strip()}
            for company, codes in (valid_business_codes or {}).items()
        }
        self.tables: Dict[str, list] = {
            LOCATION_TABLE: [],
            LOCATION_VALUE_TABLE: [],
        }
        self._policies: Dict[int, Policy] = {}
        for p in policies or []:
            self._policies[p.rec_no] = p.model_copy()

    @property
    def policies(self) -> List[Policy]:
        return [self._policies[k] for k in sorted(self._policies)]

    def save_location(self, location: Location) -> None:
        self.tables[LOCATION_TABLE].append(location)

    def save_location_values(self, values: List[LocationValue]) -> None:
        self.tables[LOCATION_VALUE_TABLE].extend(values)

    def save_policy(self, policy: Policy) -> None:
        self._policies[policy.rec_no] = policy.model_copy()

    def find_previous_policies(self, policy_number: str, rec_no_upper_bound: int) -> List[Policy]:
        """Revisions of `policy_number` with a record number below the bound, oldest first."""
        return [
            p.model_copy()
            for p in self.policies
            if p.policy_number == policy_number and p.rec_no < rec_no_upper_bound
        ]

    def find_valid_business_codes(self, company_number: str) -> Set[str]:
        """Codes on file for the company; a company without any has none valid."""
        codes = self._valid_codes.get(str(company_number))
        if codes is None:
            log.warning("no business codes on file", extra={"ctx": {"company_number": company_number}})
            return set()
        return set(codes)


def load_business_codes(path: str) -> Dict[str, List[str]]:
    """
    Read a {"<company number>": ["<business code>", ...]} JSON file.
    """
    file = Path(path)
    try:
        data = json.loads(file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Cannot read business codes from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Business codes file {path} must hold a JSON object.")
    log.info("business codes loaded", extra={"ctx": {"path": str(file), "companies": len(data)}})
    return {str(k): [str(c) for c in (v or [])] for k, v in data.items()}
