"""
Centralized configuration loader.

- Reads environment variables (via python-dotenv if a .env is present).
- Validates required fields.
- Exposes a cached `get_settings()` for app-wide use.
"""

import os
from functools import lru_cache
from typing import FrozenSet, Optional
from pydantic import BaseModel, Field, ValidationError
from dotenv import load_dotenv


DEFAULT_HOMEOWNER_PACKAGE_TYPES = "HO,HOM,HSP,SLC,HSPSLC"


def _to_set(value: Optional[str]) -> FrozenSet[str]:
    if not value:
        return frozenset()
    return frozenset(p.strip().upper() for p in value.split(",") if p.strip())


class Settings(BaseModel):
    # Server
    PORT: int = Field(default=8000)
    LOG_LEVEL: str = Field(default="INFO")

    # --- Ingestion (required) ---
    # User id stamped as create_user on every written row.
    EDI_USER_ID: int = Field(..., ge=0)

    HOMEOWNER_PACKAGE_TYPES: FrozenSet[str] = Field(
        default_factory=lambda: _to_set(DEFAULT_HOMEOWNER_PACKAGE_TYPES)
    )
    # JSON file of {"<company number>": ["<business code>", ...]}
    BUSINESS_CODES_FILE: Optional[str] = None

    class Config:
        frozen = True


def _build_settings_from_env() -> Settings:
    # Load .env if present (no-op if not)
    load_dotenv(override=False)

    missing: list[str] = []

    def req(name: str) -> str:
        v = os.getenv(name)
        if not v:
            missing.append(name)
            return ""
        return v

    user_id = req("EDI_USER_ID")

    if missing:
        raise ValidationError.from_exception_data(
            title="Missing required environment variables",
            line_errors=[
                {
                    "type": "missing",
                    "loc": (name,),
                    "input": None,
                }
                for name in missing
            ],
        )

    return Settings(
        PORT=int(os.getenv("PORT", "8000")),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO"),
        EDI_USER_ID=int(user_id),
        HOMEOWNER_PACKAGE_TYPES=_to_set(
            os.getenv("HOMEOWNER_PACKAGE_TYPES", DEFAULT_HOMEOWNER_PACKAGE_TYPES)
        ),
        BUSINESS_CODES_FILE=os.getenv("BUSINESS_CODES_FILE") or None,
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get a cached Settings instance."""
    return _build_settings_from_env()
