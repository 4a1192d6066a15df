"""Indexer configuration.

Settings are read from the environment (and a ``.env`` file when present)
through a single cached ``Settings`` object. ``RPC_ENDPOINT`` accepts
either a URL or one of the cluster names in ``SOLANA_RPC_URLS``.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from solders.pubkey import Pubkey  # type: ignore[import-untyped]

from fundhub_indexer.errors import ConfigurationError
from fundhub_indexer.snapshot import (
    DAO_ACCOUNT_SIZE,
    PROJECT_ACCOUNT_SIZE,
    PROPOSAL_ACCOUNT_SIZE,
    VAULT_ACCOUNT_SIZE,
    KindSpec,
    ProgramIds,
    default_kind_specs,
)

SOLANA_RPC_URLS = {
    "mainnet-beta": "https://api.mainnet-beta.solana.com",
    "testnet": "https://api.testnet.solana.com",
    "devnet": "https://api.devnet.solana.com",
    "localnet": "http://localhost:8899",
}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # --- General -----------------------------------------------------------------
    LOG_LEVEL: str = "INFO"

    # --- Chain RPC ---------------------------------------------------------------
    RPC_ENDPOINT: str
    RPC_TIMEOUT_SECONDS: float = 30.0

    # --- Program ids (only the funding hub is required) --------------------------
    FUNDING_HUB_PROGRAM_ID: str
    DAO_PASS_PROGRAM_ID: Optional[str] = None
    GOVERNANCE_PROGRAM_ID: Optional[str] = None
    SAVINGS_VAULT_PROGRAM_ID: Optional[str] = None

    # --- Exact account sizes used as getProgramAccounts dataSize filters ---------
    PROJECT_DATA_SIZE: int = PROJECT_ACCOUNT_SIZE
    DAO_DATA_SIZE: int = DAO_ACCOUNT_SIZE
    PROPOSAL_DATA_SIZE: int = PROPOSAL_ACCOUNT_SIZE
    VAULT_DATA_SIZE: int = VAULT_ACCOUNT_SIZE

    # --- Refresh / cache ---------------------------------------------------------
    FRESHNESS_WINDOW_SECONDS: float = 60.0
    REFRESH_INTERVAL_SECONDS: float = 300.0
    PARTIAL_SNAPSHOTS: bool = False
    REDIS_URL: Optional[str] = None
    SNAPSHOT_TTL_SECONDS: int = 60
    STORE_TIMEOUT_SECONDS: float = 2.0

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        v_up = v.upper()
        if v_up not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_up

    @field_validator("RPC_ENDPOINT")
    @classmethod
    def _resolve_rpc_endpoint(cls, v: str) -> str:
        v = v.strip()
        if v in SOLANA_RPC_URLS:
            return SOLANA_RPC_URLS[v]
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"RPC_ENDPOINT must be an http(s) URL or one of {sorted(SOLANA_RPC_URLS)}")
        return v

    @field_validator(
        "FUNDING_HUB_PROGRAM_ID",
        "DAO_PASS_PROGRAM_ID",
        "GOVERNANCE_PROGRAM_ID",
        "SAVINGS_VAULT_PROGRAM_ID",
        mode="before",
    )
    @classmethod
    def _validate_program_id(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not str(v).strip():
            return None
        v = str(v).strip()
        try:
            Pubkey.from_string(v)
        except Exception as e:
            raise ValueError(f"invalid program id {v!r}: {e}") from e
        return v

    # helpful computed values -----------------------------------------------------
    @property
    def program_ids(self) -> ProgramIds:
        return ProgramIds(
            funding_hub=self.FUNDING_HUB_PROGRAM_ID,
            dao_pass=self.DAO_PASS_PROGRAM_ID,
            governance=self.GOVERNANCE_PROGRAM_ID,
            savings_vault=self.SAVINGS_VAULT_PROGRAM_ID,
        )

    @property
    def kind_specs(self) -> dict[str, KindSpec]:
        sizes = {
            "projects": self.PROJECT_DATA_SIZE,
            "daos": self.DAO_DATA_SIZE,
            "proposals": self.PROPOSAL_DATA_SIZE,
            "vaults": self.VAULT_DATA_SIZE,
        }
        return {
            name: KindSpec(spec.name, spec.program, spec.decoder, sizes[name] or None)
            for name, spec in default_kind_specs().items()
        }


def load_settings(**overrides) -> Settings:
    """Build settings, turning validation failures into ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(str(e)) from e


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings singleton."""
    load_dotenv()
    return load_settings()
