"""Aggregated, immutable view over all indexed program accounts."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Protocol

from fundhub_indexer.errors import ConfigurationError, IndexerError
from fundhub_indexer.state import (
    DaoSummary,
    ProjectSummary,
    ProposalSummary,
    RawAccount,
    VaultSummary,
    count_foreign,
    decode_accounts,
)

logger = logging.getLogger(__name__)


class AccountSource(Protocol):
    async def get_program_accounts(
        self, program_id: str, data_size: int | None = None
    ) -> list[RawAccount]: ...


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlatformMetrics:
    total_projects: int
    total_daos: int
    total_vaults: int
    total_pledged: str  # exact decimal sum of every project's pledged amount

    def to_dict(self) -> dict:
        return {
            "totalProjects": self.total_projects,
            "totalDaos": self.total_daos,
            "totalVaults": self.total_vaults,
            "totalPledged": self.total_pledged,
        }


@dataclass(frozen=True)
class Snapshot:
    projects: tuple[ProjectSummary, ...]
    daos: tuple[DaoSummary, ...]
    proposals: tuple[ProposalSummary, ...]
    vaults: tuple[VaultSummary, ...]
    metrics: PlatformMetrics
    generated_at: datetime

    @classmethod
    def assemble(
        cls,
        projects: list[ProjectSummary],
        daos: list[DaoSummary],
        proposals: list[ProposalSummary],
        vaults: list[VaultSummary],
        generated_at: datetime,
    ) -> Snapshot:
        metrics = PlatformMetrics(
            total_projects=len(projects),
            total_daos=len(daos),
            total_vaults=len(vaults),
            total_pledged=str(sum(p.pledged for p in projects)),
        )
        return cls(
            projects=tuple(projects),
            daos=tuple(daos),
            proposals=tuple(proposals),
            vaults=tuple(vaults),
            metrics=metrics,
            generated_at=generated_at,
        )

    def to_dict(self) -> dict:
        return {
            "projects": [p.to_dict() for p in self.projects],
            "daos": [d.to_dict() for d in self.daos],
            "proposals": [p.to_dict() for p in self.proposals],
            "vaults": [v.to_dict() for v in self.vaults],
            "metrics": self.metrics.to_dict(),
            "generatedAt": isoformat_utc(self.generated_at),
        }

    @classmethod
    def from_dict(cls, d: dict) -> Snapshot:
        """Restore a snapshot persisted with ``to_dict``. Metrics are recomputed."""
        return cls.assemble(
            projects=[ProjectSummary.from_dict(x) for x in d["projects"]],
            daos=[DaoSummary.from_dict(x) for x in d["daos"]],
            proposals=[ProposalSummary.from_dict(x) for x in d["proposals"]],
            vaults=[VaultSummary.from_dict(x) for x in d["vaults"]],
            generated_at=datetime.fromisoformat(d["generatedAt"].replace("Z", "+00:00")),
        )


def isoformat_utc(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProgramIds:
    funding_hub: str | None
    dao_pass: str | None = None
    governance: str | None = None
    savings_vault: str | None = None


@dataclass(frozen=True)
class KindSpec:
    name: str  # snapshot attribute holding this kind
    program: str  # ProgramIds attribute owning this kind
    decoder: type
    data_size: int | None


# Exact account sizes (discriminator + struct incl. bump and reserved padding).
PROJECT_ACCOUNT_SIZE = 184
DAO_ACCOUNT_SIZE = 180
PROPOSAL_ACCOUNT_SIZE = 152
VAULT_ACCOUNT_SIZE = 200


def default_kind_specs() -> dict[str, KindSpec]:
    return {
        "projects": KindSpec("projects", "funding_hub", ProjectSummary, PROJECT_ACCOUNT_SIZE),
        "daos": KindSpec("daos", "dao_pass", DaoSummary, DAO_ACCOUNT_SIZE),
        "proposals": KindSpec("proposals", "governance", ProposalSummary, PROPOSAL_ACCOUNT_SIZE),
        "vaults": KindSpec("vaults", "savings_vault", VaultSummary, VAULT_ACCOUNT_SIZE),
    }


@dataclass
class BuildStats:
    fetched: dict[str, int] = field(default_factory=dict)
    skipped: dict[str, int] = field(default_factory=dict)
    foreign: dict[str, int] = field(default_factory=dict)
    degraded: list[str] = field(default_factory=list)


class SnapshotBuilder:
    """Fetches and decodes every configured account kind into a Snapshot.

    By default a fetch failure for any kind fails the whole build. With
    ``partial=True`` a failing dao/proposal/vault fetch keeps that kind's
    records from the previous snapshot instead; projects always fail fast.
    """

    def __init__(
        self,
        rpc: AccountSource,
        program_ids: ProgramIds,
        kind_specs: dict[str, KindSpec] | None = None,
        partial: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        if not program_ids.funding_hub:
            raise ConfigurationError("funding hub program id is required")
        self._rpc = rpc
        self._program_ids = program_ids
        self._specs = kind_specs or default_kind_specs()
        self._partial = partial
        self._clock = clock
        self.last_stats = BuildStats()

    async def build(self, previous: Snapshot | None = None) -> Snapshot:
        started = time.monotonic()
        stats = BuildStats()
        names = list(self._specs)
        results = await asyncio.gather(
            *(self._fetch_kind(self._specs[n], stats) for n in names),
            return_exceptions=True,
        )

        decoded: dict[str, list] = {}
        for name, result in zip(names, results):
            if not isinstance(result, BaseException):
                decoded[name] = result
                continue
            if not isinstance(result, IndexerError) or not self._partial or name == "projects":
                raise result
            logger.warning("fetching %s failed, keeping previous records: %s", name, result)
            stats.degraded.append(name)
            decoded[name] = list(getattr(previous, name)) if previous is not None else []

        snapshot = Snapshot.assemble(
            projects=decoded["projects"],
            daos=decoded["daos"],
            proposals=decoded["proposals"],
            vaults=decoded["vaults"],
            generated_at=self._clock(),
        )
        self.last_stats = stats
        logger.info(
            "built snapshot: %d projects, %d daos, %d proposals, %d vaults, skipped=%s in %.2fs",
            len(snapshot.projects),
            len(snapshot.daos),
            len(snapshot.proposals),
            len(snapshot.vaults),
            sum(stats.skipped.values()),
            time.monotonic() - started,
        )
        return snapshot

    async def _fetch_kind(self, spec: KindSpec, stats: BuildStats) -> list:
        program_id = getattr(self._program_ids, spec.program)
        if not program_id:
            return []
        accounts = await self._rpc.get_program_accounts(program_id, spec.data_size)
        records, skipped = decode_accounts(spec.decoder, accounts)
        stats.fetched[spec.name] = len(accounts)
        stats.skipped[spec.name] = skipped
        foreign = count_foreign(spec.decoder, accounts)
        stats.foreign[spec.name] = foreign
        if foreign:
            logger.debug(
                "%d of %d %s accounts carry another discriminator", foreign, len(accounts), spec.name
            )
        return records
