"""Decoded summaries of the platform's program accounts.

Every account starts with an 8-byte Anchor discriminator that is skipped
without validation; the expected tag on each summary class
(``DISCRIMINATOR``) is only used to count foreign accounts for diagnostics. The remaining fields follow the Rust ``#[account]``
structs in declaration order, little-endian. Trailing bytes (bump seeds,
reserved padding) are ignored, so any buffer of at least ``MIN_SIZE``
bytes decodes.

u64 amounts are kept as Python ints and rendered as decimal strings in
``to_dict()`` so that JSON consumers never lose precision.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, TypeVar

from fundhub_indexer.discriminator import (
    DISCRIMINATOR_DAO,
    DISCRIMINATOR_PROJECT,
    DISCRIMINATOR_PROPOSAL,
    DISCRIMINATOR_SIZE,
    DISCRIMINATOR_VAULT,
)
from fundhub_indexer.reader import AccountReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RawAccount:
    """One program account as returned by ``getProgramAccounts``."""

    pubkey: str
    data: bytes


# ---------------------------------------------------------------------------
# Status enums
# ---------------------------------------------------------------------------


class ProjectStatus(IntEnum):
    ACTIVE = 0
    SUCCESSFUL = 1
    FAILED = 2

    @classmethod
    def from_code(cls, code: int) -> ProjectStatus:
        """Unknown codes fall back to ``ACTIVE``."""
        try:
            return cls(code)
        except ValueError:
            return cls.ACTIVE

    def __str__(self) -> str:
        _names = {0: "Active", 1: "Successful", 2: "Failed"}
        return _names[self.value]


class ProposalStatus(IntEnum):
    PENDING = 0
    SUCCEEDED = 1
    DEFEATED = 2

    @classmethod
    def from_code(cls, code: int) -> ProposalStatus:
        """Unknown codes fall back to ``PENDING``."""
        try:
            return cls(code)
        except ValueError:
            return cls.PENDING

    def __str__(self) -> str:
        _names = {0: "Pending", 1: "Succeeded", 2: "Defeated"}
        return _names[self.value]


# ---------------------------------------------------------------------------
# Account summaries
# ---------------------------------------------------------------------------


def _body(account: RawAccount, min_size: int) -> AccountReader:
    if len(account.data) < min_size:
        raise ValueError(
            f"account data too short: have {len(account.data)} bytes, need at least {min_size}"
        )
    r = AccountReader(account.data)
    r.skip(DISCRIMINATOR_SIZE)
    return r


@dataclass(frozen=True)
class ProjectSummary:
    project_id: int  # u64
    authority: str
    mint: str
    badge_mint: str
    vault: str
    target_amount: int  # u64
    deadline_ts: int  # i64, unix seconds
    pledged: int  # u64
    status: ProjectStatus

    DISCRIMINATOR = DISCRIMINATOR_PROJECT
    # discriminator + 2*u64 + 4*pubkey + 3*u64 + u8
    MIN_SIZE = 177

    @classmethod
    def from_account(cls, account: RawAccount) -> ProjectSummary:
        r = _body(account, cls.MIN_SIZE)
        project_id = r.read_u64()
        r.skip(8)  # project_id_seed
        authority = r.read_pubkey()
        mint = r.read_pubkey()
        badge_mint = r.read_pubkey()
        vault = r.read_pubkey()
        target_amount = r.read_u64()
        deadline_ts = r.read_i64()
        pledged = r.read_u64()
        status = ProjectStatus.from_code(r.read_u8())
        assert r.offset == cls.MIN_SIZE, f"Project byte coverage: {r.offset} != {cls.MIN_SIZE}"
        return cls(
            project_id=project_id,
            authority=authority,
            mint=mint,
            badge_mint=badge_mint,
            vault=vault,
            target_amount=target_amount,
            deadline_ts=deadline_ts,
            pledged=pledged,
            status=status,
        )

    def to_dict(self) -> dict:
        return {
            "projectId": str(self.project_id),
            "authority": self.authority,
            "mint": self.mint,
            "badgeMint": self.badge_mint,
            "vault": self.vault,
            "targetAmount": str(self.target_amount),
            "pledged": str(self.pledged),
            "deadlineTs": self.deadline_ts,
            "status": str(self.status),
        }

    @classmethod
    def from_dict(cls, d: dict) -> ProjectSummary:
        return cls(
            project_id=int(d["projectId"]),
            authority=d["authority"],
            mint=d["mint"],
            badge_mint=d["badgeMint"],
            vault=d["vault"],
            target_amount=int(d["targetAmount"]),
            deadline_ts=int(d["deadlineTs"]),
            pledged=int(d["pledged"]),
            status=_PROJECT_STATUS_BY_NAME[d["status"]],
        )


@dataclass(frozen=True)
class DaoSummary:
    dao: str
    authority: str
    pass_mint: str
    sponsor_mint: str
    sponsor_vault: str
    max_relay_spend: int  # u64
    relay_spent: int  # u64
    total_members: int  # u32

    # discriminator + 4*pubkey + 3*u64 + u32
    MIN_SIZE = 164
    DISCRIMINATOR = DISCRIMINATOR_DAO

    @classmethod
    def from_account(cls, account: RawAccount) -> DaoSummary:
        r = _body(account, cls.MIN_SIZE)
        authority = r.read_pubkey()
        pass_mint = r.read_pubkey()
        sponsor_mint = r.read_pubkey()
        sponsor_vault = r.read_pubkey()
        max_relay_spend = r.read_u64()
        relay_spent = r.read_u64()
        r.skip(8)  # relay_epoch
        total_members = r.read_u32()
        assert r.offset == cls.MIN_SIZE, f"Dao byte coverage: {r.offset} != {cls.MIN_SIZE}"
        return cls(
            dao=account.pubkey,
            authority=authority,
            pass_mint=pass_mint,
            sponsor_mint=sponsor_mint,
            sponsor_vault=sponsor_vault,
            max_relay_spend=max_relay_spend,
            relay_spent=relay_spent,
            total_members=total_members,
        )

    def to_dict(self) -> dict:
        return {
            "dao": self.dao,
            "authority": self.authority,
            "passMint": self.pass_mint,
            "sponsorMint": self.sponsor_mint,
            "sponsorVault": self.sponsor_vault,
            "maxRelaySpend": str(self.max_relay_spend),
            "relaySpent": str(self.relay_spent),
            "totalMembers": self.total_members,
        }

    @classmethod
    def from_dict(cls, d: dict) -> DaoSummary:
        return cls(
            dao=d["dao"],
            authority=d["authority"],
            pass_mint=d["passMint"],
            sponsor_mint=d["sponsorMint"],
            sponsor_vault=d["sponsorVault"],
            max_relay_spend=int(d["maxRelaySpend"]),
            relay_spent=int(d["relaySpent"]),
            total_members=int(d["totalMembers"]),
        )


@dataclass(frozen=True)
class ProposalSummary:
    proposal: str
    realm: str
    proposer: str
    metadata: str
    proposal_id: int  # u64
    voting_start_slot: int  # u64
    voting_end_slot: int  # u64
    yes_votes: int  # u64
    no_votes: int  # u64
    status: ProposalStatus

    # discriminator + 3*pubkey + 5*u64 + u8
    MIN_SIZE = 145
    DISCRIMINATOR = DISCRIMINATOR_PROPOSAL

    @classmethod
    def from_account(cls, account: RawAccount) -> ProposalSummary:
        r = _body(account, cls.MIN_SIZE)
        realm = r.read_pubkey()
        proposer = r.read_pubkey()
        metadata = r.read_pubkey()
        proposal_id = r.read_u64()
        voting_start_slot = r.read_u64()
        voting_end_slot = r.read_u64()
        yes_votes = r.read_u64()
        no_votes = r.read_u64()
        status = ProposalStatus.from_code(r.read_u8())
        assert r.offset == cls.MIN_SIZE, f"Proposal byte coverage: {r.offset} != {cls.MIN_SIZE}"
        return cls(
            proposal=account.pubkey,
            realm=realm,
            proposer=proposer,
            metadata=metadata,
            proposal_id=proposal_id,
            voting_start_slot=voting_start_slot,
            voting_end_slot=voting_end_slot,
            yes_votes=yes_votes,
            no_votes=no_votes,
            status=status,
        )

    def to_dict(self) -> dict:
        return {
            "proposal": self.proposal,
            "realm": self.realm,
            "proposer": self.proposer,
            "metadata": self.metadata,
            "proposalId": str(self.proposal_id),
            "votingStartSlot": self.voting_start_slot,
            "votingEndSlot": self.voting_end_slot,
            "yesVotes": str(self.yes_votes),
            "noVotes": str(self.no_votes),
            "status": str(self.status),
        }

    @classmethod
    def from_dict(cls, d: dict) -> ProposalSummary:
        return cls(
            proposal=d["proposal"],
            realm=d["realm"],
            proposer=d["proposer"],
            metadata=d["metadata"],
            proposal_id=int(d["proposalId"]),
            voting_start_slot=int(d["votingStartSlot"]),
            voting_end_slot=int(d["votingEndSlot"]),
            yes_votes=int(d["yesVotes"]),
            no_votes=int(d["noVotes"]),
            status=_PROPOSAL_STATUS_BY_NAME[d["status"]],
        )


@dataclass(frozen=True)
class VaultSummary:
    vault: str
    authority: str
    deposit_mint: str
    reward_mint: str
    vault_token_account: str
    reward_vault: str
    term_slots: int  # u64
    apy_bps: int  # u16
    total_deposited: int  # u64

    # discriminator + pubkey + u64 + 4*pubkey + u64 + u16 + u64
    MIN_SIZE = 194
    DISCRIMINATOR = DISCRIMINATOR_VAULT

    @classmethod
    def from_account(cls, account: RawAccount) -> VaultSummary:
        r = _body(account, cls.MIN_SIZE)
        authority = r.read_pubkey()
        r.skip(8)  # vault_id
        deposit_mint = r.read_pubkey()
        reward_mint = r.read_pubkey()
        vault_token_account = r.read_pubkey()
        reward_vault = r.read_pubkey()
        term_slots = r.read_u64()
        apy_bps = r.read_u16()
        total_deposited = r.read_u64()
        assert r.offset == cls.MIN_SIZE, f"Vault byte coverage: {r.offset} != {cls.MIN_SIZE}"
        return cls(
            vault=account.pubkey,
            authority=authority,
            deposit_mint=deposit_mint,
            reward_mint=reward_mint,
            vault_token_account=vault_token_account,
            reward_vault=reward_vault,
            term_slots=term_slots,
            apy_bps=apy_bps,
            total_deposited=total_deposited,
        )

    def to_dict(self) -> dict:
        return {
            "vault": self.vault,
            "authority": self.authority,
            "depositMint": self.deposit_mint,
            "rewardMint": self.reward_mint,
            "vaultTokenAccount": self.vault_token_account,
            "rewardVault": self.reward_vault,
            "termSlots": self.term_slots,
            "apyBps": self.apy_bps,
            "totalDeposited": str(self.total_deposited),
        }

    @classmethod
    def from_dict(cls, d: dict) -> VaultSummary:
        return cls(
            vault=d["vault"],
            authority=d["authority"],
            deposit_mint=d["depositMint"],
            reward_mint=d["rewardMint"],
            vault_token_account=d["vaultTokenAccount"],
            reward_vault=d["rewardVault"],
            term_slots=int(d["termSlots"]),
            apy_bps=int(d["apyBps"]),
            total_deposited=int(d["totalDeposited"]),
        )


_PROJECT_STATUS_BY_NAME = {str(s): s for s in ProjectStatus}
_PROPOSAL_STATUS_BY_NAME = {str(s): s for s in ProposalStatus}

T = TypeVar("T", ProjectSummary, DaoSummary, ProposalSummary, VaultSummary)


def decode_accounts(cls: type[T], accounts: Iterable[RawAccount]) -> tuple[list[T], int]:
    """Decode a batch of accounts of one kind, preserving input order.

    Accounts that fail to decode are logged and dropped; the rest of the
    batch is still decoded. Returns the records and the number skipped.
    """
    records: list[T] = []
    skipped = 0
    for account in accounts:
        try:
            records.append(cls.from_account(account))
        except (ValueError, IndexError) as e:
            skipped += 1
            logger.warning(
                "skipping %s account %s (%d bytes): %s",
                cls.__name__,
                account.pubkey,
                len(account.data),
                e,
            )
    return records, skipped


def count_foreign(cls: type, accounts: Iterable[RawAccount]) -> int:
    """Number of accounts whose leading tag is not ``cls.DISCRIMINATOR``.

    Size filters alone cannot tell apart account types of equal length, so
    a non-zero count means the batch may contain other account types.
    """
    return sum(1 for a in accounts if a.data[:DISCRIMINATOR_SIZE] != cls.DISCRIMINATOR)
