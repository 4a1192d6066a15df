from fundhub_indexer.cache import SnapshotCache
from fundhub_indexer.discriminator import (
    DISCRIMINATOR_DAO,
    DISCRIMINATOR_PROJECT,
    DISCRIMINATOR_PROPOSAL,
    DISCRIMINATOR_SIZE,
    DISCRIMINATOR_VAULT,
    account_discriminator,
)
from fundhub_indexer.errors import (
    CacheMiss,
    ConfigurationError,
    IndexerError,
    NetworkError,
    ProtocolError,
)
from fundhub_indexer.reader import (
    AccountReader,
    encode_base58,
    read_i64,
    read_pubkey,
    read_u8,
    read_u16,
    read_u32,
    read_u64,
)
from fundhub_indexer.rpc import RPCClient
from fundhub_indexer.snapshot import (
    PlatformMetrics,
    ProgramIds,
    Snapshot,
    SnapshotBuilder,
)
from fundhub_indexer.state import (
    DaoSummary,
    ProjectStatus,
    ProjectSummary,
    ProposalStatus,
    ProposalSummary,
    RawAccount,
    VaultSummary,
    count_foreign,
    decode_accounts,
)

__all__ = [
    "AccountReader",
    "CacheMiss",
    "ConfigurationError",
    "DaoSummary",
    "IndexerError",
    "NetworkError",
    "PlatformMetrics",
    "ProgramIds",
    "ProjectStatus",
    "ProjectSummary",
    "ProposalStatus",
    "ProposalSummary",
    "ProtocolError",
    "RPCClient",
    "RawAccount",
    "Snapshot",
    "SnapshotBuilder",
    "SnapshotCache",
    "VaultSummary",
    "DISCRIMINATOR_DAO",
    "DISCRIMINATOR_PROJECT",
    "DISCRIMINATOR_PROPOSAL",
    "DISCRIMINATOR_SIZE",
    "DISCRIMINATOR_VAULT",
    "account_discriminator",
    "count_foreign",
    "decode_accounts",
    "encode_base58",
    "read_i64",
    "read_pubkey",
    "read_u8",
    "read_u16",
    "read_u32",
    "read_u64",
]
