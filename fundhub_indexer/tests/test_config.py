import pytest

from fundhub_indexer.config import SOLANA_RPC_URLS, load_settings
from fundhub_indexer.errors import ConfigurationError

FUNDING_HUB = "B8gKYNx3LGJVpsAzY72ufrNJj6WZVf8KTodiz1Mex62u"
GOVERNANCE = "6pCiN5ZUf5GCY3hJ8YiWL27apECaobGPLVVsSi51rrUq"

_ENV_VARS = (
    "RPC_ENDPOINT",
    "FUNDING_HUB_PROGRAM_ID",
    "DAO_PASS_PROGRAM_ID",
    "GOVERNANCE_PROGRAM_ID",
    "SAVINGS_VAULT_PROGRAM_ID",
    "REDIS_URL",
    "LOG_LEVEL",
    "PROPOSAL_DATA_SIZE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)


class TestSettings:
    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("RPC_ENDPOINT", "https://rpc.example.com")
        monkeypatch.setenv("FUNDING_HUB_PROGRAM_ID", FUNDING_HUB)
        monkeypatch.setenv("GOVERNANCE_PROGRAM_ID", GOVERNANCE)
        s = load_settings()
        assert s.RPC_ENDPOINT == "https://rpc.example.com"
        ids = s.program_ids
        assert ids.funding_hub == FUNDING_HUB
        assert ids.governance == GOVERNANCE
        assert ids.dao_pass is None
        assert ids.savings_vault is None
        assert s.REDIS_URL is None
        assert s.REFRESH_INTERVAL_SECONDS == 300
        assert s.SNAPSHOT_TTL_SECONDS == 60
        assert s.STORE_TIMEOUT_SECONDS == 2.0

    def test_cluster_name_resolves(self):
        s = load_settings(RPC_ENDPOINT="devnet", FUNDING_HUB_PROGRAM_ID=FUNDING_HUB)
        assert s.RPC_ENDPOINT == SOLANA_RPC_URLS["devnet"]

    def test_blank_optional_program_id_is_unset(self):
        s = load_settings(
            RPC_ENDPOINT="localnet",
            FUNDING_HUB_PROGRAM_ID=FUNDING_HUB,
            DAO_PASS_PROGRAM_ID="  ",
        )
        assert s.program_ids.dao_pass is None

    def test_missing_endpoint(self):
        with pytest.raises(ConfigurationError):
            load_settings(FUNDING_HUB_PROGRAM_ID=FUNDING_HUB)

    def test_missing_funding_hub(self):
        with pytest.raises(ConfigurationError):
            load_settings(RPC_ENDPOINT="devnet")

    def test_invalid_program_id(self):
        with pytest.raises(ConfigurationError):
            load_settings(RPC_ENDPOINT="devnet", FUNDING_HUB_PROGRAM_ID="not-a-key")

    def test_invalid_endpoint(self):
        with pytest.raises(ConfigurationError):
            load_settings(RPC_ENDPOINT="ftp://nope", FUNDING_HUB_PROGRAM_ID=FUNDING_HUB)

    def test_log_level_normalized(self):
        s = load_settings(RPC_ENDPOINT="devnet", FUNDING_HUB_PROGRAM_ID=FUNDING_HUB, LOG_LEVEL="debug")
        assert s.LOG_LEVEL == "DEBUG"
        with pytest.raises(ConfigurationError):
            load_settings(RPC_ENDPOINT="devnet", FUNDING_HUB_PROGRAM_ID=FUNDING_HUB, LOG_LEVEL="LOUD")


class TestKindSpecs:
    def test_default_sizes(self):
        s = load_settings(RPC_ENDPOINT="devnet", FUNDING_HUB_PROGRAM_ID=FUNDING_HUB)
        sizes = {name: spec.data_size for name, spec in s.kind_specs.items()}
        assert sizes == {"projects": 184, "daos": 180, "proposals": 152, "vaults": 200}

    def test_zero_disables_filter(self, monkeypatch):
        monkeypatch.setenv("PROPOSAL_DATA_SIZE", "0")
        s = load_settings(RPC_ENDPOINT="devnet", FUNDING_HUB_PROGRAM_ID=FUNDING_HUB)
        assert s.kind_specs["proposals"].data_size is None
