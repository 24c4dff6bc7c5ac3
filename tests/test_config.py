"""
TOML configuration loading, environment overrides and validation.
"""

import pytest

from diamond_dao.config import GovernanceConfig
from diamond_dao.constants import EXECUTION_WINDOW_PHASES, PROPOSAL_PHASE_DURATION
from diamond_dao.exceptions import ConfigurationError


ENV_VARS = (
    "DAO_PROPOSAL_PHASE_DURATION",
    "DAO_VOTING_PHASE_DURATION",
    "DAO_MAX_NEW_PROPOSALS",
    "DAO_EXECUTION_WINDOW_PHASES",
    "DAO_RPC_URL",
    "DAO_RPC_TIMEOUT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestFromFile:

    def test_full_file(self, tmp_path):
        path = tmp_path / "dao.toml"
        path.write_text(
            "[governance]\n"
            "proposal_phase_duration = 600\n"
            "voting_phase_duration = 300\n"
            "max_new_proposals = 5\n"
            "execution_window_phases = 4\n"
            "\n"
            "[rpc]\n"
            'url = "http://node:8545"\n'
            "timeout = 2.5\n"
        )

        cfg = GovernanceConfig.from_file(str(path))

        assert cfg.proposal_phase_duration == 600
        assert cfg.voting_phase_duration == 300
        assert cfg.max_new_proposals == 5
        assert cfg.execution_window_phases == 4
        assert cfg.rpc_url == "http://node:8545"
        assert cfg.rpc_timeout == 2.5

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "dao.toml"
        path.write_text("[governance]\nmax_new_proposals = 3\n")

        cfg = GovernanceConfig.from_file(str(path))

        assert cfg.max_new_proposals == 3
        assert cfg.proposal_phase_duration == PROPOSAL_PHASE_DURATION
        assert cfg.execution_window_phases == EXECUTION_WINDOW_PHASES

    def test_missing_file(self, tmp_path):
        cfg = GovernanceConfig.from_file(str(tmp_path / "absent.toml"))
        assert cfg == GovernanceConfig()

    def test_invalid_toml(self, tmp_path):
        path = tmp_path / "dao.toml"
        path.write_text("[governance\n")
        with pytest.raises(ConfigurationError):
            GovernanceConfig.from_file(str(path))

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "dao.toml"
        path.write_text("[governance]\nvoting_phase_duration = 0\n")
        with pytest.raises(ConfigurationError):
            GovernanceConfig.from_file(str(path))

    def test_env_wins_over_file(self, tmp_path, monkeypatch):
        path = tmp_path / "dao.toml"
        path.write_text("[governance]\nmax_new_proposals = 3\n")
        monkeypatch.setenv("DAO_MAX_NEW_PROPOSALS", "8")

        assert GovernanceConfig.from_file(str(path)).max_new_proposals == 8


class TestApplyEnv:

    def test_overrides(self):
        cfg = GovernanceConfig()
        cfg.apply_env({
            "DAO_PROPOSAL_PHASE_DURATION": "60",
            "DAO_VOTING_PHASE_DURATION": "120",
            "DAO_EXECUTION_WINDOW_PHASES": "0",
            "DAO_RPC_URL": "http://other:1",
            "DAO_RPC_TIMEOUT": "1.5",
        })
        assert cfg.proposal_phase_duration == 60
        assert cfg.voting_phase_duration == 120
        assert cfg.execution_window_phases == 0
        assert cfg.rpc_url == "http://other:1"
        assert cfg.rpc_timeout == 1.5

    def test_empty_values_ignored(self):
        cfg = GovernanceConfig()
        cfg.apply_env({"DAO_MAX_NEW_PROPOSALS": ""})
        assert cfg.max_new_proposals == GovernanceConfig().max_new_proposals

    def test_bad_number(self):
        with pytest.raises(ConfigurationError):
            GovernanceConfig().apply_env({"DAO_MAX_NEW_PROPOSALS": "many"})


class TestValidate:

    @pytest.mark.parametrize("overrides", [
        {"proposal_phase_duration": 0},
        {"voting_phase_duration": -1},
        {"max_new_proposals": 0},
        {"execution_window_phases": -1},
        {"rpc_timeout": 0},
    ])
    def test_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            GovernanceConfig(**overrides).validate()

    def test_defaults_valid(self):
        assert GovernanceConfig().validate()
