"""
Diamond DAO TOML Configuration Loader

Loads the governance schedule and limits from a TOML file with environment
variable overrides. Defaults come from constants.py (and therefore `.env`).

File layout:

    [governance]
    proposal_phase_duration = 1209600
    voting_phase_duration = 1209600
    max_new_proposals = 100
    execution_window_phases = 2

    [rpc]
    url = "http://127.0.0.1:8540"
    timeout = 10.0

Environment variable mapping:
    [governance] proposal_phase_duration → DAO_PROPOSAL_PHASE_DURATION
    [governance] voting_phase_duration   → DAO_VOTING_PHASE_DURATION
    [governance] max_new_proposals       → DAO_MAX_NEW_PROPOSALS
    [governance] execution_window_phases → DAO_EXECUTION_WINDOW_PHASES
    [rpc] url                            → DAO_RPC_URL
    [rpc] timeout                        → DAO_RPC_TIMEOUT
"""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .constants import (
    DAO_RPC_TIMEOUT,
    DAO_RPC_URL,
    EXECUTION_WINDOW_PHASES,
    MAX_NEW_PROPOSALS,
    PROPOSAL_PHASE_DURATION,
    VOTING_PHASE_DURATION,
)
from .exceptions import ConfigurationError
from .logger import get_logger

logger = get_logger(__name__)


@dataclass
class GovernanceConfig:
    """Phase schedule, per-phase cap, execution window and RPC endpoint."""
    proposal_phase_duration: int = PROPOSAL_PHASE_DURATION
    voting_phase_duration: int = VOTING_PHASE_DURATION
    max_new_proposals: int = MAX_NEW_PROPOSALS
    execution_window_phases: int = EXECUTION_WINDOW_PHASES
    rpc_url: str = str(DAO_RPC_URL)
    rpc_timeout: float = float(DAO_RPC_TIMEOUT)

    # --- factories --------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GovernanceConfig":
        """Create GovernanceConfig from a parsed TOML dict."""
        governance = data.get("governance", {})
        rpc = data.get("rpc", {})
        return cls(
            proposal_phase_duration=governance.get("proposal_phase_duration", PROPOSAL_PHASE_DURATION),
            voting_phase_duration=governance.get("voting_phase_duration", VOTING_PHASE_DURATION),
            max_new_proposals=governance.get("max_new_proposals", MAX_NEW_PROPOSALS),
            execution_window_phases=governance.get("execution_window_phases", EXECUTION_WINDOW_PHASES),
            rpc_url=rpc.get("url", str(DAO_RPC_URL)),
            rpc_timeout=float(rpc.get("timeout", float(DAO_RPC_TIMEOUT))),
        )

    @classmethod
    def from_file(cls, config_path: str) -> "GovernanceConfig":
        """
        Load configuration from a TOML file.

        Args:
            config_path: Path to the TOML file

        Returns:
            GovernanceConfig instance, validated
        """
        path = Path(config_path)
        if not path.exists():
            logger.warning(f"Config file not found: {config_path}, using defaults")
            cfg = cls()
        else:
            try:
                with open(path, "rb") as f:
                    raw = tomllib.load(f)
            except tomllib.TOMLDecodeError as e:
                raise ConfigurationError(f"Invalid TOML in {config_path}: {e}") from e
            cfg = cls.from_dict(raw)

        cfg.apply_env()
        cfg.validate()
        return cfg

    # --- env overrides ----------------------------------------------------

    def apply_env(self, environ: Optional[Mapping[str, str]] = None) -> None:
        """Override from environment variables."""
        env = os.environ if environ is None else environ
        try:
            if v := env.get("DAO_PROPOSAL_PHASE_DURATION"):
                self.proposal_phase_duration = int(v)
            if v := env.get("DAO_VOTING_PHASE_DURATION"):
                self.voting_phase_duration = int(v)
            if v := env.get("DAO_MAX_NEW_PROPOSALS"):
                self.max_new_proposals = int(v)
            if v := env.get("DAO_EXECUTION_WINDOW_PHASES"):
                self.execution_window_phases = int(v)
            if v := env.get("DAO_RPC_TIMEOUT"):
                self.rpc_timeout = float(v)
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric environment override: {e}") from e
        if v := env.get("DAO_RPC_URL"):
            self.rpc_url = v

    # --- validation -------------------------------------------------------

    def validate(self) -> bool:
        """
        Validate the configuration.

        Raises:
            ConfigurationError: on invalid config
        """
        if self.proposal_phase_duration <= 0 or self.voting_phase_duration <= 0:
            raise ConfigurationError("Phase durations must be positive")
        if self.max_new_proposals <= 0:
            raise ConfigurationError("max_new_proposals must be >= 1")
        if self.execution_window_phases < 0:
            raise ConfigurationError("execution_window_phases cannot be negative")
        if self.rpc_timeout <= 0:
            raise ConfigurationError("rpc timeout must be positive")
        return True
