"""
Diamond DAO Governance Engine

Core imports are lazily loaded so that `diamond_dao.constants` and
`diamond_dao.logger` can be used without pulling in the ABI stack.
For direct module access, import from submodules:

    from diamond_dao.governance import DiamondDao, LowMajorityTreasury
    from diamond_dao.chain import InMemoryLedger, ManualClock
    from diamond_dao.exceptions import InvalidArgument
"""

__version__ = "1.0.0"


def __getattr__(name):
    """Lazy module loading."""
    if name == 'DiamondDao':
        from .governance import DiamondDao
        return DiamondDao
    elif name == 'LowMajorityTreasury':
        from .governance import LowMajorityTreasury
        return LowMajorityTreasury
    elif name == 'GovernanceConfig':
        from .config import GovernanceConfig
        return GovernanceConfig
    elif name == 'DaoException':
        from .exceptions import DaoException
        return DaoException
    raise AttributeError(f"module 'diamond_dao' has no attribute {name!r}")

__all__ = ['DiamondDao', 'LowMajorityTreasury', 'GovernanceConfig', 'DaoException']
