"""
govstrategy - proposal voting strategies for modular on-chain governance

Core imports are lazily loaded. For direct module access, import from
submodules:

    from govstrategy.governance import SnapshotStrategy, DepositDelegationStrategy
    from govstrategy.tokens import GovernanceToken
    from govstrategy.chain import ChainContext
"""

# Lazy imports to avoid configuring logging before it is needed
def __getattr__(name):
    if name == 'SnapshotStrategy':
        from .governance.strategy import SnapshotStrategy
        return SnapshotStrategy
    elif name == 'DepositDelegationStrategy':
        from .governance.strategy import DepositDelegationStrategy
        return DepositDelegationStrategy
    elif name == 'ProposalVotingStrategy':
        from .governance.strategy import ProposalVotingStrategy
        return ProposalVotingStrategy
    elif name == 'GovernanceToken':
        from .tokens.governance_token import GovernanceToken
        return GovernanceToken
    elif name == 'ChainContext':
        from .chain import ChainContext
        return ChainContext
    elif name == 'load_config':
        from .config.loader import load_config
        return load_config
    raise AttributeError(f"module 'govstrategy' has no attribute {name!r}")

__all__ = [
    'SnapshotStrategy',
    'DepositDelegationStrategy',
    'ProposalVotingStrategy',
    'GovernanceToken',
    'ChainContext',
    'load_config',
]
