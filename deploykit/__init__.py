"""deploykit: deploy and call smart contracts through a ledger gateway."""

from .amounts import BASE_UNITS, AmountError, format_amount, parse_amount, to_base_units
from .call import CommandDescriptor, InvocationDispatcher, UsageError, build_invocation_request
from .config import ConfigurationError, DeployConfig, NetworkConfig, ToolConfig
from .deploy import DeploymentOrchestrator, DeploymentOutcome
from .funding import FundingPlan, plan_funding
from .model import AccountSnapshot, ActivationState, ContractRef, KeyPair

__all__ = [
    "BASE_UNITS",
    "AmountError",
    "format_amount",
    "parse_amount",
    "to_base_units",
    "CommandDescriptor",
    "InvocationDispatcher",
    "UsageError",
    "build_invocation_request",
    "ConfigurationError",
    "DeployConfig",
    "NetworkConfig",
    "ToolConfig",
    "DeploymentOrchestrator",
    "DeploymentOutcome",
    "FundingPlan",
    "plan_funding",
    "AccountSnapshot",
    "ActivationState",
    "ContractRef",
    "KeyPair",
]
