"""tunnelnode - Provision and converge a single tunnel node via a provider REST API."""

from .client import PageCursor, ProviderAPI, collect
from .config import Settings, load_settings
from .errors import (
    APIError,
    ConfigError,
    ConvergenceTimeout,
    GuardError,
    ProviderError,
    ScriptMissingError,
    TunnelExistsError,
    TunnelMissingError,
    TunnelNodeError,
    ValidationError,
)
from .guard import TunnelGuard
from .orchestrator import CreateTunnelRequest, RebuildTunnelRequest, TunnelOrchestrator
from .poller import ConvergencePoller
from .provisioning import ObfsOptions, ProvisioningParams, TunnelOptions, WireguardOptions
from .responses import Failure, Result, Success, encode
from .specs import InstanceSpec, RebuildSpec, submit_create, submit_rebuild
from .types import Image, Instance, InstanceStatus, Plan, Region, StackScript
from .utils import EventLog, setup_logging

__all__ = [
    "APIError",
    "ConfigError",
    "ConvergencePoller",
    "ConvergenceTimeout",
    "CreateTunnelRequest",
    "EventLog",
    "Failure",
    "GuardError",
    "Image",
    "Instance",
    "InstanceSpec",
    "InstanceStatus",
    "ObfsOptions",
    "PageCursor",
    "Plan",
    "ProviderAPI",
    "ProviderError",
    "ProvisioningParams",
    "RebuildSpec",
    "RebuildTunnelRequest",
    "Region",
    "Result",
    "ScriptMissingError",
    "Settings",
    "StackScript",
    "Success",
    "TunnelExistsError",
    "TunnelGuard",
    "TunnelMissingError",
    "TunnelNodeError",
    "TunnelOptions",
    "TunnelOrchestrator",
    "ValidationError",
    "WireguardOptions",
    "collect",
    "encode",
    "load_settings",
    "setup_logging",
    "submit_create",
    "submit_rebuild",
]
