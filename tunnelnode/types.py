"""Type definitions for provider records."""

from typing import Literal, TypedDict, get_args

InstanceStatus = Literal[
    "offline",
    "booting",
    "running",
    "shutting_down",
    "rebooting",
    "provisioning",
    "deleting",
    "migrating",
    "restoring",
    "rebuilding",
    "cloning",
]

INSTANCE_STATUSES: tuple[str, ...] = get_args(InstanceStatus)

HTTPMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "HEAD"]


class InstanceSpecs(TypedDict, total=False):
    disk: int
    memory: int
    vcpus: int
    transfer: int


class Instance(TypedDict, total=False):
    """A compute instance as reported by the provider."""

    id: int
    label: str
    group: str
    region: str
    type: str
    image: str
    status: InstanceStatus
    ipv4: list[str]
    ipv6: str
    created: str
    updated: str
    hypervisor: str
    specs: InstanceSpecs


class StackScript(TypedDict, total=False):
    """A provisioning script run by the provider at boot."""

    id: int
    label: str
    description: str
    images: list[str]
    is_public: bool


class Region(TypedDict, total=False):
    id: str
    country: str


class Image(TypedDict, total=False):
    """A deployable image."""

    id: str
    label: str
    description: str
    is_public: bool
    size: int
    created_by: str
    created: str
    vendor: str
    deprecated: bool


class PlanPrice(TypedDict, total=False):
    hourly: float
    monthly: float


class Plan(TypedDict, total=False):
    """An instance type (plan) with its resources and price."""

    id: str
    label: str
    disk: int
    memory: int
    vcpus: int
    transfer: int
    network_out: int
    price: PlanPrice


class PageEnvelope(TypedDict):
    """Envelope returned by every paged list endpoint."""

    data: list[dict]
    page: int
    pages: int
    results: int


class ErrorEntry(TypedDict, total=False):
    field: str
    reason: str
