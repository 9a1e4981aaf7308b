"""Operation results and their wire form.

Every orchestration verb returns exactly one ``Success`` or ``Failure``.
A failure is either structured (the provider's field/reason list) or
generic (a single message), and maps to one HTTP status.
"""

from dataclasses import dataclass
from typing import Any, Literal

from .errors import ProviderError
from .types import INSTANCE_STATUSES

Operation = Literal[
    "create",
    "rebuild",
    "destroy",
    "status",
    "list_instances",
    "list_plans",
    "list_images",
    "list_regions",
    "list_scripts",
]

STATUS_UNAUTHORIZED = 401
STATUS_FORBIDDEN = 403
STATUS_UNPROCESSABLE = 422


@dataclass(frozen=True)
class Success:
    operation: Operation
    payload: Any = None

    ok = True


@dataclass(frozen=True)
class Failure:
    operation: Operation
    error: Exception

    ok = False

    @property
    def kind(self) -> Literal["structured", "generic"]:
        return "structured" if isinstance(self.error, ProviderError) else "generic"

    @property
    def http_status(self) -> int:
        return http_status_for(self.error)


Result = Success | Failure


def http_status_for(err: Exception) -> int:
    """401 and 403 for provider auth/permission errors, 422 for everything else."""
    if isinstance(err, ProviderError):
        if err.is_auth_error:
            return STATUS_UNAUTHORIZED
        if err.is_permissions_error:
            return STATUS_FORBIDDEN
    return STATUS_UNPROCESSABLE


def error_to_wire(err: Exception) -> dict:
    if isinstance(err, ProviderError):
        return {"details": [dict(e) for e in err.entries]}
    return {"error": {"message": str(err)}}


def instance_to_wire(instance: dict) -> dict:
    specs = instance.get("specs") or {}
    status = instance.get("status")
    ipv6 = instance.get("ipv6")
    return {
        "id": int(instance.get("id") or 0),
        "label": instance.get("label", ""),
        "group": instance.get("group", ""),
        "region": instance.get("region", ""),
        "plan": instance.get("type", ""),
        "image": instance.get("image") or "",
        "ipv4": list(instance.get("ipv4") or []),
        "ipv6": [ipv6] if ipv6 else [],
        "status": status.upper() if status in INSTANCE_STATUSES else "UNKNOWN",
        "created_at": instance.get("created", ""),
        "updated_at": instance.get("updated", ""),
        "hypervisor": instance.get("hypervisor", ""),
        "disk": specs.get("disk", 0),
        "memory": specs.get("memory", 0),
        "vcpus": specs.get("vcpus", 0),
        "transfer": specs.get("transfer", 0),
    }


def plan_to_wire(plan: dict) -> dict:
    price = plan.get("price") or {}
    return {
        "id": plan.get("id", ""),
        "label": plan.get("label", ""),
        "disk": plan.get("disk", 0),
        "memory": plan.get("memory", 0),
        "vcpus": plan.get("vcpus", 0),
        "transfer": plan.get("transfer", 0),
        "network_out": plan.get("network_out", 0),
        "price_hourly": price.get("hourly", 0.0),
        "price_monthly": price.get("monthly", 0.0),
    }


def image_to_wire(image: dict) -> dict:
    return {
        "id": image.get("id", ""),
        "label": image.get("label", ""),
        "size": image.get("size", 0),
        "created_by": image.get("created_by", ""),
        "created_at": image.get("created", ""),
        "vendor": image.get("vendor") or "",
    }


def region_to_wire(region: dict) -> dict:
    return {"id": region.get("id", ""), "country": region.get("country", "")}


def script_to_wire(script: dict) -> dict:
    return {
        "id": int(script.get("id") or 0),
        "label": script.get("label", ""),
        "description": script.get("description", ""),
    }


_PAYLOAD_ENCODERS = {
    "create": instance_to_wire,
    "rebuild": instance_to_wire,
    "status": instance_to_wire,
    "list_instances": instance_to_wire,
    "list_plans": plan_to_wire,
    "list_images": image_to_wire,
    "list_regions": region_to_wire,
    "list_scripts": script_to_wire,
}


def encode(result: Result) -> dict:
    """The single wire encoding for any operation result.

    :return: ``{"operation", "ok", "status", ...}`` with either a ``payload``
        or the error fields
    """
    if isinstance(result, Failure):
        return {
            "operation": result.operation,
            "ok": False,
            "status": result.http_status,
            **error_to_wire(result.error),
        }

    encoder = _PAYLOAD_ENCODERS.get(result.operation)
    payload = result.payload
    if encoder is None or payload is None:
        wire = None
    elif isinstance(payload, list):
        wire = [encoder(item) for item in payload]
    else:
        wire = encoder(payload)
    return {"operation": result.operation, "ok": True, "status": 200, "payload": wire}
