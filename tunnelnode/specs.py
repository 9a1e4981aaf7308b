"""Immutable creation and rebuild requests, and the calls that submit them.

A spec is validated when it is constructed and never mutated afterwards;
``with_script`` returns a copy. Submitting is a one-shot network call:
submitting the same spec twice creates (or rebuilds) twice. Uniqueness of
the tunnel instance is the role guard's job, not the spec's.
"""

from dataclasses import asdict, dataclass, field, replace

from .client import ProviderAPI
from .errors import ValidationError
from .types import Instance


def _compact(values: dict) -> dict:
    """Drop empty, false and zero values, matching the provider's optional fields."""
    return {k: v for k, v in values.items() if v not in (None, "", 0, False, [], {})}


@dataclass(frozen=True)
class InstanceSpec:
    """Everything needed to create one instance.

    :param region: Region id (required)
    :param type: Plan/type id (required)
    :param label: Instance label
    :param group: Display group
    :param root_pass: Root password (required by the provider when image is set)
    :param authorized_keys: SSH public keys for root
    :param stackscript_id: Provisioning script id
    :param stackscript_data: Provisioning script parameters
    :param backup_id: Existing backup to create from
    :param image: Image to deploy
    :param backups_enabled: Enable provider backups
    :param booted: Boot automatically after creation
    """

    region: str
    type: str
    label: str = ""
    group: str = ""
    root_pass: str = ""
    authorized_keys: tuple[str, ...] = ()
    stackscript_id: int = 0
    stackscript_data: dict = field(default_factory=dict)
    backup_id: int = 0
    image: str = ""
    backups_enabled: bool = False
    booted: bool = False

    def __post_init__(self):
        if not self.type:
            raise ValidationError("Linode plan is empty or missing")
        if not self.region:
            raise ValidationError("Linode region is empty or missing")
        object.__setattr__(self, "authorized_keys", tuple(self.authorized_keys))

    def with_script(self, script_id: int, data: dict | None = None) -> "InstanceSpec":
        return replace(self, stackscript_id=script_id, stackscript_data=dict(data or {}))

    def to_payload(self) -> dict:
        payload = asdict(self)
        payload["authorized_keys"] = list(self.authorized_keys)
        return _compact(payload)


@dataclass(frozen=True)
class RebuildSpec:
    """Parameters for rebuilding an existing instance in place.

    Label, group and backups are not part of a rebuild: the instance keeps
    its identity.
    """

    root_pass: str = ""
    authorized_keys: tuple[str, ...] = ()
    stackscript_id: int = 0
    stackscript_data: dict = field(default_factory=dict)
    image: str = ""
    booted: bool = False

    def __post_init__(self):
        object.__setattr__(self, "authorized_keys", tuple(self.authorized_keys))

    def with_script(self, script_id: int, data: dict | None = None) -> "RebuildSpec":
        return replace(self, stackscript_id=script_id, stackscript_data=dict(data or {}))

    def to_payload(self) -> dict:
        payload = asdict(self)
        payload["authorized_keys"] = list(self.authorized_keys)
        return _compact(payload)


def submit_create(api: ProviderAPI, spec: InstanceSpec) -> Instance:
    """POST the spec once and return the new instance as the provider reports it."""
    return api.create_instance(spec.to_payload())


def submit_rebuild(api: ProviderAPI, instance_id: int, spec: RebuildSpec) -> Instance:
    """POST the rebuild once and return the instance as the provider reports it."""
    return api.rebuild_instance(instance_id, spec.to_payload())
