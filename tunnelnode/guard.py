"""Tunnel role guard: at most one instance per role label prefix.

The check is read-then-act. Two operations racing for the same role (for
example two concurrent creates) can both see "does not exist" and both
create an instance; the provider offers no compare-and-swap, so this is an
accepted limitation and no in-process lock is taken.
"""

from .client import ProviderAPI
from .errors import APIError, TunnelExistsError, TunnelMissingError
from .types import Instance
from .utils import EventLog


class TunnelGuard:
    """Looks up the tunnel instance for a role and enforces operation preconditions.

    :param api: Provider client
    :param events: Event sink
    """

    def __init__(self, api: ProviderAPI, events: EventLog | None = None):
        self.api = api
        self.events = events or EventLog()

    def matching(self, role: str) -> list[Instance]:
        """All instances whose label starts with ``role``, in listing order."""
        try:
            instances = self.api.list_instances()
        except APIError as e:
            self.events.error("Couldn't list instances", cause=str(e))
            raise
        return [i for i in instances if (i.get("label") or "").startswith(role)]

    def find(self, role: str) -> Instance | None:
        """Return the tunnel instance for ``role``, or None.

        More than one match is an operational anomaly: every match is
        logged and the first one in listing order is returned.
        """
        matches = self.matching(role)
        if not matches:
            return None
        if len(matches) > 1:
            self.events.error(
                "Multiple tunnel instances are currently active!", count=len(matches)
            )
            for n, instance in enumerate(matches):
                self.events.error(
                    f"Active tunnel instance #{n}",
                    id=instance.get("id"),
                    label=instance.get("label"),
                    region=instance.get("region"),
                    status=instance.get("status"),
                    ipv4=instance.get("ipv4"),
                    created=instance.get("created"),
                )
        return matches[0]

    def ensure_exists(self, role: str) -> Instance:
        """:raises TunnelMissingError: When no instance carries the role prefix"""
        instance = self.find(role)
        if instance is None:
            err = TunnelMissingError(role)
            self.events.error("Guard failure", role=role, cause=str(err))
            raise err
        return instance

    def ensure_does_not_exist(self, role: str) -> None:
        """:raises TunnelExistsError: When any instance carries the role prefix"""
        instance = self.find(role)
        if instance is not None:
            err = TunnelExistsError(role)
            self.events.error("Guard failure", role=role, id=instance.get("id"), cause=str(err))
            raise err
