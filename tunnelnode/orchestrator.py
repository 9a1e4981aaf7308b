"""Lifecycle verbs for the single tunnel node.

Each verb runs sequentially on the calling thread, opens its own provider
client, and returns exactly one ``Success`` or ``Failure``. Polling
timeouts are not failures: create and rebuild then report the instance as
returned by the initiating call.
"""

import time
from dataclasses import dataclass, field
from typing import Callable

import httpx

from .client import ProviderAPI
from .config import Settings
from .errors import APIError, ConvergenceTimeout, TunnelNodeError, ValidationError
from .guard import TunnelGuard
from .poller import ConvergencePoller
from .provisioning import ProvisioningParams, TunnelOptions
from .responses import Failure, Operation, Result, Success
from .specs import InstanceSpec, RebuildSpec, submit_create, submit_rebuild
from .types import Instance
from .utils import EventLog


@dataclass(frozen=True)
class CreateTunnelRequest:
    token: str
    plan: str
    region: str
    root_password: str = ""
    ssh_keys: tuple[str, ...] = ()
    options: TunnelOptions = field(default_factory=TunnelOptions)


@dataclass(frozen=True)
class RebuildTunnelRequest:
    token: str
    root_password: str = ""
    ssh_keys: tuple[str, ...] = ()
    options: TunnelOptions = field(default_factory=TunnelOptions)


class TunnelOrchestrator:
    """Composes guard, provisioning, specs and poller into each lifecycle verb.

    Holds no mutable state between calls, so one orchestrator can serve
    concurrent requests.

    :param settings: Role label, image, script label, polling and HTTP settings
    :param transport: Optional httpx transport passed to every provider client
    :param sleep: Sleep function used by the poller
    :param events: Event sink shared by every component
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
        events: EventLog | None = None,
    ):
        self.settings = settings or Settings()
        self.transport = transport
        self.sleep = sleep
        self.events = events or EventLog()

    def _api(self, token: str | None) -> ProviderAPI:
        return ProviderAPI(
            token,
            base_url=self.settings.api_url,
            timeout=self.settings.timeout,
            transport=self.transport,
            events=self.events,
        )

    def _authed_api(self, token: str | None) -> ProviderAPI:
        if not token:
            raise ValidationError("Access token is empty or missing")
        return self._api(token)

    def _run(self, operation: Operation, action: Callable[[], object]) -> Result:
        try:
            return Success(operation, action())
        except TunnelNodeError as e:
            self.events.error(f"Operation '{operation}' failed", cause=str(e))
            return Failure(operation, e)

    # -- lifecycle ----------------------------------------------------------

    def create_tunnel(self, request: CreateTunnelRequest) -> Result:
        self.events.info("Got request to create tunnel", region=request.region, plan=request.plan)
        return self._run("create", lambda: self._create(request))

    def _create(self, request: CreateTunnelRequest) -> Instance:
        spec = InstanceSpec(
            region=request.region,
            type=request.plan,
            label=self.settings.role_label,
            image=self.settings.image,
            root_pass=request.root_password,
            authorized_keys=request.ssh_keys,
            booted=True,
            backups_enabled=False,
        )

        with self._authed_api(request.token) as api:
            TunnelGuard(api, self.events).ensure_does_not_exist(self.settings.role_label)
            script, params = ProvisioningParams(api, self.events).build(
                self.settings.script_label, request.options
            )
            try:
                instance = submit_create(api, spec.with_script(script["id"], params))
            except APIError as e:
                self.events.error("Couldn't create instance", cause=str(e))
                raise

            self.events.instance(instance, "Initiated instance creation. Waiting until it's running...")
            return self._converge(api, instance, "Instance was successfully created")

    def rebuild_tunnel(self, request: RebuildTunnelRequest) -> Result:
        self.events.info("Got request to rebuild tunnel")
        return self._run("rebuild", lambda: self._rebuild(request))

    def _rebuild(self, request: RebuildTunnelRequest) -> Instance:
        spec = RebuildSpec(
            root_pass=request.root_password,
            authorized_keys=request.ssh_keys,
            image=self.settings.image,
            booted=True,
        )

        with self._authed_api(request.token) as api:
            tunnel = TunnelGuard(api, self.events).ensure_exists(self.settings.role_label)
            script, params = ProvisioningParams(api, self.events).build(
                self.settings.script_label, request.options
            )
            try:
                instance = submit_rebuild(api, tunnel["id"], spec.with_script(script["id"], params))
            except APIError as e:
                self.events.error("Couldn't rebuild instance", cause=str(e))
                raise

            self.events.instance(instance, "Initiated instance rebuild. Waiting until it's running...")
            return self._converge(api, instance, "Successfully rebuilt instance")

    def _converge(self, api: ProviderAPI, instance: Instance, done_msg: str) -> Instance:
        poller = ConvergencePoller(
            api,
            interval=self.settings.poll_interval,
            max_attempts=self.settings.poll_attempts,
            sleep=self.sleep,
            events=self.events,
        )
        try:
            latest = poller.await_running(instance["id"])
        except ConvergenceTimeout:
            self.events.instance(instance, "Instance is not running yet, returning it as initiated")
            return instance
        except APIError:
            self.events.instance(instance, "Returning instance state from the initiating call")
            return instance

        self.events.instance(latest, done_msg)
        return latest

    def destroy_tunnel(self, token: str) -> Result:
        self.events.info("Got request to destroy tunnel")
        return self._run("destroy", lambda: self._destroy(token))

    def _destroy(self, token: str) -> None:
        with self._authed_api(token) as api:
            tunnel = TunnelGuard(api, self.events).ensure_exists(self.settings.role_label)
            try:
                api.delete_instance(tunnel["id"])
            except APIError as e:
                self.events.error("Couldn't delete instance", cause=str(e))
                raise
            self.events.instance(tunnel, "Instance was successfully deleted")

    def tunnel_status(self, token: str) -> Result:
        self.events.info("Got request to retrieve tunnel status")
        return self._run("status", lambda: self._status(token))

    def _status(self, token: str) -> Instance:
        with self._authed_api(token) as api:
            return TunnelGuard(api, self.events).ensure_exists(self.settings.role_label)

    # -- catalogs -------------------------------------------------------------

    def list_instances(self, token: str) -> Result:
        self.events.info("Got request to list instances")
        return self._run("list_instances", lambda: self._list(self._authed_api(token), "list_instances"))

    def list_images(self, token: str) -> Result:
        self.events.info("Got request to list images")
        return self._run("list_images", lambda: self._list(self._authed_api(token), "list_images"))

    def list_scripts(self, token: str) -> Result:
        self.events.info("Got request to list StackScripts")
        return self._run("list_scripts", lambda: self._list(self._authed_api(token), "list_scripts"))

    def list_plans(self) -> Result:
        self.events.info("Got request to list instance types")
        return self._run("list_plans", lambda: self._list(self._api(None), "list_plans"))

    def list_regions(self) -> Result:
        self.events.info("Got request to list regions")
        return self._run("list_regions", lambda: self._list(self._api(None), "list_regions"))

    def _list(self, api: ProviderAPI, method: str) -> list[dict]:
        with api:
            try:
                return getattr(api, method)()
            except APIError as e:
                self.events.error(
                    f"Couldn't {method.replace('_', ' ')}", cause=str(e), partial=len(e.partial)
                )
                raise
