"""Provisioning script lookup and user-defined-field parameters for a tunnel node."""

from dataclasses import dataclass

from .client import ProviderAPI
from .errors import APIError, ScriptMissingError
from .types import StackScript
from .utils import EventLog


@dataclass(frozen=True)
class WireguardOptions:
    port: int
    server_key: str
    peer_keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class ObfsOptions:
    """Obfuscation relay settings (obfs4 over IPv4, obfs6 over IPv6)."""

    port: int
    secret: str


@dataclass(frozen=True)
class TunnelOptions:
    """Tunnel configuration carried by create and rebuild requests.

    A feature set to None is disabled.
    """

    username: str = ""
    password: str = ""
    wireguard: WireguardOptions | None = None
    obfs4: ObfsOptions | None = None
    obfs6: ObfsOptions | None = None


def script_params(options: TunnelOptions) -> dict:
    """Build the script's user-defined fields from tunnel options.

    Every feature always contributes its ``udf_enable_*`` flag; its other
    fields appear only when the feature is enabled.
    """
    params: dict = {
        "udf_local_user_name": options.username,
        "udf_local_user_password": options.password,
    }

    wg = options.wireguard
    if wg is not None:
        params["udf_enable_wireguard"] = 1
        params["udf_wireguard_port"] = wg.port
        params["udf_wireguard_private_key"] = wg.server_key
        params["udf_wireguard_peer_keys"] = " ".join(wg.peer_keys)
    else:
        params["udf_enable_wireguard"] = 0

    for name, obfs in (("obfs4", options.obfs4), ("obfs6", options.obfs6)):
        if obfs is not None:
            params[f"udf_enable_{name}"] = 1
            params[f"udf_{name}_port"] = obfs.port
            params[f"udf_{name}_secret"] = obfs.secret
        else:
            params[f"udf_enable_{name}"] = 0

    return params


class ProvisioningParams:
    """Resolves a provisioning script by label and assembles its parameters.

    :param api: Provider client
    :param events: Event sink
    """

    def __init__(self, api: ProviderAPI, events: EventLog | None = None):
        self.api = api
        self.events = events or EventLog()

    def find_script(self, label: str) -> StackScript:
        """Look up the account's script with exactly this label.

        If several scripts share the label, the last one listed wins and a
        warning is logged.

        :raises ScriptMissingError: When no script has the label
        """
        try:
            scripts = self.api.list_scripts()
        except APIError as e:
            self.events.error("Couldn't list StackScripts", cause=str(e))
            raise

        matches = [s for s in scripts if s.get("label") == label]
        if not matches:
            err = ScriptMissingError(label)
            self.events.error("Couldn't retrieve StackScript information", cause=str(err))
            raise err
        if len(matches) > 1:
            self.events.warn(
                "Several StackScripts share a label, using the last one",
                label=label,
                ids=[s.get("id") for s in matches],
            )
        return matches[-1]

    def build(self, label: str, options: TunnelOptions) -> tuple[StackScript, dict]:
        """:return: (script, parameters) ready for ``with_script``"""
        script = self.find_script(label)
        return script, script_params(options)
