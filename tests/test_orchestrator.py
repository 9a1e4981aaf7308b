"""End-to-end tests for the lifecycle verbs against the fake provider."""

import dataclasses

import httpx
import pytest

from tunnelnode.errors import (
    APIError,
    ProviderError,
    ScriptMissingError,
    TunnelExistsError,
    TunnelMissingError,
    ValidationError,
)
from tunnelnode.orchestrator import (
    CreateTunnelRequest,
    RebuildTunnelRequest,
    TunnelOrchestrator,
)
from tunnelnode.provisioning import ObfsOptions, TunnelOptions, WireguardOptions
from tunnelnode.responses import Failure, Success

from fakes import TOKEN, make_instance, request_body

ROLE = "hp_instance"
OPTIONS = TunnelOptions(
    username="alice",
    password="pw",
    wireguard=WireguardOptions(port=51820, server_key="wg-key", peer_keys=("p1",)),
    obfs4=ObfsOptions(port=443, secret="s4"),
)


def _create_request(**overrides) -> CreateTunnelRequest:
    fields = dict(
        token=TOKEN,
        plan="g6-nanode-1",
        region="us-east",
        root_password="rootpw",
        ssh_keys=("ssh-ed25519 AAAA",),
        options=OPTIONS,
    )
    fields.update(overrides)
    return CreateTunnelRequest(**fields)


@pytest.fixture
def script(provider):
    provider.scripts.append({"id": 77, "label": "freedom_node"})
    return provider.scripts[0]


@pytest.fixture
def tunnel(provider):
    instance = make_instance(500, ROLE)
    provider.instances.append(instance)
    return instance


def test_create_without_region_fails_before_any_request(orchestrator, provider):
    result = orchestrator.create_tunnel(_create_request(region=""))
    assert isinstance(result, Failure)
    assert isinstance(result.error, ValidationError)
    assert result.kind == "generic"
    assert provider.requests == []


def test_create_without_plan_fails_before_any_request(orchestrator, provider):
    result = orchestrator.create_tunnel(_create_request(plan=""))
    assert isinstance(result.error, ValidationError)
    assert provider.requests == []


def test_create_happy_path(orchestrator, provider, script, sleeps):
    provider.statuses = ["provisioning", "provisioning", "running"]

    result = orchestrator.create_tunnel(_create_request())

    assert isinstance(result, Success)
    instance = result.payload
    assert instance["status"] == "running"
    assert instance["label"] == ROLE
    assert instance["ipv4"] and instance["ipv6"]
    assert provider.calls == [
        ("GET", "/linode/instances"),
        ("GET", "/linode/stackscripts"),
        ("POST", "/linode/instances"),
        ("GET", f"/linode/instances/{instance['id']}"),
        ("GET", f"/linode/instances/{instance['id']}"),
        ("GET", f"/linode/instances/{instance['id']}"),
    ]
    assert sleeps == [14.0, 7.0, 7.0]

    body = request_body(provider.requests[2])
    assert body == {
        "region": "us-east",
        "type": "g6-nanode-1",
        "label": ROLE,
        "root_pass": "rootpw",
        "authorized_keys": ["ssh-ed25519 AAAA"],
        "image": "linode/debian9",
        "booted": True,
        "stackscript_id": 77,
        "stackscript_data": {
            "udf_local_user_name": "alice",
            "udf_local_user_password": "pw",
            "udf_enable_wireguard": 1,
            "udf_wireguard_port": 51820,
            "udf_wireguard_private_key": "wg-key",
            "udf_wireguard_peer_keys": "p1",
            "udf_enable_obfs4": 1,
            "udf_obfs4_port": 443,
            "udf_obfs4_secret": "s4",
            "udf_enable_obfs6": 0,
        },
    }


def test_create_refuses_when_tunnel_exists(orchestrator, provider, script, tunnel):
    result = orchestrator.create_tunnel(_create_request())
    assert isinstance(result.error, TunnelExistsError)
    assert result.http_status == 422
    assert ("POST", "/linode/instances") not in provider.calls


def test_create_with_missing_script(orchestrator, provider):
    result = orchestrator.create_tunnel(_create_request())
    assert isinstance(result.error, ScriptMissingError)
    assert ("POST", "/linode/instances") not in provider.calls


def _impatient(provider, settings, sleeps) -> TunnelOrchestrator:
    return TunnelOrchestrator(
        dataclasses.replace(settings, poll_attempts=2),
        transport=provider.transport(),
        sleep=sleeps.append,
    )


def test_create_poll_timeout_returns_created_instance(provider, settings, script, sleeps):
    provider.statuses = ["booting", "booting"]

    result = _impatient(provider, settings, sleeps).create_tunnel(_create_request())

    assert isinstance(result, Success)
    assert result.payload["status"] == "provisioning"
    assert result.payload["id"] == provider.next_id
    assert provider.calls.count(("POST", "/linode/instances")) == 1
    assert provider.calls.count(("GET", f"/linode/instances/{provider.next_id}")) == 2


def test_rebuild_poll_timeout_returns_rebuilt_instance(provider, settings, script, tunnel, sleeps):
    provider.statuses = ["booting", "booting"]

    result = _impatient(provider, settings, sleeps).rebuild_tunnel(
        RebuildTunnelRequest(token=TOKEN, options=OPTIONS)
    )

    assert isinstance(result, Success)
    assert result.payload["id"] == tunnel["id"]
    assert result.payload["status"] == "rebuilding"
    assert provider.calls.count(("GET", "/linode/instances/500")) == 2


def test_create_poll_transport_error_returns_created_instance(orchestrator, provider, script):
    provider.failures[("GET", f"/linode/instances/{provider.next_id + 1}")] = httpx.ReadTimeout(
        "timed out"
    )

    result = orchestrator.create_tunnel(_create_request())

    assert isinstance(result, Success)
    assert result.payload["status"] == "provisioning"
    assert result.payload["id"] == provider.next_id


def test_create_rejected_by_provider(orchestrator, provider, script):
    provider.failures[("POST", "/linode/instances")] = httpx.Response(
        400, json={"errors": [{"field": "type", "reason": "A valid plan type is required"}]}
    )
    result = orchestrator.create_tunnel(_create_request())
    assert isinstance(result.error, ProviderError)
    assert result.kind == "structured"
    assert result.http_status == 422


def test_auth_failure_is_classified(orchestrator, provider):
    provider.failures[("GET", "/linode/instances")] = httpx.Response(
        401, json={"errors": [{"reason": "Invalid Token"}]}
    )
    result = orchestrator.tunnel_status(TOKEN)
    assert result.kind == "structured"
    assert result.http_status == 401


def test_rebuild_happy_path(orchestrator, provider, script, tunnel, sleeps):
    provider.statuses = ["rebuilding", "running"]

    result = orchestrator.rebuild_tunnel(
        RebuildTunnelRequest(token=TOKEN, root_password="new", options=OPTIONS)
    )

    assert isinstance(result, Success)
    assert result.payload["id"] == tunnel["id"]
    assert result.payload["status"] == "running"
    assert ("POST", "/linode/instances/500/rebuild") in provider.calls
    rebuild = next(r for r in provider.requests if r.url.path.endswith("/rebuild"))
    body = request_body(rebuild)
    assert "label" not in body
    assert body["stackscript_id"] == 77
    assert body["root_pass"] == "new"
    assert sleeps == [14.0, 7.0]


def test_rebuild_requires_existing_tunnel(orchestrator, provider, script):
    result = orchestrator.rebuild_tunnel(RebuildTunnelRequest(token=TOKEN))
    assert isinstance(result.error, TunnelMissingError)
    assert provider.calls == [("GET", "/linode/instances")]


def test_destroy(orchestrator, provider, tunnel):
    result = orchestrator.destroy_tunnel(TOKEN)
    assert isinstance(result, Success)
    assert result.payload is None
    assert provider.instances == []
    assert provider.calls[-1] == ("DELETE", "/linode/instances/500")


def test_destroy_without_tunnel(orchestrator, provider):
    result = orchestrator.destroy_tunnel(TOKEN)
    assert isinstance(result.error, TunnelMissingError)


def test_status_returns_current_snapshot(orchestrator, provider, tunnel):
    result = orchestrator.tunnel_status(TOKEN)
    assert result.payload == tunnel


def test_status_skips_instances_without_label(orchestrator, provider, tunnel):
    provider.instances.insert(0, make_instance(400, None))
    result = orchestrator.tunnel_status(TOKEN)
    assert isinstance(result, Success)
    assert result.payload["id"] == tunnel["id"]


def test_script_without_id_is_a_decode_failure(orchestrator, provider):
    provider.scripts.append({"label": "freedom_node"})
    result = orchestrator.create_tunnel(_create_request())
    assert isinstance(result, Failure)
    assert isinstance(result.error, APIError)
    assert "unable to decode" in str(result.error)
    assert ("POST", "/linode/instances") not in provider.calls


def test_instance_listing_without_id_is_a_decode_failure(orchestrator, provider):
    provider.instances.append({"label": ROLE, "status": "running"})
    result = orchestrator.destroy_tunnel(TOKEN)
    assert isinstance(result, Failure)
    assert isinstance(result.error, APIError)
    assert result.http_status == 422


def test_authenticated_verb_without_token(orchestrator, provider):
    result = orchestrator.list_instances("")
    assert isinstance(result.error, ValidationError)
    assert provider.requests == []


def test_catalog_listings(orchestrator, provider):
    provider.plans.append({"id": "g6-nanode-1", "label": "Nanode 1GB"})
    provider.regions.append({"id": "us-east", "country": "us"})
    provider.images.append({"id": "linode/debian9", "label": "Debian 9"})
    provider.scripts.append({"id": 77, "label": "freedom_node"})

    assert orchestrator.list_plans().payload == provider.plans
    assert orchestrator.list_regions().payload == provider.regions
    assert orchestrator.list_images(TOKEN).payload == provider.images
    assert orchestrator.list_scripts(TOKEN).payload == provider.scripts

    unauthenticated = [r for r in provider.requests if "Authorization" not in r.headers]
    assert [r.url.path for r in unauthenticated] == ["/v4/linode/types", "/v4/regions"]


def test_listing_failure_is_a_failure_result(orchestrator, provider):
    provider.failures[("GET", "/images")] = httpx.Response(500)
    result = orchestrator.list_images(TOKEN)
    assert isinstance(result, Failure)
    assert isinstance(result.error, APIError)
    assert result.kind == "generic"
