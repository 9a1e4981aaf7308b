"""Tests for result classification and wire encoding."""

from tunnelnode.errors import APIError, ProviderError, TunnelExistsError
from tunnelnode.responses import Failure, Success, encode, http_status_for

from fakes import make_instance


def test_status_mapping():
    assert http_status_for(ProviderError([{"reason": "x"}], status=401)) == 401
    assert http_status_for(ProviderError([{"reason": "x"}], status=403)) == 403
    assert http_status_for(ProviderError([{"reason": "x"}], status=400)) == 422
    assert http_status_for(APIError("boom", status=500)) == 422
    assert http_status_for(TunnelExistsError("hp_instance")) == 422


def test_encode_instance_success():
    wire = encode(Success("status", make_instance(5, "hp_instance", status="shutting_down")))
    assert wire["ok"] is True
    assert wire["status"] == 200
    payload = wire["payload"]
    assert payload["id"] == 5
    assert payload["plan"] == "g6-nanode-1"
    assert payload["status"] == "SHUTTING_DOWN"
    assert payload["ipv6"] == ["2001:db8::5/64"]
    assert payload["vcpus"] == 1


def test_encode_list_success():
    plans = [{"id": "g6-nanode-1", "label": "Nanode", "price": {"hourly": 0.0075, "monthly": 5.0}}]
    wire = encode(Success("list_plans", plans))
    assert wire["payload"][0]["price_monthly"] == 5.0
    assert wire["payload"][0]["memory"] == 0


def test_encode_destroy_success_has_no_payload():
    assert encode(Success("destroy"))["payload"] is None


def test_encode_structured_failure():
    err = ProviderError(
        [{"field": "region", "reason": "Not valid"}], method="POST", endpoint="/x", status=403
    )
    wire = encode(Failure("create", err))
    assert wire == {
        "operation": "create",
        "ok": False,
        "status": 403,
        "details": [{"field": "region", "reason": "Not valid"}],
    }


def test_encode_generic_failure():
    wire = encode(Failure("rebuild", TunnelExistsError("hp_instance")))
    assert wire["status"] == 422
    assert wire["error"] == {"message": "Tunnel already exists"}
    assert "details" not in wire


def test_unknown_status_is_encoded_as_unknown():
    wire = encode(Success("status", make_instance(5, "hp_instance", status="exploding")))
    assert wire["payload"]["status"] == "UNKNOWN"
