"""
服务调用器单元测试：门控（不可用时零下游请求）、按调用时解析、错误分类、请求构造。
"""
from __future__ import annotations

import json
import logging

import pytest

from portal_core.core.errors import InvocationError, ServiceUnavailable
from portal_core.core.invoker import RequestOptions, ServiceInvoker
from portal_core.core.monitor import emit_invocation
from portal_core.core.registry.client import RegistryClient

REGISTRY = "http://registry.test"


@pytest.fixture
def invoker(settings, pool):
    return ServiceInvoker(RegistryClient(settings, pool=pool), pool=pool)


def _downstream_calls(pool):
    return [c for c in pool.calls if not c["url"].startswith(REGISTRY)]


def test_down_service_fails_without_downstream_request(invoker, pool, make_registry):
    make_registry({"tickets": {"url": "http://h", "status": "DOWN"}})
    pool.reply("GET", "http://h/tickets", [])
    with pytest.raises(ServiceUnavailable) as exc:
        invoker.invoke("tickets", "/tickets")
    assert exc.value.service_id == "tickets"
    assert _downstream_calls(pool) == []


def test_empty_catalog_fails_with_service_unavailable(invoker, pool, make_registry):
    make_registry({})
    with pytest.raises(ServiceUnavailable) as exc:
        invoker.invoke("board", "/posts")
    assert exc.value.service_id == "board"
    assert str(exc.value) == "Service board is currently unavailable."
    assert _downstream_calls(pool) == []


def test_registry_unreachable_means_unavailable(invoker, pool):
    pool.fail("GET", f"{REGISTRY}/discover")
    with pytest.raises(ServiceUnavailable):
        invoker.invoke("profile", "/profile/alice")
    assert _downstream_calls(pool) == []


def test_unknown_service_id_is_unavailable(invoker, pool, registry_stub):
    with pytest.raises(ServiceUnavailable) as exc:
        invoker.invoke("billing", "/invoices")
    assert exc.value.service_id == "billing"
    assert _downstream_calls(pool) == []


@pytest.mark.parametrize("service_id", ["PROFILE", "Profile", " profile ", "profile\n"])
def test_case_or_whitespace_variant_id_is_unavailable(invoker, pool, make_registry, service_id):
    """id 按原样精确匹配：大小写/空白不同视为目录中不存在。"""
    make_registry({"profile": {"url": "http://p", "status": "UP"}})
    pool.reply("GET", "http://p/profile/alice", {"name": "Alice"})
    with pytest.raises(ServiceUnavailable) as exc:
        invoker.invoke(service_id, "/profile/alice")
    assert exc.value.service_id == service_id
    assert _downstream_calls(pool) == []


def test_url_is_descriptor_url_plus_path_verbatim(invoker, pool, make_registry):
    make_registry({"profile": {"url": "http://p/", "status": "UP"}})
    pool.reply("GET", "http://p//profile/alice", {"name": "Alice"})
    assert invoker.invoke("profile", "/profile/alice") == {"name": "Alice"}
    assert pool.urls("GET")[-1] == "http://p//profile/alice"


def test_up_service_is_called_at_descriptor_url(invoker, pool, make_registry):
    make_registry({"profile": {"url": "http://p", "status": "UP"}})
    pool.reply("GET", "http://p/profile/alice", {"name": "Alice"})
    assert invoker.invoke("profile", "/profile/alice") == {"name": "Alice"}
    down = _downstream_calls(pool)
    assert [(c["method"], c["url"]) for c in down] == [("GET", "http://p/profile/alice")]
    assert down[0]["headers"]["Content-Type"] == "application/json"
    assert down[0]["body"] is None


def test_every_invoke_discovers_fresh(invoker, pool, registry_stub):
    pool.reply("GET", "http://p/profile/a", {})
    invoker.invoke("profile", "/profile/a")
    invoker.invoke("profile", "/profile/a")
    assert pool.urls().count(f"{REGISTRY}/discover") == 2


def test_status_change_between_calls_is_observed_without_poll(invoker, pool, registry_stub):
    pool.reply("GET", "http://t/tickets", [])
    assert invoker.invoke("tickets", "/tickets") == []
    registry_stub.set_status("tickets", "DOWN")
    with pytest.raises(ServiceUnavailable):
        invoker.invoke("tickets", "/tickets")
    assert len(pool.calls_to("http://t")) == 1


def test_post_encodes_json_body_and_merges_headers(invoker, pool, registry_stub):
    pool.reply("POST", "http://t/tickets", {"ok": True})
    opts = RequestOptions(method="post", headers={"X-Request-ID": "r1"}, body={"subject": "Help", "description": "中文"})
    invoker.invoke("tickets", "/tickets", opts)
    call = pool.calls_to("http://t")[0]
    assert call["method"] == "POST"
    assert json.loads(call["body"].decode("utf-8")) == {"subject": "Help", "description": "中文"}
    assert call["headers"] == {"Content-Type": "application/json", "X-Request-ID": "r1"}


def test_caller_content_type_overrides_default(invoker, pool, registry_stub):
    pool.reply("POST", "http://t/upload", {})
    invoker.invoke("tickets", "/upload", RequestOptions(method="POST", headers={"content-type": "text/plain"}, body="raw"))
    call = pool.calls_to("http://t")[0]
    assert call["headers"] == {"content-type": "text/plain"}
    assert call["body"] == b"raw"


def test_transport_failure_is_invocation_error(invoker, pool, registry_stub):
    pool.fail("GET", "http://p/profile/x")
    with pytest.raises(InvocationError) as exc:
        invoker.invoke("profile", "/profile/x")
    assert exc.value.service_id == "profile"
    assert exc.value.url == "http://p/profile/x"
    assert not isinstance(exc.value, ServiceUnavailable)


def test_malformed_response_is_invocation_error(invoker, pool, registry_stub):
    pool.reply("GET", "http://a/appointments/1", raw=b"<html>oops</html>")
    with pytest.raises(InvocationError) as exc:
        invoker.invoke("appointments", "/appointments/1")
    assert exc.value.status == 200


def test_error_status_is_invocation_error(invoker, pool, registry_stub):
    pool.reply("GET", "http://c/status", {"code": "INTERNAL"}, status=500)
    with pytest.raises(InvocationError) as exc:
        invoker.invoke("counseling", "/status")
    assert exc.value.status == 500


def test_empty_body_returns_none(invoker, pool, registry_stub):
    pool.reply("POST", "http://c/toggle", raw=b"")
    assert invoker.invoke("counseling", "/toggle", RequestOptions(method="POST")) is None


def test_invoke_emits_json_span(invoker, pool, registry_stub, caplog):
    pool.reply("GET", "http://p/profile/a", {})
    with caplog.at_level(logging.INFO, logger="portal.monitor"):
        invoker.invoke("profile", "/profile/a")
    spans = [json.loads(r.getMessage()) for r in caplog.records if r.name == "portal.monitor"]
    assert spans and spans[-1]["service"] == "profile"
    assert spans[-1]["method"] == "GET"
    assert spans[-1]["path"] == "/profile/a"
    assert spans[-1]["outcome"] == "ok"
    assert spans[-1]["status_code"] == 200


def test_gated_call_emits_unavailable_span_without_status(invoker, pool, registry_stub, caplog):
    with caplog.at_level(logging.INFO, logger="portal.monitor"):
        with pytest.raises(ServiceUnavailable):
            invoker.invoke("board", "/posts", RequestOptions(method="post", body={"content": "x"}))
    spans = [json.loads(r.getMessage()) for r in caplog.records if r.name == "portal.monitor"]
    assert spans[-1]["outcome"] == "unavailable"
    assert spans[-1]["method"] == "POST"
    assert spans[-1]["status_code"] is None
    assert spans[-1]["duration_ms"] == 0
    assert [r.levelno for r in caplog.records if r.name == "portal.monitor"][-1] == logging.WARNING


def test_emit_invocation_rejects_unknown_outcome():
    with pytest.raises(ValueError):
        emit_invocation("t1", "profile", "GET", "/profile/a", "maybe")
