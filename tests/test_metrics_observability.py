from __future__ import annotations

import pytest
from fastapi import Request, Response

import lessonhub.main as main_module
from lessonhub.core.metrics import (
    build_metrics_response,
    instrument_http_request,
    record_booking_conflict,
    record_booking_transition,
    record_change_event,
)


def _make_request(path: str) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": b"",
    }
    return Request(scope)


@pytest.mark.asyncio
async def test_http_metrics_instrumentation_tracks_status_and_path() -> None:
    async def _no_content(_: Request) -> Response:
        return Response(status_code=204)

    request = _make_request("/health")
    await instrument_http_request(request, _no_content)

    payload = build_metrics_response().body.decode("utf-8")
    assert "lessonhub_http_requests_total" in payload
    assert 'path="/health"' in payload
    assert 'status_code="204"' in payload


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_prometheus_payload() -> None:
    response = await main_module.metrics_endpoint(_make_request("/metrics"))
    payload = response.body.decode("utf-8")

    assert response.status_code == 200
    assert "lessonhub_http_requests_total" in payload


def test_booking_counters_are_exposed_with_labels() -> None:
    record_booking_transition("approved")
    record_booking_transition("rejected", 3)
    record_booking_transition("rejected", 0)
    record_booking_conflict("slot_taken_meanwhile")
    record_change_event("failed")

    payload = build_metrics_response().body.decode("utf-8")
    assert 'lessonhub_booking_transitions_total{status="approved"}' in payload
    assert 'lessonhub_booking_transitions_total{status="rejected"}' in payload
    assert 'lessonhub_booking_conflicts_total{reason="slot_taken_meanwhile"}' in payload
    assert 'lessonhub_change_events_total{result="failed"}' in payload
