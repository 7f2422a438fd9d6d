"""Unit tests for the VirusTotalScanner — lookups, uploads and fail-open behavior."""

import base64
import hashlib

import httpx
import pytest

from knowledge_agent.domain.entities import ScanVerdict
from knowledge_agent.infrastructure.security import VirusTotalScanner

BASE = "https://vt.test/api/v3"
CONTENT = b"%PDF-1.4 test document"
SHA256 = hashlib.sha256(CONTENT).hexdigest()


# ── Helpers ──


def _stats(malicious=0, suspicious=0, undetected=60, harmless=10) -> dict:
    return {
        "malicious": malicious,
        "suspicious": suspicious,
        "undetected": undetected,
        "harmless": harmless,
    }


def _scanner(routes: dict, requests: list | None = None, **kwargs) -> VirusTotalScanner:
    """Route ``(METHOD, path)`` to a response or a list of responses served in order."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        key = (request.method, request.url.path.replace("/api/v3", "", 1))
        response = routes[key]
        if isinstance(response, list):
            return response.pop(0)
        return response

    return VirusTotalScanner(
        api_key=kwargs.pop("api_key", "vt-key"),
        base_url=BASE,
        poll_interval_seconds=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


# ── Files ──


@pytest.mark.asyncio
async def test_known_clean_file():
    requests: list[httpx.Request] = []
    scanner = _scanner(
        {("GET", f"/files/{SHA256}"): httpx.Response(
            200,
            json={"data": {"attributes": {
                "last_analysis_stats": _stats(),
                "last_analysis_date": 1700000000,
            }}},
        )},
        requests,
    )

    result = await scanner.scan_file(CONTENT)

    assert result.verdict is ScanVerdict.CLEAN
    assert result.is_clean
    assert result.subject == SHA256
    assert (result.positives, result.total) == (0, 70)
    assert result.scan_date is not None
    assert requests[0].headers["x-apikey"] == "vt-key"


@pytest.mark.asyncio
async def test_known_malicious_file_counts_suspicious_as_positive():
    scanner = _scanner({
        ("GET", f"/files/{SHA256}"): httpx.Response(
            200,
            json={"data": {"attributes": {"last_analysis_stats": _stats(malicious=3, suspicious=2)}}},
        ),
    })

    result = await scanner.scan_file(CONTENT)

    assert result.verdict is ScanVerdict.MALICIOUS
    assert not result.is_clean
    assert (result.positives, result.total) == (5, 75)


@pytest.mark.asyncio
async def test_unknown_file_is_uploaded_and_polled_until_completed():
    scanner = _scanner({
        ("GET", f"/files/{SHA256}"): httpx.Response(404, json={}),
        ("POST", "/files"): httpx.Response(200, json={"data": {"id": "analysis-1"}}),
        ("GET", "/analyses/analysis-1"): [
            httpx.Response(200, json={"data": {"attributes": {"status": "queued"}}}),
            httpx.Response(500, json={}),
            httpx.Response(200, json={"data": {"attributes": {
                "status": "completed",
                "stats": _stats(undetected=50, harmless=0),
            }}}),
        ],
    })

    result = await scanner.scan_file(CONTENT)

    assert result.verdict is ScanVerdict.CLEAN
    assert result.total == 50


@pytest.mark.asyncio
async def test_poll_timeout_is_inconclusive():
    scanner = _scanner(
        {
            ("GET", f"/files/{SHA256}"): httpx.Response(404, json={}),
            ("POST", "/files"): httpx.Response(200, json={"data": {"id": "a"}}),
            ("GET", "/analyses/a"): httpx.Response(
                200, json={"data": {"attributes": {"status": "queued"}}}
            ),
        },
        max_poll_attempts=3,
    )

    result = await scanner.scan_file(CONTENT)

    assert result.verdict is ScanVerdict.INCONCLUSIVE
    assert result.is_clean
    assert result.error == "Analysis timeout"


@pytest.mark.asyncio
async def test_missing_api_key_is_inconclusive_without_requests():
    requests: list[httpx.Request] = []
    scanner = _scanner({}, requests, api_key="")

    file_result = await scanner.scan_file(CONTENT)
    url_result = await scanner.scan_url("https://example.com")

    assert file_result.verdict is ScanVerdict.INCONCLUSIVE
    assert file_result.error == "VirusTotal not configured"
    assert url_result.verdict is ScanVerdict.INCONCLUSIVE
    assert requests == []


@pytest.mark.asyncio
async def test_api_and_transport_errors_fail_open():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("unreachable", request=request)

    down = VirusTotalScanner(
        api_key="k",
        base_url=BASE,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)),
    )
    rate_limited = _scanner({("GET", f"/files/{SHA256}"): httpx.Response(429, json={})})

    assert (await down.scan_file(CONTENT)).verdict is ScanVerdict.INCONCLUSIVE
    limited = await rate_limited.scan_file(CONTENT)
    assert limited.verdict is ScanVerdict.INCONCLUSIVE
    assert limited.error == "VirusTotal API error: 429"


# ── URLs ──


@pytest.mark.asyncio
async def test_known_url_is_looked_up_by_unpadded_base64_id():
    url = "https://example.com/manual.pdf"
    url_id = base64.urlsafe_b64encode(url.encode()).decode().rstrip("=")
    scanner = _scanner({
        ("GET", f"/urls/{url_id}"): httpx.Response(
            200,
            json={"data": {"attributes": {"last_analysis_stats": _stats(malicious=1)}}},
        ),
    })

    result = await scanner.scan_url(url)

    assert result.verdict is ScanVerdict.MALICIOUS
    assert result.subject == url


@pytest.mark.asyncio
async def test_unknown_url_is_submitted_and_reported_pending():
    url = "https://new.example.com/a.pdf"
    url_id = base64.urlsafe_b64encode(url.encode()).decode().rstrip("=")
    requests: list[httpx.Request] = []
    scanner = _scanner(
        {
            ("GET", f"/urls/{url_id}"): httpx.Response(404, json={}),
            ("POST", "/urls"): httpx.Response(200, json={"data": {"id": "u-1"}}),
        },
        requests,
    )

    result = await scanner.scan_url(url)

    assert result.verdict is ScanVerdict.INCONCLUSIVE
    assert result.error == "Submitted for scanning - results pending"
    assert requests[-1].method == "POST"
    assert b"url=" in requests[-1].content
