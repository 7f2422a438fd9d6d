"""VirusTotal v3 scanner — implements the ContentScanner interface.

Files are looked up by SHA-256 first; unknown files are uploaded and the
resulting analysis is polled. URLs are looked up by their unpadded
base64url id; unknown URLs are submitted and reported as inconclusive.

The scanner fails open: a missing API key, transport error, API error or
poll timeout yields an INCONCLUSIVE verdict instead of an exception.
"""

import asyncio
import base64
import hashlib
import logging
from datetime import datetime, timezone

import httpx

from knowledge_agent.application.interfaces.content_scanner import ContentScanner
from knowledge_agent.domain.entities import ScanResult, ScanVerdict

logger = logging.getLogger(__name__)


def _verdict_from_stats(subject: str, stats: dict, scan_date: datetime | None) -> ScanResult:
    malicious = stats.get("malicious", 0) or 0
    suspicious = stats.get("suspicious", 0) or 0
    undetected = stats.get("undetected", 0) or 0
    harmless = stats.get("harmless", 0) or 0

    positives = malicious + suspicious
    return ScanResult(
        subject=subject,
        verdict=ScanVerdict.MALICIOUS if positives > 0 else ScanVerdict.CLEAN,
        positives=positives,
        total=malicious + suspicious + undetected + harmless,
        scan_date=scan_date,
    )


def _timestamp(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(value, tz=timezone.utc)


class VirusTotalScanner(ContentScanner):
    """Infrastructure adapter — checks files and URLs against VirusTotal."""

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://www.virustotal.com/api/v3",
        timeout: float = 30.0,
        poll_interval_seconds: float = 5.0,
        max_poll_attempts: int = 10,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._poll_interval = poll_interval_seconds
        self._max_poll_attempts = max_poll_attempts
        self._http_client = http_client

        if not api_key:
            logger.warning("VIRUSTOTAL_API_KEY not set - content scanning will be skipped")

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def _get_headers(self) -> dict[str, str]:
        return {"x-apikey": self._api_key}

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client
        return httpx.AsyncClient(timeout=self._timeout)

    @staticmethod
    def _inconclusive(subject: str, error: str) -> ScanResult:
        logger.warning("Scan of %s inconclusive: %s", subject, error)
        return ScanResult(subject=subject, verdict=ScanVerdict.INCONCLUSIVE, error=error)

    # ── Files ────────────────────────────────────────────────────────

    async def scan_file(self, content: bytes) -> ScanResult:
        sha256 = hashlib.sha256(content).hexdigest()

        if not self.is_configured:
            return self._inconclusive(sha256, "VirusTotal not configured")

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.get(
                f"{self._base_url}/files/{sha256}", headers=self._get_headers()
            )
            if response.status_code == 404:
                return await self._upload_and_poll(client, content, sha256)
            if response.status_code != 200:
                return self._inconclusive(
                    sha256, f"VirusTotal API error: {response.status_code}"
                )

            attributes = response.json().get("data", {}).get("attributes", {})
            result = _verdict_from_stats(
                sha256,
                attributes.get("last_analysis_stats", {}),
                _timestamp(attributes.get("last_analysis_date")),
            )
            logger.info(
                "File %s scanned: %d/%d detections", sha256[:12], result.positives, result.total
            )
            return result

        except (httpx.HTTPError, ValueError) as exc:
            return self._inconclusive(sha256, str(exc) or type(exc).__name__)
        finally:
            if should_close:
                await client.aclose()

    async def _upload_and_poll(
        self, client: httpx.AsyncClient, content: bytes, sha256: str
    ) -> ScanResult:
        response = await client.post(
            f"{self._base_url}/files",
            headers=self._get_headers(),
            files={"file": ("file", content)},
        )
        if response.status_code != 200:
            return self._inconclusive(
                sha256, f"VirusTotal upload error: {response.status_code}"
            )

        analysis_id = response.json().get("data", {}).get("id")
        if not analysis_id:
            return self._inconclusive(sha256, "No analysis ID returned")

        for attempt in range(self._max_poll_attempts):
            await asyncio.sleep(self._poll_interval)

            poll = await client.get(
                f"{self._base_url}/analyses/{analysis_id}", headers=self._get_headers()
            )
            if poll.status_code != 200:
                logger.debug("Analysis poll %d returned %d", attempt + 1, poll.status_code)
                continue

            attributes = poll.json().get("data", {}).get("attributes", {})
            if attributes.get("status") == "completed":
                return _verdict_from_stats(
                    sha256, attributes.get("stats", {}), datetime.now(timezone.utc)
                )

        return self._inconclusive(sha256, "Analysis timeout")

    # ── URLs ─────────────────────────────────────────────────────────

    async def scan_url(self, url: str) -> ScanResult:
        if not self.is_configured:
            return self._inconclusive(url, "VirusTotal not configured")

        url_id = base64.urlsafe_b64encode(url.encode()).decode().rstrip("=")

        client = await self._get_client()
        should_close = self._http_client is None

        try:
            response = await client.get(
                f"{self._base_url}/urls/{url_id}", headers=self._get_headers()
            )
            if response.status_code == 404:
                submit = await client.post(
                    f"{self._base_url}/urls",
                    headers=self._get_headers(),
                    data={"url": url},
                )
                if submit.status_code != 200:
                    return self._inconclusive(
                        url, f"VirusTotal URL submit error: {submit.status_code}"
                    )
                return self._inconclusive(url, "Submitted for scanning - results pending")

            if response.status_code != 200:
                return self._inconclusive(url, f"VirusTotal API error: {response.status_code}")

            attributes = response.json().get("data", {}).get("attributes", {})
            return _verdict_from_stats(
                url,
                attributes.get("last_analysis_stats", {}),
                _timestamp(attributes.get("last_analysis_date")),
            )

        except (httpx.HTTPError, ValueError) as exc:
            return self._inconclusive(url, str(exc) or type(exc).__name__)
        finally:
            if should_close:
                await client.aclose()
