"""Connection testing for generated artifacts.

Probes every endpoint an artifact references, concurrently and each with
its own timeout, and classifies the responses. IdPs answer unauthenticated
probes with a range of non-2xx statuses, so the policy is per endpoint:
a 401 from a token endpoint means it is alive and expects credentials,
not that it is broken.

Probes:
- Endpoint liveness: one GET per endpoint, redirects not followed
- OIDC discovery: fetch the well-known document and the JWKS it names
- Network: DNS resolution of a host followed by one GET
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any
from urllib.parse import urlparse

import httpx

from ssowizard.core.artifacts import GeneratedArtifact, OidcConfig
from ssowizard.core.findings import (
    FindingKind,
    ValidationFinding,
    ValidationReport,
    error_finding,
    pass_finding,
    warning_finding,
)
from ssowizard.core.logging import ProtocolLogger, get_protocol_logger
from ssowizard.core.oidc.validation import check_jwks
from ssowizard.providers.discovery import (
    OIDCDiscoveryResult,
    fetch_discovery_document,
    fetch_jwks,
)
from ssowizard.providers.profiles import is_http_url

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
USER_AGENT = "ssowizard-connection-test"

# Statuses that show an endpoint is alive and configured, by endpoint name
ACS_STATUSES = frozenset({200, 302, 405})
OK_STATUSES: dict[str, frozenset[int]] = {
    "acs": ACS_STATUSES,
    "slo": ACS_STATUSES,
    "authorization": frozenset({200, 302, 400}),
    "token": frozenset({200, 400, 401}),
    "userinfo": frozenset({200, 401, 405}),
    "end_session": frozenset({200, 302, 400}),
}

Resolver = Callable[[str, int], Awaitable[list[str]]]


class Classification(StrEnum):
    """How an endpoint responded to a probe."""

    OK = "ok"
    NOT_CONFIGURED = "not-configured"
    UNREACHABLE = "unreachable"


def classify_status(endpoint_name: str, status: int) -> Classification:
    """Classify an HTTP status for the named endpoint.

    Endpoints without a specific policy are ``ok`` on any 2xx or 3xx.
    """
    allowed = OK_STATUSES.get(endpoint_name)
    if allowed is None:
        ok = 200 <= status < 400
    else:
        ok = status in allowed
    return Classification.OK if ok else Classification.NOT_CONFIGURED


@dataclass
class EndpointProbeResult:
    """Outcome of probing one endpoint."""

    endpoint_name: str
    url: str
    reachable: bool
    classification: Classification
    http_status: int | None = None
    latency: float | None = None  # seconds
    error: str | None = None

    def to_finding(self) -> ValidationFinding:
        check = f"endpoint.{self.endpoint_name}"
        if self.classification == Classification.OK:
            return pass_finding(check, f"{self.url} responded {self.http_status}")
        if self.classification == Classification.NOT_CONFIGURED:
            return warning_finding(
                check,
                f"{self.url} responded {self.http_status}; the endpoint may not be configured",
                FindingKind.ENDPOINT_MISCONFIGURED,
            )
        return error_finding(check, f"{self.url} is unreachable: {self.error}", FindingKind.ENDPOINT_UNREACHABLE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint_name,
            "url": self.url,
            "reachable": self.reachable,
            "http_status": self.http_status,
            "latency_ms": round(self.latency * 1000, 1) if self.latency is not None else None,
            "classification": self.classification.value,
            "error": self.error,
        }


@dataclass
class ConnectionTestReport:
    """Probe results for one artifact, keyed by endpoint name."""

    subject: str
    results: dict[str, EndpointProbeResult] = field(default_factory=dict)
    # Discovery and JWKS findings, when the discovery check ran
    discovery_findings: list[ValidationFinding] = field(default_factory=list)

    @property
    def findings(self) -> list[ValidationFinding]:
        return [r.to_finding() for r in self.results.values()] + self.discovery_findings

    @property
    def passed(self) -> bool:
        return not any(f.is_error for f in self.findings)

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1

    def to_validation_report(self) -> ValidationReport:
        return ValidationReport(subject=self.subject, findings=self.findings)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject": self.subject,
            "passed": self.passed,
            "results": {name: r.to_dict() for name, r in self.results.items()},
            "findings": [f.to_dict() for f in self.findings],
        }


def discovery_findings(result: OIDCDiscoveryResult, expected_issuer: str | None = None) -> list[ValidationFinding]:
    """Turn a discovery fetch into findings."""
    if not result.success:
        return [error_finding("discovery.fetch", result.error or "Discovery failed", FindingKind.DISCOVERY_FAILED)]

    findings = [pass_finding("discovery.fetch", f"Fetched discovery document from {result.url}")]
    for key in result.missing_endpoints:
        findings.append(
            warning_finding(f"discovery.{key}", f"Discovery document has no {key}", FindingKind.DISCOVERY_INCOMPLETE)
        )
    if expected_issuer and result.issuer and result.issuer.rstrip("/") != expected_issuer.rstrip("/"):
        findings.append(
            warning_finding(
                "discovery.issuer",
                f"Discovery issuer {result.issuer} does not match configured issuer {expected_issuer}",
            )
        )
    return findings


async def _system_resolver(host: str, port: int) -> list[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, port)
    return sorted({info[4][0] for info in infos})


class ConnectionTester:
    """Runs liveness probes against the endpoints of an artifact.

    Args:
        timeout: Per-probe timeout in seconds.
        transport: Inner httpx transport. Tests pass ``httpx.MockTransport``.
        verify_ssl: TLS verification for the default transport.
        protocol_logger: Logger that records every HTTP exchange.
        include_discovery: Also check the OIDC discovery document.
        resolver: Async DNS resolver for the network check.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
        verify_ssl: bool = True,
        protocol_logger: ProtocolLogger | None = None,
        include_discovery: bool = False,
        resolver: Resolver | None = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport
        self.verify_ssl = verify_ssl
        self.protocol_logger = protocol_logger or get_protocol_logger()
        self.include_discovery = include_discovery
        self.resolver = resolver or _system_resolver

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=self.protocol_logger.create_transport(self.transport, verify=self.verify_ssl),
            timeout=self.timeout,
            follow_redirects=False,
            headers={"User-Agent": USER_AGENT},
        )

    async def probe(self, client: httpx.AsyncClient, endpoint_name: str, url: str) -> EndpointProbeResult:
        """Probe one endpoint. Network failures are returned, never raised."""
        start = time.perf_counter()
        try:
            response = await asyncio.wait_for(client.get(url), timeout=self.timeout)
        except TimeoutError:
            return EndpointProbeResult(
                endpoint_name=endpoint_name,
                url=url,
                reachable=False,
                classification=Classification.UNREACHABLE,
                latency=time.perf_counter() - start,
                error=f"timed out after {self.timeout:g}s",
            )
        except (httpx.RequestError, httpx.InvalidURL) as e:
            return EndpointProbeResult(
                endpoint_name=endpoint_name,
                url=url,
                reachable=False,
                classification=Classification.UNREACHABLE,
                latency=time.perf_counter() - start,
                error=str(e) or type(e).__name__,
            )

        latency = time.perf_counter() - start
        classification = classify_status(endpoint_name, response.status_code)
        logger.debug(f"Probe {endpoint_name} {url}: {response.status_code} ({classification})")
        return EndpointProbeResult(
            endpoint_name=endpoint_name,
            url=url,
            reachable=True,
            classification=classification,
            http_status=response.status_code,
            latency=latency,
        )

    async def check_discovery(
        self,
        client: httpx.AsyncClient,
        issuer: str,
        expected_issuer: str | None = None,
    ) -> list[ValidationFinding]:
        """Fetch the discovery document and validate the JWKS it advertises."""
        result = await fetch_discovery_document(client, issuer)
        findings = discovery_findings(result, expected_issuer)
        if not result.success or not result.jwks_uri:
            return findings

        jwks = await fetch_jwks(client, result.jwks_uri)
        if not jwks.success:
            findings.append(error_finding("jwks.fetch", jwks.error or "JWKS fetch failed", FindingKind.DISCOVERY_FAILED))
        else:
            findings.append(pass_finding("jwks.fetch", f"Fetched JWKS from {jwks.url}"))
            findings.extend(check_jwks(jwks.document))
        return findings

    async def test_connection(self, artifact: GeneratedArtifact) -> ConnectionTestReport:
        """Probe every endpoint of an artifact concurrently.

        All probes are awaited together; cancelling the caller cancels
        every in-flight probe. Results keep the artifact's endpoint order
        regardless of completion order.
        """
        subject = artifact.provider_id or str(artifact.protocol)
        endpoints = dict(artifact.endpoints)
        run_id = uuid.uuid4().hex[:12]
        self.protocol_logger.start_run(run_id, "connection_test")
        logger.info(f"Testing {len(endpoints)} endpoint(s) for {subject}")

        try:
            async with self._client() as client:
                probes = [self.probe(client, name, url) for name, url in endpoints.items()]
                issuer = artifact.issuer if isinstance(artifact, OidcConfig) else ""
                if self.include_discovery and issuer:
                    probes.append(self.check_discovery(client, issuer, expected_issuer=issuer))
                outcomes = await asyncio.gather(*probes)
        finally:
            self.protocol_logger.end_run()

        report = ConnectionTestReport(subject=subject)
        for name, result in zip(endpoints, outcomes):
            report.results[name] = result
        if len(outcomes) > len(endpoints):
            report.discovery_findings = outcomes[-1]
        return report

    async def test_discovery(self, issuer: str) -> ValidationReport:
        """Run the discovery and JWKS check on its own."""
        self.protocol_logger.start_run(uuid.uuid4().hex[:12], "discovery")
        try:
            async with self._client() as client:
                findings = await self.check_discovery(client, issuer)
        finally:
            self.protocol_logger.end_run()
        return ValidationReport(subject=issuer, findings=findings)

    async def test_network(self, url: str) -> ValidationReport:
        """Resolve the URL's host, then issue one GET."""
        report = ValidationReport(subject=url)
        parsed = urlparse(url)
        host = parsed.hostname
        if not is_http_url(url) or not host:
            report.add(error_finding("network.url", f"Not an absolute http(s) URL: {url!r}", FindingKind.INVALID_URL))
            return report

        port = parsed.port or (443 if parsed.scheme == "https" else 80)
        try:
            addresses = await asyncio.wait_for(self.resolver(host, port), timeout=self.timeout)
        except TimeoutError:
            report.add(error_finding("network.dns", f"DNS lookup for {host} timed out", FindingKind.ENDPOINT_UNREACHABLE))
            return report
        except OSError as e:
            report.add(
                error_finding("network.dns", f"DNS resolution failed for {host}: {e}", FindingKind.ENDPOINT_UNREACHABLE)
            )
            return report
        report.add(pass_finding("network.dns", f"{host} resolves to {', '.join(addresses) or 'no addresses'}"))

        self.protocol_logger.start_run(uuid.uuid4().hex[:12], "network")
        try:
            async with self._client() as client:
                result = await self.probe(client, "network", url)
        finally:
            self.protocol_logger.end_run()
        report.add(result.to_finding())
        return report


def run_connection_test(artifact: GeneratedArtifact, **kwargs: Any) -> ConnectionTestReport:
    """Synchronous entry point for ``ConnectionTester.test_connection``."""
    return asyncio.run(ConnectionTester(**kwargs).test_connection(artifact))


def run_discovery_check(issuer: str, **kwargs: Any) -> ValidationReport:
    return asyncio.run(ConnectionTester(**kwargs).test_discovery(issuer))


def run_network_check(url: str, **kwargs: Any) -> ValidationReport:
    return asyncio.run(ConnectionTester(**kwargs).test_network(url))
