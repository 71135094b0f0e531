"""Protocol logging for endpoint probes and discovery fetches.

Every HTTP exchange made while testing an IdP configuration is captured
as an ``HTTPExchange`` and written to the ``ssowizard.protocol`` logger,
with client secrets, tokens and cookies redacted unless TRACE logging is
explicitly enabled.

Log levels:
- ERROR: Only log failed exchanges
- WARNING: Application warnings, no per-exchange lines
- INFO: One line per exchange (method, URL, status, duration)
- DEBUG: Add request/response headers
- TRACE: Add bodies, unredacted (requires explicit enable)
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import IntEnum
from typing import Any

import httpx

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

logger = logging.getLogger("ssowizard.protocol")


class LogLevel(IntEnum):
    """Protocol logging levels."""

    ERROR = logging.ERROR
    WARNING = logging.WARNING
    INFO = logging.INFO
    DEBUG = logging.DEBUG
    TRACE = TRACE


SENSITIVE_PATTERNS = [
    (re.compile(r"(client_secret=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(code=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(access_token=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(id_token=)[^&\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"^(Bearer\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"^(Basic\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Authorization:\s*(?:Bearer|Basic)\s+)[^\s]+", re.IGNORECASE), r"\1[REDACTED]"),
    (re.compile(r"(Set-Cookie:\s*|Cookie:\s*)[^\r\n]+", re.IGNORECASE), r"\1[REDACTED]"),
    (
        re.compile(r'"(client_secret|access_token|refresh_token|id_token|password)"\s*:\s*"[^"]+"', re.IGNORECASE),
        r'"\1": "[REDACTED]"',
    ),
]

# Header names whose whole value is replaced
SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "set-cookie", "proxy-authorization"})


def redact_sensitive(text: str) -> str:
    """Redact secrets, tokens and cookies from text.

    Args:
        text: Text that may contain sensitive data.

    Returns:
        Text with sensitive data replaced by ``[REDACTED]``.
    """
    result = text
    for pattern, replacement in SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def redact_headers(headers: dict[str, str]) -> dict[str, str]:
    """Redact sensitive header values."""
    return {
        name: "[REDACTED]" if name.lower() in SENSITIVE_HEADERS else redact_sensitive(value)
        for name, value in headers.items()
    }


@dataclass
class HTTPExchange:
    """A single HTTP request/response exchange made by a probe."""

    id: str
    timestamp: datetime
    method: str
    url: str
    request_headers: dict[str, str]
    response_status: int | None = None
    response_headers: dict[str, str] = field(default_factory=dict)
    response_body: str | None = None
    duration_ms: float | None = None
    error: str | None = None

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        """Convert to dictionary for serialization.

        Args:
            include_sensitive: If False, secrets are redacted.
        """
        if include_sensitive:
            url, req_headers, resp_headers = self.url, dict(self.request_headers), dict(self.response_headers)
            body = self.response_body
        else:
            url = redact_sensitive(self.url)
            req_headers = redact_headers(self.request_headers)
            resp_headers = redact_headers(self.response_headers)
            body = redact_sensitive(self.response_body) if self.response_body is not None else None

        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "method": self.method,
            "url": url,
            "request_headers": req_headers,
            "response_status": self.response_status,
            "response_headers": resp_headers,
            "response_body": body,
            "duration_ms": self.duration_ms,
            "error": self.error,
        }

    def format_log(self, level: LogLevel, include_sensitive: bool = False) -> str:
        """Format the exchange for logging at the given level."""
        data = self.to_dict(include_sensitive)
        status = self.response_status or "ERROR"
        lines = [f"HTTP {self.method} {data['url']} -> {status}"]

        if self.duration_ms is not None:
            lines.append(f"  Duration: {self.duration_ms:.1f}ms")
        if self.error:
            lines.append(f"  Error: {self.error}")

        if level <= LogLevel.DEBUG:
            lines.append("  Request Headers:")
            lines.extend(f"    {k}: {v}" for k, v in data["request_headers"].items())
            if data["response_headers"]:
                lines.append("  Response Headers:")
                lines.extend(f"    {k}: {v}" for k, v in data["response_headers"].items())

        if level <= LogLevel.TRACE and data["response_body"]:
            body = data["response_body"]
            lines.append("  Response Body:")
            lines.append(f"    {body[:2000]}{'...' if len(body) > 2000 else ''}")

        return "\n".join(lines)


@dataclass
class ProtocolLog:
    """Collects the exchanges made during one connection test run."""

    run_id: str
    run_type: str
    exchanges: list[HTTPExchange] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    def add_exchange(self, exchange: HTTPExchange) -> None:
        self.exchanges.append(exchange)

    def complete(self) -> None:
        self.completed_at = datetime.now(UTC)

    def to_dict(self, include_sensitive: bool = False) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "run_type": self.run_type,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "exchanges": [e.to_dict(include_sensitive) for e in self.exchanges],
            "exchange_count": len(self.exchanges),
        }


class ProtocolLogger:
    """Configurable protocol logger.

    Holds the level settings and hands out httpx transports that report
    every exchange back to it.
    """

    def __init__(
        self,
        level: LogLevel = LogLevel.INFO,
        trace_enabled: bool = False,
    ) -> None:
        self.level = level
        self.trace_enabled = trace_enabled
        self._current_log: ProtocolLog | None = None

    @property
    def effective_level(self) -> LogLevel:
        """Get effective log level (TRACE only if explicitly enabled)."""
        if self.level == LogLevel.TRACE and not self.trace_enabled:
            return LogLevel.DEBUG
        return self.level

    @property
    def current_log(self) -> ProtocolLog | None:
        return self._current_log

    def start_run(self, run_id: str, run_type: str) -> ProtocolLog:
        """Start collecting exchanges for a run.

        Args:
            run_id: Identifier for the run.
            run_type: Kind of run (e.g. "connection_test", "discovery").
        """
        self._current_log = ProtocolLog(run_id=run_id, run_type=run_type)
        logger.info(f"Started protocol logging for {run_type}: {run_id}")
        return self._current_log

    def end_run(self) -> ProtocolLog | None:
        """End the current run and return its log, if any."""
        log = self._current_log
        if log is None:
            return None
        log.complete()
        logger.info(f"Completed protocol logging for {log.run_type}: {log.run_id} ({len(log.exchanges)} exchanges)")
        self._current_log = None
        return log

    def log_exchange(self, exchange: HTTPExchange) -> None:
        """Record an exchange and emit it to the Python logger."""
        if self._current_log:
            self._current_log.add_exchange(exchange)

        effective = self.effective_level
        include_sensitive = self.trace_enabled and self.level <= LogLevel.TRACE

        if effective <= LogLevel.DEBUG:
            logger.debug(exchange.format_log(effective, include_sensitive))
        elif effective <= LogLevel.INFO:
            logger.info(exchange.format_log(effective, include_sensitive))

        if exchange.error:
            logger.error(f"HTTP error: {exchange.method} {redact_sensitive(exchange.url)}: {exchange.error}")

    def create_transport(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        verify: bool = True,
    ) -> AsyncLoggingTransport:
        """Create an async httpx transport that logs through this logger.

        Args:
            transport: Inner transport to wrap. Defaults to a real
                ``httpx.AsyncHTTPTransport``.
            verify: TLS verification for the default inner transport.
        """
        return AsyncLoggingTransport(self, transport, verify=verify)


class AsyncLoggingTransport(httpx.AsyncBaseTransport):
    """Async HTTPX transport that logs every exchange."""

    def __init__(
        self,
        protocol_logger: ProtocolLogger,
        transport: httpx.AsyncBaseTransport | None = None,
        verify: bool = True,
    ) -> None:
        self._logger = protocol_logger
        self._transport = transport or httpx.AsyncHTTPTransport(verify=verify)
        self._exchange_counter = 0

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self._exchange_counter += 1
        exchange = HTTPExchange(
            id=f"http_{self._exchange_counter:04d}",
            timestamp=datetime.now(UTC),
            method=request.method,
            url=str(request.url),
            request_headers=dict(request.headers),
        )
        start_time = time.perf_counter()

        try:
            response = await self._transport.handle_async_request(request)
        except BaseException as e:
            # Cancellation is logged too, then propagated unchanged
            exchange.duration_ms = (time.perf_counter() - start_time) * 1000
            exchange.error = str(e) or type(e).__name__
            self._logger.log_exchange(exchange)
            raise

        exchange.duration_ms = (time.perf_counter() - start_time) * 1000
        exchange.response_status = response.status_code
        exchange.response_headers = dict(response.headers)
        if self._logger.effective_level <= LogLevel.TRACE:
            await response.aread()
            exchange.response_body = response.text
        self._logger.log_exchange(exchange)
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


_global_logger: ProtocolLogger | None = None


def get_protocol_logger() -> ProtocolLogger:
    """Get the global protocol logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = ProtocolLogger()
    return _global_logger


def set_protocol_logger(logger_instance: ProtocolLogger) -> None:
    """Set the global protocol logger instance."""
    global _global_logger
    _global_logger = logger_instance


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    trace_enabled: bool = False,
    log_file: str | None = None,
) -> ProtocolLogger:
    """Configure application and protocol logging.

    Args:
        level: Log level (ERROR, WARNING, INFO, DEBUG, TRACE) or its name.
        trace_enabled: Whether TRACE may log unredacted bodies.
        log_file: Optional file path to also write logs to.

    Returns:
        The configured global ProtocolLogger.
    """
    if isinstance(level, str):
        level = LogLevel.__members__.get(level.upper(), LogLevel.INFO)

    root = logging.getLogger("ssowizard")
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    protocol_logger = ProtocolLogger(level=level, trace_enabled=trace_enabled)
    set_protocol_logger(protocol_logger)

    if trace_enabled:
        logger.warning("TRACE logging enabled - sensitive data (tokens, secrets) will be logged!")

    return protocol_logger
