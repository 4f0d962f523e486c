"""Logger with composable output sinks, backed by logfire."""

from __future__ import annotations

import contextlib
import os
from abc import abstractmethod
from pathlib import Path
from typing import Any

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from repoaudit.core.base import BaseConfig

_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to the configured logger.

    Before setup_logger() runs every method is a no-op, so modules can
    log at import time or in tests without configuring anything.
    """
    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                return contextlib.nullcontext()
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


logger = _LoggerProxy()

# Level names mapped to OpenTelemetry severity numbers.
LEVELS = {
    'trace': logs_pb2.SEVERITY_NUMBER_TRACE,
    'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,
    'info': logs_pb2.SEVERITY_NUMBER_INFO,
    'warn': logs_pb2.SEVERITY_NUMBER_WARN,
    'error': logs_pb2.SEVERITY_NUMBER_ERROR,
    'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,
}


class LevelFilteringExporter(SpanExporter):
    """Span exporter that drops spans below a minimum level."""

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        self._exporter = exporter
        self._min_severity = LEVELS.get(
            (min_level or 'info').lower(), logs_pb2.SEVERITY_NUMBER_INFO
        )

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        filtered = [
            span for span in spans
            if (span.attributes or {}).get(
                'logfire.level_num', logs_pb2.SEVERITY_NUMBER_INFO
            ) >= self._min_severity
        ]
        if filtered:
            return self._exporter.export(filtered)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return self._exporter.force_flush(timeout_millis)


def level_name(level_num: int) -> str:
    """Map a severity number back to the nearest level name."""
    for name in ('fatal', 'error', 'warn', 'info', 'debug', 'trace'):
        if level_num >= LEVELS[name]:
            return name
    return 'trace'


class Sink(BaseConfig):
    """Base class for log output sinks.

    Each sink is an independent output destination. Sinks are closed
    through the BaseCloseable cascade when the owning Logger closes.
    """

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Log level for this sink. If None, inherits from Logger.level. "
            "Valid: trace, debug, info, warn, error, fatal"
        )
    )
    escape_special_characters: bool = Field(
        default=False,
        description="Escape newlines/tabs in output"
    )
    format_template: str | None = Field(
        default=None,
        description="Format template string (None writes span JSON)"
    )

    _processor: Any = PrivateAttr(default=None)

    @staticmethod
    def _escape_special_chars(text: str) -> str:
        return (text
            .replace('\\', '\\\\')
            .replace('\n', '\\n')
            .replace('\r', '\\r')
            .replace('\t', '\\t')
        )

    @staticmethod
    def _extract_span_data(span) -> dict:
        """Collect the fields a format template may reference."""
        from datetime import UTC, datetime

        attrs = span.attributes or {}
        filepath = attrs.get("code.filepath", "")
        lineno = attrs.get("code.lineno", "")
        return {
            'timestamp': datetime.fromtimestamp(span.start_time / 1e9, tz=UTC),
            'level': level_name(
                attrs.get("logfire.level_num", logs_pb2.SEVERITY_NUMBER_INFO)
            ),
            'message': attrs.get("logfire.msg", span.name),
            'filepath': filepath,
            'lineno': lineno,
            'location': f"{filepath}:{lineno}" if filepath else "",
            'function': attrs.get("code.function", ""),
        }

    def _format_span(self, span) -> str:
        if not self.format_template:
            return span.to_json() + os.linesep

        data = self._extract_span_data(span)
        if self.escape_special_characters:
            data['message'] = self._escape_special_chars(data['message'])

        try:
            formatted = self.format_template.format(**data)
        except KeyError as e:
            return f"ERROR: Invalid template field {e}\n"

        # Keyword arguments passed to logger calls end up as span
        # attributes; append the ones that are not instrumentation noise.
        skip_prefixes = ('otel.', 'telemetry.', 'service.', 'process.',
                         'code.', 'logfire.')
        custom_attrs = {
            key: value
            for key, value in (span.attributes or {}).items()
            if not key.startswith(skip_prefixes)
        }
        if custom_attrs:
            attrs_str = ' '.join(
                f"{k}={v!r}" for k, v in sorted(custom_attrs.items())
            )
            formatted = f"{formatted} │ {attrs_str}"

        return formatted + '\n'

    @abstractmethod
    def create_processor(self, log_root: Path, run_name: str):
        """Return an OpenTelemetry span processor, or None."""
        pass

    def close(self):
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Console output sink."""

    verbose: bool = Field(
        default=False,
        description="Show full span details"
    )
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never"
    )

    def create_processor(self, log_root: Path, run_name: str):
        """Console is configured through logfire.configure()."""
        return None


class FileSink(Sink):
    """File output sink."""

    enabled: bool = Field(
        default=False,
        description="Enable file logging"
    )
    path: str = Field(
        default="{log_root}/{run_name}/repoaudit.log",
        description="Log file path template"
    )

    _file: Any = PrivateAttr(default=None)

    def create_processor(self, log_root: Path, run_name: str):
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(
            self.path.format(log_root=log_root, run_name=run_name)
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered so a crash still leaves a readable log.
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        exporter = ConsoleSpanExporter(
            out=self._file,
            formatter=self._format_span
        )
        return BatchSpanProcessor(
            LevelFilteringExporter(exporter, self.level)
        )

    def close(self):
        # Processor first, it flushes pending spans into the file.
        super().close()

        if self._file and not self._file.closed:
            with contextlib.suppress(OSError):
                self._file.flush()
                self._file.close()


class LogfireSink(Sink):
    """Logfire.dev cloud sink."""

    enabled: bool = Field(
        default=False,
        description="Send telemetry to logfire.dev cloud"
    )
    token: str | None = Field(
        default=None,
        description="API token (or use LOGFIRE_TOKEN env var)"
    )

    def create_processor(self, log_root: Path, run_name: str):
        """Logfire cloud is configured through logfire.configure()."""
        return None


class Logger(BaseConfig):
    """Logger with composable output sinks.

    Closing the logger closes every sink through the BaseCloseable
    cascade.
    """

    level: str = Field(
        default="info",
        description=(
            "Default log level for all sinks. Individual sinks can override. "
            "Valid: trace, debug, info, warn, error, fatal"
        )
    )
    console: ConsoleSink = Field(
        default_factory=ConsoleSink,
        description="Console output configuration"
    )
    file: FileSink = Field(
        default_factory=FileSink,
        description="File logging configuration"
    )
    logfire: LogfireSink = Field(
        default_factory=LogfireSink,
        description="Logfire.dev cloud configuration"
    )

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        for sink in [self.console, self.file]:
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, run_name: str):
        """Create processors for enabled sinks and configure logfire."""
        import logfire
        from logfire import ConsoleOptions

        for sink in [self.console, self.file, self.logfire]:
            if sink.enabled:
                sink._processor = sink.create_processor(log_root, run_name)

        processors = [
            self.file._processor
        ] if self.file.enabled and self.file._processor else []

        console_config = (
            ConsoleOptions(
                min_log_level=self.console.level,
                verbose=self.console.verbose,
                colors=self.console.colors,
                include_timestamps=True,
            )
            if self.console.enabled
            else False
        )

        logfire.configure(
            service_name=f"repoaudit-{run_name}",
            send_to_logfire=self.logfire.enabled,
            token=self.logfire.token if self.logfire.enabled else None,
            console=console_config,
            additional_span_processors=processors or None,
        )

    def info(self, msg: str, **kwargs):
        import logfire
        logfire.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        import logfire
        logfire.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs):
        import logfire
        logfire.log(
            level=LEVELS['trace'],
            msg_template=msg,
            attributes=kwargs or None
        )

    def warn(self, msg: str, **kwargs):
        import logfire
        logfire.warn(msg, **kwargs)

    def warning(self, msg: str, **kwargs):
        """Alias for warn()."""
        self.warn(msg, **kwargs)

    def error(self, msg: str, **kwargs):
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Create a span context manager.

        Usage:
            with logger.span("Auditing {repository}", repository=repo):
                ...
        """
        import logfire
        return logfire.span(msg, **kwargs)


def setup_logger(
    log_root: Path,
    run_name: str,
    level: str = "info",
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
    logfire: LogfireSink | None = None,
) -> Logger:
    """Initialize the global logger singleton.

    Called by Config once settings are loaded; tests call it directly.

    Args:
        log_root: Root directory for log files
        run_name: Name of this run, used in file paths and service name
        level: Default level for sinks that do not set their own
        console: Console sink config (or None for defaults)
        file: File sink config (or None for defaults)
        logfire: Logfire sink config (or None for defaults)

    Returns:
        Logger: The initialized global logger instance
    """
    global _current_logger

    if _current_logger is not None:
        _current_logger.close()

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
        logfire=logfire or LogfireSink(),
    )
    _current_logger.setup(log_root, run_name)

    return _current_logger
