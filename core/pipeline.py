"""Shared consumer/processor/producer scaffolding for CLI commands."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Protocol, TypeVar

from .cli_errors import CLIError, ExitCode
from .cli_output import OutputWriter

LOG = logging.getLogger(__name__)

PayloadT = TypeVar("PayloadT")
ResultT = TypeVar("ResultT")
RequestT = TypeVar("RequestT")
T = TypeVar("T")
R = TypeVar("R")


@dataclass
class ResultEnvelope(Generic[ResultT]):
    status: str
    payload: Optional[ResultT] = None
    diagnostics: Optional[dict[str, Any]] = None

    def ok(self) -> bool:
        return self.status.lower() == "success"

    def unwrap(self) -> ResultT:
        """Return payload or raise ValueError. Use after ok() check."""
        if self.payload is None:
            msg = (self.diagnostics or {}).get("message", "No payload")
            raise ValueError(msg)
        return self.payload

    @property
    def exit_code(self) -> int:
        if self.ok():
            return int(ExitCode.SUCCESS)
        return int((self.diagnostics or {}).get("code", ExitCode.USAGE))


class Consumer(Protocol[PayloadT]):
    def consume(self) -> PayloadT:
        ...


class Processor(Protocol[PayloadT, ResultT]):
    def process(self, payload: PayloadT) -> ResultT:
        ...


class Producer(Protocol[ResultT]):
    def produce(self, result: ResultT) -> None:
        ...


class RequestConsumer(Generic[RequestT], Consumer[RequestT]):
    """Generic consumer that hands back the request it was built with."""

    def __init__(self, request: RequestT) -> None:
        self._request = request

    def consume(self) -> RequestT:  # pragma: no cover - trivial
        return self._request


class BaseProducer:
    """Base class for pipeline producers with common error handling.

    Subclasses override _produce_success(); failed envelopes print their
    diagnostic message and stop there.
    """

    def __init__(self, writer: Optional[OutputWriter] = None) -> None:
        self.writer = writer or OutputWriter()

    def produce(self, result: ResultEnvelope) -> None:
        if not result.ok():
            msg = (result.diagnostics or {}).get("message")
            if msg:
                self.writer.print_error(msg)
            hint = (result.diagnostics or {}).get("hint")
            if hint:
                self.writer.print_hint(hint)
            return
        if result.payload is not None:
            self._produce_success(result.payload, result.diagnostics)

    def _produce_success(self, payload: Any, diagnostics: Optional[Dict[str, Any]]) -> None:
        """Override in subclass to handle successful result output."""
        raise NotImplementedError("Subclass must implement _produce_success")


class SafeProcessor(Generic[T, R]):
    """Base processor that turns exceptions into error envelopes.

    CLIError subclasses keep their exit code; anything else maps to USAGE.
    """

    def process(self, payload: T) -> ResultEnvelope[R]:
        try:
            result = self._process_safe(payload)
            return ResultEnvelope(status="success", payload=result)
        except CLIError as e:
            LOG.debug("%s failed: %s", type(self).__name__, e)
            diag: Dict[str, Any] = {"message": e.message, "code": int(e.code)}
            if e.hint:
                diag["hint"] = e.hint
            return ResultEnvelope(status="error", diagnostics=diag)
        except Exception as e:
            LOG.debug("%s failed", type(self).__name__, exc_info=True)
            return ResultEnvelope(
                status="error",
                diagnostics={"message": str(e), "code": int(ExitCode.USAGE)},
            )

    def _process_safe(self, payload: T) -> R:
        raise NotImplementedError("Subclass must implement _process_safe")


def run_pipeline(request: Any, processor: Any, producer: BaseProducer) -> int:
    """Process a request, produce its output, and return the CLI exit code."""
    envelope = processor.process(RequestConsumer(request).consume())
    producer.produce(envelope)
    return envelope.exit_code
