from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from opentelemetry import baggage, context
from opentelemetry.trace import Span, Status, StatusCode, Tracer


@dataclass
class SpanScope:
    """Handle on the span opened by :func:`span`.

    Baggage added here is attached to the current context until the scope
    exits, so spans and outbound requests started inside the scope inherit it.
    Every operation is a no-op when the span is not recording.
    """

    span: Span
    _tokens: list[Any] = field(default_factory=list, repr=False)

    @property
    def recording(self) -> bool:
        return self.span.is_recording()

    def add_baggage(self, key: str, value: str) -> None:
        if not self.recording:
            return
        self._tokens.append(context.attach(baggage.set_baggage(key, value)))

    def add_event(self, name: str, attributes: dict[str, Any] | None = None) -> None:
        if not self.recording:
            return
        self.span.add_event(name, attributes=attributes)

    def set_attribute(self, key: str, value: Any) -> None:  # noqa: ANN401
        if not self.recording:
            return
        self.span.set_attribute(key, value)

    def _detach(self) -> None:
        while self._tokens:
            context.detach(self._tokens.pop())


@contextmanager
def span(tracer: Tracer, name: str, **attrs: Any) -> Iterator[SpanScope]:
    with tracer.start_as_current_span(
        name,
        attributes=attrs or None,
        record_exception=False,
        set_status_on_exception=False,
    ) as current:
        scope = SpanScope(current)
        try:
            yield scope
        except Exception as exc:
            current.record_exception(exc)
            current.set_attribute("error.type", type(exc).__qualname__)
            current.set_status(Status(StatusCode.ERROR, str(exc)))
            raise
        else:
            current.set_status(Status(StatusCode.OK))
        finally:
            scope._detach()
