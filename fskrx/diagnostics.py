"""Structured decode diagnostics.

Every notable event in a decode session (state changes, bad line symbols,
coerced length fields, overflow, early termination) becomes a DiagnosticEvent.
Events are kept on the session's DiagnosticLog, handed to any subscribed
callbacks, and mirrored to the `logging` module.
"""
import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

class Severity(IntEnum):
	DEBUG = logging.DEBUG
	INFO = logging.INFO
	WARNING = logging.WARNING
	ERROR = logging.ERROR

class DiagnosticKind(Enum):
	STATE_CHANGE = "state_change"
	INVALID_NIBBLE = "invalid_nibble"
	MALFORMED_LENGTH = "malformed_length"
	BUFFER_OVERFLOW = "buffer_overflow"
	SILENCE_TIMEOUT = "silence_timeout"
	STREAM_EXHAUSTED = "stream_exhausted"

@dataclass(frozen=True)
class DiagnosticEvent:
	kind: DiagnosticKind
	severity: Severity
	message: str
	sample_idx: int = -1 # Input sample index at which the event was raised
	detail: Dict[str, Any] = field(default_factory=dict)

	def describe(self) -> str:
		where = f"sample {self.sample_idx}" if self.sample_idx >= 0 else "unknown sample"
		return f"[{self.severity.name.lower()}] {self.kind.value} at {where}: {self.message}"

Subscriber = Callable[[DiagnosticEvent], None]

class DiagnosticLog:
	def __init__(self, subscribers: List[Subscriber] | None = None):
		self.events: List[DiagnosticEvent] = []
		self._subscribers: List[Subscriber] = list(subscribers or [])
		self.sample_idx = -1 # Kept current by the session driver

	def subscribe(self, callback: Subscriber):
		self._subscribers.append(callback)

	def emit(self, kind: DiagnosticKind, severity: Severity, message: str, **detail) -> DiagnosticEvent:
		event = DiagnosticEvent(kind=kind, severity=severity, message=message, sample_idx=self.sample_idx, detail=detail)
		self.events.append(event)
		logger.log(int(severity), "%s (sample %d)", message, self.sample_idx)
		for callback in self._subscribers:
			callback(event)
		return event

	def of_kind(self, kind: DiagnosticKind) -> List[DiagnosticEvent]:
		return [e for e in self.events if e.kind is kind]

	@property
	def warnings(self) -> List[DiagnosticEvent]:
		return [e for e in self.events if e.severity >= Severity.WARNING]
