"""Frame recovery from bit-cell decisions.

A frame on the line is: an alternating channel-seizure tone, the 16-bit sync
word 0xAB4D, then 6-bit line symbols each carrying one 4-bit nibble. Nibbles
pair up (high, low) into bytes. The first two bytes give the frame length.
Line bits are inverted relative to the tone decision: mark is 0, space is 1.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict

from .diagnostics import DiagnosticKind, DiagnosticLog, Severity

SYNC_WORD = 0xAB4D # 1010 1011 0100 1101
SYNC_BITS = 16
SEIZE_FLIP_THRESHOLD = 30 # alternating cells needed (exclusive) to accept a channel seizure
CARRIER_MARK_THRESHOLD = 15 # consecutive mark cells needed (exclusive) to accept a carrier
LINE_SYMBOL_BITS = 6
HEADER_NIBBLES = 4 # two length bytes
EXPECTED_FRAME_NIBBLES = 292
FALLBACK_FRAME_NIBBLES = 288
MAX_DATA_SIZE = 256

LINE_SYMBOL_TABLE: Dict[int, int] = {
	0x12: 0x0, 0x13: 0x1, 0x14: 0x2, 0x15: 0x3,
	0x16: 0x4, 0x19: 0x5, 0x1A: 0x6, 0x23: 0x7,
	0x24: 0x8, 0x25: 0x9, 0x26: 0xA, 0x29: 0xB,
	0x2A: 0xC, 0x2B: 0xD, 0x2C: 0xE, 0x2D: 0xF,
}

def decode_line_symbol(symbol: int) -> int | None:
	"""4-bit nibble for a 6-bit line symbol, or None if the symbol is not a valid code."""
	return LINE_SYMBOL_TABLE.get(symbol)

def line_bit(bit: bool) -> int:
	return 0 if bit else 1

def declared_frame_nibbles(length_field: int, trust_length_field: bool = False) -> int:
	"""Frame size in nibbles for a header length field.
	Only EXPECTED_FRAME_NIBBLES is taken at face value unless trust_length_field is set;
	anything else is replaced by FALLBACK_FRAME_NIBBLES.
	"""
	n_nibbles = 2 * length_field + HEADER_NIBBLES
	if trust_length_field or n_nibbles == EXPECTED_FRAME_NIBBLES:
		return n_nibbles
	return FALLBACK_FRAME_NIBBLES

class FrameState(Enum):
	CHANNEL_SEIZE = "channel_seize"
	CARRIER_SIGNAL = "carrier_signal" # only entered when chosen as the initial state
	SYNC = "sync"
	DATA = "data"

@dataclass
class FrameParameters:
	trust_length_field: bool = False
	max_data_size: int = MAX_DATA_SIZE # output capacity in bytes
	initial_state: FrameState = FrameState.CHANNEL_SEIZE
	seize_flip_threshold: int = SEIZE_FLIP_THRESHOLD
	carrier_mark_threshold: int = CARRIER_MARK_THRESHOLD
	sync_word: int = SYNC_WORD

	def __post_init__(self):
		if self.max_data_size < HEADER_NIBBLES // 2:
			raise ValueError(f"max_data_size must hold at least the {HEADER_NIBBLES // 2} length bytes (got {self.max_data_size}).")

class FrameAssembler:
	"""Packs nibbles into a bounded byte buffer and tracks the declared frame length."""

	def __init__(self, params: FrameParameters, diagnostics: DiagnosticLog):
		self.trust_length_field = params.trust_length_field
		self.capacity = params.max_data_size
		self.diagnostics = diagnostics
		self.buffer = bytearray(self.capacity)
		self.nibble_count = 0
		self.assembled_count = 0 # bytes written
		self.high_nibble = 0
		self.declared_nibbles: int | None = None
		self.target_length: int | None = None # bytes to collect, after clamping to capacity
		self.truncated = False
		self.complete = False

	@property
	def declared_length(self) -> int | None:
		return None if self.declared_nibbles is None else self.declared_nibbles // 2

	def push_nibble(self, nibble: int) -> bool:
		if self.complete:
			return True
		if self.nibble_count % 2 == 0:
			self.high_nibble = nibble & 0xF
		else:
			self.buffer[self.assembled_count] = (self.high_nibble << 4) | (nibble & 0xF)
			self.assembled_count += 1
		self.nibble_count += 1
		if self.nibble_count == HEADER_NIBBLES:
			self._apply_length_field()
		if self.target_length is not None and self.assembled_count >= self.target_length:
			self.complete = True
		return self.complete

	def _apply_length_field(self):
		length_field = (self.buffer[0] << 8) | self.buffer[1]
		computed = 2 * length_field + HEADER_NIBBLES
		self.declared_nibbles = declared_frame_nibbles(length_field, self.trust_length_field)
		if self.declared_nibbles != computed:
			self.diagnostics.emit(
				DiagnosticKind.MALFORMED_LENGTH, Severity.WARNING,
				f"Length field 0x{length_field:04X} gives {computed} nibbles; using {self.declared_nibbles}.",
				length_field=length_field, computed_nibbles=computed, used_nibbles=self.declared_nibbles,
			)
		self.target_length = self.declared_length
		if self.target_length > self.capacity:
			self.diagnostics.emit(
				DiagnosticKind.BUFFER_OVERFLOW, Severity.ERROR,
				f"Frame declares {self.target_length} bytes but only {self.capacity} fit; truncating.",
				declared_length=self.target_length, capacity=self.capacity,
			)
			self.target_length = self.capacity
			self.truncated = True

	def payload(self) -> bytes:
		return bytes(self.buffer[:self.assembled_count])

class FrameStateMachine:
	"""Consumes one recovered bit per bit cell: seize -> sync -> data."""

	def __init__(self, params: FrameParameters = FrameParameters(), diagnostics: DiagnosticLog | None = None):
		self.params = params
		self.diagnostics = diagnostics if diagnostics is not None else DiagnosticLog()
		self.assembler = FrameAssembler(params, self.diagnostics)
		self.state = params.initial_state
		self.last_bit = False
		self.consecutive_bits = 0 # bits in a row matching the pattern of the current state
		self.sync_register = 0
		self.symbol = 0
		self.symbol_bits = 0
		self._handlers = {
			FrameState.CHANNEL_SEIZE: self._channel_seize,
			FrameState.CARRIER_SIGNAL: self._carrier_signal,
			FrameState.SYNC: self._sync,
			FrameState.DATA: self._data,
		}

	@property
	def complete(self) -> bool:
		return self.assembler.complete

	def push_bit(self, bit: bool) -> bool:
		self._handlers[self.state](bit)
		self.last_bit = bit
		return self.complete

	def _enter(self, state: FrameState):
		self.diagnostics.emit(DiagnosticKind.STATE_CHANGE, Severity.DEBUG, f"{self.state.value} -> {state.value}", source=self.state.value, target=state.value)
		self.state = state
		self.consecutive_bits = 0

	def _channel_seize(self, bit: bool):
		if bit != self.last_bit: self.consecutive_bits += 1
		else: self.consecutive_bits = 0
		if self.consecutive_bits > self.params.seize_flip_threshold:
			self._enter(FrameState.SYNC)

	def _carrier_signal(self, bit: bool):
		if bit: self.consecutive_bits += 1
		else: self.consecutive_bits = 0
		if self.consecutive_bits > self.params.carrier_mark_threshold:
			self._enter(FrameState.DATA)

	def _sync(self, bit: bool):
		self.sync_register = ((self.sync_register << 1) | line_bit(bit)) & ((1 << SYNC_BITS) - 1)
		if self.sync_register == self.params.sync_word:
			self._enter(FrameState.DATA)

	def _data(self, bit: bool):
		if self.complete:
			return
		self.symbol = (self.symbol << 1) | line_bit(bit)
		self.symbol_bits += 1
		if self.symbol_bits < LINE_SYMBOL_BITS:
			return
		nibble = decode_line_symbol(self.symbol)
		if nibble is None:
			self.diagnostics.emit(
				DiagnosticKind.INVALID_NIBBLE, Severity.WARNING,
				f"Invalid line symbol 0x{self.symbol:02X} at nibble {self.assembler.nibble_count}; substituting 0x0.",
				symbol=self.symbol, nibble_idx=self.assembler.nibble_count,
			)
			nibble = 0
		self.assembler.push_nibble(nibble)
		self.symbol = 0
		self.symbol_bits = 0
