"""Session driver: glue between a byte/sample source, the demodulator and the framer.

A Modem holds configuration only. Every decode_* call builds a fresh
DecodeSession, so one Modem can serve any number of streams.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterable, List

from .diagnostics import DiagnosticEvent, DiagnosticKind, DiagnosticLog, Severity, Subscriber
from .framing import FrameParameters, FrameState, FrameStateMachine
from .fsk.demodulator import DemodTrace, FSKDemodulator, FSKDemodulatorParameters
from .fsk.waveform import DEFAULT_PROFILE, SAMPLE_RATE_HZ, FSKWaveform, ModemProfile
from . import pcm

SILENCE_TIMEOUT_SAMPLES = 1000 # consecutive zero samples after signal start that end a session

class DecodeStatus(Enum):
	SUCCESS = "success"
	DEGRADED = "degraded" # payload recovered, but with warnings
	NO_RESULT = "no_result"

class Termination(Enum):
	COMPLETE = "complete"
	STREAM_EXHAUSTED = "stream_exhausted"
	SILENCE_TIMEOUT = "silence_timeout"

@dataclass
class DecodeResult:
	status: DecodeStatus
	termination: Termination
	payload: bytes | None # None unless a whole frame was extracted
	final_state: FrameState
	samples_consumed: int
	declared_length: int | None = None
	partial: bytes = b"" # bytes assembled before an unsuccessful termination
	diagnostics: List[DiagnosticEvent] = field(default_factory=list)
	trace: DemodTrace | None = None

	@property
	def ok(self) -> bool:
		return self.payload is not None

class DecodeSession:
	"""All mutable state for decoding one stream."""

	def __init__(self, wf: FSKWaveform, demod_params: FSKDemodulatorParameters, frame_params: FrameParameters,
			silence_timeout: int = SILENCE_TIMEOUT_SAMPLES, subscribers: Iterable[Subscriber] = ()):
		self.diagnostics = DiagnosticLog(list(subscribers))
		self.demod = FSKDemodulator(cfg=demod_params, wf=wf)
		self.framer = FrameStateMachine(frame_params, self.diagnostics)
		self.downsampling = demod_params.downsampling
		self.silence_timeout = silence_timeout
		self.skipping_leading_zeros = True
		self.trailing_zeros = 0
		self.samples_consumed = 0
		self.samples_fed = 0
		self.termination: Termination | None = None

	@property
	def done(self) -> bool:
		return self.termination is not None

	def push_sample(self, sample: int) -> bool:
		"""Feed one int16 sample. Returns True once the session has reached a terminal outcome."""
		if self.done:
			return True
		self.diagnostics.sample_idx = self.samples_consumed
		self.samples_consumed += 1
		if self.skipping_leading_zeros:
			if sample == 0:
				return False
			self.skipping_leading_zeros = False
		if sample == 0: self.trailing_zeros += 1
		else: self.trailing_zeros = 0
		if self.trailing_zeros == self.silence_timeout:
			self.diagnostics.emit(
				DiagnosticKind.SILENCE_TIMEOUT, Severity.WARNING,
				f"{self.silence_timeout} consecutive zero samples; giving up.",
				state=self.framer.state.value,
			)
			self.termination = Termination.SILENCE_TIMEOUT
			return True
		self.samples_fed += 1
		if (self.samples_fed - 1) % self.downsampling:
			return False
		bit = self.demod.demodulate_pcm(sample)
		if bit is not None and self.framer.push_bit(bit):
			self.termination = Termination.COMPLETE
			return True
		return False

	def finish(self) -> DecodeResult:
		"""Close the session (marking the stream exhausted if needed) and build the result."""
		if self.termination is None:
			self.diagnostics.emit(
				DiagnosticKind.STREAM_EXHAUSTED, Severity.INFO,
				f"Input ended in state {self.framer.state.value} before a frame completed.",
				state=self.framer.state.value,
			)
			self.termination = Termination.STREAM_EXHAUSTED
		assembler = self.framer.assembler
		payload = assembler.payload() if self.termination is Termination.COMPLETE else None
		if payload is None: status = DecodeStatus.NO_RESULT
		elif self.diagnostics.warnings: status = DecodeStatus.DEGRADED
		else: status = DecodeStatus.SUCCESS
		return DecodeResult(
			status=status,
			termination=self.termination,
			payload=payload,
			final_state=self.framer.state,
			samples_consumed=self.samples_consumed,
			declared_length=assembler.declared_length,
			partial=b"" if payload is not None else assembler.payload(),
			diagnostics=list(self.diagnostics.events),
			trace=self.demod.trace,
		)

class Modem:
	def __init__(self, profile: ModemProfile = DEFAULT_PROFILE, demod_params: FSKDemodulatorParameters = FSKDemodulatorParameters(),
			frame_params: FrameParameters = FrameParameters(), fs_Hz: int = SAMPLE_RATE_HZ,
			silence_timeout: int = SILENCE_TIMEOUT_SAMPLES, read_size: int = pcm.DEFAULT_READ_SIZE, subscribers: Iterable[Subscriber] = ()):
		if silence_timeout < 1:
			raise ValueError(f"silence_timeout must be at least 1 sample, got {silence_timeout}")
		if read_size < 1:
			raise ValueError(f"read_size must be at least 1 byte, got {read_size}")
		self.wf = FSKWaveform(profile, fs_Hz=fs_Hz, downsampling=demod_params.downsampling)
		self.profile = profile
		self.demod_params = demod_params
		self.frame_params = frame_params
		self.silence_timeout = silence_timeout
		self.read_size = read_size
		self.subscribers = list(subscribers)

	@property
	def fs_Hz(self) -> int:
		return self.wf.fs_Hz

	def new_session(self) -> DecodeSession:
		return DecodeSession(self.wf, self.demod_params, self.frame_params, self.silence_timeout, self.subscribers)

	def decode_samples(self, samples: Iterable[int]) -> DecodeResult:
		session = self.new_session()
		for sample in samples:
			if session.push_sample(int(sample)):
				break
		return session.finish()

	def decode_bytes(self, data: bytes) -> DecodeResult:
		return self.decode_samples(pcm.samples_from_bytes(data).tolist())

	def decode_stream(self, stream: BinaryIO) -> DecodeResult:
		return self.decode_samples(pcm.iter_pcm_samples(stream, self.read_size))

	def decode_file(self, path, fmt: str = "auto") -> DecodeResult:
		"""Decode a raw PCM file, or a WAV file (fmt="wav", or "auto" with a .wav suffix)."""
		path = Path(path)
		if fmt not in ("auto", "raw", "wav"):
			raise ValueError(f"Unknown input format '{fmt}'")
		if fmt == "wav" or (fmt == "auto" and path.suffix.lower() == ".wav"):
			return self.decode_samples(pcm.load_wav(path, self.fs_Hz).tolist())
		with open(path, "rb") as f:
			return self.decode_stream(f)
