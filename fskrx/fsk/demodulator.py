from dataclasses import dataclass, field
from typing import List, Tuple
import numpy as np
from .waveform import FSKWaveform

PCM_FULL_SCALE = 32768.0 # int16 samples are normalized to roughly [-1, 1)
TRANSITION_CELL_POSITION = 0.5 # A tone transition re-centres the bit cell here

@dataclass
class FSKDemodulatorParameters:
	downsampling: int = 1 # feed every Nth sample to the correlator
	record_trace: bool = False # keep per-sample energies and bits for plotting

@dataclass
class DemodTrace:
	mark_energy: List[float] = field(default_factory=list)
	space_energy: List[float] = field(default_factory=list)
	bits: List[bool] = field(default_factory=list)
	boundary_idx: List[int] = field(default_factory=list) # Trace index of every bit-cell boundary

def tone_energies(factors: np.ndarray) -> Tuple[float, float]:
	"""(mark, space) energy from the four quadrature correlation sums."""
	mark = factors[0] * factors[0] + factors[1] * factors[1]
	space = factors[2] * factors[2] + factors[3] * factors[3]
	return float(mark), float(space)

def detect_bit(factors: np.ndarray) -> bool:
	"""True for mark. Ties go to space."""
	mark, space = tone_energies(factors)
	return mark > space

class Correlator:
	"""Circular correlation of the last `correlation_window` samples against the reference tones."""

	def __init__(self, wf: FSKWaveform):
		self.references = wf.references
		self.buffer = np.zeros(wf.correlation_window)
		self.cursor = 0

	def push(self, x: float) -> np.ndarray:
		"""Store x and return (mark_sin, mark_cos, space_sin, space_cos).
		The references are read in ring order starting at the updated cursor,
		i.e. reference index 0 meets the oldest buffered sample.
		"""
		self.buffer[self.cursor] = x
		self.cursor += 1
		if self.cursor >= len(self.buffer):
			self.cursor = 0
		ordered = np.concatenate((self.buffer[self.cursor:], self.buffer[:self.cursor]))
		return self.references @ ordered

class TimingRecovery:
	"""Bit-cell clock. Emits one boundary per cell, re-centred on every tone transition."""

	def __init__(self, cell_advance: float):
		self.cell_advance = cell_advance
		self.position = 0.0
		self.previous_bit = False

	def update(self, bit: bool) -> bool:
		if bit != self.previous_bit:
			self.position = TRANSITION_CELL_POSITION
		self.previous_bit = bit
		self.position += self.cell_advance
		if self.position > 1.0:
			self.position -= 1.0
			return True
		return False

class FSKDemodulator:
	"""Sample-by-sample energy detector for a two-tone FSKWaveform"""

	def __init__(self, cfg: FSKDemodulatorParameters = FSKDemodulatorParameters(), wf: FSKWaveform | None = None):
		self.__dict__.update(cfg.__dict__)
		self.wf = wf if wf is not None else FSKWaveform(downsampling=cfg.downsampling)
		if self.wf.downsampling != self.downsampling:
			raise ValueError(f"Waveform built for downsampling {self.wf.downsampling}, demodulator configured for {self.downsampling}.")
		self.correlator = Correlator(self.wf)
		self.timing = TimingRecovery(self.wf.cell_advance)
		self.current_bit = False
		self.trace = DemodTrace() if self.record_trace else None

	def demodulate(self, x: float) -> bool | None:
		"""Feed one normalized sample. Returns the current bit at a cell boundary, else None."""
		factors = self.correlator.push(x)
		self.current_bit = detect_bit(factors)
		boundary = self.timing.update(self.current_bit)
		if self.trace is not None:
			mark, space = tone_energies(factors)
			self.trace.mark_energy.append(mark)
			self.trace.space_energy.append(space)
			self.trace.bits.append(self.current_bit)
			if boundary: self.trace.boundary_idx.append(len(self.trace.bits) - 1)
		return self.current_bit if boundary else None

	def demodulate_pcm(self, sample: int) -> bool | None:
		return self.demodulate(sample / PCM_FULL_SCALE)
