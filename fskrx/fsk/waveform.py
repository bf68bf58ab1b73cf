from dataclasses import dataclass
from typing import Dict, Tuple
import warnings
import numpy as np

SAMPLE_RATE_HZ = 8000 # All supported profiles are received at 8 kHz

@dataclass(frozen=True)
class ModemProfile:
	freq_space_Hz: int # Frequency of the 0 bit
	freq_mark_Hz: int # Frequency of the 1 bit
	baud_rate: int
	name: str = "custom"

	def __post_init__(self):
		if self.freq_mark_Hz <= 0 or self.freq_space_Hz <= 0:
			raise ValueError(f"Tone frequencies must be positive (mark={self.freq_mark_Hz}, space={self.freq_space_Hz}).")
		if self.freq_mark_Hz == self.freq_space_Hz:
			raise ValueError(f"Mark and space tones must differ (both {self.freq_mark_Hz} Hz).")
		if self.baud_rate <= 0:
			raise ValueError(f"Baud rate must be positive (got {self.baud_rate}).")

V23_FORWARD_MODE1 = ModemProfile(1700, 1300, 600, name="v23-mode1") # Maximum 600 bps for long haul
V23_FORWARD_MODE2 = ModemProfile(2100, 1300, 1200, name="v23-mode2") # Standard 1200 bps V.23
V23_BACKWARD = ModemProfile(450, 390, 75, name="v23-backward") # 75 bps return path for V.23
BELL202 = ModemProfile(2400, 1200, 500, name="bell202")
CUSTOM_EXAMPLE = ModemProfile(2000, 1000, 500, name="custom")

PROFILES: Dict[str, ModemProfile] = {p.name: p for p in (
	V23_FORWARD_MODE1,
	V23_FORWARD_MODE2,
	V23_BACKWARD,
	BELL202,
	CUSTOM_EXAMPLE,
)}
DEFAULT_PROFILE = CUSTOM_EXAMPLE

def get_profile(name: str) -> ModemProfile:
	try:
		return PROFILES[name]
	except KeyError as exc:
		raise ValueError(f"Unknown modem profile '{name}'") from exc

def profile_choices() -> Tuple[str, ...]:
	return tuple(PROFILES.keys())

class FSKWaveform:
	"""Reference tones for a ModemProfile received at fs_Hz.
	Populates:
		- wf.correlation_window; samples in one mark period, also the correlator ring length
		- wf.references; (4, correlation_window) rows are mark sin, mark cos, space sin, space cos
		- wf.cell_advance; fraction of a bit cell covered by one (decimated) sample
	"""
	def __init__(self, profile: ModemProfile = DEFAULT_PROFILE, fs_Hz: int = SAMPLE_RATE_HZ, downsampling: int = 1):
		if downsampling < 1:
			raise ValueError(f"Downsampling factor must be >= 1 (got {downsampling}).")
		self.profile = profile
		self.fs_Hz = fs_Hz
		self.downsampling = downsampling
		self.effective_fs_Hz = fs_Hz / downsampling
		self.correlation_window = int(fs_Hz // downsampling // profile.freq_mark_Hz)
		if self.correlation_window < 2:
			raise ValueError(f"Mark tone {profile.freq_mark_Hz} Hz is too high for {self.effective_fs_Hz:g} Hz sampling.")
		window_float = self.effective_fs_Hz / profile.freq_mark_Hz
		if not (np.abs(self.correlation_window - window_float) < 1e-3):
			warnings.warn(f"Mark period isn't a whole number of samples; correlating over {self.correlation_window} samples ({window_float:.2f} ideal).")
		self.cell_advance = profile.baud_rate / self.effective_fs_Hz
		if self.cell_advance >= 1.0:
			raise ValueError(f"Baud rate {profile.baud_rate} needs more than one sample per bit at {self.effective_fs_Hz:g} Hz.")
		self.make_reference_tables()

	@property
	def samples_per_bit(self) -> float:
		return 1.0 / self.cell_advance

	def make_reference_tables(self):
		n = np.arange(self.correlation_window)
		phi_mark = 2. * np.pi / (self.effective_fs_Hz / self.profile.freq_mark_Hz)
		phi_space = 2. * np.pi / (self.effective_fs_Hz / self.profile.freq_space_Hz)
		self.references = np.vstack([
			np.sin(phi_mark * n),
			np.cos(phi_mark * n),
			np.sin(phi_space * n),
			np.cos(phi_space * n),
		])
		self.references.setflags(write=False)
