"""Byte sources for the decoder: raw 16-bit little-endian PCM and WAV files."""
from __future__ import annotations

from math import gcd
from pathlib import Path
from typing import BinaryIO, Iterator

import numpy as np
import soundfile as sf
from scipy.signal import resample_poly

from .fsk.waveform import SAMPLE_RATE_HZ

PCM_DTYPE = np.dtype("<i2")
DEFAULT_READ_SIZE = 2 # one sample per read(), so nothing past the last consumed sample is taken

def samples_from_bytes(data: bytes) -> np.ndarray:
	"""Signed 16-bit LE samples; a dangling odd byte is dropped."""
	n_even = len(data) - (len(data) % 2)
	return np.frombuffer(data[:n_even], dtype=PCM_DTYPE)

def iter_pcm_samples(stream: BinaryIO, read_size: int = DEFAULT_READ_SIZE) -> Iterator[int]:
	"""Pull samples from a binary stream, keeping an odd byte for the next read.

	A pending odd byte shrinks the next request, so with read_size=2 the stream
	is never read past the sample being yielded.
	"""
	carry = b""
	while True:
		chunk = stream.read(max(read_size - len(carry), 1))
		if not chunk:
			return
		buf = carry + chunk
		n_even = len(buf) - (len(buf) % 2)
		yield from samples_from_bytes(buf[:n_even]).tolist()
		carry = buf[n_even:]

def to_pcm16(samples: np.ndarray) -> np.ndarray:
	"""Float samples in [-1, 1) to int16 at full scale."""
	return np.clip(np.round(np.asarray(samples) * 32768.0), -32768, 32767).astype(np.int16)

def load_wav(path, fs_Hz: int = SAMPLE_RATE_HZ) -> np.ndarray:
	"""Read a WAV (or any soundfile-readable file) as mono int16 at fs_Hz."""
	samples, wav_fs_Hz = sf.read(path, dtype="float64", always_2d=False)
	if samples.ndim > 1: # to mono
		samples = samples.mean(axis=1)
	if wav_fs_Hz != fs_Hz: # resample
		g = gcd(int(wav_fs_Hz), int(fs_Hz))
		up = int(fs_Hz) // g
		down = int(wav_fs_Hz) // g
		samples = resample_poly(samples, up, down)
	return to_pcm16(samples)

def write_pcm(path, samples: np.ndarray):
	Path(path).write_bytes(np.asarray(samples, dtype=np.int16).astype(PCM_DTYPE).tobytes())

def write_wav(path, samples: np.ndarray, fs_Hz: int = SAMPLE_RATE_HZ):
	sf.write(path, np.asarray(samples, dtype=np.int16), fs_Hz, subtype="PCM_16")
