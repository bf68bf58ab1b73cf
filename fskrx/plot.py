"""Plots of a DemodTrace: tone energies and recovered bit cells."""
from pathlib import Path
import numpy as np
import matplotlib.pyplot as plt

from .fsk.demodulator import DemodTrace

def plot_trace(trace: DemodTrace, plot_dir: Path | None = None, fs_Hz: float | None = None) -> list[Path]:
	plot_dir = Path(plot_dir) if plot_dir else Path(".")
	plot_dir.mkdir(parents=True, exist_ok=True)
	n = len(trace.bits)
	x = np.arange(n) / fs_Hz if fs_Hz else np.arange(n)
	xlabel = "time (s)" if fs_Hz else "demodulated sample"
	l_paths = []

	fig = plt.figure(figsize=(32, 4)) # Correlator energy at each tone
	plt.plot(x, trace.mark_energy, linewidth=0.8, label="mark")
	plt.plot(x, trace.space_energy, linewidth=0.8, label="space")
	plt.legend()
	plt.title("Tone energy")
	plt.xlabel(xlabel)
	plt.ylabel("energy")
	l_paths.append(plot_dir / "tone_energy.png")
	plt.savefig(l_paths[-1], dpi=150, bbox_inches="tight")
	plt.close(fig)

	fig = plt.figure(figsize=(32, 3)) # Bit decision with cell boundaries
	plt.step(x, np.asarray(trace.bits, dtype=int), where="post", linewidth=0.8)
	idx = np.asarray(trace.boundary_idx, dtype=int)
	if idx.size:
		plt.plot(x[idx], np.asarray(trace.bits, dtype=int)[idx], "r.", markersize=3)
	plt.yticks([0, 1], ["space", "mark"])
	plt.title("Bit decisions (red: sampled at cell boundary)")
	plt.xlabel(xlabel)
	l_paths.append(plot_dir / "bit_cells.png")
	plt.savefig(l_paths[-1], dpi=150, bbox_inches="tight")
	plt.close(fig)
	return l_paths
