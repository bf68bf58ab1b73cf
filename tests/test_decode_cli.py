"""decode.py command line tool."""
import numpy as np
import pytest

import decode
from fskrx import pcm
from fskrx.plot import plot_trace
from fskrx.fsk.demodulator import DemodTrace
from signal_gen import frame_samples

TEXT = b"The quick brown fox jumps over the lazy dog. " * 4
DATA = (TEXT + bytes(144))[:144]

def test_decode_writes_payload(tmp_path, capsys):
	in_path = tmp_path / "capture.pcm"
	pcm.write_pcm(in_path, frame_samples(DATA, lead_zeros=400))
	assert decode.main([str(in_path), "--out-dir", str(tmp_path / "out")]) == 0
	out_path = tmp_path / "out" / "capture.bin"
	assert out_path.read_bytes() == b"\x00\x90" + DATA
	stdout = capsys.readouterr().out
	assert "recovered 146 bytes" in stdout
	assert "[decode] text: The quick brown fox" in stdout

def test_decode_reports_failure(tmp_path, capsys):
	in_path = tmp_path / "silence.wav"
	pcm.write_wav(in_path, np.zeros(4000, np.int16))
	assert decode.main([str(in_path), "--out-dir", str(tmp_path), "--output", "never.bin"]) == 1
	assert not (tmp_path / "never.bin").exists()
	assert "stream_exhausted" in capsys.readouterr().out

def test_decode_with_trusted_length_and_plot(tmp_path):
	in_path = tmp_path / "short.raw"
	pcm.write_pcm(in_path, frame_samples(b"hi"))
	out_dir = tmp_path / "plots"
	rc = decode.main([str(in_path), "--format", "raw", "--trust-length-field", "--plot", "--out-dir", str(out_dir)])
	assert rc == 0
	assert (out_dir / "short.bin").read_bytes() == b"\x00\x02hi"
	assert (out_dir / "tone_energy.png").exists()
	assert (out_dir / "bit_cells.png").exists()

def test_plot_trace_handles_empty_trace(tmp_path):
	paths = plot_trace(DemodTrace(), tmp_path)
	assert all(p.exists() for p in paths)

def test_control_bytes_are_not_echoed_as_text(tmp_path, capsys):
	in_path = tmp_path / "esc.raw"
	pcm.write_pcm(in_path, frame_samples(b"ok\x1b[2J\x00\x00"))
	assert decode.main([str(in_path), "--trust-length-field", "--out-dir", str(tmp_path)]) == 0
	stdout = capsys.readouterr().out
	assert "recovered 10 bytes" in stdout
	assert "[decode] text:" not in stdout
	assert "\x1b" not in stdout

def test_rejects_non_positive_silence_timeout(tmp_path, capsys):
	in_path = tmp_path / "any.raw"
	in_path.write_bytes(b"")
	with pytest.raises(SystemExit) as exc:
		decode.main([str(in_path), "--silence-timeout", "0", "--out-dir", str(tmp_path)])
	assert exc.value.code == 2
	assert "--silence-timeout" in capsys.readouterr().err
