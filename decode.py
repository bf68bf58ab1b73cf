#!/usr/bin/env python3
"""Decode one FSK frame from a raw PCM or WAV recording."""
from __future__ import annotations

import argparse
from pathlib import Path

from fskrx import interface
from fskrx.diagnostics import Severity
from fskrx.modem import DecodeResult
from fskrx.util import count_non_ascii, hexdump

def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(
		description="Demodulate an FSK frame from 16-bit PCM (raw little-endian or WAV) and write the payload.",
		formatter_class=lambda prog: interface.WrappedHelpFormatter(prog, width=80),
	)
	interface.add_output_dir_arg(parser)
	interface.add_debug_flag(parser)
	interface.add_profile_args(parser)
	interface.add_demod_args(parser)
	interface.add_frame_args(parser)
	parser.add_argument("input", type=Path, help="Input recording (.wav, or raw 16-bit LE PCM).")
	parser.add_argument("--format", dest="input_format", choices=("auto", "raw", "wav"), default="auto", help="Input format; auto picks wav for a .wav suffix.")
	parser.add_argument(
		"--output",
		type=Path,
		default=None,
		help="Payload file (relative to out-dir unless absolute; default: <input stem>.bin).",
	)
	return parser

def report(result: DecodeResult, debug: bool = False):
	for event in result.diagnostics:
		if debug or event.severity >= Severity.WARNING:
			print(f"[decode] {event.describe()}")
	print(f"[decode] {result.termination.value} after {result.samples_consumed} samples, status {result.status.value}")
	if not result.ok:
		if result.partial:
			print(f"[decode] {len(result.partial)} bytes assembled before giving up:")
			print(hexdump(result.partial))
		return
	print(f"[decode] recovered {len(result.payload)} bytes (declared {result.declared_length}):")
	print(hexdump(result.payload))
	text = result.payload[2:].decode("latin-1").rstrip("\0")
	if text and count_non_ascii(text) == 0 and text.isprintable(): # no control bytes to the terminal
		print(f"[decode] text: {text}")

def run(args: argparse.Namespace) -> int:
	interface.configure_logging(args.debug)
	out_dir = interface.ensure_output_dir(args.out_dir)
	modem = interface.build_modem(args)
	print(f"[decode] {args.input} with profile {modem.profile.name} ({modem.profile.freq_mark_Hz}/{modem.profile.freq_space_Hz} Hz, {modem.profile.baud_rate} bd)")
	result = modem.decode_file(args.input, fmt=args.input_format)
	report(result, debug=args.debug)
	if result.trace is not None:
		from fskrx.plot import plot_trace
		for path in plot_trace(result.trace, out_dir, fs_Hz=modem.wf.effective_fs_Hz):
			print(f"[decode] wrote {path}")
	if not result.ok:
		return 1
	output = interface.resolve_output_path(out_dir, args.output or Path(args.input.stem + ".bin"))
	output.write_bytes(result.payload)
	print(f"[decode] wrote {output}")
	return 0

def main(argv: list[str] | None = None) -> int:
	parser = build_parser()
	args = parser.parse_args(argv)
	if args.downsampling < 1:
		parser.error("--downsampling must be >= 1")
	if args.max_data_size < 2:
		parser.error("--max-data-size must be at least 2")
	if args.silence_timeout < 1:
		parser.error("--silence-timeout must be >= 1")
	return run(args)

if __name__ == "__main__":
	raise SystemExit(main())
