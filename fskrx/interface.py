"""Shared CLI helpers for fskrx command-line tools."""

import logging
from argparse import ArgumentParser, HelpFormatter
from pathlib import Path

from fskrx.fsk.waveform import DEFAULT_PROFILE, get_profile, profile_choices
from fskrx.fsk.demodulator import FSKDemodulatorParameters
from fskrx.framing import FrameParameters, MAX_DATA_SIZE
from fskrx.modem import Modem, SILENCE_TIMEOUT_SAMPLES

DEFAULT_OUT_DIR = Path("out")

class WrappedHelpFormatter(HelpFormatter):
	def __init__(self, prog, width=80, max_help_position=26):
		super().__init__(prog, width=width, max_help_position=max_help_position)

def ensure_output_dir(path: Path | str | None) -> Path:
	out = Path(path) if path else DEFAULT_OUT_DIR
	out.mkdir(parents=True, exist_ok=True)
	return out

def resolve_output_path(out_dir: Path, target: Path | str) -> Path:
	target_path = Path(target)
	if target_path.is_absolute():
		return target_path
	return out_dir / target_path

def configure_logging(debug: bool):
	logging.basicConfig(
		level=logging.DEBUG if debug else logging.WARNING,
		format="[%(levelname)s] %(name)s: %(message)s",
	)

def add_output_dir_arg(parser: ArgumentParser):
	parser.add_argument(
		"--out-dir",
		type=Path,
		default=DEFAULT_OUT_DIR,
		help=f"Directory for generated files (default: %(default)s)",
	)

def add_debug_flag(parser: ArgumentParser):
	parser.add_argument(
		"--debug",
		action="store_true",
		default=False,
		help="Enable verbose debug logging",
	)

def add_profile_args(parser: ArgumentParser):
	parser.add_argument(
		"--profile",
		choices=profile_choices(),
		default=DEFAULT_PROFILE.name,
		help="Modem profile (tone pair and baud rate) of the recording.",
	)
	parser.add_argument("--silence-timeout", type=int, default=SILENCE_TIMEOUT_SAMPLES, help="Consecutive zero samples that end a decode.")

def add_demod_args(parser: ArgumentParser):
	parser.add_argument("--downsampling", type=int, default=1, help="Feed every Nth sample to the correlator.")
	parser.add_argument(
		"--plot",
		dest="demod_plot",
		action="store_true",
		help="Save tone-energy and bit-cell plots to out-dir.",
	)
	parser.set_defaults(demod_plot=False)

def add_frame_args(parser: ArgumentParser):
	parser.add_argument(
		"--trust-length-field",
		action="store_true",
		default=False,
		help="Use the frame length from the header as-is instead of forcing the fixed 288-nibble fallback.",
	)
	parser.add_argument("--max-data-size", type=int, default=MAX_DATA_SIZE, help="Output capacity in bytes.")

def build_demodulator_parameters(args) -> FSKDemodulatorParameters:
	return FSKDemodulatorParameters(
		downsampling=args.downsampling,
		record_trace=args.demod_plot,
	)

def build_frame_parameters(args) -> FrameParameters:
	return FrameParameters(
		trust_length_field=args.trust_length_field,
		max_data_size=args.max_data_size,
	)

def build_modem(args, subscribers=()) -> Modem:
	return Modem(
		get_profile(args.profile),
		demod_params=build_demodulator_parameters(args),
		frame_params=build_frame_parameters(args),
		silence_timeout=args.silence_timeout,
		subscribers=subscribers,
	)
