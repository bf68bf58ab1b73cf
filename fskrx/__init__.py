"""FSK demodulator and frame decoder for telephony-style modem audio."""
from .fsk.waveform import ModemProfile, FSKWaveform, get_profile, DEFAULT_PROFILE, PROFILES
from .fsk.demodulator import FSKDemodulator, FSKDemodulatorParameters
from .framing import FrameParameters, FrameState, FrameStateMachine, decode_line_symbol
from .diagnostics import DiagnosticEvent, DiagnosticKind, Severity
from .modem import Modem, DecodeResult, DecodeSession, DecodeStatus, Termination

__all__ = [
	"ModemProfile", "FSKWaveform", "get_profile", "DEFAULT_PROFILE", "PROFILES",
	"FSKDemodulator", "FSKDemodulatorParameters",
	"FrameParameters", "FrameState", "FrameStateMachine", "decode_line_symbol",
	"DiagnosticEvent", "DiagnosticKind", "Severity",
	"Modem", "DecodeResult", "DecodeSession", "DecodeStatus", "Termination",
]
