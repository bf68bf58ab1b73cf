from .waveform import ModemProfile, FSKWaveform, get_profile, profile_choices, DEFAULT_PROFILE, PROFILES, SAMPLE_RATE_HZ
from .demodulator import FSKDemodulator, FSKDemodulatorParameters, DemodTrace, Correlator, TimingRecovery, detect_bit, tone_energies

__all__ = [
	"ModemProfile", "FSKWaveform", "get_profile", "profile_choices", "DEFAULT_PROFILE", "PROFILES", "SAMPLE_RATE_HZ",
	"FSKDemodulator", "FSKDemodulatorParameters", "DemodTrace", "Correlator", "TimingRecovery", "detect_bit", "tone_energies",
]
