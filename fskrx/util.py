"""Generic utility helpers."""
from __future__ import annotations

def count_non_ascii(s: str) -> int:
	return sum(1 for ch in s if ord(ch) > 127)

def hexdump(data: bytes, width: int = 16) -> str:
	lines = []
	for offset in range(0, len(data), width):
		row = data[offset:offset + width]
		hex_part = " ".join(f"{b:02X}" for b in row).ljust(3 * width - 1)
		ascii_part = "".join(chr(b) if 32 <= b < 127 else "." for b in row)
		lines.append(f"{offset:04X}  {hex_part}  {ascii_part}")
	return "\n".join(lines)
