"""Agent version information."""

MAJOR = 2
MINOR = 4
TINY = 0

STRING = f"{MAJOR}.{MINOR}.{TINY}"
