"""FitYog backend: exercise log, expert bookings and AI recommendations."""

__version__ = "1.0.0"
