"""Exception types shared by the scheduling kernel and the API layer."""

from __future__ import annotations


class ConfigurationError(ValueError):
	"""Raised when plant, climate or request inputs are incomplete or invalid.

	This is never a "no feasible date" outcome: it aborts the operation before
	any date scan starts.
	"""
