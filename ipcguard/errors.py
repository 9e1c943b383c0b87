"""Exception hierarchy for ipcguard.

Pattern mismatches (no default export, no matching import, missing companion
file) are never errors. Only failures to load or parse what was asked for are.
"""

from __future__ import annotations

from typing import Optional


class IpcGuardError(Exception):
	"""Base exception for all ipcguard errors."""

	def __init__(self, message: str, path: Optional[str] = None):
		super().__init__(message)
		self.path = path


class ConfigurationError(IpcGuardError):
	"""Raised when a tsconfig file cannot be found, read or decoded."""


class ModuleLoadError(IpcGuardError):
	"""Raised when the type graph cannot read a module from disk."""


class SourceParseError(IpcGuardError):
	"""Raised when source text does not parse.

	Attributes:
		line: 1-based line of the first syntax error, when known
	"""

	def __init__(self, message: str, path: Optional[str] = None, line: Optional[int] = None):
		super().__init__(message, path)
		self.line = line
