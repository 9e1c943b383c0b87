"""Project contexts: one type graph and one classifier cache per tsconfig.

Building a type graph is the expensive part of every check, so contexts are
pooled by resolved tsconfig path. Type identities are only comparable inside
one graph, which is why each context owns its own cache.
"""

from __future__ import annotations

import json
import logging
import os
import re
from typing import Any, Dict, Optional

from .classifier import ClassifierCache, CyclePolicy, MissingDeclarationPolicy, SerializabilityClassifier
from .errors import ConfigurationError
from .typegraph import TsTypeGraph

logger = logging.getLogger(__name__)


_JSONC_NOISE = re.compile(r'("(?:\\.|[^"\\])*")|//[^\n]*|/\*.*?\*/', re.S)
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")


def _decode_jsonc(text: str) -> Dict[str, Any]:
	stripped = _JSONC_NOISE.sub(lambda m: m.group(1) or "", text)
	stripped = _TRAILING_COMMA.sub(r"\1", stripped)
	return json.loads(stripped)


def load_compiler_options(tsconfig_path: str, _seen: Optional[set] = None) -> Dict[str, Any]:
	"""compilerOptions of a tsconfig, merged over any relative ``extends`` chain."""
	path = os.path.abspath(tsconfig_path)
	seen = _seen if _seen is not None else set()
	if path in seen:
		raise ConfigurationError(f"Circular tsconfig extends at {path}", path=path)
	seen.add(path)
	try:
		with open(path, "r", encoding="utf-8") as fh:
			config = _decode_jsonc(fh.read())
	except OSError as e:
		raise ConfigurationError(f"Cannot read tsconfig {path}: {e}", path=path) from e
	except ValueError as e:
		raise ConfigurationError(f"Invalid tsconfig {path}: {e}", path=path) from e

	options: Dict[str, Any] = {}
	base = config.get("extends")
	if isinstance(base, str) and base.startswith("."):
		base_path = os.path.join(os.path.dirname(path), base)
		if not base_path.endswith(".json"):
			base_path += ".json"
		options.update(load_compiler_options(base_path, seen))
	elif base:
		logger.debug(f"Ignoring non-relative extends {base!r} in {path}")
	options.update(config.get("compilerOptions") or {})
	return options


class ProjectContext:
	def __init__(
		self,
		tsconfig_path: str,
		cycle_policy: CyclePolicy = CyclePolicy.OPTIMISTIC,
		missing_declaration_policy: MissingDeclarationPolicy = MissingDeclarationPolicy.PERMISSIVE,
	):
		self.config_path = os.path.abspath(tsconfig_path)
		self.compiler_options = load_compiler_options(self.config_path)
		strict = bool(self.compiler_options.get("strict", False))
		strict_null_checks = bool(self.compiler_options.get("strictNullChecks", strict))
		self.provider = TsTypeGraph(root=os.path.dirname(self.config_path), strict_null_checks=strict_null_checks)
		self.cache = ClassifierCache()
		self.cycle_policy = cycle_policy
		self.missing_declaration_policy = missing_declaration_policy

	def classifier(self) -> SerializabilityClassifier:
		self.cache.bind(self.provider.revision)
		return SerializabilityClassifier(
			self.cache,
			cycle_policy=self.cycle_policy,
			missing_declaration_policy=self.missing_declaration_policy,
		)


class ProjectPool:
	"""Reuses project contexts by resolved tsconfig path."""

	def __init__(
		self,
		cycle_policy: CyclePolicy = CyclePolicy.OPTIMISTIC,
		missing_declaration_policy: MissingDeclarationPolicy = MissingDeclarationPolicy.PERMISSIVE,
	):
		self.cycle_policy = cycle_policy
		self.missing_declaration_policy = missing_declaration_policy
		self._projects: Dict[str, ProjectContext] = {}

	def get(self, tsconfig_path: str) -> ProjectContext:
		key = os.path.realpath(tsconfig_path)
		project = self._projects.get(key)
		if project is None:
			logger.info(f"Loading project {key}")
			project = ProjectContext(key, self.cycle_policy, self.missing_declaration_policy)
			self._projects[key] = project
		return project

	def __len__(self) -> int:
		return len(self._projects)
