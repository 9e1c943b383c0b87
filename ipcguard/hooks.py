from __future__ import annotations

import logging
import os
from typing import Optional

from .model import TransformResult
from .project import ProjectContext
from .transformer import expand_api_stubs

logger = logging.getLogger(__name__)


class ApiStubTransformHook:
	"""Build-pipeline hook that stubs out the API index for an isolated bundle.

	Applies to exactly one file, the configured API types module; every other
	file passes through. Runs before other transforms (``enforce = "pre"``) so
	the shorthand pattern is still intact when it sees the file.
	"""

	name = "api-stub-transformer"
	enforce = "pre"

	def __init__(self, api_types_file: str, project: ProjectContext, types_root: Optional[str] = None):
		self.target = os.path.abspath(api_types_file)
		self.types_root = os.path.abspath(types_root) if types_root else os.path.dirname(self.target)
		self.project = project
		logger.info(f"target: {self.target}")

	def applies_to(self, file_id: str) -> bool:
		return os.path.abspath(file_id) == self.target

	def transform(self, file_id: str, code: str) -> Optional[TransformResult]:
		if not self.applies_to(file_id):
			return None
		return TransformResult(code=expand_api_stubs(code, self.target, self.project.provider, self.types_root))
