"""Runtime configuration.

Values come from ``IPCGUARD_*`` environment variables or a ``.env`` file;
command-line flags override them.

    IPCGUARD_TSCONFIG_PATH=tsconfig.json
    IPCGUARD_API_SURFACE_DIR=src/main/api/
    IPCGUARD_API_TYPES_FILE=src/main/api/index.ts
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from .classifier import CyclePolicy, MissingDeclarationPolicy


class Settings(BaseSettings):
	model_config = SettingsConfigDict(
		env_file=".env",
		env_file_encoding="utf-8",
		env_prefix="IPCGUARD_",
		extra="ignore",
	)

	tsconfig_path: str = "tsconfig.json"
	# Path fragment; only modules under it are checked
	api_surface_dir: str = "src/main/api/"
	# The single module the stub hook rewrites
	api_types_file: str = "src/main/api/index.ts"
	# Directory import specifiers of the API types module resolve against
	types_root: Optional[str] = None
	prefilter_exports: bool = True
	cycle_policy: CyclePolicy = CyclePolicy.OPTIMISTIC
	missing_declaration_policy: MissingDeclarationPolicy = MissingDeclarationPolicy.PERMISSIVE

	host: str = "127.0.0.1"
	port: int = 8000

	def resolved_types_root(self) -> str:
		if self.types_root:
			return os.path.abspath(self.types_root)
		return os.path.dirname(os.path.abspath(self.api_types_file))
