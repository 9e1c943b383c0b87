from __future__ import annotations

import os
from typing import Dict, Iterable, List

from .model import FileInfo


EXTENSION_LANGUAGE: Dict[str, str] = {
	".ts": "typescript",
	".mts": "typescript",
	".cts": "typescript",
	".tsx": "tsx",
}

IGNORED_DIRS = {".git", "node_modules", "dist", "build", "out", "coverage", "__pycache__"}


def detect_language(filename: str) -> str:
	_, ext = os.path.splitext(filename)
	return EXTENSION_LANGUAGE.get(ext.lower(), "unknown")


def to_posix(path: str) -> str:
	return path.replace("\\", "/")


def in_api_surface(path: str, surface_dir: str) -> bool:
	"""True when the path lies under the configured API-surface directory.

	``surface_dir`` is a path fragment such as ``src/main/api/``; it matches
	anywhere in the normalised path, so absolute and relative paths behave alike.
	"""
	fragment = to_posix(surface_dir).strip("/")
	if not fragment:
		return True
	normalized = "/" + to_posix(os.path.normpath(path)).lstrip("/")
	return f"/{fragment}/" in normalized


def scan_repository(root: str, surface_dir: str) -> List[FileInfo]:
	files: List[FileInfo] = []
	for dirpath, dirnames, filenames in os.walk(root):
		dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
		for filename in sorted(filenames):
			language = detect_language(filename)
			if language == "unknown":
				continue
			path = os.path.join(dirpath, filename)
			files.append(
				FileInfo(
					path=path,
					rel_path=os.path.relpath(path, root),
					language=language,
					in_api_surface=in_api_surface(path, surface_dir),
				)
			)
	return files


def expand_paths(paths: Iterable[str], surface_dir: str) -> List[FileInfo]:
	"""Files named directly plus every TypeScript file under named directories."""
	files: List[FileInfo] = []
	for path in paths:
		if os.path.isdir(path):
			files.extend(scan_repository(path, surface_dir))
		else:
			files.append(
				FileInfo(
					path=path,
					rel_path=os.path.basename(path),
					language=detect_language(path),
					in_api_surface=in_api_surface(path, surface_dir),
				)
			)
	return files
