from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel

from .ports import TypeNode


class DiagnosticKind(str, Enum):
	NON_SERIALIZABLE_PARAM = "NonSerializableParam"
	NON_SERIALIZABLE_RETURN = "NonSerializableReturn"


MESSAGES: Dict[DiagnosticKind, str] = {
	DiagnosticKind.NON_SERIALIZABLE_PARAM: "API function '{funcName}' parameter '{paramName}' has a non-serializable type.",
	DiagnosticKind.NON_SERIALIZABLE_RETURN: "API function '{funcName}' return value has a non-serializable type.",
}


class FileInfo(BaseModel):
	path: str
	rel_path: str
	language: str
	in_api_surface: bool = False


class Diagnostic(BaseModel):
	kind: DiagnosticKind
	message: str
	func_name: str
	param_name: Optional[str] = None
	path: str
	line: int
	# 0-based, counted in characters
	column: int
	offset: int


class FileReport(BaseModel):
	path: str
	scanned: bool = True
	diagnostics: List[Diagnostic] = []


class ScanReport(BaseModel):
	root: str
	files: List[FileReport] = []

	@property
	def diagnostics(self) -> List[Diagnostic]:
		return [d for f in self.files for d in f.diagnostics]


class TransformResult(BaseModel):
	code: str
	map: Optional[str] = None


@dataclass
class ExportedSignature:
	export_name: str
	parameters: List[Tuple[str, TypeNode]]
	return_type: TypeNode
	offset: int
