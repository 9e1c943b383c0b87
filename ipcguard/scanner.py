"""Export/signature scanner.

Feeds every exported callable of an API-surface module through the
serializability classifier and reports parameters and return values that
cannot cross the process boundary.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set, Tuple

from .classifier import SerializabilityClassifier
from .errors import ModuleLoadError
from .fs_scan import in_api_surface
from .model import MESSAGES, Diagnostic, DiagnosticKind, ExportedSignature, FileReport
from .ports import ModuleHandle
from .project import ProjectContext
from .ts_parse import LineIndex, has_export_statement

logger = logging.getLogger(__name__)


def extract_signatures(module: ModuleHandle) -> List[ExportedSignature]:
	"""First call signature of each exported callable, in export order."""
	signatures: List[ExportedSignature] = []
	for export_name, declarations in module.exported_declarations().items():
		for decl in declarations:
			call_signatures = decl.type().call_signatures()
			if not call_signatures:
				continue
			signature = call_signatures[0]
			parameters = [(p.name, p.type) for p in signature.parameters() if p.declaration_count > 0]
			signatures.append(
				ExportedSignature(
					export_name=export_name,
					parameters=parameters,
					return_type=signature.return_type(),
					offset=decl.start,
				)
			)
	return signatures


class ExportScanner:
	def __init__(self, classifier: SerializabilityClassifier):
		self.classifier = classifier

	def scan(self, module: ModuleHandle) -> List[Diagnostic]:
		lines = LineIndex(module.text)
		diagnostics: List[Diagnostic] = []
		reported: Set[Tuple[int, Optional[str]]] = set()
		for index, sig in enumerate(extract_signatures(module)):
			line, column = lines.loc(sig.offset)
			for param_name, param_type in sig.parameters:
				if (index, param_name) in reported or self.classifier.is_serializable(param_type):
					continue
				reported.add((index, param_name))
				diagnostics.append(
					_diagnostic(DiagnosticKind.NON_SERIALIZABLE_PARAM, sig, module.path, line, column, param_name)
				)
			if not self.classifier.is_serializable(sig.return_type):
				diagnostics.append(_diagnostic(DiagnosticKind.NON_SERIALIZABLE_RETURN, sig, module.path, line, column))
		return diagnostics


def _diagnostic(
	kind: DiagnosticKind,
	sig: ExportedSignature,
	path: str,
	line: int,
	column: int,
	param_name: Optional[str] = None,
) -> Diagnostic:
	message = MESSAGES[kind].format(funcName=sig.export_name, paramName=param_name)
	return Diagnostic(
		kind=kind,
		message=message,
		func_name=sig.export_name,
		param_name=param_name,
		path=path,
		line=line,
		column=column,
		offset=sig.offset,
	)


def check_source(
	project: ProjectContext,
	path: str,
	text: Optional[str] = None,
	surface_dir: str = "src/main/api/",
	prefilter: bool = True,
) -> FileReport:
	"""Scan one module if it belongs to the API surface.

	``text`` overrides the file's on-disk content in the project's type graph.
	Load and parse failures propagate to the caller.
	"""
	if not in_api_surface(path, surface_dir):
		return FileReport(path=path, scanned=False)
	if text is None:
		try:
			with open(path, "r", encoding="utf-8") as fh:
				text = fh.read()
		except OSError as e:
			raise ModuleLoadError(f"Cannot read module {path}: {e}", path=path) from e
	if prefilter and not has_export_statement(path, text):
		logger.debug(f"No exports in {path}, skipping")
		return FileReport(path=path)
	module = project.provider.load_module(path, text)
	scanner = ExportScanner(project.classifier())
	return FileReport(path=path, diagnostics=scanner.scan(module))
