from __future__ import annotations

from typing import List

from .model import Diagnostic, FileReport, ScanReport


def format_diagnostic(d: Diagnostic) -> str:
	return f"  {d.line}:{d.column}  error  {d.message}  [{d.kind.value}]"


def summarize_file(f: FileReport) -> str:
	parts: List[str] = [f.path]
	for d in f.diagnostics:
		parts.append(format_diagnostic(d))
	return "\n".join(parts)


def summarize_report(report: ScanReport) -> str:
	parts: List[str] = []
	for f in report.files:
		if f.diagnostics:
			parts.append(summarize_file(f))
	scanned = len([f for f in report.files if f.scanned])
	total = len(report.diagnostics)
	affected = len([f for f in report.files if f.diagnostics])
	parts.append(
		f"{total} problem{'s' if total != 1 else ''} in {affected} of {scanned} API module"
		f"{'s' if scanned != 1 else ''} under {report.root}"
	)
	return "\n\n".join(parts)
