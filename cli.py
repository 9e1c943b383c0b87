from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

import uvicorn

from ipcguard.classifier import CyclePolicy, MissingDeclarationPolicy
from ipcguard.errors import IpcGuardError
from ipcguard.fs_scan import expand_paths
from ipcguard.model import ScanReport
from ipcguard.project import ProjectPool
from ipcguard.scanner import check_source
from ipcguard.settings import Settings
from ipcguard.summarize import summarize_report
from ipcguard.transformer import expand_api_stubs


def cmd_check(args: argparse.Namespace, settings: Settings) -> int:
	pool = ProjectPool(
		cycle_policy=CyclePolicy(args.cycle_policy or settings.cycle_policy),
		missing_declaration_policy=MissingDeclarationPolicy(
			args.missing_declarations or settings.missing_declaration_policy
		),
	)
	project = pool.get(args.tsconfig or settings.tsconfig_path)
	surface_dir = args.api_dir or settings.api_surface_dir
	prefilter = settings.prefilter_exports and not args.no_prefilter

	root = os.path.abspath(args.paths[0]) if len(args.paths) == 1 else os.getcwd()
	report = ScanReport(root=root)
	for f in expand_paths(args.paths, surface_dir):
		report.files.append(check_source(project, f.path, surface_dir=surface_dir, prefilter=prefilter))

	if args.json:
		print(json.dumps(report.model_dump(mode="json"), indent=2))
	else:
		print(summarize_report(report))
	return 1 if report.diagnostics else 0


def cmd_expand(args: argparse.Namespace, settings: Settings) -> int:
	project = ProjectPool().get(args.tsconfig or settings.tsconfig_path)
	path = os.path.abspath(args.file)
	types_root = os.path.abspath(args.types_root) if args.types_root else os.path.dirname(path)
	text = project.provider.load_module(path).text
	code = expand_api_stubs(text, path, project.provider, types_root)
	if args.out:
		with open(args.out, "w", encoding="utf-8") as fh:
			fh.write(code)
	else:
		sys.stdout.write(code)
	return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
	uvicorn.run("api:app", host=args.host or settings.host, port=args.port or settings.port, reload=args.reload)
	return 0


def build_parser() -> argparse.ArgumentParser:
	parser = argparse.ArgumentParser(prog="ipcguard")
	parser.add_argument("--log-level", default="WARNING")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pc = sub.add_parser("check", help="Check exported API functions for non-serializable types")
	pc.add_argument("paths", nargs="+", help="Files or directories to check")
	pc.add_argument("--tsconfig", help="Path to tsconfig.json")
	pc.add_argument("--api-dir", help="Path fragment of the API surface directory")
	pc.add_argument("--no-prefilter", action="store_true", help="Analyse modules even without export statements")
	pc.add_argument("--cycle-policy", choices=[p.value for p in CyclePolicy])
	pc.add_argument("--missing-declarations", choices=[p.value for p in MissingDeclarationPolicy])
	pc.add_argument("--json", action="store_true", help="Print the report as JSON")
	pc.set_defaults(func=cmd_check)

	pe = sub.add_parser("expand", help="Print the API index module with stubbed implementations")
	pe.add_argument("file", help="API index module to expand")
	pe.add_argument("--tsconfig", help="Path to tsconfig.json")
	pe.add_argument("--types-root", help="Directory import specifiers resolve against")
	pe.add_argument("--out", help="Write to this file instead of stdout")
	pe.set_defaults(func=cmd_expand)

	ps = sub.add_parser("serve", help="Run the check/transform HTTP service")
	ps.add_argument("--host")
	ps.add_argument("--port", type=int)
	ps.add_argument("--reload", action="store_true")
	ps.set_defaults(func=cmd_serve)
	return parser


def main(argv: Optional[List[str]] = None) -> int:
	args = build_parser().parse_args(argv)
	logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
	try:
		return args.func(args, Settings())
	except IpcGuardError as e:
		print(f"ipcguard: {e}", file=sys.stderr)
		return 2


if __name__ == "__main__":
	sys.exit(main())
