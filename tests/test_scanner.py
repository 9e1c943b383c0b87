import pytest

from ipcguard.errors import ModuleLoadError, SourceParseError
from ipcguard.model import DiagnosticKind
from ipcguard.scanner import check_source

from conftest import write


def kinds(report):
	return [(d.kind, d.func_name, d.param_name) for d in report.diagnostics]


def test_callable_parameter_is_reported(project, project_dir):
	path = write(project_dir, "src/main/api/send.ts", "export function send(x: () => void): string { return ''; }\n")
	report = check_source(project, str(path))
	assert report.scanned
	(diag,) = report.diagnostics
	assert diag.kind is DiagnosticKind.NON_SERIALIZABLE_PARAM
	assert diag.message == "API function 'send' parameter 'x' has a non-serializable type."
	assert (diag.line, diag.column) == (1, 7)
	assert diag.path == str(path)


def test_modules_outside_the_surface_are_not_scanned(project, project_dir):
	path = write(project_dir, "src/main/other/send.ts", "export function send(x: () => void): string { return ''; }\n")
	report = check_source(project, str(path))
	assert not report.scanned
	assert report.diagnostics == []


def test_custom_surface_dir(project, project_dir):
	path = write(project_dir, "ipc/send.ts", "export function send(x: symbol): string { return ''; }\n")
	assert not check_source(project, str(path)).scanned
	assert kinds(check_source(project, str(path), surface_dir="ipc")) == [
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "send", "x")
	]


def test_diagnostic_order_follows_exports(project, project_dir):
	path = write(
		project_dir,
		"src/main/api/order.ts",
		"""\
		export function a(f: () => void, s: string, u: undefined): () => void { return () => {}; }
		export const b = (x: number): number => x;
		export function c(cb: Function): symbol { return Symbol(); }
		""",
	)
	report = check_source(project, str(path))
	assert kinds(report) == [
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "a", "f"),
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "a", "u"),
		(DiagnosticKind.NON_SERIALIZABLE_RETURN, "a", None),
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "c", "cb"),
		(DiagnosticKind.NON_SERIALIZABLE_RETURN, "c", None),
	]
	assert report.diagnostics[-1].message == "API function 'c' return value has a non-serializable type."
	assert [d.line for d in report.diagnostics] == [1, 1, 1, 3, 3]


def test_structured_types_pass(project, project_dir):
	write(
		project_dir,
		"src/main/types.ts",
		"""\
		export interface TreeNode {
			label: string;
			children: TreeNode[];
			meta: { [key: string]: number | null };
		}
		export type Mode = "fast" | "slow";
		""",
	)
	path = write(
		project_dir,
		"src/main/api/tree.ts",
		"""\
		import { Mode, TreeNode } from "../types";
		export function walk(t: TreeNode, mode: Mode, depth = 3): boolean { return true; }
		export const count = (items: string[], pair: [string, number]) => 1;
		""",
	)
	assert check_source(project, str(path)).diagnostics == []


def test_nested_callables_and_opaque_types(project, project_dir):
	path = write(
		project_dir,
		"src/main/api/register.ts",
		"""\
		export interface Handlers { name: string; onDone: () => void }
		export function register(h: Handlers, when: Date, untyped): Promise<string> { return Promise.resolve(""); }
		export function ping(): void {}
		""",
	)
	assert kinds(check_source(project, str(path))) == [
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "register", "h"),
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "register", "when"),
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "register", "untyped"),
		(DiagnosticKind.NON_SERIALIZABLE_RETURN, "register", None),
		(DiagnosticKind.NON_SERIALIZABLE_RETURN, "ping", None),
	]


def test_optional_members_under_strict_null_checks(project, project_dir):
	path = write(
		project_dir,
		"src/main/api/opt.ts",
		"""\
		export interface Query { text: string; limit?: number }
		export function search(q: Query, page?: number): string[] { return []; }
		""",
	)
	assert kinds(check_source(project, str(path))) == [
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "search", "q"),
		(DiagnosticKind.NON_SERIALIZABLE_PARAM, "search", "page"),
	]


def test_destructured_parameter_name(project, project_dir):
	path = write(
		project_dir,
		"src/main/api/d.ts",
		"export function f({ a }: { a: () => void }): string { return ''; }\n",
	)
	(diag,) = check_source(project, str(path)).diagnostics
	assert diag.param_name == "__0"


def test_non_callable_exports_are_ignored(project, project_dir):
	path = write(
		project_dir,
		"src/main/api/values.ts",
		"""\
		export const VERSION = "1.0";
		export interface Unused { cb: () => void }
		export type Id = string;
		export enum Mode { A, B }
		""",
	)
	assert check_source(project, str(path)).diagnostics == []


@pytest.mark.parametrize(
	"text",
	[
		"function helper(cb: () => void) {}\nconst local = (s: symbol) => s;\n",
		"export function send(x: () => void): string { return ''; }\n",
		"function f(s: symbol) {}\nexport { f };\n",
	],
)
def test_prefilter_does_not_change_results(project, project_dir, text):
	path = write(project_dir, "src/main/api/pre.ts", text)
	with_prefilter = check_source(project, str(path), text, prefilter=True)
	without_prefilter = check_source(project, str(path), text, prefilter=False)
	assert kinds(with_prefilter) == kinds(without_prefilter)


def test_in_memory_text_overrides_disk(project, project_dir):
	path = write(project_dir, "src/main/api/live.ts", "export function ok(a: string): string { return a; }\n")
	assert check_source(project, str(path)).diagnostics == []
	edited = "export function ok(a: symbol): string { return ''; }\n"
	assert kinds(check_source(project, str(path), edited)) == [(DiagnosticKind.NON_SERIALIZABLE_PARAM, "ok", "a")]


def test_edited_dependency_is_picked_up(project, project_dir):
	types = write(project_dir, "src/main/types.ts", "export interface Msg { text: string }\n")
	path = write(
		project_dir,
		"src/main/api/msg.ts",
		'import { Msg } from "../types";\nexport function post(m: Msg): boolean { return true; }\n',
	)
	assert check_source(project, str(path)).diagnostics == []
	project.provider.load_module(str(types), "export interface Msg { text: string; cb: () => void }\n")
	assert kinds(check_source(project, str(path))) == [(DiagnosticKind.NON_SERIALIZABLE_PARAM, "post", "m")]


def test_failures_propagate(project, project_dir):
	with pytest.raises(ModuleLoadError):
		check_source(project, str(project_dir / "src/main/api/missing.ts"))
	bad = write(project_dir, "src/main/api/bad.ts", "export function (\n")
	with pytest.raises(SourceParseError):
		check_source(project, str(bad))


def test_callable_type_alias_is_checked_like_a_function(project, project_dir):
	path = write(project_dir, "src/main/api/alias.ts", "export type Handler = (event: symbol) => string;\n")
	assert kinds(check_source(project, str(path))) == [(DiagnosticKind.NON_SERIALIZABLE_PARAM, "Handler", "event")]
