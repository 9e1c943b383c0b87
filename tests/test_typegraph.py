import pytest

from ipcguard.errors import ModuleLoadError, SourceParseError
from ipcguard.typegraph import TsTypeGraph

from conftest import write


def exported_type(module, name):
	return module.exported_declarations()[name][0].type()


def first_signature(module, name):
	return exported_type(module, name).call_signatures()[0]


def test_interface_members(tmp_path):
	path = write(
		tmp_path,
		"user.ts",
		"""\
		export interface User {
			name: string;
			age?: number;
			tags: string[];
			greet(): void;
		}
		""",
	)
	module = TsTypeGraph(str(tmp_path)).load_module(str(path))
	user = exported_type(module, "User")
	assert user.is_record()
	props = {p.name: p.type for p in user.properties()}
	assert list(props) == ["name", "age", "tags", "greet"]
	assert props["name"].is_primitive("string")
	assert props["age"].is_union()
	assert [m.text for m in props["age"].member_types()] == ["number", "undefined"]
	assert props["tags"].is_array()
	assert props["tags"].element_type().is_primitive("string")
	assert props["greet"].call_signatures()


def test_optional_members_without_strict_null_checks(tmp_path):
	path = write(tmp_path, "a.ts", "export interface A { age?: number }\n")
	module = TsTypeGraph(str(tmp_path), strict_null_checks=False).load_module(str(path))
	(age,) = exported_type(module, "A").properties()
	assert age.type.is_primitive("number")


def test_imported_types_resolve_to_one_node(tmp_path):
	write(tmp_path, "types.ts", "export interface Point { x: number; y: number }\n")
	path = write(
		tmp_path,
		"api.ts",
		"""\
		import { Point } from "./types";
		export function move(p: Point, by: number): Point { return p; }
		""",
	)
	module = TsTypeGraph(str(tmp_path)).load_module(str(path))
	sig = first_signature(module, "move")
	p, by = sig.parameters()
	assert (p.name, by.name) == ("p", "by")
	assert p.type.is_record()
	assert p.type is sig.return_type()
	assert [prop.name for prop in p.type.properties()] == ["x", "y"]


def test_namespace_qualified_types(tmp_path):
	write(tmp_path, "types.ts", "export type Id = string;\n")
	path = write(
		tmp_path,
		"api.ts",
		"""\
		import * as t from "./types";
		export function get(id: t.Id): t.Missing { return id; }
		""",
	)
	sig = first_signature(TsTypeGraph(str(tmp_path)).load_module(str(path)), "get")
	assert sig.parameters()[0].type.is_primitive("string")
	assert not sig.return_type().is_record()
	assert sig.return_type().text == "t.Missing"


def test_recursive_interface_comes_back_as_same_node(tmp_path):
	path = write(
		tmp_path,
		"tree.ts",
		"""\
		export interface TreeNode {
			label: string;
			children: TreeNode[];
			parent: TreeNode | null;
		}
		""",
	)
	tree = exported_type(TsTypeGraph(str(tmp_path)).load_module(str(path)), "TreeNode")
	props = {p.name: p.type for p in tree.properties()}
	assert props["children"].element_type() is tree
	assert any(m is tree for m in props["parent"].member_types())


def test_interface_extends_and_generics(tmp_path):
	path = write(
		tmp_path,
		"g.ts",
		"""\
		interface Base { id: number }
		interface Box<T> extends Base { value: T }
		type Pair<A, B = boolean> = [A, B];
		export function open(b: Box<string>, p: Pair<number>): Record<string, number> { return {}; }
		""",
	)
	sig = first_signature(TsTypeGraph(str(tmp_path)).load_module(str(path)), "open")
	box, pair = [p.type for p in sig.parameters()]
	props = {p.name: p.type for p in box.properties()}
	assert list(props) == ["value", "id"]
	assert props["value"].is_primitive("string")
	assert pair.is_array()
	assert [m.text for m in pair.element_type().member_types()] == ["number", "boolean"]
	(index,) = sig.return_type().properties()
	assert index.name == "[key: string]"
	assert index.type.is_primitive("number")


def test_enum_is_union_of_literals(tmp_path):
	path = write(tmp_path, "e.ts", 'export enum Color { Red, Green = "g" }\n')
	color = exported_type(TsTypeGraph(str(tmp_path)).load_module(str(path)), "Color")
	assert color.is_union()
	assert [(m.text, m.literal_kind) for m in color.member_types()] == [
		("Color.Red", "number"),
		("Color.Green", "string"),
	]


def test_exported_functions_in_order_without_duplicates(tmp_path):
	path = write(
		tmp_path,
		"f.ts",
		"""\
		export function a(x: string): void;
		export function a(x: number): void;
		export function a(x: any) {}
		export function b() {}
		export const c = () => 1;
		function d() {}
		export { d };
		""",
	)
	module = TsTypeGraph(str(tmp_path)).load_module(str(path))
	assert module.exported_functions() == ["a", "b"]
	assert list(module.exported_declarations()) == ["a", "b", "c", "d"]
	# Overloads share one declaration; the first signature is the first overload
	(decl,) = module.exported_declarations()["a"]
	assert decl.type().call_signatures()[0].parameters()[0].type.is_primitive("string")


def test_inferred_return_types(tmp_path):
	path = write(
		tmp_path,
		"r.ts",
		"""\
		export function none() { console.log("x"); }
		export function num(flag: boolean) { if (flag) { return 1; } return -2; }
		export const text = (n = 3) => "n";
		export async function later() { return 1; }
		""",
	)
	module = TsTypeGraph(str(tmp_path)).load_module(str(path))
	assert first_signature(module, "none").return_type().is_primitive("void")
	assert first_signature(module, "num").return_type().is_primitive("number")
	text = first_signature(module, "text")
	assert text.return_type().is_primitive("string")
	assert text.parameters()[0].type.is_primitive("number")
	assert not first_signature(module, "later").return_type().is_primitive("number")


def test_parameter_naming(tmp_path):
	path = write(
		tmp_path,
		"p.ts",
		"export function f(this: Window, { a }: { a: string }, [b]: number[], ...rest: string[]) {}\n",
	)
	sig = first_signature(TsTypeGraph(str(tmp_path)).load_module(str(path)), "f")
	assert [p.name for p in sig.parameters()] == ["__0", "__1", "rest"]


def test_reload_with_new_text(tmp_path):
	path = write(tmp_path, "m.ts", "export function a() {}\n")
	graph = TsTypeGraph(str(tmp_path))
	first = graph.load_module(str(path))
	revision = graph.revision
	assert graph.load_module(str(path)) is first
	assert graph.revision == revision

	second = graph.load_module(str(path), "export function b() {}\n")
	assert second is not first
	assert second.exported_functions() == ["b"]
	assert graph.revision == revision + 1


def test_load_failures(tmp_path):
	graph = TsTypeGraph(str(tmp_path))
	with pytest.raises(ModuleLoadError):
		graph.load_module(str(tmp_path / "missing.ts"))
	assert graph.load_module_if_exists(str(tmp_path / "missing.ts")) is None
	bad = write(tmp_path, "bad.ts", "export function (\n")
	with pytest.raises(SourceParseError):
		graph.load_module(str(bad))


def test_import_resolution_candidates(tmp_path):
	write(tmp_path, "lib/index.ts", "export type Name = string;\n")
	write(tmp_path, "util.ts", "export type Count = number;\n")
	path = write(
		tmp_path,
		"main.ts",
		"""\
		import { Name } from "./lib";
		import { Count } from "./util.js";
		import { External } from "some-package";
		export function f(n: Name, c: Count, e: External) {}
		""",
	)
	sig = first_signature(TsTypeGraph(str(tmp_path)).load_module(str(path)), "f")
	n, c, e = [p.type for p in sig.parameters()]
	assert n.is_primitive("string")
	assert c.is_primitive("number")
	assert e.text == "External"
	assert not e.is_record()
