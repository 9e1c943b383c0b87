"""Structural TypeScript type graph built on tree-sitter.

``TsTypeGraph`` is the provider behind the classifier and the transformer. It
loads modules, indexes their imports, declarations and exports, and resolves
type annotations into ``TsType`` handles. Resolution is structural only: no
inference beyond literal widening, no overload resolution, no conditional or
mapped types. Whatever it cannot express becomes an opaque node, which the
classifier denies.

Named types resolve to one handle per (declaration, type arguments) so that
recursive interfaces and aliases come back as the same object and can be
detected as cycles by identity.
"""

from __future__ import annotations

import logging
import os
from collections import OrderedDict
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from tree_sitter import Node

from .errors import ModuleLoadError
from .ts_parse import annotated_type, char_offset, has_token, node_text, parse_source, string_value

logger = logging.getLogger(__name__)


FUNCTION_DECLARATIONS = {"function_declaration", "generator_function_declaration", "function_signature"}
FUNCTION_EXPRESSIONS = {"arrow_function", "function_expression", "function", "generator_function"}
CLASS_DECLARATIONS = {"class_declaration", "abstract_class_declaration"}
TYPE_DECLARATIONS = {"interface_declaration", "type_alias_declaration", "enum_declaration"} | CLASS_DECLARATIONS
VARIABLE_DECLARATIONS = {"lexical_declaration", "variable_declaration"}

# Nodes whose return statements belong to a nested function, not the one being inferred
_NESTED_SCOPES = FUNCTION_DECLARATIONS | FUNCTION_EXPRESSIONS | CLASS_DECLARATIONS | {"method_definition", "class"}

_RESOLUTION_SUFFIXES = (".ts", ".tsx", ".d.ts")


class _Lazy:
	"""Memoized thunk. Re-entrant access while computing yields ``fallback``."""

	__slots__ = ("_fn", "_value", "_busy", "_fallback")

	def __init__(self, fn: Callable[[], Any], fallback: Any = None):
		self._fn: Optional[Callable[[], Any]] = fn
		self._value: Any = None
		self._busy = False
		self._fallback = fallback

	def get(self) -> Any:
		if self._fn is None:
			return self._value
		if self._busy:
			return self._fallback
		self._busy = True
		try:
			self._value = self._fn()
		finally:
			self._busy = False
		self._fn = None
		return self._value


def _get(value: Any) -> Any:
	return value.get() if isinstance(value, _Lazy) else value


class TsType:
	"""One resolved type. Hashes by identity."""

	def __init__(
		self,
		kind: str,
		text: str,
		*,
		literal_kind: Optional[str] = None,
		members: Any = (),
		element: Any = None,
		props: Any = (),
		signatures: Any = (),
	):
		self.kind = kind
		self.text = text
		self.literal_kind = literal_kind
		self._members = members
		self._element = element
		self._props = props
		self._signatures = signatures

	def is_union(self) -> bool:
		return self.kind == "union"

	def is_primitive(self, kind: str) -> bool:
		return self.kind == "primitive" and self.text == kind

	def is_literal(self, kind: Optional[str] = None) -> bool:
		return self.kind == "literal" and (kind is None or self.literal_kind == kind)

	def is_array(self) -> bool:
		return self.kind == "array"

	def is_record(self) -> bool:
		return self.kind == "record"

	def is_callable(self) -> bool:
		return bool(self.call_signatures())

	def call_signatures(self) -> List["TsSignature"]:
		return list(_get(self._signatures))

	def member_types(self) -> List["TsType"]:
		return list(_get(self._members))

	def element_type(self) -> Optional["TsType"]:
		return _get(self._element)

	def properties(self) -> List["TsProperty"]:
		return list(_get(self._props))

	def __repr__(self) -> str:
		return f"TsType({self.kind}, {self.text!r})"


class TsProperty:
	def __init__(self, name: str, type: Optional[TsType]):
		self.name = name
		self.type = type

	def __repr__(self) -> str:
		return f"TsProperty({self.name!r}, {self.type!r})"


class TsParameter:
	def __init__(self, name: str, type: TsType, declaration_count: int = 1):
		self.name = name
		self.type = type
		self.declaration_count = declaration_count


class TsSignature:
	def __init__(self, parameters: Any, return_type: Any):
		self._parameters = parameters
		self._return_type = return_type

	def parameters(self) -> List[TsParameter]:
		return list(_get(self._parameters))

	def return_type(self) -> TsType:
		return _get(self._return_type)


class TsDeclaration:
	"""An exported declaration. Function overloads share one declaration."""

	def __init__(self, module: "TsModule", name: str, kind: str, nodes: Sequence[Node]):
		self.module = module
		self.name = name
		self.kind = kind
		self.nodes = list(nodes)
		self.start = char_offset(module.source, self.nodes[0].start_byte)
		self._type: Optional[TsType] = None

	def type(self) -> TsType:
		if self._type is None:
			self._type = self.module.declaration_type(self)
		return self._type

	def __repr__(self) -> str:
		return f"TsDeclaration({self.name!r}, {self.kind})"


class TsModule:
	"""A parsed module plus its import, declaration and export tables."""

	def __init__(self, graph: "TsTypeGraph", path: str, text: str, mtime: Optional[float] = None):
		self.graph = graph
		self.path = path
		self.text = text
		self.mtime = mtime
		self.source = text.encode("utf-8")
		self.tree = parse_source(path, self.source)
		# local name -> (module specifier, imported name or None for namespace imports)
		self.imports: Dict[str, Tuple[str, Optional[str]]] = {}
		self.namespace_imports: List[Tuple[str, str, Node]] = []
		self._types: Dict[str, List[Node]] = {}
		self._values: Dict[str, List[Node]] = {}
		# export name -> (kind, local name or None, nodes)
		self._exports: "OrderedDict[str, Tuple[str, Optional[str], List[Node]]]" = OrderedDict()
		self._functions: List[str] = []
		self._declarations: Optional[Dict[str, List[TsDeclaration]]] = None
		self._resolved: Dict[Tuple[Any, ...], TsType] = {}
		self._resolving: set = set()
		self._index()

	@property
	def root(self) -> Node:
		return self.tree.root_node

	def invalidate(self) -> None:
		self._resolved.clear()
		self._declarations = None

	# -- indexing ---------------------------------------------------------

	def _index(self) -> None:
		statements = self.root.named_children
		for stmt in statements:
			if stmt.type == "import_statement":
				self._index_import(stmt)
			elif stmt.type != "export_statement":
				self._index_declaration(stmt)
		# Exports second so `export { f }` can precede the declaration of f
		for stmt in statements:
			if stmt.type == "export_statement":
				self._index_export(stmt)

	def _index_import(self, stmt: Node) -> None:
		source = stmt.child_by_field_name("source")
		if source is None:
			return
		spec = string_value(source)
		for clause in stmt.named_children:
			if clause.type != "import_clause":
				continue
			for part in clause.named_children:
				if part.type == "identifier":
					self.imports[node_text(part)] = (spec, "default")
				elif part.type == "namespace_import":
					for ident in part.named_children:
						if ident.type == "identifier":
							self.imports[node_text(ident)] = (spec, None)
							self.namespace_imports.append((node_text(ident), spec, stmt))
				elif part.type == "named_imports":
					for specifier in part.named_children:
						if specifier.type != "import_specifier":
							continue
						name = specifier.child_by_field_name("name")
						alias = specifier.child_by_field_name("alias")
						if name is not None:
							local = node_text(alias) if alias is not None else node_text(name)
							self.imports[local] = (spec, node_text(name))

	def _index_declaration(self, node: Node) -> List[Tuple[str, str, Node]]:
		"""Record a top-level declaration; returns (name, kind, node) triples."""
		found: List[Tuple[str, str, Node]] = []
		if node.type == "ambient_declaration":
			for inner in node.named_children:
				found.extend(self._index_declaration(inner))
			return found
		if node.type in FUNCTION_DECLARATIONS:
			name = node.child_by_field_name("name")
			if name is not None:
				self._values.setdefault(node_text(name), []).append(node)
				found.append((node_text(name), "function", node))
		elif node.type in TYPE_DECLARATIONS:
			name = node.child_by_field_name("name")
			if name is not None:
				self._types.setdefault(node_text(name), []).append(node)
				kind = "class" if node.type in CLASS_DECLARATIONS else node.type.replace("_declaration", "")
				if kind in ("class", "enum"):
					self._values.setdefault(node_text(name), []).append(node)
				found.append((node_text(name), kind, node))
		elif node.type in VARIABLE_DECLARATIONS:
			for declarator in node.named_children:
				if declarator.type != "variable_declarator":
					continue
				name = declarator.child_by_field_name("name")
				if name is not None and name.type == "identifier":
					self._values.setdefault(node_text(name), []).append(declarator)
					found.append((node_text(name), "variable", declarator))
		return found

	def _index_export(self, stmt: Node) -> None:
		if stmt.child_by_field_name("source") is not None:
			logger.debug(f"Skipping re-export in {self.path}: {node_text(stmt)[:60]}")
			return
		is_default = has_token(stmt, "default")
		declaration = stmt.child_by_field_name("declaration")
		value = stmt.child_by_field_name("value")
		if declaration is not None:
			found = self._index_declaration(declaration)
			for name, kind, node in found:
				export_name = "default" if is_default else name
				self._add_export(export_name, kind, name, node)
				if kind == "function":
					self._add_function(name)
			if is_default and not found and declaration.type in FUNCTION_DECLARATIONS | FUNCTION_EXPRESSIONS:
				self._add_export("default", "function", None, declaration)
			return
		if value is not None:
			if value.type == "identifier":
				self._export_local(node_text(value), "default")
			else:
				self._add_export("default", "expression", None, value)
			return
		for clause in stmt.named_children:
			if clause.type != "export_clause":
				continue
			for specifier in clause.named_children:
				if specifier.type != "export_specifier":
					continue
				name = specifier.child_by_field_name("name")
				alias = specifier.child_by_field_name("alias")
				if name is not None:
					exported = node_text(alias) if alias is not None else node_text(name)
					self._export_local(node_text(name), exported)

	def _add_export(self, export_name: str, kind: str, local: Optional[str], node: Node) -> None:
		if export_name in self._exports:
			self._exports[export_name][2].append(node)
		else:
			self._exports[export_name] = (kind, local, [node])

	def _add_function(self, name: str) -> None:
		if name not in self._functions:
			self._functions.append(name)

	def _export_local(self, local: str, exported: str) -> None:
		nodes = self._values.get(local) or self._types.get(local)
		if not nodes:
			logger.debug(f"Export of unknown local {local!r} in {self.path}")
			return
		kind = "function" if nodes[0].type in FUNCTION_DECLARATIONS else "variable"
		if nodes[0].type in TYPE_DECLARATIONS:
			kind = "class" if nodes[0].type in CLASS_DECLARATIONS else nodes[0].type.replace("_declaration", "")
		for node in nodes:
			self._add_export(exported, kind, local, node)

	# -- export tables ----------------------------------------------------

	def exported_declarations(self) -> Dict[str, List[TsDeclaration]]:
		if self._declarations is None:
			declarations: Dict[str, List[TsDeclaration]] = OrderedDict()
			for export_name, (kind, local, nodes) in self._exports.items():
				if kind in ("function", "interface", "type_alias", "enum", "class"):
					declarations[export_name] = [TsDeclaration(self, export_name, kind, nodes)]
				else:
					declarations[export_name] = [TsDeclaration(self, export_name, kind, [n]) for n in nodes]
			self._declarations = declarations
		return self._declarations

	def exported_functions(self) -> List[str]:
		return list(self._functions)

	def exports_type(self, name: str) -> bool:
		entry = self._exports.get(name)
		return entry is not None and entry[1] is not None and entry[1] in self._types

	# -- type resolution --------------------------------------------------

	def declaration_type(self, decl: TsDeclaration) -> TsType:
		node = decl.nodes[0]
		if decl.kind == "function":
			return self._function_declaration_type(decl.name, decl.nodes)
		if decl.kind in ("interface", "type_alias", "enum", "class"):
			local = self._exports[decl.name][1]
			if decl.kind == "class":
				return self.graph.opaque(f"typeof {local}")
			return self._named_local(local, [], node)
		if node.type == "variable_declarator":
			annotation = node.child_by_field_name("type")
			if annotation is not None:
				return self.resolve(annotation, {})
			value = node.child_by_field_name("value")
			if value is None:
				return self.graph.primitive("undefined")
			return self._expression_type(value)
		return self._expression_type(node)

	def _expression_type(self, expr: Node) -> TsType:
		if expr.type in FUNCTION_EXPRESSIONS:
			return self.graph.function_type([self._signature(expr, {})], node_text(expr))
		inferred = self._infer_literal(expr)
		return inferred if inferred is not None else self.graph.opaque(node_text(expr))

	def _function_declaration_type(self, name: str, nodes: Sequence[Node]) -> TsType:
		overloads = [n for n in nodes if n.type == "function_signature"]
		chosen = overloads if overloads else list(nodes)
		return self.graph.function_type([self._signature(n, {}) for n in chosen], name)

	def resolve(self, node: Optional[Node], env: Dict[str, TsType]) -> TsType:
		if node is None:
			return self.graph.opaque("any")
		kind = node.type
		if kind == "type_annotation":
			return self.resolve(annotated_type(node), env)
		if kind in ("parenthesized_type", "readonly_type"):
			named = node.named_children
			return self.resolve(named[-1] if named else None, env)
		if kind == "predefined_type":
			text = node_text(node)
			return self.graph.primitive("symbol" if text == "unique symbol" else text)
		if kind == "literal_type":
			return self._literal_type(node)
		if kind == "template_literal_type":
			return self.graph.primitive("string")
		if kind == "union_type":
			return self.graph.union([self.resolve(m, env) for m in node.named_children], node_text(node))
		if kind == "intersection_type":
			return self._intersection([self.resolve(m, env) for m in node.named_children], node_text(node))
		if kind == "array_type":
			element = node.named_children[0]
			return TsType("array", node_text(node), element=_Lazy(lambda: self.resolve(element, env)))
		if kind == "tuple_type":
			return self._tuple(node, env)
		if kind == "object_type":
			return self._object_type(node_text(node), [node], env)
		if kind == "function_type":
			return self.graph.function_type([self._signature(node, env)], node_text(node))
		if kind == "type_identifier":
			return self._named(node_text(node), [], env, node)
		if kind == "generic_type":
			return self._generic(node, env)
		if kind == "nested_type_identifier":
			return self._qualified(node, [], env)
		return self.graph.opaque(node_text(node))

	def _literal_type(self, node: Node) -> TsType:
		named = node.named_children
		inner = named[0] if named else node
		text = node_text(inner)
		if inner.type == "string":
			return self.graph.literal("string", text)
		if inner.type in ("number", "unary_expression"):
			return self.graph.literal("number", text)
		if inner.type in ("true", "false"):
			return self.graph.literal("boolean", text)
		if text in ("null", "undefined"):
			return self.graph.primitive(text)
		return self.graph.opaque(text)

	def _intersection(self, parts: List[TsType], text: str) -> TsType:
		if not all(p.is_record() for p in parts):
			return self.graph.opaque(text)

		def merged() -> List[TsProperty]:
			props: "OrderedDict[str, TsProperty]" = OrderedDict()
			for part in parts:
				for prop in part.properties():
					props.setdefault(prop.name, prop)
			return list(props.values())

		def signatures() -> List[TsSignature]:
			return [s for p in parts for s in p.call_signatures()]

		return TsType("record", text, props=_Lazy(merged, ()), signatures=_Lazy(signatures, ()))

	def _tuple(self, node: Node, env: Dict[str, TsType]) -> TsType:
		def element() -> TsType:
			members: List[TsType] = []
			for child in node.named_children:
				target = child
				if child.type in ("tuple_parameter", "optional_tuple_parameter"):
					target = child.child_by_field_name("type")
				elif child.type in ("optional_type", "rest_type"):
					target = child.named_children[0] if child.named_children else None
				resolved = self.resolve(target, env)
				if child.type == "rest_type" and resolved.is_array():
					resolved = resolved.element_type() or resolved
				members.append(resolved)
			return self.graph.union(members, node_text(node))

		return TsType("array", node_text(node), element=_Lazy(element))

	def _object_type(self, text: str, bodies: Sequence[Node], env: Dict[str, TsType], bases: Sequence[Node] = ()) -> TsType:
		def build() -> Tuple[List[TsProperty], List[TsSignature]]:
			props: "OrderedDict[str, TsProperty]" = OrderedDict()
			signatures: List[TsSignature] = []
			for body in bodies:
				self._collect_members(body, env, props, signatures)
			for base in bases:
				resolved = self.resolve(base, env)
				if not resolved.is_record():
					logger.warning(f"Cannot inherit members of {node_text(base)!r} in {self.path}")
					continue
				for prop in resolved.properties():
					props.setdefault(prop.name, prop)
				signatures.extend(resolved.call_signatures())
			return list(props.values()), signatures

		members = _Lazy(build, ([], []))
		return TsType(
			"record",
			text,
			props=_Lazy(lambda: members.get()[0], ()),
			signatures=_Lazy(lambda: members.get()[1], ()),
		)

	def _collect_members(
		self,
		body: Node,
		env: Dict[str, TsType],
		props: "OrderedDict[str, TsProperty]",
		signatures: List[TsSignature],
	) -> None:
		for member in body.named_children:
			kind = member.type
			if kind == "call_signature":
				signatures.append(self._signature(member, env))
				continue
			if kind == "index_signature":
				key = member.child_by_field_name("index_type")
				label = f"[key: {node_text(key)}]" if key is not None else "[key]"
				props.setdefault(label, TsProperty(label, self.resolve(member.child_by_field_name("type"), env)))
				continue
			if kind not in ("property_signature", "method_signature", "public_field_definition", "method_definition"):
				continue
			if has_token(member, "static"):
				continue
			name_node = member.child_by_field_name("name")
			if name_node is None:
				continue
			name = _property_name(name_node)
			if kind in ("method_signature", "method_definition"):
				if name == "constructor":
					continue
				prop_type = self.graph.function_type([self._signature(member, env)], node_text(member))
			else:
				annotation = member.child_by_field_name("type")
				if annotation is not None:
					prop_type = self.resolve(annotation, env)
				else:
					value = member.child_by_field_name("value")
					inferred = self._infer_literal(value) if value is not None else None
					prop_type = inferred if inferred is not None else self.graph.opaque("any")
			if has_token(member, "?"):
				prop_type = self.graph.optional(prop_type)
			props.setdefault(name, TsProperty(name, prop_type))

	def _generic(self, node: Node, env: Dict[str, TsType]) -> TsType:
		name_node = node.child_by_field_name("name") or node.named_children[0]
		arguments = node.child_by_field_name("type_arguments")
		args = [self.resolve(a, env) for a in arguments.named_children] if arguments is not None else []
		if name_node.type == "nested_type_identifier":
			return self._qualified(name_node, args, env)
		name = node_text(name_node)
		text = node_text(node)
		if name in ("Array", "ReadonlyArray") and len(args) == 1 and name not in env:
			return TsType("array", text, element=args[0])
		if name == "Record" and len(args) == 2 and not self._is_declared(name):
			label = f"[key: {args[0].text}]"
			return TsType("record", text, props=[TsProperty(label, args[1])])
		return self._named(name, args, env, node)

	def _is_declared(self, name: str) -> bool:
		return name in self._types or name in self.imports

	def _qualified(self, node: Node, args: List[TsType], env: Dict[str, TsType]) -> TsType:
		parts = node_text(node).split(".")
		if len(parts) == 2 and parts[0] in self.imports and self.imports[parts[0]][1] is None:
			target = self.graph.resolve_import(self.path, self.imports[parts[0]][0])
			if target is not None and target.exports_type(parts[1]):
				return target.export_type(parts[1], args, node)
		return self.graph.opaque(node_text(node))

	def _named(self, name: str, args: List[TsType], env: Dict[str, TsType], node: Node) -> TsType:
		if not args and name in env:
			return env[name]
		if name in self._types:
			return self._named_local(name, args, node)
		if name in self.imports:
			spec, imported = self.imports[name]
			target = self.graph.resolve_import(self.path, spec)
			if target is not None and imported is not None and target.exports_type(imported):
				return target.export_type(imported, args, node)
			logger.debug(f"Unresolved imported type {name!r} from {spec!r} in {self.path}")
		if name == "undefined":
			return self.graph.primitive("undefined")
		return self.graph.opaque(node_text(node))

	def export_type(self, name: str, args: List[TsType], node: Node) -> TsType:
		local = self._exports[name][1]
		return self._named_local(local, args, node)

	def _named_local(self, name: str, args: List[TsType], node: Node) -> TsType:
		key = (name, *args)
		cached = self._resolved.get(key)
		if cached is not None:
			return cached
		if key in self._resolving:
			return self.graph.opaque(f"{name} (circular)")
		decls = self._types[name]
		first = decls[0]
		env = self._bind_type_parameters(first, args)
		text = name if not args else f"{name}<{', '.join(a.text for a in args)}>"
		if first.type == "interface_declaration":
			bodies = [b for b in (d.child_by_field_name("body") for d in decls) if b is not None]
			bases = [
				t
				for d in decls
				for clause in d.named_children
				if clause.type == "extends_type_clause"
				for t in clause.named_children
			]
			resolved = self._object_type(text, bodies, env, bases)
		elif first.type in CLASS_DECLARATIONS:
			bodies = [b for b in (d.child_by_field_name("body") for d in decls) if b is not None]
			resolved = self._object_type(text, bodies, env)
		elif first.type == "enum_declaration":
			resolved = self._enum(name, first)
		else:
			self._resolving.add(key)
			try:
				resolved = self.resolve(first.child_by_field_name("value"), env)
			finally:
				self._resolving.discard(key)
		self._resolved[key] = resolved
		return resolved

	def _bind_type_parameters(self, decl: Node, args: List[TsType]) -> Dict[str, TsType]:
		env: Dict[str, TsType] = {}
		params = decl.child_by_field_name("type_parameters")
		if params is None:
			return env
		for i, param in enumerate(p for p in params.named_children if p.type == "type_parameter"):
			name_node = param.child_by_field_name("name")
			if name_node is None:
				continue
			name = node_text(name_node)
			if i < len(args):
				env[name] = args[i]
			else:
				default = param.child_by_field_name("value")
				if default is not None and default.named_children:
					env[name] = self.resolve(default.named_children[-1], env)
				else:
					env[name] = self.graph.opaque(name)
		return env

	def _enum(self, name: str, decl: Node) -> TsType:
		members: List[TsType] = []
		body = decl.child_by_field_name("body")
		for member in body.named_children if body is not None else []:
			if member.type == "enum_assignment":
				value = member.child_by_field_name("value")
				member_name = node_text(member.child_by_field_name("name"))
				literal_kind = "string" if value is not None and value.type in ("string", "template_string") else "number"
				members.append(self.graph.literal(literal_kind, f"{name}.{member_name}"))
			elif member.type in ("property_identifier", "string"):
				members.append(self.graph.literal("number", f"{name}.{_property_name(member)}"))
		return TsType("union", name, members=members)

	# -- signatures -------------------------------------------------------

	def _signature(self, node: Node, env: Dict[str, TsType]) -> TsSignature:
		return TsSignature(
			_Lazy(lambda: self._parameters(node, env), ()),
			_Lazy(lambda: self._return_type(node, env)),
		)

	def _parameters(self, node: Node, env: Dict[str, TsType]) -> List[TsParameter]:
		params: List[TsParameter] = []
		single = node.child_by_field_name("parameter")
		if single is not None:
			return [TsParameter(node_text(single), self.graph.opaque("any"))]
		formal = node.child_by_field_name("parameters")
		if formal is None:
			return params
		for param in formal.named_children:
			if param.type not in ("required_parameter", "optional_parameter"):
				continue
			pattern = param.child_by_field_name("pattern")
			if pattern is None or pattern.type == "this":
				continue
			if pattern.type == "identifier":
				name = node_text(pattern)
			elif pattern.type == "rest_pattern" and pattern.named_children and pattern.named_children[0].type == "identifier":
				name = node_text(pattern.named_children[0])
			else:
				name = f"__{len(params)}"
			annotation = param.child_by_field_name("type")
			if annotation is not None:
				param_type = self.resolve(annotation, env)
			else:
				default = param.child_by_field_name("value")
				inferred = self._infer_literal(default) if default is not None else None
				param_type = inferred if inferred is not None else self.graph.opaque("any")
			if param.type == "optional_parameter":
				param_type = self.graph.optional(param_type)
			params.append(TsParameter(name, param_type))
		return params

	def _return_type(self, node: Node, env: Dict[str, TsType]) -> TsType:
		annotation = node.child_by_field_name("return_type")
		if annotation is not None:
			return self.resolve(annotated_type(annotation), env)
		if has_token(node, "async"):
			return self.graph.opaque("Promise<inferred>")
		body = node.child_by_field_name("body")
		if body is None:
			return self.graph.opaque("any")
		if body.type != "statement_block":
			inferred = self._infer_literal(body)
			return inferred if inferred is not None else self.graph.opaque("inferred")
		returned = [r.named_children[0] for r in _return_statements(body) if r.named_children]
		if not returned:
			return self.graph.primitive("void")
		inferred = [self._infer_literal(expr) for expr in returned]
		if any(t is None for t in inferred):
			return self.graph.opaque("inferred")
		return self.graph.union(inferred, " | ".join(t.text for t in inferred))

	def _infer_literal(self, expr: Optional[Node]) -> Optional[TsType]:
		if expr is None:
			return None
		kind = expr.type
		if kind == "parenthesized_expression" and expr.named_children:
			return self._infer_literal(expr.named_children[0])
		if kind in ("string", "template_string"):
			return self.graph.primitive("string")
		if kind == "number":
			return self.graph.primitive("number")
		if kind == "unary_expression" and expr.named_children and expr.named_children[-1].type == "number":
			return self.graph.primitive("number")
		if kind in ("true", "false"):
			return self.graph.primitive("boolean")
		if kind == "null":
			return self.graph.primitive("null")
		if kind in ("undefined",) or (kind == "identifier" and node_text(expr) == "undefined"):
			return self.graph.primitive("undefined")
		return None


def _return_statements(node: Node) -> List[Node]:
	found: List[Node] = []
	for child in node.named_children:
		if child.type == "return_statement":
			found.append(child)
		elif child.type not in _NESTED_SCOPES:
			found.extend(_return_statements(child))
	return found


def _property_name(node: Node) -> str:
	if node.type == "string":
		return string_value(node)
	return node_text(node)


class TsTypeGraph:
	"""Provider over one project: loaded modules keyed by absolute path."""

	def __init__(self, root: Optional[str] = None, strict_null_checks: bool = True):
		self.root = os.path.abspath(root) if root else None
		self.strict_null_checks = strict_null_checks
		self.revision = 0
		self._modules: Dict[str, TsModule] = {}
		self._primitives: Dict[str, TsType] = {}
		self._opaque_any = TsType("opaque", "any")

	def load_module(self, path: str, text: Optional[str] = None) -> TsModule:
		key = os.path.abspath(path)
		mtime: Optional[float] = None
		if text is None:
			existing = self._modules.get(key)
			mtime = _mtime(key)
			if existing is not None and (existing.mtime is None or existing.mtime == mtime):
				return existing
			try:
				with open(key, "r", encoding="utf-8") as fh:
					text = fh.read()
			except OSError as e:
				raise ModuleLoadError(f"Cannot read module {key}: {e}", path=key) from e
		module = TsModule(self, key, text, mtime)
		if key in self._modules:
			logger.debug(f"Reloaded {key}")
			for other in self._modules.values():
				other.invalidate()
		self._modules[key] = module
		self.revision += 1
		return module

	def load_module_if_exists(self, path: str) -> Optional[TsModule]:
		key = os.path.abspath(path)
		if key in self._modules or os.path.isfile(key):
			return self.load_module(key)
		return None

	def resolve_import(self, from_path: str, specifier: str) -> Optional[TsModule]:
		if not specifier.startswith("."):
			return None
		base = os.path.normpath(os.path.join(os.path.dirname(from_path), specifier))
		candidates: List[str] = []
		if base.endswith((".js", ".mjs", ".cjs")):
			candidates.append(os.path.splitext(base)[0] + ".ts")
		if base.endswith(_RESOLUTION_SUFFIXES):
			candidates.append(base)
		candidates.extend(base + suffix for suffix in _RESOLUTION_SUFFIXES)
		candidates.extend(os.path.join(base, "index" + suffix) for suffix in _RESOLUTION_SUFFIXES)
		for candidate in candidates:
			module = self.load_module_if_exists(candidate)
			if module is not None:
				return module
		return None

	# -- node factories ---------------------------------------------------

	def primitive(self, name: str) -> TsType:
		node = self._primitives.get(name)
		if node is None:
			node = self._primitives[name] = TsType("primitive", name)
		return node

	def literal(self, kind: str, text: str) -> TsType:
		return TsType("literal", text, literal_kind=kind)

	def opaque(self, text: str) -> TsType:
		if text == "any":
			return self._opaque_any
		return TsType("opaque", text)

	def union(self, members: Sequence[TsType], text: str) -> TsType:
		flat: List[TsType] = []
		for member in members:
			for m in member.member_types() if member.is_union() else [member]:
				if not any(m is seen for seen in flat):
					flat.append(m)
		if len(flat) == 1:
			return flat[0]
		return TsType("union", text, members=flat)

	def optional(self, node: TsType) -> TsType:
		if not self.strict_null_checks:
			return node
		return self.union([node, self.primitive("undefined")], f"{node.text} | undefined")

	def function_type(self, signatures: Sequence[TsSignature], text: str) -> TsType:
		return TsType("function", text, signatures=list(signatures))


def _mtime(path: str) -> Optional[float]:
	try:
		return os.path.getmtime(path)
	except OSError:
		return None
