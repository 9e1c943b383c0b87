"""Query interface the core consumes from a type graph provider.

The classifier, scanner and transformer only talk to these protocols;
``typegraph.TsTypeGraph`` is the TypeScript implementation shipped with the
package.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Protocol, Sequence


class TypeNode(Protocol):
	text: str

	def is_union(self) -> bool: ...

	def is_primitive(self, kind: str) -> bool: ...

	def is_literal(self, kind: Optional[str] = None) -> bool: ...

	def is_array(self) -> bool: ...

	def is_record(self) -> bool: ...

	def call_signatures(self) -> Sequence["Signature"]: ...

	def member_types(self) -> Sequence["TypeNode"]: ...

	def element_type(self) -> Optional["TypeNode"]: ...

	def properties(self) -> Sequence["Property"]: ...


class Property(Protocol):
	"""A record member. ``type`` is None when the member has no declaration site."""

	name: str
	type: Optional[TypeNode]


class Parameter(Protocol):
	name: str
	type: TypeNode
	declaration_count: int


class Signature(Protocol):
	def parameters(self) -> Sequence[Parameter]: ...

	def return_type(self) -> TypeNode: ...


class Declaration(Protocol):
	name: str
	kind: str
	start: int

	def type(self) -> TypeNode: ...


class ModuleHandle(Protocol):
	path: str
	text: str

	def exported_declarations(self) -> Dict[str, List[Declaration]]: ...

	def exported_functions(self) -> List[str]: ...


class TypeGraphProvider(Protocol):
	revision: int

	def load_module(self, path: str, text: Optional[str] = None) -> ModuleHandle: ...

	def load_module_if_exists(self, path: str) -> Optional[ModuleHandle]: ...
