"""Serializability classifier.

Decides whether a declared type can cross the process boundary as structured
data: primitives, string/number literals, arrays and plain records of those.
Callables, ``undefined``, ``symbol`` and anything the type graph cannot describe
are denied.

Decision order (first match wins):

1. union: every member must be serializable (an empty union is)
2. string, number, boolean, null, or a literal of those
3. text ``undefined`` or ``symbol``: denied
4. anything with a call signature: denied
5. array: the element type decides
6. record: every property must be serializable
7. everything else: denied

Results are memoized in a ``ClassifierCache`` keyed by node identity. The
cache belongs to the caller and must not be shared between projects.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple

from .ports import TypeNode

logger = logging.getLogger(__name__)


SERIALIZABLE_PRIMITIVES = ("string", "number", "boolean", "null")
SERIALIZABLE_LITERALS = ("string", "number", "boolean")
DENIED_TEXT = ("undefined", "symbol")


class Serializability(str, Enum):
	SERIALIZABLE = "serializable"
	NOT_SERIALIZABLE = "not_serializable"

	def __bool__(self) -> bool:
		return self is Serializability.SERIALIZABLE


class CyclePolicy(str, Enum):
	"""What a type already on the current path counts as when it is reached again."""

	OPTIMISTIC = "optimistic"
	PESSIMISTIC = "pessimistic"

	@property
	def assumed(self) -> Serializability:
		if self is CyclePolicy.OPTIMISTIC:
			return Serializability.SERIALIZABLE
		return Serializability.NOT_SERIALIZABLE


class MissingDeclarationPolicy(str, Enum):
	"""How to treat a record property with no declaration site to read a type from."""

	PERMISSIVE = "permissive"
	STRICT = "strict"


class ClassifierCache:
	"""Identity-keyed results for one project context."""

	def __init__(self) -> None:
		# id(node) -> (node, result); holding the node keeps its id from being reused
		self._results: Dict[int, Tuple[TypeNode, Serializability]] = {}
		self.revision: Optional[int] = None

	def get(self, node: TypeNode) -> Optional[Serializability]:
		entry = self._results.get(id(node))
		if entry is None or entry[0] is not node:
			return None
		return entry[1]

	def put(self, node: TypeNode, result: Serializability) -> None:
		self._results[id(node)] = (node, result)

	def bind(self, revision: int) -> None:
		"""Drop every result when the provider has loaded something new since the last bind."""
		if self.revision != revision:
			self._results.clear()
			self.revision = revision

	def clear(self) -> None:
		self._results.clear()

	def __len__(self) -> int:
		return len(self._results)


class SerializabilityClassifier:
	def __init__(
		self,
		cache: Optional[ClassifierCache] = None,
		cycle_policy: CyclePolicy = CyclePolicy.OPTIMISTIC,
		missing_declaration_policy: MissingDeclarationPolicy = MissingDeclarationPolicy.PERMISSIVE,
	):
		self.cache = cache if cache is not None else ClassifierCache()
		self.cycle_policy = cycle_policy
		self.missing_declaration_policy = missing_declaration_policy
		# Number of nodes actually examined; cache hits do not count
		self.visits = 0

	def classify(self, node: TypeNode) -> Serializability:
		result, _ = self._visit(node, {})
		return result

	def is_serializable(self, node: TypeNode) -> bool:
		return self.classify(node) is Serializability.SERIALIZABLE

	def _visit(self, node: TypeNode, path: Dict[int, TypeNode]) -> Tuple[Serializability, FrozenSet[int]]:
		"""Classify ``node``; also return the in-progress nodes whose assumed result was used.

		A result that leaned on the cycle assumption for some other node still
		being classified is provisional and is not cached. Once that node
		finishes, the assumption is settled and the outer result is cached.
		"""
		cached = self.cache.get(node)
		if cached is not None:
			return cached, frozenset()
		key = id(node)
		if key in path:
			logger.debug(f"Cycle through {node.text!r}, assuming {self.cycle_policy.assumed.value}")
			return self.cycle_policy.assumed, frozenset((key,))

		self.visits += 1
		path[key] = node
		try:
			result, depends_on = self._decide(node, path)
		finally:
			del path[key]
		depends_on = depends_on - {key}
		if not depends_on:
			self.cache.put(node, result)
		return result, depends_on

	def _decide(self, node: TypeNode, path: Dict[int, TypeNode]) -> Tuple[Serializability, FrozenSet[int]]:
		if node.is_union():
			return self._every(node.member_types(), path)

		if any(node.is_primitive(kind) for kind in SERIALIZABLE_PRIMITIVES):
			return Serializability.SERIALIZABLE, frozenset()
		if any(node.is_literal(kind) for kind in SERIALIZABLE_LITERALS):
			return Serializability.SERIALIZABLE, frozenset()

		# Not distinguishable from other opaque kinds by shape alone
		if node.text in DENIED_TEXT:
			return Serializability.NOT_SERIALIZABLE, frozenset()

		if node.call_signatures():
			return Serializability.NOT_SERIALIZABLE, frozenset()

		if node.is_array():
			element = node.element_type()
			if element is None:
				return Serializability.NOT_SERIALIZABLE, frozenset()
			return self._visit(element, path)

		if node.is_record():
			return self._every(self._property_types(node), path)

		return Serializability.NOT_SERIALIZABLE, frozenset()

	def _property_types(self, node: TypeNode) -> Iterable[Optional[TypeNode]]:
		for prop in node.properties():
			if prop.type is None and self.missing_declaration_policy is MissingDeclarationPolicy.PERMISSIVE:
				continue
			yield prop.type

	def _every(
		self, nodes: Iterable[Optional[TypeNode]], path: Dict[int, TypeNode]
	) -> Tuple[Serializability, FrozenSet[int]]:
		depends_on: FrozenSet[int] = frozenset()
		for child in nodes:
			if child is None:
				return Serializability.NOT_SERIALIZABLE, depends_on
			result, used = self._visit(child, path)
			depends_on = depends_on | used
			if result is Serializability.NOT_SERIALIZABLE:
				return result, depends_on
		return Serializability.SERIALIZABLE, depends_on
