from __future__ import annotations

import bisect
import os
from functools import lru_cache
from typing import List, Optional, Tuple

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

from .errors import SourceParseError


EXTENSION_GRAMMAR = {
	".ts": "typescript",
	".mts": "typescript",
	".cts": "typescript",
	".tsx": "tsx",
}


def grammar_for_path(path: str) -> str:
	_, ext = os.path.splitext(path)
	return EXTENSION_GRAMMAR.get(ext.lower(), "typescript")


@lru_cache(maxsize=None)
def get_parser(grammar: str) -> Parser:
	if grammar == "tsx":
		language = Language(tree_sitter_typescript.language_tsx())
	else:
		language = Language(tree_sitter_typescript.language_typescript())
	return Parser(language)


def _first_error(node: Node) -> Optional[Node]:
	if node.type == "ERROR" or node.is_missing:
		return node
	for child in node.children:
		if child.has_error:
			found = _first_error(child)
			if found is not None:
				return found
	return None


def parse_source(path: str, source: bytes) -> Tree:
	"""Parse TypeScript bytes, raising SourceParseError on any syntax error."""
	tree = get_parser(grammar_for_path(path)).parse(source)
	if tree.root_node.has_error:
		bad = _first_error(tree.root_node)
		line = bad.start_point[0] + 1 if bad is not None else None
		raise SourceParseError(f"Syntax error in {path} at line {line}", path=path, line=line)
	return tree


def node_text(node: Node) -> str:
	return node.text.decode("utf-8")


def string_value(node: Node) -> str:
	# String literal without its quotes
	for child in node.named_children:
		if child.type == "string_fragment":
			return node_text(child)
	return node_text(node)[1:-1]


def annotated_type(annotation: Optional[Node]) -> Optional[Node]:
	"""Return the type node inside a ``: T`` type annotation."""
	if annotation is None:
		return None
	if annotation.type != "type_annotation":
		return annotation
	named = annotation.named_children
	return named[-1] if named else None


def has_token(node: Node, token: str) -> bool:
	return any(not c.is_named and c.type == token for c in node.children)


def has_export_statement(path: str, text: str) -> bool:
	"""Cheap syntactic check for any top-level export statement.

	Source that fails to parse reports True so the caller still reaches the
	provider and gets the same parse failure it would have without this check.
	"""
	tree = get_parser(grammar_for_path(path)).parse(text.encode("utf-8"))
	root = tree.root_node
	if root.has_error:
		return True
	for child in root.named_children:
		if child.type == "export_statement":
			return True
	return False


class LineIndex:
	"""Maps character offsets to (line, column), line 1-based, column 0-based."""

	def __init__(self, text: str):
		self._starts: List[int] = [0]
		for i, ch in enumerate(text):
			if ch == "\n":
				self._starts.append(i + 1)

	def loc(self, offset: int) -> Tuple[int, int]:
		line = bisect.bisect_right(self._starts, offset) - 1
		return line + 1, offset - self._starts[line]


def char_offset(source: bytes, byte_offset: int) -> int:
	return len(source[:byte_offset].decode("utf-8", errors="replace"))
