"""Stub expansion for the preload build.

Rewrites ``export default { greetApi }`` where ``greetApi`` is a namespace
import of a companion module into::

    export default { greetApi : {hello : () => {},
    bye : () => {}} }

Only the shorthand property spans change; every other byte of the file is kept.
"""

from __future__ import annotations

import logging
import os
from typing import List, Optional, Tuple

from tree_sitter import Node

from .ts_parse import has_token, node_text
from .typegraph import TsModule, TsTypeGraph

logger = logging.getLogger(__name__)


DECLARATIONS_SUFFIX = ".ts"


def default_export_object(module: TsModule) -> Optional[Node]:
	"""The object literal of ``export default {...}``, or None when the default export is anything else."""
	for stmt in module.root.named_children:
		if stmt.type != "export_statement" or not has_token(stmt, "default"):
			continue
		value = stmt.child_by_field_name("value")
		if value is not None and value.type == "object":
			return value
		return None
	return None


def namespace_import(module: TsModule, local_name: str) -> Optional[str]:
	for name, spec, _ in module.namespace_imports:
		if name == local_name:
			return spec
	return None


def render_stub(api_name: str, functions: List[str]) -> str:
	expanded = ",\n".join(f"{fn} : () => {{}}" for fn in functions)
	return f"{api_name} : {{{expanded}}}"


def expand_api_stubs(source_text: str, source_path: str, provider: TsTypeGraph, base_path: str) -> str:
	"""Expand shorthand API properties of the default export into no-op stubs.

	Raises SourceParseError when ``source_text`` does not parse. Shapes that do
	not match leave the text unchanged.
	"""
	module = provider.load_module(source_path, source_text)
	target = default_export_object(module)
	if target is None:
		logger.debug(f"No default-exported object literal in {source_path}")
		return source_text

	edits: List[Tuple[int, int, str]] = []
	for prop in target.named_children:
		if prop.type != "shorthand_property_identifier":
			continue
		api_name = node_text(prop)
		spec = namespace_import(module, api_name)
		if spec is None:
			logger.debug(f"No namespace import for {api_name!r} in {source_path}")
			continue
		stub_path = os.path.normpath(os.path.join(base_path, spec + DECLARATIONS_SUFFIX))
		stub_module = provider.load_module_if_exists(stub_path)
		if stub_module is None:
			logger.debug(f"No declarations module {stub_path} for {api_name!r}")
			continue
		functions = stub_module.exported_functions()
		edits.append((prop.start_byte, prop.end_byte, render_stub(api_name, functions)))

	if not edits:
		return source_text
	source = bytearray(module.source)
	for start, end, replacement in sorted(edits, reverse=True):
		source[start:end] = replacement.encode("utf-8")
	return source.decode("utf-8")
