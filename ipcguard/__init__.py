"""Checks and stubs a typed cross-process API surface.

Modules:
- typegraph.py: tree-sitter backed TypeScript type graph.
- classifier.py: serializability of declared types.
- scanner.py: diagnostics for exported API functions.
- transformer.py: no-op stub expansion of the API index module.
- hooks.py: build-pipeline entry point for the transformer.
- project.py: per-tsconfig type graph and cache pooling.
- fs_scan.py: filesystem walking and the API-surface path gate.
- model.py: diagnostics and report models.
- summarize.py: deterministic text reports.
- ts_parse.py: tree-sitter parsers and source position helpers.
- ports.py: protocols the core expects from a type graph provider.
- settings.py: environment-driven configuration.
"""

__all__ = [
	"classifier",
	"fs_scan",
	"hooks",
	"model",
	"ports",
	"project",
	"scanner",
	"settings",
	"summarize",
	"transformer",
	"ts_parse",
	"typegraph",
]
