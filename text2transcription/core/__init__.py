"""Core transcription engine modules.

WHY: The core package holds the only algorithmic part of the system, the
segmentation and transcription-resolution engine. Everything else (CLI,
HTTP API, formatters, lexicon storage) is glue around it.

HOW: ir.py defines the data structures, registry.py the typed lookup tables,
characters.py / numerals.py / dissector.py the leaf helpers, resolver.py the
per-token state machine, postprocess.py the lookahead pass, and
transcriber.py the orchestrating entry point.

RULES:
- IR dataclasses are the contract; change with care
- No module here performs I/O except through the injected Lexicon
- No process-wide mutable state
"""
