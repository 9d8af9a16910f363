"""Core conversion modules.

WHY: The core package holds everything that decides what a Gridly
record looks like: the record IR, the input models, and the two
converters. Nothing here performs I/O.

HOW: ir.py defines Record/Cell, sources.py the input models,
localization.py converts localization entries, table.py converts
table rows (whole or paginated).

RULES:
- Converters return a Document (list of Record); serialization lives
  in gridly_converter.formatters
- Configuration is always passed in, never read from globals
"""
