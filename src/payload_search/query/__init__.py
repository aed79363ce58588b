"""
Query string handling.

- flags: grammar feature bitmask
- scanner: raw text to lexemes
- parser: lexemes to query tree
- nodes: the immutable query tree
- expansion: prefix/fuzzy rewriting against a vocabulary
- request: validated request model
"""
