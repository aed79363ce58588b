"""
Text analysis helpers shared by the parser and expansion:
- analyzers: tokenizers and filters
- fuzzy: edit distance
- phrase: positional proximity
"""
