# lorerank/logging/tags.py
"""
Logging subsystem tags.

Used as message prefixes so log output stays searchable per subsystem.
"""

RETRIEVER = "[RETRIEVER]"
PIPELINE = "[PIPELINE]"
VOCABULARY = "[VOCABULARY]"
LINKER = "[LINKER]"
ACTIVATION = "[ACTIVATION]"
VECTOR_DB = "[VECTOR_DB]"
STORAGE = "[STORAGE]"
CLI = "[CLI]"
