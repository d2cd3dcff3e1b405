"""
FILE: tabdo/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - SCHEMA_VERSION: Version of the persisted state document
  - QUERY_GRAMMAR_VERSION: Version of the filter text grammar
  - DEFAULT_TAB_NAME / DEFAULT_FILTER: The tab created for a fresh state
  - ORDER_*: Ordering identifiers as stored in the document
  - UNDO_DEPTH: Number of undo records kept per session
  - MAX_FILTER_DEPTH: Nesting limit of the filter grammar
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Centralized constants to avoid magic strings
  - Single source of truth for ordering names
"""

# Persisted document
SCHEMA_VERSION = 1
QUERY_GRAMMAR_VERSION = 1

# Default view
DEFAULT_TAB_NAME = "all"
DEFAULT_FILTER = "all"

# Ordering identifiers
ORDER_LIST = "list"
ORDER_ALPHABETICAL = "alpha"
ORDER_COMPLETION = "completion"
VALID_ORDERS = (ORDER_LIST, ORDER_ALPHABETICAL, ORDER_COMPLETION)

# Characters that can never appear in a tag name (they belong to the filter grammar)
TAG_FORBIDDEN_CHARS = "&|()!#"

# Session limits
UNDO_DEPTH = 50

# Deepest run of nested "!" and "(" a filter may contain
MAX_FILTER_DEPTH = 64

# Display
TAB_SEPARATOR = " | "
COMPLETE_MARK = "[x]"
INCOMPLETE_MARK = "[ ]"
