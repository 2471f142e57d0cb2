"""
Admiration domain — fixed quotas.
"""

# Maximum outgoing admirations per user; sent edges are never withdrawn.
MAX_OUTGOING: int = 5
