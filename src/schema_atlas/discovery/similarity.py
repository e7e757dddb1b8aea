"""
Column name similarity.

Combines a few fixed-weight naming rules with an edit-distance based fuzzy
score, on bare column names and on table-qualified names.
"""

from __future__ import annotations

import re
from typing import List, Tuple

# (pattern, weight) rules that fire when both column names match
_SHARED_PATTERNS: List[Tuple[re.Pattern, float]] = [
    (re.compile(r"^id$"), 0.9),
    (re.compile(r"^(.+)_id$"), 0.85),
    (re.compile(r"^(.+)id$"), 0.8),
    (re.compile(r"^(user|customer|client)_?id$"), 0.9),
    (re.compile(r"^(order|product|item|category)_?id$"), 0.85),
]

FOREIGN_KEY_RULE_WEIGHT = 0.95
QUALIFIED_NAME_WEIGHT = 0.7


def levenshtein(s1: str, s2: str) -> int:
    """Calculate Levenshtein distance between two strings."""
    if len(s1) < len(s2):
        return levenshtein(s2, s1)

    if len(s2) == 0:
        return len(s1)

    previous_row = list(range(len(s2) + 1))
    for i, c1 in enumerate(s1):
        current_row = [i + 1]
        for j, c2 in enumerate(s2):
            insertions = previous_row[j + 1] + 1
            deletions = current_row[j] + 1
            substitutions = previous_row[j] + (c1 != c2)
            current_row.append(min(insertions, deletions, substitutions))
        previous_row = current_row

    return previous_row[-1]


def fuzzy_similarity(s1: str, s2: str) -> float:
    """Edit-distance similarity normalized by the longer string, in [0, 1]."""
    s1, s2 = s1.lower(), s2.lower()
    longer = max(len(s1), len(s2))
    if longer == 0:
        return 1.0
    return (longer - levenshtein(s1, s2)) / longer


def table_variants(table_name: str) -> List[str]:
    """Get the table name with its singular/plural variants."""
    table_lower = table_name.lower()
    variants = [table_lower]

    # Plural -> singular
    if table_lower.endswith("ies"):
        variants.append(table_lower[:-3] + "y")
    elif table_lower.endswith("ses") or table_lower.endswith("xes"):
        variants.append(table_lower[:-2])
    elif table_lower.endswith("s"):
        variants.append(table_lower[:-1])

    # Singular -> plural
    if table_lower.endswith("y"):
        variants.append(table_lower[:-1] + "ies")
    elif table_lower.endswith(("s", "x", "z", "ch", "sh")):
        variants.append(table_lower + "es")
    else:
        variants.append(table_lower + "s")

    return variants


def references_table(column: str, table_name: str) -> bool:
    """True if the column is named `<table>_id` for some variant of the table name."""
    column = column.lower()
    return any(column == f"{variant}_id" for variant in table_variants(table_name))


def name_similarity(table1: str, column1: str, table2: str, column2: str) -> float:
    """
    Score how likely two columns name the same thing, in [0, 1].

    The result is the maximum of:
    - exact (case-insensitive) match: 1.0
    - shared naming rules such as both ending in `_id`: 0.8 to 0.9
    - `<table2>_id` against `id` in table2 (or vice versa): 0.95
    - fuzzy similarity of the bare names
    - fuzzy similarity of `table.column`, weighted 0.7
    """
    c1, c2 = column1.lower(), column2.lower()
    if c1 == c2:
        return 1.0

    best = 0.0
    for pattern, weight in _SHARED_PATTERNS:
        if pattern.match(c1) and pattern.match(c2):
            best = max(best, weight)

    if (c2 == "id" and references_table(c1, table2)) or (c1 == "id" and references_table(c2, table1)):
        best = max(best, FOREIGN_KEY_RULE_WEIGHT)

    best = max(best, fuzzy_similarity(c1, c2))

    qualified = fuzzy_similarity(f"{table1}.{column1}", f"{table2}.{column2}")
    return max(best, qualified * QUALIFIED_NAME_WEIGHT)
