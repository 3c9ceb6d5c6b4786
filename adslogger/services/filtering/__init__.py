"""
Filtering Service

Responsibilities:
- Hold the per-variable table (configuration, decode rule, last logged value)
- Decide which changes are significant enough to log
"""

from .change_filter import Admission, ChangeFilter, truncate_decimals
from .registry import VariableRegistry, VariableSpec

__all__ = [
    "Admission",
    "ChangeFilter",
    "truncate_decimals",
    "VariableRegistry",
    "VariableSpec",
]
