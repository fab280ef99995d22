"""
SQL front end
Parses SELECT queries and validates them against the schema catalog
"""

from .parser import SqlParser
from .validator import SqlValidator
from .ast_nodes import *

__all__ = ['SqlParser', 'SqlValidator']
