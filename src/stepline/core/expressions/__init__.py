# src/stepline/core/expressions/__init__.py
"""
Linguagem de expressões `${{ path }}` do Stepline.

- parser   → tokenização de templates e caminhos pontuados
- resolver → avaliação leniente contra um escopo somente-leitura
"""

from .parser import Expression, ExpressionSyntaxError, parse_path, parse_template
from .resolver import MISSING, has_expressions, iter_expressions, lookup, resolve, stringify

__all__ = [
    "Expression",
    "ExpressionSyntaxError",
    "MISSING",
    "has_expressions",
    "iter_expressions",
    "lookup",
    "parse_path",
    "parse_template",
    "resolve",
    "stringify",
]
