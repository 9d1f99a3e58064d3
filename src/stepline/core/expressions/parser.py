# src/stepline/core/expressions/parser.py
"""
Parser de expressões `${{ ... }}` do Stepline.

Este módulo implementa a linguagem mínima de expressões embutidas em
dados de Steps: um marcador `${{` seguido de um caminho pontuado e
encerrado por `}}`.

Gramática (v1):
    template := (texto | '${{' path '}}')*
    path     := segment ( '.' segment | '[' index ']' | '[' quoted ']' )*
    segment  := nome | inteiro
    nome     := [A-Za-z_][A-Za-z0-9_-]*

Exemplos:
    - `${{ env.NAME }}`
    - `${{ steps.build.outputs.artifact }}`
    - `${{ inputs.targets[0] }}`
    - `${{ steps["deploy-prod"].outputs.url }}`

Decisões arquiteturais:
    - Parser escrito à mão, sem engine de template nem `eval`
    - Marcador sem `}}` correspondente permanece como texto literal
    - Corpo inválido vira `Expression` com `path=None` (avaliado como vazio)

Limites explícitos:
    - Não avalia expressões (responsabilidade do resolver)
    - Não suporta operadores, chamadas ou literais
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

MARKER_OPEN = "${{"
MARKER_CLOSE = "}}"

Segment = Union[str, int]

_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_-]*")
_INDEX = re.compile(r"\d+")
_BRACKET_INDEX = re.compile(r"\[\s*(\d+)\s*\]")
_BRACKET_KEY = re.compile(r"""\[\s*(['"])(.*?)\1\s*\]""")


class ExpressionSyntaxError(ValueError):
    """Corpo de expressão que não segue a gramática de caminhos."""


@dataclass(frozen=True)
class Expression:
    """Uma ocorrência de `${{ ... }}` dentro de uma string."""
    source: str
    path: Optional[Tuple[Segment, ...]]

    @property
    def is_valid(self) -> bool:
        return self.path is not None


def parse_path(body: str) -> Tuple[Segment, ...]:
    """
    Converte o corpo de uma expressão em uma tupla de segmentos.

    Raises:
        ExpressionSyntaxError: Se o corpo não seguir a gramática.
    """
    text = body.strip()
    if not text:
        raise ExpressionSyntaxError("empty expression")

    segments: List[Segment] = []
    pos = 0
    expect_segment = True

    while pos < len(text):
        if expect_segment:
            m = _NAME.match(text, pos)
            if m:
                segments.append(m.group(0))
            else:
                m = _INDEX.match(text, pos)
                if not m:
                    raise ExpressionSyntaxError(f"unexpected token at {pos}: {text!r}")
                segments.append(int(m.group(0)))
            pos = m.end()
            expect_segment = False
            continue

        if text[pos] == ".":
            pos += 1
            expect_segment = True
            continue

        m = _BRACKET_INDEX.match(text, pos)
        if m:
            segments.append(int(m.group(1)))
            pos = m.end()
            continue

        m = _BRACKET_KEY.match(text, pos)
        if m:
            segments.append(m.group(2))
            pos = m.end()
            continue

        raise ExpressionSyntaxError(f"unexpected token at {pos}: {text!r}")

    if expect_segment:
        raise ExpressionSyntaxError(f"dangling '.' in {text!r}")

    return tuple(segments)


def parse_template(text: str) -> List[Union[str, Expression]]:
    """
    Divide uma string em partes literais e expressões, preservando a ordem.

    Uma string sem marcadores produz `[text]` (ou `[]` se vazia).
    """
    parts: List[Union[str, Expression]] = []
    pos = 0

    while True:
        start = text.find(MARKER_OPEN, pos)
        if start < 0:
            break
        end = text.find(MARKER_CLOSE, start + len(MARKER_OPEN))
        if end < 0:
            break

        if start > pos:
            parts.append(text[pos:start])

        body = text[start + len(MARKER_OPEN):end]
        try:
            path: Optional[Tuple[Segment, ...]] = parse_path(body)
        except ExpressionSyntaxError:
            path = None
        parts.append(Expression(source=text[start:end + len(MARKER_CLOSE)], path=path))
        pos = end + len(MARKER_CLOSE)

    if pos < len(text):
        parts.append(text[pos:])

    return parts
