# tests/test_smoke.py
"""
Testes de sanidade estrutural (smoke tests) do Stepline.

Este módulo contém testes mínimos cujo único objetivo é garantir que:
- o pacote pode ser importado sem falhas estruturais
- a API pública de nível raiz está exposta
- o ambiente de testes (pytest) está funcional

Limites explícitos:
    - Não testar lógica de execução
    - Não acumular asserts funcionais
"""


def test_smoke():
    import stepline

    assert stepline.__version__
    for name in stepline.__all__:
        assert hasattr(stepline, name), name
