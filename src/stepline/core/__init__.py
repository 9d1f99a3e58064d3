# src/stepline/core/__init__.py
"""
Core do Stepline.

Este pacote reúne a implementação canônica da orquestração de runs:
resolução de expressões, modelo de contexto, executores de Steps,
rastreabilidade e o Engine.

O core é projetado para ser:
    - sequencial e determinístico na ordem de Steps
    - testável de forma isolada
    - livre de estado global compartilhado entre runs
"""
