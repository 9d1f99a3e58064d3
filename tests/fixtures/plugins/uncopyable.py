# tests/fixtures/plugins/uncopyable.py
"""Plugin que devolve um recurso vivo (lock) em vez de dados."""

import threading


def run(inputs, context):
    return {"client": threading.Lock()}
