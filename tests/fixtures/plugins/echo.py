# tests/fixtures/plugins/echo.py
"""Plugin síncrono: devolve os inputs recebidos e o marcador visto no contexto."""


def run(inputs, context):
    return {
        "inputs": dict(inputs),
        "marker": context["env"].get("STEPLINE"),
        "seen_steps": sorted(context["steps"]),
    }
