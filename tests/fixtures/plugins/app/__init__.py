# tests/fixtures/plugins/app/__init__.py
"""Plugin de teste em formato de pacote: aguarda `milliseconds` e sinaliza sucesso."""

import asyncio


async def run(inputs, context):
    await asyncio.sleep(int(inputs.get("milliseconds", 0)) / 1000)
    return {"success": True}
