# src/stepline/core/executors/shell.py
"""
Executor de Steps shell (`run`).

Executa o comando resolvido através do shell do host
(`asyncio.create_subprocess_shell`), de modo que sintaxe composta
(`&&`, redirecionamento `>`, pipes, múltiplas linhas) se comporte como
em um shell interativo.

Política de execução:
    - status SUCCESS se e somente se o exit code for 0
    - stdout e stderr são combinados em uma única saída para o log
    - o processo roda em uma sessão própria; cancelamento e timeout
      matam o grupo de processos inteiro
    - o ambiente do filho é exatamente `invocation.env` (marcador incluído)

Outputs estruturados:
    O arquivo indicado por `STEPLINE_OUTPUT` é lido após o término do
    processo; cada linha `chave=valor` vira um output do Step. Linhas sem
    `=` são ignoradas.

Limites explícitos:
    - Não resolve expressões
    - Não grava o log em disco (responsabilidade do Run Logger)
"""

from __future__ import annotations

import asyncio
import os
import signal
import time
from pathlib import Path
from typing import Dict, List, Optional

from stepline.core.errors import step_exit_code
from stepline.core.pipeline.step import StepInvocation, StepOutcome
from stepline.core.pipeline.types import StepKind

from .base import exception_to_error, failure_record, guard, success_record

_READ_CHUNK = 64 * 1024


def parse_output_file(path: Optional[str]) -> Dict[str, str]:
    """Lê o arquivo de outputs `chave=valor` de um Step shell."""
    if not path:
        return {}
    file = Path(path)
    if not file.is_file():
        return {}

    outputs: Dict[str, str] = {}
    for line in file.read_text(encoding="utf-8", errors="replace").splitlines():
        key, sep, value = line.partition("=")
        key = key.strip()
        if sep and key:
            outputs[key] = value
    return outputs


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        if hasattr(os, "killpg"):
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


class ShellExecutor:
    """Executor da variante `run` de Steps."""

    kind = StepKind.RUN

    async def _spawn(self, invocation: StepInvocation, chunks: List[bytes]) -> int:
        if invocation.output_path:
            out = Path(invocation.output_path)
            try:
                out.parent.mkdir(parents=True, exist_ok=True)
                out.touch()
            except OSError:
                # diretório de logs indisponível: o Step roda sem outputs
                pass

        proc = await asyncio.create_subprocess_shell(
            invocation.command or "",
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            env=invocation.env,
            cwd=invocation.cwd,
            start_new_session=hasattr(os, "killpg"),
        )
        try:
            assert proc.stdout is not None
            while True:
                chunk = await proc.stdout.read(_READ_CHUNK)
                if not chunk:
                    break
                chunks.append(chunk)
            return await proc.wait()
        except asyncio.CancelledError:
            _kill(proc)
            await proc.wait()
            raise

    async def execute(
        self,
        invocation: StepInvocation,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> StepOutcome:
        started = time.monotonic()
        chunks: List[bytes] = []

        try:
            exit_code = await guard(
                self._spawn(invocation, chunks),
                label=invocation.label,
                timeout=invocation.timeout,
                cancel_event=cancel_event,
            )
        except Exception as exc:
            output = b"".join(chunks).decode("utf-8", errors="replace")
            error = exception_to_error(exc, label=invocation.label, timeout=invocation.timeout)
            record = failure_record(invocation, error, started=started)
            return StepOutcome(record=record, output=output)

        output = b"".join(chunks).decode("utf-8", errors="replace")
        outputs = parse_output_file(invocation.output_path)

        if exit_code != 0:
            error = step_exit_code(exit_code=exit_code, command=invocation.command or "")
            record = failure_record(
                invocation, error, started=started, exit_code=exit_code, outputs=outputs
            )
            return StepOutcome(record=record, output=output)

        record = success_record(invocation, started=started, outputs=outputs, exit_code=exit_code)
        return StepOutcome(record=record, output=output)
