# src/stepline/core/constants.py
"""
Constantes canônicas do Stepline.

Marcador de engine:
    Processos filhos (Steps shell) e plugins recebem `STEPLINE_KEY` com o
    valor `STEPLINE_VALUE` no ambiente montado para cada invocação. O
    marcador nunca é gravado em `os.environ` do processo hospedeiro.

Saídas de Steps shell:
    `OUTPUT_ENV_KEY` aponta para um arquivo por Step; linhas `chave=valor`
    escritas nele tornam-se `outputs` do Step.
"""

STEPLINE_KEY = "STEPLINE"
STEPLINE_VALUE = "true"

OUTPUT_ENV_KEY = "STEPLINE_OUTPUT"

TEMPLATE_PATH_ENV_KEY = "STEPLINE_TEMPLATE_PATH"
DEFAULT_TEMPLATE_NAME = "stepline-pipeline.yaml"

PLUGIN_ENTRYPOINT = "run"
