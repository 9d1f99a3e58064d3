# src/stepline/core/config/errors.py
"""
Exceções canônicas da camada de configuração do Stepline.

Este módulo define a hierarquia oficial de exceções utilizadas durante
o carregamento do template YAML, a validação estrutural dos Steps e a
resolução da configuração de uma run.

As exceções aqui definidas representam **erros de configuração**: são
levantadas de forma síncrona, antes que qualquer Step seja executado.

Princípios fundamentais:
    - Exceções são tipadas e semânticas
    - Erros estruturais são tratados como falhas fatais
    - Mensagens de erro são claras e direcionadas ao usuário

Invariantes:
    - Todas as exceções de configuração herdam de `ConfigError`
    - Nenhuma exceção representa falha de execução de Step

Limites explícitos:
    - Não executa pipeline
    - Não realiza fallback ou recovery
"""


class ConfigError(Exception):
    """
    Exceção base para erros de configuração do Stepline.

    Esta hierarquia permite:
        - captura genérica de erros de configuração
        - distinção clara entre falhas pré-run e falhas de Step
    """


class TemplateNotFoundError(ConfigError):
    """
    Exceção levantada quando o template YAML do pipeline não existe.

    A mensagem carrega apenas o nome do arquivo ausente:
    `"<filename> not found"`.
    """


class TemplateFormatError(ConfigError):
    """
    Exceção levantada quando o template não pode ser interpretado.

    Cobre erros de sintaxe YAML e violações estruturais mínimas (raiz
    que não é mapa, `steps` ausente ou que não é lista). A mensagem
    segue o formato `"<filename> format is incorrect"`.
    """


class ConfigTypeConflictError(ConfigError):
    """
    Exceção levantada quando ocorre conflito de tipos durante o deep-merge.

    Exemplo de conflito:
        - base:     {"env": {"STAGE": "dev"}}
        - override: {"env": "prod"}

    Invariantes:
        - Nenhum merge parcial é produzido em caso de conflito
    """


class InvalidStepError(ConfigError):
    """
    Exceção levantada quando a definição de um Step é inválida.

    Casos cobertos:
        - `run` e `plugin` ausentes (ou ambos presentes)
        - `id` que não é string não vazia
        - `env` que não é mapa
        - `timeout` não positivo
    """


class DuplicateStepIdError(InvalidStepError):
    """
    Exceção levantada quando dois Steps declaram o mesmo `id`.

    Identificadores são o endereço de `steps.<id>.outputs`; duplicidade
    tornaria referências ambíguas, portanto invalida a run inteira.
    """


class ForwardReferenceError(InvalidStepError):
    """
    Exceção levantada quando um Step referencia `steps.<id>` de um Step
    declarado depois dele (ou dele mesmo).

    Referências a ids inexistentes não são erro: seguem a política
    leniente do resolver de expressões.
    """
