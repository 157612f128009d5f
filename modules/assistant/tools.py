# modules/assistant/tools.py

"""
Tool catalog exposed to the LLM (OpenAI function-calling schemas) and the
registry that binds every catalog entry to exactly one handler and one
template.
"""

import logging

from .templates import TOOL_TEMPLATES

logger = logging.getLogger(__name__)

ORDER_STATUSES = ["aberta", "em_andamento", "aguardando_pecas", "concluida", "cancelada"]
ORDER_PRIORITIES = ["baixa", "normal", "alta", "urgente"]
ORDER_CATEGORIES = ["manutencao", "instalacao", "reparo", "consultoria", "outro"]
NOTIFICATION_TYPES = ["lembrete", "conclusao", "atualizacao", "pdf", "custom"]
TRIGGER_EVENTS = ["os_concluida", "os_atualizada", "status_mudou", "data_chegando"]
TRIGGER_ACTIONS = ["enviar_notificacao", "enviar_pdf"]
ORDER_SORT_KEYS = ["data_criacao", "prioridade", "status", "valor"]
BALANCE_PERIODS = ["day", "month", "overall"]

NUMERO_OS = {"type": "string", "description": "Número da ordem de serviço (ex: OS-20261019-000001)"}


def _tool(name: str, description: str, properties: dict | None = None,
          required: list | None = None) -> dict:
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": properties or {},
                "required": required or [],
            },
        },
    }


TOOL_CATALOG = [
    _tool("criar_ordem_servico", "Cria uma nova ordem de serviço no sistema", {
        "cliente_nome": {"type": "string", "description": "Nome completo do cliente"},
        "cliente_telefone": {"type": "string", "description": "Telefone do cliente"},
        "cliente_email": {"type": "string", "description": "Email do cliente (opcional)"},
        "cliente_endereco": {"type": "string", "description": "Endereço do cliente (opcional)"},
        "titulo": {"type": "string", "description": "Título resumido do serviço"},
        "descricao": {"type": "string", "description": "Descrição detalhada do serviço"},
        "categoria": {"type": "string", "enum": ORDER_CATEGORIES},
        "prioridade": {"type": "string", "enum": ORDER_PRIORITIES},
        "valor_estimado": {"type": "number", "description": "Valor estimado em reais (opcional)"},
        "data_previsao": {"type": "string", "description": "Previsão de conclusão, ISO 8601 (opcional)"},
    }, ["cliente_nome", "titulo", "descricao"]),
    _tool("consultar_ordens_servico", "Consulta ordens de serviço com filtros opcionais", {
        "numero_os": NUMERO_OS,
        "status": {"type": "string", "enum": ORDER_STATUSES},
        "periodo_dias": {"type": "number", "description": "Buscar OS dos últimos X dias"},
        "limite": {"type": "number", "description": "Máximo de resultados (padrão: 10)"},
    }),
    _tool("atualizar_status_ordem_servico", "Atualiza o status de uma ordem de serviço", {
        "numero_os": NUMERO_OS,
        "novo_status": {"type": "string", "enum": ORDER_STATUSES},
        "observacao": {"type": "string", "description": "Observação sobre a mudança (opcional)"},
    }, ["numero_os", "novo_status"]),
    _tool("atualizar_ordem_servico", "Atualiza informações de uma ordem de serviço", {
        "numero_os": NUMERO_OS,
        "tecnico_responsavel": {"type": "string"},
        "valor_estimado": {"type": "number"},
        "valor_final": {"type": "number"},
        "data_previsao": {"type": "string", "description": "Nova previsão de conclusão"},
        "observacoes": {"type": "string"},
    }, ["numero_os"]),
    _tool("adicionar_pecas_ordem_servico", "Adiciona peças utilizadas em uma ordem de serviço", {
        "numero_os": NUMERO_OS,
        "pecas": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "descricao": {"type": "string"},
                    "codigo": {"type": "string"},
                    "quantidade": {"type": "number"},
                    "valor_unitario": {"type": "number"},
                },
                "required": ["descricao", "quantidade", "valor_unitario"],
            },
        },
    }, ["numero_os", "pecas"]),
    _tool("gerar_pdf_ordem_servico",
          "Gera o PDF de uma ordem de serviço. Apenas gera, não envia para terceiros; "
          "para enviar a alguém use enviar_pdf_os_para_contato.",
          {"numero_os": NUMERO_OS}, ["numero_os"]),
    _tool("obter_estatisticas_usuario", "Estatísticas das ordens de serviço do usuário", {
        "periodo_dias": {"type": "number", "description": "Período em dias (padrão: 30)"},
    }),
    _tool("buscar_ordem_servico_por_criterio",
          "Busca ordens de serviço por cliente, título, descrição ou número", {
              "termo_busca": {"type": "string"},
              "limite": {"type": "number"},
          }, ["termo_busca"]),
    _tool("obter_totalizadores",
          "Totalizadores das OS: quantidades por status e valores totais", {
              "periodo_dias": {"type": "number", "description": "Período em dias (padrão: todas)"},
          }),
    _tool("listar_minhas_os", "Lista as ordens de serviço do usuário com resumo", {
        "incluir_concluidas": {"type": "boolean", "description": "Incluir OS concluídas"},
        "ordenar_por": {"type": "string", "enum": ORDER_SORT_KEYS},
    }),
    _tool("obter_detalhes_completos_os",
          "Todos os detalhes de uma OS: cliente, valores, datas, peças",
          {"numero_os": NUMERO_OS}, ["numero_os"]),
    _tool("obter_resumo_financeiro",
          "Resumo financeiro: estimado, final, faturado e em aberto", {
              "periodo_dias": {"type": "number", "description": "Período em dias (padrão: 30)"},
              "incluir_detalhes": {"type": "boolean"},
          }),
    _tool("consultar_saldo",
          "Saldo (soma dos valores das OS) de hoje, do mês ou total", {
              "periodo": {"type": "string", "enum": BALANCE_PERIODS},
          }),
    _tool("agendar_notificacao",
          "Agenda uma notificação de WhatsApp para uma data/hora futura", {
              "numero_os": NUMERO_OS,
              "tipo": {"type": "string", "enum": NOTIFICATION_TYPES},
              "destinatario_telefone": {"type": "string"},
              "destinatario_nome": {"type": "string"},
              "titulo": {"type": "string"},
              "mensagem": {"type": "string"},
              "data_hora": {
                  "type": "string",
                  "description": 'ISO 8601 ou linguagem natural, ex: "amanhã às 14h", "daqui 30 minutos"',
              },
              "enviar_pdf": {"type": "boolean"},
              "recorrente": {"type": "boolean"},
              "intervalo_dias": {"type": "number"},
          }, ["tipo", "destinatario_telefone", "titulo", "mensagem", "data_hora"]),
    _tool("criar_automacao",
          "Cria uma automação disparada por eventos das OS (ex: enviar PDF quando concluída)", {
              "tipo_evento": {"type": "string", "enum": TRIGGER_EVENTS},
              "condicoes": {"type": "object", "description": 'Ex: {"prioridade": "urgente"}'},
              "tipo_acao": {"type": "string", "enum": TRIGGER_ACTIONS},
              "parametros_acao": {
                  "type": "object",
                  "description": "enviar_notificacao: {titulo, mensagem, destinatario_telefone}; "
                                 "enviar_pdf: {destinatario_telefone}",
              },
          }, ["tipo_evento", "condicoes", "tipo_acao", "parametros_acao"]),
    _tool("listar_notificacoes_agendadas", "Lista as notificações pendentes de envio"),
    _tool("cancelar_notificacao", "Cancela uma notificação agendada ainda não enviada", {
        "notificacao_id": {"type": "string"},
    }, ["notificacao_id"]),
    _tool("buscar_contato", "Busca um contato na agenda do WhatsApp pelo nome", {
        "nome": {"type": "string"},
    }, ["nome"]),
    _tool("enviar_pdf_os_para_contato",
          "Envia o PDF de uma OS para um contato salvo, buscando o contato pelo nome", {
              "nome_contato": {"type": "string"},
              "numero_os": NUMERO_OS,
              "mensagem_adicional": {"type": "string"},
          }, ["nome_contato", "numero_os"]),
    _tool("enviar_mensagem_whatsapp",
          "Envia texto e/ou PDF de uma OS para um número de WhatsApp já conhecido", {
              "numero": {"type": "string", "description": "Número internacional (5522999999999) ou JID"},
              "mensagem": {"type": "string"},
              "ordem_servico_id": {"type": "string", "description": "ID ou número da OS cujo PDF será enviado"},
          }, ["numero"]),
    _tool("salvar_contato", "Salva (ou atualiza) um contato para envios futuros", {
        "nome": {"type": "string"},
        "telefone": {"type": "string"},
        "email": {"type": "string"},
        "observacoes": {"type": "string"},
        "favorito": {"type": "boolean"},
    }, ["nome", "telefone"]),
    _tool("listar_contatos", "Lista os contatos salvos", {
        "favoritos": {"type": "boolean"},
        "busca": {"type": "string"},
    }),
    _tool("buscar_contato_salvo", "Busca um contato salvo pelo nome", {
        "nome": {"type": "string"},
    }, ["nome"]),
]


class ToolRegistryError(Exception):
    """Catalog, handlers and templates do not line up."""


class ToolRegistry:
    """Binds catalog names to handler coroutines and templates."""

    def __init__(self, catalog=None, templates=None):
        self.catalog = catalog if catalog is not None else TOOL_CATALOG
        self.templates = templates if templates is not None else TOOL_TEMPLATES
        self.handlers = {}

    def register(self, name: str, handler):
        if name in self.handlers:
            raise ToolRegistryError(f"Handler registered twice: {name}")
        self.handlers[name] = handler

    @property
    def names(self) -> list[str]:
        return [tool["function"]["name"] for tool in self.catalog]

    def validate(self):
        """Every catalog entry must have exactly one handler and one template."""
        names = self.names
        duplicates = {name for name in names if names.count(name) > 1}
        if duplicates:
            raise ToolRegistryError(f"Duplicate tools in catalog: {sorted(duplicates)}")

        catalog = set(names)
        problems = []
        if catalog - set(self.handlers):
            problems.append(f"missing handlers: {sorted(catalog - set(self.handlers))}")
        if set(self.handlers) - catalog:
            problems.append(f"handlers without schema: {sorted(set(self.handlers) - catalog)}")
        if catalog - set(self.templates):
            problems.append(f"missing templates: {sorted(catalog - set(self.templates))}")
        if problems:
            raise ToolRegistryError("; ".join(problems))

        logger.info(f"🔧 Tool registry validated with {len(names)} tools")
        return self

    def handler_for(self, name: str):
        return self.handlers.get(name)

    def template_for(self, name: str):
        return self.templates.get(name)
