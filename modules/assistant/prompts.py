# modules/assistant/prompts.py

SYSTEM_PROMPT = """Você é o assistente do OSZap, um ajudante de WhatsApp para prestadores de serviço \
(técnicos, eletricistas, encanadores, assistências técnicas).

IDIOMA: responda SEMPRE em português do Brasil, mesmo que a pergunta venha em outro idioma.

PERSONALIDADE:
• Simpático, direto e prático, como um colega de trabalho prestativo
• Mensagens curtas, com emojis com moderação e *negrito* no estilo do WhatsApp
• Nunca invente dados: use as ferramentas para consultar ou alterar informações

O QUE VOCÊ FAZ:
• Cria, consulta, atualiza e detalha ordens de serviço (OS)
• Registra peças usadas e gera o PDF da OS
• Mostra saldo, totalizadores, estatísticas e resumo financeiro
• Agenda lembretes e notificações e cria automações
• Salva, lista e busca contatos e envia OS ou mensagens para eles

REGRAS:
• Quando um resultado trouxer "mensagem_formatada", copie-a exatamente como veio
• Para enviar uma OS para alguém pelo nome, use enviar_pdf_os_para_contato
• Se faltar algum dado obrigatório, pergunte antes de chamar a ferramenta
• Se uma ferramenta falhar, explique o problema com a mensagem de erro recebida, sem detalhes técnicos
"""

FORMATTED_RESULTS_HINT = (
    "🎨 IMPORTANTE: Use as mensagens_formatadas que foram fornecidas nos resultados. "
    "Elas já estão perfeitamente formatadas. Adicione apenas uma breve introdução amigável "
    "e cole a mensagem_formatada completa."
)

SHORT_QUESTION_HINT = (
    "📚 CONTEXTO: O usuário fez uma pergunta curta. Revise o histórico da conversa para "
    "entender o contexto completo. Provavelmente ele está se referindo a algo que já foi mencionado."
)

ORDER_EXTRACTION_PROMPT = """Você é um analista experiente processando solicitações de ordens de serviço.
Extraia da mensagem do usuário um objeto JSON com exatamente estas chaves:
{"client_name": "nome do cliente", "services": ["serviço 1"], "total_amount": 500.00, "notes": "observações"}
- Sem nome de cliente: use "Cliente não informado"
- Sem serviços: use lista vazia
- total_amount é numérico (ex: 500.00) ou null quando não houver valor
- Prazos e detalhes extras vão em notes
Responda APENAS com o JSON."""

# Replies containing these phrases were written in English despite the prompt
ENGLISH_MARKERS = (
    "i'm sorry", "i am sorry", "i couldn't", "couldn't find", "it seems",
    "there's no", "there is no", "i found", "i didn't find", "i can't find",
    "cannot find", "let me", "please wait", "one moment", "i will", "i'll",
    "thank you", "you're welcome", "service order", "the pdf", "not available",
    "however", "perhaps", "contact named", "look for",
)

ENGLISH_FALLBACK_REPLY = (
    "🇧🇷 Desculpe, tive um probleminha ao processar sua mensagem. "
    "Pode reformular ou tentar novamente? Estou aqui para ajudar! 😊"
)

GENERIC_TOOL_ERROR = "Ops! Algo não saiu como esperado. Pode tentar novamente?"
TOOL_ERROR_DETAILS = "Ocorreu um erro ao processar sua solicitação."

# User-facing text per tool for unexpected failures
TOOL_ERROR_MESSAGES = {
    "criar_ordem_servico": "Não consegui criar a ordem de serviço. Vamos tentar novamente?",
    "consultar_ordens_servico": "Não consegui buscar as ordens de serviço no momento. Tente novamente em instantes.",
    "atualizar_status_ordem_servico": "Não consegui atualizar o status. Verifique se o número da OS está correto.",
    "atualizar_ordem_servico": "Não consegui atualizar a ordem de serviço. Tente novamente.",
    "adicionar_pecas_ordem_servico": "Não consegui adicionar as peças. Verifique os dados e tente novamente.",
    "gerar_pdf_ordem_servico": "Não consegui gerar o PDF. Verifique se a OS existe.",
    "obter_estatisticas_usuario": "Não consegui obter as estatísticas no momento.",
    "buscar_ordem_servico_por_criterio": "Não encontrei resultados para sua busca.",
    "obter_totalizadores": "Não consegui calcular os totalizadores no momento.",
    "listar_minhas_os": "Não consegui listar suas ordens de serviço.",
    "obter_detalhes_completos_os": "Não consegui obter os detalhes da OS.",
    "obter_resumo_financeiro": "Não consegui obter o resumo financeiro.",
    "consultar_saldo": "Não consegui calcular o saldo no momento.",
    "agendar_notificacao": "Não foi possível agendar a notificação",
    "criar_automacao": "Não foi possível criar a automação",
    "listar_notificacoes_agendadas": "Não foi possível listar as notificações",
    "cancelar_notificacao": "Não foi possível cancelar a notificação",
    "buscar_contato": "Não consegui buscar os contatos no momento",
    "enviar_pdf_os_para_contato": "Não consegui enviar o PDF no momento",
    "enviar_mensagem_whatsapp": "Não consegui enviar a mensagem no momento",
    "salvar_contato": "Não consegui salvar o contato no momento",
    "listar_contatos": "Não consegui listar os contatos no momento",
    "buscar_contato_salvo": "Não consegui buscar o contato no momento",
}

UNKNOWN_TOOL_ERROR = "Função não implementada"

APOLOGY_ERROR = "😔 Ops! Algo não saiu como esperado"
APOLOGY_SUGGESTION = ("Não consegui processar sua mensagem agora. Pode tentar novamente em alguns "
                      "segundos? Se continuar com problema, me avise!")

AUDIO_ERROR = "Não consegui processar o áudio."
AUDIO_SUGGESTION = "Tente enviar uma mensagem de texto ou grave o áudio novamente."
