# src/intake/application/messages.py
"""
Outbound texts of the intake bot (pt-BR).

Templates use `str.format` placeholders; the helpers below are the only
place they are filled in.
"""

from __future__ import annotations

from typing import Iterable

DEFAULT_CATEGORY = "Geral"
DEFAULT_CONTACT_NAME = "Cidadão"
NOT_INFORMED = "Não informado"
SUMMARY_DESCRIPTION_LIMIT = 100
TITLE_DESCRIPTION_LIMIT = 50

WELCOME = """🏛️ *ProviDATA - Sistema de Providências*

Olá! Sou o assistente virtual do ProviDATA, o sistema que conecta cidadãos aos seus representantes políticos.

Através de mim, você pode registrar pedidos de providência diretamente ao gabinete do seu representante.

📍 Para começar, me informe o *município* onde você reside:"""

MUNICIPALITY_NOT_FOUND = """❌ Não encontramos gabinetes cadastrados para esse município.

Os municípios com gabinetes disponíveis são:
{municipalities}

Por favor, digite o nome de um dos municípios acima:"""

NO_MUNICIPALITIES = "Nenhum município cadastrado"

SELECT_OFFICE = """📋 Encontramos os seguintes gabinetes em *{municipality}*:

{options}

Digite o *número* do gabinete para o qual deseja enviar sua providência:"""

ASK_NAME = """👤 Ótimo! Você selecionou o gabinete:
*{office}*

Agora, por favor, informe seu *nome completo*:"""

ASK_TAX_ID = """📝 Obrigado, *{name}*!

Informe seu *CPF* (apenas números) ou digite *pular* para continuar sem CPF:"""

SELECT_CATEGORY = """📂 Agora selecione a *categoria* da sua providência:

{options}

Digite o *número* da categoria:"""

ASK_DESCRIPTION = """✏️ Categoria selecionada: *{category}*

Agora descreva detalhadamente o seu pedido de providência.
Quanto mais informações, melhor poderemos atendê-lo:"""

ASK_DESCRIPTION_NO_CATEGORY = (
    "✏️ Descreva detalhadamente o seu pedido de providência.\n"
    "Quanto mais informações, melhor poderemos atendê-lo:"
)

CONFIRM_SUMMARY = """📋 *Resumo da sua providência:*

👤 Nome: *{name}*
📍 Município: *{municipality}*
🏛️ Gabinete: *{office}*
📂 Categoria: *{category}*
📝 Descrição: {description}

Confirma o envio? Digite *SIM* para confirmar ou *NÃO* para cancelar:"""

REQUEST_CREATED = """✅ *Providência registrada com sucesso!*

📋 Protocolo: *{tracking_code}*
📅 Data: {timestamp}

Seu pedido foi encaminhado ao gabinete e será analisado em breve.

Guarde o número do protocolo para acompanhamento.

Para registrar uma nova providência, envie *menu*."""

CANCELLED = """❌ Providência cancelada.

Para iniciar um novo pedido, envie *menu*."""

ERROR = """⚠️ Ocorreu um erro ao processar sua mensagem. Por favor, tente novamente.

Se o problema persistir, envie *reiniciar* para começar do zero."""

INVALID_OPTION = "⚠️ Opção inválida. Por favor, escolha uma das opções disponíveis."

SESSION_EXPIRED = """⏰ Sua sessão expirou por inatividade.

Para iniciar um novo pedido, envie qualquer mensagem."""

# re-prompts
NAME_TOO_SHORT = "⚠️ Por favor, informe seu nome completo (mínimo 3 caracteres):"
NAME_TOO_LONG = "⚠️ Nome muito longo. Por favor, informe seu nome completo (máximo 200 caracteres):"
TAX_ID_INVALID = "⚠️ CPF inválido. Digite os 11 números do CPF ou *pular* para continuar sem CPF:"
DESCRIPTION_TOO_SHORT = (
    "⚠️ A descrição precisa ter pelo menos 10 caracteres. Por favor, descreva melhor o seu pedido:"
)
CONFIRM_REPROMPT = "Por favor, digite *SIM* para confirmar ou *NÃO* para cancelar:"


def municipality_not_found(municipalities: Iterable[str]) -> str:
    listing = "\n".join(f"  • {m}" for m in municipalities)
    return MUNICIPALITY_NOT_FOUND.format(municipalities=listing or NO_MUNICIPALITIES)


def invalid_option(count: int) -> str:
    return f"{INVALID_OPTION}\n\nDigite um número de 1 a {count}:"


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit] + "..."


def confirm_summary(
    *,
    name: str | None,
    municipality: str | None,
    office: str | None,
    category: str | None,
    description: str,
) -> str:
    return CONFIRM_SUMMARY.format(
        name=name or NOT_INFORMED,
        municipality=municipality or NOT_INFORMED,
        office=office or NOT_INFORMED,
        category=category or DEFAULT_CATEGORY,
        description=truncate(description, SUMMARY_DESCRIPTION_LIMIT),
    )


def request_title(category: str | None, description: str) -> str:
    return f"[WhatsApp] {category or DEFAULT_CATEGORY} - {description[:TITLE_DESCRIPTION_LIMIT]}"
