"""
Transaction Classifiers Module

Pattern-based recognition of installment, transfer, recurring subscription,
carryover and special credit card lines in a free-text description.

Every table here is an ordered list evaluated first-match-wins.
"""

import re
from dataclasses import dataclass


# Carried-over balance, financed bill or minimum payment from a previous bill
CARRYOVER_PATTERNS = [
    re.compile(r'SALDO\s*ANTERIOR', re.IGNORECASE),
    re.compile(r'SALDO\s*FATURA\s*ANT', re.IGNORECASE),
    re.compile(r'SALDO\s*ROTATIVO', re.IGNORECASE),
    re.compile(r'ROTATIVO', re.IGNORECASE),
    re.compile(r'FINANC(?:IAMENTO)?\s*FATURA', re.IGNORECASE),
    re.compile(r'PARCELAMENTO\s*(?:DE\s*)?FATURA', re.IGNORECASE),
    re.compile(r'PGTO\s*M[IÍ]NIMO', re.IGNORECASE),
    re.compile(r'PAGAMENTO\s*M[IÍ]NIMO', re.IGNORECASE),
]

# Most specific first. Examples seen on card statements:
# "EC *DEBORAEXCURSOES - Parcela 5/6", "MERCADO*MULTIXIMPORTA - Parcela 4/12"
INSTALLMENT_PATTERNS = [
    re.compile(r'[-–]\s*Parcela\s+(\d+)\s*[/\\]\s*(\d+)', re.IGNORECASE),
    re.compile(r'Parcela\s+(\d+)\s*[/\\]\s*(\d+)', re.IGNORECASE),
    re.compile(r'PARC(?:ELA)?\s*(\d+)\s*(?:[/\\]|DE)\s*(\d+)', re.IGNORECASE),
    re.compile(r'(\d+)\s*[/\\]\s*(\d+)'),
    re.compile(r'(\d+)\s*DE\s*(\d+)', re.IGNORECASE),
]

# C6 hides the installment number on some lines: "LOJA X - Parcela"
BARE_INSTALLMENT_PATTERN = re.compile(r'(?:[-–]\s*|\b)Parcela\s*$', re.IGNORECASE)

MAX_INSTALLMENTS = 48

_CARD_BANKS = r'C6|ITAU|ITAÚ|BTG|NUBANK|BRADESCO|SANTANDER|BB|CAIXA|INTER|NEXT'

TRANSFER_PATTERNS = [
    # Credit card bill payments
    re.compile(r'PAGTO?\s*(DE\s*)?(FATURA|CARTAO|CART[AÃ]O)', re.IGNORECASE),
    re.compile(r'PAGAMENTO\s*(DE\s*)?(FATURA|CARTAO|CART[AÃ]O)', re.IGNORECASE),
    re.compile(
        r'FATURA\s*(CARTAO|CART[AÃ]O|' + _CARD_BANKS + r'|ORIGINAL|PAN|NEON|DIGIO|WILL|XP)',
        re.IGNORECASE
    ),
    re.compile(r'PAG\s*FAT', re.IGNORECASE),
    re.compile(r'(' + _CARD_BANKS + r')\s*(CARTAO|CART[AÃ]O|FATURA)', re.IGNORECASE),
    re.compile(r'DEBITO\s*AUTO(MATICO)?\s*(CARTAO|CART[AÃ]O|FATURA)', re.IGNORECASE),
    # Transfers between own accounts
    re.compile(r'TRANSF\s*(ENTRE\s*)?(CONTAS?|PROPRIA|PRÓPRIA)', re.IGNORECASE),
    re.compile(r'TRANSFERENCIA\s*(ENTRE\s*)?(CONTAS?|PROPRIA|PRÓPRIA)', re.IGNORECASE),
    # Investment movements
    re.compile(r'APLICACAO|APLICAÇÃO|RESGATE', re.IGNORECASE),
    re.compile(r'INVEST(IMENTO)?\s*(CDB|LCI|LCA|TESOURO|POUPANCA|POUPANÇA)', re.IGNORECASE),
]

RECURRING_PATTERNS = [
    # Streaming
    (re.compile(r'NETFLIX', re.IGNORECASE), "Netflix"),
    (re.compile(r'SPOTIFY', re.IGNORECASE), "Spotify"),
    (re.compile(r'AMAZON\s*PRIME', re.IGNORECASE), "Amazon Prime"),
    (re.compile(r'PRIME\s*VIDEO', re.IGNORECASE), "Prime Video"),
    (re.compile(r'DISNEY\s*\+?', re.IGNORECASE), "Disney+"),
    (re.compile(r'HBO\s*MAX', re.IGNORECASE), "HBO Max"),
    (re.compile(r'DEEZER', re.IGNORECASE), "Deezer"),
    (re.compile(r'PARAMOUNT\s*\+?', re.IGNORECASE), "Paramount+"),
    (re.compile(r'GLOBOPLAY', re.IGNORECASE), "Globoplay"),
    (re.compile(r'STAR\s*\+', re.IGNORECASE), "Star+"),
    (re.compile(r'YOUTUBE\s*(?:PREMIUM|MUSIC)', re.IGNORECASE), "YouTube Premium"),
    (re.compile(r'TWITCH', re.IGNORECASE), "Twitch"),
    # Delivery and mobility
    (re.compile(r'IFOOD\s*(?:CLUB|BENEFICIOS)?', re.IGNORECASE), "iFood"),
    (re.compile(r'RAPPI\s*(?:PRIME|TURBO)', re.IGNORECASE), "Rappi Prime"),
    (re.compile(r'UBER\s*(?:ONE|PASS)', re.IGNORECASE), "Uber One"),
    (re.compile(r'SEM\s*PARAR', re.IGNORECASE), "Sem Parar"),
    (re.compile(r'VELOE', re.IGNORECASE), "Veloe"),
    # Telecom
    (re.compile(r'CLARO\s*(?:TV|FIXO|MOVEL)?', re.IGNORECASE), "Claro"),
    (re.compile(r'VIVO\s*(?:FIXO|MOVEL)?', re.IGNORECASE), "Vivo"),
    (re.compile(r'\bTIM\s*(?:FIXO|MOVEL)?\b', re.IGNORECASE), "Tim"),
    (re.compile(r'\bOI\s*(?:FIXO|MOVEL)?\b', re.IGNORECASE), "Oi"),
    # Cloud and software
    (re.compile(r'GOOGLE\s*(?:ONE|STORAGE|CLOUD)', re.IGNORECASE), "Google One"),
    (re.compile(r'APPLE\.COM/BILL', re.IGNORECASE), "Apple"),
    (re.compile(r'APPLE\s*(?:MUSIC|TV|ARCADE|ICLOUD)', re.IGNORECASE), "Apple"),
    (re.compile(r'CHATGPT|OPENAI', re.IGNORECASE), "ChatGPT"),
    (re.compile(r'DROPBOX', re.IGNORECASE), "Dropbox"),
    (re.compile(r'MICROSOFT\s*(?:365|OFFICE)', re.IGNORECASE), "Microsoft 365"),
    (re.compile(r'ADOBE', re.IGNORECASE), "Adobe"),
    (re.compile(r'CANVA', re.IGNORECASE), "Canva"),
    (re.compile(r'NOTION', re.IGNORECASE), "Notion"),
    (re.compile(r'GITHUB', re.IGNORECASE), "GitHub"),
    # Gaming
    (re.compile(r'PLAYSTATION\s*(?:PLUS|NOW|NETWORK)', re.IGNORECASE), "PlayStation"),
    (re.compile(r'XBOX\s*(?:GAME\s*PASS|LIVE)', re.IGNORECASE), "Xbox"),
    (re.compile(r'NINTENDO', re.IGNORECASE), "Nintendo"),
    # Wellness and education
    (re.compile(r'HEADSPACE', re.IGNORECASE), "Headspace"),
    (re.compile(r'\bCALM\b', re.IGNORECASE), "Calm"),
    (re.compile(r'DUOLINGO', re.IGNORECASE), "Duolingo"),
    (re.compile(r'GYMPASS|WELLHUB', re.IGNORECASE), "Wellhub"),
    # Insurance
    (re.compile(r'NUBANK\s*VIDA', re.IGNORECASE), "Nubank Vida"),
    (re.compile(r'SEGURO\s*(?:AUTO|VIDA|RESIDENCIAL)', re.IGNORECASE), "Seguro"),
]

# Evaluated in dictionary order
TRANSACTION_KIND_PATTERNS = {
    "PIX RECEBIDO": re.compile(r'PIX\s*(?:RECEBIDO|REC(?:EB)?|TRANSF(?:ERENCIA)?\s*REC)', re.IGNORECASE),
    "PIX ENVIADO": re.compile(r'PIX\s*(?:ENVIADO|ENV|TRANSF(?:ERENCIA)?\s*ENV)', re.IGNORECASE),
    "TED RECEBIDO": re.compile(r'TED\s*(?:RECEBIDO|REC)', re.IGNORECASE),
    "TED ENVIADO": re.compile(r'TED\s*(?:ENVIADO|ENV)', re.IGNORECASE),
    "DOC": re.compile(r'DOC\s', re.IGNORECASE),
    "BOLETO": re.compile(r'(?:PAGTO?\s*)?BOLETO|PAG(?:AMENTO)?\s*TIT(?:ULO)?|TITULO|CONV[EÊ]NIO', re.IGNORECASE),
    "DEBITO AUTO": re.compile(r'DEB(?:ITO)?\s*AUT(?:OMATICO)?', re.IGNORECASE),
    "TARIFA": re.compile(r'TARIFA|IOF|ANUIDADE|TAXA', re.IGNORECASE),
    "SAQUE": re.compile(r'SAQUE|SAQ\s', re.IGNORECASE),
    "DEPOSITO": re.compile(r'DEPOSITO|DEP\s', re.IGNORECASE),
    "TRANSFERENCIA": re.compile(r'TRANSF(?:ERENCIA)?(?!\s*(?:REC|ENV))', re.IGNORECASE),
    "COMPRA DEBITO": re.compile(r'COMPRA\s*(?:NO\s*)?DEB(?:ITO)?', re.IGNORECASE),
    "ESTORNO": re.compile(r'ESTORNO', re.IGNORECASE),
    "RENDIMENTO": re.compile(r'RENDIMENTO|JUROS\s*(?:POUPANCA|CRED)', re.IGNORECASE),
}

STATEMENT_KIND_CATEGORIES = {
    "PIX RECEBIDO": "Outros",
    "PIX ENVIADO": "Outros",
    "TED RECEBIDO": "Outros",
    "TED ENVIADO": "Outros",
    "BOLETO": "Servicos",
    "DEBITO AUTO": "Servicos",
    "TARIFA": "Servicos",
    "SAQUE": "Outros",
    "DEPOSITO": "Outros",
    "RENDIMENTO": "Investimentos",
    "COMPRA DEBITO": "Compras",
}

# (special type, substrings, warning)
SPECIAL_TRANSACTION_RULES = [
    (
        "BILL_PAYMENT",
        ["INCLUSAO DE PAGAMENTO", "PAGAMENTO RECEBIDO", "PAGTO RECEBIDO",
         "CREDITO PAGAMENTO", "PAGAMENTO FATURA", "PAG FATURA"],
        "Este e um registro de pagamento da fatura anterior. "
        "Normalmente deve ser ignorado ou tratado como credito.",
    ),
    (
        "FINANCING",
        ["PARCELAMENTO DE FATURA", "PARCELAMENTO FATURA", "FATURA PARCELADA",
         "REPARCELAMENTO", "REFINANCIAMENTO"],
        "Este e um parcelamento/refinanciamento de divida. "
        "O valor original ja foi contabilizado anteriormente.",
    ),
    (
        "REFUND",
        ["ESTORNO", "DEVOLUCAO", "CANCELAMENTO", "REEMBOLSO", "CHARGEBACK"],
        "Este e um estorno/devolucao. O valor sera creditado (positivo).",
    ),
]


@dataclass
class InstallmentInfo:
    """Installment marker found in a description."""

    is_installment: bool
    current_installment: int | None = None
    total_installments: int | None = None


@dataclass
class RecurringInfo:
    """Known subscription service found in a description."""

    is_recurring: bool
    recurring_name: str | None = None


@dataclass
class SpecialTransaction:
    """Credit card line that needs the user's attention before import."""

    type: str  # BILL_PAYMENT, FINANCING, REFUND, FEE, IOF, CURRENCY_SPREAD
    warning: str


def is_carryover_transaction(description: str) -> bool:
    """Check if a description is a carried-over balance from a previous bill.

    Args:
        description: Transaction description

    Returns:
        True if any carryover pattern matches
    """
    return any(pattern.search(description) for pattern in CARRYOVER_PATTERNS)


def detect_installment(description: str) -> InstallmentInfo:
    """Detect an installment marker such as "Parcela 3/10" or "PARC 2 DE 6".

    A numbered match is only accepted when 0 < current <= total <= 48 and
    total > 1, which rejects bare dates and other stray fractions.

    Args:
        description: Transaction description

    Returns:
        InstallmentInfo
    """
    for pattern in INSTALLMENT_PATTERNS:
        match = pattern.search(description)
        if not match:
            continue

        current = int(match.group(1))
        total = int(match.group(2))

        if 0 < current <= total <= MAX_INSTALLMENTS and total > 1:
            return InstallmentInfo(
                is_installment=True,
                current_installment=current,
                total_installments=total
            )

    if BARE_INSTALLMENT_PATTERN.search(description):
        return InstallmentInfo(is_installment=True)

    return InstallmentInfo(is_installment=False)


def detect_transfer(description: str) -> bool:
    """Check if a description is a card bill payment, own-account transfer
    or investment movement."""
    return any(pattern.search(description) for pattern in TRANSFER_PATTERNS)


def detect_recurring_transaction(description: str) -> RecurringInfo:
    """Match a description against the known subscription services.

    Args:
        description: Transaction description

    Returns:
        RecurringInfo with the display name of the first matching service
    """
    for pattern, name in RECURRING_PATTERNS:
        if pattern.search(description):
            return RecurringInfo(is_recurring=True, recurring_name=name)

    return RecurringInfo(is_recurring=False)


def detect_transaction_kind(description: str) -> str | None:
    """Detect the bank movement kind (PIX RECEBIDO, BOLETO, SAQUE...)."""
    for kind, pattern in TRANSACTION_KIND_PATTERNS.items():
        if pattern.search(description):
            return kind
    return None


def suggest_category_for_statement(transaction_kind: str | None) -> str | None:
    """Fallback category name for a bank statement line of the given kind."""
    if not transaction_kind:
        return None
    return STATEMENT_KIND_CATEGORIES.get(transaction_kind.upper().replace("_", " "))


def detect_special_transaction(description: str) -> SpecialTransaction | None:
    """Flag bill payments, refinancing, refunds, fees, IOF and currency spread.

    Args:
        description: Transaction description

    Returns:
        SpecialTransaction or None for an ordinary purchase
    """
    upper_desc = description.upper()

    for special_type, markers, warning in SPECIAL_TRANSACTION_RULES:
        if any(marker in upper_desc for marker in markers):
            return SpecialTransaction(type=special_type, warning=warning)

    if "ANUIDADE" in upper_desc or "TARIFA" in upper_desc or (
        "TAXA" in upper_desc and "TAXAS DE" not in upper_desc
    ):
        return SpecialTransaction(type="FEE", warning="Esta e uma tarifa/anuidade do cartao.")

    if " IOF" in upper_desc or "IOF " in upper_desc or "IMPOSTO IOF" in upper_desc:
        return SpecialTransaction(
            type="IOF",
            warning="Este e o IOF de uma transacao internacional."
        )

    if any(marker in upper_desc for marker in ["COTACAO", "COTAÇÃO", "SPREAD", "CUUSD", "CUEUR"]):
        return SpecialTransaction(
            type="CURRENCY_SPREAD",
            warning="Este e o spread de cotacao de uma transacao internacional."
        )

    return None
