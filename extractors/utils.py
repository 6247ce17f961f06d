"""
Módulo de utilidades compartilhadas para extração e exibição de NFS-e.

Contém funções de parsing e normalização:
- Parsing de valores monetários (1.234,56 / 1,234.56 / 1500.00)
- Parsing de datas (ISO-8601 e dd/mm/yyyy)
- Normalização e formatação de CPF/CNPJ
- Formatação de valores em reais para exibição

As funções de parsing retornam None quando o valor não é reconhecido;
quem chama decide qual erro tipado levantar.
"""

import re
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

# =============================================================================
# REGEX COMPILADOS (evita recompilação a cada chamada)
# =============================================================================

# ISO-8601: 2024-03-10, 2024-03-10T14:30, 2024-03-10T14:30:00.123-03:00
ISO_DATE_RE = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})"
    r"(?:[T ]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?)?$"
)

# Data brasileira: dd/mm/yyyy
BR_DATE_RE = re.compile(r"^(\d{2})/(\d{2})/(\d{4})$")

# Número já normalizado (ponto decimal, sem milhar)
PLAIN_NUMBER_RE = re.compile(r"^\d+(?:\.\d+)?$")

CURRENCY_PREFIX_RE = re.compile(r"^R\$\s*", re.IGNORECASE)


# =============================================================================
# PARSING DE VALORES MONETÁRIOS
# =============================================================================


def normalize_amount_string(value: str) -> str:
    """
    Converte um valor monetário para a notação com ponto decimal.

    Regras:
    - Com ponto e vírgula, o separador que aparece por último é o decimal
      ("1.234,56" -> "1234.56", "1,234.56" -> "1234.56")
    - Um separador que aparece mais de uma vez é de milhar
      ("1.234.567" -> "1234567")
    - Um único separador é sempre decimal ("1500,00" -> "1500.00")

    Atenção: a última regra difere da leitura brasileira de texto livre
    (boletos, PDFs, planilhas), em que "1.500" é mil e quinhentos. Aqui
    "1.500" vale 1.5, porque os campos de valor das NFS-e (tsValor na
    ABRASF, vServ no padrão nacional) usam ponto decimal e nunca
    separador de milhar.

    Examples:
        >>> normalize_amount_string("R$ 1.500,00")
        '1500.00'
        >>> normalize_amount_string("1500.00")
        '1500.00'
    """
    cleaned = CURRENCY_PREFIX_RE.sub("", value.strip())
    cleaned = cleaned.replace(" ", "").replace("\xa0", "")

    if "," in cleaned and "." in cleaned:
        decimal_sep = "," if cleaned.rfind(",") > cleaned.rfind(".") else "."
        thousands_sep = "." if decimal_sep == "," else ","
        cleaned = cleaned.replace(thousands_sep, "").replace(decimal_sep, ".")
    elif "," in cleaned:
        cleaned = cleaned.replace(",", "") if cleaned.count(",") > 1 else cleaned.replace(",", ".")
    elif cleaned.count(".") > 1:
        cleaned = cleaned.replace(".", "")

    return cleaned


def parse_decimal_amount(value: Optional[str]) -> Optional[Decimal]:
    """
    Converte string monetária para Decimal.

    Sinal negativo é preservado (a validação de negativo fica com quem
    chama). Retorna None se o valor não for numérico.

    Examples:
        >>> parse_decimal_amount("1.234,56")
        Decimal('1234.56')
        >>> parse_decimal_amount("-10,00")
        Decimal('-10.00')
        >>> parse_decimal_amount("abc") is None
        True
    """
    if not value:
        return None

    cleaned = normalize_amount_string(value)
    negative = cleaned.startswith("-")
    if negative:
        cleaned = cleaned[1:]

    # Decimal aceitaria 'NaN', 'Infinity' e '1e3'; aqui só dígitos
    if not PLAIN_NUMBER_RE.match(cleaned):
        return None

    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    return -amount if negative else amount


# =============================================================================
# PARSING DE DATAS
# =============================================================================


def parse_invoice_date(value: Optional[str]) -> Optional[date]:
    """
    Converte a data de emissão para ``date``.

    Tenta ISO-8601 primeiro (com ou sem hora/fuso) e depois dd/mm/yyyy.
    Datas impossíveis (31/02/2024) retornam None.

    Examples:
        >>> parse_invoice_date("2024-03-10T14:30:00")
        datetime.date(2024, 3, 10)
        >>> parse_invoice_date("10/03/2024")
        datetime.date(2024, 3, 10)
    """
    if not value:
        return None

    value = value.strip()

    match = ISO_DATE_RE.match(value)
    if match:
        year, month, day = match.groups()
    else:
        match = BR_DATE_RE.match(value)
        if not match:
            return None
        day, month, year = match.groups()

    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


# =============================================================================
# CPF / CNPJ
# =============================================================================


def normalize_digits(value: str) -> str:
    """Remove tudo que não for dígito ("12.345.678/0001-95" -> "12345678000195")."""
    return re.sub(r"\D", "", value or "")


def format_cnpj(digits: str) -> str:
    """Formata CNPJ para padrão XX.XXX.XXX/XXXX-XX."""
    digits = normalize_digits(digits)
    if len(digits) != 14:
        return digits  # Retorna sem formatar se inválido
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def format_cpf(digits: str) -> str:
    """Formata CPF para padrão XXX.XXX.XXX-XX."""
    digits = normalize_digits(digits)
    if len(digits) != 11:
        return digits
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def format_tax_id(tax_id) -> str:
    """Formata um ``TaxId`` (CPF ou CNPJ) para exibição."""
    return format_cnpj(tax_id.digits) if tax_id.is_cnpj else format_cpf(tax_id.digits)


# =============================================================================
# EXIBIÇÃO
# =============================================================================


def format_brl(amount: Decimal) -> str:
    """
    Formata valor em reais.

    Examples:
        >>> format_brl(Decimal("1500"))
        'R$ 1.500,00'
    """
    return f"R$ {amount:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
