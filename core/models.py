from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Tuple, Union

from core.exceptions import ExtractionError


class TaxIdKind(Enum):
    """Tipo de documento fiscal identificado pela quantidade de dígitos."""

    CPF = 11
    CNPJ = 14

    @property
    def digit_count(self) -> int:
        return self.value


@dataclass(frozen=True)
class TaxId:
    """
    Identificador fiscal (CPF ou CNPJ) armazenado apenas como dígitos.

    A formatação com pontuação (00.000.000/0000-00) é responsabilidade
    da camada de apresentação (ver ``extractors.utils.format_tax_id``).

    Attributes:
        kind (TaxIdKind): CPF (11 dígitos) ou CNPJ (14 dígitos).
        digits (str): Somente os dígitos, sem pontuação.
    """
    kind: TaxIdKind
    digits: str

    def __post_init__(self):
        if not self.digits.isdigit() or len(self.digits) != self.kind.digit_count:
            raise ValueError(
                f"{self.kind.name} deve ter {self.kind.digit_count} dígitos: {self.digits!r}"
            )

    @classmethod
    def from_digits(cls, digits: str) -> "TaxId":
        """Escolhe CPF ou CNPJ pela quantidade de dígitos."""
        for kind in TaxIdKind:
            if len(digits) == kind.digit_count:
                return cls(kind=kind, digits=digits)
        raise ValueError(f"Quantidade de dígitos inválida para CPF/CNPJ: {len(digits)}")

    @property
    def is_cnpj(self) -> bool:
        return self.kind is TaxIdKind.CNPJ

    @property
    def is_cpf(self) -> bool:
        return self.kind is TaxIdKind.CPF


@dataclass(frozen=True)
class Party:
    """
    Prestador ou tomador de serviço.

    Attributes:
        legal_name (str): Razão social (nunca vazia).
        tax_id (TaxId): CPF ou CNPJ.
    """
    legal_name: str
    tax_id: TaxId

    def __post_init__(self):
        if not self.legal_name:
            raise ValueError("Razão social não pode ser vazia")


@dataclass(frozen=True)
class Invoice:
    """
    Modelo normalizado de uma Nota Fiscal de Serviço Eletrônica (NFS-e).

    Independe do layout municipal de origem: ABRASF, padrão nacional
    e variantes municipais resultam no mesmo registro.

    Attributes:
        number (str): Número da nota (nunca vazio).
        issue_date (date): Data de emissão.
        provider (Party): Prestador do serviço.
        recipient (Party): Tomador do serviço.
        total_service_value (Decimal): Valor dos serviços (>= 0).
        service_description (str): Discriminação do serviço (pode ter várias linhas).
    """
    number: str
    issue_date: date
    provider: Party
    recipient: Party
    total_service_value: Decimal
    service_description: str = ""

    def __post_init__(self):
        if not self.number:
            raise ValueError("Número da nota não pode ser vazio")
        if self.total_service_value < 0:
            raise ValueError(f"Valor dos serviços negativo: {self.total_service_value}")


@dataclass(frozen=True)
class ProcessingSuccess:
    """
    Arquivo processado com sucesso.

    Um arquivo de consulta (ConsultarNfseResposta/ListaNfse) pode trazer
    várias notas; todas ficam em ``invoices``, na ordem do documento.
    """
    source_path: str
    invoices: Tuple[Invoice, ...]

    def __post_init__(self):
        if not self.invoices:
            raise ValueError("ProcessingSuccess exige ao menos uma nota")

    @property
    def invoice(self) -> Invoice:
        """Primeira nota do arquivo."""
        return self.invoices[0]

    @property
    def success(self) -> bool:
        return True


@dataclass(frozen=True)
class ProcessingFailure:
    """Arquivo que falhou em alguma etapa (leitura, parse ou extração)."""
    source_path: str
    failure: ExtractionError

    @property
    def success(self) -> bool:
        return False

    @property
    def kind(self) -> str:
        return self.failure.kind

    @property
    def reason(self) -> str:
        return self.failure.describe()


# Um resultado por arquivo de entrada
ProcessingResult = Union[ProcessingSuccess, ProcessingFailure]
