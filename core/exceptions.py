from typing import Optional


class NfseReaderException(Exception):
    """Exceção base para o projeto Leitor NFS-e."""
    pass


class ExtractionError(NfseReaderException):
    """
    Falha tipada ocorrida no processamento de UM arquivo.

    Cada subclasse define um ``kind`` estável, usado pela camada de
    apresentação para agrupar e exibir o motivo da falha.

    Attributes:
        field: Nome do campo envolvido (quando aplicável).
        raw_value: Valor bruto encontrado no XML (quando aplicável).
    """

    kind = "ExtractionError"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        raw_value: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.field = field
        self.raw_value = raw_value

    def describe(self) -> str:
        """Texto legível para o usuário: tipo do erro + detalhe."""
        return f"[{self.kind}] {self.message}"


class FileReadError(ExtractionError):
    """Levantada quando o arquivo não existe ou não pode ser lido."""

    kind = "IoError"


class MalformedXmlError(ExtractionError):
    """Levantada quando o parser não consegue montar a árvore do XML."""

    kind = "MalformedXml"

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        column: Optional[int] = None,
        byte_offset: Optional[int] = None,
    ):
        super().__init__(message)
        self.line = line
        self.column = column
        self.byte_offset = byte_offset


class MissingFieldError(ExtractionError):
    """Campo obrigatório ausente após a busca por todos os aliases."""

    kind = "MissingField"

    def __init__(self, field: str):
        super().__init__(f"Campo obrigatório ausente: {field}", field=field)


class DateFormatError(ExtractionError):
    kind = "DateFormat"

    def __init__(self, field: str, raw_value: str):
        super().__init__(
            f"Data inválida em {field}: '{raw_value}'",
            field=field,
            raw_value=raw_value,
        )


class NumberFormatError(ExtractionError):
    kind = "NumberFormat"

    def __init__(self, field: str, raw_value: str, reason: str = "valor não numérico"):
        super().__init__(
            f"Valor inválido em {field}: '{raw_value}' ({reason})",
            field=field,
            raw_value=raw_value,
        )


class TaxIdFormatError(ExtractionError):
    kind = "TaxIdFormat"

    def __init__(self, field: str, raw_value: str, digit_count: int):
        super().__init__(
            f"CPF/CNPJ inválido em {field}: '{raw_value}' "
            f"({digit_count} dígitos, esperado 11 ou 14)",
            field=field,
            raw_value=raw_value,
        )


class UnexpectedError(ExtractionError):
    """Qualquer outra exceção ocorrida dentro do pipeline de um arquivo."""

    kind = "Unexpected"
