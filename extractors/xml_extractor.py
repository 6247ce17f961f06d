"""
Extrator de dados de arquivos XML de NFS-e.

Cada prefeitura (ou provedor: ABRASF, SigISS, padrão nacional) nomeia e
aninha os elementos de um jeito. Em vez de um extrator por layout, os
campos são resolvidos por uma tabela de aliases (``extractors.aliases``):

    1. Localiza as subárvores das notas (InfNfse, InfDeclaracaoPrestacaoServico...);
       uma resposta de consulta com vários CompNfse gera várias notas
    2. Resolve cada campo pelo primeiro alias, em ordem de prioridade,
       que tenha texto não vazio
    3. Converte e valida (data, valor, CPF/CNPJ)

A extração para no PRIMEIRO campo ausente ou inválido, para que cada
arquivo tenha exatamente um motivo de falha. Ordem dos campos:

    number -> issueDate -> provider.legalName -> provider.taxId
    -> recipient.legalName -> recipient.taxId -> totalServiceValue
    -> serviceDescription
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from core.exceptions import (
    DateFormatError,
    ExtractionError,
    FileReadError,
    MissingFieldError,
    NumberFormatError,
    TaxIdFormatError,
)
from core.models import Invoice, Party, TaxId
from core.xml_tree import GenericXmlNode, XmlTreeParser
from extractors.aliases import DEFAULT_CONFIG, ExtractionConfig, PartyAliases
from extractors.utils import normalize_digits, parse_decimal_amount, parse_invoice_date

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class XmlExtractionResult:
    """Resultado da extração de um arquivo XML."""

    success: bool
    invoices: Tuple[Invoice, ...] = ()
    failure: Optional[ExtractionError] = None

    @property
    def invoice(self) -> Optional[Invoice]:
        """Primeira nota do arquivo (None em caso de falha)."""
        return self.invoices[0] if self.invoices else None

    @property
    def error(self) -> Optional[str]:
        return self.failure.describe() if self.failure else None


class InvoiceExtractor:
    """
    Extrator de NFS-e orientado por tabela de aliases.

    O extrator não guarda estado entre arquivos: a mesma instância pode
    ser compartilhada entre threads.

    Usage:
        extractor = InvoiceExtractor()
        result = extractor.extract_file("nota.xml")
        if result.success:
            print(result.invoice.number)
    """

    def __init__(
        self,
        config: ExtractionConfig = DEFAULT_CONFIG,
        parser: Optional[XmlTreeParser] = None,
    ):
        self.config = config
        self.parser = parser or XmlTreeParser()

    # ==================== API pública ====================

    def extract_all(self, root: GenericXmlNode) -> List[Invoice]:
        """
        Extrai todas as notas da árvore, na ordem do documento.

        O alias de raiz de maior prioridade presente define as subárvores
        das notas; uma resposta de consulta com vários CompNfse gera uma
        nota por InfNfse. O arquivo falha inteiro na primeira nota inválida.

        Raises:
            MissingFieldError, DateFormatError, NumberFormatError,
            TaxIdFormatError: no primeiro campo ausente/inválido.
        """
        for alias in self.config.root:
            subtrees = root.find_all(alias)
            if subtrees:
                break
        else:
            raise MissingFieldError("invoice")

        invoices = []
        for position, inf_nfse in enumerate(subtrees, start=1):
            try:
                invoices.append(self._extract_invoice(inf_nfse))
            except ExtractionError:
                if len(subtrees) > 1:
                    logger.debug(f"Falha na nota {position} de {len(subtrees)} do arquivo")
                raise
        return invoices

    def extract(self, root: GenericXmlNode) -> Invoice:
        """Extrai a primeira nota da árvore (ver ``extract_all``)."""
        inf_nfse = root.find_first_of(self.config.root)
        if inf_nfse is None:
            raise MissingFieldError("invoice")
        return self._extract_invoice(inf_nfse)

    def extract_bytes(self, data: bytes) -> Invoice:
        """Parse + extração de um conteúdo XML em memória."""
        return self.extract(self.parser.parse(data))

    def extract_all_bytes(self, data: bytes) -> List[Invoice]:
        """Parse + extração de todas as notas de um conteúdo XML em memória."""
        return self.extract_all(self.parser.parse(data))

    def extract_file(self, xml_path: Union[str, Path]) -> XmlExtractionResult:
        """
        Lê, faz o parse e extrai um arquivo XML.

        Nunca levanta exceção para falhas de dados: o erro tipado vem
        em ``XmlExtractionResult.failure``.

        Args:
            xml_path: Caminho do arquivo XML

        Returns:
            XmlExtractionResult com as notas extraídas ou a falha
        """
        try:
            invoices = self.extract_all_bytes(read_xml_file(xml_path))
        except ExtractionError as e:
            logger.debug(f"Falha ao extrair {xml_path}: {e.describe()}")
            return XmlExtractionResult(success=False, failure=e)

        return XmlExtractionResult(success=True, invoices=tuple(invoices))

    # ==================== Métodos Auxiliares ====================

    def _extract_invoice(self, inf_nfse: GenericXmlNode) -> Invoice:
        """
        Extrai uma nota da sua subárvore.

        Raises:
            MissingFieldError, DateFormatError, NumberFormatError,
            TaxIdFormatError: no primeiro campo ausente/inválido.
        """
        number = self._require_text(inf_nfse, self.config.number, "number")

        raw_date = self._require_text(inf_nfse, self.config.issue_date, "issueDate")
        issue_date = parse_invoice_date(raw_date)
        if issue_date is None:
            raise DateFormatError("issueDate", raw_date)

        provider = self._extract_party(inf_nfse, self.config.provider, "provider")
        recipient = self._extract_party(inf_nfse, self.config.recipient, "recipient")

        raw_value = self._require_text(
            inf_nfse, self.config.total_service_value, "totalServiceValue"
        )
        total = parse_decimal_amount(raw_value)
        if total is None:
            raise NumberFormatError("totalServiceValue", raw_value)
        if total < 0:
            raise NumberFormatError("totalServiceValue", raw_value, reason="valor negativo")

        description = self._find_text(inf_nfse, self.config.service_description) or ""

        return Invoice(
            number=number,
            issue_date=issue_date,
            provider=provider,
            recipient=recipient,
            total_service_value=total,
            service_description=description,
        )

    def _extract_party(
        self, inf_nfse: GenericXmlNode, aliases: PartyAliases, label: str
    ) -> Party:
        """
        Extrai prestador ou tomador.

        Com o elemento da parte presente, nome e CPF/CNPJ são buscados só
        dentro dele. Sem o elemento, usa os aliases "achatados" na raiz
        da nota.
        """
        node = inf_nfse.find_first_of(aliases.node)
        if node is not None:
            scope, name_aliases, tax_id_aliases = node, aliases.legal_name, aliases.tax_id
        else:
            scope, name_aliases, tax_id_aliases = (
                inf_nfse,
                aliases.flat_legal_name,
                aliases.flat_tax_id,
            )

        legal_name = self._require_text(scope, name_aliases, f"{label}.legalName")

        tax_field = f"{label}.taxId"
        raw_tax_id = self._require_text(scope, tax_id_aliases, tax_field)
        digits = normalize_digits(raw_tax_id)
        try:
            tax_id = TaxId.from_digits(digits)
        except ValueError:
            raise TaxIdFormatError(tax_field, raw_tax_id, len(digits))

        return Party(legal_name=legal_name, tax_id=tax_id)

    def _require_text(
        self, scope: GenericXmlNode, aliases: Iterable[str], field: str
    ) -> str:
        text = self._find_text(scope, aliases)
        if text is None:
            raise MissingFieldError(field)
        return text

    def _find_text(self, scope: GenericXmlNode, aliases: Iterable[str]) -> Optional[str]:
        """
        Texto do primeiro alias (em ordem de prioridade) com conteúdo.

        Alias encontrado mas vazio conta como ausente e o próximo é tentado.
        """
        for alias in aliases:
            node = self._find_path(scope, alias)
            if node is None:
                continue
            text = node.text.strip()
            if text:
                return text
        return None

    @staticmethod
    def _find_path(scope: GenericXmlNode, alias: str) -> Optional[GenericXmlNode]:
        # "CPFCNPJTomador/CNPJ": busca cada trecho dentro do anterior
        node = scope
        for part in alias.split("/"):
            node = node.find_first(part)
            if node is None:
                return None
        return node


def read_xml_file(xml_path: Union[str, Path]) -> bytes:
    """
    Lê os bytes de um arquivo XML.

    Raises:
        FileReadError: arquivo inexistente, pasta ou sem permissão.
    """
    path = Path(xml_path)
    try:
        return path.read_bytes()
    except FileNotFoundError:
        raise FileReadError(f"Arquivo não encontrado: {path}")
    except OSError as e:
        raise FileReadError(f"Erro ao ler arquivo {path}: {e.strerror or e}")


def extract_xml(xml_path: Union[str, Path]) -> XmlExtractionResult:
    """
    Função utilitária para extrair dados de um XML.

    Args:
        xml_path: Caminho do arquivo XML

    Returns:
        XmlExtractionResult com a nota extraída ou a falha
    """
    extractor = InvoiceExtractor()
    return extractor.extract_file(xml_path)
