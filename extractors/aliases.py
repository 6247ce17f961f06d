"""
Tabela de aliases dos layouts municipais de NFS-e.

Cada campo é resolvido por uma lista ordenada de nomes de elemento. A
ordem é a prioridade: o primeiro alias presente no documento vence, mesmo
que outro alias apareça antes no XML. Um alias pode ser um caminho
("CPFCNPJPrestador/CNPJ"): cada trecho é buscado dentro do anterior.

Layouts cobertos:
    ABRASF 1.x  <CompNfse><Nfse><InfNfse>...<PrestadorServico>...<TomadorServico>
    ABRASF 2.x  <InfNfse>...<DeclaracaoPrestacaoServico><InfDeclaracaoPrestacaoServico>
                ...<Servico><Valores><ValorServicos>...<Tomador>
    Nacional    <NFSe><infNFSe><nNFSe>...<emit>...<DPS><infDPS>...<toma>
    SigISS      <NFe><ChaveNFe><NumeroNFe>...<RazaoSocialPrestador>...<CPFCNPJTomador>
"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class PartyAliases:
    """
    Aliases de prestador ou tomador.

    Attributes:
        node: Elemento que agrupa os dados da parte (PrestadorServico, toma...).
        legal_name: Razão social, buscada dentro do elemento da parte.
        tax_id: CPF/CNPJ, buscado dentro do elemento da parte.
        flat_legal_name: Usado só quando não há elemento da parte
            (layouts "achatados" como o SigISS).
        flat_tax_id: Idem, para CPF/CNPJ.
    """
    node: Tuple[str, ...]
    legal_name: Tuple[str, ...]
    tax_id: Tuple[str, ...]
    flat_legal_name: Tuple[str, ...] = ()
    flat_tax_id: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ExtractionConfig:
    """Configuração imutável do InvoiceExtractor."""
    root: Tuple[str, ...]
    number: Tuple[str, ...]
    issue_date: Tuple[str, ...]
    total_service_value: Tuple[str, ...]
    service_description: Tuple[str, ...]
    provider: PartyAliases
    recipient: PartyAliases


LEGAL_NAME_ALIASES = ("RazaoSocial", "NomeRazaoSocial", "xNome", "Nome", "NomeFantasia")
TAX_ID_ALIASES = ("Cnpj", "Cpf", "CNPJ", "CPF", "CpfCnpj", "CPFCNPJ")


DEFAULT_CONFIG = ExtractionConfig(
    root=(
        "InfNfse",
        "InfDeclaracaoPrestacaoServico",
        "Nfse",
        "infNFSe",
        "InfRps",
        "NFe",
    ),
    number=(
        "Numero",
        "NumeroNfse",
        "NumeroNota",
        "NumeroNFe",
        "nNFSe",
    ),
    issue_date=(
        "DataEmissao",
        "DataEmissaoNfse",
        "DataEmissaoNFe",
        "DataHoraEmissao",
        "dhEmi",
        "dhProc",
        "dtEmissao",
    ),
    total_service_value=(
        "ValorServicos",
        "ValorTotalServicos",
        "ValorServico",
        "vServ",
    ),
    service_description=(
        "Discriminacao",
        "xDescServ",
        "DescricaoServico",
        "Descricao",
    ),
    provider=PartyAliases(
        node=("PrestadorServico", "Prestador", "DadosPrestador", "emit", "prest"),
        legal_name=LEGAL_NAME_ALIASES,
        tax_id=TAX_ID_ALIASES,
        flat_legal_name=("RazaoSocialPrestador",),
        flat_tax_id=("CPFCNPJPrestador/CNPJ", "CPFCNPJPrestador/CPF"),
    ),
    recipient=PartyAliases(
        node=("TomadorServico", "Tomador", "DadosTomador", "toma"),
        legal_name=LEGAL_NAME_ALIASES,
        tax_id=TAX_ID_ALIASES,
        flat_legal_name=("RazaoSocialTomador",),
        flat_tax_id=("CPFCNPJTomador/CNPJ", "CPFCNPJTomador/CPF"),
    ),
)
