"""
Parser tolerante de XML para NFS-e.

Cada prefeitura usa namespaces de forma diferente: alguns XMLs declaram o
namespace ABRASF, outros usam prefixos (ns2:, nfse:) sem declará-los e
outros não usam namespace nenhum. Para a extração, ``ns:Numero`` e
``Numero`` são o mesmo elemento, então os prefixos e as declarações
xmlns são removidos ANTES do parse.

Etapas:
1. Remove BOM e identifica o encoding declarado no prólogo (padrão UTF-8)
2. Decodifica os bytes (bytes inválidos -> MalformedXmlError com offset)
3. Remove prefixos de namespace das tags e atributos
4. Faz o parse com xml.etree.ElementTree
5. Converte para GenericXmlNode (nome local, atributos, texto, filhos)

Qualquer problema vira MalformedXmlError; nenhuma outra exceção escapa.
"""

import codecs
import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from core.exceptions import MalformedXmlError

logger = logging.getLogger(__name__)

DEFAULT_ENCODING = "utf-8"

# Pseudo-atributo encoding do prólogo (lido dos primeiros bytes)
DECLARED_ENCODING_RE = re.compile(
    rb"""^\s*<\?xml[^>]*?encoding\s*=\s*["']([A-Za-z0-9._\-]+)["']"""
)
# Mesmo pseudo-atributo, já no texto decodificado (removido antes do parse)
PROLOG_ENCODING_RE = re.compile(r"""^(\s*<\?xml[^>]*?)\s+encoding\s*=\s*["'][^"']*["']""")

# Marcação que NÃO deve ser tocada: CDATA, comentários, instruções, DOCTYPE.
# Tags de abertura/fechamento capturam (barra, nome, atributos).
MARKUP_RE = re.compile(
    r"<!\[CDATA\[.*?\]\]>"
    r"|<!--.*?-->"
    r"|<\?.*?\?>"
    r"|<!DOCTYPE[^\[>]*(?:\[.*?\])?\s*>"
    r"""|<(/?)([^\s/>!?]+)((?:[^>"']|"[^"]*"|'[^']*')*)>""",
    re.DOTALL,
)
ATTRIBUTE_RE = re.compile(r"""(\s+)([^\s=/>]+)(\s*=\s*)("[^"]*"|'[^']*')""")


@dataclass
class GenericXmlNode:
    """
    Nó genérico da árvore, sem namespace.

    Attributes:
        local_name: Nome do elemento sem prefixo (ns:Numero -> Numero).
        attributes: Atributos sem prefixo, valores já sem entidades.
        text: Texto direto do elemento ('' quando só há espaços).
        children: Filhos na ordem do documento.
    """
    local_name: str
    attributes: Dict[str, str] = field(default_factory=dict)
    text: str = ""
    children: List["GenericXmlNode"] = field(default_factory=list)

    def iter(self) -> Iterator["GenericXmlNode"]:
        """Percorre a subárvore em profundidade (pré-ordem), na ordem do documento."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find_first(self, name: str) -> Optional["GenericXmlNode"]:
        """Primeiro nó da subárvore (incluindo o próprio) com o nome local dado."""
        for node in self.iter():
            if node.local_name == name:
                return node
        return None

    def find_first_of(self, names: Iterable[str]) -> Optional["GenericXmlNode"]:
        """
        Busca por uma lista de aliases em ordem de prioridade.

        O primeiro alias que existir na subárvore vence, mesmo que outro
        alias apareça antes no documento.
        """
        for name in names:
            node = self.find_first(name)
            if node is not None:
                return node
        return None

    def find_all(self, name: str) -> List["GenericXmlNode"]:
        """
        Todos os nós com o nome dado, na ordem do documento.

        A busca não desce dentro de um nó encontrado: um InfNfse aninhado
        em outro InfNfse não é listado duas vezes.
        """
        found = []
        stack = [self]
        while stack:
            node = stack.pop()
            if node.local_name == name:
                found.append(node)
                continue
            stack.extend(reversed(node.children))
        return found


class XmlTreeParser:
    """
    Converte os bytes de um arquivo em uma árvore de GenericXmlNode.

    Usage:
        root = XmlTreeParser().parse(path.read_bytes())
    """

    def parse(self, data: bytes) -> GenericXmlNode:
        try:
            text = self._decode(data)
            if not text.strip():
                raise MalformedXmlError("Arquivo XML vazio", byte_offset=0)

            text = self._remove_namespaces(text)
            element = ET.fromstring(text)
            return self._to_node(element)

        except MalformedXmlError:
            raise
        except ET.ParseError as e:
            line, column = getattr(e, "position", (None, None))
            raise MalformedXmlError(
                f"XML malformado (linha {line}, coluna {column}): {e}",
                line=line,
                column=column,
            ) from e
        except (ValueError, LookupError, RecursionError) as e:
            raise MalformedXmlError(f"XML malformado: {e}") from e

    def _decode(self, data: bytes) -> str:
        """
        Decodifica os bytes usando o encoding declarado no prólogo.

        BOM UTF-16 define o encoding; BOM UTF-8 é removido antes de
        inspecionar o prólogo.
        """
        if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
            text = self._decode_with(data, "utf-16", offset=0)
        else:
            offset = 0
            if data.startswith(codecs.BOM_UTF8):
                offset = len(codecs.BOM_UTF8)
                data = data[offset:]

            encoding = self._declared_encoding(data) or DEFAULT_ENCODING
            text = self._decode_with(data, encoding, offset)

        # O texto já está decodificado; o encoding do prólogo não vale mais
        return PROLOG_ENCODING_RE.sub(r"\1", text, count=1)

    @staticmethod
    def _declared_encoding(data: bytes) -> Optional[str]:
        match = DECLARED_ENCODING_RE.match(data[:512])
        if not match:
            return None

        declared = match.group(1).decode("ascii")
        try:
            codecs.lookup(declared)
        except LookupError:
            logger.warning(f"Encoding desconhecido no prólogo '{declared}', usando {DEFAULT_ENCODING}")
            return None
        return declared

    @staticmethod
    def _decode_with(data: bytes, encoding: str, offset: int) -> str:
        try:
            return data.decode(encoding)
        except UnicodeDecodeError as e:
            byte_offset = offset + e.start
            raise MalformedXmlError(
                f"Sequência de bytes inválida para {encoding} no byte {byte_offset}",
                byte_offset=byte_offset,
            ) from e

    def _remove_namespaces(self, xml_content: str) -> str:
        """
        Remove declarações xmlns e prefixos de namespace das tags e atributos.

        CDATA, comentários e instruções de processamento ficam intactos.

        Sem os prefixos, ``<a:Numero>...</b:Numero>`` passaria no parser;
        por isso o fechamento de cada tag é conferido aqui contra o nome
        qualificado original.
        """
        open_tags: List[str] = []

        def check_and_strip(match: "re.Match") -> str:
            name = match.group(2)
            if name is not None:
                if match.group(1):
                    if open_tags and open_tags.pop() != name:
                        line = xml_content.count("\n", 0, match.start()) + 1
                        raise MalformedXmlError(
                            f"XML malformado (linha {line}): tag de fechamento "
                            f"</{name}> não corresponde à abertura",
                            line=line,
                        )
                elif not match.group(3).rstrip().endswith("/"):
                    open_tags.append(name)
            return self._strip_tag(match)

        return MARKUP_RE.sub(check_and_strip, xml_content)

    def _strip_tag(self, match: "re.Match") -> str:
        name = match.group(2)
        if name is None:
            return match.group(0)

        local_name = name.rsplit(":", 1)[-1]
        seen = set()

        def strip_attribute(attr: "re.Match") -> str:
            spacing, attr_name, equals, value = attr.groups()
            if attr_name == "xmlns" or attr_name.startswith("xmlns:"):
                return ""
            local_attr = attr_name.rsplit(":", 1)[-1]
            # xsi:type e type viram o mesmo nome; mantém o primeiro
            if local_attr in seen:
                return ""
            seen.add(local_attr)
            return f"{spacing}{local_attr}{equals}{value}"

        attributes = ATTRIBUTE_RE.sub(strip_attribute, match.group(3))
        return f"<{match.group(1)}{local_name}{attributes}>"

    @staticmethod
    def _local(name: str) -> str:
        # '{namespace}Nome' ou 'ns:Nome' -> 'Nome'
        return name.rsplit("}", 1)[-1].rsplit(":", 1)[-1]

    def _to_node(self, element: ET.Element) -> GenericXmlNode:
        """Converte a árvore do ElementTree sem recursão (XMLs muito aninhados)."""
        root = self._make_node(element)
        stack: List[Tuple[ET.Element, GenericXmlNode]] = [(element, root)]

        while stack:
            current, node = stack.pop()
            for child in current:
                child_node = self._make_node(child)
                node.children.append(child_node)
                stack.append((child, child_node))

        return root

    def _make_node(self, element: ET.Element) -> GenericXmlNode:
        parts = [element.text or ""]
        parts.extend(child.tail or "" for child in element)
        text = "".join(parts)

        return GenericXmlNode(
            local_name=self._local(element.tag),
            attributes={self._local(k): v for k, v in element.attrib.items()},
            text=text if text.strip() else "",
        )


def parse_xml_bytes(data: bytes) -> GenericXmlNode:
    """Atalho para ``XmlTreeParser().parse(data)``."""
    return XmlTreeParser().parse(data)
