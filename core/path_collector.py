"""
Descoberta de arquivos XML a partir de arquivos e pastas selecionados.

Regras:
- Arquivo: entra apenas se a extensão for .xml (sem diferenciar maiúsculas).
- Pasta: percorrida recursivamente, em ordem alfabética em cada nível,
  com subpastas expandidas no lugar (busca em profundidade).
- Pastas já visitadas (pelo caminho canônico) são ignoradas, o que evita
  loops infinitos quando links simbólicos formam ciclos.
- Pastas que não podem ser listadas geram um diagnóstico e a varredura
  continua com as pastas irmãs.

Nenhum conteúdo de arquivo é lido aqui, apenas stat/listagem.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


@dataclass(frozen=True)
class CollectionDiagnostic:
    """Problema encontrado durante a varredura (não é falha de arquivo)."""
    path: str
    reason: str


@dataclass
class CollectedPaths:
    """
    Resultado da varredura.

    Iterar sobre o objeto (ou usar len()) opera sobre ``paths``.

    Attributes:
        paths: Caminhos absolutos, sem duplicatas, na ordem de descoberta.
        diagnostics: Pastas que não puderam ser listadas.
    """
    paths: List[str] = field(default_factory=list)
    diagnostics: List[CollectionDiagnostic] = field(default_factory=list)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths)

    def __len__(self) -> int:
        return len(self.paths)

    def __getitem__(self, index):
        return self.paths[index]


class PathCollector:
    """
    Expande as entradas do usuário em uma lista ordenada de arquivos XML.

    Usage:
        collector = PathCollector()
        collected = collector.collect(["notas/", "avulsa.XML"])
        for path in collected:
            ...
    """

    def __init__(self, follow_symlinks: Optional[bool] = None, extension: Optional[str] = None):
        from config import settings

        self.follow_symlinks = (
            settings.FOLLOW_SYMLINKS if follow_symlinks is None else follow_symlinks
        )
        self.extension = (extension or settings.XML_EXTENSION).lower()

    def collect(self, entries: Iterable[PathLike]) -> CollectedPaths:
        result = CollectedPaths()
        seen_files: Set[str] = set()
        visited_dirs: Set[str] = set()

        for entry in entries:
            entry_path = os.path.abspath(os.fspath(entry))

            if os.path.isdir(entry_path):
                self._walk(entry_path, result, seen_files, visited_dirs)
            elif self._is_xml(entry_path):
                # Arquivo inexistente segue adiante: o lote reporta IoError
                self._add(entry_path, result, seen_files)
            else:
                logger.debug(f"Ignorando entrada que não é XML: {entry_path}")

        logger.info(
            f"{len(result.paths)} arquivo(s) XML encontrado(s), "
            f"{len(result.diagnostics)} diagnóstico(s)"
        )
        return result

    def _walk(
        self,
        directory: str,
        result: CollectedPaths,
        seen_files: Set[str],
        visited_dirs: Set[str],
    ) -> None:
        """
        Busca em profundidade sem recursão (árvores de pastas muito fundas).

        A pilha guarda um iterador por nível; a subpasta é empilhada e
        esgotada antes de o nível de cima continuar.
        """
        listing = self._list_dir(directory, result, visited_dirs)
        if listing is None:
            return
        stack: List[Iterator[os.DirEntry]] = [iter(listing)]

        while stack:
            item = next(stack[-1], None)
            if item is None:
                stack.pop()
                continue

            try:
                if item.is_symlink() and not self.follow_symlinks:
                    continue
                if item.is_dir(follow_symlinks=self.follow_symlinks):
                    sub_listing = self._list_dir(item.path, result, visited_dirs)
                    if sub_listing is not None:
                        stack.append(iter(sub_listing))
                elif item.is_file(follow_symlinks=self.follow_symlinks) and self._is_xml(item.name):
                    self._add(item.path, result, seen_files)
            except OSError as e:
                logger.warning(f"Não foi possível inspecionar {item.path}: {e}")
                result.diagnostics.append(CollectionDiagnostic(path=item.path, reason=str(e)))

    @staticmethod
    def _list_dir(
        directory: str, result: CollectedPaths, visited_dirs: Set[str]
    ) -> Optional[List[os.DirEntry]]:
        """Entradas da pasta em ordem alfabética, ou None se já visitada/ilegível."""
        canonical = os.path.realpath(directory)
        if canonical in visited_dirs:
            logger.debug(f"Pasta já visitada, ignorando: {directory}")
            return None
        visited_dirs.add(canonical)

        try:
            with os.scandir(directory) as it:
                return sorted(it, key=lambda e: e.name)
        except OSError as e:
            logger.warning(f"Não foi possível listar a pasta {directory}: {e}")
            result.diagnostics.append(CollectionDiagnostic(path=directory, reason=str(e)))
            return None

    def _is_xml(self, path: str) -> bool:
        return os.path.splitext(path)[1].lower() == self.extension

    @staticmethod
    def _add(path: str, result: CollectedPaths, seen_files: Set[str]) -> None:
        path = os.path.abspath(path)
        if path in seen_files:
            return
        seen_files.add(path)
        result.paths.append(path)


def collect_paths(
    entries: Iterable[PathLike],
    follow_symlinks: Optional[bool] = None,
) -> CollectedPaths:
    """
    Função utilitária para coletar XMLs sem instanciar a classe.

    Args:
        entries: Arquivos e/ou pastas selecionados pelo usuário
        follow_symlinks: Sobrescreve settings.FOLLOW_SYMLINKS

    Returns:
        CollectedPaths com os caminhos e os diagnósticos da varredura
    """
    return PathCollector(follow_symlinks=follow_symlinks).collect(entries)
