"""
Processador de Lotes (Batch Processor).

Recebe uma lista ordenada de caminhos de XML e executa, para cada um:

    leitura -> XmlTreeParser -> InvoiceExtractor -> ProcessingResult

Garantias:
- Falha em um arquivo (I/O, parse ou extração) nunca afeta os demais:
  a exceção vira um ProcessingFailure na fronteira do arquivo.
- O resultado sai na ordem dos caminhos recebidos. Em modo paralelo,
  cada tarefa carrega o índice do arquivo e grava no slot correspondente.
- Cancelamento: nenhum arquivo novo começa depois do sinal; o resultado
  de um arquivo em andamento é descartado; os concluídos são mantidos.
"""
import logging
import os
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from core.batch_result import BatchResult
from core.exceptions import ExtractionError, UnexpectedError
from core.models import ProcessingFailure, ProcessingResult, ProcessingSuccess
from core.path_collector import CollectedPaths, PathCollector
from extractors.xml_extractor import InvoiceExtractor, read_xml_file

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class BatchProcessor:
    """
    Processador de lotes de arquivos XML de NFS-e.

    Attributes:
        extractor: Extrator de notas (sem estado, compartilhado entre threads)
        max_workers: Número de threads; 1 processa sequencialmente

    Usage:
        batch_processor = BatchProcessor()
        result = batch_processor.process_batch(["a.xml", "b.xml"])
        print(result.success_count, result.failure_count)
    """

    def __init__(
        self,
        extractor: Optional[InvoiceExtractor] = None,
        max_workers: Optional[int] = None,
    ):
        """
        Inicializa o processador de lotes.

        Args:
            extractor: Extrator de notas (DIP)
            max_workers: Sobrescreve settings.BATCH_MAX_WORKERS
        """
        from config import settings

        self.extractor = extractor or InvoiceExtractor()
        self.max_workers = max(1, max_workers or settings.BATCH_MAX_WORKERS)

    def process_batch(
        self,
        paths: Iterable[PathLike],
        cancel_event: Optional[threading.Event] = None,
    ) -> BatchResult:
        """
        Processa uma lista de arquivos XML.

        Args:
            paths: Caminhos na ordem em que devem aparecer no resultado
            cancel_event: Sinal de cancelamento (opcional)

        Returns:
            BatchResult com um resultado por arquivo concluído, em ordem
        """
        paths = [os.fspath(p) for p in paths]
        cancel_event = cancel_event or threading.Event()
        start_time = time.time()

        # Um slot por arquivo: a ordem final independe da ordem de término
        slots: List[Optional[ProcessingResult]] = [None] * len(paths)

        if self.max_workers == 1 or len(paths) <= 1:
            self._run_sequential(paths, slots, cancel_event)
        else:
            self._run_parallel(paths, slots, cancel_event)

        result = BatchResult(
            results=[r for r in slots if r is not None],
            cancelled=cancel_event.is_set(),
            processing_time=time.time() - start_time,
        )

        if result.cancelled:
            logger.warning(
                f"Lote cancelado: {result.total} de {len(paths)} arquivo(s) concluído(s)"
            )
        logger.info(
            f"Lote processado: {result.success_count} sucesso(s), "
            f"{result.failure_count} falha(s) em {result.processing_time:.2f}s"
        )
        return result

    def _run_sequential(
        self,
        paths: List[str],
        slots: List[Optional[ProcessingResult]],
        cancel_event: threading.Event,
    ) -> None:
        for index, path in enumerate(paths):
            if cancel_event.is_set():
                break
            slots[index] = self._process_single_file(path, cancel_event)

    def _run_parallel(
        self,
        paths: List[str],
        slots: List[Optional[ProcessingResult]],
        cancel_event: threading.Event,
    ) -> None:
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(self._process_single_file, path, cancel_event): index
                for index, path in enumerate(paths)
            }
            for future in as_completed(futures):
                if future.cancelled():
                    continue
                slots[futures[future]] = future.result()

                if cancel_event.is_set():
                    for pending in futures:
                        pending.cancel()
                    break

        # Ao sair do with, toda tarefa não cancelada terminou. Arquivos concluídos
        # que ainda não tinham sido lidos do as_completed entram no resultado;
        # os que estavam em andamento no cancelamento já devolveram None.
        for future, index in futures.items():
            if slots[index] is None and future.done() and not future.cancelled():
                slots[index] = future.result()

    def _process_single_file(
        self, file_path: str, cancel_event: threading.Event
    ) -> Optional[ProcessingResult]:
        """
        Processa um único arquivo, isolando qualquer falha.

        Returns:
            ProcessingResult, ou None se o lote foi cancelado antes ou
            durante o processamento deste arquivo
        """
        if cancel_event.is_set():
            return None

        try:
            invoices = self.extractor.extract_all_bytes(read_xml_file(file_path))
            outcome: ProcessingResult = ProcessingSuccess(
                source_path=file_path, invoices=tuple(invoices)
            )
            logger.debug(f"{len(invoices)} NFS-e extraída(s) de {file_path}")
        except ExtractionError as e:
            logger.warning(f"Falha ao processar {file_path}: {e.describe()}")
            outcome = ProcessingFailure(source_path=file_path, failure=e)
        except Exception as e:
            logger.exception(f"Erro inesperado ao processar {file_path}")
            outcome = ProcessingFailure(
                source_path=file_path,
                failure=UnexpectedError(f"Erro inesperado: {type(e).__name__}: {e}"),
            )

        # Resultado parcial de arquivo em andamento no cancelamento é descartado
        if cancel_event.is_set():
            logger.debug(f"Cancelado durante {file_path}, resultado descartado")
            return None
        return outcome


def process_batch(
    paths: Iterable[PathLike],
    cancel_event: Optional[threading.Event] = None,
    max_workers: Optional[int] = None,
) -> BatchResult:
    """
    Função utilitária para processar um lote.

    Wrapper simples para uso direto sem instanciar a classe.

    Args:
        paths: Caminhos dos arquivos XML
        cancel_event: Sinal de cancelamento (opcional)
        max_workers: Número de threads (default: settings.BATCH_MAX_WORKERS)

    Returns:
        BatchResult com os resultados na ordem dos caminhos
    """
    processor = BatchProcessor(max_workers=max_workers)
    return processor.process_batch(paths, cancel_event)


def process_selection(
    entries: Iterable[PathLike],
    cancel_event: Optional[threading.Event] = None,
    max_workers: Optional[int] = None,
    follow_symlinks: Optional[bool] = None,
) -> Tuple[CollectedPaths, BatchResult]:
    """
    Coleta os XMLs das entradas do usuário e processa o lote.

    Args:
        entries: Arquivos e/ou pastas selecionados
        cancel_event: Sinal de cancelamento (opcional)
        max_workers: Número de threads
        follow_symlinks: Sobrescreve settings.FOLLOW_SYMLINKS

    Returns:
        Tupla (caminhos coletados com diagnósticos, resultado do lote)
    """
    collected = PathCollector(follow_symlinks=follow_symlinks).collect(entries)
    batch = process_batch(collected.paths, cancel_event, max_workers)
    return collected, batch
