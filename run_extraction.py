"""
Processador de Notas Fiscais (linha de comando).

Recebe arquivos e/ou pastas, coleta os XMLs de NFS-e (recursivamente nas
pastas), extrai as notas e exibe cada uma, seguidas das falhas e do resumo.

Funcionalidades:
1.  Seleção de arquivos XML e/ou pastas (varredura recursiva).
2.  Extração tolerante a variações de layout municipal.
3.  Processamento paralelo com ordem de saída preservada.
4.  Ctrl+C cancela o lote mantendo as notas já processadas.

Usage:
    python run_extraction.py notas/ avulsa.xml --workers 4
"""

import argparse
import signal
import sys
import threading
from typing import List, Optional

from config import settings
from core.batch_processor import BatchProcessor
from core.batch_result import BatchResult
from core.models import Invoice, ProcessingFailure
from core.path_collector import CollectedPaths, PathCollector
from extractors.utils import format_brl, format_tax_id

EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_NOTHING_FOUND = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Extrai dados de arquivos XML de NFS-e (arquivos ou pastas)'
    )
    parser.add_argument('paths', nargs='+',
                        help='Arquivos XML e/ou pastas a processar')
    parser.add_argument('--workers', type=int, default=None,
                        help=f'Número de threads (default: {settings.BATCH_MAX_WORKERS})')
    parser.add_argument('--follow-symlinks', action='store_true',
                        help='Segue links simbólicos dentro das pastas')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Exibe logs de depuração')
    return parser


def render_invoice(invoice: Invoice) -> str:
    provider_tax = format_tax_id(invoice.provider.tax_id)
    recipient_tax = format_tax_id(invoice.recipient.tax_id)
    lines = [
        f"  Número: {invoice.number}",
        f"  Data de Emissão: {invoice.issue_date.strftime('%d/%m/%Y')}",
        f"  Prestador: {invoice.provider.legal_name}",
        f"  {invoice.provider.tax_id.kind.name} Prestador: {provider_tax}",
        f"  Tomador: {invoice.recipient.legal_name}",
        f"  {invoice.recipient.tax_id.kind.name} Tomador: {recipient_tax}",
        f"  Valor: {format_brl(invoice.total_service_value)}",
    ]
    if invoice.service_description:
        lines.append(f"  Descrição: {invoice.service_description}")
    return "\n".join(lines)


def render_failure(failure: ProcessingFailure) -> str:
    return f"  ❌ {failure.source_path}\n     {failure.reason}"


def render_report(collected: CollectedPaths, batch: BatchResult) -> str:
    out: List[str] = []

    for diagnostic in collected.diagnostics:
        out.append(f"⚠️ Pasta não pôde ser lida: {diagnostic.path} ({diagnostic.reason})")

    for success in batch.successes:
        out.append(f"\n✅ {success.source_path}")
        for position, invoice in enumerate(success.invoices, start=1):
            if len(success.invoices) > 1:
                out.append(f"  --- Nota {position} de {len(success.invoices)} ---")
            out.append(render_invoice(invoice))

    if batch.failures:
        out.append(f"\n⚠️ {batch.failure_count} arquivo(s) com falha:")
        for failure in batch.failures:
            out.append(render_failure(failure))

    out.append("\n" + "=" * 80)
    out.append(f"Notas Fiscais Processadas: {len(batch.invoices)}")
    out.append(f"Falhas: {batch.failure_count}")
    out.append(f"Valor total: {format_brl(batch.get_valor_total())}")
    if batch.cancelled:
        out.append(f"⏹️ Cancelado: {batch.total} de {len(collected)} arquivo(s) concluído(s)")
    out.append("=" * 80)
    return "\n".join(out)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    settings.configure_logging(level='DEBUG' if args.verbose else None)

    collector = PathCollector(follow_symlinks=args.follow_symlinks or None)
    collected = collector.collect(args.paths)

    if not collected.paths:
        for diagnostic in collected.diagnostics:
            print(f"⚠️ Pasta não pôde ser lida: {diagnostic.path} ({diagnostic.reason})")
        print("📭 Nenhum arquivo XML encontrado.")
        return EXIT_NOTHING_FOUND

    print(f"📦 {len(collected)} arquivo(s) XML encontrado(s). Iniciando processamento...")

    # Ctrl+C cancela o lote sem perder o que já foi processado
    cancel_event = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel_event.set())
    try:
        batch = BatchProcessor(max_workers=args.workers).process_batch(
            collected.paths, cancel_event
        )
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    print(render_report(collected, batch))
    return EXIT_OK if batch.failure_count == 0 and not batch.cancelled else EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
