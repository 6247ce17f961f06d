"""
Resultado de processamento em lote.

Um lote é a lista ordenada de resultados (sucesso ou falha), um por
arquivo de entrada, na MESMA ordem dos caminhos recebidos,
independentemente da ordem em que as threads terminaram.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List

from core.models import Invoice, ProcessingFailure, ProcessingResult, ProcessingSuccess


@dataclass
class BatchResult:
    """
    Resultado do processamento de um lote de arquivos XML.

    Attributes:
        results: Um ProcessingResult por arquivo, na ordem de entrada
        cancelled: True se o lote foi cancelado antes de terminar
        processing_time: Duração do processamento em segundos
    """

    results: List[ProcessingResult] = field(default_factory=list)
    cancelled: bool = False
    processing_time: float = 0.0

    def __iter__(self):
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def __getitem__(self, index: int) -> ProcessingResult:
        return self.results[index]

    @property
    def successes(self) -> List[ProcessingSuccess]:
        """Retorna apenas os arquivos extraídos com sucesso."""
        return [r for r in self.results if isinstance(r, ProcessingSuccess)]

    @property
    def failures(self) -> List[ProcessingFailure]:
        """Retorna apenas os arquivos que falharam."""
        return [r for r in self.results if isinstance(r, ProcessingFailure)]

    @property
    def invoices(self) -> List[Invoice]:
        """Todas as notas extraídas, na ordem dos arquivos e do documento."""
        return [inv for r in self.successes for inv in r.invoices]

    @property
    def total(self) -> int:
        """Total de arquivos com resultado."""
        return len(self.results)

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def failure_count(self) -> int:
        return len(self.failures)

    @property
    def is_empty(self) -> bool:
        return not self.results

    def get_valor_total(self) -> Decimal:
        """Soma dos valores de serviço das notas extraídas."""
        return sum((inv.total_service_value for inv in self.invoices), Decimal("0"))

    def failures_by_kind(self) -> Dict[str, int]:
        """Contagem de falhas por tipo (IoError, MalformedXml, ...)."""
        counts: Dict[str, int] = {}
        for failure in self.failures:
            counts[failure.kind] = counts.get(failure.kind, 0) + 1
        return counts

    def to_summary(self) -> Dict[str, Any]:
        """Resumo plano do lote, para log e exibição."""
        return {
            "total": self.total,
            "sucessos": self.success_count,
            "falhas": self.failure_count,
            "notas": len(self.invoices),
            "falhas_por_tipo": self.failures_by_kind(),
            "valor_total": str(self.get_valor_total()),
            "cancelado": self.cancelled,
            "tempo_processamento": round(self.processing_time, 3),
        }
