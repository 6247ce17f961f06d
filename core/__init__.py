"""
Core module for NFS-e XML reading.

This module provides:
- Invoice models (Invoice, Party, TaxId, ProcessingResult)
- Typed failures (IoError, MalformedXml, MissingField, ...)
- File discovery (PathCollector)
- Namespace-tolerant XML parsing (XmlTreeParser)
- Batch results (BatchResult)

BatchProcessor lives in ``core.batch_processor`` and is not re-exported
here, because it depends on ``extractors`` (which depends on core).
"""

from .batch_result import BatchResult
from .exceptions import (
    DateFormatError,
    ExtractionError,
    FileReadError,
    MalformedXmlError,
    MissingFieldError,
    NfseReaderException,
    NumberFormatError,
    TaxIdFormatError,
    UnexpectedError,
)
from .models import (
    Invoice,
    Party,
    ProcessingFailure,
    ProcessingResult,
    ProcessingSuccess,
    TaxId,
    TaxIdKind,
)
from .path_collector import CollectedPaths, CollectionDiagnostic, PathCollector, collect_paths
from .xml_tree import GenericXmlNode, XmlTreeParser, parse_xml_bytes

__all__ = [
    # Models
    "Invoice",
    "Party",
    "TaxId",
    "TaxIdKind",
    "ProcessingResult",
    "ProcessingSuccess",
    "ProcessingFailure",
    # Failures
    "NfseReaderException",
    "ExtractionError",
    "FileReadError",
    "MalformedXmlError",
    "MissingFieldError",
    "DateFormatError",
    "NumberFormatError",
    "TaxIdFormatError",
    "UnexpectedError",
    # Discovery
    "PathCollector",
    "CollectedPaths",
    "CollectionDiagnostic",
    "collect_paths",
    # Parsing
    "GenericXmlNode",
    "XmlTreeParser",
    "parse_xml_bytes",
    # Results
    "BatchResult",
]
