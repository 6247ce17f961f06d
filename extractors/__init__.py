from .aliases import DEFAULT_CONFIG, ExtractionConfig, PartyAliases
from .xml_extractor import InvoiceExtractor, XmlExtractionResult, extract_xml

__all__ = [
    "DEFAULT_CONFIG",
    "ExtractionConfig",
    "PartyAliases",
    "InvoiceExtractor",
    "XmlExtractionResult",
    "extract_xml",
]
