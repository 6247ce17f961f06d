import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Carrega as variáveis do arquivo .env para o ambiente
load_dotenv()

# Caminhos Base
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Descoberta de arquivos ---
XML_EXTENSION = ".xml"

# Links simbólicos dentro das pastas selecionadas não são seguidos por padrão.
# Com '1', pastas já visitadas (pelo caminho canônico) continuam sendo puladas.
FOLLOW_SYMLINKS = os.getenv('NFSE_FOLLOW_SYMLINKS', '0') == '1'

# --- Processamento em lote ---
# 1 = sequencial. Cada arquivo é independente, então threads são seguras.
BATCH_MAX_WORKERS = max(1, int(os.getenv('NFSE_MAX_WORKERS', '4')))

# --- Configuração de Logging com Rotação ---
LOG_DIR = Path(os.getenv('NFSE_LOG_DIR', str(BASE_DIR / "logs")))
LOG_FILE = LOG_DIR / "leitor_nfse.log"
LOG_LEVEL = os.getenv('NFSE_LOG_LEVEL', 'INFO').upper()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'

_logging_configured = False


def configure_logging(
    level: Optional[str] = None, log_file: Optional[Path] = None
) -> logging.Logger:
    """
    Configura o logger raiz com rotação de arquivo e saída no console.

    Chamado pelo ponto de entrada (CLI), nunca na importação, para que
    testes e bibliotecas que importam o core não criem arquivos de log.
    Chamadas repetidas não duplicam handlers.
    """
    global _logging_configured

    root = logging.getLogger()
    root.setLevel(level or LOG_LEVEL)

    if _logging_configured:
        return root

    log_file = Path(log_file or LOG_FILE)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    # Formato detalhado para auditoria
    log_formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT)

    # Handler com rotação: 10MB por arquivo, mantém 5 backups
    rotating_handler = RotatingFileHandler(
        log_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5,
        encoding='utf-8'
    )
    rotating_handler.setFormatter(log_formatter)
    root.addHandler(rotating_handler)

    # Também envia para console
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    root.addHandler(console_handler)

    _logging_configured = True
    return root
