import logging
import json
import sys
from typing import Any

# Atributos padrão do LogRecord; o resto veio via extra={...}
_RESERVED_ATTRS = set(vars(logging.makeLogRecord({})).keys()) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """
    Formatador de logs em JSON para facilitar ingestão por ferramentas de observabilidade.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_record: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "line": record.lineno,
        }

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)

        # Adiciona campos extras passados no log
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_record:
                log_record[key] = value

        return json.dumps(log_record, default=str)


def setup_logging(json_output: bool = True, level: int = logging.INFO):
    """
    Configura o logging raiz da aplicação.
    """
    logger = logging.getLogger()
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )

    # Remove handlers existentes para evitar duplicação
    logger.handlers = []
    logger.addHandler(handler)

    # Reduz ruído de bibliotecas
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("apscheduler").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
