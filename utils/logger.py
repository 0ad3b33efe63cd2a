"""
Centralized logger for the certificate issuance core.

Provides configurable logging with file and console output,
level filtering, and consistent formatting.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from config.pki_config import PKI_LOGGING


class PKILogger:
    """
    Centralized logger for PKI components with file and console output.
    """

    _loggers = {}

    @staticmethod
    def get_logger(
        name: str,
        log_dir: Optional[Union[str, Path]] = None,
        level: Optional[int] = None,
        console_output: Optional[bool] = None,
    ) -> logging.Logger:
        """
        Ottiene o crea un logger configurato.

        Args:
            name: Nome del logger (es. "CSRBuilder", "Signer")
            log_dir: Directory per i file di log (default: PKI_LOGGING.LOG_DIR)
            level: Livello minimo di log (default: PKI_LOGGING.LEVEL)
            console_output: Se True, stampa anche su console

        Returns:
            Logger configurato pronto all'uso
        """
        if name in PKILogger._loggers:
            return PKILogger._loggers[name]

        level = PKI_LOGGING.LEVEL if level is None else level
        log_dir = PKI_LOGGING.LOG_DIR if log_dir is None else log_dir
        if console_output is None:
            console_output = PKI_LOGGING.CONSOLE_OUTPUT

        logger = logging.getLogger(f"pki.{name}")
        logger.setLevel(level)
        logger.propagate = False
        logger.handlers.clear()

        # [2025-10-09 14:30:45] [pki.Signer] [INFO] Messaggio
        formatter = logging.Formatter(fmt=PKI_LOGGING.FORMAT, datefmt=PKI_LOGGING.DATE_FORMAT)

        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(log_path / f"{name}.log", encoding="utf-8")
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        PKILogger._loggers[name] = logger
        return logger

    @staticmethod
    def set_level(name: str, level: int):
        """Changes log level for an existing logger."""
        if name in PKILogger._loggers:
            logger = PKILogger._loggers[name]
            logger.setLevel(level)
            for handler in logger.handlers:
                handler.setLevel(level)

    @staticmethod
    def clear_cache():
        """Closes handlers and clears the logger cache."""
        for logger in PKILogger._loggers.values():
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()
        PKILogger._loggers.clear()
