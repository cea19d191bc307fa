import logging
import sys

from pythonjsonlogger.json import JsonFormatter


class CustomJsonFormatter(JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = record.created
        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname
        log_record['module'] = record.module
        log_record['lineno'] = record.lineno


def setup_logging(log_level_str: str = "INFO", json_output: bool = True):
    """
    Configures root logging for the engine and its HTTP adapter.

    With ``json_output`` a structured JSON handler is attached to stdout;
    otherwise a plain text format is used. Calling it again only adjusts
    the level.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if any(getattr(h, "_engagement_engine", False) for h in root_logger.handlers):
        root_logger.debug(f"Logging already configured. Level: {logging.getLevelName(log_level)}")
        return

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(module)s %(lineno)d %(message)s'))
    else:
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
    handler._engagement_engine = True
    root_logger.addHandler(handler)
    root_logger.info(f"Logging configured with level: {logging.getLevelName(log_level)}")
