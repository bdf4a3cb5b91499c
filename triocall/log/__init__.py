"""Utility functionality for logging.
"""
import os
import sys

import logbook

from triocall import utils

LOG_NAME = "triocall"
DEFAULT_LOG_DIR = "log"

logger = logbook.Logger(LOG_NAME)
logger_cl = logbook.Logger(LOG_NAME + "-commands")

def get_log_dir(config):
    return config.get("log_dir", DEFAULT_LOG_DIR)

def _is_cl(record, _):
    return record.channel == LOG_NAME + "-commands"

def _not_cl(record, handler):
    return not _is_cl(record, handler)

class CloseableNestedSetup(logbook.NestedSetup):
    def close(self):
        for obj in self.objects:
            if hasattr(obj, "close"):
                obj.close()

def _create_log_handler(config):
    logbook.set_datetime_format("utc")
    handlers = [logbook.NullHandler()]
    format_str = "".join(["[{record.time:%Y-%m-%dT%H:%MZ}] " if config.get("include_time", True) else "",
                          "{record.message}"])

    log_dir = get_log_dir(config)
    if log_dir:
        utils.safe_makedir(log_dir)
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s.log" % LOG_NAME),
                                            format_string=format_str, level="INFO",
                                            filter=_not_cl))
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s-debug.log" % LOG_NAME),
                                            format_string=format_str, level="DEBUG", bubble=True,
                                            filter=_not_cl))
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s-commands.log" % LOG_NAME),
                                            format_string=format_str, level="DEBUG",
                                            filter=_is_cl))
    handlers.append(logbook.StreamHandler(sys.stderr, format_string=format_str, bubble=True,
                                          level=config.get("log_level", "INFO"), filter=_not_cl))
    return CloseableNestedSetup(handlers)

def setup_local_logging(config=None):
    """Setup logging for a local run, directing messages to stderr and log files.

    Handlers are pushed application wide so that worker threads started by
    the parallel scheduler log through the same setup.
    """
    if config is None: config = {}
    handler = _create_log_handler(config)
    handler.push_application()
    return handler

def stage_status(stage, status, sample=None, detail=None):
    """Report a start/skip/complete/fail line for a stage boundary.
    """
    msg = "[%s] %s" % (status, stage)
    if sample:
        msg += " : %s" % sample
    if detail:
        msg += " : %s" % detail
    if status == "fail":
        logger.error(msg)
    else:
        logger.info(msg)
