import sys
import logging
import itertools

REPORT_LOGGER_NAME = "udp_capture.report"

_logger_ids = itertools.count(1)


class ReportFileHandler(logging.FileHandler):
    """
    Append report blocks verbatim to a file. A failed write is logged and
    only loses that block.
    """

    terminator = ""

    def __init__(self, filename: str):
        super().__init__(filename, mode="a", encoding="utf-8")
        self.setFormatter(logging.Formatter("%(message)s"))

    def handleError(self, record: logging.LogRecord) -> None:
        error = sys.exc_info()[1]
        logging.error(f"Failed to write to file: {error}")


class ConsoleHandler(logging.StreamHandler):
    """
    Write report blocks verbatim to whatever sys.stdout is at write time.
    """

    terminator = ""

    def __init__(self):
        super().__init__()
        self.setFormatter(logging.Formatter("%(message)s"))

    @property
    def stream(self):
        return sys.stdout

    @stream.setter
    def stream(self, value):
        # always follows sys.stdout
        pass


class ReportLogger:
    """
    Sinks for packet report blocks: the console, a log file, or both. Each
    instance has its own logger that does not propagate, so report blocks
    never mix with the diagnostics printed by the root logger or with the
    blocks of another instance.

    Args:
        console_output (bool): write blocks to stdout
        log_file (str | None): path of a file to append blocks to

    Raises:
        OSError: if the log file cannot be opened
    """

    def __init__(self, console_output: bool = True, log_file: str | None = None):
        self.console_output = console_output
        self.log_file = log_file

        self.logger = logging.getLogger(f"{REPORT_LOGGER_NAME}.{next(_logger_ids)}")
        self.logger.setLevel(logging.INFO)
        self.logger.propagate = False

        # open the file first so a failure leaves no handler behind
        self.file_handler = None
        if log_file is not None:
            self.file_handler = ReportFileHandler(log_file)
            self.logger.addHandler(self.file_handler)

        if console_output:
            self.logger.addHandler(ConsoleHandler())

    def write(self, block: str) -> None:
        """
        Write one fully built report block to every configured sink.
        """
        if self.logger.handlers:
            self.logger.info(block)

    def close(self) -> None:
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()
