import logging
import logging.handlers
import os
from pathlib import Path


class LineRotatingFileHandler(logging.FileHandler):
    """File handler that rotates based on number of lines, not size."""

    def __init__(self, filename, maxLines=500, backupCount=5, encoding=None, delay=False):
        super().__init__(filename, 'a', encoding, delay)
        self.maxLines = maxLines
        self.backupCount = backupCount
        self.lineCount = self._count_lines()

    def _count_lines(self):
        """Count current lines in the file."""
        try:
            with open(self.baseFilename, 'r', encoding=self.encoding) as f:
                return sum(1 for _ in f)
        except OSError:
            return 0

    def emit(self, record):
        super().emit(record)
        self.lineCount += 1
        if self.lineCount >= self.maxLines:
            self.doRollover()

    def doRollover(self):
        """Rotate the files."""
        if self.stream:
            self.stream.close()
            self.stream = None

        for i in range(self.backupCount - 1, 0, -1):
            sfn = f"{self.baseFilename}.{i}"
            dfn = f"{self.baseFilename}.{i + 1}"
            if os.path.exists(sfn):
                if os.path.exists(dfn):
                    os.remove(dfn)
                os.rename(sfn, dfn)

        dfn = f"{self.baseFilename}.1"
        if os.path.exists(dfn):
            os.remove(dfn)
        if os.path.exists(self.baseFilename):
            os.rename(self.baseFilename, dfn)

        self.lineCount = 0

        if not self.delay:
            self.stream = self._open()


_logger = None
_handlers = []


def get_logs_dir() -> Path:
    return Path(os.getenv("LOG_DIR", "./logs"))


def setup_logging(log_level: str = "INFO", log_file_name: str = "availsync.log"):
    """Setup logging to file + console"""
    global _logger, _handlers

    _logger = logging.getLogger()
    _logger.setLevel(log_level)

    # Repeated setup (tests, reloads) must not stack handlers
    for handler in list(_handlers):
        _logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    _logger.addHandler(console_handler)

    logs_dir = get_logs_dir()
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_file = logs_dir / log_file_name
    file_handler = LineRotatingFileHandler(
        log_file,
        maxLines=500,
        backupCount=5
    )
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    _logger.addHandler(file_handler)

    _handlers = [console_handler, file_handler]

    # Quiet down chatty libraries
    logging.getLogger('apscheduler').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)

    _logger.info(f"✓ Logging initialized - Level: {log_level}, File: {log_file}")


def change_log_level_runtime(new_level: str):
    """Change the log level while running"""
    if not _logger:
        return False

    try:
        new_level = new_level.upper()
        _logger.setLevel(new_level)

        for handler in _handlers:
            handler.setLevel(new_level)

        logging.getLogger(__name__).info(f"Log-Level changed to {new_level}")
        return True
    except (ValueError, TypeError) as e:
        logging.getLogger(__name__).error(f"Failed to change log level: {e}")
        return False
