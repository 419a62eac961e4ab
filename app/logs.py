import logging

from rich.logging import RichHandler


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level.upper())
    if any(isinstance(h, RichHandler) for h in root.handlers):
        return
    root.addHandler(RichHandler(rich_tracebacks=True, show_path=False))
