from typing import List

from .logger import get_logger

logger = get_logger()

RULE = "=" * 78


class ConsoleUI:
    def echo(self, message: str = "", err: bool = False) -> None:
        if err:
            logger.error(message)
        else:
            logger.info(message)

    def info(self, message: str) -> None:
        self.echo(message)

    def error(self, message: str) -> None:
        self.echo(message, err=True)

    def banner(self, title: str) -> None:
        self.echo("  " + RULE)
        self.echo(title)
        self.echo("  " + RULE + "\n")

    def box_output(self, lines: List[str], err: bool = False) -> None:
        self.echo("", err=err)
        for line in lines:
            self.echo(line, err=err)
        self.echo("", err=err)


ui = ConsoleUI()
