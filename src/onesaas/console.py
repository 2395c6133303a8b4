"""Terminal console backed by rich.

Status lines carry a fixed marker (info, success, warn, error) so the output
reads the same with or without colour support.
"""

from __future__ import annotations

from rich.console import Console as RichTerminal
from rich.prompt import Prompt

from .provisioning.choices import parse_yes_no

PROGRESS_WIDTH = 30

BANNER = r"""
   ___             ____              ____
  / _ \ _ __   ___/ ___|  __ _  __ _/ ___|
 | | | | '_ \ / _ \___ \ / _` |/ _` \___ \
 | |_| | | | |  __/___) | (_| | (_| |___) |
  \___/|_| |_|\___|____/ \__,_|\__,_|____/
"""


def progress_bar(current: int, total: int, width: int = PROGRESS_WIDTH) -> str:
    """``[████░░░░]`` filled proportionally to ``current / total``."""
    if total <= 0:
        filled = width
    else:
        filled = round(width * min(max(current, 0), total) / total)
    return '[' + '█' * filled + '░' * (width - filled) + ']'


def _prompt_text(prompt: str) -> str:
    # rich appends its own ": " suffix.
    return prompt.rstrip().rstrip(':')


class RichConsole:
    """Console protocol implementation writing to a rich terminal."""

    def __init__(self, terminal: RichTerminal | None = None) -> None:
        self._terminal = terminal or RichTerminal(highlight=False)

    def _print(self, text: str, style: str | None = None) -> None:
        # Messages may contain user input or URLs; never parse them as markup.
        self._terminal.print(text, style=style, markup=False)

    def banner(self) -> None:
        self._print(BANNER, style='bold cyan')
        self._print('  Interactive SaaS project setup', style='bold')
        self._print('  GitHub + Supabase + Vercel + coding agent', style='dim')
        self._print('')

    def step(self, current: int, total: int, description: str) -> None:
        self._print('')
        self._print(f'{progress_bar(current, total)} Step {current}/{total}: {description}', style='bold cyan')
        self._print('━' * 50, style='dim')

    def info(self, message: str) -> None:
        self._print(f'ℹ {message}', style='blue')

    def success(self, message: str) -> None:
        self._print(f'✓ {message}', style='green')

    def warn(self, message: str) -> None:
        self._print(f'⚠ {message}', style='yellow')

    def error(self, message: str) -> None:
        self._print(f'✕ {message}', style='red')

    def dim(self, message: str) -> None:
        self._print(message, style='dim')

    def heading(self, message: str) -> None:
        self._print('')
        self._print(message, style='bold')

    def ask(self, prompt: str) -> str:
        return Prompt.ask(_prompt_text(prompt), console=self._terminal, default='', show_default=False)

    def ask_secret(self, prompt: str) -> str:
        return Prompt.ask(
            _prompt_text(prompt),
            console=self._terminal,
            password=True,
            default='',
            show_default=False,
        )

    def confirm(self, prompt: str) -> bool:
        return parse_yes_no(self.ask(f'{prompt} (y/n)'))
