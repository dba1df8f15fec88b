"""Interactive prompts that give way to cancellation."""

from __future__ import annotations

import asyncio
import getpass
import threading
from collections.abc import Callable
from typing import TypeAlias

from ..storage.auth import CodePrompt
from ..storage.tasks import race_cancellation

TWO_FACTOR_PROMPT = "2FA required, please provide the 6 digit code: "

LineReader: TypeAlias = Callable[[str], str]


def _hand_back(
    loop: asyncio.AbstractEventLoop,
    callback: Callable[..., object],
    *args: object,
) -> bool:
    """Schedule ``callback`` on ``loop`` from another thread.

    Returns `False` if the loop has already been closed, which happens when
    an answer arrives after the program finished waiting for it.
    """
    try:
        loop.call_soon_threadsafe(callback, *args)
    except RuntimeError:
        return False
    return True


class Prompter:
    """Ask the user for a line of input.

    Each question races the answer against the cancellation event.  If
    cancellation wins, `~hub_tool.exceptions.OperationCancelledError` is
    raised and the answer, should one still arrive, is thrown away.  The
    blocking read runs on a daemon thread so that an abandoned read never
    holds up interpreter exit.

    Parameters
    ----------
    reader
        Blocking function that shows a prompt and returns the line typed.
    secret_reader
        Same, without echoing the input.
    cancel
        Event signalling that the user interrupted the operation.
    """

    def __init__(
        self,
        reader: LineReader = input,
        secret_reader: LineReader = getpass.getpass,
        cancel: asyncio.Event | None = None,
    ) -> None:
        self._reader = reader
        self._secret_reader = secret_reader
        self._cancel = cancel

    async def _read(self, reader: LineReader, question: str) -> str:
        loop = asyncio.get_running_loop()
        answer: asyncio.Future[str] = loop.create_future()

        def deliver(result: str | None, exc: BaseException | None) -> None:
            if answer.done():
                return
            if exc is not None:
                answer.set_exception(exc)
            else:
                answer.set_result(result or "")

        def worker() -> None:
            try:
                line = reader(question)
            except Exception as e:
                _hand_back(loop, deliver, None, e)
                return
            _hand_back(loop, deliver, line, None)

        threading.Thread(target=worker, daemon=True).start()
        return await answer

    async def ask(self, question: str) -> str:
        answer = await race_cancellation(
            self._read(self._reader, question), self._cancel
        )
        return answer.strip()

    async def ask_secret(self, question: str) -> str:
        return await race_cancellation(
            self._read(self._secret_reader, question), self._cancel
        )

    async def confirm(self, question: str) -> bool:
        """Yes/no question; anything but an explicit yes is a no."""
        answer = await self.ask(f"{question} [y/N] ")
        return answer.lower() in ("y", "yes")

    def code_prompt(self, question: str = TWO_FACTOR_PROMPT) -> CodePrompt:
        """Return a second-factor code prompt for `AuthSession.login`."""

        async def prompt() -> str:
            return await self.ask(question)

        return prompt
