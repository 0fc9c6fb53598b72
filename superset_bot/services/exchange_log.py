"""
EXCHANGE LOG MODULE
===================

Write-only audit trail: one human-readable line per completed exchange,
appended to a local text file (CHAT_LOG_FILE). Nothing reads it back.

  2026-10-19T08:15:02.123Z | session=session_1718 | user: What is IPP? | assistant: IPP is ...

Logging is best-effort: if the file can't be written we log a warning and the
user still gets their reply.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from superset_bot.utils.time_info import utc_timestamp


logger = logging.getLogger("SupersetBot")


def _one_line(text: str) -> str:
    return " ".join(str(text).split())


class ExchangeLog:
    def __init__(self, path: Optional[Union[str, Path]]):
        self.path = Path(path) if path else None

    @property
    def enabled(self) -> bool:
        return self.path is not None

    def format_line(self, session_id: str, message: str, reply: str) -> str:
        return (
            f"{utc_timestamp()} | session={_one_line(session_id)}"
            f" | user: {_one_line(message)} | assistant: {_one_line(reply)}\n"
        )

    def record(self, session_id: str, message: str, reply: str) -> None:
        """Append one line for this exchange. Never raises."""
        if not self.enabled:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(self.format_line(session_id, message, reply))
        except Exception as e:
            logger.warning("Could not write chat log %s: %s", self.path, e)
