"""Shared rejection envelope.

Core operations never raise for a refused request: they return False/None and
describe the refusal with a `Rejection`, which is logged and also emitted on
the event bus so observers see the same wording as the log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Rejection:
    code: str
    message: str

    def to_message(self, *, source: str | None = None) -> dict[str, Any]:
        msg: dict[str, Any] = {"type": "rejected", "code": self.code, "message": self.message}
        if source is not None:
            msg["source"] = source
        return msg

    def log(self, logger: logging.Logger, tag: str) -> None:
        logger.warning("[%s] rejected %s: %s", tag, self.code, self.message)
