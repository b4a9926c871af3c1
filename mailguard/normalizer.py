from dataclasses import dataclass

from .models import Message


def _collapse(value: str) -> str:
    return " ".join((value or "").split()).lower()


@dataclass(frozen=True)
class NormalizedMessage:
    """Lowercased comparison forms of a message, plus the message itself.

    ``text`` is subject and body joined by a single space; ``body`` is the body
    alone. Structural heuristics that care about letter case read
    ``message.body`` instead.
    """

    text: str
    body: str
    sender: str
    message: Message

    @property
    def is_empty(self) -> bool:
        return not (self.text or self.sender)


def normalize(message: Message) -> NormalizedMessage:
    subject = _collapse(message.subject)
    body = _collapse(message.body)
    text = " ".join(part for part in (subject, body) if part)
    return NormalizedMessage(
        text=text,
        body=body,
        sender=(message.sender or "").strip().lower(),
        message=message,
    )
