from dataclasses import dataclass
from typing import Dict, List


@dataclass(frozen=True)
class ChatPrompt:
    """A fixed system instruction paired with a filled-in user message."""
    system: str
    user: str

    def to_messages(self) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


def render_prompt(system: str, template: str, **arguments: str) -> ChatPrompt:
    """
    Fill a user template with named arguments.

    Arguments are substituted once; braces inside argument values are left
    untouched. A missing argument raises ``KeyError``.
    """
    return ChatPrompt(system=system, user=template.format(**arguments))
