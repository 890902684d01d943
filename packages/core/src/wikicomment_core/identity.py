from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Identity:
    """A commenter's identity as issued by the OAuth provider.

    Two identities are the same person iff provider and subject id are equal;
    the display name is informational and never takes part in comparisons.
    """

    provider: str
    subject_id: str
    name: str = field(default="", compare=False)

    def key(self) -> tuple[str, str]:
        return (self.provider, self.subject_id)


def is_same_commenter(owner: Identity | None, caller: Identity | None) -> bool:
    if owner is None or caller is None:
        return False
    return owner.key() == caller.key()
