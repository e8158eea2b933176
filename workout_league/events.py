import logging
from dataclasses import dataclass, field
from typing import Any, Iterable

from nostr_sdk import PublicKey

logger = logging.getLogger(__name__)

def canonical_pubkey(value: str) -> str:
    """Lowercase hex for a hex or bech32 (``npub1...``) public key."""
    try:
        return PublicKey.parse(value.strip()).to_hex()
    except Exception as e:  # nostr-sdk raises its own FFI error type
        raise ValueError(f"not a nostr public key: {value!r}") from e

@dataclass(frozen=True, slots=True)
class RawEvent:
    id: str
    pubkey: str
    created_at: int
    kind: int
    tags: tuple[tuple[str, ...], ...] = field(default_factory=tuple)
    content: str = ""
    sig: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out = {
            "id": self.id,
            "pubkey": self.pubkey,
            "created_at": self.created_at,
            "kind": self.kind,
            "tags": [list(t) for t in self.tags],
            "content": self.content,
        }
        if self.sig is not None:
            out["sig"] = self.sig
        return out

    def tag_values(self, name: str) -> list[tuple[str, ...]]:
        return [t for t in self.tags if t and t[0] == name]

    def first_tag(self, name: str) -> tuple[str, ...] | None:
        for t in self.tags:
            if t and t[0] == name:
                return t
        return None

def merge_events(batches: Iterable[Iterable[RawEvent]]) -> list[RawEvent]:
    """Union of several relays' events, one per id, oldest first."""
    seen: dict[str, RawEvent] = {}
    for batch in batches:
        for ev in batch:
            seen.setdefault(ev.id, ev)
    return sorted(seen.values(), key=lambda e: (e.created_at, e.id))
