from dataclasses import dataclass, field
from typing import Tuple


@dataclass(frozen=True)
class SearchEngineDefinition:
    """A known search engine: its canonical name, alternative names and host patterns."""
    name: str
    host_patterns: Tuple[str, ...] = field(default_factory=tuple)
    aliases: Tuple[str, ...] = field(default_factory=tuple)
    params: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("SearchEngineDefinition name must be a non-empty string.")
        for attr in ('host_patterns', 'aliases', 'params'):
            value = getattr(self, attr)
            if isinstance(value, str):
                object.__setattr__(self, attr, (value,))
            elif not isinstance(value, tuple):
                object.__setattr__(self, attr, tuple(value or ()))

    def __str__(self) -> str:
        return self.name
