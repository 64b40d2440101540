from dataclasses import dataclass

@dataclass(frozen=True)
class BaseId:
    """Base class for numeric identifiers. Ensures value is positive."""
    value: int

    def __post_init__(self):
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValueError(f"{self.__class__.__name__} value must be an integer.")
        if self.value <= 0:
            raise ValueError(f"{self.__class__.__name__} value must be positive.")

    def __int__(self) -> int:
        return self.value

    def __str__(self) -> str:
        return str(self.value)

class SiteId(BaseId): pass


@dataclass(frozen=True)
class ViewId:
    """Google Analytics view (profile) id, kept as the string the API expects."""
    value: str

    def __post_init__(self):
        value = str(self.value).strip() if self.value is not None else ""
        if not value.isdigit():
            raise ValueError(f"ViewId must be numeric, got {self.value!r}.")
        object.__setattr__(self, 'value', value)

    def __str__(self) -> str:
        return self.value
