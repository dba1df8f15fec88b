"""Field types shared by the Hub wire models."""

from typing import Annotated, Any, TypeAlias

from pydantic import BeforeValidator


def _none_is_empty_str(inp: Any) -> Any:
    # The Hub sends null for unset text fields on older accounts.
    if inp is None:
        return ""
    return inp


HubStr: TypeAlias = Annotated[str, BeforeValidator(_none_is_empty_str)]
