from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, PositiveInt, model_validator


class SymbolReference(BaseModel):
    """One use of a symbol inside a compilation unit.

    Without ``member``/``members`` the reference is to the type itself.
    ``members`` is a flag combination (bitwise OR).
    """

    symbol: str
    member: Optional[str] = None
    members: Optional[List[str]] = None

    @model_validator(mode="after")
    def _validate_member_shape(self) -> "SymbolReference":
        if self.member is not None and self.members is not None:
            raise ValueError("member and members cannot both be set")
        return self


class UnitConfig(BaseModel):
    name: str
    references: List[SymbolReference] = Field(default_factory=list)


class BuildConfig(BaseModel):
    build_name: str

    declaration_paths: List[str] = Field(default_factory=list)
    include_builtin: bool = True

    error_policy: Literal["fail", "collect"] = "collect"
    max_workers: PositiveInt = 1
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    units: List[UnitConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_unique_units(self) -> "BuildConfig":
        names = [u.name for u in self.units]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate unit names: {duplicates}")
        return self
