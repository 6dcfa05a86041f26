from pydantic import BaseModel, Field, model_validator


class InterestConfig(BaseModel):
    """
    Static mapping entry for a normalized interest.

    When both fields are populated, `searchKeywords` wins over `categories`.
    """

    categories: list[str] | None = None
    searchKeywords: list[str] | None = None

    @model_validator(mode="after")
    def _require_one_source(self):
        if not self.categories and not self.searchKeywords:
            raise ValueError("InterestConfig needs at least one of 'categories' or 'searchKeywords'")
        return self

    @property
    def is_search(self) -> bool:
        return bool(self.searchKeywords)


class InterestTable(BaseModel):
    version: int
    interests: dict[str, InterestConfig] = Field(default_factory=dict)


class ResolvedInterests(BaseModel):
    # Unique tokens in first-seen order, so category fetches run in a deterministic order
    categoryTokens: list[str] = Field(default_factory=list)
    searchInterests: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.categoryTokens and not self.searchInterests

    @property
    def source_count(self) -> int:
        return len(self.categoryTokens) + len(self.searchInterests)
