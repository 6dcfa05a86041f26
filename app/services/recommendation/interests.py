import functools
import json
from pathlib import Path

from loguru import logger

from app.models.interests import InterestConfig, InterestTable, ResolvedInterests

INTERESTS_PATH = Path(__file__).resolve().parent.parent.parent / "data" / "interests.json"


def normalize_interest(interest: str) -> str:
    return interest.strip().lower()


@functools.lru_cache(maxsize=1)
def load_interest_table(path: Path = INTERESTS_PATH) -> InterestTable:
    """Load and validate the interest mapping once per process."""
    with open(path, encoding="utf-8") as fh:
        raw = json.load(fh)
    table = InterestTable.model_validate(raw)
    # Keys are looked up normalized, so store them normalized too
    table = InterestTable(
        version=table.version,
        interests={normalize_interest(k): v for k, v in table.interests.items()},
    )
    logger.info(f"Loaded interest table v{table.version} with {len(table.interests)} entries")
    return table


class InterestResolver:
    """Maps free-text interests to chart category tokens and keyword-search interests."""

    def __init__(self, table: dict[str, InterestConfig] | None = None):
        self._table = table if table is not None else load_interest_table().interests

    def lookup(self, interest: str) -> InterestConfig | None:
        return self._table.get(normalize_interest(interest))

    def keywords_for(self, interest: str) -> list[str]:
        config = self.lookup(interest)
        if config is None or not config.searchKeywords:
            return []
        return list(config.searchKeywords)

    def known_interests(self) -> list[str]:
        return sorted(self._table)

    def resolve(self, interests: list[str]) -> ResolvedInterests:
        """
        Classify each interest. Unknown interests are skipped silently.

        An entry with search keywords is a search interest even if it also
        lists categories; otherwise its categories are unioned in.
        """
        category_tokens: list[str] = []
        search_interests: list[str] = []

        for interest in interests:
            key = normalize_interest(interest)
            config = self._table.get(key)
            if config is None:
                continue
            if config.searchKeywords:
                if key not in search_interests:
                    search_interests.append(key)
            elif config.categories:
                for token in config.categories:
                    if token not in category_tokens:
                        category_tokens.append(token)

        return ResolvedInterests(categoryTokens=category_tokens, searchInterests=search_interests)
