from __future__ import annotations

import random
from typing import Dict, Optional

from .article import ArticleExtractor
from .author import AuthorExtractor
from .base import BaseExtractor
from .config import CrawlSettings
from .models import ARTICLE, AUTHOR


class ExtractorFactory:
    """Creates the extractor for a classified page kind.

    Extractors hold only settings and a random source, so one instance per
    kind is cached and shared across tasks of a run.
    """

    def __init__(self, settings: Optional[CrawlSettings] = None, rng: Optional[random.Random] = None) -> None:
        self._settings = settings or CrawlSettings()
        self._rng = rng or random.Random()
        self._cache: Dict[str, BaseExtractor] = {}

    def create_extractor(self, kind: str) -> BaseExtractor:
        if kind in self._cache:
            return self._cache[kind]

        if kind == AUTHOR:
            extractor: BaseExtractor = AuthorExtractor(settings=self._settings, rng=self._rng)
        elif kind == ARTICLE:
            extractor = ArticleExtractor(settings=self._settings, rng=self._rng)
        else:
            raise ValueError(f"No extractor for page kind: {kind}")

        self._cache[kind] = extractor
        return extractor
