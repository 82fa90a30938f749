"""
Abstract base class for file-backed data sources.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any
import hashlib
import json
import logging

import pandas as pd
from diskcache import Cache

from config.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass
class DataSourceMetadata:
    """Metadata about a data source read."""

    source_name: str
    fetch_time: datetime
    path: str | None = None
    cache_key: str | None = None
    row_count: int | None = None
    columns: list[str] = field(default_factory=list)
    notes: str = ""


class DataSource(ABC):
    """Abstract base class for CSV inputs with an on-disk parse cache."""

    def __init__(self, cache_dir: Path | None = None):
        settings = get_settings()
        self.cache_dir = cache_dir or settings.resolve(settings.cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._cache = Cache(str(self.cache_dir / self.source_name))
        self._metadata: list[DataSourceMetadata] = []

    @property
    @abstractmethod
    def source_name(self) -> str:
        """Unique identifier for this data source."""
        pass

    @abstractmethod
    def fetch(self, path: Path, **kwargs: Any) -> pd.DataFrame:
        """Read and parse the file at ``path``."""
        pass

    def _cache_key(self, path: Path, **kwargs: Any) -> str:
        """Cache key from the file identity and parse options."""
        stat = path.stat()
        key_data = json.dumps(
            {
                "path": str(path.resolve()),
                "mtime": stat.st_mtime_ns,
                "size": stat.st_size,
                **kwargs,
            },
            sort_keys=True,
            default=str,
        )
        return hashlib.sha256(key_data.encode()).hexdigest()[:16]

    def get_cached(self, cache_key: str) -> pd.DataFrame | None:
        """Retrieve data from cache if available."""
        try:
            data = self._cache.get(cache_key)
            if data is not None:
                logger.debug(f"Cache hit for {self.source_name}: {cache_key}")
                return pd.DataFrame(data)
        except Exception as e:
            logger.warning(f"Cache read error: {e}")
        return None

    def set_cached(
        self, cache_key: str, df: pd.DataFrame, ttl_seconds: int | None = None
    ) -> None:
        """Store data in cache."""
        settings = get_settings()
        ttl = ttl_seconds or (settings.cache_ttl_days * 86400)
        try:
            self._cache.set(cache_key, df.to_dict("list"), expire=ttl)
            logger.debug(f"Cached {self.source_name}: {cache_key}")
        except Exception as e:
            logger.warning(f"Cache write error: {e}")

    def clear_cache(self) -> None:
        """Clear all cached data for this source."""
        self._cache.clear()
        logger.info(f"Cleared cache for {self.source_name}")

    def fetch_with_cache(self, path: Path, **kwargs: Any) -> pd.DataFrame:
        """Read with caching keyed on the file's path, mtime and size."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"{self.source_name} input not found: {path}")

        cache_key = self._cache_key(path, **kwargs)

        cached = self.get_cached(cache_key)
        if cached is not None:
            self._record(path, cached, cache_key, notes="cache")
            return cached

        logger.info(f"Reading {self.source_name} from {path}")
        df = self.fetch(path, **kwargs)

        self.set_cached(cache_key, df)
        self._record(path, df, cache_key)

        return df

    def _record(
        self, path: Path, df: pd.DataFrame, cache_key: str, notes: str = ""
    ) -> None:
        self._metadata.append(
            DataSourceMetadata(
                source_name=self.source_name,
                fetch_time=datetime.now(),
                path=str(path),
                cache_key=cache_key,
                row_count=len(df),
                columns=list(df.columns),
                notes=notes,
            )
        )

    @property
    def metadata(self) -> list[DataSourceMetadata]:
        return self._metadata

    def save_processed(self, df: pd.DataFrame, filename: str) -> Path:
        """Save processed data to disk."""
        settings = get_settings()
        out_dir = settings.resolve(settings.processed_data_dir) / self.source_name
        out_dir.mkdir(parents=True, exist_ok=True)

        filepath = out_dir / filename
        if filename.endswith(".parquet"):
            df.to_parquet(filepath, index=False)
        else:
            df.to_csv(filepath, index=False)

        logger.info(f"Saved processed data to {filepath}")
        return filepath
