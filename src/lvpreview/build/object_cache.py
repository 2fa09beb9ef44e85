"""Per-project object cache for incremental dependency builds.

Each tracked source file maps to the object file compiled from it, together
with the source's content hash, modification time and the settings
fingerprint in effect when it was compiled. The index is persisted as a JSON
list in ``metadata.json`` inside the managed cache directory.

Validity is layered: the modification time is a cheap pre-filter and the
content hash is the authoritative check, since timestamps survive copies and
checkouts unreliably.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from ..errors import CacheCorruption
from .fingerprint import hash_file

METADATA_FILE = "metadata.json"


@dataclass
class CacheEntry:
    """Bookkeeping for one compiled source file.

    Attributes:
        source_path: Absolute path to the source file
        object_path: Absolute path to the compiled object file
        source_hash: SHA-256 of the source content at compile time
        last_modified: Source mtime in nanoseconds at compile time
        settings_hash: Settings fingerprint at compile time (None for
            entries written before settings were tracked)
    """

    source_path: str
    object_path: str
    source_hash: str
    last_modified: int
    settings_hash: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create CacheEntry from dictionary.

        Raises:
            CacheCorruption: If a required field is missing or mistyped
        """
        try:
            return cls(
                source_path=str(data["source_path"]),
                object_path=str(data["object_path"]),
                source_hash=str(data["source_hash"]),
                last_modified=int(data["last_modified"]),
                settings_hash=data.get("settings_hash"),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CacheCorruption(f"Malformed cache entry: {e}") from e


class ObjectCache:
    """Tracks compiled object files for one project.

    The cache owns its directory: object files are written directly into it
    and ``clear()`` deletes everything there.
    """

    def __init__(self, cache_dir: Path, settings_hash: str):
        """Initialize the cache and load the persisted index.

        Args:
            cache_dir: Directory holding object files and the index
            settings_hash: Fingerprint of the currently active settings
        """
        self.cache_dir = Path(cache_dir)
        self.metadata_path = self.cache_dir / METADATA_FILE
        self.settings_hash = settings_hash
        self._entries: Dict[str, CacheEntry] = {}

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self._load_metadata()

    @staticmethod
    def _key(source: Path) -> str:
        return str(Path(source).resolve())

    def _load_metadata(self) -> None:
        """Load the index from disk, treating corruption as an empty cache."""
        if not self.metadata_path.exists():
            return

        try:
            with open(self.metadata_path, encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise CacheCorruption(f"Expected a list of entries in {self.metadata_path}")

            entries = [CacheEntry.from_dict(item) for item in data]
            self._entries = {entry.source_path: entry for entry in entries}
            logging.info(f"Loaded {len(self._entries)} cached dependencies")
        except KeyboardInterrupt:
            raise
        except (OSError, ValueError, CacheCorruption) as e:
            logging.warning(f"Failed to load cache metadata, starting empty: {e}")
            self._entries = {}

    def _save_metadata(self) -> None:
        """Persist the whole index atomically."""
        data = [entry.to_dict() for entry in self._entries.values()]
        temp_file = self.metadata_path.with_suffix(".tmp")
        with open(temp_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        temp_file.replace(self.metadata_path)

    def __len__(self) -> int:
        return len(self._entries)

    def get_entry(self, source: Path) -> Optional[CacheEntry]:
        """Return the raw entry for a source, valid or not."""
        return self._entries.get(self._key(source))

    def is_valid(self, source: Path) -> bool:
        """Check whether the cached object for a source can be reused.

        Args:
            source: Source file path

        Returns:
            True only if every check passes
        """
        source = Path(source).resolve()
        entry = self._entries.get(str(source))
        if entry is None:
            return False

        if entry.settings_hash is not None and entry.settings_hash != self.settings_hash:
            logging.debug(f"Cache miss: {source.name} - compilation settings changed")
            return False

        if not Path(entry.object_path).exists():
            logging.debug(f"Cache miss: object file not found for {source.name}")
            return False

        if not source.exists():
            logging.debug(f"Cache miss: source file not found {source.name}")
            return False

        if source.stat().st_mtime_ns != entry.last_modified:
            logging.debug(f"Cache miss: {source.name} was modified")
            return False

        if hash_file(source) != entry.source_hash:
            logging.debug(f"Cache miss: {source.name} hash changed")
            return False

        return True

    def get_artifact(self, source: Path) -> Optional[Path]:
        """Return the cached object path for a source if it is still valid."""
        if not self.is_valid(source):
            return None
        return Path(self._entries[self._key(source)].object_path)

    def get_valid_entries(self, sources: Iterable[Path]) -> Dict[Path, Path]:
        """Return a mapping of source to object path for the valid subset."""
        valid = {}
        for source in sources:
            object_path = self.get_artifact(source)
            if object_path is not None:
                valid[Path(source)] = object_path
        return valid

    def record_build(self, source: Path, object_path: Path) -> CacheEntry:
        """Record a fresh compilation of a source and persist the index.

        Args:
            source: Source file that was compiled
            object_path: Object file produced from it

        Returns:
            The stored entry

        Raises:
            OSError: If the source cannot be read or the index cannot be written
        """
        source = Path(source).resolve()
        stat = source.stat()
        entry = CacheEntry(
            source_path=str(source),
            object_path=str(Path(object_path).resolve()),
            source_hash=hash_file(source),
            last_modified=stat.st_mtime_ns,
            settings_hash=self.settings_hash,
        )
        self._entries[entry.source_path] = entry
        self._save_metadata()
        return entry

    def clear(self) -> None:
        """Empty the index and delete every file in the cache directory."""
        self._entries.clear()

        if self.cache_dir.exists():
            for path in self.cache_dir.iterdir():
                if not path.is_file():
                    continue
                try:
                    path.unlink()
                except OSError as e:
                    logging.warning(f"Failed to delete {path}: {e}")

        logging.info("Dependency cache cleared")
