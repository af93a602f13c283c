"""On-disk cache of validation results, keyed by validator name.

Layout under the cache location::

    index.json          {"version": ..., "entries": {name: entry}}
    files/<hash>.json   serialised ValidationResult payloads

An entry is valid only while its fingerprint still matches: the build
identity, the validator name, the resolved configuration and the mtime (or
absence) of every file the previous run consulted.  Any cache failure is
logged and treated as a miss; nothing here raises to the caller.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shutil
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

import lintloom
from lintloom.engine.issues import ValidationResult

if TYPE_CHECKING:
    from lintloom.config.loader import LintConfig
    from lintloom.engine.diagnostics import DiagnosticCollector

logger = logging.getLogger(__name__)

DEFAULT_CACHE_LOCATION = ".lintloom-cache"
INDEX_FILE = "index.json"
PAYLOAD_DIR = "files"


def build_identity() -> str:
    """Version string plus the mtime of the installed package, so any rebuild invalidates."""
    try:
        stamp = Path(lintloom.__file__).stat().st_mtime_ns
    except (OSError, TypeError):
        stamp = 0
    return f"{lintloom.__version__}+{stamp}"


@dataclass
class CacheEntry:
    """One validator's slot in the index."""

    hash: str
    timestamp: float
    result_file: str
    files: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "hash": self.hash,
            "timestamp": self.timestamp,
            "result_file": self.result_file,
            "files": list(self.files),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheEntry:
        return cls(
            hash=str(data["hash"]),
            timestamp=float(data.get("timestamp", 0.0)),
            result_file=str(data["result_file"]),
            files=[str(f) for f in data.get("files", [])],
        )


class ValidationCache:
    """Remembers the last result per validator and whether it is still fresh."""

    def __init__(
        self,
        location: str | Path = DEFAULT_CACHE_LOCATION,
        *,
        enabled: bool = True,
        diagnostics: DiagnosticCollector | None = None,
        version: str | None = None,
    ) -> None:
        self.location = Path(location)
        self.enabled = enabled
        self.diagnostics = diagnostics
        self.version = version if version is not None else build_identity()
        # index.json is read-modify-written; validators call in from worker threads.
        self._lock = threading.Lock()

    # -- helpers -----------------------------------------------------------

    @property
    def index_path(self) -> Path:
        return self.location / INDEX_FILE

    @property
    def payload_dir(self) -> Path:
        return self.location / PAYLOAD_DIR

    def _fault(self, message: str) -> None:
        logger.warning(message)
        if self.diagnostics is not None:
            self.diagnostics.warn(message, "ValidationCache", "CACHE_ERROR")

    @staticmethod
    def _mtime(path: str) -> int | None:
        try:
            return os.stat(path).st_mtime_ns
        except OSError:
            return None

    def fingerprint(
        self, validator_name: str, config: LintConfig | None, files: list[str]
    ) -> str:
        """Hash of build identity, validator, config and tracked-file mtimes."""
        tracked = [[path, self._mtime(path)] for path in sorted(set(files))]
        material = json.dumps(
            {
                "version": self.version,
                "validator": validator_name,
                "config": config.to_dict() if config is not None else None,
                "files": tracked,
            },
            sort_keys=True,
        )
        return hashlib.sha256(material.encode("utf-8")).hexdigest()

    def _load_index(self) -> dict[str, CacheEntry]:
        if not self.index_path.is_file():
            return {}
        try:
            raw = json.loads(self.index_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._fault(f"Ignoring unreadable cache index {self.index_path}: {exc}")
            return {}

        if not isinstance(raw, dict) or raw.get("version") != self.version:
            logger.debug("Cache index version changed, discarding %s", self.location)
            self._discard_payloads()
            return {}

        raw_entries = raw.get("entries", {})
        if not isinstance(raw_entries, dict):
            self._fault(
                f"Ignoring malformed cache index {self.index_path}: entries is not a mapping"
            )
            return {}

        entries: dict[str, CacheEntry] = {}
        for name, data in raw_entries.items():
            try:
                entries[str(name)] = CacheEntry.from_dict(data)
            except (AttributeError, KeyError, TypeError, ValueError):
                logger.debug("Dropping malformed cache entry %s", name)
        return entries

    def _save_index(self, entries: dict[str, CacheEntry]) -> None:
        data = {
            "version": self.version,
            "entries": {name: entry.to_dict() for name, entry in sorted(entries.items())},
        }
        self._write_json(self.index_path, data)

    @staticmethod
    def _write_json(path: Path, data: dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(tmp, path)

    def _discard_payloads(self) -> None:
        shutil.rmtree(self.payload_dir, ignore_errors=True)

    # -- public API --------------------------------------------------------

    def get(self, validator_name: str, config: LintConfig | None) -> ValidationResult | None:
        """Return the stored result if it is still valid, else None."""
        if not self.enabled:
            return None

        try:
            with self._lock:
                entry = self._load_index().get(validator_name)
            if entry is None:
                return None
            # With nothing tracked, "still no files" and "new files appeared" look the same.
            if not entry.files:
                logger.debug("Cache miss for %s: no tracked files", validator_name)
                return None
            fresh = self.fingerprint(validator_name, config, entry.files) == entry.hash
        except Exception as exc:
            self._fault(f"Failed to read cache for {validator_name}: {exc}")
            return None
        if not fresh:
            logger.debug("Cache miss for %s: fingerprint changed", validator_name)
            return None

        payload = self.payload_dir / entry.result_file
        try:
            data = json.loads(payload.read_text(encoding="utf-8"))
            result = ValidationResult.from_dict(data)
        except (OSError, ValueError, KeyError, TypeError, AttributeError) as exc:
            logger.debug("Cache miss for %s: payload unusable (%s)", validator_name, exc)
            return None

        result.validated_files = list(entry.files)
        logger.debug("Cache hit for %s", validator_name)
        return result

    def set(
        self, validator_name: str, result: ValidationResult, config: LintConfig | None
    ) -> None:
        """Store *result*, fingerprinted by the files it lists in ``validated_files``."""
        if not self.enabled:
            return

        try:
            files = sorted(set(result.validated_files))
            digest = self.fingerprint(validator_name, config, files)
            result_file = f"{digest}.json"
            with self._lock:
                entries = self._load_index()
                previous = entries.get(validator_name)
                self._write_json(self.payload_dir / result_file, result.to_dict())
                entries[validator_name] = CacheEntry(
                    hash=digest, timestamp=time.time(), result_file=result_file, files=files
                )
                self._save_index(entries)
                if previous is not None and previous.result_file != result_file:
                    (self.payload_dir / previous.result_file).unlink(missing_ok=True)
        except Exception as exc:
            self._fault(f"Failed to write cache for {validator_name}: {exc}")

    def clear(self) -> None:
        """Delete the whole cache location; a missing location is fine."""
        try:
            shutil.rmtree(self.location)
        except FileNotFoundError:
            pass
        except OSError as exc:
            self._fault(f"Failed to clear cache {self.location}: {exc}")

    def stats(self) -> dict[str, Any]:
        entries = self._load_index()
        size = 0
        for entry in entries.values():
            try:
                size += (self.payload_dir / entry.result_file).stat().st_size
            except OSError:
                continue
        return {"location": str(self.location), "entries": len(entries), "bytes": size}
