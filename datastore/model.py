from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Mapping, Optional

from .storage import LocalFileSystem

logger = logging.getLogger(__name__)


class DataModel:
    """Owns the in-memory document and materializes it from disk on demand.

    ``seed`` receives the freshly loaded document the first time it is
    materialized and fills in defaults; later reloads skip it.
    """

    def __init__(
        self,
        path: str,
        fs: LocalFileSystem,
        seed: Optional[Callable[[Dict[str, Any]], None]] = None,
    ) -> None:
        self.path = path
        self.fs = fs
        self._seed = seed
        self._document: Dict[str, Any] = {}
        self._seeded = False
        self.loaded = False

    def load(self) -> Dict[str, Any]:
        try:
            text = self.fs.read_text(self.path)
        except (FileNotFoundError, NotADirectoryError):
            logger.debug("No store file at %s, starting empty", self.path)
            return {}
        except UnicodeDecodeError:
            logger.warning("Store file %s is not valid UTF-8, starting empty", self.path)
            return {}
        # PermissionError and other OSErrors propagate
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Store file %s is not valid JSON (%s), starting empty", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold a JSON object, starting empty", self.path)
            return {}
        return data

    def load_or_get_document(self) -> Dict[str, Any]:
        if not self.loaded:
            document = self.load()
            if not self._seeded and self._seed is not None:
                self._seed(document)
            self._seeded = True
            self._document = document
            self.loaded = True
        return self._document

    def replace_document(self, document: Mapping[str, Any]) -> None:
        self._document = dict(document)
        self._seeded = True
        self.loaded = True

    def reload(self) -> Dict[str, Any]:
        self.loaded = False
        return self.load_or_get_document()
