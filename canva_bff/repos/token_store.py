"""JSON-file persistence for the single Canva token set.

Persistence is best effort.  Serverless hosts mount the code read-only, so
the store is told at construction whether it may write; when it may not,
save() quietly does nothing and the flow controller's in-memory copy is all
there is for the life of the process.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from canva_bff.models.token_set import TokenSet

logger = logging.getLogger(__name__)


class TokenStore(Protocol):
    def load(self) -> TokenSet | None: ...
    def save(self, tokens: TokenSet) -> None: ...
    def clear(self) -> None: ...


class JsonFileTokenStore:
    def __init__(self, path: Path | str, *, writable: bool = True) -> None:
        self._path = Path(path)
        self._writable = writable

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> TokenSet | None:
        """Return the persisted set, or None if absent or unreadable.

        A corrupt or half-formed file counts as "not authenticated"; it is
        never an error for the caller.
        """
        if not self._path.exists():
            return None
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                data = json.load(handle)
            if not isinstance(data, dict) or not data.get("access_token"):
                logger.warning("Token file %s has no access_token; ignoring", self._path)
                return None
            return TokenSet.from_dict(data)
        except (OSError, ValueError, TypeError) as exc:
            logger.warning("Failed to read tokens from %s: %s", self._path, exc)
            return None

    def save(self, tokens: TokenSet) -> None:
        if not self._writable:
            logger.debug("Token store is read-only; skipping save")
            return

        tmp_name: str | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            # Write beside the target then rename over it: readers see either
            # the old file or the new one, never a truncated mix.
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent, prefix=".tokens-", suffix=".json"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(tokens.to_dict(), handle, indent=2)
            if os.name != "nt":
                os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
            tmp_name = None
            logger.info("Tokens saved to %s", self._path)
        except OSError as exc:
            logger.warning("Could not persist tokens to %s: %s", self._path, exc)
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass

    def clear(self) -> None:
        if not self._writable:
            return
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove token file %s: %s", self._path, exc)
