"""Resolution of record types to their backing data files."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path

import structlog

from resource_catalog_core.exceptions import AmbiguousResourceError, ResourceNotFoundError

logger = structlog.get_logger(__name__)


def normalize_extensions(extensions: Iterable[str]) -> frozenset[str]:
    """Lower-case extensions and strip their leading dot."""
    return frozenset(ext.strip().lstrip(".").lower() for ext in extensions if ext.strip())


class ResourceFileLocator:
    """Finds the single data file defining a record type.

    A record type named ``Item`` is backed by a file ``Item.<ext>`` anywhere
    under one of the search roots. Exactly one such file must exist; when
    several do, the operator has to remove the stale one.
    """

    def locate(
        self,
        record_name: str,
        search_roots: Iterable[Path | str],
        accepted_extensions: Iterable[str],
    ) -> Path:
        """Return the absolute path of the file backing ``record_name``.

        Args:
            record_name: Record type name, used as the file stem.
            search_roots: Directories to search.
            accepted_extensions: File extensions recognised as resource files.

        Returns:
            Absolute path of the single matching file.

        Raises:
            ResourceNotFoundError: If no file matches.
            AmbiguousResourceError: If more than one file matches.
        """
        roots = [Path(root) for root in search_roots]
        extensions = normalize_extensions(accepted_extensions)

        candidates: set[Path] = set()
        for root in roots:
            found = self._match(root, record_name, extensions, recursive=True)
            if not found:
                # Some roots only match at the top level
                found = self._match(root, record_name, extensions, recursive=False)
            candidates.update(found)

        if not candidates:
            raise ResourceNotFoundError(record_name, roots)
        if len(candidates) > 1:
            raise AmbiguousResourceError(record_name, candidates)

        (path,) = candidates
        logger.debug("RESOURCE_FILE_LOCATED", record=record_name, path=str(path))
        return path

    @staticmethod
    def _match(
        root: Path, record_name: str, extensions: frozenset[str], recursive: bool
    ) -> set[Path]:
        if not root.is_dir():
            return set()
        pattern = f"**/{record_name}.*" if recursive else f"{record_name}.*"
        return {
            path.resolve()
            for path in root.glob(pattern)
            if path.is_file()
            and path.stem == record_name
            and path.suffix.lstrip(".").lower() in extensions
        }
