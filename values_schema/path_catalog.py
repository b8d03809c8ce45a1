"""
Catalog of addressable schema paths used by the search box.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple
import logging

from .path_address import PathAddress
from .schema_walker import AnnotatedNode, SchemaError

logger = logging.getLogger(__name__)


class PathCatalog:
    """Ordered, immutable list of the paths produced by one walk."""

    def __init__(self, paths: Iterable[PathAddress] = ()):
        self._paths: Tuple[PathAddress, ...] = tuple(paths)
        self._canonical: Tuple[str, ...] = tuple(path.canonical() for path in self._paths)
        self._index: Dict[str, int] = {}
        for position, text in enumerate(self._canonical):
            if text in self._index:
                raise SchemaError(f"Duplicate schema path detected: {text}")
            self._index[text] = position

    @classmethod
    def build(cls, nodes: Iterable[AnnotatedNode]) -> 'PathCatalog':
        """Collect node paths in walk order."""
        return cls(node.path for node in nodes)

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[PathAddress]:
        return iter(self._paths)

    def __contains__(self, item) -> bool:
        if isinstance(item, PathAddress):
            item = item.canonical()
        return item in self._index

    def paths(self) -> List[str]:
        """Canonical path strings in catalog order."""
        return list(self._canonical)

    def lookup(self, text: str) -> Optional[PathAddress]:
        position = self._index.get(text)
        return None if position is None else self._paths[position]

    def search(self, query: str, limit: Optional[int] = None) -> List[PathAddress]:
        """
        Case-insensitive substring search over canonical paths.

        Args:
            query: Text to look for; blank returns the whole catalog
            limit: Optional maximum number of matches

        Returns:
            Matching paths in catalog order
        """
        query = query or ""
        needle = query.lower()
        if not query.strip():
            matches = list(self._paths)
        else:
            matches = [
                path for path, text in zip(self._paths, self._canonical)
                if needle in text.lower()
            ]
        logger.debug(f"Path search '{needle}' matched {len(matches)} of {len(self._paths)}")
        if limit is not None:
            matches = matches[:max(limit, 0)]
        return matches
