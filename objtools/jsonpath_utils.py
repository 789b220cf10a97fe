"""JSONPath utilities for objtools."""

from __future__ import annotations

from jsonpath_ng import parse as jsonpath_parse
from jsonpath_ng.exceptions import JsonPathLexerError, JsonPathParserError
from jsonpath_ng.jsonpath import Child, Fields, Index, Root, Slice, This

from .exceptions import InvalidArgumentError
from .models import WILDCARD
from .utils import PATH_SEPARATOR


class JSONPathConverter:
    """Converts simple JSONPath expressions into mask path segments."""

    # Cache of parsed segment lists keyed by expression
    _cache: dict = {}

    @classmethod
    def compile(cls, path: str):
        """Parse a JSONPath expression."""
        try:
            return jsonpath_parse(path)
        except (JsonPathLexerError, JsonPathParserError) as e:
            raise InvalidArgumentError(
                f"Invalid JSONPath expression '{path}': {e}",
                {"expression": path}
            )

    @classmethod
    def to_segments(cls, path: str) -> list[str]:
        """
        Convert a JSONPath expression into mask path segments.

        Supports the root ``$``, named fields, ``.*`` and ``[*]`` (both mapped
        to the mask wildcard) and single numeric indexes.

        Args:
            path: JSONPath expression, e.g. ``$.items[*].id``

        Returns:
            List of segments, e.g. ``["items", "_", "id"]``

        Raises:
            InvalidArgumentError: For expressions that cannot be expressed as
                a single mask path (filters, descendants, unions, bounded
                slices)
        """
        if path not in cls._cache:
            expr = cls.compile(path)
            segments = []
            cls._collect(expr, path, segments)
            if not segments:
                raise InvalidArgumentError(
                    f"JSONPath expression '{path}' does not address a field",
                    {"expression": path}
                )
            cls._cache[path] = segments
        return list(cls._cache[path])

    @classmethod
    def to_dotted(cls, path: str) -> str:
        """Convert a JSONPath expression into a dotted mask path."""
        return PATH_SEPARATOR.join(cls.to_segments(path))

    @classmethod
    def _collect(cls, node, path: str, segments: list[str]):
        if isinstance(node, Child):
            cls._collect(node.left, path, segments)
            cls._collect(node.right, path, segments)
        elif isinstance(node, (Root, This)):
            return
        elif isinstance(node, Fields):
            if len(node.fields) != 1:
                cls._unsupported(path, "multiple fields")
            field = node.fields[0]
            segments.append(WILDCARD if field == '*' else str(field))
        elif isinstance(node, Index):
            indices = getattr(node, 'indices', None) or (node.index,)
            if len(indices) != 1:
                cls._unsupported(path, "multiple indexes")
            segments.append(str(indices[0]))
        elif isinstance(node, Slice):
            if node.start is not None or node.end is not None or node.step is not None:
                cls._unsupported(path, "bounded slice")
            segments.append(WILDCARD)
        else:
            cls._unsupported(path, type(node).__name__)

    @staticmethod
    def _unsupported(path: str, construct: str):
        raise InvalidArgumentError(
            f"Unsupported JSONPath construct in '{path}': {construct}",
            {"expression": path, "construct": construct}
        )
