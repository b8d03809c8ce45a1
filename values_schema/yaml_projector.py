"""
YAML projection of walked schema nodes.
Renders the annotated example values document shown to users and offered
for download as ``values-<name>.yaml``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import json
import logging
import re

from .path_address import IndexStep, PathAddress
from .path_catalog import PathCatalog
from .schema_walker import AnnotatedNode, NodeKind, Placeholder, SchemaWalker

logger = logging.getLogger(__name__)

INDENT = "  "

# Plain scalars YAML would read as something other than a string key
_PLAIN_KEY = re.compile(r'^[A-Za-z_$][A-Za-z0-9_$./-]*$')
_RESERVED_KEYS = {
    'true', 'false', 'yes', 'no', 'on', 'off', 'y', 'n', 'null', '~',
}


@dataclass(frozen=True)
class ProjectedDocument:
    """Everything the view needs from one walk of one schema."""
    filename: str
    title_line: Optional[str]
    text: str
    catalog: PathCatalog
    nodes: Tuple[AnnotatedNode, ...]
    line_numbers: Mapping[PathAddress, int] = field(default_factory=dict)

    def line_of(self, path: PathAddress) -> Optional[int]:
        return self.line_numbers.get(path)

    @property
    def download_text(self) -> str:
        """Contents of the values file: the title comment, then the projected text."""
        if not self.title_line:
            return self.text
        return f"{self.title_line}\n{self.text}"


def format_key(name: str) -> str:
    """Quote a mapping key when YAML would not read it back as the same string."""
    if _PLAIN_KEY.match(name) and name.lower() not in _RESERVED_KEYS:
        return name
    return json.dumps(name, ensure_ascii=False)


def format_value(value: Any) -> str:
    """
    Serialize an example value as a YAML flow scalar or collection.

    JSON literals are valid YAML, so strings come out double-quoted and
    containers in flow style.
    """
    if isinstance(value, Placeholder):
        return "null"
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        logger.warning(f"Example value {value!r} is not serializable: {e}")
        return json.dumps(str(value), ensure_ascii=False)


def _comment_lines(node: AnnotatedNode, indent: str) -> List[str]:
    lines = []
    for text in (node.title, node.description):
        if text:
            for line in text.strip().splitlines():
                lines.append(f"{indent}# {line.strip()}".rstrip())
    return lines


def _inline_markers(node: AnnotatedNode) -> str:
    markers = []
    if node.is_required:
        markers.append("required")
    if isinstance(node.example_value, Placeholder):
        markers.append(node.example_value.describe())
    return f"  # {', '.join(markers)}" if markers else ""


def render_lines(nodes: Iterable[AnnotatedNode]) -> Tuple[List[str], Dict[PathAddress, int]]:
    """
    Render a pre-order node stream as YAML lines.

    Returns:
        The lines, and for every rendered node the 1-based number of the
        line holding its key (or its "- " entry for array elements)
    """
    lines: List[str] = []
    positions: Dict[PathAddress, int] = {}
    # Object element waiting to put its "- " in front of its first property
    pending_element: Optional[AnnotatedNode] = None

    for node in nodes:
        if node.path.is_variant or node.kind == NodeKind.VARIANT:
            continue

        indent = INDENT * node.depth
        is_element = isinstance(node.path.last_step, IndexStep)
        is_container = node.kind in (NodeKind.OBJECT, NodeKind.ARRAY) and not node.is_leaf

        lines.extend(_comment_lines(node, indent))

        if is_element:
            pending_element = None
            if is_container and node.kind == NodeKind.OBJECT:
                pending_element = node
                continue
            if is_container:
                lines.append(f"{indent}-{_inline_markers(node)}")
            else:
                lines.append(f"{indent}- {format_value(node.example_value)}{_inline_markers(node)}")
            positions[node.path] = len(lines)
            continue

        prefix = indent
        if pending_element is not None and node.depth == pending_element.depth + 1:
            prefix = INDENT * pending_element.depth + "- "
            positions[pending_element.path] = len(lines) + 1
        pending_element = None

        key = format_key(node.key or "")
        if is_container:
            lines.append(f"{prefix}{key}:{_inline_markers(node)}")
        else:
            lines.append(f"{prefix}{key}: {format_value(node.example_value)}{_inline_markers(node)}")
        positions[node.path] = len(lines)

    return lines, positions


def project(nodes: Iterable[AnnotatedNode]) -> str:
    """
    Render a pre-order node stream as an annotated YAML document.

    Args:
        nodes: AnnotatedNode sequence as produced by the schema walker

    Returns:
        YAML text, one trailing newline, empty string for no nodes
    """
    lines, _ = render_lines(nodes)
    return "\n".join(lines) + "\n" if lines else ""


def values_filename(normalized_name: str) -> str:
    return f"values-{normalized_name}.yaml"


def build_document(schema: Mapping[str, Any], normalized_name: str,
                   definitions: Optional[Mapping[str, Any]] = None) -> ProjectedDocument:
    """
    Walk a schema once and build its text and catalog together.

    Raises:
        SchemaError: If the root cannot be projected at all
    """
    walker = SchemaWalker(schema, definitions)
    nodes = tuple(walker.walk())
    lines, positions = render_lines(nodes)
    title = schema.get('title')
    document = ProjectedDocument(
        filename=values_filename(normalized_name),
        title_line=f"# {title}" if isinstance(title, str) and title else None,
        text="\n".join(lines) + "\n" if lines else "",
        catalog=PathCatalog.build(nodes),
        nodes=nodes,
        line_numbers=positions,
    )
    logger.info(f"Projected {document.filename}: {len(nodes)} nodes, {len(lines)} lines")
    return document
