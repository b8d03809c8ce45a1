"""
Schema walker for values schemas.
Walks a JSON Schema document depth-first and yields one AnnotatedNode per
addressable location, resolving in-document references and combinators.
"""

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterator, List, Mapping, Optional, Tuple, Union
import logging

from .path_address import VARIANT_KEYWORDS, KeyStep, PathAddress

logger = logging.getLogger(__name__)

# Alternatives projected as "first one wins", with the others catalogued as variants
VARIANT_COMBINATORS = VARIANT_KEYWORDS

RECURSIVE = 'recursive'
UNRESOLVED = 'unresolved'

# Example values used when a node has no default, const, enum or examples
TYPE_SENTINELS = {
    'string': "",
    'integer': 0,
    'number': 0,
    'boolean': False,
    'null': None,
    'object': {},
    'array': [],
}


class SchemaError(Exception):
    """Raised when a schema cannot be projected at all."""


class NodeKind(str, Enum):
    SCALAR = "scalar"
    OBJECT = "object"
    ARRAY = "array"
    VARIANT = "combinator-variant"


@dataclass(frozen=True)
class Placeholder:
    """Terminal example value for a reference that is not expanded."""
    reason: str
    ref: str

    def describe(self) -> str:
        return f"{self.reason} reference {self.ref}"


@dataclass(frozen=True)
class AnnotatedNode:
    """One addressable location produced by a walk."""

    path: PathAddress
    depth: int
    kind: NodeKind
    example_value: Any
    is_required: bool = False
    title: Optional[str] = None
    description: Optional[str] = None
    variant_index: Optional[int] = None
    type_name: Optional[str] = None
    enum: Optional[Tuple[Any, ...]] = None
    is_leaf: bool = True
    schema: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def key(self) -> Optional[str]:
        """Property name of this node, or None for array elements and variants."""
        step = self.path.last_step
        return step.name if isinstance(step, KeyStep) else None

    @property
    def is_placeholder(self) -> bool:
        return isinstance(self.example_value, Placeholder)


Resolved = Union[Mapping[str, Any], Placeholder]


def merge_schemas(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge two schema nodes, overlay taking precedence.

    ``properties`` are merged key by key (a redeclared property keeps its
    original position), ``required`` lists are unioned, every other keyword
    is replaced.
    """
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        if key == 'properties' and isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = {**current, **value}
        elif key == 'required' and isinstance(value, list) and isinstance(current, list):
            merged[key] = current + [name for name in value if name not in current]
        else:
            merged[key] = value
    return merged


def schema_type(node: Mapping[str, Any]) -> Optional[str]:
    """
    Get the effective type name of a schema node.

    A list of types picks its first non-null member. A missing type is
    inferred from ``properties`` or ``items``.
    """
    declared = node.get('type')
    if isinstance(declared, str):
        return declared
    if isinstance(declared, list):
        names = [name for name in declared if isinstance(name, str)]
        non_null = [name for name in names if name != 'null']
        if non_null:
            return non_null[0]
        if names:
            return names[0]
    if 'properties' in node:
        return 'object'
    if 'items' in node or 'prefixItems' in node:
        return 'array'
    return None


def example_value(node: Mapping[str, Any], type_name: Optional[str]) -> Any:
    """Synthesize the example value shown for a node."""
    if 'default' in node:
        return deepcopy(node['default'])
    if 'const' in node:
        return deepcopy(node['const'])
    for keyword in ('enum', 'examples'):
        values = node.get(keyword)
        if isinstance(values, list) and values:
            return deepcopy(values[0])
    return deepcopy(TYPE_SENTINELS.get(type_name, ""))


def _text(node: Mapping[str, Any], key: str) -> Optional[str]:
    value = node.get(key)
    if isinstance(value, str) and value.strip():
        return value
    return None


def _unescape_pointer_token(token: str) -> str:
    return token.replace('~1', '/').replace('~0', '~')


def _combinator(node: Mapping[str, Any]) -> Optional[str]:
    for keyword in VARIANT_COMBINATORS:
        alternatives = node.get(keyword)
        if isinstance(alternatives, list) and alternatives:
            return keyword
    return None


class SchemaWalker:
    """
    Depth-first, pre-order traversal of a values schema.

    References are resolved by lookup in one definitions table. The set of
    references currently being expanded travels down each recursive path, so
    a reference back into that set yields a placeholder node instead of
    recursing.
    """

    def __init__(self, root: Any, definitions: Optional[Mapping[str, Any]] = None):
        if not isinstance(root, Mapping):
            raise SchemaError(
                f"Schema root must be a JSON object, got {type(root).__name__}"
            )
        self.root = root
        self.definitions = self._build_definitions(root, definitions)

    @staticmethod
    def _build_definitions(root: Mapping[str, Any],
                           extra: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
        table: Dict[str, Any] = {}
        # Later sources win: root definitions beat $defs beat the standalone map
        for source in (extra, root.get('$defs'), root.get('definitions')):
            if isinstance(source, Mapping):
                table.update(source)
        return table

    def walk(self) -> Iterator[AnnotatedNode]:
        node, expanding = self.resolve(self.root, frozenset())
        if isinstance(node, Placeholder):
            logger.warning(f"Schema root cannot be projected: {node.describe()}")
            return

        root = PathAddress.root()
        shape, variants, expanding = self._shape(node, expanding)
        if not isinstance(shape, Placeholder):
            for child, child_path, required in self._children(shape, root):
                yield from self._visit(child, child_path, 0, expanding, required)
        yield from self._variants(variants, root, 0)

    def lookup(self, ref: str) -> Optional[Mapping[str, Any]]:
        """Find the in-document target of a ``$ref``, or None."""
        if not ref.startswith('#'):
            return None
        pointer = ref[1:]
        for prefix in ('/definitions/', '/$defs/'):
            if pointer.startswith(prefix):
                name = pointer[len(prefix):]
                if '/' not in name:
                    target = self.definitions.get(_unescape_pointer_token(name))
                    return target if isinstance(target, Mapping) else None
        return self._follow_pointer(pointer)

    def _follow_pointer(self, pointer: str) -> Optional[Mapping[str, Any]]:
        current: Any = self.root
        if pointer:
            if not pointer.startswith('/'):
                return None
            for token in pointer[1:].split('/'):
                token = _unescape_pointer_token(token)
                if isinstance(current, Mapping) and token in current:
                    current = current[token]
                elif isinstance(current, list) and token.isdigit() and int(token) < len(current):
                    current = current[int(token)]
                else:
                    return None
        return current if isinstance(current, Mapping) else None

    def resolve(self, node: Any, expanding: FrozenSet[str]) -> Tuple[Resolved, FrozenSet[str]]:
        """
        Follow a chain of ``$ref`` pointers.

        Returns the target node (sibling keywords of each ``$ref`` layered on
        top) or a Placeholder, together with the expanding set extended by
        every reference followed.
        """
        if not isinstance(node, Mapping):
            # Boolean schemas and junk carry no shape
            return {}, expanding

        while '$ref' in node:
            ref = node['$ref']
            if not isinstance(ref, str):
                logger.warning(f"Ignoring non-string $ref: {ref!r}")
                return Placeholder(UNRESOLVED, repr(ref)), expanding
            if ref in expanding:
                logger.debug(f"Breaking reference cycle at {ref}")
                return Placeholder(RECURSIVE, ref), expanding
            target = self.lookup(ref)
            if target is None:
                logger.warning(f"Unresolved schema reference: {ref}")
                return Placeholder(UNRESOLVED, ref), expanding
            expanding = expanding | {ref}
            siblings = {key: value for key, value in node.items() if key != '$ref'}
            node = {**target, **siblings} if siblings else target
        return node, expanding

    def _merge_all_of(self, node: Mapping[str, Any],
                      expanding: FrozenSet[str]) -> Tuple[Dict[str, Any], FrozenSet[str]]:
        merged: Dict[str, Any] = {}
        combined = expanding
        for member in node['allOf']:
            part, part_expanding = self.resolve(member, expanding)
            if isinstance(part, Placeholder):
                logger.warning(f"Skipping allOf member: {part.describe()}")
                continue
            if isinstance(part.get('allOf'), list):
                part, part_expanding = self._merge_all_of(part, part_expanding)
            merged = merge_schemas(merged, part)
            combined = combined | part_expanding
        own = {key: value for key, value in node.items() if key != 'allOf'}
        return merge_schemas(merged, own), combined

    def _shape(self, node: Mapping[str, Any], expanding: FrozenSet[str]):
        """
        Reduce the combinators at one location to the node projected there.

        Returns ``(shape, variants, expanding)`` where variants describes the
        outermost oneOf/anyOf found (keyword, alternatives, expanding set at
        that point) or is None.
        """
        variants = None
        shape: Resolved = node
        while True:
            if isinstance(shape.get('allOf'), list):
                shape, expanding = self._merge_all_of(shape, expanding)
            keyword = _combinator(shape)
            if keyword is None:
                return shape, variants, expanding
            alternatives = shape[keyword]
            if variants is None:
                variants = (keyword, alternatives, expanding)
            outer = {key: value for key, value in shape.items() if key != keyword}
            first, expanding = self.resolve(alternatives[0], expanding)
            if isinstance(first, Placeholder):
                return first, variants, expanding
            shape = merge_schemas(first, outer)

    def _children(self, shape: Mapping[str, Any],
                  path: PathAddress) -> List[Tuple[Any, PathAddress, bool]]:
        type_name = schema_type(shape)
        if type_name == 'object':
            properties = shape.get('properties')
            if isinstance(properties, Mapping):
                required = shape.get('required')
                required_names = set(required) if isinstance(required, list) else set()
                return [
                    (child, path.child(str(name)), name in required_names)
                    for name, child in properties.items()
                ]
        elif type_name == 'array':
            items = shape.get('prefixItems', shape.get('items'))
            if isinstance(items, Mapping):
                return [(items, path.item(0), False)]
            if isinstance(items, list):
                return [(item, path.item(index), False) for index, item in enumerate(items)]
        return []

    def _visit(self, raw: Any, path: PathAddress, depth: int, expanding: FrozenSet[str],
               is_required: bool = False,
               variant_index: Optional[int] = None) -> Iterator[AnnotatedNode]:
        node, expanding = self.resolve(raw, expanding)
        if isinstance(node, Placeholder):
            yield self._placeholder(raw, node, path, depth, is_required, variant_index)
            return

        shape, variants, expanding = self._shape(node, expanding)
        if isinstance(shape, Placeholder):
            yield self._placeholder(node, shape, path, depth, is_required, variant_index)
        else:
            type_name = schema_type(shape)
            children = self._children(shape, path)
            if variant_index is not None:
                kind = NodeKind.VARIANT
            elif type_name == 'object':
                kind = NodeKind.OBJECT
            elif type_name == 'array':
                kind = NodeKind.ARRAY
            else:
                kind = NodeKind.SCALAR
            enum = shape.get('enum')

            yield AnnotatedNode(
                path=path,
                depth=depth,
                kind=kind,
                example_value=example_value(shape, type_name),
                is_required=is_required,
                title=_text(shape, 'title'),
                description=_text(shape, 'description'),
                variant_index=variant_index,
                type_name=type_name,
                enum=tuple(enum) if isinstance(enum, list) else None,
                is_leaf=not children,
                schema=shape,
            )
            for child, child_path, child_required in children:
                yield from self._visit(child, child_path, depth + 1, expanding, child_required)

        yield from self._variants(variants, path, depth + 1)

    def _variants(self, variants, path: PathAddress, depth: int) -> Iterator[AnnotatedNode]:
        if variants is None:
            return
        keyword, alternatives, expanding = variants
        for index, alternative in enumerate(alternatives):
            yield from self._visit(alternative, path.variant(keyword, index), depth,
                                   expanding, variant_index=index)

    @staticmethod
    def _placeholder(raw: Any, placeholder: Placeholder, path: PathAddress, depth: int,
                     is_required: bool, variant_index: Optional[int]) -> AnnotatedNode:
        annotations = raw if isinstance(raw, Mapping) else {}
        return AnnotatedNode(
            path=path,
            depth=depth,
            kind=NodeKind.VARIANT if variant_index is not None else NodeKind.SCALAR,
            example_value=placeholder,
            is_required=is_required,
            title=_text(annotations, 'title'),
            description=_text(annotations, 'description'),
            variant_index=variant_index,
            schema=annotations,
        )


def walk(root: Any, definitions: Optional[Mapping[str, Any]] = None) -> Iterator[AnnotatedNode]:
    """
    Walk a schema and return its lazy stream of annotated nodes.

    Args:
        root: Root schema node
        definitions: Optional standalone definitions merged into the root's own

    Returns:
        Iterator of AnnotatedNode in depth-first pre-order

    Raises:
        SchemaError: If the root is not a JSON object
    """
    return SchemaWalker(root, definitions).walk()
