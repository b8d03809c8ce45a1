"""
Values schema view for the Streamlit app.
Owns the projected document of the current schema and the active path shared
by the search box and the schema tree.
"""

import streamlit as st
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Union
import logging

from .error_handler import ErrorHandler, ErrorType
from .path_address import PathAddress
from .schema_walker import AnnotatedNode, NodeKind, SchemaError
from .yaml_projector import ProjectedDocument, build_document, format_value

logger = logging.getLogger(__name__)

SEARCH = "search"
TREE = "tree"

NBSP = "\u00a0"

PathInput = Union[PathAddress, str, None]


class SchemaView:
    """
    Coordinates one schema projection with the active path selection.

    State lives in ``state`` (Streamlit session state by default) under keys
    prefixed with ``key`` so that several views can share one session.
    """

    def __init__(self, key: str = "values_schema",
                 state: Optional[MutableMapping[str, Any]] = None,
                 max_results: int = 50):
        self.key = key
        self.state = st.session_state if state is None else state
        self.max_results = max_results

    def _state_key(self, name: str) -> str:
        return f"{self.key}_{name}"

    @property
    def document(self) -> Optional[ProjectedDocument]:
        return self.state.get(self._state_key("document"))

    @property
    def active_path(self) -> Optional[PathAddress]:
        return self.state.get(self._state_key("active_path"))

    def load(self, schema: Any, normalized_name: str,
             definitions: Optional[Mapping[str, Any]] = None) -> ProjectedDocument:
        """
        Project a schema unless this exact schema object is already loaded.

        A different object always re-walks, even when structurally equal,
        and clears the active path.

        Raises:
            SchemaError: If the schema root cannot be projected
        """
        document = self.document
        if (document is not None
                and self.state.get(self._state_key("schema")) is schema
                and self.state.get(self._state_key("definitions")) is definitions
                and self.state.get(self._state_key("name")) == normalized_name):
            return document

        logger.info(f"Projecting schema for {normalized_name}")
        self.state[self._state_key("schema")] = schema
        self.state[self._state_key("definitions")] = definitions
        self.state[self._state_key("name")] = normalized_name
        self.state[self._state_key("active_path")] = None
        self.state[self._state_key("document")] = None

        document = build_document(schema, normalized_name, definitions)
        self.state[self._state_key("document")] = document
        return document

    def select_path(self, path: PathInput, source: str = SEARCH) -> bool:
        """
        Replace the active path.

        Both the search box and the tree write through here. ``None`` clears
        the selection; paths missing from the current catalog are rejected.

        Returns:
            True if the active path was replaced
        """
        document = self.document
        if path is None or path == "":
            logger.debug(f"Active path cleared by {source}")
            self.state[self._state_key("active_path")] = None
            return True

        if document is None:
            logger.warning(f"Ignoring path selection from {source}: no schema loaded")
            return False

        text = path.canonical() if isinstance(path, PathAddress) else str(path)
        address = document.catalog.lookup(text)
        if address is None:
            logger.warning(f"Ignoring unknown path '{text}' selected by {source}")
            return False

        logger.debug(f"Active path set to '{text}' by {source}")
        self.state[self._state_key("active_path")] = address
        return True

    def search(self, query: str) -> List[PathAddress]:
        document = self.document
        if document is None:
            return []
        return document.catalog.search(query, limit=self.max_results)

    def is_active(self, path: PathAddress) -> bool:
        return self.active_path == path

    def is_expanded(self, path: PathAddress) -> bool:
        """True for the active path and every path above it."""
        active = self.active_path
        return active is not None and active.startswith(path)

    def visible_nodes(self) -> List[AnnotatedNode]:
        """Nodes the tree shows: top-level ones plus children of expanded paths."""
        document = self.document
        if document is None:
            return []
        visible = []
        for node in document.nodes:
            parent = node.path.parent
            if parent is None or parent.is_root or self.is_expanded(parent):
                visible.append(node)
        return visible

    def active_node(self) -> Optional[AnnotatedNode]:
        active = self.active_path
        document = self.document
        if active is None or document is None:
            return None
        for node in document.nodes:
            if node.path == active:
                return node
        return None

    def active_line(self) -> Optional[Dict[str, Any]]:
        """Line of the projected text holding the active path, if rendered there."""
        active = self.active_path
        document = self.document
        if active is None or document is None:
            return None
        number = document.line_of(active)
        if number is None:
            return None
        return {'number': number, 'text': document.text.splitlines()[number - 1]}

    # Rendering

    def render(self, schema: Any, normalized_name: str,
               definitions: Optional[Mapping[str, Any]] = None) -> None:
        """Render search, projected YAML and schema tree."""
        try:
            document = self.load(schema, normalized_name, definitions)
        except SchemaError as e:
            ErrorHandler.handle_error(e, "schema projection", ErrorType.SCHEMA)
            return

        self._render_search()

        if document.title_line:
            st.caption(document.title_line)

        if document.text:
            st.code(document.text, language="yaml", line_numbers=True)
            st.download_button(
                "⬇️ Download",
                data=document.download_text,
                file_name=document.filename,
                mime="application/x-yaml",
                key=self._state_key("download"),
            )
        else:
            st.info("This schema does not declare any values.")

        line = self.active_line()
        if line:
            st.markdown(f"📍 Line {line['number']}: `{line['text'].strip()}`")

        self._render_tree()

    def _render_search(self) -> None:
        query = st.text_input(
            "🔍 Search values",
            key=self._state_key("query"),
            placeholder="e.g. service.port",
        )
        if not query:
            return

        options = [path.canonical() for path in self.search(query)]
        if not options:
            st.info(f"No values match '{query}'")
            return

        choice_key = self._state_key("search_choice")
        st.selectbox(
            "Matching values",
            options,
            index=None,
            key=choice_key,
            placeholder="Select a value to jump to it",
            on_change=self._on_search_select,
            args=(choice_key,),
        )

    def _on_search_select(self, widget_key: str) -> None:
        self.select_path(self.state.get(widget_key), source=SEARCH)

    def _render_tree(self) -> None:
        st.subheader("Values")
        for node in self.visible_nodes():
            self._render_line(node)

        node = self.active_node()
        if node is not None:
            self._render_details(node)

    def _render_line(self, node: AnnotatedNode) -> None:
        step = node.path.last_step
        if node.key is not None:
            name = node.key
        else:
            name = step.render(True) if step is not None else ""
        marker = "▾" if self.is_expanded(node.path) and not node.is_leaf else "▸"
        if node.is_leaf and node.kind != NodeKind.VARIANT:
            marker = "•"
        label = f"{NBSP * 2 * node.depth}{marker} {name}"
        if node.is_required:
            label += " *"
        st.button(
            label,
            key=self._state_key(f"line_{node.path.canonical()}"),
            type="primary" if self.is_active(node.path) else "secondary",
            on_click=self.select_path,
            args=(node.path, TREE),
        )

    def _render_details(self, node: AnnotatedNode) -> None:
        with st.expander(f"ℹ️ {node.path.canonical()}", expanded=True):
            if node.title:
                st.markdown(f"**{node.title}**")
            if node.description:
                st.write(node.description)
            st.write(f"**Type:** {node.type_name or 'any'}")
            st.write(f"**Required:** {'yes' if node.is_required else 'no'}")
            st.write(f"**Example:** `{format_value(node.example_value)}`")
            if node.enum:
                st.write("**Allowed values:** " + ", ".join(f"`{format_value(v)}`" for v in node.enum))
