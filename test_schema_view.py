"""
Unit tests for schema_view module.
"""

import copy
from unittest.mock import patch

import pytest

from values_schema.path_address import PathAddress
from values_schema.schema_view import SchemaView, SEARCH, TREE
from values_schema.schema_walker import SchemaError
from test_fixtures import SchemaFixtures, FakeSessionState


class TestSchemaViewState:
    """Projection and active path state."""

    def setup_method(self):
        """Fresh view with a dict-backed session state."""
        self.state = FakeSessionState()
        self.view = SchemaView(state=self.state)
        self.schema = SchemaFixtures.get_chart_schema()

    def test_initial_state(self):
        assert self.view.document is None
        assert self.view.active_path is None
        assert self.view.search("anything") == []
        assert self.view.visible_nodes() == []

    def test_load_builds_document(self):
        document = self.view.load(self.schema, "chart")
        assert document.filename == "values-chart.yaml"
        assert self.view.document is document
        assert document.catalog.paths()[0] == "replicaCount"

    def test_same_schema_object_is_not_rewalked(self):
        first = self.view.load(self.schema, "chart")
        with patch("values_schema.schema_view.build_document") as mock_build:
            second = self.view.load(self.schema, "chart")
        mock_build.assert_not_called()
        assert first is second

    def test_equal_but_different_schema_object_rewalks(self):
        first = self.view.load(self.schema, "chart")
        second = self.view.load(copy.deepcopy(self.schema), "chart")
        assert first is not second
        assert first.text == second.text

    def test_new_schema_clears_active_path(self):
        self.view.load(self.schema, "chart")
        assert self.view.select_path("image.tag")
        self.view.load(SchemaFixtures.get_simple_schema(), "simple")
        assert self.view.active_path is None

    def test_reload_of_same_schema_keeps_active_path(self):
        self.view.load(self.schema, "chart")
        self.view.select_path("image.tag")
        self.view.load(self.schema, "chart")
        assert self.view.active_path.canonical() == "image.tag"

    def test_select_path_from_search_and_tree(self):
        self.view.load(self.schema, "chart")
        assert self.view.select_path("service.ports", source=SEARCH)
        assert self.view.active_path.canonical() == "service.ports"

        tree_path = PathAddress.root().child("image").child("tag")
        assert self.view.select_path(tree_path, source=TREE)
        assert self.view.active_path == tree_path

    def test_select_unknown_path_is_rejected(self):
        self.view.load(self.schema, "chart")
        self.view.select_path("image")
        assert self.view.select_path("image.nope") is False
        assert self.view.active_path.canonical() == "image"

    def test_select_none_clears(self):
        self.view.load(self.schema, "chart")
        self.view.select_path("image")
        assert self.view.select_path(None)
        assert self.view.active_path is None

    def test_select_without_document(self):
        assert self.view.select_path("image") is False

    def test_state_is_namespaced(self):
        other = SchemaView(key="other", state=self.state)
        self.view.load(self.schema, "chart")
        assert other.document is None
        assert "values_schema_document" in self.state

    def test_invalid_root_leaves_no_document(self):
        self.view.load(self.schema, "chart")
        with pytest.raises(SchemaError):
            self.view.load(["not", "a", "schema"], "broken")
        assert self.view.document is None
        assert self.view.active_path is None

    def test_search_uses_catalog_with_limit(self):
        view = SchemaView(state=self.state, max_results=2)
        view.load(self.schema, "chart")
        assert [p.canonical() for p in view.search("image")] == ["image", "image.repository"]

    def test_visible_nodes_follow_active_path(self):
        self.view.load(self.schema, "chart")
        top_level = [node.path.canonical() for node in self.view.visible_nodes()]
        assert top_level == ["replicaCount", "image", "service"]

        self.view.select_path("service.ports[0]")
        visible = [node.path.canonical() for node in self.view.visible_nodes()]
        assert visible == [
            "replicaCount",
            "image",
            "service",
            "service.type",
            "service.ports",
            "service.ports[0]",
            "service.ports[0].name",
            "service.ports[0].port",
        ]
        assert self.view.is_expanded(PathAddress.root().child("service"))
        assert not self.view.is_expanded(PathAddress.root().child("image"))

    def test_active_node_and_line(self):
        self.view.load(self.schema, "chart")
        self.view.select_path("service.ports[0].port")
        assert self.view.active_node().example_value == 80
        assert self.view.active_line() == {'number': 13, 'text': "      port: 80  # required"}

    def test_active_line_for_variant_is_none(self):
        self.view.load(SchemaFixtures.get_combinator_schema(), "auth")
        self.view.select_path("auth.oneOf[1].token")
        assert self.view.active_node() is not None
        assert self.view.active_line() is None


class TestSchemaViewRender:
    """Rendering with Streamlit calls mocked out."""

    def setup_method(self):
        self.state = FakeSessionState()
        self.view = SchemaView(state=self.state)

    @patch("values_schema.schema_view.st")
    def test_render_shows_yaml_and_download(self, mock_st):
        mock_st.text_input.return_value = ""
        self.view.render(SchemaFixtures.get_chart_schema(), "chart")

        mock_st.caption.assert_any_call("# Chart values")
        code_text = mock_st.code.call_args[0][0]
        assert code_text == self.view.document.text
        assert mock_st.download_button.call_args[1]["file_name"] == "values-chart.yaml"
        assert mock_st.download_button.call_args[1]["data"].startswith("# Chart values\n")
        # One tree line per top-level value
        assert mock_st.button.call_count == 3

    @patch("values_schema.schema_view.st")
    def test_render_search_offers_matches(self, mock_st):
        mock_st.text_input.return_value = "ports[0]"
        self.view.render(SchemaFixtures.get_chart_schema(), "chart")

        options = mock_st.selectbox.call_args[0][1]
        assert options == ["service.ports[0]", "service.ports[0].name", "service.ports[0].port"]

    @patch("values_schema.schema_view.st")
    def test_search_selection_callback_sets_active_path(self, mock_st):
        mock_st.text_input.return_value = "tag"
        self.view.render(SchemaFixtures.get_chart_schema(), "chart")

        kwargs = mock_st.selectbox.call_args[1]
        self.state[kwargs["args"][0]] = "image.tag"
        kwargs["on_change"](*kwargs["args"])
        assert self.view.active_path.canonical() == "image.tag"

    @patch("values_schema.schema_view.st")
    def test_render_reports_invalid_root(self, mock_st):
        with patch("values_schema.error_handler.st") as mock_error_st:
            self.view.render([1, 2, 3], "broken")
        mock_error_st.error.assert_called_once()
        mock_st.code.assert_not_called()

    @patch("values_schema.schema_view.st")
    def test_render_empty_schema(self, mock_st):
        mock_st.text_input.return_value = ""
        self.view.render({"type": "string"}, "scalar")
        mock_st.info.assert_called_once()
        mock_st.code.assert_not_called()
