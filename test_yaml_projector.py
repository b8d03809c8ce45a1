"""
Unit tests for yaml_projector module.
"""

import yaml

from values_schema.path_address import PathAddress
from values_schema.schema_walker import walk
from values_schema.yaml_projector import (
    build_document,
    format_key,
    format_value,
    project,
    values_filename,
)
from test_fixtures import SchemaFixtures


def _project(schema, definitions=None):
    return project(walk(schema, definitions))


class TestFormatting:
    """Keys and scalar values."""

    def test_format_value_uses_yaml_flow_literals(self):
        assert format_value("") == '""'
        assert format_value("nginx") == '"nginx"'
        assert format_value(8080) == "8080"
        assert format_value(1.5) == "1.5"
        assert format_value(True) == "true"
        assert format_value(None) == "null"
        assert format_value({}) == "{}"
        assert format_value([]) == "[]"
        assert format_value({"a": [1, "b"]}) == '{"a": [1, "b"]}'

    def test_format_value_keeps_unicode(self):
        assert format_value("café") == '"café"'

    def test_format_key_plain(self):
        assert format_key("replicaCount") == "replicaCount"
        assert format_key("app.kubernetes.io/name") == "app.kubernetes.io/name"

    def test_format_key_quotes_when_needed(self):
        assert format_key("") == '""'
        assert format_key("true") == '"true"'
        assert format_key("No") == '"No"'
        assert format_key("8080") == '"8080"'
        assert format_key("with space") == '"with space"'
        assert format_key("#hash") == '"#hash"'


class TestProject:
    """Rendering the annotated document."""

    def test_simple_schema(self):
        """Test required marker and default value lines."""
        text = _project(SchemaFixtures.get_simple_schema())
        assert text == 'name: ""  # required\nport: 8080\n'

    def test_required_line_precedes_optional(self):
        lines = _project(SchemaFixtures.get_simple_schema()).splitlines()
        assert lines.index('name: ""  # required') < lines.index("port: 8080")

    def test_chart_schema_renders_full_document(self):
        text = _project(SchemaFixtures.get_chart_schema())
        assert text == (
            "# Number of replicas\n"
            "replicaCount: 1\n"
            "# Container image\n"
            "image:  # required\n"
            '  repository: "nginx"  # required\n'
            "  # Defaults to appVersion\n"
            '  tag: ""\n'
            '  pullPolicy: "IfNotPresent"\n'
            "service:\n"
            '  type: "ClusterIP"\n'
            "  ports:\n"
            '    - name: "http"\n'
            "      port: 80  # required\n"
        )

    def test_output_is_valid_yaml(self):
        text = _project(SchemaFixtures.get_chart_schema())
        assert yaml.safe_load(text) == {
            "replicaCount": 1,
            "image": {"repository": "nginx", "tag": "", "pullPolicy": "IfNotPresent"},
            "service": {"type": "ClusterIP", "ports": [{"name": "http", "port": 80}]},
        }

    def test_array_of_objects(self):
        text = _project(SchemaFixtures.get_array_schema())
        assert text == "list:\n  - id: 0\n"
        assert yaml.safe_load(text) == {"list": [{"id": 0}]}

    def test_array_of_scalars_and_nested_arrays(self):
        schema = {
            "properties": {
                "tags": {"type": "array", "items": {"type": "string", "default": "a"}},
                "matrix": {"type": "array", "items": {"type": "array", "items": {"type": "integer"}}},
            },
        }
        text = _project(schema)
        assert text == 'tags:\n  - "a"\nmatrix:\n  -\n    - 0\n'
        assert yaml.safe_load(text) == {"tags": ["a"], "matrix": [[0]]}

    def test_array_root(self):
        schema = {"type": "array", "items": {"properties": {"id": {"type": "integer"}, "name": {"type": "string"}}}}
        text = _project(schema)
        assert text == '- id: 0\n  name: ""\n'
        assert yaml.safe_load(text) == [{"id": 0, "name": ""}]

    def test_nested_object_inside_array_element(self):
        schema = {
            "properties": {
                "hosts": {
                    "type": "array",
                    "items": {
                        "properties": {
                            "meta": {"properties": {"zone": {"default": "eu"}}},
                            "name": {"type": "string"},
                        },
                    },
                },
            },
        }
        text = _project(schema)
        assert yaml.safe_load(text) == {"hosts": [{"meta": {"zone": "eu"}, "name": ""}]}

    def test_empty_containers(self):
        schema = {"properties": {"labels": {"type": "object"}, "args": {"type": "array"}}}
        text = _project(schema)
        assert text == "labels: {}\nargs: []\n"

    def test_container_defaults_in_flow_style(self):
        schema = {"properties": {"labels": {"type": "object", "default": {"team": "core"}}}}
        assert _project(schema) == 'labels: {"team": "core"}\n'

    def test_variants_are_not_rendered(self):
        text = _project(SchemaFixtures.get_combinator_schema())
        assert text == '# Credentials\nauth:\n  user: ""\n  password: ""\n'
        assert "token" not in text

    def test_placeholders_render_null_with_marker(self):
        schema = dict(SchemaFixtures.get_cyclic_schema())
        text = _project(schema)
        assert text == "b:\n  a: null  # recursive reference #/definitions/A\n"
        assert yaml.safe_load(text) == {"b": {"a": None}}

    def test_required_and_placeholder_markers_combine(self):
        schema = {"required": ["x"], "properties": {"x": {"$ref": "#/definitions/missing"}}}
        assert _project(schema) == "x: null  # required, unresolved reference #/definitions/missing\n"

    def test_multiline_description(self):
        schema = {"properties": {"a": {"title": "A value", "description": "First line\nSecond line"}}}
        assert _project(schema) == '# A value\n# First line\n# Second line\na: ""\n'

    def test_comment_indentation_follows_depth(self):
        schema = {"properties": {"outer": {"properties": {"inner": {"description": "Nested"}}}}}
        assert _project(schema) == 'outer:\n  # Nested\n  inner: ""\n'

    def test_empty_input(self):
        assert project([]) == ""

    def test_projection_is_deterministic(self):
        schema = SchemaFixtures.get_chart_schema()
        assert _project(schema) == _project(schema)


class TestBuildDocument:
    """Building text and catalog together."""

    def test_document_fields(self):
        document = build_document(SchemaFixtures.get_chart_schema(), "my-chart")
        assert document.filename == "values-my-chart.yaml"
        assert values_filename("x") == "values-x.yaml"
        assert document.title_line == "# Chart values"
        assert document.text.startswith("# Number of replicas\n")
        assert document.catalog.paths()[:2] == ["replicaCount", "image"]
        assert len(document.nodes) == len(document.catalog)

    def test_download_starts_with_title(self):
        document = build_document(SchemaFixtures.get_chart_schema(), "chart")
        assert document.download_text == "# Chart values\n" + document.text
        assert yaml.safe_load(document.download_text) == yaml.safe_load(document.text)

    def test_no_title(self):
        document = build_document(SchemaFixtures.get_simple_schema(), "simple")
        assert document.title_line is None
        assert document.download_text == document.text
        assert document.catalog.paths() == ["name", "port"]

    def test_line_numbers(self):
        document = build_document(SchemaFixtures.get_chart_schema(), "chart")
        lines = document.text.splitlines()
        image = PathAddress.root().child("image")
        element = PathAddress.root().child("service").child("ports").item(0)
        assert lines[document.line_of(image) - 1] == "image:  # required"
        assert lines[document.line_of(element) - 1] == '    - name: "http"'
        assert document.line_of(PathAddress.root().child("missing")) is None

    def test_variant_paths_have_no_line(self):
        document = build_document(SchemaFixtures.get_combinator_schema(), "auth")
        variant = document.catalog.lookup("auth.oneOf[1].token")
        assert variant is not None
        assert document.line_of(variant) is None
