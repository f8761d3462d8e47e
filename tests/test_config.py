"""
Tests for YAML-backed configuration.
"""

from schemagraph import SchemaGraphConfig, a, load_config


class TestSchemaGraphConfig:
    """Tests for SchemaGraphConfig."""

    def test_defaults(self):
        config = SchemaGraphConfig()
        assert config.default_identifier_field == "id"
        assert config.default_identifier_type == "id"
        assert config.timestamps is True
        assert config.owner_field == "owner"
        assert config.groups_field == "groups"

    def test_from_dict_fills_missing_keys(self):
        config = SchemaGraphConfig.from_dict({"owner_field": "author"})
        assert config.owner_field == "author"
        assert config.timestamps is True

    def test_from_empty_dict(self):
        assert SchemaGraphConfig.from_dict(None) == SchemaGraphConfig()

    def test_save_and_load(self, tmp_path):
        path = tmp_path / "schemagraph.yaml"
        SchemaGraphConfig(timestamps=False, groups_field="teams").save(path)
        loaded = load_config(path)
        assert loaded == SchemaGraphConfig(timestamps=False, groups_field="teams")

    def test_load_missing_file(self, tmp_path):
        assert load_config(tmp_path / "missing.yaml") is None

    def test_loaded_config_drives_build(self, tmp_path):
        path = tmp_path / "schemagraph.yaml"
        path.write_text("default_identifier_field: key\ntimestamps: false\n")
        config = load_config(path)
        graph = a.schema({"Todo": a.model({})}, config=config).build()
        todo = graph.models["Todo"]
        assert todo.identifier == ("key",)
        assert list(todo.fields) == ["key"]
