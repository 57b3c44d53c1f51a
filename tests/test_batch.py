"""
Tests for batch change request functionality.
"""
import pytest

from sentence_quiz.batch import (
    BatchResult,
    Change,
    ChangeRequest,
    OperationType,
    OPTIONAL_FIELDS,
    REQUIRED_FIELDS,
    ParseError,
    execute_change_request,
    load_change_request,
    validate_change_request,
)

from conftest import OTHER_OWNER, OWNER


def _request(*changes, owner=OWNER):
    return ChangeRequest(
        owner=owner,
        changes=[Change(operation=op, params=params) for op, params in changes],
    )


class TestParser:
    """Tests for YAML parsing."""

    def test_load_from_file(self, tmp_path):
        """Test loading a change request from a file."""
        yaml_content = """
owner: charles
description: Weekend vocabulary
changes:
  - operation: add_category
    name: Travel
"""
        yaml_file = tmp_path / "test.yaml"
        yaml_file.write_text(yaml_content, encoding="utf-8")

        request = load_change_request(yaml_file)

        assert request.owner == "charles"
        assert request.description == "Weekend vocabulary"
        assert request.source_file == yaml_file
        assert len(request.changes) == 1
        assert request.changes[0].operation == "add_category"
        assert request.changes[0].params == {"name": "Travel"}

    def test_load_from_string(self):
        """Test loading a change request from a YAML string."""
        yaml_content = """
owner: charles
changes:
  - operation: add_sentence
    category: Travel
    source: 안녕하세요
    target: Hello
"""
        request = load_change_request(yaml_content)

        assert request.owner == "charles"
        assert request.changes[0].category == "Travel"
        assert request.changes[0].target == "Hello"

    def test_load_from_dict(self):
        """Test loading a change request from a dictionary."""
        request = load_change_request({
            "owner": "charles",
            "changes": [{"operation": "delete_category", "category": "Food"}],
        })

        assert request.changes[0].operation == "delete_category"
        assert request.source_file is None

    @pytest.mark.parametrize("data,message", [
        ({"changes": [{"operation": "add_category"}]}, "owner"),
        ({"owner": 3, "changes": [{"operation": "add_category"}]}, "owner"),
        ({"owner": "charles"}, "changes"),
        ({"owner": "charles", "changes": []}, "cannot be empty"),
        ({"owner": "charles", "changes": "add"}, "must be a list"),
        ({"owner": "charles", "changes": ["add"]}, "Change #1"),
        ({"owner": "charles", "changes": [{"name": "x"}]}, "operation"),
    ])
    def test_parse_errors(self, data, message):
        """Structural problems raise ParseError."""
        with pytest.raises(ParseError, match=message):
            load_change_request(data)

    def test_parse_error_invalid_yaml(self, tmp_path):
        """Invalid YAML reports the line."""
        yaml_file = tmp_path / "invalid.yaml"
        yaml_file.write_text("owner: charles\nchanges: [\n  - broken\n")

        with pytest.raises(ParseError) as exc_info:
            load_change_request(yaml_file)
        assert exc_info.value.line is not None

    def test_empty_file(self, tmp_path):
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        with pytest.raises(ParseError, match="Empty"):
            load_change_request(yaml_file)

    def test_file_not_found(self):
        """Test error on missing file."""
        with pytest.raises(FileNotFoundError):
            load_change_request("/nonexistent/file.yaml")


class TestValidation:
    """Tests for schema validation."""

    def test_validate_valid_request(self):
        """A request covering every operation validates."""
        request = _request(
            ("add_category", {"name": "Travel", "color": "red"}),
            ("rename_category", {"category": "Travel", "name": "Trips"}),
            ("move_category", {"category": "Trips", "target": "Food"}),
            ("add_sentence", {"category": "Trips", "source": "a", "target": "b"}),
            ("edit_sentence", {"category": "Trips", "sentence": "a",
                               "source": "c", "target": "d"}),
            ("move_sentence", {"category": "Trips", "sentence": 5, "target": "c"}),
            ("delete_sentence", {"category": "Trips", "sentence": 5}),
            ("delete_category", {"category": "Trips"}),
        )
        result = validate_change_request(request)
        assert result.is_valid
        assert result.error_count == 0

    def test_validate_unknown_operation(self):
        result = validate_change_request(_request(("add_word", {"word": "x"})))
        assert not result.is_valid
        assert result.errors[0].field == "operation"
        assert "Unknown operation" in result.errors[0].message

    def test_validate_missing_required_field(self):
        result = validate_change_request(
            _request(("add_sentence", {"category": "Travel", "source": "a"}))
        )
        assert [e.field for e in result.errors] == ["target"]

    @pytest.mark.parametrize("params,field", [
        ({"name": "   "}, "name"),
        ({"name": 42}, "name"),
        ({"name": "Travel", "colour": "red"}, "colour"),
    ])
    def test_validate_bad_category_fields(self, params, field):
        result = validate_change_request(_request(("add_category", params)))
        assert not result.is_valid
        assert result.errors[0].field == field

    @pytest.mark.parametrize("ref", [True, 1.5, "  ", ["a"]])
    def test_validate_bad_sentence_ref(self, ref):
        result = validate_change_request(
            _request(("delete_sentence", {"category": "Travel", "sentence": ref}))
        )
        assert [e.field for e in result.errors] == ["sentence"]

    def test_validate_blank_owner(self):
        result = validate_change_request(
            _request(("add_category", {"name": "Travel"}), owner="  ")
        )
        assert result.errors[0].field == "owner"
        assert result.errors[0].index == -1

    def test_errors_are_collected_per_change(self):
        result = validate_change_request(_request(
            ("add_category", {}),
            ("delete_category", {}),
        ))
        assert [e.index for e in result.errors] == [0, 1]


class TestOperationTypes:

    def test_all_operations_have_field_lists(self):
        for op in OperationType:
            assert op.value in REQUIRED_FIELDS
            assert op.value in OPTIONAL_FIELDS


class TestExecutor:
    """Tests for change execution through the engine."""

    def test_dry_run(self, engine, store):
        """Dry run describes changes but leaves the store alone."""
        store.calls.clear()
        result = execute_change_request(
            engine,
            _request(("add_category", {"name": "Travel"})),
            dry_run=True,
        )
        assert result.dry_run
        assert result.success_count == 1
        assert "Travel" in result.changes[0].message
        assert engine.model.categories() == ()
        assert store.calls["insert_category"] == 0

    def test_build_collection(self, engine):
        """Later changes can reference what earlier ones created."""
        result = execute_change_request(engine, _request(
            ("add_category", {"name": "Travel", "color": "red"}),
            ("add_category", {"name": "Food"}),
            ("add_sentence", {"category": "Travel", "source": "안녕", "target": "Hello"}),
            ("add_sentence", {"category": "Travel", "source": "감사", "target": "Thanks"}),
            ("move_sentence", {"category": "Travel", "sentence": "감사", "target": "안녕"}),
            ("move_category", {"category": "Food", "target": "Travel"}),
            ("rename_category", {"category": "Food", "name": "Meals"}),
        ))

        assert result.failure_count == 0, [c.message for c in result.changes]
        assert result.changes[0].created_id is not None
        assert [c.name for c in engine.model.categories()] == ["Meals", "Travel"]
        travel = engine.model.find_category_by_name("Travel")
        assert travel.color == "red"
        assert [s.source for s in engine.model.sentences(travel.id)] == ["감사", "안녕"]

    def test_edit_and_delete_by_id(self, engine_with_data):
        engine, travel, food, s1, s2, s3, s4 = engine_with_data
        result = execute_change_request(engine, _request(
            ("edit_sentence", {"category": "Travel", "sentence": s1.id,
                               "source": "안녕!", "target": "Hi"}),
            ("delete_sentence", {"category": "Travel", "sentence": s2.id}),
            ("delete_category", {"category": "Food"}),
        ))

        assert result.success_count == 3
        assert engine.model.get_sentence(s1.id).target == "Hi"
        assert [s.id for s in engine.model.sentences(travel.id)] == [s1.id, s3.id]
        assert engine.model.categories() == (engine.model.get_category(travel.id),)

    def test_execute_continues_on_error(self, engine_with_data):
        """A failing change is reported and later ones still run."""
        engine, travel, food, s1, s2, s3, s4 = engine_with_data
        result = execute_change_request(engine, _request(
            ("delete_category", {"category": "Nowhere"}),
            ("delete_sentence", {"category": "Travel", "sentence": s4.id}),
            ("add_sentence", {"category": "Food", "source": "  ", "target": "x"}),
            ("add_category", {"name": "Study"}),
        ))

        assert result.total_count == 4
        assert result.failure_count == 3
        assert result.success_count == 1
        assert result.skipped_count == 0
        errors = [c.error for c in result.changes]
        assert errors == [
            "EntityNotFoundError", "EntityNotFoundError", "ValidationError", None,
        ]
        assert engine.model.find_category_by_name("Study") is not None
        assert engine.model.get_sentence(s4.id)

    def test_remote_failure_is_reported(self, engine_with_data, store):
        engine = engine_with_data[0]
        store.fail_on["insert_category"] = 1
        result = execute_change_request(
            engine, _request(("add_category", {"name": "Study"})),
        )
        assert result.changes[0].error == "RemoteWriteError"
        assert engine.model.find_category_by_name("Study") is None

    def test_partial_reorder_is_a_failure(self, engine_with_data, store):
        engine, travel, food, s1, s2, s3, s4 = engine_with_data
        store.calls.clear()
        store.fail_on["update_sentence"] = 2
        result = execute_change_request(engine, _request(
            ("move_sentence", {"category": "Travel", "sentence": s3.id,
                               "target": s1.id}),
        ))

        change = result.changes[0]
        assert not change.success
        assert "1 of 3" in change.message
        # The local order is kept
        assert [s.id for s in engine.model.sentences(travel.id)] == [s3.id, s1.id, s2.id]

    def test_sentence_must_be_in_category(self, engine_with_data):
        engine, travel, food, s1, s2, s3, s4 = engine_with_data
        result = execute_change_request(engine, _request(
            ("delete_sentence", {"category": "Travel", "sentence": s4.id}),
        ))
        assert "not in category" in result.changes[0].message

    def test_loads_request_owner(self, engine_with_data):
        """The engine switches to the request's owner before applying."""
        engine = engine_with_data[0]
        result = execute_change_request(engine, _request(
            ("add_category", {"name": "Guest words"}),
            owner=OTHER_OWNER,
        ))

        assert result.owner == OTHER_OWNER
        assert result.success_count == 1
        assert engine.owner == OTHER_OWNER
        assert [c.name for c in engine.model.categories()] == ["Guest words"]


class TestBatchResult:

    def test_skipped_count(self):
        result = BatchResult(
            owner=OWNER,
            total_count=5,
            success_count=3,
            failure_count=1,
            changes=[],
            duration_seconds=0.0,
        )
        assert result.skipped_count == 1


class TestIntegration:
    """Parse, validate and execute a request file."""

    def test_full_workflow(self, engine, tmp_path):
        yaml_file = tmp_path / "request.yaml"
        yaml_file.write_text(
            "owner: charles\n"
            "changes:\n"
            "  - operation: add_category\n"
            "    name: Travel\n"
            "  - operation: add_sentence\n"
            "    category: Travel\n"
            "    source: 어디예요?\n"
            "    target: Where is it?\n",
            encoding="utf-8",
        )

        request = load_change_request(yaml_file)
        assert validate_change_request(request).is_valid

        result = execute_change_request(engine, request)
        assert result.success_count == 2

        travel = engine.model.find_category_by_name("Travel")
        assert engine.model.sentences(travel.id)[0].target == "Where is it?"
