import pytest

from descgen.builders.methods import BuilderSpec, FailureMode, MethodSpec, Operation, synthesize_builder
from descgen.errors import MapEntryNotFoundError
from descgen.registry import build_type_registry
from descgen.schema.loader import to_file_schema
from descgen.schema.models import FileSchema
from tests.conftest import FieldProto, commands_file, field, file_schema, map_entry, map_field, message, message_field

BUILDER = "org.example.commands.CreateOrderValidator"


@pytest.fixture(scope="module")
def commands() -> FileSchema:
    return to_file_schema(commands_file())


@pytest.fixture(scope="module")
def create_order(commands: FileSchema) -> BuilderSpec:
    return synthesize_builder(commands.messages[0], commands, build_type_registry([commands]))


def methods_of(spec: BuilderSpec, field_name: str) -> list[MethodSpec]:
    return [method for method in spec.methods if method.field_name == field_name]


def signatures(methods: list[MethodSpec]) -> list[tuple[str, tuple[str, ...]]]:
    return [(method.name, tuple(parameter.type for parameter in method.parameters)) for method in methods]


class TestBuilderShape:
    def test_names(self, create_order: BuilderSpec) -> None:
        assert create_order.class_name == "CreateOrderValidator"
        assert create_order.package == "org.example.commands"
        assert create_order.builder_type == BUILDER
        assert create_order.message_type == "org.example.commands.OrderCommands.CreateOrder"

    def test_new_builder_first_and_build_last(self, create_order: BuilderSpec) -> None:
        first, last = create_order.methods[0], create_order.methods[-1]

        assert first.name == "newBuilder"
        assert first.static
        assert first.operation == Operation.NEW_BUILDER
        assert last.name == "build"
        assert last.operation == Operation.BUILD
        assert last.return_type == create_order.message_type
        assert not last.returns_self

    def test_build_statements_follow_declaration_order(self, create_order: BuilderSpec) -> None:
        build = create_order.methods[-1]

        assert [(statement.field_name, statement.verb) for statement in build.statements] == [
            ("orderId", "set"),
            ("quantity", "set"),
            ("tags", "addAll"),
            ("items", "addAll"),
            ("wordDictionary", "putAll"),
        ]

    def test_field_indexes_match_declaration_order(self, create_order: BuilderSpec) -> None:
        assert [(classified.name, classified.index) for classified in create_order.fields] == [
            ("order_id", 0),
            ("quantity", 1),
            ("tags", 2),
            ("items", 3),
            ("word_dictionary", 4),
        ]
        assert {method.field_index for method in methods_of(create_order, "items")} == {3}

    def test_backing_fields(self, create_order: BuilderSpec) -> None:
        assert [(backing.name, backing.type) for backing in create_order.backing_fields] == [
            ("orderId", "java.lang.String"),
            ("quantity", "java.lang.Long"),
            ("tags", "java.util.List<java.lang.String>"),
            ("items", "java.util.List<org.example.commands.OrderCommands.Item>"),
            ("wordDictionary", "java.util.Map<java.lang.String, org.example.commands.OrderCommands.Item>"),
        ]

    def test_public_mutators_return_the_builder(self, create_order: BuilderSpec) -> None:
        mutators = [method for method in create_order.methods[1:-1] if not method.private]

        assert mutators
        assert all(method.returns_self and method.return_type == BUILDER for method in mutators)

    def test_initializers_are_private(self, create_order: BuilderSpec) -> None:
        initializers = [method for method in create_order.methods if method.operation == Operation.INITIALIZE]

        assert [method.name for method in initializers] == [
            "createTagsIfNeeded",
            "createItemsIfNeeded",
            "createWordDictionaryIfNeeded",
        ]
        assert all(method.private and not method.returns_self and not method.failure_modes for method in initializers)


class TestSingularMethods:
    def test_textual_field_has_no_raw_setter(self, create_order: BuilderSpec) -> None:
        assert signatures(methods_of(create_order, "orderId")) == [("setOrderId", ("java.lang.String",))]

    def test_non_textual_field_has_raw_setter(self, create_order: BuilderSpec) -> None:
        typed, raw = methods_of(create_order, "quantity")

        assert (typed.name, typed.operation, typed.failure_modes) == (
            "setQuantity",
            Operation.ASSIGN,
            [FailureMode.VALIDATION],
        )
        assert (raw.name, raw.raw, raw.failure_modes) == (
            "setQuantityRaw",
            True,
            [FailureMode.CONVERSION, FailureMode.VALIDATION],
        )
        assert raw.parameters[0].type == "java.lang.String"


class TestRepeatedMethods:
    def test_repeated_string_excludes_raw_variants(self, create_order: BuilderSpec) -> None:
        methods = methods_of(create_order, "tags")

        assert signatures(methods) == [
            ("createTagsIfNeeded", ()),
            ("clearTags", ()),
            ("addTags", ("java.lang.String",)),
            ("addTags", ("int", "java.lang.String")),
            ("removeTags", ("java.lang.String",)),
            ("removeTags", ("int",)),
            ("addAllTags", ("java.util.List<java.lang.String>",)),
        ]
        assert not any(method.raw for method in methods)

    def test_repeated_message_includes_raw_variants(self, create_order: BuilderSpec) -> None:
        item = "org.example.commands.OrderCommands.Item"
        raw_methods = [method for method in methods_of(create_order, "items") if method.raw]

        assert signatures(raw_methods) == [
            ("addRawItems", ("java.lang.String",)),
            ("addRawItems", ("int", "java.lang.String")),
            ("addAllRawItems", ("java.lang.String",)),
        ]
        assert [method.operation for method in raw_methods] == [Operation.ADD, Operation.ADD_AT, Operation.ADD_ALL]
        assert all(method.failure_modes == [FailureMode.CONVERSION, FailureMode.VALIDATION] for method in raw_methods)
        assert ("addItems", (item,)) in signatures(methods_of(create_order, "items"))

    def test_failure_modes(self, create_order: BuilderSpec) -> None:
        modes = {method.operation: method.failure_modes for method in methods_of(create_order, "tags")}

        assert modes[Operation.ADD] == [FailureMode.VALIDATION]
        assert modes[Operation.ADD_ALL] == [FailureMode.VALIDATION]
        assert modes[Operation.REMOVE] == []
        assert modes[Operation.REMOVE_AT] == []
        assert modes[Operation.CLEAR] == []


class TestMapMethods:
    def test_map_with_message_values(self, create_order: BuilderSpec) -> None:
        item = "org.example.commands.OrderCommands.Item"

        assert signatures(methods_of(create_order, "wordDictionary")) == [
            ("createWordDictionaryIfNeeded", ()),
            ("putWordDictionary", ("java.lang.String", item)),
            ("putRawWordDictionary", ("java.lang.String", "java.lang.String")),
            ("putAllWordDictionary", (f"java.util.Map<java.lang.String, {item}>",)),
            ("putAllRawWordDictionary", ("java.lang.String",)),
            ("clearWordDictionary", ()),
            ("removeWordDictionary", ("java.lang.String",)),
        ]

    def test_textual_map_keeps_raw_puts(self) -> None:
        entry = map_entry("LabelsEntry", field("key", 1), field("value", 2))
        msg = message("Tagged", [map_field("labels", 1, ".demo.Tagged.LabelsEntry")], nested=[entry])
        file = file_schema("tagged.proto", messages=[msg])

        spec = synthesize_builder(file.messages[0], file, build_type_registry([file]))

        assert [method.name for method in methods_of(spec, "labels")] == [
            "createLabelsIfNeeded",
            "putLabels",
            "putRawLabels",
            "putAllLabels",
            "putAllRawLabels",
            "clearLabels",
            "removeLabels",
        ]
        assert all(method.raw for method in methods_of(spec, "labels") if "Raw" in method.name)

    def test_missing_entry_is_fatal(self) -> None:
        msg = message("Tagged", [map_field("labels", 1, ".demo.Tagged.LabelsEntry")])
        file = file_schema("tagged.proto", messages=[msg])

        with pytest.raises(MapEntryNotFoundError):
            synthesize_builder(file.messages[0], file, build_type_registry([file]))


class TestSynthesizeBuilder:
    def test_custom_suffix(self) -> None:
        file = file_schema("a.proto", messages=[message("Msg", [field("id", 1)])])

        spec = synthesize_builder(file.messages[0], file, build_type_registry([file]), suffix="Builder")

        assert spec.class_name == "MsgBuilder"
        assert spec.builder_type == "MsgBuilder"

    def test_message_without_fields(self) -> None:
        file = file_schema("a.proto", messages=[message("Empty")])

        spec = synthesize_builder(file.messages[0], file, build_type_registry([file]))

        assert spec.method_names() == ["newBuilder", "build"]
        assert spec.methods[-1].statements == []

    def test_serializes_to_json(self, create_order: BuilderSpec) -> None:
        data = create_order.model_dump(mode="json")

        assert data["builder_type"] == BUILDER
        assert data["fields"][4]["classification"]["kind"] == "map"
        assert data["methods"][1]["failure_modes"] == ["validation"]

    def test_raw_setter_of_nested_message_field(self) -> None:
        inner = message_field("address", 1, ".demo.Address")
        file = file_schema("a.proto", messages=[message("User", [inner]), message("Address")])

        spec = synthesize_builder(file.messages[0], file, build_type_registry([file]))

        assert spec.method_names() == ["newBuilder", "setAddress", "setAddressRaw", "build"]

    def test_repeated_int_field(self) -> None:
        scores = field("scores", 1, FieldProto.TYPE_INT32, FieldProto.LABEL_REPEATED)
        file = file_schema("a.proto", messages=[message("Game", [scores])])

        spec = synthesize_builder(file.messages[0], file, build_type_registry([file]))

        assert "addRawScores" in spec.method_names()
        assert spec.backing_fields[0].type == "java.util.List<java.lang.Integer>"
