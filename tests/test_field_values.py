from datetime import datetime, timezone

from contractprocessor.data_models import FieldValue, UploadedFile
from contractprocessor.field_values import (
    all_required_filled,
    apply_field_values,
    build_user_fields,
    element_id,
    field_guide,
    find_element,
    has_value,
    iter_element_ids,
)
from contractprocessor.routing import process_document


def _document(data):
    return process_document(UploadedFile(name="contract.txt", content_type="text/plain", data=data))


class TestElementIds:
    def test_ids_are_page_and_index(self, contract_text):
        document = _document(contract_text)

        ids = [eid for eid, _ in iter_element_ids(document)]

        assert ids == [element_id(1, i) for i in range(len(document.elements))]
        assert ids[0] == "element-1-0"

    def test_ids_restart_on_each_page(self):
        data = "\n".join(f"Clause {i}" for i in range(51)).encode()
        document = _document(data)

        ids = [eid for eid, _ in iter_element_ids(document)]

        assert ids[-1] == "element-2-0"

    def test_ids_are_stable_across_reloads(self, contract_text):
        assert [eid for eid, _ in iter_element_ids(_document(contract_text))] == [
            eid for eid, _ in iter_element_ids(_document(contract_text))
        ]

    def test_find_element(self, contract_text):
        document = _document(contract_text)

        assert find_element(document, "element-1-0").content == "SERVICE AGREEMENT"
        assert find_element(document, "element-9-9") is None


class TestFieldGuide:
    def test_lists_detected_fields(self, contract_text):
        guide = field_guide(_document(contract_text))

        assert [item["elementId"] for item in guide] == ["element-1-2", "element-1-5"]
        name, signature = guide
        assert name["label"] == "Name"
        assert name["required"] is True
        assert name["type"] == "text"
        assert signature["type"] == "signature"
        assert signature["required"] is False
        assert not any(item["completed"] for item in guide)

    def test_completed_from_overlay(self, contract_text):
        overlay = {"element-1-2": FieldValue(element_id="element-1-2", value="Ada", type="text")}

        guide = field_guide(_document(contract_text), overlay)

        assert guide[0]["completed"] is True
        assert guide[1]["completed"] is False


class TestUserFields:
    def test_built_from_field_elements(self, contract_text):
        fields = build_user_fields(_document(contract_text), recipient_email="ada@example.com")

        assert [f.id for f in fields] == ["element-1-2", "element-1-5"]
        name = fields[0]
        assert name.field_type == "text"
        assert (name.x, name.width, name.height) == (72 + 36, 200, 30)
        assert name.recipient_email == "ada@example.com"
        assert name.metadata["required"] is True
        assert name.metadata["fieldName"] == "Name"
        assert name.metadata["fontSize"] == 12

    def test_apply_values_drops_unknown_ids(self, contract_text):
        fields = build_user_fields(_document(contract_text))
        now = datetime(2024, 5, 1, tzinfo=timezone.utc)

        overlay = apply_field_values(
            fields,
            {},
            [
                FieldValue(element_id="element-1-2", value="Ada", type="text"),
                FieldValue(element_id="element-7-7", value="?", type="text"),
            ],
            updated_by="ada@example.com",
            now=now,
        )

        assert list(overlay) == ["element-1-2"]
        assert overlay["element-1-2"].updated_at == now
        assert overlay["element-1-2"].updated_by == "ada@example.com"

    def test_apply_values_leaves_input_untouched(self, contract_text):
        fields = build_user_fields(_document(contract_text))
        original = {"element-1-5": FieldValue(element_id="element-1-5", value="sig", type="signature")}

        merged = apply_field_values(
            fields, original, [FieldValue(element_id="element-1-2", value="Ada", type="text")]
        )

        assert list(original) == ["element-1-5"]
        assert set(merged) == {"element-1-2", "element-1-5"}
        assert merged["element-1-2"].updated_by == "unknown"

    def test_all_required_filled(self, contract_text):
        fields = build_user_fields(_document(contract_text))

        assert not all_required_filled(fields, {})
        assert not all_required_filled(
            fields, {"element-1-2": FieldValue(element_id="element-1-2", value="", type="text")}
        )
        assert all_required_filled(
            fields, {"element-1-2": FieldValue(element_id="element-1-2", value="Ada", type="text")}
        )


class TestEmptyValues:
    def test_has_value(self):
        assert has_value(0)
        assert has_value("0")
        assert has_value(True)
        assert not has_value(None)
        assert not has_value("")
        assert not has_value(False)

    def test_zero_fills_a_required_field(self, contract_text):
        fields = build_user_fields(_document(contract_text))
        overlay = {"element-1-2": FieldValue(element_id="element-1-2", value=0, type="number")}

        assert all_required_filled(fields, overlay)
        assert field_guide(_document(contract_text), overlay)[0]["completed"] is True
