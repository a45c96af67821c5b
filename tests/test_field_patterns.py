import pytest

from contractprocessor.field_patterns import (
    FIELD_RULES,
    detect_field,
    estimate_text_width,
    is_required,
    offset_for,
)


class TestRuleOrder:
    """The rule table is ordered; the first match wins."""

    def test_categories_in_priority_order(self):
        """Labeled rules come first, catch-alls last."""
        categories = [rule.category for rule in FIELD_RULES]

        assert categories == (
            ["signature"] * 5
            + ["date"] * 4
            + ["name"] * 4
            + ["initial"] * 2
            + ["checkbox"] * 2
            + ["signature", "generic", "generic"]
        )

    def test_only_last_rule_names_from_capture(self):
        """Only the bracket catch-all takes its name from the token."""
        assert [rule.name_from_capture for rule in FIELD_RULES].count(True) == 1
        assert FIELD_RULES[-1].name_from_capture

    def test_name_label_beats_long_underscore_run(self):
        """A labeled name blank is a name even when the blank is 10+ long."""
        match = detect_field("Name: " + "_" * 22)

        assert match.category == "name"
        assert match.field_type == "text"
        assert match.field_name == "Name"

    def test_print_name_beats_name(self):
        match = detect_field("Print Name: ________")

        assert match.field_name == "Print Name"

    def test_date_label_beats_generic_blank(self):
        match = detect_field("Date: _____")

        assert match.field_type == "date"
        assert match.category == "date"

    def test_signature_label(self):
        match = detect_field("Signature: " + "_" * 20)

        assert match.field_type == "signature"
        assert match.match_start == len("Signature: ")
        assert match.match_length == 20

    def test_only_first_field_reported(self):
        """Two blanks in one run still yield a single match, the first rule's."""
        match = detect_field("Date: ______   Signature: ______")

        assert match.category == "signature"


class TestDetectField:
    """Classification of individual runs."""

    def test_plain_text_has_no_field(self):
        assert detect_field("This Agreement is made between the parties.") is None

    def test_lone_long_underscore_run_is_signature(self):
        match = detect_field("_" * 20)

        assert match.field_type == "signature"
        assert match.match_start == 0
        assert match.match_length == 20

    def test_short_underscore_run_is_generic_text(self):
        match = detect_field("Company _______ Ltd")

        assert match.category == "generic"
        assert match.field_type == "text"
        assert match.field_name == "Text Field"

    def test_four_underscores_are_not_a_field(self):
        assert detect_field("a ____ b") is None

    @pytest.mark.parametrize("text", ["☐ I agree", "[ ] I agree", "( ) I agree", "□ Yes"])
    def test_checkbox_glyphs(self, text):
        match = detect_field(text)

        assert match.field_type == "checkbox"
        assert match.match_start == 0

    @pytest.mark.parametrize(
        "text, start",
        [("I agree ☐ to the terms", 8), ("Renew automatically? [ ] yes", 21), ("Pets allowed □", 13)],
    )
    def test_checkbox_inside_sentence(self, text, start):
        """A box anywhere in the run is detected, not only at its start."""
        match = detect_field(text)

        assert match.field_type == "checkbox"
        assert match.match_start == start

    def test_x_line_is_signature(self):
        match = detect_field("Please sign X__________")

        assert match.field_type == "signature"
        assert match.match_start == len("Please sign ")

    def test_dated_label(self):
        assert detect_field("Dated: ________").field_type == "date"

    def test_date_format_placeholder(self):
        assert detect_field("Effective [MM/DD/YYYY]").field_type == "date"

    def test_initial_label(self):
        match = detect_field("Initials: ___")

        assert match.field_type == "initial"
        assert match.match_length == 3

    def test_bracket_token_names_the_field(self):
        match = detect_field("Landlord: [Company Name]")

        assert match.category == "generic"
        assert match.field_name == "Company Name"
        assert match.placeholder == "Company Name"

    def test_brace_token_names_the_field(self):
        assert detect_field("{Effective Period}").field_name == "Effective Period"

    def test_matching_is_case_insensitive(self):
        assert detect_field("SIGNATURE: _____").field_type == "signature"


class TestRequired:
    def test_asterisk_marks_required(self):
        assert detect_field("Name: ______ *").required

    def test_required_word_marks_required(self):
        assert detect_field("Date: ______ (Required)").required

    def test_plain_field_is_optional(self):
        assert not detect_field("Name: ______").required

    def test_is_required(self):
        assert is_required("required")
        assert not is_required("optional")


class TestOffsets:
    def test_offset_hint_is_seven_units_per_char(self):
        assert detect_field("Name: ______").offset_hint == 6 * 7

    def test_no_offset_at_start_of_run(self):
        match = detect_field("_" * 12)

        assert match.offset_hint == 0
        assert offset_for(match, 12) == 0

    def test_font_size_refines_offset(self):
        match = detect_field("Name: ______")

        assert offset_for(match, 12) == 6 * 12 * 0.5
        assert offset_for(match) == match.offset_hint

    def test_estimate_text_width(self):
        assert estimate_text_width("Signature: ", 12) == 66
