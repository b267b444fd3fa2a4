"""Tests for the section producers, each run on its own canvas."""

import io
import json

import pytest

from labreport.canvas import ReportCanvas
from labreport.layout import PageLayout
from labreport.models import DEFAULT_CALCULATIONS, FitSummary, LabReport, Observation
from labreport.sections import (
    CalculationsSection,
    ChartSection,
    CircuitSection,
    CoverSection,
    ObservationTableSection,
    SectionStatus,
    ThankYouSection,
    format_calculations,
)


def make_canvas() -> tuple[ReportCanvas, io.BytesIO]:
    buffer = io.BytesIO()
    canvas = ReportCanvas(buffer, PageLayout.for_page_size("A4"), compress=False)
    return canvas, buffer


def finish(canvas: ReportCanvas, buffer: io.BytesIO) -> bytes:
    canvas.finish()
    return buffer.getvalue()


class TestFormatCalculations:
    """Tests for format_calculations."""

    def test_string_is_verbatim(self):
        text = "R = V / I\n  = 10 ohm"
        assert format_calculations(text) == text

    @pytest.mark.parametrize("value", [None, "", "   \n"])
    def test_missing_uses_default(self, value):
        assert format_calculations(value) == DEFAULT_CALCULATIONS

    def test_structured_value_is_indented_json(self):
        value = {"R": 10, "steps": ["V = 2", "I = 0.2"], "note": None}
        assert format_calculations(value) == json.dumps(value, indent=2)

    def test_structured_value_keeps_key_order(self):
        value = {"z": 1, "a": 2}
        assert format_calculations(value).index('"z"') < format_calculations(value).index('"a"')

    def test_number(self):
        assert format_calculations(42) == "42"

    def test_integers_beyond_64_bits_stay_exact(self):
        value = {"n": 2**64, "m": -(2**70)}
        text = format_calculations(value)
        assert '"n": 18446744073709551616' in text
        assert str(-(2**70)) in text

    def test_non_finite_floats_are_not_nulled(self):
        text = format_calculations({"slope": float("nan"), "max": float("inf")})
        assert '"slope": NaN' in text
        assert '"max": Infinity' in text
        assert "null" not in text

    def test_non_ascii_kept_readable(self):
        assert format_calculations({"R": "10 ohm \u00b1 1"}) == '{\n  "R": "10 ohm \u00b1 1"\n}'


class TestCoverSection:
    """Tests for CoverSection."""

    def test_cover_is_one_page(self):
        canvas, buffer = make_canvas()
        report = LabReport(title="Ohm's Law Lab", author="Asha", roll="21EE042")

        outcome = CoverSection().render(canvas, report)
        content = finish(canvas, buffer)

        assert outcome.status is SectionStatus.EMITTED
        assert outcome.pages == 1
        assert b"Your College Name" in content
        assert b"Student Name :" in content
        assert b"21EE042" in content
        assert b"Connect the circuit." in content

    def test_theory_and_instructor(self):
        canvas, buffer = make_canvas()

        CoverSection().render(
            canvas, LabReport(theory="V = IR for an ohmic conductor.", instructor_name="Dr. Rao")
        )
        content = finish(canvas, buffer)

        assert b"(Theory)" in content
        assert b"(V = IR for an ohmic conductor.)" in content
        assert b"(Instructor :)" in content
        assert b"(Dr. Rao)" in content
        assert content.index(b"(Apparatus)") < content.index(b"(Theory)") < content.index(
            b"(Procedure)"
        )

    def test_theory_only_when_supplied(self):
        canvas, buffer = make_canvas()
        CoverSection().render(canvas, LabReport())
        assert b"(Theory)" not in finish(canvas, buffer)

    def test_description_only_when_supplied(self):
        canvas, buffer = make_canvas()
        CoverSection().render(canvas, LabReport())
        assert b"(Description)" not in finish(canvas, buffer)

        canvas, buffer = make_canvas()
        CoverSection().render(canvas, LabReport(description="Series circuit"))
        content = finish(canvas, buffer)
        assert b"(Description)" in content
        assert b"Series circuit" in content


class TestObservationTableSection:
    """Tests for ObservationTableSection."""

    def test_empty_table_still_emits_header_page(self):
        canvas, buffer = make_canvas()

        outcome = ObservationTableSection().render(canvas, LabReport())
        content = finish(canvas, buffer)

        assert outcome.status is SectionStatus.EMITTED
        assert outcome.pages == 1
        assert outcome.message == "0 rows"
        assert b"(Voltage \\(V\\))" in content

    def test_long_table_spans_pages_with_every_row_in_order(self):
        canvas, buffer = make_canvas()
        rows = [Observation(voltage=i, current=i / 10, remark=f"obs-{i:04d}") for i in range(100)]

        outcome = ObservationTableSection().render(canvas, LabReport(observations=rows))
        content = finish(canvas, buffer)

        assert outcome.pages == 3
        positions = [content.index(f"(obs-{i:04d})".encode()) for i in range(100)]
        assert positions == sorted(positions)
        assert all(content.count(f"(obs-{i:04d})".encode()) == 1 for i in range(100))
        # Header repeated on every table page
        assert content.count(b"(Current \\(A\\))") == 3

    def test_long_cell_wraps_instead_of_truncating(self):
        canvas, buffer = make_canvas()
        remark = " ".join(f"word{i:02d}" for i in range(40))

        ObservationTableSection().render(
            canvas, LabReport(observations=[Observation(voltage=1, remark=remark)])
        )
        content = finish(canvas, buffer)

        # Every word is drawn, none is cut off with an ellipsis
        for i in range(40):
            assert f"word{i:02d}".encode() in content
        assert b"..." not in content

    def test_wrapped_rows_push_later_rows_down(self):
        section = ObservationTableSection()
        single = section._row_height([["a"], ["b"], ["c"], ["d"]])
        triple = section._row_height([["a"], ["b"], ["c"], ["x", "y", "z"]])
        assert single == section.geometry.row_height
        assert triple > 2 * single


class TestImageSections:
    """Tests for ChartSection and CircuitSection."""

    def test_absent_chart_is_skipped(self):
        canvas, buffer = make_canvas()
        outcome = ChartSection().render(canvas, LabReport())
        assert outcome.status is SectionStatus.SKIPPED
        assert outcome.pages == 0

    def test_png_chart_is_embedded(self, png_data_url):
        canvas, buffer = make_canvas()

        outcome = ChartSection().render(canvas, LabReport(chart_image=png_data_url))
        content = finish(canvas, buffer)

        assert outcome.status is SectionStatus.EMITTED
        assert outcome.pages == 1
        assert b"/Subtype /Image" in content
        assert b"Error embedding" not in content

    def test_svg_chart_is_embedded(self, svg_markup):
        canvas, buffer = make_canvas()

        outcome = ChartSection().render(canvas, LabReport(chart_svg=svg_markup))
        content = finish(canvas, buffer)

        assert outcome.status is SectionStatus.EMITTED
        assert outcome.pages == 1
        assert b"Error embedding" not in content

    def test_svg_data_url_uses_vector_path(self, svg_markup):
        import base64

        payload = base64.b64encode(svg_markup.encode()).decode()
        canvas, _ = make_canvas()

        outcome = ChartSection().render(
            canvas, LabReport(chart_image=f"data:image/svg+xml;base64,{payload}")
        )

        assert outcome.status is SectionStatus.EMITTED

    @pytest.mark.parametrize(
        "chart_image",
        [
            "not-a-data-url",
            "data:image/png;base64,@@@",
            # Valid base64, but not an image
            "data:image/png;base64,aGVsbG8gd29ybGQ=",
        ],
    )
    def test_broken_chart_degrades_to_error_line(self, chart_image):
        canvas, buffer = make_canvas()

        outcome = ChartSection().render(canvas, LabReport(chart_image=chart_image))
        content = finish(canvas, buffer)

        assert outcome.status is SectionStatus.DEGRADED
        assert outcome.pages == 1
        assert outcome.message
        assert b"(Error embedding chart image.)" in content

    def test_unparseable_svg_degrades(self):
        canvas, buffer = make_canvas()

        outcome = ChartSection().render(canvas, LabReport(chart_svg="this is not svg markup"))
        content = finish(canvas, buffer)

        assert outcome.status is SectionStatus.DEGRADED
        assert b"(Error embedding chart image.)" in content

    def test_broken_circuit_has_its_own_message(self):
        canvas, buffer = make_canvas()

        outcome = CircuitSection().render(canvas, LabReport(circuit_image="garbage"))
        content = finish(canvas, buffer)

        assert outcome.section == "circuit"
        assert outcome.status is SectionStatus.DEGRADED
        assert b"(Error embedding circuit diagram.)" in content


class TestCalculationsSection:
    """Tests for CalculationsSection."""

    def test_defaults(self):
        canvas, buffer = make_canvas()

        outcome = CalculationsSection().render(canvas, LabReport())
        content = finish(canvas, buffer)

        assert outcome.status is SectionStatus.EMITTED
        assert outcome.pages == 1
        assert b"(No calculations provided.)" in content
        assert b"(The experiment was performed successfully.)" in content
        assert b"(Student Signature)" in content
        assert b"(Instructor Signature)" in content
        assert b"(Auto-generated by BEEE Lab Report Generator)" in content
        assert b"(Result)" not in content

    def test_structured_calculations_drawn_line_by_line(self):
        canvas, buffer = make_canvas()

        CalculationsSection().render(canvas, LabReport(calculations={"R": 10, "P": 0.4}))
        content = finish(canvas, buffer)

        assert b'(  "R": 10,)' in content
        assert b'(  "P": 0.4)' in content

    def test_line_fit_block(self):
        canvas, buffer = make_canvas()
        fit = FitSummary(slope=10.0000004, intercept=0.0123, std_error=0.00012, steps=["m = 10"])

        CalculationsSection().render(canvas, LabReport(fit=fit))
        content = finish(canvas, buffer)

        assert b"(Line Fit)" in content
        assert b"(Slope \\(R\\) = 10 ohm)" in content
        assert b"(Intercept = 0.0123)" in content
        assert b"(Std. Error ~ 0.00012)" in content
        assert b"(Calculation steps:)" in content
        assert b"m = 10" in content
        # Without a stated result the fitted slope is reported
        assert b"(Measured resistance ~ 10 ohm)" in content

    def test_stated_result_wins_over_fit(self):
        canvas, buffer = make_canvas()

        CalculationsSection().render(
            canvas, LabReport(result="R = 9.8 ohm", fit=FitSummary(slope=10))
        )
        content = finish(canvas, buffer)

        assert b"(R = 9.8 ohm)" in content
        assert b"Measured resistance" not in content

    def test_result_and_custom_footer(self):
        canvas, buffer = make_canvas()

        CalculationsSection(footer_text="Dept. of EEE").render(
            canvas, LabReport(result="R = 10 ohm")
        )
        content = finish(canvas, buffer)

        assert b"(Result)" in content
        assert b"(R = 10 ohm)" in content
        assert b"(Dept. of EEE)" in content

    def test_long_calculations_flow_onto_more_pages(self):
        canvas, _ = make_canvas()
        text = "\n".join(f"step {i}" for i in range(120))

        outcome = CalculationsSection().render(canvas, LabReport(calculations=text))

        assert outcome.pages >= 2


def test_thank_you_page_names_student():
    canvas, buffer = make_canvas()

    outcome = ThankYouSection().render(canvas, LabReport(author="Asha"))
    content = finish(canvas, buffer)

    assert outcome.section == "thank_you"
    assert outcome.pages == 1
    assert b"(Student: Asha)" in content
