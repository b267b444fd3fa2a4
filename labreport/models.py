"""Lab report data structures.

Plain dataclasses consumed by the section producers. The HTTP layer builds
these from the request schema; nothing in this package imports web code.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Any

DEFAULT_TITLE = "Lab Report"
DEFAULT_COLLEGE = "Your College Name"
DEFAULT_OBJECTIVE = "To perform the given experiment and record observations."
DEFAULT_APPARATUS = "Ammeter, Voltmeter, Resistor, Power Supply, Connecting Wires."
DEFAULT_PROCEDURE = "1. Connect the circuit.\n2. Record readings.\n3. Plot V-I graph."
DEFAULT_CALCULATIONS = "No calculations provided."
DEFAULT_CONCLUSION = "The experiment was performed successfully."

Cell = str | int | float | None

_WHITESPACE_RUN = re.compile(r"\s+")


def is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def display_value(value: Any) -> str:
    """Stringify a table cell. Integral floats drop the trailing ``.0``."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def round_to(value: Any, places: int = 6) -> str:
    """Round a numeric value for display; non-numbers count as zero."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = 0.0
    if not math.isfinite(number):
        number = 0.0
    return display_value(round(number, places))


def report_filename(title: str | None) -> str:
    """Derive the download filename: whitespace runs become hyphens."""
    base = DEFAULT_TITLE if is_blank(title) else title.strip()
    return f"{_WHITESPACE_RUN.sub('-', base)}.pdf"


@dataclass
class Observation:
    """One row of the observation table."""

    t: Cell = None
    voltage: Cell = None
    current: Cell = None
    remark: Cell = None

    def cells(self, position: int) -> list[str]:
        """Display values for the four columns; ``position`` is 0-based."""
        index = self.t if self.t is not None else position + 1
        return [
            display_value(index),
            display_value(self.voltage),
            display_value(self.current),
            display_value(self.remark),
        ]


@dataclass
class FitSummary:
    """Least-squares line through the V-I readings, as computed by the client."""

    slope: float | None = None
    intercept: float | None = None
    std_error: float | None = None
    steps: list[str] = field(default_factory=list)

    def lines(self) -> list[str]:
        return [
            f"Slope (R) = {round_to(self.slope)} ohm",
            f"Intercept = {round_to(self.intercept)}",
            f"Std. Error ~ {round_to(self.std_error, 8)}",
        ]


@dataclass
class LabReport:
    """Everything needed to render one lab report."""

    title: str = DEFAULT_TITLE
    author: str | None = None
    college: str | None = None
    roll: str | None = None
    date: str | None = None
    title_id: str | None = None
    instructor_name: str | None = None

    objective: str | None = None
    apparatus: str | None = None
    theory: str | None = None
    description: str | None = None
    procedure: str | None = None
    calculations: Any = None
    result: str | None = None
    conclusion: str | None = None
    fit: FitSummary | None = None

    observations: list[Observation] = field(default_factory=list)

    # Embedded images, as received
    chart_image: str | None = None
    chart_svg: str | None = None
    circuit_image: str | None = None

    @property
    def display_title(self) -> str:
        return DEFAULT_TITLE if is_blank(self.title) else self.title

    @property
    def display_college(self) -> str:
        if is_blank(self.college):
            return DEFAULT_COLLEGE
        return self.college  # type: ignore[return-value]

    @property
    def has_chart(self) -> bool:
        return not (is_blank(self.chart_image) and is_blank(self.chart_svg))

    @property
    def has_circuit(self) -> bool:
        return not is_blank(self.circuit_image)

    def procedure_steps(self) -> list[str]:
        """Procedure lines, blank lines dropped."""
        text = DEFAULT_PROCEDURE if is_blank(self.procedure) else self.procedure
        lines = text.split("\n")  # type: ignore[union-attr]
        return [line.strip() for line in lines if line.strip()]

    def result_text(self) -> str | None:
        """Stated result, else the resistance taken from the fitted slope."""
        if not is_blank(self.result):
            return self.result
        if self.fit is not None:
            return f"Measured resistance ~ {round_to(self.fit.slope)} ohm"
        return None
