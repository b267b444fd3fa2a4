"""Lab report request schemas."""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

from labreport.models import DEFAULT_TITLE, FitSummary, LabReport, Observation, display_value

CellValue = str | int | float | None


class ObservationRow(BaseModel):
    """One observation table row. Values are displayed, never validated."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    t: CellValue = None
    voltage: CellValue = Field(None, alias="V")
    current: CellValue = Field(None, alias="I")
    remark: CellValue = Field(None, validation_alias=AliasChoices("remark", "remarks"))

    def to_observation(self) -> Observation:
        return Observation(t=self.t, voltage=self.voltage, current=self.current, remark=self.remark)


class FitRequest(BaseModel):
    """Line fit through the readings, computed on the client."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    slope: float | None = None
    intercept: float | None = None
    std_error: float | None = Field(
        None, validation_alias=AliasChoices("s_slope", "std_error", "stdError")
    )
    steps: list[CellValue] = Field(default_factory=list)

    def to_fit(self) -> FitSummary:
        return FitSummary(
            slope=self.slope,
            intercept=self.intercept,
            std_error=self.std_error,
            steps=[display_value(step) for step in self.steps],
        )


class ReportRequest(BaseModel):
    """Lab report payload.

    Accepts both the serverless shape (``author``, ``date``) and the
    standalone-server shape (``studentName``, ``rollNo``, ``labDate``,
    ``chartSvg``). The standalone server nests the report fields in a
    ``report`` object next to the images; that envelope is unwrapped.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    title: str | None = DEFAULT_TITLE
    author: str | None = Field(None, validation_alias=AliasChoices("author", "studentName"))
    college: str | None = None
    roll: str | None = Field(None, validation_alias=AliasChoices("roll", "rollNo"))
    date: str | None = Field(None, validation_alias=AliasChoices("date", "labDate"))
    title_id: str | None = Field(None, alias="titleID")
    instructor_name: str | None = Field(
        None, validation_alias=AliasChoices("instructorName", "instructor_name", "instructor")
    )

    objective: str | None = None
    apparatus: str | None = None
    theory: str | None = None
    description: str | None = None
    procedure: str | None = None
    calculations: Any = None
    result: str | None = None
    conclusion: str | None = None
    fit: FitRequest | None = None

    observations: list[ObservationRow] = Field(default_factory=list)

    chart_image: str | None = Field(None, alias="chartImageBase64")
    chart_svg: str | None = Field(None, alias="chartSvg")
    circuit_image: str | None = Field(None, alias="circuitImageBase64")

    @model_validator(mode="before")
    @classmethod
    def unwrap_report_envelope(cls, data: Any) -> Any:
        """Merge a nested ``report`` object into the top level; top-level keys win."""
        if isinstance(data, dict) and isinstance(data.get("report"), dict):
            merged = dict(data["report"])
            merged.update((key, value) for key, value in data.items() if key != "report")
            return merged
        return data

    @model_validator(mode="after")
    def check_single_chart_source(self) -> "ReportRequest":
        """A chart is either a raster data URL or SVG markup, not both."""
        if self.chart_image and self.chart_svg:
            raise ValueError("Provide either chartImageBase64 or chartSvg, not both")
        return self

    def to_report(self) -> LabReport:
        return LabReport(
            title=self.title or DEFAULT_TITLE,
            author=self.author,
            college=self.college,
            roll=self.roll,
            date=self.date,
            title_id=self.title_id,
            instructor_name=self.instructor_name,
            objective=self.objective,
            apparatus=self.apparatus,
            theory=self.theory,
            description=self.description,
            procedure=self.procedure,
            calculations=self.calculations,
            result=self.result,
            conclusion=self.conclusion,
            fit=self.fit.to_fit() if self.fit is not None else None,
            observations=[row.to_observation() for row in self.observations],
            chart_image=self.chart_image,
            chart_svg=self.chart_svg,
            circuit_image=self.circuit_image,
        )
