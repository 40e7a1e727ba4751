# src/clinic_workflow/web/schemas.py

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from ..tasks.task_models import CompletionReport, IntakeReport


class IntakeRequest(BaseModel):
    """Body of POST /staff/create_task (field names follow the front-end)."""

    location: str
    staff: str
    customer: str
    initial_check: str
    remedy: str
    post: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "location": "qiushi",
                "staff": "potato",
                "customer": "Y.S.",
                "initial_check": "1111",
                "remedy": "Change the CPU fan",
                "post": "202508121505",
            }
        }
    )

    def to_report(self) -> IntakeReport:
        return IntakeReport(
            location=self.location,
            staff=self.staff,
            customer=self.customer,
            check_state=self.initial_check,
            remedy=self.remedy,
            post_time=self.post,
        )


class CompletionRequest(BaseModel):
    """Body of POST /staff/final/{segment}."""

    final_check: str
    additional: str | None = None
    post: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"final_check": "1111", "additional": None, "post": "202508121711"}
        }
    )

    def to_report(self) -> CompletionReport:
        return CompletionReport(
            check_state=self.final_check,
            additional=self.additional,
            post_time=self.post,
        )


class CreateTaskResponse(BaseModel):
    id: int
    uri_customer: str
    uri_staff: str


class CompletionResponse(BaseModel):
    uri: str


class TaskView(BaseModel):
    id: int
    stage: str
    location: str | None = None
    staff: str | None = None
    customer: str | None = None
    initial_post: str | None = None
    initial_confirm: str | None = None
    final_post: str | None = None
    final_confirm: str | None = None
    initial_check_state: str | None = None
    remedy: str | None = None
    final_check_state: str | None = None
    additional: str | None = None
    inspection: dict[str, dict[str, bool] | None]
    failed: dict[str, list[str] | None]
