from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class OpenModel(BaseModel):
    """Typed envelope that keeps unknown keys verbatim."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class FormField(OpenModel):
    id: str
    type: str | None = None
    label: str = ""
    required: bool = False


class FeatureToggle(OpenModel):
    enabled: bool = False


class FormConfig(OpenModel):
    id: str | None = None
    title: str | None = None
    description: str | None = None
    theme: dict[str, Any] = Field(default_factory=dict)
    fields: list[FormField] = Field(default_factory=list)
    calculation: FeatureToggle = Field(default_factory=FeatureToggle)
    payment: FeatureToggle = Field(default_factory=FeatureToggle)
    conditional_logic: list[Any] = Field(default_factory=list, alias="conditionalLogic")
    active: bool | None = None
    created_at: str | None = Field(default=None, alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")

    def to_payload(self) -> dict[str, Any]:
        """Dump only what the caller sent, under the wire key names."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class FileRecord(BaseModel):
    filename: str
    url: str
    size: int
    type: str | None = None


class SubmittedFile(BaseModel):
    field: str
    filename: str
    url: str
    size: int
    type: str | None = None


class Submission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    data: dict[str, Any]
    files: list[SubmittedFile] = Field(default_factory=list)
    payment_reference: str | None = Field(default=None, alias="paymentReference")
    amount: float | None = None
    timestamp: str
    status: Literal["submitted", "paid"]


class SubmitResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    submission_id: str = Field(alias="submissionId")
    message: str = "Form submitted successfully"


class SaveFormResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    form_id: str = Field(alias="formId")


class SuccessResponse(BaseModel):
    success: bool = True


class FormListResponse(BaseModel):
    forms: list[dict[str, Any]]


class SubmissionListResponse(BaseModel):
    submissions: list[dict[str, Any]]


class SaveDraftRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    draft_id: str | None = Field(default=None, alias="draftId")
    form_id: str | None = Field(default=None, alias="formId")
    data: Any = None


class DraftRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    form_id: str | None = Field(default=None, alias="formId")
    data: Any = None
    saved_at: str = Field(alias="savedAt")


class SaveDraftResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    draft_id: str = Field(alias="draftId")


class VerifyPaymentRequest(BaseModel):
    reference: str | None = None


class TokenRequest(BaseModel):
    token: str | None = None


class ValidResponse(BaseModel):
    valid: bool
