"""Pydantic request bodies for form, section and question operations.

Field-level validation only (presence, enums, primitive types). Structural
rules that depend on the question type or on stored entities live in
`form_admin.logic.question_validation` and `form_admin.logic.graph`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from form_admin.models.enums import (
    FormLayoutName,
    FormTypeName,
    QuestionTypeName,
    ValidationFactorName,
)


def _non_blank(value: str, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(message)
    return value.strip()


class FormCreate(BaseModel):
    type: FormTypeName
    title: str
    subtitle: Optional[str] = None
    purpose: Optional[str] = None
    layout: FormLayoutName = "TWO_COLUMNS"
    has_sections: bool = False
    disclaimer: Optional[str] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _non_blank(v, "Form Title is Empty")


class FormUpdate(BaseModel):
    type: Optional[FormTypeName] = None
    title: Optional[str] = None
    subtitle: Optional[str] = None
    purpose: Optional[str] = None
    layout: Optional[FormLayoutName] = None
    has_sections: Optional[bool] = None
    disclaimer: Optional[str] = None


class SectionCreate(BaseModel):
    form: str
    title: str
    number: Optional[int] = None

    @field_validator("form")
    @classmethod
    def form_not_blank(cls, v: str) -> str:
        return _non_blank(v, "Form Reference is Empty")

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        return _non_blank(v, "Section Title is Empty")


class SectionUpdate(BaseModel):
    title: Optional[str] = None
    number: Optional[int] = None


class QuestionCreate(BaseModel):
    """Creation payload shared by the generic and the typed create routes.

    `type` is optional here because the typed routes force it; the generic
    route rejects a missing type before validation runs.
    """

    form: str
    section: Optional[str] = None
    parent_question: Optional[str] = None
    question_text: str
    type: Optional[QuestionTypeName] = None
    number: Optional[str] = None
    required: bool = False
    show: bool = True
    prerequisites: List[Dict[str, Any]] = Field(default_factory=list)
    validation_factor: ValidationFactorName = "NONE"
    measurement_unit: Optional[str] = None
    options: Optional[List[str]] = None
    remark: Optional[str] = None

    @field_validator("form")
    @classmethod
    def form_not_blank(cls, v: str) -> str:
        return _non_blank(v, "Form Reference is Empty")

    @field_validator("question_text")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        return _non_blank(v, "Question Title is Empty")

    @field_validator("number", mode="before")
    @classmethod
    def number_as_text(cls, v: Union[str, int, float, None]) -> Optional[str]:
        # Accept 1, 2.2 or "2.2"; stored as dotted text
        if v is None:
            return None
        return str(v)


class QuestionUpdate(BaseModel):
    question_text: Optional[str] = None
    number: Optional[str] = None
    required: Optional[bool] = None
    show: Optional[bool] = None
    prerequisites: Optional[List[Dict[str, Any]]] = None
    validation_factor: Optional[ValidationFactorName] = None
    measurement_unit: Optional[str] = None
    options: Optional[List[str]] = None
    remark: Optional[str] = None

    @field_validator("number", mode="before")
    @classmethod
    def number_as_text(cls, v: Union[str, int, float, None]) -> Optional[str]:
        if v is None:
            return None
        return str(v)


__all__ = [
    "FormCreate",
    "FormUpdate",
    "SectionCreate",
    "SectionUpdate",
    "QuestionCreate",
    "QuestionUpdate",
]
