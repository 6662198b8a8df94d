"""Enumerations for forms, questions, containers and permission actions.

Simple constants containers rather than Enum classes so values serialize as
plain strings in documents and SQL rows. The `Literal` aliases are used by
the pydantic request models.
"""

from __future__ import annotations

from typing import Literal


class FormType:
    SCREENING = "SCREENING"
    LOAN_APPLICATION = "LOAN_APPLICATION"
    GROUP_APPLICATION = "GROUP_APPLICATION"
    ACAT = "ACAT"

    ALL = (SCREENING, LOAN_APPLICATION, GROUP_APPLICATION, ACAT)


class FormLayout:
    TWO_COLUMNS = "TWO_COLUMNS"
    THREE_COLUMNS = "THREE_COLUMNS"

    ALL = (TWO_COLUMNS, THREE_COLUMNS)


class QuestionType:
    YES_NO = "YES_NO"
    FILL_IN_BLANK = "FILL_IN_BLANK"
    MULTIPLE_CHOICE = "MULTIPLE_CHOICE"
    SINGLE_CHOICE = "SINGLE_CHOICE"
    GROUPED = "GROUPED"

    ALL = (YES_NO, FILL_IN_BLANK, MULTIPLE_CHOICE, SINGLE_CHOICE, GROUPED)
    CHOICE = (MULTIPLE_CHOICE, SINGLE_CHOICE)


class ValidationFactor:
    NONE = "NONE"
    ALPHANUMERIC = "ALPHANUMERIC"
    NUMERIC = "NUMERIC"
    ALPHABETIC = "ALPHABETIC"

    ALL = (NONE, ALPHANUMERIC, NUMERIC, ALPHABETIC)


class ContainerKind:
    FORM = "FORM"
    SECTION = "SECTION"
    QUESTION = "QUESTION"

    ALL = (FORM, SECTION, QUESTION)


class Action:
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    VIEW = "VIEW"

    ALL = (CREATE, UPDATE, VIEW)


# Default signature lines seeded on form creation, keyed by form type
DEFAULT_SIGNATURES: dict[str, list[str]] = {
    FormType.LOAN_APPLICATION: ["Applicant", "Filled By", "Checked By", "Approved By"],
    FormType.SCREENING: ["Applicant", "Filled By", "Checked By"],
}


FormTypeName = Literal["SCREENING", "LOAN_APPLICATION", "GROUP_APPLICATION", "ACAT"]
FormLayoutName = Literal["TWO_COLUMNS", "THREE_COLUMNS"]
QuestionTypeName = Literal["YES_NO", "FILL_IN_BLANK", "MULTIPLE_CHOICE", "SINGLE_CHOICE", "GROUPED"]
ValidationFactorName = Literal["NONE", "ALPHANUMERIC", "NUMERIC", "ALPHABETIC"]


__all__ = [
    "FormType",
    "FormLayout",
    "QuestionType",
    "ValidationFactor",
    "ContainerKind",
    "Action",
    "DEFAULT_SIGNATURES",
    "FormTypeName",
    "FormLayoutName",
    "QuestionTypeName",
    "ValidationFactorName",
]
