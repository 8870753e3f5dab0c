"""Exceptions raised by the crusade report form helpers."""

from __future__ import annotations


class CrusadeFormError(Exception):
    """Base class for every error raised by ``crusade_form``."""


class SchemaError(CrusadeFormError):
    """The form schema file is malformed or internally inconsistent."""


class UnknownMemberTypeError(CrusadeFormError):
    """A member type outside the configured variants was selected."""


class UnknownQuestionError(CrusadeFormError):
    """An answer was given for a question id the active schema does not define."""


class UploadError(CrusadeFormError):
    """The report attachment could not be uploaded."""


class SubmissionError(CrusadeFormError):
    """The report submission was rejected or could not be sent."""


__all__ = [
    "CrusadeFormError",
    "SchemaError",
    "SubmissionError",
    "UnknownMemberTypeError",
    "UnknownQuestionError",
    "UploadError",
]
