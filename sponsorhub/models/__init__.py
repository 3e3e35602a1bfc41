from sponsorhub.models.template import (
    EmailTemplateForm,
    EmailTemplateInput,
    LoadTemplatesResult,
    NormalizedTemplate,
    SaveFailure,
    SaveResult,
    SaveSuccess,
)
from sponsorhub.models.user import CurrentUser

__all__ = [
    "CurrentUser",
    "EmailTemplateForm",
    "EmailTemplateInput",
    "LoadTemplatesResult",
    "NormalizedTemplate",
    "SaveFailure",
    "SaveResult",
    "SaveSuccess",
]
