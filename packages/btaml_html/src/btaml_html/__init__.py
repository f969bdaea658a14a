from .forms import (
    BaseForm,
    BoundField,
    CharField,
    ChoiceField,
    DateField,
    EmailField,
    FileField,
    MultipleChoiceField,
    TextAreaField,
    URLField,
    ValidationError,
)
from .template_manager import TemplateManager

__all__ = [
    "BaseForm",
    "BoundField",
    "CharField",
    "ChoiceField",
    "DateField",
    "EmailField",
    "FileField",
    "MultipleChoiceField",
    "TemplateManager",
    "TextAreaField",
    "URLField",
    "ValidationError",
]
