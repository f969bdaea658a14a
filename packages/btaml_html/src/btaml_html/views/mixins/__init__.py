from .context import ContextMixin
from .database import DatabaseMixin
from .form import FormMixin, ProcessFormView
from .multi import MultipleObjectMixin
from .permission import PermissionMixin
from .single import SingleObjectMixin
from .template_response import TemplateResponseMixin

__all__ = [
    "ContextMixin",
    "DatabaseMixin",
    "FormMixin",
    "MultipleObjectMixin",
    "PermissionMixin",
    "ProcessFormView",
    "SingleObjectMixin",
    "TemplateResponseMixin",
]
