from .base import View
from .generic import DetailView, FormView, ListView, TemplateView
from .mixins import (
    ContextMixin,
    DatabaseMixin,
    FormMixin,
    MultipleObjectMixin,
    PermissionMixin,
    ProcessFormView,
    SingleObjectMixin,
    TemplateResponseMixin,
)

__all__ = [
    "ContextMixin",
    "DatabaseMixin",
    "DetailView",
    "FormMixin",
    "FormView",
    "ListView",
    "MultipleObjectMixin",
    "PermissionMixin",
    "ProcessFormView",
    "SingleObjectMixin",
    "TemplateResponseMixin",
    "TemplateView",
    "View",
]
