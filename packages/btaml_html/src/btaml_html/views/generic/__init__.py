from .base import TemplateView
from .detail import DetailView
from .edit import FormView
from .list import ListView

__all__ = ["DetailView", "FormView", "ListView", "TemplateView"]
