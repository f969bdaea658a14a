"""
FormView implementation.

Form processing lives in the mixins; TemplateView does the rendering.
"""

from btaml_html.views.mixins import PermissionMixin, ProcessFormView

from .base import TemplateView


class FormView(ProcessFormView, PermissionMixin, TemplateView):
    """Template-backed view for form display and submission."""
