"""
Server-rendered HTML forms.

A form declares its inputs as class attributes. Binding it to submitted
data and calling ``is_valid()`` converts every value, collects messages
per input and fills ``cleaned_data``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable, ClassVar

from fastapi import Request
from starlette.datastructures import UploadFile


class ValidationError(ValueError):
    """One or more user-facing messages about a submitted value."""

    def __init__(self, message: str | list[str]) -> None:
        self.messages = list(message) if isinstance(message, list) else [message]
        super().__init__("\n".join(self.messages))


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == []


class Field:
    """
    A single form input.

    ``error_messages`` overrides the built-in messages by key (``required``,
    ``invalid_choice``, ``invalid``). ``validators`` are called with the
    converted value when it is not empty and may raise ``ValidationError``.
    """

    is_file: ClassVar[bool] = False
    input_type: str = "text"
    default_error_messages: ClassVar[dict[str, str]] = {
        "required": "This field is required.",
        "invalid_choice": "Select a valid choice.",
        "invalid": "Enter a valid value.",
    }

    def __init__(
        self,
        *,
        required: bool = True,
        label: str | None = None,
        initial: Any | None = None,
        input_type: str | None = None,
        placeholder: str | None = None,
        help_text: str | None = None,
        max_length: int | None = None,
        min_length: int | None = None,
        choices: list[tuple[str, str]] | None = None,
        pattern: str | None = None,
        error_messages: dict[str, str] | None = None,
        validators: list[Callable[[Any], None]] | None = None,
        attrs: dict[str, Any] | None = None,
    ) -> None:
        self.required = required
        self.label = label
        self.initial = initial
        if input_type is not None:
            self.input_type = input_type
        self.placeholder = placeholder
        self.help_text = help_text
        self.max_length = max_length
        self.min_length = min_length
        self.choices = choices
        self.pattern = pattern
        self.error_messages = {**self.default_error_messages, **(error_messages or {})}
        self.validators = validators or []
        self.attrs = dict(attrs or {})

    def to_python(self, value: Any) -> Any:
        return value

    def _check_text(self, value: str) -> None:
        if not value:
            return
        if self.max_length is not None and len(value) > self.max_length:
            raise ValidationError(
                f"Ensure this value has at most {self.max_length} characters."
            )
        if self.min_length is not None and len(value) < self.min_length:
            raise ValidationError(
                f"Ensure this value has at least {self.min_length} characters."
            )
        if self.pattern is not None and re.match(self.pattern, value) is None:
            raise ValidationError(self.error_messages["invalid"])

    def validate(self, value: Any) -> None:
        if _is_empty(value):
            if self.required:
                raise ValidationError(self.error_messages["required"])
            return
        if isinstance(value, str):
            self._check_text(value)
        if self.choices is not None and value not in dict(self.choices):
            raise ValidationError(self.error_messages["invalid_choice"])

    def run_validators(self, value: Any) -> None:
        if _is_empty(value):
            return
        messages: list[str] = []
        for validator in self.validators:
            try:
                validator(value)
            except ValidationError as exc:
                messages += exc.messages
        if messages:
            raise ValidationError(messages)

    def clean(self, value: Any) -> Any:
        value = self.to_python(value)
        self.validate(value)
        self.run_validators(value)
        return value


class CharField(Field):
    def __init__(self, *, strip: bool = True, **kwargs: Any) -> None:
        self.strip = strip
        super().__init__(**kwargs)

    def to_python(self, value: Any) -> str:
        text = "" if value is None else str(value)
        return text.strip() if self.strip else text


class EmailField(CharField):
    input_type = "email"


class URLField(CharField):
    input_type = "url"


class TextAreaField(CharField):
    input_type = "textarea"

    def __init__(self, *, rows: int | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if rows is not None:
            self.attrs["rows"] = rows


class ChoiceField(Field):
    input_type = "select"

    def to_python(self, value: Any) -> str:
        return "" if value is None else str(value).strip()


class MultipleChoiceField(Field):
    """Several values for one name; rendered as a group of checkboxes."""

    input_type = "checkboxes"

    def to_python(self, value: Any) -> list[str]:
        if value is None:
            return []
        items = value if isinstance(value, (list, tuple)) else [value]
        # Blanks and repeats go, submitted order stays
        return list(dict.fromkeys(s for s in (str(i).strip() for i in items) if s))

    def validate(self, value: Any) -> None:
        if not value:
            if self.required:
                raise ValidationError(self.error_messages["required"])
            return
        if self.choices is None:
            return
        allowed = dict(self.choices)
        for item in value:
            if item not in allowed:
                raise ValidationError(
                    f"Select a valid choice. {item} is not one of the "
                    "available choices."
                )


class DateField(Field):
    input_type = "date"
    default_error_messages: ClassVar[dict[str, str]] = {
        **Field.default_error_messages,
        "invalid": "Enter a valid date.",
    }

    def to_python(self, value: Any) -> date | None:
        if isinstance(value, date):
            return value
        if value is None or not str(value).strip():
            return None
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError as e:
            raise ValidationError(self.error_messages["invalid"]) from e


class FileField(Field):
    """An uploaded file, read from ``form.files`` instead of ``form.data``."""

    is_file: ClassVar[bool] = True
    input_type = "file"

    def __init__(self, *, accept: str | None = None, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if accept:
            self.attrs["accept"] = accept

    def to_python(self, value: Any) -> UploadFile | None:
        # An empty part with no filename means nothing was chosen
        if isinstance(value, UploadFile) and value.filename:
            return value
        return None


@dataclass
class BoundField:
    """What a template needs to render one input."""

    name: str
    label: str
    value: Any
    errors: list[str]
    input_type: str
    placeholder: str | None
    help_text: str | None
    choices: list[tuple[str, str]] | None
    attrs: dict[str, Any]
    required: bool


class BaseForm:
    """
    Base class for HTML forms bound from a FastAPI request.

    Examples:
        >>> class NoteForm(BaseForm):
        ...     title = CharField(min_length=3)
        ...
        >>> form = NoteForm(data={"title": "Hello"})
        >>> form.is_valid()
        True
        >>> form.cleaned_data["title"]
        'Hello'
    """

    declared_fields: ClassVar[dict[str, Field]] = {}

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        collected: dict[str, Field] = {}
        for klass in reversed(cls.__mro__):
            for name, value in vars(klass).items():
                if isinstance(value, Field):
                    collected[name] = value
        cls.declared_fields = collected

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        initial: dict[str, Any] | None = None,
        request: Request | None = None,
    ) -> None:
        # Submitted data wins over `initial` once the form is bound
        self.is_bound = data is not None or files is not None
        self.data = data or {}
        self.files = files or {}
        self.initial = initial or {}
        self.request = request
        self.cleaned_data: dict[str, Any] = {}
        self._errors: dict[str, list[str]] = {}

    @classmethod
    def as_dependency(cls):
        """
        Build a FastAPI dependency that binds the submitted form body.

        Repeated keys become lists, uploads go to ``files``. A GET or HEAD
        request yields an unbound form.
        """

        async def _dependency(request: Request) -> BaseForm:
            if request.method in ("GET", "HEAD"):
                return cls(request=request)

            body = await request.form()
            data: dict[str, Any] = {}
            files: dict[str, Any] = {}
            for key in dict.fromkeys(body.keys()):
                values = body.getlist(key)
                upload = next((v for v in values if isinstance(v, UploadFile)), None)
                if upload is not None:
                    files[key] = upload
                elif len(values) > 1 or isinstance(
                    cls.declared_fields.get(key), MultipleChoiceField
                ):
                    data[key] = list(values)
                else:
                    data[key] = values[0]
            return cls(data=data, files=files, request=request)

        return _dependency

    @property
    def errors(self) -> dict[str, list[str]]:
        return self._errors

    @property
    def non_field_errors(self) -> list[str]:
        return self._errors.get("__all__", [])

    def add_error(self, field: str | None, message: str) -> None:
        self._errors.setdefault(field or "__all__", []).append(message)

    def _raw_value(self, name: str, field: Field) -> Any:
        if field.is_file:
            return self.files.get(name)
        if self.is_bound:
            return self.data.get(name)
        return self.initial.get(name, field.initial)

    def is_valid(self) -> bool:
        self._errors = {}
        self.cleaned_data = {}

        for name, field in self.declared_fields.items():
            try:
                self.cleaned_data[name] = field.clean(self._raw_value(name, field))
            except ValidationError as exc:
                self._errors.setdefault(name, []).extend(exc.messages)

        try:
            extra = self.clean()
        except ValidationError as exc:
            self._errors.setdefault("__all__", []).extend(exc.messages)
        else:
            if extra:
                self.cleaned_data.update(extra)

        return not self._errors

    def clean(self) -> dict[str, Any] | None:
        """
        Cross-field validation hook, run after every field has been cleaned.

        Fields that failed their own validation are missing from
        ``cleaned_data``. Use ``add_error`` for field-specific problems or
        raise ``ValidationError`` for form-wide ones.
        """
        return None

    def __getitem__(self, name: str) -> BoundField:
        return self._bind(name, self.declared_fields[name])

    def _bind(self, name: str, field: Field) -> BoundField:
        if field.is_file:
            value = None
        elif name in self.cleaned_data:
            value = self.cleaned_data[name]
        else:
            value = self._raw_value(name, field)
        return BoundField(
            name=name,
            label=field.label or name.replace("_", " ").title(),
            value=value,
            errors=self._errors.get(name, []),
            input_type=field.input_type,
            placeholder=field.placeholder,
            help_text=field.help_text,
            choices=field.choices,
            attrs=field.attrs,
            required=field.required,
        )

    @property
    def fields(self) -> list[BoundField]:
        return [self._bind(name, field) for name, field in self.declared_fields.items()]
