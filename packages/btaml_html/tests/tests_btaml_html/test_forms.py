import io
from datetime import date

import pytest
from btaml_html.forms import (
    BaseForm,
    CharField,
    ChoiceField,
    DateField,
    EmailField,
    FileField,
    MultipleChoiceField,
    TextAreaField,
    ValidationError,
)
from fastapi import Depends, UploadFile
from fastapi.testclient import TestClient
from starlette.datastructures import Headers


class TestBasicFormValidation:
    def test_required_field(self):
        """Missing required values produce the default message."""

        class RequiredForm(BaseForm):
            name = CharField(required=True)

        form = RequiredForm(data={})
        assert form.is_valid() is False
        assert form.errors["name"] == ["This field is required."]

    def test_custom_required_message(self):
        """error_messages overrides the required message per field."""

        class TitleForm(BaseForm):
            title = CharField(error_messages={"required": "Title is required"})
            content = TextAreaField(error_messages={"required": "Content is required"})

        form = TitleForm(data={"title": "   "})
        assert form.is_valid() is False
        assert form.errors == {
            "title": ["Title is required"],
            "content": ["Content is required"],
        }

    def test_min_max_length(self):
        """Length limits apply to non-empty strings."""

        class LengthForm(BaseForm):
            name = CharField(min_length=2, max_length=4)

        form = LengthForm(data={"name": "a"})
        assert form.is_valid() is False
        assert "at least 2 characters" in form.errors["name"][0]

        form = LengthForm(data={"name": "abcde"})
        assert form.is_valid() is False
        assert "at most 4 characters" in form.errors["name"][0]

        assert LengthForm(data={"name": "abcd"}).is_valid() is True

    def test_choice_field(self):
        """Only declared choices are accepted."""

        class ChoiceForm(BaseForm):
            status = ChoiceField(choices=[("a", "A"), ("b", "B")])

        form = ChoiceForm(data={"status": "c"})
        assert form.is_valid() is False
        assert form.errors["status"] == ["Select a valid choice."]
        assert ChoiceForm(data={"status": "a"}).is_valid() is True


def _errors(form_class, **data) -> str:
    form = form_class(data=data)
    assert form.is_valid() is False
    return " ".join(msg for msgs in form.errors.values() for msg in msgs)


class TestMultipleChoiceField:
    choices = [("Masters", "Masters"), ("PhD", "PhD"), ("Fully Funded", "FF")]

    def test_list_is_kept_in_order_without_blanks(self):
        """Repeated values become a list; blanks and repeats are dropped."""

        class TypesForm(BaseForm):
            types = MultipleChoiceField(choices=self.choices)

        form = TypesForm(data={"types": ["PhD", "", "Masters", "PhD"]})
        assert form.is_valid() is True
        assert form.cleaned_data["types"] == ["PhD", "Masters"]

    def test_single_value_becomes_list(self):
        """One submitted value still cleans to a list."""

        class TypesForm(BaseForm):
            types = MultipleChoiceField(choices=self.choices)

        form = TypesForm(data={"types": "Masters"})
        assert form.is_valid() is True
        assert form.cleaned_data["types"] == ["Masters"]

    def test_required_and_invalid(self):
        """An empty selection and unknown values are rejected."""

        class TypesForm(BaseForm):
            types = MultipleChoiceField(
                choices=self.choices,
                error_messages={"required": "At least one type is required"},
            )

        form = TypesForm(data={})
        assert form.is_valid() is False
        assert form.errors["types"] == ["At least one type is required"]

        form = TypesForm(data={"types": ["Masters", "Bogus"]})
        assert form.is_valid() is False
        assert "Bogus is not one of the available choices" in form.errors["types"][0]

    def test_bound_form_ignores_initial(self):
        """Unchecking every box on an edit form clears the selection."""

        class TypesForm(BaseForm):
            types = MultipleChoiceField(choices=self.choices, required=False)

        form = TypesForm(data={}, initial={"types": ["PhD"]})
        assert form.is_valid() is True
        assert form.cleaned_data["types"] == []

        unbound = TypesForm(initial={"types": ["PhD"]})
        assert unbound["types"].value == ["PhD"]


class TestDateAndFileFields:
    def test_date_field(self):
        """ISO dates parse; anything else is an error."""

        class DeadlineForm(BaseForm):
            deadline = DateField(error_messages={"required": "Deadline is required"})

        form = DeadlineForm(data={"deadline": "2025-12-01"})
        assert form.is_valid() is True
        assert form.cleaned_data["deadline"] == date(2025, 12, 1)

        assert _errors(DeadlineForm, deadline="") == "Deadline is required"
        assert _errors(DeadlineForm, deadline="12/01/2025") == "Enter a valid date."

    def test_file_field_reads_files(self):
        """File fields take their value from `files` and run validators."""

        def no_text(upload):
            if not upload.content_type.startswith("image/"):
                raise ValidationError("Please select a valid image file")

        class UploadForm(BaseForm):
            thumbnail = FileField(validators=[no_text])

        def make(content_type: str, filename: str = "a.png") -> UploadFile:
            return UploadFile(
                io.BytesIO(b"data"),
                filename=filename,
                headers=Headers({"content-type": content_type}),
            )

        form = UploadForm(data={}, files={"thumbnail": make("image/png")})
        assert form.is_valid() is True
        assert form.cleaned_data["thumbnail"].filename == "a.png"

        form = UploadForm(data={}, files={"thumbnail": make("text/plain")})
        assert form.is_valid() is False
        assert form.errors["thumbnail"] == ["Please select a valid image file"]

        form = UploadForm(data={}, files={"thumbnail": make("image/png", "")})
        assert form.is_valid() is False
        assert form.errors["thumbnail"] == ["This field is required."]


class TestCleanHook:
    def test_clean_runs_even_with_field_errors(self):
        """clean() can add errors next to per-field ones."""

        class PasswordForm(BaseForm):
            name = CharField()
            password = CharField(strip=False)
            confirm = CharField(strip=False)

            def clean(self):
                if self.cleaned_data.get("password") != self.cleaned_data.get(
                    "confirm"
                ):
                    self.add_error("confirm", "Passwords do not match")

        form = PasswordForm(data={"password": "abcdef", "confirm": "abcdeg"})
        assert form.is_valid() is False
        assert form.errors == {
            "name": ["This field is required."],
            "confirm": ["Passwords do not match"],
        }

    def test_clean_validation_error_is_non_field(self):
        """A ValidationError raised by clean() lands in non_field_errors."""

        class AlwaysBad(BaseForm):
            def clean(self):
                raise ValidationError(["first", "second"])

        form = AlwaysBad(data={})
        assert form.is_valid() is False
        assert form.non_field_errors == ["first", "second"]




class SignupForm(BaseForm):
    email = EmailField()
    topics = MultipleChoiceField(choices=[("news", "News"), ("jobs", "Jobs")])
    avatar = FileField(required=False, accept="image/*")
    next = CharField(required=False, input_type="hidden")


class TestFormDependency:
    @pytest.fixture
    def signup_app(self, app):
        @app.api_route("/signup", methods=["GET", "POST"])
        async def signup(form: SignupForm = Depends(SignupForm.as_dependency())):
            if not form.is_bound:
                return {"bound": False}
            valid = form.is_valid()
            avatar = form.cleaned_data.get("avatar")
            return {
                "bound": True,
                "valid": valid,
                "topics": form.cleaned_data.get("topics"),
                "avatar": avatar.filename if avatar else None,
                "size": len(await avatar.read()) if avatar else 0,
            }

        return app

    def test_multipart_upload_reaches_files(self, signup_app):
        """Uploads from a multipart body are bound and survive cleaning."""
        client = TestClient(signup_app)
        response = client.post(
            "/signup",
            data={"email": "a@example.com", "topics": ["jobs", "news"]},
            files={"avatar": ("me.png", b"\x89PNG-data", "image/png")},
        )
        assert response.status_code == 200
        assert response.json() == {
            "bound": True,
            "valid": True,
            "topics": ["jobs", "news"],
            "avatar": "me.png",
            "size": 9,
        }

    def test_single_checkbox_still_becomes_list(self, signup_app):
        """A lone value for a multiple-choice input is bound as a list."""
        client = TestClient(signup_app)
        response = client.post(
            "/signup", data={"email": "a@example.com", "topics": "news"}
        )
        assert response.json()["topics"] == ["news"]
        assert response.json()["avatar"] is None

    def test_get_yields_unbound_form(self, signup_app):
        client = TestClient(signup_app)
        assert client.get("/signup").json() == {"bound": False}

    def test_input_type_override(self):
        form = SignupForm()
        assert form["next"].input_type == "hidden"
        assert form["avatar"].attrs == {"accept": "image/*"}
        assert form["email"].input_type == "email"
