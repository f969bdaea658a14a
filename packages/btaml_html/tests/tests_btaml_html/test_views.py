import pytest
from btaml_auth import IsStaffUser, PermissionRedirectError, User
from btaml_html.forms import BaseForm, CharField, MultipleChoiceField
from btaml_html.views import FormView, PermissionMixin, TemplateView, View
from fastapi import Request, Response
from fastapi.responses import PlainTextResponse, RedirectResponse


class HelloView(TemplateView):
    template_name = "hello.html"
    extra_context = {"name": "World"}


class TopicsForm(BaseForm):
    title = CharField(error_messages={"required": "Title is required"})
    topics = MultipleChoiceField(
        choices=[("gold", "Gold"), ("oil", "Oil")], required=False
    )


class TopicsView(FormView):
    template_name = "form.html"
    form_class = TopicsForm

    async def form_valid(self, form: BaseForm) -> Response:
        title = form.cleaned_data["title"]
        topics = ",".join(form.cleaned_data["topics"])
        return PlainTextResponse(f"{title}:{topics}")


class TestView:
    def test_as_view_rejects_unknown_kwargs(self):
        """as_view() only accepts existing class attributes."""
        with pytest.raises(TypeError, match="invalid keyword"):
            HelloView.as_view(colour="red")

    def test_as_view_rejects_unknown_method(self):
        """An unknown method name is refused."""
        with pytest.raises(ValueError, match="invalid method"):
            HelloView.as_view(method="fetch")

    def test_method_not_allowed(self, app, client):
        """Methods without a handler return 405."""

        class OnlyGet(View):
            async def get(self, request: Request):
                return PlainTextResponse("ok")

        app.add_api_route(
            "/only", OnlyGet.as_view(method="get"), methods=["GET", "DELETE"]
        )
        assert client.get("/only").text == "ok"
        assert client.delete("/only").status_code == 405


class TestTemplateView:
    def test_renders_with_extra_context(self, app, client):
        """TemplateView renders its template with extra_context."""
        app.add_api_route("/hello", HelloView.as_view())
        response = client.get("/hello")
        assert response.status_code == 200
        assert response.text == "Hello World"

    def test_extra_context_override(self, app, client):
        """as_view() can override class attributes."""
        app.add_api_route(
            "/hi", HelloView.as_view(extra_context={"name": "There"})
        )
        assert client.get("/hi").text == "Hello There"


class TestFormView:
    def _register(self, app):
        app.add_api_route(
            "/topics", TopicsView.as_view(method="get"), methods=["GET"]
        )
        app.add_api_route(
            "/topics", TopicsView.as_view(method="post"), methods=["POST"]
        )

    def test_get_renders_unbound_form(self, app, client):
        """GET shows the empty form without errors."""
        self._register(app)
        response = client.get("/topics")
        assert response.status_code == 200
        assert 'name="title"' in response.text
        assert "Title is required" not in response.text

    def test_post_invalid_rerenders_with_errors(self, app, client):
        """An invalid submission re-renders the form with a 400."""
        self._register(app)
        response = client.post("/topics", data={"title": ""})
        assert response.status_code == 400
        assert "Title is required" in response.text

    def test_post_valid_collects_repeated_keys(self, app, client):
        """Repeated form keys reach the form as a list."""
        self._register(app)
        response = client.post(
            "/topics", data={"title": "Markets", "topics": ["gold", "oil"]}
        )
        assert response.status_code == 200
        assert response.text == "Markets:gold,oil"


class StaffPage(TemplateView):
    template_name = "hello.html"
    extra_context = {"name": "Admin"}


class Guarded(PermissionMixin, StaffPage):
    permission_classes = [IsStaffUser]
    login_url = "/admin/login"


class TestPermissionMixin:
    def _register(self, app):
        @app.exception_handler(PermissionRedirectError)
        async def redirect(request: Request, exc: PermissionRedirectError):
            return RedirectResponse(exc.url, status_code=302)

        app.add_api_route("/admin", Guarded.as_view())

    def test_anonymous_redirected(self, app, client):
        """Anonymous users are redirected to the login page."""
        self._register(app)
        response = client.get("/admin", follow_redirects=False)
        assert response.status_code == 302
        assert response.headers["location"] == "/admin/login?next=/admin"

    def test_non_staff_forbidden(self, app, client):
        """Authenticated non-staff users receive 403."""
        app.state.test_user = User(username="reader", is_active=True, is_staff=False)
        self._register(app)
        assert client.get("/admin").status_code == 403

    def test_staff_allowed(self, app, client):
        """Staff users see the page and the user is in the context."""
        app.state.test_user = User(username="boss", is_active=True, is_staff=True)
        self._register(app)
        response = client.get("/admin")
        assert response.status_code == 200
        assert response.text == "Hello Admin"

    def test_dependency_values_stay_out_of_handler_kwargs(self, app, client):
        """The permission check result is kept on the view, not in kwargs."""

        class Echo(PermissionMixin, View):
            permission_classes = [IsStaffUser]

            async def get(self, **kwargs):
                return PlainTextResponse(",".join(sorted(kwargs)) or "-")

        app.state.test_user = User(username="boss", is_active=True, is_staff=True)
        app.add_api_route("/echo", Echo.as_view())
        assert client.get("/echo").text == "-"
