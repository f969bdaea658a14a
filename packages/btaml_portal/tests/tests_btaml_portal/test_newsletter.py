import pytest
from btaml_portal.newsletter import NewsletterError, build_messages, subscribe


@pytest.fixture
def env(app):
    return app.state.template_manager.templates.env


class TestSubscribe:
    async def test_sends_welcome_and_notification(self, settings, mailer, env):
        message = await subscribe(
            " reader@example.com ", settings=settings, mailer=mailer, env=env
        )
        assert message == "Successfully subscribed to newsletter"
        welcome, notice = mailer.sent
        assert welcome["To"] == "reader@example.com"
        assert welcome["Subject"] == "Welcome to BTAML UNIVERSE Newsletter!"
        assert notice["To"] == "owner@btaml.test"
        assert notice["Subject"] == "New Newsletter Subscription"
        assert "reader@example.com" in notice.get_body(("html",)).get_content()

    @pytest.mark.parametrize(
        ("email", "error"),
        [
            (None, "Email is required"),
            ("   ", "Email is required"),
            ("not-an-email", "Invalid email format"),
            ("a@b", "Invalid email format"),
        ],
    )
    async def test_rejects_bad_addresses(self, settings, mailer, env, email, error):
        with pytest.raises(NewsletterError) as exc_info:
            await subscribe(email, settings=settings, mailer=mailer, env=env)
        assert exc_info.value.message == error
        assert exc_info.value.status_code == 400
        assert mailer.sent == []

    async def test_missing_credentials(self, settings, mailer, env):
        settings.GMAIL_APP_PASSWORD = ""
        with pytest.raises(NewsletterError) as exc_info:
            await subscribe("reader@example.com", settings=settings, mailer=mailer, env=env)
        assert exc_info.value.message == "Server configuration error"
        assert exc_info.value.status_code == 500

    async def test_send_failure(self, settings, mailer, env):
        mailer.fail = True
        with pytest.raises(NewsletterError) as exc_info:
            await subscribe("reader@example.com", settings=settings, mailer=mailer, env=env)
        assert exc_info.value.message == "Failed to process subscription"
        assert exc_info.value.status_code == 500


def test_notification_falls_back_to_sender(settings, env):
    settings.NEWSLETTER_ADMIN_EMAIL = ""
    _, notice = build_messages("reader@example.com", settings, env)
    assert notice["To"] == "news@btaml.test"


class TestNewsletterAPI:
    async def test_success(self, client, mailer):
        response = await client.post("/api/newsletter", json={"email": "reader@example.com"})
        assert response.status_code == 200
        assert response.json() == {"message": "Successfully subscribed to newsletter"}
        assert len(mailer.sent) == 2

    async def test_invalid_email(self, client):
        response = await client.post("/api/newsletter", json={"email": "nope"})
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid email format"}

    async def test_body_that_is_not_json(self, client):
        response = await client.post(
            "/api/newsletter",
            content=b"email=reader@example.com",
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Email is required"}

    async def test_send_failure(self, client, mailer):
        mailer.fail = True
        response = await client.post("/api/newsletter", json={"email": "reader@example.com"})
        assert response.status_code == 500
        assert response.json() == {"error": "Failed to process subscription"}
