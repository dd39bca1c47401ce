from datetime import timedelta

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from apps.core.errors import Conflict, PermissionDenied, ValidationError
from apps.users import services
from apps.users.models import User

pytestmark = pytest.mark.django_db(transaction=True)


def register(**overrides):
    data = dict(name="Ana", email="Ana@Test.com", password="segredo1", confirm_password="segredo1")
    data.update(overrides)
    return services.register(**data)


def test_register_hashes_password_and_sends_welcome(mailoutbox):
    user = register()

    assert user.email == "ana@test.com"
    assert user.role == User.Role.USER
    assert user.password != "segredo1"
    assert user.check_password("segredo1")
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == ["ana@test.com"]


@pytest.mark.parametrize("overrides", [
    {"confirm_password": "outra123"},
    {"password": "123", "confirm_password": "123"},
    {"name": ""},
    {"email": "not-an-email"},
])
def test_register_validation(overrides):
    with pytest.raises(ValidationError):
        register(**overrides)
    assert not User.objects.exists()


def test_register_duplicate_email():
    register()
    with pytest.raises(Conflict):
        register(email="ana@test.com")


def test_authenticate():
    register()
    user = services.authenticate_user(email="ANA@test.com", password="segredo1")
    assert user.last_login is not None

    with pytest.raises(ValidationError):
        services.authenticate_user(email="ana@test.com", password="errada")


def test_inactive_user_cannot_log_in():
    user = register()
    user.is_active = False
    user.save()
    with pytest.raises(PermissionDenied):
        services.authenticate_user(email="ana@test.com", password="segredo1")


def test_password_reset_flow(mailoutbox):
    register()
    token = services.request_password_reset("ana@test.com")

    assert len(token) == 64
    assert token in mailoutbox[-1].alternatives[0][0]

    services.reset_password(token, "novasenha", "novasenha")
    user = User.objects.get(email="ana@test.com")
    assert user.check_password("novasenha")
    assert user.reset_token is None
    with pytest.raises(ValidationError):
        services.reset_password(token, "outra123", "outra123")


def test_expired_reset_token():
    register()
    token = services.request_password_reset("ana@test.com")
    User.objects.filter(reset_token=token).update(reset_token_expires=timezone.now() - timedelta(seconds=1))
    with pytest.raises(ValidationError):
        services.check_reset_token(token)


def test_profile_password_change_needs_current_password():
    user = register()
    with pytest.raises(ValidationError):
        services.update_profile(user, {"new_password": "nova1234", "confirm_password": "nova1234"})
    services.update_profile(
        user, {"current_password": "segredo1", "new_password": "nova1234", "confirm_password": "nova1234"}
    )
    assert User.objects.get(pk=user.pk).check_password("nova1234")


def test_profile_image_must_be_a_supported_image(settings):
    user = register()
    page = SimpleUploadedFile("x.html", b"<script>alert(1)</script>", content_type="text/html")
    with pytest.raises(ValidationError):
        services.update_profile(user, {}, image=page)

    settings.SHOP_MAX_IMAGE_BYTES = 5
    big = SimpleUploadedFile("a.png", b"\x89PNG" * 4, content_type="image/png")
    with pytest.raises(ValidationError):
        services.update_profile(user, {}, image=big)

    assert not User.objects.get(pk=user.pk).profile_image


def test_profile_image_is_stored_and_served(customer_client, customer):
    photo = SimpleUploadedFile("me.png", b"\x89PNG....", content_type="image/png")
    res = customer_client.put("/auth/profile/", {"profile_image": photo}, format="multipart")
    assert res.status_code == 200, res.json()

    res = customer_client.get("/auth/profile/image/")
    assert res["Content-Type"] == "image/png"
    assert res.content == b"\x89PNG...."


def test_admin_cannot_delete_self(admin_user, customer):
    with pytest.raises(ValidationError):
        services.delete_user(admin_user.pk, acting_user=admin_user)
    services.delete_user(customer.pk, acting_user=admin_user)
    assert not User.objects.filter(pk=customer.pk).exists()


# ---------------------------------------------------------------- http

def test_register_login_logout_over_http(api_client, product_factory):
    res = api_client.post(
        "/auth/register/",
        {"name": "Rui", "email": "rui@test.com", "password": "abcdef", "confirm_password": "abcdef"},
        format="json",
    )
    assert res.status_code == 201

    p = product_factory()
    api_client.post(f"/cart/add/{p.pk}/")
    res = api_client.post("/auth/login/", {"email": "rui@test.com", "password": "abcdef"}, format="json")
    assert res.status_code == 200
    assert api_client.session["user"]["email"] == "rui@test.com"
    assert api_client.get("/cart/").json()["count"] == 1
    assert api_client.get("/auth/profile/").json()["email"] == "rui@test.com"

    api_client.post("/auth/logout/")
    assert api_client.get("/auth/profile/").status_code == 403


def test_bad_login_is_generic(api_client, customer):
    res = api_client.post("/auth/login/", {"email": "u@test.com", "password": "nope"}, format="json")
    assert res.status_code == 400
    assert res.json()["message"] == "Email ou senha incorretos"


def test_admin_user_management(admin_client, admin_user, customer):
    assert len(admin_client.get("/admin/users/").json()) == 2

    res = admin_client.put(f"/admin/users/{customer.pk}/toggle-status/")
    assert res.json()["is_active"] is False

    res = admin_client.delete(f"/admin/users/{admin_user.pk}/")
    assert res.status_code == 400


def test_customer_cannot_reach_admin_users(customer_client):
    assert customer_client.get("/admin/users/").status_code == 403
