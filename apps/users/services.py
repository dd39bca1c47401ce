import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import validate_email
from django.db import IntegrityError, transaction
from django.utils import timezone

from apps.catalog.services import validate_image
from apps.core import background
from apps.core.errors import Conflict, NotFound, PermissionDenied, ValidationError
from apps.core.mail import send_email

from .models import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def current_user(request):
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated or not user.is_active:
        return None
    return user


def _clean_email(email):
    email = (email or "").strip().lower()
    try:
        validate_email(email)
    except DjangoValidationError:
        raise ValidationError("Email inválido")
    return email


def _check_new_password(password, confirm_password):
    if password != confirm_password:
        raise ValidationError("As senhas não coincidem")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres")


def _email_taken(email, exclude_id=None):
    qs = User.objects.filter(email__iexact=email)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return qs.exists()


def _save_unique(user, **kwargs):
    try:
        with transaction.atomic():
            user.save(**kwargs)
    except IntegrityError:
        raise Conflict("Este email já está em uso")


def _absolute(path):
    return f"{settings.BASE_URL.rstrip('/')}{path}"


# ---------------------------------------------------------------- account

@transaction.atomic
def register(*, name, email, password, confirm_password, phone=None) -> User:
    if not name or not email or not password:
        raise ValidationError("Todos os campos são obrigatórios")
    email = _clean_email(email)
    _check_new_password(password, confirm_password)
    if _email_taken(email):
        raise Conflict("Este email já está em uso")

    user = User(name=name.strip(), email=email, phone=phone or None, role=User.Role.USER)
    user.set_password(password)
    _save_unique(user)
    logger.info("user registered: %s", user.email)

    store = settings.SHOP_STORE_NAME
    html = (
        f"<h2>Bem-vindo à {store}!</h2>"
        f"<p>Olá {user.name},</p>"
        f"<p>Sua conta foi criada com sucesso!</p>"
        f"<p>Email: {user.email}</p>"
        f'<p>Acesse: <a href="{settings.BASE_URL}">{settings.BASE_URL}</a></p>'
    )
    background.on_commit(send_email, user.email, f"Bem-vindo à {store}!", html)
    return user


def authenticate_user(*, email, password) -> User:
    email = (email or "").strip().lower()
    user = User.objects.filter(email=email).first()
    if user is None or not user.check_password(password or ""):
        logger.info("login failed for %s", email)
        raise ValidationError("Email ou senha incorretos")
    if not user.is_active:
        raise PermissionDenied("Sua conta foi desativada. Entre em contato com o administrador.")
    user.last_login = timezone.now()
    user.save(update_fields=["last_login"])
    return user


@transaction.atomic
def update_profile(user, data, image=None) -> User:
    new_password = data.get("new_password")
    if new_password:
        current = data.get("current_password")
        if not current:
            raise ValidationError("Por favor, informe sua senha atual para alterar a senha")
        if not user.check_password(current):
            raise ValidationError("Senha atual incorreta")
        _check_new_password(new_password, data.get("confirm_password"))
        user.set_password(new_password)

    if "email" in data and data["email"]:
        email = _clean_email(data["email"])
        if _email_taken(email, exclude_id=user.pk):
            raise Conflict("Este email já está em uso")
        user.email = email
    for field in ("name", "phone", "address", "city", "state", "zip_code"):
        if field in data:
            setattr(user, field, data[field])
    if not user.name:
        raise ValidationError("Nome é obrigatório")

    if image is not None:
        user.profile_image, user.profile_image_type = validate_image(image)

    _save_unique(user)
    return user


def profile_image(user):
    if not user.profile_image:
        raise NotFound("Imagem não encontrada")
    return bytes(user.profile_image), user.profile_image_type or "image/jpeg"


# ---------------------------------------------------------------- password reset

@transaction.atomic
def request_password_reset(email) -> str:
    user = User.objects.select_for_update().filter(email=(email or "").strip().lower()).first()
    if user is None:
        raise NotFound("Email não encontrado")
    user.reset_token = secrets.token_hex(32)
    user.reset_token_expires = timezone.now() + timedelta(seconds=settings.SHOP_RESET_TOKEN_TTL)
    user.save(update_fields=["reset_token", "reset_token_expires"])

    store = settings.SHOP_STORE_NAME
    link = _absolute(f"/auth/reset-password/{user.reset_token}/")
    html = (
        f"<h2>Redefinir Senha - {store}</h2>"
        f"<p>Olá {user.name},</p>"
        f"<p>Você solicitou a redefinição de sua senha.</p>"
        f'<p><a href="{link}">Redefinir Senha</a></p>'
        f"<p>Este link expira em 1 hora.</p>"
    )
    background.on_commit(send_email, user.email, f"Redefinir Senha - {store}", html)
    return user.reset_token


def _user_for_token(token, lock=False):
    qs = User.objects.filter(reset_token=token, reset_token_expires__gt=timezone.now())
    if lock:
        qs = qs.select_for_update()
    user = qs.first() if token else None
    if user is None:
        raise ValidationError("Token inválido ou expirado")
    return user


def check_reset_token(token) -> User:
    return _user_for_token(token)


@transaction.atomic
def reset_password(token, password, confirm_password) -> User:
    _check_new_password(password, confirm_password)
    user = _user_for_token(token, lock=True)
    user.set_password(password)
    user.reset_token = None
    user.reset_token_expires = None
    user.save(update_fields=["password", "reset_token", "reset_token_expires"])
    logger.info("password reset for %s", user.email)
    return user


# ---------------------------------------------------------------- admin

def _get_user(user_id) -> User:
    user = User.objects.filter(pk=user_id).first()
    if user is None:
        raise NotFound("Usuário não encontrado")
    return user


def list_users():
    return User.objects.order_by("-created_at")


@transaction.atomic
def admin_create_user(*, name, email, password, role=None) -> User:
    if not name or not email or not password:
        raise ValidationError("Todos os campos são obrigatórios")
    email = _clean_email(email)
    if _email_taken(email):
        raise Conflict("Um usuário com este email já existe")
    user = User(name=name, email=email, role=role or User.Role.USER, is_active=True)
    user.set_password(password)
    _save_unique(user)
    return user


@transaction.atomic
def admin_update_user(user_id, *, name, email, password=None, role=None) -> User:
    user = _get_user(user_id)
    email = _clean_email(email)
    if _email_taken(email, exclude_id=user.pk):
        raise Conflict("Um usuário com este email já existe")
    user.name = name
    user.email = email
    user.role = role or User.Role.USER
    if password and password.strip():
        user.set_password(password)
    _save_unique(user)
    return user


@transaction.atomic
def toggle_user_active(user_id) -> User:
    user = User.objects.select_for_update().filter(pk=user_id).first()
    if user is None:
        raise NotFound("Usuário não encontrado")
    user.is_active = not user.is_active
    user.save(update_fields=["is_active", "updated_at"])
    return user


@transaction.atomic
def delete_user(user_id, *, acting_user) -> None:
    user = _get_user(user_id)
    if acting_user is not None and user.pk == acting_user.pk:
        raise ValidationError("Não é possível excluir sua própria conta")
    user.delete()
