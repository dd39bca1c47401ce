from django.contrib.auth import login, logout
from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from . import services
from .permissions import IsActiveUser, IsShopAdmin
from .serializers import (
    AdminUserIn,
    ForgotPasswordIn,
    LoginIn,
    ProfileIn,
    RegisterIn,
    ResetPasswordIn,
    UserOut,
)


@api_view(["POST"])
def register(request):
    ser = RegisterIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.register(**ser.validated_data)
    return Response(
        {"success": True, "message": "Conta criada com sucesso! Faça login para continuar.", "user": UserOut(user).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(["POST"])
def login_view(request):
    ser = LoginIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.authenticate_user(**ser.validated_data)
    # keep the cart across the session key rotation done by login()
    cart = request.session.get("cart")
    login(request._request, user)
    if cart:
        request.session["cart"] = cart
    request.session["user"] = user.session_payload()
    return Response({"success": True, "message": f"Bem-vindo, {user.name}!", "user": UserOut(user).data})


@api_view(["POST"])
def logout_view(request):
    logout(request._request)
    return Response({"success": True})


@api_view(["GET", "PUT"])
@permission_classes([IsActiveUser])
@parser_classes([JSONParser, FormParser, MultiPartParser])
def profile(request):
    user = services.current_user(request)
    if request.method == "GET":
        return Response(UserOut(user).data)
    ser = ProfileIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.update_profile(user, ser.validated_data, image=request.FILES.get("profile_image"))
    request.session["user"] = user.session_payload()
    return Response({"success": True, "message": "Perfil atualizado com sucesso", "user": UserOut(user).data})


@api_view(["GET"])
@permission_classes([IsActiveUser])
def profile_image(request):
    data, content_type = services.profile_image(services.current_user(request))
    return HttpResponse(data, content_type=content_type)


@api_view(["POST"])
def forgot_password(request):
    ser = ForgotPasswordIn(data=request.data)
    ser.is_valid(raise_exception=True)
    services.request_password_reset(ser.validated_data["email"])
    return Response({"success": True, "message": "Email de redefinição enviado. Verifique sua caixa de entrada."})


@api_view(["GET", "POST"])
def reset_password(request, token):
    if request.method == "GET":
        services.check_reset_token(token)
        return Response({"success": True, "token": token})
    ser = ResetPasswordIn(data=request.data)
    ser.is_valid(raise_exception=True)
    services.reset_password(token, ser.validated_data["password"], ser.validated_data["confirm_password"])
    return Response({"success": True, "message": "Senha redefinida com sucesso! Faça login com sua nova senha."})


# ---------------------------------------------------------------- admin

@api_view(["GET", "POST"])
@permission_classes([IsShopAdmin])
def admin_users(request):
    if request.method == "GET":
        return Response(UserOut(services.list_users(), many=True).data)
    ser = AdminUserIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.admin_create_user(**ser.validated_data)
    return Response(
        {"success": True, "message": "Usuário criado com sucesso!", "user": UserOut(user).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(["PUT", "DELETE"])
@permission_classes([IsShopAdmin])
def admin_user_detail(request, user_id):
    if request.method == "DELETE":
        services.delete_user(user_id, acting_user=services.current_user(request))
        return Response({"success": True, "message": "Usuário excluído com sucesso!"})
    ser = AdminUserIn(data=request.data)
    ser.is_valid(raise_exception=True)
    user = services.admin_update_user(user_id, **ser.validated_data)
    return Response({"success": True, "message": "Usuário atualizado com sucesso!", "user": UserOut(user).data})


@api_view(["PUT"])
@permission_classes([IsShopAdmin])
def admin_user_toggle(request, user_id):
    user = services.toggle_user_active(user_id)
    state = "ativado" if user.is_active else "desativado"
    return Response({"success": True, "message": f"Usuário {state} com sucesso", "is_active": user.is_active})
