from rest_framework.permissions import BasePermission

from .services import current_user


class IsActiveUser(BasePermission):
    message = "Você precisa estar logado para acessar esta página"

    def has_permission(self, request, view):
        return current_user(request) is not None


class IsShopAdmin(BasePermission):
    message = "Acesso negado. Apenas administradores podem acessar esta página"

    def has_permission(self, request, view):
        user = current_user(request)
        return user is not None and user.is_admin
