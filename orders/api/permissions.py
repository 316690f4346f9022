"""Orders API permissions."""

from rest_framework.permissions import SAFE_METHODS, BasePermission


class IsDraftOrder(BasePermission):
    """Allow item edits only while the order is still a draft."""

    message = "Only draft orders can be changed."

    def has_object_permission(self, request, view, obj):
        if request.method in SAFE_METHODS:
            return True
        return obj.is_draft
