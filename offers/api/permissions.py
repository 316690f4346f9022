"""Offers API permissions."""

from rest_framework.permissions import BasePermission


class IsDraftOffer(BasePermission):
    """Allow full replacement only while the offer is still a draft."""

    message = "Only draft offers can be edited."

    def has_object_permission(self, request, view, obj):
        if request.method not in ("PUT", "PATCH"):
            return True
        return obj.is_draft
