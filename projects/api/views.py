"""Projects API views.

Read-only access to the project catalog the commercial engine prices and
sources from.
"""

from rest_framework import generics
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import IsAuthenticated

from projects.models import Project
from .serializers import ProjectDetailSerializer, ProjectListSerializer


class ProjectListAPIView(generics.ListAPIView):
    """GET /api/projects/?status=... -> projects with product counts."""

    serializer_class = ProjectListSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        qs = Project.objects.prefetch_related("products").order_by("-id")
        status_filter = self.request.query_params.get("status")
        if status_filter:
            if status_filter not in Project.Status.values:
                raise ValidationError({"status": f"Allowed values: {', '.join(Project.Status.values)}."})
            qs = qs.filter(status=status_filter)
        return qs


class ProjectDetailAPIView(generics.RetrieveAPIView):
    """GET /api/projects/{id}/ -> project with products and materials."""

    queryset = Project.objects.prefetch_related("products__materials")
    serializer_class = ProjectDetailSerializer
    permission_classes = [IsAuthenticated]
