"""Read port for the project catalog."""

from .models import Project


def list_projects():
    """All projects with their products and materials prefetched."""
    return list(Project.objects.prefetch_related("products__materials").order_by("id"))


def sync_project_status(project, new_status, *, only_from=None):
    """Move ``project`` to ``new_status`` when it currently is in ``only_from``.

    Returns True when the status changed.
    """
    if only_from is not None and project.status not in only_from:
        return False
    if project.status == new_status:
        return False
    project.status = new_status
    project.save(update_fields=["status"])
    return True
