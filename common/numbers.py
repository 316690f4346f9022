from django.db import transaction
from django.utils import timezone


@transaction.atomic
def document_number(prefix: str, width: int = 3) -> str:
    """Return the next document number of the day, e.g. ``P-20250114-042``."""
    from .models import DocumentSequence

    today = timezone.localdate()
    seq, _ = DocumentSequence.objects.select_for_update().get_or_create(
        prefix=prefix,
        day=today,
        defaults={"current_value": 0},
    )
    seq.current_value += 1
    seq.save(update_fields=["current_value"])
    return f"{prefix}-{today:%Y%m%d}-{seq.current_value:0{width}d}"
