from django.db import models


class DocumentSequence(models.Model):
    """Per-day counter behind offer and order numbers."""

    prefix = models.CharField(max_length=10)
    day = models.DateField()
    current_value = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = "document_sequence"
        unique_together = ("prefix", "day")

    def __str__(self):
        return f"{self.prefix}-{self.day:%Y%m%d}: {self.current_value}"
