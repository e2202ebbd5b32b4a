# core/models.py

"""
SEQUENCE COUNTER

One row per counter key (e.g. "pr-2025", "inv-2025").
Rows are only ever incremented through core.sequences.next_sequence().
"""

from django.db import models


class SequenceCounter(models.Model):
    key = models.CharField(max_length=64, unique=True)
    sequence = models.PositiveIntegerField(default=0)

    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]

    def __str__(self):
        return f"{self.key}={self.sequence}"
