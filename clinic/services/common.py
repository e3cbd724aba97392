"""Small helpers shared by the workflow services."""
from typing import Optional, Type, TypeVar

import bleach
from django.db import models

from clinic.exceptions import NotFoundError

M = TypeVar('M', bound=models.Model)


def clean_text(value: Optional[str]) -> str:
    """Strip markup from user supplied free text."""
    return bleach.clean((value or '').strip(), tags=set(), strip=True)


def get_or_404(model: Type[M], pk, label: str) -> M:
    obj = model.objects.filter(pk=pk).first()
    if obj is None:
        raise NotFoundError(f'{label} not found.')
    return obj


def lock_or_404(model: Type[M], pk, label: str) -> M:
    """Fetch and row-lock ``model`` #pk.  Must run inside ``transaction.atomic``."""
    obj = model.objects.select_for_update().filter(pk=pk).first()
    if obj is None:
        raise NotFoundError(f'{label} not found.')
    return obj
