"""Existence checks used by the assignment service and serializers."""

from .models import Division, Rubrik


def _exists(model, pk) -> bool:
    if pk in (None, ""):
        return False
    try:
        return model.objects.filter(pk=pk).exists()
    except (TypeError, ValueError):
        return False


def rubrik_exists(rubrik_id) -> bool:
    return _exists(Rubrik, rubrik_id)


def division_exists(division_id) -> bool:
    return _exists(Division, division_id)


__all__ = ["rubrik_exists", "division_exists"]
