"""Null-safe reads of collaborator aggregates."""

from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain


def find_or_none(aggregate_cls, identifier):
    """Load an aggregate by id, or return None when the id is empty or unknown."""
    if not identifier:
        return None
    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        return None
