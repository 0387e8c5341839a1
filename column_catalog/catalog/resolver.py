"""Resolve a column's authoritative type handle."""

import logging
from typing import Optional

from .types import DataTypeHandle, TypeRegistry

logger = logging.getLogger(__name__)


class TypeResolver:
    """Picks the registry handle for a column's domain or declared type.

    A non-empty domain name always wins: when it is present only the domain
    is looked up, and a miss is reported as None rather than falling back to
    the declared type name.
    """

    def resolve(
        self,
        domain_type_name: Optional[str],
        declared_type_name: str,
        registry: TypeRegistry,
    ) -> Optional[DataTypeHandle]:
        """Resolve a type handle.

        Args:
            domain_type_name: Domain alias reported by the owning table, if any
            declared_type_name: Raw type name reported by the driver
            registry: Connection-scoped type registry

        Returns:
            The matching handle, or None when the type is unknown
        """
        if domain_type_name:
            lookup_name = domain_type_name
        else:
            lookup_name = declared_type_name

        handle = registry.lookup(lookup_name)
        if handle is None:
            logger.debug(f"No registry type for '{lookup_name}'")
        return handle

