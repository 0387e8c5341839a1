"""Tests for domain-aware type resolution."""

import pytest

from column_catalog.catalog import TypeResolver


@pytest.fixture
def resolver():
    return TypeResolver()


def test_domain_takes_precedence(resolver, registry, type_x):
    """A resolvable domain wins even when the declared type also resolves."""
    assert resolver.resolve("DOM", "INTEGER", registry) is type_x


def test_declared_type_when_domain_absent(resolver, registry, type_int):
    assert resolver.resolve(None, "INTEGER", registry) is type_int


def test_declared_type_when_domain_empty(resolver, registry, type_int):
    assert resolver.resolve("", "INTEGER", registry) is type_int


def test_unknown_domain_does_not_fall_back(resolver, registry):
    """A present domain name is the only name looked up."""
    assert resolver.resolve("MISSING_DOMAIN", "INTEGER", registry) is None


def test_unknown_declared_type_is_none(resolver, registry):
    assert resolver.resolve(None, "GEOMETRY", registry) is None


def test_resolution_does_not_modify_registry(resolver, registry):
    before = registry.names()

    resolver.resolve("DOM", "INTEGER", registry)
    resolver.resolve(None, "UNKNOWN", registry)

    assert registry.names() == before
