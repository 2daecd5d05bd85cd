"""Shared fixtures."""

import pytest

from hisebi.config import AppVariant

from tests.factories import build_session


@pytest.fixture
def session():
    """Dor-Dam session (shopping list enabled)."""
    return build_session(AppVariant.DORDAM)[0]


@pytest.fixture
def hisebi_session():
    """Hisebi session (no shopping list)."""
    return build_session(AppVariant.HISEBI)[0]
