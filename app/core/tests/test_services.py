"""
Tests for BaseService.

These tests verify that:
- Services are bound to a database alias
- atomic() rolls back on error
- Loggers are named after the service class
"""

from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS

from core.services import BaseService


class ExampleService(BaseService):
    def create_user(self, username: str, fail: bool = False):
        with self.atomic():
            user = get_user_model().objects.using(self.using).create(username=username)
            if fail:
                raise RuntimeError("boom")
        return user


class TestBaseService:
    def test_default_alias(self):
        assert ExampleService().using == DEFAULT_DB_ALIAS

    def test_logger_name(self):
        logger = ExampleService.get_logger()

        assert logger.name == f"{__name__}.ExampleService"

    def test_atomic_commits(self, db):
        ExampleService().create_user("operator")

        assert get_user_model().objects.filter(username="operator").exists()

    def test_atomic_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            ExampleService().create_user("operator", fail=True)

        assert not get_user_model().objects.filter(username="operator").exists()

    @pytest.mark.django_db(transaction=True)
    def test_in_atomic_block(self):
        service = ExampleService()

        assert service.in_atomic_block() is False
        with service.atomic():
            assert service.in_atomic_block() is True
