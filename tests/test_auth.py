"""Tests for caller identity and the editor permission check."""

import pytest
from fastapi import HTTPException

from tradebinder.api.auth import Principal, get_principal, require_editor


class TestGetPrincipal:
    async def test_anonymous(self) -> None:
        assert await get_principal(None, None) is None

    async def test_blank_user_is_anonymous(self) -> None:
        assert await get_principal("   ", "CARD_EDITOR") is None

    async def test_permissions_split_on_commas(self) -> None:
        principal = await get_principal("alice", "CARD_VIEWER, CARD_EDITOR,,")

        assert principal == Principal("alice", frozenset({"CARD_VIEWER", "CARD_EDITOR"}))

    async def test_no_permissions_header(self) -> None:
        principal = await get_principal("alice", None)

        assert principal is not None
        assert principal.permissions == frozenset()


class TestRequireEditor:
    async def test_editor_allowed(self) -> None:
        principal = Principal("alice", frozenset({"CARD_EDITOR"}))

        assert await require_editor(principal) is principal

    async def test_anonymous_is_401(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await require_editor(None)

        assert exc_info.value.status_code == 401

    async def test_without_permission_is_403(self) -> None:
        with pytest.raises(HTTPException) as exc_info:
            await require_editor(Principal("bob", frozenset({"CARD_VIEWER"})))

        assert exc_info.value.status_code == 403

    async def test_permission_is_case_sensitive(self) -> None:
        with pytest.raises(HTTPException):
            await require_editor(Principal("bob", frozenset({"card_editor"})))
