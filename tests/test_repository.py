from __future__ import annotations

import pytest

from volt_engine.errors import InvalidRepositoryError
from volt_engine.repository import normalize_all, normalize_repository


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("tyru/caw.vim", "github.com/tyru/caw.vim"),
        ("github.com/tyru/caw.vim", "github.com/tyru/caw.vim"),
        ("https://github.com/tyru/caw.vim", "github.com/tyru/caw.vim"),
        ("https://github.com/tyru/caw.vim.git", "github.com/tyru/caw.vim"),
        ("http://gitlab.com/user/repo/", "gitlab.com/user/repo"),
        ("github.com\\tyru\\caw.vim", "github.com/tyru/caw.vim"),
    ],
)
def test_normalize_repository_accepts_common_forms(raw: str, expected: str) -> None:
    assert normalize_repository(raw) == expected


@pytest.mark.parametrize(
    "raw",
    ["", "caw.vim", "a//b", "h/u/n/extra", "https://github.com/tyru", "../u/n"],
)
def test_normalize_repository_rejects_malformed(raw: str) -> None:
    with pytest.raises(InvalidRepositoryError):
        normalize_repository(raw)


def test_normalize_all_fails_on_first_invalid_entry() -> None:
    with pytest.raises(InvalidRepositoryError) as excinfo:
        normalize_all(["tyru/caw.vim", "bad", "also-bad"])
    assert "'bad'" in str(excinfo.value)


def test_normalize_all_uses_injected_normalizer() -> None:
    assert normalize_all(["x", "y"], str.upper) == ("X", "Y")
