from __future__ import annotations

import pytest

from app.core.masking import MASK_TOKEN, build_masker


def test_masker_scrubs_every_pattern() -> None:
    masker = build_masker([r"unix://[\w./]+", r"sha256:[0-9a-f]{12,}"])

    masked = masker.mask(
        "Cannot connect to unix:///var/run/docker.sock while pulling sha256:0123456789abcdef"
    )

    assert masked == f"Cannot connect to {MASK_TOKEN} while pulling {MASK_TOKEN}"


def test_masker_without_patterns_is_identity() -> None:
    assert build_masker([]).mask("No such container: VK_default_web_c1") == (
        "No such container: VK_default_web_c1"
    )


def test_build_masker_rejects_invalid_regex() -> None:
    with pytest.raises(ValueError, match="invalid masking regex"):
        build_masker([r"(unclosed"])
