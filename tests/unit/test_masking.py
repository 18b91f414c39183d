# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for sensitive-field masking."""

from __future__ import annotations

from servercat.security.masking import mask_sensitive, sanitize_response


class TestMaskSensitive:
    def test_masks_known_keys(self) -> None:
        masked = mask_sensitive({"username": "alice", "password": "hunter2", "Token": "abc"})
        assert masked == {"username": "alice", "password": "***MASKED***", "Token": "***MASKED***"}

    def test_masks_nested_structures(self) -> None:
        masked = mask_sensitive({"items": [{"secret": "s", "name": "n"}]})
        assert masked == {"items": [{"secret": "***MASKED***", "name": "n"}]}

    def test_original_untouched(self) -> None:
        data = {"key": "k"}
        mask_sensitive(data)
        assert data == {"key": "k"}

    def test_scalars_pass_through(self) -> None:
        assert mask_sensitive("password") == "password"
        assert mask_sensitive(None) is None


class TestSanitizeResponse:
    def test_drops_sensitive_keys(self) -> None:
        data = {"id": 1, "authorization": "Bearer x", "nested": {"token": "t", "ok": True}}
        assert sanitize_response(data) == {"id": 1, "nested": {"ok": True}}
