from __future__ import annotations

import logging

import pytest

from remote_identity.common.logging import configure_logging, level_for_verbosity


def test_configure_logging_passes_project_format(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def fake_basic_config(**kwargs: object) -> None:
        captured.update(kwargs)

    monkeypatch.setattr(logging, "basicConfig", fake_basic_config)

    configure_logging(level=logging.DEBUG, force=True)

    assert captured["level"] == logging.DEBUG
    assert captured["force"] is True
    assert "%(name)s" in str(captured["format"])


def test_configure_logging_defaults_to_info(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: captured.update(kwargs))

    configure_logging()

    assert captured["level"] == logging.INFO
    assert captured["force"] is False


@pytest.mark.parametrize(
    ("verbosity", "expected"),
    [(-1, logging.WARNING), (0, logging.WARNING), (1, logging.INFO), (2, logging.DEBUG), (5, logging.DEBUG)],
)
def test_level_for_verbosity(verbosity: int, expected: int) -> None:
    assert level_for_verbosity(verbosity) == expected
