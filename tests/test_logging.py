"""Tests for the per-module print logger."""

import pytest

from macrogame import logging as mlog


@pytest.fixture(autouse=True)
def restore_levels(monkeypatch):
    monkeypatch.setattr(mlog, '_default_level', mlog.LogLevel.INFO)
    monkeypatch.setattr(mlog, '_module_levels', {})
    monkeypatch.setattr(mlog, '_clock', None)


def test_format_and_streams(capsys):
    log = mlog.MacrogameLogger('flow')

    log.info("entered %s", 'title')
    log.warning("late on_end")

    out, err = capsys.readouterr()
    assert out == "[flow] INFO: entered title\n"
    assert err == "[flow] WARN: late on_end\n"


def test_module_level_overrides_default(capsys):
    mlog.configure_logging(level='WARNING', modules={'Music': 'debug'})

    mlog.MacrogameLogger('music').debug("switch")
    mlog.MacrogameLogger('flow').info("hidden")

    out, _ = capsys.readouterr()
    assert out == "[music] DEBUG: switch\n"


def test_clock_prefix(capsys):
    mlog.set_clock(lambda: 4.5)

    mlog.MacrogameLogger('flow').info("tick")

    assert capsys.readouterr().out == "[flow] INFO t=4.500: tick\n"


def test_bad_format_args_do_not_raise(capsys):
    mlog.MacrogameLogger('flow').info("%d points", 'many')
    assert "many" in capsys.readouterr().out


def test_exception_includes_traceback(capsys):
    log = mlog.MacrogameLogger('music')
    try:
        raise OSError("no device")
    except OSError:
        log.exception("Playback failed")

    err = capsys.readouterr().err
    assert err.startswith("[music] ERROR: Playback failed\n")
    assert "OSError: no device" in err


@pytest.mark.parametrize("name, level", [
    ('trace', mlog.LogLevel.TRACE),
    ('WARN', mlog.LogLevel.WARNING),
    ('off', mlog.LogLevel.OFF),
    ('bogus', mlog.LogLevel.INFO),
])
def test_parse_level(name, level):
    assert mlog.parse_level(name) == level
