import logging
import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../../services/indicator_lab_py')))

from indicator_lab import config


def test_env_strips_quotes_and_whitespace(monkeypatch):
    monkeypatch.setenv("INDICATOR_LAB_TEST_VALUE", ' "debug" ')
    assert config._env("INDICATOR_LAB_TEST_VALUE") == "debug"


def test_env_empty_value_uses_default(monkeypatch):
    monkeypatch.setenv("INDICATOR_LAB_TEST_VALUE", "''")
    assert config._env("INDICATOR_LAB_TEST_VALUE", "fallback") == "fallback"


def test_env_numbers_fall_back_on_garbage(monkeypatch):
    monkeypatch.setenv("INDICATOR_LAB_TEST_VALUE", "soon")
    assert config._env_float("INDICATOR_LAB_TEST_VALUE", 1.5) == 1.5
    assert config._env_int("INDICATOR_LAB_TEST_VALUE", 80) == 80
    monkeypatch.setenv("INDICATOR_LAB_TEST_VALUE", "2.5")
    assert config._env_float("INDICATOR_LAB_TEST_VALUE", 1.0) == 2.5


def test_get_logger_attaches_one_handler():
    first = config.get_logger("indicator_lab.test")
    second = config.get_logger("indicator_lab.test")
    assert first is second
    assert len(first.handlers) == 1
    assert isinstance(first.handlers[0], logging.StreamHandler)
