from __future__ import annotations

import pytest

from graphviz_preview.config.logging_policy import DEBUG_ENV, load_debug_policy
from graphviz_preview.config.models import PreviewSettings, SchedulerConfig, load_preview_settings


def test_preview_settings_defaults() -> None:
    settings = load_preview_settings({})
    assert settings == PreviewSettings()

    cfg = settings.scheduler_config()
    assert cfg.guard_interval_ms == 10
    assert cfg.debounce_interval_ms == 300
    assert cfg.render_interval_ms == 0
    assert cfg.lock_enabled is True
    # additional timeout + transition delay + transition duration
    assert cfg.lock_safety_timeout_ms == 1000 + 0 + 500
    assert cfg.safety_timer_enabled


def test_preview_settings_env_overrides() -> None:
    env = {
        "GRAPHVIZ_PREVIEW_GUARD_INTERVAL_MS": "200",
        "GRAPHVIZ_PREVIEW_DEBOUNCE_INTERVAL_MS": "100",
        "GRAPHVIZ_PREVIEW_RENDER_INTERVAL_MS": "1000",
        "GRAPHVIZ_PREVIEW_RENDER_LOCK_ADDITIONAL_TIMEOUT_MS": "2000",
        "GRAPHVIZ_PREVIEW_TRANSITION_DELAY_MS": "250",
        "GRAPHVIZ_PREVIEW_TRANSITION_DURATION_MS": "750",
    }
    cfg = load_preview_settings(env).scheduler_config()

    assert cfg.guard_interval_ms == 200
    assert cfg.debounce_interval_ms == 100
    assert cfg.render_interval_ms == 1000
    assert cfg.lock_safety_timeout_ms == 3000


def test_negative_additional_timeout_disables_safety_timer() -> None:
    settings = load_preview_settings({"GRAPHVIZ_PREVIEW_RENDER_LOCK_ADDITIONAL_TIMEOUT_MS": "-1"})
    cfg = settings.scheduler_config()

    assert cfg.lock_enabled is True
    assert cfg.lock_safety_timeout_ms == 0
    assert not cfg.safety_timer_enabled


def test_render_lock_off_zeroes_safety_timeout() -> None:
    cfg = load_preview_settings({"GRAPHVIZ_PREVIEW_RENDER_LOCK": "off"}).scheduler_config()
    assert cfg.lock_enabled is False
    assert cfg.lock_safety_timeout_ms == 0


def test_unparsable_values_fall_back_to_defaults() -> None:
    settings = load_preview_settings(
        {
            "GRAPHVIZ_PREVIEW_DEBOUNCE_INTERVAL_MS": "soon",
            "GRAPHVIZ_PREVIEW_RENDER_LOCK": "maybe",
        }
    )
    assert settings.debounce_interval_ms == 300
    assert settings.render_lock is True


def test_negative_settings_are_clamped() -> None:
    settings = PreviewSettings(guard_interval_ms=-5, debounce_interval_ms=-1, render_interval_ms=-10)
    cfg = settings.scheduler_config()
    assert (cfg.guard_interval_ms, cfg.debounce_interval_ms, cfg.render_interval_ms) == (0, 0, 0)


def test_scheduler_config_rejects_negative() -> None:
    with pytest.raises(ValueError):
        SchedulerConfig(debounce_interval_ms=-1)


def test_view_config_payload() -> None:
    settings = PreviewSettings(transition_delay_ms=20, transition_duration_ms=400)
    assert settings.view_config() == {"transitionDelay": 20, "transitionDuration": 400}


def test_load_from_process_env(monkeypatch) -> None:
    monkeypatch.setenv("GRAPHVIZ_PREVIEW_GUARD_INTERVAL_MS", "42")
    assert load_preview_settings().guard_interval_ms == 42


def test_debug_policy_defaults() -> None:
    policy = load_debug_policy({})
    assert policy.enabled is False
    assert policy.logging.log_requests is False
    assert policy.logging.log_lock is False


def test_debug_policy_switch_enables_everything() -> None:
    policy = load_debug_policy({DEBUG_ENV: "1"})
    assert policy.enabled is True
    assert policy.logging.log_requests
    assert policy.logging.log_dispatch
    assert policy.logging.log_lock
    assert policy.logging.log_messages


def test_debug_policy_flag_list_and_json() -> None:
    policy = load_debug_policy({DEBUG_ENV: "lock, messages"})
    assert policy.logging.log_lock and policy.logging.log_messages
    assert not policy.logging.log_requests

    policy = load_debug_policy({DEBUG_ENV: '{"flags": ["requests"]}'})
    assert policy.enabled is True
    assert policy.logging.log_requests
    assert not policy.logging.log_lock

    policy = load_debug_policy({DEBUG_ENV: '{"enabled": false, "flags": ["requests"]}'})
    assert policy.enabled is False
    assert not policy.logging.log_requests


def test_debug_policy_off_values() -> None:
    assert load_debug_policy({DEBUG_ENV: "0"}).enabled is False
    assert load_debug_policy({DEBUG_ENV: ""}).enabled is False
