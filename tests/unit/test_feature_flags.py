"""Tests for the injected feature flag providers."""

from membership_sync.config.feature_flags_config import FeatureFlagConfig, FeatureFlags
from membership_sync.infra.feature_flags import (
    FeatureFlagProvider,
    InMemoryFeatureFlags,
    SettingsFeatureFlags,
    StaticFeatureFlags,
)


def test_static_flags_are_fixed():
    flags = StaticFeatureFlags([FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL])

    assert flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)
    assert not flags.is_enabled(FeatureFlags.NEED_ID_CHECK_GETS_ADDED_TO_SLACK_AND_EMAIL)


def test_flag_names_are_case_insensitive():
    flags = StaticFeatureFlags(["Keep_Members_In_Slack_And_Email "])

    assert flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)


def test_in_memory_flags_toggle():
    flags = InMemoryFeatureFlags()
    assert not flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)

    flags.turn_on(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)
    assert flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)
    assert flags.enabled_flags() == {FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL}

    flags.turn_off(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)
    assert not flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)


def test_settings_flags_read_environment(monkeypatch):
    monkeypatch.setenv(
        "FEATURE_FLAGS_ENABLED",
        "keep_members_in_slack_and_email, need_id_check_gets_added_to_slack_and_email",
    )

    flags = SettingsFeatureFlags()

    assert flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)
    assert flags.is_enabled(FeatureFlags.NEED_ID_CHECK_GETS_ADDED_TO_SLACK_AND_EMAIL)


def test_settings_flags_default_to_all_off():
    flags = SettingsFeatureFlags(FeatureFlagConfig(enabled=""))

    assert not flags.is_enabled(FeatureFlags.KEEP_MEMBERS_IN_SLACK_AND_EMAIL)


def test_every_provider_satisfies_protocol():
    for provider in (StaticFeatureFlags(), InMemoryFeatureFlags(), SettingsFeatureFlags(FeatureFlagConfig())):
        assert isinstance(provider, FeatureFlagProvider)
