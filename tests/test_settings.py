"""Tests for persisted settings and baby selection."""

import json

from letbabytalk.models import BabyProfile
from letbabytalk.settings import BabySelection, SettingsStore


def _babies(*ids):
    return [BabyProfile(id=i, name=f"Baby {i}") for i in ids]


class TestSettingsStore:
    def test_defaults_when_missing(self, tmp_path):
        settings = SettingsStore(tmp_path / "settings.json").load()
        assert settings.language == "en"
        assert settings.guest_user_id is None
        assert not settings.has_completed_onboarding

    def test_update_persists(self, tmp_path):
        path = tmp_path / "nested" / "settings.json"
        store = SettingsStore(path)
        store.load()
        store.update(guest_user_id="guest_1_abc", language="id", has_completed_onboarding=True)

        reloaded = SettingsStore(path).load()
        assert reloaded.guest_user_id == "guest_1_abc"
        assert reloaded.language == "id"
        assert reloaded.has_completed_onboarding

    def test_unsupported_language_falls_back(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"language": "fr"}))
        assert SettingsStore(path).load().language == "en"

    def test_corrupt_file_yields_defaults(self, tmp_path):
        path = tmp_path / "settings.json"
        path.write_text("{not json")
        assert SettingsStore(path).load().selected_baby_id is None


class TestBabySelection:
    def test_auto_selects_first(self, tmp_path):
        store = SettingsStore(tmp_path / "s.json")
        store.load()
        assert BabySelection(store).reconcile(_babies(4, 9)) == 4
        assert SettingsStore(tmp_path / "s.json").load().selected_baby_id == 4

    def test_keeps_existing_selection(self, tmp_path):
        store = SettingsStore(tmp_path / "s.json")
        store.load()
        selection = BabySelection(store)
        selection.select(9)
        assert selection.reconcile(_babies(4, 9)) == 9

    def test_vanished_selection_replaced(self, tmp_path):
        store = SettingsStore(tmp_path / "s.json")
        store.load()
        selection = BabySelection(store)
        selection.select(7)
        assert selection.reconcile(_babies(4)) == 4

    def test_cleared_when_no_profiles(self, tmp_path):
        store = SettingsStore(tmp_path / "s.json")
        store.load()
        selection = BabySelection(store)
        selection.select(7)
        assert selection.reconcile([]) is None
        assert selection.selected_id is None
