from medgrades.config import Settings


def test_settings_defaults():
    s = Settings()
    assert s.SESSION_DIR.endswith("sessions")
    assert s.PORT == 8000


def test_settings_read_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("MEDGRADES_SESSION_DIR", str(tmp_path))
    monkeypatch.setenv("MEDGRADES_PORT", "9001")
    s = Settings()
    assert s.SESSION_DIR == str(tmp_path)
    assert s.PORT == 9001
