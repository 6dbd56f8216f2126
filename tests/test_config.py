from chat_shared.config import Settings


def test_defaults_disable_keepalive():
    config = Settings(_env_file=None)
    assert config.URL == "ws://localhost:8080/ws"
    assert config.PING_INTERVAL_S is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHAT_URL", "ws://chat.example:9000/ws")
    monkeypatch.setenv("CHAT_OPEN_TIMEOUT_S", "2.5")
    config = Settings(_env_file=None)
    assert config.URL == "ws://chat.example:9000/ws"
    assert config.OPEN_TIMEOUT_S == 2.5
