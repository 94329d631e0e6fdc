"""
Tests for the local QRN store, its settings file, and the display styles.

Run with:  python -m pytest test_store.py -v
"""

import pytest
import yaml

from display import DisplayStyle, display, render, render_byte
from qrn_commands.errors import ParseResponseError, ParseSettingsError, attempt, handle_with_crash
from qrn_store import (
    DEFAULT_MIN_STORE_SIZE,
    DEFAULT_TARGET_STORE_SIZE,
    QRNStore,
    StoreSettings,
)


class CountingClient:
    """Deterministic AnuClient stand-in: bytes 0, 1, 2, ... mod 256."""

    def __init__(self):
        self.requests = []
        self._next = 0

    def fetch_qrn(self, count):
        self.requests.append(count)
        data = bytes((self._next + i) % 256 for i in range(count))
        self._next += count
        return data


class FailingClient:
    def fetch_qrn(self, count):
        raise ParseResponseError("Request unsuccessful: server reported failure")


@pytest.fixture
def client():
    return CountingClient()


@pytest.fixture
def store(tmp_path, client):
    s = QRNStore(tmp_path / "qrn", client=client)
    s.initialize()
    return s


def small_thresholds(store, minimum=5, target=10):
    store.set_min_store_size(minimum)
    store.set_target_store_size(target)


# ============================================================
# Settings
# ============================================================

class TestSettings:

    def test_initialize_creates_files(self, tmp_path, client):
        s = QRNStore(tmp_path / "fresh", client=client)
        settings = s.initialize()
        assert settings == StoreSettings()
        assert s.store_path.exists()
        assert s.settings_path.exists()
        assert s.store_size() == 0

    def test_defaults_without_settings_file(self, tmp_path, client):
        s = QRNStore(tmp_path / "none", client=client)
        assert s.get_min_store_size() == DEFAULT_MIN_STORE_SIZE
        assert s.get_target_store_size() == DEFAULT_TARGET_STORE_SIZE

    def test_setters_persist(self, store, tmp_path, client):
        store.set_min_store_size(100)
        store.set_target_store_size(500)
        reopened = QRNStore(tmp_path / "qrn", client=client)
        assert reopened.get_min_store_size() == 100
        assert reopened.get_target_store_size() == 500
        with open(store.settings_path) as f:
            assert yaml.safe_load(f) == {'min_store_size': 100, 'target_store_size': 500}

    def test_restore_defaults(self, store):
        small_thresholds(store)
        store.restore_defaults()
        assert store.load_settings() == StoreSettings()

    def test_empty_settings_file_means_defaults(self, store):
        store.settings_path.write_text("")
        assert store.load_settings() == StoreSettings()

    @pytest.mark.parametrize("content", [
        "min_store_size: [unclosed\n",
        "- just\n- a list\n",
        "min_store_size: lots\n",
        "min_store_size: -1\n",
        "target_store_size: true\n",
        "colour: blue\n",
    ])
    def test_malformed_settings_raise(self, store, content):
        store.settings_path.write_text(content)
        with pytest.raises(ParseSettingsError):
            store.load_settings()

    def test_malformed_settings_crash_at_startup(self, tmp_path, client):
        s = QRNStore(tmp_path / "broken", client=client)
        s.data_dir.mkdir(parents=True)
        s.settings_path.write_text("min_store_size: {\n")
        with pytest.raises(SystemExit) as exc:
            handle_with_crash(attempt(s.initialize))
        assert "Problem loading or interpreting settings file:" in str(exc.value.code)


# ============================================================
# Store operations
# ============================================================

class TestStoreOperations:

    def test_add_appends(self, store, client):
        store.add_to_store(3)
        store.add_to_store(2)
        assert store.get_store() == bytes([0, 1, 2, 3, 4])
        assert client.requests == [3, 2]

    def test_fill_to_target(self, store, client):
        small_thresholds(store)
        store.add_to_store(4)
        store.fill()
        assert store.store_size() == 10
        assert client.requests == [4, 6]

    def test_fill_when_full_fetches_nothing(self, store, client):
        small_thresholds(store)
        store.add_to_store(12)
        store.fill()
        assert client.requests == [12]

    def test_reinitialize_restores_and_fills(self, store, client):
        small_thresholds(store)
        store.reinitialize()
        assert store.load_settings() == StoreSettings()
        assert store.store_size() == DEFAULT_TARGET_STORE_SIZE

    def test_peek_does_not_consume(self, store, capsys):
        store.add_to_store(4)
        store.peek(DisplayStyle.DEFAULT, 2)
        assert capsys.readouterr().out == "00 01\n"
        assert store.store_size() == 4

    def test_peek_more_than_stored_shows_what_exists(self, store, capsys):
        store.add_to_store(2)
        store.peek(DisplayStyle.DEFAULT, 50)
        assert capsys.readouterr().out == "00 01\n"

    def test_peek_all(self, store, capsys):
        store.add_to_store(3)
        store.peek_all(DisplayStyle.BITS)
        assert capsys.readouterr().out == "00000000 00000001 00000010\n"
        assert store.store_size() == 3

    def test_observe_consumes_from_front(self, store, client, capsys):
        small_thresholds(store, minimum=0, target=10)
        store.add_to_store(6)
        store.observe(DisplayStyle.DEFAULT, 2)
        assert capsys.readouterr().out == "00 01\n"
        assert store.get_store() == bytes([2, 3, 4, 5])

    def test_observe_fetches_shortfall_then_refills(self, store, client, capsys):
        small_thresholds(store, minimum=5, target=10)
        store.add_to_store(3)
        store.observe(DisplayStyle.DEFAULT, 5)
        # 3 from store + 2 fetched live, then a refill to target
        assert capsys.readouterr().out == "00 01 02 03 04\n"
        assert client.requests == [3, 2, 10]
        assert store.store_size() == 10

    def test_observe_refills_below_minimum(self, store, client, capsys):
        small_thresholds(store, minimum=5, target=10)
        store.add_to_store(10)
        store.observe(DisplayStyle.DEFAULT, 6)
        assert store.store_size() == 10
        assert client.requests == [10, 6]

    def test_failed_fetch_leaves_store_untouched(self, tmp_path):
        s = QRNStore(tmp_path / "f", client=FailingClient())
        s.initialize()
        s.store_path.write_bytes(b"\x01\x02")
        with pytest.raises(ParseResponseError):
            s.observe(DisplayStyle.DEFAULT, 5)
        assert s.get_store() == b"\x01\x02"


# ============================================================
# Display styles
# ============================================================

class TestDisplay:

    def test_render_byte_styles(self):
        assert render_byte(DisplayStyle.DEFAULT, 0xA5) == "a5"
        assert render_byte(DisplayStyle.BITS, 0xA5) == "10100101"
        assert render_byte(DisplayStyle.SPINS, 0xA5) == "↑↓↑↓↓↑↓↑"

    def test_default_wraps_at_sixteen(self):
        lines = render(DisplayStyle.DEFAULT, bytes(range(20)))
        assert len(lines) == 2
        assert lines[1] == "10 11 12 13"

    def test_bits_wrap_at_eight(self):
        lines = render(DisplayStyle.BITS, bytes(9))
        assert len(lines) == 2
        assert lines[1] == "00000000"

    def test_empty_data_prints_blank_line(self, capsys):
        display(DisplayStyle.SPINS, b"")
        assert capsys.readouterr().out == "\n"
