from __future__ import annotations

import json

from core.config import DEFAULT_API_URL, dump_json, load_config, load_json
from core.models.company import CompanyInfo
from core.services.settings_service import SettingsService


# ---------- Configuration ---------- #

def test_defaults_without_settings_file(tmp_path):
    cfg = load_config(tmp_path)
    assert cfg.api_base_url == DEFAULT_API_URL
    assert cfg.api_key == ""
    assert cfg.api_timeout == 30.0
    assert cfg.data_dir == tmp_path
    assert cfg.settings_path == tmp_path / "settings.json"
    assert cfg.auth_username is None


def test_settings_file_sections(tmp_path):
    dump_json(tmp_path / "settings.json", {
        "api": {"base_url": "https://exemple.test/api/", "key": "abc", "timeout": 5},
        "auth": {"username": "admin", "password_hash": "$2b$12$x"},
        "pdf": {"wkhtmltopdf_path": "/usr/local/bin/wkhtmltopdf"},
        "exports_dir": str(tmp_path / "pdf"),
    })
    cfg = load_config(tmp_path)
    assert (cfg.api_base_url, cfg.api_key, cfg.api_timeout) == ("https://exemple.test/api/", "abc", 5.0)
    assert (cfg.auth_username, cfg.auth_password_hash) == ("admin", "$2b$12$x")
    assert cfg.wkhtmltopdf_path == "/usr/local/bin/wkhtmltopdf"
    assert cfg.exports_dir == tmp_path / "pdf"


def test_environment_overrides_settings(tmp_path, monkeypatch):
    dump_json(tmp_path / "settings.json", {"api": {"key": "fichier", "timeout": 5}})
    monkeypatch.setenv("MG_API_KEY", "env")
    monkeypatch.setenv("MG_API_URL", "http://localhost:8000/api/")
    monkeypatch.setenv("MG_API_TIMEOUT", "12.5")
    monkeypatch.setenv("WKHTMLTOPDF", "/opt/wk")

    cfg = load_config(tmp_path)
    assert cfg.api_key == "env"
    assert cfg.api_base_url == "http://localhost:8000/api/"
    assert cfg.api_timeout == 12.5
    assert cfg.wkhtmltopdf_path == "/opt/wk"


def test_data_dir_from_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("MG_DATA_DIR", str(tmp_path))
    assert load_config().data_dir == tmp_path


def test_unreadable_settings_file_is_ignored(tmp_path):
    (tmp_path / "settings.json").write_text("[1, 2", encoding="utf-8")
    assert load_json(tmp_path / "settings.json") is None
    assert load_config(tmp_path).api_base_url == DEFAULT_API_URL


# ---------- Société ---------- #

def test_company_defaults(tmp_path):
    c = SettingsService(tmp_path / "settings.json").load_company()
    assert c == CompanyInfo()
    assert (c.name, c.vat_rate, c.currency) == ("Maghreb Global", 20.0, "DH")


def test_company_save_and_reload(tmp_path):
    path = tmp_path / "settings.json"
    dump_json(path, {"api": {"key": "k"}})
    svc = SettingsService(path)

    svc.save_company(CompanyInfo(name="MG", ice="123", if_number="456", phones=["0537", "0661"], vat_rate=14))

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw["api"] == {"key": "k"}
    assert raw["company"]["if"] == "456"
    again = svc.load_company()
    assert (again.name, again.if_number, again.phones, again.vat_rate) == ("MG", "456", ["0537", "0661"], 14.0)


def test_invalid_company_section_gives_defaults(tmp_path):
    path = tmp_path / "settings.json"
    dump_json(path, {"company": {"vat_rate": "beaucoup"}})
    assert SettingsService(path).load_company() == CompanyInfo()
