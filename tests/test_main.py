import pytest

import tic80_manager.main as main_mod
from tic80_manager.main import ROOT_REQUIRED, main


class FakeApp:
    instances = []

    def __init__(self, *, cfg, runner, code=0):
        self.cfg = cfg
        self.runner = runner
        self.return_code = code
        FakeApp.instances.append(self)

    def run(self):
        return None


@pytest.fixture(autouse=True)
def quiet_logging(monkeypatch, tmp_path):
    monkeypatch.setattr(main_mod, "configure_logging", lambda **kw: str(tmp_path / "test.log"))
    FakeApp.instances = []


def test_requires_root(monkeypatch, capsys):
    monkeypatch.setattr(main_mod, "is_root", lambda: False)
    monkeypatch.setattr(main_mod, "ManagerApp", FakeApp)
    assert main([]) == 1
    assert ROOT_REQUIRED in capsys.readouterr().out
    assert FakeApp.instances == []


def test_root_starts_the_ui(monkeypatch):
    monkeypatch.setattr(main_mod, "is_root", lambda: True)
    monkeypatch.setattr(main_mod, "ManagerApp", FakeApp)
    assert main([]) == 0
    (app,) = FakeApp.instances
    assert app.cfg.title == "TIC-80 PRO MANAGER"
    assert not app.runner.dry_run


def test_dry_run_skips_privilege_check(monkeypatch):
    monkeypatch.setattr(main_mod, "is_root", lambda: False)
    monkeypatch.setattr(main_mod, "ManagerApp", FakeApp)
    assert main(["--dry-run"]) == 0
    assert FakeApp.instances[0].runner.dry_run


def test_bad_config_exits_nonzero(monkeypatch, tmp_path, capsys):
    monkeypatch.setattr(main_mod, "is_root", lambda: True)
    monkeypatch.setattr(main_mod, "ManagerApp", FakeApp)
    assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
    assert "config file not found" in capsys.readouterr().err
    assert FakeApp.instances == []


def test_ui_crash_exits_nonzero(monkeypatch, capsys):
    class Broken(FakeApp):
        def run(self):
            raise OSError("terminal went away")

    monkeypatch.setattr(main_mod, "is_root", lambda: True)
    monkeypatch.setattr(main_mod, "ManagerApp", Broken)
    assert main([]) == 1
    assert "terminal went away" in capsys.readouterr().err


def test_exit_code_comes_from_the_app(monkeypatch):
    class Coded(FakeApp):
        def __init__(self, **kw):
            super().__init__(code=3, **kw)

    monkeypatch.setattr(main_mod, "is_root", lambda: True)
    monkeypatch.setattr(main_mod, "ManagerApp", Coded)
    assert main([]) == 3
