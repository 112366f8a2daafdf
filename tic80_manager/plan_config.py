from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent / "manifests" / "default.yaml"


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class SourcePin:
    path: str
    ref: str


@dataclass(frozen=True)
class UninstallTarget:
    description: str
    path: str


@dataclass(frozen=True)
class ManagerConfig:
    raw: Dict[str, Any]

    def _section(self, name: str) -> Dict[str, Any]:
        section = self.raw.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")
        return section

    def _list(self, section: str, key: str) -> List[str]:
        value = self._section(section).get(key) or []
        if not isinstance(value, list):
            raise ConfigError(f"{section}.{key} must be a list, got {type(value).__name__}")
        return [str(v) for v in value]

    @property
    def title(self) -> str:
        return str(self._section("banner").get("title") or "TIC-80 PRO MANAGER")

    @property
    def version_label(self) -> str:
        return str(self._section("banner").get("version_label") or "")

    @property
    def menu_labels(self) -> Tuple[str, str, str, str]:
        menu = self._section("menu")
        return (
            str(menu.get("install") or "Install"),
            str(menu.get("upgrade") or "Upgrade"),
            str(menu.get("uninstall") or "Uninstall"),
            str(menu.get("exit") or "Exit"),
        )

    @property
    def build_dir(self) -> str:
        return str(self._section("paths").get("build_dir") or "/var/tmp/tic80-build")

    @property
    def prefix(self) -> str:
        return str(self._section("paths").get("prefix") or "/usr/local")

    @property
    def repo_url(self) -> str:
        url = self._section("source").get("repo_url")
        if not url:
            raise ConfigError("source.repo_url is required")
        return str(url)

    @property
    def checkout_dir(self) -> str:
        name = str(self._section("source").get("checkout") or "TIC-80")
        return f"{self.build_dir}/{name}"

    @property
    def pin(self) -> Optional[SourcePin]:
        pin = self._section("source").get("pin")
        if not pin:
            return None
        if not isinstance(pin, dict):
            raise ConfigError("source.pin must be a mapping with 'path' and 'ref'")
        if not pin.get("path") or not pin.get("ref"):
            raise ConfigError("source.pin needs both 'path' and 'ref'")
        return SourcePin(path=str(pin["path"]), ref=str(pin["ref"]))

    @property
    def group_install_cmd(self) -> Optional[str]:
        cmd = self._section("dependencies").get("group_install")
        return str(cmd) if cmd else None

    @property
    def package_install_cmd(self) -> str:
        return str(self._section("dependencies").get("package_install") or "dnf -y install")

    @property
    def dependency_packages(self) -> List[str]:
        return self._list("dependencies", "packages")

    @property
    def jobs_expr(self) -> str:
        return str(self._section("build").get("jobs") or "$(nproc)")

    @property
    def cmake_flags(self) -> List[str]:
        return self._list("build", "cmake_flags")

    @property
    def uninstall_targets(self) -> List[UninstallTarget]:
        entries = self.raw.get("uninstall") or []
        if not isinstance(entries, list):
            raise ConfigError("uninstall must be a list of targets")
        targets = []
        for entry in entries:
            if not isinstance(entry, dict) or not entry.get("path"):
                raise ConfigError(f"uninstall entry needs a 'path': {entry!r}")
            path = str(entry["path"])
            if not path.startswith("/"):
                path = f"{self.prefix}/{path}"
            targets.append(
                UninstallTarget(description=str(entry.get("description") or f"Removing {path}..."), path=path)
            )
        return targets

    def validate(self) -> None:
        """Read every value once so bad config fails at startup, not mid-run."""
        self.title, self.version_label, self.menu_labels
        self.build_dir, self.prefix, self.checkout_dir
        self.repo_url, self.pin
        self.group_install_cmd, self.package_install_cmd, self.dependency_packages
        self.jobs_expr, self.cmake_flags
        if not self.uninstall_targets:
            raise ConfigError("uninstall must list at least one target")


def load_config(path: Optional[str] = None) -> ManagerConfig:
    p = Path(path) if path else DEFAULT_CONFIG_PATH
    if not p.exists():
        raise ConfigError(f"config file not found: {p}")

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ConfigError("plan config must be YAML")

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {p}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{p.name} must contain a mapping/object")

    cfg = ManagerConfig(raw=raw)
    cfg.validate()
    return cfg
