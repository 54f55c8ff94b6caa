from __future__ import annotations

import os
import shutil
import sys
import tempfile
import zipfile
from dataclasses import dataclass
from pathlib import Path

import requests
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)

__all__ = [
    "DEFAULT_UNIDIC_URL",
    "UNIDIC_VERSION",
    "UniDicInstallError",
    "UniDicStatus",
    "ensure_unidic_installed",
    "get_unidic_dicdir",
    "resolve_managed_unidic",
]

UNIDIC_VERSION = "3.1.1"
DEFAULT_UNIDIC_URL = (
    f"https://clrd.ninjal.ac.jp/unidic_archive/cwj/{UNIDIC_VERSION}/unidic-cwj-{UNIDIC_VERSION}-full.zip"
)
UNIDIC_DIR_ENV = "SHIRITORI_UNIDIC_DIR"


class UniDicInstallError(RuntimeError):
    """Raised when the managed UniDic dictionary cannot be installed."""


@dataclass(slots=True)
class UniDicStatus:
    version: str | None
    path: Path | None
    managed: bool


def _managed_root() -> Path:
    return Path(sys.prefix) / "share" / "shiritori" / "unidic"


def _marker_path(root: Path) -> Path:
    return root / "current"


def _has_dicrc(path: Path | None) -> bool:
    return path is not None and (path / "dicrc").is_file()


def resolve_managed_unidic() -> UniDicStatus:
    marker = _marker_path(_managed_root())
    try:
        target = Path(marker.read_text(encoding="utf-8").strip())
    except FileNotFoundError:
        return UniDicStatus(version=None, path=None, managed=False)
    if not _has_dicrc(target):
        return UniDicStatus(version=None, path=None, managed=True)
    return UniDicStatus(version=UNIDIC_VERSION, path=target, managed=True)


def get_unidic_dicdir() -> Path | None:
    """Locate UniDic: env override, then the managed install, then the ``unidic`` package."""
    env_dir = os.environ.get(UNIDIC_DIR_ENV)
    if env_dir:
        candidate = Path(env_dir).expanduser()
        if _has_dicrc(candidate):
            return candidate
    managed = resolve_managed_unidic()
    if _has_dicrc(managed.path):
        return managed.path
    try:
        import unidic  # type: ignore
    except ImportError:
        return None
    dicdir = Path(getattr(unidic, "DICDIR", ""))
    if _has_dicrc(dicdir):
        return dicdir
    return None


def _progress(*columns) -> Progress:
    return Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        *columns,
        TimeRemainingColumn(),
        transient=True,
    )


def _download(url: str, destination: Path) -> Path:
    destination.mkdir(parents=True, exist_ok=True)
    archive_path = destination / (url.rstrip("/").split("/")[-1] or "unidic.zip")
    try:
        response = requests.get(url, stream=True, timeout=60)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise UniDicInstallError(f"Failed to download UniDic archive: {exc}") from exc
    length = response.headers.get("Content-Length")
    total = int(length) if length and length.isdigit() else None
    with archive_path.open("wb") as handle, _progress(DownloadColumn()) as progress:
        task = progress.add_task(f"Downloading UniDic {UNIDIC_VERSION}", total=total)
        for chunk in response.iter_content(chunk_size=1024 * 1024):
            if chunk:
                handle.write(chunk)
                progress.advance(task, len(chunk))
    return archive_path


def _unpack(archive_path: Path, destination: Path) -> Path:
    try:
        with zipfile.ZipFile(archive_path) as zf, _progress(TaskProgressColumn()) as progress:
            members = zf.infolist()
            task = progress.add_task(f"Extracting UniDic {UNIDIC_VERSION}", total=len(members) or None)
            for member in members:
                zf.extract(member, destination)
                progress.advance(task, 1)
    except zipfile.BadZipFile as exc:
        raise UniDicInstallError(f"Not a zip archive: {archive_path}") from exc
    for dicrc in sorted(destination.rglob("dicrc")):
        return dicrc.parent
    raise UniDicInstallError("Failed to locate dicrc inside the UniDic archive.")


def ensure_unidic_installed(
    *,
    url: str | None = DEFAULT_UNIDIC_URL,
    zip_path: str | None = None,
    force: bool = False,
) -> UniDicStatus:
    root = _managed_root()
    target_dir = root / UNIDIC_VERSION
    marker = _marker_path(root)

    if _has_dicrc(target_dir) and not force:
        marker.write_text(str(target_dir), encoding="utf-8")
        return UniDicStatus(version=UNIDIC_VERSION, path=target_dir, managed=True)

    if zip_path is not None:
        archive_path = Path(zip_path)
        if not archive_path.is_file():
            raise UniDicInstallError(f"Archive not found: {archive_path}")
    elif url is not None:
        archive_path = _download(url, root / "downloads")
    else:
        raise UniDicInstallError("No download URL provided for UniDic installation.")

    with tempfile.TemporaryDirectory() as tmpdir:
        dic_root = _unpack(archive_path, Path(tmpdir))
        if target_dir.exists():
            shutil.rmtree(target_dir)
        target_dir.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(dic_root), str(target_dir))

    marker.write_text(str(target_dir), encoding="utf-8")
    return UniDicStatus(version=UNIDIC_VERSION, path=target_dir, managed=True)
