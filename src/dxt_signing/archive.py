"""
In-memory DXT archive.

A DXT file is a plain zip. DxtArchive loads every entry into memory in the
zip's central-directory order and never touches the source file again,
so signing produces a fresh value and a fresh output file.
"""

from __future__ import annotations

import io
import logging
import os
import tempfile
import time
import zipfile
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterator


logger = logging.getLogger(__name__)

MANIFEST_PATH = "manifest.json"
SIGNATURE_PATH = "META-INF/dxt-signatures.json"


@dataclass(frozen=True)
class DxtEntry:
    """A single named entry and the zip metadata needed to write it back."""
    name: str
    data: bytes
    date_time: tuple[int, int, int, int, int, int] = (1980, 1, 1, 0, 0, 0)
    compress_type: int = zipfile.ZIP_DEFLATED
    external_attr: int = 0

    @property
    def is_dir(self) -> bool:
        return self.name.endswith("/")

    def to_zipinfo(self) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(self.name, date_time=self.date_time)
        info.compress_type = zipfile.ZIP_STORED if self.is_dir else self.compress_type
        info.external_attr = self.external_attr
        return info


class DxtArchive:
    """
    Ordered, immutable collection of archive entries.

    Iteration yields every entry in the physical order of the source zip,
    duplicate names included. Name lookups resolve to the last entry with
    that name, as zipfile.ZipFile.read(name) does. Entries added with
    with_entry() go to the end unless they replace an existing name.
    """

    def __init__(self, entries: tuple[DxtEntry, ...] | list[DxtEntry] = ()):
        self._entries: tuple[DxtEntry, ...] = tuple(entries)
        self._by_name: dict[str, DxtEntry] = {entry.name: entry for entry in self._entries}

    @classmethod
    def from_mapping(cls, files: dict[str, bytes | str]) -> "DxtArchive":
        """Build an archive from name -> content, in mapping order."""
        entries = []
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else bytes(content)
            entries.append(DxtEntry(name=name, data=data, date_time=_now_date_time()))
        return cls(entries)

    @classmethod
    def from_bytes(cls, data: bytes) -> "DxtArchive":
        return cls._from_zipfile(io.BytesIO(data))

    @classmethod
    def from_path(cls, path: str | Path) -> "DxtArchive":
        path = Path(path)
        logger.debug("Loading archive %s", path)
        with open(path, "rb") as fh:
            return cls._from_zipfile(fh)

    @classmethod
    def _from_zipfile(cls, source) -> "DxtArchive":
        entries = []
        with zipfile.ZipFile(source, "r") as zf:
            for info in zf.infolist():
                entries.append(DxtEntry(
                    name=info.filename,
                    data=zf.read(info),
                    date_time=info.date_time,
                    compress_type=info.compress_type,
                    external_attr=info.external_attr,
                ))
        return cls(entries)

    def __iter__(self) -> Iterator[DxtEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def names(self) -> list[str]:
        return [entry.name for entry in self._entries]

    def has_entry(self, name: str) -> bool:
        return name in self._by_name

    def read(self, name: str) -> bytes:
        """Raw bytes of an entry. Raises KeyError if absent."""
        return self._by_name[name].data

    def read_text(self, name: str, encoding: str = "utf-8", errors: str = "strict") -> str:
        return self.read(name).decode(encoding, errors)

    def with_entry(self, name: str, data: bytes) -> "DxtArchive":
        """
        Return a new archive with `name` added or replaced.

        A replaced entry takes the position of the first entry with that
        name; any further duplicates of it are dropped.
        """
        existing = self._by_name.get(name)
        if existing is not None:
            new_entry = replace(existing, data=data, date_time=_now_date_time())
        else:
            new_entry = DxtEntry(name=name, data=data, date_time=_now_date_time())

        entries = []
        placed = False
        for entry in self._entries:
            if entry.name != name:
                entries.append(entry)
            elif not placed:
                entries.append(new_entry)
                placed = True
        if not placed:
            entries.append(new_entry)
        return DxtArchive(entries)

    def without_entry(self, name: str) -> "DxtArchive":
        return DxtArchive([e for e in self._entries if e.name != name])

    def to_bytes(self) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            for entry in self._entries:
                zf.writestr(entry.to_zipinfo(), entry.data)
        return buffer.getvalue()

    def write(self, path: str | Path) -> Path:
        """
        Write the archive to `path`.

        The zip is built in a temporary file next to the target and moved
        into place, so a failure never leaves a partial file behind. The
        file gets the usual umask-derived mode, not mkstemp's 0600.
        """
        out_path = Path(path)
        data = self.to_bytes()
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{out_path.name}.", suffix=".tmp", dir=out_path.parent,
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(data)
            os.chmod(tmp_name, 0o666 & ~_current_umask())
            os.replace(tmp_name, out_path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        logger.debug("Wrote archive %s (%d entries)", out_path, len(self))
        return out_path


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask


def _now_date_time() -> tuple[int, int, int, int, int, int]:
    # Zip timestamps cannot predate 1980
    return max(time.localtime(time.time())[:6], (1980, 1, 1, 0, 0, 0))
