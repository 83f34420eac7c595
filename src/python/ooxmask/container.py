from __future__ import annotations

import copy
import io
import os
import logging
import zipfile
import zlib
from typing import Dict, List, Union

from .errors import ContainerError, XmlParseError

logger = logging.getLogger(__name__)

Source = Union[str, bytes, os.PathLike]


class OoxmlPackage:
    """Zip-backed OOXML package with in-memory part replacement.

    Replaced parts are written back with the original member's ZipInfo, so
    member order, compression and timestamps survive a rewrite.
    """

    def __init__(self, data: bytes):
        self._data = data
        try:
            self._zip = zipfile.ZipFile(io.BytesIO(data), "r")
            self._infos = self._zip.infolist()
        except zipfile.BadZipFile as exc:
            raise ContainerError("Invalid OOXML container (ZIP)") from exc
        self._replaced: Dict[str, bytes] = {}

    @classmethod
    def open(cls, source: Source) -> "OoxmlPackage":
        if isinstance(source, (bytes, bytearray)):
            return cls(bytes(source))
        try:
            with open(source, "rb") as fh:
                return cls(fh.read())
        except OSError as exc:
            raise ContainerError(f"Failed to read {source}: {exc}") from exc

    def names(self) -> List[str]:
        return [info.filename for info in self._infos]

    def __contains__(self, name: str) -> bool:
        return any(i.filename == name for i in self._infos)

    def read_bytes(self, name: str) -> bytes:
        if name in self._replaced:
            return self._replaced[name]
        try:
            return self._zip.read(name)
        except (zipfile.BadZipFile, zipfile.LargeZipFile, zlib.error, OSError) as exc:
            raise ContainerError(f"Failed to read {name} from package: {exc}") from exc

    def read_text(self, name: str) -> str:
        data = self.read_bytes(name)
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise XmlParseError(f"{name} is not UTF-8 encoded: {exc}", name) from exc

    def replace(self, name: str, text: str) -> None:
        if name not in self:
            raise KeyError(name)
        self._replaced[name] = text.encode("utf-8")

    @property
    def modified(self) -> bool:
        return bool(self._replaced)

    def to_bytes(self) -> bytes:
        if not self._replaced:
            return self._data
        out = io.BytesIO()
        try:
            with zipfile.ZipFile(out, "w") as zout:
                for item in self._infos:
                    data = self._replaced.get(item.filename)
                    if data is None:
                        data = self._zip.read(item.filename)
                    # writestr updates offsets and sizes on the ZipInfo it is given.
                    zout.writestr(copy.copy(item), data)
        except (zipfile.BadZipFile, zlib.error, OSError) as exc:
            raise ContainerError(f"Failed to rebuild package: {exc}") from exc
        logger.debug(f"Rebuilt package with {len(self._replaced)} replaced part(s)")
        return out.getvalue()

    def close(self) -> None:
        self._zip.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
