"""Backup name codec — renders a BackupIdentity into a name and parses it back."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import TYPE_CHECKING

from gamesave.errors import EmptyTagError, InvalidFormatConfiguration, MalformedBackupName
from gamesave.models.backup_identity import BackupIdentity
from gamesave.models.game_config import validate_name_format

if TYPE_CHECKING:
    from gamesave.models.game_config import GameConfig

REUSE_LIMIT = 100

_REUSE_PATTERN = re.compile(r"\(\d{2}\)")
_VERSION_FORMAT = re.compile(r"^(v?)(\d{1,3})(?:\.(\d{1,2}))?$")


def merge_tag(old_tag: str, new_tag: str, parts: str) -> str:
    """
    Merge a new tag into an existing one.

    A new tag starting with a parts character replaces the existing tag from
    the last occurrence of that character, or is appended after a space when
    the character is absent. Any other new tag replaces the old one.

        merge_tag("A-old", "-new", "-")  → "A-new"
        merge_tag("A", "-new", "-")      → "A -new"
        merge_tag("A-old", "fresh", "-") → "fresh"
    """
    if not new_tag:
        raise EmptyTagError("The new tag cannot be empty.")
    old_tag = old_tag or ""
    marker = new_tag[0]
    if marker not in parts:
        return new_tag
    last_index = old_tag.rfind(marker)
    if last_index != -1:
        return old_tag[:last_index] + new_tag
    if not old_tag:
        return new_tag
    return f"{old_tag} {new_tag}"


@dataclass(frozen=True)
class VersionPattern:
    """A version format such as ``v001`` or ``01.5``; every digit is a placeholder."""

    lead: str
    integer_digits: int
    decimal_digits: int

    @classmethod
    def parse(cls, pattern: str) -> VersionPattern:
        match = _VERSION_FORMAT.match(pattern)
        if not match:
            raise InvalidFormatConfiguration(f"Invalid version format '{pattern}'.")
        lead, integer, decimals = match.groups()
        return cls(lead, len(integer), len(decimals or ""))

    @property
    def width(self) -> int:
        number = self.integer_digits + (self.decimal_digits + 1 if self.decimal_digits else 0)
        return len(self.lead) + number

    @property
    def unit(self) -> Decimal:
        """Smallest step the pattern can render."""
        return Decimal(1).scaleb(-self.decimal_digits)

    def render(self, version: Decimal) -> str:
        if version < 0:
            raise InvalidFormatConfiguration(f"Version {version} cannot be negative.")
        number_width = self.width - len(self.lead)
        text = f"{self.lead}{version:0{number_width}.{self.decimal_digits}f}"
        if len(text) != self.width:
            raise InvalidFormatConfiguration(
                f"Version {version} does not fit the version format ({self.width} characters)."
            )
        return text

    def read(self, text: str) -> Decimal:
        if not text.startswith(self.lead):
            raise MalformedBackupName(f"Version '{text}' does not start with '{self.lead}'.")
        digits = text[len(self.lead) :]
        expected = rf"\d{{{self.integer_digits}}}"
        if self.decimal_digits:
            expected += rf"\.\d{{{self.decimal_digits}}}"
        if not re.fullmatch(expected, digits):
            raise MalformedBackupName(f"Version '{text}' does not match the version format.")
        try:
            return Decimal(digits)
        except InvalidOperation as e:
            raise MalformedBackupName(f"Version '{text}' is not a number.", e) from e


class NameFormatCodec:
    """
    Encodes and decodes backup names under a game's format grammar.

    Grammar tokens:
      P  prefix          G  game directory    s  separator
      D  date            V  version           T  tag
      R  reuse "(NN)"    E  ".extension"      ' ' literal space

    Every token except T has a known length (R is 0 or 4 characters), so
    decoding walks the grammar left to right and gives the tag whatever the
    tokens to its right leave over.
    """

    def __init__(
        self,
        grammar: str,
        *,
        prefix: str = "",
        game_directory: str = "",
        separator: str = "",
        date_format: str = "%Y-%m-%d",
        version_format: str = "v001",
        extension: str = "",
        initial_version: Decimal | None = None,
    ) -> None:
        validate_name_format(grammar)
        self.grammar = grammar
        self.prefix = prefix
        self.game_directory = game_directory
        self.separator = separator
        self.date_format = date_format
        self.version = VersionPattern.parse(version_format)
        self.extension = extension
        self.initial_version = initial_version if initial_version is not None else Decimal(0)

    @classmethod
    def for_game(cls, config: GameConfig) -> NameFormatCodec:
        return cls(
            config.name_format,
            prefix=config.save_prefix,
            game_directory=config.game_directory,
            separator=config.separator,
            date_format=config.date_format,
            version_format=config.version_format,
            extension=config.extension,
            initial_version=config.initial_version,
        )

    @property
    def uses_reuse(self) -> bool:
        return "R" in self.grammar

    @property
    def uses_extension(self) -> bool:
        return "E" in self.grammar

    @property
    def extension_text(self) -> str:
        return f".{self.extension}" if self.extension else ""

    # ── Identity helpers ──

    def current_date(self, now: datetime | None = None) -> str:
        return (now or datetime.now()).strftime(self.date_format)

    def fresh_identity(self) -> BackupIdentity:
        """Identity for a game with no backup yet."""
        return BackupIdentity(
            prefix=self.prefix,
            game_directory=self.game_directory,
            date=self.current_date(),
            version=self.initial_version,
            extension=self.extension,
        )

    def increment_version(self, identity: BackupIdentity) -> None:
        identity.version += self.version.unit

    # ── Encode ──

    def encode(self, identity: BackupIdentity) -> str:
        reuse = f"({identity.reuse:02d})" if identity.reuse else ""
        extension = f".{identity.extension}" if identity.extension else ""
        parts: list[str] = []
        for index, token in enumerate(self.grammar):
            if token == "P":
                parts.append(identity.prefix)
            elif token == "G":
                parts.append(identity.game_directory)
            elif token == "s":
                parts.append(self.separator)
            elif token == "D":
                parts.append(identity.date)
            elif token == "V":
                parts.append(self.version.render(identity.version))
            elif token == "T":
                parts.append(identity.tag or "")
            elif token == "R":
                if not reuse and index > 0 and self.grammar[index - 1] == " ":
                    parts.pop()  # drop the space that would lead nothing
                else:
                    parts.append(reuse)
            elif token == "E":
                parts.append(extension)
            else:
                parts.append(token)
        return "".join(parts)

    # ── Decode ──

    def decode(self, name: str) -> BackupIdentity:
        """Parse a backup name, raising MalformedBackupName when it does not fit."""
        if self.uses_reuse and _REUSE_PATTERN.search(name):
            try:
                return self._decode(name, has_reuse=True)
            except MalformedBackupName:
                pass  # the "(NN)" belongs to the tag
        return self._decode(name, has_reuse=False)

    def _token_lengths(self, name: str, has_reuse: bool) -> list[int | None]:
        has_extension = bool(self.extension_text) and name.endswith(self.extension_text)
        fixed = {
            "P": len(self.prefix),
            "G": len(self.game_directory),
            "s": len(self.separator),
            "D": len(self.current_date()),
            "V": self.version.width,
            "E": len(self.extension_text) if has_extension else 0,
            "R": 4 if has_reuse else 0,
        }
        lengths: list[int | None] = []
        for index, token in enumerate(self.grammar):
            if token == "T":
                lengths.append(None)
            elif token == " ":
                reuse_follows = self.grammar[index + 1 : index + 2] == "R"
                lengths.append(0 if reuse_follows and not has_reuse else 1)
            else:
                lengths.append(fixed.get(token, 1))
        return lengths

    def _decode(self, name: str, has_reuse: bool) -> BackupIdentity:
        lengths = self._token_lengths(name, has_reuse)
        identity = BackupIdentity(
            prefix=self.prefix,
            game_directory=self.game_directory,
            extension=self.extension,
        )
        offset = 0
        for index, token in enumerate(self.grammar):
            length = lengths[index]
            if length is None:
                remaining = sum(n for n in lengths[index + 1 :] if n is not None)
                length = len(name) - offset - remaining
                if length < 0:
                    raise MalformedBackupName(f"'{name}' is too short for format '{self.grammar}'.")
            chunk = name[offset : offset + length]
            if len(chunk) != length:
                raise MalformedBackupName(f"'{name}' is too short for format '{self.grammar}'.")
            self._assign(identity, token, chunk, name)
            offset += length

        if offset != len(name):
            raise MalformedBackupName(f"'{name}' is longer than format '{self.grammar}' allows.")
        return identity

    def _assign(self, identity: BackupIdentity, token: str, chunk: str, name: str) -> None:
        if token == "D":
            identity.date = chunk
        elif token == "V":
            identity.version = self.version.read(chunk)
        elif token == "T":
            identity.tag = chunk
        elif token == "R":
            if chunk and not _REUSE_PATTERN.fullmatch(chunk):
                raise MalformedBackupName(f"'{chunk}' in '{name}' is not a reuse count.")
            identity.reuse = int(chunk[1:3]) if chunk else 0
        else:
            expected = {
                "P": self.prefix,
                "G": self.game_directory,
                "s": self.separator,
                "E": self.extension_text,
            }.get(token, token)
            if chunk and chunk != expected:
                raise MalformedBackupName(f"'{chunk}' in '{name}' does not match '{expected}'.")
