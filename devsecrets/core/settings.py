"""
devsecrets - Settings

A setting is an immutable value with a validity tag. Changing a setting
produces a new Setting; a SettingsList is an ordered, immutable collection of
them that is carried on the run context.
"""

from collections.abc import Iterator
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, Optional


class SettingsError(Exception):
  """Settings related errors."""

  pass


class Validity(Enum):
  UNKNOWN = "?"
  VALIDATED = "✓"
  INVALID = "✗"


@dataclass(frozen=True)
class Setting:
  """One named configuration value."""

  name: str
  value: str
  description: str = ""
  hidden: bool = False
  validity: Validity = Validity.UNKNOWN

  @property
  def is_bool(self) -> bool:
    return self.value.lower() in ("true", "false")

  @property
  def as_bool(self) -> bool:
    return self.value.lower() == "true"

  @property
  def needs_validation(self) -> bool:
    return self.validity != Validity.VALIDATED

  def with_value(self, value: Any) -> "Setting":
    """A copy holding value; the copy has not been validated yet."""
    if isinstance(value, bool):
      value = "true" if value else "false"
    return replace(self, value=str(value), validity=Validity.UNKNOWN)

  def with_validity(self, validity: Validity) -> "Setting":
    return replace(self, validity=validity)

  def with_hidden(self, hidden: bool) -> "Setting":
    return replace(self, hidden=hidden)


def validate(setting: Setting, check: Optional[Callable[[Setting], bool]] = None) -> Validity:
  """
  Compute the validity of a setting without modifying it.

  Hidden settings are always valid, empty values never are. Settings that
  were already validated keep their tag; otherwise the optional check decides,
  and without a check the result stays UNKNOWN.
  """
  if setting.hidden:
    return Validity.VALIDATED
  if setting.value == "":
    return Validity.INVALID
  if not setting.needs_validation:
    return setting.validity
  if check is None:
    return Validity.UNKNOWN
  return Validity.VALIDATED if check(setting) else Validity.INVALID


class SettingsList:
  """Ordered collection of settings with unique names."""

  def __init__(self, settings: Optional[list[Setting]] = None) -> None:
    self._settings: tuple[Setting, ...] = ()
    for setting in settings or []:
      self._settings = self.add(setting)._settings

  def __iter__(self) -> Iterator[Setting]:
    return iter(self._settings)

  def __len__(self) -> int:
    return len(self._settings)

  def find(self, name: str) -> Optional[Setting]:
    for setting in self._settings:
      if setting.name == name:
        return setting
    return None

  def value(self, name: str) -> str:
    setting = self.find(name)
    return setting.value if setting else ""

  def add(self, setting: Setting) -> "SettingsList":
    """A new list with setting appended; the name must not already exist."""
    if self.find(setting.name) is not None:
      raise SettingsError(f"Setting '{setting.name}' already exists, update instead of adding")
    new_list = SettingsList()
    new_list._settings = self._settings + (setting,)
    return new_list

  def replace(self, setting: Setting) -> "SettingsList":
    """A new list with the setting of the same name swapped for setting."""
    if self.find(setting.name) is None:
      raise SettingsError(f"Setting '{setting.name}' does not exist")
    new_list = SettingsList()
    new_list._settings = tuple(setting if s.name == setting.name else s for s in self._settings)
    return new_list

  def visible(self) -> list[Setting]:
    """Settings that are not hidden, in their original order."""
    return [s for s in self._settings if not s.hidden]

  def error_free(self) -> bool:
    return not any(s.validity == Validity.INVALID and not s.hidden for s in self._settings)

  def any_modified(self) -> bool:
    return any(s.validity == Validity.UNKNOWN for s in self._settings)

  def any_need_validation(self) -> bool:
    return any(s.needs_validation for s in self._settings)

  @classmethod
  def from_mapping(cls, values: dict[str, Any], descriptions: Optional[dict[str, str]] = None) -> "SettingsList":
    """Build a list from name/value pairs, e.g. parsed command line options."""
    descriptions = descriptions or {}
    settings = SettingsList()
    for name, value in values.items():
      base = Setting(name=name, value="", description=descriptions.get(name, ""))
      settings = settings.add(base.with_value("" if value is None else value))
    return settings
