import logging
import dataclasses
from threading import Lock
from types import MappingProxyType
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, get_type_hints
from benmarshal.errors import DuplicateFieldNameError, UnsupportedKindError
from benmarshal.tag import TAG_KEY, parse_tag

_DATACLASSES_JSON_KEY = 'dataclasses_json'


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    omit_empty: bool
    slot: str
    hint: Any = Any
    init: bool = True


    @property
    def key(self) -> bytes:
        return self.name.encode()


@dataclass(frozen=True)
class TypeProfile:
    cls: type
    by_name: Mapping[str, FieldDescriptor]
    ordered: tuple[FieldDescriptor, ...]
    # init fields without a default, excluded ones included: (slot, hint)
    required: tuple[tuple[str, Any], ...] = ()


    def __len__(self) -> int:
        return len(self.ordered)


def build_profile(
    cls: type,
    tag_key: str = TAG_KEY,
    letter_case: Optional[Callable[[str], str]] = None
) -> TypeProfile:
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise UnsupportedKindError(getattr(cls, '__name__', type(cls).__name__), f'{cls!r} is not a dataclass type.')

    hints = get_type_hints(cls)
    by_name: dict[str, FieldDescriptor] = {}
    required: list[tuple[str, Any]] = []

    for f in dataclasses.fields(cls):
        if f.init and f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            required.append((f.name, hints.get(f.name, Any)))

        tag = parse_tag(f.metadata.get(tag_key))
        if tag.excluded:
            continue

        name = tag.name or _external_name(cls, f, letter_case)
        if name in by_name:
            raise DuplicateFieldNameError(cls.__name__, name, by_name[name].slot, f.name)

        by_name[name] = FieldDescriptor(name, tag.omit_empty, f.name, hints.get(f.name, Any), f.init)

    ordered = tuple(sorted(by_name.values(), key=lambda descriptor: descriptor.key))
    return TypeProfile(cls, MappingProxyType(by_name), ordered, tuple(required))


def _external_name(cls: type, f: dataclasses.Field, letter_case: Optional[Callable[[str], str]]) -> str:
    # dataclasses_json overrides: config(field_name=...) or letter_case, field level first
    override = f.metadata.get(_DATACLASSES_JSON_KEY, {}).get('letter_case')
    if override is None:
        class_config = getattr(cls, 'dataclass_json_config', None) or {}
        override = class_config.get('letter_case')
    if override is None:
        override = letter_case
    if callable(override):
        return override(f.name)
    return f.name


class ProfileCache:
    """Memo of record type -> TypeProfile, shared by encoders and decoders.

    Reads never lock. Two threads missing on the same type may both build a
    profile; only the first one stored is ever handed out.
    """

    def __init__(self, tag_key: str = TAG_KEY, letter_case: Optional[Callable[[str], str]] = None):
        self.tag_key = tag_key
        self.letter_case = letter_case
        self._profiles: dict[type, TypeProfile] = {}
        self._lock = Lock()


    def profile_for(self, cls: type) -> TypeProfile:
        profile = self._profiles.get(cls)
        if profile is not None:
            return profile

        profile = build_profile(cls, self.tag_key, self.letter_case)
        with self._lock:
            profile = self._profiles.setdefault(cls, profile)
        logging.debug(f'Profile for {cls.__name__}: {[d.name for d in profile.ordered]}')
        return profile


    def clear(self):
        with self._lock:
            self._profiles.clear()


    def __contains__(self, cls: type) -> bool:
        return cls in self._profiles


    def __len__(self) -> int:
        return len(self._profiles)


profiles = ProfileCache()
