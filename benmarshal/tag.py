from dataclasses import dataclass
from typing import Optional
from benmarshal.errors import TagSyntaxError

TAG_KEY = 'bencode'
OMIT_EMPTY = 'omitempty'
EXCLUDE = '-'

_OPTIONS = frozenset([OMIT_EMPTY])


@dataclass(frozen=True)
class Tag:
    name: str = ''
    options: frozenset[str] = frozenset()
    excluded: bool = False


    @property
    def omit_empty(self) -> bool:
        return OMIT_EMPTY in self.options


def parse_tag(text: Optional[str]) -> Tag:
    """Parse a field tag of the form `name`, `name,option` or `-`.

    An empty name means "use the attribute name". `-` on its own excludes the
    field; `-,` names a field whose key is literally `-`.
    """
    if not text:
        return Tag()

    if not isinstance(text, str):
        raise TagSyntaxError(f'Field tag should be a string, got {type(text).__name__}.')

    if text == EXCLUDE:
        return Tag(excluded=True)

    name, *options = text.split(',')
    for option in options:
        if option and option not in _OPTIONS:
            raise TagSyntaxError(f'Unknown field tag option "{option}" in "{text}".')

    return Tag(name, frozenset(option for option in options if option))


def tag(text: str, metadata: Optional[dict] = None) -> dict:
    """Field metadata carrying a bencode tag.

        piece_length: int = field(metadata=tag('piece length'))
    """
    if metadata is None:
        metadata = {}
    metadata[TAG_KEY] = text
    return metadata
