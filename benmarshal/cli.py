import sys
import fire
import logging
from typing import Any, Optional
from benmarshal import marshal, unmarshal
from benmarshal.errors import BencodeError
from benmarshal.value import Value, Integer, ByteString, List

_PREVIEW_SIZE = 64


def _setup_logging(verbose: bool):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)


def _read(file: str) -> bytes:
    with open(file, 'rb') as f:
        return f.read()


def _render_bytes(data: bytes) -> str:
    if len(data) > _PREVIEW_SIZE:
        return f'<{len(data)} bytes>'
    try:
        return repr(data.decode())
    except UnicodeDecodeError:
        return f'0x{data.hex()}'


def render(value: Value, depth: int = -1, indent: int = 0) -> list[str]:
    pad = '  ' * indent

    if isinstance(value, Integer):
        return [f'{pad}{value.value}']

    if isinstance(value, ByteString):
        return [f'{pad}{_render_bytes(bytes(value.value))}']

    if isinstance(value, List):
        if depth == 0:
            return [f'{pad}[... {len(value.items)} items]']
        lines = [f'{pad}[']
        for item in value.items:
            lines.extend(render(item, depth - 1, indent + 1))
        lines.append(f'{pad}]')
        return lines

    if depth == 0:
        return [f'{pad}{{... {len(value.entries)} keys}}']
    lines = [f'{pad}{{']
    for key, item in value.entries.items():
        nested = render(item, depth - 1, indent + 1)
        lines.append(f'{pad}  {_render_bytes(key)}: {nested[0].lstrip()}')
        lines.extend(nested[1:])
    lines.append(f'{pad}}}')
    return lines


def dump(file: str, depth: int = -1, verbose: bool = False) -> Optional[str]:
    """Print the decoded value tree of a bencoded file."""
    _setup_logging(verbose)
    try:
        value = unmarshal(_read(file))
    except BencodeError as e:
        logging.error(f'{file}: {e}')
        return None

    try:
        return '\n'.join(render(value, depth))
    except RecursionError:
        logging.error(f'{file}: value nests too deep to render, retry with --depth')
        return None


def check(file: str, verbose: bool = False) -> bool:
    """Tell whether a bencoded file is in canonical form."""
    _setup_logging(verbose)
    data = _read(file)
    try:
        canonical = marshal(unmarshal(data))
    except BencodeError as e:
        logging.error(f'{file}: {e}')
        return False

    if canonical != data:
        logging.warning(f'{file} is not canonical ({len(data)} bytes, canonical form is {len(canonical)} bytes)')
        return False

    logging.info(f'{file} is canonical')
    return True


def encode(value: Any, verbose: bool = False):
    """Bencode a literal (fire parses it) and write the bytes to stdout."""
    _setup_logging(verbose)
    try:
        data = marshal(value)
    except BencodeError as e:
        logging.error(f'Cannot encode {value!r}: {e}')
        return
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


def main():
    fire.Fire({
        'dump': dump,
        'check': check,
        'encode': encode,
    })
