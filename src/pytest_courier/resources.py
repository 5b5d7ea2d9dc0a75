"""Resource references and their loading.

Payloads, header data, scripts and dictionary mappings may be read from
resources instead of being written inline. A resource path is either a
plain filesystem path, a `file:` path, or a `package:` path addressing
data shipped inside an importable package (`package:my_tests/data/a.xml`).
"""

from codecs import lookup
from importlib.resources import files
from pathlib import Path
from re import compile as regexp
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from pydantic import Field

from pytest_courier.errors import EncodingError, ResourceError
from pytest_courier.models import SchemaModel

if TYPE_CHECKING:
    from pytest_courier.context import TestContext

FILE_PREFIX = 'file:'
PACKAGE_PREFIX = 'package:'

XML_DECLARATION_PATTERN = regexp(rb'^\s*<\?xml[^>]*\bencoding=["\']([\w.\-]+)["\']')


@runtime_checkable
class ResourceLoader(Protocol):
    """Interface of a resource loader."""

    def load(self, path: str) -> tuple[bytes, str | None]:
        """Return the resource content and its declared encoding, if any."""
        ...  # pragma: no cover


class FileResourceLoader:
    """Load resources from the filesystem and from installed packages."""

    def __init__(self, base_dir: Path | str | None = None) -> None:
        """Initialize the loader.

        Args:
            base_dir: Directory relative filesystem paths are resolved against.
        """
        self.base_dir = Path(base_dir) if base_dir else None

    def load(self, path: str) -> tuple[bytes, str | None]:
        """Load a resource.

        Raises:
            ResourceError: If the resource does not exist or can not be read.
        """
        try:
            if path.startswith(PACKAGE_PREFIX):
                package, _, name = path.removeprefix(PACKAGE_PREFIX).lstrip('/').partition('/')
                return files(package.replace('/', '.')).joinpath(name).read_bytes(), None

            filename = Path(path.removeprefix(FILE_PREFIX))
            if self.base_dir and not filename.is_absolute():
                filename = self.base_dir / filename

            return filename.read_bytes(), None

        except (OSError, ModuleNotFoundError) as base:
            raise ResourceError(f'Unable to load resource {path!r}: {base}') from base


def detect_encoding(data: bytes) -> str | None:
    """Detect the encoding declared by an XML prolog."""
    if match := XML_DECLARATION_PATTERN.match(data):
        return match.group(1).decode('ascii')

    return None


def decode(data: bytes, encoding: str) -> str:
    """Decode resource content.

    Raises:
        EncodingError: If the encoding is unknown or the content is invalid.
    """
    try:
        return data.decode(lookup(encoding).name)

    except LookupError as base:
        raise EncodingError(f'Unsupported character encoding {encoding!r}') from base

    except UnicodeDecodeError as base:
        raise EncodingError(f'Invalid content for character encoding {encoding!r}: {base.reason}') from base


class Resource(SchemaModel):
    """Reference to a textual resource."""

    path: str = Field(
        title='Resource path',
        description=(
            'Filesystem path, `file:` path or `package:` path of the resource. '
            'The path may contain placeholders.'
        ),
        examples=[
            'data/request.xml',
            'package:my_tests/data/request.xml',
        ],
    )

    encoding: str | None = Field(
        default=None,
        title='Character encoding',
        description=(
            'Encoding of the resource. When omitted, the encoding declared '
            'by the loader or by an XML prolog is used, then the default one.'
        ),
    )

    def read(self, context: 'TestContext') -> str:
        """Load and decode the resource.

        Raises:
            ResourceError: If the resource can not be loaded.
            EncodingError: If the resource can not be decoded.
        """
        data, declared = context.resource_loader.load(context.resolve(self.path))
        encoding = (
            self.encoding
            or declared
            or detect_encoding(data)
            or context.settings.default_encoding
        )

        return decode(data, encoding)
